"""Effective content assignments for a user.

Assignments reach a user through three tiers (direct, group, organization).
For each piece of content the most specific tier wins; the survivors are
enriched with display data for dashboard cards.
"""

from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError
from supabase import Client

from context_engine.core.logging import get_logger
from context_engine.core.schemas_assignments import (
    AssignmentType,
    ContentAssignment,
    ContentDetails,
    ContentType,
)
from context_engine.db.assignments import (
    list_direct_assignments,
    list_group_assignments,
    list_org_assignments,
    list_user_assignments,
)
from context_engine.db.courses import (
    get_course_display,
    get_lesson_display,
    get_module_display,
    get_resource_display,
)
from context_engine.db.groups import list_user_group_ids
from context_engine.db.profiles import get_profile

logger = get_logger(__name__)

DEFAULT_AUTHOR = "EnhancedHR"


# =============================================================================
# Deduplication
# =============================================================================


def _outranks(candidate: ContentAssignment, existing: ContentAssignment) -> bool:
    if candidate.assignee_type.priority != existing.assignee_type.priority:
        return candidate.assignee_type.priority > existing.assignee_type.priority
    # Same tier: a required assignment replaces a recommended one
    return (
        candidate.assignment_type is AssignmentType.REQUIRED
        and existing.assignment_type is AssignmentType.RECOMMENDED
    )


def dedupe_assignments(assignments: Iterable[ContentAssignment]) -> list[ContentAssignment]:
    """
    Keep one assignment per ``(content_type, content_id)``.

    The survivor is the one from the highest tier (user > group > org),
    independent of input order.
    """
    survivors: dict[tuple[ContentType | str, str], ContentAssignment] = {}
    for assignment in assignments:
        existing = survivors.get(assignment.content_key)
        if existing is None or _outranks(assignment, existing):
            survivors[assignment.content_key] = assignment
    return list(survivors.values())


# =============================================================================
# Enrichment
# =============================================================================


def _course_details(client: Client, content_id: str) -> ContentDetails | None:
    course = get_course_display(client, content_id)
    if not course:
        return None
    return ContentDetails(
        title=course["title"],
        thumbnail_url=course.get("image_url") or None,
        description=course.get("description") or None,
        author=course.get("author") or None,
        duration=course.get("duration") or None,
        category=course.get("category") or None,
        rating=float(course["rating"]) if course.get("rating") else None,
        badges=course.get("badges") or None,
        shrm_pdcs=course.get("shrm_pdcs") or None,
        hrci_credits=course.get("hrci_credits") or None,
    )


def _module_details(client: Client, content_id: str) -> ContentDetails | None:
    module = get_module_display(client, content_id)
    if not module:
        return None
    course = module.get("courses") or {}
    return ContentDetails(
        title=module["title"],
        thumbnail_url=course.get("image_url") or None,
        description=course.get("title") or module.get("description") or None,
        author=course.get("author") or DEFAULT_AUTHOR,
        duration=module.get("duration") or None,
        category="Module",
    )


def _lesson_details(client: Client, content_id: str) -> ContentDetails | None:
    lesson = get_lesson_display(client, content_id)
    if not lesson:
        return None
    module = lesson.get("modules") or {}
    course = module.get("courses") or {}
    if course.get("title"):
        description = f"{course['title']} → {module.get('title')}"
    else:
        description = module.get("title") or None
    return ContentDetails(
        title=lesson["title"],
        thumbnail_url=course.get("image_url") or None,
        description=description,
        author=course.get("author") or DEFAULT_AUTHOR,
        duration=lesson.get("duration") or None,
        category=lesson.get("type") or "Lesson",
    )


def _resource_details(client: Client, content_id: str) -> ContentDetails | None:
    resource = get_resource_display(client, content_id)
    if not resource:
        return None
    course = resource.get("courses") or {}
    return ContentDetails(
        title=resource["title"],
        thumbnail_url=course.get("image_url") or None,
        description=course.get("title") or "Course Resource",
        author=resource.get("type") or "Resource",
        duration=resource.get("size") or None,
        category="Resource",
    )


_DETAIL_FETCHERS: dict[ContentType, Callable[[Client, str], ContentDetails | None]] = {
    ContentType.COURSE: _course_details,
    ContentType.MODULE: _module_details,
    ContentType.LESSON: _lesson_details,
    ContentType.RESOURCE: _resource_details,
}

_missing_fetchers = set(ContentType) - set(_DETAIL_FETCHERS)
if _missing_fetchers:
    raise RuntimeError(f"No detail fetcher for content types: {sorted(_missing_fetchers)}")


def enrich_assignment(client: Client, assignment: ContentAssignment) -> ContentAssignment:
    """Attach display data; any failure yields the ``Unknown Content`` placeholder."""
    details: ContentDetails | None = None
    fetcher = _DETAIL_FETCHERS.get(assignment.content_type)
    if fetcher is None:
        logger.warning(
            f"[assignment_resolver] No detail fetcher for content type {assignment.content_type_name}, "
            f"using placeholder for {assignment.content_id}"
        )
        return assignment.model_copy(update={"content_details": ContentDetails()})

    try:
        details = fetcher(client, assignment.content_id)
    except Exception as e:
        logger.warning(
            f"[assignment_resolver] Failed to enrich {assignment.content_type_name} "
            f"{assignment.content_id}: {e}"
        )

    return assignment.model_copy(update={"content_details": details or ContentDetails()})


def _parse_rows(rows: Iterable[dict[str, Any]]) -> list[ContentAssignment]:
    """Parse rows, skipping only those without a usable deduplication key or assignee."""
    parsed = []
    for row in rows:
        try:
            parsed.append(ContentAssignment.from_row(row))
        except ValidationError as e:
            logger.warning(f"[assignment_resolver] Skipping malformed assignment {row.get('id')}: {e}")
    return parsed


# =============================================================================
# Entry points
# =============================================================================


def resolve_for_user(client: Client, user_id: str) -> list[ContentAssignment]:
    """
    Resolve every assignment that reaches a user, deduplicated and enriched.

    Returns:
        Enriched assignments; empty when the user has no organization
    """
    profile = get_profile(client, user_id)
    org_id = profile.get("org_id") if profile else None
    if not org_id:
        return []

    group_ids = list_user_group_ids(client, user_id)

    rows = [
        *list_user_assignments(client, user_id),
        *list_group_assignments(client, group_ids),
        *list_org_assignments(client, org_id),
    ]

    effective = dedupe_assignments(_parse_rows(rows))
    logger.debug(
        f"[assignment_resolver] {len(rows)} assignments reduced to {len(effective)} for user {user_id}"
    )
    return [enrich_assignment(client, assignment) for assignment in effective]


def get_direct_assignments(
    client: Client, assignee_type: str, assignee_id: str
) -> list[ContentAssignment]:
    """Enriched assignments made directly to one user or group."""
    rows = list_direct_assignments(client, assignee_type, assignee_id)
    return [enrich_assignment(client, assignment) for assignment in _parse_rows(rows)]
