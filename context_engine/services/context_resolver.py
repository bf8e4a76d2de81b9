"""Scope-driven context assembly for agent prompts.

Given a ContextScope, produces an ordered list of context items:
primary-scope items first, then tenant-filtered vector matches for the
query (if any), then the requesting user's profile. Prompt construction
treats the order as priority when truncating.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from supabase import Client

from context_engine.core.config import get_settings
from context_engine.core.embeddings import embed_text
from context_engine.core.help_ranking import select_help_topics, trim_topic_text
from context_engine.core.logging import get_logger
from context_engine.core.schemas_context import ContextItem, ContextItemType, ContextScope, ScopeType
from context_engine.db.collections import list_collection_items
from context_engine.db.course_embeddings import match_org_course_embeddings
from context_engine.db.courses import get_course_summary, get_course_with_hierarchy
from context_engine.db.help_topics import list_active_help_topics
from context_engine.db.profiles import get_profile
from context_engine.services.team_context import get_team_context_for_scope

logger = get_logger(__name__)

NO_TRANSCRIPT = "No transcript available."
HELP_COLLECTION_ID = "help"


@dataclass
class PrimaryContext:
    """Items for the primary scope plus where vector search may look."""

    items: list[ContextItem] = field(default_factory=list)
    searchable: bool = False
    # None searches every course of the requester's organization
    search_course_ids: list[int | str] | None = None


def _course_key(value: Any) -> int | str:
    text = str(value)
    return int(text) if text.isdigit() else text


# =============================================================================
# Scope handlers
# =============================================================================


async def _course_context(client: Client, scope: ContextScope, query: str | None) -> PrimaryContext:
    if not scope.id:
        return PrimaryContext()

    course = get_course_with_hierarchy(client, scope.id)
    if not course:
        logger.warning(f"[context_resolver] Course {scope.id} not found")
        return PrimaryContext()

    preview_chars = get_settings().LESSON_PREVIEW_CHARS
    items = [
        ContextItem(
            id=str(scope.id),
            type=ContextItemType.COURSE_META,
            content=(
                f"Course Title: {course.get('title')}\n"
                f"Description: {course.get('description')}\n"
                f"Author: {course.get('author')}"
            ),
        )
    ]

    for module in course.get("modules") or []:
        for lesson in module.get("lessons") or []:
            transcript = lesson.get("transcript")
            preview = transcript[:preview_chars] if transcript else NO_TRANSCRIPT
            items.append(
                ContextItem(
                    id=str(lesson["id"]),
                    type=ContextItemType.LESSON,
                    content=(
                        f"Module: {module.get('title')}\n"
                        f"Lesson: {lesson.get('title')}\n"
                        f"Content Preview: {preview}"
                    ),
                )
            )

    return PrimaryContext(items=items, searchable=True, search_course_ids=[_course_key(scope.id)])


def _collection_course_item(client: Client, item_id: str) -> ContextItem | None:
    course = get_course_summary(client, item_id)
    if not course:
        return None

    description = course.get("description") or ""
    preview_chars = get_settings().LESSON_PREVIEW_CHARS
    if len(description) > preview_chars:
        description = f"{description[:preview_chars]}..."

    return ContextItem(
        id=str(item_id),
        type=ContextItemType.COURSE,
        content=(
            f"Course: {course.get('title')}\n"
            f"Author: {course.get('author')}\n"
            f"Description: {description}"
        ),
    )


# Collection item types with a context handler; other item types are omitted
_COLLECTION_ITEM_HANDLERS: dict[str, Callable[[Client, str], ContextItem | None]] = {
    "COURSE": _collection_course_item,
}


def _help_context(client: Client, query: str | None) -> PrimaryContext:
    """Help topics ranked against the question, in place of collection items."""
    topics = list_active_help_topics(client)
    if not topics:
        return PrimaryContext()

    index_lines = "\n".join(f"- {topic.get('title')} ({topic.get('slug')})" for topic in topics)
    items = [
        ContextItem(
            id="help_topics_index",
            type=ContextItemType.HELP_INDEX,
            content=f"Available Help Topics:\n{index_lines}",
        )
    ]

    for topic in select_help_topics(topics, query):
        items.append(
            ContextItem(
                id=str(topic.get("slug")),
                type=ContextItemType.HELP_TOPIC,
                content=(
                    f"Help Topic: {topic.get('title')} ({topic.get('slug')})\n\n"
                    f"{trim_topic_text(topic.get('content_text'))}"
                ),
            )
        )

    return PrimaryContext(items=items)


async def _collection_context(client: Client, scope: ContextScope, query: str | None) -> PrimaryContext:
    if not scope.id:
        return PrimaryContext()
    if scope.id == HELP_COLLECTION_ID:
        return _help_context(client, query)

    items: list[ContextItem] = []
    course_ids: list[int | str] = []

    for entry in list_collection_items(client, scope.id):
        item_type = entry.get("item_type")
        handler = _COLLECTION_ITEM_HANDLERS.get(item_type)
        if handler is None:
            logger.debug(f"[context_resolver] No context handler for collection item type {item_type}")
            continue

        item = handler(client, str(entry["item_id"]))
        if item is None:
            continue
        items.append(item)
        if item_type == "COURSE":
            course_ids.append(_course_key(entry["item_id"]))

    return PrimaryContext(items=items, searchable=bool(course_ids), search_course_ids=course_ids)


async def _platform_context(client: Client, scope: ContextScope, query: str | None) -> PrimaryContext:
    item = ContextItem(
        id="platform_global",
        type=ContextItemType.PLATFORM,
        content=get_settings().PLATFORM_DESCRIPTION,
    )
    return PrimaryContext(items=[item], searchable=True, search_course_ids=None)


async def _user_context(client: Client, scope: ContextScope, query: str | None) -> PrimaryContext:
    # USER scope is grounded in the profile item alone
    return PrimaryContext()


async def _team_context(client: Client, scope: ContextScope, query: str | None) -> PrimaryContext:
    if not scope.user_id:
        return PrimaryContext()

    scope_id = scope.id or "all"
    report = get_team_context_for_scope(client, scope.user_id, scope_id)
    if report is None:
        return PrimaryContext()

    item = ContextItem(id=f"team-{scope_id}", type=ContextItemType.TEAM_ANALYTICS, content=report)
    return PrimaryContext(items=[item])


_SCOPE_HANDLERS: dict[ScopeType, Callable[[Client, ContextScope, str | None], Awaitable[PrimaryContext]]] = {
    ScopeType.COURSE: _course_context,
    ScopeType.COLLECTION: _collection_context,
    ScopeType.PLATFORM: _platform_context,
    ScopeType.USER: _user_context,
    ScopeType.TEAM: _team_context,
}

_missing_handlers = set(ScopeType) - set(_SCOPE_HANDLERS)
if _missing_handlers:
    raise RuntimeError(f"No context handler for scope types: {sorted(_missing_handlers)}")


# =============================================================================
# Assembly
# =============================================================================


def _profile_item(user_id: str, profile: dict[str, Any]) -> ContextItem:
    content = (
        f"User: {profile.get('full_name')}\n"
        f"Role: {profile.get('role')}\n"
        f"Organization ID: {profile.get('org_id')}"
    )
    insights = profile.get("ai_insights")
    if isinstance(insights, list) and insights:
        content += "\n\nKnown User Context:\n- " + "\n- ".join(insights)
    return ContextItem(id=str(user_id), type=ContextItemType.USER_PROFILE, content=content)


async def _vector_matches(
    client: Client, query: str, org_id: str, course_ids: list[int | str] | None
) -> list[ContextItem]:
    query_embedding = await embed_text(query)
    if not query_embedding:
        return []

    settings = get_settings()
    rows = match_org_course_embeddings(
        client,
        query_embedding,
        org_id=org_id,
        course_ids=course_ids,
        match_threshold=settings.RAG_MATCH_THRESHOLD,
        match_count=settings.RAG_MATCH_COUNT,
    )
    return [
        ContextItem(
            id=str(row["id"]),
            type=ContextItemType.RAG_CONTENT,
            content=row.get("content") or "",
            similarity=row.get("similarity"),
        )
        for row in rows
    ]


async def resolve_context(
    client: Client, scope: ContextScope, query: str | None = None
) -> list[ContextItem]:
    """
    Resolve the context items for a scope.

    Each data source is fetched independently; a failing source is logged
    and skipped so the remaining items are still returned.

    Args:
        client: Supabase client
        scope: What the agent is looking at
        query: Optional user question; enables vector search in the
            requester's organization for COURSE, COLLECTION and PLATFORM scopes

    Returns:
        Ordered context items (primary, vector matches, user profile)
    """
    profile: dict[str, Any] | None = None
    if scope.user_id:
        try:
            profile = get_profile(client, scope.user_id)
        except Exception as e:
            logger.error(f"[context_resolver] Failed to fetch profile {scope.user_id}: {e}")

    try:
        primary = await _SCOPE_HANDLERS[scope.type](client, scope, query)
    except Exception as e:
        logger.error(f"[context_resolver] Failed to resolve {scope.type.value} scope {scope.id}: {e}")
        primary = PrimaryContext()

    items = list(primary.items)

    org_id = profile.get("org_id") if profile else None
    if query and primary.searchable and org_id:
        try:
            items.extend(await _vector_matches(client, query, org_id, primary.search_course_ids))
        except Exception as e:
            logger.error(f"[context_resolver] Vector search failed for org {org_id}: {e}")

    if scope.user_id and profile:
        items.append(_profile_item(scope.user_id, profile))

    logger.debug(f"[context_resolver] Resolved {len(items)} items for {scope.type.value} scope")
    return items
