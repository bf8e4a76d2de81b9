"""Course hierarchy reads: courses, modules, lessons, resources."""

from typing import Any

from supabase import Client

_COURSE_HIERARCHY_SELECT = """
    id,
    title,
    description,
    category,
    author,
    org_id,
    modules (
        id,
        title,
        description,
        order,
        lessons (
            id,
            title,
            description,
            transcript,
            order
        )
    )
"""


def _first(rows: list[dict[str, Any]] | None) -> dict[str, Any] | None:
    return rows[0] if rows else None


def _by_order(items: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return sorted(items or [], key=lambda item: item.get("order") or 0)


def get_course_with_hierarchy(client: Client, course_id: int | str) -> dict[str, Any] | None:
    """
    Fetch a course with its modules and their lessons, ordered by ``order``.

    Returns:
        Course dict with ``modules[].lessons[]``, or None if not found
    """
    response = (
        client.table("courses")
        .select(_COURSE_HIERARCHY_SELECT)
        .eq("id", course_id)
        .limit(1)
        .execute()
    )
    course = _first(response.data)
    if not course:
        return None

    modules = _by_order(course.get("modules"))
    for module in modules:
        module["lessons"] = _by_order(module.get("lessons"))
    course["modules"] = modules
    return course


def get_course_summary(client: Client, course_id: int | str) -> dict[str, Any] | None:
    """Fetch title, description and author for a course."""
    response = (
        client.table("courses")
        .select("id, title, description, author")
        .eq("id", course_id)
        .limit(1)
        .execute()
    )
    return _first(response.data)


def list_published_course_ids(client: Client, org_id: str) -> list[int]:
    """List ids of every published course owned by an organization."""
    response = (
        client.table("courses")
        .select("id")
        .eq("org_id", org_id)
        .eq("status", "published")
        .execute()
    )
    return [row["id"] for row in response.data or []]


def get_course_display(client: Client, course_id: str) -> dict[str, Any] | None:
    """Course projection used for assignment cards."""
    response = (
        client.table("courses")
        .select(
            "title, image_url, description, author, duration, category, rating, "
            "badges, shrm_pdcs, hrci_credits"
        )
        .eq("id", course_id)
        .limit(1)
        .execute()
    )
    return _first(response.data)


def get_module_display(client: Client, module_id: str) -> dict[str, Any] | None:
    """Module projection with its parent course."""
    response = (
        client.table("modules")
        .select("title, description, duration, courses(title, image_url, author)")
        .eq("id", module_id)
        .limit(1)
        .execute()
    )
    return _first(response.data)


def get_lesson_display(client: Client, lesson_id: str) -> dict[str, Any] | None:
    """Lesson projection with its parent module and course."""
    response = (
        client.table("lessons")
        .select("title, duration, type, modules(title, courses(title, image_url, author))")
        .eq("id", lesson_id)
        .limit(1)
        .execute()
    )
    return _first(response.data)


def get_resource_display(client: Client, resource_id: str) -> dict[str, Any] | None:
    """Resource projection with its parent course."""
    response = (
        client.table("resources")
        .select("title, type, size, courses(title, image_url)")
        .eq("id", resource_id)
        .limit(1)
        .execute()
    )
    return _first(response.data)
