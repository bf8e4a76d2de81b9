"""Org course rows in the unified embeddings table.

Org course embeddings are tenant-scoped: every row carries the owning
organization's ``org_id`` and vector search always filters on it.
"""

from typing import Any

from supabase import Client

from context_engine.core.logging import get_logger

logger = get_logger(__name__)

EMBEDDINGS_TABLE = "unified_embeddings"
ORG_COURSE_SOURCE = "org_course"


def delete_org_course_embeddings(client: Client, course_id: int | str) -> int:
    """
    Delete every org course embedding for a course, at any chunk granularity.

    Returns:
        Number of rows deleted
    """
    response = (
        client.table(EMBEDDINGS_TABLE)
        .delete()
        .eq("course_id", course_id)
        .eq("source_type", ORG_COURSE_SOURCE)
        .execute()
    )
    return len(response.data or [])


def replace_org_course_embeddings(
    client: Client,
    course_id: int | str,
    org_id: str,
    rows: list[dict[str, Any]],
) -> int:
    """
    Atomically replace a course's org embeddings.

    Runs ``replace_org_course_embeddings`` which takes a per-course advisory
    lock, deletes the existing rows and inserts ``rows`` in one transaction.

    Returns:
        Number of rows inserted
    """
    response = client.rpc(
        "replace_org_course_embeddings",
        {"p_course_id": course_id, "p_org_id": org_id, "p_rows": rows},
    ).execute()

    data = response.data
    if isinstance(data, int):
        return data
    if isinstance(data, list):
        return len(data)
    return len(rows)


def has_org_course_embeddings(client: Client, course_id: int | str) -> bool:
    """Check whether any org embeddings exist for a course."""
    response = (
        client.table(EMBEDDINGS_TABLE)
        .select("id", count="exact")
        .eq("course_id", course_id)
        .eq("source_type", ORG_COURSE_SOURCE)
        .limit(1)
        .execute()
    )
    return (response.count or 0) > 0


def match_org_course_embeddings(
    client: Client,
    query_embedding: list[float],
    org_id: str,
    course_ids: list[int] | None = None,
    match_threshold: float = 0.7,
    match_count: int = 5,
) -> list[dict[str, Any]]:
    """
    Vector search over org course chunks, restricted to one tenant.

    Args:
        query_embedding: Query vector
        org_id: Tenant whose chunks may be returned (required)
        course_ids: Optional course filter; None searches all of the org's courses
        match_threshold: Minimum cosine similarity
        match_count: Max rows

    Returns:
        Rows with id, course_id, source_id, content, metadata, similarity
    """
    response = client.rpc(
        "match_org_course_embeddings",
        {
            "query_embedding": query_embedding,
            "filter_org_id": org_id,
            "filter_course_ids": course_ids,
            "match_threshold": match_threshold,
            "match_count": match_count,
        },
    ).execute()
    return response.data or []
