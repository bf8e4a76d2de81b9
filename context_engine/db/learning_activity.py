"""Learning activity reads used for team analytics and dynamic groups."""

from typing import Any

from supabase import Client


def list_progress(
    client: Client, user_ids: list[str], since: str | None = None
) -> list[dict[str, Any]]:
    """Lesson progress rows for a set of users, optionally since an ISO timestamp."""
    if not user_ids:
        return []
    query = (
        client.table("user_progress")
        .select("user_id, view_time_seconds, is_completed, last_accessed")
        .in_("user_id", user_ids)
    )
    if since:
        query = query.gte("last_accessed", since)
    return query.execute().data or []


def list_conversations(
    client: Client, user_ids: list[str], since: str | None = None
) -> list[dict[str, Any]]:
    """Conversation rows for a set of users, optionally updated since a timestamp."""
    if not user_ids:
        return []
    query = client.table("conversations").select("id, user_id, updated_at").in_("user_id", user_ids)
    if since:
        query = query.gte("updated_at", since)
    return query.execute().data or []


def list_conversation_messages(
    client: Client, conversation_ids: list[str], since: str | None = None
) -> list[dict[str, Any]]:
    """Message rows for a set of conversations."""
    if not conversation_ids:
        return []
    query = (
        client.table("conversation_messages")
        .select("conversation_id, created_at")
        .in_("conversation_id", conversation_ids)
    )
    if since:
        query = query.gte("created_at", since)
    return query.execute().data or []


def list_credit_entries(
    client: Client, user_ids: list[str], since: str | None = None
) -> list[dict[str, Any]]:
    """Credit ledger rows for a set of users."""
    if not user_ids:
        return []
    query = client.table("user_credits_ledger").select("user_id, amount").in_("user_id", user_ids)
    if since:
        query = query.gte("created_at", since)
    return query.execute().data or []


def list_streaks(client: Client, user_ids: list[str], since: str | None = None) -> list[dict[str, Any]]:
    """Daily streak rows for a set of users, optionally since an activity date."""
    if not user_ids:
        return []
    query = client.table("user_streaks").select("user_id, current_streak").in_("user_id", user_ids)
    if since:
        query = query.gte("activity_date", since)
    return query.execute().data or []
