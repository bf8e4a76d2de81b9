"""Content assignment queries, one per authority tier."""

from typing import Any

from supabase import Client

ASSIGNMENTS_TABLE = "content_assignments"


def list_user_assignments(client: Client, user_id: str) -> list[dict[str, Any]]:
    """Assignments made directly to a user."""
    response = (
        client.table(ASSIGNMENTS_TABLE)
        .select("*")
        .eq("assignee_type", "user")
        .eq("assignee_id", user_id)
        .execute()
    )
    return response.data or []


def list_group_assignments(client: Client, group_ids: list[str]) -> list[dict[str, Any]]:
    """Assignments made to any of the given groups."""
    if not group_ids:
        return []
    response = (
        client.table(ASSIGNMENTS_TABLE)
        .select("*")
        .eq("assignee_type", "group")
        .in_("assignee_id", group_ids)
        .execute()
    )
    return response.data or []


def list_org_assignments(client: Client, org_id: str) -> list[dict[str, Any]]:
    """Organization-wide assignments."""
    response = (
        client.table(ASSIGNMENTS_TABLE)
        .select("*")
        .eq("assignee_type", "org")
        .eq("org_id", org_id)
        .execute()
    )
    return response.data or []


def list_direct_assignments(
    client: Client, assignee_type: str, assignee_id: str
) -> list[dict[str, Any]]:
    """Assignments made to one specific user or group, newest first."""
    response = (
        client.table(ASSIGNMENTS_TABLE)
        .select("*")
        .eq("assignee_type", assignee_type)
        .eq("assignee_id", assignee_id)
        .order("created_at", desc=True)
        .execute()
    )
    return response.data or []
