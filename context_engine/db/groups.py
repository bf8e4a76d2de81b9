"""Employee group definitions and static memberships."""

from datetime import datetime, timezone
from typing import Any

from supabase import Client


def get_group(client: Client, group_id: str) -> dict[str, Any] | None:
    """Get a group definition, including its dynamic rule if any."""
    response = (
        client.table("employee_groups")
        .select("id, name, org_id, is_dynamic, dynamic_type, criteria")
        .eq("id", group_id)
        .limit(1)
        .execute()
    )
    return response.data[0] if response.data else None


def list_group_member_ids(client: Client, group_id: str) -> list[str]:
    """List user ids from a static group's membership table."""
    response = (
        client.table("employee_group_members")
        .select("user_id")
        .eq("group_id", group_id)
        .execute()
    )
    return [row["user_id"] for row in response.data or []]


def list_user_group_ids(client: Client, user_id: str) -> list[str]:
    """List ids of the static groups a user belongs to."""
    response = (
        client.table("employee_group_members")
        .select("group_id")
        .eq("user_id", user_id)
        .execute()
    )
    return [row["group_id"] for row in response.data or []]


def mark_group_computed(client: Client, group_id: str) -> None:
    """Stamp when a dynamic group's membership was last evaluated."""
    client.table("employee_groups").update(
        {"last_computed_at": datetime.now(timezone.utc).isoformat()}
    ).eq("id", group_id).execute()
