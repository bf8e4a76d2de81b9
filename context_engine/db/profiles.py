"""Database operations for user profiles and their stored insights."""

from typing import Any

from supabase import Client


def get_profile(client: Client, user_id: str) -> dict[str, Any] | None:
    """Get a profile by user id."""
    response = (
        client.table("profiles")
        .select("id, full_name, role, org_id, membership_status, ai_insights")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    return response.data[0] if response.data else None


def get_user_insights(client: Client, user_id: str) -> list[str]:
    """Get the insight list stored on a user's profile."""
    response = (
        client.table("profiles")
        .select("ai_insights")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        return []
    insights = response.data[0].get("ai_insights")
    return list(insights) if isinstance(insights, list) else []


def save_user_insights(client: Client, user_id: str, insights: list[str]) -> None:
    """Overwrite the insight list on a user's profile."""
    client.table("profiles").update({"ai_insights": insights}).eq("id", user_id).execute()


def list_org_member_ids(client: Client, org_id: str) -> list[str]:
    """List ids of every profile in an organization."""
    response = client.table("profiles").select("id").eq("org_id", org_id).execute()
    return [row["id"] for row in response.data or []]


def list_profiles(client: Client, user_ids: list[str]) -> list[dict[str, Any]]:
    """Fetch roster fields for a set of profiles."""
    if not user_ids:
        return []
    response = (
        client.table("profiles")
        .select("id, full_name, email, role, membership_status, created_at, data")
        .in_("id", user_ids)
        .execute()
    )
    return response.data or []
