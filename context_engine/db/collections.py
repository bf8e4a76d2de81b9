"""Collection membership reads."""

from typing import Any

from supabase import Client


def list_collection_items(client: Client, collection_id: str) -> list[dict[str, Any]]:
    """List ``(item_type, item_id)`` pairs in a collection."""
    response = (
        client.table("collection_items")
        .select("item_type, item_id")
        .eq("collection_id", collection_id)
        .execute()
    )
    return response.data or []


def count_user_collection_items(client: Client, user_ids: list[str]) -> dict[str, int]:
    """Total items saved across each user's collections."""
    if not user_ids:
        return {}
    response = (
        client.table("user_collections")
        .select("id, user_id, collection_items(count)")
        .in_("user_id", user_ids)
        .execute()
    )

    totals: dict[str, int] = {}
    for row in response.data or []:
        # Embedded counts come back as [{"count": n}]
        counts = row.get("collection_items") or []
        item_count = sum(entry.get("count") or 0 for entry in counts)
        totals[row["user_id"]] = totals.get(row["user_id"], 0) + item_count
    return totals
