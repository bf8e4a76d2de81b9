"""Help topic reads for the built-in help collection."""

from typing import Any

from supabase import Client


def list_active_help_topics(client: Client) -> list[dict[str, Any]]:
    """Active help topics in display order."""
    response = (
        client.table("help_topics")
        .select("slug, title, summary, content_text, display_order")
        .eq("is_active", True)
        .order("display_order")
        .execute()
    )
    return response.data or []
