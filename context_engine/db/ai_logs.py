"""Audit log of agent interactions."""

from typing import Any

from supabase import Client


def insert_ai_log(
    client: Client,
    *,
    user_id: str | None,
    conversation_id: str | None,
    agent_type: str,
    page_context: str | None,
    prompt: str,
    response: str,
    metadata: dict[str, Any],
) -> None:
    """Insert one ai_logs row."""
    client.table("ai_logs").insert(
        {
            "user_id": user_id,
            "conversation_id": conversation_id,
            "agent_type": agent_type,
            "page_context": page_context or "Unknown Context",
            "prompt": prompt,
            "response": response,
            "metadata": metadata,
        }
    ).execute()
