"""Per-agent persona configuration."""

from typing import Any

from supabase import Client


def get_agent_prompt(client: Client, agent_type: str) -> dict[str, Any] | None:
    """Get the stored system instruction and model for an agent type."""
    response = (
        client.table("ai_system_prompts")
        .select("system_instruction, model")
        .eq("agent_type", agent_type)
        .limit(1)
        .execute()
    )
    return response.data[0] if response.data else None
