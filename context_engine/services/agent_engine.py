"""Agent response engine.

Combines a persona's instruction with resolved scope context and the
conversation history, calls the completion model, captures any insight the
model surfaced about the user, and writes an audit log entry. Only the
completion call may fail the request; insight capture and logging are
best-effort.
"""

import logging

from supabase import Client

from context_engine.core.config import get_settings
from context_engine.core.insight_tags import extract_insight, merge_insight
from context_engine.core.llm import build_messages, complete
from context_engine.core.logging import get_logger, log_with_context
from context_engine.core.schemas_context import (
    AgentConfig,
    AgentResponse,
    ChatTurn,
    ContextItem,
    ContextScope,
)
from context_engine.db.agent_prompts import get_agent_prompt
from context_engine.db.ai_logs import insert_ai_log
from context_engine.db.profiles import get_user_insights, save_user_insights
from context_engine.services.context_resolver import resolve_context

logger = get_logger(__name__)


def get_agent_config(client: Client, agent_type: str) -> AgentConfig:
    """Look up a persona's instruction and model, falling back to defaults."""
    settings = get_settings()
    try:
        row = get_agent_prompt(client, agent_type) or {}
    except Exception as e:
        logger.warning(f"[agent_engine] Prompt lookup failed for {agent_type}, using defaults: {e}")
        row = {}

    return AgentConfig(
        system_instruction=row.get("system_instruction") or settings.DEFAULT_SYSTEM_INSTRUCTION,
        model=row.get("model") or settings.DEFAULT_AGENT_MODEL,
    )


def format_context(items: list[ContextItem]) -> str:
    return "\n\n".join(f"[{item.type.value}] {item.content}" for item in items)


def build_prompt(system_instruction: str, context: str, user_message: str) -> str:
    return (
        f"SYSTEM INSTRUCTION:\n{system_instruction}\n\n"
        f"CONTEXT:\n{context}\n\n"
        f"USER QUESTION:\n{user_message}"
    )


def save_insight(client: Client, user_id: str, insight: str) -> bool:
    """
    Append an insight to a user's profile unless already stored verbatim.

    Returns:
        True if the list changed. Failures are logged and return False.
    """
    try:
        updated = merge_insight(get_user_insights(client, user_id), insight)
        if updated is None:
            return False
        save_user_insights(client, user_id, updated)
    except Exception as e:
        logger.error(f"[agent_engine] Failed to save insight for user {user_id}: {e}")
        return False

    logger.info(f"[agent_engine] Saved new insight for user {user_id}")
    return True


def _log_interaction(
    client: Client,
    *,
    agent_type: str,
    scope: ContextScope,
    conversation_id: str | None,
    page_context: str | None,
    prompt: str,
    response: str,
    sources: list[ContextItem],
    model: str,
    insight: str | None,
) -> None:
    try:
        insert_ai_log(
            client,
            user_id=scope.user_id,
            conversation_id=conversation_id,
            agent_type=agent_type,
            page_context=page_context,
            prompt=prompt,
            response=response,
            metadata={
                "sources": [item.model_dump(mode="json") for item in sources],
                "model": model,
                "insight": insight,
                "estimated_tokens": len(response) // 4,
            },
        )
    except Exception as e:
        logger.error(f"[agent_engine] Failed to save AI log for {agent_type}: {e}")


async def respond(
    client: Client,
    agent_type: str,
    user_message: str,
    scope: ContextScope,
    history: list[ChatTurn] | None = None,
    conversation_id: str | None = None,
    page_context: str | None = None,
) -> AgentResponse:
    """
    Answer a user message as the given agent persona.

    Args:
        client: Supabase client
        agent_type: Persona identifier (key into ai_system_prompts)
        user_message: The user's question
        scope: What the agent is grounded in
        history: Prior turns, oldest first
        conversation_id: Conversation the exchange belongs to, for the audit log
        page_context: UI location, for the audit log

    Returns:
        AgentResponse with the cleaned text and the context items used

    Raises:
        CompletionError: If the completion provider fails
    """
    config = get_agent_config(client, agent_type)

    context_items = await resolve_context(client, scope, query=user_message)
    prompt = build_prompt(config.system_instruction, format_context(context_items), user_message)

    raw_response = await complete(config.model, build_messages(prompt, history))

    text, insight = extract_insight(raw_response)
    if insight and scope.user_id:
        save_insight(client, scope.user_id, insight)

    _log_interaction(
        client,
        agent_type=agent_type,
        scope=scope,
        conversation_id=conversation_id,
        page_context=page_context,
        prompt=prompt,
        response=text,
        sources=context_items,
        model=config.model,
        insight=insight,
    )

    log_with_context(
        logger,
        logging.INFO,
        f"[agent_engine] {agent_type} responded with {len(context_items)} context items",
        agent_type=agent_type,
        user_id=scope.user_id,
        model=config.model,
        insight_captured=bool(insight),
    )

    return AgentResponse(text=text, sources=context_items)
