"""Agent response endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from context_engine.core.llm import CompletionError
from context_engine.core.logging import get_logger
from context_engine.core.schemas_context import AgentRequest, AgentResponse
from context_engine.db.supabase_client import get_supabase
from context_engine.services.agent_engine import respond

logger = get_logger(__name__)

router = APIRouter()


@router.post("/{agent_type}/respond", response_model=AgentResponse)
async def agent_respond(
    agent_type: str,
    request: AgentRequest,
    client: Client = Depends(get_supabase),
) -> AgentResponse:
    """
    Answer a message as the given agent persona.

    Args:
        agent_type: Persona identifier
        request: Message, scope, history and audit fields

    Returns:
        Cleaned answer text plus the context items used

    Raises:
        HTTPException 502: If the completion provider fails
    """
    scope = request.scope
    if request.user_id and not scope.user_id:
        scope = scope.model_copy(update={"user_id": request.user_id})

    try:
        return await respond(
            client,
            agent_type,
            request.message,
            scope,
            history=request.history,
            conversation_id=request.conversation_id,
            page_context=request.page_context,
        )
    except CompletionError as e:
        logger.error(f"Agent {agent_type} failed to respond: {e}", extra={"agent_type": agent_type})
        raise HTTPException(status_code=502, detail="Completion provider error") from e
