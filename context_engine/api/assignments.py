"""Content assignment endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from context_engine.core.logging import get_logger
from context_engine.core.schemas_assignments import ContentAssignment
from context_engine.db.supabase_client import get_supabase
from context_engine.services.assignment_resolver import resolve_for_user

logger = get_logger(__name__)

router = APIRouter()


@router.get("/users/{user_id}/assignments", response_model=list[ContentAssignment])
async def list_user_assignments(
    user_id: str,
    client: Client = Depends(get_supabase),
) -> list[ContentAssignment]:
    """List the effective, enriched assignments for a user."""
    try:
        return resolve_for_user(client, user_id)
    except Exception as e:
        logger.error(f"Failed to resolve assignments for user {user_id}: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch assignments") from e
