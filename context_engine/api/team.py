"""Team analytics endpoint."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from context_engine.db.supabase_client import get_supabase
from context_engine.services.team_context import get_team_context_for_scope

router = APIRouter()


@router.get("/team-context")
async def team_context(
    requester_id: str = Query(..., description="Admin requesting the report"),
    scope_id: str | None = Query(None, description="Group id, or 'all' for the whole organization"),
    client: Client = Depends(get_supabase),
) -> dict[str, Any]:
    """Return the team analytics report, or 403 when the requester may not see it."""
    context = get_team_context_for_scope(client, requester_id, scope_id)
    if context is None:
        raise HTTPException(status_code=403, detail="Team context not available for this requester")
    return {"context": context}
