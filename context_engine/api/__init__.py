"""API router for v1 endpoints."""

from fastapi import APIRouter

from context_engine.api import agents, assignments, embeddings, team

router = APIRouter()

# Agent personas answering scoped questions
router.include_router(agents.router, prefix="/agents", tags=["agents"])

# Org course embedding index maintenance
router.include_router(embeddings.router, tags=["embeddings"])

# Effective content assignments
router.include_router(assignments.router, tags=["assignments"])

# Team analytics for admins
router.include_router(team.router, tags=["team"])
