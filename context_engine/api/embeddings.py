"""Org course embedding endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from context_engine.core.logging import get_logger
from context_engine.core.schemas_indexing import DeleteResult, EmbeddingResult, RegenerateResult
from context_engine.db.supabase_client import get_supabase
from context_engine.services.course_indexer import (
    COURSE_NOT_FOUND,
    delete_course_embeddings,
    has_course_embeddings,
    regenerate_all,
    reindex_course,
)

logger = get_logger(__name__)

router = APIRouter()


@router.post("/courses/{course_id}/embeddings", response_model=EmbeddingResult)
async def reindex_course_embeddings(
    course_id: int,
    org_id: str = Query(..., min_length=1, description="Organization that owns the course"),
    client: Client = Depends(get_supabase),
) -> EmbeddingResult:
    """Regenerate every embedding for a course (called on publish or edit)."""
    result = await reindex_course(client, course_id, org_id)

    if not result.success and result.error == COURSE_NOT_FOUND:
        raise HTTPException(status_code=404, detail=COURSE_NOT_FOUND)

    return result


@router.delete("/courses/{course_id}/embeddings", response_model=DeleteResult)
async def delete_embeddings(
    course_id: int,
    client: Client = Depends(get_supabase),
) -> DeleteResult:
    """Remove every embedding for a course (called on unpublish)."""
    result = delete_course_embeddings(client, course_id)

    if not result.success:
        raise HTTPException(status_code=500, detail="Failed to delete course embeddings")

    return result


@router.get("/courses/{course_id}/embeddings/status")
async def embeddings_status(
    course_id: int,
    client: Client = Depends(get_supabase),
) -> dict[str, Any]:
    """Report whether a course has been indexed."""
    return {"course_id": course_id, "has_embeddings": has_course_embeddings(client, course_id)}


@router.post("/orgs/{org_id}/embeddings/regenerate", response_model=RegenerateResult)
async def regenerate_org_embeddings(
    org_id: str,
    client: Client = Depends(get_supabase),
) -> RegenerateResult:
    """Reindex every published course in an organization."""
    logger.info(f"Regenerating embeddings for org {org_id}", extra={"org_id": org_id})
    return await regenerate_all(client, org_id)
