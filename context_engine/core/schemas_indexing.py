"""Result schemas for org course embedding operations."""

from pydantic import BaseModel, Field


class EmbeddingResult(BaseModel):
    """Outcome of reindexing one course."""

    success: bool
    embedding_count: int = 0
    error: str | None = None


class DeleteResult(BaseModel):
    """Outcome of deleting a course's embeddings."""

    success: bool
    deleted_count: int = 0
    error: str | None = None


class RegenerateResult(BaseModel):
    """Outcome of reindexing every published course in an organization."""

    success: bool
    courses_processed: int = 0
    total_embeddings: int = 0
    errors: list[str] = Field(default_factory=list)
