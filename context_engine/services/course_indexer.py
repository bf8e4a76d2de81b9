"""Organization course embedding indexer.

Turns a course's module/lesson hierarchy into chunked, tenant-tagged rows in
the unified embeddings table. Rows are never patched: every reindex replaces
the whole set for the course, and unpublishing deletes it.

Key invariants:
1. ``org_id`` is set on every row and equals the organization that owns the course
2. A reindex never leaves two generations of rows for the same course
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from supabase import Client

from context_engine.core.chunking import chunk_text
from context_engine.core.config import get_settings
from context_engine.core.embeddings import embed_text
from context_engine.core.logging import get_logger
from context_engine.core.schemas_indexing import DeleteResult, EmbeddingResult, RegenerateResult
from context_engine.db.course_embeddings import (
    ORG_COURSE_SOURCE,
    delete_org_course_embeddings,
    has_org_course_embeddings,
    replace_org_course_embeddings,
)
from context_engine.db.courses import get_course_with_hierarchy, list_published_course_ids

logger = get_logger(__name__)

COURSE_NOT_FOUND = "Course not found"


@dataclass
class ContentBlock:
    """One embeddable text unit owned by a course, module or lesson."""

    source_id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Text builders
# =============================================================================


def build_course_overview_text(course: dict[str, Any]) -> str:
    parts = [f"Course: {course.get('title')}"]
    if course.get("category"):
        parts.append(f"Category: {course['category']}")
    if course.get("author"):
        parts.append(f"Instructor: {course['author']}")
    if course.get("description"):
        parts.append(f"\nCourse Description:\n{course['description']}")
    return "\n".join(parts)


def build_module_text(course_title: str, module: dict[str, Any]) -> str:
    parts = [f"Course: {course_title}", f"Module: {module.get('title')}"]
    if module.get("description"):
        parts.append(f"\nModule Description:\n{module['description']}")
    return "\n".join(parts)


def build_lesson_text(course_title: str, module_title: str, lesson: dict[str, Any]) -> str:
    parts = [
        f"Course: {course_title}",
        f"Module: {module_title}",
        f"Lesson: {lesson.get('title')}",
    ]
    if lesson.get("description"):
        parts.append(f"\nLesson Description:\n{lesson['description']}")
    if lesson.get("transcript"):
        parts.append(f"\nLesson Content:\n{lesson['transcript']}")
    return "\n".join(parts)


def build_content_blocks(course: dict[str, Any]) -> list[ContentBlock]:
    """Build the overview, module and lesson blocks for a course, skipping empty ones."""
    course_title = course.get("title") or ""
    blocks = [
        ContentBlock(
            source_id=f"course-{course['id']}",
            text=build_course_overview_text(course),
            metadata={
                "type": "course_overview",
                "course_title": course_title,
                "category": course.get("category"),
                "author": course.get("author"),
            },
        )
    ]

    for module in course.get("modules") or []:
        module_title = module.get("title") or ""
        blocks.append(
            ContentBlock(
                source_id=f"module-{module['id']}",
                text=build_module_text(course_title, module),
                metadata={
                    "type": "module",
                    "course_title": course_title,
                    "module_title": module_title,
                    "module_order": module.get("order"),
                },
            )
        )

        for lesson in module.get("lessons") or []:
            blocks.append(
                ContentBlock(
                    source_id=f"lesson-{lesson['id']}",
                    text=build_lesson_text(course_title, module_title, lesson),
                    metadata={
                        "type": "lesson",
                        "course_title": course_title,
                        "module_title": module_title,
                        "lesson_title": lesson.get("title"),
                        "lesson_order": lesson.get("order"),
                        "has_transcript": bool(lesson.get("transcript")),
                    },
                )
            )

    return [block for block in blocks if block.text.strip()]


def split_block(text: str) -> list[str]:
    """Chunk a block only when it exceeds the chunking threshold."""
    settings = get_settings()
    if len(text) > settings.CHUNK_THRESHOLD:
        return chunk_text(text, settings.CHUNK_SIZE, settings.CHUNK_OVERLAP)
    return [text]


# =============================================================================
# Embedding
# =============================================================================


async def _embed_block(block: ContentBlock, course_id: int | str, org_id: str) -> list[dict[str, Any]]:
    """Embed every chunk of a block concurrently, dropping chunks that fail."""
    chunks = split_block(block.text)
    vectors = await asyncio.gather(*(embed_text(chunk) for chunk in chunks))

    rows = []
    for index, (chunk, vector) in enumerate(zip(chunks, vectors, strict=True)):
        if not vector:
            logger.warning(
                f"[course_indexer] Skipping chunk {index + 1}/{len(chunks)} of {block.source_id}: "
                "embedding failed"
            )
            continue

        rows.append(
            {
                "user_id": None,
                "collection_id": None,
                "course_id": course_id,
                "org_id": org_id,
                "source_type": ORG_COURSE_SOURCE,
                "source_id": block.source_id,
                "content": chunk,
                "embedding": vector,
                "metadata": {
                    **block.metadata,
                    "chunk_index": index,
                    "total_chunks": len(chunks),
                },
            }
        )

    return rows


async def reindex_course(client: Client, course_id: int | str, org_id: str) -> EmbeddingResult:
    """
    Regenerate every org embedding for a course.

    Chunks from all content units are embedded concurrently. Chunks whose
    embedding fails are skipped and only reduce the count. The new rows
    replace the old ones in a single transaction.

    Args:
        client: Supabase client
        course_id: Course to index
        org_id: Organization that owns the course

    Returns:
        EmbeddingResult; ``success`` is False only when the course cannot be
        fetched or the replacement cannot be written

    Raises:
        ValueError: If org_id is empty
    """
    if not org_id:
        raise ValueError("org_id is required for org course embeddings")

    logger.info(f"[course_indexer] Reindexing course {course_id} in org {org_id}")

    error: str | None = None
    try:
        course = get_course_with_hierarchy(client, course_id)
    except Exception as e:
        logger.error(f"[course_indexer] Error fetching course {course_id}: {e}")
        course = None
        error = str(e)

    if not course:
        # The index must not outlive the course it describes
        cleared = delete_course_embeddings(client, course_id)
        logger.warning(
            f"[course_indexer] Course {course_id} unavailable, cleared {cleared.deleted_count} embeddings"
        )
        return EmbeddingResult(success=False, embedding_count=0, error=error or COURSE_NOT_FOUND)

    blocks = build_content_blocks(course)
    block_rows = await asyncio.gather(*(_embed_block(block, course_id, org_id) for block in blocks))
    rows = [row for rows_for_block in block_rows for row in rows_for_block]

    try:
        inserted = replace_org_course_embeddings(client, course_id, org_id, rows)
    except Exception as e:
        logger.error(f"[course_indexer] Failed to store embeddings for course {course_id}: {e}")
        return EmbeddingResult(success=False, embedding_count=0, error=str(e))

    logger.info(
        f"[course_indexer] Created {inserted} embeddings for course {course_id}",
        extra={"course_id": course_id, "org_id": org_id},
    )
    return EmbeddingResult(success=True, embedding_count=inserted)


def delete_course_embeddings(client: Client, course_id: int | str) -> DeleteResult:
    """Delete every org embedding for a course (used on unpublish)."""
    try:
        deleted = delete_org_course_embeddings(client, course_id)
    except Exception as e:
        logger.error(f"[course_indexer] Error deleting embeddings for course {course_id}: {e}")
        return DeleteResult(success=False, deleted_count=0, error=str(e))

    logger.info(f"[course_indexer] Deleted {deleted} embeddings for course {course_id}")
    return DeleteResult(success=True, deleted_count=deleted)


def has_course_embeddings(client: Client, course_id: int | str) -> bool:
    """Check if a course has been indexed. Lookup errors read as False."""
    try:
        return has_org_course_embeddings(client, course_id)
    except Exception as e:
        logger.error(f"[course_indexer] Error checking embeddings for course {course_id}: {e}")
        return False


async def regenerate_all(client: Client, org_id: str) -> RegenerateResult:
    """Reindex every published course in an organization, one course at a time."""
    try:
        course_ids = list_published_course_ids(client, org_id)
    except Exception as e:
        logger.error(f"[course_indexer] Error listing courses for org {org_id}: {e}")
        return RegenerateResult(success=False, errors=[str(e)])

    total_embeddings = 0
    errors: list[str] = []

    for course_id in course_ids:
        result = await reindex_course(client, course_id, org_id)
        if result.success:
            total_embeddings += result.embedding_count
        else:
            errors.append(f"Course {course_id}: {result.error}")

    logger.info(
        f"[course_indexer] Regenerated {len(course_ids)} courses, "
        f"{total_embeddings} embeddings, {len(errors)} errors",
        extra={"org_id": org_id},
    )

    return RegenerateResult(
        success=not errors,
        courses_processed=len(course_ids),
        total_embeddings=total_embeddings,
        errors=errors,
    )
