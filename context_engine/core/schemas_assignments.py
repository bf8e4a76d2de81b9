"""Pydantic schemas for content assignments."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AssigneeType(str, Enum):
    """Authority tier an assignment was made at."""
    USER = "user"
    GROUP = "group"
    ORG = "org"

    @property
    def priority(self) -> int:
        """Higher tiers override lower ones for the same content."""
        return {"user": 3, "group": 2, "org": 1}[self.value]


class ContentType(str, Enum):
    """Kinds of assignable content."""
    COURSE = "course"
    MODULE = "module"
    LESSON = "lesson"
    RESOURCE = "resource"


class AssignmentType(str, Enum):
    """How strongly content is assigned."""
    REQUIRED = "required"
    RECOMMENDED = "recommended"


class ContentDetails(BaseModel):
    """Denormalized display data for an assignment."""

    title: str = "Unknown Content"
    thumbnail_url: str | None = None
    description: str | None = None
    author: str | None = None
    duration: str | None = None
    category: str | None = None
    rating: float | None = None
    badges: list[str] | None = None
    shrm_pdcs: float | None = None
    hrci_credits: float | None = None


class ContentAssignment(BaseModel):
    """A content_assignments row, optionally enriched."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    org_id: str
    assignee_type: AssigneeType
    assignee_id: str
    # Types without display support are kept as raw strings
    content_type: ContentType | str = Field(union_mode="left_to_right")
    content_id: str
    assignment_type: AssignmentType | None = None
    assigned_by: str | None = None
    created_at: str | None = None
    content_details: ContentDetails | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ContentAssignment":
        """Build from a database row, stringifying ids."""
        data = dict(row)
        for key in ("id", "org_id", "assignee_id", "content_id", "assigned_by"):
            if data.get(key) is not None:
                data[key] = str(data[key])
        return cls.model_validate(data)

    @property
    def content_key(self) -> tuple[ContentType | str, str]:
        """Deduplication key."""
        return (self.content_type, self.content_id)

    @property
    def content_type_name(self) -> str:
        if isinstance(self.content_type, ContentType):
            return self.content_type.value
        return self.content_type
