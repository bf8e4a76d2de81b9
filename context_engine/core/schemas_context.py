"""Pydantic schemas for context scopes, context items, and agent responses."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ScopeType(str, Enum):
    """What an agent is grounded in for a single request."""
    COURSE = "COURSE"
    COLLECTION = "COLLECTION"
    PLATFORM = "PLATFORM"
    USER = "USER"
    TEAM = "TEAM"


class ContextItemType(str, Enum):
    """Tag prefixed to each context item when building prompts."""
    COURSE_META = "COURSE_META"
    LESSON = "LESSON"
    COURSE = "COURSE"
    PLATFORM = "PLATFORM"
    RAG_CONTENT = "RAG_CONTENT"
    TEAM_ANALYTICS = "TEAM_ANALYTICS"
    HELP_INDEX = "HELP_INDEX"
    HELP_TOPIC = "HELP_TOPIC"
    USER_PROFILE = "USER_PROFILE"


class ContextScope(BaseModel):
    """Scope descriptor, built per request."""

    # Course ids arrive as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    type: ScopeType
    id: str | None = Field(default=None, description="Course, collection or group id")
    user_id: str | None = Field(default=None, description="Requesting user, adds profile context")


class ContextItem(BaseModel):
    """One unit of grounding text, also returned to callers as a citation."""

    id: str
    type: ContextItemType
    content: str
    similarity: float | None = None


class ChatTurn(BaseModel):
    """A prior conversation turn."""

    role: Literal["user", "model"]
    parts: str


class AgentConfig(BaseModel):
    """Resolved persona configuration."""

    system_instruction: str
    model: str


class AgentResponse(BaseModel):
    """Cleaned agent answer plus the context items it was grounded on."""

    text: str
    sources: list[ContextItem] = Field(default_factory=list)


class AgentRequest(BaseModel):
    """Request body for the agent respond endpoint."""

    message: str = Field(..., min_length=1)
    scope: ContextScope
    history: list[ChatTurn] = Field(default_factory=list)
    conversation_id: str | None = None
    page_context: str | None = None
    user_id: str | None = Field(default=None, description="Requesting user when the scope omits it")
