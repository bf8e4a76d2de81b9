"""Configuration management for the learning context engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # Sandboxed environments may not expose .env; rely on the process environment
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # OpenAI configuration (required, used for embeddings)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Completion provider (OpenAI-compatible router, arbitrary model ids)
    OPENROUTER_API_KEY: str | None = Field(default=None, description="OpenRouter API key")
    OPENROUTER_BASE_URL: str = Field(
        default="https://openrouter.ai/api/v1", description="OpenRouter API base URL"
    )

    # Environment
    CONTEXT_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")

    # Chunking for org course indexing
    CHUNK_SIZE: int = Field(default=1000, description="Max characters per indexed chunk")
    CHUNK_OVERLAP: int = Field(default=200, description="Characters shared by adjacent chunks")
    CHUNK_THRESHOLD: int = Field(
        default=1200, description="Blocks longer than this are chunked before embedding"
    )

    # Agent defaults (used when ai_system_prompts has no row for an agent type)
    DEFAULT_AGENT_MODEL: str = Field(
        default="google/gemini-2.0-flash-001", description="Fallback completion model"
    )
    DEFAULT_SYSTEM_INSTRUCTION: str = Field(
        default="You are a helpful AI assistant.", description="Fallback system instruction"
    )

    # Context assembly
    LESSON_PREVIEW_CHARS: int = Field(
        default=500, description="Transcript preview length for LESSON context items"
    )
    RAG_MATCH_THRESHOLD: float = Field(default=0.7, description="Minimum cosine similarity")
    RAG_MATCH_COUNT: int = Field(default=5, description="Max RAG chunks per query")
    PLATFORM_DESCRIPTION: str = Field(
        default=(
            "This is a learning platform for HR professionals to learn and earn credits. "
            "It features AI-powered courses and tools."
        ),
        description="Static descriptor emitted for PLATFORM scope",
    )

    # Team analytics windows
    ACTIVE_WINDOW_DAYS: int = Field(default=30, description="Days of recency counted as active")
    DECLINING_WINDOW_DAYS: int = Field(
        default=60, description="Days of recency counted as declining rather than inactive"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
