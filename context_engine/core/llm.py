"""Completion provider client.

Completions go through an OpenAI-compatible router so agent personas can
name any model id (``google/gemini-2.0-flash-001``, ``anthropic/...``)
without code changes.
"""

from openai import AsyncOpenAI

from context_engine.core.config import get_settings
from context_engine.core.logging import get_logger
from context_engine.core.schemas_context import ChatTurn

logger = get_logger(__name__)


class CompletionError(Exception):
    """Raised when the completion provider cannot produce a response."""


def _get_client() -> AsyncOpenAI:
    """Get a completion client pointed at the configured router."""
    settings = get_settings()
    if not settings.OPENROUTER_API_KEY:
        raise CompletionError("Missing OPENROUTER_API_KEY environment variable")

    return AsyncOpenAI(
        api_key=settings.OPENROUTER_API_KEY,
        base_url=settings.OPENROUTER_BASE_URL,
    )


def build_messages(prompt: str, history: list[ChatTurn] | None = None) -> list[dict[str, str]]:
    """
    Map conversation history onto the provider's message shape.

    ``model`` turns become ``assistant`` messages; the current prompt is
    appended as the final user turn.
    """
    messages = [
        {
            "role": "assistant" if turn.role == "model" else "user",
            "content": turn.parts,
        }
        for turn in history or []
    ]
    messages.append({"role": "user", "content": prompt})
    return messages


async def complete(model: str, messages: list[dict[str, str]]) -> str:
    """
    Run a chat completion.

    Args:
        model: Opaque provider model id
        messages: ``[{role, content}]`` messages, last one being the user turn

    Returns:
        Response text (empty string when the provider returns no content)

    Raises:
        CompletionError: On missing credentials, transport or provider errors
    """
    client = _get_client()

    try:
        response = await client.chat.completions.create(model=model, messages=messages)
    except Exception as e:
        logger.error(f"Completion request failed for model {model}: {e}")
        raise CompletionError(f"Completion request failed for model {model}: {e}") from e

    if not response.choices:
        raise CompletionError(f"Completion for model {model} returned no choices")

    return response.choices[0].message.content or ""
