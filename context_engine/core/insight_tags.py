"""Extraction of ``<INSIGHT>`` markers from agent output.

Agents are instructed to wrap durable facts about the user in an
``<INSIGHT>...</INSIGHT>`` tag. Tags may carry attributes
(``<INSIGHT category="goal">``) and are matched case-insensitively.
"""

import re

_INSIGHT_TAG = re.compile(r"<INSIGHT(?:\s[^>]*)?>(.*?)</INSIGHT>", re.IGNORECASE | re.DOTALL)
_EXTRA_BLANK_LINES = re.compile(r"\n\s*\n\s*\n")


def extract_insight(response_text: str) -> tuple[str, str | None]:
    """
    Split an agent response into visible text and an optional insight.

    Only the first tag's payload is returned; every well-formed tag is
    removed from the visible text. An unclosed tag is not a marker and the
    text is returned unchanged.

    Returns:
        ``(cleaned_text, insight)`` where insight is None when absent or empty
    """
    match = _INSIGHT_TAG.search(response_text)
    if not match:
        return response_text, None

    insight = match.group(1).strip() or None

    cleaned = _INSIGHT_TAG.sub("", response_text)
    cleaned = _EXTRA_BLANK_LINES.sub("\n\n", cleaned).strip()

    return cleaned, insight


def merge_insight(existing: list[str], insight: str) -> list[str] | None:
    """
    Append an insight unless an identical string is already stored.

    Returns:
        The updated list, or None when nothing changed
    """
    if insight in existing:
        return None
    return [*existing, insight]
