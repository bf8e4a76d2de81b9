"""Keyword ranking of help topics against a user question.

Help topics are short, curated articles, so they are matched on query
terms rather than embeddings. Orientation topics get a small boost and
are always included.
"""

import re
from typing import Any

ANCHOR_SLUGS = ("help-collection", "getting-started")
ANCHOR_BOOSTS = {"help-collection": 2, "getting-started": 1}

MAX_RANKED_TOPICS = 5
MAX_SELECTED_TOPICS = 6
MAX_TOPIC_CHARS = 1800

_TERM_SPLIT = re.compile(r"[^a-z0-9]+")


def query_terms(query: str | None) -> list[str]:
    """Unique lowercase terms of at least three characters, in query order."""
    terms = _TERM_SPLIT.split((query or "").lower())
    return list(dict.fromkeys(term for term in terms if len(term) >= 3))


def score_help_topic(topic: dict[str, Any], terms: list[str]) -> int:
    """Weighted term hits: slug 5, title 4, summary 2, any text 1."""
    slug = (topic.get("slug") or "").lower()
    title = (topic.get("title") or "").lower()
    summary = (topic.get("summary") or "").lower()
    haystack = f"{title}\n{summary}\n{(topic.get('content_text') or '').lower()}"

    score = 0
    for term in terms:
        if term in slug:
            score += 5
        if term in title:
            score += 4
        if term in summary:
            score += 2
        if term in haystack:
            score += 1

    return score + ANCHOR_BOOSTS.get(topic.get("slug"), 0)


def select_help_topics(topics: list[dict[str, Any]], query: str | None) -> list[dict[str, Any]]:
    """
    Pick the help topics to include for a question.

    Topics are ranked by score, then display order. Up to five are taken;
    when the question has terms, topics that match none of them are
    skipped. Missing anchor topics are then put in front.

    Returns:
        At most six topics, anchors first
    """
    terms = query_terms(query)
    ranked = sorted(
        topics,
        key=lambda topic: (-score_help_topic(topic, terms), topic.get("display_order") or 0),
    )

    selected: list[dict[str, Any]] = []
    for topic in ranked:
        if len(selected) >= MAX_RANKED_TOPICS:
            break
        if terms and score_help_topic(topic, terms) <= 0:
            continue
        selected.append(topic)

    selected_slugs = {topic.get("slug") for topic in selected}
    for slug in ANCHOR_SLUGS:
        anchor = next((topic for topic in ranked if topic.get("slug") == slug), None)
        if anchor is not None and slug not in selected_slugs:
            selected.insert(0, anchor)
            selected_slugs.add(slug)

    return selected[:MAX_SELECTED_TOPICS]


def trim_topic_text(text: str | None) -> str:
    text = text or ""
    if len(text) > MAX_TOPIC_CHARS:
        return f"{text[:MAX_TOPIC_CHARS]}…"
    return text
