"""Rule-based membership for dynamic employee groups.

Supported rule types (``employee_groups.dynamic_type``):

- ``recent_logins``: activity within ``criteria.days``
- ``no_logins``: no activity within ``criteria.days``
- ``top_learners``: score over ``time_spent``, ``courses_completed``, ``credits_earned``
- ``most_talkative``: score over ``conversation_count``, ``message_count``
- ``most_active``: score over ``streaks``, ``time_in_course``, ``courses_completed``,
  ``collection_utilization``

Scored rules normalise each metric to 0-100 against the org maximum,
average the metrics and keep members at or above ``criteria.threshold``.
"""

from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from supabase import Client

from context_engine.core.logging import get_logger
from context_engine.db.collections import count_user_collection_items
from context_engine.db.groups import get_group, mark_group_computed
from context_engine.db.learning_activity import (
    list_conversation_messages,
    list_conversations,
    list_credit_entries,
    list_progress,
    list_streaks,
)
from context_engine.db.profiles import list_org_member_ids

logger = get_logger(__name__)

DEFAULT_WINDOW_DAYS = 30
DEFAULT_THRESHOLD = 50


def _cutoff(now: datetime, days: int) -> str:
    return (now - timedelta(days=days)).isoformat()


def _active_user_ids(client: Client, user_ids: list[str], since: str) -> set[str]:
    active = {row["user_id"] for row in list_progress(client, user_ids, since=since)}
    active |= {row["user_id"] for row in list_conversations(client, user_ids, since=since)}
    return active


def _score_members(user_ids: list[str], metric_values: list[dict[str, float]]) -> dict[str, float]:
    """Average of per-metric scores, each normalised to the best member."""
    totals = dict.fromkeys(user_ids, 0.0)
    if not metric_values:
        return totals

    for values in metric_values:
        best = max([*values.values(), 1])
        for user_id in user_ids:
            totals[user_id] += values.get(user_id, 0) / best * 100

    return {user_id: total / len(metric_values) for user_id, total in totals.items()}


def _recent_logins(client: Client, user_ids: list[str], criteria: dict, now: datetime) -> list[str]:
    active = _active_user_ids(client, user_ids, _cutoff(now, criteria.get("days", DEFAULT_WINDOW_DAYS)))
    return [user_id for user_id in user_ids if user_id in active]


def _no_logins(client: Client, user_ids: list[str], criteria: dict, now: datetime) -> list[str]:
    active = _active_user_ids(client, user_ids, _cutoff(now, criteria.get("days", DEFAULT_WINDOW_DAYS)))
    return [user_id for user_id in user_ids if user_id not in active]


def _top_learners(client: Client, user_ids: list[str], criteria: dict, now: datetime) -> list[str]:
    since = _cutoff(now, criteria.get("period_days", DEFAULT_WINDOW_DAYS))
    metrics = criteria.get("metrics") or ["time_spent", "courses_completed", "credits_earned"]
    metric_values: list[dict[str, float]] = []

    if "time_spent" in metrics or "courses_completed" in metrics:
        progress = list_progress(client, user_ids, since=since)
        if "time_spent" in metrics:
            seconds: Counter[str] = Counter()
            for row in progress:
                seconds[row["user_id"]] += row.get("view_time_seconds") or 0
            metric_values.append(dict(seconds))
        if "courses_completed" in metrics:
            metric_values.append(dict(Counter(row["user_id"] for row in progress if row.get("is_completed"))))

    if "credits_earned" in metrics:
        credits: Counter[str] = Counter()
        for row in list_credit_entries(client, user_ids, since=since):
            credits[row["user_id"]] += row.get("amount") or 0
        metric_values.append(dict(credits))

    threshold = criteria.get("threshold", DEFAULT_THRESHOLD)
    scores = _score_members(user_ids, metric_values)
    return [user_id for user_id in user_ids if scores[user_id] >= threshold]


def _most_talkative(client: Client, user_ids: list[str], criteria: dict, now: datetime) -> list[str]:
    since = _cutoff(now, criteria.get("period_days", DEFAULT_WINDOW_DAYS))
    metrics = criteria.get("metrics") or ["conversation_count", "message_count"]
    conversations = list_conversations(client, user_ids, since=since)
    metric_values: list[dict[str, float]] = []

    if "conversation_count" in metrics:
        metric_values.append(dict(Counter(row["user_id"] for row in conversations)))

    if "message_count" in metrics:
        owner = {row["id"]: row["user_id"] for row in conversations}
        messages = list_conversation_messages(client, list(owner), since=since)
        metric_values.append(dict(Counter(owner[row["conversation_id"]] for row in messages)))

    threshold = criteria.get("threshold", DEFAULT_THRESHOLD)
    scores = _score_members(user_ids, metric_values)
    return [user_id for user_id in user_ids if scores[user_id] >= threshold]


MOST_ACTIVE_METRICS = ["streaks", "time_in_course", "courses_completed", "collection_utilization"]


def _most_active(client: Client, user_ids: list[str], criteria: dict, now: datetime) -> list[str]:
    since = _cutoff(now, criteria.get("period_days", DEFAULT_WINDOW_DAYS))
    metrics = criteria.get("metrics") or MOST_ACTIVE_METRICS
    metric_values: list[dict[str, float]] = []

    if "streaks" in metrics:
        best_streak: dict[str, float] = {}
        for row in list_streaks(client, user_ids, since=since):
            streak = row.get("current_streak") or 0
            best_streak[row["user_id"]] = max(best_streak.get(row["user_id"], 0), streak)
        metric_values.append(best_streak)

    if "time_in_course" in metrics or "courses_completed" in metrics:
        progress = list_progress(client, user_ids, since=since)
        if "time_in_course" in metrics:
            seconds: Counter[str] = Counter()
            for row in progress:
                seconds[row["user_id"]] += row.get("view_time_seconds") or 0
            metric_values.append(dict(seconds))
        if "courses_completed" in metrics:
            metric_values.append(dict(Counter(row["user_id"] for row in progress if row.get("is_completed"))))

    if "collection_utilization" in metrics:
        metric_values.append(count_user_collection_items(client, user_ids))

    threshold = criteria.get("threshold", DEFAULT_THRESHOLD)
    scores = _score_members(user_ids, metric_values)
    return [user_id for user_id in user_ids if scores[user_id] >= threshold]


_RULE_EVALUATORS: dict[str, Callable[[Client, list[str], dict, datetime], list[str]]] = {
    "recent_logins": _recent_logins,
    "no_logins": _no_logins,
    "top_learners": _top_learners,
    "most_talkative": _most_talkative,
    "most_active": _most_active,
}


def compute_dynamic_group_members(
    client: Client, group_id: str, now: datetime | None = None
) -> list[str]:
    """
    Evaluate a dynamic group's rule against its organization's members.

    Returns:
        Member user ids; empty for unknown groups, static groups or unknown rule types
    """
    group: dict[str, Any] | None = get_group(client, group_id)
    if not group or not group.get("is_dynamic"):
        logger.warning(f"[dynamic_groups] Group {group_id} is missing or not dynamic")
        return []

    evaluator = _RULE_EVALUATORS.get(group.get("dynamic_type") or "")
    if evaluator is None:
        logger.error(f"[dynamic_groups] Unknown dynamic group type: {group.get('dynamic_type')}")
        return []

    user_ids = list_org_member_ids(client, group["org_id"])
    if not user_ids:
        return []

    members = evaluator(client, user_ids, group.get("criteria") or {}, now or datetime.now(timezone.utc))

    try:
        mark_group_computed(client, group_id)
    except Exception as e:
        logger.warning(f"[dynamic_groups] Failed to stamp last_computed_at for {group_id}: {e}")

    return members
