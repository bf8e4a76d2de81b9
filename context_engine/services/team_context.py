"""Team learning analytics rendered as context for the analytics agent.

Aggregates per-member learning metrics for an organization or one of its
groups and renders a deterministic plain-text report.
"""

import math
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from supabase import Client

from context_engine.core.config import get_settings
from context_engine.core.logging import get_logger
from context_engine.core.schemas_team import TeamMember, TeamSummary
from context_engine.db.groups import get_group, list_group_member_ids
from context_engine.db.learning_activity import list_conversations, list_credit_entries, list_progress
from context_engine.db.profiles import get_profile, list_org_member_ids, list_profiles
from context_engine.services.dynamic_groups import compute_dynamic_group_members

logger = get_logger(__name__)

ALL_MEMBERS_SCOPES = frozenset({"all", "all-users"})
ADMIN_ROLES = frozenset({"admin", "org_admin"})

MemberEvaluator = Callable[[Client, str], list[str]]


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# Member resolution and aggregation
# =============================================================================


def resolve_member_ids(
    client: Client,
    org_id: str,
    group_id: str | None = None,
    evaluator: MemberEvaluator = compute_dynamic_group_members,
) -> tuple[list[str], str | None]:
    """
    Resolve the member set for a team report.

    Returns:
        ``(member_ids, group_name)``; group_name is None for the whole organization
    """
    if not group_id or group_id in ALL_MEMBERS_SCOPES:
        return list_org_member_ids(client, org_id), None

    group = get_group(client, group_id)
    group_name = group.get("name") if group else None

    if group and group.get("is_dynamic"):
        return evaluator(client, group_id), group_name

    return list_group_member_ids(client, group_id), group_name


def build_team_members(client: Client, member_ids: list[str]) -> list[TeamMember]:
    """Aggregate progress, conversations and credits per member."""
    profiles = list_profiles(client, member_ids)
    progress = list_progress(client, member_ids)
    conversations = list_conversations(client, member_ids)
    credits = list_credit_entries(client, member_ids)

    metrics: dict[str, dict[str, Any]] = {
        member_id: {"seconds": 0, "completed": 0, "conversations": 0, "credits": 0, "last": None}
        for member_id in member_ids
    }

    for row in progress:
        entry = metrics.get(row["user_id"])
        if entry is None:
            continue
        entry["seconds"] += row.get("view_time_seconds") or 0
        if row.get("is_completed"):
            entry["completed"] += 1
        accessed = _parse_timestamp(row.get("last_accessed"))
        if accessed and (entry["last"] is None or accessed > entry["last"]):
            entry["last"] = accessed

    for row in conversations:
        entry = metrics.get(row["user_id"])
        if entry is not None:
            entry["conversations"] += 1

    for row in credits:
        entry = metrics.get(row["user_id"])
        if entry is not None:
            entry["credits"] += row.get("amount") or 0

    members = []
    for profile in profiles:
        entry = metrics.get(profile["id"]) or {
            "seconds": 0, "completed": 0, "conversations": 0, "credits": 0, "last": None
        }
        extra = profile.get("data") if isinstance(profile.get("data"), dict) else {}
        members.append(
            TeamMember(
                id=profile["id"],
                full_name=profile.get("full_name") or "Unknown",
                email=profile.get("email"),
                role=profile.get("role") or "user",
                role_title=extra.get("job_title") or "Team Member",
                membership_status=profile.get("membership_status") or "active",
                courses_completed=entry["completed"],
                total_time_spent_minutes=round(entry["seconds"] / 60),
                credits_earned=entry["credits"],
                conversations_count=entry["conversations"],
                last_activity=entry["last"],
            )
        )

    return members


# =============================================================================
# Summary statistics
# =============================================================================


def _is_active(member: TeamMember, active_cutoff: datetime) -> bool:
    return member.last_activity is not None and member.last_activity >= active_cutoff


def compute_team_summary(members: list[TeamMember], now: datetime | None = None) -> TeamSummary:
    """Averages, active count, top performers and members needing attention."""
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    active_cutoff = now - timedelta(days=settings.ACTIVE_WINDOW_DAYS)

    total = len(members)
    total_courses = sum(m.courses_completed for m in members)
    total_minutes = sum(m.total_time_spent_minutes for m in members)
    total_credits = sum(m.credits_earned for m in members)
    total_conversations = sum(m.conversations_count for m in members)

    ranked = sorted(members, key=lambda m: m.performance_score, reverse=True)
    top_count = max(1, math.ceil(total * 0.2))
    top_performers = [
        m for m in ranked[:top_count] if m.courses_completed > 0 or m.total_time_spent_minutes > 0
    ]

    needs_attention = [
        m
        for m in members
        if (m.courses_completed == 0 and m.total_time_spent_minutes < 30)
        or not _is_active(m, active_cutoff)
    ]

    return TeamSummary(
        total_members=total,
        avg_courses_completed=round(total_courses / total, 1) if total else 0,
        avg_time_spent_minutes=round(total_minutes / total) if total else 0,
        avg_credits_earned=round(total_credits / total, 1) if total else 0,
        avg_conversations=round(total_conversations / total, 1) if total else 0,
        total_time_spent_minutes=total_minutes,
        active_members=[m for m in members if _is_active(m, active_cutoff)],
        top_performers=top_performers,
        needs_attention=needs_attention,
    )


def engagement_status(member: TeamMember, now: datetime) -> str:
    """Label a member by recency and volume of learning activity."""
    settings = get_settings()
    if member.last_activity is None:
        return "Not Started"

    if member.last_activity >= now - timedelta(days=settings.ACTIVE_WINDOW_DAYS):
        if member.courses_completed >= 3 or member.total_time_spent_minutes >= 300:
            return "Highly Engaged"
        return "Active"

    if member.last_activity >= now - timedelta(days=settings.DECLINING_WINDOW_DAYS):
        return "Declining"

    return "Inactive"


# =============================================================================
# Rendering
# =============================================================================


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, remainder = divmod(minutes, 60)
    if remainder == 0:
        return f"{hours}h"
    return f"{hours}h {remainder}m"


def format_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def format_team_context(
    members: list[TeamMember],
    group_name: str | None = None,
    now: datetime | None = None,
) -> str:
    """Render the team report. Output depends only on its inputs."""
    if not members:
        return f'No team members found in group "{group_name}".' if group_name else "No team members found."

    now = now or datetime.now(timezone.utc)
    summary = compute_team_summary(members, now)
    active_cutoff = now - timedelta(days=get_settings().ACTIVE_WINDOW_DAYS)
    active_pct = len(summary.active_members) / summary.total_members * 100

    lines = [
        f"=== Team Analytics: {group_name or 'All Organization Members'} ===",
        "",
        "SUMMARY STATISTICS:",
        f"- Total Team Members: {summary.total_members}",
        f"- Active Members (last {get_settings().ACTIVE_WINDOW_DAYS} days): "
        f"{len(summary.active_members)} ({active_pct:.0f}%)",
        f"- Average Courses Completed: {summary.avg_courses_completed:.1f}",
        f"- Average Learning Time: {format_duration(summary.avg_time_spent_minutes)}",
        f"- Average Credits Earned: {summary.avg_credits_earned:.1f}",
        f"- Average AI Conversations: {summary.avg_conversations:.1f}",
        f"- Total Team Learning Time: {format_duration(summary.total_time_spent_minutes)}",
        "",
    ]

    if summary.top_performers:
        lines.append("TOP PERFORMERS:")
        for rank, member in enumerate(summary.top_performers, start=1):
            lines.append(f"{rank}. {member.full_name} ({member.role_title or member.role})")
            lines.append(f"   - Courses Completed: {member.courses_completed}")
            lines.append(f"   - Learning Time: {format_duration(member.total_time_spent_minutes)}")
            lines.append(f"   - Credits: {member.credits_earned}")
        lines.append("")

    if summary.needs_attention:
        lines.append("MEMBERS WHO MAY NEED SUPPORT:")
        for rank, member in enumerate(summary.needs_attention[:5], start=1):
            reason = "Low engagement" if _is_active(member, active_cutoff) else "No recent activity"
            lines.append(f"{rank}. {member.full_name} - {reason}")
            if member.last_activity:
                lines.append(f"   Last active: {format_date(member.last_activity)}")
        if len(summary.needs_attention) > 5:
            lines.append(
                f"   ... and {len(summary.needs_attention) - 5} more members with low engagement"
            )
        lines.append("")

    lines.append("ALL TEAM MEMBERS:")
    for member in members:
        status = engagement_status(member, now)
        lines.append(f"- {member.full_name} ({member.role_title or member.role}) [{status}]")
        lines.append(
            f"  Courses: {member.courses_completed} | "
            f"Time: {format_duration(member.total_time_spent_minutes)} | "
            f"Credits: {member.credits_earned} | "
            f"Conversations: {member.conversations_count}"
        )
        if member.last_activity:
            lines.append(f"  Last Activity: {format_date(member.last_activity)}")

    return "\n".join(lines)


# =============================================================================
# Entry points
# =============================================================================


def build_team_context(
    client: Client,
    org_id: str,
    group_id: str | None = None,
    now: datetime | None = None,
    evaluator: MemberEvaluator = compute_dynamic_group_members,
) -> str:
    """
    Build the team analytics report for an organization or one of its groups.

    Args:
        client: Supabase client
        org_id: Organization id
        group_id: Group id, or None / ``"all"`` for every member of the organization
        now: Reference time for recency rules
        evaluator: Membership evaluator for dynamic groups

    Returns:
        Formatted report text
    """
    member_ids, group_name = resolve_member_ids(client, org_id, group_id, evaluator)

    if not member_ids:
        if group_name:
            return f'No team members found in group "{group_name}".'
        return "No team members found in this organization."

    members = build_team_members(client, member_ids)
    logger.debug(f"[team_context] Aggregated {len(members)} members for org {org_id}")
    return format_team_context(members, group_name, now)


def get_team_context_for_scope(
    client: Client,
    requester_id: str,
    scope_id: str | None,
    now: datetime | None = None,
) -> str | None:
    """
    Access-controlled wrapper around build_team_context.

    Returns None unless the requester is an organization or platform admin
    and, for a group scope, the group belongs to the requester's organization.
    """
    profile = get_profile(client, requester_id)
    if not profile or not profile.get("org_id"):
        return None

    is_admin = profile.get("role") in ADMIN_ROLES or profile.get("membership_status") == "org_admin"
    if not is_admin:
        logger.info(f"[team_context] Denied team context for non-admin {requester_id}")
        return None

    group_id = None if not scope_id or scope_id in ALL_MEMBERS_SCOPES else scope_id
    if group_id:
        group = get_group(client, group_id)
        if not group or group.get("org_id") != profile["org_id"]:
            logger.info(f"[team_context] Denied group {group_id} outside org {profile['org_id']}")
            return None

    return build_team_context(client, profile["org_id"], group_id, now)
