"""Tests for team analytics aggregation, rendering and access control."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from context_engine.core.schemas_team import TeamMember
from context_engine.services.team_context import (
    build_team_members,
    compute_team_summary,
    engagement_status,
    format_duration,
    format_team_context,
    get_team_context_for_scope,
    resolve_member_ids,
)

MODULE = "context_engine.services.team_context"
NOW = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)


def _member(idx, completed=0, minutes=0, days_ago=None, **kwargs):
    return TeamMember(
        id=f"u{idx}",
        full_name=f"Member {idx}",
        courses_completed=completed,
        total_time_spent_minutes=minutes,
        last_activity=NOW - timedelta(days=days_ago) if days_ago is not None else None,
        **kwargs,
    )


class TestSummary:
    def test_ten_members_three_active(self):
        members = [_member(i, completed=1, minutes=60, days_ago=2) for i in range(3)]
        members += [_member(i) for i in range(3, 10)]

        summary = compute_team_summary(members, NOW)

        assert summary.total_members == 10
        assert len(summary.active_members) == 3
        assert summary.avg_courses_completed == 0.3
        assert summary.avg_time_spent_minutes == 18
        assert summary.total_time_spent_minutes == 180

    def test_top_performers_ranked_and_exclude_idle(self):
        members = [
            _member(1, completed=1, minutes=0, days_ago=1),
            _member(2, completed=3, minutes=30, days_ago=1),
            _member(3),
            _member(4),
            _member(5),
            _member(6),
        ]

        summary = compute_team_summary(members, NOW)

        # ceil(6 * 0.2) == 2
        assert [m.id for m in summary.top_performers] == ["u2", "u1"]

    def test_top_performers_empty_when_no_activity(self):
        summary = compute_team_summary([_member(1), _member(2)], NOW)
        assert summary.top_performers == []

    def test_needs_attention(self):
        members = [
            _member(1, completed=2, minutes=100, days_ago=1),
            _member(2, completed=0, minutes=10, days_ago=1),
            _member(3, completed=5, minutes=500, days_ago=45),
        ]

        summary = compute_team_summary(members, NOW)

        assert [m.id for m in summary.needs_attention] == ["u2", "u3"]

    def test_empty_team(self):
        summary = compute_team_summary([], NOW)
        assert summary.total_members == 0
        assert summary.avg_courses_completed == 0


class TestEngagementStatus:
    @pytest.mark.parametrize(
        "member,expected",
        [
            (_member(1), "Not Started"),
            (_member(1, completed=3, days_ago=1), "Highly Engaged"),
            (_member(1, minutes=300, days_ago=1), "Highly Engaged"),
            (_member(1, completed=1, days_ago=1), "Active"),
            (_member(1, completed=9, days_ago=45), "Declining"),
            (_member(1, completed=9, days_ago=90), "Inactive"),
        ],
    )
    def test_labels(self, member, expected):
        assert engagement_status(member, NOW) == expected


def test_format_duration():
    assert format_duration(45) == "45 min"
    assert format_duration(120) == "2h"
    assert format_duration(135) == "2h 15m"


class TestFormatTeamContext:
    def test_sections_present(self):
        members = [
            _member(1, completed=4, minutes=400, days_ago=3, role_title="HR Manager"),
            _member(2, days_ago=70),
        ]

        report = format_team_context(members, "People Ops", NOW)

        assert report.startswith("=== Team Analytics: People Ops ===")
        assert "- Total Team Members: 2" in report
        assert "- Active Members (last 30 days): 1 (50%)" in report
        assert "TOP PERFORMERS:\n1. Member 1 (HR Manager)" in report
        assert "MEMBERS WHO MAY NEED SUPPORT:\n1. Member 2 - No recent activity" in report
        assert "- Member 1 (HR Manager) [Highly Engaged]" in report
        assert "  Last Activity: Jan 28, 2026" in report

    def test_support_list_capped_at_five(self):
        members = [_member(i) for i in range(8)]

        report = format_team_context(members, None, NOW)

        assert "=== Team Analytics: All Organization Members ===" in report
        assert "6. Member 5" not in report
        assert "... and 3 more members with low engagement" in report

    def test_deterministic(self):
        members = [_member(1, completed=1, days_ago=1), _member(2)]
        assert format_team_context(members, "G", NOW) == format_team_context(members, "G", NOW)


class TestBuildTeamMembers:
    def test_aggregates_activity(self):
        profiles = [
            {"id": "u1", "full_name": "Sam", "role": "user", "data": {"job_title": "Recruiter"}},
            {"id": "u2", "full_name": None, "role": None, "data": None},
        ]
        progress = [
            {"user_id": "u1", "view_time_seconds": 3000, "is_completed": True, "last_accessed": "2026-01-20T10:00:00Z"},
            {"user_id": "u1", "view_time_seconds": 600, "is_completed": False, "last_accessed": "2026-01-25T10:00:00Z"},
        ]
        conversations = [{"id": "c1", "user_id": "u1"}, {"id": "c2", "user_id": "u2"}]
        credits = [{"user_id": "u1", "amount": 1.5}]

        with patch(f"{MODULE}.list_profiles", return_value=profiles), \
             patch(f"{MODULE}.list_progress", return_value=progress), \
             patch(f"{MODULE}.list_conversations", return_value=conversations), \
             patch(f"{MODULE}.list_credit_entries", return_value=credits):
            members = build_team_members(MagicMock(), ["u1", "u2"])

        sam, unknown = members
        assert sam.role_title == "Recruiter"
        assert sam.courses_completed == 1
        assert sam.total_time_spent_minutes == 60
        assert sam.credits_earned == 1.5
        assert sam.conversations_count == 1
        assert sam.last_activity == datetime(2026, 1, 25, 10, 0, tzinfo=timezone.utc)
        assert unknown.full_name == "Unknown"
        assert unknown.role_title == "Team Member"
        assert unknown.last_activity is None


class TestResolveMemberIds:
    def test_all_scope_uses_org_members(self):
        with patch(f"{MODULE}.list_org_member_ids", return_value=["u1", "u2"]):
            assert resolve_member_ids(MagicMock(), "org-a", "all-users") == (["u1", "u2"], None)

    def test_dynamic_group_uses_evaluator(self):
        evaluator = MagicMock(return_value=["u3"])
        group = {"id": "g1", "name": "Top Learners", "org_id": "org-a", "is_dynamic": True}

        with patch(f"{MODULE}.get_group", return_value=group):
            result = resolve_member_ids(MagicMock(), "org-a", "g1", evaluator)

        assert result == (["u3"], "Top Learners")

    def test_static_group_uses_membership(self):
        group = {"id": "g1", "name": "Recruiting", "org_id": "org-a", "is_dynamic": False}

        with patch(f"{MODULE}.get_group", return_value=group), \
             patch(f"{MODULE}.list_group_member_ids", return_value=["u1"]):
            assert resolve_member_ids(MagicMock(), "org-a", "g1") == (["u1"], "Recruiting")


class TestAccessControl:
    def test_non_admin_denied(self):
        with patch(f"{MODULE}.get_profile", return_value={"id": "u1", "role": "user", "org_id": "org-a"}), \
             patch(f"{MODULE}.build_team_context") as mock_build:
            assert get_team_context_for_scope(MagicMock(), "u1", "all") is None

        mock_build.assert_not_called()

    def test_group_in_other_org_denied(self):
        admin = {"id": "a1", "role": "admin", "org_id": "org-a"}
        with patch(f"{MODULE}.get_profile", return_value=admin), \
             patch(f"{MODULE}.get_group", return_value={"id": "g9", "org_id": "org-b"}), \
             patch(f"{MODULE}.build_team_context") as mock_build:
            assert get_team_context_for_scope(MagicMock(), "a1", "g9") is None

        mock_build.assert_not_called()

    def test_org_admin_membership_allowed(self):
        admin = {"id": "a1", "role": "user", "membership_status": "org_admin", "org_id": "org-a"}
        with patch(f"{MODULE}.get_profile", return_value=admin), \
             patch(f"{MODULE}.build_team_context", return_value="REPORT") as mock_build:
            assert get_team_context_for_scope(MagicMock(), "a1", "all") == "REPORT"

        assert mock_build.call_args[0][1:3] == ("org-a", None)

    def test_empty_org_message(self):
        admin = {"id": "a1", "role": "admin", "org_id": "org-a"}
        with patch(f"{MODULE}.get_profile", return_value=admin), \
             patch(f"{MODULE}.list_org_member_ids", return_value=[]):
            report = get_team_context_for_scope(MagicMock(), "a1", None)

        assert report == "No team members found in this organization."
