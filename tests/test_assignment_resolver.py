"""Tests for tiered assignment resolution and enrichment."""

from unittest.mock import MagicMock, patch

import pytest

from context_engine.core.schemas_assignments import AssigneeType, AssignmentType, ContentAssignment

MODULE = "context_engine.services.assignment_resolver"


def _row(assignee_type, content_id="c1", content_type="course", assignment_type="recommended", **extra):
    return {
        "id": f"{assignee_type}-{content_id}",
        "org_id": "org-a",
        "assignee_type": assignee_type,
        "assignee_id": "someone",
        "content_type": content_type,
        "content_id": content_id,
        "assignment_type": assignment_type,
        **extra,
    }


def _assignment(assignee_type, **kwargs):
    return ContentAssignment.from_row(_row(assignee_type, **kwargs))


class TestDedupe:
    @pytest.mark.parametrize(
        "order",
        [("org", "group", "user"), ("user", "org", "group"), ("group", "user", "org")],
    )
    def test_user_tier_wins_regardless_of_order(self, order):
        from context_engine.services.assignment_resolver import dedupe_assignments

        result = dedupe_assignments([_assignment(tier) for tier in order])

        assert len(result) == 1
        assert result[0].assignee_type is AssigneeType.USER

    def test_group_beats_org(self):
        from context_engine.services.assignment_resolver import dedupe_assignments

        result = dedupe_assignments([_assignment("org"), _assignment("group")])

        assert result[0].assignee_type is AssigneeType.GROUP

    def test_same_content_different_type_kept_separately(self):
        from context_engine.services.assignment_resolver import dedupe_assignments

        result = dedupe_assignments(
            [_assignment("user", content_type="course"), _assignment("org", content_type="module")]
        )

        assert len(result) == 2

    def test_same_tier_required_beats_recommended(self):
        from context_engine.services.assignment_resolver import dedupe_assignments

        recommended = _assignment("group", assignment_type="recommended")
        required = _assignment("group", assignment_type="required")

        assert dedupe_assignments([recommended, required])[0].assignment_type is AssignmentType.REQUIRED
        assert dedupe_assignments([required, recommended])[0].assignment_type is AssignmentType.REQUIRED


class TestEnrichment:
    def test_course_details(self):
        from context_engine.services.assignment_resolver import enrich_assignment

        course = {
            "title": "Strategic HR",
            "image_url": "https://img/1.png",
            "description": "People strategy",
            "author": "Dana",
            "duration": "2h",
            "category": "Leadership",
            "rating": 4.5,
            "badges": ["SHRM"],
            "shrm_pdcs": 2,
            "hrci_credits": 1.5,
        }
        with patch(f"{MODULE}.get_course_display", return_value=course):
            enriched = enrich_assignment(MagicMock(), _assignment("user"))

        details = enriched.content_details
        assert details.title == "Strategic HR"
        assert details.thumbnail_url == "https://img/1.png"
        assert details.rating == 4.5
        assert details.badges == ["SHRM"]

    def test_missing_content_placeholder(self):
        from context_engine.services.assignment_resolver import enrich_assignment

        with patch(f"{MODULE}.get_course_display", return_value=None):
            enriched = enrich_assignment(MagicMock(), _assignment("user"))

        assert enriched.content_details.title == "Unknown Content"

    def test_fetch_error_placeholder(self):
        from context_engine.services.assignment_resolver import enrich_assignment

        with patch(f"{MODULE}.get_lesson_display", side_effect=Exception("db down")):
            enriched = enrich_assignment(MagicMock(), _assignment("user", content_type="lesson"))

        assert enriched.content_details.title == "Unknown Content"

    def test_module_fallbacks(self):
        from context_engine.services.assignment_resolver import enrich_assignment

        module = {"title": "Foundations", "description": "Module intro", "courses": None}
        with patch(f"{MODULE}.get_module_display", return_value=module):
            details = enrich_assignment(MagicMock(), _assignment("user", content_type="module")).content_details

        assert details.description == "Module intro"
        assert details.author == "EnhancedHR"
        assert details.category == "Module"

    def test_module_prefers_course_fields(self):
        from context_engine.services.assignment_resolver import enrich_assignment

        module = {
            "title": "Foundations",
            "description": "Module intro",
            "courses": {"title": "Strategic HR", "image_url": "https://img/1.png", "author": "Dana"},
        }
        with patch(f"{MODULE}.get_module_display", return_value=module):
            details = enrich_assignment(MagicMock(), _assignment("user", content_type="module")).content_details

        assert details.description == "Strategic HR"
        assert details.author == "Dana"
        assert details.thumbnail_url == "https://img/1.png"

    def test_lesson_breadcrumb(self):
        from context_engine.services.assignment_resolver import enrich_assignment

        lesson = {
            "title": "Intro",
            "type": "video",
            "duration": "5m",
            "modules": {"title": "Foundations", "courses": {"title": "Strategic HR", "author": "Dana"}},
        }
        with patch(f"{MODULE}.get_lesson_display", return_value=lesson):
            details = enrich_assignment(MagicMock(), _assignment("user", content_type="lesson")).content_details

        assert details.description == "Strategic HR → Foundations"
        assert details.category == "video"

    def test_resource_fallbacks(self):
        from context_engine.services.assignment_resolver import enrich_assignment

        with patch(f"{MODULE}.get_resource_display", return_value={"title": "Handbook", "courses": None}):
            details = enrich_assignment(MagicMock(), _assignment("user", content_type="resource")).content_details

        assert details.description == "Course Resource"
        assert details.author == "Resource"
        assert details.category == "Resource"


class TestResolveForUser:
    def test_combines_tiers_and_dedupes(self):
        from context_engine.services.assignment_resolver import resolve_for_user

        with patch(f"{MODULE}.get_profile", return_value={"id": "u1", "org_id": "org-a"}), \
             patch(f"{MODULE}.list_user_group_ids", return_value=["g1"]), \
             patch(f"{MODULE}.list_user_assignments", return_value=[_row("user", "c1")]), \
             patch(f"{MODULE}.list_group_assignments", return_value=[_row("group", "c1"), _row("group", "c2")]) as mock_group, \
             patch(f"{MODULE}.list_org_assignments", return_value=[_row("org", "c2"), _row("org", "c3")]), \
             patch(f"{MODULE}.get_course_display", return_value=None):
            result = resolve_for_user(MagicMock(), "u1")

        winners = {a.content_id: a.assignee_type for a in result}
        assert winners == {"c1": AssigneeType.USER, "c2": AssigneeType.GROUP, "c3": AssigneeType.ORG}
        assert all(a.content_details is not None for a in result)
        assert mock_group.call_args[0][1] == ["g1"]

    def test_user_without_org_gets_nothing(self):
        from context_engine.services.assignment_resolver import resolve_for_user

        with patch(f"{MODULE}.get_profile", return_value={"id": "u1", "org_id": None}), \
             patch(f"{MODULE}.list_user_assignments") as mock_user:
            assert resolve_for_user(MagicMock(), "u1") == []

        mock_user.assert_not_called()

    def test_unknown_type_and_null_assignment_type_kept_with_placeholder(self):
        from context_engine.services.assignment_resolver import resolve_for_user

        rows = [
            _row("user", "c1", assignment_type=None),
            _row("user", "c9", content_type="video"),
        ]
        with patch(f"{MODULE}.get_profile", return_value={"id": "u1", "org_id": "org-a"}), \
             patch(f"{MODULE}.list_user_group_ids", return_value=[]), \
             patch(f"{MODULE}.list_user_assignments", return_value=rows), \
             patch(f"{MODULE}.list_group_assignments", return_value=[]), \
             patch(f"{MODULE}.list_org_assignments", return_value=[]), \
             patch(f"{MODULE}.get_course_display", return_value=None):
            result = resolve_for_user(MagicMock(), "u1")

        assert [a.content_id for a in result] == ["c1", "c9"]
        assert all(a.content_details.title == "Unknown Content" for a in result)
        assert result[0].assignment_type is None
        assert result[1].content_type == "video"

    def test_rows_without_content_id_skipped(self):
        from context_engine.services.assignment_resolver import resolve_for_user

        missing_key = _row("user", None)
        with patch(f"{MODULE}.get_profile", return_value={"id": "u1", "org_id": "org-a"}), \
             patch(f"{MODULE}.list_user_group_ids", return_value=[]), \
             patch(f"{MODULE}.list_user_assignments", return_value=[missing_key, _row("user", "c1")]), \
             patch(f"{MODULE}.list_group_assignments", return_value=[]), \
             patch(f"{MODULE}.list_org_assignments", return_value=[]), \
             patch(f"{MODULE}.get_course_display", return_value=None):
            result = resolve_for_user(MagicMock(), "u1")

        assert [a.content_id for a in result] == ["c1"]


class TestDirectAssignments:
    def test_lists_and_enriches(self):
        from context_engine.services.assignment_resolver import get_direct_assignments

        rows = [_row("group", "c1"), _row("group", "c2")]
        with patch(f"{MODULE}.list_direct_assignments", return_value=rows) as mock_list, \
             patch(f"{MODULE}.get_course_display", return_value={"title": "Any"}):
            result = get_direct_assignments(MagicMock(), "group", "g1")

        assert [a.content_details.title for a in result] == ["Any", "Any"]
        assert mock_list.call_args[0][1:] == ("group", "g1")


def test_unknown_content_type_enriches_to_placeholder():
    from context_engine.services.assignment_resolver import enrich_assignment

    enriched = enrich_assignment(MagicMock(), _assignment("org", content_type="podcast"))

    assert enriched.content_details.title == "Unknown Content"
    assert enriched.content_type_name == "podcast"
