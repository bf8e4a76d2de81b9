"""Tests for insight marker extraction."""

from context_engine.core.insight_tags import extract_insight, merge_insight


class TestExtractInsight:
    def test_no_tag_returns_text_unchanged(self):
        text = "Here is your answer.\n\n\n\nWith spacing."
        assert extract_insight(text) == (text, None)

    def test_tag_stripped_and_payload_returned(self):
        text = "Great question!\n\n<INSIGHT> Prefers video content </INSIGHT>\n\nHere is more."
        cleaned, insight = extract_insight(text)

        assert insight == "Prefers video content"
        assert "INSIGHT" not in cleaned
        assert cleaned == "Great question!\n\nHere is more."

    def test_case_insensitive_with_attributes(self):
        cleaned, insight = extract_insight('Sure. <insight category="goal">Wants SHRM-CP</insight>')

        assert insight == "Wants SHRM-CP"
        assert cleaned == "Sure."

    def test_only_first_insight_returned_but_all_stripped(self):
        text = "A <INSIGHT>first</INSIGHT> B <INSIGHT>second</INSIGHT> C"
        cleaned, insight = extract_insight(text)

        assert insight == "first"
        assert "second" not in cleaned

    def test_unclosed_tag_left_untouched(self):
        text = "Answer <INSIGHT>never closed"
        assert extract_insight(text) == (text, None)

    def test_empty_payload_yields_no_insight(self):
        cleaned, insight = extract_insight("Answer <INSIGHT>  </INSIGHT>")

        assert insight is None
        assert cleaned == "Answer"


class TestMergeInsight:
    def test_appends_new_insight(self):
        assert merge_insight(["a"], "b") == ["a", "b"]

    def test_duplicate_returns_none(self):
        assert merge_insight(["a", "b"], "b") is None

    def test_does_not_mutate_existing(self):
        existing = ["a"]
        merge_insight(existing, "b")
        assert existing == ["a"]
