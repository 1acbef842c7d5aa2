"""
Test fuzzy ranking and match highlighting.
"""

import pytest

from toolstudio.core.tools.fuzzy_search import FuzzyRanker, highlight_matches
from toolstudio.core.tools.models import FieldMatch
from toolstudio.utils.config import SearchConfig


def item(tool_id, name, description="", tags=None):
    return {"id": tool_id, "name": name, "description": description, "tags": tags or []}


def ranked_ids(matches):
    return [match.item["id"] for match in matches]


@pytest.mark.unit
class TestFuzzyRanker:
    """Test FuzzyRanker scoring and ordering."""

    def setup_method(self):
        """Setup test fixtures."""
        self.ranker = FuzzyRanker()

    def test_subsequence_match_positions(self):
        matches = self.ranker.rank("clr", [item("color-picker", "Color Picker")])

        assert len(matches) == 1
        assert matches[0].score > 0
        name_match = matches[0].match_for("name")
        assert name_match.positions == (0, 2, 4)
        assert name_match.value == "Color Picker"

    def test_scattered_subsequence_matches(self):
        matches = self.ranker.rank("cpk", [item("color-picker", "Color Picker")])
        assert ranked_ids(matches) == ["color-picker"]

    def test_non_subsequence_excluded(self):
        items = [item("color-picker", "Color Picker", "Pick colors", ["hex"])]
        assert self.ranker.rank("xyz", items) == []
        assert self.ranker.rank("rlc", items) == []

    @pytest.mark.parametrize("query", ["", "   ", None, 42])
    def test_empty_or_invalid_query(self, query):
        assert self.ranker.rank(query, [item("calc", "Calculator")]) == []

    def test_odd_input_does_not_raise(self):
        items = [{"id": "odd", "name": None, "tags": None}, item("calc", "Calculator")]
        assert self.ranker.rank("[(*", items) == []
        assert ranked_ids(self.ranker.rank("calc", items)) == ["calc"]

    def test_shorter_field_ranks_higher(self):
        items = [item("calculator-pro", "Calculator Pro"), item("calc", "Calc")]
        assert ranked_ids(self.ranker.rank("calc", items)) == ["calc", "calculator-pro"]

    def test_consecutive_beats_scattered(self):
        items = [item("scattered", "cxoxl"), item("adjacent", "colxx")]
        assert ranked_ids(self.ranker.rank("col", items)) == ["adjacent", "scattered"]

    def test_word_boundary_bonus(self):
        items = [item("inner", "abigdog"), item("boundary", "big-dog")]
        assert ranked_ids(self.ranker.rank("dog", items)) == ["boundary", "inner"]

    def test_exact_case_bonus(self):
        items = [item("lower", "go"), item("upper", "Go")]
        matches = self.ranker.rank("Go", items)
        assert ranked_ids(matches) == ["upper", "lower"]
        assert matches[0].score > matches[1].score

    def test_name_outweighs_description(self):
        items = [
            item("editor", "Editor", description="Take notes"),
            item("notes", "Notes"),
        ]
        assert ranked_ids(self.ranker.rank("notes", items)) == ["notes", "editor"]

    def test_best_tag_is_reported(self):
        matches = self.ranker.rank("clock", [item("timer", "Timer", tags=["wall-clock-sync", "clock"])])

        tag_match = matches[0].match_for("tags")
        assert tag_match.value == "clock"
        assert tag_match.positions == (0, 1, 2, 3, 4)
        assert matches[0].match_for("name") is None

    def test_score_is_weighted_sum(self):
        config = SearchConfig(name_weight=2.0, tags_weight=1.0, description_weight=0.5)
        ranker = FuzzyRanker(config)
        match = ranker.rank("note", [item("notes", "Notes", "notes", ["notes"])])[0]

        expected = sum(
            weight * match.match_for(key).score
            for key, weight in (("name", 2.0), ("tags", 1.0), ("description", 0.5))
        )
        assert match.score == pytest.approx(expected, abs=1e-6)

    def test_tie_breaks_by_name_length_then_id(self):
        items = [
            item("b-long", "Zzzzzz", tags=["clock"]),
            item("b-short", "Zzzz", tags=["clock"]),
            item("a-short", "Zzzz", tags=["clock"]),
        ]
        assert ranked_ids(self.ranker.rank("clock", items)) == ["a-short", "b-short", "b-long"]

    def test_ranking_is_repeatable(self):
        items = [item("color-picker", "Color Picker"), item("calculator", "Calculator")]
        first = self.ranker.rank("c", items)
        second = self.ranker.rank("c", items)
        assert [(m.item["id"], m.score) for m in first] == [(m.item["id"], m.score) for m in second]

    def test_objects_with_attributes(self, tool_data):
        from toolstudio.core.models import Tool

        tool = Tool.model_validate(tool_data("color-picker", name="Color Picker"))
        matches = self.ranker.rank("picker", [tool])
        assert matches[0].item is tool


@pytest.mark.unit
class TestHighlighting:
    """Test match spans and highlight rendering."""

    def test_spans_group_consecutive_positions(self):
        field_match = FieldMatch(key="name", value="abcdefghi", positions=(0, 1, 2, 5, 7, 8), score=0.5)
        assert field_match.spans == [(0, 2), (5, 5), (7, 8)]

    def test_highlight_rich_markup(self):
        text = highlight_matches("Color Picker", [(0, 0), (2, 2), (4, 4)])
        assert text == (
            "[bold yellow]C[/bold yellow]o"
            "[bold yellow]l[/bold yellow]o"
            "[bold yellow]r[/bold yellow] Picker"
        )

    def test_highlight_custom_tags(self):
        assert highlight_matches("abc", [(1, 2)], "<b>", "</b>", escape_text=False) == "a<b>bc</b>"

    def test_highlight_without_spans(self):
        assert highlight_matches("plain", []) == "plain"

    def test_highlight_escapes_markup_in_text(self):
        text = highlight_matches("[x] tool", [(4, 7)])
        assert text == "\\[x] [bold yellow]tool[/bold yellow]"

    def test_highlight_from_ranker(self):
        ranker = FuzzyRanker()
        match = ranker.rank("pick", [item("color-picker", "Color Picker")])[0]
        name_match = match.match_for("name")
        rendered = highlight_matches(name_match.value, name_match.spans, "<", ">", escape_text=False)
        assert rendered == "Color <Pick>er"
