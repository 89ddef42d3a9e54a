"""
Tests for the fuzzy element locator.
"""

import pytest

from src.docgenius.errors import NotFoundError
from src.docgenius.locator import (
    ElementLocator, score_candidate, pick_best, is_large_font, find_title, drill_down_grid,
    is_grid_wrapper, extract_candidates
)
from src.docgenius.markup import ReportDocument, text_of


# =============================================================================
# Scoring
# =============================================================================

class TestScoring:
    """score_candidate works on plain strings"""

    def test_exact_title_beats_containing_title(self):
        exact = score_candidate("Present Value", "Present Value")
        containing = score_candidate("Present Value", "Present Value Calculation")
        assert exact > containing > 0

    def test_match_is_case_and_whitespace_insensitive(self):
        assert score_candidate("  present   VALUE ", "Present Value") == score_candidate("Present Value", "Present Value")

    def test_closer_length_scores_higher(self):
        near = score_candidate("cash", "Cash Flow")
        far = score_candidate("cash", "Cash Flow From Operating Activities")
        assert near > far

    def test_title_inside_search(self):
        assert score_candidate("the risk card please", "Risk") > 0

    def test_word_overlap(self):
        assert score_candidate("operating margin", "Margin Trends") > 0

    def test_short_words_overlap(self):
        assert score_candidate("Q1 revenue", "Q1 Results") == 100
        assert score_candidate("hr costs", "HR Overview") == 100

    def test_full_text_fallback(self):
        assert score_candidate("exposure", "Risk", full_text="Risk Exposure reduced") > 0

    def test_first_child_bonus(self):
        with_bonus = score_candidate("Risk", "Risk", first_child_text="Risk")
        assert with_bonus > score_candidate("Risk", "Risk")

    def test_no_match_scores_zero(self):
        assert score_candidate("inventory", "Cash Flow", full_text="Cash Flow up") == 0
        assert score_candidate("", "Cash Flow") == 0

    def test_pick_best_prefers_earlier_on_tie(self):
        assert pick_best([(5, "first"), (5, "second"), (3, "third")]) == (5, "first")

    def test_pick_best_ignores_non_positive(self):
        assert pick_best([(0, "a"), (-1, "b")]) is None


class TestFontSize:
    @pytest.mark.parametrize("value,expected", [
        ("2rem", True),
        ("2.5em", True),
        ("1.5rem", False),
        ("32px", True),
        ("31px", False),
        ("large", False),
        (None, False),
    ])
    def test_is_large_font(self, value, expected):
        assert is_large_font(value) is expected


# =============================================================================
# Locating cards
# =============================================================================

class TestElementLocator:
    """find_card and find_section against the sample report"""

    def test_exact_title_wins_over_longer_title(self, sample_report):
        document = ReportDocument(sample_report)
        located = ElementLocator().find_card(document, "Present Value")

        assert located.title == "Present Value"
        assert "card" in located.element.get("class")
        assert "Discounted worth" in text_of(located.element)

    def test_longer_title_is_reachable(self, sample_report):
        located = ElementLocator().find_card(ReportDocument(sample_report), "Present Value Calculation")
        assert located.title == "Present Value Calculation"

    def test_large_text_names_grid_child(self, sample_report):
        located = ElementLocator().find_card(ReportDocument(sample_report), "Cash Flow")

        assert located.title == "Cash Flow"
        assert "Operating cash" in text_of(located.element)
        assert "Exposure" not in text_of(located.element)

    def test_grid_wrapper_is_never_a_candidate(self, sample_report):
        candidates = extract_candidates(ReportDocument(sample_report))
        assert not any(is_grid_wrapper(candidate.element) for candidate in candidates)

    def test_missing_card_raises_not_found(self, sample_report):
        with pytest.raises(NotFoundError) as exc_info:
            ElementLocator().find_card(ReportDocument(sample_report), "Inventory Turnover")
        assert exc_info.value.error_type == "not_found"

    def test_custom_markers(self):
        html = '<div class="widget-box"><p>Headcount</p></div>'
        assert not ElementLocator().candidates(ReportDocument(html))

        located = ElementLocator(card_markers=("widget",)).find_card(ReportDocument(html), "Headcount")
        assert located.element.name == "div"

    def test_find_section_by_title(self, sample_report):
        located = ElementLocator().find_section(ReportDocument(sample_report), "key metrics")
        assert located.element.get("id") == "metrics"


class TestIconBeforeHeading:
    """cards whose first child is an icon or badge rather than the heading"""

    def test_grid_card_beats_its_section(self, icon_report):
        located = ElementLocator().find_card(ReportDocument(icon_report), "Cash Flow")

        assert located.element.name == "div"
        assert located.title_element.name == "h3"
        assert "Operating cash" in text_of(located.element)
        assert "Exposure reduced" not in text_of(located.element)

    def test_plain_card_beats_its_section(self, icon_report):
        located = ElementLocator().find_card(ReportDocument(icon_report), "Net Margin")

        assert "card" in located.element.get("class")
        assert located.title == "Net Margin"
        assert "Gross margin" not in text_of(located.element)

    def test_section_keeps_its_own_heading(self, icon_report):
        document = ReportDocument(icon_report)
        for section_id, heading in (("overview", "Overview"), ("margins", "Margins"), ("people", "People")):
            title, element = find_title(document.select(f"#{section_id}")[0])
            assert title == heading
            assert element.name == "h2"

    def test_bootstrap_card_is_the_outer_card(self, icon_report):
        located = ElementLocator().find_card(ReportDocument(icon_report), "Headcount")

        assert located.element.get("class") == ["card"]
        assert located.title == "Headcount"

    def test_wrapper_without_own_title_uses_nested_heading(self):
        html = '<div class="card"><div class="card-body"><h5>Headcount</h5></div></div>'
        title, element = find_title(ReportDocument(html).first("div"))
        assert title == "Headcount"
        assert element.name == "h5"


class TestTitleDetection:
    def test_large_text_beats_heading(self):
        html = '<div class="card"><h4>Caption</h4><div style="font-size: 40px">Revenue</div></div>'
        title, element = find_title(ReportDocument(html).first("div"))
        assert title == "Revenue"
        assert element.name == "div"

    def test_symbolic_large_text_is_skipped(self):
        html = '<div class="card"><div style="font-size: 3rem">📈📈📈</div><h3>Growth</h3></div>'
        title, _ = find_title(ReportDocument(html).first("div"))
        assert title == "Growth"

    def test_heading_priority(self):
        html = '<div class="card"><h2>Outer</h2><h3>Inner</h3></div>'
        title, element = find_title(ReportDocument(html).first("div"))
        assert element.name == "h3"

    def test_drill_down_grid(self, sample_report):
        document = ReportDocument(sample_report)
        grid = document.select("#metrics > div")[0]
        child = drill_down_grid(grid, "Risk")
        assert "Exposure reduced" in text_of(child)
        assert "Cash Flow" not in text_of(child)
