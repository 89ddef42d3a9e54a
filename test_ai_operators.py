"""
Tests for the generation-backed operators, with scripted generation output.
"""

import pytest

from conftest import FakeLLM, section_ids
from src.docgenius import ai_operators
from src.docgenius.errors import MalformedGenerationOutputError, InvalidArgumentError, NotFoundError
from src.docgenius.markup import ReportDocument, text_of, full_text_of


class TestCleanGeneratedMarkup:
    def test_strips_fences_and_prose(self):
        raw = "Sure, here it is:\n```html\n<div><p>Hi</p></div>\n```\nLet me know!"
        assert ai_operators.clean_generated_markup(raw) == "<div><p>Hi</p></div>"

    @pytest.mark.parametrize("raw", ["", "I cannot help with that.", "```\n```", "a > b"])
    def test_no_markup_is_malformed(self, raw):
        with pytest.raises(MalformedGenerationOutputError):
            ai_operators.clean_generated_markup(raw)

    def test_unwrap_single_section(self):
        assert ai_operators.unwrap_single("<section><p>x</p></section>", "section") == "<p>x</p>"
        assert ai_operators.unwrap_single("<p>x</p><p>y</p>", "section") == "<p>x</p><p>y</p>"


class TestAddSectionWithContent:
    def test_generated_section_is_inserted(self, sample_report):
        llm = FakeLLM(responses=["```html\n<section><div class='card'><p>Generated body</p></div></section>\n```"])
        outcome = ai_operators.add_section_with_content(sample_report, "Market Trends", 1, llm=llm, pdf_content="PDF TEXT")

        assert not outcome.instant
        assert section_ids(outcome.html) == ["hero", "summary", "market-trends", "metrics", "outlook"]
        new_section = ReportDocument(outcome.html).select("#market-trends")[0]
        assert text_of(new_section.find("h2")) == "Market Trends"
        assert "Generated body" in text_of(new_section)
        assert "PDF TEXT" in llm.prompts[0]
        assert "color: #1e40af;" in llm.prompts[0]

    def test_malformed_output_raises(self, sample_report):
        llm = FakeLLM(responses=["Sorry, no HTML today."])
        with pytest.raises(MalformedGenerationOutputError):
            ai_operators.add_section_with_content(sample_report, "Market Trends", 1, llm=llm)

    def test_negative_position_skips_generation(self, sample_report):
        llm = FakeLLM()
        with pytest.raises(InvalidArgumentError):
            ai_operators.add_section_with_content(sample_report, "Market Trends", -2, llm=llm)
        assert llm.prompts == []


class TestModifySection:
    def test_expand_replaces_section_body(self, sample_report):
        llm = FakeLLM(responses=["<h2>Outlook</h2><p>Much longer outlook text.</p>"])
        outcome = ai_operators.modify_section(sample_report, 3, "expand", llm=llm)

        section = ReportDocument(outcome.html).select("#outlook")[0]
        assert full_text_of(section) == "Outlook Much longer outlook text."
        assert section.get("style") == "padding: 40px;"
        assert "Investments continue next year." in llm.prompts[0]

    def test_delete_needs_no_generation(self, sample_report):
        outcome = ai_operators.modify_section(sample_report, 3, "delete", llm=FakeLLM())
        assert section_ids(outcome.html) == ["hero", "summary", "metrics"]
        assert outcome.instant

    def test_invalid_action(self, sample_report):
        with pytest.raises(InvalidArgumentError):
            ai_operators.modify_section(sample_report, 1, "shrink", llm=FakeLLM())

    def test_index_out_of_range(self, sample_report):
        with pytest.raises(NotFoundError):
            ai_operators.modify_section(sample_report, 9, "summarize", llm=FakeLLM())


class TestRecreateCard:
    def test_card_keeps_its_style(self, sample_report):
        llm = FakeLLM(responses=['<div style="font-size: 2.5rem">Cash Flow</div><p>Free cash flow doubled</p>'])
        outcome = ai_operators.recreate_card(sample_report, "Cash Flow", "mention free cash flow", llm=llm)

        assert "Free cash flow doubled" in outcome.html
        assert "Operating cash up 12%" not in outcome.html
        assert "Exposure reduced" in outcome.html
        assert 'style="background: #f0f9ff; padding: 16px;"' in outcome.html
        assert "mention free cash flow" in llm.prompts[0]

    def test_unknown_card(self, sample_report):
        with pytest.raises(NotFoundError):
            ai_operators.recreate_card(sample_report, "Goodwill", llm=FakeLLM())

    def test_icon_first_card_keeps_section(self, icon_report):
        llm = FakeLLM(responses=["<span>💰</span><h3>Cash Flow</h3><p>Free cash flow doubled</p>"])
        outcome = ai_operators.recreate_card(icon_report, "Cash Flow", "mention free cash flow", llm=llm)
        document = ReportDocument(outcome.html)
        overview = document.select("#overview")[0]

        assert "Free cash flow doubled" in text_of(overview)
        assert "Operating cash up 12%" not in outcome.html
        assert "Exposure reduced" in text_of(overview)
        assert text_of(overview.find("h2")) == "Overview"
        assert [section.get("id") for section in document.sections()] == ["overview", "margins", "people"]
