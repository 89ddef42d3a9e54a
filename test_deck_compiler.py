"""
Tests for compiling a report into a slide deck.
"""

from src.docgenius.deck_compiler import DeckCompiler, compile_presentation, TOC_EMOJIS
from src.docgenius.markup import ReportDocument
from src.docgenius.models import SlideType


class TestBuildDeck:
    def test_slide_order(self, sample_report):
        deck = DeckCompiler().build_deck(sample_report)

        assert [slide.type for slide in deck.slides] == [
            SlideType.TITLE, SlideType.CONTENTS, SlideType.SECTION, SlideType.SECTION, SlideType.SECTION
        ]
        assert [slide.index for slide in deck.slides] == [0, 1, 2, 3, 4]
        assert [slide.section_id for slide in deck.slides[2:]] == ["summary", "metrics", "outlook"]

    def test_title_and_subtitle_come_from_hero(self, sample_report):
        deck = DeckCompiler().build_deck(sample_report)
        assert deck.title == "Quarterly Finance Review"
        assert deck.subtitle == "Cash position and investment outlook"

    def test_fallbacks(self):
        html = '<html><head><title>Audit</title></head><body><section id="a"><p>text</p></section></body></html>'
        deck = DeckCompiler().build_deck(html)

        assert deck.title == "Audit"
        assert deck.subtitle == "Analysis Report"
        assert deck.sections[0].title == "Section 1"

    def test_sections_without_id_or_content_are_skipped(self):
        html = '<section id="a"><h2>A</h2></section><section><h2>B</h2></section><section id="c">  </section>'
        deck = DeckCompiler().build_deck(html)
        assert [section.id for section in deck.sections] == ["a"]

    def test_empty_report(self):
        deck = DeckCompiler().build_deck("")
        assert deck.title == "Report"
        assert len(deck.slides) == 2

    def test_statistics(self, sample_report):
        compiler = DeckCompiler()
        stats = compiler.get_deck_statistics(compiler.build_deck(sample_report))
        assert stats["total_slides"] == 5
        assert stats["content_slides"] == 3
        assert stats["has_report_styles"] is True


class TestRender:
    def test_section_markup_is_copied_verbatim(self, sample_report):
        html = compile_presentation(sample_report)
        deck = ReportDocument(html)

        slides = deck.select("div.slide")
        assert len(slides) == 5
        assert slides[3].get("data-section") == "metrics"
        assert "grid-template-columns: repeat(2, 1fr)" in html
        assert "Operating cash up 12%" in html

    def test_report_styles_are_carried(self, sample_report):
        html = compile_presentation(sample_report)
        assert ".card { border-radius: 12px; }" in html

    def test_table_of_contents(self, sample_report):
        html = compile_presentation(sample_report)

        assert "goTo(2)" in html and "goTo(4)" in html
        assert ">01<" in html and ">03<" in html
        assert TOC_EMOJIS[0] in html

    def test_navigation_script(self, sample_report):
        html = compile_presentation(sample_report)
        assert "ArrowRight" in html
        assert "ArrowLeft" in html
        assert "1 / 5" in html

    def test_titles_are_escaped(self):
        html = '<section id="hero"><h1>R&amp;D &lt;Review&gt;</h1></section><section id="x"><h2>X</h2><p>y</p></section>'
        rendered = compile_presentation(html)
        assert "<h1>R&amp;D &lt;Review&gt;</h1>" in rendered
        assert "<Review>" not in rendered


def test_contents_lists_sections_in_order(sample_report):
    rendered = ReportDocument(compile_presentation(sample_report))
    entries = [card.find("h3").get_text() for card in rendered.select("div.toc-card")]
    assert entries == ["Executive Summary", "Key Metrics", "Outlook"]
