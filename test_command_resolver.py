"""
Tests for turning an instruction into ordered tool executions.
"""

from conftest import FakeLLM, section_ids
from src.docgenius.command_resolver import CommandResolver, format_sections
from src.docgenius.errors import TransientUpstreamError
from src.docgenius.markup import ReportDocument
from src.docgenius.models import ToolCall


def resolver_with(*tool_responses, responses=None):
    llm = FakeLLM(responses=responses, tool_responses=list(tool_responses))
    return CommandResolver(llm=llm), llm


class TestResolve:
    def test_sections_are_sent_with_indices(self, sample_report):
        resolver, llm = resolver_with(("Nothing to do.", []))
        resolver.resolve("hello", sample_report)

        system_prompt = llm.messages[0][0]["content"]
        assert "1: Executive Summary [id=summary]" in system_prompt
        assert "0: (untitled) [id=hero]" in system_prompt
        assert llm.messages[0][1] == {"role": "user", "content": "hello"}

    def test_text_reply_without_tools(self, sample_report):
        resolver, _ = resolver_with(("The report has four sections.", []))
        response = resolver.resolve("how many sections?", sample_report)

        assert response.success
        assert response.reply == "The report has four sections."
        assert response.report_html == sample_report
        assert response.results == []

    def test_calls_run_in_order(self, sample_report):
        resolver, _ = resolver_with(("", [
            {"name": "move_section", "arguments": {"section_index": 3, "new_position": 1}},
            {"name": "delete_section_by_index", "arguments": {}},
            {"name": "modify_section", "arguments": {"section_index": 1, "action": "delete"}},
        ]))
        response = resolver.resolve("move outlook up, then delete it", sample_report)

        assert response.success
        assert [result.success for result in response.results] == [True, False, True]
        assert response.results[1].error_type == "invalid_argument"
        # the delete sees the order left by the move
        assert section_ids(response.report_html) == ["hero", "summary", "metrics"]

    def test_failed_call_leaves_report_unchanged(self, sample_report):
        resolver, _ = resolver_with(("", [
            {"name": "change_bar_color", "arguments": {"search_text": "Goodwill", "new_color": "pink"}},
        ]))
        response = resolver.resolve("make the goodwill bar pink", sample_report)

        assert not response.success
        assert response.report_html == sample_report
        assert response.results[0].error_type == "not_found"
        assert "✗" in response.reply

    def test_classifier_overload_asks_for_retry(self, sample_report):
        resolver, _ = resolver_with(TransientUpstreamError("Generation service still unavailable"))
        response = resolver.resolve("make it blue", sample_report)

        assert not response.success
        assert response.retry
        assert response.results[0].tool == "classifier"
        assert response.report_html == sample_report

    def test_ai_backed_flag(self, sample_report):
        resolver, _ = resolver_with(
            ("", [{"name": "modify_section", "arguments": {"section_index": 3, "action": "summarize"}}]),
            responses=["<h2>Outlook</h2><p>Short.</p>"]
        )
        response = resolver.resolve("summarize the outlook", sample_report)

        assert response.success
        assert response.ai_backed
        assert not response.results[0].instant

    def test_generation_failure_inside_a_call(self, sample_report):
        resolver, _ = resolver_with(
            ("", [
                {"name": "recreate_card", "arguments": {"search_text": "Risk"}},
                {"name": "change_all_colors", "arguments": {"new_color": "purple"}},
            ]),
            responses=[TransientUpstreamError("overloaded")]
        )
        response = resolver.resolve("redo the risk card and make it purple", sample_report)

        assert response.success
        assert not response.retry
        assert response.results[0].retry
        assert "#9333ea" in response.report_html
        assert not response.ai_backed


class TestExecute:
    def test_instant_calls_never_need_a_model(self, sample_report):
        response = CommandResolver(llm=None).execute(
            [ToolCall(name="add_icon", arguments={"search_text": "Risk", "icon": "⚠️"})],
            sample_report
        )
        assert response.success
        assert "⚠️ Risk" in response.report_html

    def test_format_sections_empty(self):
        assert format_sections(ReportDocument("<p>x</p>").section_infos()) == "(the report has no sections)"
