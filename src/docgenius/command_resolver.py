"""
Command resolver for conversational report edits.

An instruction goes to the tool-calling model together with the current
section list. Every call that comes back is validated against the edit tool
schema, then executed in order against the report left by the previous
successful call. Failures are reported per call and never raised.
"""

import logging
from typing import List, Optional, Dict, Any

from .edit_tools import CALL_MAP, tool_definitions, validate_tool_call
from .errors import DocGeniusError
from .markup import ReportDocument
from .models import ToolCall, OperationResult, EditResponse, SectionInfo

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You edit an HTML report for the user by calling tools.
Pick the tool (or tools, in order) that carry out the request. Use the section indices
listed below exactly as given; they are 0-based and reflect the current order.
If the request is a question or no tool applies, answer in plain text without calling a tool.

Current sections:
{sections}"""


# render the section list handed to the classifier
def format_sections(sections: List[SectionInfo]) -> str:
    if not sections:
        return "(the report has no sections)"
    return "\n".join(
        f"{info.index}: {info.title or '(untitled)'} [id={info.id or '-'}]"
        for info in sections
    )


# maps an instruction to edit tool calls and runs them
class CommandResolver:
    def __init__(self, llm=None, call_map: Optional[Dict[str, Any]] = None):
        self._llm = llm
        self.call_map = call_map or CALL_MAP

    @property
    def llm(self):
        if self._llm is None:
            from .llm_service import get_llm_service
            self._llm = get_llm_service()
        return self._llm

    def build_messages(self, message: str, document: ReportDocument) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT.format(sections=format_sections(document.section_infos()))},
            {"role": "user", "content": message}
        ]

    # classify the instruction, then execute whatever comes back
    def resolve(self, message: str, report_html: str, pdf_content: Optional[str] = None) -> EditResponse:
        document = ReportDocument(report_html)
        try:
            reply, calls = self.llm.chat_with_tools(self.build_messages(message, document), tool_definitions())
        except DocGeniusError as e:
            logger.error(f"Instruction classification failed: {e.message}")
            return EditResponse(
                success=False,
                reply=e.message,
                report_html=report_html,
                results=[OperationResult(
                    tool="classifier",
                    success=False,
                    message=e.message,
                    instant=False,
                    error_type=e.error_type,
                    retry=e.retry
                )],
                retry=e.retry
            )

        if not calls:
            logger.info("No tool selected, returning the text reply")
            return EditResponse(success=True, reply=reply, report_html=report_html)

        logger.info(f"Classifier returned {len(calls)} tool call(s): {[call.name for call in calls]}")
        return self.execute(calls, report_html, pdf_content=pdf_content, reply=reply)

    # run validated calls one after another
    def execute(self, calls: List[ToolCall], report_html: str, pdf_content: Optional[str] = None,
                reply: str = "") -> EditResponse:
        """Execute tool calls strictly in order.

        All calls are validated before the first one runs, so an invalid call
        is rejected without touching the report. A failed call keeps the report
        as the previous call left it and the next call carries on from there.
        """
        checked = []
        for call in calls:
            try:
                checked.append((call, validate_tool_call(call), None))
            except DocGeniusError as e:
                logger.warning(f"Rejected tool call {call.name}: {e.message}")
                checked.append((call, None, e))

        current = report_html
        results = []
        for call, args, error in checked:
            if error is None:
                try:
                    outcome = self.call_map[call.name](current, args, llm=self._llm, pdf_content=pdf_content)
                except DocGeniusError as e:
                    logger.error(f"Tool {call.name} failed: {e.message}")
                    error = e
                except Exception as e:
                    logger.error(f"Tool {call.name} crashed: {str(e)}", exc_info=True)
                    results.append(OperationResult(
                        tool=call.name, success=False, message=f"Internal error: {str(e)}", error_type="internal"
                    ))
                    continue

            if error is not None:
                results.append(OperationResult(
                    tool=call.name,
                    success=False,
                    message=error.message,
                    error_type=error.error_type,
                    retry=error.retry
                ))
                continue

            current = outcome.html
            results.append(OperationResult(
                tool=call.name,
                success=True,
                message=outcome.message,
                instant=outcome.instant,
                changes=outcome.changes
            ))
            logger.info(f"✓ {call.name}: {outcome.message}")

        succeeded = [result for result in results if result.success]
        summary = "\n".join(
            f"{'✓' if result.success else '✗'} {result.message}" for result in results
        )
        return EditResponse(
            success=bool(succeeded),
            reply=f"{reply}\n{summary}".strip() if reply else summary,
            report_html=current,
            results=results,
            ai_backed=any(not result.instant for result in succeeded),
            retry=any(result.retry for result in results) and not succeeded
        )
