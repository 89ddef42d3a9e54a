"""
Visual enhancement pass for finished reports.

The generation service proposes extra CSS and a list of SVG injections as
JSON. The proposal is cleaned up before anything touches the report: off-palette
colours are swapped for blue tones, the number of injections is capped and
charts that would render unreadably are dropped.
"""

import re
import json
import logging
from typing import List, Dict, Any, Tuple

from .errors import MalformedGenerationOutputError
from .markup import ReportDocument
from .models import EnhancementResult

logger = logging.getLogger(__name__)

STYLE_ID = "glassmorphism-enhancement"
MAX_INJECTIONS = 10
INJECTION_POSITIONS = ("append", "prepend", "after", "before")

# status colours that clash with the blue report palette
FORBIDDEN_COLORS = {
    "#28a745": "#60a5fa",
    "#dc3545": "#3b82f6",
    "#ffc107": "#93c5fd",
    "#17a2b8": "#60a5fa",
}

DARK_FILLS = ('fill="#0f172a"', 'fill="%230f172a"', 'fill="#1e293b"', 'fill="%231e293b"')
PERCENT_RE = re.compile(r"\b\d{1,3}\s?%")
PROGRESS_MARKERS = ("avancement", "report progress", "progress of the report")
COMPLETED_MARKERS = ("completed", "complété", "complete")

LIST_SPACING_CSS = """
/* list spacing away from left borders */
ul, ol { margin-left: 20px; padding-left: 24px; }
li { margin-bottom: 8px; }
"""

CHART_CENTERING_CSS = """
/* injected charts are centered */
.chart-container + svg, section > svg, .card > svg { display: block; margin: 24px auto !important; text-align: center; }
svg[width="300"], svg[width="320"] { display: block; margin: 24px auto !important; }
"""

ENHANCEMENT_PROMPT = """You are improving the visual design of an HTML report without changing its text.
Return ONLY a JSON object of the form:
{{
  "newCSS": "/* extra CSS: glass cards, soft shadows, subtle animations */",
  "svgInjections": [
    {{"selector": "CSS selector of an existing element", "position": "append|prepend|after|before", "svg": "<svg ...>...</svg>"}}
  ]
}}
Rules:
- Use a blue palette only (#3b82f6, #60a5fa, #93c5fd, #dbeafe); never green, red or yellow status colours.
- At most {max_injections} SVGs, each informative (charts, diagrams, icons) and readable on a light background.
- Selectors must match elements that exist in the report.

Report HTML:
{report_html}"""


# drop markdown fences and surrounding prose around a json object
def extract_json_text(raw: str) -> str:
    text = re.sub(r"```(?:json)?", "", raw or "").strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text
    return text[start:end + 1]


# parse and structurally validate the enhancement proposal
def parse_enhancements(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(extract_json_text(raw))
    except json.JSONDecodeError as e:
        raise MalformedGenerationOutputError(f"Enhancement is not valid JSON: {e.msg}", raw_output=raw, cause=e)

    if not isinstance(data, dict) or not isinstance(data.get("newCSS"), str) or not data.get("newCSS").strip() \
            or not isinstance(data.get("svgInjections"), list):
        raise MalformedGenerationOutputError(
            "Enhancement JSON must contain 'newCSS' and a 'svgInjections' list",
            raw_output=raw
        )
    return data


# non-string values read as missing
def _string_field(injection: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = injection.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _svg_of(injection: Dict[str, Any]) -> str:
    return _string_field(injection, "svg", "svgCode")


def _selector_of(injection: Dict[str, Any]) -> str:
    return _string_field(injection, "selector", "targetSelector")


# charts that would be unreadable or only show report progress
def is_unwanted_svg(svg: str) -> bool:
    lowered = svg.lower()
    if any(marker in lowered for marker in PROGRESS_MARKERS):
        return True
    has_status_text = bool(PERCENT_RE.search(svg)) or any(marker in lowered for marker in COMPLETED_MARKERS)
    has_dark_fill = any(fill in lowered for fill in DARK_FILLS)
    return has_status_text and has_dark_fill


# force palette, cap and filter the proposal; returns (css, injections)
def post_validate(enhancements: Dict[str, Any]) -> Tuple[str, List[Dict[str, Any]]]:
    css = enhancements["newCSS"]
    for forbidden, replacement in FORBIDDEN_COLORS.items():
        css = re.sub(re.escape(forbidden), replacement, css, flags=re.IGNORECASE)

    injections = [item for item in enhancements["svgInjections"] if isinstance(item, dict)]
    if len(injections) > MAX_INJECTIONS:
        logger.warning(f"Too many SVG injections ({len(injections)}), keeping the first {MAX_INJECTIONS}")
        injections = injections[:MAX_INJECTIONS]

    kept = [item for item in injections if not is_unwanted_svg(_svg_of(item))]
    if len(kept) != len(injections):
        logger.info(f"Dropped {len(injections) - len(kept)} unreadable or progress SVGs")

    css = css + "\n" + LIST_SPACING_CSS + CHART_CENTERING_CSS
    return css, kept


# add the css and svgs to a report; returns (html, applied count)
def apply_enhancements(report_html: str, css: str, injections: List[Dict[str, Any]]) -> Tuple[str, int]:
    document = ReportDocument(report_html)
    head = document.ensure_head()
    style = document.new_tag("style", id=STYLE_ID)
    style.string = css
    head.append(style)

    applied = 0
    for injection in injections:
        selector = _selector_of(injection)
        position = injection.get("position")
        svg = _svg_of(injection)
        if not selector or position not in INJECTION_POSITIONS or not svg:
            logger.warning(f"Invalid SVG injection skipped: {str(injection)[:120]}")
            continue

        targets = document.select(selector)
        if not targets:
            logger.warning(f"Selector not found: {selector}")
            continue

        # each target gets its own parsed copy of the svg
        for target in targets:
            if position == "append":
                document.append(target, svg)
            elif position == "prepend":
                document.prepend(target, svg)
            elif position == "after":
                document.insert_after(target, svg)
            else:
                document.insert_before(target, svg)
        applied += 1
        logger.info(f"✓ SVG injected: {selector} ({position})")

    return document.serialize(), applied


# one enhancement call plus the deterministic clean-up and injection
class ReportEnhancer:
    def __init__(self, llm=None):
        self._llm = llm

    @property
    def llm(self):
        if self._llm is None:
            from .llm_service import get_llm_service
            self._llm = get_llm_service()
        return self._llm

    def enhance(self, report_html: str) -> EnhancementResult:
        prompt = ENHANCEMENT_PROMPT.format(max_injections=MAX_INJECTIONS, report_html=report_html)
        raw = self.llm.generate_text(prompt, max_tokens=6000, temperature=0.4)

        css, injections = post_validate(parse_enhancements(raw))
        html, applied = apply_enhancements(report_html, css, injections)

        logger.info(f"✓ Enhancement applied: {applied}/{len(injections)} SVG injections")
        return EnhancementResult(report_html=html, injected=applied, requested=len(injections))
