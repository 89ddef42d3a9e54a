"""
Generation-backed mutation operators.

Each operator makes exactly one call to the generation service, cleans the
returned markup and splices it into a private copy of the report. Nothing is
serialized until the generated markup has been validated.
"""

import re
import logging
from typing import Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from .config import PDF_CONTEXT_CHARS
from .errors import InvalidArgumentError, MalformedGenerationOutputError
from .locator import ElementLocator, drill_down_grid
from .markup import ReportDocument, inner_html, text_of, class_string
from .models import OperatorOutcome
from .operators import (
    default_locator, delete_section, sample_section_styles, build_section_shell,
    insert_section, require_argument, section_at
)

logger = logging.getLogger(__name__)

SECTION_ACTIONS = ("expand", "summarize", "regenerate", "delete")

CODE_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*\n?|```")

ACTION_INSTRUCTIONS = {
    "expand": "Expand this section with more detail, examples and supporting data. Keep the same visual style.",
    "summarize": "Condense this section to its key points. Keep the same visual style and the main heading.",
    "regenerate": "Rewrite this section from scratch with fresh wording and layout, keeping the same visual style."
}


def _llm(llm):
    if llm is not None:
        return llm
    from .llm_service import get_llm_service
    return get_llm_service()


def _source_context(pdf_content: Optional[str]) -> str:
    if not pdf_content:
        return ""
    return f"\n\nSource document text (for facts only):\n{pdf_content[:PDF_CONTEXT_CHARS]}"


# remove markdown code fences around generated output
def strip_code_fences(text: str) -> str:
    return CODE_FENCE_RE.sub("", text or "").strip()


# keep only the markup in a generation result
def clean_generated_markup(raw: str) -> str:
    """Strip code fences and any prose before the first tag or after the last.

    Raises MalformedGenerationOutputError when no markup is left.
    """
    text = strip_code_fences(raw)
    start = text.find("<")
    end = text.rfind(">")
    if start == -1 or end < start:
        raise MalformedGenerationOutputError(
            "Generated output contains no markup",
            raw_output=raw
        )
    markup = text[start:end + 1].strip()
    if not BeautifulSoup(markup, "html.parser").find(True):
        raise MalformedGenerationOutputError("Generated output contains no elements", raw_output=raw)
    return markup


# when markup is one element of ``tag``, return its inside instead
def unwrap_single(markup: str, tag: str) -> str:
    fragment = BeautifulSoup(markup, "html.parser")
    top_level = [node for node in fragment.contents if isinstance(node, Tag) or str(node).strip()]
    if len(top_level) == 1 and isinstance(top_level[0], Tag) and top_level[0].name == tag:
        return inner_html(top_level[0]).strip()
    return markup


# add a section whose content comes from the generation service
def add_section_with_content(html: str, title: str, position: int, llm=None,
                             pdf_content: Optional[str] = None) -> OperatorOutcome:
    title = require_argument(title, "title").strip()
    document = ReportDocument(html)
    style = sample_section_styles(document)
    # validate position before spending a generation call
    if not isinstance(position, int) or position < 0:
        raise InvalidArgumentError("position must be a non-negative integer", context={"position": position})

    prompt = (
        f"Write the HTML body of a report section titled \"{title}\".\n"
        "Return only HTML elements (cards, paragraphs, lists), without the <section> tag and without the h2 title.\n"
        "Use inline styles that match the existing report:\n"
        f"{style.describe() or 'Use a clean, neutral style.'}"
        f"{_source_context(pdf_content)}"
    )
    generated = clean_generated_markup(_llm(llm).generate_text(prompt, max_tokens=2500))
    generated = unwrap_single(generated, "section")

    section = build_section_shell(document, title, style)
    document.append(section, generated)
    insert_section(document, section, position)

    logger.info(f"✓ Generated new section '{title}' ({len(generated)} chars)")
    return OperatorOutcome(
        html=document.serialize(),
        message=f"Added section '{title}' with generated content",
        instant=False
    )


# delete, expand, summarize or regenerate one section by index
def modify_section(html: str, section_index: int, action: str, llm=None,
                   pdf_content: Optional[str] = None) -> OperatorOutcome:
    if action not in SECTION_ACTIONS:
        raise InvalidArgumentError(
            f"action must be one of {', '.join(SECTION_ACTIONS)}",
            context={"action": action}
        )
    if action == "delete":
        return delete_section(html, section_index)

    document = ReportDocument(html)
    section = section_at(document, section_index)
    heading = section.find("h2")
    title = text_of(heading) if heading else section.get("id", "")

    prompt = (
        f"{ACTION_INSTRUCTIONS[action]}\n"
        "Return only the new inner HTML of the section (keep the h2 title), without the <section> tag.\n\n"
        f"Current section HTML:\n{inner_html(section)}"
        f"{_source_context(pdf_content)}"
    )
    generated = clean_generated_markup(_llm(llm).generate_text(prompt, max_tokens=3000))
    generated = unwrap_single(generated, "section")

    document.replace_contents(section, generated)

    logger.info(f"✓ Section '{title}' {action} done")
    return OperatorOutcome(
        html=document.serialize(),
        message=f"Section '{title}': {action} applied",
        instant=False
    )


# rebuild one card with generated content in the card's own style
def recreate_card(html: str, search_text: str, instructions: Optional[str] = None, llm=None,
                  pdf_content: Optional[str] = None,
                  locator: ElementLocator = default_locator) -> OperatorOutcome:
    require_argument(search_text, "search_text")
    document = ReportDocument(html)
    located = locator.find_card(document, search_text)
    card = drill_down_grid(located.element, located.title)

    attrs = {}
    if card.get("style"):
        attrs["style"] = card["style"]
    if class_string(card):
        attrs["class"] = class_string(card)

    prompt = (
        f"Recreate the card titled \"{located.title or search_text}\".\n"
        f"{instructions or 'Improve its content and layout.'}\n"
        "Return only the inner HTML of the card, reusing the inline styles of this example:\n"
        f"{inner_html(card)}"
        f"{_source_context(pdf_content)}"
    )
    generated = clean_generated_markup(_llm(llm).generate_text(prompt, max_tokens=1500))
    generated = unwrap_single(generated, card.name)

    replacement = document.soup.new_tag(card.name, attrs=attrs)
    document.append(replacement, generated)
    document.replace(card, replacement)

    return OperatorOutcome(
        html=document.serialize(),
        message=f"Recreated '{located.title or search_text}'",
        instant=False
    )
