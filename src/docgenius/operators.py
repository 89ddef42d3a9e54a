"""
Instant mutation operators for generated reports.

Every operator takes the report as a string, works on its own parsed copy and
returns an OperatorOutcome with the serialized result. Errors are raised
before anything is serialized, so a failed call leaves the caller's report as
it was.
"""

import re
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Iterable

from bs4.element import Tag, NavigableString

from .config import DEFAULT_BAR_WIDTH
from .colors import (
    HEX_COLOR_RE, NEUTRAL_COLORS, resolve_color, find_hex_colors, is_neutral, replace_hex_colors
)
from .errors import NotFoundError, InvalidArgumentError
from .locator import ElementLocator, is_card_marker
from .markup import ReportDocument, get_style_map, set_style_map, text_of, class_string
from .models import OperatorOutcome

logger = logging.getLogger(__name__)

ICON_POSITIONS = ("before_title", "after_title")

# border keywords that are never the colour part of a shorthand
BORDER_STYLES = {
    "none", "hidden", "dotted", "dashed", "solid", "double",
    "groove", "ridge", "inset", "outset"
}
BORDER_WIDTHS = {"thin", "medium", "thick"}
CSS_WIDE_KEYWORDS = {"inherit", "initial", "unset", "revert"}

SLUG_RE = re.compile(r"[^a-z0-9]+")
FONT_FAMILY_RE = re.compile(r"font-family\s*:\s*([^;}\"]+)", re.IGNORECASE)

PLACEHOLDER_TEXT = "Content for this section will be added soon."

default_locator = ElementLocator()


def require_argument(value, name: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(f"Missing required argument '{name}'", context={"argument": name})
    return value


def section_at(document: ReportDocument, index) -> Tag:
    sections = document.sections()
    if not isinstance(index, int) or index < 0 or index >= len(sections):
        raise NotFoundError(
            f"Section index {index} is out of range (report has {len(sections)} sections)",
            context={"section_index": index, "section_count": len(sections)}
        )
    return sections[index]


# ---------------------------------------------------------------------------
# recolor
# ---------------------------------------------------------------------------

# repaint every non-neutral hex colour in the report
def change_all_colors(html: str, new_color: str, neutrals: Iterable[str] = NEUTRAL_COLORS) -> OperatorOutcome:
    """Global recolor as a textual substitution.

    Reports use literal hex values rather than variables, so this scans the
    raw string rather than the tree. Tokens in ``neutrals`` are compared case
    insensitively and are never replaced.
    """
    target = resolve_color(require_argument(new_color, "new_color"))
    neutral_set = {color.lower() for color in neutrals}

    tokens = [token for token in find_hex_colors(html) if not is_neutral(token, neutral_set)]
    mapping = {token.lower(): target for token in tokens}
    new_html, replaced = replace_hex_colors(html, mapping)

    # occurrences already equal to the target do not count as changes
    changes = replaced - sum(1 for token in occurrences(html, tokens) if token == target)
    if changes <= 0:
        return OperatorOutcome(html=html, message="No colours needed changing", changes=0)

    logger.info(f"✓ Recolored {len(tokens)} distinct colours ({changes} occurrences) to {target}")
    return OperatorOutcome(
        html=new_html,
        message=f"Changed {len(tokens)} colours to {target}",
        changes=changes
    )


# every occurrence of the given tokens, case insensitive
def occurrences(html: str, tokens: List[str]) -> List[str]:
    wanted = {token.lower() for token in tokens}
    return [m.group(0) for m in HEX_COLOR_RE.finditer(html or "") if m.group(0).lower() in wanted]


# ---------------------------------------------------------------------------
# targeted restyle
# ---------------------------------------------------------------------------

# set one inline style property on a located card
def modify_card_style(html: str, search_text: str, style_property: str, style_value: str,
                      locator: ElementLocator = default_locator) -> OperatorOutcome:
    require_argument(search_text, "search_text")
    prop = require_argument(style_property, "style_property").strip().lower()
    value = require_argument(style_value, "style_value").strip()
    if "color" in prop or prop == "background":
        value = resolve_color(value)

    document = ReportDocument(html)
    located = locator.find_card(document, search_text)

    styles = get_style_map(located.element)
    styles[prop] = value
    set_style_map(located.element, styles)

    return OperatorOutcome(
        html=document.serialize(),
        message=f"Set {prop} to {value} on '{located.title or search_text}'"
    )


# split a shorthand value on whitespace outside parentheses
def _shorthand_tokens(value: str) -> List[str]:
    tokens, current, depth = [], [], 0
    for char in value:
        if char == "(":
            depth += 1
        elif char == ")" and depth > 0:
            depth -= 1
        if char.isspace() and depth == 0:
            if current:
                tokens.append("".join(current))
                current = []
            continue
        current.append(char)
    if current:
        tokens.append("".join(current))
    return tokens


def _is_color_token(token: str) -> bool:
    lowered = token.lower()
    if lowered in BORDER_STYLES or lowered in BORDER_WIDTHS or lowered in CSS_WIDE_KEYWORDS:
        return False
    if lowered[0].isdigit() or lowered[0] == ".":
        return False
    if lowered.startswith("calc(") or lowered.startswith("var("):
        return False
    return True


# swap the colour inside a border shorthand, or add one
def recolor_border(value: str, color: str) -> str:
    tokens = _shorthand_tokens(value)
    if not tokens or any(token.lower() in ("none", "hidden") for token in tokens):
        return f"{DEFAULT_BAR_WIDTH} solid {color}"
    if not any(_is_color_token(token) for token in tokens):
        return " ".join(tokens + [color])
    return " ".join(color if _is_color_token(token) else token for token in tokens)


# change the left accent bar of a located card
def change_bar_color(html: str, search_text: str, new_color: str,
                     locator: ElementLocator = default_locator) -> OperatorOutcome:
    require_argument(search_text, "search_text")
    color = resolve_color(require_argument(new_color, "new_color"))

    document = ReportDocument(html)
    located = locator.find_card(document, search_text)

    styles = get_style_map(located.element)
    if "border-left" in styles:
        styles["border-left"] = recolor_border(styles["border-left"], color)
    else:
        styles["border-left"] = f"{DEFAULT_BAR_WIDTH} solid {color}"
    if "border-left-color" in styles:
        styles["border-left-color"] = color
    set_style_map(located.element, styles)

    return OperatorOutcome(
        html=document.serialize(),
        message=f"Changed bar colour of '{located.title or search_text}' to {color}"
    )


# ---------------------------------------------------------------------------
# structural edits on cards
# ---------------------------------------------------------------------------

# put an icon before or after a card's title
def add_icon(html: str, search_text: str, icon: str, position: str = "before_title",
             locator: ElementLocator = default_locator) -> OperatorOutcome:
    require_argument(search_text, "search_text")
    icon = require_argument(icon, "icon").strip()
    if position not in ICON_POSITIONS:
        raise InvalidArgumentError(
            f"position must be one of {', '.join(ICON_POSITIONS)}",
            context={"position": position}
        )

    document = ReportDocument(html)
    located = locator.find_card(document, search_text)
    title_element = located.title_element
    if title_element is None:
        raise NotFoundError(
            f"'{search_text}' has no title to attach an icon to",
            context={"search_text": search_text}
        )

    if position == "before_title":
        title_element.insert(0, NavigableString(f"{icon} "))
    else:
        title_element.append(NavigableString(f" {icon}"))

    return OperatorOutcome(
        html=document.serialize(),
        message=f"Added {icon} {'before' if position == 'before_title' else 'after'} '{located.title}'"
    )


# remove a located card and everything inside it
def delete_element(html: str, search_text: str, locator: ElementLocator = default_locator) -> OperatorOutcome:
    require_argument(search_text, "search_text")
    document = ReportDocument(html)
    located = locator.find_card(document, search_text)
    document.remove(located.element)
    return OperatorOutcome(
        html=document.serialize(),
        message=f"Deleted '{located.title or search_text}'"
    )


# ---------------------------------------------------------------------------
# section edits
# ---------------------------------------------------------------------------

# reposition a section; both indices use the numbering before the move
def move_section(html: str, section_index: int, new_position: int) -> OperatorOutcome:
    """Move one section so that it ends up at ``new_position``.

    The result is the original section order with the moved section taken
    out and re-inserted at ``new_position`` of the shortened list, e.g.
    [A, B, C, D] with 3 -> 1 gives [A, D, B, C] and 0 -> 2 gives [B, C, A, D].
    """
    document = ReportDocument(html)
    moving = section_at(document, section_index)
    count = len(document.sections())
    if not isinstance(new_position, int) or new_position < 0 or new_position >= count:
        raise NotFoundError(
            f"Target position {new_position} is out of range (report has {count} sections)",
            context={"new_position": new_position, "section_count": count}
        )

    title = text_of(moving.find("h2")) if moving.find("h2") else moving.get("id", "")
    if section_index == new_position:
        return OperatorOutcome(html=html, message=f"'{title}' is already at position {new_position}", changes=0)

    moving.extract()
    remaining = document.sections()
    if new_position == 0:
        remaining[0].insert_before(moving)
    elif new_position >= len(remaining):
        remaining[-1].insert_after(moving)
    else:
        remaining[new_position].insert_before(moving)

    logger.info(f"✓ Moved section '{title}' from {section_index} to {new_position}")
    return OperatorOutcome(
        html=document.serialize(),
        message=f"Moved '{title}' from position {section_index} to {new_position}"
    )


# remove a whole section by index
def delete_section(html: str, section_index: int) -> OperatorOutcome:
    document = ReportDocument(html)
    section = section_at(document, section_index)
    heading = section.find("h2")
    title = text_of(heading) if heading else section.get("id", "")
    document.remove(section)
    return OperatorOutcome(html=document.serialize(), message=f"Deleted section '{title}'")


# inline styles sampled from the report so new sections blend in
@dataclass
class SectionStyle:
    wrapper_style: str = ""
    wrapper_class: str = ""
    heading_style: str = ""
    paragraph_style: str = ""
    card_style: str = ""
    card_class: str = ""
    colors: List[str] = field(default_factory=list)
    font_family: str = ""

    # plain-text summary handed to the generation service
    def describe(self) -> str:
        lines = []
        if self.wrapper_style or self.wrapper_class:
            lines.append(f"Section wrapper: class=\"{self.wrapper_class}\" style=\"{self.wrapper_style}\"")
        if self.heading_style:
            lines.append(f"Section title (h2) style: {self.heading_style}")
        if self.paragraph_style:
            lines.append(f"Paragraph style: {self.paragraph_style}")
        if self.card_style or self.card_class:
            lines.append(f"Card: class=\"{self.card_class}\" style=\"{self.card_style}\"")
        if self.colors:
            lines.append(f"Dominant colours: {', '.join(self.colors)}")
        if self.font_family:
            lines.append(f"Font family: {self.font_family}")
        return "\n".join(lines)


# collect wrapper, heading, paragraph and card styles from existing sections
def sample_section_styles(document: ReportDocument) -> SectionStyle:
    style = SectionStyle()
    sections = [s for s in document.sections() if s.get("id") != "hero"] or document.sections()

    for section in sections:
        if not style.wrapper_style and section.get("style"):
            style.wrapper_style = section["style"]
        if not style.wrapper_class and class_string(section):
            style.wrapper_class = class_string(section)

        heading = section.find("h2")
        if not style.heading_style and heading is not None and heading.get("style"):
            style.heading_style = heading["style"]

        paragraph = section.find("p", style=True)
        if not style.paragraph_style and paragraph is not None:
            style.paragraph_style = paragraph["style"]

        if not style.card_style and not style.card_class:
            card = section.find(lambda tag: is_card_marker(tag))
            if card is not None:
                style.card_style = card.get("style", "")
                style.card_class = class_string(card)

    counts = Counter(
        token.lower()
        for section in sections
        for token in occurrences(str(section), find_hex_colors(str(section)))
        if not is_neutral(token)
    )
    style.colors = [color for color, _ in counts.most_common(3)]

    match = FONT_FAMILY_RE.search(document.source)
    if match:
        style.font_family = match.group(1).strip()
    return style


# url-safe id from a title, unique within the document
def unique_slug(document: ReportDocument, title: str) -> str:
    base = SLUG_RE.sub("-", (title or "").lower()).strip("-") or "section"
    taken = {element.get("id") for element in document.elements() if element.get("id")}
    slug, suffix = base, 2
    while slug in taken:
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


# insert a finished section after ``position`` or before the last section
def insert_section(document: ReportDocument, section: Tag, position: int) -> None:
    if not isinstance(position, int) or position < 0:
        raise InvalidArgumentError("position must be a non-negative integer", context={"position": position})

    sections = document.sections()
    if not sections:
        container = document.first("main") or document.first("body") or document.soup
        container.append(section)
    elif position >= len(sections):
        sections[-1].insert_before(section)
    else:
        sections[position].insert_after(section)


# build an empty <section> carrying the sampled styles
def build_section_shell(document: ReportDocument, title: str, style: SectionStyle) -> Tag:
    attrs = {"id": unique_slug(document, title)}
    if style.wrapper_class:
        attrs["class"] = style.wrapper_class
    if style.wrapper_style:
        attrs["style"] = style.wrapper_style
    section = document.soup.new_tag("section", attrs=attrs)

    heading = document.soup.new_tag("h2", attrs={"style": style.heading_style} if style.heading_style else {})
    heading.string = title
    section.append(heading)
    return section


# add a placeholder section without calling the generation service
def add_section(html: str, title: str, position: int) -> OperatorOutcome:
    require_argument(title, "title")
    document = ReportDocument(html)
    style = sample_section_styles(document)

    section = build_section_shell(document, title.strip(), style)
    paragraph = document.soup.new_tag("p", attrs={"style": style.paragraph_style} if style.paragraph_style else {})
    paragraph.string = PLACEHOLDER_TEXT
    section.append(paragraph)
    insert_section(document, section, position)

    return OperatorOutcome(html=document.serialize(), message=f"Added section '{title.strip()}'")
