"""
Fuzzy element locator.

Generated reports have no stable class taxonomy for "cards", so a card is
found from the signals that do survive generation: its title, the size of its
text and where it sits. The pipeline is candidate extraction -> scoring ->
tie-break, and the scoring step only looks at plain strings so it can be
tested without building a tree.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Iterable, Any, Set, Callable

from bs4.element import Tag

from .config import CARD_MARKERS
from .errors import NotFoundError
from .markup import (
    ReportDocument, get_style_map, text_of, full_text_of, class_string,
    element_children, first_element_child, HEADING_TAGS
)

logger = logging.getLogger(__name__)

# elements that can act as a visual container
CONTAINER_TAGS = ("div", "article", "aside", "li", "section")

# heading priority used when a card has no large text
TITLE_HEADING_PRIORITY = ("h3", "h2", "h4", "h1", "h5", "h6")

# font sizes at or above these read as a card's "big number"
LARGE_FONT_REM = 2.0
LARGE_FONT_PX = 32.0

FONT_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*(rem|em|px)\b", re.IGNORECASE)
WORD_RE = re.compile(r"\w+", re.UNICODE)

# score weights
EXACT_TITLE_SCORE = 10000
TITLE_CONTAINS_SCORE = 500
PROXIMITY_BONUS = 500
PROXIMITY_PENALTY = 10
SEARCH_CONTAINS_TITLE_SCORE = 400
WORD_OVERLAP_SCORE = 100
FULL_TEXT_SCORE = 50
FIRST_CHILD_EXACT_BONUS = 5000
FIRST_CHILD_CONTAINS_BONUS = 200


# a possible match before scoring
@dataclass
class Candidate:
    element: Any
    title: str
    title_element: Optional[Tag]
    full_text: str
    first_child_text: str


# the winning element with the evidence that picked it
@dataclass
class LocatedElement:
    element: Tag
    title: str
    title_element: Optional[Tag]
    score: int


def normalize(text: Optional[str]) -> str:
    return " ".join((text or "").casefold().split())


# check whether a css font-size value counts as large
def is_large_font(value: Optional[str]) -> bool:
    if not value:
        return False
    match = FONT_SIZE_RE.match(value)
    if not match:
        return False
    size = float(match.group(1))
    unit = match.group(2).lower()
    if unit == "px":
        return size >= LARGE_FONT_PX
    return size >= LARGE_FONT_REM


def has_large_font(element: Tag) -> bool:
    return is_large_font(get_style_map(element).get("font-size"))


# text made only of emoji, arrows or punctuation
def is_symbolic(text: str) -> bool:
    return not any(char.isalnum() for char in text)


# multi-column wrappers hold cards, they are never cards themselves
def is_grid_wrapper(element: Tag) -> bool:
    styles = get_style_map(element)
    display = styles.get("display", "").lower()
    if display.startswith("grid") or display.startswith("inline-grid"):
        return True
    if "grid-template-columns" in styles:
        return True
    return any("grid" in token.lower() for token in class_string(element).split())


def is_card_marker(element: Tag, markers: Iterable[str] = CARD_MARKERS) -> bool:
    if element.has_attr("data-card"):
        return True
    tokens = class_string(element).lower().split()
    return any(marker in token for token in tokens for marker in markers)


def has_direct_heading(element: Tag) -> bool:
    return any(child.name in HEADING_TAGS for child in element_children(element))


def has_large_direct_child(element: Tag) -> bool:
    return any(has_large_font(child) for child in element_children(element))


# whether an element would be picked up as a candidate of its own
def is_candidate_shape(element: Tag, markers: Iterable[str] = CARD_MARKERS) -> bool:
    if is_card_marker(element, markers):
        return True
    parent = element.parent
    if isinstance(parent, Tag) and is_grid_wrapper(parent):
        if element.has_attr("style") or element.has_attr("class"):
            return True
    if element.name not in CONTAINER_TAGS:
        return False
    return has_direct_heading(element) or has_large_direct_child(element)


# true when no candidate-shaped element sits between node and owner
def is_owned_by(node: Tag, owner: Tag, markers: Iterable[str] = CARD_MARKERS) -> bool:
    parent = node.parent
    while isinstance(parent, Tag) and parent is not owner:
        if is_candidate_shape(parent, markers):
            return False
        parent = parent.parent
    return True


def _title_from(element: Tag, accept: Callable[[Tag], bool]) -> Tuple[str, Optional[Tag]]:
    children = element_children(element)
    levels = [children, [grandchild for child in children for grandchild in element_children(child)]]
    for level in levels:
        for node in level:
            if not accept(node) or not has_large_font(node):
                continue
            text = text_of(node)
            if len(text) > 2 and not is_symbolic(text):
                return text, node

    for heading_tag in TITLE_HEADING_PRIORITY:
        for heading in element.find_all(heading_tag):
            if not accept(heading):
                continue
            text = text_of(heading)
            if text:
                return text, heading

    return "", None


# pick the text that most likely names the card
def find_title(element: Tag, markers: Iterable[str] = CARD_MARKERS) -> Tuple[str, Optional[Tag]]:
    """Large styled text wins over headings.

    A big numeral or label is usually what the reader calls the card, while a
    nested heading is often a generic caption. Only direct children and
    grandchildren are checked for large text.

    Text inside a nested card belongs to that card, so a section with its own
    <h2> never borrows the <h3> of a card it holds. An element with no title of
    its own (a Bootstrap .card around a .card-body) falls back to the nested one.
    """
    markers = tuple(markers)
    title, node = _title_from(element, lambda candidate: is_owned_by(candidate, element, markers))
    if node is not None:
        return title, node
    return _title_from(element, lambda candidate: True)


# score one candidate against the search text; pure, strings only
def score_candidate(search_text: str, title: str, full_text: str = "", first_child_text: str = "") -> int:
    search = normalize(search_text)
    if not search:
        return 0
    title = normalize(title)
    score = 0

    if title:
        if title == search:
            score = EXACT_TITLE_SCORE
        elif search in title:
            proximity = max(0, PROXIMITY_BONUS - PROXIMITY_PENALTY * abs(len(title) - len(search)))
            score = TITLE_CONTAINS_SCORE + proximity
        elif title in search:
            score = SEARCH_CONTAINS_TITLE_SCORE
        else:
            title_words = set(WORD_RE.findall(title))
            overlap = [word for word in WORD_RE.findall(search) if word in title_words]
            score = len(overlap) * WORD_OVERLAP_SCORE

    if score == 0 and search in normalize(full_text):
        score = FULL_TEXT_SCORE

    first_child = normalize(first_child_text)
    if first_child:
        if first_child == search:
            score += FIRST_CHILD_EXACT_BONUS
        elif search in first_child:
            score += FIRST_CHILD_CONTAINS_BONUS

    return score


# highest positive score wins; earlier entries win ties
def pick_best(scored: Iterable[Tuple[int, Any]]) -> Optional[Tuple[int, Any]]:
    best = None
    for score, item in scored:
        if score <= 0:
            continue
        if best is None or score > best[0]:
            best = (score, item)
    return best


def _candidate_for(element: Tag, markers: Iterable[str] = CARD_MARKERS) -> Candidate:
    title, title_element = find_title(element, markers)
    first_child = first_element_child(element)
    return Candidate(
        element=element,
        title=title,
        title_element=title_element,
        full_text=full_text_of(element),
        first_child_text=text_of(first_child) if first_child is not None else ""
    )


# collect card candidates in one document-order scan
def extract_candidates(document: ReportDocument, markers: Iterable[str] = CARD_MARKERS) -> List[Candidate]:
    markers = tuple(markers)
    forced: Set[int] = set()
    candidates = []

    for element in document.elements():
        if is_grid_wrapper(element):
            # the grid's styled children stand in for it
            for child in element_children(element):
                if child.has_attr("style") or child.has_attr("class"):
                    forced.add(id(child))
            continue

        if id(element) in forced or is_card_marker(element, markers):
            candidates.append(_candidate_for(element, markers))
        elif element.name in CONTAINER_TAGS and (has_direct_heading(element) or has_large_direct_child(element)):
            candidates.append(_candidate_for(element, markers))

    return candidates


# walk from a grid wrapper to the child that actually carries the title
def drill_down_grid(element: Tag, title: str) -> Tag:
    if not is_grid_wrapper(element):
        return element

    wanted = normalize(title)
    styled = [child for child in element_children(element) if child.has_attr("style") or child.has_attr("class")]
    for child in styled:
        if wanted and wanted in normalize(full_text_of(child)):
            return drill_down_grid(child, title)
    return element


# resolves free text to one card or section of a report
class ElementLocator:
    def __init__(self, card_markers: Iterable[str] = CARD_MARKERS):
        self.card_markers = tuple(card_markers)

    def candidates(self, document: ReportDocument) -> List[Candidate]:
        return extract_candidates(document, self.card_markers)

    # best matching card, or NotFoundError
    def find_card(self, document: ReportDocument, search_text: str) -> LocatedElement:
        candidates = self.candidates(document)
        scored = (
            (score_candidate(search_text, c.title, c.full_text, c.first_child_text), c)
            for c in candidates
        )
        best = pick_best(scored)
        if best is None:
            logger.info(f"No card matched '{search_text}' among {len(candidates)} candidates")
            raise NotFoundError(
                f"No element found matching '{search_text}'",
                context={"search_text": search_text}
            )

        score, candidate = best
        logger.info(f"✓ Matched '{search_text}' to <{candidate.element.name}> '{candidate.title}' (score {score})")
        return LocatedElement(
            element=candidate.element,
            title=candidate.title,
            title_element=candidate.title_element,
            score=score
        )

    # best matching section by its h2 title, or NotFoundError
    def find_section(self, document: ReportDocument, search_text: str) -> LocatedElement:
        scored = []
        for section in document.sections():
            heading = section.find("h2")
            title = text_of(heading) if heading is not None else ""
            first_child = first_element_child(section)
            score = score_candidate(
                search_text,
                title,
                full_text_of(section),
                text_of(first_child) if first_child is not None else ""
            )
            scored.append((score, (section, title, heading)))

        best = pick_best(scored)
        if best is None:
            raise NotFoundError(
                f"No section found matching '{search_text}'",
                context={"search_text": search_text}
            )
        score, (section, title, heading) = best
        return LocatedElement(element=section, title=title, title_element=heading, score=score)
