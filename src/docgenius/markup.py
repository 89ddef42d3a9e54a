# markup index over generated report html, backed by beautifulsoup
from typing import List, Dict, Optional, Callable, Union
import logging

from bs4 import BeautifulSoup
from bs4.element import Tag, NavigableString, PageElement

from .models import SectionInfo

logger = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

Markup = Union[str, PageElement]


# parse a style attribute into an ordered property -> value mapping
def parse_style(style: Optional[str]) -> Dict[str, str]:
    """Split a style attribute on top-level semicolons.

    Semicolons inside parentheses or quotes (data urls, font lists) are kept
    with their declaration. A repeated property keeps its first position and
    its last value, which is how the browser resolves it.
    """
    declarations = []
    current = []
    depth = 0
    quote = None

    for char in style or "":
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")" and depth > 0:
            depth -= 1
        elif char == ";" and depth == 0:
            declarations.append("".join(current))
            current = []
            continue
        current.append(char)
    declarations.append("".join(current))

    styles: Dict[str, str] = {}
    for declaration in declarations:
        if ":" not in declaration:
            continue
        name, value = declaration.split(":", 1)
        name = name.strip().lower()
        value = value.strip()
        if not name or not value:
            continue
        styles[name] = value
    return styles


# turn a style mapping back into an attribute string
def serialize_style(styles: Dict[str, str]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in styles.items())


# read an element's inline styles
def get_style_map(element: Tag) -> Dict[str, str]:
    return parse_style(element.get("style"))


# write an element's inline styles, dropping the attribute when empty
def set_style_map(element: Tag, styles: Dict[str, str]) -> None:
    if styles:
        element["style"] = serialize_style(styles)
    elif element.has_attr("style"):
        del element["style"]


# visible text with whitespace collapsed, inline markup joined as written
def text_of(element: PageElement) -> str:
    if element is None:
        return ""
    if isinstance(element, NavigableString):
        return " ".join(str(element).split())
    return " ".join(element.get_text().split())


# visible text where block children are separated by spaces
def full_text_of(element: Tag) -> str:
    if element is None:
        return ""
    return " ".join(element.get_text(" ").split())


def inner_html(element: Tag) -> str:
    return element.decode_contents()


def outer_html(element: Tag) -> str:
    return str(element)


# class attribute as one string, whatever the parser stored
def class_string(element: Tag) -> str:
    classes = element.get("class")
    if not classes:
        return ""
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


# direct element children, skipping text and comments
def element_children(element: Tag) -> List[Tag]:
    return [child for child in element.children if isinstance(child, Tag)]


# first direct element child or none
def first_element_child(element: Tag) -> Optional[Tag]:
    for child in element.children:
        if isinstance(child, Tag):
            return child
    return None


# walk up from element to the nearest ancestor accepted by predicate
def closest(element: Tag, predicate: Callable[[Tag], bool], include_self: bool = True) -> Optional[Tag]:
    node = element if include_self else element.parent
    while node is not None and isinstance(node, Tag):
        if node.name != "[document]" and predicate(node):
            return node
        node = node.parent
    return None


# parse a markup snippet into detached nodes ready to insert
def parse_fragment(markup: str) -> List[PageElement]:
    fragment = BeautifulSoup(markup or "", "html.parser")
    return [node.extract() for node in list(fragment.contents)]


def _as_nodes(markup: Markup) -> List[PageElement]:
    if isinstance(markup, PageElement):
        return [markup]
    return parse_fragment(markup)


# a report loaded into a mutable, queryable tree
class ReportDocument:
    """Mutable view of one report.

    Each request builds its own instance from the incoming string, so nothing
    here is shared between requests. Parsing is lenient and never raises on
    malformed markup.
    """

    def __init__(self, html: str):
        self.source = html or ""
        self.soup = BeautifulSoup(self.source, "html.parser")

    # serialize the whole tree back to a string
    def serialize(self) -> str:
        return str(self.soup)

    # all elements with the given tag name, in document order
    def find_all(self, tag: Union[str, tuple, list]) -> List[Tag]:
        if isinstance(tag, tuple):
            tag = list(tag)
        return self.soup.find_all(tag)

    # every element in document order
    def elements(self) -> List[Tag]:
        return self.soup.find_all(True)

    # css selector query, empty on an unsupported selector
    def select(self, selector: str) -> List[Tag]:
        try:
            return self.soup.select(selector)
        except Exception as e:
            logger.warning(f"Unsupported selector '{selector}': {str(e)}")
            return []

    # elements whose attribute contains the given substring
    def find_by_attribute(self, attribute: str, substring: str, tag: Union[str, bool] = True) -> List[Tag]:
        needle = substring.lower()
        matches = []
        for element in self.soup.find_all(tag):
            value = element.get(attribute)
            if value is None:
                continue
            if isinstance(value, list):
                value = " ".join(value)
            if needle in value.lower():
                matches.append(element)
        return matches

    # first element of the given tag or none
    def first(self, tag: str) -> Optional[Tag]:
        return self.soup.find(tag)

    # the report's sections in document order
    def sections(self) -> List[Tag]:
        return self.soup.find_all("section")

    # index, id and title of every section, used as edit context
    def section_infos(self) -> List[SectionInfo]:
        infos = []
        for index, section in enumerate(self.sections()):
            heading = section.find("h2")
            infos.append(SectionInfo(
                index=index,
                id=section.get("id", "") or "",
                title=text_of(heading) if heading else ""
            ))
        return infos

    # the head element, created when the report has none
    def ensure_head(self) -> Tag:
        head = self.soup.find("head")
        if head is not None:
            return head
        head = self.soup.new_tag("head")
        html = self.soup.find("html")
        if html is not None:
            html.insert(0, head)
        else:
            self.soup.insert(0, head)
        return head

    def new_tag(self, name: str, **attrs) -> Tag:
        return self.soup.new_tag(name, attrs=attrs)

    # structural edits; all return the inserted nodes
    def insert_before(self, target: Tag, markup: Markup) -> List[PageElement]:
        nodes = _as_nodes(markup)
        for node in nodes:
            target.insert_before(node)
        return nodes

    def insert_after(self, target: Tag, markup: Markup) -> List[PageElement]:
        nodes = _as_nodes(markup)
        anchor = target
        for node in nodes:
            anchor.insert_after(node)
            anchor = node
        return nodes

    def prepend(self, target: Tag, markup: Markup) -> List[PageElement]:
        nodes = _as_nodes(markup)
        for offset, node in enumerate(nodes):
            target.insert(offset, node)
        return nodes

    def append(self, target: Tag, markup: Markup) -> List[PageElement]:
        nodes = _as_nodes(markup)
        for node in nodes:
            target.append(node)
        return nodes

    # remove an element and everything below it
    def remove(self, target: Tag) -> None:
        target.decompose()

    # swap an element for new markup
    def replace(self, target: Tag, markup: Markup) -> List[PageElement]:
        nodes = _as_nodes(markup)
        if not nodes:
            target.decompose()
            return []
        target.replace_with(*nodes)
        return nodes

    # replace everything inside an element, keeping the element itself
    def replace_contents(self, target: Tag, markup: Markup) -> List[PageElement]:
        target.clear()
        return self.append(target, markup)

    def get_attr(self, target: Tag, name: str) -> Optional[str]:
        value = target.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def set_attr(self, target: Tag, name: str, value: Optional[str]) -> None:
        if value is None:
            if target.has_attr(name):
                del target[name]
            return
        target[name] = value
