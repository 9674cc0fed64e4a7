"""
Above-the-fold selector candidates derived from element order in a page.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Iterable, List, NamedTuple, Optional, Tuple

from .normalize import normalize_selector
from .policy import MatchPolicy

logger = logging.getLogger(__name__)

LANDMARK_TAGS = frozenset({"header", "nav", "main"})


class Element(NamedTuple):
    tag: str
    classes: Tuple[str, ...]
    id: Optional[str]


class _BodyElementParser(HTMLParser):
    """Collects start tags that appear after ``<body``, in document order."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.in_body = False
        self.done = False
        self.elements: List[Element] = []

    def handle_starttag(self, tag, attrs):
        if self.done:
            return
        if tag == "body":
            self.in_body = True
            return
        if not self.in_body:
            return
        classes: Tuple[str, ...] = ()
        element_id = None
        for name, value in attrs:
            if name == "class" and value:
                classes = tuple(value.split())
            elif name == "id" and value and value.strip():
                element_id = value.strip()
        self.elements.append(Element(tag=tag, classes=classes, id=element_id))

    def handle_startendtag(self, tag, attrs):
        self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag):
        if tag == "body":
            self.done = True


def body_elements(markup: str) -> List[Element]:
    parser = _BodyElementParser()
    parser.feed(markup)
    parser.close()
    return parser.elements


@dataclass(frozen=True)
class CriticalSet:
    """
    Ordered, de-duplicated candidate selectors for one page.

    Matching is textual: a selector matches on exact equality with a
    candidate, or when neither contains whitespace, when one is a prefix of
    the other (``.header`` matches ``.header-title``).
    """

    selectors: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.selectors)

    def __iter__(self):
        return iter(self.selectors)

    def __contains__(self, selector) -> bool:
        return selector in self.selectors

    def matches(self, selector: str) -> bool:
        selector = normalize_selector(selector)
        if not selector:
            return False
        simple = " " not in selector
        for candidate in self.selectors:
            if selector == candidate:
                return True
            if simple and " " not in candidate:
                if selector.startswith(candidate) or candidate.startswith(selector):
                    return True
        return False


def build_critical_set(
    markup: str, policy: MatchPolicy, extra_selectors: Iterable[str] = ()
) -> CriticalSet:
    """
    Walk the elements after ``<body`` and collect positional candidates.

    The first ``tag_n`` elements contribute their tag and ``tag.class``
    compounds; the first ``class_n`` elements, and any header/nav/main
    element, contribute ``.class`` and ``#id``. Denylisted class names are
    skipped everywhere. ``extra_selectors`` come first, in the given order.
    """
    if not isinstance(markup, str):
        raise TypeError(f"build_critical_set() expects str markup, got {type(markup).__name__}")
    window = policy.critical_window
    denylist = policy.critical_denylist
    ordered = {}

    def add(selector: str) -> None:
        selector = normalize_selector(selector)
        if selector:
            ordered.setdefault(selector, None)

    for selector in extra_selectors:
        add(selector)

    for index, element in enumerate(body_elements(markup)):
        classes = [cls for cls in element.classes if cls not in denylist]
        if index < window.tag_n:
            add(element.tag)
            for cls in classes:
                add(f"{element.tag}.{cls}")
        if index < window.class_n or element.tag in LANDMARK_TAGS:
            for cls in classes:
                add(f".{cls}")
            if element.id:
                add(f"#{element.id}")

    logger.debug("Critical set holds %d selectors", len(ordered))
    return CriticalSet(selectors=tuple(ordered))
