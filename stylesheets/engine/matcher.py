"""
Decides whether a block is used.

Each top-level candidate of a selector list is tried under a fixed
precedence: usage (or critical set), safelist, custom properties, pseudo
selectors. Compound selectors are judged part by part: ``.nav .item`` is
used when ``.nav`` *or* ``.item`` is referenced. The heuristic over-keeps
descendant rules and under-keeps compounds such as ``div.item``; both are
known and accepted.
"""
from __future__ import annotations

import re
from typing import List, Tuple, Union

from .blocks import Block
from .critical import CriticalSet
from .normalize import split_selector_list
from .policy import MatchPolicy
from .usage import UsageSet

GROUPING_AT_RULES = frozenset({"media", "supports", "container", "layer", "document", "-moz-document", "scope"})

COMBINATOR_RE = re.compile(r"\s*[>+~]\s*|\s+")
HEX_ESCAPE_RE = re.compile(r"\\([0-9a-fA-F]{1,6})\s?")
CHAR_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
CUSTOM_PROPERTY_RE = re.compile(r"(?:^|[;{\s])--[\w-]+\s*:")

Source = Union[UsageSet, CriticalSet]


def strip_pseudo(selector: str) -> Tuple[str, bool]:
    """
    Remove pseudo-class/element suffixes and attribute selectors.

    Returns the remaining text and whether any pseudo token was present.
    Parenthesised arguments (``:not(.a, .b)``) go with their pseudo.
    """
    out: List[str] = []
    had_pseudo = False
    i, n = 0, len(selector)
    while i < n:
        ch = selector[i]
        if ch == "\\":
            out.append(selector[i:i + 2])
            i += 2
        elif ch == "[":
            i = _skip_bracket(selector, i)
        elif ch == ":":
            had_pseudo = True
            i += 1
            while i < n and (selector[i] == ":" or selector[i] == "-" or selector[i].isalnum() or selector[i] == "_"):
                i += 1
            if i < n and selector[i] == "(":
                i = _skip_parens(selector, i)
        else:
            out.append(ch)
            i += 1
    return "".join(out), had_pseudo


def _skip_bracket(selector: str, i: int) -> int:
    quote = None
    i += 1
    while i < len(selector):
        ch = selector[i]
        if ch == "\\":
            i += 2
            continue
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("\"", "'"):
            quote = ch
        elif ch == "]":
            return i + 1
        i += 1
    return i


def _skip_parens(selector: str, i: int) -> int:
    depth = 0
    while i < len(selector):
        ch = selector[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return i


def unescape(part: str) -> str:
    part = HEX_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), part)
    return CHAR_ESCAPE_RE.sub(r"\1", part)


def selector_parts(selector: str) -> List[str]:
    """Unescaped compound parts of one selector, pseudo tokens removed."""
    stripped, _ = strip_pseudo(selector)
    parts = []
    for part in COMBINATOR_RE.split(stripped.strip()):
        if not part:
            continue
        part = unescape(part)
        if not part.startswith((".", "#")):
            part = part.lower()
        parts.append(part)
    return parts


def has_pseudo(selector: str) -> bool:
    return strip_pseudo(selector)[1]


def declares_custom_property(block: Block) -> bool:
    return bool(CUSTOM_PROPERTY_RE.search(block.body_text))


def _matches_usage(selector: str, usage: UsageSet) -> bool:
    tokens = usage.selector_tokens
    for part in selector_parts(selector):
        if part == "*":
            if not usage.is_empty():
                return True
        elif part in tokens:
            return True
    return False


def _matches_source(selector: str, source: Source) -> bool:
    if isinstance(source, CriticalSet):
        return source.matches(selector)
    return _matches_usage(selector, source)


def candidate_is_used(selector: str, block: Block, source: Source, policy: MatchPolicy) -> bool:
    if _matches_source(selector, source):
        return True
    if policy.is_safelisted(selector):
        return True
    if policy.preserve_variables and (selector == ":root" or declares_custom_property(block)):
        return True
    if policy.preserve_pseudo and has_pseudo(selector):
        return True
    return False


def is_grouping(block: Block) -> bool:
    return block.is_at_rule and block.at_keyword in GROUPING_AT_RULES and block.has_children


def is_used(block: Block, source: Source, policy: MatchPolicy) -> bool:
    """
    True when ``block`` must be kept under ``source`` and ``policy``.

    Grouping at-rules are used when any nested block is; every other at-rule
    is always used.
    """
    if not isinstance(block, Block):
        raise TypeError(f"is_used() expects a Block, got {type(block).__name__}")
    if not isinstance(source, (UsageSet, CriticalSet)):
        raise TypeError(f"is_used() expects a UsageSet or CriticalSet, got {type(source).__name__}")
    if not isinstance(policy, MatchPolicy):
        raise TypeError(f"is_used() expects a MatchPolicy, got {type(policy).__name__}")

    if block.is_at_rule:
        if is_grouping(block):
            return any(is_used(child, source, policy) for child in block.children)
        return True
    return any(
        candidate_is_used(selector, block, source, policy)
        for selector in split_selector_list(block.prelude)
    )
