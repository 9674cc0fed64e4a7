"""
Canonical forms for selectors and at-rule parameters.
"""
from __future__ import annotations

import re
from typing import List, Tuple

WHITESPACE_RE = re.compile(r"\s+")
AT_RULE_RE = re.compile(r"@(-?[A-Za-z][\w-]*)\s*(.*)\Z", re.DOTALL)

# Media query heuristic, applied in this order on lowercased text.
LEADING_ONLY_RE = re.compile(r"^\s*only\s+")
LEADING_SCREEN_RE = re.compile(r"^\s*screen\s+")
LEADING_AND_RE = re.compile(r"^\s*and\s+")
INNER_SCREEN_RE = re.compile(r"\s+screen\s+")
INNER_ONLY_RE = re.compile(r"\s+only\s+")
AND_RE = re.compile(r"\s+and\s+")
DOUBLE_AND_RE = re.compile(r"\band\s+and\b")
PAREN_OPEN_RE = re.compile(r"\(\s+")
PAREN_CLOSE_RE = re.compile(r"\s+\)")
FEATURE_COLON_RE = re.compile(r"\s*:\s*")


def normalize_selector(selector: str) -> str:
    """Trim and collapse whitespace; case is significant for classes and ids."""
    return WHITESPACE_RE.sub(" ", selector).strip()


def normalize_at_rule_params(params: str) -> str:
    """
    Grouping key for media-query parameters.

    ``screen and (max-width: 768px)`` and ``(max-width:768px)`` share the key
    ``(max-width:768px)``. This is a textual heuristic, not media-query
    equivalence: the ``only`` and ``screen`` keywords are dropped wherever
    they appear, other media types are kept verbatim.
    """
    value = WHITESPACE_RE.sub(" ", params.lower())
    value = LEADING_ONLY_RE.sub("", value)
    value = LEADING_SCREEN_RE.sub("", value)
    value = LEADING_AND_RE.sub("", value)
    value = INNER_SCREEN_RE.sub(" ", value)
    value = INNER_ONLY_RE.sub(" ", value)
    value = AND_RE.sub(" and ", value)
    value = DOUBLE_AND_RE.sub("and", value)
    value = LEADING_AND_RE.sub("", value)
    value = PAREN_OPEN_RE.sub("(", value)
    value = PAREN_CLOSE_RE.sub(")", value)
    value = FEATURE_COLON_RE.sub(":", value)
    return value.strip()


def split_at_rule(prelude: str) -> Tuple[str, str]:
    """``'@media screen'`` -> ``('media', 'screen')``; non at-rules give ``('', prelude)``."""
    match = AT_RULE_RE.match(prelude.strip())
    if not match:
        return "", prelude.strip()
    return match.group(1).lower(), match.group(2).strip()


def split_selector_list(prelude: str) -> List[str]:
    """
    Split a selector list on top-level commas.

    Commas inside ``()``, ``[]`` or quotes are not split points, and escaped
    characters are copied through untouched.
    """
    parts: List[str] = []
    buf: List[str] = []
    depth_paren = depth_bracket = 0
    in_str = None
    i = 0
    while i < len(prelude):
        ch = prelude[i]
        if ch == "\\":
            buf.append(prelude[i:i + 2])
            i += 2
            continue
        if in_str:
            buf.append(ch)
            if ch == in_str:
                in_str = None
            i += 1
            continue
        if ch in ("\"", "'"):
            in_str = ch
        elif ch == "(":
            depth_paren += 1
        elif ch == ")":
            depth_paren = max(0, depth_paren - 1)
        elif ch == "[":
            depth_bracket += 1
        elif ch == "]":
            depth_bracket = max(0, depth_bracket - 1)
        if ch == "," and depth_paren == 0 and depth_bracket == 0:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    parts.append("".join(buf))
    return [normalize_selector(part) for part in parts if part.strip()]
