"""
Turns blocks back into CSS text and inlines critical CSS into pages.
"""
from __future__ import annotations

import re
from typing import Iterable

from .blocks import Block

HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
HEAD_OPEN_RE = re.compile(r"<head(?:\s[^>]*)?>", re.IGNORECASE)
STYLE_CLOSE_RE = re.compile(r"</(style)", re.IGNORECASE)


def render(blocks: Iterable[Block], separator: str = "\n\n") -> str:
    """Join the raw text of ``blocks``; formatting is left to external tools."""
    return separator.join(block.raw_text.strip() for block in blocks)


def style_tag(css: str) -> str:
    # A closing tag inside the stylesheet would end the element early.
    css = STYLE_CLOSE_RE.sub(r"<\\/\1", css)
    return f"<style>\n{css}\n</style>"


def inline_critical_css(html: str, css: str) -> str:
    """
    Place ``css`` in a ``<style>`` element inside the page head.

    Inserted before ``</head>``; if the head is never closed, right after the
    ``<head>`` tag; without any head, a new one is prepended.
    """
    if not css.strip():
        return html
    tag = style_tag(css)
    match = HEAD_CLOSE_RE.search(html)
    if match:
        return f"{html[:match.start()]}{tag}\n{html[match.start():]}"
    match = HEAD_OPEN_RE.search(html)
    if match:
        return f"{html[:match.end()]}\n{tag}{html[match.end():]}"
    return f"<head>\n{tag}\n</head>\n{html}"
