"""
Brace-aware CSS tokenizer.

Splits a stylesheet into an ordered sequence of top-level ``Block`` objects.
Plain rules end at the first closing brace; at-rules end where the brace
depth returns to zero and are tokenized recursively when their body holds
further ``{...}`` pairs. Malformed constructs are dropped with a warning,
the tokenizer itself never raises on bad input.
"""
from __future__ import annotations

import enum
import itertools
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# Not string-literal aware: a "/*" inside a quoted value starts a comment too.
COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
BRACE_RE = re.compile(r"[{}]")
SEMICOLON_RE = re.compile(r";")
AT_KEYWORD_RE = re.compile(r"@(-?[A-Za-z][\w-]*)")

EXCERPT_LENGTH = 40


class BlockKind(enum.Enum):
    RULE = "rule"
    AT_RULE = "at-rule"


@dataclass(frozen=True)
class Block:
    """
    One parsed CSS construct.

    Attributes:
        kind: Rule or at-rule.
        prelude: Selector list or ``@name params`` text, stripped.
        body: Declaration text for rules and leaf at-rules, a tuple of nested
            blocks for at-rules that wrap other blocks.
        source_order: Position in document order, parents before children.
        raw_text: Source text of the whole construct (comments removed).
    """

    kind: BlockKind
    prelude: str
    body: Union[str, Tuple["Block", ...]]
    source_order: int
    raw_text: str

    @property
    def is_rule(self) -> bool:
        return self.kind is BlockKind.RULE

    @property
    def is_at_rule(self) -> bool:
        return self.kind is BlockKind.AT_RULE

    @property
    def children(self) -> Tuple["Block", ...]:
        if isinstance(self.body, tuple):
            return self.body
        return ()

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def is_statement(self) -> bool:
        """``@import url(x);`` style at-rules that carry no block."""
        return self.is_at_rule and not self.raw_text.rstrip().endswith("}")

    @property
    def at_keyword(self) -> Optional[str]:
        if not self.is_at_rule:
            return None
        match = AT_KEYWORD_RE.match(self.prelude)
        return match.group(1).lower() if match else ""

    @property
    def body_text(self) -> str:
        """Inner text between the outer braces, for any block shape."""
        if isinstance(self.body, str):
            return self.body
        start = self.raw_text.find("{")
        end = self.raw_text.rfind("}")
        if start == -1 or end <= start:
            return ""
        return self.raw_text[start + 1:end]

    def with_children(self, children) -> "Block":
        """Copy of this at-rule wrapping only ``children``; raw text is rebuilt."""
        children = tuple(children)
        inner = "\n".join(child.raw_text for child in children)
        return replace(self, body=children, raw_text=f"{self.prelude} {{\n{inner}\n}}")

    def iter_rules(self) -> Iterator["Block"]:
        """Yield this block (if a rule) or every rule nested inside it."""
        if self.is_rule:
            yield self
            return
        for child in self.children:
            yield from child.iter_rules()


@dataclass(frozen=True)
class MalformedBlock:
    """Record of a construct the tokenizer dropped."""

    offset: int
    reason: str
    excerpt: str = field(default="")

    def __str__(self) -> str:
        return f"{self.reason} at offset {self.offset}: {self.excerpt!r}"


def strip_comments(css: str) -> str:
    return COMMENT_RE.sub("", css)


def _is_escaped(text: str, index: int) -> bool:
    backslashes = 0
    index -= 1
    while index >= 0 and text[index] == "\\":
        backslashes += 1
        index -= 1
    return backslashes % 2 == 1


def _match_braces(text: str) -> Dict[int, int]:
    """
    Pair every unescaped ``{`` with its ``}`` in a single pass.

    Uses an explicit stack of open positions; opens left unmatched at the end
    of the text are absent from the result.
    """
    pairs: Dict[int, int] = {}
    stack: List[int] = []
    for index, char in enumerate(text):
        if char not in "{}" or _is_escaped(text, index):
            continue
        if char == "{":
            stack.append(index)
        elif stack:
            pairs[stack.pop()] = index
    return pairs


class _Tokenizer:
    def __init__(self, text: str, issues: Optional[List[MalformedBlock]]):
        self.text = text
        self.issues = issues
        self.pairs = _match_braces(text)
        self.counter = itertools.count()

    def warn(self, offset: int, reason: str) -> None:
        excerpt = " ".join(self.text[offset:offset + EXCERPT_LENGTH].split())
        issue = MalformedBlock(offset=offset, reason=reason, excerpt=excerpt)
        logger.warning("Dropped malformed CSS: %s", issue)
        if self.issues is not None:
            self.issues.append(issue)

    def find(self, chars: str, pos: int, end: int) -> int:
        """Index of the first unescaped character out of ``chars``, or -1."""
        pattern = BRACE_RE if chars == "{}" else SEMICOLON_RE
        while True:
            match = pattern.search(self.text, pos, end)
            if match is None:
                return -1
            if not _is_escaped(self.text, match.start()):
                return match.start()
            pos = match.end()

    def opens_block(self, start: int, end: int) -> bool:
        for match in BRACE_RE.finditer(self.text, start, end):
            if match.group() == "{" and not _is_escaped(self.text, match.start()):
                return True
        return False

    def statements(self, pos: int, end: int, result: List[Block]) -> int:
        """
        Emit body-less at-rules (``@import ...;``) that open the text at
        ``pos``; returns the position after the last one.
        """
        text = self.text
        while True:
            segment = text[pos:end]
            stripped = segment.lstrip()
            if not stripped.startswith("@"):
                return pos
            semicolon = self.find(";", pos, end)
            if semicolon == -1:
                return pos
            block_start = pos + len(segment) - len(stripped)
            result.append(Block(
                kind=BlockKind.AT_RULE,
                prelude=text[block_start:semicolon].strip(),
                body="",
                source_order=next(self.counter),
                raw_text=text[block_start:semicolon + 1],
            ))
            pos = semicolon + 1

    def blocks(self, start: int, end: int) -> List[Block]:
        text = self.text
        result: List[Block] = []
        pos = start
        while pos < end:
            delim_at = self.find("{}", pos, end)
            pos = self.statements(pos, delim_at if delim_at != -1 else end, result)
            if delim_at == -1:
                if text[pos:end].strip():
                    self.warn(pos, "trailing text without a block")
                break

            if text[delim_at] == "}":
                self.warn(delim_at, "dangling closing brace")
                pos = delim_at + 1
                continue

            prelude_src = text[pos:delim_at]
            prelude = prelude_src.strip()
            block_start = pos + len(prelude_src) - len(prelude_src.lstrip())

            if prelude.startswith("@"):
                close = self.pairs.get(delim_at)
                if close is None or close >= end:
                    self.warn(block_start, "unterminated at-rule")
                    break
                pos = close + 1
                result.append(self.at_rule(prelude, block_start, delim_at, close))
                continue

            close = self.find("{}", delim_at + 1, end)
            if close == -1:
                self.warn(block_start, "unterminated rule")
                break
            if text[close] == "{":
                # Plain rules do not nest: drop up to the matching brace.
                self.warn(block_start, "nested block inside a plain rule")
                close = self.pairs.get(delim_at)
                if close is None or close >= end:
                    break
                pos = close + 1
                continue
            pos = close + 1
            if not prelude:
                continue
            result.append(Block(
                kind=BlockKind.RULE,
                prelude=prelude,
                body=text[delim_at + 1:close],
                source_order=next(self.counter),
                raw_text=text[block_start:close + 1],
            ))
        return result

    def at_rule(self, prelude: str, block_start: int, open_at: int, close_at: int) -> Block:
        order = next(self.counter)
        inner = self.text[open_at + 1:close_at]
        raw = self.text[block_start:close_at + 1]
        body: Union[str, Tuple[Block, ...]] = inner
        if self.opens_block(open_at + 1, close_at):
            body = tuple(self.blocks(open_at + 1, close_at))
        return Block(
            kind=BlockKind.AT_RULE,
            prelude=prelude,
            body=body,
            source_order=order,
            raw_text=raw,
        )


def tokenize(css: str, issues: Optional[List[MalformedBlock]] = None) -> List[Block]:
    """
    Split ``css`` into top-level blocks.

    ``issues``, when given, receives a ``MalformedBlock`` for every construct
    that was dropped. Empty or comment-only input yields an empty list.
    """
    if not isinstance(css, str):
        raise TypeError(f"tokenize() expects str, got {type(css).__name__}")
    text = strip_comments(css)
    tokenizer = _Tokenizer(text, issues)
    return tokenizer.blocks(0, len(text))
