"""
Merges top-level ``@media`` blocks that share a normalized parameter key.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .blocks import Block
from .normalize import normalize_at_rule_params, split_at_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CombinedAtRule:
    normalized_key: str
    representative_prelude: str
    merged_body: str
    occurrence_count: int


class CombineResult(NamedTuple):
    blocks: List[Block]
    merged_count: int
    groups: List[CombinedAtRule]


def media_key(block: Block) -> Optional[str]:
    """Grouping key of a top-level ``@media`` block, ``None`` for anything else."""
    if not isinstance(block, Block):
        raise TypeError(f"combine() expects Blocks, got {type(block).__name__}")
    if not block.is_at_rule or block.is_statement or block.at_keyword != "media":
        return None
    _, params = split_at_rule(block.prelude)
    return normalize_at_rule_params(params)


def _merge(occurrences: List[Block], key: str) -> Tuple[Block, CombinedAtRule]:
    first = occurrences[0]
    bodies: List[str] = []
    children: List[Block] = []
    all_nested = True
    for block in occurrences:
        text = block.body_text.strip()
        if text in bodies:
            continue
        bodies.append(text)
        children.extend(block.children)
        all_nested = all_nested and block.has_children
    merged_body = "\n".join(bodies)
    combined = Block(
        kind=first.kind,
        prelude=first.prelude,
        body=tuple(children) if all_nested else merged_body,
        source_order=first.source_order,
        raw_text=f"{first.prelude} {{\n{merged_body}\n}}",
    )
    record = CombinedAtRule(
        normalized_key=key,
        representative_prelude=first.prelude,
        merged_body=merged_body,
        occurrence_count=len(occurrences),
    )
    return combined, record


def combine(blocks: Iterable[Block]) -> CombineResult:
    """
    Merge duplicate media queries in first-seen order.

    Byte-identical bodies are kept once. The merged block sits where the
    first occurrence was and keeps its original prelude; ``merged_count``
    is the number of occurrences removed.
    """
    blocks = list(blocks)
    grouped: Dict[str, List[Block]] = {}
    for block in blocks:
        key = media_key(block)
        if key is not None:
            grouped.setdefault(key, []).append(block)

    result: List[Block] = []
    groups: List[CombinedAtRule] = []
    merged_count = 0
    for block in blocks:
        key = media_key(block)
        occurrences = grouped.get(key) if key is not None else None
        if not occurrences or len(occurrences) == 1:
            result.append(block)
            continue
        if block is not occurrences[0]:
            continue
        combined, record = _merge(occurrences, key)
        result.append(combined)
        groups.append(record)
        merged_count += record.occurrence_count - 1
        logger.debug("Merged %d x @media %s", record.occurrence_count, key)
    return CombineResult(blocks=result, merged_count=merged_count, groups=groups)
