"""
Partitioner: splits top-level blocks into kept and dropped sequences.
"""
from __future__ import annotations

from typing import Iterable, List, NamedTuple, Tuple

from .blocks import Block
from .matcher import Source, is_grouping, is_used
from .normalize import split_selector_list
from .policy import MatchPolicy


class PartitionResult(NamedTuple):
    """
    Attributes:
        kept: Used top-level blocks in source order. A grouping at-rule with
            some unused nested rules appears here rebuilt around its used
            ones only.
        dropped: Unused top-level blocks in source order.
        pruned: For each partly used grouping at-rule, a copy holding only
            the nested rules that were cut. Not counted in ``kept`` or
            ``dropped``.
    """

    kept: List[Block]
    dropped: List[Block]
    pruned: List[Block]


def _split_children(block: Block, source: Source, policy: MatchPolicy) -> Tuple[List[Block], List[Block]]:
    used: List[Block] = []
    unused: List[Block] = []
    for child in block.children:
        if is_grouping(child):
            child_used, child_unused = _split_children(child, source, policy)
            if child_used:
                used.append(child if not child_unused else child.with_children(child_used))
            if child_unused:
                unused.append(child if not child_used else child.with_children(child_unused))
        elif is_used(child, source, policy):
            used.append(child)
        else:
            unused.append(child)
    return used, unused


def partition(blocks: Iterable[Block], source: Source, policy: MatchPolicy) -> PartitionResult:
    """
    Classify each top-level block as kept or dropped, keeping source order.

    With an empty UsageSet every rule that is not safelisted or preserved by
    policy lands in ``dropped``; callers must not purge without content.
    """
    kept: List[Block] = []
    dropped: List[Block] = []
    pruned: List[Block] = []
    for block in blocks:
        if not isinstance(block, Block):
            raise TypeError(f"partition() expects Blocks, got {type(block).__name__}")
        if is_grouping(block):
            used, unused = _split_children(block, source, policy)
            if not used:
                dropped.append(block)
            elif not unused:
                kept.append(block)
            else:
                kept.append(block.with_children(used))
                pruned.append(block.with_children(unused))
        elif is_used(block, source, policy):
            kept.append(block)
        else:
            dropped.append(block)
    return PartitionResult(kept=kept, dropped=dropped, pruned=pruned)


def removed_selectors(result: PartitionResult) -> List[str]:
    """Distinct selectors of every dropped or pruned rule, first seen first."""
    seen = {}
    for block in sorted(result.dropped + result.pruned, key=lambda b: b.source_order):
        for rule in block.iter_rules():
            for selector in split_selector_list(rule.prelude):
                seen.setdefault(selector, None)
    return list(seen)


def count_rules(blocks: Iterable[Block]) -> int:
    """Rules inside grouping at-rules count individually, other blocks count once."""
    total = 0
    for block in blocks:
        if is_grouping(block):
            total += count_rules(block.children)
        else:
            total += 1
    return total
