"""
CSS rule-partitioning and duplicate at-rule engine.

Pure, synchronous functions with no Django dependency: tokenize a
stylesheet, build usage or critical sets, partition blocks into kept and
dropped, and merge duplicate media queries.
"""
from .blocks import Block, BlockKind, MalformedBlock, strip_comments, tokenize
from .combiner import CombinedAtRule, CombineResult, combine
from .critical import CriticalSet, build_critical_set
from .matcher import is_used, selector_parts
from .normalize import (
    normalize_at_rule_params,
    normalize_selector,
    split_at_rule,
    split_selector_list,
)
from .partition import PartitionResult, count_rules, partition, removed_selectors
from .policy import CriticalWindow, MatchPolicy, compile_safelist
from .render import inline_critical_css, render
from .usage import (
    ComponentScriptExtractor,
    Document,
    DocumentKind,
    MarkupExtractor,
    UsageSet,
    UtilityMarkupExtractor,
    build_usage_set,
    detect_utility_framework,
)

__all__ = [
    'Block',
    'BlockKind',
    'MalformedBlock',
    'strip_comments',
    'tokenize',
    'CombinedAtRule',
    'CombineResult',
    'combine',
    'CriticalSet',
    'build_critical_set',
    'is_used',
    'selector_parts',
    'normalize_at_rule_params',
    'normalize_selector',
    'split_at_rule',
    'split_selector_list',
    'PartitionResult',
    'count_rules',
    'partition',
    'removed_selectors',
    'CriticalWindow',
    'MatchPolicy',
    'compile_safelist',
    'inline_critical_css',
    'render',
    'ComponentScriptExtractor',
    'Document',
    'DocumentKind',
    'MarkupExtractor',
    'UsageSet',
    'UtilityMarkupExtractor',
    'build_usage_set',
    'detect_utility_framework',
]
