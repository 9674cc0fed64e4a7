"""
Partitioner behaviour: ordering, conservation, idempotence and pruning.
"""
from __future__ import annotations

import re

from django.test import SimpleTestCase

from stylesheets.engine import (
    MatchPolicy,
    UsageSet,
    count_rules,
    partition,
    removed_selectors,
    render,
    tokenize,
)

MIXED_SHEET = """
@charset "utf-8";
:root{--brand:#111}
.header{color:red}
.unused{color:blue}
@media (max-width:600px){.header{font-size:12px}.ghost{display:none}}
@media print{.ghost{display:none}}
@font-face{font-family:Inter;src:url(inter.woff2)}
.link:hover{color:green}
#main, .orphan{margin:0}
"""


class PartitionScenarioTests(SimpleTestCase):
    def test_unreferenced_rule_is_dropped(self):
        result = partition(tokenize(".a{color:red}.b{color:blue}"), UsageSet(classes=frozenset({"a"})), MatchPolicy())

        self.assertEqual([b.raw_text for b in result.kept], [".a{color:red}"])
        self.assertEqual([b.raw_text for b in result.dropped], [".b{color:blue}"])

    def test_variables_survive_empty_usage(self):
        result = partition(tokenize(":root{--x:1}.unused{color:red}"), UsageSet(), MatchPolicy(preserve_variables=True))

        self.assertEqual([b.raw_text for b in result.kept], [":root{--x:1}"])
        self.assertEqual([b.prelude for b in result.dropped], [".unused"])

    def test_pseudo_rule_survives_empty_usage(self):
        result = partition(tokenize(".a:hover{color:red}"), UsageSet(), MatchPolicy(preserve_pseudo=True))

        self.assertEqual(len(result.kept), 1)
        self.assertEqual(result.dropped, [])

    def test_safelist_pattern_survives_empty_usage(self):
        policy = MatchPolicy(safelist=(re.compile(r"keep-"),))

        result = partition(tokenize(".keep-me{color:green}"), UsageSet(), policy)

        self.assertEqual([b.prelude for b in result.kept], [".keep-me"])

    def test_empty_input(self):
        result = partition([], UsageSet(), MatchPolicy())

        self.assertEqual(result, ([], [], []))


class PartitionPropertyTests(SimpleTestCase):
    def setUp(self):
        self.blocks = tokenize(MIXED_SHEET)
        self.usage = UsageSet(classes=frozenset({"header"}), ids=frozenset({"main"}))
        self.policy = MatchPolicy()

    def test_conservation(self):
        result = partition(self.blocks, self.usage, self.policy)

        self.assertEqual(len(result.kept) + len(result.dropped), len(self.blocks))

    def test_order_is_preserved(self):
        result = partition(self.blocks, self.usage, self.policy)

        for sequence in (result.kept, result.dropped):
            orders = [b.source_order for b in sequence]
            self.assertEqual(orders, sorted(orders))

    def test_idempotence(self):
        first = partition(self.blocks, self.usage, self.policy)
        second = partition(first.kept, self.usage, self.policy)

        self.assertEqual(second.dropped, [])
        self.assertEqual(second.pruned, [])
        self.assertEqual(second.kept, first.kept)

    def test_classification(self):
        result = partition(self.blocks, self.usage, self.policy)

        self.assertEqual(
            [b.prelude for b in result.kept],
            [
                '@charset "utf-8"',
                ":root",
                ".header",
                "@media (max-width:600px)",
                "@font-face",
                ".link:hover",
                "#main, .orphan",
            ],
        )
        self.assertEqual([b.prelude for b in result.dropped], [".unused", "@media print"])

    def test_partly_used_media_is_pruned(self):
        result = partition(self.blocks, self.usage, self.policy)

        media = result.kept[3]
        self.assertEqual([c.prelude for c in media.children], [".header"])
        self.assertNotIn(".ghost", media.raw_text)
        self.assertEqual(len(result.pruned), 1)
        self.assertEqual([c.prelude for c in result.pruned[0].children], [".ghost"])

    def test_removed_selectors_and_counts(self):
        result = partition(self.blocks, self.usage, self.policy)

        self.assertEqual(removed_selectors(result), [".unused", ".ghost"])
        self.assertEqual(count_rules(self.blocks), 10)
        self.assertEqual(count_rules(result.kept), 7)

    def test_kept_css_reparses_to_the_same_selectors(self):
        result = partition(self.blocks, self.usage, self.policy)

        reparsed = tokenize(render(result.kept))

        self.assertEqual([b.prelude for b in reparsed], [b.prelude for b in result.kept])
