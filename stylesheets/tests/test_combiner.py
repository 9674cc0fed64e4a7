"""
Tests for duplicate media-query merging.
"""
from __future__ import annotations

from django.test import SimpleTestCase

from stylesheets.engine import combine, tokenize


class CombineTests(SimpleTestCase):
    def test_equivalent_queries_merge_into_first(self):
        blocks = tokenize(
            "@media (max-width:768px){.a{color:red}} "
            "@media screen and (max-width: 768px){.b{color:blue}}"
        )

        result = combine(blocks)

        self.assertEqual(result.merged_count, 1)
        self.assertEqual(len(result.blocks), 1)
        merged = result.blocks[0]
        self.assertEqual(merged.prelude, "@media (max-width:768px)")
        self.assertEqual([c.prelude for c in merged.children], [".a", ".b"])
        self.assertEqual(merged.raw_text, "@media (max-width:768px) {\n.a{color:red}\n.b{color:blue}\n}")
        self.assertEqual(result.groups[0].normalized_key, "(max-width:768px)")
        self.assertEqual(result.groups[0].occurrence_count, 2)

    def test_combining_twice_merges_nothing(self):
        blocks = tokenize("@media print{.a{color:red}}@media print{.b{color:red}}@media print{.c{color:red}}")

        first = combine(blocks)
        second = combine(first.blocks)

        self.assertEqual(first.merged_count, 2)
        self.assertEqual(second.merged_count, 0)
        self.assertEqual(second.blocks, first.blocks)

    def test_each_group_counts_occurrences_minus_one(self):
        css = (
            "@media print{.a{color:red}}"
            "@media (min-width:1px){.b{color:red}}"
            "@media print{.c{color:red}}"
            "@media (min-width: 1px){.d{color:red}}"
            "@media print{.e{color:red}}"
        )

        result = combine(tokenize(css))

        self.assertEqual(result.merged_count, 3)
        self.assertEqual([g.occurrence_count for g in result.groups], [3, 2])

    def test_identical_bodies_are_kept_once(self):
        result = combine(tokenize("@media print{.a{color:red}}@media print{.a{color:red}}"))

        self.assertEqual(result.merged_count, 1)
        self.assertEqual(result.blocks[0].raw_text, "@media print {\n.a{color:red}\n}")
        self.assertEqual(len(result.blocks[0].children), 1)

    def test_merged_block_takes_first_position(self):
        blocks = tokenize(".x{color:red}@media print{.a{color:red}}.y{color:red}@media print{.b{color:red}}")

        result = combine(blocks)

        self.assertEqual([b.prelude for b in result.blocks], [".x", "@media print", ".y"])
        self.assertEqual(result.blocks[1].source_order, blocks[1].source_order)

    def test_other_at_rules_pass_through(self):
        css = "@supports (display:grid){.a{display:grid}}@supports (display:grid){.b{display:grid}}"

        result = combine(tokenize(css))

        self.assertEqual(result.merged_count, 0)
        self.assertEqual(len(result.blocks), 2)

    def test_empty_input(self):
        result = combine([])

        self.assertEqual(result.blocks, [])
        self.assertEqual(result.merged_count, 0)
