"""
Tests for the brace-aware tokenizer.
"""
from __future__ import annotations

from django.test import SimpleTestCase

from stylesheets.engine import BlockKind, tokenize


class TokenizeTests(SimpleTestCase):
    def test_plain_rules_in_order(self):
        blocks = tokenize(".a{color:red}.b{color:blue}")

        self.assertEqual([b.prelude for b in blocks], [".a", ".b"])
        self.assertEqual([b.raw_text for b in blocks], [".a{color:red}", ".b{color:blue}"])
        self.assertEqual(blocks[0].body, "color:red")
        self.assertEqual([b.source_order for b in blocks], [0, 1])
        self.assertTrue(all(b.kind is BlockKind.RULE for b in blocks))

    def test_comments_are_removed_first(self):
        blocks = tokenize("/* header */\n.a{color:red /* inline */}")

        self.assertEqual(len(blocks), 1)
        self.assertEqual(blocks[0].raw_text, ".a{color:red }")

    def test_media_query_children_are_nested_blocks(self):
        blocks = tokenize("@media (max-width:768px){.a{color:red}.b{color:blue}}")

        self.assertEqual(len(blocks), 1)
        media = blocks[0]
        self.assertTrue(media.is_at_rule)
        self.assertEqual(media.at_keyword, "media")
        self.assertEqual([child.prelude for child in media.children], [".a", ".b"])
        self.assertEqual([media.source_order] + [c.source_order for c in media.children], [0, 1, 2])

    def test_nested_grouping_rules(self):
        blocks = tokenize("@supports (display:grid){@media print{.a{display:grid}}}")

        supports = blocks[0]
        self.assertEqual(supports.children[0].prelude, "@media print")
        self.assertEqual(supports.children[0].children[0].prelude, ".a")

    def test_leaf_at_rule_keeps_text_body(self):
        blocks = tokenize("@font-face{font-family:Inter;src:url(inter.woff2)}")

        self.assertEqual(len(blocks), 1)
        self.assertEqual(blocks[0].body, "font-family:Inter;src:url(inter.woff2)")
        self.assertFalse(blocks[0].has_children)

    def test_statement_at_rules_become_blocks(self):
        blocks = tokenize('@charset "utf-8";@import url("base.css");.a{color:red}')

        self.assertEqual([b.prelude for b in blocks], ['@charset "utf-8"', '@import url("base.css")', ".a"])
        self.assertTrue(blocks[0].is_statement)
        self.assertTrue(blocks[1].is_statement)
        self.assertFalse(blocks[2].is_statement)

    def test_unterminated_rule_yields_no_blocks(self):
        issues = []

        with self.assertLogs("stylesheets.engine.blocks", level="WARNING"):
            blocks = tokenize(".a{color:red", issues=issues)

        self.assertEqual(blocks, [])
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].reason, "unterminated rule")

    def test_unterminated_at_rule_is_dropped(self):
        issues = []
        blocks = tokenize(".ok{color:red}@media print{.a{color:red}", issues=issues)

        self.assertEqual([b.prelude for b in blocks], [".ok"])
        self.assertEqual(issues[0].reason, "unterminated at-rule")

    def test_dangling_closing_brace_is_skipped(self):
        issues = []
        blocks = tokenize("}.a{color:red}", issues=issues)

        self.assertEqual([b.prelude for b in blocks], [".a"])
        self.assertEqual(issues[0].reason, "dangling closing brace")

    def test_escaped_braces_stay_in_selector(self):
        blocks = tokenize(r".a\{b{color:red}")

        self.assertEqual(len(blocks), 1)
        self.assertEqual(blocks[0].prelude, r".a\{b")

    def test_empty_and_comment_only_input(self):
        self.assertEqual(tokenize(""), [])
        self.assertEqual(tokenize("/* nothing here */"), [])

    def test_non_string_input_is_a_contract_violation(self):
        with self.assertRaises(TypeError):
            tokenize(b".a{color:red}")

    def test_with_children_rebuilds_raw_text(self):
        media = tokenize("@media print{.a{color:red}.b{color:blue}}")[0]

        trimmed = media.with_children(media.children[:1])

        self.assertEqual(trimmed.raw_text, "@media print {\n.a{color:red}\n}")
        self.assertEqual(trimmed.source_order, media.source_order)
        self.assertEqual(len(media.children), 2)
