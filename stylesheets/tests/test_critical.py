from django.test import SimpleTestCase

from stylesheets.engine import CriticalSet, CriticalWindow, MatchPolicy, build_critical_set

PAGE = """<!DOCTYPE html>
<html>
<head><title>Shop</title><link rel="stylesheet" class="head-only" href="site.css"></head>
<body class="page">
  <header class="site-header" id="top">
    <nav class="nav main-nav"><a href="/">Home</a></nav>
  </header>
  <div class="hero card"><h1 class="hero-title">Hello</h1></div>
  <main class="content"><p class="late">Text</p></main>
  <footer class="site-footer">Bye</footer>
</body>
</html>
"""


class BuildCriticalSetTests(SimpleTestCase):
    def setUp(self):
        self.policy = MatchPolicy(critical_window=CriticalWindow(tag_n=2, class_n=4))

    def test_positional_windows(self):
        critical = build_critical_set(PAGE, self.policy)

        self.assertEqual(
            critical.selectors,
            (
                "header", "header.site-header", ".site-header", "#top",
                "nav", "nav.nav", "nav.main-nav", ".nav", ".main-nav",
                ".hero",
                ".content",
            ),
        )

    def test_denylist_and_head_elements_are_skipped(self):
        critical = build_critical_set(PAGE, self.policy)

        self.assertNotIn(".card", critical)
        self.assertNotIn(".head-only", critical)
        self.assertNotIn(".late", critical)
        self.assertNotIn(".site-footer", critical)

    def test_extra_selectors_come_first(self):
        critical = build_critical_set(PAGE, self.policy, extra_selectors=[".banner", ".hero"])

        self.assertEqual(critical.selectors[:2], (".banner", ".hero"))
        self.assertEqual(critical.selectors.count(".hero"), 1)

    def test_default_windows_cover_small_pages(self):
        critical = build_critical_set(PAGE, MatchPolicy())

        self.assertIn(".late", critical)
        self.assertIn("footer", critical)
        self.assertNotIn(".card", critical)

    def test_markup_without_body(self):
        self.assertEqual(len(build_critical_set("<div class='x'></div>", MatchPolicy())), 0)

    def test_non_string_markup(self):
        with self.assertRaises(TypeError):
            build_critical_set(None, MatchPolicy())


class CriticalSetMatchTests(SimpleTestCase):
    def test_matching(self):
        critical = CriticalSet((".hero", "nav .item"))

        self.assertTrue(critical.matches(".hero"))
        self.assertTrue(critical.matches(".hero-title"))
        self.assertTrue(critical.matches(".her"))
        self.assertTrue(critical.matches("nav  .item"))
        self.assertFalse(critical.matches("nav .item-x"))
        self.assertFalse(critical.matches(".footer"))
        self.assertFalse(critical.matches(""))
