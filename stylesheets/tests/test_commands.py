"""
End-to-end tests for the stylesheet management commands.
"""
from __future__ import annotations

import json
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase

from stylesheets.services import batch as batch_service
from stylesheets.tests.test_batch import TempDirMixin

SITE_CSS = """:root{--brand:#111}
.used{color:red}
.unused{color:blue}
@media (max-width:600px){.used{font-size:12px}.ghost{display:none}}
"""


class PurgeCommandTests(TempDirMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.write('site.css', SITE_CSS)
        self.write('templates/index.html', '<div class="used"></div>')

    def call(self, *args):
        out = StringIO()
        err = StringIO()
        call_command('purge_css', *args, '--root', str(self.root), stdout=out, stderr=err)
        return out.getvalue()

    def test_writes_purged_and_rejected_files(self):
        output = self.call('site.css', '--content', 'templates/*.html', '--rejected')

        purged = (self.root / 'site.purged.css').read_text()
        rejected = (self.root / 'site.rejected.css').read_text()
        self.assertIn('.used{color:red}', purged)
        self.assertIn(':root{--brand:#111}', purged)
        self.assertNotIn('.unused', purged)
        self.assertNotIn('.ghost', purged)
        self.assertIn('.unused{color:blue}', rejected)
        self.assertIn('.ghost{display:none}', rejected)
        self.assertIn('purge report', output)
        self.assertIn('1 files processed', output)

    def test_dry_run_writes_nothing(self):
        self.call('site.css', '--content', 'templates/*.html', '--dry-run', '--rejected')

        self.assertFalse((self.root / 'site.purged.css').exists())
        self.assertFalse((self.root / 'site.rejected.css').exists())

    def test_output_directory_and_safelist(self):
        self.call('site.css', '--content', 'templates/*.html', '--safelist', 'unused', '--output', str(self.root / 'dist'))

        purged = (self.root / 'dist' / 'site.purged.css').read_text()
        self.assertIn('.unused{color:blue}', purged)

    def test_refuses_to_run_without_content(self):
        with self.assertRaisesMessage(CommandError, '--allow-empty-usage'):
            self.call('site.css', '--content', 'missing/*.html')

    def test_allow_empty_usage(self):
        self.call('site.css', '--content', 'missing/*.html', '--allow-empty-usage', '--no-preserve-variables', '--no-preserve-pseudo')

        self.assertEqual((self.root / 'site.purged.css').read_text(), '')

    def test_missing_css(self):
        with self.assertRaisesMessage(CommandError, 'No CSS files matched'):
            self.call('nothing.css', '--content', 'templates/*.html')

    def test_json_report_and_report_file(self):
        report_file = self.root / 'reports' / 'purge.json'

        output = self.call('site.css', '--content', 'templates/*.html', '--report', 'json', '--report-file', str(report_file))

        data = json.loads(output)
        self.assertEqual(data['operation'], 'purge')
        self.assertEqual(data['files'][0]['removed_selectors'], ['.unused', '.ghost'])
        self.assertEqual(json.loads(report_file.read_text())['totals']['files'], 1)

    def test_one_failing_file_does_not_abort_the_batch(self):
        self.write('broken.css', '.used{color:red}')
        real_purge_text = batch_service.purge_text

        def flaky_purge_text(css, source, policy):
            if css == '.used{color:red}':
                raise RuntimeError('simulated failure')
            return real_purge_text(css, source, policy)

        with mock.patch.object(batch_service, 'purge_text', side_effect=flaky_purge_text):
            output = self.call('*.css', '--content', 'templates/*.html')

        self.assertIn('FAILED', output)
        self.assertIn('simulated failure', output)
        self.assertTrue((self.root / 'site.purged.css').exists())
        self.assertFalse((self.root / 'broken.purged.css').exists())

    def test_every_file_failing_is_an_error(self):
        with mock.patch.object(batch_service, 'purge_text', side_effect=RuntimeError('nope')):
            with self.assertRaises(CommandError):
                self.call('site.css', '--content', 'templates/*.html')


class ExtractCriticalCommandTests(TempDirMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.write(
            'index.html',
            '<html><head><title>t</title></head><body>'
            '<header class="site-header" id="top"><h1>Title</h1></header>'
            '<p class="late">x</p></body></html>',
        )
        self.write('styles.css', '.site-header{color:red}\n.late{color:blue}\n#top{margin:0}')

    def call(self, *args):
        out = StringIO()
        call_command(
            'extract_critical_css', '--html', 'index.html', '--css', 'styles.css',
            '--tag-window', '1', '--class-window', '1', *args,
            '--root', str(self.root), stdout=out,
        )
        return out.getvalue()

    def test_critical_remaining_and_inlined_outputs(self):
        self.call()

        critical = (self.root / 'critical.css').read_text()
        remaining = (self.root / 'index-remaining.css').read_text()
        inlined = (self.root / 'index-inlined.html').read_text()
        self.assertEqual(critical, '.site-header{color:red}\n\n#top{margin:0}')
        self.assertEqual(remaining, '.late{color:blue}')
        self.assertIn('<style>\n.site-header{color:red}', inlined)
        self.assertLess(inlined.index('<style>'), inlined.index('</head>'))

    def test_no_inline_and_output_name(self):
        self.call('--no-inline', '--output-name', '{name}-critical.css')

        self.assertTrue((self.root / 'index-critical.css').exists())
        self.assertFalse((self.root / 'index-inlined.html').exists())

    def test_extra_critical_selector(self):
        self.call('--critical-selector', '.late')

        self.assertIn('.late{color:blue}', (self.root / 'critical.css').read_text())
        self.assertFalse((self.root / 'index-remaining.css').exists())

    def test_pages_sharing_a_directory_need_distinct_output_names(self):
        self.write('about.html', '<body><p class="late">x</p></body>')

        with self.assertRaisesMessage(CommandError, '{name}'):
            self.call('--html', 'index.html', 'about.html')

        self.assertFalse((self.root / 'critical.css').exists())

    def test_each_page_keeps_its_own_critical_css(self):
        self.write('about.html', '<body><p class="late">x</p></body>')

        self.call('--html', 'index.html', 'about.html', '--output-name', '{name}-critical.css')

        self.assertEqual((self.root / 'index-critical.css').read_text(), '.site-header{color:red}\n\n#top{margin:0}')
        self.assertEqual((self.root / 'about-critical.css').read_text(), '.late{color:blue}')


class CombineCommandTests(TempDirMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.css = self.write(
            'styles.css',
            '@media (max-width:768px){.a{color:red}}\n@media screen and (max-width: 768px){.b{color:blue}}',
        )

    def call(self, *args):
        out = StringIO()
        call_command('combine_media_queries', *args, '--root', str(self.root), stdout=out)
        return out.getvalue()

    def test_writes_combined_file(self):
        output = self.call('styles.css')

        combined = (self.root / 'styles.combined.css').read_text()
        self.assertEqual(combined.count('@media'), 1)
        self.assertIn('1 media queries merged', output)

    def test_in_place(self):
        self.call('styles.css', '--in-place')

        self.assertEqual(self.css.read_text().count('@media'), 1)
        self.assertFalse((self.root / 'styles.combined.css').exists())

    def test_dry_run(self):
        self.call('styles.css', '--dry-run')

        self.assertFalse((self.root / 'styles.combined.css').exists())

    def test_in_place_conflicts_with_output(self):
        with self.assertRaises(CommandError):
            self.call('styles.css', '--in-place', '--output', str(self.root / 'dist'))
