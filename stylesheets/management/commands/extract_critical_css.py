from functools import partial

from django.core.management.base import CommandError

from stylesheets.conf import build_policy
from stylesheets.exceptions import CSSOptimizerError
from stylesheets.management.base import OptimizerCommand
from stylesheets.services import discover_files, extract_critical, run_batch, shared_critical_outputs


class Command(OptimizerCommand):
    """
    Split stylesheets into above-the-fold and remaining CSS per HTML page.

    Critical candidates come from element order after ``<body``; the critical
    CSS is inlined into ``<page>-inlined.html`` unless ``--no-inline``.
    """

    help = 'Extract critical (above-the-fold) CSS for HTML pages'

    def add_arguments(self, parser):
        parser.add_argument('--html', nargs='+', required=True, help='HTML files or glob patterns')
        parser.add_argument('--css', nargs='+', required=True, help='CSS files or glob patterns')
        parser.add_argument(
            '--critical-selector',
            nargs='+',
            default=[],
            dest='critical_selectors',
            help='Selectors always treated as critical'
        )
        parser.add_argument('--tag-window', type=int, default=None, help='Leading elements contributing tag selectors')
        parser.add_argument('--class-window', type=int, default=None, help='Leading elements contributing class/id selectors')
        parser.add_argument('--denylist', nargs='+', default=None, help='Class names never treated as critical')
        parser.add_argument('--no-inline', action='store_true', help='Do not write <page>-inlined.html')
        parser.add_argument(
            '--output-name',
            default='critical.css',
            help='File name for the critical CSS next to each page; {name} is the page name (required when several pages share a directory)'
        )
        self.add_common_arguments(parser)

    def handle(self, *args, **options):
        config = self.get_config(
            CRITICAL_TAG_WINDOW=options['tag_window'],
            CRITICAL_CLASS_WINDOW=options['class_window'],
            CRITICAL_DENYLIST=options['denylist'],
            CONCURRENCY=options['concurrency'],
        )
        # State-dependent rules belong to the deferred stylesheet.
        config['PRESERVE_PSEUDO'] = False
        config['PRESERVE_VARIABLES'] = True
        root = self.get_root(options)

        try:
            policy = build_policy(config)
            html_files = discover_files(options['html'], root, config['IGNORE_DIRS'], kind='HTML')
            css_files = discover_files(options['css'], root, config['IGNORE_DIRS'], kind='CSS')
        except CSSOptimizerError as exc:
            raise CommandError(str(exc)) from exc

        shared = shared_critical_outputs(html_files, options['output_name'])
        if shared:
            target, pages = next(iter(shared.items()))
            raise CommandError(
                f"{len(pages)} pages would write the same critical CSS file {target} "
                f"({', '.join(page.name for page in pages)}). "
                "Use --output-name with {name}, e.g. --output-name '{name}-critical.css'."
            )

        job = partial(
            extract_critical,
            css_paths=css_files,
            policy=policy,
            extra_selectors=config['CRITICAL_SELECTORS'] + list(options['critical_selectors']),
            inline=not options['no_inline'],
            output_name=options['output_name'],
            dry_run=options['dry_run'],
        )
        batch = run_batch(
            job,
            html_files,
            operation='critical',
            concurrency=config['CONCURRENCY'],
            timeout=config['FILE_TIMEOUT'],
            dry_run=options['dry_run'],
        )
        self.emit_report(batch, verbose=options['verbosity'] > 1)
        self.check_failures(batch)
