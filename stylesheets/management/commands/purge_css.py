from functools import partial

from django.core.management.base import CommandError

from stylesheets.conf import build_policy
from stylesheets.engine import build_usage_set
from stylesheets.exceptions import CSSOptimizerError
from stylesheets.management.base import OptimizerCommand
from stylesheets.services import (
    REPORT_FORMATS,
    discover_files,
    load_documents,
    purge_stylesheet,
    resolve_utility_mode,
    run_batch,
)


class Command(OptimizerCommand):
    """
    Remove rules no content document references.

    Writes ``<name>.purged.css`` (and ``<name>.rejected.css`` with
    ``--rejected``) next to each stylesheet or into ``--output``.
    """

    help = 'Remove unused CSS rules based on markup and script content'

    def add_arguments(self, parser):
        parser.add_argument('css', nargs='+', help='CSS files or glob patterns')
        parser.add_argument(
            '--content',
            nargs='+',
            default=None,
            help='Markup/script files or globs to scan (default: CSS_OPTIMIZER["CONTENT_PATTERNS"])'
        )
        parser.add_argument(
            '--safelist',
            nargs='+',
            default=[],
            help='Selectors or class names to always keep; /regex/ for patterns'
        )
        parser.add_argument(
            '--no-preserve-variables',
            action='store_const',
            const=False,
            dest='preserve_variables',
            default=None,
            help='Do not keep :root and custom-property rules automatically'
        )
        parser.add_argument(
            '--no-preserve-pseudo',
            action='store_const',
            const=False,
            dest='preserve_pseudo',
            default=None,
            help='Do not keep rules with pseudo-classes/elements automatically'
        )
        parser.add_argument(
            '--utility-framework',
            action='store_const',
            const='on',
            dest='utility_framework',
            default=None,
            help='Treat markup as utility-class markup (Tailwind style)'
        )
        parser.add_argument(
            '--no-utility-framework',
            action='store_const',
            const='off',
            dest='utility_framework',
            help='Never treat markup as utility-class markup'
        )
        parser.add_argument('--output', default=None, help='Directory for output files')
        parser.add_argument(
            '--rejected',
            action='store_true',
            help='Also write the removed rules to <name>.rejected.css'
        )
        parser.add_argument(
            '--timeout',
            type=float,
            default=None,
            help='Seconds after which a single file counts as failed'
        )
        parser.add_argument('--report', choices=REPORT_FORMATS, default='text')
        parser.add_argument('--report-file', default=None, help='Also write the report to this path (.json, .xlsx or text)')
        parser.add_argument(
            '--allow-empty-usage',
            action='store_true',
            help='Run even when no content documents are found (every unpreserved rule is removed)'
        )
        self.add_common_arguments(parser)

    def handle(self, *args, **options):
        config = self.get_config(
            PRESERVE_VARIABLES=options['preserve_variables'],
            PRESERVE_PSEUDO=options['preserve_pseudo'],
            UTILITY_FRAMEWORK=options['utility_framework'],
            CONCURRENCY=options['concurrency'],
            FILE_TIMEOUT=options['timeout'],
        )
        config['SAFELIST'] = config['SAFELIST'] + list(options['safelist'])
        root = self.get_root(options)

        try:
            policy = build_policy(config)
            css_files = discover_files(options['css'], root, config['IGNORE_DIRS'], kind='CSS')
            content_files = discover_files(
                options['content'] or config['CONTENT_PATTERNS'],
                root,
                config['IGNORE_DIRS'],
                kind='content',
                required=False,
            )
        except CSSOptimizerError as exc:
            raise CommandError(str(exc)) from exc

        utility = resolve_utility_mode(config['UTILITY_FRAMEWORK'], root)
        documents = load_documents(content_files, utility=utility)
        if not documents:
            if not options['allow_empty_usage']:
                raise CommandError(
                    'No content documents found; purging would remove every rule that is not '
                    'safelisted or preserved. Pass --content or --allow-empty-usage.'
                )
            self.stderr.write(self.style.WARNING(
                'No content documents: every rule that is not safelisted or preserved will be removed.'
            ))

        usage = build_usage_set(documents)
        job = partial(
            purge_stylesheet,
            usage=usage,
            policy=policy,
            output_dir=options['output'],
            write_rejected=options['rejected'],
            dry_run=options['dry_run'],
        )
        batch = run_batch(
            job,
            css_files,
            operation='purge',
            concurrency=config['CONCURRENCY'],
            timeout=config['FILE_TIMEOUT'],
            dry_run=options['dry_run'],
        )
        batch.usage = usage.counts()
        self.emit_report(
            batch,
            fmt=options['report'],
            report_file=options['report_file'],
            verbose=options['verbosity'] > 1,
        )
        self.check_failures(batch)
