from functools import partial

from django.core.management.base import CommandError

from stylesheets.exceptions import CSSOptimizerError
from stylesheets.management.base import OptimizerCommand
from stylesheets.services import combine_stylesheet, discover_files, run_batch


class Command(OptimizerCommand):
    help = 'Merge duplicate @media blocks that share the same (normalized) query'

    def add_arguments(self, parser):
        parser.add_argument('css', nargs='+', help='CSS files or glob patterns')
        parser.add_argument('--output', default=None, help='Directory for <name>.combined.css files')
        parser.add_argument(
            '--in-place',
            action='store_true',
            help='Overwrite the input files instead of writing <name>.combined.css'
        )
        self.add_common_arguments(parser)

    def handle(self, *args, **options):
        if options['in_place'] and options['output']:
            raise CommandError('--in-place and --output are mutually exclusive')
        config = self.get_config(CONCURRENCY=options['concurrency'])
        root = self.get_root(options)
        try:
            css_files = discover_files(options['css'], root, config['IGNORE_DIRS'], kind='CSS')
        except CSSOptimizerError as exc:
            raise CommandError(str(exc)) from exc

        job = partial(
            combine_stylesheet,
            output_dir=options['output'],
            in_place=options['in_place'],
            dry_run=options['dry_run'],
        )
        batch = run_batch(
            job,
            css_files,
            operation='combine',
            concurrency=config['CONCURRENCY'],
            timeout=config['FILE_TIMEOUT'],
            dry_run=options['dry_run'],
        )
        self.emit_report(batch, verbose=options['verbosity'] > 1)
        self.check_failures(batch)
