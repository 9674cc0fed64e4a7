from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from stylesheets.conf import get_config
from stylesheets.exceptions import CSSOptimizerError
from stylesheets.services import format_report, write_report


class OptimizerCommand(BaseCommand):
    """
    Shared plumbing for the stylesheet commands: configuration errors become
    CommandError, reports go to stdout and optionally to a file.
    """

    def add_common_arguments(self, parser):
        parser.add_argument(
            '--root',
            default=None,
            help='Base directory for relative paths and glob patterns (default: current directory)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Process everything but write no files'
        )
        parser.add_argument(
            '--concurrency',
            type=int,
            default=None,
            help='Files processed in parallel (default: CSS_OPTIMIZER["CONCURRENCY"])'
        )

    def get_config(self, **overrides):
        try:
            return get_config(**overrides)
        except CSSOptimizerError as exc:
            raise CommandError(str(exc)) from exc

    def get_root(self, options):
        root = Path(options.get('root') or Path.cwd())
        if not root.is_dir():
            raise CommandError(f'--root is not a directory: {root}')
        return root

    def emit_report(self, batch, fmt='text', report_file=None, verbose=False):
        self.stdout.write(format_report(batch, fmt, verbose=verbose))
        if report_file:
            path = write_report(batch, report_file)
            if fmt == 'text':
                self.stdout.write(f'Report written to {path}')
        if fmt != 'text':
            return
        failed = len(batch.failed)
        if failed:
            self.stdout.write(self.style.WARNING(f'{failed} of {len(batch.files)} files failed.'))
        else:
            self.stdout.write(self.style.SUCCESS(f'{batch.operation}: {len(batch.files)} files processed.'))

    def check_failures(self, batch):
        if batch.files and not batch.succeeded:
            raise CommandError('Every file failed; see the log for details.')
