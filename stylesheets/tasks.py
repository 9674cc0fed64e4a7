import logging
from pathlib import Path

from celery import shared_task

from .conf import build_policy, get_config
from .engine import build_usage_set
from .exceptions import NoInputFilesError
from .services import (
    FileReport,
    combine_stylesheet,
    discover_files,
    load_documents,
    purge_stylesheet,
    resolve_utility_mode,
)

logger = logging.getLogger(__name__)

OPERATIONS = ('purge', 'combine')


@shared_task
def optimize_stylesheet(
    css_path,
    operation='purge',
    content=None,
    root=None,
    output_dir=None,
    dry_run=False,
    allow_empty_usage=False,
):
    """
    Celery task running one stylesheet job.

    Args:
        css_path: Stylesheet to process.
        operation: ``'purge'`` or ``'combine'``.
        content: Content globs for purging (default: CONTENT_PATTERNS setting).
        root: Base directory for the globs (default: the stylesheet's directory).
        output_dir: Where outputs go (default: next to the stylesheet).
        dry_run: Compute the report without writing files.
        allow_empty_usage: Purge even when no markup or script document was
            found, removing every rule that is not safelisted or preserved.

    Returns the FileReport as a dict so it survives JSON result backends.
    """
    if operation not in OPERATIONS:
        raise ValueError(f"operation must be one of {OPERATIONS}, got {operation!r}")
    css_path = Path(css_path)
    try:
        logger.info("Starting %s of %s", operation, css_path)
        if operation == 'combine':
            report = combine_stylesheet(css_path, output_dir=output_dir, dry_run=dry_run)
        else:
            config = get_config()
            base = Path(root) if root else css_path.parent
            patterns = content or config['CONTENT_PATTERNS']
            content_files = discover_files(
                patterns,
                base,
                config['IGNORE_DIRS'],
                kind='content',
                required=not allow_empty_usage,
            )
            utility = resolve_utility_mode(config['UTILITY_FRAMEWORK'], base)
            documents = load_documents(content_files, utility=utility)
            if not documents and not allow_empty_usage:
                raise NoInputFilesError('content document', patterns)
            usage = build_usage_set(documents)
            report = purge_stylesheet(
                css_path,
                usage,
                build_policy(config),
                output_dir=output_dir,
                dry_run=dry_run,
            )
    except Exception as exc:
        logger.error("Error running %s on %s: %s", operation, css_path, exc, exc_info=True)
        report = FileReport.failed(css_path, exc)
    return report.as_dict()
