"""
Per-file jobs and the bounded worker pool that runs them.

Every job reads one input, runs the engine and (unless dry-run) writes its
outputs, returning a ``FileReport``. ``run_batch`` isolates failures: an
exception or timeout in one job is logged and recorded, siblings carry on.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence

from ..engine import (
    CriticalSet,
    MalformedBlock,
    MatchPolicy,
    PartitionResult,
    UsageSet,
    build_critical_set,
    combine,
    count_rules,
    inline_critical_css,
    partition,
    removed_selectors,
    render,
    tokenize,
)
from .documents import read_text

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4


@dataclass
class FileReport:
    """
    Outcome of one job.

    Attributes:
        path: Input file the job was about.
        success: False when the job raised or timed out.
        error: Exception text for failed jobs.
        original_size / final_size: UTF-8 byte sizes before and after.
        original_rules / kept_rules / dropped_rules: Rule counts, rules
            nested in grouping at-rules counted one by one.
        merged_count: Media queries removed by merging.
        removed_selectors: Selectors of every removed rule.
        issues: Malformed constructs the tokenizer dropped.
        outputs: Written (or, in dry-run, would-be) files by role.
    """

    path: str
    success: bool = True
    error: str = ''
    original_size: int = 0
    final_size: int = 0
    original_rules: int = 0
    kept_rules: int = 0
    dropped_rules: int = 0
    merged_count: int = 0
    removed_selectors: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    outputs: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def failed(cls, path, error) -> 'FileReport':
        return cls(path=str(path), success=False, error=str(error) or error.__class__.__name__)

    @property
    def saved_bytes(self) -> int:
        return max(0, self.original_size - self.final_size)

    @property
    def reduction_percent(self) -> float:
        if not self.original_size:
            return 0.0
        return round(self.saved_bytes * 100.0 / self.original_size, 1)

    def as_dict(self) -> dict:
        data = asdict(self)
        data['saved_bytes'] = self.saved_bytes
        data['reduction_percent'] = self.reduction_percent
        return data


@dataclass
class BatchReport:
    operation: str
    files: List[FileReport] = field(default_factory=list)
    dry_run: bool = False
    usage: Dict[str, int] = field(default_factory=dict)

    @property
    def succeeded(self) -> List[FileReport]:
        return [report for report in self.files if report.success]

    @property
    def failed(self) -> List[FileReport]:
        return [report for report in self.files if not report.success]

    @property
    def original_size(self) -> int:
        return sum(report.original_size for report in self.succeeded)

    @property
    def final_size(self) -> int:
        return sum(report.final_size for report in self.succeeded)

    @property
    def saved_bytes(self) -> int:
        return max(0, self.original_size - self.final_size)

    def totals(self) -> dict:
        succeeded = self.succeeded
        return {
            'files': len(self.files),
            'succeeded': len(succeeded),
            'failed': len(self.failed),
            'original_size': self.original_size,
            'final_size': self.final_size,
            'saved_bytes': self.saved_bytes,
            'original_rules': sum(r.original_rules for r in succeeded),
            'kept_rules': sum(r.kept_rules for r in succeeded),
            'dropped_rules': sum(r.dropped_rules for r in succeeded),
            'merged_count': sum(r.merged_count for r in succeeded),
        }

    def as_dict(self) -> dict:
        return {
            'operation': self.operation,
            'dry_run': self.dry_run,
            'usage': self.usage,
            'totals': self.totals(),
            'files': [report.as_dict() for report in self.files],
        }


class PurgeOutcome(NamedTuple):
    result: PartitionResult
    kept_css: str
    rejected_css: str
    original_rules: int
    issues: List[MalformedBlock]


def _size(text: str) -> int:
    return len(text.encode('utf-8'))


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')


def output_path(source: Path, suffix: str, output_dir: Optional[Path] = None) -> Path:
    """``site.css`` + ``.purged.css`` -> ``site.purged.css`` beside the source or in ``output_dir``."""
    directory = Path(output_dir) if output_dir else source.parent
    return directory / f'{source.stem}{suffix}'


def purge_text(css: str, source, policy: MatchPolicy) -> PurgeOutcome:
    """Partition one stylesheet's text against a usage or critical set."""
    issues: List[MalformedBlock] = []
    blocks = tokenize(css, issues=issues)
    result = partition(blocks, source, policy)
    rejected = sorted(result.dropped + result.pruned, key=lambda block: block.source_order)
    return PurgeOutcome(
        result=result,
        kept_css=render(result.kept),
        rejected_css=render(rejected),
        original_rules=count_rules(blocks),
        issues=issues,
    )


def purge_stylesheet(
    path: Path,
    usage: UsageSet,
    policy: MatchPolicy,
    output_dir: Optional[Path] = None,
    write_rejected: bool = False,
    dry_run: bool = False,
) -> FileReport:
    path = Path(path)
    css = read_text(path)
    outcome = purge_text(css, usage, policy)
    kept_rules = count_rules(outcome.result.kept)
    report = FileReport(
        path=str(path),
        original_size=_size(css),
        final_size=_size(outcome.kept_css),
        original_rules=outcome.original_rules,
        kept_rules=kept_rules,
        dropped_rules=outcome.original_rules - kept_rules,
        removed_selectors=removed_selectors(outcome.result),
        issues=[str(issue) for issue in outcome.issues],
    )
    report.outputs['purged'] = str(output_path(path, '.purged.css', output_dir))
    if write_rejected:
        report.outputs['rejected'] = str(output_path(path, '.rejected.css', output_dir))
    if not dry_run:
        _write(Path(report.outputs['purged']), outcome.kept_css)
        if write_rejected:
            _write(Path(report.outputs['rejected']), outcome.rejected_css)
    logger.info(
        "Purged %s: %d of %d rules kept", path, report.kept_rules, report.original_rules
    )
    return report


def combine_stylesheet(
    path: Path,
    output_dir: Optional[Path] = None,
    in_place: bool = False,
    dry_run: bool = False,
) -> FileReport:
    path = Path(path)
    css = read_text(path)
    issues: List[MalformedBlock] = []
    blocks = tokenize(css, issues=issues)
    combined = combine(blocks)
    text = render(combined.blocks)
    rules = count_rules(blocks)
    target = path if in_place else output_path(path, '.combined.css', output_dir)
    report = FileReport(
        path=str(path),
        original_size=_size(css),
        final_size=_size(text),
        original_rules=rules,
        kept_rules=rules,
        merged_count=combined.merged_count,
        issues=[str(issue) for issue in issues],
        outputs={'combined': str(target)},
    )
    if not dry_run and (combined.merged_count or not in_place):
        _write(target, text)
    logger.info("Combined %s: %d duplicate media queries merged", path, combined.merged_count)
    return report


def critical_output_path(html_path: Path, output_name: str = 'critical.css') -> Path:
    """Critical CSS file for a page; ``{name}`` in ``output_name`` becomes the page stem."""
    html_path = Path(html_path)
    return html_path.parent / output_name.replace('{name}', html_path.stem)


def shared_critical_outputs(html_paths: Iterable[Path], output_name: str = 'critical.css') -> Dict[Path, List[Path]]:
    """Critical output files that more than one page would write."""
    targets: Dict[Path, List[Path]] = {}
    for html_path in html_paths:
        targets.setdefault(critical_output_path(html_path, output_name), []).append(Path(html_path))
    return {target: pages for target, pages in targets.items() if len(pages) > 1}


def extract_critical(
    html_path: Path,
    css_paths: Sequence[Path],
    policy: MatchPolicy,
    extra_selectors: Iterable[str] = (),
    inline: bool = True,
    output_name: str = 'critical.css',
    dry_run: bool = False,
) -> FileReport:
    """
    Split the given stylesheets into critical and remaining CSS for one page.

    Outputs land next to the page: ``critical.css`` (``{name}`` in
    ``output_name`` is replaced by the page stem), ``<page>-remaining.css``
    and, when inlining, ``<page>-inlined.html``.
    """
    html_path = Path(html_path)
    html = read_text(html_path)
    critical_set: CriticalSet = build_critical_set(html, policy, extra_selectors)

    critical_parts: List[str] = []
    remaining_parts: List[str] = []
    report = FileReport(path=str(html_path))
    for css_path in css_paths:
        css = read_text(css_path)
        outcome = purge_text(css, critical_set, policy)
        critical_parts.append(outcome.kept_css)
        remaining_parts.append(outcome.rejected_css)
        kept_rules = count_rules(outcome.result.kept)
        report.original_rules += outcome.original_rules
        report.kept_rules += kept_rules
        report.dropped_rules += outcome.original_rules - kept_rules
        report.issues.extend(f'{css_path}: {issue}' for issue in outcome.issues)

    critical_css = '\n\n'.join(part for part in critical_parts if part).strip()
    remaining_css = '\n\n'.join(part for part in remaining_parts if part).strip()
    report.original_size = _size(critical_css) + _size(remaining_css)
    report.final_size = _size(critical_css)

    directory = html_path.parent
    stem = html_path.stem
    report.outputs['critical'] = str(critical_output_path(html_path, output_name))
    if remaining_css:
        report.outputs['remaining'] = str(directory / f'{stem}-remaining.css')
    if inline:
        report.outputs['inlined'] = str(directory / f'{stem}-inlined.html')

    if not dry_run:
        _write(Path(report.outputs['critical']), critical_css)
        if remaining_css:
            _write(Path(report.outputs['remaining']), remaining_css)
        if inline:
            _write(Path(report.outputs['inlined']), inline_critical_css(html, critical_css))
    logger.info(
        "Critical CSS for %s: %d selectors, %d critical rules",
        html_path, len(critical_set), report.kept_rules,
    )
    return report


def run_batch(
    job: Callable[[Path], FileReport],
    paths: Sequence[Path],
    operation: str,
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: Optional[float] = None,
    dry_run: bool = False,
) -> BatchReport:
    """
    Run ``job`` for every path on a bounded thread pool.

    Reports keep the order of ``paths``. A job that raises, or whose result
    is not ready ``timeout`` seconds after its turn comes up, becomes a
    failed report; its late result is discarded.
    """
    batch = BatchReport(operation=operation, dry_run=dry_run)
    if not paths:
        return batch
    executor = ThreadPoolExecutor(max_workers=max(1, min(concurrency, len(paths))))
    timed_out = False
    try:
        futures = [(path, executor.submit(job, path)) for path in paths]
        for path, future in futures:
            try:
                batch.files.append(future.result(timeout=timeout))
            except FutureTimeoutError:
                timed_out = True
                future.cancel()
                logger.error("Timed out after %ss: %s", timeout, path)
                batch.files.append(FileReport.failed(path, f'timed out after {timeout}s'))
            except Exception as exc:
                logger.error("Failed to process %s: %s", path, exc, exc_info=True)
                batch.files.append(FileReport.failed(path, exc))
    finally:
        executor.shutdown(wait=not timed_out, cancel_futures=timed_out)
    return batch
