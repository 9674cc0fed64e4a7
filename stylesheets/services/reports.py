"""
Text, JSON and Excel renderings of a BatchReport.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .batch import BatchReport

REPORT_FORMATS = ('text', 'json')
SELECTOR_PREVIEW = 10

FILE_COLUMNS = [
    ("Path", 60),
    ("Status", 10),
    ("Original bytes", 16),
    ("Final bytes", 14),
    ("Saved %", 10),
    ("Rules", 10),
    ("Kept", 10),
    ("Dropped", 10),
    ("Merged", 10),
    ("Error", 50),
]


def _kb(size: int) -> str:
    return f'{size / 1024:.2f}KB'


def format_json(batch: BatchReport) -> str:
    return json.dumps(batch.as_dict(), ensure_ascii=False, indent=2)


def format_text(batch: BatchReport, verbose: bool = False) -> str:
    lines: List[str] = []
    title = f'{batch.operation} report'
    if batch.dry_run:
        title += ' (dry run)'
    lines.append(title)
    lines.append('=' * len(title))
    if batch.usage:
        usage = ', '.join(f'{count} {name}' for name, count in batch.usage.items())
        lines.append(f'Usage: {usage}')

    for report in batch.files:
        if not report.success:
            lines.append(f'FAILED {report.path}: {report.error}')
            continue
        line = (
            f'{report.path}: {_kb(report.original_size)} -> {_kb(report.final_size)} '
            f'({report.reduction_percent}% smaller), '
            f'{report.kept_rules}/{report.original_rules} rules kept'
        )
        if report.merged_count:
            line += f', {report.merged_count} media queries merged'
        lines.append(line)
        if report.removed_selectors:
            shown = report.removed_selectors if verbose else report.removed_selectors[:SELECTOR_PREVIEW]
            more = len(report.removed_selectors) - len(shown)
            suffix = f' (+{more} more)' if more > 0 else ''
            lines.append(f'  removed: {", ".join(shown)}{suffix}')
        for issue in report.issues:
            lines.append(f'  warning: {issue}')
        for role, path in report.outputs.items():
            lines.append(f'  {role}: {path}')

    totals = batch.totals()
    lines.append('')
    lines.append(
        f"Files: {totals['succeeded']} succeeded, {totals['failed']} failed. "
        f"Saved {_kb(totals['saved_bytes'])} of {_kb(totals['original_size'])}."
    )
    return '\n'.join(lines)


def format_report(batch: BatchReport, fmt: str = 'text', verbose: bool = False) -> str:
    if fmt == 'json':
        return format_json(batch)
    return format_text(batch, verbose=verbose)


def build_xlsx_report(batch: BatchReport, file_path: Path) -> Path:
    """Excel workbook with Summary, Files and Removed selectors sheets."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="1F2937", end_color="1F2937", fill_type="solid")
    label_font = Font(bold=True)

    def style_header(sheet, columns: int) -> None:
        for col in range(1, columns + 1):
            cell = sheet.cell(row=1, column=col)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

    ws.append(["Field", "Value"])
    style_header(ws, 2)
    values = [("Operation", batch.operation), ("Dry run", "yes" if batch.dry_run else "no")]
    values.extend((key.replace('_', ' ').capitalize(), value) for key, value in batch.totals().items())
    values.extend((f"Usage: {key}", value) for key, value in batch.usage.items())
    for row, (label, value) in enumerate(values, start=2):
        ws.cell(row=row, column=1, value=label).font = label_font
        ws.cell(row=row, column=2, value=value)
    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 30

    ws_files = wb.create_sheet("Files")
    ws_files.append([title for title, _ in FILE_COLUMNS])
    style_header(ws_files, len(FILE_COLUMNS))
    for report in batch.files:
        ws_files.append([
            report.path,
            "ok" if report.success else "failed",
            report.original_size,
            report.final_size,
            report.reduction_percent,
            report.original_rules,
            report.kept_rules,
            report.dropped_rules,
            report.merged_count,
            report.error,
        ])
    for index, (_, width) in enumerate(FILE_COLUMNS, start=1):
        ws_files.column_dimensions[get_column_letter(index)].width = width

    ws_removed = wb.create_sheet("Removed selectors")
    ws_removed.append(["Path", "Selector"])
    style_header(ws_removed, 2)
    for report in batch.files:
        for selector in report.removed_selectors:
            ws_removed.append([report.path, selector])
    ws_removed.column_dimensions[get_column_letter(1)].width = 60
    ws_removed.column_dimensions[get_column_letter(2)].width = 60
    for row_cells in ws_removed.iter_rows(min_row=2, max_col=2):
        for cell in row_cells:
            cell.alignment = Alignment(wrap_text=True, vertical="top")

    wb.save(file_path)
    return file_path


def write_report(batch: BatchReport, path: Path, fmt: Optional[str] = None) -> Path:
    """
    Write the report to ``path``. ``.xlsx`` files get a workbook; otherwise
    the format defaults from the suffix (``.json`` or text).
    """
    path = Path(path)
    if path.suffix.lower() == '.xlsx':
        return build_xlsx_report(batch, path)
    if fmt is None:
        fmt = 'json' if path.suffix.lower() == '.json' else 'text'
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_report(batch, fmt, verbose=True) + '\n', encoding='utf-8')
    return path
