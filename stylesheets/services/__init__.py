"""
File-level services around the CSS engine: discovery, batch jobs, reports.
"""

from .batch import (
    BatchReport,
    FileReport,
    PurgeOutcome,
    combine_stylesheet,
    critical_output_path,
    extract_critical,
    purge_stylesheet,
    purge_text,
    run_batch,
    shared_critical_outputs,
)
from .documents import discover_files, load_documents, resolve_utility_mode
from .reports import REPORT_FORMATS, build_xlsx_report, format_report, write_report

__all__ = [
    "BatchReport",
    "FileReport",
    "PurgeOutcome",
    "combine_stylesheet",
    "critical_output_path",
    "extract_critical",
    "purge_stylesheet",
    "purge_text",
    "run_batch",
    "shared_critical_outputs",
    "discover_files",
    "load_documents",
    "resolve_utility_mode",
    "REPORT_FORMATS",
    "build_xlsx_report",
    "format_report",
    "write_report",
]
