"""
File discovery and document loading for the batch commands.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..engine import Document, DocumentKind, detect_utility_framework
from ..exceptions import NoInputFilesError

logger = logging.getLogger(__name__)

GLOB_CHARS = set("*?[")


def _glob(pattern: str, root: Path) -> Iterable[Path]:
    path = Path(pattern)
    if not GLOB_CHARS.intersection(pattern):
        candidate = path if path.is_absolute() else root / path
        return [candidate] if candidate.is_file() else []
    if path.is_absolute():
        anchor = Path(path.anchor)
        return anchor.glob(str(path.relative_to(anchor)))
    return root.glob(pattern)


def discover_files(
    patterns: Sequence[str],
    root: Union[str, Path, None] = None,
    ignore_dirs: Iterable[str] = (),
    kind: str = 'input',
    required: bool = True,
) -> List[Path]:
    """
    Expand literal paths and glob patterns into a sorted, de-duplicated list.

    Files under any directory named in ``ignore_dirs`` are skipped. Raises
    ``NoInputFilesError`` when ``required`` and nothing matched.
    """
    root = Path(root) if root else Path.cwd()
    ignore = set(ignore_dirs)
    found = {}
    for pattern in patterns:
        for path in _glob(pattern, root):
            if not path.is_file():
                continue
            try:
                parts = path.relative_to(root).parts
            except ValueError:
                parts = path.parts
            if ignore.intersection(parts):
                continue
            found.setdefault(path.resolve(), None)
    files = sorted(found)
    if required and not files:
        raise NoInputFilesError(kind, patterns)
    logger.debug("Discovered %d %s files", len(files), kind)
    return files


def read_text(path: Path) -> str:
    return Path(path).read_text(encoding='utf-8', errors='replace')


def resolve_utility_mode(setting, root: Optional[Path] = None) -> bool:
    """``'auto'`` looks for a utility framework under ``root``."""
    if setting == 'auto':
        detected = detect_utility_framework(root or Path.cwd())
        if detected:
            logger.info("Utility-class framework detected, extracting raw class tokens")
        return detected
    return bool(setting)


def load_documents(paths: Iterable[Path], utility: bool = False) -> List[Document]:
    """Read every path whose suffix maps to a document kind; others are skipped."""
    documents = []
    for path in paths:
        kind = DocumentKind.for_path(path, utility=utility)
        if kind is None:
            logger.debug("Skipping %s: not a markup or script file", path)
            continue
        try:
            content = read_text(path)
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            continue
        documents.append(Document(path=str(path), content=content, kind=kind))
    return documents
