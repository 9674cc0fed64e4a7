"""
Match policy: what survives a purge even when no document references it.
"""
from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Pattern, Tuple, Union

DEFAULT_TAG_WINDOW = 8
DEFAULT_CLASS_WINDOW = 12
DEFAULT_CRITICAL_DENYLIST = frozenset({"footer", "sidebar", "card", "btn"})

SafelistEntry = Union[str, Pattern]


@dataclass(frozen=True)
class CriticalWindow:
    """Positional bounds for above-the-fold candidates."""

    tag_n: int = DEFAULT_TAG_WINDOW
    class_n: int = DEFAULT_CLASS_WINDOW

    def __post_init__(self):
        for name in ("tag_n", "class_n"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise TypeError(f"CriticalWindow.{name} must be a non-negative int, got {value!r}")


@dataclass(frozen=True)
class MatchPolicy:
    """
    Immutable preservation policy supplied to every matcher call.

    Attributes:
        safelist: Selectors kept regardless of usage. Plain strings match a
            candidate selector or its bare class/id name verbatim, strings with
            ``*``/``?`` match as shell-style wildcards, compiled patterns match
            with ``search``.
        preserve_variables: Keep ``:root`` and rules declaring ``--custom``
            properties.
        preserve_pseudo: Keep rules whose selectors carry pseudo-classes or
            pseudo-elements.
        critical_window: Positional window for critical-set building.
        critical_denylist: Class names never treated as above the fold.
    """

    safelist: Tuple[SafelistEntry, ...] = ()
    preserve_variables: bool = True
    preserve_pseudo: bool = True
    critical_window: CriticalWindow = field(default_factory=CriticalWindow)
    critical_denylist: FrozenSet[str] = DEFAULT_CRITICAL_DENYLIST

    def __post_init__(self):
        safelist = tuple(self.safelist)
        for entry in safelist:
            if not isinstance(entry, (str, re.Pattern)):
                raise TypeError(f"safelist entries must be str or compiled regex, got {entry!r}")
        object.__setattr__(self, "safelist", safelist)
        object.__setattr__(self, "critical_denylist", frozenset(self.critical_denylist))

    def is_safelisted(self, selector: str) -> bool:
        bare = selector.lstrip(".#")
        for entry in self.safelist:
            if isinstance(entry, str):
                if entry in (selector, bare):
                    return True
                if ("*" in entry or "?" in entry) and (
                    fnmatch.fnmatchcase(selector, entry) or fnmatch.fnmatchcase(bare, entry)
                ):
                    return True
            elif entry.search(selector):
                return True
        return False


def compile_safelist(entries: Iterable[str]) -> Tuple[SafelistEntry, ...]:
    """
    Turn configuration strings into safelist entries.

    ``/pattern/`` strings become compiled regular expressions; everything else
    stays a literal. Raises ``re.error`` for an invalid pattern.
    """
    compiled = []
    for entry in entries:
        if isinstance(entry, re.Pattern):
            compiled.append(entry)
            continue
        entry = str(entry).strip()
        if not entry:
            continue
        if len(entry) > 2 and entry.startswith("/") and entry.endswith("/"):
            compiled.append(re.compile(entry[1:-1]))
        else:
            compiled.append(entry)
    return tuple(compiled)
