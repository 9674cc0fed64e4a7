"""
Errors raised by the stylesheets app outside the pure engine.

The engine itself never raises for data-shape reasons; these cover
configuration and file discovery, and management commands turn them into
``CommandError``.
"""


class CSSOptimizerError(Exception):
    """Base class for optimizer failures."""


class ConfigurationError(CSSOptimizerError):
    """Invalid ``CSS_OPTIMIZER`` setting or command option."""


class NoInputFilesError(CSSOptimizerError):
    """A glob or path list matched no files."""

    def __init__(self, kind, patterns):
        self.kind = kind
        self.patterns = list(patterns)
        super().__init__(f"No {kind} files matched: {', '.join(self.patterns) or '(none given)'}")
