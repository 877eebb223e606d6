"""Exception hierarchy for svnmetrics."""

from __future__ import annotations


class SvnMetricsError(Exception):
    """Base class for every error raised by svnmetrics."""


class ConfigError(SvnMetricsError):
    """A configuration value is present but invalid."""


class VcsError(SvnMetricsError):
    """The version-control client failed."""

    def __init__(self, message: str, *, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr


class VcsConnectionError(VcsError):
    """Authentication or network failure while opening a session."""


class RevisionResolutionError(VcsError):
    """A date could not be resolved to a revision."""


class DiffFetchError(VcsError):
    """The diff of a single path could not be retrieved."""

    def __init__(self, message: str, *, path: str | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.path = path


class ScratchFileError(SvnMetricsError):
    """No unused scratch-file name could be created."""


class ParseError(SvnMetricsError):
    """A diff segment is malformed."""

    def __init__(self, message: str, *, segment_path: str = "") -> None:
        super().__init__(message)
        self.segment_path = segment_path
