"""Client protocol — the contract every version-control client must satisfy."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from svnmetrics.models import DirEntry, LogEntry


@runtime_checkable
class VcsClient(Protocol):
    """Pluggable version-control client.

    One instance holds one session; callers must not share it between
    threads without serializing access (see :class:`svnmetrics.facade.SvnMetrics`).
    """

    name: str

    def connect(self, url: str, username: str | None = None, password: str | None = None) -> None:
        """Open the session and verify it.

        Raises :class:`~svnmetrics.errors.VcsConnectionError` on failure.
        """
        ...

    @property
    def root_url(self) -> str:
        """Repository root URL (no trailing slash)."""
        ...

    @property
    def project_url(self) -> str:
        """URL the session was opened on."""
        ...

    def dated_revision(self, when: datetime) -> int:
        """Return the highest revision committed at or before *when*."""
        ...

    def log_entries(
        self,
        start_revision: int,
        end_revision: int,
        discover_paths: bool = True,
    ) -> list[LogEntry]:
        """Return log entries of the project for ``[start_revision, end_revision)``."""
        ...

    def unified_diff(self, path: str | None, from_revision: int, to_revision: int) -> bytes:
        """Return the unified diff of *path* between two revisions.

        *path* of ``None`` diffs the whole project URL.
        """
        ...

    def list_directory(self, path: str, revision: int | None = None) -> list[DirEntry]:
        ...

    def path_exists(self, path: str, revision: int | None = None) -> bool:
        ...

    def read_file(self, path: str, revision: int | None = None) -> bytes:
        ...

    def close(self) -> None:
        ...
