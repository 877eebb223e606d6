"""Log query facade — revision ranges, log filtering and added-line totals.

:class:`SvnMetrics` wraps one connected :class:`VcsClient`.  Clients are not
assumed thread-safe, so every operation takes the session lock; async
callers can run operations on the session's single worker thread through
:meth:`SvnMetrics.submit`::

    fut = metrics.submit(metrics.added_lines_in_window, start, end)
    total = await asyncio.wrap_future(fut)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

from svnmetrics.adapters.base import VcsClient
from svnmetrics.diff.aggregator import aggregate_diff
from svnmetrics.diff.stats import diff_stats_for_file
from svnmetrics.models import DiffStats, DirEntry, LogEntry, PathChange

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _serialized(func: Callable[..., T]) -> Callable[..., T]:
    @wraps(func)
    def wrapper(self: SvnMetrics, *args: Any, **kwargs: Any) -> T:
        with self._lock:
            return func(self, *args, **kwargs)

    return wrapper


class SvnMetrics:
    """Queries over one Subversion session."""

    def __init__(
        self,
        client: VcsClient,
        *,
        scratch_dir: str | Path | None = None,
        workers: int = 1,
        keep_scratch: bool = False,
    ) -> None:
        self.client = client
        self.scratch_dir = scratch_dir
        self.workers = workers
        self.keep_scratch = keep_scratch
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="svnmetrics")

    # ---- lifecycle ----

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        """Run *fn* on the session's worker thread and return its future."""
        return self._executor.submit(fn, *args, **kwargs)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        with self._lock:
            self.client.close()

    def __enter__(self) -> SvnMetrics:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ---- log queries ----

    @_serialized
    def revision_range(self, start_date: datetime, end_date: datetime) -> tuple[int, int]:
        """Resolve a date window to ``(start, end)`` with *end* exclusive.

        The end date's revision is itself included, hence the ``+ 1``.
        """
        start = self.client.dated_revision(start_date)
        end = self.client.dated_revision(end_date) + 1
        logger.debug("Dates %s..%s resolve to [r%d, r%d)", start_date, end_date, start, end)
        return start, end

    @_serialized
    def logs_in_range(
        self,
        start: int | datetime,
        end: int | datetime,
        author: str | None = None,
    ) -> list[LogEntry]:
        """Return log entries in ``[start, end)``, oldest first.

        *start*/*end* are revision numbers or datetimes; datetimes go
        through :meth:`revision_range`.  *author* matches case-insensitively.
        Entries with equal dates keep the client's order.
        """
        if isinstance(start, datetime) or isinstance(end, datetime):
            if not (isinstance(start, datetime) and isinstance(end, datetime)):
                raise TypeError("start and end must both be revisions or both be datetimes")
            start, end = self.revision_range(start, end)
        entries = self.client.log_entries(start, end, discover_paths=True)
        return _filter_sorted(entries, author)

    @_serialized
    def changed_paths_in_window(
        self,
        start_date: datetime,
        end_date: datetime,
        author: str | None = None,
    ) -> list[str]:
        """Distinct, sorted full URLs of paths changed in the window."""
        return self._changed_urls(self.logs_in_range(start_date, end_date, author))

    def _changed_urls(self, entries: Sequence[LogEntry]) -> list[str]:
        root = self.client.root_url
        return sorted({root + key for entry in entries for key in entry.changed_paths})

    @_serialized
    def changed_files_in_revision(self, revision: int) -> list[PathChange]:
        """Changed paths recorded for a single revision."""
        entries = self.client.log_entries(revision, revision + 1, discover_paths=True)
        changes: list[PathChange] = []
        for entry in entries:
            logger.info(
                "r%d by %s at %s: %s", entry.revision, entry.author, entry.date,
                entry.message.strip(),
            )
            for change in entry.changed_paths.values():
                logger.info("%s %s", change.label, change.path)
                changes.append(change)
        return changes

    # ---- diffs and counts ----

    @_serialized
    def change_log_for_revisions(
        self,
        start_revision: int,
        end_revision: int,
        paths: Sequence[str] | None,
    ) -> Path:
        """Write the combined diff of *paths* between two revisions to a scratch file."""
        return aggregate_diff(
            self.client,
            start_revision,
            end_revision,
            paths,
            scratch_dir=self.scratch_dir,
            workers=self.workers,
        )

    @_serialized
    def change_log(
        self,
        start_date: datetime,
        end_date: datetime,
        author: str | None = None,
    ) -> Path:
        """Combined diff, over the date window, of every path *author* touched.

        The diff covers all changes to those paths in the window, including
        other authors' changes.
        """
        start, end = self.revision_range(start_date, end_date)
        entries = _filter_sorted(self.client.log_entries(start, end, discover_paths=True), author)
        paths = self._changed_urls(entries)
        logger.info("Diffing %d path(s) between r%d and r%d", len(paths), start, end)
        return self.change_log_for_revisions(start, end, paths)

    def count_added_lines(self, diff_path: str | Path, keep: bool | None = None) -> DiffStats:
        """Parse and count a combined diff file; deletes it unless *keep*."""
        keep = self.keep_scratch if keep is None else keep
        return diff_stats_for_file(diff_path, keep=keep)

    @_serialized
    def added_lines_in_window(self, start_date: datetime, end_date: datetime) -> int:
        """Sum the added lines between every consecutive pair of revisions in the window.

        Each pair is diffed over the whole project tree.  An empty window
        fetches nothing and returns 0.
        """
        entries = self.logs_in_range_unsorted(start_date, end_date)
        total = 0
        if not entries:
            return total
        previous = entries[0].revision
        for entry in entries:
            if entry.revision != previous:
                scratch = self.change_log_for_revisions(previous, entry.revision, None)
                added = self.count_added_lines(scratch).total
                logger.info("r%d..r%d added %d line(s)", previous, entry.revision, added)
                total += added
            previous = entry.revision
        return total

    @_serialized
    def logs_in_range_unsorted(self, start_date: datetime, end_date: datetime) -> list[LogEntry]:
        """Log entries of a date window in the client's order, unfiltered."""
        start, end = self.revision_range(start_date, end_date)
        return self.client.log_entries(start, end, discover_paths=True)

    # ---- repository browsing ----

    @_serialized
    def read_file(self, path: str, revision: int | None = None, encoding: str = "utf-8") -> str:
        """Content of *path* at *revision* (HEAD by default)."""
        return self.client.read_file(path, revision).decode(encoding, errors="replace")

    @_serialized
    def list_folder(self, path: str, revision: int | None = None) -> list[DirEntry]:
        """Entries of a directory; an empty list when the path does not exist."""
        if not self.client.path_exists(path, revision):
            return []
        return self.client.list_directory(path, revision)

    @_serialized
    def path_exists(self, path: str, revision: int | None = None) -> bool:
        return self.client.path_exists(path, revision)


def _filter_sorted(entries: Sequence[LogEntry], author: str | None) -> list[LogEntry]:
    if author is not None:
        wanted = author.casefold()
        entries = [e for e in entries if e.author.casefold() == wanted]
    # sorted() is stable
    return sorted(entries, key=lambda e: e.date)
