"""Shared fixtures: an in-memory VCS client and diff builders."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from svnmetrics.errors import DiffFetchError, RevisionResolutionError
from svnmetrics.models import DirEntry, LogEntry, PathAction, PathChange

ROOT_URL = "https://svn.example.com/repos"
PROJECT_URL = ROOT_URL + "/trunk"
EPOCH = datetime(2021, 1, 22, 9, 0, tzinfo=timezone.utc)


def make_entry(
    revision: int,
    author: str = "alice",
    date: datetime | None = None,
    paths: tuple[str, ...] = ("/trunk/a.txt",),
    message: str = "",
) -> LogEntry:
    return LogEntry(
        revision=revision,
        author=author,
        date=date or EPOCH + timedelta(minutes=revision),
        message=message or f"commit {revision}",
        changed_paths={p: PathChange(p, PathAction.MODIFIED, "file") for p in paths},
    )


def file_diff(path: str, old: str, new: str, body: str) -> str:
    """Build one ``svn diff`` segment."""
    return (
        f"Index: {path}\n"
        + "=" * 67 + "\n"
        + f"--- {path}\t({old})\n"
        + f"+++ {path}\t({new})\n"
        + body
    )


class FakeClient:
    """In-memory :class:`VcsClient` that records every call."""

    name = "fake"

    def __init__(
        self,
        entries: list[LogEntry] | None = None,
        diffs: dict | None = None,
        dated: dict[datetime, int] | None = None,
        files: dict[str, bytes] | None = None,
        dirs: dict[str, list[DirEntry]] | None = None,
    ) -> None:
        self.entries = entries or []
        self.diffs = diffs or {}
        self.dated = dated or {}
        self.files = files or {}
        self.dirs = dirs or {}
        self.calls: list[tuple] = []
        self.closed = False

    def connect(self, url, username=None, password=None):
        self.calls.append(("connect", url, username, password))

    @property
    def root_url(self) -> str:
        return ROOT_URL

    @property
    def project_url(self) -> str:
        return PROJECT_URL

    def dated_revision(self, when):
        self.calls.append(("dated_revision", when))
        if when not in self.dated:
            raise RevisionResolutionError(f"no revision for {when}")
        return self.dated[when]

    def log_entries(self, start_revision, end_revision, discover_paths=True):
        self.calls.append(("log_entries", start_revision, end_revision))
        return [e for e in self.entries if start_revision <= e.revision < end_revision]

    def unified_diff(self, path, from_revision, to_revision):
        self.calls.append(("unified_diff", path, from_revision, to_revision))
        value = self.diffs.get((path, from_revision, to_revision), self.diffs.get(path))
        if value is None:
            raise DiffFetchError(f"no diff for {path}", path=path)
        if isinstance(value, Exception):
            raise value
        return value.encode() if isinstance(value, str) else value

    def list_directory(self, path, revision=None):
        self.calls.append(("list_directory", path, revision))
        return self.dirs.get(path, [])

    def path_exists(self, path, revision=None):
        self.calls.append(("path_exists", path, revision))
        return path in self.dirs or path in self.files

    def read_file(self, path, revision=None):
        self.calls.append(("read_file", path, revision))
        return self.files[path]

    def close(self):
        self.closed = True

    def calls_named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
