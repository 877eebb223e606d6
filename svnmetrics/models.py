"""Data models used throughout svnmetrics."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Change kinds
# ---------------------------------------------------------------------------


class PathAction(str, enum.Enum):
    """Action recorded for a path in a log entry (``svn log -v``)."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    REPLACED = "R"

    @classmethod
    def from_code(cls, code: str) -> PathAction:
        return cls(code.strip().upper() or "M")

    def __str__(self) -> str:
        return self.value


class ChangeType(str, enum.Enum):
    """Change type inferred from the headers of one diff segment."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    UNKNOWN = "U"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return CHANGE_TYPE_LABELS[self.value]


CHANGE_TYPE_LABELS = MappingProxyType({
    "A": "added (A)",
    "M": "modified (M)",
    "D": "deleted (D)",
    "R": "replaced (R)",
    "U": "unknown (U)",
})


# ---------------------------------------------------------------------------
# Log entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathChange:
    """One changed path of a log entry."""

    path: str
    action: PathAction = PathAction.MODIFIED
    kind: str = ""  # file | dir | "" when the server does not say
    copy_from_path: str | None = None
    copy_from_revision: int | None = None

    @property
    def label(self) -> str:
        return CHANGE_TYPE_LABELS[self.action.value]


@dataclass(frozen=True)
class LogEntry:
    """A single revision as returned by log enumeration."""

    revision: int
    author: str
    date: datetime
    message: str = ""
    changed_paths: dict[str, PathChange] = field(default_factory=dict)


@dataclass(frozen=True)
class DirEntry:
    """A directory listing entry."""

    name: str
    path: str
    kind: str  # file | dir
    size: int = 0
    revision: int | None = None
    author: str = ""
    date: datetime | None = None


# ---------------------------------------------------------------------------
# Parsed diff
# ---------------------------------------------------------------------------


@dataclass
class ChangeFile:
    """One ``Index:`` segment of a combined diff."""

    file_path: str
    change_type: ChangeType
    body: str | None = None
    error: str | None = None  # set on best-effort records for malformed segments


@dataclass
class FileStat:
    file_path: str
    change_type: ChangeType
    added_lines: int


@dataclass
class DiffStats:
    """Added-line breakdown of one combined diff."""

    files: list[FileStat] = field(default_factory=list)
    malformed: list[ChangeFile] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(f.added_lines for f in self.files)
