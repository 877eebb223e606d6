"""Tests for svnmetrics.models."""

from svnmetrics.models import (
    ChangeType,
    DiffStats,
    FileStat,
    PathAction,
    PathChange,
)


class TestChangeType:
    def test_str_is_code(self):
        assert str(ChangeType.ADDED) == "A"
        assert f"{ChangeType.UNKNOWN}" == "U"

    def test_label(self):
        assert ChangeType.DELETED.label == "deleted (D)"


class TestPathAction:
    def test_from_code(self):
        assert PathAction.from_code("a") == PathAction.ADDED
        assert PathAction.from_code(" R ") == PathAction.REPLACED
        assert PathAction.from_code("") == PathAction.MODIFIED

    def test_path_change_label(self):
        assert PathChange("/trunk/x", PathAction.REPLACED).label == "replaced (R)"


class TestDiffStats:
    def test_total(self):
        stats = DiffStats(files=[
            FileStat("a", ChangeType.ADDED, 3),
            FileStat("b", ChangeType.MODIFIED, 4),
        ])
        assert stats.total == 7

    def test_empty(self):
        assert DiffStats().total == 0
