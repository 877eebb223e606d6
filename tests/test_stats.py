"""Tests for per-file added-line statistics, including the end-to-end pipeline."""

import pytest
from conftest import FakeClient

from svnmetrics.diff.aggregator import aggregate_diff
from svnmetrics.diff.parser import split_lines
from svnmetrics.diff.stats import diff_stats, diff_stats_for_file
from svnmetrics.errors import ParseError
from svnmetrics.models import ChangeType

A_DIFF = (
    "Index: /trunk/a.txt\n"
    "--- ... (revision 100)\n"
    "+++ ... (revision 105)\n"
    "@@ -1,1 +1,2 @@\n line1\n+line2\n"
)
B_DIFF = (
    "Index: /trunk/b.txt\n"
    "--- ... (nonexistent)\n"
    "+++ ... (revision 105)\n"
    "@@ -0,0 +1,1 @@\n+new file\n"
)


class TestEndToEnd:
    def test_two_paths_sum_to_two(self, tmp_path):
        client = FakeClient(diffs={"/trunk/a.txt": A_DIFF, "/trunk/b.txt": B_DIFF})
        scratch = aggregate_diff(client, 100, 105, ["/trunk/a.txt", "/trunk/b.txt"],
                                 scratch_dir=tmp_path)
        assert scratch.read_text() == A_DIFF + B_DIFF

        stats = diff_stats_for_file(scratch)
        assert [(f.file_path, f.change_type) for f in stats.files] == [
            ("/trunk/a.txt", ChangeType.MODIFIED),
            ("/trunk/b.txt", ChangeType.ADDED),
        ]
        assert [f.added_lines for f in stats.files] == [1, 1]
        assert stats.total == 2
        assert not scratch.exists()


class TestDiffStatsForFile:
    def test_keep_leaves_file(self, tmp_path):
        diff = tmp_path / "d.txt"
        diff.write_text(A_DIFF)
        assert diff_stats_for_file(diff, keep=True).total == 1
        assert diff.exists()

    def test_empty_file_counts_zero(self, tmp_path):
        diff = tmp_path / "d.txt"
        diff.write_text("")
        stats = diff_stats_for_file(diff)
        assert stats.total == 0
        assert stats.files == []

    def test_strict_failure_keeps_file(self, tmp_path):
        diff = tmp_path / "d.txt"
        diff.write_text("Index: /trunk/x\n@@ -1 +1 @@\n+x\n")
        with pytest.raises(ParseError):
            diff_stats_for_file(diff, strict=True)
        assert diff.exists()


class TestDiffStats:
    def test_malformed_collected(self):
        stats = diff_stats(split_lines(A_DIFF + "Index: /trunk/x\n@@ -1 +1 @@\n+x\n"))
        assert stats.total == 1
        assert [c.file_path for c in stats.malformed] == ["/trunk/x"]

    def test_logs_per_file(self, caplog):
        caplog.set_level("INFO", logger="svnmetrics")
        diff_stats(split_lines(B_DIFF))
        assert "filePath=/trunk/b.txt changeType=A addLines=1" in caplog.text
