"""Tests for the combined-diff parser."""

import pytest
from conftest import file_diff

from svnmetrics.diff.parser import (
    parse_change_file,
    parse_diff,
    parse_diff_file,
    split_lines,
    split_segments,
)
from svnmetrics.errors import ParseError
from svnmetrics.models import ChangeType

MODIFIED = file_diff(
    "/trunk/a.txt", "revision 100", "revision 105",
    "@@ -1,1 +1,2 @@\n line1\n+line2\n",
)
ADDED = file_diff(
    "/trunk/b.txt", "nonexistent", "revision 105",
    "@@ -0,0 +1,1 @@\n+new file\n",
)
DELETED = file_diff(
    "/trunk/c.txt", "revision 100", "nonexistent",
    "@@ -1,2 +0,0 @@\n-gone\n-too\n",
)
PROPS_ONLY = (
    "Index: /trunk/d.txt\n"
    + "=" * 67 + "\n"
    + "--- /trunk/d.txt\t(revision 100)\n"
    + "+++ /trunk/d.txt\t(revision 105)\n"
    + "\n"
    + "Property changes on: /trunk/d.txt\n"
    + "___________________________________________________________________\n"
    + "Added: svn:eol-style\n"
    + "## -0,0 +1 ##\n"
    + "+native\n"
)


class TestChangeTypeInference:
    def test_modified(self):
        assert parse_change_file(MODIFIED).change_type == ChangeType.MODIFIED

    def test_added(self):
        assert parse_change_file(ADDED).change_type == ChangeType.ADDED

    def test_deleted(self):
        assert parse_change_file(DELETED).change_type == ChangeType.DELETED

    def test_no_hunk_is_unknown(self):
        change = parse_change_file(PROPS_ONLY)
        assert change.change_type == ChangeType.UNKNOWN
        assert change.body is None
        assert change.file_path == "/trunk/d.txt"

    def test_both_sides_nonexistent_falls_back_to_modified(self):
        seg = file_diff("/x", "nonexistent", "nonexistent", "@@ -0,0 +0,0 @@\n")
        assert parse_change_file(seg).change_type == ChangeType.MODIFIED

    def test_headers_without_separator_line(self):
        seg = (
            "Index: /trunk/a.txt\n"
            "--- ... (revision 100)\n"
            "+++ ... (revision 105)\n"
            "@@ -1,1 +1,2 @@\n line1\n+line2\n"
        )
        assert parse_change_file(seg).change_type == ChangeType.MODIFIED


class TestParseChangeFile:
    def test_path_strips_index_prefix(self):
        assert parse_change_file(MODIFIED).file_path == "/trunk/a.txt"

    def test_body_follows_first_hunk_header(self):
        assert parse_change_file(MODIFIED).body == " line1\n+line2\n"

    def test_body_keeps_later_hunks(self):
        seg = file_diff(
            "/trunk/a.txt", "revision 1", "revision 2",
            "@@ -1 +1 @@\n-a\n+b\n@@ -9 +9 @@\n-c\n+d\n",
        )
        assert parse_change_file(seg).body == "-a\n+b\n@@ -9 +9 @@\n-c\n+d\n"

    def test_hunk_without_file_headers_raises(self):
        with pytest.raises(ParseError) as info:
            parse_change_file("Index: /trunk/x\n@@ -1 +1 @@\n+y\n")
        assert info.value.segment_path == "/trunk/x"

    def test_segment_without_index_raises(self):
        with pytest.raises(ParseError):
            parse_change_file("garbage\n")


class TestSplitSegments:
    def test_segment_count_and_order(self):
        text = MODIFIED + ADDED + DELETED
        segments = list(split_segments(split_lines(text)))
        assert len(segments) == 3
        assert segments[0].startswith("Index: /trunk/a.txt")
        assert segments[2].startswith("Index: /trunk/c.txt")

    def test_roundtrip_is_byte_exact(self):
        text = MODIFIED + PROPS_ONLY + ADDED + "trailing without newline"
        assert "".join(split_segments(split_lines(text))) == text

    def test_last_segment_flushed(self):
        segments = list(split_segments(split_lines(MODIFIED + ADDED)))
        assert segments[-1] == ADDED

    def test_preamble_stays_with_first_segment(self):
        segments = list(split_segments(split_lines("noise\n" + MODIFIED)))
        assert segments == ["noise\n" + MODIFIED]
        assert parse_change_file(segments[0]).file_path == "/trunk/a.txt"

    def test_empty_input(self):
        assert list(split_segments(split_lines(""))) == []


class TestParseDiff:
    def test_one_record_per_segment(self):
        changes = parse_diff(MODIFIED + PROPS_ONLY + ADDED + DELETED)
        assert [c.file_path for c in changes] == [
            "/trunk/a.txt", "/trunk/d.txt", "/trunk/b.txt", "/trunk/c.txt",
        ]
        assert [c.change_type for c in changes] == [
            ChangeType.MODIFIED, ChangeType.UNKNOWN, ChangeType.ADDED, ChangeType.DELETED,
        ]

    def test_malformed_segment_reported_and_parsing_continues(self, caplog):
        bad = "Index: /trunk/bad\n@@ -1 +1 @@\n+x\n"
        changes = parse_diff(MODIFIED + bad + ADDED)
        assert len(changes) == 3
        assert changes[1].change_type == ChangeType.UNKNOWN
        assert changes[1].error
        assert changes[1].file_path == "/trunk/bad"
        assert changes[2].change_type == ChangeType.ADDED
        assert "Malformed diff segment" in caplog.text

    def test_strict_raises_on_malformed(self):
        with pytest.raises(ParseError):
            parse_diff(MODIFIED + "Index: /trunk/bad\n@@ -1 +1 @@\n+x\n", strict=True)

    def test_parse_file_matches_in_memory(self, tmp_path):
        text = MODIFIED + ADDED + "Index: /trunk/é.txt\n"
        diff = tmp_path / "combined.txt"
        diff.write_bytes(text.encode("utf-8"))
        assert parse_diff_file(diff) == parse_diff(text)
