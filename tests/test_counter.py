"""Tests for the added-line counter."""

from svnmetrics.diff.counter import count_added_lines


class TestCountAddedLines:
    def test_none_and_empty(self):
        assert count_added_lines(None) == 0
        assert count_added_lines("") == 0

    def test_counts_plus_lines_only(self):
        assert count_added_lines("+hello\n-world\n") == 1

    def test_whitespace_only_addition_not_counted(self):
        assert count_added_lines("+   \n+x\n") == 1

    def test_bare_plus_not_counted(self):
        assert count_added_lines("+\n+\t\n") == 0

    def test_double_plus_counted_once(self):
        assert count_added_lines("++double\n") == 1

    def test_context_lines_ignored(self):
        assert count_added_lines(" context\n+added\n context\n") == 1

    def test_last_line_without_newline(self):
        assert count_added_lines("+a\n+b") == 2

    def test_blank_lines_between_additions(self):
        assert count_added_lines("+a\n\n\n+b\n") == 2

    def test_plus_inside_line_does_not_gate(self):
        assert count_added_lines(" a+b\n-c+\n") == 0

    def test_leading_space_after_plus_with_content(self):
        assert count_added_lines("+    return x\n") == 1
