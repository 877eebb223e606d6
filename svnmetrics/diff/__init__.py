"""Combined-diff aggregation, parsing and added-line counting."""

from svnmetrics.diff.aggregator import aggregate_diff
from svnmetrics.diff.counter import count_added_lines
from svnmetrics.diff.parser import parse_change_file, parse_diff, split_segments
from svnmetrics.diff.stats import diff_stats, diff_stats_for_file

__all__ = [
    "aggregate_diff",
    "count_added_lines",
    "diff_stats",
    "diff_stats_for_file",
    "parse_change_file",
    "parse_diff",
    "split_segments",
]
