"""Per-file added-line statistics for a combined diff."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from svnmetrics.diff.counter import count_added_lines
from svnmetrics.diff.parser import iter_change_files, read_lines
from svnmetrics.models import DiffStats, FileStat

logger = logging.getLogger(__name__)


def diff_stats(lines: Iterable[str], strict: bool = False) -> DiffStats:
    """Parse every segment of *lines* and count its added lines."""
    stats = DiffStats()
    for change in iter_change_files(lines, strict=strict):
        if change.error:
            stats.malformed.append(change)
        added = count_added_lines(change.body)
        logger.info(
            "filePath=%s changeType=%s addLines=%d",
            change.file_path, change.change_type, added,
        )
        stats.files.append(FileStat(change.file_path, change.change_type, added))
    return stats


def diff_stats_for_file(
    path: str | Path,
    keep: bool = False,
    strict: bool = False,
) -> DiffStats:
    """Count added lines in the diff file at *path*, then delete it unless *keep*.

    The file is left in place when parsing raises.
    """
    path = Path(path)
    logger.info("Counting added lines in %s", path)
    stats = diff_stats(read_lines(path), strict=strict)
    if not keep:
        path.unlink(missing_ok=True)
        logger.debug("Removed scratch diff %s", path)
    logger.info("Counted %d added line(s) across %d file(s)", stats.total, len(stats.files))
    return stats
