"""Diff parser — split a combined diff into per-file :class:`ChangeFile` records.

A combined diff is the concatenation of ``svn diff`` outputs, one per path.
Every file segment starts with an ``Index: <path>`` line::

    Index: /trunk/a.txt
    ===================================================================
    --- /trunk/a.txt	(revision 100)
    +++ /trunk/a.txt	(revision 105)
    @@ -1,1 +1,2 @@
     line1
    +line2

The ``---`` and ``+++`` header lines (lines 2 and 3 in ``svn diff`` output)
tell whether the old and new sides exist; a side that does not exist ends
with ``(nonexistent)``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from svnmetrics.errors import ParseError
from svnmetrics.models import ChangeFile, ChangeType

logger = logging.getLogger(__name__)

INDEX_PREFIX = "Index:"
HUNK_MARKER = "\n@@"
NONEXISTENT_SUFFIX = "(nonexistent)"

OLD_HEADER_PREFIX = "---"
NEW_HEADER_PREFIX = "+++"


def split_segments(lines: Iterable[str]) -> Iterator[str]:
    """Group *lines* into ``Index:``-delimited segments.

    *lines* must keep their line endings; joining the yielded segments gives
    back the input unchanged.  Text before the first ``Index:`` line stays
    with the first segment.
    """
    buffer: list[str] = []
    started = False
    for line in lines:
        if line.startswith(INDEX_PREFIX):
            if started:
                yield "".join(buffer)
                buffer = []
            started = True
        buffer.append(line)
    # the last segment has no following Index: line
    if buffer:
        yield "".join(buffer)


def split_lines(text: str) -> Iterator[str]:
    """Split *text* on ``\\n`` only, keeping the terminators."""
    parts = text.split("\n")
    for part in parts[:-1]:
        yield part + "\n"
    if parts[-1]:
        yield parts[-1]


def _segment_path(segment: str) -> tuple[str, int]:
    """Return the path from the segment's ``Index:`` line and that line's offset."""
    if segment.startswith(INDEX_PREFIX):
        offset = 0
    else:
        offset = segment.find("\n" + INDEX_PREFIX)
        if offset < 0:
            return "", -1
        offset += 1
    end = segment.find("\n", offset)
    first_line = segment[offset:] if end == -1 else segment[offset:end]
    return first_line[len(INDEX_PREFIX):].strip(), offset


def _find_header(headers: list[str], prefix: str) -> str | None:
    for line in headers[1:]:
        if line.startswith(prefix):
            return line
    return None


def _side_exists(header_line: str) -> bool:
    return not header_line.rstrip("\r").endswith(NONEXISTENT_SUFFIX)


def parse_change_file(segment: str) -> ChangeFile:
    """Parse one segment into a :class:`ChangeFile`.

    Raises :class:`ParseError` when the segment has no ``Index:`` line, or
    has a hunk but lacks the ``---``/``+++`` header lines.
    """
    file_path, offset = _segment_path(segment)
    if offset < 0:
        raise ParseError("segment has no 'Index:' line")
    text = segment[offset:]

    marker = text.find(HUNK_MARKER)
    if marker < 0:
        # property-only change or identical content
        return ChangeFile(file_path=file_path, change_type=ChangeType.UNKNOWN)

    headers = text[:marker].split("\n")
    old_header = _find_header(headers, OLD_HEADER_PREFIX)
    new_header = _find_header(headers, NEW_HEADER_PREFIX)
    if old_header is None or new_header is None:
        raise ParseError(
            f"segment for '{file_path}' has a hunk but no '---'/'+++' header lines",
            segment_path=file_path,
        )

    old_exists = _side_exists(old_header)
    new_exists = _side_exists(new_header)
    if old_exists and not new_exists:
        change_type = ChangeType.DELETED
    elif not old_exists and new_exists:
        change_type = ChangeType.ADDED
    else:
        change_type = ChangeType.MODIFIED

    # body starts after the first hunk header line
    hunk_line_end = text.find("\n", marker + 1)
    body = "" if hunk_line_end == -1 else text[hunk_line_end + 1:]
    return ChangeFile(file_path=file_path, change_type=change_type, body=body)


def iter_change_files(lines: Iterable[str], strict: bool = False) -> Iterator[ChangeFile]:
    """Yield a :class:`ChangeFile` for every segment in *lines*, in order.

    With *strict* a malformed segment raises :class:`ParseError`.  Otherwise
    it is logged and reported as an ``UNKNOWN`` record carrying ``error``,
    and parsing carries on with the next segment.
    """
    for segment in split_segments(lines):
        try:
            yield parse_change_file(segment)
        except ParseError as exc:
            if strict:
                raise
            logger.warning("Malformed diff segment: %s", exc)
            yield ChangeFile(
                file_path=exc.segment_path,
                change_type=ChangeType.UNKNOWN,
                error=str(exc),
            )


def parse_diff(text: str, strict: bool = False) -> list[ChangeFile]:
    """Parse a combined diff held in memory."""
    return list(iter_change_files(split_lines(text), strict=strict))


def read_lines(path: str | Path) -> Iterator[str]:
    """Yield the ``\\n``-terminated lines of a diff file, decoded as UTF-8."""
    with open(path, "rb") as f:
        for raw in f:
            yield raw.decode("utf-8", errors="replace")


def parse_diff_file(path: str | Path, strict: bool = False) -> list[ChangeFile]:
    """Parse a combined diff file without loading it as one string."""
    return list(iter_change_files(read_lines(path), strict=strict))
