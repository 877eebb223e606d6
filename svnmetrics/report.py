"""Report rendering — text and JSON outputs."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import svnmetrics
from svnmetrics.models import ChangeType, DiffStats, LogEntry

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ---------------------------------------------------------------------------
# Added-line statistics
# ---------------------------------------------------------------------------


def render_text(stats: DiffStats, title: str = "Added lines") -> str:
    """Produce human-friendly text output for a diff count."""
    lines: list[str] = []

    lines.append("=" * 60)
    lines.append(f"svnmetrics {svnmetrics.__version__} — {title}")
    lines.append("=" * 60)

    if not stats.files:
        lines.append("No changed files.")
    else:
        for f in stats.files:
            lines.append(f"  {f.change_type.value}  {f.added_lines:>7}  {f.file_path}")

    if stats.malformed:
        lines.append("")
        lines.append(f"Malformed segments ({len(stats.malformed)}):")
        for c in stats.malformed:
            lines.append(f"  {c.file_path or '(no path)'}: {c.error}")

    lines.append("-" * 60)
    by_type = _count_by_type(stats)
    lines.append(
        f"Files: {len(stats.files)} ({by_type['A']} added, {by_type['M']} modified, "
        f"{by_type['D']} deleted, {by_type['U']} unknown)"
    )
    lines.append(f"Added lines: {stats.total}")
    lines.append("=" * 60)

    return "\n".join(lines)


def _count_by_type(stats: DiffStats) -> dict[str, int]:
    counts = {t.value: 0 for t in ChangeType}
    for f in stats.files:
        counts[f.change_type.value] += 1
    return counts


def render_json(stats: DiffStats) -> str:
    """Produce stable JSON output (files in diff order)."""
    doc: dict[str, Any] = {
        "tool": "svnmetrics",
        "version": svnmetrics.__version__,
        "summary": {
            "files": len(stats.files),
            "added_lines": stats.total,
            "by_change_type": _count_by_type(stats),
            "malformed": len(stats.malformed),
        },
        "files": [
            {
                "file": f.file_path,
                "change_type": f.change_type.value,
                "added_lines": f.added_lines,
            }
            for f in stats.files
        ],
        "malformed": [
            {"file": c.file_path, "error": c.error} for c in stats.malformed
        ],
    }
    return json.dumps(doc, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Log entries
# ---------------------------------------------------------------------------


def render_logs_text(entries: Sequence[LogEntry], show_paths: bool = True) -> str:
    """One block per revision: header line, then changed paths."""
    if not entries:
        return "No log entries."
    lines: list[str] = []
    for e in entries:
        lines.append(f"r{e.revision} {e.date.strftime(_DATE_FORMAT)} {e.author} {e.message.strip()}")
        if show_paths:
            for path in sorted(e.changed_paths):
                lines.append(f"  {e.changed_paths[path].action.value} {path}")
    return "\n".join(lines)


def _entry_to_dict(e: LogEntry) -> dict[str, Any]:
    return {
        "revision": e.revision,
        "author": e.author,
        "date": e.date.isoformat(),
        "message": e.message,
        "changed_paths": [
            {
                "path": c.path,
                "action": c.action.value,
                "kind": c.kind,
                "copy_from_path": c.copy_from_path,
                "copy_from_revision": c.copy_from_revision,
            }
            for c in sorted(e.changed_paths.values(), key=lambda c: c.path)
        ],
    }


def render_logs_json(entries: Sequence[LogEntry]) -> str:
    doc = {
        "tool": "svnmetrics",
        "version": svnmetrics.__version__,
        "entries": [_entry_to_dict(e) for e in entries],
    }
    return json.dumps(doc, indent=2, ensure_ascii=False)
