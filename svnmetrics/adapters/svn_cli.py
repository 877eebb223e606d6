"""Subversion client backed by the ``svn`` command-line tool.

Every operation runs one non-interactive ``svn`` command and parses its
``--xml`` output.  The password, when given, is passed on stdin
(``--password-from-stdin``) and never cached.
"""

from __future__ import annotations

import logging
import subprocess
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from urllib.parse import quote, unquote

from svnmetrics.errors import (
    DiffFetchError,
    RevisionResolutionError,
    VcsConnectionError,
    VcsError,
)
from svnmetrics.logging_config import log_timing
from svnmetrics.models import DirEntry, LogEntry, PathAction, PathChange

logger = logging.getLogger(__name__)

# svn error codes meaning "no such path at that revision"
_NOT_FOUND_CODES = ("E160013", "E170000", "W170000", "E200009", "W160013")


def parse_svn_date(raw: str | None) -> datetime | None:
    """Parse an ``svn --xml`` timestamp (``2021-01-22T09:15:00.123456Z``)."""
    if not raw:
        return None
    val = raw.strip()
    for fmt in ("%Y-%m-%dT%H:%M:%S.%fZ", "%Y-%m-%dT%H:%M:%SZ"):
        try:
            return datetime.strptime(val, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(val.replace("Z", "+00:00"))
    except ValueError as exc:
        raise VcsError(f"unexpected svn timestamp {val!r}") from exc


def format_svn_date(when: datetime) -> str:
    """Format *when* as an svn revision date, e.g. ``{2021-01-22T17:15:00}``.

    Naive datetimes are interpreted by svn in the local time zone.
    """
    return "{" + when.isoformat(sep="T", timespec="seconds") + "}"


def _xml_root(data: bytes | str, command: str) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        raise VcsError(f"unexpected 'svn {command} --xml' output: {exc}") from exc


def _text(elem: ET.Element | None, tag: str) -> str:
    child = elem.find(tag) if elem is not None else None
    return (child.text or "") if child is not None else ""


def parse_log_xml(data: bytes | str) -> list[LogEntry]:
    """Parse ``svn log --xml [-v]`` output into log entries (server order)."""
    root = _xml_root(data, "log")
    entries: list[LogEntry] = []
    for logentry in root.findall("logentry"):
        changed: dict[str, PathChange] = {}
        paths = logentry.find("paths")
        if paths is not None:
            for path in paths.findall("path"):
                copy_rev = path.get("copyfrom-rev")
                change = PathChange(
                    path=path.text or "",
                    action=PathAction.from_code(path.get("action") or "M"),
                    kind=path.get("kind") or "",
                    copy_from_path=path.get("copyfrom-path"),
                    copy_from_revision=int(copy_rev) if copy_rev else None,
                )
                changed[change.path] = change
        entries.append(LogEntry(
            revision=int(logentry.get("revision", "0")),
            author=_text(logentry, "author"),
            date=parse_svn_date(_text(logentry, "date"))
            or datetime.fromtimestamp(0, timezone.utc),
            message=_text(logentry, "msg"),
            changed_paths=changed,
        ))
    return entries


def parse_list_xml(data: bytes | str, base_path: str = "") -> list[DirEntry]:
    """Parse ``svn list --xml`` output."""
    root = _xml_root(data, "list")
    entries: list[DirEntry] = []
    for entry in root.iter("entry"):
        name = _text(entry, "name")
        commit = entry.find("commit")
        size = _text(entry, "size")
        entries.append(DirEntry(
            name=name,
            path=f"{base_path.rstrip('/')}/{name}" if base_path else name,
            kind=entry.get("kind", ""),
            size=int(size) if size else 0,
            revision=int(commit.get("revision")) if commit is not None and commit.get("revision") else None,
            author=_text(commit, "author"),
            date=parse_svn_date(_text(commit, "date")),
        ))
    return entries


def parse_info_xml(data: bytes | str) -> dict[str, str]:
    """Return the interesting fields of the first ``svn info --xml`` entry."""
    root = _xml_root(data, "info")
    entry = root.find("entry")
    if entry is None:
        return {}
    repo = entry.find("repository")
    return {
        "revision": entry.get("revision", ""),
        "kind": entry.get("kind", ""),
        "url": _text(entry, "url"),
        "root": _text(repo, "root"),
    }


class SvnCliClient:
    """:class:`~svnmetrics.adapters.base.VcsClient` over the ``svn`` binary."""

    name = "svn"

    def __init__(self, svn_binary: str = "svn", timeout: float | None = 300) -> None:
        self.svn_binary = svn_binary
        self.timeout = timeout
        self._url: str | None = None
        self._root: str | None = None
        self._username: str | None = None
        self._password: str | None = None

    # ---- session ----

    def connect(self, url: str, username: str | None = None, password: str | None = None) -> None:
        self._username = username
        self._password = password
        try:
            info = parse_info_xml(self._run(["info", "--xml", url]))
        except VcsError as exc:
            raise VcsConnectionError(
                f"cannot open session on {url}: {exc}",
                command=exc.command,
                stderr=exc.stderr,
            ) from exc
        if not info.get("root"):
            raise VcsConnectionError(f"{url} did not report a repository root")
        self._url = url.rstrip("/")
        self._root = info["root"].rstrip("/")
        logger.info("Connected to %s (root %s)", self._url, self._root)

    def close(self) -> None:
        self._url = None
        self._root = None
        self._password = None

    @property
    def root_url(self) -> str:
        return self._require_session()[1]

    @property
    def project_url(self) -> str:
        return self._require_session()[0]

    # ---- queries ----

    def dated_revision(self, when: datetime) -> int:
        date = format_svn_date(when)
        try:
            info = parse_info_xml(self._run(["info", "--xml", "-r", date, self.root_url]))
        except VcsError as exc:
            raise RevisionResolutionError(
                f"no revision for {date}: {exc}", command=exc.command, stderr=exc.stderr
            ) from exc
        if not info.get("revision"):
            raise RevisionResolutionError(f"no revision for {date}")
        return int(info["revision"])

    def log_entries(
        self,
        start_revision: int,
        end_revision: int,
        discover_paths: bool = True,
    ) -> list[LogEntry]:
        last = end_revision - 1
        if last < start_revision:
            return []
        args = ["log", "--xml", "-r", f"{start_revision}:{last}"]
        if discover_paths:
            args.append("-v")
        args.append(f"{self.project_url}@{last}")
        with log_timing(logger, f"svn log r{start_revision}:r{last}"):
            return parse_log_xml(self._run(args))

    def unified_diff(self, path: str | None, from_revision: int, to_revision: int) -> bytes:
        if path is None:
            base, rel = self.project_url, ""
        else:
            base, rel = self._split(path)
        args = [
            "diff", "-x", "-w",
            f"--old={base}@{from_revision}",
            f"--new={base}@{to_revision}",
        ]
        if rel:
            # a trailing "@" stops svn reading "icon@2x.png" as a peg revision
            args.append(rel + "@" if "@" in rel else rel)
        try:
            return self._run(args)
        except VcsError as exc:
            raise DiffFetchError(
                f"diff of {path or base} r{from_revision}:r{to_revision} failed: {exc}",
                path=path,
                command=exc.command,
                stderr=exc.stderr,
            ) from exc

    def list_directory(self, path: str, revision: int | None = None) -> list[DirEntry]:
        data = self._run(["list", "--xml", self._target(path, revision)])
        return parse_list_xml(data, base_path=path)

    def path_exists(self, path: str, revision: int | None = None) -> bool:
        try:
            self._run(["info", "--xml", self._target(path, revision)], log_failure=False)
        except VcsError as exc:
            if any(code in exc.stderr for code in _NOT_FOUND_CODES):
                return False
            raise
        return True

    def read_file(self, path: str, revision: int | None = None) -> bytes:
        return self._run(["cat", self._target(path, revision)])

    # ---- internals ----

    def _require_session(self) -> tuple[str, str]:
        if self._url is None or self._root is None:
            raise VcsError("no open session; call connect() first")
        return self._url, self._root

    def _split(self, path: str) -> tuple[str, str]:
        """Return ``(base_url, relative_path)`` for a URL, root-relative or project-relative path."""
        if "://" in path:
            root = self.root_url
            if path.startswith(root):
                return root, unquote(path[len(root):]).lstrip("/")
            return path, ""
        if path.startswith("/"):
            return self.root_url, path.lstrip("/")
        return self.project_url, path

    def _target(self, path: str, revision: int | None) -> str:
        base, rel = self._split(path)
        url = f"{base}/{quote(rel)}" if rel else base
        return f"{url}@{revision if revision is not None else 'HEAD'}"

    def _run(self, args: list[str], log_failure: bool = True) -> bytes:
        cmd = [self.svn_binary, *args, "--non-interactive"]
        stdin: bytes | None = None
        if self._username:
            cmd += ["--username", self._username]
        if self._password is not None:
            cmd += ["--password-from-stdin", "--no-auth-cache"]
            stdin = self._password.encode()
        logger.debug("Executing svn command: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise VcsError(f"svn binary not found: {self.svn_binary}", command=cmd) from exc
        except subprocess.TimeoutExpired as exc:
            raise VcsError(f"svn command timed out after {self.timeout}s", command=cmd) from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            if log_failure:
                logger.error("svn command failed: %s\nSTDERR: %s", " ".join(cmd), stderr)
            raise VcsError(stderr or f"svn exited with {result.returncode}", command=cmd, stderr=stderr)
        return result.stdout
