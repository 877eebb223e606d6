"""CLI — click-based command-line interface."""

from __future__ import annotations

import functools
import os
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import click

from svnmetrics.adapters.registry import list_client_names, load_client
from svnmetrics.config import SvnMetricsConfig, load_config
from svnmetrics.diff.parser import read_lines
from svnmetrics.diff.stats import diff_stats
from svnmetrics.errors import SvnMetricsError
from svnmetrics.facade import SvnMetrics
from svnmetrics.logging_config import setup_logging
from svnmetrics.report import (
    render_json,
    render_logs_json,
    render_logs_text,
    render_text,
)

DATE = click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"])
FORMAT = click.Choice(["text", "json"], case_sensitive=False)


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn svnmetrics errors into ``Error: ...`` on stderr and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SvnMetricsError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    return wrapper


class _Session:
    """Lazily connected :class:`SvnMetrics` shared by one CLI invocation."""

    def __init__(self, cfg: SvnMetricsConfig, password: str | None) -> None:
        self.cfg = cfg
        self.password = password
        self._metrics: SvnMetrics | None = None

    def metrics(self) -> SvnMetrics:
        if self._metrics is not None:
            return self._metrics
        repo = self.cfg.repository
        if not repo.url:
            raise click.UsageError(
                "No repository URL. Pass --url or set repository.url in .svnmetrics.yml."
            )
        options: dict[str, Any] = {}
        if repo.client == "svn":
            options = {"svn_binary": repo.svn_binary, "timeout": repo.timeout}
        try:
            client = load_client(repo.client, **options)
        except ValueError as exc:
            raise click.UsageError(str(exc)) from exc
        client.connect(repo.url, repo.username or None, self.password)
        self._metrics = SvnMetrics(
            client,
            scratch_dir=self.cfg.diff.resolved_scratch_dir,
            workers=self.cfg.diff.workers,
            keep_scratch=self.cfg.diff.keep_scratch,
        )
        return self._metrics

    def close(self) -> None:
        if self._metrics is not None:
            self._metrics.close()


@click.group()
@click.option("--config", "config_path", default=None, type=click.Path(exists=True),
              help="Explicit config file (skips project/user lookup).")
@click.option("--url", default=None, help="Repository (project) URL.")
@click.option("--username", default=None, help="Repository user name.")
@click.option("--password", default=None, envvar="SVNMETRICS_PASSWORD",
              help="Repository password (default: $SVNMETRICS_PASSWORD).")
@click.option("--client", "client_spec", default=None,
              help="svn | import:pkg.module:Class | <entry-point name>")
@click.option("-v", "--verbose", count=True, help="-v for INFO, -vv for DEBUG.")
@click.pass_context
@_handle_errors
def main(
    ctx: click.Context,
    config_path: str | None,
    url: str | None,
    username: str | None,
    password: str | None,
    client_spec: str | None,
    verbose: int,
) -> None:
    """svnmetrics — Subversion history and added-line metrics."""
    cfg = load_config(start_dir=os.getcwd(), config_path=config_path)

    # CLI flags override config values
    if url:
        cfg.repository.url = url
    if username:
        cfg.repository.username = username
    if client_spec:
        cfg.repository.client = client_spec
    if password is None:
        password = cfg.repository.password

    level = {0: cfg.logging.level, 1: "INFO"}.get(verbose, "DEBUG")
    setup_logging(level)

    session = _Session(cfg, password)
    ctx.obj = session
    ctx.call_on_close(session.close)


# ───────────────────────────────────────────────────────────────────
# history
# ───────────────────────────────────────────────────────────────────

@main.command()
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@click.option("--author", default=None, help="Only this author (case-insensitive).")
@click.option("--format", "fmt", default="text", type=FORMAT, help="Output format.")
@click.option("--no-paths", is_flag=True, default=False, help="Omit changed paths.")
@click.pass_obj
@_handle_errors
def logs(session: _Session, start: datetime, end: datetime, author: str | None,
         fmt: str, no_paths: bool) -> None:
    """List commits between START and END, oldest first."""
    entries = session.metrics().logs_in_range(start, end, author)
    if fmt == "json":
        click.echo(render_logs_json(entries))
    else:
        click.echo(render_logs_text(entries, show_paths=not no_paths))


@main.command()
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@click.option("--author", default=None, help="Only paths this author touched.")
@click.pass_obj
@_handle_errors
def paths(session: _Session, start: datetime, end: datetime, author: str | None) -> None:
    """List distinct URLs changed between START and END."""
    for url in session.metrics().changed_paths_in_window(start, end, author):
        click.echo(url)


@main.command()
@click.argument("revision", type=int)
@click.pass_obj
@_handle_errors
def changes(session: _Session, revision: int) -> None:
    """List the paths changed in REVISION."""
    for change in session.metrics().changed_files_in_revision(revision):
        click.echo(f"{change.action.value} {change.path}")


# ───────────────────────────────────────────────────────────────────
# diffs and counts
# ───────────────────────────────────────────────────────────────────

@main.command()
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@click.option("--author", default=None, help="Only paths this author touched.")
@click.option("--out", "out_path", default=None, type=click.Path(dir_okay=False),
              help="Move the combined diff here instead of leaving it in the scratch dir.")
@click.pass_obj
@_handle_errors
def changelog(session: _Session, start: datetime, end: datetime, author: str | None,
              out_path: str | None) -> None:
    """Write the combined diff of the paths changed between START and END."""
    scratch = session.metrics().change_log(start, end, author)
    if out_path:
        shutil.move(str(scratch), out_path)
        scratch = Path(out_path)
    click.echo(str(scratch))


@main.command()
@click.argument("diff_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--delete", "delete_file", is_flag=True, default=False,
              help="Delete DIFF_FILE after counting.")
@click.option("--strict", is_flag=True, default=False,
              help="Fail on malformed segments instead of reporting them.")
@click.option("--format", "fmt", default="text", type=FORMAT, help="Output format.")
@_handle_errors
def count(diff_file: str, delete_file: bool, strict: bool, fmt: str) -> None:
    """Count added lines in an existing combined diff file."""
    stats = diff_stats(read_lines(diff_file), strict=strict)
    if delete_file:
        Path(diff_file).unlink(missing_ok=True)
    click.echo(render_json(stats) if fmt == "json" else render_text(stats, title=diff_file))


@main.command()
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@click.option("--author", default=None, help="Only paths this author touched.")
@click.option("--format", "fmt", default="text", type=FORMAT, help="Output format.")
@click.pass_obj
@_handle_errors
def stats(session: _Session, start: datetime, end: datetime, author: str | None,
          fmt: str) -> None:
    """Per-file added lines over the paths changed between START and END."""
    metrics = session.metrics()
    result = metrics.count_added_lines(metrics.change_log(start, end, author))
    if fmt == "json":
        click.echo(render_json(result))
    else:
        click.echo(render_text(result, title=f"{start:%Y-%m-%d %H:%M} .. {end:%Y-%m-%d %H:%M}"))


@main.command()
@click.argument("start", type=DATE)
@click.argument("end", type=DATE)
@click.pass_obj
@_handle_errors
def added(session: _Session, start: datetime, end: datetime) -> None:
    """Total added lines between consecutive revisions from START to END."""
    click.echo(session.metrics().added_lines_in_window(start, end))


# ───────────────────────────────────────────────────────────────────
# browsing
# ───────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path")
@click.option("-r", "--revision", default=None, type=int, help="Revision (default HEAD).")
@click.pass_obj
@_handle_errors
def cat(session: _Session, path: str, revision: int | None) -> None:
    """Print the content of PATH."""
    click.echo(session.metrics().read_file(path, revision), nl=False)


@main.command("ls")
@click.argument("path", default="")
@click.option("-r", "--revision", default=None, type=int, help="Revision (default HEAD).")
@click.pass_obj
@_handle_errors
def ls_(session: _Session, path: str, revision: int | None) -> None:
    """List the entries of directory PATH."""
    for entry in session.metrics().list_folder(path, revision):
        suffix = "/" if entry.kind == "dir" else ""
        click.echo(f"{entry.name}{suffix}")


@main.command()
@click.argument("path")
@click.option("-r", "--revision", default=None, type=int, help="Revision (default HEAD).")
@click.pass_obj
@_handle_errors
def exists(session: _Session, path: str, revision: int | None) -> None:
    """Exit 0 when PATH exists, 1 otherwise."""
    found = session.metrics().path_exists(path, revision)
    click.echo("exists" if found else "not found")
    sys.exit(0 if found else 1)


@main.command("clients")
def clients_() -> None:
    """List available client names."""
    for name in list_client_names():
        click.echo(name)
