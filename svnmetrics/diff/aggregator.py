"""Aggregator — concatenate per-path diffs into one scratch file."""

from __future__ import annotations

import logging
import os
import random
import tempfile
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from svnmetrics.adapters.base import VcsClient
from svnmetrics.errors import DiffFetchError, ScratchFileError, VcsError
from svnmetrics.logging_config import log_timing

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 100
_SUFFIX_RANGE = 10000


def create_scratch_file(
    start_revision: int,
    end_revision: int,
    scratch_dir: str | Path | None = None,
) -> Path:
    """Atomically create an empty, uniquely named scratch file.

    Only a name collision triggers another attempt; any other ``OSError``
    propagates.
    """
    directory = Path(scratch_dir) if scratch_dir else Path(tempfile.gettempdir())
    for _ in range(MAX_NAME_ATTEMPTS):
        suffix = random.randrange(_SUFFIX_RANGE)
        candidate = directory / f"svn_diff_file_{start_revision}_{end_revision}_{suffix}.txt"
        try:
            fd = os.open(candidate, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        except FileExistsError:
            logger.debug("Scratch name %s taken, retrying", candidate.name)
            continue
        os.close(fd)
        return candidate
    raise ScratchFileError(
        f"no free scratch file name in {directory} after {MAX_NAME_ATTEMPTS} attempts"
    )


def _fetch(client: VcsClient, path: str | None, start: int, end: int) -> bytes:
    try:
        return client.unified_diff(path, start, end)
    except DiffFetchError:
        raise
    except VcsError as exc:
        raise DiffFetchError(
            f"diff of {path or client.project_url} r{start}:r{end} failed: {exc}",
            path=path,
            command=exc.command,
            stderr=exc.stderr,
        ) from exc


def aggregate_diff(
    client: VcsClient,
    start_revision: int,
    end_revision: int,
    paths: Sequence[str] | None,
    *,
    scratch_dir: str | Path | None = None,
    workers: int = 1,
) -> Path:
    """Write the diffs of *paths* between two revisions to a new scratch file.

    Diffs are appended in *paths* order, byte for byte as the client returns
    them.  An empty *paths* gives an empty file; ``None`` diffs the client's
    project URL as a whole.  With *workers* > 1 the fetches run in parallel
    and are written back in order.

    If any fetch fails the scratch file is removed and
    :class:`DiffFetchError` propagates.
    """
    targets: list[str | None] = [None] if paths is None else list(paths)
    scratch = create_scratch_file(start_revision, end_revision, scratch_dir)
    logger.debug(
        "Aggregating %d diff(s) r%d:r%d into %s",
        len(targets), start_revision, end_revision, scratch,
    )

    try:
        with log_timing(logger, f"diff aggregation r{start_revision}:r{end_revision}"), \
                open(scratch, "ab") as out:
            if workers > 1 and len(targets) > 1:
                with ThreadPoolExecutor(max_workers=workers) as ex:
                    # map() yields in submission order
                    chunks = ex.map(
                        lambda p: _fetch(client, p, start_revision, end_revision),
                        targets,
                    )
                    for chunk in chunks:
                        out.write(chunk)
            else:
                for target in targets:
                    out.write(_fetch(client, target, start_revision, end_revision))
    except BaseException:
        scratch.unlink(missing_ok=True)
        raise

    return scratch
