"""Client registry — resolve a client spec string to a :class:`VcsClient`."""

from __future__ import annotations

import importlib
import logging
from importlib.metadata import entry_points
from typing import Any

from svnmetrics.adapters.base import VcsClient
from svnmetrics.adapters.svn_cli import SvnCliClient

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "svnmetrics.clients"
BUILTIN_CLIENTS: dict[str, type] = {"svn": SvnCliClient}


def _instantiate(obj: Any, options: dict[str, Any]) -> VcsClient:
    return obj(**options) if isinstance(obj, type) else obj


def load_import_client(import_string: str, **options: Any) -> VcsClient:
    """Load a client from ``pkg.module:ClassName`` (the part after ``import:``)."""
    module_path, class_name = import_string.rsplit(":", 1)
    mod = importlib.import_module(module_path)
    return _instantiate(getattr(mod, class_name), options)


def _entry_point_clients() -> dict[str, Any]:
    """Return entry points of the ``svnmetrics.clients`` group by name."""
    return {ep.name: ep for ep in entry_points(group=ENTRY_POINT_GROUP)}


def load_client(client_spec: str = "svn", **options: Any) -> VcsClient:
    """Return a client for *client_spec*.

    ``svn``        — built-in ``svn`` command-line client
    ``import:...`` — ``import:pkg.module:Class``
    ``<name>``     — a client registered under the ``svnmetrics.clients``
                     entry-point group

    *options* are passed to the client's constructor when the spec names a
    class.
    """
    if client_spec.startswith("import:"):
        return load_import_client(client_spec[len("import:"):], **options)

    if client_spec in BUILTIN_CLIENTS:
        return _instantiate(BUILTIN_CLIENTS[client_spec], options)

    eps = _entry_point_clients()
    if client_spec not in eps:
        raise ValueError(f"No registered client named '{client_spec}'")
    logger.debug("Loading client '%s' from entry point %s", client_spec, eps[client_spec].value)
    return _instantiate(eps[client_spec].load(), options)


def list_client_names() -> list[str]:
    """Names accepted by :func:`load_client` (built-in and entry points)."""
    return sorted(set(BUILTIN_CLIENTS) | set(_entry_point_clients()))
