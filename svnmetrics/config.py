"""Unified configuration loader for svnmetrics.

Configuration is resolved in priority order: **project > user > defaults**.

1. **Project-level** — ``.svnmetrics.yml`` in (or above) the working directory.
2. **User-level** — ``~/.svnmetrics/config.yml``.
3. **Built-in defaults** — hardcoded fallbacks.

Both files share the same format::

    # .svnmetrics.yml  or  ~/.svnmetrics/config.yml
    repository:
      url: https://svn.example.com/repos/project/trunk
      username: alice
      password_env: SVNMETRICS_PASSWORD
      client: svn
      svn_binary: svn
      timeout: 300

    diff:
      workers: 4
      scratch_dir: ""
      keep_scratch: false

    logging:
      level: WARNING

Project-level values override user-level values.  CLI flags override both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from svnmetrics.errors import ConfigError
from svnmetrics.logging_config import DEFAULT_LOG_LEVEL, LEVEL_NAMES

CONFIG_FILENAME = ".svnmetrics.yml"
USER_CONFIG_DIR = Path.home() / ".svnmetrics"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yml"
DEFAULT_PASSWORD_ENV = "SVNMETRICS_PASSWORD"

_SECTIONS = ("repository", "diff", "logging")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class RepositoryConfig:
    """Where and how to connect."""

    url: str = ""
    username: str = ""
    password_env: str = DEFAULT_PASSWORD_ENV
    client: str = "svn"
    svn_binary: str = "svn"
    timeout: float = 300

    @property
    def password(self) -> str | None:
        """Password read from the configured environment variable."""
        return os.environ.get(self.password_env) if self.password_env else None


@dataclass
class DiffConfig:
    """Diff aggregation settings."""

    workers: int = 1
    scratch_dir: str = ""
    keep_scratch: bool = False

    @property
    def resolved_scratch_dir(self) -> Path | None:
        return Path(self.scratch_dir).expanduser() if self.scratch_dir else None


@dataclass
class LoggingConfig:
    level: str = DEFAULT_LOG_LEVEL


@dataclass
class SvnMetricsConfig:
    """Top-level configuration container."""

    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Where the effective config was loaded from (None = defaults only).
    project_config_path: str | None = None
    user_config_path: str | None = None


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(
    start_dir: str | None = None,
    config_path: str | Path | None = None,
) -> SvnMetricsConfig:
    """Load merged configuration (project > user > defaults).

    Parameters
    ----------
    start_dir:
        Directory to search for ``.svnmetrics.yml``.  When *None*, only
        the user-level file (and defaults) are considered.
    config_path:
        Explicit config file path.  When given, *only* this file is
        loaded (no project/user search).

    Raises :class:`ConfigError` when a value is present but invalid.
    """
    if config_path is not None:
        raw = _load_yaml(Path(config_path).expanduser())
        return _raw_to_config(raw, config_source=str(config_path))

    user_raw = _load_yaml(USER_CONFIG_PATH)
    user_source = str(USER_CONFIG_PATH) if user_raw else None

    project_raw: dict | None = None
    project_source: str | None = None
    if start_dir is not None:
        project_path = _find_project_config(start_dir)
        if project_path is not None:
            project_raw = _load_yaml(project_path)
            project_source = str(project_path)

    merged = _merge_raw(project_raw, user_raw)
    cfg = _raw_to_config(merged)
    cfg.project_config_path = project_source
    cfg.user_config_path = user_source
    return cfg


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _find_project_config(start_dir: str) -> Path | None:
    """Search for ``.svnmetrics.yml`` in *start_dir* and its ancestors."""
    p = Path(start_dir)
    candidates = [p / CONFIG_FILENAME]
    for parent in p.parents:
        candidates.append(parent / CONFIG_FILENAME)
        if (parent / ".git").exists() or (parent / ".svn").exists():
            break
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _load_yaml(path: Path) -> dict | None:
    """Load a YAML file, returning *None* on missing/invalid files."""
    path = path.expanduser()
    if not path.is_file():
        return None
    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError):
        return None
    return raw if isinstance(raw, dict) else None


def _merge_raw(
    project: dict | None,
    user: dict | None,
) -> dict:
    """Merge project and user raw dicts section by section (project wins)."""
    base: dict = {}
    for layer in (user, project):
        if not layer:
            continue
        for key in _SECTIONS:
            section = layer.get(key)
            if isinstance(section, dict):
                base.setdefault(key, {}).update(section)
    return base


def _section(raw: dict, key: str) -> dict:
    section = raw.get(key, {})
    return section if isinstance(section, dict) else {}


def _raw_to_config(
    raw: dict | None,
    config_source: str | None = None,
) -> SvnMetricsConfig:
    """Convert a raw YAML dict to a ``SvnMetricsConfig``."""
    if not raw:
        return SvnMetricsConfig(project_config_path=config_source)

    repo_raw = _section(raw, "repository")
    diff_raw = _section(raw, "diff")
    log_raw = _section(raw, "logging")

    try:
        repository = RepositoryConfig(
            url=str(repo_raw.get("url", "") or ""),
            username=str(repo_raw.get("username", "") or ""),
            password_env=str(repo_raw.get("password_env", DEFAULT_PASSWORD_ENV) or ""),
            client=str(repo_raw.get("client", "svn") or "svn"),
            svn_binary=str(repo_raw.get("svn_binary", "svn") or "svn"),
            timeout=float(repo_raw.get("timeout", 300)),
        )
        diff = DiffConfig(
            workers=int(diff_raw.get("workers", 1)),
            scratch_dir=str(diff_raw.get("scratch_dir", "") or ""),
            keep_scratch=bool(diff_raw.get("keep_scratch", False)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid configuration value: {exc}") from exc

    if diff.workers < 1:
        raise ConfigError(f"diff.workers must be at least 1, got {diff.workers}")
    if repository.timeout <= 0:
        raise ConfigError(f"repository.timeout must be positive, got {repository.timeout}")

    level = str(log_raw.get("level", DEFAULT_LOG_LEVEL)).upper()
    if level not in LEVEL_NAMES:
        raise ConfigError(f"logging.level must be one of {', '.join(LEVEL_NAMES)}, got {level}")

    return SvnMetricsConfig(
        repository=repository,
        diff=diff,
        logging=LoggingConfig(level=level),
        project_config_path=config_source,
    )
