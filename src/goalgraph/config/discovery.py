"""Locating ``goalgraph.toml`` and the store it points at.

The config file is found like git finds ``.git/``: ``GOALGRAPH_CONFIG``
wins, otherwise the walk goes up from the working directory. The
directory holding the file becomes the settings root, and relative
store paths (``[store] path``, ``--store``) resolve against it.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from goalgraph.config.models import GoalGraphConfig

CONFIG_FILENAME = "goalgraph.toml"
CONFIG_ENV_VAR = "GOALGRAPH_CONFIG"


class ConfigError(ValueError):
    """The configuration file could not be parsed."""


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file in effect, or None.

    A ``GOALGRAPH_CONFIG`` naming a missing file yields None rather than
    falling back to the walk.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def discover_root(config_path: Path | None) -> Path:
    """Settings root: the config file's directory, else the working directory."""
    return config_path.parent if config_path else Path.cwd()


def resolve_store_path(root: Path, path: Path) -> Path:
    """Absolute store location; ``~`` expands, relative paths join *root*."""
    path = path.expanduser()
    return path if path.is_absolute() else root / path


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*; an empty file is an empty mapping.

    Raises:
        ConfigError: If the file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc


def load_config(path: Path | None = None, cwd: Path | None = None) -> GoalGraphConfig:
    """Validate the sections of *path* (discovered from *cwd* when None).

    Returns the defaults when no file is found.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return GoalGraphConfig()
    return GoalGraphConfig.model_validate(read_toml(path))
