"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags or library callers
  2. Env vars     — ``GOALGRAPH_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``goalgraph.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from goalgraph.config.discovery import (
    discover_root,
    find_config,
    read_toml,
    resolve_store_path,
)
from goalgraph.config.models import StoreConfig, VisibilityConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``goalgraph.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            self._data = read_toml(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class GoalGraphSettings(BaseSettings):
    """Unified, frozen settings for the library and the CLI.

    Attributes:
        root: Directory relative store paths resolve against (parent of
            ``goalgraph.toml``, or CWD if no config found).
        config_path: The TOML file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "GOALGRAPH_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    store: StoreConfig = Field(default_factory=StoreConfig)
    visibility: VisibilityConfig = Field(default_factory=VisibilityConfig)

    @property
    def store_path(self) -> Path:
        """Absolute location of the store database."""
        return resolve_store_path(self.root, self.store.path)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> GoalGraphSettings:
        """Construct settings for a CLI invocation or a library caller.

        Discovers ``goalgraph.toml`` via walk-up (or explicit
        *config_path*), resolves *root* from the config file's parent
        directory, and merges *overrides* as highest-priority values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(root)

        resolved_root = root if root is not None else discover_root(toml_path)

        _tls.toml_path = toml_path
        try:
            return cls(
                root=resolved_root,
                config_path=toml_path,
                **overrides,
            )
        finally:
            _tls.toml_path = None
