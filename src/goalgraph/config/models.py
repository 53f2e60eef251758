"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``goalgraph.toml`` only
contains overrides. An empty file is a valid configuration.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_STORE_PATH = Path(".goalgraph") / "goalgraph.db"
MAX_VISIBILITY_DEPTH = 64


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the settings root.
    path: Path = DEFAULT_STORE_PATH
    busy_timeout: float = Field(default=5.0, ge=0.0)
    default_timeout: float | None = Field(default=None, gt=0.0)


class VisibilityConfig(BaseModel):
    """[visibility] section."""

    model_config = {"frozen": True}

    max_depth: int = Field(default=10, ge=1, le=MAX_VISIBILITY_DEPTH)


class GoalGraphConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    store: StoreConfig = Field(default_factory=StoreConfig)
    visibility: VisibilityConfig = Field(default_factory=VisibilityConfig)
