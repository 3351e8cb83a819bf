"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, lineagectl.toml only contains
overrides. A fresh workspace needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- lineagectl.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    directory: str = ".lineagectl"
    db_name: str = "lineagectl.db"


class LayoutConfig(BaseModel):
    """[layout] section. All values are logical canvas units."""

    model_config = {"frozen": True}

    node_width: float = 180
    node_height: float = 80
    rank_spacing: float = 150
    node_spacing: float = 40
    margin: float = 50
    component_gap: float = 50
    sweep_iterations: int = 4


class FiltersConfig(BaseModel):
    """[filters] section: initial live filters for a fresh import."""

    model_config = {"frozen": True}

    default_resource_types: list[str] = Field(default_factory=lambda: ["model", "seed"])
    default_tag_mode: str = "OR"


class LineageConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    store: StoreConfig = Field(default_factory=StoreConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
