"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``LINEAGECTL_*`` prefix
  3. TOML file: ``lineagectl.toml`` discovered via walk-up
  4. Code defaults: baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`lineagectl.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from lineagectl.config.discovery import find_config, find_workspace_root
from lineagectl.config.models import FiltersConfig, LayoutConfig, StoreConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``lineagectl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class LineageSettings(BaseSettings):
    """Unified settings for the lineagectl CLI.

    Attributes:
        workspace_root: Directory holding the ``.lineagectl/`` store
            (parent of ``lineagectl.toml``, an existing store, or CWD).
        config_path: Resolved config file, or None when running on defaults.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "LINEAGECTL_",
        "env_nested_delimiter": "__",
    }

    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    store: StoreConfig = Field(default_factory=StoreConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)

    # Retained for type-checker visibility; not used at runtime.
    _toml_path: ClassVar[Path | None] = None

    @property
    def db_path(self) -> Path:
        """Absolute path of the SQLite project store."""
        return self.workspace_root / self.store.directory / self.store.db_name

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
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> LineageSettings:
        """Construct settings from CLI invocation.

        Discovers ``lineagectl.toml`` via walk-up (or explicit *config_path*),
        resolves *workspace_root* from the config file or an existing store,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(workspace_root)

        resolved_root = workspace_root
        if resolved_root is None:
            if toml_path is not None:
                resolved_root = toml_path.parent
            else:
                resolved_root = find_workspace_root() or Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                workspace_root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None
