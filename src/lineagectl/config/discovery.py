"""Config and workspace discovery.

Walk-up finder locates lineagectl.toml, similar to how git finds .git/.
A directory holding a ``.lineagectl/`` store also marks a workspace root,
so a workspace without any config file is still found from a subdirectory.
Supports the LINEAGECTL_CONFIG env var and --config CLI flag overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from lineagectl.config.models import LineageConfig

CONFIG_FILENAME = "lineagectl.toml"
CONFIG_ENV_VAR = "LINEAGECTL_CONFIG"
STORE_DIRNAME = ".lineagectl"


def _walk_up(start: Path | None) -> list[Path]:
    current = (start or Path.cwd()).resolve()
    chain = [current]
    while current.parent != current:
        current = current.parent
        chain.append(current)
    return chain


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for lineagectl.toml.

    Returns the path to the config file, or None if not found.
    Checks LINEAGECTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    for directory in _walk_up(start):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def find_workspace_root(start: Path | None = None) -> Path | None:
    """Return the nearest directory with a config file or a store directory."""
    for directory in _walk_up(start):
        if (directory / CONFIG_FILENAME).is_file() or (directory / STORE_DIRNAME).is_dir():
            return directory
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> LineageConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns default LineageConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return LineageConfig()

    raw = path.read_text(encoding="utf-8")
    data: dict[str, Any] = tomllib.loads(raw)
    return LineageConfig.model_validate(data)
