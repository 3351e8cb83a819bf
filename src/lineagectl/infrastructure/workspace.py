"""Workspace: the single dependency injected into every service.

Owns the SQLite engine and the async :class:`ProjectStore` for one
workspace root. The database lives at
``{workspace_root}/.lineagectl/lineagectl.db`` unless ``[store]`` says
otherwise.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lineagectl.infrastructure.database.engine import init_database
from lineagectl.infrastructure.store import ProjectStore

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from lineagectl.config.settings import LineageSettings

logger = logging.getLogger(__name__)


class Workspace:
    """Repository encapsulating database and project-store access.

    Constructed lazily by the CLI context from :class:`LineageSettings`.
    Services receive the Workspace via their :class:`BaseService`
    constructor.
    """

    def __init__(self, settings: LineageSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.db_path)
        self._store = ProjectStore(self._engine)
        logger.debug("Opened project store at %s", settings.db_path)

    @property
    def root(self) -> Path:
        """The workspace root directory."""
        return self._settings.workspace_root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def store(self) -> ProjectStore:
        return self._store

    @property
    def settings(self) -> LineageSettings:
        """The resolved settings for this workspace."""
        return self._settings

    def close(self) -> None:
        """Dispose of the database engine and release file handles."""
        self._engine.dispose()
