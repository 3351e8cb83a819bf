"""ProjectStore: durable project snapshots plus a metadata index.

INVARIANT: a ``load`` never observes a partially written project. Every
``save`` registers its write in the store's pending table *synchronously*,
before the caller first yields, and ``load``/``delete`` of the same id
wait for that write to settle before touching the database. Saves of
the same id are chained; saves of different ids run independently.

INVARIANT: storage failures never escape as exceptions. They are logged
here and reported as ``False`` / ``None`` / ``[]`` so callers can degrade
gracefully.

Blocking SQL runs in worker threads via :func:`asyncio.to_thread`; the
store itself must be driven from a single event loop.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from functools import partial
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from lineagectl.domain.models import BACKUP_VERSION, DatabaseBackup, ProjectMetadata, SavedProject
from lineagectl.infrastructure.database.schema import project_index, projects

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

_REQUIRED_PROJECT_KEYS = ("metadata", "nodes", "edges")


def _sort_key(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _index_values(metadata: ProjectMetadata) -> dict[str, Any]:
    return {
        "id": metadata.id,
        "name": metadata.name,
        "source_project_name": metadata.source_project_name,
        "created_at": metadata.created_at,
        "updated_at": metadata.updated_at,
        "node_count": metadata.node_count,
        "planned_node_count": metadata.planned_node_count,
        "schema_version": metadata.schema_version,
    }


def _row_to_metadata(row: Any) -> ProjectMetadata:
    return ProjectMetadata(
        id=row.id,
        name=row.name,
        source_project_name=row.source_project_name,
        created_at=row.created_at,
        updated_at=row.updated_at,
        node_count=row.node_count,
        planned_node_count=row.planned_node_count,
        schema_version=row.schema_version,
    )


class ProjectStore:
    """Async key/value store of :class:`SavedProject` blobs keyed by id.

    The pending-write table is owned by the instance, so separate stores
    (for example in tests) never share ordering state.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._pending: dict[str, asyncio.Task[bool]] = {}

    # ------------------------------------------------------------------
    # Write ordering
    # ------------------------------------------------------------------

    def pending_ids(self) -> set[str]:
        """Ids with a save still in flight."""
        return set(self._pending)

    async def _settled(self, project_id: str) -> None:
        """Wait for an in-flight save of *project_id*, if any."""
        task = self._pending.get(project_id)
        if task is not None:
            await asyncio.wait([task])

    async def _all_settled(self) -> None:
        tasks = list(self._pending.values())
        if tasks:
            await asyncio.wait(tasks)

    def _forget(self, project_id: str, task: asyncio.Task[bool]) -> None:
        if self._pending.get(project_id) is task:
            del self._pending[project_id]

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def save(self, project: SavedProject) -> Awaitable[bool]:
        """Upsert *project* and its index entry.

        Must be called with a running event loop. The write is registered
        before this method returns, so a ``load`` issued right after
        observes it even if the caller has not awaited the result yet.
        The returned awaitable resolves to ``True`` once both the blob
        and the index entry are written. Cancelling it does not cancel
        the write.
        """
        loop = asyncio.get_running_loop()
        project_id = project.metadata.id
        previous = self._pending.get(project_id)
        task = loop.create_task(self._save_after(project, previous))
        self._pending[project_id] = task
        task.add_done_callback(partial(self._forget, project_id))
        return asyncio.shield(task)

    async def _save_after(self, project: SavedProject, previous: asyncio.Task[bool] | None) -> bool:
        if previous is not None:
            await asyncio.wait([previous])
        try:
            await asyncio.to_thread(self._write_project, project)
        except Exception:
            logger.exception("Failed to save project %s", project.metadata.id)
            return False
        logger.debug("Saved project %s", project.metadata.id)
        return True

    async def load(self, project_id: str) -> SavedProject | None:
        """Return the stored project, or ``None`` if missing or unreadable."""
        await self._settled(project_id)
        try:
            return await asyncio.to_thread(self._read_project, project_id)
        except Exception:
            logger.exception("Failed to load project %s", project_id)
            return None

    async def exists(self, project_id: str) -> bool:
        await self._settled(project_id)
        try:
            return await asyncio.to_thread(self._has_project, project_id)
        except Exception:
            logger.exception("Failed to check project %s", project_id)
            return False

    async def delete(self, project_id: str) -> bool:
        """Remove the blob and its index entry."""
        await self._settled(project_id)
        try:
            await asyncio.to_thread(self._delete_project, project_id)
        except Exception:
            logger.exception("Failed to delete project %s", project_id)
            return False
        return True

    async def list_projects(self) -> list[ProjectMetadata]:
        """All index entries, most recently updated first."""
        try:
            entries = await asyncio.to_thread(self._read_index)
        except Exception:
            logger.exception("Failed to list projects")
            return []
        return sorted(entries, key=lambda m: _sort_key(m.updated_at), reverse=True)

    async def export_all(self) -> DatabaseBackup | None:
        """Snapshot every indexed project into a backup document."""
        await self._all_settled()
        try:
            saved = await asyncio.to_thread(self._read_all)
        except Exception:
            logger.exception("Failed to export database")
            return None
        return DatabaseBackup(
            version=BACKUP_VERSION,
            exported_at=datetime.now(UTC).isoformat(),
            projects=saved,
        )

    async def import_all(self, backup: DatabaseBackup | dict[str, Any]) -> bool:
        """Replace both collections with the contents of *backup*.

        The backup is validated before anything is cleared: a missing or
        non-list ``projects`` returns ``False`` and leaves data untouched.
        Individual entries lacking ``metadata``/``nodes``/``edges`` (or
        otherwise invalid) are skipped.
        """
        if isinstance(backup, DatabaseBackup):
            incoming = list(backup.projects)
        else:
            raw = backup.get("projects") if isinstance(backup, dict) else None
            if not isinstance(raw, list):
                logger.warning("Rejected backup: 'projects' is missing or not a list")
                return False
            incoming = list(self._valid_projects(raw))

        await self._all_settled()
        try:
            await asyncio.to_thread(self._replace_all, incoming)
        except Exception:
            logger.exception("Failed to import database")
            return False
        logger.debug("Imported %d projects", len(incoming))
        return True

    async def clear(self) -> bool:
        """Remove every project and index entry."""
        await self._all_settled()
        try:
            await asyncio.to_thread(self._replace_all, [])
        except Exception:
            logger.exception("Failed to clear store")
            return False
        return True

    @staticmethod
    def _valid_projects(raw: Iterable[Any]) -> Iterable[SavedProject]:
        for position, entry in enumerate(raw):
            if not isinstance(entry, dict) or not all(k in entry for k in _REQUIRED_PROJECT_KEYS):
                logger.warning("Skipping backup entry %d: missing metadata, nodes or edges", position)
                continue
            try:
                yield SavedProject.model_validate(entry)
            except ValidationError:
                logger.warning("Skipping backup entry %d: invalid project", position)

    # ------------------------------------------------------------------
    # Blocking SQL (worker threads)
    # ------------------------------------------------------------------

    def _write_project(self, project: SavedProject) -> None:
        """Write the blob, then the index entry, in one transaction."""
        meta = project.metadata
        payload = project.model_dump_json(by_alias=True)
        with self._engine.begin() as conn:
            stmt = sqlite_insert(projects).values(id=meta.id, payload=payload, updated_at=meta.updated_at)
            conn.execute(
                stmt.on_conflict_do_update(
                    index_elements=[projects.c.id],
                    set_={"payload": stmt.excluded.payload, "updated_at": stmt.excluded.updated_at},
                )
            )
            self._upsert_index(conn, meta)

    @staticmethod
    def _upsert_index(conn: Connection, meta: ProjectMetadata) -> None:
        """Replace an existing entry keeping its ``created_at``, else append."""
        values = _index_values(meta)
        existing = conn.execute(
            select(project_index.c.id).where(project_index.c.id == meta.id)
        ).first()
        if existing is not None:
            del values["created_at"]
            conn.execute(update(project_index).where(project_index.c.id == meta.id).values(**values))
            return
        next_position = conn.execute(
            select(func.coalesce(func.max(project_index.c.position), -1) + 1)
        ).scalar_one()
        conn.execute(insert(project_index).values(**values, position=next_position))

    def _read_project(self, project_id: str) -> SavedProject | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(projects.c.payload).where(projects.c.id == project_id)).first()
        if row is None:
            return None
        return SavedProject.model_validate_json(row.payload)

    def _has_project(self, project_id: str) -> bool:
        with self._engine.connect() as conn:
            row = conn.execute(select(projects.c.id).where(projects.c.id == project_id)).first()
        return row is not None

    def _delete_project(self, project_id: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(delete(projects).where(projects.c.id == project_id))
            conn.execute(delete(project_index).where(project_index.c.id == project_id))

    def _read_index(self) -> list[ProjectMetadata]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(project_index).order_by(project_index.c.position)).all()
        return [_row_to_metadata(row) for row in rows]

    def _read_all(self) -> list[SavedProject]:
        """Load every project referenced by the index, in index order."""
        saved: list[SavedProject] = []
        with self._engine.connect() as conn:
            ids = conn.execute(
                select(project_index.c.id).order_by(project_index.c.position)
            ).scalars()
            for project_id in list(ids):
                row = conn.execute(
                    select(projects.c.payload).where(projects.c.id == project_id)
                ).first()
                if row is None:
                    logger.warning("Index entry %s has no stored project", project_id)
                    continue
                saved.append(SavedProject.model_validate_json(row.payload))
        return saved

    def _replace_all(self, incoming: list[SavedProject]) -> None:
        """Clear both tables and rebuild them from *incoming* in one transaction.

        The index is rebuilt strictly from each blob's own metadata.
        """
        with self._engine.begin() as conn:
            conn.execute(delete(projects))
            conn.execute(delete(project_index))
            for project in incoming:
                meta = project.metadata
                stmt = sqlite_insert(projects).values(
                    id=meta.id,
                    payload=project.model_dump_json(by_alias=True),
                    updated_at=meta.updated_at,
                )
                conn.execute(
                    stmt.on_conflict_do_update(
                        index_elements=[projects.c.id],
                        set_={"payload": stmt.excluded.payload, "updated_at": stmt.excluded.updated_at},
                    )
                )
                self._upsert_index(conn, meta)
