"""ProjectService: save, list, annotate, and back up lineage projects."""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from lineagectl.domain.editing import add_downstream_node, update_node_metadata
from lineagectl.domain.filtering import default_filter_state
from lineagectl.domain.ids import generate_project_id
from lineagectl.domain.manifest import MalformedManifestError, load_manifest_file
from lineagectl.domain.models import (
    FilterMode,
    FilterState,
    LineageGraph,
    ManifestInfo,
    Position,
    SavedProject,
)
from lineagectl.domain.projections import (
    create_metadata,
    export_nodes_data,
    minimal_graph_export,
    project_from_import,
)
from lineagectl.infrastructure.graph.builder import build_graph
from lineagectl.services.base import BaseService
from lineagectl.services.result import ErrorCode, ServiceResult

logger = logging.getLogger(__name__)


class ProjectService(BaseService):
    """Handles the project lifecycle on top of the async project store."""

    async def _persist(self, op: str, project: SavedProject) -> ServiceResult | None:
        """Save *project*, carrying over the original ``createdAt``.

        Returns an error result on storage failure, ``None`` on success.
        """
        store = self._workspace.store
        existing = await store.load(project.metadata.id)
        if existing is not None:
            metadata = project.metadata.model_copy(
                update={"created_at": existing.metadata.created_at}
            )
            project = project.model_copy(update={"metadata": metadata})
        if not await store.save(project):
            return ServiceResult.failure(
                op, ErrorCode.STORAGE_FAILURE, f"Failed to save project '{project.metadata.id}'"
            )
        return None

    async def _store_graph(
        self, op: str, project: SavedProject, graph: LineageGraph
    ) -> ServiceResult | None:
        """Persist an edited graph with refreshed counts and ``updatedAt``."""
        refreshed = create_metadata(
            project.metadata.id,
            project.metadata.name,
            project.metadata.source_project_name,
            graph.nodes,
        )
        updated = project.model_copy(
            update={"nodes": graph.nodes, "edges": graph.edges, "metadata": refreshed}
        )
        return await self._persist(op, updated)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def import_manifest(self, manifest_path: Path, *, name: str | None = None) -> ServiceResult:
        """Build a graph from a manifest file and save it as a new project."""
        op = "import_manifest"
        try:
            parsed = load_manifest_file(manifest_path)
        except MalformedManifestError as exc:
            return ServiceResult.failure(op, ErrorCode.MALFORMED_MANIFEST, str(exc))
        except OSError as exc:
            return ServiceResult.failure(op, ErrorCode.NOT_FOUND, f"Cannot read {manifest_path}: {exc}")

        settings = self._workspace.settings
        graph = build_graph(parsed.entities, settings.layout)
        project_id = generate_project_id()
        project = SavedProject(
            metadata=create_metadata(project_id, name or parsed.project_name, parsed.project_name, graph.nodes),
            nodes=graph.nodes,
            edges=graph.edges,
            filters=default_filter_state(
                graph,
                settings.filters.default_resource_types,
                FilterMode(settings.filters.default_tag_mode.upper()),
            ),
            manifest_info=ManifestInfo(project_name=parsed.project_name, generated_at=parsed.generated_at),
        )
        if error := await self._persist(op, project):
            return error
        logger.debug("Imported manifest %s as %s", manifest_path, project_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": project_id,
                "name": project.metadata.name,
                "node_count": len(graph.nodes),
                "edge_count": len(graph.edges),
            },
        )

    # ------------------------------------------------------------------
    # Listing and lookup
    # ------------------------------------------------------------------

    async def list_projects(self) -> ServiceResult:
        entries = await self._workspace.store.list_projects()
        return ServiceResult(
            ok=True,
            op="list_projects",
            data={
                "count": len(entries),
                "items": [m.model_dump(mode="json", by_alias=True) for m in entries],
            },
        )

    async def show(self, project_id: str) -> ServiceResult:
        project, error = await self._load_project("show", project_id)
        if error:
            return error
        return ServiceResult(
            ok=True,
            op="show",
            data={
                "metadata": project.metadata.model_dump(mode="json", by_alias=True),
                "manifest_info": project.manifest_info.model_dump(mode="json", by_alias=True),
                "filters": project.filters.model_dump(mode="json", by_alias=True),
                "edge_count": len(project.edges),
            },
        )

    async def delete(self, project_id: str) -> ServiceResult:
        store = self._workspace.store
        if not await store.exists(project_id):
            return ServiceResult.failure("delete", ErrorCode.NOT_FOUND, f"Project '{project_id}' not found")
        if not await store.delete(project_id):
            return ServiceResult.failure(
                "delete", ErrorCode.STORAGE_FAILURE, f"Failed to delete project '{project_id}'"
            )
        return ServiceResult(ok=True, op="delete", data={"id": project_id})

    # ------------------------------------------------------------------
    # Single-project files
    # ------------------------------------------------------------------

    async def export_project(self, project_id: str) -> ServiceResult:
        """The full SavedProject document for *project_id*."""
        project, error = await self._load_project("export_project", project_id)
        if error:
            return error
        return ServiceResult(ok=True, op="export_project", data=project.to_wire())

    async def import_project(self, data: Any) -> ServiceResult:
        """Store a SavedProject document as a new copy with a fresh id."""
        op = "import_project"
        try:
            project = project_from_import(data)
        except ValueError as exc:
            message = "Invalid project file format" if isinstance(exc, ValidationError) else str(exc)
            return ServiceResult.failure(op, ErrorCode.INVALID_PROJECT, message)
        if error := await self._persist(op, project):
            return error
        return ServiceResult(
            ok=True, op=op, data={"id": project.metadata.id, "name": project.metadata.name}
        )

    async def export_graph(self, project_id: str) -> ServiceResult:
        """Minimal ``{projectName, generatedAt, nodes, edges}`` projection."""
        project, error = await self._load_project("export_graph", project_id)
        if error:
            return error
        info = project.manifest_info
        return ServiceResult(
            ok=True,
            op="export_graph",
            data=minimal_graph_export(project.graph, info.project_name, info.generated_at),
        )

    async def export_nodes(self, project_id: str) -> ServiceResult:
        project, error = await self._load_project("export_nodes", project_id)
        if error:
            return error
        records = export_nodes_data(project.nodes)
        return ServiceResult(ok=True, op="export_nodes", data={"count": len(records), "items": records})

    # ------------------------------------------------------------------
    # Whole-database backup
    # ------------------------------------------------------------------

    async def backup(self) -> ServiceResult:
        backup = await self._workspace.store.export_all()
        if backup is None:
            return ServiceResult.failure("backup", ErrorCode.STORAGE_FAILURE, "Failed to create backup")
        return ServiceResult(
            ok=True, op="backup", data=backup.model_dump(mode="json", by_alias=True, exclude_none=True)
        )

    async def restore(self, data: Any) -> ServiceResult:
        """Replace every stored project with the contents of a backup document."""
        if not isinstance(data, dict) or not isinstance(data.get("projects"), list):
            return ServiceResult.failure(
                "restore",
                ErrorCode.INVALID_BACKUP,
                "Invalid backup file. This appears to be a single project file, not a database backup.",
            )
        if not await self._workspace.store.import_all(data):
            return ServiceResult.failure("restore", ErrorCode.STORAGE_FAILURE, "Failed to restore backup")
        entries = await self._workspace.store.list_projects()
        warnings = []
        skipped = len(data["projects"]) - len(entries)
        if skipped > 0:
            warnings.append(f"Skipped {skipped} invalid or duplicate project entries")
        return ServiceResult(ok=True, op="restore", data={"count": len(entries)}, warnings=warnings)

    # ------------------------------------------------------------------
    # Annotation
    # ------------------------------------------------------------------

    async def add_node(
        self,
        project_id: str,
        parent_id: str,
        *,
        label: str | None = None,
    ) -> ServiceResult:
        """Add a planned model downstream of *parent_id*.

        The new node sits one rank to the right of its parent.
        """
        project, error = await self._load_project("add_node", project_id)
        if error:
            return error
        if missing := self._node_missing("add_node", project, parent_id):
            return missing

        layout = self._workspace.settings.layout
        parent = project.graph.node_map()[parent_id]
        position = Position(
            x=parent.position.x + layout.node_width + layout.rank_spacing,
            y=parent.position.y,
        )
        graph, node = add_downstream_node(project.graph, parent_id, position)
        if label is not None:
            graph = update_node_metadata(graph, node.id, label=label)
        if error := await self._store_graph("add_node", project, graph):
            return error
        return ServiceResult(
            ok=True,
            op="add_node",
            data={"id": node.id, "parent_id": parent_id, "label": label or node.data.label},
        )

    async def update_node(
        self,
        project_id: str,
        node_id: str,
        *,
        label: str | None = None,
        description: str | None = None,
        resource_type: str | None = None,
        tags: list[str] | None = None,
    ) -> ServiceResult:
        project, error = await self._load_project("update_node", project_id)
        if error:
            return error
        if missing := self._node_missing("update_node", project, node_id):
            return missing

        graph = update_node_metadata(
            project.graph,
            node_id,
            label=label,
            description=description,
            resource_type=resource_type,
            tags=tags,
        )
        if error := await self._store_graph("update_node", project, graph):
            return error
        updated = graph.node_map()[node_id]
        return ServiceResult(
            ok=True,
            op="update_node",
            data={"id": node_id, "node": updated.model_dump(mode="json", by_alias=True, exclude_none=True)},
        )

    async def save_filters(
        self,
        project_id: str,
        *,
        resource_types: Collection[str] | None = None,
        tags: Collection[str] = (),
        tag_mode: FilterMode = FilterMode.OR,
        layers: Collection[str] | None = None,
    ) -> ServiceResult:
        """Replace the project's stored filter state.

        ``None`` for *resource_types* or *layers* selects every value
        present in the graph.
        """
        project, error = await self._load_project("save_filters", project_id)
        if error:
            return error
        if resource_types is None:
            resource_types = {node.data.resource_type for node in project.nodes}
        if layers is None:
            layers = {tag for node in project.nodes for tag in node.data.inferred_layer_tags}
        state = FilterState.from_sets(set(resource_types), set(tags), tag_mode, set(layers))
        metadata = project.metadata.model_copy(update={"updated_at": datetime.now(UTC).isoformat()})
        if error := await self._persist(
            "save_filters", project.model_copy(update={"filters": state, "metadata": metadata})
        ):
            return error
        return ServiceResult(
            ok=True, op="save_filters", data={"filters": state.model_dump(mode="json", by_alias=True)}
        )
