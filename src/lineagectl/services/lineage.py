"""LineageService: build, traverse, filter, and re-layout lineage graphs.

Graph algorithms are pure and synchronous; this service only loads the
saved project, runs them, and shapes the ServiceResult payload.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Collection
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from lineagectl.domain.filtering import filter_graph, filter_with_state
from lineagectl.domain.manifest import MalformedManifestError, load_manifest_file
from lineagectl.domain.models import FilterMode, LineageGraph, Node
from lineagectl.infrastructure.graph.builder import build_graph
from lineagectl.infrastructure.graph.layout import connected_components, layout_graph
from lineagectl.infrastructure.graph.traversal import (
    Direction,
    focus_subgraph,
    inherited_metadata,
    walk,
)
from lineagectl.services.base import BaseService
from lineagectl.services.result import ErrorCode, ServiceResult

logger = logging.getLogger(__name__)


def _node_items(nodes: Collection[Node]) -> list[dict[str, Any]]:
    return [
        {
            "id": node.id,
            "label": node.data.label,
            "type": node.data.resource_type,
            "layer": node.data.inferred_layer_tags[0] if node.data.inferred_layer_tags else None,
        }
        for node in nodes
    ]


def _graph_summary(graph: LineageGraph) -> dict[str, Any]:
    layers = Counter(tag for node in graph.nodes for tag in node.data.inferred_layer_tags)
    types = Counter(node.data.resource_type for node in graph.nodes)
    return {
        "node_count": len(graph.nodes),
        "edge_count": len(graph.edges),
        "component_count": len(connected_components(graph.nodes, graph.edges)),
        "resource_types": dict(sorted(types.items())),
        "layers": dict(sorted(layers.items())),
    }


class LineageService(BaseService):
    """Handles graph construction and queries over saved projects."""

    # ------------------------------------------------------------------
    # build: manifest to laid-out graph (no persistence)
    # ------------------------------------------------------------------

    def build(self, manifest_path: Path, *, include_graph: bool = False) -> ServiceResult:
        """Parse a manifest file and build its lineage graph."""
        try:
            parsed = load_manifest_file(manifest_path)
        except MalformedManifestError as exc:
            return ServiceResult.failure("build", ErrorCode.MALFORMED_MANIFEST, str(exc))
        except OSError as exc:
            return ServiceResult.failure(
                "build", ErrorCode.NOT_FOUND, f"Cannot read {manifest_path}: {exc}"
            )

        graph = build_graph(parsed.entities, self._workspace.settings.layout)
        data: dict[str, Any] = {
            "project_name": parsed.project_name,
            "generated_at": parsed.generated_at,
            **_graph_summary(graph),
        }
        if include_graph:
            data["graph"] = graph.model_dump(mode="json", by_alias=True, exclude_none=True)
        return ServiceResult(ok=True, op="build", data=data)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    async def _walk(self, op: str, project_id: str, node_id: str, direction: Direction) -> ServiceResult:
        project, error = await self._load_project(op, project_id)
        if error:
            return error
        missing = self._node_missing(op, project, node_id)
        if missing:
            return missing

        result = walk(node_id, project.edges, direction)
        nodes = [node for node in project.nodes if node.id in result.ids]
        warnings = []
        if result.cycle_detected:
            warnings.append(f"Cycle detected while walking {direction.value} from '{node_id}'")
        return ServiceResult(
            ok=True,
            op=op,
            data={"node_id": node_id, "count": len(nodes), "items": _node_items(nodes)},
            warnings=warnings,
        )

    async def ancestors(self, project_id: str, node_id: str) -> ServiceResult:
        """Everything upstream of *node_id* (including itself)."""
        return await self._walk("ancestors", project_id, node_id, Direction.UPSTREAM)

    async def descendants(self, project_id: str, node_id: str) -> ServiceResult:
        """Everything downstream of *node_id* (including itself)."""
        return await self._walk("descendants", project_id, node_id, Direction.DOWNSTREAM)

    async def focus(self, project_id: str, node_id: str) -> ServiceResult:
        """Upstream and downstream closure of *node_id*, laid out on its own."""
        project, error = await self._load_project("focus", project_id)
        if error:
            return error
        missing = self._node_missing("focus", project, node_id)
        if missing:
            return missing

        sub = layout_graph(focus_subgraph(node_id, project.graph), self._workspace.settings.layout)
        return ServiceResult(
            ok=True,
            op="focus",
            data={
                "node_id": node_id,
                "count": len(sub.nodes),
                "items": _node_items(sub.nodes),
                "graph": sub.model_dump(mode="json", by_alias=True, exclude_none=True),
            },
        )

    async def inherited(self, project_id: str, node_id: str) -> ServiceResult:
        """Metadata propagated from upstream ``meta.to_propagate`` blocks."""
        project, error = await self._load_project("inherited", project_id)
        if error:
            return error
        missing = self._node_missing("inherited", project, node_id)
        if missing:
            return missing

        groups = inherited_metadata(node_id, project.graph)
        return ServiceResult(
            ok=True,
            op="inherited",
            data={
                "node_id": node_id,
                "count": sum(len(g.sources) for g in groups),
                "groups": [g.model_dump(mode="json", by_alias=True) for g in groups],
            },
        )

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    async def filter(
        self,
        project_id: str,
        *,
        query: str = "",
        resource_types: Collection[str] | None = None,
        tags: Collection[str] | None = None,
        tag_mode: FilterMode = FilterMode.OR,
        layers: Collection[str] | None = None,
        use_saved: bool = False,
    ) -> ServiceResult:
        """Filter a project's graph.

        With *use_saved*, the project's stored filter state is applied and
        only *query* is taken from the arguments.
        """
        project, error = await self._load_project("filter", project_id)
        if error:
            return error

        if use_saved:
            result = filter_with_state(project.graph, project.filters, query)
        else:
            result = filter_graph(
                project.nodes,
                project.edges,
                query,
                resource_types=resource_types,
                tags=tags,
                tag_mode=tag_mode,
                layers=layers,
            )
        return ServiceResult(
            ok=True,
            op="filter",
            data={
                "count": len(result.nodes),
                "edge_count": len(result.edges),
                "items": _node_items(result.nodes),
                "edges": [e.model_dump(mode="json") for e in result.edges],
            },
        )

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    async def relayout(self, project_id: str) -> ServiceResult:
        """Recompute positions for a saved project and store them."""
        project, error = await self._load_project("layout", project_id)
        if error:
            return error

        graph = layout_graph(project.graph, self._workspace.settings.layout)
        metadata = project.metadata.model_copy(update={"updated_at": datetime.now(UTC).isoformat()})
        updated = project.model_copy(
            update={"nodes": graph.nodes, "edges": graph.edges, "metadata": metadata}
        )
        if not await self._workspace.store.save(updated):
            return ServiceResult.failure("layout", ErrorCode.STORAGE_FAILURE, "Failed to save layout")
        return ServiceResult(
            ok=True,
            op="layout",
            data={
                "id": project_id,
                "positions": {n.id: {"x": n.position.x, "y": n.position.y} for n in graph.nodes},
            },
        )
