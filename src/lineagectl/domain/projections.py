"""Reduced projections of engine state for external exporters."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from lineagectl.domain.ids import generate_project_id
from lineagectl.domain.models import LineageGraph, Node, ProjectMetadata, SavedProject


def minimal_graph_export(graph: LineageGraph, project_name: str, generated_at: str) -> dict[str, Any]:
    """``{projectName, generatedAt, nodes, edges}`` without positions or tags."""
    nodes: list[dict[str, Any]] = []
    for node in graph.nodes:
        entry: dict[str, Any] = {
            "id": node.id,
            "label": node.data.label,
            "type": node.data.resource_type,
        }
        if node.data.description is not None:
            entry["description"] = node.data.description
        nodes.append(entry)
    return {
        "projectName": project_name,
        "generatedAt": generated_at,
        "nodes": nodes,
        "edges": [{"id": e.id, "source": e.source, "target": e.target} for e in graph.edges],
    }


def export_nodes_data(nodes: Iterable[Node]) -> list[dict[str, Any]]:
    """Flat per-node records used by work-plan exporters."""
    records: list[dict[str, Any]] = []
    for node in nodes:
        data = node.data
        record: dict[str, Any] = {
            "id": node.id,
            "name": data.label,
            "type": data.resource_type,
            "inferredLayer": data.inferred_layer_tags[0] if data.inferred_layer_tags else None,
        }
        for key, value in (
            ("database", data.database),
            ("schema", data.schema_name),
            ("description", data.description),
        ):
            if value is not None:
                record[key] = value
        record["tags"] = list(data.tags)
        records.append(record)
    return records


def create_metadata(
    project_id: str,
    name: str,
    source_project_name: str,
    nodes: Iterable[Node],
) -> ProjectMetadata:
    """Fresh index metadata; the store keeps an existing ``createdAt`` on update."""
    now = datetime.now(UTC).isoformat()
    node_list = list(nodes)
    return ProjectMetadata(
        id=project_id,
        name=name,
        source_project_name=source_project_name,
        created_at=now,
        updated_at=now,
        node_count=len(node_list),
        planned_node_count=sum(1 for node in node_list if node.data.is_user_created),
    )


def project_from_import(data: Any) -> SavedProject:
    """Validate a single exported project file and re-key it as a new copy.

    Raises:
        ValueError: *data* lacks ``nodes``, ``edges`` or ``metadata``, or
            does not validate as a SavedProject.
    """
    if not isinstance(data, dict) or not all(k in data for k in ("nodes", "edges", "metadata")):
        raise ValueError("Invalid project file format")
    project = SavedProject.model_validate(data)
    now = datetime.now(UTC).isoformat()
    metadata = project.metadata.model_copy(
        update={"id": generate_project_id(), "created_at": now, "updated_at": now}
    )
    return project.model_copy(update={"metadata": metadata})
