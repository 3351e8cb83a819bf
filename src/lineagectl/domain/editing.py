"""In-session graph edits: planned nodes and annotation updates.

Edits never mutate their input; each returns a new LineageGraph.
"""

from __future__ import annotations

from lineagectl.domain.ids import generate_user_node_id
from lineagectl.domain.models import Edge, LineageGraph, Node, NodeData, Position

PLANNED_TAG = "planned"


def add_downstream_node(
    graph: LineageGraph,
    parent_id: str,
    position: Position | None = None,
    *,
    node_id: str | None = None,
) -> tuple[LineageGraph, Node]:
    """Append a planned (user-created) model downstream of *parent_id*.

    Raises:
        KeyError: *parent_id* is not a node of *graph*.
    """
    if parent_id not in graph.node_map():
        raise KeyError(parent_id)
    node = Node(
        id=node_id or generate_user_node_id(),
        position=position or Position(),
        data=NodeData(
            label="Untitled",
            resource_type="model",
            tags=[PLANNED_TAG],
            is_user_created=True,
            materialized=False,
        ),
    )
    updated = LineageGraph(
        nodes=[*graph.nodes, node],
        edges=[*graph.edges, Edge.between(parent_id, node.id)],
    )
    return updated, node


def update_node_metadata(
    graph: LineageGraph,
    node_id: str,
    *,
    label: str | None = None,
    description: str | None = None,
    resource_type: str | None = None,
    tags: list[str] | None = None,
) -> LineageGraph:
    """Replace only the supplied annotation fields of *node_id*.

    Raises:
        KeyError: *node_id* is not a node of *graph*.
    """
    changes: dict[str, object] = {}
    if label is not None:
        changes["label"] = label
    if description is not None:
        changes["description"] = description
    if resource_type is not None:
        changes["resource_type"] = resource_type
    if tags is not None:
        changes["tags"] = list(tags)

    found = False
    nodes: list[Node] = []
    for node in graph.nodes:
        if node.id == node_id:
            found = True
            node = node.model_copy(update={"data": node.data.model_copy(update=changes)})
        nodes.append(node)
    if not found:
        raise KeyError(node_id)
    return LineageGraph(nodes=nodes, edges=list(graph.edges))
