"""Node filtering as an ordered pipeline of predicate stages.

Each stage factory returns a predicate over a node, or ``None`` when the
stage has nothing to do. Stages narrow the node set in a fixed order:

1. ``resource_type``: an empty selection means *show nothing*.
2. ``tags``: AND/OR over the node's own tags; empty selection is a no-op.
3. ``inferred_layer``: OR only; user-created nodes always pass, so an
   empty selection leaves exactly the user-created nodes.
4. ``search``: case-insensitive substring over label, description,
   and resource type; a blank query is a no-op.

Edges are never filtered on their own: the surviving edge set is always
recomputed from the surviving node set.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable
from typing import NamedTuple, TypeAlias

from lineagectl.domain.layers import LAYER_TAGS
from lineagectl.domain.models import (
    Edge,
    FilterMode,
    FilterState,
    LineageGraph,
    Node,
)

NodePredicate: TypeAlias = Callable[[Node], bool]


class FilterStage(NamedTuple):
    name: str
    predicate: NodePredicate


def resource_type_stage(resource_types: Collection[str] | None) -> NodePredicate | None:
    if resource_types is None:
        return None
    selected = frozenset(resource_types)
    return lambda node: node.data.resource_type in selected


def tag_stage(tags: Collection[str] | None, mode: FilterMode) -> NodePredicate | None:
    if not tags:
        return None
    selected = frozenset(tags)
    if mode == FilterMode.AND:
        return lambda node: selected.issubset(node.data.tags)
    return lambda node: not selected.isdisjoint(node.data.tags)


def inferred_layer_stage(layers: Collection[str] | None) -> NodePredicate | None:
    if layers is None:
        return None
    selected = frozenset(layers)
    return lambda node: node.data.is_user_created or not selected.isdisjoint(
        node.data.inferred_layer_tags
    )


def search_stage(query: str | None) -> NodePredicate | None:
    if not query or not query.strip():
        return None
    needle = query.lower()

    def matches(node: Node) -> bool:
        data = node.data
        return (
            needle in data.label.lower()
            or (data.description is not None and needle in data.description.lower())
            or needle in data.resource_type.lower()
        )

    return matches


def build_pipeline(
    query: str = "",
    resource_types: Collection[str] | None = None,
    tags: Collection[str] | None = None,
    tag_mode: FilterMode = FilterMode.OR,
    layers: Collection[str] | None = None,
) -> list[FilterStage]:
    """Return the active stages in evaluation order."""
    candidates = [
        ("resource_type", resource_type_stage(resource_types)),
        ("tags", tag_stage(tags, tag_mode)),
        ("inferred_layer", inferred_layer_stage(layers)),
        ("search", search_stage(query)),
    ]
    return [FilterStage(name, predicate) for name, predicate in candidates if predicate is not None]


def rederive_edges(node_ids: Collection[str], edges: Iterable[Edge]) -> list[Edge]:
    """Keep only edges whose source and target are both in *node_ids*."""
    return [edge for edge in edges if edge.source in node_ids and edge.target in node_ids]


def filter_graph(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    query: str = "",
    resource_types: Collection[str] | None = None,
    tags: Collection[str] | None = None,
    tag_mode: FilterMode = FilterMode.OR,
    layers: Collection[str] | None = None,
    layer_mode: FilterMode = FilterMode.OR,
) -> LineageGraph:
    """Filter nodes through the stage pipeline and rederive edges.

    *layer_mode* is accepted for symmetry with the saved filter state;
    layer filtering is always OR.
    """
    survivors = list(nodes)
    for stage in build_pipeline(query, resource_types, tags, tag_mode, layers):
        survivors = [node for node in survivors if stage.predicate(node)]
    kept_ids = {node.id for node in survivors}
    return LineageGraph(nodes=survivors, edges=rederive_edges(kept_ids, edges))


def filter_with_state(graph: LineageGraph, state: FilterState, query: str = "") -> LineageGraph:
    """Apply a saved :class:`FilterState` (all three sets are treated as live)."""
    resource_types, tags, layers = state.to_sets()
    return filter_graph(
        graph.nodes,
        graph.edges,
        query,
        resource_types=resource_types,
        tags=tags,
        tag_mode=state.tag_filter_mode,
        layers=layers,
        layer_mode=state.inferred_tag_filter_mode,
    )


def default_filter_state(
    graph: LineageGraph,
    resource_types: Iterable[str] = ("model", "seed"),
    tag_mode: FilterMode = FilterMode.OR,
) -> FilterState:
    """Initial live filters for a freshly imported graph.

    Every inferred layer present in the graph starts selected.
    """
    present = {tag for node in graph.nodes for tag in node.data.inferred_layer_tags}
    ordered = [tag for tag in LAYER_TAGS if tag in present]
    return FilterState(
        resource_type_filters=list(resource_types),
        tag_filters=[],
        tag_filter_mode=tag_mode,
        inferred_tag_filters=ordered,
        inferred_tag_filter_mode=FilterMode.OR,
    )
