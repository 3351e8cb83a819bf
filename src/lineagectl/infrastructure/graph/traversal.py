"""Upstream/downstream traversal for impact analysis and focus views.

Walks are iterative depth-first searches over an adjacency map built
from the edge list, guarded by a visited set so a cycle can never loop
forever. Lineage input is assumed acyclic; when a cycle is present the
walk still terminates and reports it through ``cycle_detected``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from enum import StrEnum
from typing import Any

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lineagectl.domain.filtering import rederive_edges
from lineagectl.domain.models import Edge, LineageGraph, Node
from lineagectl.infrastructure.graph.engine import build_digraph


class Direction(StrEnum):
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"


class TraversalResult(BaseModel):
    model_config = {"frozen": True}

    ids: frozenset[str]
    cycle_detected: bool = False


def _adjacency(edges: Iterable[Edge], direction: Direction) -> dict[str, list[str]]:
    adjacency: dict[str, list[str]] = defaultdict(list)
    for edge in edges:
        if direction is Direction.DOWNSTREAM:
            adjacency[edge.source].append(edge.target)
        else:
            adjacency[edge.target].append(edge.source)
    return adjacency


def walk(node_id: str, edges: Iterable[Edge], direction: Direction) -> TraversalResult:
    """Collect every node reachable from *node_id* in *direction*.

    The result always contains *node_id*. A cycle is reported when the
    walk re-enters a node that is still on the current DFS path; reaching
    an already finished node through a second route is not a cycle.
    """
    adjacency = _adjacency(edges, direction)
    visited = {node_id}
    on_path = {node_id}
    stack = [(node_id, iter(adjacency.get(node_id, ())))]
    cycle_detected = False

    while stack:
        current, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            on_path.discard(current)
            continue
        if child in on_path:
            cycle_detected = True
            continue
        if child in visited:
            continue
        visited.add(child)
        on_path.add(child)
        stack.append((child, iter(adjacency.get(child, ()))))

    return TraversalResult(ids=frozenset(visited), cycle_detected=cycle_detected)


def ancestors(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """All upstream node ids of *node_id*, including *node_id* itself."""
    return set(walk(node_id, edges, Direction.UPSTREAM).ids)


def descendants(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """All downstream node ids of *node_id*, including *node_id* itself."""
    return set(walk(node_id, edges, Direction.DOWNSTREAM).ids)


def focus_subgraph(node_id: str, graph: LineageGraph) -> LineageGraph:
    """The upstream and downstream closure of *node_id* with rederived edges."""
    keep = ancestors(node_id, graph.edges) | descendants(node_id, graph.edges)
    nodes = [node for node in graph.nodes if node.id in keep]
    return LineageGraph(nodes=nodes, edges=rederive_edges(keep, graph.edges))


def lineage_path(
    source_id: str,
    target_id: str,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> list[str]:
    """Labels along the shortest downstream path, or ``[]`` if unreachable."""
    g = build_digraph(nodes, edges)
    try:
        path = nx.shortest_path(g, source_id, target_id)
    except (nx.NetworkXNoPath, nx.NodeNotFound):
        return []
    return [g.nodes[node_id]["label"] for node_id in path]


# ---------------------------------------------------------------------------
# Metadata propagation
# ---------------------------------------------------------------------------


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InheritedSource(_Camel):
    """One upstream ``meta.to_propagate`` entry reaching a node."""

    source_node_id: str
    source_node_name: str
    path: list[str]
    composite_keys: dict[str, str] = Field(default_factory=dict)
    properties: dict[str, Any] = Field(default_factory=dict)


class CompositeKeyGroup(_Camel):
    """Inherited sources sharing the same composite key names."""

    key_names: list[str]
    sources: list[InheritedSource] = Field(default_factory=list)


def inherited_metadata(node_id: str, graph: LineageGraph) -> list[CompositeKeyGroup]:
    """Gather ``meta.to_propagate`` entries from every strict ancestor.

    Sources are grouped by their sorted composite key names; groups
    appear in first-seen order, ancestors are visited in node order.
    """
    upstream = ancestors(node_id, graph.edges) - {node_id}
    groups: dict[tuple[str, ...], CompositeKeyGroup] = {}

    for node in graph.nodes:
        if node.id not in upstream or not node.data.meta:
            continue
        entries = node.data.meta.get("to_propagate")
        if not isinstance(entries, list):
            continue
        path = lineage_path(node.id, node_id, graph.nodes, graph.edges)
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            properties = dict(entry)
            raw_keys = properties.pop("composite_keys", None)
            if not isinstance(raw_keys, dict):
                raw_keys = {}
            composite_keys = {str(k): str(v) for k, v in raw_keys.items()}
            source = InheritedSource(
                source_node_id=node.id,
                source_node_name=node.data.label,
                path=path,
                composite_keys=composite_keys,
                properties=properties,
            )
            key_names = tuple(sorted(composite_keys))
            group = groups.setdefault(key_names, CompositeKeyGroup(key_names=list(key_names)))
            group.sources.append(source)

    return list(groups.values())
