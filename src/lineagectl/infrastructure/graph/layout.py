"""Hierarchical left-to-right layout for lineage graphs.

The graph is split into connected components (ignoring edge direction),
each component is laid out as a layered drawing, and components are
stacked vertically so they never overlap.

Per component:

1. **Rank**: longest path from a source. Topological order is taken
   lexicographically by input index, so ranking is fully deterministic.
2. **Normalize**: edges spanning more than one rank get a chain of
   virtual nodes so every layered edge joins adjacent ranks.
3. **Order**: barycenter sweeps (down, then up) reduce edge crossings.
   Ties keep the current order; the ordering with the fewest crossings
   seen is kept.
4. **Place**: real nodes are packed per rank and each rank is centered
   against the tallest rank. Positions are top-left corners.

No step uses randomness: the same input always yields the same
coordinates.
"""

from __future__ import annotations

import bisect
import logging
from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

from lineagectl.config.models import LayoutConfig
from lineagectl.domain.models import LineageGraph, Position
from lineagectl.infrastructure.graph.engine import build_digraph

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lineagectl.domain.models import Edge, Node

logger = logging.getLogger(__name__)

_Layers: TypeAlias = list[list[str]]

_VIRTUAL_PREFIX = "\x00virtual"


def connected_components(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[list[Node]]:
    """Partition *nodes* into connected components of the undirected graph.

    Components are returned in order of their first member in *nodes*,
    and members keep their input order.
    """
    ug = build_digraph(nodes, edges).to_undirected(as_view=True)
    visited: set[str] = set()
    components: list[list[Node]] = []
    for node in nodes:
        if node.id in visited:
            continue
        members = nx.node_connected_component(ug, node.id)
        visited |= members
        components.append([n for n in nodes if n.id in members])
    return components


def layout_graph(graph: LineageGraph, config: LayoutConfig | None = None) -> LineageGraph:
    """Return a copy of *graph* with every node positioned.

    Nodes keep their input order; edges are passed through untouched.
    """
    if not graph.nodes:
        return LineageGraph(nodes=[], edges=list(graph.edges))
    cfg = config or LayoutConfig()

    positions: dict[str, tuple[float, float]] = {}
    y_offset = 0.0
    components = connected_components(graph.nodes, graph.edges)
    for component in components:
        placed = layout_component(component, graph.edges, cfg)
        for node_id, (x, y) in placed.items():
            positions[node_id] = (x, y + y_offset)
        bottom = max(positions[node_id][1] for node_id in placed) + cfg.node_height
        y_offset = bottom + cfg.component_gap

    logger.debug("Laid out %d nodes in %d components", len(graph.nodes), len(components))
    nodes = [
        node.model_copy(update={"position": Position(x=positions[node.id][0], y=positions[node.id][1])})
        for node in graph.nodes
    ]
    return LineageGraph(nodes=nodes, edges=list(graph.edges))


def layout_component(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    config: LayoutConfig,
) -> dict[str, tuple[float, float]]:
    """Lay out a single component, returning top-left ``(x, y)`` per node id.

    Edges with an endpoint outside *nodes* are ignored.
    """
    g = _acyclic(build_digraph(nodes, edges))
    order = {node.id: index for index, node in enumerate(nodes)}
    ranks = _assign_ranks(g, order)
    layered, layers = _normalize(g, ranks, order)
    layers = _minimize_crossings(layered, layers, config.sweep_iterations)

    real_layers = [[n for n in layer if not n.startswith(_VIRTUAL_PREFIX)] for layer in layers]
    tallest = max(len(layer) for layer in real_layers)
    row = config.node_height + config.node_spacing
    column = config.node_width + config.rank_spacing

    placed: dict[str, tuple[float, float]] = {}
    for rank, layer in enumerate(real_layers):
        x = config.margin + rank * column
        top = config.margin + (tallest - len(layer)) * row / 2
        for slot, node_id in enumerate(layer):
            placed[node_id] = (x, top + slot * row)
    return placed


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def _acyclic(g: nx.DiGraph) -> nx.DiGraph:
    """Drop edges that close a cycle so ranking always terminates.

    Lineage input is expected to be acyclic; this only guards layout
    against bad input. Cycles are found in insertion order, so the
    removed edges are stable for a given input.
    """
    dag = g.copy()
    while True:
        try:
            cycle = nx.find_cycle(dag)
        except nx.NetworkXNoCycle:
            return dag
        source, target = cycle[-1][:2]
        logger.warning("Ignoring cycle edge %s -> %s for layout", source, target)
        dag.remove_edge(source, target)


def _assign_ranks(dag: nx.DiGraph, order: dict[str, int]) -> dict[str, int]:
    """Longest-path rank from any source node."""
    ranks: dict[str, int] = {}
    for node_id in nx.lexicographical_topological_sort(dag, key=order.__getitem__):
        ranks[node_id] = max((ranks[p] + 1 for p in dag.predecessors(node_id)), default=0)
    return ranks


def _normalize(
    dag: nx.DiGraph,
    ranks: dict[str, int],
    order: dict[str, int],
) -> tuple[nx.DiGraph, _Layers]:
    """Split long edges into unit-length segments through virtual nodes.

    Returns the layered graph and the initial per-rank ordering: real
    nodes by input index, then virtual nodes in edge insertion order.
    """
    layered = nx.DiGraph()
    layers: _Layers = [[] for _ in range(max(ranks.values()) + 1)]
    for node_id in sorted(ranks, key=order.__getitem__):
        layered.add_node(node_id)
        layers[ranks[node_id]].append(node_id)

    for source, target in dag.edges():
        span = ranks[target] - ranks[source]
        previous = source
        for step in range(1, span):
            virtual = f"{_VIRTUAL_PREFIX}:{source}:{target}:{step}"
            layered.add_edge(previous, virtual)
            layers[ranks[source] + step].append(virtual)
            previous = virtual
        layered.add_edge(previous, target)
    return layered, layers


# ---------------------------------------------------------------------------
# Crossing reduction
# ---------------------------------------------------------------------------


def _minimize_crossings(layered: nx.DiGraph, layers: _Layers, iterations: int) -> _Layers:
    best = [list(layer) for layer in layers]
    best_crossings = count_crossings(layered, best)
    current = [list(layer) for layer in layers]
    for _ in range(iterations):
        if best_crossings == 0:
            break
        _sweep(layered, current, downward=True)
        _sweep(layered, current, downward=False)
        crossings = count_crossings(layered, current)
        if crossings < best_crossings:
            best = [list(layer) for layer in current]
            best_crossings = crossings
    return best


def _sweep(layered: nx.DiGraph, layers: _Layers, *, downward: bool) -> None:
    """Reorder each rank by the mean position of its neighbors in the fixed rank."""
    indices = range(1, len(layers)) if downward else range(len(layers) - 2, -1, -1)
    for i in indices:
        fixed = layers[i - 1] if downward else layers[i + 1]
        fixed_pos = {node_id: k for k, node_id in enumerate(fixed)}

        def barycenter(item: tuple[int, str]) -> tuple[float, int]:
            k, node_id = item
            neighbors = layered.predecessors(node_id) if downward else layered.successors(node_id)
            values = [fixed_pos[n] for n in neighbors]
            if not values:
                return float(k), k
            return sum(values) / len(values), k

        layers[i] = [node_id for _, node_id in sorted(enumerate(layers[i]), key=barycenter)]


def count_crossings(layered: nx.DiGraph, layers: _Layers) -> int:
    """Count pairwise edge crossings between adjacent ranks."""
    total = 0
    for upper, lower in zip(layers, layers[1:], strict=False):
        lower_pos = {node_id: k for k, node_id in enumerate(lower)}
        ends = sorted(
            (k, lower_pos[target])
            for k, node_id in enumerate(upper)
            for target in layered.successors(node_id)
            if target in lower_pos
        )
        seen: list[int] = []
        for _, low in ends:
            total += len(seen) - bisect.bisect_right(seen, low)
            bisect.insort(seen, low)
    return total
