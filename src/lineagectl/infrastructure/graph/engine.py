"""NetworkX view of a lineage node/edge set.

Built per call, no cache. Node attributes carry the input index so
algorithms can break ties by input order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lineagectl.domain.models import Edge, Node


def build_digraph(nodes: Iterable[Node], edges: Iterable[Edge]) -> nx.DiGraph:
    """Build a DiGraph from nodes and edges.

    Adds all nodes first (so isolated nodes appear in the graph), then
    every edge whose endpoints are both present. Edges pointing outside
    the node set are skipped.
    """
    g = nx.DiGraph()
    for index, node in enumerate(nodes):
        g.add_node(node.id, index=index, label=node.data.label)
    for edge in edges:
        if edge.source in g and edge.target in g:
            g.add_edge(edge.source, edge.target, id=edge.id)
    return g
