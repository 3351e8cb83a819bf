"""GraphBuilder: manifest entities to a laid-out lineage graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lineagectl.domain.layers import infer_layer_tags
from lineagectl.domain.models import Edge, LineageGraph, Node, NodeData
from lineagectl.infrastructure.graph.layout import layout_graph

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lineagectl.config.models import LayoutConfig
    from lineagectl.domain.manifest import ManifestEntity

logger = logging.getLogger(__name__)


def entity_to_node(entity: ManifestEntity) -> Node:
    """Convert one manifest entity to an unpositioned node."""
    return Node(
        id=entity.unique_id,
        data=NodeData(
            label=entity.name,
            resource_type=entity.resource_type,
            description=entity.description,
            code=entity.code,
            database=entity.database,
            schema_name=entity.schema_name,
            tags=list(entity.tags),
            inferred_layer_tags=infer_layer_tags(entity.name),
            meta=entity.meta,
        ),
    )


def build_graph(
    entities: Sequence[ManifestEntity],
    layout: LayoutConfig | None = None,
) -> LineageGraph:
    """Build nodes and dependency edges, then lay the graph out.

    One edge ``dependency -> entity`` is emitted per dependency id that
    names an entity in *entities*. Dependencies outside the set cannot
    be drawn and are dropped.
    """
    known = {entity.unique_id for entity in entities}
    nodes = [entity_to_node(entity) for entity in entities]

    edges: list[Edge] = []
    dropped = 0
    for entity in entities:
        for dependency_id in entity.depends_on:
            if dependency_id in known:
                edges.append(Edge.between(dependency_id, entity.unique_id))
            else:
                dropped += 1

    if dropped:
        logger.debug("Dropped %d dependencies outside the node set", dropped)
    return layout_graph(LineageGraph(nodes=nodes, edges=edges), layout)
