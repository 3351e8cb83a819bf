"""Pydantic models for lineage graphs, saved projects, and backups.

Python attributes are snake_case; the JSON form uses the camelCase keys
of the SavedProject / DatabaseBackup file formats. Dump with
``model_dump(by_alias=True, exclude_none=True)`` to get the wire form.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 1
BACKUP_VERSION = 1


class _WireModel(BaseModel):
    """Base for models persisted or exported as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilterMode(StrEnum):
    """How a multi-value filter combines its selected values."""

    AND = "AND"
    OR = "OR"


# --- Graph ---


class Position(_WireModel):
    x: float = 0.0
    y: float = 0.0


class NodeData(_WireModel):
    """Display and annotation payload carried by every node."""

    label: str
    resource_type: str
    description: str | None = None
    code: str | None = None
    database: str | None = None
    schema_name: str | None = Field(default=None, alias="schema")
    tags: list[str] = Field(default_factory=list)
    inferred_layer_tags: list[str] = Field(default_factory=list)
    is_user_created: bool = False
    materialized: bool | None = None
    meta: dict[str, Any] | None = None


class Node(_WireModel):
    id: str
    position: Position = Field(default_factory=Position)
    data: NodeData


class Edge(_WireModel):
    """Directed dependency edge; ``id`` is conventionally ``source-target``."""

    id: str
    source: str
    target: str

    @classmethod
    def between(cls, source: str, target: str) -> Edge:
        return cls(id=f"{source}-{target}", source=source, target=target)


class LineageGraph(_WireModel):
    """A node/edge set. Every edge endpoint is expected to be in ``nodes``."""

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    def node_map(self) -> dict[str, Node]:
        return {node.id: node for node in self.nodes}


# --- Persistence ---


class FilterState(_WireModel):
    """Serializable form of the live filter sets."""

    resource_type_filters: list[str] = Field(default_factory=list)
    tag_filters: list[str] = Field(default_factory=list)
    tag_filter_mode: FilterMode = FilterMode.OR
    inferred_tag_filters: list[str] = Field(default_factory=list)
    inferred_tag_filter_mode: FilterMode = FilterMode.OR

    def to_sets(self) -> tuple[set[str], set[str], set[str]]:
        """Return ``(resource_types, tags, inferred_tags)`` as sets."""
        return (
            set(self.resource_type_filters),
            set(self.tag_filters),
            set(self.inferred_tag_filters),
        )

    @classmethod
    def from_sets(
        cls,
        resource_types: set[str],
        tags: set[str],
        tag_mode: FilterMode,
        inferred_tags: set[str],
        inferred_tag_mode: FilterMode = FilterMode.OR,
    ) -> FilterState:
        """Build a FilterState from live sets (sorted for stable output)."""
        return cls(
            resource_type_filters=sorted(resource_types),
            tag_filters=sorted(tags),
            tag_filter_mode=tag_mode,
            inferred_tag_filters=sorted(inferred_tags),
            inferred_tag_filter_mode=inferred_tag_mode,
        )


class ProjectMetadata(_WireModel):
    """Lightweight index entry used for listing without loading graphs."""

    id: str
    name: str
    source_project_name: str
    created_at: str
    updated_at: str
    node_count: int
    planned_node_count: int
    schema_version: int = SCHEMA_VERSION


class ManifestInfo(_WireModel):
    project_name: str
    generated_at: str


class SavedProject(_WireModel):
    """The durable unit of storage, keyed by ``metadata.id``."""

    metadata: ProjectMetadata
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    filters: FilterState = Field(default_factory=FilterState)
    manifest_info: ManifestInfo

    @property
    def graph(self) -> LineageGraph:
        return LineageGraph(nodes=self.nodes, edges=self.edges)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DatabaseBackup(_WireModel):
    version: int = BACKUP_VERSION
    exported_at: str
    projects: list[SavedProject] = Field(default_factory=list)
