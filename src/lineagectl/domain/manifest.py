"""dbt manifest normalization.

Turns a raw ``manifest.json`` object into an ordered list of
:class:`ManifestEntity` records. Structural problems that leave nothing
to draw raise :class:`MalformedManifestError`; individual bad entries
are skipped.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Collections read from the manifest, in order. dbt also lists seeds under
# ``nodes``; the first occurrence of a unique_id wins.
ENTITY_COLLECTIONS: tuple[str, ...] = ("nodes", "sources", "seeds")

DEFAULT_PROJECT_NAME = "Unknown Project"


class MalformedManifestError(ValueError):
    """The manifest cannot yield a graph (not an object, no nodes, or empty)."""


class ManifestEntity(BaseModel):
    """One dbt resource as read from the manifest."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    unique_id: str
    name: str
    resource_type: str
    depends_on: list[str] = Field(default_factory=list)
    description: str | None = None
    compiled_code: str | None = None
    raw_code: str | None = None
    database: str | None = None
    schema_name: str | None = Field(default=None, alias="schema")
    tags: list[str] = Field(default_factory=list)
    meta: dict[str, Any] | None = None

    @field_validator("depends_on", mode="before")
    @classmethod
    def _dependency_ids(cls, value: Any) -> list[str]:
        """Accept ``{"nodes": [...]}``; anything malformed means no dependencies."""
        if not isinstance(value, dict):
            return []
        ids = value.get("nodes")
        if not isinstance(ids, list):
            return []
        return [dep for dep in ids if isinstance(dep, str)]

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [tag for tag in value if isinstance(tag, str)]

    @field_validator("meta", mode="before")
    @classmethod
    def _meta_dict(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None

    @property
    def code(self) -> str | None:
        return self.compiled_code or self.raw_code


class ParsedManifest(BaseModel):
    entities: list[ManifestEntity]
    project_name: str
    generated_at: str


def parse_manifest(manifest: Any) -> ParsedManifest:
    """Normalize a decoded manifest object.

    Raises:
        MalformedManifestError: *manifest* is not an object, has no
            ``nodes`` collection, or yields zero usable entities.
    """
    if not isinstance(manifest, dict):
        raise MalformedManifestError("Invalid manifest: Expected an object")
    if not isinstance(manifest.get("nodes"), dict):
        raise MalformedManifestError("Invalid manifest: Missing nodes property")

    entities: list[ManifestEntity] = []
    seen: set[str] = set()
    for collection in ENTITY_COLLECTIONS:
        raw_entries = manifest.get(collection)
        if not isinstance(raw_entries, dict):
            continue
        for key, raw in raw_entries.items():
            if not isinstance(raw, dict):
                logger.debug("Skipping non-object manifest entry %s", key)
                continue
            try:
                entity = ManifestEntity.model_validate(raw)
            except ValidationError:
                logger.debug("Skipping malformed manifest entry %s", key)
                continue
            if entity.unique_id in seen:
                continue
            seen.add(entity.unique_id)
            entities.append(entity)

    if not entities:
        raise MalformedManifestError("Empty manifest: No nodes found")

    metadata = manifest.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    return ParsedManifest(
        entities=entities,
        project_name=metadata.get("project_name") or DEFAULT_PROJECT_NAME,
        generated_at=metadata.get("generated_at") or datetime.now(UTC).isoformat(),
    )


def load_manifest_file(path: Path) -> ParsedManifest:
    """Read and normalize a ``manifest.json`` file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedManifestError("Invalid JSON file") from exc
    return parse_manifest(data)
