"""Shared pytest fixtures and test helpers for lineagectl tests."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from lineagectl.config.settings import LineageSettings
from lineagectl.domain.models import (
    Edge,
    LineageGraph,
    ManifestInfo,
    Node,
    NodeData,
    SavedProject,
)
from lineagectl.domain.projections import create_metadata
from lineagectl.infrastructure.database.engine import init_database
from lineagectl.infrastructure.store import ProjectStore
from lineagectl.infrastructure.workspace import Workspace


def _entity(
    unique_id: str,
    resource_type: str,
    depends_on: list[str] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    name = unique_id.rsplit(".", 1)[-1]
    entity: dict[str, Any] = {
        "unique_id": unique_id,
        "name": name,
        "resource_type": resource_type,
        "depends_on": {"nodes": depends_on or [], "macros": []},
        "database": "analytics",
        "schema": "jaffle",
        "tags": [],
    }
    entity.update(extra)
    return entity


def sample_manifest() -> dict[str, Any]:
    """A small jaffle-shop manifest with three connected components.

    Main component: raw seeds -> staging -> intermediate -> fct/dim, plus a test.
    Second component: a source feeding ``stg_payments`` (which also has a
    dangling dependency). Third: the isolated ``public__report`` model.
    """
    nodes = [
        _entity("seed.jaffle.raw_customers", "seed"),
        _entity("seed.jaffle.raw_orders", "seed"),
        _entity(
            "model.jaffle.stg_customers",
            "model",
            ["seed.jaffle.raw_customers"],
            tags=["staging"],
            description="Customers, cleaned",
            raw_code="select * from {{ ref('raw_customers') }}",
        ),
        _entity(
            "model.jaffle.stg_orders",
            "model",
            ["seed.jaffle.raw_orders"],
            tags=["staging", "daily"],
            compiled_code="select * from analytics.jaffle.raw_orders",
            raw_code="select * from {{ ref('raw_orders') }}",
            meta={"to_propagate": [{"composite_keys": {"order_id": "id"}, "owner": "sales"}]},
        ),
        _entity(
            "model.jaffle.stg_payments",
            "model",
            ["source.jaffle.stripe.payments", "model.other_project.missing"],
        ),
        _entity(
            "model.jaffle.int_orders_enriched",
            "model",
            ["model.jaffle.stg_orders", "model.jaffle.stg_customers"],
        ),
        _entity(
            "model.jaffle.fct_orders",
            "model",
            ["model.jaffle.int_orders_enriched"],
            tags=["finance", "daily"],
            description="One row per order",
        ),
        _entity(
            "model.jaffle.dim_customers",
            "model",
            ["model.jaffle.stg_customers"],
            tags=["finance"],
        ),
        _entity("test.jaffle.not_null_stg_orders_id", "test", ["model.jaffle.stg_orders"]),
        _entity("model.jaffle.public__report", "model"),
    ]
    sources = [_entity("source.jaffle.stripe.payments", "source", depends_on=None)]
    return {
        "metadata": {"project_name": "jaffle_shop", "generated_at": "2024-01-01T00:00:00Z"},
        "nodes": {entity["unique_id"]: entity for entity in nodes},
        "sources": {entity["unique_id"]: entity for entity in sources},
    }


def make_node(node_id: str, label: str | None = None, **data: Any) -> Node:
    """Build a node; *data* overrides NodeData fields."""
    fields: dict[str, Any] = {"label": label or node_id, "resource_type": "model"}
    fields.update(data)
    return Node(id=node_id, data=NodeData(**fields))


def make_graph(node_ids: list[str], pairs: list[tuple[str, str]]) -> LineageGraph:
    """A graph of plain model nodes with ``source -> target`` edges."""
    return LineageGraph(
        nodes=[make_node(node_id) for node_id in node_ids],
        edges=[Edge.between(source, target) for source, target in pairs],
    )


def make_project(project_id: str, name: str = "Demo", graph: LineageGraph | None = None) -> SavedProject:
    graph = graph or make_graph(["a", "b"], [("a", "b")])
    return SavedProject(
        metadata=create_metadata(project_id, name, "demo_project", graph.nodes),
        nodes=graph.nodes,
        edges=graph.edges,
        manifest_info=ManifestInfo(project_name="demo_project", generated_at="2024-01-01T00:00:00Z"),
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def manifest_data() -> dict[str, Any]:
    return sample_manifest()


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    """The sample manifest written to ``target/manifest.json``."""
    path = tmp_path / "target" / "manifest.json"
    path.parent.mkdir()
    path.write_text(json.dumps(sample_manifest()), encoding="utf-8")
    return path


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "store" / "test.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(db_engine: Engine) -> ProjectStore:
    return ProjectStore(db_engine)


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Workspace]:
    """Workspace on a temp root with code-default settings."""
    monkeypatch.delenv("LINEAGECTL_CONFIG", raising=False)
    settings = LineageSettings.from_cli(workspace_root=tmp_path)
    ws = Workspace(settings)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.delenv("LINEAGECTL_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service and command test modules)
# ---------------------------------------------------------------------------


async def import_sample(workspace: Workspace, manifest_file: Path, name: str | None = None) -> str:
    """Import the sample manifest via ProjectService, returning the project id."""
    from lineagectl.services.project import ProjectService

    result = await ProjectService(workspace).import_manifest(manifest_file, name=name)
    assert result.ok, result.error
    return result.data["id"]
