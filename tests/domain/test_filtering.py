"""Tests for the node filter pipeline."""

from __future__ import annotations

from lineagectl.domain.filtering import (
    build_pipeline,
    default_filter_state,
    filter_graph,
    filter_with_state,
    rederive_edges,
)
from lineagectl.domain.models import Edge, FilterMode, FilterState, LineageGraph
from tests.conftest import make_node


def _graph() -> LineageGraph:
    """raw_x -> stg_x -> mart_y, a tagged seed, and one planned node off mart_y."""
    nodes = [
        make_node("A", "raw_x", inferred_layer_tags=["raw"]),
        make_node("B", "stg_x", inferred_layer_tags=["staging"], tags=["daily", "pii"]),
        make_node(
            "C",
            "mart_y",
            inferred_layer_tags=["mart"],
            tags=["daily"],
            description="Revenue by Month",
        ),
        make_node("S", "raw_seed", resource_type="seed", inferred_layer_tags=["raw"], tags=["pii"]),
        make_node("U", "Untitled", is_user_created=True, tags=["planned"]),
    ]
    edges = [
        Edge.between("A", "B"),
        Edge.between("B", "C"),
        Edge.between("S", "B"),
        Edge.between("C", "U"),
    ]
    return LineageGraph(nodes=nodes, edges=edges)


def _ids(graph: LineageGraph) -> list[str]:
    return [node.id for node in graph.nodes]


class TestResourceTypeStage:
    def test_none_is_noop(self) -> None:
        g = _graph()
        assert _ids(filter_graph(g.nodes, g.edges)) == ["A", "B", "C", "S", "U"]

    def test_empty_set_shows_nothing(self) -> None:
        g = _graph()
        result = filter_graph(g.nodes, g.edges, resource_types=set())
        assert result.nodes == []
        assert result.edges == []

    def test_keeps_matching_types(self) -> None:
        g = _graph()
        result = filter_graph(g.nodes, g.edges, resource_types={"seed"})
        assert _ids(result) == ["S"]
        assert result.edges == []


class TestTagStage:
    def test_or_mode(self) -> None:
        g = _graph()
        result = filter_graph(g.nodes, g.edges, tags={"daily", "pii"}, tag_mode=FilterMode.OR)
        assert _ids(result) == ["B", "C", "S"]

    def test_and_mode(self) -> None:
        g = _graph()
        result = filter_graph(g.nodes, g.edges, tags={"daily", "pii"}, tag_mode=FilterMode.AND)
        assert _ids(result) == ["B"]

    def test_empty_tag_set_is_noop(self) -> None:
        g = _graph()
        assert len(filter_graph(g.nodes, g.edges, tags=set()).nodes) == 5

    def test_untagged_nodes_never_match(self) -> None:
        g = _graph()
        assert "A" not in _ids(filter_graph(g.nodes, g.edges, tags={"daily"}))


class TestInferredLayerStage:
    def test_empty_set_keeps_only_user_created(self) -> None:
        g = _graph()
        assert _ids(filter_graph(g.nodes, g.edges, layers=set())) == ["U"]

    def test_staging_keeps_b_and_user_nodes(self) -> None:
        g = _graph()
        result = filter_graph(g.nodes, g.edges, layers={"staging"})
        assert _ids(result) == ["B", "U"]
        assert result.edges == []

    def test_layer_mode_is_ignored(self) -> None:
        g = _graph()
        or_result = filter_graph(g.nodes, g.edges, layers={"raw", "mart"})
        and_result = filter_graph(
            g.nodes, g.edges, layers={"raw", "mart"}, layer_mode=FilterMode.AND
        )
        assert _ids(or_result) == _ids(and_result) == ["A", "C", "S", "U"]


class TestSearchStage:
    def test_matches_label_case_insensitive(self) -> None:
        g = _graph()
        assert _ids(filter_graph(g.nodes, g.edges, query="STG")) == ["B"]

    def test_matches_description(self) -> None:
        g = _graph()
        assert _ids(filter_graph(g.nodes, g.edges, query="revenue")) == ["C"]

    def test_matches_resource_type(self) -> None:
        g = _graph()
        assert _ids(filter_graph(g.nodes, g.edges, query="seed")) == ["S"]

    def test_whitespace_query_is_noop(self) -> None:
        g = _graph()
        assert len(filter_graph(g.nodes, g.edges, query="   ").nodes) == 5


class TestPipeline:
    def test_stage_order(self) -> None:
        stages = build_pipeline("x", {"model"}, {"t"}, FilterMode.OR, {"raw"})
        assert [stage.name for stage in stages] == ["resource_type", "tags", "inferred_layer", "search"]

    def test_inactive_stages_omitted(self) -> None:
        assert [stage.name for stage in build_pipeline(tags=set())] == []

    def test_edges_only_between_survivors(self) -> None:
        g = _graph()
        result = filter_graph(g.nodes, g.edges, resource_types={"model"})
        kept = set(_ids(result))
        assert all(e.source in kept and e.target in kept for e in result.edges)
        assert {e.id for e in result.edges} == {"A-B", "B-C", "C-U"}

    def test_rederive_edges(self) -> None:
        edges = [Edge.between("a", "b"), Edge.between("b", "c")]
        assert rederive_edges({"a", "b"}, edges) == [edges[0]]

    def test_combined_criteria_narrow(self) -> None:
        g = _graph()
        result = filter_graph(
            g.nodes, g.edges, query="x", resource_types={"model"}, layers={"raw", "staging"}
        )
        assert _ids(result) == ["A", "B"]
        assert [e.id for e in result.edges] == ["A-B"]


class TestFilterState:
    def test_filter_with_state(self) -> None:
        g = _graph()
        state = FilterState.from_sets({"model"}, {"daily"}, FilterMode.OR, {"mart"})
        assert _ids(filter_with_state(g, state)) == ["C"]

    def test_filter_with_state_and_query(self) -> None:
        g = _graph()
        state = FilterState.from_sets({"model", "seed"}, set(), FilterMode.OR, {"raw"})
        assert _ids(filter_with_state(g, state, "seed")) == ["S"]

    def test_default_state(self) -> None:
        state = default_filter_state(_graph())
        assert state.resource_type_filters == ["model", "seed"]
        assert state.tag_filters == []
        assert state.tag_filter_mode == FilterMode.OR
        assert state.inferred_tag_filters == ["raw", "staging", "mart"]

    def test_default_state_keeps_models_and_seeds(self) -> None:
        g = _graph()
        assert len(filter_with_state(g, default_filter_state(g)).nodes) == 5
