"""Tests for impact chain traversal."""

from collections.abc import Callable

from tracelink.artifacts import ArtifactType, LinkType
from tracelink.graph import (
    ArtifactGraph,
    Direction,
    Edge,
    ImpactNode,
    get_affected_artifact_ids,
    get_impact_chain,
    get_impact_summary,
    get_nodes_at_level,
)

MakeEdge = Callable[..., Edge]


# =============================================================================
# Downstream
# =============================================================================


class TestDownstream:
    def test_single_satisfies_edge(self) -> None:
        edges = [
            Edge(
                source_id="REQ-001",
                target_id="UC-001",
                link_type=LinkType.SATISFIES,
                source_type=ArtifactType.REQUIREMENT,
                target_type=ArtifactType.USE_CASE,
            )
        ]

        chain = get_impact_chain("REQ-001", edges, Direction.DOWNSTREAM)

        assert chain.nodes == (
            ImpactNode(
                artifact_id="UC-001",
                artifact_type=ArtifactType.USE_CASE,
                level=1,
                direction=Direction.DOWNSTREAM,
                link_type=LinkType.SATISFIES,
                parent_id="REQ-001",
            ),
        )

    def test_cycle_terminates_with_levels(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("B", "C"), make_edge("C", "A")]

        chain = get_impact_chain("A", edges, Direction.DOWNSTREAM)

        assert [(n.artifact_id, n.level) for n in chain.nodes] == [("B", 1), ("C", 2)]

    def test_does_not_follow_incoming_edges(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("X", "A"), make_edge("A", "B")]

        chain = get_impact_chain("A", edges, Direction.DOWNSTREAM)

        assert get_affected_artifact_ids(chain) == ("B",)

    def test_first_discovery_keeps_lowest_level(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("B", "C"), make_edge("A", "C")]

        chain = get_impact_chain("A", edges, Direction.DOWNSTREAM)

        levels = {n.artifact_id: n.level for n in chain.nodes}
        assert levels == {"B": 1, "C": 1}

    def test_parent_id_records_discovering_node(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("B", "C")]

        chain = get_impact_chain("A", edges, Direction.DOWNSTREAM)

        assert [n.parent_id for n in chain.nodes] == ["A", "B"]


# =============================================================================
# Upstream
# =============================================================================


class TestUpstream:
    def test_follows_edges_in_reverse(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("B", "C")]

        chain = get_impact_chain("C", edges, Direction.UPSTREAM)

        assert [(n.artifact_id, n.level) for n in chain.nodes] == [("B", 1), ("A", 2)]
        assert all(n.direction is Direction.UPSTREAM for n in chain.nodes)

    def test_link_type_is_the_stored_type(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("TC-001", "REQ-001", link_type=LinkType.VERIFIES)]

        chain = get_impact_chain("REQ-001", edges, Direction.UPSTREAM)

        assert chain.nodes[0].link_type is LinkType.VERIFIES


# =============================================================================
# Both directions
# =============================================================================


class TestBothDirections:
    def test_downstream_neighbours_come_first(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("U", "A"), make_edge("A", "D")]

        chain = get_impact_chain("A", edges, Direction.BOTH)

        assert [(n.artifact_id, n.direction) for n in chain.nodes] == [
            ("D", Direction.DOWNSTREAM),
            ("U", Direction.UPSTREAM),
        ]

    def test_nodes_expand_only_in_their_own_direction(
        self, make_edge: MakeEdge
    ) -> None:
        # D's other parent P is upstream of D but must not be reached from A
        edges = [make_edge("A", "D"), make_edge("P", "D")]

        chain = get_impact_chain("A", edges, Direction.BOTH)

        assert get_affected_artifact_ids(chain) == ("D",)

    def test_source_is_never_emitted(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("B", "A")]

        chain = get_impact_chain("A", edges, Direction.BOTH)

        assert "A" not in get_affected_artifact_ids(chain)
        assert get_affected_artifact_ids(chain) == ("B",)


# =============================================================================
# Depth and edge cases
# =============================================================================


class TestDepthAndEdgeCases:
    def test_max_depth_limits_levels(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("B", "C"), make_edge("C", "D")]

        chain = get_impact_chain("A", edges, Direction.DOWNSTREAM, max_depth=2)

        assert get_affected_artifact_ids(chain) == ("B", "C")
        assert chain.max_depth == 2

    def test_zero_depth_is_unlimited(self, make_edge: MakeEdge) -> None:
        edges = [make_edge(f"N{i}", f"N{i + 1}") for i in range(10)]

        chain = get_impact_chain("N0", edges, Direction.DOWNSTREAM, max_depth=0)

        assert len(chain.nodes) == 10

    def test_unknown_source_yields_empty_chain(self, make_edge: MakeEdge) -> None:
        chain = get_impact_chain("REQ-404", [make_edge("A", "B")])

        assert chain.is_empty is True
        assert chain.source_id == "REQ-404"

    def test_accepts_a_graph(self, make_edge: MakeEdge) -> None:
        graph = ArtifactGraph(edges=[make_edge("A", "B")])

        chain = get_impact_chain("A", graph, Direction.DOWNSTREAM)

        assert get_affected_artifact_ids(chain) == ("B",)

    def test_does_not_mutate_input(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("B", "C")]
        before = list(edges)

        first = get_impact_chain("A", edges)
        second = get_impact_chain("A", edges)

        assert edges == before
        assert first == second


# =============================================================================
# Grouping and summary
# =============================================================================


class TestGroupingAndSummary:
    def test_by_level_and_nodes_at_level(self, make_edge: MakeEdge) -> None:
        edges = [make_edge("A", "B"), make_edge("A", "C"), make_edge("B", "D")]

        chain = get_impact_chain("A", edges, Direction.DOWNSTREAM)

        assert list(chain.by_level) == [1, 2]
        assert [n.artifact_id for n in get_nodes_at_level(chain, 1)] == ["B", "C"]
        assert get_nodes_at_level(chain, 5) == ()

    def test_by_type_groups_unknown_types(self, make_edge: MakeEdge) -> None:
        edges = [
            make_edge("REQ-001", "UC-001", target_type=ArtifactType.USE_CASE),
            make_edge("REQ-001", "mystery"),
        ]

        chain = get_impact_chain("REQ-001", edges, Direction.DOWNSTREAM)

        assert set(chain.by_type) == {"useCase", "unknown"}

    def test_summary_counts(self, make_edge: MakeEdge) -> None:
        edges = [
            make_edge("U", "A", source_type=ArtifactType.REQUIREMENT),
            make_edge("A", "D", target_type=ArtifactType.TEST_CASE),
            make_edge("D", "E", target_type=ArtifactType.TEST_CASE),
        ]

        summary = get_impact_summary(get_impact_chain("A", edges))

        assert summary.total == 3
        assert summary.upstream == 1
        assert summary.downstream == 2
        assert dict(summary.by_artifact_type) == {"testCase": 2, "requirement": 1}
        assert summary.max_depth == 2

    def test_summary_of_empty_chain(self) -> None:
        summary = get_impact_summary(get_impact_chain("A", []))

        assert summary.total == 0
        assert summary.max_depth == 0
