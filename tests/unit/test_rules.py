"""Unit tests for normalization rules."""

import logging

import pytest

from wiregraph.core.graph import EdgeAttributes
from wiregraph.core.ownership import LOCKED, Ownership
from wiregraph.rules import (
    CollapseCollinearRule,
    CullIsolatedRule,
    DeduplicateEdgesRule,
    GraphRule,
    MergeCoincidentRule,
    ResolutionContext,
    Ruleset,
    SnapToGridRule,
    SplitEdgesAtVerticesRule,
    UnifyClustersRule,
    default_rules,
)


def around(state, grid, *epicenter, **kwargs):
    return ResolutionContext.around(state, epicenter, grid, **kwargs)


class TestResolutionContext:
    """Tests for scope computation."""

    def test_scope_covers_neighbours_and_box(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (100, 0), (200, 0))
        nearby = state.add_vertex((5, 5))
        distant = state.add_vertex((500, 500))
        scope = around(state, grid, a).scope(state)
        assert set(scope) == {a, b, nearby}
        assert distant not in scope

    def test_scope_is_ordered(self, state, grid):
        right = state.add_vertex((10, 0))
        left = state.add_vertex((0, 0))
        assert around(state, grid, right, left).scope(state) == [left, right]

    def test_empty_epicenter(self, state, grid):
        context = around(state, grid)
        assert context.neighborhood is None
        assert context.scope(state) == []


class TestSnapToGridRule:
    """Tests for grid snapping."""

    def test_snaps_free_vertex(self, state, grid):
        vid = state.add_vertex((13, 4))
        touched = SnapToGridRule().apply(state, around(state, grid, vid))
        assert touched == {vid}
        assert state.point_of(vid) == (10.0, 0.0)

    def test_leaves_bound_and_protected_vertices(self, state, grid):
        pin = state.add_vertex((13, 4), Ownership.pin("U1", 1))
        held = state.add_vertex((27, 4))
        context = around(state, grid, pin, held, protected={held})
        assert SnapToGridRule().apply(state, context) == set()
        assert state.point_of(pin) == (13.0, 4.0)
        assert state.point_of(held) == (27.0, 4.0)

    def test_keeps_elbow_of_off_grid_pin(self, state, grid):
        start = state.add_vertex((0, 0))
        elbow = state.add_vertex((3, 0))
        pin = state.add_vertex((3, 7), Ownership.pin("U1", 1))
        state.add_edge(start, elbow)
        state.add_edge(elbow, pin)

        assert SnapToGridRule().apply(state, around(state, grid, elbow)) == set()
        assert state.point_of(elbow) == (3.0, 0.0)

    def test_snaps_when_edges_stay_straight(self, state, grid, make_wire):
        a, b = make_wire(state, (0, 0.5), (20, 0.5))
        SnapToGridRule().apply(state, around(state, grid, a, b))
        assert state.point_of(a) == (0.0, 0.0)
        assert state.point_of(b) == (20.0, 0.0)


class TestMergeCoincidentRule:
    """Tests for coincident vertex merging."""

    def test_merges_and_rewires(self, state, grid, make_wire):
        a, b = make_wire(state, (0, 0), (10, 0))
        c, d = make_wire(state, (10, 0), (10, 20))
        MergeCoincidentRule().apply(state, around(state, grid, c))

        survivors = [v for v in (b, c) if v in state.vertices]
        assert len(survivors) == 1
        assert state.degree(survivors[0]) == 2
        assert state.neighbors(survivors[0]) == {a, d}
        assert len(state.edges) == 2
        assert state.integrity_errors() == []

    def test_bound_vertex_survives(self, state, grid, make_wire):
        pin = state.add_vertex((10, 0), Ownership.pin("U1", 1))
        free, other = make_wire(state, (10, 0.05), (30, 0))
        MergeCoincidentRule().apply(state, around(state, grid, free))

        assert free not in state.vertices
        assert state.neighbors(pin) == {other}

    def test_rewired_edge_keeps_id_and_attributes(self, state, grid):
        style = EdgeAttributes(width=1.5)
        keep = state.add_vertex((10, 0))
        drop = state.add_vertex((10, 0))
        other = state.add_vertex((30, 0))
        # Give the survivor the higher degree
        state.add_edge(keep, state.add_vertex((10, 20)))
        state.add_edge(keep, state.add_vertex((0, 0)))
        eid = state.add_edge(drop, other, style)

        MergeCoincidentRule().apply(state, around(state, grid, drop))

        assert drop not in state.vertices
        assert state.edges[eid].touches(keep)
        assert state.attributes_of(eid) == style

    def test_survivor_inherits_cluster(self, state, grid):
        keep = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        drop = state.add_vertex((0, 0), cluster_id="net-7")
        MergeCoincidentRule().apply(state, around(state, grid, drop))
        assert state.vertices[keep].cluster_id == "net-7"

    def test_two_pins_are_left_alone(self, state, grid, caplog):
        first = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        second = state.add_vertex((0, 0), Ownership.pin("U2", 4))
        with caplog.at_level(logging.WARNING):
            touched = MergeCoincidentRule().apply(state, around(state, grid, first))
        assert touched == set()
        assert first in state.vertices and second in state.vertices
        assert "Ownership conflict" in caplog.text

    def test_locked_and_pin_conflict(self, state, grid):
        pin = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        state.add_vertex((0, 0), LOCKED)
        MergeCoincidentRule().apply(state, around(state, grid, pin))
        assert len(state.vertices) == 2

    def test_other_layers_overlap_unmerged(self, state, grid, make_wire):
        top, _ = make_wire(state, (10, 0), (30, 0), attributes=EdgeAttributes(layer_id="top"))
        bottom, _ = make_wire(state, (10, 0), (10, 20), attributes=EdgeAttributes(layer_id="bottom"))
        assert MergeCoincidentRule().apply(state, around(state, grid, top, bottom)) == set()
        assert top in state.vertices and bottom in state.vertices

    def test_same_layer_merges(self, state, grid, make_wire):
        style = EdgeAttributes(layer_id="top")
        _, b = make_wire(state, (0, 0), (10, 0), attributes=style)
        c, _ = make_wire(state, (10, 0), (10, 20), attributes=style)
        MergeCoincidentRule().apply(state, around(state, grid, b, c))
        assert len(state.vertices) == 3

    def test_protected_lone_vertex_waits(self, state, grid, make_wire):
        end, _ = make_wire(state, (10, 0), (30, 0), attributes=EdgeAttributes(layer_id="top"))
        start = state.add_vertex((10, 0))
        context = around(state, grid, start, end, protected={start})
        assert MergeCoincidentRule().apply(state, context) == set()
        assert start in state.vertices and end in state.vertices


class TestSplitEdgesAtVerticesRule:
    """Tests for T-junction creation."""

    def test_vertex_on_wire_becomes_junction(self, state, grid, make_wire):
        a, b = make_wire(state, (0, 0), (20, 0))
        t, tail = make_wire(state, (10, 0), (10, 20))
        touched = SplitEdgesAtVerticesRule().apply(state, around(state, grid, t))

        assert t in touched
        assert state.degree(t) == 3
        assert state.neighbors(t) == {a, b, tail}
        assert state.integrity_errors() == []

    def test_endpoint_contact_is_not_a_split(self, state, grid, make_wire):
        make_wire(state, (0, 0), (20, 0))
        t, _ = make_wire(state, (20, 0), (20, 20))
        assert SplitEdgesAtVerticesRule().apply(state, around(state, grid, t)) == set()

    def test_other_layer_is_not_connected(self, state, grid, make_wire):
        make_wire(state, (0, 0), (20, 0), attributes=EdgeAttributes(layer_id="top"))
        t, _ = make_wire(state, (10, 0), (10, 20), attributes=EdgeAttributes(layer_id="bottom"))
        assert SplitEdgesAtVerticesRule().apply(state, around(state, grid, t)) == set()
        assert state.degree(t) == 1

    def test_lone_vertex_splits_any_layer(self, state, grid, make_wire):
        make_wire(state, (0, 0), (20, 0), attributes=EdgeAttributes(layer_id="top"))
        t = state.add_vertex((10, 0))
        SplitEdgesAtVerticesRule().apply(state, around(state, grid, t))
        assert state.degree(t) == 2

    def test_protected_lone_vertex_waits(self, state, grid, make_wire):
        make_wire(state, (0, 0), (20, 0), attributes=EdgeAttributes(layer_id="top"))
        t = state.add_vertex((10, 0))
        context = around(state, grid, t, protected={t})
        assert SplitEdgesAtVerticesRule().apply(state, context) == set()
        assert state.degree(t) == 0


class TestCollapseCollinearRule:
    """Tests for redundant bend removal."""

    def test_collapses_straight_run(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (10, 0), (20, 0))
        touched = CollapseCollinearRule().apply(state, around(state, grid, b))

        assert touched == {a, b, c}
        assert b not in state.vertices
        assert len(state.edges) == 1
        assert state.neighbors(a) == {c}

    def test_reuses_an_original_edge_id(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (10, 0), (20, 0))
        original = set(state.edges)
        CollapseCollinearRule().apply(state, around(state, grid, b))
        assert set(state.edges) < original

    def test_keeps_corner(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (10, 0), (10, 10))
        assert CollapseCollinearRule().apply(state, around(state, grid, b)) == set()
        assert b in state.vertices

    def test_keeps_fold_back(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (20, 0), (10, 0))
        assert CollapseCollinearRule().apply(state, around(state, grid, b)) == set()

    def test_keeps_attribute_seam(self, state, grid):
        a = state.add_vertex((0, 0))
        b = state.add_vertex((10, 0))
        c = state.add_vertex((20, 0))
        state.add_edge(a, b, EdgeAttributes(width=1.0))
        state.add_edge(b, c, EdgeAttributes(width=2.0))
        assert CollapseCollinearRule().apply(state, around(state, grid, b)) == set()

    def test_carries_shared_attributes(self, state, grid, make_wire):
        style = EdgeAttributes(width=3.0, layer_id="top")
        a, b, c = make_wire(state, (0, 0), (10, 0), (20, 0), attributes=style)
        CollapseCollinearRule().apply(state, around(state, grid, b))
        (eid,) = state.edges
        assert state.attributes_of(eid) == style

    def test_keeps_pin_and_protected(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (10, 0), (20, 0))
        state.set_ownership(b, Ownership.pin("J1", 2))
        assert CollapseCollinearRule().apply(state, around(state, grid, b)) == set()

        state.set_ownership(b, Ownership())
        context = around(state, grid, b, protected={b})
        assert CollapseCollinearRule().apply(state, context) == set()


class TestDeduplicateEdgesRule:
    """Tests for parallel edge removal."""

    def test_keeps_styled_edge(self, state, grid):
        a = state.add_vertex((0, 0))
        b = state.add_vertex((10, 0))
        state.add_edge(a, b)
        styled = state.add_edge(b, a, EdgeAttributes(width=2.0))
        state.add_edge(a, b)

        touched = DeduplicateEdgesRule().apply(state, around(state, grid, a))

        assert touched == {a, b}
        assert list(state.edges) == [styled]


class TestCullIsolatedRule:
    """Tests for isolated vertex culling."""

    def test_culls_isolated_free_vertex(self, state, grid):
        vid = state.add_vertex((0, 0))
        assert CullIsolatedRule().apply(state, around(state, grid, vid)) == {vid}
        assert state.is_empty

    def test_never_culls_pins(self, state, grid):
        pin = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        locked = state.add_vertex((10, 0), LOCKED)
        assert CullIsolatedRule().apply(state, around(state, grid, pin, locked)) == set()
        assert len(state.vertices) == 2

    def test_respects_protection_and_policy(self, state, grid):
        held = state.add_vertex((0, 0))
        vetoed = state.add_vertex((10, 0))
        context = around(
            state, grid, held, vetoed,
            protected={held},
            cull_policy=lambda vertex, graph: vertex.id != vetoed,
        )
        assert CullIsolatedRule().apply(state, context) == set()
        assert len(state.vertices) == 2

    def test_connected_vertices_stay(self, state, grid, make_wire):
        a, b = make_wire(state, (0, 0), (10, 0))
        assert CullIsolatedRule().apply(state, around(state, grid, a, b)) == set()


class TestUnifyClustersRule:
    """Tests for net identity maintenance."""

    def test_component_gets_one_id(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (10, 0), (10, 10))
        UnifyClustersRule().apply(state, around(state, grid, a))
        clusters = {state.vertices[v].cluster_id for v in (a, b, c)}
        assert len(clusters) == 1
        assert None not in clusters

    def test_majority_id_wins(self, state, grid, make_wire):
        a, b, c = make_wire(state, (0, 0), (10, 0), (20, 0))
        state.set_cluster(a, "n1")
        state.set_cluster(b, "n1")
        state.set_cluster(c, "n2")
        UnifyClustersRule().apply(state, around(state, grid, c))
        assert {state.vertices[v].cluster_id for v in (a, b, c)} == {"n1"}

    def test_cut_net_gets_fresh_id(self, state, grid, make_wire):
        a, b = make_wire(state, (0, 0), (10, 0))
        c, d = make_wire(state, (20, 0), (30, 0))
        for vid in (a, b, c, d):
            state.set_cluster(vid, "n1")

        UnifyClustersRule().apply(state, around(state, grid, b, c))

        left = state.vertices[a].cluster_id
        right = state.vertices[c].cluster_id
        assert left == "n1"
        assert right != "n1"
        assert state.vertices[d].cluster_id == right

    def test_isolated_free_vertex_loses_id(self, state, grid):
        vid = state.add_vertex((0, 0), cluster_id="n1")
        pin = state.add_vertex((10, 0), Ownership.pin("U1", 1), cluster_id="n2")
        UnifyClustersRule().apply(state, around(state, grid, vid, pin))
        assert state.vertices[vid].cluster_id is None
        assert state.vertices[pin].cluster_id == "n2"


class _AlwaysTouch(GraphRule):
    name = "always"

    def apply(self, state, context):
        return set(context.epicenter)


class TestRuleset:
    """Tests for fixed-point resolution."""

    def test_default_order(self):
        names = [rule.name for rule in default_rules()]
        assert names == [
            "snap",
            "merge-coincident",
            "split-edges",
            "collapse-collinear",
            "dedupe-edges",
            "cull-isolated",
            "unify-clusters",
        ]

    def test_invalid_pass_limit(self):
        with pytest.raises(ValueError):
            Ruleset(max_passes=0)

    def test_cascade_settles(self, state, grid, make_wire):
        """Merging two wire ends exposes a straight run that then collapses."""
        a, b = make_wire(state, (0, 0), (10, 0))
        c, d = make_wire(state, (10, 0), (30, 0))

        Ruleset().resolve(state, around(state, grid, c))

        assert len(state.vertices) == 2
        assert len(state.edges) == 1
        assert state.neighbors(a) == {d}
        assert state.integrity_errors() == []

    def test_second_resolution_is_a_noop(self, state, grid, make_wire):
        a, b = make_wire(state, (0, 0), (10, 0))
        c, d = make_wire(state, (10, 0), (30, 0))
        ruleset = Ruleset()
        ruleset.resolve(state, around(state, grid, c))
        settled = state.copy()

        assert ruleset.resolve(state, around(state, grid, *state.vertices)) == set()
        assert state == settled

    def test_warns_when_not_settling(self, state, grid, caplog):
        vid = state.add_vertex((0, 0))
        ruleset = Ruleset([_AlwaysTouch()], max_passes=2)
        with caplog.at_level(logging.WARNING):
            ruleset.resolve(state, around(state, grid, vid))
        assert "did not settle" in caplog.text
