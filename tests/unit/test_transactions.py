"""Unit tests for graph transactions, run through the engine."""

import logging
import uuid

from wiregraph.core.geometry import Orientation
from wiregraph.core.graph import EdgeAttributes, GraphState
from wiregraph.core.ownership import FREE, Ownership
from wiregraph.engine import TransactionEngine
from wiregraph.rules import GraphRule, Ruleset
from wiregraph.transactions import (
    BindPinTransaction,
    ConnectToPointTransaction,
    DeleteElementsTransaction,
    InsertEdgeTransaction,
    InsertVertexTransaction,
    MoveVertexTransaction,
    NormalizeTransaction,
    ReleasePinsTransaction,
    SetEdgeAttributesTransaction,
    TransactionContext,
    get_or_create_vertex,
)


class _BrokenRule(GraphRule):
    name = "broken"

    def apply(self, state, context):
        raise RuntimeError("rule failed")


class TestGetOrCreateVertex:
    """Tests for the shared vertex lookup helper."""

    def test_reuses_vertex_within_tolerance(self, state):
        vid = state.add_vertex((0, 0))
        assert get_or_create_vertex(state, (0.05, 0), 0.1) == vid
        assert len(state.vertices) == 1

    def test_splits_edge_under_new_vertex(self, state, make_wire):
        make_wire(state, (0, 0), (20, 0))
        vid = get_or_create_vertex(state, (10, 0), 0.1)
        assert state.degree(vid) == 2
        assert len(state.edges) == 2

    def test_uses_requested_id_and_ownership(self, state):
        wanted = uuid.uuid4()
        pin = Ownership.pin("U1", 1)
        vid = get_or_create_vertex(state, (0, 0), 0.1, pin, vertex_id=wanted)
        assert vid == wanted
        assert state.vertices[vid].ownership == pin

    def test_layer_filter_skips_other_layers(self, state, make_wire):
        _, end = make_wire(state, (0, 0), (20, 0), attributes=EdgeAttributes(layer_id="top"))
        vid = get_or_create_vertex(state, (10, 0), 0.1, layer="bottom")
        assert state.degree(vid) == 0
        assert len(state.edges) == 1
        assert get_or_create_vertex(state, (20, 0), 0.1, layer="top") == end
        assert get_or_create_vertex(state, (20, 0), 0.1, layer="bottom") != end


class TestInsertVertexTransaction:
    """Tests for vertex insertion."""

    def test_lone_free_vertex_is_culled(self, engine):
        tx = InsertVertexTransaction((10, 0))
        delta = engine.execute(tx)
        assert tx.created
        assert engine.state.is_empty
        assert delta.is_empty

    def test_protected_vertex_survives(self, engine):
        vid = uuid.uuid4()
        tx = InsertVertexTransaction((10, 0), vertex_id=vid)
        delta = engine.execute(tx, protected={vid})
        assert tx.vertex_id == vid
        assert delta.created_vertices == {vid}

    def test_reuses_existing_vertex(self, grid):
        state = GraphState()
        pin = state.add_vertex((10, 0), Ownership.pin("U1", 1))
        engine = TransactionEngine(grid, state=state)
        tx = InsertVertexTransaction((10.05, 0))
        engine.execute(tx)
        assert tx.vertex_id == pin
        assert not tx.created

    def test_vertex_on_straight_wire_collapses_away(self, grid, make_wire):
        state = GraphState()
        make_wire(state, (0, 0), (20, 0))
        engine = TransactionEngine(grid, state=state)

        engine.execute(InsertVertexTransaction((10, 0)))

        assert len(engine.state.vertices) == 2
        assert len(engine.state.edges) == 1


class TestConnectToPointTransaction:
    """Tests for routing a connection."""

    def test_inserts_elbow(self, grid):
        state = GraphState()
        pin = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        engine = TransactionEngine(grid, state=state)
        end_id = uuid.uuid4()

        tx = ConnectToPointTransaction(pin, (20, 10), end_vertex_id=end_id)
        engine.execute(tx)

        assert tx.end_id == end_id
        assert len(tx.path) == 3
        assert engine.state.point_of(tx.path[1]) == (20.0, 0.0)
        assert tx.orientation is Orientation.VERTICAL
        assert len(engine.state.edges) == 2

    def test_elbow_follows_last_orientation(self, grid):
        state = GraphState()
        pin = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        engine = TransactionEngine(grid, state=state)

        tx = ConnectToPointTransaction(pin, (20, 10), last_orientation=Orientation.HORIZONTAL)
        engine.execute(tx)

        assert engine.state.point_of(tx.path[1]) == (0.0, 10.0)
        assert tx.orientation is Orientation.HORIZONTAL

    def test_attributes_are_applied(self, grid):
        state = GraphState()
        pin = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        engine = TransactionEngine(grid, state=state)
        style = EdgeAttributes(width=0.25, layer_id="top")

        engine.execute(ConnectToPointTransaction(pin, (30, 0), attributes=style))

        assert list(engine.state.edge_attributes.values()) == [style]

    def test_missing_start_does_nothing(self, engine):
        tx = ConnectToPointTransaction(uuid.uuid4(), (10, 0))
        assert engine.execute(tx).is_empty
        assert tx.end_id is None

    def test_ending_on_wire_makes_junction(self, grid, make_wire):
        state = GraphState()
        make_wire(state, (0, 0), (20, 0))
        pin = state.add_vertex((10, -20), Ownership.pin("U1", 1))
        engine = TransactionEngine(grid, state=state)

        tx = ConnectToPointTransaction(pin, (10, 0))
        engine.execute(tx)

        assert engine.state.degree(tx.end_id) == 3
        assert len(engine.state.edges) == 3


class TestInsertEdgeTransaction:
    """Tests for connecting existing vertices."""

    def test_connects_pins(self, grid):
        state = GraphState()
        a = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        b = state.add_vertex((0, 30), Ownership.pin("U2", 1))
        engine = TransactionEngine(grid, state=state)

        tx = InsertEdgeTransaction(a, b)
        delta = engine.execute(tx)

        assert tx.edge_id in engine.state.edges
        assert delta.created_edges == {tx.edge_id}
        assert engine.state.vertices[a].cluster_id == engine.state.vertices[b].cluster_id

    def test_self_loop_is_refused(self, grid):
        state = GraphState()
        a = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        engine = TransactionEngine(grid, state=state)
        tx = InsertEdgeTransaction(a, a)
        assert engine.execute(tx).is_empty
        assert tx.edge_id is None


class TestMoveVertexTransaction:
    """Tests for moving vertices."""

    def test_move_snaps_free_vertex(self, grid, make_wire):
        state = GraphState()
        a, b = make_wire(state, (0, 0), (20, 0))
        engine = TransactionEngine(grid, state=state)
        engine.execute(MoveVertexTransaction(b, (21, 9)))
        assert engine.state.point_of(b) == (20.0, 10.0)

    def test_moving_wire_end_onto_another_merges(self, grid, make_wire):
        state = GraphState()
        a, b = make_wire(state, (0, 0), (10, 0))
        c, d = make_wire(state, (20, 0), (30, 0))
        engine = TransactionEngine(grid, state=state)

        engine.execute(MoveVertexTransaction(c, (10, 0)))

        assert len(engine.state.vertices) == 2
        assert engine.state.neighbors(a) == {d}


class TestDeleteElementsTransaction:
    """Tests for deletion."""

    def test_deleting_corner_culls_stubs(self, grid, make_wire):
        state = GraphState()
        a, b, c = make_wire(state, (0, 0), (10, 0), (10, 10))
        engine = TransactionEngine(grid, state=state)

        delta = engine.execute(DeleteElementsTransaction([b]))

        assert engine.state.is_empty
        assert delta.deleted_vertices == {a, b, c}

    def test_deleting_edge_keeps_pins(self, grid):
        state = GraphState()
        pin = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        free = state.add_vertex((20, 0))
        eid = state.add_edge(pin, free)
        engine = TransactionEngine(grid, state=state)

        engine.execute(DeleteElementsTransaction([eid]))

        assert set(engine.state.vertices) == {pin}

    def test_unknown_ids_are_ignored(self, engine):
        assert engine.execute(DeleteElementsTransaction([uuid.uuid4()])).is_empty


class TestPinTransactions:
    """Tests for binding and releasing pins."""

    def test_bind_creates_pin_vertex(self, engine):
        tx = BindPinTransaction((10, 10), "U1", 1)
        engine.execute(tx)
        vertex = engine.state.vertices[tx.vertex_id]
        assert vertex.ownership == Ownership.pin("U1", 1)

    def test_bind_on_wire_end(self, grid, make_wire):
        state = GraphState()
        a, b = make_wire(state, (0, 0), (20, 0))
        engine = TransactionEngine(grid, state=state)
        tx = BindPinTransaction((20, 0), "U1", 2)
        engine.execute(tx)
        assert tx.vertex_id == b
        assert engine.state.vertices[b].ownership.owned_by("U1")

    def test_bind_conflict_is_refused(self, engine, caplog):
        engine.execute(BindPinTransaction((0, 0), "U1", 1))
        tx = BindPinTransaction((0, 0), "U2", 7)
        with caplog.at_level(logging.WARNING):
            delta = engine.execute(tx)

        assert tx.vertex_id is None
        assert delta.is_empty
        (vertex,) = engine.state.vertices.values()
        assert vertex.ownership.owned_by("U1")
        assert "Cannot bind" in caplog.text

    def test_release_frees_and_culls(self, engine):
        for point, pin_id in (((0, 0), 1), ((0, 20), 2)):
            engine.execute(BindPinTransaction(point, "U1", pin_id))
        other = BindPinTransaction((40, 0), "U2", 1)
        engine.execute(other)

        tx = ReleasePinsTransaction("U1")
        engine.execute(tx)

        assert len(tx.released) == 2
        assert set(engine.state.vertices) == {other.vertex_id}

    def test_release_keeps_connected_vertices(self, grid):
        state = GraphState()
        pin = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        free = state.add_vertex((0, 30))
        state.add_edge(pin, free)
        engine = TransactionEngine(grid, state=state)

        engine.execute(ReleasePinsTransaction("U1"))

        assert engine.state.vertices[pin].ownership == FREE
        assert engine.state.degree(pin) == 1

    def test_release_through_injected_registry(self, grid):
        state = GraphState()
        vid = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        state.add_edge(vid, state.add_vertex((0, 30)))
        registry = {vid: Ownership.pin("U9", 1)}
        engine = TransactionEngine(grid, state=state)

        tx = ReleasePinsTransaction("U9", lookup=registry.get, assign=registry.__setitem__)
        engine.execute(tx)

        assert tx.released == {vid}
        assert registry[vid] == FREE
        assert engine.state.vertices[vid].ownership == FREE

    def test_registry_untouched_when_rolled_back(self, grid):
        state = GraphState()
        vid = state.add_vertex((0, 0), Ownership.pin("U1", 1))
        registry = {vid: Ownership.pin("U1", 1)}
        engine = TransactionEngine(grid, state=state, ruleset=Ruleset([_BrokenRule()]))

        tx = ReleasePinsTransaction("U1", lookup=registry.get, assign=registry.__setitem__)
        assert engine.execute(tx).is_empty

        assert registry[vid] == Ownership.pin("U1", 1)
        assert engine.state.vertices[vid].ownership == Ownership.pin("U1", 1)


class TestMetadataTransactions:
    """Tests for restyling and normalization."""

    def test_restyle_skips_rules(self, grid, make_wire):
        state = GraphState()
        a, b, c = make_wire(state, (0, 0), (10, 0), (20, 0))
        engine = TransactionEngine(grid, state=state)
        first = next(iter(state.adjacency[a]))
        style = EdgeAttributes(width=4.0)

        delta = engine.execute(SetEdgeAttributesTransaction([first], style))

        assert delta.restyled_edges == {first}
        assert len(engine.state.vertices) == 3
        assert engine.state.attributes_of(first) == style

    def test_normalize_runs_rules(self, grid, make_wire):
        state = GraphState()
        a, b, c = make_wire(state, (0, 0), (10, 0), (20, 0))
        engine = TransactionEngine(grid, state=state)

        engine.execute(NormalizeTransaction([b]))

        assert b not in engine.state.vertices
        assert len(engine.state.edges) == 1

    def test_descriptions(self):
        assert InsertVertexTransaction((1, 2)).description == "Insert vertex at (1, 2)"
        assert "U1" in repr(ReleasePinsTransaction("U1"))

    def test_context_tolerance(self, grid):
        assert TransactionContext(grid).tolerance == grid.epsilon
