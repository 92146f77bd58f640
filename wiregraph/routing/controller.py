"""
Connection controller: interactive routing state machine.

Turns tap/move/backspace/escape/commit events into graph transactions:

- idle + tap: start on the vertex or wire under the pointer, or place a
  new vertex at the snapped point; enter STARTING_ROUTE
- tap while routing: connect the last waypoint to the snapped point;
  landing on an existing vertex or wire, or tapping the last waypoint
  again, finishes the route
- backspace: take back the last waypoint; idle once none remain
- escape: roll back the whole route
- commit: finish the route
- move: compute a rubber-band preview, never touching the graph

Only vertices and wires on the route's own layer are attached to.

Every waypoint remembers the engine snapshot taken before it was placed,
so backspace and escape restore the graph exactly. While a route is in
progress its waypoints are protected from the rules; finishing the route
re-normalizes them without protection.
"""

from dataclasses import dataclass
from typing import Hashable, List, Optional, Set, Tuple, TYPE_CHECKING
import logging
import uuid

from wiregraph.commands.graph_commands import SnapshotCommand
from wiregraph.core.geometry import Orientation, Point
from wiregraph.core.graph import EdgeAttributes, EdgeID, GraphState, VertexID
from wiregraph.engine.delta import compute_delta
from wiregraph.routing.events import (
    Backspace,
    Commit,
    ControllerState,
    Escape,
    EventContext,
    Move,
    RoutePreview,
    RouteUpdate,
    Tap,
)
from wiregraph.transactions import ConnectToPointTransaction, InsertVertexTransaction

if TYPE_CHECKING:
    from wiregraph.commands import UndoStack
    from wiregraph.engine import TransactionEngine

logger = logging.getLogger(__name__)


@dataclass
class _Waypoint:
    """A placed route vertex and the graph as it was before placing it."""
    vertex_id: VertexID
    point: Point
    snapshot: GraphState
    orientation: Optional[Orientation] = None


class ConnectionController:
    """
    Finite-state machine for interactive wire/trace routing.

    Args:
        engine: Engine that owns the graph being edited
        undo_stack: Optional stack receiving one command per finished route
    """

    def __init__(self, engine: "TransactionEngine", undo_stack: Optional["UndoStack"] = None):
        self._engine = engine
        self._undo_stack = undo_stack
        self._state = ControllerState.IDLE
        self._waypoints: List[_Waypoint] = []
        self._route_start: Optional[GraphState] = None
        self._attributes: Optional[EdgeAttributes] = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_routing(self) -> bool:
        return self._state is ControllerState.STARTING_ROUTE

    @property
    def waypoints(self) -> Tuple[VertexID, ...]:
        """Vertex ids placed by the route in progress, oldest first."""
        return tuple(w.vertex_id for w in self._waypoints)

    def handle(self, event) -> RouteUpdate:
        """Dispatch one input event."""
        if isinstance(event, Tap):
            return self._handle_tap(event)
        if isinstance(event, Move):
            return RouteUpdate(self._state, preview=self.preview(event.point))
        if isinstance(event, Backspace):
            return self._handle_backspace()
        if isinstance(event, Escape):
            return self._handle_escape()
        if isinstance(event, Commit):
            return self._handle_commit()

        logger.warning("Ignoring unknown routing event %r", event)
        return RouteUpdate(self._state)

    def preview(self, point: Point) -> Optional[RoutePreview]:
        """Rubber band from the last waypoint to the snapped pointer."""
        if not self.is_routing:
            return None
        last = self._last_waypoint()
        if last is None:
            return None

        geometry = self._engine.geometry
        target = geometry.snap(point)
        bends = geometry.route_points(last.point, target, last.orientation)
        return RoutePreview((last.point, *bends))

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _handle_tap(self, event: Tap) -> RouteUpdate:
        if self._state is ControllerState.IDLE:
            return self._start_route(event)

        last = self._last_waypoint()
        if last is None:
            logger.warning("Route lost its last waypoint; starting a new route")
            self._reset()
            return self._start_route(event)

        snapped = self._engine.geometry.snap(event.point)
        vertex_id, edge_id = self._hit_test(event.point, snapped, self._layer(event.context))
        if vertex_id == last.vertex_id:
            return self._finish(self._engine.snapshot())

        end_point = snapped
        if vertex_id is not None:
            end_point = self._engine.state.vertices[vertex_id].point
        attach = vertex_id is not None or edge_id is not None
        return self._extend(last, end_point, event.context, finish=attach, target=vertex_id)

    def _handle_backspace(self) -> RouteUpdate:
        if self._state is ControllerState.IDLE:
            return RouteUpdate(self._state)

        waypoint = self._waypoints.pop()
        delta = self._engine.restore(waypoint.snapshot)
        if not self._waypoints:
            self._reset()
        logger.debug("Backspace: %d waypoints remain", len(self._waypoints))
        return RouteUpdate(self._state, delta)

    def _handle_escape(self) -> RouteUpdate:
        if self._state is ControllerState.IDLE:
            return RouteUpdate(self._state)

        delta = self._engine.restore(self._route_start)
        logger.debug("Route cancelled after %d waypoints", len(self._waypoints))
        self._reset()
        return RouteUpdate(self._state, delta, finished=True)

    def _handle_commit(self) -> RouteUpdate:
        if self._state is ControllerState.IDLE:
            return RouteUpdate(self._state)
        return self._finish(self._engine.snapshot())

    # -------------------------------------------------------------------------
    # Route building
    # -------------------------------------------------------------------------

    def _start_route(self, event: Tap) -> RouteUpdate:
        engine = self._engine
        context = event.context
        layer = self._layer(context)
        point = engine.geometry.snap(event.point)
        vertex_id, _ = self._hit_test(event.point, point, layer)
        if vertex_id is not None:
            point = engine.state.vertices[vertex_id].point

        route_start = engine.snapshot()
        new_id = uuid.uuid4()
        protected = {new_id}
        if vertex_id is not None:
            protected.add(vertex_id)

        transaction = InsertVertexTransaction(point, vertex_id=new_id, layer=layer)
        delta = engine.execute(transaction, protected=protected)

        vertex_id = transaction.vertex_id
        if vertex_id is None or vertex_id not in engine.state.vertices:
            logger.warning("Could not start a route at %s", point)
            return RouteUpdate(self._state, delta)

        self._route_start = route_start
        self._attributes = context.edge_attributes()
        self._waypoints = [
            _Waypoint(vertex_id, engine.state.vertices[vertex_id].point, route_start)
        ]
        self._state = ControllerState.STARTING_ROUTE
        logger.debug("Route started at %s", self._waypoints[0].point)
        return RouteUpdate(self._state, delta)

    def _extend(
        self,
        last: _Waypoint,
        point: Point,
        context: EventContext,
        finish: bool,
        target: Optional[VertexID] = None,
    ) -> RouteUpdate:
        engine = self._engine
        before = engine.snapshot()
        end_id = uuid.uuid4()
        protected = self._protected() | {end_id}
        if target is not None:
            protected.add(target)

        transaction = ConnectToPointTransaction(
            last.vertex_id,
            point,
            attributes=context.edge_attributes() or self._attributes,
            last_orientation=last.orientation,
            end_vertex_id=end_id,
        )
        delta = engine.execute(transaction, protected=protected)

        placed = transaction.end_id
        if placed is None or placed == last.vertex_id or placed not in engine.state.vertices:
            return RouteUpdate(self._state, delta)

        self._waypoints.append(
            _Waypoint(placed, engine.state.vertices[placed].point, before, transaction.orientation)
        )
        if finish:
            return self._finish(before)

        committed = frozenset(e for e in delta.created_edges if e in engine.state.edges)
        return RouteUpdate(self._state, delta, committed)

    def _finish(self, since: GraphState) -> RouteUpdate:
        """
        End the route.

        A route without a single segment is rolled back. Otherwise its
        waypoints are re-normalized without protection and the route is
        recorded on the undo stack.
        """
        engine = self._engine
        route_start = self._route_start

        if len(self._waypoints) < 2:
            delta = engine.restore(route_start)
            self._reset()
            return RouteUpdate(self._state, delta, finished=True)

        route_ids: Set[VertexID] = set()
        for waypoint in self._waypoints:
            if self._refresh(waypoint):
                route_ids.add(waypoint.vertex_id)
        engine.resolve(route_ids)

        delta = compute_delta(since, engine.state)
        committed = frozenset(delta.created_edges)
        if self._undo_stack is not None:
            self._undo_stack.record(
                SnapshotCommand(engine, route_start, engine.snapshot(), "Route wire")
            )

        logger.debug("Route finished with %d waypoints", len(self._waypoints))
        self._reset()
        return RouteUpdate(self._state, delta, committed, finished=True)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _hit_test(
        self, raw: Point, snapped: Point, layer: Optional[Hashable]
    ) -> Tuple[Optional[VertexID], Optional[EdgeID]]:
        """
        Existing element a tap attaches to.

        Vertices near the raw or snapped point win over edges through the
        snapped point. Only elements a wire on layer may connect to count.
        """
        state = self._engine.state
        eps = self._engine.geometry.epsilon
        for point in (raw, snapped):
            vertex_id = state.find_vertex(point, eps, layer)
            if vertex_id is not None:
                return vertex_id, None
        return None, state.find_edge(snapped, eps, layer)

    def _layer(self, context: Optional[EventContext] = None) -> Optional[Hashable]:
        """Layer of the wire being routed."""
        attributes = context.edge_attributes() if context is not None else None
        attributes = attributes or self._attributes
        return attributes.layer_id if attributes is not None else None

    def _refresh(self, waypoint: _Waypoint) -> bool:
        """Re-find a waypoint whose vertex was merged away."""
        state = self._engine.state
        if waypoint.vertex_id not in state.vertices:
            found = state.find_vertex(waypoint.point, self._engine.geometry.epsilon, self._layer())
            if found is None:
                return False
            waypoint.vertex_id = found
        waypoint.point = state.vertices[waypoint.vertex_id].point
        return True

    def _last_waypoint(self) -> Optional[_Waypoint]:
        if not self._waypoints:
            return None
        waypoint = self._waypoints[-1]
        return waypoint if self._refresh(waypoint) else None

    def _protected(self) -> Set[VertexID]:
        return {w.vertex_id for w in self._waypoints}

    def _reset(self) -> None:
        self._state = ControllerState.IDLE
        self._waypoints = []
        self._route_start = None
        self._attributes = None
