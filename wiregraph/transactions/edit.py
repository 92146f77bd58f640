"""
Concrete graph transactions.

Each transaction records what it needs to run and, after running, the
ids it produced, so callers (the routing controller, importers, tests)
can keep referring to the elements they just created.
"""

from typing import Callable, Hashable, Iterable, List, Optional, Set
import logging
import uuid

from wiregraph.core.geometry import Orientation, Point
from wiregraph.core.graph import ANY_LAYER, EdgeAttributes, EdgeID, GraphState, VertexID
from wiregraph.core.ownership import FREE, Ownership
from wiregraph.transactions.base import (
    GraphTransaction,
    TransactionContext,
    get_or_create_vertex,
)

logger = logging.getLogger(__name__)

OwnershipLookup = Callable[[VertexID], Optional[Ownership]]
OwnershipAssign = Callable[[VertexID, Ownership], None]


class InsertVertexTransaction(GraphTransaction):
    """
    Get or create a free vertex at a point.

    An existing vertex within tolerance is reused. Otherwise a vertex is
    created, splitting any edge it lands on. With a layer, only vertices
    and edges that layer may connect to are considered.
    """

    def __init__(self, point: Point, vertex_id: Optional[VertexID] = None, layer=ANY_LAYER):
        self._point = point
        self._new_id = vertex_id or uuid.uuid4()
        self._layer = layer
        self.vertex_id: Optional[VertexID] = None
        self.created = False

    @property
    def description(self) -> str:
        return f"Insert vertex at ({self._point[0]:g}, {self._point[1]:g})"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        self.vertex_id = get_or_create_vertex(
            state, self._point, context.tolerance, vertex_id=self._new_id, layer=self._layer
        )
        self.created = self.vertex_id == self._new_id
        return {self.vertex_id}


class InsertEdgeTransaction(GraphTransaction):
    """Connect two existing vertices."""

    def __init__(
        self,
        start_id: VertexID,
        end_id: VertexID,
        attributes: Optional[EdgeAttributes] = None,
    ):
        self._start_id = start_id
        self._end_id = end_id
        self._attributes = attributes
        self.edge_id: Optional[EdgeID] = None

    @property
    def description(self) -> str:
        return "Insert edge"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        self.edge_id = state.add_edge(self._start_id, self._end_id, self._attributes)
        if self.edge_id is None:
            return set()
        return {self._start_id, self._end_id}


class ConnectToPointTransaction(GraphTransaction):
    """
    Route from an existing vertex to a point.

    Bends are inserted as the geometry policy dictates (one elbow on a
    Manhattan grid). The far end is reused if a vertex already exists
    there, or splits the edge it lands on. Only vertices and edges on the
    route's own layer (``attributes.layer_id``) are reused or split.
    """

    def __init__(
        self,
        start_id: VertexID,
        point: Point,
        attributes: Optional[EdgeAttributes] = None,
        last_orientation: Optional[Orientation] = None,
        end_vertex_id: Optional[VertexID] = None,
    ):
        self._start_id = start_id
        self._point = point
        self._attributes = attributes
        self._last_orientation = last_orientation
        self._end_vertex_id = end_vertex_id or uuid.uuid4()
        self.end_id: Optional[VertexID] = None
        self.path: List[VertexID] = []
        self.orientation: Optional[Orientation] = None

    @property
    def description(self) -> str:
        return f"Connect to ({self._point[0]:g}, {self._point[1]:g})"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        start = state.vertices.get(self._start_id)
        if start is None:
            return set()

        geometry = context.geometry
        bends = geometry.route_points(start.point, self._point, self._last_orientation)
        layer = self._attributes.layer_id if self._attributes is not None else None

        self.path = [self._start_id]
        for index, bend in enumerate(bends):
            is_last = index == len(bends) - 1
            vid = get_or_create_vertex(
                state,
                bend,
                context.tolerance,
                vertex_id=self._end_vertex_id if is_last else None,
                layer=layer,
            )
            previous = self.path[-1]
            if vid == previous:
                continue
            state.add_edge(previous, vid, self._attributes)
            self.orientation = geometry.orientation(
                state.vertices[previous].point, state.vertices[vid].point
            )
            self.path.append(vid)

        self.end_id = self.path[-1]
        return set(self.path)


class MoveVertexTransaction(GraphTransaction):
    """Move a vertex to a new point."""

    def __init__(self, vertex_id: VertexID, point: Point):
        self._vertex_id = vertex_id
        self._point = point

    @property
    def description(self) -> str:
        return f"Move vertex to ({self._point[0]:g}, {self._point[1]:g})"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        if self._vertex_id not in state.vertices:
            return set()
        state.move_vertex(self._vertex_id, self._point)
        return {self._vertex_id}


class DeleteElementsTransaction(GraphTransaction):
    """
    Delete vertices and/or edges by id.

    The epicenter is the surviving neighbourhood: former neighbours of
    deleted vertices and endpoints of deleted edges.
    """

    def __init__(self, element_ids: Iterable[uuid.UUID]):
        self._element_ids = list(element_ids)

    @property
    def description(self) -> str:
        return f"Delete {len(self._element_ids)} element(s)"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        affected: Set[VertexID] = set()
        removed: Set[VertexID] = set()

        for element_id in self._element_ids:
            if element_id in state.vertices:
                affected |= state.neighbors(element_id)
                state.remove_vertex(element_id)
                removed.add(element_id)
            elif element_id in state.edges:
                edge = state.edges[element_id]
                affected.update((edge.start, edge.end))
                state.remove_edge(element_id)

        return affected - removed


class ReleasePinsTransaction(GraphTransaction):
    """
    Free every vertex bound to a pin of one owner.

    The vertex's own ownership is used unless a ``lookup`` from the
    ownership registry says otherwise; ``assign`` tells the registry about
    each release once the engine has committed the transaction. Released
    vertices form the epicenter, so the ones left isolated get culled.
    """

    def __init__(
        self,
        owner_id: Hashable,
        lookup: Optional[OwnershipLookup] = None,
        assign: Optional[OwnershipAssign] = None,
    ):
        self._owner_id = owner_id
        self._lookup = lookup
        self._assign = assign
        self.released: Set[VertexID] = set()

    @property
    def description(self) -> str:
        return f"Release pins of {self._owner_id}"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        self.released = set()
        for vid in sorted(state.vertices, key=str):
            ownership = self._lookup(vid) if self._lookup is not None else None
            if ownership is None:
                ownership = state.vertices[vid].ownership
            if not ownership.owned_by(self._owner_id):
                continue

            state.set_ownership(vid, FREE)
            self.released.add(vid)

        logger.debug("Released %d pin vertices of %s", len(self.released), self._owner_id)
        return set(self.released)

    def committed(self) -> None:
        if self._assign is None:
            return
        for vid in sorted(self.released, key=str):
            self._assign(vid, FREE)


class BindPinTransaction(GraphTransaction):
    """
    Bind the vertex at a point to a component pin, creating it if needed.

    A vertex already bound to a different pin is left alone and the
    conflict is logged.
    """

    def __init__(self, point: Point, owner_id: Hashable, pin_id: Hashable):
        self._point = point
        self._ownership = Ownership.pin(owner_id, pin_id)
        self.vertex_id: Optional[VertexID] = None

    @property
    def description(self) -> str:
        return f"Bind {self._ownership} at ({self._point[0]:g}, {self._point[1]:g})"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        vid = get_or_create_vertex(state, self._point, context.tolerance, self._ownership)
        current = state.vertices[vid].ownership
        if current.is_bound and current != self._ownership:
            logger.warning(
                "Cannot bind %s: vertex at %s is already %s",
                self._ownership,
                state.vertices[vid].point,
                current,
            )
            self.vertex_id = None
            return set()

        state.set_ownership(vid, self._ownership)
        self.vertex_id = vid
        return {vid}


class SetEdgeAttributesTransaction(GraphTransaction):
    """Restyle edges. Geometry is unchanged, so no rules run."""

    metadata_only = True

    def __init__(self, edge_ids: Iterable[EdgeID], attributes: Optional[EdgeAttributes]):
        self._edge_ids = list(edge_ids)
        self._attributes = attributes

    @property
    def description(self) -> str:
        return f"Restyle {len(self._edge_ids)} edge(s)"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        touched: Set[VertexID] = set()
        for edge_id in self._edge_ids:
            edge = state.edges.get(edge_id)
            if edge is None:
                continue
            state.set_edge_attributes(edge_id, self._attributes)
            touched.update((edge.start, edge.end))
        return touched


class NormalizeTransaction(GraphTransaction):
    """Mutate nothing; re-run the rules around the given vertices."""

    def __init__(self, vertex_ids: Iterable[VertexID]):
        self._vertex_ids = set(vertex_ids)

    @property
    def description(self) -> str:
        return f"Normalize {len(self._vertex_ids)} vertices"

    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        return {vid for vid in self._vertex_ids if vid in state.vertices}
