"""
Input events and results of the connection controller.

Events carry points already expressed in graph coordinates. They are
produced by an input adapter (see ``wiregraph.ui.routing_tool``) or
directly by scripts and tests.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import FrozenSet, Hashable, Optional, Tuple

from wiregraph.core.geometry import Point
from wiregraph.core.graph import EdgeAttributes, EdgeID, VertexID
from wiregraph.engine.delta import GraphDelta


class ControllerState(Enum):
    """Routing state. A route in progress is STARTING_ROUTE with waypoints."""
    IDLE = auto()
    STARTING_ROUTE = auto()


@dataclass(frozen=True)
class EventContext:
    """Active drawing context delivered with pointer events."""
    layer_id: Optional[Hashable] = None
    width: Optional[float] = None
    modifiers: FrozenSet[str] = frozenset()

    def edge_attributes(self) -> Optional[EdgeAttributes]:
        """Attributes for edges routed in this context, None if unstyled."""
        if self.layer_id is None and self.width is None:
            return None
        return EdgeAttributes(width=self.width, layer_id=self.layer_id)


@dataclass(frozen=True)
class Tap:
    point: Point
    context: EventContext = field(default_factory=EventContext)


@dataclass(frozen=True)
class Move:
    point: Point
    context: EventContext = field(default_factory=EventContext)


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class Escape:
    pass


@dataclass(frozen=True)
class Commit:
    pass


@dataclass(frozen=True)
class RoutePreview:
    """Rubber-band polyline from the last waypoint to the pointer."""
    points: Tuple[Point, ...]

    def segments(self) -> Tuple[Tuple[Point, Point], ...]:
        return tuple(zip(self.points, self.points[1:]))


@dataclass(frozen=True)
class RouteUpdate:
    """
    Result of handling one event.

    Attributes:
        state: Controller state after the event
        delta: Graph changes caused by the event, None if the graph was
            not touched
        committed_edges: Edges added to the graph by this event
        finished: The event ended a route (committed or rolled back)
        preview: Rubber band to draw, if any
    """
    state: ControllerState
    delta: Optional[GraphDelta] = None
    committed_edges: FrozenSet[EdgeID] = frozenset()
    finished: bool = False
    preview: Optional[RoutePreview] = None

    @property
    def changed_vertices(self) -> FrozenSet[VertexID]:
        if self.delta is None:
            return frozenset()
        return self.delta.changed_vertices
