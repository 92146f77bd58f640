"""
Graph renderer for wiregraph.

Mirrors a GraphState into a QGraphicsScene: one line item per edge and a
dot for every junction (three or more edges) and pin vertex. After the
initial render only the elements named in each GraphDelta are touched.
"""

from typing import Dict, Optional, TYPE_CHECKING
import logging

from PySide6.QtCore import QLineF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QPen
from PySide6.QtWidgets import QGraphicsEllipseItem, QGraphicsLineItem, QGraphicsScene

from wiregraph.core.graph import EdgeID, GraphState, VertexID
from wiregraph.engine.delta import GraphDelta

if TYPE_CHECKING:
    from wiregraph.engine import TransactionEngine

logger = logging.getLogger(__name__)

EDGE_Z = 1.0
MARKER_Z = 2.0


class GraphRenderer:
    """
    Keeps scene items in sync with a graph.

    Use ``attach`` to follow an engine; the renderer then updates itself
    from every delta the engine reports.
    """

    def __init__(
        self,
        scene: QGraphicsScene,
        wire_color: str = "#4fc1ff",
        junction_color: str = "#ffd700",
        pin_color: str = "#ff5555",
        wire_width: float = 2.0,
        junction_radius: float = 3.0,
    ):
        self._scene = scene
        self._wire_color = QColor(wire_color)
        self._junction_color = QColor(junction_color)
        self._pin_color = QColor(pin_color)
        self._wire_width = wire_width
        self._junction_radius = junction_radius

        self._edge_items: Dict[EdgeID, QGraphicsLineItem] = {}
        self._marker_items: Dict[VertexID, QGraphicsEllipseItem] = {}
        self._engine: Optional["TransactionEngine"] = None

    @property
    def edge_items(self) -> Dict[EdgeID, QGraphicsLineItem]:
        return dict(self._edge_items)

    @property
    def marker_items(self) -> Dict[VertexID, QGraphicsEllipseItem]:
        return dict(self._marker_items)

    def attach(self, engine: "TransactionEngine") -> None:
        """Follow an engine's changes, starting with a full render."""
        if self._engine is not None:
            self._engine.remove_listener(self.apply)
        self._engine = engine
        engine.add_listener(self.apply)
        self.render(engine.state)

    def detach(self) -> None:
        if self._engine is not None:
            self._engine.remove_listener(self.apply)
            self._engine = None

    def clear(self) -> None:
        """Remove every item this renderer created."""
        for item in self._edge_items.values():
            self._scene.removeItem(item)
        for item in self._marker_items.values():
            self._scene.removeItem(item)
        self._edge_items.clear()
        self._marker_items.clear()

    def render(self, state: GraphState) -> None:
        """Rebuild all items from scratch."""
        self.clear()
        for edge_id in state.edges:
            self._sync_edge(state, edge_id)
        for vertex_id in state.vertices:
            self._sync_marker(state, vertex_id)
        logger.debug("Rendered %d edges, %d markers", len(self._edge_items), len(self._marker_items))

    def apply(self, delta: GraphDelta, state: GraphState) -> None:
        """Update the items affected by one change set."""
        for edge_id in delta.deleted_edges:
            self._remove_edge(edge_id)

        dirty_edges = set(delta.created_edges) | set(delta.restyled_edges)
        for vertex_id in delta.moved_vertices:
            dirty_edges |= state.incident_edges(vertex_id)
        for edge_id in dirty_edges:
            self._sync_edge(state, edge_id)

        for vertex_id in delta.changed_vertices:
            self._sync_marker(state, vertex_id)

    # -------------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------------

    def _sync_edge(self, state: GraphState, edge_id: EdgeID) -> None:
        if edge_id not in state.edges:
            self._remove_edge(edge_id)
            return

        (x1, y1), (x2, y2) = state.edge_points(edge_id)
        item = self._edge_items.get(edge_id)
        if item is None:
            item = QGraphicsLineItem()
            item.setZValue(EDGE_Z)
            self._scene.addItem(item)
            self._edge_items[edge_id] = item

        item.setLine(QLineF(x1, y1, x2, y2))
        attributes = state.attributes_of(edge_id)
        width = self._wire_width
        if attributes is not None and attributes.width is not None:
            width = attributes.width
        pen = QPen(self._wire_color, width)
        pen.setCapStyle(Qt.RoundCap)
        item.setPen(pen)

    def _remove_edge(self, edge_id: EdgeID) -> None:
        item = self._edge_items.pop(edge_id, None)
        if item is not None:
            self._scene.removeItem(item)

    def _sync_marker(self, state: GraphState, vertex_id: VertexID) -> None:
        vertex = state.vertices.get(vertex_id)
        is_pin = vertex is not None and vertex.ownership.is_bound
        is_junction = vertex is not None and state.degree(vertex_id) >= 3

        if not (is_pin or is_junction):
            item = self._marker_items.pop(vertex_id, None)
            if item is not None:
                self._scene.removeItem(item)
            return

        item = self._marker_items.get(vertex_id)
        if item is None:
            item = QGraphicsEllipseItem()
            item.setZValue(MARKER_Z)
            item.setPen(QPen(Qt.NoPen))
            self._scene.addItem(item)
            self._marker_items[vertex_id] = item

        r = self._junction_radius
        x, y = vertex.point
        item.setRect(QRectF(x - r, y - r, 2 * r, 2 * r))
        item.setBrush(QBrush(self._pin_color if is_pin else self._junction_color))
