"""
Routing tool: Qt input adapter for the connection controller.

Translates mouse and keyboard input (already mapped to scene
coordinates) into controller events and draws the rubber band:

- left click: tap
- double click: commit the route
- mouse move: preview
- Backspace / Escape / Return: backspace / escape / commit
"""

from typing import List, Optional, TYPE_CHECKING

from PySide6.QtCore import QLineF, QPointF, Qt
from PySide6.QtGui import QColor, QPen
from PySide6.QtWidgets import QGraphicsLineItem, QGraphicsScene

from wiregraph.routing import (
    Backspace,
    Commit,
    Escape,
    EventContext,
    Move,
    RoutePreview,
    RouteUpdate,
    Tap,
)

if TYPE_CHECKING:
    from wiregraph.routing import ConnectionController


class RoutingTool:
    """
    Feeds Qt input into a ConnectionController.

    Handlers return True when the event was consumed, like the other
    interactive tools.
    """

    # Rubber-band line style
    RUBBER_BAND_COLOR = QColor(255, 255, 0, 180)
    RUBBER_BAND_WIDTH = 1.0
    PREVIEW_Z = 10.0

    def __init__(
        self,
        controller: "ConnectionController",
        scene: QGraphicsScene,
        context: Optional[EventContext] = None,
        rubber_band_color: Optional[QColor] = None,
    ):
        self._controller = controller
        self._scene = scene
        self._context = context or EventContext()
        self._rubber_band_color = rubber_band_color or self.RUBBER_BAND_COLOR
        self._preview_items: List[QGraphicsLineItem] = []
        self._last_update: Optional[RouteUpdate] = None

    @property
    def controller(self) -> "ConnectionController":
        return self._controller

    @property
    def context(self) -> EventContext:
        return self._context

    @context.setter
    def context(self, value: EventContext) -> None:
        self._context = value

    @property
    def last_update(self) -> Optional[RouteUpdate]:
        """Result of the most recent controller event."""
        return self._last_update

    @property
    def preview_items(self) -> List[QGraphicsLineItem]:
        return list(self._preview_items)

    def handle_mouse_press(self, point: QPointF, button: Qt.MouseButton) -> bool:
        if button != Qt.LeftButton:
            return False
        self._dispatch(Tap((point.x(), point.y()), self._context))
        self._show_preview(self._controller.preview((point.x(), point.y())))
        return True

    def handle_mouse_move(self, point: QPointF) -> bool:
        if not self._controller.is_routing:
            return False
        update = self._dispatch(Move((point.x(), point.y()), self._context))
        self._show_preview(update.preview)
        return True

    def handle_mouse_double_click(self, point: QPointF, button: Qt.MouseButton) -> bool:
        # The first press of the double click already placed the waypoint
        if button != Qt.LeftButton or not self._controller.is_routing:
            return False
        self._dispatch(Commit())
        self._clear_preview()
        return True

    def handle_key_press(self, key: int) -> bool:
        if key == Qt.Key_Backspace:
            event = Backspace()
        elif key == Qt.Key_Escape:
            event = Escape()
        elif key in (Qt.Key_Return, Qt.Key_Enter):
            event = Commit()
        else:
            return False

        was_routing = self._controller.is_routing
        self._dispatch(event)
        if not self._controller.is_routing:
            self._clear_preview()
        return was_routing

    def cancel(self) -> None:
        """Abandon any route in progress."""
        if self._controller.is_routing:
            self._dispatch(Escape())
        self._clear_preview()

    def _dispatch(self, event) -> RouteUpdate:
        self._last_update = self._controller.handle(event)
        return self._last_update

    # -------------------------------------------------------------------------
    # Rubber band
    # -------------------------------------------------------------------------

    def _show_preview(self, preview: Optional[RoutePreview]) -> None:
        self._clear_preview()
        if preview is None:
            return

        pen = QPen(self._rubber_band_color, self.RUBBER_BAND_WIDTH)
        pen.setStyle(Qt.DashLine)
        pen.setCosmetic(True)
        for (x1, y1), (x2, y2) in preview.segments():
            item = QGraphicsLineItem(QLineF(x1, y1, x2, y2))
            item.setPen(pen)
            item.setZValue(self.PREVIEW_Z)
            self._scene.addItem(item)
            self._preview_items.append(item)

    def _clear_preview(self) -> None:
        for item in self._preview_items:
            self._scene.removeItem(item)
        self._preview_items.clear()
