"""
Routing view: a QGraphicsView wired to the engine, renderer and tool.
"""

from typing import Optional

from PySide6.QtCore import QPointF, Signal
from PySide6.QtGui import QBrush, QColor, QKeyEvent, QMouseEvent, QPainter, QWheelEvent
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView

from wiregraph.commands import UndoStack
from wiregraph.engine import TransactionEngine
from wiregraph.graphics.graph_renderer import GraphRenderer
from wiregraph.routing import ConnectionController, EventContext
from wiregraph.ui.routing_tool import RoutingTool


class RoutingView(QGraphicsView):
    """
    Interactive routing canvas.

    Signals:
        cursor_moved: Emitted when the cursor moves (scene x, scene y)
        route_state_changed: Emitted with the controller state name after
            every routing event
    """

    cursor_moved = Signal(float, float)
    route_state_changed = Signal(str)

    ZOOM_FACTOR = 1.15
    MIN_ZOOM = 0.01
    MAX_ZOOM = 100.0

    def __init__(
        self,
        engine: TransactionEngine,
        undo_stack: Optional[UndoStack] = None,
        context: Optional[EventContext] = None,
        colors: Optional[dict] = None,
        wire_width: float = 2.0,
        junction_radius: float = 3.0,
        parent=None,
    ):
        super().__init__(parent)
        colors = colors or {}

        self._scene = QGraphicsScene(self)
        self._scene.setSceneRect(-1e5, -1e5, 2e5, 2e5)
        self.setScene(self._scene)
        self.setRenderHint(QPainter.Antialiasing)
        self.setMouseTracking(True)
        self.setBackgroundBrush(QBrush(QColor(colors.get("background", "#1e1e1e"))))

        self._engine = engine
        self._undo_stack = undo_stack
        self._zoom = 1.0

        self._renderer = GraphRenderer(
            self._scene,
            wire_color=colors.get("wire", "#4fc1ff"),
            junction_color=colors.get("junction", "#ffd700"),
            pin_color=colors.get("pin", "#ff5555"),
            wire_width=wire_width,
            junction_radius=junction_radius,
        )
        self._renderer.attach(engine)

        self._controller = ConnectionController(engine, undo_stack)
        preview_color = colors.get("preview")
        self._tool = RoutingTool(
            self._controller,
            self._scene,
            context=context,
            rubber_band_color=QColor(preview_color) if preview_color else None,
        )

    @property
    def engine(self) -> TransactionEngine:
        return self._engine

    @property
    def controller(self) -> ConnectionController:
        return self._controller

    @property
    def tool(self) -> RoutingTool:
        return self._tool

    @property
    def renderer(self) -> GraphRenderer:
        return self._renderer

    def undo(self) -> Optional[str]:
        """Cancel any route in progress, then undo the last finished edit."""
        if self._undo_stack is None:
            return None
        self._tool.cancel()
        description = self._undo_stack.undo()
        self._emit_state()
        return description

    def redo(self) -> Optional[str]:
        if self._undo_stack is None:
            return None
        self._tool.cancel()
        description = self._undo_stack.redo()
        self._emit_state()
        return description

    def _scene_point(self, event: QMouseEvent) -> QPointF:
        return self.mapToScene(event.position().toPoint())

    def _emit_state(self) -> None:
        self.route_state_changed.emit(self._controller.state.name)

    # =========================================================================
    # Event handlers
    # =========================================================================

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if self._tool.handle_mouse_press(self._scene_point(event), event.button()):
            self._emit_state()
            event.accept()
        else:
            super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        point = self._scene_point(event)
        self.cursor_moved.emit(point.x(), point.y())
        if self._tool.handle_mouse_move(point):
            event.accept()
        else:
            super().mouseMoveEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        if self._tool.handle_mouse_double_click(self._scene_point(event), event.button()):
            self._emit_state()
            event.accept()
        else:
            super().mouseDoubleClickEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if self._tool.handle_key_press(event.key()):
            self._emit_state()
            event.accept()
        else:
            super().keyPressEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Zoom around the cursor."""
        angle = event.angleDelta().y()
        if angle == 0:
            return
        factor = self.ZOOM_FACTOR if angle > 0 else 1.0 / self.ZOOM_FACTOR
        new_zoom = max(self.MIN_ZOOM, min(self.MAX_ZOOM, self._zoom * factor))
        if abs(new_zoom - self._zoom) < 1e-9:
            return

        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.scale(new_zoom / self._zoom, new_zoom / self._zoom)
        self._zoom = new_zoom
        event.accept()
