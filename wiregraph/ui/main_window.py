"""
Main window for the wiregraph routing editor.
"""

from typing import Optional
import logging

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QLabel, QMainWindow

from wiregraph.config import JsonConfigManager, build_engine, build_undo_stack
from wiregraph.routing import EventContext
from wiregraph.ui.routing_view import RoutingView

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Window hosting one routing view, with undo/redo and a status bar."""

    def __init__(self, config_manager: Optional[JsonConfigManager] = None, parent=None):
        super().__init__(parent)
        self._config = config_manager or JsonConfigManager()
        self.setWindowTitle("wiregraph")

        minimum = self._config.get("ui", "window.minimum_size", [1024, 768])
        if isinstance(minimum, list) and len(minimum) == 2:
            self.setMinimumSize(int(minimum[0]), int(minimum[1]))

        self._engine = build_engine(self._config)
        self._undo_stack = build_undo_stack(self._config)
        context = EventContext(
            layer_id=self._config.get("routing", "default_layer"),
            width=self._config.get("routing", "default_width"),
        )
        self._view = RoutingView(
            self._engine,
            undo_stack=self._undo_stack,
            context=context,
            colors=self._config.get("ui", "colors", {}),
            wire_width=float(self._config.get("ui", "wire_width", 2.0)),
            junction_radius=float(self._config.get("ui", "junction_radius", 3.0)),
            parent=self,
        )
        self.setCentralWidget(self._view)

        self._setup_actions()
        self._setup_statusbar()
        self._undo_stack.add_listener(self._update_actions)
        self._update_actions()
        logger.info("Routing editor ready (%r)", self._engine.geometry)

    @property
    def view(self) -> RoutingView:
        return self._view

    def _setup_actions(self) -> None:
        edit_menu = self.menuBar().addMenu("&Edit")

        self._undo_action = QAction("Undo", self)
        self._undo_action.setShortcut(QKeySequence(self._config.get("ui", "shortcuts.edit.undo", "Ctrl+Z")))
        self._undo_action.triggered.connect(self._view.undo)
        edit_menu.addAction(self._undo_action)

        self._redo_action = QAction("Redo", self)
        self._redo_action.setShortcut(QKeySequence(self._config.get("ui", "shortcuts.edit.redo", "Ctrl+Shift+Z")))
        self._redo_action.triggered.connect(self._view.redo)
        edit_menu.addAction(self._redo_action)

    def _setup_statusbar(self) -> None:
        self._coords_label = QLabel("")
        self._state_label = QLabel("IDLE")
        self.statusBar().addPermanentWidget(self._state_label)
        self.statusBar().addPermanentWidget(self._coords_label)
        self._view.cursor_moved.connect(self._on_cursor_moved)
        self._view.route_state_changed.connect(self._state_label.setText)

    def _on_cursor_moved(self, x: float, y: float) -> None:
        self._coords_label.setText(f"{x:.1f}, {y:.1f}")

    def _update_actions(self) -> None:
        self._undo_action.setEnabled(self._undo_stack.can_undo())
        self._redo_action.setEnabled(self._undo_stack.can_redo())
        undo_text = self._undo_stack.undo_description
        self._undo_action.setText(f"Undo {undo_text}" if undo_text else "Undo")
        redo_text = self._undo_stack.redo_description
        self._redo_action.setText(f"Redo {redo_text}" if redo_text else "Redo")
