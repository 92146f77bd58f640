"""
User interface for wiregraph.

PySide6 widgets and input adapters for interactive routing.
"""

from wiregraph.ui.routing_tool import RoutingTool
from wiregraph.ui.routing_view import RoutingView
from wiregraph.ui.main_window import MainWindow

__all__ = [
    "RoutingTool",
    "RoutingView",
    "MainWindow",
]
