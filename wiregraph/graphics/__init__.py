"""
Graphics for wiregraph.

Qt scene items that mirror the connectivity graph.
"""

from wiregraph.graphics.graph_renderer import GraphRenderer

__all__ = [
    "GraphRenderer",
]
