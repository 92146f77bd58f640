"""Configuration for wiregraph."""

from wiregraph.config.manager import DEFAULT_CONFIGS, JsonConfigManager
from wiregraph.config.factory import build_engine, build_geometry, build_undo_stack

__all__ = [
    "DEFAULT_CONFIGS",
    "JsonConfigManager",
    "build_engine",
    "build_geometry",
    "build_undo_stack",
]
