"""Pytest fixtures for testing."""

import os

import pytest

# Qt adapter tests render into an offscreen surface
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from wiregraph.commands import UndoStack
from wiregraph.core import FreeGeometry, GraphState, ManhattanGrid
from wiregraph.engine import TransactionEngine
from wiregraph.routing import ConnectionController


@pytest.fixture
def grid():
    """Manhattan grid with step 10."""
    return ManhattanGrid(10.0)


@pytest.fixture
def free_geometry():
    return FreeGeometry()


@pytest.fixture
def state():
    return GraphState()


@pytest.fixture
def engine(grid):
    """Strict engine over an empty graph on the 10-unit grid."""
    return TransactionEngine(grid, strict=True)


@pytest.fixture
def undo_stack():
    return UndoStack()


@pytest.fixture
def controller(engine, undo_stack):
    return ConnectionController(engine, undo_stack)


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Isolated configuration directory."""
    monkeypatch.delenv("WIREGRAPH_CONFIG_DIR", raising=False)
    path = tmp_path / "config"
    return path


@pytest.fixture
def make_wire():
    """Factory adding a polyline to a state and returning its vertex ids."""
    def _make(state, *points, attributes=None):
        ids = [state.add_vertex(p) for p in points]
        for a, b in zip(ids, ids[1:]):
            state.add_edge(a, b, attributes)
        return ids
    return _make
