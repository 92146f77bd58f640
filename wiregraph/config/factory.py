"""Build engine objects from configuration."""

from typing import Optional, TYPE_CHECKING
import logging

from wiregraph.commands import UndoStack
from wiregraph.core.geometry import FreeGeometry, GeometryPolicy, ManhattanGrid, OctilinearGrid
from wiregraph.core.graph import GraphState
from wiregraph.engine import TransactionEngine
from wiregraph.exceptions import GeometryPolicyError
from wiregraph.rules import CullPolicy, Ruleset

if TYPE_CHECKING:
    from wiregraph.config.manager import JsonConfigManager

logger = logging.getLogger(__name__)


def build_geometry(config: "JsonConfigManager") -> GeometryPolicy:
    """
    Geometry policy described by the ``routing`` section.

    Raises:
        GeometryPolicyError: Unknown geometry kind or invalid parameters
    """
    kind = str(config.get("routing", "geometry", "manhattan")).lower()
    step = config.get("routing", "grid_step", 10.0)
    epsilon = config.get("routing", "epsilon")
    padding = config.get("routing", "neighborhood_padding")

    if kind == "manhattan":
        geometry: GeometryPolicy = ManhattanGrid(step, epsilon=epsilon, padding=padding)
    elif kind == "octilinear":
        geometry = OctilinearGrid(step, epsilon=epsilon, padding=padding)
    elif kind == "free":
        geometry = FreeGeometry(epsilon if epsilon is not None else 1e-6, padding=padding)
    else:
        raise GeometryPolicyError(f"Unknown geometry '{kind}'")

    logger.info("Using %r", geometry)
    return geometry


def build_engine(
    config: "JsonConfigManager",
    state: Optional[GraphState] = None,
    cull_policy: Optional[CullPolicy] = None,
) -> TransactionEngine:
    """Transaction engine configured from the ``routing`` and ``engine`` sections."""
    if state is None:
        state = GraphState(cell_size=float(config.get("engine", "spatial_cell_size", 400.0)))

    return TransactionEngine(
        build_geometry(config),
        state=state,
        ruleset=Ruleset(max_passes=int(config.get("engine", "max_resolve_passes", 8))),
        cull_policy=cull_policy,
        strict=bool(config.get("engine", "strict", False)),
    )


def build_undo_stack(config: "JsonConfigManager") -> UndoStack:
    return UndoStack(max_depth=int(config.get("engine", "undo_depth", UndoStack.MAX_DEPTH)))
