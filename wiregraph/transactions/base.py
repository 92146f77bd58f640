"""
Transaction abstraction for wiregraph.

A transaction is one named, atomic graph mutation. It edits the state it
is handed and returns its epicenter: the vertices it touched, from which
the engine grows the neighbourhood the rules re-normalize.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Set

from wiregraph.core.geometry import GeometryPolicy, Point
from wiregraph.core.graph import ANY_LAYER, GraphState, VertexID
from wiregraph.core.ownership import FREE, Ownership


@dataclass(frozen=True)
class TransactionContext:
    """Geometry a transaction applies under."""
    geometry: GeometryPolicy

    @property
    def tolerance(self) -> float:
        return self.geometry.epsilon


class GraphTransaction(ABC):
    """
    Abstract base class for graph transactions.

    Set ``metadata_only`` on transactions that only change bookkeeping
    (styling, selection) so the engine skips rule resolution.
    """

    metadata_only = False

    @abstractmethod
    def apply(self, state: GraphState, context: TransactionContext) -> Set[VertexID]:
        """
        Mutate state.

        Returns:
            The epicenter: vertices this transaction touched
        """

    def committed(self) -> None:
        """
        Called by the engine once the transaction and its rule pass stuck.

        Side effects outside the graph (registries, caches) belong here, so
        a rolled-back transaction leaves them untouched.
        """

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of this transaction."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.description}>"


def get_or_create_vertex(
    state: GraphState,
    point: Point,
    tolerance: float,
    ownership: Ownership = FREE,
    vertex_id: Optional[VertexID] = None,
    layer=ANY_LAYER,
) -> VertexID:
    """
    Find the vertex at point, or create one there.

    A new vertex landing on an existing edge splits that edge, so the new
    vertex is connected to the wire it was placed on.

    Args:
        state: Graph to search and mutate
        point: Requested location
        tolerance: Hit radius for existing vertices and edges
        ownership: Ownership of a newly created vertex
        vertex_id: Id to give a newly created vertex
        layer: Only reuse vertices and split edges a wire on this layer
            may connect to (every layer by default)

    Returns:
        Id of the existing or new vertex
    """
    existing = state.find_vertex(point, tolerance, layer)
    if existing is not None:
        return existing

    edge_id = state.find_edge(point, tolerance, layer)
    vid = state.add_vertex(point, ownership, vertex_id=vertex_id)
    if edge_id is not None:
        state.split_edge(edge_id, vid)
    return vid
