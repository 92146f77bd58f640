"""
Rule interface and resolution context.

A rule is an idempotent normalization step that repairs one kind of
inconsistency inside the neighbourhood of a change. Rules only look at
the vertices a resolution context puts in scope, which keeps the cost of
every edit proportional to the edited region.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional, Set

from wiregraph.core.geometry import Box, GeometryPolicy, bounding_box
from wiregraph.core.graph import GraphState, Vertex, VertexID

# Predicate letting the application veto culling an isolated vertex
CullPolicy = Callable[[Vertex, GraphState], bool]


@dataclass(frozen=True)
class ResolutionContext:
    """
    Everything rules need to know about one resolution.

    Attributes:
        epicenter: Vertices the transaction touched
        geometry: Active geometry policy
        neighborhood: Padded bounding box around the epicenter
        cull_policy: Optional veto on culling isolated free vertices
        protected: Vertices rules must not move, merge away, collapse or
            cull during this resolution
    """
    epicenter: FrozenSet[VertexID]
    geometry: GeometryPolicy
    neighborhood: Optional[Box] = None
    cull_policy: Optional[CullPolicy] = None
    protected: FrozenSet[VertexID] = field(default_factory=frozenset)

    @classmethod
    def around(
        cls,
        state: GraphState,
        epicenter: Iterable[VertexID],
        geometry: GeometryPolicy,
        cull_policy: Optional[CullPolicy] = None,
        protected: Iterable[VertexID] = (),
    ) -> "ResolutionContext":
        """Build a context whose neighbourhood pads the epicenter's bounds."""
        seeds = frozenset(epicenter)
        points = [state.vertices[vid].point for vid in seeds if vid in state.vertices]
        return cls(
            epicenter=seeds,
            geometry=geometry,
            neighborhood=bounding_box(points, geometry.neighborhood_padding),
            cull_policy=cull_policy,
            protected=frozenset(protected),
        )

    def reseeded(self, state: GraphState, epicenter: Iterable[VertexID]) -> "ResolutionContext":
        """Same policies, new epicenter."""
        return ResolutionContext.around(
            state, epicenter, self.geometry, self.cull_policy, self.protected
        )

    def scope(self, state: GraphState) -> List[VertexID]:
        """
        Vertices rules may inspect: the epicenter, its one-hop neighbours
        and every vertex inside the neighbourhood box.

        Returns:
            Vertex ids sorted by position, then id
        """
        ids: Set[VertexID] = {vid for vid in self.epicenter if vid in state.vertices}
        for vid in list(ids):
            ids |= state.neighbors(vid)
        if self.neighborhood is not None:
            ids.update(state.vertices_in_box(self.neighborhood))
        return state.order_vertices(ids)

    def is_protected(self, vertex_id: VertexID) -> bool:
        return vertex_id in self.protected

    def can_cull(self, vertex: Vertex, state: GraphState) -> bool:
        if self.cull_policy is None:
            return True
        return bool(self.cull_policy(vertex, state))


class GraphRule(ABC):
    """Abstract base class for normalization rules."""

    name = "rule"

    @abstractmethod
    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        """
        Normalize the scope of context in place.

        Returns:
            Vertices touched (created, moved, rewired or removed); an empty
            set means the rule found nothing to do
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
