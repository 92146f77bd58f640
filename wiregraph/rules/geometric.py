"""
Geometric normalization rules.

- SnapToGridRule: keep free epicenter vertices on the grid
- MergeCoincidentRule: fuse vertices closer than epsilon
- SplitEdgesAtVerticesRule: turn a vertex resting on a wire into a junction
- CollapseCollinearRule: remove redundant degree-2 vertices on straight runs
"""

from typing import List, Set
import logging

from wiregraph.core.geometry import GeometryPolicy, Point, distance
from wiregraph.core.graph import GraphState, VertexID
from wiregraph.rules.base import GraphRule, ResolutionContext

logger = logging.getLogger(__name__)


class SnapToGridRule(GraphRule):
    """
    Re-snap free, unprotected epicenter vertices to the active grid.

    A vertex stays off-grid when snapping it would skew one of its
    admissible edges, e.g. the elbow of a wire routed to an off-grid pin.
    """

    name = "snap"

    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        touched: Set[VertexID] = set()
        movable = [
            vid for vid in state.order_vertices(context.epicenter)
            if not state.vertices[vid].ownership.is_bound and not context.is_protected(vid)
        ]
        movable_ids = set(movable)
        for vid in movable:
            vertex = state.vertices[vid]
            snapped = context.geometry.snap(vertex.point)
            if snapped == vertex.point:
                continue
            if not self._keeps_directions(state, context.geometry, vid, snapped, movable_ids):
                logger.debug("Keeping %s off-grid to preserve its edges", vertex.point)
                continue
            state.move_vertex(vid, snapped)
            touched.add(vid)
        return touched

    @staticmethod
    def _keeps_directions(
        state: GraphState,
        geometry: GeometryPolicy,
        vid: VertexID,
        target: Point,
        movable: Set[VertexID],
    ) -> bool:
        point = state.vertices[vid].point
        for neighbor in state.neighbors(vid):
            other = state.vertices[neighbor].point
            # Neighbours snapped in the same pass are judged where they land
            landing = geometry.snap(other) if neighbor in movable else other
            if geometry.coincident(target, landing):
                # Collapses onto the neighbour; merging cleans it up
                continue
            if (
                geometry.direction_between(point, other) is not None
                and geometry.direction_between(target, landing) is None
            ):
                return False
        return True


class MergeCoincidentRule(GraphRule):
    """
    Merge vertices that lie within epsilon of each other.

    Edges of the absorbed vertices are re-pointed at the survivor. A bound
    vertex always survives over a free one. Two bound vertices in the same
    spot are an ownership conflict: the whole group is left unmerged and
    the conflict is logged.

    Vertices whose wires are on disjoint layers overlap without merging,
    and a protected lone vertex (a route just started) is left alone until
    its first edge shows which layer it is on.
    """

    name = "merge-coincident"

    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        eps = context.geometry.epsilon
        touched: Set[VertexID] = set()
        visited: Set[VertexID] = set()

        for vid in context.scope(state):
            if vid in visited or vid not in state.vertices:
                continue

            group = self._layer_group(state, context, vid, eps)
            visited.update(group)
            if len(group) < 2:
                continue

            bound = [u for u in group if state.vertices[u].ownership.is_bound]
            if len(bound) > 1:
                logger.warning(
                    "Ownership conflict at %s: %s coincide; leaving %d vertices unmerged",
                    state.vertices[vid].point,
                    ", ".join(str(state.vertices[u].ownership) for u in bound),
                    len(group),
                )
                continue

            survivor = self._pick_survivor(state, context, group)
            for victim in group:
                if victim != survivor:
                    self._absorb(state, survivor, victim)
                    touched.add(victim)
            touched.add(survivor)

        return touched

    @staticmethod
    def _layer_group(
        state: GraphState, context: ResolutionContext, vid: VertexID, eps: float
    ) -> List[VertexID]:
        """Vertices near vid that share a layer with the group so far."""
        def waiting(u: VertexID) -> bool:
            return context.is_protected(u) and state.degree(u) == 0

        group = [vid]
        if waiting(vid):
            return group
        layers = state.layers_at(vid)
        for other in state.vertices_near(state.vertices[vid].point, eps):
            if other == vid or waiting(other):
                continue
            other_layers = state.layers_at(other)
            if layers and other_layers and not layers & other_layers:
                continue
            group.append(other)
            layers |= other_layers
        return group

    @staticmethod
    def _pick_survivor(
        state: GraphState, context: ResolutionContext, group: List[VertexID]
    ) -> VertexID:
        def rank(vid: VertexID):
            vertex = state.vertices[vid]
            return (
                not vertex.ownership.is_bound,
                not context.is_protected(vid),
                -state.degree(vid),
                str(vid),
            )

        return min(group, key=rank)

    @staticmethod
    def _absorb(state: GraphState, survivor: VertexID, victim: VertexID) -> None:
        """Re-point the victim's edges at the survivor, then drop the victim."""
        for edge_id in sorted(state.incident_edges(victim), key=str):
            other = state.edges[edge_id].other(victim)
            attributes = state.attributes_of(edge_id)
            state.remove_edge(edge_id)
            if other != survivor:
                state.add_edge(survivor, other, attributes, edge_id=edge_id)

        victim_cluster = state.vertices[victim].cluster_id
        if state.vertices[survivor].cluster_id is None and victim_cluster is not None:
            state.set_cluster(survivor, victim_cluster)
        state.remove_vertex(victim)


class SplitEdgesAtVerticesRule(GraphRule):
    """
    Split an edge where a vertex lies strictly inside it.

    This turns a wire end dropped onto another wire into a T-junction.
    A vertex whose own edges are all on another layer does not connect
    to the edge it crosses. A protected lone vertex (a route just started)
    waits until its first edge shows which layer it is on.
    """

    name = "split-edges"

    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        eps = context.geometry.epsilon
        touched: Set[VertexID] = set()

        for vid in context.scope(state):
            if vid not in state.vertices:
                continue
            if context.is_protected(vid) and state.degree(vid) == 0:
                continue
            while True:
                edge_id = self._passing_edge(state, vid, eps)
                if edge_id is None:
                    break
                edge = state.edges[edge_id]
                state.split_edge(edge_id, vid)
                touched.update((vid, edge.start, edge.end))

        return touched

    @staticmethod
    def _passing_edge(state: GraphState, vid: VertexID, eps: float):
        point = state.vertices[vid].point
        layers = state.layers_at(vid)
        for edge_id in state.edges_at(point, eps):
            edge = state.edges[edge_id]
            if edge.touches(vid):
                continue
            a, b = state.edge_points(edge_id)
            if distance(point, a) <= eps or distance(point, b) <= eps:
                continue
            if layers and state.layer_of(edge_id) not in layers:
                continue
            return edge_id
        return None


class CollapseCollinearRule(GraphRule):
    """
    Replace a-v-b with a-b when v is a redundant bend.

    v must be free, unprotected and of degree 2; both edges must follow
    the same admissible direction with v strictly between a and b. A
    vertex joining edges with different attributes is a seam and stays.
    """

    name = "collapse-collinear"

    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        geometry = context.geometry
        touched: Set[VertexID] = set()

        for vid in context.scope(state):
            vertex = state.vertices.get(vid)
            if vertex is None or vertex.ownership.is_bound or context.is_protected(vid):
                continue
            if state.degree(vid) != 2:
                continue

            first, second = sorted(state.adjacency[vid], key=str)
            a = state.edges[first].other(vid)
            b = state.edges[second].other(vid)
            if a == b:
                continue

            attributes = state.attributes_of(first)
            if attributes != state.attributes_of(second):
                continue

            pa, pv, pb = state.vertices[a].point, vertex.point, state.vertices[b].point
            direction = geometry.direction_between(pa, pv)
            if direction is None or not geometry.is_collinear(pv, pb, direction):
                continue
            if geometry.project_param(pa, direction, pb) <= (
                geometry.project_param(pa, direction, pv) + geometry.epsilon
            ):
                continue

            state.remove_vertex(vid)
            state.add_edge(a, b, attributes, edge_id=first)
            touched.update((vid, a, b))

        return touched
