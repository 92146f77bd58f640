"""Topological normalization rules: duplicate edges, dead vertices, net identity."""

from collections import Counter
from typing import Dict, Hashable, List, Set
import logging
import uuid

from wiregraph.core.graph import EdgeID, GraphState, VertexID
from wiregraph.rules.base import GraphRule, ResolutionContext

logger = logging.getLogger(__name__)


class DeduplicateEdgesRule(GraphRule):
    """Keep a single edge per unordered pair of endpoints."""

    name = "dedupe-edges"

    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        touched: Set[VertexID] = set()

        for vid in context.scope(state):
            if vid not in state.vertices:
                continue
            by_other: Dict[VertexID, List[EdgeID]] = {}
            for edge_id in state.adjacency[vid]:
                by_other.setdefault(state.edges[edge_id].other(vid), []).append(edge_id)

            for other, edge_ids in by_other.items():
                if len(edge_ids) < 2:
                    continue
                # Styled edges win, then the lowest id
                keep = min(
                    edge_ids,
                    key=lambda eid: (state.attributes_of(eid) is None, str(eid)),
                )
                for edge_id in edge_ids:
                    if edge_id != keep:
                        state.remove_edge(edge_id)
                touched.update((vid, other))

        return touched


class CullIsolatedRule(GraphRule):
    """
    Remove isolated free vertices.

    Bound and protected vertices are never culled, and the context's cull
    policy may veto any candidate.
    """

    name = "cull-isolated"

    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        culled: Set[VertexID] = set()

        for vid in context.scope(state):
            vertex = state.vertices.get(vid)
            if vertex is None or state.degree(vid) != 0:
                continue
            if vertex.ownership.is_bound or context.is_protected(vid):
                continue
            if not context.can_cull(vertex, state):
                continue
            state.remove_vertex(vid)
            culled.add(vid)

        if culled:
            logger.debug("Culled %d isolated vertices", len(culled))
        return culled


class UnifyClustersRule(GraphRule):
    """
    Give every connected component one cluster (net) id.

    A component adopts its most common existing id, ties broken by id. If
    another component already claimed that id during this pass (a net was
    cut in two), the component gets a fresh id. Isolated free vertices
    carry no cluster id.
    """

    name = "unify-clusters"

    def apply(self, state: GraphState, context: ResolutionContext) -> Set[VertexID]:
        touched: Set[VertexID] = set()
        seen: Set[VertexID] = set()
        claimed: Set[Hashable] = set()

        for vid in context.scope(state):
            if vid in seen or vid not in state.vertices:
                continue

            members = state.component(vid)
            seen |= members

            if len(members) == 1:
                vertex = state.vertices[vid]
                if vertex.ownership.is_free and vertex.cluster_id is not None:
                    state.set_cluster(vid, None)
                    touched.add(vid)
                continue

            target = self._choose(state, members, claimed)
            claimed.add(target)
            for member in state.order_vertices(members):
                if state.vertices[member].cluster_id != target:
                    state.set_cluster(member, target)
                    touched.add(member)

        return touched

    @staticmethod
    def _choose(state: GraphState, members: Set[VertexID], claimed: Set[Hashable]) -> Hashable:
        counts = Counter(
            state.vertices[vid].cluster_id
            for vid in members
            if state.vertices[vid].cluster_id is not None
        )
        for cluster_id, _ in sorted(counts.items(), key=lambda item: (-item[1], str(item[0]))):
            if cluster_id not in claimed:
                return cluster_id
        return uuid.uuid4()
