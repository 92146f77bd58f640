"""Change sets reported by the transaction engine."""

from dataclasses import dataclass
from typing import FrozenSet

from wiregraph.core.graph import EdgeID, GraphState, VertexID


@dataclass(frozen=True)
class GraphDelta:
    """
    Difference between two graph states.

    Attributes:
        created_vertices: Vertices present only after the change
        deleted_vertices: Vertices present only before the change
        moved_vertices: Surviving vertices whose point changed
        ownership_changed: Surviving vertices whose ownership changed
        cluster_changed: Surviving vertices whose cluster id changed
        created_edges: Edges present only after the change (or rewired)
        deleted_edges: Edges present only before the change (or rewired)
        restyled_edges: Surviving edges whose attributes changed
        changed_vertices: Every vertex a renderer or selection model has to
            refresh: all of the above plus endpoints of created and
            deleted edges
    """
    created_vertices: FrozenSet[VertexID] = frozenset()
    deleted_vertices: FrozenSet[VertexID] = frozenset()
    moved_vertices: FrozenSet[VertexID] = frozenset()
    ownership_changed: FrozenSet[VertexID] = frozenset()
    cluster_changed: FrozenSet[VertexID] = frozenset()
    created_edges: FrozenSet[EdgeID] = frozenset()
    deleted_edges: FrozenSet[EdgeID] = frozenset()
    restyled_edges: FrozenSet[EdgeID] = frozenset()
    changed_vertices: FrozenSet[VertexID] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not (self.changed_vertices or self.restyled_edges)


def compute_delta(before: GraphState, after: GraphState) -> GraphDelta:
    """Diff two graph states."""
    created_v = after.vertices.keys() - before.vertices.keys()
    deleted_v = before.vertices.keys() - after.vertices.keys()

    moved, ownership, cluster = set(), set(), set()
    for vid in after.vertices.keys() & before.vertices.keys():
        old = before.vertices[vid]
        new = after.vertices[vid]
        if old == new:
            continue
        if old.point != new.point:
            moved.add(vid)
        if old.ownership != new.ownership:
            ownership.add(vid)
        if old.cluster_id != new.cluster_id:
            cluster.add(vid)

    created_e = set(after.edges.keys() - before.edges.keys())
    deleted_e = set(before.edges.keys() - after.edges.keys())
    restyled = set()
    for eid in after.edges.keys() & before.edges.keys():
        if before.edges[eid] != after.edges[eid]:
            created_e.add(eid)
            deleted_e.add(eid)
        elif before.edge_attributes.get(eid) != after.edge_attributes.get(eid):
            restyled.add(eid)

    changed = set(created_v) | deleted_v | moved | ownership | cluster
    for eid in created_e:
        edge = after.edges[eid]
        changed.update((edge.start, edge.end))
    for eid in deleted_e:
        edge = before.edges[eid]
        changed.update((edge.start, edge.end))

    return GraphDelta(
        created_vertices=frozenset(created_v),
        deleted_vertices=frozenset(deleted_v),
        moved_vertices=frozenset(moved),
        ownership_changed=frozenset(ownership),
        cluster_changed=frozenset(cluster),
        created_edges=frozenset(created_e),
        deleted_edges=frozenset(deleted_e),
        restyled_edges=frozenset(restyled),
        changed_vertices=frozenset(changed),
    )
