"""
Connectivity graph state for wiregraph.

GraphState owns the vertex and edge tables of a wire/trace network plus
two derived indices: the adjacency map and a spatial hash. Both indices
are patched incrementally by the mutation methods and can always be
rebuilt from the tables.

Mutation is synchronous and never fails: referring to an id that does not
exist is a no-op. Removing a vertex cascades to its incident edges, so an
edge never references a missing vertex.
"""

from collections import deque
from dataclasses import dataclass, replace
from typing import Dict, Hashable, Iterable, List, Optional, Set, Tuple
import uuid

import numpy as np

from wiregraph.core.geometry import Box, Point, distance, point_on_segment, segment_param
from wiregraph.core.ownership import FREE, Ownership
from wiregraph.core.spatial_hash import (
    BOXSIZE,
    ObjectType,
    SpatialHashTable,
    point_in_box,
)


VertexID = uuid.UUID
EdgeID = uuid.UUID

# Layer filter for lookups that should match every layer. None is itself a
# layer id (unlayered wires), so it cannot double as "no filter".
ANY_LAYER = object()


@dataclass(frozen=True)
class Vertex:
    """A point of the connectivity graph."""
    id: VertexID
    point: Point
    ownership: Ownership = FREE
    cluster_id: Optional[Hashable] = None


@dataclass(frozen=True)
class Edge:
    """An undirected wire/trace segment between two vertices."""
    id: EdgeID
    start: VertexID
    end: VertexID

    def other(self, vertex_id: VertexID) -> VertexID:
        """Return the endpoint opposite to vertex_id."""
        return self.end if vertex_id == self.start else self.start

    def touches(self, vertex_id: VertexID) -> bool:
        return vertex_id == self.start or vertex_id == self.end


@dataclass(frozen=True)
class EdgeAttributes:
    """
    Styling component attached to an edge.

    Attributes are never part of edge identity; rules carry them over
    when edges are split, merged or rewired.
    """
    width: Optional[float] = None
    layer_id: Optional[Hashable] = None


def _edge_bbox(a: Point, b: Point) -> Box:
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))


class GraphState:
    """
    Vertex/edge tables with adjacency and spatial indices.

    The tables are readable attributes; all writes go through the mutation
    methods so that the indices stay in sync.

    Attributes:
        vertices: Vertex id -> Vertex
        edges: Edge id -> Edge
        adjacency: Vertex id -> ids of incident edges (derived)
        edge_attributes: Edge id -> EdgeAttributes, for styled edges only
    """

    def __init__(self, cell_size: float = BOXSIZE):
        self.vertices: Dict[VertexID, Vertex] = {}
        self.edges: Dict[EdgeID, Edge] = {}
        self.adjacency: Dict[VertexID, Set[EdgeID]] = {}
        self.edge_attributes: Dict[EdgeID, EdgeAttributes] = {}
        self._cell_size = cell_size
        # Built on first spatial query; copies start without one
        self._index: Optional[SpatialHashTable] = None

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add_vertex(
        self,
        point: Point,
        ownership: Ownership = FREE,
        cluster_id: Optional[Hashable] = None,
        vertex_id: Optional[VertexID] = None,
    ) -> VertexID:
        """
        Add a vertex and return its id.

        If ``vertex_id`` is given and already present, the existing vertex
        is left untouched and its id returned.
        """
        vid = vertex_id or uuid.uuid4()
        if vid in self.vertices:
            return vid

        vertex = Vertex(vid, (float(point[0]), float(point[1])), ownership, cluster_id)
        self.vertices[vid] = vertex
        self.adjacency[vid] = set()
        if self._index is not None:
            self._index_vertex(vertex)
        return vid

    def remove_vertex(self, vertex_id: VertexID) -> None:
        """Remove a vertex together with every edge incident to it."""
        if vertex_id not in self.vertices:
            return

        for edge_id in list(self.adjacency.get(vertex_id, ())):
            self.remove_edge(edge_id)

        del self.vertices[vertex_id]
        self.adjacency.pop(vertex_id, None)
        if self._index is not None:
            self._index.remove(ObjectType.VERTEX, vertex_id)

    def add_edge(
        self,
        start: VertexID,
        end: VertexID,
        attributes: Optional[EdgeAttributes] = None,
        edge_id: Optional[EdgeID] = None,
    ) -> Optional[EdgeID]:
        """
        Connect two existing vertices.

        Duplicate edges between the same pair are allowed here; they are
        removed by the deduplication rule during resolution.

        Returns:
            The new edge id, or None if an endpoint is missing, the edge
            would be a self-loop, or ``edge_id`` is already taken
        """
        if start == end or start not in self.vertices or end not in self.vertices:
            return None

        eid = edge_id or uuid.uuid4()
        if eid in self.edges:
            return None

        edge = Edge(eid, start, end)
        self.edges[eid] = edge
        self.adjacency[start].add(eid)
        self.adjacency[end].add(eid)
        if attributes is not None:
            self.edge_attributes[eid] = attributes
        if self._index is not None:
            self._index_edge(edge)
        return eid

    def remove_edge(self, edge_id: EdgeID) -> None:
        """Remove an edge. Its endpoints stay in place."""
        edge = self.edges.pop(edge_id, None)
        if edge is None:
            return

        for vid in (edge.start, edge.end):
            incident = self.adjacency.get(vid)
            if incident is not None:
                incident.discard(edge_id)
        self.edge_attributes.pop(edge_id, None)
        if self._index is not None:
            self._index.remove(ObjectType.EDGE, edge_id)

    def move_vertex(self, vertex_id: VertexID, point: Point) -> None:
        """Move a vertex; incident edges follow."""
        vertex = self.vertices.get(vertex_id)
        if vertex is None:
            return

        moved = replace(vertex, point=(float(point[0]), float(point[1])))
        self.vertices[vertex_id] = moved
        if self._index is not None:
            self._index_vertex(moved)
            for edge_id in self.adjacency[vertex_id]:
                self._index_edge(self.edges[edge_id])

    def set_ownership(self, vertex_id: VertexID, ownership: Ownership) -> None:
        vertex = self.vertices.get(vertex_id)
        if vertex is not None:
            self.vertices[vertex_id] = replace(vertex, ownership=ownership)

    def set_cluster(self, vertex_id: VertexID, cluster_id: Optional[Hashable]) -> None:
        vertex = self.vertices.get(vertex_id)
        if vertex is not None:
            self.vertices[vertex_id] = replace(vertex, cluster_id=cluster_id)

    def set_edge_attributes(
        self, edge_id: EdgeID, attributes: Optional[EdgeAttributes]
    ) -> None:
        """Attach styling to an edge; None detaches it."""
        if edge_id not in self.edges:
            return
        if attributes is None:
            self.edge_attributes.pop(edge_id, None)
        else:
            self.edge_attributes[edge_id] = attributes

    def split_edge(
        self, edge_id: EdgeID, vertex_id: VertexID
    ) -> Tuple[Optional[EdgeID], Optional[EdgeID]]:
        """
        Replace edge a-b with a-v and v-b, keeping the edge's attributes.

        The first half reuses the original edge id.
        """
        edge = self.edges.get(edge_id)
        if edge is None or vertex_id not in self.vertices or edge.touches(vertex_id):
            return None, None

        attributes = self.edge_attributes.get(edge_id)
        self.remove_edge(edge_id)
        first = self.add_edge(edge.start, vertex_id, attributes, edge_id=edge_id)
        second = self.add_edge(vertex_id, edge.end, attributes)
        return first, second

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.vertices

    def point_of(self, vertex_id: VertexID) -> Optional[Point]:
        vertex = self.vertices.get(vertex_id)
        return vertex.point if vertex is not None else None

    def attributes_of(self, edge_id: EdgeID) -> Optional[EdgeAttributes]:
        return self.edge_attributes.get(edge_id)

    def layer_of(self, edge_id: EdgeID) -> Optional[Hashable]:
        attributes = self.edge_attributes.get(edge_id)
        return attributes.layer_id if attributes is not None else None

    def layers_at(self, vertex_id: VertexID) -> Set[Optional[Hashable]]:
        """Layers of the edges meeting at a vertex (empty for a lone vertex)."""
        return {self.layer_of(eid) for eid in self.adjacency.get(vertex_id, ())}

    def accepts_layer(self, vertex_id: VertexID, layer: Optional[Hashable]) -> bool:
        """Whether a wire on layer may connect to the vertex."""
        if layer is ANY_LAYER:
            return True
        layers = self.layers_at(vertex_id)
        return not layers or layer in layers

    def incident_edges(self, vertex_id: VertexID) -> Set[EdgeID]:
        return set(self.adjacency.get(vertex_id, ()))

    def degree(self, vertex_id: VertexID) -> int:
        return len(self.adjacency.get(vertex_id, ()))

    def neighbors(self, vertex_id: VertexID) -> Set[VertexID]:
        """Vertices sharing an edge with vertex_id."""
        return {
            self.edges[edge_id].other(vertex_id)
            for edge_id in self.adjacency.get(vertex_id, ())
        }

    def edges_between(self, a: VertexID, b: VertexID) -> List[EdgeID]:
        return [
            edge_id for edge_id in self.adjacency.get(a, ())
            if self.edges[edge_id].other(a) == b
        ]

    def edge_points(self, edge_id: EdgeID) -> Tuple[Point, Point]:
        edge = self.edges[edge_id]
        return self.vertices[edge.start].point, self.vertices[edge.end].point

    def vertices_in_box(self, box: Box) -> List[VertexID]:
        """Vertices inside a bounding box, in deterministic order."""
        found = [
            vid for vid in self._spatial().query(box, ObjectType.VERTEX)
            if point_in_box(*self.vertices[vid].point, box)
        ]
        return sorted(found, key=self._vertex_order)

    def vertices_near(self, point: Point, radius: float) -> List[VertexID]:
        """Vertices within radius of point, nearest first."""
        box = (point[0] - radius, point[1] - radius, point[0] + radius, point[1] + radius)
        found = []
        for vid in self._spatial().query(box, ObjectType.VERTEX):
            d = distance(point, self.vertices[vid].point)
            if d <= radius:
                found.append((d, str(vid), vid))
        return [vid for _, _, vid in sorted(found)]

    def edges_at(self, point: Point, tol: float) -> List[EdgeID]:
        """Edges whose segment passes within tol of point, nearest first."""
        box = (point[0] - tol, point[1] - tol, point[0] + tol, point[1] + tol)
        found = []
        for eid in self._spatial().query(box, ObjectType.EDGE):
            a, b = self.edge_points(eid)
            if point_on_segment(point, a, b, tol):
                t = min(max(segment_param(point, a, b), 0.0), 1.0)
                foot = (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)
                found.append((distance(point, foot), str(eid), eid))
        return [eid for _, _, eid in sorted(found)]

    def edges_in_box(self, box: Box) -> List[EdgeID]:
        """Edges whose bounding box overlaps box (candidates, sorted by id)."""
        return sorted(self._spatial().query(box, ObjectType.EDGE), key=str)

    def find_vertex(self, point: Point, tol: float, layer=ANY_LAYER) -> Optional[VertexID]:
        """Nearest vertex within tol of point that accepts layer, if any."""
        for vid in self.vertices_near(point, tol):
            if self.accepts_layer(vid, layer):
                return vid
        return None

    def find_edge(self, point: Point, tol: float, layer=ANY_LAYER) -> Optional[EdgeID]:
        """Nearest edge on layer passing within tol of point, if any."""
        for eid in self.edges_at(point, tol):
            if layer is ANY_LAYER or self.layer_of(eid) == layer:
                return eid
        return None

    def component(self, start: VertexID) -> Set[VertexID]:
        """Connected component containing start (breadth-first)."""
        if start not in self.vertices:
            return set()

        seen = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in self.neighbors(current):
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        return seen

    def segments(self) -> np.ndarray:
        """Edge geometry as an (N, 2, 2) array, ordered by edge id."""
        rows = [self.edge_points(eid) for eid in sorted(self.edges, key=str)]
        return np.asarray(rows, dtype=float).reshape(-1, 2, 2)

    # -------------------------------------------------------------------------
    # Snapshots and consistency
    # -------------------------------------------------------------------------

    def copy(self) -> "GraphState":
        """
        Independent copy of the tables.

        Vertices, edges and attributes are immutable and shared; the
        spatial index of the copy is rebuilt on first use.
        """
        clone = GraphState(self._cell_size)
        clone.vertices = dict(self.vertices)
        clone.edges = dict(self.edges)
        clone.adjacency = {vid: set(eids) for vid, eids in self.adjacency.items()}
        clone.edge_attributes = dict(self.edge_attributes)
        return clone

    def rebuild_indices(self) -> None:
        """Reconstruct adjacency and the spatial hash from the tables."""
        self.adjacency = {vid: set() for vid in self.vertices}
        for edge in self.edges.values():
            if edge.start in self.adjacency and edge.end in self.adjacency:
                self.adjacency[edge.start].add(edge.id)
                self.adjacency[edge.end].add(edge.id)
        self._index = None

    def integrity_errors(self) -> List[str]:
        """Describe every violated structural invariant (empty when sound)."""
        errors = []
        for edge in self.edges.values():
            if edge.start == edge.end:
                errors.append(f"edge {edge.id} is a self-loop")
            for vid in (edge.start, edge.end):
                if vid not in self.vertices:
                    errors.append(f"edge {edge.id} references missing vertex {vid}")
                elif edge.id not in self.adjacency.get(vid, ()):
                    errors.append(f"adjacency of {vid} is missing edge {edge.id}")

        for vid, eids in self.adjacency.items():
            if vid not in self.vertices:
                errors.append(f"adjacency entry for missing vertex {vid}")
            for eid in eids:
                edge = self.edges.get(eid)
                if edge is None or not edge.touches(vid):
                    errors.append(f"adjacency of {vid} lists unrelated edge {eid}")

        for eid in self.edge_attributes:
            if eid not in self.edges:
                errors.append(f"attributes attached to missing edge {eid}")
        return errors

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphState):
            return NotImplemented
        return (
            self.vertices == other.vertices
            and self.edges == other.edges
            and self.edge_attributes == other.edge_attributes
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"GraphState(vertices={len(self.vertices)}, edges={len(self.edges)})"

    # -------------------------------------------------------------------------
    # Spatial index
    # -------------------------------------------------------------------------

    def _spatial(self) -> SpatialHashTable:
        if self._index is None:
            self._index = SpatialHashTable(self._cell_size)
            for vertex in self.vertices.values():
                self._index_vertex(vertex)
            for edge in self.edges.values():
                self._index_edge(edge)
        return self._index

    def _index_vertex(self, vertex: Vertex) -> None:
        x, y = vertex.point
        self._index.insert((x, y, x, y), ObjectType.VERTEX, vertex.id)

    def _index_edge(self, edge: Edge) -> None:
        a, b = self.edge_points(edge.id)
        self._index.insert(_edge_bbox(a, b), ObjectType.EDGE, edge.id)

    def _vertex_order(self, vertex_id: VertexID):
        return (self.vertices[vertex_id].point, str(vertex_id))

    def order_vertices(self, vertex_ids: Iterable[VertexID]) -> List[VertexID]:
        """Present vertices of vertex_ids sorted by position, then id."""
        return sorted(
            (vid for vid in set(vertex_ids) if vid in self.vertices),
            key=self._vertex_order,
        )
