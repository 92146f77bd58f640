"""
Core data model for wiregraph.

Geometry policies, vertex ownership, the connectivity graph state and
its spatial index.
"""

from wiregraph.core.geometry import (
    Box,
    FreeGeometry,
    GeometryPolicy,
    ManhattanGrid,
    OctilinearGrid,
    Orientation,
    Point,
    Vector,
    bounding_box,
    distance,
    point_on_segment,
)
from wiregraph.core.ownership import FREE, LOCKED, Ownership, OwnershipKind
from wiregraph.core.graph import (
    ANY_LAYER,
    Edge,
    EdgeAttributes,
    EdgeID,
    GraphState,
    Vertex,
    VertexID,
)
from wiregraph.core.spatial_hash import (
    BOXSIZE,
    NBOXES,
    HashEntry,
    ObjectType,
    SpatialHashTable,
    boxes_overlap,
    point_in_box,
)

__all__ = [
    "Box",
    "FreeGeometry",
    "GeometryPolicy",
    "ManhattanGrid",
    "OctilinearGrid",
    "Orientation",
    "Point",
    "Vector",
    "bounding_box",
    "distance",
    "point_on_segment",
    "FREE",
    "LOCKED",
    "Ownership",
    "OwnershipKind",
    "ANY_LAYER",
    "Edge",
    "EdgeAttributes",
    "EdgeID",
    "GraphState",
    "Vertex",
    "VertexID",
    "BOXSIZE",
    "NBOXES",
    "HashEntry",
    "ObjectType",
    "SpatialHashTable",
    "boxes_overlap",
    "point_in_box",
]
