"""
Spatial hash table for vertex and edge lookup.

The coordinate space is folded onto a fixed NBOXES x NBOXES grid of
square cells. Each entry is stored in every cell its bounding box
overlaps, so hit-testing and neighbourhood queries only visit the cells
around the query box instead of the whole graph. Cell indices wrap, so
queries return candidates that callers must confirm geometrically.
"""

from dataclasses import dataclass
from enum import IntEnum, auto
from typing import Dict, Hashable, Iterator, List, Optional, Set, Tuple
import math


# Grid constants
BOXSIZE = 400.0  # Default edge length of a cell
NBOXES = 50      # Number of cells in each dimension (50x50 grid)

BBox = Tuple[float, float, float, float]


class ObjectType(IntEnum):
    """Object type identifiers for the spatial hash."""
    VERTEX = auto()
    EDGE = auto()


@dataclass(frozen=True)
class HashEntry:
    """Entry in the spatial hash table."""
    obj_type: ObjectType
    key: Hashable


class SpatialHashTable:
    """
    Spatial hash table keyed by object id.

    Unlike a purely index-based table, every entry remembers the cells it
    occupies, so removal and re-insertion after a move do not need the old
    bounding box.

    Example:
        >>> table = SpatialHashTable(boxsize=100.0)
        >>> table.insert((0, 0, 0, 0), ObjectType.VERTEX, "a")
        >>> table.insert((0, 0, 250, 0), ObjectType.EDGE, "e")
        >>> sorted(str(k) for k in table.query((-1, -1, 1, 1)))
        ['a', 'e']
    """

    def __init__(self, boxsize: float = BOXSIZE):
        if not boxsize > 0:
            raise ValueError(f"boxsize must be positive, got {boxsize!r}")
        self._boxsize = float(boxsize)
        self._grid: List[List[Set[HashEntry]]] = [
            [set() for _ in range(NBOXES)]
            for _ in range(NBOXES)
        ]
        self._cells: Dict[HashEntry, List[Tuple[int, int]]] = {}

    @property
    def boxsize(self) -> float:
        return self._boxsize

    def _get_cell_range(self, bbox: BBox) -> Tuple[int, int, int, int]:
        """
        Get the range of cells that a bounding box overlaps.

        Returns:
            (x1a, y1a, x2a, y2a) - unwrapped grid cell indices
        """
        x1, y1, x2, y2 = bbox
        if x2 < x1:
            x1, x2 = x2, x1
        if y2 < y1:
            y1, y2 = y2, y1

        size = self._boxsize
        return (
            int(math.floor(x1 / size)),
            int(math.floor(y1 / size)),
            int(math.floor(x2 / size)),
            int(math.floor(y2 / size)),
        )

    @staticmethod
    def _wrap_index(i: int) -> int:
        """Wrap index to valid range using modulo."""
        return i % NBOXES

    def _cells_for(self, bbox: BBox) -> List[Tuple[int, int]]:
        x1a, y1a, x2a, y2a = self._get_cell_range(bbox)
        # More than NBOXES cells in a row would only revisit wrapped cells
        x2a = min(x2a, x1a + NBOXES - 1)
        y2a = min(y2a, y1a + NBOXES - 1)
        return [
            (self._wrap_index(i), self._wrap_index(j))
            for i in range(x1a, x2a + 1)
            for j in range(y1a, y2a + 1)
        ]

    def insert(self, bbox: BBox, obj_type: ObjectType, key: Hashable) -> None:
        """
        Insert an object, replacing any previous entry for the same key.

        Args:
            bbox: Bounding box as (x1, y1, x2, y2)
            obj_type: Type of object
            key: Identifier of the object
        """
        entry = HashEntry(obj_type, key)
        if entry in self._cells:
            self._discard(entry)

        cells = self._cells_for(bbox)
        for gi, gj in cells:
            self._grid[gi][gj].add(entry)
        self._cells[entry] = cells

    def remove(self, obj_type: ObjectType, key: Hashable) -> None:
        """Remove an object. Unknown keys are ignored."""
        entry = HashEntry(obj_type, key)
        if entry in self._cells:
            self._discard(entry)

    def _discard(self, entry: HashEntry) -> None:
        for gi, gj in self._cells.pop(entry):
            self._grid[gi][gj].discard(entry)

    def query(self, bbox: BBox, obj_type: Optional[ObjectType] = None) -> Iterator[Hashable]:
        """
        Query all objects that may overlap a bounding box.

        Note: This returns candidates - the actual geometry should be
        checked for precise intersection.

        Args:
            bbox: Query bounding box as (x1, y1, x2, y2)
            obj_type: Optional filter by object type

        Yields:
            Keys of objects that may overlap the query box
        """
        seen: Set[HashEntry] = set()
        for gi, gj in self._cells_for(bbox):
            for entry in self._grid[gi][gj]:
                if obj_type is not None and entry.obj_type != obj_type:
                    continue
                if entry not in seen:
                    seen.add(entry)
                    yield entry.key

    def query_point(
        self, x: float, y: float, obj_type: Optional[ObjectType] = None
    ) -> Iterator[Hashable]:
        """Query all objects whose cell contains a point."""
        yield from self.query((x, y, x, y), obj_type)

    def clear(self) -> None:
        """Clear all entries from the hash table."""
        for row in self._grid:
            for cell in row:
                cell.clear()
        self._cells.clear()

    @property
    def count(self) -> int:
        """Number of objects in the hash table."""
        return len(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, entry: HashEntry) -> bool:
        return entry in self._cells


def boxes_overlap(box1: BBox, box2: BBox) -> bool:
    """
    Check if two bounding boxes overlap.

    Args:
        box1: First box as (x1, y1, x2, y2)
        box2: Second box as (x1, y1, x2, y2)

    Returns:
        True if boxes overlap (touching counts)
    """
    ax1, ay1, ax2, ay2 = box1
    bx1, by1, bx2, by2 = box2
    return (
        min(ax1, ax2) <= max(bx1, bx2)
        and max(ax1, ax2) >= min(bx1, bx2)
        and min(ay1, ay2) <= max(by1, by2)
        and max(ay1, ay2) >= min(by1, by2)
    )


def point_in_box(x: float, y: float, box: BBox) -> bool:
    """
    Check if a point is inside a bounding box.

    Args:
        x, y: Point coordinates
        box: Box as (x1, y1, x2, y2)

    Returns:
        True if point is inside box (boundary included)
    """
    x1, y1, x2, y2 = box
    return min(x1, x2) <= x <= max(x1, x2) and min(y1, y2) <= y <= max(y1, y2)
