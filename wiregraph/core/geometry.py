"""
Geometry and grid policies for wiregraph.

A geometry policy decides where points snap, which directions a segment
may take, and how bends are inserted when two points are connected.
Policies are stateless and swappable per drawing context: symbol and
schematic editing use a Manhattan grid, PCB trace routing an octilinear
one, and imported free-form geometry the continuous policy.
"""

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Iterable, List, Optional, Tuple
import math

import numpy as np

from wiregraph.exceptions import GeometryPolicyError

Point = Tuple[float, float]
Vector = Tuple[float, float]
Box = Tuple[float, float, float, float]

_SQRT1_2 = math.sqrt(0.5)

AXIS_DIRECTIONS: Tuple[Vector, ...] = (
    (1.0, 0.0),
    (-1.0, 0.0),
    (0.0, 1.0),
    (0.0, -1.0),
)

DIAGONAL_DIRECTIONS: Tuple[Vector, ...] = (
    (_SQRT1_2, _SQRT1_2),
    (-_SQRT1_2, -_SQRT1_2),
    (_SQRT1_2, -_SQRT1_2),
    (-_SQRT1_2, _SQRT1_2),
)


class Orientation(Enum):
    """Orientation of a routed segment."""
    HORIZONTAL = auto()
    VERTICAL = auto()
    DIAGONAL = auto()


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def segment_param(p: Point, a: Point, b: Point) -> float:
    """
    Parameter of the projection of p onto segment a-b.

    Returns 0.0 at a and 1.0 at b. A degenerate segment returns 0.0.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return 0.0
    return ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / length_sq


def point_on_segment(p: Point, a: Point, b: Point, tol: float) -> bool:
    """
    Check whether p lies on segment a-b within tol, endpoints included.

    Args:
        p: Point to test
        a, b: Segment endpoints
        tol: Maximum perpendicular distance (and overshoot past the ends)

    Returns:
        True if the point touches the segment
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length = math.hypot(dx, dy)
    if length <= tol:
        return distance(p, a) <= tol

    t = segment_param(p, a, b)
    slack = tol / length
    if t < -slack or t > 1.0 + slack:
        return False

    cross = abs((p[0] - a[0]) * dy - (p[1] - a[1]) * dx) / length
    return cross <= tol


def bounding_box(points: Iterable[Point], padding: float = 0.0) -> Optional[Box]:
    """
    Axis-aligned bounding box of a set of points, grown by padding.

    Returns:
        (x1, y1, x2, y2) or None for an empty point set
    """
    coords = np.asarray(list(points), dtype=float).reshape(-1, 2)
    if coords.size == 0:
        return None
    lo = coords.min(axis=0) - padding
    hi = coords.max(axis=0) + padding
    return (float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))


class GeometryPolicy(ABC):
    """
    Pluggable strategy for snapping and directional classification.

    Subclasses provide ``snap`` and ``admissible_directions``; everything
    else is derived from those two and the comparison tolerance.
    """

    name = "abstract"

    def __init__(self, epsilon: float, padding: Optional[float] = None):
        if not epsilon > 0:
            raise GeometryPolicyError(f"epsilon must be positive, got {epsilon!r}")
        if padding is not None and padding < 0:
            raise GeometryPolicyError(f"padding must not be negative, got {padding!r}")
        self._epsilon = float(epsilon)
        self._padding = float(padding) if padding is not None else self._default_padding()

    def _default_padding(self) -> float:
        return self._epsilon * 100.0

    @property
    def epsilon(self) -> float:
        """Tolerance for floating-point-safe comparisons."""
        return self._epsilon

    @property
    def neighborhood_padding(self) -> float:
        """Radius added around an epicenter when rules collect their scope."""
        return self._padding

    @abstractmethod
    def snap(self, point: Point) -> Point:
        """Project a point onto the policy's grid."""

    @abstractmethod
    def admissible_directions(self) -> Tuple[Vector, ...]:
        """Unit vectors a segment may follow. Empty means unconstrained."""

    def snap_many(self, points: Iterable[Point]) -> np.ndarray:
        """Snap a batch of points, returning an (N, 2) array."""
        snapped = [self.snap(p) for p in points]
        return np.asarray(snapped, dtype=float).reshape(-1, 2)

    def direction_between(self, a: Point, b: Point) -> Optional[Vector]:
        """
        Admissible unit direction from a to b.

        Returns:
            The matching direction, or None if the points coincide or the
            segment does not follow an admissible direction.
        """
        dx = b[0] - a[0]
        dy = b[1] - a[1]
        length = math.hypot(dx, dy)
        if length <= self._epsilon:
            return None

        directions = self.admissible_directions()
        if not directions:
            return (dx / length, dy / length)

        for ux, uy in directions:
            along = dx * ux + dy * uy
            if along <= 0:
                continue
            if abs(dx * uy - dy * ux) <= self._epsilon:
                return (ux, uy)
        return None

    def is_collinear(self, a: Point, b: Point, direction: Vector) -> bool:
        """Check whether b lies on the line through a along direction."""
        ux, uy = direction
        norm = math.hypot(ux, uy)
        if norm == 0.0:
            return False
        cross = ((b[0] - a[0]) * uy - (b[1] - a[1]) * ux) / norm
        return abs(cross) <= self._epsilon

    def project_param(self, origin: Point, direction: Vector, point: Point) -> float:
        """Scalar projection of point onto the ray origin + t * direction."""
        return (point[0] - origin[0]) * direction[0] + (point[1] - origin[1]) * direction[1]

    def is_horizontal(self, a: Point, b: Point) -> bool:
        return abs(a[1] - b[1]) <= self._epsilon

    def is_vertical(self, a: Point, b: Point) -> bool:
        return abs(a[0] - b[0]) <= self._epsilon

    def coincident(self, a: Point, b: Point) -> bool:
        """Check whether two points are the same within epsilon."""
        return distance(a, b) <= self._epsilon

    def orientation(self, a: Point, b: Point) -> Optional[Orientation]:
        """Classify the segment a-b, or None if it is degenerate or skewed."""
        if self.coincident(a, b):
            return None
        if self.is_horizontal(a, b):
            return Orientation.HORIZONTAL
        if self.is_vertical(a, b):
            return Orientation.VERTICAL
        if abs(abs(b[0] - a[0]) - abs(b[1] - a[1])) <= self._epsilon:
            return Orientation.DIAGONAL
        return None

    def route_points(
        self,
        start: Point,
        end: Point,
        last_orientation: Optional[Orientation] = None,
    ) -> List[Point]:
        """
        Bend points for connecting start to end, ending with end.

        Args:
            start: Point the route leaves from
            end: Point the route must reach
            last_orientation: Orientation of the previous segment, if any

        Returns:
            List of points after start, the last one being end
        """
        return [end]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(epsilon={self._epsilon!r})"


class FreeGeometry(GeometryPolicy):
    """Continuous geometry: no snapping, any direction is admissible."""

    name = "free"

    def __init__(self, epsilon: float = 1e-6, padding: Optional[float] = None):
        super().__init__(epsilon, padding)

    def _default_padding(self) -> float:
        return max(self._epsilon * 100.0, 1.0)

    def snap(self, point: Point) -> Point:
        return (float(point[0]), float(point[1]))

    def admissible_directions(self) -> Tuple[Vector, ...]:
        return ()


class ManhattanGrid(GeometryPolicy):
    """
    Axis-constrained grid with a fixed step.

    Segments run horizontally or vertically; connecting two skewed points
    inserts one elbow. The elbow turns away from the previous segment's
    orientation so that chained segments keep alternating.
    """

    name = "manhattan"

    def __init__(
        self,
        step: float,
        epsilon: Optional[float] = None,
        padding: Optional[float] = None,
    ):
        if not step > 0:
            raise GeometryPolicyError(f"grid step must be positive, got {step!r}")
        self._step = float(step)
        super().__init__(epsilon if epsilon is not None else self._step * 0.01, padding)

    def _default_padding(self) -> float:
        return self._step

    @property
    def step(self) -> float:
        """Grid spacing."""
        return self._step

    def snap(self, point: Point) -> Point:
        step = self._step
        x, y = float(point[0]), float(point[1])
        return (round(x / step) * step, round(y / step) * step)

    def snap_many(self, points: Iterable[Point]) -> np.ndarray:
        coords = np.asarray(list(points), dtype=float).reshape(-1, 2)
        # + 0.0 folds -0.0 into 0.0
        return np.round(coords / self._step) * self._step + 0.0

    def admissible_directions(self) -> Tuple[Vector, ...]:
        return AXIS_DIRECTIONS

    def route_points(
        self,
        start: Point,
        end: Point,
        last_orientation: Optional[Orientation] = None,
    ) -> List[Point]:
        if self.is_horizontal(start, end) or self.is_vertical(start, end):
            return [end]

        if last_orientation == Orientation.HORIZONTAL:
            elbow = (start[0], end[1])
        else:
            elbow = (end[0], start[1])
        return [elbow, end]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(step={self._step!r}, epsilon={self._epsilon!r})"


class OctilinearGrid(ManhattanGrid):
    """
    Grid allowing axis-aligned and 45 degree segments, as used for traces.

    Connecting two points that are not on a common octilinear line inserts
    one bend: a diagonal leg covering the shorter offset and a straight leg
    for the rest. The diagonal comes first unless the previous segment was
    itself diagonal.
    """

    name = "octilinear"

    def admissible_directions(self) -> Tuple[Vector, ...]:
        return AXIS_DIRECTIONS + DIAGONAL_DIRECTIONS

    def route_points(
        self,
        start: Point,
        end: Point,
        last_orientation: Optional[Orientation] = None,
    ) -> List[Point]:
        if self.direction_between(start, end) is not None:
            return [end]

        dx = end[0] - start[0]
        dy = end[1] - start[1]
        leg = min(abs(dx), abs(dy))
        sx = math.copysign(1.0, dx)
        sy = math.copysign(1.0, dy)

        if last_orientation == Orientation.DIAGONAL:
            bend = (end[0] - sx * leg, end[1] - sy * leg)
        else:
            bend = (start[0] + sx * leg, start[1] + sy * leg)
        return [bend, end]
