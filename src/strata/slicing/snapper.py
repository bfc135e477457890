"""
Vertex snapping for slice reconstruction.

Intersection points computed from adjacent triangles are only equal up to
floating-point noise. The :class:`Snapper` quantizes ``(x, y)`` onto an
integer grid of pitch ``eps`` so that nearly identical points share one
:data:`VertexKey`, and interns every key to a dense integer vertex id so the
graph code downstream can index plain lists instead of hashing coordinates.

Equality is defined by the rounding, not by geometric distance: two points
further apart than ``eps`` still collide when they straddle a rounding
boundary. That is an accepted tie-break.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from strata.core.config import DEFAULT_EPSILON

Point2D = Tuple[float, float]
VertexKey = Tuple[int, int]


class Snapper:
    """Quantizes 2D coordinates and interns them as vertex ids.

    One snapper is used per slicing plane; its ids are only meaningful for
    the segments of that plane.
    """

    def __init__(self, eps: float = DEFAULT_EPSILON):
        if eps <= 0:
            raise ValueError(f"eps must be positive, got {eps}")
        self.eps = eps
        self._scale = 1.0 / eps
        self._ids: Dict[VertexKey, int] = {}
        self._points: List[Point2D] = []

    def key(self, x: float, y: float) -> VertexKey:
        """Grid key of a point."""
        return (int(round(x * self._scale)), int(round(y * self._scale)))

    def vertex_id(self, x: float, y: float) -> int:
        """Dense id of the point's key, allocating one on first sight."""
        key = self.key(x, y)
        vid = self._ids.get(key)
        if vid is None:
            vid = len(self._points)
            self._ids[key] = vid
            self._points.append((x, y))
        return vid

    def point(self, vertex_id: int) -> Point2D:
        """Representative (first-seen) coordinates of a vertex id."""
        return self._points[vertex_id]

    def normalize(self, x: float, y: float) -> Point2D:
        """Snap a point to the representative of its key."""
        return self._points[self.vertex_id(x, y)]

    def same(self, a: Point2D, b: Point2D) -> bool:
        """True when both points quantize to the same key."""
        return self.key(a[0], a[1]) == self.key(b[0], b[1])

    def close(self, a: Point2D, b: Point2D) -> bool:
        """True when both points lie within ``eps`` of each other."""
        dx = a[0] - b[0]
        dy = a[1] - b[1]
        return dx * dx + dy * dy <= self.eps * self.eps

    def __len__(self) -> int:
        return len(self._points)
