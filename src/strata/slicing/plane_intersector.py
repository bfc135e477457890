"""
Triangle / horizontal plane intersection.

The plane is nudged up by a tiny ``delta`` before testing so that vertices
lying exactly on the slice height count as "below"; that removes the
ambiguous touching cases. A triangle contributes a segment only when exactly
two of its edges (taken in vertex-pair order (0,1), (0,2), (1,2)) cross the
nudged plane.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from strata.slicing.segments import Point3D, Segment

logger = logging.getLogger(__name__)

_EDGE_PAIRS = ((0, 1), (0, 2), (1, 2))


class PlaneIntersector:
    """Intersects triangles with horizontal planes."""

    def __init__(self, delta: float = 1e-8):
        self.delta = delta

    def intersect_triangle(
        self, triangle: Sequence[Sequence[float]], z: float
    ) -> Optional[Segment]:
        """Intersection segment of one triangle with the plane at ``z``."""
        zp = z + self.delta
        crossings: List[Point3D] = []
        for i, j in _EDGE_PAIRS:
            p1, p2 = triangle[i], triangle[j]
            if (p1[2] > zp) == (p2[2] > zp):
                continue
            t = (zp - p1[2]) / (p2[2] - p1[2])
            crossings.append(
                (p1[0] + t * (p2[0] - p1[0]), p1[1] + t * (p2[1] - p1[1]), z)
            )

        if len(crossings) != 2:
            return None
        return Segment(crossings[0], crossings[1])

    def intersect(self, triangles: np.ndarray, z: float) -> List[Segment]:
        """
        Intersect every triangle of an ``(N, 3, 3)`` array with the plane.

        Vectorized equivalent of calling :meth:`intersect_triangle` on each
        triangle in order.
        """
        tris = np.asarray(triangles, dtype=float).reshape(-1, 3, 3)
        if len(tris) == 0:
            return []

        zp = z + self.delta
        above = tris[:, :, 2] > zp
        crossing = np.stack([above[:, i] != above[:, j] for i, j in _EDGE_PAIRS], axis=1)

        admitted = crossing.sum(axis=1) == 2
        if not admitted.any():
            return []
        tris = tris[admitted]
        crossing = crossing[admitted]

        points = np.empty((len(tris), 3, 2))
        for e, (i, j) in enumerate(_EDGE_PAIRS):
            p1 = tris[:, i]
            p2 = tris[:, j]
            with np.errstate(divide="ignore", invalid="ignore"):
                t = (zp - p1[:, 2]) / (p2[:, 2] - p1[:, 2])
            # Non-crossing edges get t = 0; their points are never selected
            t = np.where(crossing[:, e], t, 0.0)
            points[:, e] = p1[:, :2] + t[:, None] * (p2[:, :2] - p1[:, :2])

        # Stable sort puts crossing edges first, keeping pair order
        order = np.argsort(~crossing, axis=1, kind="stable")
        rows = np.arange(len(tris))
        starts = points[rows, order[:, 0]]
        ends = points[rows, order[:, 1]]

        return [
            Segment((float(sx), float(sy), z), (float(ex), float(ey), z))
            for (sx, sy), (ex, ey) in zip(starts, ends)
        ]
