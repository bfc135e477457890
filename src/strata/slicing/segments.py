"""
Intersection segments and their clean-up passes.

Two passes run on the raw segment soup of a plane before loops are traced:

- :class:`EdgeDeduplicator` snaps endpoints, drops zero-length segments and
  removes the duplicate produced when two triangles share an edge crossing
  the plane.
- :class:`CollinearMerger` fuses chains of collinear segments meeting at
  two-valent vertices, which shortens loops without changing the boundary.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set, Tuple

from strata.slicing.snapper import Point2D, Snapper, VertexKey

logger = logging.getLogger(__name__)

Point3D = Tuple[float, float, float]


@dataclass(frozen=True)
class Segment:
    """Straight piece of a slice boundary; both endpoints share one z."""

    start: Point3D
    end: Point3D

    @property
    def start_xy(self) -> Point2D:
        return (self.start[0], self.start[1])

    @property
    def end_xy(self) -> Point2D:
        return (self.end[0], self.end[1])

    @property
    def z(self) -> float:
        return self.start[2]

    def reversed(self) -> "Segment":
        return Segment(self.end, self.start)

    def direction(self) -> Point2D:
        return (self.end[0] - self.start[0], self.end[1] - self.start[1])

    def length(self) -> float:
        dx, dy = self.direction()
        return math.hypot(dx, dy)


class EdgeDeduplicator:
    """Canonicalizes segments and keeps the first of each undirected edge."""

    def __init__(self, snapper: Snapper):
        self.snapper = snapper

    def canonical_key(self, segment: Segment) -> Tuple[VertexKey, VertexKey]:
        """Direction-free key: the two endpoint keys in lexicographic order."""
        a = self.snapper.key(*segment.start_xy)
        b = self.snapper.key(*segment.end_xy)
        return (a, b) if a <= b else (b, a)

    def deduplicate(self, segments: Iterable[Segment]) -> List[Segment]:
        seen: Set[Tuple[VertexKey, VertexKey]] = set()
        result: List[Segment] = []
        dropped = 0

        for seg in segments:
            start = self.snapper.normalize(*seg.start_xy)
            end = self.snapper.normalize(*seg.end_xy)
            if self.snapper.same(start, end):
                dropped += 1
                continue

            z = seg.z
            snapped = Segment((start[0], start[1], z), (end[0], end[1], z))
            key = self.canonical_key(snapped)
            if key in seen:
                dropped += 1
                continue
            seen.add(key)
            result.append(snapped)

        if dropped:
            logger.debug("Dropped %d degenerate or duplicate segments", dropped)
        return result


class CollinearMerger:
    """
    Fuses collinear segment chains.

    Each round computes every merge candidate (a vertex touched by exactly two
    different segments that continue in the same direction), applies all
    candidates that do not share a segment, and rebuilds the segment array and
    the vertex incidence together. Rounds repeat until no candidate is left.

    ``tolerance`` bounds the sine of the turn angle at the shared vertex and
    the negative cosine allowed before a turn counts as a reversal.
    """

    def __init__(self, snapper: Snapper, tolerance: float | None = None):
        self.snapper = snapper
        self.tolerance = snapper.eps if tolerance is None else tolerance

    def merge(self, segments: Iterable[Segment]) -> List[Segment]:
        current = list(segments)
        rounds = 0
        while True:
            candidates = self._candidates(current)
            if not candidates:
                break
            current = self._apply(current, candidates)
            rounds += 1

        if rounds:
            logger.debug(
                "Collinear merge finished after %d rounds: %d segments", rounds, len(current)
            )
        return current

    def _incidence(self, segments: List[Segment]) -> Dict[int, List[Tuple[int, bool]]]:
        incidence: Dict[int, List[Tuple[int, bool]]] = {}
        for idx, seg in enumerate(segments):
            incidence.setdefault(self.snapper.vertex_id(*seg.start_xy), []).append((idx, True))
            incidence.setdefault(self.snapper.vertex_id(*seg.end_xy), []).append((idx, False))
        return incidence

    def _candidates(self, segments: List[Segment]) -> List[Tuple[int, int, Segment]]:
        """Worklist of ``(keep_idx, drop_idx, merged)`` for independent merges."""
        claimed: Set[int] = set()
        worklist: List[Tuple[int, int, Segment]] = []

        for ends in self._incidence(segments).values():
            if len(ends) != 2:
                continue
            (i, i_at_start), (j, j_at_start) = ends
            if i == j or i in claimed or j in claimed:
                continue

            # Orient so that `incoming` ends at the vertex and `outgoing` starts there
            incoming = segments[i].reversed() if i_at_start else segments[i]
            outgoing = segments[j] if j_at_start else segments[j].reversed()
            if not self._continues(incoming, outgoing):
                continue

            merged = Segment(incoming.start, outgoing.end)
            if self.snapper.same(merged.start_xy, merged.end_xy):
                continue

            claimed.update((i, j))
            worklist.append((min(i, j), max(i, j), merged))

        return worklist

    def _continues(self, incoming: Segment, outgoing: Segment) -> bool:
        ax, ay = incoming.direction()
        bx, by = outgoing.direction()
        norm = math.hypot(ax, ay) * math.hypot(bx, by)
        if norm == 0.0:
            return False
        cross = (ax * by - ay * bx) / norm
        dot = (ax * bx + ay * by) / norm
        return abs(cross) <= self.tolerance and dot >= -self.tolerance

    @staticmethod
    def _apply(
        segments: List[Segment], worklist: List[Tuple[int, int, Segment]]
    ) -> List[Segment]:
        replaced = {keep: merged for keep, _, merged in worklist}
        removed = {drop for _, drop, _ in worklist}
        return [
            replaced.get(idx, seg)
            for idx, seg in enumerate(segments)
            if idx not in removed
        ]
