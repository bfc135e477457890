"""
Loop reconstruction: turning a segment soup into closed polygon contours.

The tracer walks an adjacency structure indexed by interned vertex ids. At a
vertex with more than two incident segments (a T or X junction) the first
unused candidate in adjacency order is taken; no turn preference is applied,
so the chosen continuation at such junctions is arbitrary.

Loops are not classified as outer boundaries or holes here. The even-odd fill
rule resolves that when loops become regions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from strata.slicing.segments import CollinearMerger, EdgeDeduplicator, Segment
from strata.slicing.snapper import Point2D, Snapper

logger = logging.getLogger(__name__)

MIN_LOOP_SEGMENTS = 3


@dataclass
class Loop:
    """Closed chain of oriented segments."""

    segments: List[Segment] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)

    @property
    def start(self) -> Point2D:
        return self.segments[0].start_xy

    @property
    def end(self) -> Point2D:
        return self.segments[-1].end_xy

    def to_path(self) -> List[Point2D]:
        """Polygon vertices (segment starts), without repeating the first."""
        return [seg.start_xy for seg in self.segments]


class LoopReconstructor:
    """Traces closed loops through a deduplicated segment set."""

    def __init__(self, snapper: Snapper):
        self.snapper = snapper

    def reconstruct(self, segments: List[Segment]) -> List[Loop]:
        if not segments:
            return []

        adjacency = self._build_adjacency(segments)
        used = [False] * len(segments)
        loops: List[Loop] = []
        failed = 0

        for start_idx in range(len(segments)):
            if used[start_idx]:
                continue
            loop = self._trace(segments, adjacency, used, start_idx)
            if loop is None:
                failed += 1
                continue
            if len(loop) >= MIN_LOOP_SEGMENTS:
                loops.append(loop)

        if failed:
            logger.debug("Discarded %d open traces", failed)
        return loops

    def _build_adjacency(self, segments: List[Segment]) -> List[List[Tuple[int, bool]]]:
        adjacency: List[List[Tuple[int, bool]]] = []
        for idx, seg in enumerate(segments):
            for point, at_start in ((seg.start_xy, True), (seg.end_xy, False)):
                vid = self.snapper.vertex_id(*point)
                while len(adjacency) <= vid:
                    adjacency.append([])
                adjacency[vid].append((idx, at_start))
        return adjacency

    def _trace(
        self,
        segments: List[Segment],
        adjacency: List[List[Tuple[int, bool]]],
        used: List[bool],
        start_idx: int,
    ) -> Optional[Loop]:
        first = segments[start_idx]
        used[start_idx] = True
        loop = Loop([first])

        start = first.start_xy
        current = first.end_xy
        budget = 4 * len(segments)

        while not (self.snapper.same(current, start) or self.snapper.close(current, start)):
            if budget <= 0:
                return None
            budget -= 1

            next_idx = self._next_segment(segments, adjacency, used, current)
            if next_idx is None:
                return None

            raw = segments[next_idx]
            oriented = raw if self.snapper.close(raw.start_xy, current) else raw.reversed()
            used[next_idx] = True
            loop.segments.append(oriented)
            current = oriented.end_xy

        if not self.snapper.close(loop.end, loop.start):
            last = loop.segments[-1]
            loop.segments.append(Segment(last.end, first.start))
        return loop

    def _next_segment(
        self,
        segments: List[Segment],
        adjacency: List[List[Tuple[int, bool]]],
        used: List[bool],
        current: Point2D,
    ) -> Optional[int]:
        vid = self.snapper.vertex_id(*current)
        if vid >= len(adjacency):
            return None
        for idx, at_start in adjacency[vid]:
            if used[idx]:
                continue
            seg = segments[idx]
            endpoint = seg.start_xy if at_start else seg.end_xy
            if self.snapper.close(endpoint, current):
                return idx
        return None


def segments_to_loops(segments: Iterable[Segment], snapper: Snapper) -> List[Loop]:
    """Deduplicate, merge and trace a raw segment soup into closed loops."""
    deduped = EdgeDeduplicator(snapper).deduplicate(segments)
    merged = CollinearMerger(snapper).merge(deduped)
    return LoopReconstructor(snapper).reconstruct(merged)
