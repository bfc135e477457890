"""
Polygon engine adapter: boolean ops, offsetting and clipping for path sets.

Uses **pyclipper** (Python bindings for Angus Johnson's Clipper library) for
robust polygon booleans and offsets that correctly handle concave polygons,
holes and degenerate input. Open-line clipping uses **shapely**. Everything in
the slicer that works on regions goes through this module.

A *path set* (:data:`Paths`) is a list of closed polygons given as lists of
``(x, y)`` floats. Which areas are filled is decided by the fill rule at the
time a path set is consumed (even-odd by default), so raw loops can be passed
in without classifying holes first. Results coming out of this module are
clean: non-overlapping, outers counter-clockwise, holes clockwise.

References:
- pyclipper: https://github.com/fonttools/pyclipper
- Clipper library: http://www.angusj.com/delphi/clipper.php
- shapely: https://shapely.readthedocs.io/
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import reduce
from typing import Iterable, List, Optional, Sequence, Tuple

import pyclipper
from shapely.geometry import LineString, Polygon as ShapelyPolygon

logger = logging.getLogger(__name__)

Point2D = Tuple[float, float]
Path = List[Point2D]
Paths = List[Path]
Bounds = Tuple[float, float, float, float]

# pyclipper uses integer coordinates for precision.
# We scale floating-point mm coordinates by this factor.
CLIPPER_SCALE = 1_000_000  # 1 mm -> 1e6 clipper units -> 1 nm resolution

# Maximum deviation of round joins from the true arc, in mm
ARC_TOLERANCE = 0.005


class FillRule(Enum):
    EVEN_ODD = pyclipper.PFT_EVENODD
    NON_ZERO = pyclipper.PFT_NONZERO


class JoinType(Enum):
    MITER = pyclipper.JT_MITER
    ROUND = pyclipper.JT_ROUND
    SQUARE = pyclipper.JT_SQUARE


def _to_clipper(path: Sequence[Point2D]) -> List[Tuple[int, int]]:
    """Scale a floating-point path to pyclipper integer coordinates."""
    return [(int(round(x * CLIPPER_SCALE)), int(round(y * CLIPPER_SCALE)))
            for x, y in path]


def _from_clipper(path: Sequence[Sequence[int]]) -> Path:
    """Scale pyclipper integer coordinates back to floating-point mm."""
    return [(x / CLIPPER_SCALE, y / CLIPPER_SCALE) for x, y in path]


def _add_paths(pc: pyclipper.Pyclipper, paths: Iterable[Sequence[Point2D]],
               poly_type: int) -> int:
    """Add paths one by one, skipping those Clipper rejects as degenerate."""
    added = 0
    for path in paths:
        try:
            pc.AddPath(_to_clipper(path), poly_type, True)
            added += 1
        except pyclipper.ClipperException:
            continue
    return added


def _boolean(op: int, subject: Paths, clip: Paths, fill_rule: FillRule) -> Paths:
    pc = pyclipper.Pyclipper()
    if not _add_paths(pc, subject, pyclipper.PT_SUBJECT):
        return []
    _add_paths(pc, clip, pyclipper.PT_CLIP)
    result = pc.Execute(op, fill_rule.value, fill_rule.value)
    return [_from_clipper(p) for p in result]


def union(subject: Paths, clip: Optional[Paths] = None,
          fill_rule: FillRule = FillRule.EVEN_ODD) -> Paths:
    """Union of ``subject`` (and ``clip``), resolving overlaps under ``fill_rule``."""
    if not subject:
        subject, clip = clip or [], []
    return _boolean(pyclipper.CT_UNION, subject, clip or [], fill_rule)


def intersection(subject: Paths, clip: Paths,
                 fill_rule: FillRule = FillRule.EVEN_ODD) -> Paths:
    """Area covered by both path sets."""
    if not subject or not clip:
        return []
    return _boolean(pyclipper.CT_INTERSECTION, subject, clip, fill_rule)


def difference(subject: Paths, clip: Paths,
               fill_rule: FillRule = FillRule.EVEN_ODD) -> Paths:
    """Area of ``subject`` not covered by ``clip``."""
    if not subject:
        return []
    return _boolean(pyclipper.CT_DIFFERENCE, subject, clip, fill_rule)


def intersect_all(path_sets: Sequence[Paths],
                  fill_rule: FillRule = FillRule.EVEN_ODD) -> Paths:
    """Area covered by every path set (empty when any set is empty)."""
    if not path_sets:
        raise ValueError("intersect_all needs at least one path set")
    return reduce(lambda acc, paths: intersection(acc, paths, fill_rule),
                  path_sets[1:], union(path_sets[0], fill_rule=fill_rule))


def inflate(paths: Paths, delta: float,
            join: JoinType = JoinType.MITER) -> Paths:
    """
    Offset closed paths by ``delta`` mm (positive grows, negative shrinks).

    Returns an empty list when the offset consumes every polygon.
    """
    if not paths:
        return []

    pco = pyclipper.PyclipperOffset(arc_tolerance=ARC_TOLERANCE * CLIPPER_SCALE)
    added = 0
    for path in paths:
        if len(path) < 3:
            continue
        pco.AddPath(_to_clipper(path), join.value, pyclipper.ET_CLOSEDPOLYGON)
        added += 1
    if not added:
        return []

    result = pco.Execute(delta * CLIPPER_SCALE)
    return [_from_clipper(p) for p in result if len(p) >= 3]


def simplify(paths: Paths, tolerance: float = 1e-9) -> Paths:
    """Drop near-duplicate and collinear vertices closer than ``tolerance``."""
    if not paths:
        return []
    scaled = [_to_clipper(p) for p in paths]
    cleaned = pyclipper.CleanPolygons(scaled, tolerance * CLIPPER_SCALE)
    return [_from_clipper(p) for p in cleaned if len(p) >= 3]


def clip_open(lines: Iterable[Sequence[Point2D]], region: Paths,
              fill_rule: FillRule = FillRule.EVEN_ODD) -> Paths:
    """
    Clip open polylines against a closed region.

    Returns the pieces of ``lines`` inside ``region``, in line direction;
    lines entirely outside contribute nothing. Pieces touching the region
    only at isolated points are dropped.
    """
    shape = _to_shapely(region, fill_rule)
    if shape is None:
        return []

    pieces: Paths = []
    for line in lines:
        if len(line) < 2:
            continue
        pieces.extend(_line_parts(LineString(line).intersection(shape)))
    return pieces


def _to_shapely(region: Paths, fill_rule: FillRule):
    """Shapely geometry for ``region``; ``None`` when it covers no area."""
    # Clean output nests holes inside outers, so xor-ing rings rebuilds the region
    shape = None
    for path in union(region, fill_rule=fill_rule):
        ring = ShapelyPolygon(path)
        if not ring.is_valid:
            ring = ring.buffer(0)
        shape = ring if shape is None else shape.symmetric_difference(ring)
    if shape is None or shape.is_empty:
        return None
    return shape


def _line_parts(geom) -> Paths:
    if geom.is_empty:
        return []
    if geom.geom_type == "LineString":
        return [[(float(x), float(y)) for x, y, *_ in geom.coords]]
    if geom.geom_type in ("MultiLineString", "GeometryCollection"):
        return [part for g in geom.geoms for part in _line_parts(g)]
    return []


def bounds(paths: Paths) -> Optional[Bounds]:
    """Axis-aligned bounds ``(left, top, right, bottom)``; top is the minimum y."""
    xs = [x for path in paths for x, _ in path]
    ys = [y for path in paths for _, y in path]
    if not xs:
        return None
    return (min(xs), min(ys), max(xs), max(ys))


def area(paths: Paths) -> float:
    """Net signed area of a clean path set (holes count negative)."""
    total = 0.0
    for path in paths:
        if len(path) >= 3:
            total += pyclipper.Area(_to_clipper(path))
    return total / (CLIPPER_SCALE * CLIPPER_SCALE)


def region_area(paths: Paths, fill_rule: FillRule = FillRule.EVEN_ODD) -> float:
    """Filled area of an arbitrary path set under ``fill_rule``."""
    return area(union(paths, fill_rule=fill_rule))


def close_path(path: Sequence[Point2D]) -> Path:
    """Return ``path`` with its first point repeated at the end."""
    points = list(path)
    if points and points[0] != points[-1]:
        points.append(points[0])
    return points
