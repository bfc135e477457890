"""
Fill pattern generators for slice regions.

Patterns:
1. grid       -- horizontal and vertical lines on every layer (cross-hatch)
2. lines      -- horizontal on even layers, vertical on odd layers
3. concentric -- inward offsets of the region until it vanishes (solid fill)

Every generator takes a region (closed path set, even-odd) and returns
polylines ready to trace: hatch lines are open two-point paths, concentric
rings repeat their first point at the end.

Line clipping and offsets go through :mod:`strata.slicing.polygons`.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List

from strata.slicing.polygons import (
    Path,
    Paths,
    bounds,
    clip_open,
    close_path,
    inflate,
    region_area,
    simplify,
)

logger = logging.getLogger(__name__)

FillGenerator = Callable[..., Paths]

# Guards the concentric fill against pathological offsets that never empty
MAX_CONCENTRIC_RINGS = 10_000


def _hatch_lines(region: Paths, spacing: float, horizontal: bool, vertical: bool) -> List[Path]:
    """Raw hatch grid spanning the region bounds, before clipping."""
    box = bounds(region)
    if box is None:
        return []
    left, top, right, bottom = box

    lines: List[Path] = []
    if horizontal:
        for k in range(int(math.floor((bottom - top) / spacing)) + 1):
            y = top + k * spacing
            lines.append([(left, y), (right, y)])
    if vertical:
        for k in range(int(math.floor((right - left) / spacing)) + 1):
            x = left + k * spacing
            lines.append([(x, top), (x, bottom)])
    return lines


def _drop_degenerate(paths: Paths, tolerance: float) -> Paths:
    """Remove repeated points and polylines that collapse to a point."""
    result: Paths = []
    for path in paths:
        points: Path = []
        for p in path:
            if not points or math.dist(points[-1], p) > tolerance:
                points.append(p)
        if len(points) >= 2:
            result.append(points)
    return result


def generate_cross_hatch(
    region: Paths,
    spacing: float,
    horizontal: bool = True,
    vertical: bool = True,
    tolerance: float = 1e-9,
) -> Paths:
    """
    Clip an axis-aligned hatch grid against ``region``.

    Horizontal lines sit at ``y = top + k * spacing`` and vertical lines at
    ``x = left + k * spacing``. A region with zero area yields no lines.
    """
    if spacing <= 0 or not region or region_area(region) <= 0.0:
        return []
    lines = _hatch_lines(region, spacing, horizontal, vertical)
    return _drop_degenerate(clip_open(lines, region), tolerance)


def generate_grid(region: Paths, spacing: float, layer: int = 0,
                  tolerance: float = 1e-9) -> Paths:
    """Cross-hatch infill: both directions on every layer."""
    return generate_cross_hatch(region, spacing, True, True, tolerance)


def generate_lines(region: Paths, spacing: float, layer: int = 0,
                   tolerance: float = 1e-9) -> Paths:
    """Single-direction hatch alternating 0/90 by layer parity (even = horizontal)."""
    horizontal = layer % 2 == 0
    return generate_cross_hatch(region, spacing, horizontal, not horizontal, tolerance)


def generate_concentric(region: Paths, spacing: float, layer: int = 0,
                        tolerance: float = 1e-9) -> Paths:
    """
    Concentric fill: offset the region inward by ``spacing`` repeatedly.

    The first ring sits one spacing inside the region boundary; rings are
    emitted until an offset comes back empty.
    """
    if spacing <= 0 or not region:
        return []

    rings: Paths = []
    current = simplify(inflate(region, -spacing), tolerance)
    for _ in range(MAX_CONCENTRIC_RINGS):
        if not current:
            break
        rings.extend(close_path(p) for p in current)
        current = simplify(inflate(current, -spacing), tolerance)
    else:
        logger.warning("Concentric fill stopped after %d rings", MAX_CONCENTRIC_RINGS)
    return rings


# --- Pattern Registry ---

INFILL_PATTERNS: Dict[str, FillGenerator] = {
    "grid": generate_grid,
    "lines": generate_lines,
    "concentric": generate_concentric,
}


def generate_fill(
    region: Paths,
    pattern: str,
    spacing: float,
    layer: int = 0,
    tolerance: float = 1e-9,
) -> Paths:
    """
    Fill a region with the named pattern.

    Parameters:
        region: Closed path set bounding the fill (even-odd).
        pattern: Pattern name from INFILL_PATTERNS.
        spacing: Line spacing in mm.
        layer: Current layer index (used by alternating patterns).
        tolerance: Simplification tolerance in mm.

    Returns:
        List of polylines (lists of (x, y) points).
    """
    try:
        generator = INFILL_PATTERNS[pattern]
    except KeyError:
        raise ValueError(
            f"unknown fill pattern {pattern!r}; expected one of {sorted(INFILL_PATTERNS)}"
        ) from None
    return generator(region, spacing, layer=layer, tolerance=tolerance)
