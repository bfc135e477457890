"""
Toolpath data structures handed to instruction emission.

A :class:`Toolpath` is the flattened, print-ordered view of a processed
model: every path of every slice becomes a typed :class:`ToolpathSegment`
of 3D COMPAS points, already shifted by the model's planar offset.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

import numpy as np
from compas.geometry import Point

from strata.core.config import SlicerSettings


class ToolpathType(Enum):
    """Type of toolpath segment."""

    SKIRT = "skirt"  # Priming loop around the first layer
    PERIMETER = "perimeter"  # Shells
    FLOOR = "floor"  # Solid fill where the part starts
    ROOF = "roof"  # Solid fill where the part ends
    INFILL = "infill"  # Sparse interior fill
    SUPPORT = "support"  # Removable support
    TRAVEL = "travel"  # Non-printing moves


@dataclass
class ToolpathSegment:
    """
    Represents a single segment of a toolpath.

    Attributes:
        points: List of 3D points defining the path
        type: Type of toolpath segment
        layer_index: Index of the layer this segment belongs to
        extrusion_width: Width of extruded material (mm)
        speed: Movement speed (mm/s)
        flow_rate: Material flow rate (0-1 scale)
        metadata: Additional process-specific data
    """

    points: List[Point]
    type: ToolpathType
    layer_index: int
    extrusion_width: float = 0.4
    speed: float = 50.0
    flow_rate: float = 1.0
    metadata: dict = field(default_factory=dict)

    def get_length(self) -> float:
        """Calculate total length of the segment."""
        if len(self.points) < 2:
            return 0.0

        total_length = 0.0
        for p1, p2 in zip(self.points, self.points[1:]):
            dx = p2.x - p1.x
            dy = p2.y - p1.y
            dz = p2.z - p1.z
            total_length += np.sqrt(dx**2 + dy**2 + dz**2)

        return float(total_length)

    def get_extrusion(self, settings: SlicerSettings) -> float:
        """
        Filament length (mm) fed while tracing this segment.

        Bead cross-section (layer height x nozzle width) times path length,
        divided by the filament cross-section, times the extrusion multiplier.
        """
        if self.type == ToolpathType.TRAVEL:
            return 0.0
        volume = settings.layer_height * settings.nozzle_diameter * self.get_length()
        return volume / settings.filament_area * settings.extrusion_multiplier * self.flow_rate

    def get_start_point(self) -> Point:
        """Get the starting point of the segment."""
        if not self.points:
            raise ValueError("Segment has no points")
        return self.points[0]

    def get_end_point(self) -> Point:
        """Get the ending point of the segment."""
        if not self.points:
            raise ValueError("Segment has no points")
        return self.points[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "layer": self.layer_index,
            "speed": self.speed,
            "points": [[p.x, p.y, p.z] for p in self.points],
        }


@dataclass
class Toolpath:
    """
    Complete toolpath of a sliced model.

    Attributes:
        segments: List of toolpath segments, in print order
        layer_height: Height of each layer (mm)
        total_layers: Total number of layers
        metadata: Additional toolpath metadata
    """

    segments: List[ToolpathSegment] = field(default_factory=list)
    layer_height: float = 0.2
    total_layers: int = 0
    metadata: dict = field(default_factory=dict)

    def add_segment(self, segment: ToolpathSegment) -> None:
        """Add a segment to the toolpath."""
        self.segments.append(segment)
        self.total_layers = max(self.total_layers, segment.layer_index + 1)

    def get_segments_by_layer(self, layer_index: int) -> List[ToolpathSegment]:
        """Get all segments for a specific layer."""
        return [seg for seg in self.segments if seg.layer_index == layer_index]

    def get_segments_by_type(self, seg_type: ToolpathType) -> List[ToolpathSegment]:
        """Get all segments of a specific type."""
        return [seg for seg in self.segments if seg.type == seg_type]

    def get_total_length(self) -> float:
        """Calculate total toolpath length."""
        return sum(seg.get_length() for seg in self.segments)

    def get_extrusion_total(self, settings: SlicerSettings) -> float:
        """Total filament length (mm) needed for the toolpath."""
        return sum(seg.get_extrusion(settings) for seg in self.segments)

    def get_build_time_estimate(self) -> float:
        """
        Estimate total printing time in seconds.

        Assumes constant speed for each segment and ignores travel between
        segments.
        """
        total_time = 0.0
        for seg in self.segments:
            if seg.speed > 0:
                total_time += seg.get_length() / seg.speed
        return total_time

    def get_bounds(self) -> tuple[Point, Point]:
        """
        Get bounding box of the toolpath.

        Returns:
            Tuple of (min_point, max_point)
        """
        all_points = [p for seg in self.segments for p in seg.points]
        if not all_points:
            raise ValueError("Toolpath has no points")

        xs = [p.x for p in all_points]
        ys = [p.y for p in all_points]
        zs = [p.z for p in all_points]

        return Point(min(xs), min(ys), min(zs)), Point(max(xs), max(ys), max(zs))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layerHeight": self.layer_height,
            "totalLayers": self.total_layers,
            "metadata": self.metadata,
            "segments": [seg.to_dict() for seg in self.segments],
        }
