"""
Slicing module - From triangle soup to per-layer print regions.

Stages, bottom-up:
- PlaneIntersector: triangle/plane segments at one height
- Snapper, EdgeDeduplicator, CollinearMerger: vertex identity and cleanup
- LoopReconstructor: closed loops from an unordered segment soup
- Slice: shells, floor, roof, support and infill of one layer
- Model: two-pass orchestration over the layer stack and toolpath export
"""

from strata.slicing.snapper import Snapper
from strata.slicing.segments import Segment, EdgeDeduplicator, CollinearMerger
from strata.slicing.plane_intersector import PlaneIntersector
from strata.slicing.loops import Loop, LoopReconstructor, segments_to_loops
from strata.slicing.infill_patterns import INFILL_PATTERNS, generate_fill
from strata.slicing.slice import Slice, SliceState
from strata.slicing.model import Model, layer_heights
from strata.slicing.toolpath import Toolpath, ToolpathSegment, ToolpathType

__all__ = [
    "Snapper",
    "Segment",
    "EdgeDeduplicator",
    "CollinearMerger",
    "PlaneIntersector",
    "Loop",
    "LoopReconstructor",
    "segments_to_loops",
    "INFILL_PATTERNS",
    "generate_fill",
    "Slice",
    "SliceState",
    "Model",
    "layer_heights",
    "Toolpath",
    "ToolpathSegment",
    "ToolpathType",
]
