"""
Per-slice feature engine.

A :class:`Slice` turns the closed loops of one plane into an eroded outer
boundary and a set of concentric shells, then derives floor, roof, support
and infill regions when the model feeds it the shells of its vertical
neighbours.

The derived regions are produced by a fixed sequence of transitions::

    UNSLICED -> SHELLS_BUILT -> FLOOR_DONE -> ROOF_DONE (+ support) -> INFILL_DONE

Each operation checks that the slice is in the state it expects, so a model
that calls them out of order fails loudly instead of reading half-computed
neighbours.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Sequence

from strata.core.config import SlicerSettings
from strata.core.exceptions import EngineNotReadyError, SliceStateError
from strata.core.logging import get_logger
from strata.slicing import polygons
from strata.slicing.infill_patterns import generate_concentric, generate_fill
from strata.slicing.loops import Loop, segments_to_loops
from strata.slicing.polygons import Paths
from strata.slicing.segments import Segment
from strata.slicing.snapper import Snapper

logger = get_logger(__name__)


class SliceState(Enum):
    UNSLICED = 0
    SHELLS_BUILT = 1
    FLOOR_DONE = 2
    ROOF_DONE = 3
    INFILL_DONE = 4


class Slice:
    """
    One horizontal cross-section and everything printed on it.

    Attributes:
        z: Plane height of the slice.
        index: Layer index, 0 at the bottom.
        settings: Print settings shared with the rest of the model.
        loops: Closed loops reconstructed from the plane's segments.
        boundary: Loops unioned (even-odd) and eroded by half a tool width.
        shells: Concentric perimeters, outermost first.
        floor, roof, support, infill: Path sets to print.
        floor_region, roof_region, support_region, infill_region: Pre-fill
            boundaries.
    """

    def __init__(self, z: float, index: int, settings: SlicerSettings):
        self.z = z
        self.index = index
        self.settings = settings
        self.state = SliceState.UNSLICED

        self.loops: List[Loop] = []
        self.boundary: Paths = []
        self.shells: List[Paths] = []

        self.floor: Paths = []
        self.roof: Paths = []
        self.support: Paths = []
        self.infill: Paths = []

        self.floor_region: Paths = []
        self.roof_region: Paths = []
        self.support_region: Paths = []
        self.infill_region: Paths = []
        self.support_done = False

    @classmethod
    def from_segments(
        cls,
        segments: Iterable[Segment],
        z: float,
        index: int,
        settings: SlicerSettings,
    ) -> "Slice":
        """Reconstruct loops from raw plane segments and build the shells."""
        slice_ = cls(z, index, settings)
        snapper = Snapper(settings.epsilon)
        slice_.build_shells(segments_to_loops(segments, snapper))
        return slice_

    def __repr__(self) -> str:
        return (
            f"Slice(index={self.index}, z={self.z:.4f}, shells={len(self.shells)}, "
            f"state={self.state.name})"
        )

    # ------------------------------------------------------------------
    # Read-only views used by neighbouring slices and by export
    # ------------------------------------------------------------------

    @property
    def outer_shell(self) -> Paths:
        return self.shells[0] if self.shells else []

    @property
    def inner_shell(self) -> Paths:
        return self.shells[-1] if self.shells else []

    @property
    def outer_layer(self) -> Paths:
        """All shells concatenated, outermost first."""
        return [path for shell in self.shells for path in shell]

    # ------------------------------------------------------------------
    # Phase 1: shells
    # ------------------------------------------------------------------

    def build_shells(self, loops: Sequence[Loop]) -> None:
        """
        Build the eroded boundary and the concentric shells from closed loops.

        Shell generation stops early when an inward offset leaves nothing, so
        thin features end up with fewer shells than configured.
        """
        self._expect(SliceState.UNSLICED, "build_shells")
        s = self.settings

        self.loops = list(loops)
        region = polygons.union([loop.to_path() for loop in self.loops])
        self.boundary = polygons.simplify(
            polygons.inflate(region, -s.half_tool_width), s.simplify_tolerance
        )

        shells: List[Paths] = []
        current = self.boundary
        while current and len(shells) < s.shell_count:
            shells.append(current)
            current = polygons.simplify(
                polygons.inflate(current, -s.tool_width), s.simplify_tolerance
            )
        self.shells = shells

        if len(shells) < s.shell_count:
            logger.debug(
                "shells_truncated", layer=self.index, built=len(shells), requested=s.shell_count
            )
        self.state = SliceState.SHELLS_BUILT

    # ------------------------------------------------------------------
    # Phase 2: regions
    # ------------------------------------------------------------------

    def generate_floor(self, lower_inner_shells: Sequence[Paths], is_base: bool) -> None:
        """
        Compute the solid floor of this slice.

        On a base layer the whole innermost shell is floor. Elsewhere a point is
        floor unless it is inside the innermost shell of every supplied lower
        layer.
        """
        self._require_shells("generate_floor", terminal=is_base)
        self._expect(SliceState.SHELLS_BUILT, "generate_floor")

        self.floor_region = self._exposed_region(lower_inner_shells, is_base)
        self.floor = self._solid_fill(self.floor_region)
        self.state = SliceState.FLOOR_DONE

    def generate_roof(self, upper_inner_shells: Sequence[Paths], is_top: bool) -> None:
        """Compute the solid roof; mirror image of :meth:`generate_floor`."""
        self._require_shells("generate_roof", terminal=is_top)
        self._expect(SliceState.FLOOR_DONE, "generate_roof")

        self.roof_region = self._exposed_region(upper_inner_shells, is_top)
        self.roof = self._solid_fill(self.roof_region)
        self.state = SliceState.ROOF_DONE

    def generate_support(self, upper_perimeter_plus_support: Paths, is_top: bool) -> None:
        """
        Compute the support printed on this slice.

        ``upper_perimeter_plus_support`` is the union of the outer shell and
        support region of the layer directly above. Whatever of it this layer
        cannot carry itself, shrunk by one tool width for clearance, is support.
        """
        self._expect_support_pending("generate_support")
        s = self.settings

        if is_top:
            self._finish_support([])
            return

        self_supporting = polygons.inflate(
            self.outer_shell, min(s.half_tool_width, s.layer_height)
        )
        overhang = polygons.difference(upper_perimeter_plus_support, self_supporting)
        region = polygons.simplify(
            polygons.inflate(overhang, -s.tool_width), s.simplify_tolerance
        )
        self._finish_support(region)

    def skip_support(self) -> None:
        """Finalize support as empty (support disabled or supplied by the mesh)."""
        self._expect_support_pending("skip_support")
        self._finish_support([])

    def generate_infill(self) -> None:
        """
        Compute sparse infill inside the innermost shell, outside floor and roof.
        """
        if self.state is SliceState.UNSLICED:
            raise EngineNotReadyError(
                "generate_infill called before shells were built", layer_index=self.index
            )
        self._expect(SliceState.ROOF_DONE, "generate_infill")
        if not self.support_done:
            raise SliceStateError(
                "generate_infill called before support was finalized", layer_index=self.index
            )
        s = self.settings

        shrink = s.half_tool_width - s.infill_overlap * s.tool_width
        region = polygons.inflate(self.inner_shell, -shrink)
        region = polygons.difference(region, self.floor_region)
        region = polygons.difference(region, self.roof_region)
        self.infill_region = polygons.simplify(region, s.simplify_tolerance)
        self.infill = generate_fill(
            self.infill_region, s.infill_pattern, s.infill_spacing,
            layer=self.index, tolerance=s.simplify_tolerance,
        )
        self.state = SliceState.INFILL_DONE

    def absorb_infill_into_floor(self) -> None:
        """Print this layer's infill together with its floor in one path set."""
        self._expect(SliceState.INFILL_DONE, "absorb_infill_into_floor")
        self.floor = self.floor + self.infill
        self.infill = []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _exposed_region(self, neighbour_inner_shells: Sequence[Paths], terminal: bool) -> Paths:
        """Innermost shell minus what every neighbour backs with solid material."""
        if terminal:
            return polygons.union(self.inner_shell)
        if not neighbour_inner_shells:
            # No neighbours consulted: treated as fully backed
            return []
        backed = polygons.intersect_all(list(neighbour_inner_shells))
        region = polygons.difference(self.inner_shell, backed)
        return polygons.simplify(region, self.settings.simplify_tolerance)

    def _solid_fill(self, region: Paths) -> Paths:
        return generate_concentric(
            region, self.settings.tool_width, layer=self.index,
            tolerance=self.settings.simplify_tolerance,
        )

    def _finish_support(self, region: Paths) -> None:
        s = self.settings
        self.support_region = region
        self.support = generate_fill(
            region, s.support_pattern, s.support_spacing,
            layer=self.index, tolerance=s.simplify_tolerance,
        ) if region else []
        self.support_done = True

    def _require_shells(self, operation: str, terminal: bool) -> None:
        if self.state is SliceState.UNSLICED:
            raise EngineNotReadyError(
                f"{operation} called before shells were built", layer_index=self.index
            )
        if not terminal and not self.shells:
            raise EngineNotReadyError(
                f"{operation} needs shells on a non-terminal layer",
                layer_index=self.index,
                details={"z": self.z},
            )

    def _expect(self, state: SliceState, operation: str) -> None:
        if self.state is not state:
            raise SliceStateError(
                f"{operation} requires state {state.name}, slice is {self.state.name}",
                layer_index=self.index,
            )

    def _expect_support_pending(self, operation: str) -> None:
        if self.state is SliceState.UNSLICED:
            raise EngineNotReadyError(
                f"{operation} called before shells were built", layer_index=self.index
            )
        self._expect(SliceState.ROOF_DONE, operation)
        if self.support_done:
            raise SliceStateError(
                f"{operation} called after support was finalized", layer_index=self.index
            )
