"""
Model orchestration: slicing a mesh into layers and deriving their regions.

A :class:`Model` owns the bottom-to-top list of slices. Building the slices
(plane intersection, loop reconstruction, shells) is independent per layer.
Deriving floors, roofs, support and infill is not: each layer compares itself
with its vertical neighbours, so :meth:`Model.process` runs two strictly
ordered passes:

1. upward (0 -> n-1): floors, which only read the shells of lower layers;
2. downward (n-1 -> 0): roofs from the shells of upper layers, support from
   the already-finished layer directly above, then infill.

Shells never change after construction, so the only derived state read
across layers is the support region of layer ``i + 1`` while processing
layer ``i`` in the downward pass, and that layer is finished by then.
"""

from __future__ import annotations

import math
import time
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from compas.geometry import Point

from strata.core.config import SlicerSettings
from strata.core.exceptions import SliceStateError
from strata.core.geometry import BoundingBox, mesh_triangles
from strata.core.logging import get_logger, layer_context
from strata.slicing import polygons
from strata.slicing.plane_intersector import PlaneIntersector
from strata.slicing.polygons import JoinType, Path, Paths, close_path
from strata.slicing.slice import Slice
from strata.slicing.toolpath import Toolpath, ToolpathSegment, ToolpathType

logger = get_logger(__name__)


def layer_heights(z_min: float, z_max: float, layer_height: float) -> List[float]:
    """
    Plane heights at layer midpoints: ``z_min + (i + 0.5) * layer_height``.

    Every midpoint strictly below ``z_max`` gets a layer.
    """
    if layer_height <= 0:
        raise ValueError(f"layer_height must be positive, got {layer_height}")
    span = z_max - z_min
    if span <= 0:
        return []
    count = max(0, int(math.ceil(span / layer_height - 0.5 - 1e-9)))
    return [z_min + (i + 0.5) * layer_height for i in range(count)]


class Model:
    """
    Ordered stack of slices sharing one settings object.

    Attributes:
        settings: Print settings shared by every slice.
        planar_offset: XY shift applied to exported toolpaths only.
    """

    def __init__(
        self,
        slices: Sequence[Slice],
        settings: SlicerSettings,
        planar_offset: Tuple[float, float] = (0.0, 0.0),
    ):
        for idx, slice_ in enumerate(slices):
            if slice_.index != idx:
                raise ValueError(f"slice at position {idx} has index {slice_.index}")
            if slice_.settings is not settings:
                raise ValueError("all slices must share the model's settings object")
        self._slices: Tuple[Slice, ...] = tuple(slices)
        self.settings = settings
        self.planar_offset = planar_offset
        self.processed = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_triangles(
        cls,
        triangles: Any,
        settings: SlicerSettings,
        heights: Optional[Sequence[float]] = None,
        planar_offset: Optional[Tuple[float, float]] = None,
        process: bool = True,
    ) -> "Model":
        """
        Slice a triangle soup.

        Args:
            triangles: ``(N, 3, 3)`` array, trimesh mesh or COMPAS mesh.
            settings: Print settings.
            heights: Explicit plane heights, strictly ascending. Defaults to layer
                midpoints over the mesh's Z range.
            planar_offset: XY export offset. Defaults to moving the mesh's XY
                centre onto ``settings.bed_center``.
            process: Run the floor/roof/support/infill passes right away.
        """
        tris = mesh_triangles(triangles)
        box = BoundingBox.from_triangles(tris)

        if heights is None:
            heights = layer_heights(box.zmin, box.zmax, settings.layer_height)
        heights = [float(z) for z in heights]
        if any(upper <= lower for lower, upper in zip(heights, heights[1:])):
            raise ValueError("heights must be strictly ascending")
        if planar_offset is None:
            cx, cy = box.center_xy
            planar_offset = (settings.bed_center[0] - cx, settings.bed_center[1] - cy)

        t0 = time.perf_counter()
        intersector = PlaneIntersector(settings.intersection_offset)
        slices = [
            Slice.from_segments(intersector.intersect(tris, z), z, idx, settings)
            for idx, z in enumerate(heights)
        ]
        logger.info(
            "slices_built",
            layers=len(slices),
            triangles=len(tris),
            duration_s=round(time.perf_counter() - t0, 3),
        )

        model = cls(slices, settings, planar_offset)
        if process:
            model.process()
        return model

    @classmethod
    def from_mesh(cls, mesh: Any, settings: SlicerSettings, **kwargs: Any) -> "Model":
        """Slice a trimesh or COMPAS mesh; see :meth:`from_triangles`."""
        return cls.from_triangles(mesh_triangles(mesh), settings, **kwargs)

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    @property
    def layer_count(self) -> int:
        return len(self._slices)

    @property
    def slices(self) -> Tuple[Slice, ...]:
        return self._slices

    def __len__(self) -> int:
        return len(self._slices)

    def __getitem__(self, index: int) -> Slice:
        return self._slices[index]

    def __iter__(self) -> Iterator[Slice]:
        return iter(self._slices)

    # ------------------------------------------------------------------
    # Region passes
    # ------------------------------------------------------------------

    def process(self) -> None:
        """Run the upward floor pass, then the downward roof/support/infill pass."""
        if self.processed:
            raise SliceStateError("model has already been processed")

        t0 = time.perf_counter()
        self._upward_pass()
        self._downward_pass()
        self.processed = True

        logger.info(
            "model_processed",
            layers=self.layer_count,
            floors=sum(1 for s in self._slices if s.floor),
            roofs=sum(1 for s in self._slices if s.roof),
            supported=sum(1 for s in self._slices if s.support),
            duration_s=round(time.perf_counter() - t0, 3),
        )

    def _upward_pass(self) -> None:
        n_floors = self.settings.floor_count
        for i, slice_ in enumerate(self._slices):
            with layer_context(i, slice_.z, phase="floor"):
                if i < n_floors:
                    slice_.generate_floor([], is_base=True)
                else:
                    lower = [self._slices[j].inner_shell for j in range(i - n_floors, i)]
                    slice_.generate_floor(lower, is_base=False)
                logger.debug("floor_done", paths=len(slice_.floor))

    def _downward_pass(self) -> None:
        s = self.settings
        n = self.layer_count
        use_support = s.support_enabled and not s.tree_support_enabled
        # Top roof layers, and always the topmost layer, carry no support
        first_unsupported = n - max(s.roof_count, 1)

        for i in range(n - 1, -1, -1):
            slice_ = self._slices[i]
            with layer_context(i, slice_.z, phase="roof"):
                if i >= n - s.roof_count:
                    slice_.generate_roof([], is_top=True)
                else:
                    upper = [self._slices[j].inner_shell for j in range(i + 1, i + 1 + s.roof_count)]
                    slice_.generate_roof(upper, is_top=False)

                if not use_support:
                    slice_.skip_support()
                elif i >= first_unsupported:
                    slice_.generate_support([], is_top=True)
                else:
                    above = self._slices[i + 1]
                    carried = polygons.union(above.outer_shell, above.support_region)
                    slice_.generate_support(carried, is_top=False)

                slice_.generate_infill()

                if (
                    i > 0
                    and slice_.floor
                    and not self._slices[i - 1].floor
                    and slice_.infill
                ):
                    slice_.absorb_infill_into_floor()

                logger.debug(
                    "layer_done",
                    roof=len(slice_.roof),
                    support=len(slice_.support),
                    infill=len(slice_.infill),
                )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def skirt(self) -> Paths:
        """Priming loop around the bottom layer's outer shell."""
        if not self._slices or not self.settings.skirt_enabled:
            return []
        distance = self.settings.skirt_distance * self.settings.nozzle_diameter
        return polygons.inflate(self._slices[0].outer_shell, distance, JoinType.ROUND)

    def to_toolpath(self) -> Toolpath:
        """
        Flatten the processed model into a print-ordered :class:`Toolpath`.

        Per layer: skirt (first layer only), shells, floor, roof, infill,
        support. Shell and skirt loops are closed by repeating their first
        point; fill paths are already traceable polylines.
        """
        if not self.processed:
            raise SliceStateError("model must be processed before export")

        s = self.settings
        toolpath = Toolpath(
            layer_height=s.layer_height,
            metadata={"planarOffset": list(self.planar_offset)},
        )

        for slice_ in self._slices:
            groups = [
                (ToolpathType.PERIMETER, [close_path(p) for p in slice_.outer_layer], s.shell_speed),
                (ToolpathType.FLOOR, slice_.floor, s.floor_speed),
                (ToolpathType.ROOF, slice_.roof, s.roof_speed),
                (ToolpathType.INFILL, slice_.infill, s.infill_speed),
                (ToolpathType.SUPPORT, slice_.support, s.support_speed),
            ]
            if slice_.index == 0:
                groups.insert(0, (ToolpathType.SKIRT, [close_path(p) for p in self.skirt()], s.shell_speed))

            for seg_type, paths, speed in groups:
                for path in paths:
                    toolpath.add_segment(self._segment(path, slice_, seg_type, speed))

        return toolpath

    def _segment(self, path: Path, slice_: Slice, seg_type: ToolpathType, speed: float) -> ToolpathSegment:
        dx, dy = self.planar_offset
        coords = np.asarray(path, dtype=float)
        return ToolpathSegment(
            points=[Point(x + dx, y + dy, slice_.z) for x, y in coords],
            type=seg_type,
            layer_index=slice_.index,
            extrusion_width=self.settings.nozzle_diameter,
            speed=speed,
        )
