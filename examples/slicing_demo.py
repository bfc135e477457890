"""
Demonstration of strata slicing.

This script shows how to:
1. Build or load a mesh
2. Slice it into layers and derive floors, roofs, support and infill
3. Inspect the per-layer features
4. Export the toolpath
"""

import json
import sys
from pathlib import Path

import trimesh

from strata.core.config import SlicerSettings
from strata.core.geometry import GeometryLoader
from strata.core.logging import configure_logging
from strata.slicing.model import Model
from strata.slicing.toolpath import ToolpathType


def main():
    """Run slicing demonstration."""
    configure_logging(level="INFO")

    print("=" * 60)
    print("strata Slicing Demo")
    print("=" * 60)

    # 1. Load geometry (or fall back to a T-shaped test part)
    if len(sys.argv) > 1:
        mesh_file = Path(sys.argv[1])
        print(f"\n1. Loading mesh: {mesh_file.name}")
        mesh = GeometryLoader.load(mesh_file)
    else:
        print("\n1. Building a pillar with an overhanging plate")
        pillar = trimesh.creation.box(extents=[4.0, 4.0, 6.0])
        pillar.apply_translation([0.0, 0.0, 3.0])
        plate = trimesh.creation.box(extents=[20.0, 20.0, 2.0])
        plate.apply_translation([0.0, 0.0, 7.0])
        mesh = trimesh.util.concatenate([pillar, plate])
    print(f"   [OK] {len(mesh.faces)} triangles")

    # 2. Configure and slice
    print("\n2. Slicing")
    settings = SlicerSettings(layer_height=0.2, shell_count=2, floor_count=3, roof_count=3)
    model = Model.from_mesh(mesh, settings)
    print(f"   [OK] Layer height: {settings.layer_height} mm")
    print(f"   [OK] Generated {model.layer_count} layers")

    # 3. Layer breakdown
    print("\n3. Layer breakdown (every 5th layer)")
    for slice_ in model.slices[::5]:
        print(
            f"     Layer {slice_.index:3d} z={slice_.z:6.2f}: "
            f"{len(slice_.shells)} shells, {len(slice_.floor)} floor, "
            f"{len(slice_.roof)} roof, {len(slice_.infill)} infill, "
            f"{len(slice_.support)} support paths"
        )

    # 4. Toolpath
    print("\n4. Toolpath")
    toolpath = model.to_toolpath()
    for seg_type in ToolpathType:
        count = len(toolpath.get_segments_by_type(seg_type))
        if count:
            print(f"   [OK] {seg_type.value:10s} {count} paths")
    print(f"   [OK] Total length: {toolpath.get_total_length():.1f} mm")
    print(f"   [OK] Filament:     {toolpath.get_extrusion_total(settings):.1f} mm")
    print(f"   [OK] Est. time:    {toolpath.get_build_time_estimate() / 60.0:.1f} min")

    output = Path(__file__).parent / "toolpath.json"
    with open(output, "w") as f:
        json.dump(toolpath.to_dict(), f)
    print(f"\n   [OK] Wrote {output.name}")


if __name__ == "__main__":
    main()
