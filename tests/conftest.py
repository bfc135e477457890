"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest
import trimesh

from strata.core.config import SlicerSettings
from strata.slicing.segments import Segment


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_dir(temp_dir):
    """Create a config directory with one slicer profile."""
    config_dir = temp_dir / "config"
    (config_dir / "profiles").mkdir(parents=True)

    profile = """
slicer:
  nozzle_diameter: 0.4
  layer_height: 0.3
  shell_count: 2
  floor_count: 3
  roof_count: 3
"""
    (config_dir / "profiles" / "draft.yaml").write_text(profile)
    return config_dir


@pytest.fixture
def settings():
    """Default settings with skirt and support off, one floor and one roof."""
    return SlicerSettings(
        floor_count=1,
        roof_count=1,
        support_enabled=False,
        skirt_enabled=False,
    )


def square_segments(size=1.0, z=0.0, origin=(0.0, 0.0)):
    """Counter-clockwise square as four segments."""
    x0, y0 = origin
    corners = [
        (x0, y0, z),
        (x0 + size, y0, z),
        (x0 + size, y0 + size, z),
        (x0, y0 + size, z),
    ]
    return [Segment(corners[i], corners[(i + 1) % 4]) for i in range(4)]


@pytest.fixture
def make_square():
    """Factory for square segment loops."""
    return square_segments


@pytest.fixture
def unit_square():
    return square_segments()


@pytest.fixture
def box_mesh():
    """10 x 10 x 2 mm box centred on the origin."""
    return trimesh.creation.box(extents=[10.0, 10.0, 2.0])


@pytest.fixture
def overhang_mesh():
    """2 x 2 mm pillar (z 0..2) carrying a 10 x 10 mm plate (z 2..3)."""
    pillar = trimesh.creation.box(extents=[2.0, 2.0, 2.0])
    pillar.apply_translation([0.0, 0.0, 1.0])
    plate = trimesh.creation.box(extents=[10.0, 10.0, 1.0])
    plate.apply_translation([0.0, 0.0, 2.5])
    return trimesh.util.concatenate([pillar, plate])
