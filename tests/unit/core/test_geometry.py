"""
Tests for geometry module.
"""

import numpy as np
import pytest
import trimesh
from compas.datastructures import Mesh as CompasMesh

from strata.core.exceptions import GeometryError
from strata.core.geometry import (
    BoundingBox,
    GeometryConverter,
    GeometryLoader,
    mesh_triangles,
)


@pytest.fixture
def simple_trimesh():
    """Create a simple trimesh cube for testing."""
    return trimesh.creation.box(extents=[2.0, 2.0, 2.0])


@pytest.fixture
def simple_compas_mesh():
    """Create a simple COMPAS mesh for testing."""
    vertices = [
        [0, 0, 0],
        [1, 0, 0],
        [1, 1, 0],
        [0, 1, 0],
        [0, 0, 1],
        [1, 0, 1],
        [1, 1, 1],
        [0, 1, 1],
    ]
    faces = [
        [0, 1, 2, 3],  # bottom
        [4, 5, 6, 7],  # top
        [0, 1, 5, 4],  # front
        [2, 3, 7, 6],  # back
        [0, 3, 7, 4],  # left
        [1, 2, 6, 5],  # right
    ]
    return CompasMesh.from_vertices_and_faces(vertices, faces)


class TestGeometryConverter:
    """Tests for GeometryConverter."""

    def test_trimesh_to_compas(self, simple_trimesh):
        """Test conversion from Trimesh to COMPAS."""
        compas_mesh = GeometryConverter.trimesh_to_compas(simple_trimesh)

        assert isinstance(compas_mesh, CompasMesh)
        assert compas_mesh.number_of_vertices() == simple_trimesh.vertices.shape[0]
        assert compas_mesh.number_of_faces() == simple_trimesh.faces.shape[0]

    def test_compas_to_trimesh(self, simple_compas_mesh):
        """Test conversion from COMPAS to Trimesh."""
        tmesh = GeometryConverter.compas_to_trimesh(simple_compas_mesh)

        assert isinstance(tmesh, trimesh.Trimesh)
        assert len(tmesh.vertices) == simple_compas_mesh.number_of_vertices()
        # Trimesh triangulates quad faces, so we expect more faces
        assert len(tmesh.faces) >= simple_compas_mesh.number_of_faces()

    def test_roundtrip_conversion(self, simple_trimesh):
        """Test roundtrip conversion preserves geometry."""
        compas_mesh = GeometryConverter.trimesh_to_compas(simple_trimesh)
        back_to_trimesh = GeometryConverter.compas_to_trimesh(compas_mesh)

        assert len(back_to_trimesh.vertices) == simple_trimesh.vertices.shape[0]
        assert len(back_to_trimesh.faces) == simple_trimesh.faces.shape[0]

    def test_to_trimesh_rejects_other_types(self):
        """Test unsupported inputs raise GeometryError."""
        with pytest.raises(GeometryError, match="Unsupported mesh type"):
            GeometryConverter.to_trimesh("not a mesh")


class TestGeometryLoader:
    """Tests for GeometryLoader."""

    def test_supported_formats(self):
        """Test that supported formats are defined."""
        assert ".stl" in GeometryLoader.SUPPORTED_FORMATS
        assert ".obj" in GeometryLoader.SUPPORTED_FORMATS

    def test_load_nonexistent_file(self):
        """Test loading non-existent file raises error."""
        with pytest.raises(GeometryError, match="File not found"):
            GeometryLoader.load("nonexistent_file.stl")

    def test_load_unsupported_format(self, tmp_path):
        """Test loading unsupported format raises error."""
        dummy_file = tmp_path / "test.xyz"
        dummy_file.write_text("dummy content")

        with pytest.raises(GeometryError, match="Unsupported format"):
            GeometryLoader.load(dummy_file)

    def test_load_stl(self, simple_trimesh, tmp_path):
        """Test loading an STL file written by trimesh."""
        output_file = tmp_path / "test.stl"
        simple_trimesh.export(str(output_file))

        loaded_mesh = GeometryLoader.load(output_file)

        assert isinstance(loaded_mesh, trimesh.Trimesh)
        assert len(loaded_mesh.faces) == len(simple_trimesh.faces)
        assert np.allclose(loaded_mesh.bounds, simple_trimesh.bounds)


class TestBoundingBox:
    """Tests for BoundingBox."""

    def test_from_triangles(self, simple_trimesh):
        """Test bounds of a centred cube."""
        bbox = BoundingBox.from_triangles(simple_trimesh.triangles)

        assert bbox.xmin == pytest.approx(-1.0)
        assert bbox.zmax == pytest.approx(1.0)
        assert bbox.height == pytest.approx(2.0)
        assert bbox.center_xy == pytest.approx((0.0, 0.0))

    def test_empty(self):
        """Test bounds of nothing raise GeometryError."""
        with pytest.raises(GeometryError):
            BoundingBox.from_triangles(np.empty((0, 3, 3)))


class TestMeshTriangles:
    """Tests for mesh_triangles."""

    def test_from_trimesh(self, simple_trimesh):
        triangles = mesh_triangles(simple_trimesh)
        assert triangles.shape == (12, 3, 3)

    def test_from_compas(self, simple_compas_mesh):
        triangles = mesh_triangles(simple_compas_mesh)
        assert triangles.shape == (12, 3, 3)
        assert triangles[:, :, 2].max() == pytest.approx(1.0)

    def test_from_array(self):
        tri = [[[0, 0, 0], [1, 0, 0], [0, 1, 1]]]
        assert mesh_triangles(tri).dtype == np.float64

    def test_bad_shape(self):
        with pytest.raises(GeometryError) as exc_info:
            mesh_triangles(np.zeros((2, 4, 3)))
        assert exc_info.value.details["shape"] == [2, 4, 3]
