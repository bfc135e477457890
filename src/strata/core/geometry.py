"""
Mesh handling for strata using trimesh and COMPAS.

Provides utilities for loading meshes, converting between COMPAS and trimesh
representations, and extracting the triangle soup and bounds the slicer
consumes.
"""

from pathlib import Path
from typing import Any, NamedTuple

import numpy as np
import trimesh
from compas.datastructures import Mesh as CompasMesh

from strata.core.exceptions import GeometryError


class GeometryConverter:
    """
    Converter between different geometry representations.

    Handles conversion between COMPAS and Trimesh meshes.
    """

    @staticmethod
    def trimesh_to_compas(mesh: trimesh.Trimesh) -> CompasMesh:
        """
        Convert Trimesh mesh to COMPAS Mesh.

        Raises:
            GeometryError: If conversion fails
        """
        try:
            vertices = mesh.vertices.tolist()
            faces = mesh.faces.tolist()
            return CompasMesh.from_vertices_and_faces(vertices, faces)
        except Exception as e:
            raise GeometryError(f"Failed to convert Trimesh to COMPAS: {e}") from e

    @staticmethod
    def compas_to_trimesh(mesh: CompasMesh) -> trimesh.Trimesh:
        """
        Convert COMPAS Mesh to Trimesh.

        Raises:
            GeometryError: If conversion fails
        """
        try:
            vertices = [mesh.vertex_coordinates(v) for v in mesh.vertices()]
            faces = [mesh.face_vertices(f) for f in mesh.faces()]
            return trimesh.Trimesh(vertices=vertices, faces=faces, process=False)
        except Exception as e:
            raise GeometryError(f"Failed to convert COMPAS to Trimesh: {e}") from e

    @staticmethod
    def to_trimesh(mesh: Any) -> trimesh.Trimesh:
        """Accept a trimesh or COMPAS mesh and return a trimesh."""
        if isinstance(mesh, trimesh.Trimesh):
            return mesh
        if isinstance(mesh, CompasMesh):
            return GeometryConverter.compas_to_trimesh(mesh)
        raise GeometryError(f"Unsupported mesh type: {type(mesh).__name__}")


class GeometryLoader:
    """
    Loads meshes from various file formats.

    Supports STL, OBJ, PLY and OFF via trimesh. Scenes are flattened into a
    single mesh.
    """

    SUPPORTED_FORMATS = {".stl", ".obj", ".ply", ".off"}

    @classmethod
    def load(cls, file_path: str | Path, **kwargs: Any) -> trimesh.Trimesh:
        """
        Load a mesh from file.

        Args:
            file_path: Path to geometry file
            **kwargs: Additional arguments passed to trimesh.load

        Raises:
            GeometryError: If file format is unsupported or loading fails
        """
        path = Path(file_path)

        if not path.exists():
            raise GeometryError(f"File not found: {path}")

        if path.suffix.lower() not in cls.SUPPORTED_FORMATS:
            raise GeometryError(
                f"Unsupported format: {path.suffix}. "
                f"Supported formats: {cls.SUPPORTED_FORMATS}"
            )

        try:
            loaded = trimesh.load(str(path), **kwargs)
        except Exception as e:
            raise GeometryError(f"Failed to load geometry from {path}: {e}") from e

        if isinstance(loaded, trimesh.Scene):
            meshes = [
                geom for geom in loaded.geometry.values()
                if isinstance(geom, trimesh.Trimesh)
            ]
            if not meshes:
                raise GeometryError(f"No triangle meshes found in {path}")
            return trimesh.util.concatenate(meshes)
        if isinstance(loaded, trimesh.Trimesh):
            return loaded
        raise GeometryError(f"Unexpected geometry type: {type(loaded)}")


class BoundingBox(NamedTuple):
    """Axis-aligned bounds of a mesh."""

    xmin: float
    ymin: float
    zmin: float
    xmax: float
    ymax: float
    zmax: float

    @classmethod
    def from_triangles(cls, triangles: np.ndarray) -> "BoundingBox":
        """Bounds of an ``(N, 3, 3)`` triangle array."""
        points = np.asarray(triangles, dtype=float).reshape(-1, 3)
        if len(points) == 0:
            raise GeometryError("Cannot compute bounds of an empty mesh")
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        return cls(*(float(v) for v in lo), *(float(v) for v in hi))

    @property
    def center_xy(self) -> tuple[float, float]:
        return ((self.xmin + self.xmax) / 2.0, (self.ymin + self.ymax) / 2.0)

    @property
    def height(self) -> float:
        return self.zmax - self.zmin


def mesh_triangles(mesh: Any) -> np.ndarray:
    """
    Return the triangle soup of a mesh as an ``(N, 3, 3)`` float array.

    Accepts trimesh meshes, COMPAS meshes, or anything array-like already
    shaped as triangles.
    """
    if isinstance(mesh, (trimesh.Trimesh, CompasMesh)):
        return np.asarray(GeometryConverter.to_trimesh(mesh).triangles, dtype=float)

    triangles = np.asarray(mesh, dtype=float)
    if triangles.ndim != 3 or triangles.shape[1:] != (3, 3):
        raise GeometryError(
            "Triangles must have shape (N, 3, 3)",
            details={"shape": list(triangles.shape)},
        )
    return triangles
