"""
Core module - Shared configuration, errors, logging and mesh handling.
"""

from strata.core.config import ConfigManager, SlicerSettings, load_settings
from strata.core.exceptions import (
    StrataError,
    ConfigurationError,
    GeometryError,
    SlicingError,
    EngineNotReadyError,
    SliceStateError,
)
from strata.core.geometry import (
    GeometryConverter,
    GeometryLoader,
    BoundingBox,
    mesh_triangles,
)

__all__ = [
    # Config
    "ConfigManager",
    "SlicerSettings",
    "load_settings",
    # Exceptions
    "StrataError",
    "ConfigurationError",
    "GeometryError",
    "SlicingError",
    "EngineNotReadyError",
    "SliceStateError",
    # Geometry
    "GeometryConverter",
    "GeometryLoader",
    "BoundingBox",
    "mesh_triangles",
]
