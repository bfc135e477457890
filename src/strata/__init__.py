"""
Strata - Layer slicer for triangle meshes.

Cuts a mesh into horizontal layers and derives, per layer, the shells,
floors, roofs, support and infill an extrusion printer traces.
"""

__version__ = "0.1.0"
__author__ = "Strata Contributors"

from strata.core.config import ConfigManager, SlicerSettings
from strata.slicing.model import Model

__all__ = [
    "__version__",
    "ConfigManager",
    "SlicerSettings",
    "Model",
]
