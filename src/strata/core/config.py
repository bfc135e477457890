"""
Configuration management for strata.

Handles loading, validation, and access to slicer settings. A single frozen
:class:`SlicerSettings` instance is shared by every slice of a model.
"""

from dataclasses import dataclass, field
from math import pi
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from strata.core.exceptions import ConfigurationError

DEFAULT_EPSILON = 1e-6


class SlicerSettings(BaseModel):
    """Print settings shared by all slices of a model.

    Spacing settings are sparsity factors expressed in nozzle widths, so
    ``infill_sparsity=5`` with a 0.4 mm nozzle spaces infill lines 2 mm apart.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    nozzle_diameter: float = Field(default=0.4, gt=0)
    layer_height: float = Field(default=0.2, gt=0)

    shell_count: int = Field(default=1, ge=1)
    floor_count: int = Field(default=2, ge=0)
    roof_count: int = Field(default=2, ge=0)

    infill_sparsity: float = Field(default=5.0, gt=0)
    support_sparsity: float = Field(default=8.0, gt=0)
    infill_overlap: float = Field(default=0.1, ge=0, le=0.5)
    infill_pattern: str = "grid"
    support_pattern: str = "lines"

    support_enabled: bool = True
    tree_support_enabled: bool = False

    # Tolerances
    epsilon: float = Field(default=DEFAULT_EPSILON, gt=0)
    simplify_tolerance: float = Field(default=1e-9, ge=0)
    intersection_offset: float = Field(default=1e-8, ge=0)

    skirt_enabled: bool = True
    skirt_distance: float = Field(default=10.0, ge=0)
    bed_center: tuple[float, float] = (110.0, 110.0)

    # Speeds in mm/s
    shell_speed: float = Field(default=50.0, gt=0)
    floor_speed: float = Field(default=50.0, gt=0)
    roof_speed: float = Field(default=50.0, gt=0)
    infill_speed: float = Field(default=50.0, gt=0)
    support_speed: float = Field(default=50.0, gt=0)
    travel_speed: float = Field(default=150.0, gt=0)

    extrusion_multiplier: float = Field(default=0.98, gt=0)
    filament_diameter: float = Field(default=1.75, gt=0)

    @model_validator(mode="after")
    def _check_patterns(self) -> "SlicerSettings":
        from strata.slicing.infill_patterns import INFILL_PATTERNS

        for name in (self.infill_pattern, self.support_pattern):
            if name not in INFILL_PATTERNS:
                raise ValueError(
                    f"unknown fill pattern {name!r}; "
                    f"expected one of {sorted(INFILL_PATTERNS)}"
                )
        return self

    @property
    def tool_width(self) -> float:
        return self.nozzle_diameter

    @property
    def half_tool_width(self) -> float:
        return self.nozzle_diameter / 2.0

    @property
    def infill_spacing(self) -> float:
        return self.infill_sparsity * self.nozzle_diameter

    @property
    def support_spacing(self) -> float:
        return self.support_sparsity * self.nozzle_diameter

    @property
    def filament_area(self) -> float:
        """Cross-section of the filament in mm^2."""
        return pi * (self.filament_diameter / 2.0) ** 2

    def with_overrides(self, **overrides: Any) -> "SlicerSettings":
        """Return a validated copy with ``None`` overrides ignored."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return settings_from_dict(data)


def settings_from_dict(data: dict[str, Any]) -> SlicerSettings:
    """Validate a mapping into settings, wrapping validation failures."""
    try:
        return SlicerSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid slicer settings",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


def load_settings(path: str | Path) -> SlicerSettings:
    """
    Load slicer settings from a YAML file.

    The file may hold the settings at top level or under a ``slicer:`` key.

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse settings file: {path}",
            details={"error": str(e)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file must contain a mapping: {path}")
    if "slicer" in data:
        data = data["slicer"] or {}
    return settings_from_dict(data)


def dump_settings(settings: SlicerSettings, path: str | Path) -> None:
    """Write settings as YAML under a ``slicer:`` key."""
    data = settings.model_dump()
    data["bed_center"] = list(data["bed_center"])
    with open(path, "w") as f:
        yaml.safe_dump({"slicer": data}, f, sort_keys=False)


@dataclass
class ConfigManager:
    """
    Central configuration manager for named slicer profiles.

    Loads and validates profiles from ``<config_dir>/profiles/*.yaml``.

    Example:
        >>> config = ConfigManager(config_dir=Path("config"))
        >>> settings = config.get_profile("pla_0.2mm")
    """

    config_dir: Path
    _profiles: dict[str, SlicerSettings] = field(default_factory=dict, init=False)
    _loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        """Initialize configuration manager."""
        self.config_dir = Path(self.config_dir)
        if not self.config_dir.exists():
            raise ConfigurationError(
                f"Configuration directory not found: {self.config_dir}"
            )

    def load(self) -> None:
        """Load all profiles from disk."""
        profiles_dir = self.config_dir / "profiles"
        if profiles_dir.exists():
            for config_file in sorted(profiles_dir.glob("*.yaml")):
                self._profiles[config_file.stem] = load_settings(config_file)
        self._loaded = True

    def get_profile(self, name: str) -> SlicerSettings:
        """
        Get slicer settings by profile name.

        Args:
            name: Profile name (without .yaml extension)

        Returns:
            SlicerSettings instance

        Raises:
            ConfigurationError: If profile not found
        """
        if not self._loaded:
            self.load()

        if name not in self._profiles:
            raise ConfigurationError(
                f"Slicer profile not found: {name}",
                details={"available": list(self._profiles.keys())},
            )
        return self._profiles[name]

    def list_profiles(self) -> list[str]:
        """List available profile names."""
        if not self._loaded:
            self.load()
        return list(self._profiles.keys())
