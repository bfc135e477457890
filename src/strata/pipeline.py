"""
Pipeline orchestrator for an end-to-end slicing run.

Chains: mesh load -> (optional) tree support -> slice + region passes -> toolpath

Each step is timed and isolated: a failing step is recorded in the result
and stops the run, leaving whatever earlier steps produced available to the
caller.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import trimesh

from strata.core.config import SlicerSettings
from strata.core.exceptions import ConfigurationError
from strata.core.geometry import GeometryLoader
from strata.core.logging import get_logger
from strata.slicing.model import Model
from strata.slicing.toolpath import Toolpath

logger = get_logger(__name__)

# Returns a new mesh that already contains support structures
TreeSupportGenerator = Callable[[trimesh.Trimesh, SlicerSettings], trimesh.Trimesh]


@dataclass
class PipelineConfig:
    """Configuration for a single pipeline run."""

    mesh_path: Optional[str] = None
    mesh: Optional[trimesh.Trimesh] = None
    settings: SlicerSettings = field(default_factory=SlicerSettings)


@dataclass
class StepResult:
    """Result of a single pipeline step."""

    name: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    duration_s: float = 0.0


@dataclass
class PipelineResult:
    """Result of a complete pipeline run."""

    success: bool
    mesh: Optional[trimesh.Trimesh] = None
    model: Optional[Model] = None
    toolpath: Optional[Toolpath] = None
    steps: List[StepResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)
    step_completed: str = ""  # Last step that completed successfully


# Type alias for progress callback: (step_name, fraction 0.0-1.0)
ProgressCallback = Callable[[str, float], None]


def _noop_callback(step: str, pct: float) -> None:
    pass


class SlicingPipeline:
    """End-to-end slicing pipeline.

    Usage:
        pipeline = SlicingPipeline()
        result = pipeline.execute(PipelineConfig(mesh_path="part.stl"))
        if result.success:
            print(result.toolpath.get_total_length())
    """

    def __init__(
        self,
        tree_support: Optional[TreeSupportGenerator] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self._tree_support = tree_support
        self._progress = progress_callback or _noop_callback

    def execute(self, config: PipelineConfig) -> PipelineResult:
        """Run load, tree support, slicing and toolpath export in order."""
        result = PipelineResult(success=False)
        settings = config.settings

        if not self._record(result, self._run_step("load", lambda: self._load(config))):
            return result
        result.mesh = result.steps[-1].data

        if settings.tree_support_enabled:
            step = self._run_step(
                "tree_support", lambda: self._generate_tree_support(result.mesh, settings)
            )
            if not self._record(result, step):
                return result
            result.mesh = step.data

        step = self._run_step("slice", lambda: Model.from_mesh(result.mesh, settings))
        if not self._record(result, step):
            return result
        result.model = step.data

        step = self._run_step("toolpath", result.model.to_toolpath)
        if not self._record(result, step):
            return result
        result.toolpath = step.data

        result.success = True
        return result

    @staticmethod
    def _load(config: PipelineConfig) -> trimesh.Trimesh:
        if config.mesh is not None:
            return config.mesh
        if config.mesh_path is None:
            raise ConfigurationError("Pipeline needs either mesh or mesh_path")
        return GeometryLoader.load(Path(config.mesh_path))

    def _generate_tree_support(
        self, mesh: trimesh.Trimesh, settings: SlicerSettings
    ) -> trimesh.Trimesh:
        if self._tree_support is None:
            raise ConfigurationError(
                "tree_support_enabled is set but no tree support generator was given"
            )
        return self._tree_support(mesh, settings)

    @staticmethod
    def _record(result: PipelineResult, step: StepResult) -> bool:
        result.steps.append(step)
        if not step.success:
            result.errors.append(f"{step.name} failed: {step.error}")
            return False
        result.step_completed = step.name
        result.timings[step.name] = step.duration_s
        return True

    def _run_step(self, name: str, fn: Callable) -> StepResult:
        """Execute a single pipeline step with timing and error handling."""
        self._progress(name, 0.0)
        t0 = time.perf_counter()
        try:
            data = fn()
            duration = time.perf_counter() - t0
            self._progress(name, 1.0)
            logger.info("pipeline_step_complete", step=name, duration_s=round(duration, 2))
            return StepResult(name=name, success=True, data=data, duration_s=duration)
        except Exception as e:
            duration = time.perf_counter() - t0
            logger.error("pipeline_step_failed", step=name, duration_s=round(duration, 2), error=str(e))
            return StepResult(
                name=name, success=False, error=str(e), duration_s=duration
            )
