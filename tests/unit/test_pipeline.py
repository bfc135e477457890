"""
Tests for the slicing pipeline orchestrator.

Tests validate step chaining, partial failure, progress callbacks and the
tree-support mesh substitution, using small trimesh primitives.
"""

import pytest
import trimesh
from unittest.mock import MagicMock, patch

from strata.core.config import SlicerSettings
from strata.pipeline import PipelineConfig, PipelineResult, SlicingPipeline


@pytest.fixture
def box_config(box_mesh, settings):
    return PipelineConfig(mesh=box_mesh, settings=settings)


@pytest.mark.unit
class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig(mesh_path="test.stl")
        assert config.mesh_path == "test.stl"
        assert config.mesh is None
        assert config.settings == SlicerSettings()


@pytest.mark.unit
class TestPipelineExecution:
    def test_full_pipeline_success(self, box_config):
        result = SlicingPipeline().execute(box_config)

        assert result.success is True
        assert result.model is not None
        assert result.model.layer_count == 10
        assert result.toolpath is not None
        assert result.step_completed == "toolpath"
        assert [s.name for s in result.steps] == ["load", "slice", "toolpath"]
        assert set(result.timings) == {"load", "slice", "toolpath"}
        assert result.errors == []

    def test_load_from_path(self, box_mesh, settings, temp_dir):
        path = temp_dir / "box.stl"
        box_mesh.export(str(path))

        result = SlicingPipeline().execute(PipelineConfig(mesh_path=str(path), settings=settings))

        assert result.success is True
        assert result.model.layer_count == 10

    def test_missing_file_stops_at_load(self, settings, temp_dir):
        config = PipelineConfig(mesh_path=str(temp_dir / "missing.stl"), settings=settings)
        result = SlicingPipeline().execute(config)

        assert result.success is False
        assert result.step_completed == ""
        assert len(result.steps) == 1
        assert "File not found" in result.errors[0]

    def test_no_mesh_given(self, settings):
        result = SlicingPipeline().execute(PipelineConfig(settings=settings))
        assert result.success is False
        assert result.errors[0].startswith("load failed")

    def test_slice_failure_keeps_mesh(self, box_config):
        with patch("strata.pipeline.Model.from_mesh", side_effect=RuntimeError("boom")):
            result = SlicingPipeline().execute(box_config)

        assert result.success is False
        assert result.mesh is box_config.mesh
        assert result.model is None
        assert result.step_completed == "load"
        assert result.errors == ["slice failed: boom"]


@pytest.mark.unit
class TestTreeSupport:
    def test_generator_required(self, box_mesh, settings):
        config = PipelineConfig(
            mesh=box_mesh, settings=settings.with_overrides(tree_support_enabled=True)
        )
        result = SlicingPipeline().execute(config)

        assert result.success is False
        assert result.step_completed == "load"
        assert "tree support generator" in result.errors[0]

    def test_mesh_substituted(self, box_mesh, settings):
        taller = trimesh.creation.box(extents=[10.0, 10.0, 4.0])
        generator = MagicMock(return_value=taller)
        config = PipelineConfig(
            mesh=box_mesh, settings=settings.with_overrides(tree_support_enabled=True)
        )

        result = SlicingPipeline(tree_support=generator).execute(config)

        generator.assert_called_once_with(box_mesh, config.settings)
        assert result.success is True
        assert result.mesh is taller
        assert result.model.layer_count == 20

    def test_generator_skipped_when_disabled(self, box_config):
        generator = MagicMock()
        SlicingPipeline(tree_support=generator).execute(box_config)
        generator.assert_not_called()


@pytest.mark.unit
class TestProgressCallback:
    def test_callback_called(self, box_config):
        calls = []
        pipeline = SlicingPipeline(progress_callback=lambda step, pct: calls.append((step, pct)))
        pipeline.execute(box_config)

        assert ("load", 0.0) in calls
        assert ("load", 1.0) in calls
        assert ("toolpath", 1.0) in calls

    def test_failed_step_not_completed(self, settings):
        calls = []
        pipeline = SlicingPipeline(progress_callback=lambda step, pct: calls.append((step, pct)))
        pipeline.execute(PipelineConfig(settings=settings))

        assert calls == [("load", 0.0)]


@pytest.mark.unit
class TestPipelineResult:
    def test_defaults(self):
        result = PipelineResult(success=False)
        assert result.steps == []
        assert result.errors == []
        assert result.timings == {}
        assert result.step_completed == ""
