"""
Command-line interface for strata.

Provides commands for slicing meshes and managing slicer profiles.
"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from strata import __version__
from strata.core.config import (
    ConfigManager,
    SlicerSettings,
    dump_settings,
    load_settings,
)
from strata.core.exceptions import StrataError
from strata.core.logging import configure_logging
from strata.pipeline import PipelineConfig, SlicingPipeline

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default="config",
    help="Configuration directory",
)
@click.option("--log-level", default="WARNING", help="Minimum log level")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.pass_context
def main(ctx: click.Context, config_dir: Path, log_level: str, json_logs: bool) -> None:
    """Strata - layer slicer for triangle meshes."""
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir
    configure_logging(level=log_level, json_output=json_logs)


def _resolve_settings(
    config_dir: Path, config: Optional[str], profile: Optional[str]
) -> SlicerSettings:
    if config and profile:
        raise click.UsageError("--config and --profile are mutually exclusive")
    if config:
        return load_settings(config)
    if profile:
        return ConfigManager(config_dir).get_profile(profile)
    return SlicerSettings()


# =============================================================================
# Slicing
# =============================================================================


@main.command("slice")
@click.argument("mesh_path", type=click.Path(exists=True, path_type=Path))
@click.option("--config", "-c", "config_file", type=click.Path(exists=True), help="Settings YAML file")
@click.option("--profile", "-p", help="Named profile from the config directory")
@click.option("--layer-height", type=float, help="Override layer height (mm)")
@click.option("--shells", type=int, help="Override shell count")
@click.option("--floors", type=int, help="Override floor count")
@click.option("--roofs", type=int, help="Override roof count")
@click.option("--no-support", is_flag=True, help="Disable generated support")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Write toolpath JSON here")
@click.pass_context
def slice_command(
    ctx: click.Context,
    mesh_path: Path,
    config_file: Optional[str],
    profile: Optional[str],
    layer_height: Optional[float],
    shells: Optional[int],
    floors: Optional[int],
    roofs: Optional[int],
    no_support: bool,
    output: Optional[Path],
) -> None:
    """Slice a mesh and report per-layer features."""
    try:
        settings = _resolve_settings(ctx.obj["config_dir"], config_file, profile)
        settings = settings.with_overrides(
            layer_height=layer_height,
            shell_count=shells,
            floor_count=floors,
            roof_count=roofs,
            support_enabled=False if no_support else None,
        )
    except StrataError as e:
        console.print(f"[red]✗[/red] {e}")
        raise SystemExit(1)

    with console.status(f"Slicing {mesh_path.name}..."):
        result = SlicingPipeline().execute(
            PipelineConfig(mesh_path=str(mesh_path), settings=settings)
        )

    if not result.success:
        for error in result.errors:
            console.print(f"[red]✗[/red] {error}")
        raise SystemExit(1)

    model = result.model
    table = Table(title=f"{mesh_path.name}: {model.layer_count} layers")
    table.add_column("Layer", justify="right", style="cyan")
    table.add_column("Z", justify="right")
    table.add_column("Shells", justify="right")
    table.add_column("Floor", justify="right")
    table.add_column("Roof", justify="right")
    table.add_column("Infill", justify="right")
    table.add_column("Support", justify="right")
    for slice_ in model:
        table.add_row(
            str(slice_.index),
            f"{slice_.z:.3f}",
            str(len(slice_.shells)),
            str(len(slice_.floor)),
            str(len(slice_.roof)),
            str(len(slice_.infill)),
            str(len(slice_.support)),
        )
    console.print(table)

    toolpath = result.toolpath
    console.print(f"  Path length: {toolpath.get_total_length():.1f} mm")
    console.print(f"  Filament:    {toolpath.get_extrusion_total(settings):.1f} mm")
    console.print(f"  Est. time:   {toolpath.get_build_time_estimate() / 60.0:.1f} min")

    if output:
        with open(output, "w") as f:
            json.dump(toolpath.to_dict(), f)
        console.print(f"[green]✓[/green] Wrote toolpath to {output}")


# =============================================================================
# Configuration Commands
# =============================================================================


@main.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
@click.option("--config", "-c", "config_file", type=click.Path(exists=True), help="Settings YAML file")
@click.option("--profile", "-p", help="Named profile from the config directory")
@click.pass_context
def config_show(ctx: click.Context, config_file: Optional[str], profile: Optional[str]) -> None:
    """Show effective slicer settings."""
    try:
        settings = _resolve_settings(ctx.obj["config_dir"], config_file, profile)
    except StrataError as e:
        console.print(f"[red]✗[/red] {e}")
        raise SystemExit(1)

    table = Table(title="Slicer Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


@config.command("init")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: Path, force: bool) -> None:
    """Write the default settings to a YAML file."""
    if path.exists() and not force:
        console.print(f"[red]✗[/red] {path} already exists (use --force to overwrite)")
        raise SystemExit(1)
    dump_settings(SlicerSettings(), path)
    console.print(f"[green]✓[/green] Wrote default settings to {path}")


@config.command("list-profiles")
@click.pass_context
def config_list_profiles(ctx: click.Context) -> None:
    """List available slicer profiles."""
    try:
        config_mgr = ConfigManager(ctx.obj["config_dir"])
        profiles = config_mgr.list_profiles()

        if not profiles:
            console.print("[yellow]No slicer profiles found.[/yellow]")
            return

        table = Table(title="Available Profiles")
        table.add_column("Name", style="cyan")
        table.add_column("Layer Height")
        table.add_column("Nozzle")
        table.add_column("Shells")

        for name in profiles:
            profile = config_mgr.get_profile(name)
            table.add_row(
                name,
                str(profile.layer_height),
                str(profile.nozzle_diameter),
                str(profile.shell_count),
            )

        console.print(table)

    except StrataError as e:
        console.print(f"[red]✗[/red] Failed to list profiles: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
