"""Command-line interface for the contour generator."""

import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import get_config
from .exceptions import HgtContourError
from .models.settings import ContourSettings, TagSettings
from .services.contour_service import ContourService
from .services.entity_service import tile_bound
from .services.hgt_service import HgtService
from .services.pipeline_service import PipelineService
from .services.sink_service import OsmXmlWriter

console = Console()

TAG_OPTIONS = (
    "elev_key",
    "contour_key",
    "contour_val",
    "contour_ext_key",
    "contour_ext_major",
    "contour_ext_medium",
    "contour_ext_minor",
)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_config().log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_settings(config_path: Optional[str], interval: Optional[int], tag_overrides: dict) -> ContourSettings:
    """Settings from YAML (explicit or configured), with command-line overrides on top."""
    settings_path = Path(config_path) if config_path else get_config().settings_path
    settings = ContourSettings.from_yaml(settings_path) if settings_path else ContourSettings()

    data = settings.model_dump()
    if interval is not None:
        data["interval"] = interval
    tags = {k: tag_overrides[k] for k in TAG_OPTIONS if tag_overrides.get(k) is not None}
    data["tags"] = TagSettings(**{**data["tags"], **tags})
    return ContourSettings(**data)


@click.group()
@click.version_option(version=__version__)
def main():
    """HGT Contour Generator - Turn SRTM tiles into OSM contour lines."""
    pass


@main.command()
@click.argument("hgt_file", type=click.Path())
@click.option("--output", "-o", type=click.Path(), help="Output .osm file (default: <tile>.osm in output dir)")
@click.option("--interval", "-i", type=int, help="Elevation step between contour lines in meters [default: 25]")
@click.option("--config", "config_path", type=click.Path(exists=True), help="YAML settings file")
@click.option("--elev-key", help="Tag key for the elevation value [default: ele]")
@click.option("--contour-key", help="Contour tag key [default: contour]")
@click.option("--contour-val", help="Contour tag value [default: elevation]")
@click.option("--contour-ext-key", help="Magnitude band tag key [default: contour_ext]")
@click.option("--contour-ext-major", help="Band value for multiples of 500 [default: elevation_major]")
@click.option("--contour-ext-medium", help="Band value for multiples of 100 [default: elevation_medium]")
@click.option("--contour-ext-minor", help="Band value for other lines [default: elevation_minor]")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def convert(
    hgt_file: str,
    output: Optional[str],
    interval: Optional[int],
    config_path: Optional[str],
    verbose: bool,
    **tag_options,
):
    """Convert an HGT tile into an OSM XML file of contour lines."""
    _configure_logging(verbose)

    try:
        settings = _load_settings(config_path, interval, tag_options)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid settings:\n{e}")
        raise SystemExit(1)

    if output:
        output_path = Path(output)
    else:
        config = get_config()
        config.ensure_directories()
        output_path = config.output_dir / (Path(hgt_file).stem + ".osm")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    console.print(f"[bold]Tile:[/bold] {hgt_file}")
    console.print(f"[bold]Interval:[/bold] {settings.interval} m")

    pipeline = PipelineService(settings)
    try:
        with console.status("Tracing contours..."):
            summary = pipeline.run(hgt_file, OsmXmlWriter(output_path))
    except HgtContourError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    table = Table(title=f"{summary.tile.name} ({summary.tile.size}x{summary.tile.size})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Lines traced", str(summary.lines_traced))
    table.add_row("Lines skipped (elevation band)", str(summary.skipped_lines))
    table.add_row("Lines dropped (degenerate)", str(summary.dropped_lines))
    table.add_row("Nodes", str(summary.nodes))
    table.add_row("Ways", str(summary.ways))
    if summary.node_id_range:
        table.add_row("Node ids", "{} - {}".format(*summary.node_id_range))
    if summary.way_id_range:
        table.add_row("Way ids", "{} - {}".format(*summary.way_id_range))
    console.print(table)

    console.print(f"\n[green]Success![/green] Contours saved to: {output_path}")


@main.command()
@click.argument("hgt_file", type=click.Path())
@click.option("--interval", "-i", type=int, default=25, show_default=True, help="Elevation step between contour lines")
def info(hgt_file: str, interval: int):
    """Show tile geometry, elevation range and contour levels."""
    try:
        settings = ContourSettings(interval=interval)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid settings:\n{e}")
        raise SystemExit(1)

    try:
        tile = HgtService().read_tile(hgt_file)
    except HgtContourError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    bbox = tile_bound(tile).bbox
    elevation_range = tile.elevation_range(tuple(settings.nodata_values))
    levels = ContourService(settings).levels_for(tile.samples)

    table = Table(title=tile.name)
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Origin (lat, lon)", f"{tile.origin_lat}, {tile.origin_lon}")
    table.add_row("Grid", f"{tile.size} x {tile.size} ({tile.arc_seconds} arc-second)")
    table.add_row("Resolution", f"{tile.resolution:.9f} deg")
    table.add_row(
        "Bounds",
        f"{bbox.south:.6f} to {bbox.north:.6f} lat, {bbox.west:.6f} to {bbox.east:.6f} lon",
    )
    if elevation_range is None:
        table.add_row("Elevation", "no data")
    else:
        table.add_row("Elevation", f"{elevation_range[0]} to {elevation_range[1]} m")
    if levels:
        table.add_row("Contour levels", f"{len(levels)} ({levels[0]} to {levels[-1]} m)")
    else:
        table.add_row("Contour levels", "none")
    console.print(table)


if __name__ == "__main__":
    main()
