# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Command-line interface for meshheal.

Provides commands for:
- info: Load a mesh, check connectivity and volume, print statistics
- repair: Run the repair stages and save the result
- transform: Translate, scale, rotate or mirror a mesh
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from meshheal import __version__
from meshheal.colored_logging import setup_logging
from meshheal.core import (
    RepairOptions,
    load_mesh,
    load_repair_options,
    save_mesh,
    format_stats,
    repair as run_repair,
    translate_to,
    translate_by,
    scale_by,
    rotate_x,
    rotate_y,
    rotate_z,
    mirror_plane,
)

logger = logging.getLogger(__name__)

# CLI flag name -> RepairOptions field
REPAIR_FLAGS = {
    "fix_all": "fix_all",
    "exact": "exact",
    "nearby": "nearby",
    "remove_unconnected": "remove_unconnected",
    "fill_holes": "fill_holes",
    "normal_directions": "fix_normal_directions",
    "normal_values": "fix_normal_values",
    "reverse_all": "reverse_all",
}


def _load_or_exit(input_path: Path):
    click.echo(f"Loading: {input_path}")
    try:
        return load_mesh(input_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error loading mesh: {e}")
        sys.exit(1)


def _output_path(input_path: Path, output_path: Optional[str], suffix: str) -> Path:
    if output_path:
        return Path(output_path)
    return input_path.parent / f"{input_path.stem}_{suffix}.stl"


@click.group()
@click.version_option(version=__version__, prog_name="meshheal")
def main():
    """
    meshheal - Repair triangle soups into consistently oriented solids.

    Use 'meshheal COMMAND --help' for more information on each command.
    """
    pass


@main.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Path to mesh file")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def info(input_path: str, json_output: bool, verbose: bool):
    """
    Check connectivity and volume of a mesh and print its statistics.

    Examples:

        meshheal info --input model.stl

        meshheal info -i model.stl --json
    """
    setup_logging(verbose)
    input_path = Path(input_path)
    mesh = _load_or_exit(input_path)

    report = run_repair(mesh, RepairOptions(exact=True, verbose=verbose))

    if json_output:
        data = {
            "error": mesh.error,
            "stats": mesh.stats.to_dict(),
            "mismatches": [m.to_dict() for m in report.mismatches],
        }
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(format_stats(mesh, f"Statistics: {input_path.name}"))
        if report.mismatches:
            click.echo(f"\n{len(report.mismatches)} neighbor mismatches found")


@main.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Path to input mesh file")
@click.option("--output", "-o", "output_path", type=click.Path(),
              help="Output file path (default: <input>_repaired.stl)")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True),
              help="Repair options file (JSON/YAML)")
@click.option("--fix-all", "fix_all", is_flag=True, help="Run every repair stage")
@click.option("--exact", is_flag=True, help="Only check for perfectly matched edges")
@click.option("--nearby", is_flag=True, help="Stitch edges that are close together")
@click.option("--tolerance", "-t", type=float, help="Initial nearby tolerance")
@click.option("--increment", type=float, help="Tolerance increment per iteration")
@click.option("--iterations", type=int, help="Number of nearby iterations")
@click.option("--remove-unconnected", "remove_unconnected", is_flag=True,
              help="Remove facets with no connected edge")
@click.option("--fill-holes", "fill_holes", is_flag=True, help="Add facets to fill holes")
@click.option("--normal-directions", "normal_directions", is_flag=True,
              help="Make facet windings consistent")
@click.option("--normal-values", "normal_values", is_flag=True,
              help="Recompute stored normals")
@click.option("--reverse-all", "reverse_all", is_flag=True, help="Reverse all facets")
@click.option("--report", "-r", "report_path", type=click.Path(),
              help="Path for JSON report output")
@click.option("--ascii", "ascii_format", is_flag=True, help="Write ASCII STL")
@click.option("--overwrite", is_flag=True, help="Overwrite existing output files")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def repair(
    input_path: str,
    output_path: Optional[str],
    config_path: Optional[str],
    tolerance: Optional[float],
    increment: Optional[float],
    iterations: Optional[int],
    report_path: Optional[str],
    ascii_format: bool,
    overwrite: bool,
    verbose: bool,
    **flags: bool,
):
    """
    Repair a mesh file.

    Without any repair flag (and without a config file) all stages run.

    Examples:

        meshheal repair --input model.stl

        meshheal repair -i model.stl --nearby --tolerance 0.01 --iterations 4

        meshheal repair -i model.stl -c options.yaml -o fixed.stl
    """
    setup_logging(verbose)
    input_path = Path(input_path)
    output_path = _output_path(input_path, output_path, "repaired")

    if output_path.exists() and not overwrite:
        click.echo(f"Error: Output file exists: {output_path}")
        click.echo("Use --overwrite to replace it.")
        sys.exit(1)

    if config_path:
        try:
            options = load_repair_options(config_path)
        except ValueError as e:
            click.echo(f"Error in repair options: {e}")
            sys.exit(1)
        click.echo(f"Using repair options: {config_path}")
    else:
        options = RepairOptions()

    for flag, field_name in REPAIR_FLAGS.items():
        if flags.get(flag):
            setattr(options, field_name, True)
    if tolerance is not None:
        options.tolerance = tolerance
        options.tolerance_override = True
    if increment is not None:
        options.increment = increment
        options.increment_override = True
    if iterations is not None:
        options.iterations = iterations
    if verbose:
        options.verbose = True
    if not options.any_repair_requested:
        options.fix_all = True

    mesh = _load_or_exit(input_path)
    click.echo(f"  Facets: {len(mesh):,}")

    report = run_repair(mesh, options)

    if mesh.error:
        click.echo("\nRepair failed: mesh has error flag set")
        sys.exit(1)

    click.echo(f"\nRepair completed in {report.duration_ms:.1f}ms")
    click.echo(f"  Stages: {', '.join(report.stages)}")
    click.echo(format_stats(mesh, f"Statistics: {input_path.name}"))

    click.echo(f"\nSaving: {output_path}")
    save_mesh(mesh, output_path, ascii_format=ascii_format)

    if report_path:
        report_path = Path(report_path)
        data = {
            "input": str(input_path),
            "output": str(output_path),
            "options": options.to_dict(),
            "report": report.to_dict(),
            "stats": mesh.stats.to_dict(),
        }
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, "w") as f:
            json.dump(data, f, indent=2)
        click.echo(f"Report saved: {report_path}")

    if report.mismatches:
        click.echo(f"\n⚠ {len(report.mismatches)} neighbor mismatches remain")
    elif mesh.is_fully_connected:
        click.echo("\n✓ All facets connected")


@main.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(exists=True),
              help="Path to input mesh file")
@click.option("--output", "-o", "output_path", type=click.Path(),
              help="Output file path (default: <input>_transformed.stl)")
@click.option("--translate", nargs=3, type=float, help="Move the bounding minimum to X Y Z")
@click.option("--move-by", "move_by", nargs=3, type=float, help="Move by X Y Z")
@click.option("--scale", type=float, help="Uniform scale factor")
@click.option("--scale-xyz", "scale_xyz", nargs=3, type=float, help="Per-axis scale factors")
@click.option("--rotate-x", "rotate_x_deg", type=float, help="Rotate about X (degrees)")
@click.option("--rotate-y", "rotate_y_deg", type=float, help="Rotate about Y (degrees)")
@click.option("--rotate-z", "rotate_z_deg", type=float, help="Rotate about Z (degrees)")
@click.option("--mirror", "mirror_planes", multiple=True, type=click.Choice(["xy", "yz", "xz"]),
              help="Mirror across a plane (repeatable)")
@click.option("--ascii", "ascii_format", is_flag=True, help="Write ASCII STL")
@click.option("--overwrite", is_flag=True, help="Overwrite existing output files")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def transform(
    input_path: str,
    output_path: Optional[str],
    translate,
    move_by,
    scale: Optional[float],
    scale_xyz,
    rotate_x_deg: Optional[float],
    rotate_y_deg: Optional[float],
    rotate_z_deg: Optional[float],
    mirror_planes,
    ascii_format: bool,
    overwrite: bool,
    verbose: bool,
):
    """
    Transform a mesh file.

    Transforms are applied in the order translate, move-by, scale,
    scale-xyz, rotate x/y/z, mirror.

    Examples:

        meshheal transform -i model.stl --translate 0 0 0 --rotate-z 90

        meshheal transform -i model.stl --scale 25.4 --mirror xy
    """
    setup_logging(verbose)
    input_path = Path(input_path)
    output_path = _output_path(input_path, output_path, "transformed")

    if output_path.exists() and not overwrite:
        click.echo(f"Error: Output file exists: {output_path}")
        click.echo("Use --overwrite to replace it.")
        sys.exit(1)

    mesh = _load_or_exit(input_path)

    if translate:
        translate_to(mesh, translate)
    if move_by:
        translate_by(mesh, move_by)
    if scale is not None:
        scale_by(mesh, scale)
    if scale_xyz:
        scale_by(mesh, scale_xyz)
    if rotate_x_deg is not None:
        rotate_x(mesh, rotate_x_deg)
    if rotate_y_deg is not None:
        rotate_y(mesh, rotate_y_deg)
    if rotate_z_deg is not None:
        rotate_z(mesh, rotate_z_deg)
    for plane in mirror_planes:
        mirror_plane(mesh, plane)

    if mesh.error:
        click.echo("Error: mesh has error flag set, nothing written")
        sys.exit(1)

    click.echo(f"Saving: {output_path}")
    save_mesh(mesh, output_path, ascii_format=ascii_format)


if __name__ == "__main__":
    main()
