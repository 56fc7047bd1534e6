# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Mesh loading, saving, and statistics reporting using trimesh.

This module converts between trimesh objects and the facet soup used by
the repair code, and formats MeshStats for humans.
"""

from pathlib import Path
from typing import Union
import logging

import numpy as np
import trimesh

from .mesh import Mesh
from .transforms import compute_bounds

logger = logging.getLogger(__name__)


def compute_shortest_edge(mesh: Mesh) -> float:
    """
    Store and return the length of the shortest non-zero edge.

    The nearby repair uses it as its default starting tolerance.
    """
    if len(mesh.vertices) == 0:
        mesh.stats.shortest_edge = 0.0
        return 0.0
    edges = np.roll(mesh.vertices, -1, axis=1) - mesh.vertices
    lengths = np.linalg.norm(edges, axis=-1).ravel()
    lengths = lengths[lengths > 0.0]
    mesh.stats.shortest_edge = float(lengths.min()) if len(lengths) else 0.0
    return mesh.stats.shortest_edge


def from_trimesh(mesh: trimesh.Trimesh) -> Mesh:
    """
    Build a facet soup from a trimesh object.

    Facet normals are taken from trimesh; bounds and the shortest edge are
    computed. Non-finite coordinates set the error flag.
    """
    vertices = np.array(mesh.triangles, dtype=np.float64)
    normals = np.array(mesh.face_normals, dtype=np.float64) if len(vertices) else None
    result = Mesh(vertices, normals)

    if not np.all(np.isfinite(result.vertices)):
        logger.error("Mesh contains non-finite coordinates")
        result.error = True
        return result

    compute_bounds(result)
    compute_shortest_edge(result)
    return result


def to_trimesh(mesh: Mesh) -> trimesh.Trimesh:
    """Convert to a trimesh object through the shared-vertex view."""
    shared = mesh.shared_vertices
    return trimesh.Trimesh(
        vertices=shared.vertices.copy(),
        faces=shared.indices.copy(),
        face_normals=mesh.normals.copy() if len(mesh) else None,
        process=False,
    )


def load_mesh(path: Union[str, Path]) -> Mesh:
    """
    Load a mesh from file.

    Supports STL (ASCII and binary), OBJ, PLY, and other formats
    supported by trimesh.

    Args:
        path: Path to mesh file

    Returns:
        Mesh with bounds and shortest edge computed

    Raises:
        FileNotFoundError: If file does not exist
        ValueError: If file cannot be loaded as a mesh
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Mesh file not found: {path}")

    logger.info(f"Loading mesh from: {path}")

    try:
        loaded = trimesh.load(str(path), force='mesh', process=False)
    except Exception as e:
        raise ValueError(f"Failed to load mesh: {e}") from e

    # If it's a Scene (multiple objects), concatenate them
    if isinstance(loaded, trimesh.Scene):
        geometries = list(loaded.geometry.values())
        if len(geometries) == 0:
            raise ValueError("No geometry found in file")
        elif len(geometries) == 1:
            loaded = geometries[0]
        else:
            logger.info(f"Concatenating {len(geometries)} geometries from scene")
            loaded = trimesh.util.concatenate(geometries)

    mesh = from_trimesh(loaded)
    logger.info(f"Loaded mesh: {len(mesh)} facets")
    return mesh


def save_mesh(
    mesh: Mesh,
    path: Union[str, Path],
    file_type: str = "stl",
    ascii_format: bool = False
) -> None:
    """
    Save a mesh to file.

    Args:
        mesh: The mesh to save
        path: Output file path
        file_type: File format (stl, obj, ply, etc.)
        ascii_format: For STL, use ASCII format instead of binary
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Saving mesh to: {path}")

    exported = to_trimesh(mesh)
    if file_type.lower() == "stl" and ascii_format:
        exported.export(str(path), file_type="stl_ascii")
    else:
        exported.export(str(path), file_type=file_type)


def _format_vector(v) -> str:
    return "  ".join(f"{float(c):.6f}" for c in v)


def format_stats(mesh: Mesh, title: str = "Mesh Statistics") -> str:
    """
    Format mesh statistics as a human-readable string.

    Args:
        mesh: The mesh whose stats to format
        title: Title for the output

    Returns:
        Formatted string
    """
    s = mesh.stats
    volume = "not computed" if s.volume is None else f"{s.volume:.6f}"
    lines = [
        f"\n{title}",
        "=" * 50,
        f"Min:  {_format_vector(s.min)}",
        f"Max:  {_format_vector(s.max)}",
        f"Size: {_format_vector(s.size)}",
        f"Bounding diameter: {s.bounding_diameter:.6f}",
        f"Shortest edge: {s.shortest_edge:.6f}",
        f"Volume: {volume}",
        "",
        f"Number of facets: {s.number_of_facets:,} (originally {s.original_num_facets:,})",
        f"Number of parts: {s.number_of_parts}",
        "",
        "Facets with connected edges:",
        f"  1 or more: {s.connected_facets_1_edge}",
        f"  2 or more: {s.connected_facets_2_edge}",
        f"  all 3:     {s.connected_facets_3_edge}",
        "",
        "Facets with unconnected edges:",
        f"  1: {s.facets_w_1_bad_edge}",
        f"  2: {s.facets_w_2_bad_edge}",
        f"  3: {s.facets_w_3_bad_edge}",
        "",
        f"Degenerate facets: {s.degenerate_facets}",
        f"Edges fixed: {s.edges_fixed}",
        f"Facets removed: {s.facets_removed}",
        f"Facets added: {s.facets_added}",
        f"Facets reversed: {s.facets_reversed}",
        f"Backwards edges: {s.backwards_edges}",
        f"Normals fixed: {s.normals_fixed}",
        "=" * 50,
    ]
    if mesh.error:
        lines.insert(2, "ERROR: mesh has error flag set")
    return "\n".join(lines)


def print_stats(mesh: Mesh, title: str = "Mesh Statistics") -> None:
    """Print statistics in a readable format."""
    print(format_stats(mesh, title))
