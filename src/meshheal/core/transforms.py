# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
In-place geometric transforms.

Every operation here moves all vertices of all facets and keeps the derived
state in step: bounding extents are updated incrementally where the
transform preserves axis alignment (translate, scale, mirror) and rescanned
otherwise (rotate, general affine), normals are recomputed whenever the
transform can change them, and the shared-vertex view is invalidated.
"""

from typing import Union
import logging
import math

import numpy as np

from .mesh import Mesh, requires_valid_mesh
from .normals import calculate_normals, reverse_all_facets

logger = logging.getLogger(__name__)

AXES = {"x": 0, "y": 1, "z": 2}

# Mirror planes and the coordinate they negate.
MIRROR_PLANES = {"yz": 0, "xz": 1, "xy": 2}

# Rotating about an axis turns the pair (a, b) into
# (c*a - s*b, s*a + c*b).
_ROTATION_PLANES = {0: (1, 2), 1: (2, 0), 2: (0, 1)}


def _axis_index(axis: Union[str, int]) -> int:
    if isinstance(axis, str):
        key = axis.lower()
        if key not in AXES:
            raise ValueError(f"Unknown axis: {axis!r} (expected x, y or z)")
        return AXES[key]
    if axis not in (0, 1, 2):
        raise ValueError(f"Axis index out of range: {axis}")
    return int(axis)


def _vector3(value, name: str) -> np.ndarray:
    vec = np.asarray(value, dtype=np.float64)
    if vec.ndim == 0:
        vec = np.full(3, float(vec))
    if vec.shape != (3,):
        raise ValueError(f"{name} must be a scalar or a 3-vector, got shape {vec.shape}")
    return vec


@requires_valid_mesh()
def compute_bounds(mesh: Mesh) -> bool:
    """Rescan all vertices for min, max, size and bounding diameter."""
    if len(mesh.vertices) == 0:
        return False
    flat = mesh.vertices.reshape(-1, 3)
    stats = mesh.stats
    stats.min = flat.min(axis=0)
    stats.max = flat.max(axis=0)
    stats.size = stats.max - stats.min
    stats.bounding_diameter = float(np.linalg.norm(stats.size))
    return True


@requires_valid_mesh()
def translate_to(mesh: Mesh, point) -> bool:
    """Move the mesh so that its bounding minimum lands on `point`."""
    point = _vector3(point, "point")
    shift = point - mesh.stats.min
    mesh.vertices += shift
    mesh.stats.min = point.copy()
    mesh.stats.max = mesh.stats.max + shift
    mesh.invalidate_shared_vertices()
    return True


@requires_valid_mesh()
def translate_by(mesh: Mesh, delta) -> bool:
    """Move the mesh by `delta`."""
    shift = _vector3(delta, "delta")
    mesh.vertices += shift
    mesh.stats.min = mesh.stats.min + shift
    mesh.stats.max = mesh.stats.max + shift
    mesh.invalidate_shared_vertices()
    return True


@requires_valid_mesh()
def scale_by(mesh: Mesh, factor) -> bool:
    """
    Scale the mesh per axis about the origin.

    Bounds are reordered under negative factors so min stays below max,
    and the bounding diameter follows the new size. A volume that was
    already computed and positive is multiplied by the product of the
    factors; an uncomputed volume stays uncomputed. Stored normals and
    windings are left alone, so a negative product mirrors the mesh
    inside out and the stored volume turns negative. Use mirror_across
    for a reflection that keeps the mesh outward.

    Args:
        mesh: Mesh to scale in place.
        factor: Scalar or per-axis (x, y, z) factors.

    Returns:
        True, or False when the mesh has its error flag set.
    """
    s = _vector3(factor, "factor")
    stats = mesh.stats
    low, high = stats.min * s, stats.max * s
    stats.min = np.minimum(low, high)
    stats.max = np.maximum(low, high)
    stats.size = stats.max - stats.min
    stats.bounding_diameter = float(np.linalg.norm(stats.size))
    if stats.volume is not None and stats.volume > 0.0:
        stats.volume *= float(s[0] * s[1] * s[2])
    mesh.vertices *= s
    mesh.invalidate_shared_vertices()
    return True


@requires_valid_mesh()
def rotate_about_axis(mesh: Mesh, axis: Union[str, int], angle: float) -> bool:
    """
    Rotate the mesh about a principal axis.

    Args:
        mesh: Mesh to rotate in place
        axis: "x", "y", "z" or 0-2
        angle: Rotation angle in degrees
    """
    a, b = _ROTATION_PLANES[_axis_index(axis)]
    radians = math.radians(angle)
    c = math.cos(radians)
    s = math.sin(radians)

    first = mesh.vertices[..., a].copy()
    second = mesh.vertices[..., b].copy()
    mesh.vertices[..., a] = c * first - s * second
    mesh.vertices[..., b] = s * first + c * second

    compute_bounds(mesh)
    calculate_normals(mesh)
    mesh.invalidate_shared_vertices()
    return True


def rotate_x(mesh: Mesh, angle: float) -> bool:
    return rotate_about_axis(mesh, "x", angle)


def rotate_y(mesh: Mesh, angle: float) -> bool:
    return rotate_about_axis(mesh, "y", angle)


def rotate_z(mesh: Mesh, angle: float) -> bool:
    return rotate_about_axis(mesh, "z", angle)


@requires_valid_mesh()
def transform(mesh: Mesh, matrix) -> bool:
    """
    Apply an affine transform given as a 3x4 or 4x4 matrix.

    All vertices go through a single batched multiply; bounds and normals
    are then rebuilt from scratch.
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape not in ((3, 4), (4, 4)):
        raise ValueError(f"Transform must be 3x4 or 4x4, got shape {matrix.shape}")
    if len(mesh.vertices) == 0:
        return False

    linear = matrix[:3, :3]
    offset = matrix[:3, 3]
    flat = mesh.vertices.reshape(-1, 3)
    mesh.vertices = (flat @ linear.T + offset).reshape(-1, 3, 3)

    compute_bounds(mesh)
    calculate_normals(mesh)
    mesh.invalidate_shared_vertices()
    return True


@requires_valid_mesh()
def mirror_across(mesh: Mesh, axis: Union[str, int]) -> bool:
    """
    Reflect the mesh by negating one coordinate.

    Reflection flips handedness, so every facet is reversed to keep the
    winding outward. That reversal is not a repair and is taken back out
    of the facets_reversed counter. Stored normals are reflected rather
    than recomputed: the two components off the mirror axis are negated
    before the reversal negates all three, which leaves the reflected
    normal and makes mirroring twice restore them exactly.
    """
    i = _axis_index(axis)
    others = [k for k in range(3) if k != i]
    mesh.vertices[..., i] *= -1.0
    mesh.normals[:, others] *= -1.0

    stats = mesh.stats
    low, high = stats.min[i], stats.max[i]
    stats.min = stats.min.copy()
    stats.max = stats.max.copy()
    stats.min[i] = -high
    stats.max[i] = -low

    reverse_all_facets(mesh)
    stats.facets_reversed -= len(mesh.vertices)
    return True


def mirror_plane(mesh: Mesh, plane: str) -> bool:
    """Mirror across "xy", "yz" or "xz"."""
    key = plane.lower()
    if key not in MIRROR_PLANES:
        raise ValueError(f"Unknown mirror plane: {plane!r} (expected xy, yz or xz)")
    return mirror_across(mesh, MIRROR_PLANES[key])


def mirror_xy(mesh: Mesh) -> bool:
    return mirror_across(mesh, "z")


def mirror_yz(mesh: Mesh) -> bool:
    return mirror_across(mesh, "x")


def mirror_xz(mesh: Mesh) -> bool:
    return mirror_across(mesh, "y")
