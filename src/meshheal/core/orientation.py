# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Signed volume and global orientation.

The volume is accumulated with the divergence theorem: each facet
contributes a pyramid from an arbitrary reference point, signed by which
side of the facet the point lies on. A negative total means the whole mesh
is inside out.
"""

import logging

import numpy as np

from .mesh import Mesh, requires_valid_mesh
from .normals import compute_normals, reverse_all_facets

logger = logging.getLogger(__name__)


def facet_area(vertices: np.ndarray) -> np.ndarray:
    """
    Signed area of one facet (3, 3) or a batch of facets (n, 3, 3).

    The three cross products of consecutive vertex positions are summed in
    float64 and projected onto the facet's normal recomputed from its
    winding.
    """
    v = np.asarray(vertices, dtype=np.float64)
    single = v.ndim == 2
    if single:
        v = v[None]

    rolled = np.roll(v, -1, axis=1)
    cross_sum = np.cross(v, rolled).sum(axis=1)
    unit = compute_normals(v)
    area = 0.5 * np.einsum("ij,ij->i", unit, cross_sum)

    return float(area[0]) if single else area


@requires_valid_mesh(default=0.0)
def volume(mesh: Mesh) -> float:
    """Net enclosed volume; 0.0 for an empty mesh."""
    if len(mesh.vertices) == 0:
        return 0.0
    reference = mesh.vertices[0, 0]
    heights = np.einsum("ij,ij->i", mesh.normals, mesh.vertices[:, 0] - reference)
    areas = facet_area(mesh.vertices)
    return float(np.sum(areas * heights) / 3.0)


@requires_valid_mesh()
def calculate_volume(mesh: Mesh) -> bool:
    """
    Store the enclosed volume in mesh.stats.volume.

    A negative volume means every facet faces inward; the whole mesh is
    reversed once so the stored volume is never negative.
    """
    mesh.stats.volume = volume(mesh)
    if mesh.stats.volume < 0.0:
        logger.info("Negative volume, reversing all facets")
        reverse_all_facets(mesh)
        mesh.stats.volume = -mesh.stats.volume
    return True
