# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Facet normals and winding reversal."""

import logging

import numpy as np

from .mesh import Mesh, Neighbor, empty_entry, requires_valid_mesh

logger = logging.getLogger(__name__)

# Edge j of a facet runs from vertex j to vertex (j + 1) % 3. Reversing a
# facet to (v0, v2, v1) turns old edge j into new edge EDGE_AFTER_REVERSE[j]
# and moves old vertex k to VERTEX_AFTER_REVERSE[k].
EDGE_AFTER_REVERSE = (2, 1, 0)
VERTEX_AFTER_REVERSE = (0, 2, 1)

NORMAL_TOLERANCE = 1e-3


def compute_normals(vertices: np.ndarray) -> np.ndarray:
    """
    Compute unit normals from winding using the right-hand rule.

    Args:
        vertices: Facet vertices, shape (n, 3, 3)

    Returns:
        Normals of shape (n, 3); degenerate facets get a zero vector
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    normals = np.cross(vertices[:, 1] - vertices[:, 0], vertices[:, 2] - vertices[:, 0])
    lengths = np.linalg.norm(normals, axis=1)
    valid = lengths > 1e-15
    normals[valid] /= lengths[valid, None]
    normals[~valid] = 0.0
    return normals


@requires_valid_mesh()
def calculate_normals(mesh: Mesh) -> bool:
    """Replace every stored normal with the one implied by the geometry."""
    mesh.normals = compute_normals(mesh.vertices)
    return True


@requires_valid_mesh()
def fix_normal_values(mesh: Mesh) -> bool:
    """Recompute all normals, counting the stored ones that were off."""
    computed = compute_normals(mesh.vertices)
    off = np.linalg.norm(mesh.normals - computed, axis=1) > NORMAL_TOLERANCE
    mesh.stats.normals_fixed += int(off.sum())
    mesh.normals = computed
    return True


@requires_valid_mesh()
def reverse_facet(mesh: Mesh, index: int) -> bool:
    """
    Reverse the winding and normal of one facet.

    The neighbor table is kept exact: the facet's own entries follow the
    renumbered edges, and both sides of every shared edge toggle their
    backwards flag since only one of the two windings changed.
    """
    facet = mesh.vertices[index]
    mesh.vertices[index] = facet[[0, 2, 1]]
    mesh.normals[index] = -mesh.normals[index]

    old_entry = mesh.neighbors[index]
    new_entry = empty_entry()
    for j, nb in enumerate(old_entry):
        if nb is None:
            continue
        new_j = EDGE_AFTER_REVERSE[j]
        new_entry[new_j] = nb.flipped()
        if nb.facet == index:
            continue
        back = mesh.neighbors[nb.facet]
        k = nb.shared_edge
        if back[k] is not None and back[k].facet == index:
            back[k] = Neighbor(index, (new_j + 2) % 3, not back[k].backwards)
    mesh.neighbors[index] = new_entry

    mesh.stats.facets_reversed += 1
    mesh.invalidate_shared_vertices()
    return True


@requires_valid_mesh()
def reverse_all_facets(mesh: Mesh) -> bool:
    """
    Reverse the winding and normal of every facet.

    Both sides of every shared edge flip together, so orientation flags in
    the neighbor table stay as they were; only indices are renumbered.
    """
    mesh.vertices = mesh.vertices[:, [0, 2, 1]]
    mesh.normals = -mesh.normals

    neighbors = []
    for entry in mesh.neighbors:
        new_entry = empty_entry()
        for j, nb in enumerate(entry):
            if nb is not None:
                new_entry[EDGE_AFTER_REVERSE[j]] = Neighbor(
                    nb.facet, VERTEX_AFTER_REVERSE[nb.vertex_not], nb.backwards
                )
        neighbors.append(new_entry)
    mesh.neighbors = neighbors

    mesh.stats.facets_reversed += len(mesh.vertices)
    mesh.invalidate_shared_vertices()
    return True
