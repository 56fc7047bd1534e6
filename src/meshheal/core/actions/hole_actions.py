# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Hole filling."""

import logging

import numpy as np

from ..mesh import Mesh
from .connectivity_actions import degenerate_mask, match_exact_edges, update_connectivity_stats
from .registry import ActionOutcome, register_action

logger = logging.getLogger(__name__)


def find_boundary_loops(mesh: Mesh) -> list[list[int]]:
    """
    Trace closed loops of open edges.

    Works on the shared-vertex view, so loop entries are indices into
    mesh.shared_vertices.vertices. Each loop is listed in the direction
    its open edges run; chains that do not close are dropped.
    """
    indices = mesh.shared_vertices.indices
    boundary = [
        (int(indices[i, j]), int(indices[i, (j + 1) % 3]))
        for i, entry in enumerate(mesh.neighbors)
        for j, nb in enumerate(entry)
        if nb is None
    ]
    outgoing: dict[int, list[int]] = {}
    for e, (start, _) in enumerate(boundary):
        outgoing.setdefault(start, []).append(e)

    used = set()
    loops = []
    for e, (start, end) in enumerate(boundary):
        if e in used:
            continue
        used.add(e)
        loop = [start]
        current = end
        closed = False
        for _ in range(len(boundary)):
            if current == start:
                closed = True
                break
            loop.append(current)
            following = next((x for x in outgoing.get(current, []) if x not in used), None)
            if following is None:
                break
            used.add(following)
            current = boundary[following][1]
        if closed and len(loop) >= 3:
            loops.append(loop)
    return loops


def fan_triangulate(loop: list[int]) -> list[tuple[int, int, int]]:
    """
    Close a loop with a fan from its first vertex.

    New facets run every loop edge backwards, so they connect to the
    existing facets with consistent winding.
    """
    return [(loop[0], loop[i + 1], loop[i]) for i in range(1, len(loop) - 1)]


@register_action(
    name="fill_holes",
    description="Close boundary loops with new facets",
    parameters={},
    category="Hole Filling"
)
def action_fill_holes(mesh: Mesh, params: dict) -> ActionOutcome:
    """
    Fan-triangulate every boundary loop and rematch all edges.

    Args:
        mesh: Mesh with a neighbor table, repaired in place
        params: Unused

    Returns:
        ActionOutcome with the number of added facets as `changed` and
        the loop count under `holes`
    """
    loops = find_boundary_loops(mesh)
    if not loops:
        return ActionOutcome(action="fill_holes", details={"holes": 0})

    table = mesh.shared_vertices.vertices
    triangles = [tri for loop in loops for tri in fan_triangulate(loop)]
    new_vertices = table[np.array(triangles, dtype=np.int64)]
    new_vertices = new_vertices[~degenerate_mask(new_vertices)]
    neighbors = match_exact_edges(np.concatenate([mesh.vertices, new_vertices]))

    added = len(mesh.append_facets(new_vertices))
    mesh.neighbors = neighbors
    mesh.stats.facets_added += added
    update_connectivity_stats(mesh)

    logger.debug(f"Filled {len(loops)} holes with {added} facets")
    return ActionOutcome(action="fill_holes", changed=added, details={"holes": len(loops)})
