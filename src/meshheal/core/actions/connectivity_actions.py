# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Connectivity actions: exact edge matching, nearby stitching and removal
of unconnected facets.

All three build their result on copies and assign it to the mesh at the
end, so a failure part way leaves the mesh untouched.
"""

import logging

import numpy as np
from scipy.spatial import cKDTree

from ..mesh import Mesh, Neighbor, NeighborEntry, empty_entry
from ..normals import compute_normals
from .registry import ActionOutcome, register_action

logger = logging.getLogger(__name__)


def update_connectivity_stats(mesh: Mesh) -> None:
    """Recount facets with at least 1, 2 and 3 connected edges."""
    counts = np.array(
        [sum(nb is not None for nb in entry) for entry in mesh.neighbors],
        dtype=np.int64,
    )
    stats = mesh.stats
    stats.number_of_facets = len(mesh.vertices)
    stats.connected_facets_1_edge = int(np.sum(counts >= 1))
    stats.connected_facets_2_edge = int(np.sum(counts >= 2))
    stats.connected_facets_3_edge = int(np.sum(counts >= 3))


def _link(neighbors: list[NeighborEntry], i: int, j: int, g: int, k: int, backwards: bool) -> None:
    """Connect edge j of facet i with edge k of facet g, both ways."""
    neighbors[i][j] = Neighbor(g, (k + 2) % 3, backwards)
    neighbors[g][k] = Neighbor(i, (j + 2) % 3, backwards)


def match_exact_edges(vertices: np.ndarray) -> list[NeighborEntry]:
    """
    Build a neighbor table from edges with identical endpoint coordinates.

    Edges are paired in facet order: the first two facets claiming an edge
    are linked, a third one waits for a fourth. A pair running the edge in
    the same direction is recorded as backwards.
    """
    coords = np.asarray(vertices, dtype=np.float64).tolist()
    neighbors = [empty_entry() for _ in range(len(coords))]
    pending: dict[tuple, list[tuple[int, int]]] = {}

    for i, facet in enumerate(coords):
        for j in range(3):
            a = tuple(facet[j])
            b = tuple(facet[(j + 1) % 3])
            key = (a, b) if a <= b else (b, a)
            waiting = pending.setdefault(key, [])
            if waiting and waiting[0][0] != i:
                g, k = waiting.pop(0)
                backwards = tuple(coords[g][k]) == a
                _link(neighbors, i, j, g, k, backwards)
            else:
                waiting.append((i, j))

    return neighbors


def degenerate_mask(vertices: np.ndarray) -> np.ndarray:
    """Facets with two identical vertices."""
    v = np.asarray(vertices).reshape(-1, 3, 3)
    mask = np.zeros(len(v), dtype=bool)
    for p, q in ((0, 1), (1, 2), (2, 0)):
        mask |= np.all(v[:, p] == v[:, q], axis=-1)
    return mask


@register_action(
    name="check_exact",
    description="Remove degenerate facets and connect edges with identical endpoints",
    parameters={},
    category="Connectivity"
)
def action_check_exact(mesh: Mesh, params: dict) -> ActionOutcome:
    """
    Drop degenerate facets, then rebuild the neighbor table from exact
    edge matches.

    Args:
        mesh: Mesh to repair in place
        params: Unused

    Returns:
        ActionOutcome with the number of matched edge pairs as `changed`
        and the degenerate facet count under `degenerate_removed`
    """
    degenerate = degenerate_mask(mesh.vertices)
    neighbors = match_exact_edges(mesh.vertices[~degenerate])

    removed = mesh.remove_facets(np.flatnonzero(degenerate))
    mesh.stats.degenerate_facets += removed
    mesh.neighbors = neighbors
    update_connectivity_stats(mesh)

    matched = sum(nb is not None for entry in neighbors for nb in entry) // 2
    if removed:
        logger.info(f"Removed {removed} degenerate facets")
    return ActionOutcome(
        action="check_exact",
        changed=matched,
        details={"degenerate_removed": removed},
    )


def _snap_pairs(vertices: np.ndarray, a, b, g: int, k: int, backwards: bool) -> list:
    """Point moves that put edge k of facet g onto the edge a-b."""
    c = vertices[g, k]
    d = vertices[g, (k + 1) % 3]
    if backwards:
        targets = ((c, a), (d, b))
    else:
        targets = ((c, b), (d, a))
    return [(old.copy(), new.copy()) for old, new in targets if not np.array_equal(old, new)]


def _collapses(vertices: np.ndarray, pairs: list) -> bool:
    """True if moving a point onto its target would make some facet degenerate."""
    for old, new in pairs:
        has_old = np.all(vertices == old, axis=-1).any(axis=1)
        has_new = np.all(vertices == new, axis=-1).any(axis=1)
        if np.any(has_old & has_new):
            return True
    return False


def _snap(vertices: np.ndarray, old: np.ndarray, new: np.ndarray, touched: np.ndarray) -> None:
    """Move every occurrence of the point `old` onto `new`."""
    if np.array_equal(old, new):
        return
    mask = np.all(vertices == old, axis=-1)
    vertices[mask] = new
    touched |= mask.any(axis=1)


@register_action(
    name="check_nearby",
    description="Stitch open edges whose endpoints lie within a tolerance",
    parameters={"tolerance": {"type": "float", "default": 0.0, "description": "Per-axis distance"}},
    category="Connectivity"
)
def action_check_nearby(mesh: Mesh, params: dict) -> ActionOutcome:
    """
    Connect open edges to nearby open edges.

    Each open edge is paired with the closest other open edge whose two
    endpoints are both within the tolerance on every axis, preferring the
    reverse direction (consistent winding). The candidate facet's endpoints
    are snapped onto the edge, together with every other occurrence of
    those points, so already-connected fans stay connected. A candidate
    whose snapping would collapse some facet is skipped.
    """
    tolerance = float(params.get("tolerance", 0.0))
    vertices = mesh.vertices.copy()
    normals = mesh.normals.copy()
    neighbors = [list(entry) for entry in mesh.neighbors]

    open_edges = [
        (i, j) for i, entry in enumerate(neighbors) for j, nb in enumerate(entry) if nb is None
    ]
    if len(open_edges) < 2:
        return ActionOutcome(action="check_nearby", details={"tolerance": tolerance})

    facet_idx = np.array([e[0] for e in open_edges], dtype=np.int64)
    edge_idx = np.array([e[1] for e in open_edges], dtype=np.int64)
    points = np.hstack([
        vertices[facet_idx, edge_idx],
        vertices[facet_idx, (edge_idx + 1) % 3],
    ])
    tree = cKDTree(points)

    matched = np.zeros(len(open_edges), dtype=bool)
    touched = np.zeros(len(vertices), dtype=bool)
    fixed = 0

    for idx, (i, j) in enumerate(open_edges):
        if matched[idx]:
            continue
        a = vertices[i, j]
        b = vertices[i, (j + 1) % 3]

        best = None
        for backwards, query in ((False, np.concatenate([b, a])), (True, np.concatenate([a, b]))):
            for hit in tree.query_ball_point(query, r=tolerance, p=np.inf):
                if hit == idx or matched[hit] or facet_idx[hit] == i:
                    continue
                g, k = facet_idx[hit], edge_idx[hit]
                current = np.concatenate([vertices[g, k], vertices[g, (k + 1) % 3]])
                distance = float(np.max(np.abs(current - query)))
                if distance > tolerance:
                    continue
                if _collapses(vertices, _snap_pairs(vertices, a, b, g, k, backwards)):
                    continue
                candidate = (distance, backwards, hit)
                if best is None or candidate[:2] < best[:2]:
                    best = candidate

        if best is None:
            continue

        _, backwards, hit = best
        g, k = int(facet_idx[hit]), int(edge_idx[hit])
        for old, new in _snap_pairs(vertices, a, b, g, k, backwards):
            _snap(vertices, old, new, touched)

        _link(neighbors, i, j, g, k, backwards)
        matched[idx] = matched[hit] = True
        fixed += 1

    if touched.any():
        normals[touched] = compute_normals(vertices[touched])

    mesh.vertices = vertices
    mesh.normals = normals
    mesh.neighbors = neighbors
    mesh.stats.edges_fixed += fixed
    update_connectivity_stats(mesh)
    mesh.invalidate_shared_vertices()

    return ActionOutcome(action="check_nearby", changed=fixed, details={"tolerance": tolerance})


@register_action(
    name="remove_unconnected",
    description="Delete facets that have no connected edge",
    parameters={},
    category="Connectivity"
)
def action_remove_unconnected(mesh: Mesh, params: dict) -> ActionOutcome:
    """
    Remove facets with no neighbor on any edge.

    Needs a neighbor table from check_exact or check_nearby.

    Args:
        mesh: Mesh to repair in place
        params: Unused

    Returns:
        ActionOutcome with the number of removed facets as `changed`
    """
    unconnected = [
        i for i, entry in enumerate(mesh.neighbors) if all(nb is None for nb in entry)
    ]
    removed = mesh.remove_facets(unconnected)
    mesh.stats.facets_removed += removed
    update_connectivity_stats(mesh)
    return ActionOutcome(action="remove_unconnected", changed=removed)
