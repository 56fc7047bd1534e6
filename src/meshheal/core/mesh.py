# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Facet soup storage: vertices, normals, neighbor table and statistics.

A Mesh holds an ordered sequence of triangular facets (three vertices in
winding order plus one normal) together with a parallel neighbor table
recording, for every edge, which facet shares it. The table always has one
entry per facet; only append_facets() and remove_facets() change the facet
count, and both keep the two sequences aligned.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple, Optional
import functools
import logging

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Neighbor:
    """
    Adjacency record for one edge of a facet.

    Attributes:
        facet: Index of the adjoining facet
        vertex_not: Index (0-2) of the neighbor's vertex that is not on
            the shared edge
        backwards: True when both facets run the shared edge in the same
            direction, i.e. their windings disagree
    """
    facet: int
    vertex_not: int
    backwards: bool = False

    @property
    def offset(self) -> int:
        """Packed form used in reports: 0-2 matched, 3-5 matched backwards."""
        return self.vertex_not + 3 if self.backwards else self.vertex_not

    @property
    def shared_edge(self) -> int:
        """Edge index of the neighbor facet that is shared."""
        return (self.vertex_not + 1) % 3

    def flipped(self) -> "Neighbor":
        """Same link with the backwards flag toggled."""
        return Neighbor(self.facet, self.vertex_not, not self.backwards)


# Three slots, one per edge; None marks a boundary edge.
NeighborEntry = list[Optional[Neighbor]]


def empty_entry() -> NeighborEntry:
    """Fresh neighbor entry with all three edges open."""
    return [None, None, None]


def _zero3() -> np.ndarray:
    return np.zeros(3, dtype=np.float64)


@dataclass
class MeshStats:
    """
    Statistics describing a mesh and the repairs applied to it.

    Bounding values are kept current by the transform operations; the
    connectivity counters are refreshed by the repair actions; volume stays
    None until calculate_volume() runs.
    """

    # Extents
    min: np.ndarray = field(default_factory=_zero3)
    max: np.ndarray = field(default_factory=_zero3)
    size: np.ndarray = field(default_factory=_zero3)
    bounding_diameter: float = 0.0
    shortest_edge: float = 0.0
    volume: Optional[float] = None

    # Facet counts
    number_of_facets: int = 0
    original_num_facets: int = 0
    number_of_parts: int = 0

    # Connectivity
    connected_facets_1_edge: int = 0
    connected_facets_2_edge: int = 0
    connected_facets_3_edge: int = 0
    facets_w_1_bad_edge: int = 0
    facets_w_2_bad_edge: int = 0
    facets_w_3_bad_edge: int = 0
    backwards_edges: int = 0

    # Repair accounting
    edges_fixed: int = 0
    degenerate_facets: int = 0
    facets_removed: int = 0
    facets_added: int = 0
    facets_reversed: int = 0
    normals_fixed: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = {}
        for key, value in self.__dict__.items():
            if isinstance(value, np.ndarray):
                value = [float(x) for x in value]
            data[key] = value
        return data

    def copy(self) -> "MeshStats":
        data = dict(self.__dict__)
        for key in ("min", "max", "size"):
            data[key] = data[key].copy()
        return MeshStats(**data)


class SharedVertices(NamedTuple):
    """Indexed view of a mesh: unique vertices and per-facet indices."""
    vertices: np.ndarray
    indices: np.ndarray
    generation: int


def requires_valid_mesh(default: Any = False) -> Callable:
    """
    Decorator for operations taking a Mesh as first argument.

    A mesh whose sticky error flag is set is never touched: the wrapped
    operation is skipped and `default` is returned instead (called first
    when it is a type, so list gives a fresh empty list).
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(mesh: "Mesh", *args, **kwargs):
            if mesh.error:
                logger.debug(f"Skipping {func.__name__}: mesh has error flag set")
                return default() if isinstance(default, type) else default
            return func(mesh, *args, **kwargs)
        return wrapper
    return decorator


class Mesh:
    """Triangle soup with neighbor table, statistics and sticky error flag."""

    def __init__(
        self,
        vertices: Optional[np.ndarray] = None,
        normals: Optional[np.ndarray] = None,
        error: bool = False,
    ):
        from .normals import compute_normals

        if vertices is None:
            vertices = np.zeros((0, 3, 3), dtype=np.float64)
        vertices = np.array(vertices, dtype=np.float64).reshape(-1, 3, 3)

        if normals is None:
            normals = compute_normals(vertices)
        normals = np.array(normals, dtype=np.float64).reshape(-1, 3)
        if len(normals) != len(vertices):
            raise ValueError(
                f"Got {len(normals)} normals for {len(vertices)} facets"
            )

        self.vertices = vertices
        self.normals = normals
        self.neighbors: list[NeighborEntry] = [empty_entry() for _ in range(len(vertices))]
        self.stats = MeshStats(
            number_of_facets=len(vertices),
            original_num_facets=len(vertices),
        )
        self.error = error

        self._generation = 0
        self._shared: Optional[SharedVertices] = None

    def __len__(self) -> int:
        return len(self.vertices)

    @property
    def is_fully_connected(self) -> bool:
        """True when every facet has all three edges connected."""
        return self.stats.connected_facets_3_edge >= self.stats.number_of_facets

    # ------------------------------------------------------------------
    # Shared-vertex view
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate_shared_vertices(self) -> None:
        """Mark coordinates as changed; the indexed view is rebuilt on demand."""
        self._generation += 1

    @property
    def shared_vertices(self) -> SharedVertices:
        """Unique vertex table plus (n, 3) indices, rebuilt after mutation."""
        if self._shared is None or self._shared.generation != self._generation:
            flat = self.vertices.reshape(-1, 3)
            if len(flat) == 0:
                unique = np.zeros((0, 3), dtype=np.float64)
                inverse = np.zeros(0, dtype=np.int64)
            else:
                unique, inverse = np.unique(flat, axis=0, return_inverse=True)
            self._shared = SharedVertices(
                vertices=unique,
                indices=np.asarray(inverse, dtype=np.int64).reshape(-1, 3),
                generation=self._generation,
            )
        return self._shared

    # ------------------------------------------------------------------
    # Structural mutation
    # ------------------------------------------------------------------

    def append_facets(
        self,
        vertices: np.ndarray,
        normals: Optional[np.ndarray] = None,
    ) -> range:
        """
        Append facets with empty neighbor entries.

        Returns:
            Range of the indices assigned to the new facets
        """
        from .normals import compute_normals

        vertices = np.array(vertices, dtype=np.float64).reshape(-1, 3, 3)
        if normals is None:
            normals = compute_normals(vertices)
        normals = np.array(normals, dtype=np.float64).reshape(-1, 3)

        start = len(self.vertices)
        self.vertices = np.concatenate([self.vertices, vertices])
        self.normals = np.concatenate([self.normals, normals])
        self.neighbors.extend(empty_entry() for _ in range(len(vertices)))
        self.stats.number_of_facets = len(self.vertices)
        self.invalidate_shared_vertices()
        return range(start, len(self.vertices))

    def remove_facets(self, indices) -> int:
        """
        Delete facets and compact the neighbor table.

        Neighbor references are remapped to the new indices; references to
        removed facets become boundary edges.

        Returns:
            Number of facets removed
        """
        remove = np.zeros(len(self.vertices), dtype=bool)
        remove[np.asarray(list(indices), dtype=np.int64)] = True
        count = int(remove.sum())
        if count == 0:
            return 0

        keep = ~remove
        new_index = np.full(len(self.vertices), -1, dtype=np.int64)
        new_index[keep] = np.arange(int(keep.sum()))

        neighbors = []
        for old, entry in enumerate(self.neighbors):
            if remove[old]:
                continue
            remapped = empty_entry()
            for j, nb in enumerate(entry):
                if nb is not None and not remove[nb.facet]:
                    remapped[j] = Neighbor(int(new_index[nb.facet]), nb.vertex_not, nb.backwards)
            neighbors.append(remapped)

        self.vertices = self.vertices[keep]
        self.normals = self.normals[keep]
        self.neighbors = neighbors
        self.stats.number_of_facets = len(self.vertices)
        self.invalidate_shared_vertices()
        return count

    def copy(self) -> "Mesh":
        """Create a deep copy of this mesh."""
        clone = Mesh(self.vertices.copy(), self.normals.copy(), error=self.error)
        clone.neighbors = [list(entry) for entry in self.neighbors]
        clone.stats = self.stats.copy()
        return clone

    def __repr__(self) -> str:
        flag = ", error" if self.error else ""
        return f"Mesh(facets={len(self.vertices)}{flag})"
