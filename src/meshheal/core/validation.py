# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Neighbor table validation.

Checks that every recorded neighbor really shares the edge it claims to,
with the direction the table says it has. Two kinds of defect are kept
apart:

- a mismatch: the recorded neighbor does not carry the edge at all (a
  structural defect, reported);
- a backwards edge: the neighbor carries the edge in the same direction,
  so the two windings disagree (an orientation defect, only counted).
"""

from dataclasses import dataclass
import logging

import numpy as np

from .mesh import Mesh, requires_valid_mesh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeMismatch:
    """Edge `edge` of `facet` does not match edge `neighbor_edge` of `neighbor`."""
    facet: int
    edge: int
    neighbor: int
    neighbor_edge: int

    def __str__(self) -> str:
        return (
            f"edge {self.edge} of facet {self.facet} doesn't match "
            f"edge {self.neighbor_edge} of facet {self.neighbor}"
        )

    def to_dict(self) -> dict:
        return {
            "facet": self.facet,
            "edge": self.edge,
            "neighbor": self.neighbor,
            "neighbor_edge": self.neighbor_edge,
        }


def _format_facet(mesh: Mesh, index: int) -> str:
    rows = ", ".join(
        "(" + ", ".join(f"{c:g}" for c in vertex) + ")" for vertex in mesh.vertices[index]
    )
    return f"facet {index}: normal {tuple(float(c) for c in mesh.normals[index])} vertices {rows}"


@requires_valid_mesh(default=list)
def verify_neighbors(mesh: Mesh) -> list[EdgeMismatch]:
    """
    Check every neighbor entry against the actual edge geometry.

    Resets and recounts stats.backwards_edges. The pass always covers the
    whole mesh and changes nothing but that counter.

    Returns:
        All mismatches found, in facet order
    """
    mesh.stats.backwards_edges = 0
    mismatches = []
    vertices = mesh.vertices

    for i, entry in enumerate(mesh.neighbors):
        for j, nb in enumerate(entry):
            if nb is None:
                continue

            a1 = vertices[i, j]
            a2 = vertices[i, (j + 1) % 3]
            r = nb.vertex_not
            if not nb.backwards:
                b1 = vertices[nb.facet, (r + 2) % 3]
                b2 = vertices[nb.facet, (r + 1) % 3]
            else:
                mesh.stats.backwards_edges += 1
                b1 = vertices[nb.facet, (r + 1) % 3]
                b2 = vertices[nb.facet, (r + 2) % 3]

            if not (np.array_equal(a1, b1) and np.array_equal(a2, b2)):
                mismatch = EdgeMismatch(i, j, nb.facet, nb.shared_edge)
                logger.warning(str(mismatch))
                logger.warning(f"  first {_format_facet(mesh, i)}")
                logger.warning(f"  second {_format_facet(mesh, nb.facet)}")
                mismatches.append(mismatch)

    return mismatches
