# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Winding propagation across the neighbor graph."""

from collections import deque
import logging

import numpy as np

from ..mesh import Mesh
from ..normals import reverse_facet
from .registry import ActionOutcome, register_action

logger = logging.getLogger(__name__)


@register_action(
    name="fix_normal_directions",
    description="Make adjacent facets wind consistently",
    parameters={},
    category="Normal Correction"
)
def action_fix_normal_directions(mesh: Mesh, params: dict) -> ActionOutcome:
    """
    Walk each connected part breadth-first from its lowest facet and
    reverse every neighbor reached through a backwards edge.

    Only relative orientation is fixed; a part that ends up inside out is
    left for the volume calculation to turn around. Reversals happen on a
    working copy that replaces the mesh data once the walk completes.
    """
    work = mesh.copy()
    visited = np.zeros(len(work.vertices), dtype=bool)
    reversed_count = 0
    parts = 0

    for seed in range(len(work.vertices)):
        if visited[seed]:
            continue
        parts += 1
        visited[seed] = True
        queue = deque([seed])
        while queue:
            facet = queue.popleft()
            for nb in list(work.neighbors[facet]):
                if nb is None or visited[nb.facet]:
                    continue
                if nb.backwards:
                    reverse_facet(work, nb.facet)
                    reversed_count += 1
                visited[nb.facet] = True
                queue.append(nb.facet)

    if reversed_count:
        mesh.vertices = work.vertices
        mesh.normals = work.normals
        mesh.neighbors = work.neighbors
        mesh.stats.facets_reversed = work.stats.facets_reversed
        mesh.invalidate_shared_vertices()
    mesh.stats.number_of_parts = parts
    return ActionOutcome(
        action="fix_normal_directions",
        changed=reversed_count,
        details={"parts": parts},
    )
