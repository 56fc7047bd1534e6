# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""
Core logic for mesh storage, transforms, validation and repair.

This module provides the fundamental building blocks:
- mesh: Facet soup, neighbor table and statistics
- normals: Normal computation and winding reversal
- transforms: In-place geometric transforms
- orientation: Signed volume and global orientation
- validation: Neighbor table checks
- actions: Registered repair actions
- repair_engine: The staged repair engine
- config: Repair options and their file form
- mesh_ops: Load, save and report
"""

from .mesh import (
    Mesh,
    MeshStats,
    Neighbor,
    NeighborEntry,
    SharedVertices,
    requires_valid_mesh,
)

from .normals import (
    compute_normals,
    calculate_normals,
    fix_normal_values,
    reverse_facet,
    reverse_all_facets,
)

from .transforms import (
    compute_bounds,
    translate_to,
    translate_by,
    scale_by,
    rotate_about_axis,
    rotate_x,
    rotate_y,
    rotate_z,
    transform,
    mirror_across,
    mirror_plane,
    mirror_xy,
    mirror_yz,
    mirror_xz,
)

from .orientation import facet_area, volume, calculate_volume

from .validation import EdgeMismatch, verify_neighbors

from .config import RepairOptions, load_repair_options, save_repair_options

from .actions import ActionRegistry, ActionOutcome, register_action

from .repair_engine import RepairEngine, RepairReport, repair

from .mesh_ops import (
    compute_shortest_edge,
    from_trimesh,
    to_trimesh,
    load_mesh,
    save_mesh,
    format_stats,
    print_stats,
)

__all__ = [
    # Storage
    "Mesh",
    "MeshStats",
    "Neighbor",
    "NeighborEntry",
    "SharedVertices",
    "requires_valid_mesh",
    # Normals
    "compute_normals",
    "calculate_normals",
    "fix_normal_values",
    "reverse_facet",
    "reverse_all_facets",
    # Transforms
    "compute_bounds",
    "translate_to",
    "translate_by",
    "scale_by",
    "rotate_about_axis",
    "rotate_x",
    "rotate_y",
    "rotate_z",
    "transform",
    "mirror_across",
    "mirror_plane",
    "mirror_xy",
    "mirror_yz",
    "mirror_xz",
    # Volume
    "facet_area",
    "volume",
    "calculate_volume",
    # Validation
    "EdgeMismatch",
    "verify_neighbors",
    # Repair
    "RepairOptions",
    "load_repair_options",
    "save_repair_options",
    "ActionRegistry",
    "ActionOutcome",
    "register_action",
    "RepairEngine",
    "RepairReport",
    "repair",
    # I/O
    "compute_shortest_edge",
    "from_trimesh",
    "to_trimesh",
    "load_mesh",
    "save_mesh",
    "format_stats",
    "print_stats",
]
