# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Pytest configuration and fixtures for meshheal tests."""

import pytest
import trimesh

from meshheal.core import (
    Mesh,
    RepairOptions,
    compute_bounds,
    compute_shortest_edge,
    from_trimesh,
    repair,
)


def box_mesh(extents=(1.0, 1.0, 1.0)) -> Mesh:
    """Axis-aligned box centered on the origin, 12 outward facets."""
    return from_trimesh(trimesh.creation.box(extents=extents))


def sphere_mesh(subdivisions: int = 2, radius: float = 1.0) -> Mesh:
    return from_trimesh(trimesh.creation.icosphere(subdivisions=subdivisions, radius=radius))


@pytest.fixture
def cube():
    """Unit cube, not yet checked."""
    return box_mesh()


@pytest.fixture
def checked_cube():
    """Unit cube after exact matching, volume and verification."""
    mesh = box_mesh()
    repair(mesh, RepairOptions(exact=True))
    return mesh


@pytest.fixture
def sphere():
    """Icosphere with 320 facets."""
    return sphere_mesh()


@pytest.fixture
def holed_cube():
    """Unit cube with its first facet removed."""
    full = box_mesh()
    mesh = Mesh(full.vertices[1:].copy(), full.normals[1:].copy())
    compute_bounds(mesh)
    compute_shortest_edge(mesh)
    return mesh


@pytest.fixture
def inverted_cube():
    """Unit cube with every facet wound inward."""
    box = trimesh.creation.box(extents=[1.0, 1.0, 1.0])
    inverted = trimesh.Trimesh(
        vertices=box.vertices,
        faces=box.faces[:, ::-1],
        process=False,
    )
    return from_trimesh(inverted)


@pytest.fixture
def cube_file(tmp_path):
    """Unit cube saved as binary STL."""
    path = tmp_path / "cube.stl"
    trimesh.creation.box(extents=[1.0, 1.0, 1.0]).export(path)
    return path


@pytest.fixture
def holed_cube_file(tmp_path):
    """Unit cube with one facet missing, saved as binary STL."""
    box = trimesh.creation.box(extents=[1.0, 1.0, 1.0])
    holed = trimesh.Trimesh(vertices=box.vertices, faces=box.faces[1:], process=False)
    path = tmp_path / "holed.stl"
    holed.export(path)
    return path
