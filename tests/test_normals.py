# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Test normal computation and facet reversal."""

import numpy as np

from meshheal.core import (
    calculate_normals,
    compute_normals,
    fix_normal_values,
    reverse_all_facets,
    reverse_facet,
    verify_neighbors,
)


def _table(mesh):
    return [list(entry) for entry in mesh.neighbors]


class TestComputeNormals:
    """Test right-hand rule normals."""

    def test_unit_length(self, sphere):
        lengths = np.linalg.norm(compute_normals(sphere.vertices), axis=1)
        np.testing.assert_allclose(lengths, 1.0)

    def test_degenerate_facet_gets_zero_normal(self):
        flat = np.array([[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]]])
        np.testing.assert_array_equal(compute_normals(flat), np.zeros((1, 3)))

    def test_calculate_normals_replaces_stored(self, cube):
        expected = cube.normals.copy()
        cube.normals[:] = 0.0
        assert calculate_normals(cube)
        np.testing.assert_allclose(cube.normals, expected, atol=1e-12)


class TestFixNormalValues:
    """Test counting of wrong stored normals."""

    def test_counts_only_wrong_normals(self, cube):
        cube.normals[0] = -cube.normals[0]
        cube.normals[5] = [0.0, 0.0, 0.0]

        fix_normal_values(cube)

        assert cube.stats.normals_fixed == 2
        np.testing.assert_allclose(cube.normals, compute_normals(cube.vertices))


class TestReverseFacet:
    """Test single-facet reversal and its neighbor bookkeeping."""

    def test_winding_and_normal(self, checked_cube):
        original = checked_cube.vertices[3].copy()
        normal = checked_cube.normals[3].copy()

        reverse_facet(checked_cube, 3)

        np.testing.assert_array_equal(checked_cube.vertices[3], original[[0, 2, 1]])
        np.testing.assert_array_equal(checked_cube.normals[3], -normal)
        assert checked_cube.stats.facets_reversed == 1

    def test_neighbors_become_backwards_but_match(self, checked_cube):
        reverse_facet(checked_cube, 3)

        assert verify_neighbors(checked_cube) == []
        # three edges, each seen from both sides
        assert checked_cube.stats.backwards_edges == 6

    def test_reversing_twice_restores_table(self, checked_cube):
        vertices = checked_cube.vertices.copy()
        table = _table(checked_cube)

        reverse_facet(checked_cube, 7)
        reverse_facet(checked_cube, 7)

        np.testing.assert_array_equal(checked_cube.vertices, vertices)
        assert _table(checked_cube) == table
        assert checked_cube.stats.facets_reversed == 2


class TestReverseAllFacets:
    """Test global reversal."""

    def test_involution(self, checked_cube):
        vertices = checked_cube.vertices.copy()
        normals = checked_cube.normals.copy()
        table = _table(checked_cube)

        reverse_all_facets(checked_cube)
        reverse_all_facets(checked_cube)

        np.testing.assert_array_equal(checked_cube.vertices, vertices)
        np.testing.assert_array_equal(checked_cube.normals, normals)
        assert _table(checked_cube) == table
        assert checked_cube.stats.facets_reversed == 24

    def test_table_stays_consistent(self, checked_cube):
        reverse_all_facets(checked_cube)

        assert verify_neighbors(checked_cube) == []
        assert checked_cube.stats.backwards_edges == 0

    def test_error_mesh_untouched(self, cube):
        vertices = cube.vertices.copy()
        cube.error = True
        assert reverse_all_facets(cube) is False
        np.testing.assert_array_equal(cube.vertices, vertices)
