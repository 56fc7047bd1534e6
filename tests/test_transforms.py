# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Test in-place geometric transforms."""

import math

import numpy as np
import pytest

from meshheal.core import (
    Mesh,
    calculate_volume,
    compute_bounds,
    compute_normals,
    mirror_across,
    mirror_plane,
    mirror_xy,
    rotate_about_axis,
    rotate_z,
    scale_by,
    transform,
    translate_by,
    translate_to,
    verify_neighbors,
)


class TestBounds:
    """Test bounding box statistics."""

    def test_unit_cube(self, cube):
        np.testing.assert_allclose(cube.stats.min, [-0.5, -0.5, -0.5])
        np.testing.assert_allclose(cube.stats.max, [0.5, 0.5, 0.5])
        np.testing.assert_allclose(cube.stats.size, [1.0, 1.0, 1.0])
        assert cube.stats.bounding_diameter == pytest.approx(math.sqrt(3.0))

    def test_empty_mesh_has_no_bounds(self):
        assert compute_bounds(Mesh()) is False


class TestTranslate:
    """Test absolute and relative translation."""

    def test_translate_to_moves_minimum(self, cube):
        translate_to(cube, [1.0, 2.0, 3.0])
        np.testing.assert_allclose(cube.stats.min, [1.0, 2.0, 3.0])
        np.testing.assert_allclose(cube.stats.max, [2.0, 3.0, 4.0])
        np.testing.assert_allclose(cube.vertices.reshape(-1, 3).min(axis=0), [1.0, 2.0, 3.0])

    def test_translations_compose(self, cube):
        other = cube.copy()
        translate_by(cube, [1.0, 0.0, 2.0])
        translate_by(cube, [0.5, -1.0, 0.0])
        translate_by(other, [1.5, -1.0, 2.0])

        np.testing.assert_allclose(cube.vertices, other.vertices)
        np.testing.assert_allclose(cube.stats.min, other.stats.min)
        np.testing.assert_allclose(cube.stats.max, other.stats.max)

    def test_scalar_offset(self, cube):
        translate_by(cube, 2.0)
        np.testing.assert_allclose(cube.stats.min, [1.5, 1.5, 1.5])

    def test_bad_vector_rejected(self, cube):
        with pytest.raises(ValueError):
            translate_by(cube, [1.0, 2.0])


class TestScale:
    """Test per-axis scaling."""

    def test_scale_then_unscale(self, sphere):
        original = sphere.vertices.copy()
        factors = np.array([2.0, 0.5, 3.0])

        scale_by(sphere, factors)
        scale_by(sphere, 1.0 / factors)

        np.testing.assert_allclose(sphere.vertices, original, atol=1e-12)

    def test_computed_volume_scales(self, cube):
        calculate_volume(cube)
        scale_by(cube, [2.0, 3.0, 4.0])
        assert cube.stats.volume == pytest.approx(24.0)
        np.testing.assert_allclose(cube.stats.size, [2.0, 3.0, 4.0])

    def test_uncomputed_volume_stays_uncomputed(self, cube):
        scale_by(cube, 2.0)
        assert cube.stats.volume is None
        assert cube.stats.bounding_diameter == pytest.approx(2.0 * math.sqrt(3.0))

    def test_negative_factor_keeps_min_below_max(self, cube):
        translate_by(cube, [1.0, 0.0, 0.0])
        scale_by(cube, [-1.0, 1.0, 1.0])
        np.testing.assert_allclose(cube.stats.min, [-1.5, -0.5, -0.5])
        np.testing.assert_allclose(cube.stats.max, [-0.5, 0.5, 0.5])

    def test_negative_factor_turns_stored_volume_negative(self, cube):
        """A negative factor product mirrors without reversing windings."""
        calculate_volume(cube)
        normals = cube.normals.copy()

        scale_by(cube, [-1.0, 1.0, 1.0])

        assert cube.stats.volume == pytest.approx(-1.0)
        np.testing.assert_array_equal(cube.normals, normals)
        assert cube.stats.facets_reversed == 0


class TestRotate:
    """Test rotation about principal axes."""

    @pytest.mark.parametrize("axis", ["x", "y", "z"])
    def test_rotate_back_restores_positions(self, sphere, axis):
        original = sphere.vertices.copy()

        rotate_about_axis(sphere, axis, 37.0)
        rotate_about_axis(sphere, axis, -37.0)

        np.testing.assert_allclose(sphere.vertices, original, atol=1e-12)

    def test_normals_recomputed_unit_length(self, sphere):
        rotate_about_axis(sphere, "y", 23.0)
        lengths = np.linalg.norm(sphere.normals, axis=1)
        np.testing.assert_allclose(lengths, 1.0)

    def test_quarter_turn_about_z(self, cube):
        translate_to(cube, [0.0, 0.0, 0.0])
        scale_by(cube, [2.0, 1.0, 1.0])

        rotate_z(cube, 90.0)

        np.testing.assert_allclose(cube.stats.min, [-1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(cube.stats.max, [0.0, 2.0, 1.0], atol=1e-12)

    def test_unknown_axis(self, cube):
        with pytest.raises(ValueError):
            rotate_about_axis(cube, "w", 10.0)


class TestAffineTransform:
    """Test general 3x4 and 4x4 transforms."""

    def test_homogeneous_translation(self, cube):
        matrix = np.eye(4)
        matrix[:3, 3] = [1.0, 2.0, 3.0]
        transform(cube, matrix)
        np.testing.assert_allclose(cube.stats.min, [0.5, 1.5, 2.5])

    def test_3x4_matches_rotation(self, sphere):
        other = sphere.copy()
        c, s = math.cos(math.radians(30.0)), math.sin(math.radians(30.0))
        matrix = np.array([
            [c, -s, 0.0, 0.0],
            [s, c, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
        ])

        transform(sphere, matrix)
        rotate_z(other, 30.0)

        np.testing.assert_allclose(sphere.vertices, other.vertices, atol=1e-12)
        np.testing.assert_allclose(sphere.normals, other.normals, atol=1e-9)

    def test_bad_shape_rejected(self, cube):
        with pytest.raises(ValueError):
            transform(cube, np.eye(3))


class TestMirror:
    """Test reflection across coordinate planes."""

    @pytest.mark.parametrize("plane", ["xy", "yz", "xz"])
    def test_mirror_twice_is_identity(self, checked_cube, plane):
        vertices = checked_cube.vertices.copy()
        normals = checked_cube.normals.copy()
        table = [list(entry) for entry in checked_cube.neighbors]
        reversed_before = checked_cube.stats.facets_reversed

        mirror_plane(checked_cube, plane)
        mirror_plane(checked_cube, plane)

        np.testing.assert_allclose(checked_cube.vertices, vertices)
        np.testing.assert_allclose(checked_cube.normals, normals, atol=1e-12)
        assert [list(entry) for entry in checked_cube.neighbors] == table
        assert checked_cube.stats.facets_reversed == reversed_before

    @pytest.mark.parametrize("axis", ["x", "y", "z"])
    def test_mirror_twice_restores_stored_normals(self, checked_cube, axis):
        """Stored normals that differ from the geometry survive two mirrors."""
        rng = np.random.default_rng(7)
        checked_cube.normals += rng.normal(0.0, 0.01, size=checked_cube.normals.shape)
        stored = checked_cube.normals.copy()

        mirror_across(checked_cube, axis)
        mirror_across(checked_cube, axis)

        np.testing.assert_allclose(checked_cube.normals, stored, rtol=0, atol=1e-15)

    def test_mirror_reflects_stored_normals(self, checked_cube):
        stored = checked_cube.normals.copy()

        mirror_across(checked_cube, "z")

        reflected = stored * np.array([1.0, 1.0, -1.0])
        np.testing.assert_allclose(checked_cube.normals, reflected, atol=1e-15)
        geometric = compute_normals(checked_cube.vertices)
        np.testing.assert_allclose(checked_cube.normals, geometric, atol=1e-12)

    def test_mirror_reflects_extents(self, cube):
        translate_to(cube, [1.0, 1.0, 1.0])
        mirror_xy(cube)
        np.testing.assert_allclose(cube.stats.min, [1.0, 1.0, -2.0])
        np.testing.assert_allclose(cube.stats.max, [2.0, 2.0, -1.0])

    def test_mirrored_mesh_stays_outward(self, checked_cube):
        mirror_across(checked_cube, "x")

        assert verify_neighbors(checked_cube) == []
        calculate_volume(checked_cube)
        assert checked_cube.stats.volume == pytest.approx(1.0)
        assert checked_cube.stats.facets_reversed == 0

    def test_unknown_plane(self, cube):
        with pytest.raises(ValueError):
            mirror_plane(cube, "xw")
