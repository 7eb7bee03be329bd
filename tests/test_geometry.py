"""Tests for the vector and triangle helpers."""

import numpy as np
import pytest

from planetbuilder.errors import DegenerateVectorError
from planetbuilder.geometry import (
    barycentric_point, flat_normal, flat_normals, normalize, normalize_rows,
    scale_to_length, vector_lengths,
)


class TestNormalize:
    def test_unit_length(self):
        np.testing.assert_allclose(normalize([3.0, 0.0, 4.0]), [0.6, 0.0, 0.8])

    def test_zero_vector_raises(self):
        with pytest.raises(DegenerateVectorError):
            normalize([0.0, 0.0, 0.0])

    def test_degenerate_is_a_value_error(self):
        with pytest.raises(ValueError):
            normalize([0.0, 0.0, 0.0])

    def test_rows(self):
        out = normalize_rows([[2.0, 0.0, 0.0], [0.0, -5.0, 0.0]])
        np.testing.assert_allclose(out, [[1.0, 0.0, 0.0], [0.0, -1.0, 0.0]])

    def test_rows_with_zero_row_raises(self):
        with pytest.raises(DegenerateVectorError, match="row 1"):
            normalize_rows([[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])


class TestBarycentric:
    def test_weighted_sum(self):
        p = barycentric_point([1, 0, 0], [0, 1, 0], [0, 0, 1], 2, 3, 4)
        np.testing.assert_allclose(p, [2.0, 3.0, 4.0])

    def test_corner_weight(self):
        p = barycentric_point([1, 2, 3], [4, 5, 6], [7, 8, 9], 1, 0, 0)
        np.testing.assert_allclose(p, [1.0, 2.0, 3.0])


class TestFlatNormal:
    def test_centroid_direction(self):
        n = flat_normal([1, 0, 0], [0, 1, 0], [0, 0, 1])
        np.testing.assert_allclose(n, np.ones(3) / np.sqrt(3.0))

    def test_soup_normals_repeat_per_vertex(self):
        soup = np.array([
            [1, 0, 0], [0, 1, 0], [0, 0, 1],
            [-1, 0, 0], [0, -1, 0], [0, 0, -1],
        ], dtype=float)
        normals = flat_normals(soup)
        assert normals.shape == (6, 3)
        np.testing.assert_allclose(normals[:3], np.tile(np.ones(3) / np.sqrt(3.0), (3, 1)))
        np.testing.assert_allclose(normals[3:], np.tile(-np.ones(3) / np.sqrt(3.0), (3, 1)))

    def test_soup_length_must_be_triangles(self):
        with pytest.raises(ValueError):
            flat_normals(np.ones((4, 3)))


class TestScaleToLength:
    def test_scalar_length(self):
        out = scale_to_length([[1.0, 1.0, 0.0], [0.0, 0.0, 3.0]], 2.0)
        np.testing.assert_allclose(vector_lengths(out), [2.0, 2.0])

    def test_per_row_length(self):
        out = scale_to_length([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]], [3.0, 0.5])
        np.testing.assert_allclose(out, [[3.0, 0.0, 0.0], [0.0, 0.5, 0.0]])
