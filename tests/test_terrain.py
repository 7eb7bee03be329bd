"""Tests for bedrock seeding and mesh radius conversion."""

import numpy as np
import pytest

from planetbuilder.errors import ConfigurationError
from planetbuilder.heightfield import HeightField
from planetbuilder.terrain import mesh_heights, seeded_bedrock, seeded_field


class TestSeededBedrock:
    def test_shape_and_dtype(self):
        elev = seeded_bedrock(12, 7, seed=1)
        assert elev.shape == (7, 12)
        assert elev.dtype == np.float32

    def test_reproducible(self):
        np.testing.assert_array_equal(seeded_bedrock(10, 6, seed=4),
                                      seeded_bedrock(10, 6, seed=4))

    def test_seed_changes_terrain(self):
        assert not np.array_equal(seeded_bedrock(10, 6, seed=4),
                                  seeded_bedrock(10, 6, seed=5))

    def test_range(self):
        elev = seeded_bedrock(32, 16, seed=0, base=1.0, amplitude=0.5)
        assert elev.min() >= 0.5 - 1e-6
        assert elev.max() <= 1.5 + 1e-6
        # the largest deviation hits the full amplitude
        assert np.abs(elev - 1.0).max() == pytest.approx(0.5, rel=1e-5)

    def test_clamped_at_zero(self):
        elev = seeded_bedrock(16, 8, seed=2, base=0.0, amplitude=1.0)
        assert elev.min() == 0.0

    def test_zero_amplitude_is_flat(self):
        np.testing.assert_allclose(seeded_bedrock(8, 4, amplitude=0.0), 1.0)

    def test_rejects_bad_arguments(self):
        with pytest.raises(ConfigurationError):
            seeded_bedrock(0, 4)
        with pytest.raises(ConfigurationError):
            seeded_bedrock(4, 4, smoothing=-1.0)


class TestSeededField:
    def test_builds_fresh_field(self):
        field = seeded_field(8, 4, seed=3, initial_flow_speed=0.5)
        np.testing.assert_array_equal(field.bedrock, seeded_bedrock(8, 4, seed=3))
        assert np.all(field.water == 0.0)
        assert np.all(field.flow_speed == 0.5)


class TestMeshHeights:
    def test_flat_field(self):
        field = HeightField.new(5, 4, 1.0)
        np.testing.assert_allclose(mesh_heights(field, 1.0, 0.1), 1.1)

    def test_rows_flipped_north_first(self):
        field = HeightField.new(5, 4, 0.0)
        field.bedrock[3, :] = 2.0        # northern row
        radii = mesh_heights(field, base_radius=1.0, exaggeration=0.5)
        np.testing.assert_allclose(radii[0], 2.0)
        np.testing.assert_allclose(radii[1:], 1.0)

    def test_water_raises_surface(self):
        field = HeightField.new(3, 3, 1.0)
        field.water[1, 1] = 1.0
        radii = mesh_heights(field, base_radius=0.0, exaggeration=1.0)
        assert radii[1, 1] == pytest.approx(2.0)
