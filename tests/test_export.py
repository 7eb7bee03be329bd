"""Tests for mesh export and height colouring."""

import numpy as np
import pytest
import trimesh

from planetbuilder.export import export_mesh, height_colors
from planetbuilder.globe import build_rect_mesh
from planetbuilder.icosphere import build_icosphere


class TestHeightColors:
    def test_shape_and_alpha(self):
        mesh = build_rect_mesh(8, 6, np.linspace(1.0, 2.0, 48).reshape(6, 8))
        colors = height_colors(mesh)
        assert colors.shape == (mesh.vertex_count, 4)
        assert colors.dtype == np.uint8
        assert np.all(colors[:, 3] == 255)

    def test_extremes_use_ramp_ends(self):
        ramp = [(0.0, [0, 0, 0]), (1.0, [200, 100, 50])]
        heights = np.ones((5, 4))
        heights[0, 0] = 3.0
        mesh = build_rect_mesh(4, 5, heights)
        colors = height_colors(mesh, ramp)
        np.testing.assert_array_equal(colors[0, :3], [200, 100, 50])
        np.testing.assert_array_equal(colors[1, :3], [0, 0, 0])

    def test_constant_radius_uses_midpoint(self):
        ramp = [(0.0, [0, 0, 0]), (1.0, [200, 100, 50])]
        colors = height_colors(build_icosphere(0), ramp)
        assert np.all(colors[:, :3] == [100, 50, 25])


class TestExportMesh:
    def test_ply_round_trip_counts(self, tmp_path):
        mesh = build_icosphere(1)
        path = export_mesh(mesh, tmp_path / "ico.ply", colors=height_colors(mesh))
        assert path.exists()
        loaded = trimesh.load(str(path), process=False)
        assert len(loaded.faces) == mesh.triangle_count

    @pytest.mark.parametrize("suffix", [".glb", ".stl", ".obj"])
    def test_formats(self, tmp_path, suffix):
        path = export_mesh(build_rect_mesh(8, 5), tmp_path / f"globe{suffix}")
        assert path.stat().st_size > 0

    def test_creates_parent_dirs(self, tmp_path):
        path = export_mesh(build_icosphere(0), tmp_path / "a" / "b" / "ico.glb")
        assert path.exists()

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported"):
            export_mesh(build_icosphere(0), tmp_path / "ico.fbx")

    def test_bad_colors_shape(self, tmp_path):
        with pytest.raises(ValueError, match="colors"):
            export_mesh(build_icosphere(0), tmp_path / "ico.glb", colors=np.zeros((3, 4)))
