"""Tests for the click command line."""

import numpy as np
import pytest
from click.testing import CliRunner

from planetbuilder.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_icosphere(runner, tmp_path):
    out = tmp_path / "ico.ply"
    result = runner.invoke(cli, ["icosphere", "-s", "1", "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert out.exists()
    assert "80 triangles" in result.output


def test_icosphere_bad_subdivisions(runner, tmp_path):
    result = runner.invoke(cli, ["icosphere", "-s", "-1", "-o", str(tmp_path / "x.glb")])
    assert result.exit_code != 0
    assert "subdivisions" in result.output


def test_globe(runner, tmp_path):
    out = tmp_path / "globe.stl"
    result = runner.invoke(cli, ["globe", "--h-verts", "8", "--v-verts", "5", "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert out.exists()
    assert "48 triangles" in result.output


def test_globe_too_small(runner, tmp_path):
    result = runner.invoke(cli, ["globe", "--h-verts", "2", "-o", str(tmp_path / "g.glb")])
    assert result.exit_code != 0
    assert "h_verts" in result.output


def test_simulate_with_snapshot(runner, tmp_path):
    out = tmp_path / "planet.glb"
    snap = tmp_path / "planet.npz"
    result = runner.invoke(cli, [
        "simulate", "--width", "8", "--height", "4", "--ticks", "3",
        "--precipitation", "0.02", "-o", str(out), "--snapshot", str(snap),
    ])
    assert result.exit_code == 0, result.output
    assert out.exists()
    with np.load(snap) as data:
        assert int(data["tick"]) == 3
        assert data["bedrock"].shape == (4, 8)


def test_simulate_rejects_tiny_grid(runner, tmp_path):
    result = runner.invoke(cli, ["simulate", "--width", "2", "--height", "4",
                                 "-o", str(tmp_path / "p.glb")])
    assert result.exit_code != 0
    assert "3x3" in result.output
