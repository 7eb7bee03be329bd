"""Mesh export through trimesh (GLB, PLY, OBJ, STL) with height colouring."""

import logging
import pathlib
from typing import Optional

import numpy as np
import trimesh

from .constants import HEIGHT_COLOR_RAMP
from .models import MeshBuffer

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = frozenset({'.glb', '.gltf', '.ply', '.obj', '.stl'})


def height_colors(mesh: MeshBuffer, ramp=HEIGHT_COLOR_RAMP) -> np.ndarray:
    """RGBA uint8 colour per vertex from its distance to the origin.

    Radii are normalised to 0..1 over the mesh, then looked up in ``ramp``
    (a list of ``(stop, [r, g, b])``).  A mesh of (near) constant radius gets the
    colour at the middle of the ramp.
    """
    radius = np.linalg.norm(mesh.positions.astype(np.float64), axis=1)
    if len(radius) and np.ptp(radius) > 1e-5 * radius.max():
        lo = radius.min()
        hi = radius.max()
        t = (radius - lo) / (hi - lo)
    else:
        t = np.full(len(radius), 0.5)

    stops = np.array([s for s, _ in ramp], dtype=np.float64)
    rgb = np.array([c for _, c in ramp], dtype=np.float64)
    colors = np.empty((len(radius), 4), dtype=np.uint8)
    for ch in range(3):
        colors[:, ch] = np.clip(np.round(np.interp(t, stops, rgb[:, ch])), 0, 255)
    colors[:, 3] = 255
    return colors


def export_mesh(mesh: MeshBuffer, path, colors: Optional[np.ndarray] = None) -> pathlib.Path:
    """Write ``mesh`` to ``path``; the format follows the file suffix.

    ``colors`` is an optional (N, 4) uint8 array of vertex colours.
    """
    path = pathlib.Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported mesh format {suffix!r} "
                         f"(expected one of {', '.join(sorted(SUPPORTED_FORMATS))})")

    tm = mesh.to_trimesh()
    if colors is not None:
        colors = np.asarray(colors, dtype=np.uint8)
        if colors.shape != (mesh.vertex_count, 4):
            raise ValueError(f"colors must have shape ({mesh.vertex_count}, 4), "
                             f"got {colors.shape}")
        tm.visual = trimesh.visual.ColorVisuals(mesh=tm, vertex_colors=colors)

    path.parent.mkdir(parents=True, exist_ok=True)
    tm.export(str(path))

    size_kb = path.stat().st_size / 1024
    logger.info(f"Exported {mesh.vertex_count} verts, {mesh.triangle_count} faces "
                f"to {path} ({size_kb:.1f} KB)")
    return path
