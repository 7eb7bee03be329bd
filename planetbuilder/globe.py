"""Pole-capped ring mesh built from a latitude/longitude height grid.

Vertex layout::

    [north pole, row 1 col 0 .. row 1 col h-1, ..., row v-2 col h-1, south pole]

Rows 0 and v-1 of the height grid only contribute their first column (the
pole radii).  Interior row ``i`` sits at ``y = 1 - 2v`` (``v = i/(v_verts-1)``) with
ring radius ``r(v) = 2*sqrt(0.25-(v-0.5)^2)``: rings are evenly spaced along the
axis, not in latitude.
"""

import logging
import math

import numpy as np

from .errors import ConfigurationError
from .models import MeshBuffer

logger = logging.getLogger(__name__)

MIN_GRID_VERTS = 3


def _check_dims(h_verts, v_verts):
    for name, value in (("h_verts", h_verts), ("v_verts", v_verts)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if value < MIN_GRID_VERTS:
            raise ConfigurationError(f"{name} must be >= {MIN_GRID_VERTS}, got {value}")
    return int(h_verts), int(v_verts)


def _height_grid(h_verts, v_verts, heights):
    if heights is None:
        return np.ones((v_verts, h_verts), dtype=np.float64)
    grid = np.asarray(heights, dtype=np.float64)
    if grid.shape != (v_verts, h_verts):
        raise ConfigurationError(f"heights must have shape ({v_verts}, {h_verts}), "
                                 f"got {grid.shape}")
    return grid


def rect_positions(heights) -> np.ndarray:
    """Vertex positions for a (v_verts, h_verts) height grid.

    Cheap to call on its own when only the heights changed and the index
    buffer from a previous ``build_rect_mesh`` can be reused.
    """
    grid = np.asarray(heights, dtype=np.float64)
    v_verts, h_verts = grid.shape
    _check_dims(h_verts, v_verts)

    rows = np.arange(1, v_verts - 1)
    v = rows / (v_verts - 1.0)
    taper = 2.0 * np.sqrt(np.maximum(0.0, 0.25 - (v - 0.5) ** 2))  # (rows,)
    theta = 2.0 * math.pi * np.arange(h_verts) / h_verts            # (cols,)

    ring = grid[1:-1, :]
    verts = np.empty((h_verts * (v_verts - 2) + 2, 3), dtype=np.float64)
    verts[0] = [0.0, grid[0, 0], 0.0]
    verts[1:-1, 0] = (ring * np.cos(theta)[None, :] * taper[:, None]).ravel()
    verts[1:-1, 1] = (ring * (1.0 - 2.0 * v)[:, None]).ravel()
    verts[1:-1, 2] = (ring * np.sin(theta)[None, :] * taper[:, None]).ravel()
    verts[-1] = [0.0, -grid[-1, 0], 0.0]
    return verts


def rect_indices(h_verts, v_verts) -> np.ndarray:
    """Index buffer: north fan, quad strips between rings, south fan."""
    h_verts, v_verts = _check_dims(h_verts, v_verts)
    cols = np.arange(h_verts)
    nxt = (cols + 1) % h_verts

    # North fan against the first ring
    top = np.column_stack([nxt + 1, cols + 1, np.zeros(h_verts, dtype=np.int64)])

    # Two triangles per column between ring i and ring i+1
    ii, jj = np.meshgrid(np.arange(v_verts - 3), cols, indexing='ij')
    ii = ii.ravel()
    jj = jj.ravel()
    jn = (jj + 1) % h_verts
    upper = ii * h_verts + 1
    lower = (ii + 1) * h_verts + 1
    tri1 = np.column_stack([lower + jn, lower + jj, upper + jj])
    tri2 = np.column_stack([upper + jn, lower + jn, upper + jj])
    strips = np.stack([tri1, tri2], axis=1).reshape(-1, 3)

    # South fan against the last ring
    last = h_verts * (v_verts - 3) + 1
    south = h_verts * (v_verts - 2) + 1
    bottom = np.column_stack([last + nxt, np.full(h_verts, south), last + cols])

    return np.concatenate([top, strips, bottom]).ravel().astype(np.uint32)


def build_rect_mesh(h_verts, v_verts, heights=None) -> MeshBuffer:
    """Build the ring mesh for an ``h_verts`` x ``v_verts`` height grid.

    ``heights`` has shape (v_verts, h_verts) with row 0 at the north pole;
    omitted heights default to 1.0.  Normals are the (unnormalised) vertex
    positions.
    """
    h_verts, v_verts = _check_dims(h_verts, v_verts)
    grid = _height_grid(h_verts, v_verts, heights)

    positions = rect_positions(grid)
    indices = rect_indices(h_verts, v_verts)

    logger.info(f"Globe ring mesh: {len(positions)} verts, "
                f"{len(indices) // 3} faces ({h_verts}x{v_verts} grid)")
    return MeshBuffer(positions=positions, normals=positions.copy(), indices=indices)
