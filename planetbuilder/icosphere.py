"""Geodesic sphere mesh from a subdivided icosahedron.

Each of the 20 base faces is cut into ``res²`` sub-triangles
(``res = 2**subdivisions``) by walking a triangular lattice:

        v0                 col 0:  1 triangle
        /\                 col 1:  3 triangles (up, down, up)
       /__\                col 2:  5 triangles
      /\  /\               ...
     /__\/__\
   v1        v2

Lattice points are integer barycentric weights over (v0, v1, v2) summing to
``res``; they are divided by ``res`` and pushed out onto the circumscribed
sphere.  The output is a triangle soup: vertices are not shared.
"""

import logging
import math

import numpy as np

from .constants import ICO_RADIUS
from .errors import ConfigurationError
from .geometry import flat_normals, scale_to_length
from .models import MeshBuffer

logger = logging.getLogger(__name__)


def _base_vertices():
    """The 12 icosahedron vertices: north pole, two pentagonal rings, south pole."""
    ring_y = ICO_RADIUS / math.sqrt(5.0)
    ring_r = 2.0 * ICO_RADIUS / math.sqrt(5.0)
    verts = [[0.0, ICO_RADIUS, 0.0]]
    for k in range(5):
        a = math.radians(72.0 * k)
        verts.append([ring_r * math.sin(a), ring_y, -ring_r * math.cos(a)])
    # Lower ring is rotated half a step (36°) against the upper one
    for k in range(5):
        a = math.radians(72.0 * k - 36.0)
        verts.append([ring_r * math.sin(a), -ring_y, -ring_r * math.cos(a)])
    verts.append([0.0, -ICO_RADIUS, 0.0])
    return np.array(verts, dtype=np.float64)


BASE_VERTICES = _base_vertices()

# Faces 0-4 share the north pole, 5-14 form the equatorial band,
# 15-19 share the south pole.
NORTH_FACES = [(0, f + 1, (f + 1) % 5 + 1) for f in range(5)]
BAND_FACES = [
    (6, 1, 7), (7, 1, 2), (7, 2, 8), (8, 2, 3), (8, 3, 9),
    (9, 3, 4), (9, 4, 10), (10, 4, 5), (10, 5, 6), (6, 5, 1),
]
SOUTH_FACES = [(11, 10 - f, 10 - (f + 1) % 5) for f in range(5)]
FACES = NORTH_FACES + BAND_FACES + SOUTH_FACES

# Corner emission order per face group.  Sub-triangle corners are computed
# as (A, B, C); caps emit right/apex/left = B, A, C while the band emits
# A, B, C.  Both give counter-clockwise winding seen from outside.
CAP_ORDER = (1, 0, 2)
BAND_ORDER = (0, 1, 2)
FACE_ORDERS = [CAP_ORDER] * 5 + [BAND_ORDER] * 10 + [CAP_ORDER] * 5


def _check_subdivisions(subdivisions):
    if isinstance(subdivisions, bool) or not isinstance(subdivisions, (int, np.integer)):
        raise ConfigurationError(f"subdivisions must be an integer, got {subdivisions!r}")
    if subdivisions < 0:
        raise ConfigurationError(f"subdivisions must be >= 0, got {subdivisions}")
    return int(subdivisions)


def face_lattice_size(subdivisions) -> int:
    """Number of lattice points on one subdivided face."""
    res = 2 ** _check_subdivisions(subdivisions)
    return (res + 1) * (res + 2) // 2


def subtriangle_weights(res):
    """Integer barycentric weights of every sub-triangle corner.

    Returns int array (res², 3, 3): [triangle, corner A/B/C, weight on v0/v1/v2].
    """
    tris = []
    for col in range(res):
        for row in range(2 * col + 1):
            k = row // 2
            if row % 2 == 0:
                # pointing towards v0
                a = (res - col, col - k, k)
                b = (res - col - 1, col + 1 - k, k)
                c = (res - col - 1, col - k, k + 1)
            else:
                a = (res - col - 1, col - k, k + 1)
                b = (res - col, col - k - 1, k + 1)
                c = (res - col, col - k, k)
            tris.append((a, b, c))
    return np.array(tris, dtype=np.int64).reshape(-1, 3, 3)


def lattice_index(w1, w2):
    """Cantor pairing of the (w1, w2) weights: a unique slot per lattice point."""
    s = w1 + w2
    return s * (s + 1) // 2 + w2


def build_icosphere(subdivisions, heights=None) -> MeshBuffer:
    """Build a flat-shaded icosphere.

    Parameters
    ----------
    subdivisions : int — number of edge halvings (>= 0)
    heights : array-like (20, face_lattice_size(subdivisions)), optional
        Radius of every lattice point of every face.  When omitted all
        vertices sit on the circumscribed sphere of radius ``ICO_RADIUS``.

    Returns
    -------
    MeshBuffer with ``60 * 4**subdivisions`` vertices and identity indices.
    """
    subdivisions = _check_subdivisions(subdivisions)
    res = 2 ** subdivisions

    if heights is not None:
        heights = np.asarray(heights, dtype=np.float64)
        expected = (len(FACES), (res + 1) * (res + 2) // 2)
        if heights.shape != expected:
            raise ConfigurationError(f"heights must have shape {expected}, "
                                     f"got {heights.shape}")

    weights = subtriangle_weights(res)
    slots = lattice_index(weights[:, :, 1], weights[:, :, 2])

    chunks = []
    radii = []
    for face_id, (face, order) in enumerate(zip(FACES, FACE_ORDERS)):
        corners = BASE_VERTICES[list(face)]                  # (3, 3)
        pts = np.einsum('tcw,wx->tcx', weights, corners) / res
        chunks.append(pts[:, order, :].reshape(-1, 3))
        if heights is not None:
            radii.append(heights[face_id][slots[:, order]].ravel())

    soup = np.concatenate(chunks)
    radius = np.concatenate(radii) if heights is not None else ICO_RADIUS
    positions = scale_to_length(soup, radius)
    normals = flat_normals(positions)
    indices = np.arange(len(positions), dtype=np.uint32)

    logger.info(f"Icosphere mesh: {len(positions)} verts, "
                f"{len(positions) // 3} faces (subdivisions={subdivisions})")
    return MeshBuffer(positions=positions, normals=normals, indices=indices)
