"""Vector and triangle helpers shared by the mesh builders."""

import numpy as np

from .constants import ZERO_LENGTH_EPS
from .errors import DegenerateVectorError


# ── Single vectors ──────────────────────────────────────────────────────

def normalize(v):
    """Return ``v`` scaled to unit length.

    Raises DegenerateVectorError when ``|v|`` is (numerically) zero.
    """
    v = np.asarray(v, dtype=np.float64)
    length = float(np.linalg.norm(v))
    if length < ZERO_LENGTH_EPS:
        raise DegenerateVectorError(f"Cannot normalize zero-length vector {v.tolist()}")
    return v / length


def barycentric_point(v0, v1, v2, w0, w1, w2):
    """Weighted sum ``w0*v0 + w1*v1 + w2*v2``.

    No normalisation is applied; callers divide by the weight total and
    project afterwards.
    """
    return (w0 * np.asarray(v0, dtype=np.float64) +
            w1 * np.asarray(v1, dtype=np.float64) +
            w2 * np.asarray(v2, dtype=np.float64))


def flat_normal(v0, v1, v2):
    """Direction of a triangle's centroid from the origin.

    Displaced vertices are scaled out from the origin, so the centroid
    direction stands in for the outward face normal (flat shading).
    """
    centroid = (np.asarray(v0, dtype=np.float64) +
                np.asarray(v1, dtype=np.float64) +
                np.asarray(v2, dtype=np.float64)) / 3.0
    return normalize(centroid)


# ── Row-wise (N, 3) arrays ──────────────────────────────────────────────

def vector_lengths(vectors):
    return np.linalg.norm(np.asarray(vectors, dtype=np.float64), axis=-1)


def normalize_rows(vectors):
    """Normalize every row of an (N, 3) array.

    Raises DegenerateVectorError if any row has zero length.
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    lengths = vector_lengths(vectors)
    if np.any(lengths < ZERO_LENGTH_EPS):
        bad = int(np.argmax(lengths < ZERO_LENGTH_EPS))
        raise DegenerateVectorError(f"Cannot normalize zero-length vector at row {bad}")
    return vectors / lengths[..., None]


def scale_to_length(vectors, length):
    """Project rows onto a sphere: each row keeps its direction, gets ``length``.

    ``length`` may be a scalar or one value per row.
    """
    length = np.asarray(length, dtype=np.float64)
    if length.ndim:
        length = length[..., None]
    return normalize_rows(vectors) * length


def flat_normals(triangle_soup):
    """Per-vertex flat normals for a non-indexed triangle list.

    ``triangle_soup`` is (3k, 3): rows 3i..3i+2 form triangle i.  Every vertex
    of a triangle receives that triangle's ``flat_normal``.
    """
    soup = np.asarray(triangle_soup, dtype=np.float64)
    if len(soup) % 3:
        raise ValueError(f"Triangle list length {len(soup)} is not a multiple of 3")
    centroids = soup.reshape(-1, 3, 3).mean(axis=1)
    normals = normalize_rows(centroids)
    return np.repeat(normals, 3, axis=0)
