"""Bedrock seeding and height-field → mesh radius conversion."""

import logging

import numpy as np
from scipy.ndimage import gaussian_filter

from .constants import (DEFAULT_BASE_RADIUS, DEFAULT_EXAGGERATION, DEFAULT_SEED_BEDROCK,
                        FIELD_DTYPE)
from .errors import ConfigurationError
from .heightfield import HeightField

logger = logging.getLogger(__name__)


def seeded_bedrock(width, height, seed=0, base=DEFAULT_SEED_BEDROCK, amplitude=0.5,
                   smoothing=2.0):
    """Reproducible rolling bedrock for a (height, width) grid.

    White noise from ``seed`` is blurred with a wrap-around Gaussian (the grid
    is periodic in x) and rescaled to ``base ± amplitude``.  Values are
    clamped at zero.

    Parameters
    ----------
    width, height : int — grid dimensions
    seed : int — RNG seed
    base : float — mean elevation
    amplitude : float — half the peak-to-trough range
    smoothing : float — Gaussian sigma in cells; 0 keeps raw noise
    """
    if width < 1 or height < 1:
        raise ConfigurationError(f"grid must be at least 1x1, got {width}x{height}")
    if amplitude < 0 or smoothing < 0:
        raise ConfigurationError("amplitude and smoothing must be >= 0")

    rng = np.random.default_rng(seed)
    noise = rng.standard_normal((height, width))
    if smoothing > 0:
        noise = gaussian_filter(noise, sigma=smoothing, mode='wrap')

    spread = float(np.abs(noise).max())
    if spread > 0:
        noise /= spread
    elev = np.maximum(0.0, base + amplitude * noise)

    logger.info(f"Seeded bedrock {width}x{height} (seed={seed}): "
                f"range {elev.min():.3f}..{elev.max():.3f}")
    return elev.astype(FIELD_DTYPE)


def seeded_field(width, height, seed=0, initial_flow_speed=0.0, **noise_kwargs):
    """HeightField.new() on top of ``seeded_bedrock``."""
    bedrock = seeded_bedrock(width, height, seed=seed, **noise_kwargs)
    return HeightField.new(width, height, bedrock, initial_flow_speed=initial_flow_speed)


def mesh_heights(field, base_radius=DEFAULT_BASE_RADIUS,
                 exaggeration=DEFAULT_EXAGGERATION):
    """Radii grid for ``build_rect_mesh`` from a field's total heights.

    The field's top row (y = H-1) is the north row, while the mesh expects
    north at row 0, so rows are flipped.  Returns float64 (H, W).
    """
    total = field.total_height().astype(np.float64)
    return base_radius + exaggeration * total[::-1, :]
