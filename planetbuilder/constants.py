"""Configuration constants, paths, and environment overrides."""

import os
import pathlib
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = "PLANETBUILDER_"


def _env_float(name, default):
    raw = os.environ.get(ENV_PREFIX + name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring {ENV_PREFIX}{name}={raw!r}: not a number")
        return default


def _env_int(name, default):
    raw = os.environ.get(ENV_PREFIX + name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring {ENV_PREFIX}{name}={raw!r}: not an integer")
        return default


# ── Paths ────────────────────────────────────────────────────────────────
BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = pathlib.Path(os.environ.get(ENV_PREFIX + "OUTPUT_DIR", BASE_DIR / "output"))

# ── Icosahedron constants ────────────────────────────────────────────────
PHI = (1.0 + 5.0 ** 0.5) / 2.0
# Circumradius of the base icosahedron (edge length 2)
ICO_RADIUS = (1.0 + PHI * PHI) ** 0.5

# ── Mesh defaults ────────────────────────────────────────────────────────
DEFAULT_SUBDIVISIONS = _env_int("SUBDIVISIONS", 3)
DEFAULT_H_VERTS = _env_int("H_VERTS", 100)
DEFAULT_V_VERTS = _env_int("V_VERTS", 100)
# Radius added to total cell height when turning a field into mesh radii
DEFAULT_BASE_RADIUS = _env_float("BASE_RADIUS", 1.0)
DEFAULT_EXAGGERATION = _env_float("EXAGGERATION", 0.1)

# ── Simulation defaults ──────────────────────────────────────────────────
DEFAULT_GRID_WIDTH = _env_int("GRID_WIDTH", 64)
DEFAULT_GRID_HEIGHT = _env_int("GRID_HEIGHT", 32)
DEFAULT_SEED = _env_int("SEED", 0)
DEFAULT_SEED_BEDROCK = _env_float("SEED_BEDROCK", 1.0)
# Flow speed given to every direction of a freshly started session; the
# outflow growth term is inert while it is zero.
DEFAULT_INITIAL_FLOW_SPEED = _env_float("INITIAL_FLOW_SPEED", 1.0)

DEFAULT_PRECIPITATION_RATE = _env_float("PRECIPITATION_RATE", 0.01)
DEFAULT_DT = _env_float("DT", 1.0)
DEFAULT_EROSION_RATE = _env_float("EROSION_RATE", 0.1)
DEFAULT_DEPOSITION_RATE = _env_float("DEPOSITION_RATE", 0.1)
DEFAULT_CAPACITY_K = _env_float("CAPACITY_K", 1.0)
DEFAULT_TARGET_FACTOR = _env_float("TARGET_FACTOR", 1.0)
DEFAULT_SPEED_SMOOTHING = _env_float("SPEED_SMOOTHING", 0.5)
# Bedrock is attacked only once bed sediment falls below this share of capacity
BEDROCK_EROSION_THRESHOLD = 0.05

# Snapshots kept for Session.step_back()
DEFAULT_HISTORY_LIMIT = _env_int("HISTORY_LIMIT", 32)

# ── Numerics ─────────────────────────────────────────────────────────────
FIELD_DTYPE = "float32"
ZERO_LENGTH_EPS = 1e-12

# Vertex colour ramp for exported meshes, low → high (RGB 0-255)
HEIGHT_COLOR_RAMP = [
    (0.00, [40, 70, 160]),     # deep water blue
    (0.35, [64, 133, 217]),    # shallow water
    (0.45, [194, 178, 128]),   # sand
    (0.60, [120, 160, 80]),    # lowland green
    (0.80, [110, 100, 90]),    # rock
    (1.00, [240, 240, 240]),   # snow
]
