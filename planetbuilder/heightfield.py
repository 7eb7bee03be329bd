"""Per-cell simulation state for a spherical latitude/longitude grid.

The grid is stored as a struct of arrays indexed ``[y, x]`` (scalars) and
``[direction, y, x]`` (outflow, flow speed).  Row ``y = H-1`` is the northern
edge and row ``y = 0`` the southern edge.

Neighbour rules:
  * east/west wrap around the row (torus in x);
  * north of the top row and south of the bottom row is the antipodal column
    ``(x + W//2) % W`` on the *same* row, stepping over the pole.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from typing import Tuple

import numpy as np

from .constants import FIELD_DTYPE
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Direction(IntEnum):
    """Cardinal directions, in the order used by the directional arrays."""
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    @property
    def opposite(self) -> "Direction":
        return Direction((self + 2) % 4)


SCALAR_LAYERS = ("bedrock", "bed_sediment", "suspended_sediment", "water")
DIRECTIONAL_LAYERS = ("outflow", "flow_speed")
LAYERS = SCALAR_LAYERS + DIRECTIONAL_LAYERS


@dataclass(frozen=True)
class Flow:
    n: float
    e: float
    s: float
    w: float

    @property
    def total(self) -> float:
        return self.n + self.e + self.s + self.w


@dataclass(frozen=True)
class HeightCell:
    """Read-only snapshot of one grid cell."""
    bedrock: float
    bed_sediment: float
    suspended_sediment: float
    water: float
    outflow: Flow
    flow_speed: Flow

    @property
    def total_height(self) -> float:
        # Suspended sediment travels with the water, it is not stacked terrain
        return self.bedrock + self.bed_sediment + self.water

    @property
    def total_outflow(self) -> float:
        return self.outflow.total

    @property
    def mass(self) -> float:
        return self.bedrock + self.bed_sediment + self.suspended_sediment + self.water


def neighbor_coords(x, y, direction, width, height):
    """Neighbour of (x, y) in ``direction``; works on ints or numpy arrays.

    Returns (nx, ny, crossed_pole).
    """
    direction = Direction(direction)
    x = np.asarray(x)
    y = np.asarray(y)
    if direction == Direction.EAST:
        return (x + 1) % width, y, np.zeros_like(x, dtype=bool)
    if direction == Direction.WEST:
        return (x - 1) % width, y, np.zeros_like(x, dtype=bool)

    antipode = (x + width // 2) % width
    if direction == Direction.NORTH:
        crossed = y == height - 1
        return np.where(crossed, antipode, x), np.where(crossed, y, y + 1), crossed
    crossed = y == 0
    return np.where(crossed, antipode, x), np.where(crossed, y, y - 1), crossed


@lru_cache(maxsize=32)
def neighbor_tables(width, height) -> Tuple[np.ndarray, np.ndarray]:
    """Link tables for the vectorised stepper.

    Returns
    -------
    targets : intp (4, H, W) — flat index ``ny * W + nx`` of each neighbour
    arrival : intp (4, H, W) — direction, in the receiver's frame, that
        points back along the link (opposite direction for ordinary links,
        the same direction for links over a pole)
    """
    ys, xs = np.meshgrid(np.arange(height), np.arange(width), indexing='ij')
    targets = np.empty((4, height, width), dtype=np.intp)
    arrival = np.empty((4, height, width), dtype=np.intp)
    for d in Direction:
        nx, ny, crossed = neighbor_coords(xs, ys, d, width, height)
        targets[d] = ny * width + nx
        arrival[d] = np.where(crossed, int(d), int(d.opposite))
    targets.setflags(write=False)
    arrival.setflags(write=False)
    return targets, arrival


def neighbor_index_table(width, height) -> np.ndarray:
    """Flat neighbour indices, shape (4, H*W)."""
    return neighbor_tables(width, height)[0].reshape(4, -1)


def arrival_direction_table(width, height) -> np.ndarray:
    """Receiver-side arrival direction per link, shape (4, H*W)."""
    return neighbor_tables(width, height)[1].reshape(4, -1)


def _check_dims(width, height):
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if value < 1:
            raise ConfigurationError(f"{name} must be >= 1, got {value}")
    return int(width), int(height)


class HeightField:
    """Authoritative erosion state for a W x H grid.

    Instances are treated as immutable snapshots by the stepper: a tick reads
    one field and returns a new one.
    """

    def __init__(self, bedrock, bed_sediment, suspended_sediment, water,
                 outflow, flow_speed):
        self.bedrock = np.asarray(bedrock, dtype=FIELD_DTYPE)
        if self.bedrock.ndim != 2:
            raise ConfigurationError(f"bedrock must be 2-D, got shape {self.bedrock.shape}")
        shape = self.bedrock.shape
        self.bed_sediment = np.asarray(bed_sediment, dtype=FIELD_DTYPE)
        self.suspended_sediment = np.asarray(suspended_sediment, dtype=FIELD_DTYPE)
        self.water = np.asarray(water, dtype=FIELD_DTYPE)
        self.outflow = np.asarray(outflow, dtype=FIELD_DTYPE)
        self.flow_speed = np.asarray(flow_speed, dtype=FIELD_DTYPE)

        for name in SCALAR_LAYERS:
            if getattr(self, name).shape != shape:
                raise ConfigurationError(f"{name} has shape {getattr(self, name).shape}, "
                                         f"expected {shape}")
        for name in DIRECTIONAL_LAYERS:
            if getattr(self, name).shape != (4,) + shape:
                raise ConfigurationError(f"{name} has shape {getattr(self, name).shape}, "
                                         f"expected {(4,) + shape}")

    @classmethod
    def new(cls, width, height, seed_bedrock=0.0, initial_flow_speed=0.0):
        """Fresh field: zero water, sediment and flow; bedrock from ``seed_bedrock``.

        ``seed_bedrock`` is a scalar or an (height, width) array.
        """
        width, height = _check_dims(width, height)
        shape = (height, width)
        try:
            bedrock = np.broadcast_to(np.asarray(seed_bedrock, dtype=FIELD_DTYPE), shape)
        except ValueError as e:
            raise ConfigurationError(f"seed bedrock does not fit a {width}x{height} grid: {e}") from e
        if np.any(bedrock < 0) or not np.all(np.isfinite(bedrock)):
            raise ConfigurationError("seed bedrock must be finite and non-negative")
        if initial_flow_speed < 0:
            raise ConfigurationError(f"initial_flow_speed must be >= 0, got {initial_flow_speed}")

        zeros = np.zeros(shape, dtype=FIELD_DTYPE)
        return cls(
            bedrock=bedrock.copy(),
            bed_sediment=zeros.copy(),
            suspended_sediment=zeros.copy(),
            water=zeros.copy(),
            outflow=np.zeros((4,) + shape, dtype=FIELD_DTYPE),
            flow_speed=np.full((4,) + shape, initial_flow_speed, dtype=FIELD_DTYPE),
        )

    # ── Shape ───────────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self.bedrock.shape[1]

    @property
    def height(self) -> int:
        return self.bedrock.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.bedrock.shape

    # ── Derived quantities ──────────────────────────────────────────────

    def total_height(self) -> np.ndarray:
        """bedrock + bed sediment + water, per cell."""
        return self.bedrock + self.bed_sediment + self.water

    def total_outflow(self) -> np.ndarray:
        return self.outflow.sum(axis=0)

    def neighbor_heights(self) -> np.ndarray:
        """Total height of each cell's N/E/S/W neighbour, shape (4, H, W)."""
        targets, _ = neighbor_tables(self.width, self.height)
        return self.total_height().ravel()[targets]

    def mass(self) -> float:
        """Sum of bedrock, bed sediment, suspended sediment and water."""
        return float(self.bedrock.sum(dtype=np.float64) +
                     self.bed_sediment.sum(dtype=np.float64) +
                     self.suspended_sediment.sum(dtype=np.float64) +
                     self.water.sum(dtype=np.float64))

    # ── Cell access ─────────────────────────────────────────────────────

    def _check_cell(self, x, y):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"cell ({x}, {y}) outside {self.width}x{self.height} grid")

    def neighbor(self, x, y, direction) -> Tuple[int, int]:
        self._check_cell(x, y)
        nx, ny, _ = neighbor_coords(x, y, direction, self.width, self.height)
        return int(nx), int(ny)

    def cell(self, x, y) -> HeightCell:
        self._check_cell(x, y)
        return HeightCell(
            bedrock=float(self.bedrock[y, x]),
            bed_sediment=float(self.bed_sediment[y, x]),
            suspended_sediment=float(self.suspended_sediment[y, x]),
            water=float(self.water[y, x]),
            outflow=Flow(*(float(v) for v in self.outflow[:, y, x])),
            flow_speed=Flow(*(float(v) for v in self.flow_speed[:, y, x])),
        )

    # ── Invariants ──────────────────────────────────────────────────────

    def is_valid(self) -> bool:
        """True when every layer is finite and non-negative."""
        for name in LAYERS:
            arr = getattr(self, name)
            if not np.all(np.isfinite(arr)) or np.any(arr < 0):
                return False
        return True

    def copy(self) -> "HeightField":
        return HeightField(**{name: getattr(self, name).copy() for name in LAYERS})

    def as_arrays(self) -> dict:
        return {name: getattr(self, name) for name in LAYERS}

    @classmethod
    def from_arrays(cls, arrays) -> "HeightField":
        missing = [name for name in LAYERS if name not in arrays]
        if missing:
            raise ConfigurationError(f"missing layers: {', '.join(missing)}")
        return cls(**{name: np.array(arrays[name]) for name in LAYERS})

    def __repr__(self):
        return f"<HeightField {self.width}x{self.height} mass={self.mass():.4f}>"
