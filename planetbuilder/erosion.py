"""Hydraulic erosion: one shallow-water / sediment tick over a HeightField.

Every tick reads a single snapshot ("current") and writes a brand new field
("next"), so a cell never sees a neighbour's already-updated state.  All
per-cell rules are evaluated as whole-grid numpy expressions.

Per tick, per cell:
  1. precipitation adds water
  2. directional outflow grows with height above the neighbour
  3. outflow is scaled so a cell never emits more water than it holds
  4. water is exchanged along the neighbour links
  5. flow speed relaxes towards the latest in+out flux
  6-7. slope, stream power and carrying capacity
  8. deposition, bedrock erosion or bed-sediment dissolution (one of them)
  9. suspended sediment is advected with the outgoing water
"""

import logging
import time
from dataclasses import dataclass, replace, fields
from typing import Callable, Optional, Union

import numpy as np
from tqdm import tqdm

from . import constants
from .constants import FIELD_DTYPE
from .errors import ConfigurationError
from .heightfield import HeightField, neighbor_tables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErosionParams:
    """Tunable constants for a tick.

    precipitation_rate may be a scalar or an (H, W) array of per-cell rates.
    """
    precipitation_rate: Union[float, np.ndarray] = 0.0
    dt: float = 1.0
    erosion_rate: float = 0.1
    deposition_rate: float = 0.1
    capacity_k: float = 1.0
    target_factor: float = 1.0
    speed_smoothing: float = 0.5
    bedrock_erosion_threshold: float = constants.BEDROCK_EROSION_THRESHOLD

    def __post_init__(self):
        if np.any(np.asarray(self.precipitation_rate) < 0):
            raise ConfigurationError("precipitation_rate must be >= 0")
        if not self.dt > 0:
            raise ConfigurationError(f"dt must be > 0, got {self.dt}")
        for name in ("erosion_rate", "deposition_rate", "capacity_k",
                     "target_factor", "bedrock_erosion_threshold"):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")
        if not 0.0 <= self.speed_smoothing <= 1.0:
            raise ConfigurationError(f"speed_smoothing must be in [0, 1], "
                                     f"got {self.speed_smoothing}")

    @classmethod
    def from_env(cls, **overrides) -> "ErosionParams":
        """Parameters from ``constants`` (and so from PLANETBUILDER_* variables)."""
        params = cls(
            precipitation_rate=constants.DEFAULT_PRECIPITATION_RATE,
            dt=constants.DEFAULT_DT,
            erosion_rate=constants.DEFAULT_EROSION_RATE,
            deposition_rate=constants.DEFAULT_DEPOSITION_RATE,
            capacity_k=constants.DEFAULT_CAPACITY_K,
            target_factor=constants.DEFAULT_TARGET_FACTOR,
            speed_smoothing=constants.DEFAULT_SPEED_SMOOTHING,
        )
        return replace(params, **overrides) if overrides else params

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def field_mass(field: HeightField) -> float:
    return field.mass()


def _scatter(values, targets, arrival, size):
    """Deliver ``values[d, cell]`` to ``targets[d, cell]``.

    Returns (4, size): what each receiver got, split by the receiver-side
    direction it arrived from.
    """
    received = np.zeros((4, size), dtype=np.float64)
    np.add.at(received,
              (arrival.reshape(4, -1), targets.reshape(4, -1)),
              values.reshape(4, -1))
    return received


def _precipitation(params, shape):
    rate = np.asarray(params.precipitation_rate, dtype=np.float64)
    if rate.ndim and rate.shape != shape:
        raise ConfigurationError(f"precipitation_rate has shape {rate.shape}, "
                                 f"grid is {shape}")
    return rate


def _clean(arr):
    """Clamp to >= 0 and drop NaN, cast to the storage dtype."""
    arr = np.nan_to_num(arr, nan=0.0)
    return np.maximum(arr, 0.0).astype(FIELD_DTYPE)


def step(field: HeightField, params: ErosionParams) -> HeightField:
    """Advance ``field`` by one tick and return the next field.

    ``field`` itself is left untouched.
    """
    h, w = field.shape
    size = h * w
    targets, arrival = neighbor_tables(w, h)
    dt = params.dt

    # Prior snapshot, in float64 for the arithmetic
    bedrock = field.bedrock.astype(np.float64)
    bed = field.bed_sediment.astype(np.float64)
    suspended = field.suspended_sediment.astype(np.float64)
    old_outflow = field.outflow.astype(np.float64)
    old_speed = field.flow_speed.astype(np.float64)

    total = bedrock + bed + field.water.astype(np.float64)
    neighbor = total.ravel()[targets]                           # (4, H, W)

    # 1. precipitation
    water = field.water.astype(np.float64) + _precipitation(params, (h, w)) * dt

    # 2. outflow growth
    outflow = np.maximum(0.0, old_outflow + dt * (old_speed * total[None] - neighbor))

    # 3. never emit more than the cell holds
    total_out = outflow.sum(axis=0)
    scaler = np.ones_like(total_out)
    np.divide(water, total_out, out=scaler, where=total_out > 0)
    outflow *= np.minimum(1.0, scaler)[None]
    total_out = outflow.sum(axis=0)

    # 4. water exchange along the links
    inflow = _scatter(outflow, targets, arrival, size).reshape(4, h, w)
    new_water = np.maximum(0.0, water + inflow.sum(axis=0) - total_out)

    # 5. flow speed follows recent flux
    flux = inflow + outflow
    flow_speed = np.maximum(0.0, old_speed + params.speed_smoothing * (flux - old_speed))

    # 6-7. slope, power, capacity
    slope = np.maximum(0.0, total - neighbor.min(axis=0))
    root_speed = np.sqrt(np.maximum(0.0, flow_speed.mean(axis=0)))
    power = root_speed * slope
    capacity = params.capacity_k * root_speed * slope
    root_power = np.sqrt(np.maximum(0.0, power))

    # 8. deposit / erode bedrock / dissolve bed sediment
    deposit_mask = suspended > capacity * params.target_factor
    erode_mask = ~deposit_mask & (bed < capacity * params.bedrock_erosion_threshold)
    dissolve_mask = ~deposit_mask & ~erode_mask

    excess = np.maximum(0.0, suspended - capacity)
    # Still water (power == 0) drops everything it carries
    settle = excess.copy()
    np.divide(excess, root_power, out=settle, where=root_power > 0)
    settle = np.where(root_power > 0, settle * params.deposition_rate * dt, excess)
    deposited = np.where(deposit_mask, np.minimum(settle, suspended), 0.0)

    pickup = np.maximum(0.0, capacity - suspended) * root_power * params.erosion_rate * dt
    from_rock = np.where(erode_mask, np.minimum(pickup, bedrock), 0.0)
    from_bed = np.where(dissolve_mask, np.minimum(pickup, bed), 0.0)

    new_bedrock = bedrock - from_rock
    new_bed = bed + deposited - from_bed
    suspended = suspended - deposited + from_rock + from_bed

    # 9. sediment rides along with the water that leaves
    share = np.zeros_like(outflow)
    np.divide(outflow, water[None], out=share, where=water[None] > 0)
    sent = suspended[None] * share
    received = _scatter(sent, targets, arrival, size).sum(axis=0).reshape(h, w)
    new_suspended = suspended - sent.sum(axis=0) + received

    next_field = HeightField(
        bedrock=_clean(new_bedrock),
        bed_sediment=_clean(new_bed),
        suspended_sediment=_clean(new_suspended),
        water=_clean(new_water),
        outflow=_clean(outflow),
        flow_speed=_clean(flow_speed),
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Tick: deposit={int(deposit_mask.sum())} "
                     f"erode={int(erode_mask.sum())} dissolve={int(dissolve_mask.sum())} "
                     f"cells, outflow={total_out.sum():.4f}")
    return next_field


class ErosionStepper:
    """Drives ``step`` with a fixed parameter set."""

    def __init__(self, params: Optional[ErosionParams] = None):
        self.params = params if params is not None else ErosionParams()

    def step(self, field: HeightField) -> HeightField:
        return step(field, self.params)

    def run(self, field: HeightField, ticks: int,
            callback: Optional[Callable[[int, HeightField], None]] = None,
            progress: bool = False) -> HeightField:
        """Run ``ticks`` steps; ``callback(tick, field)`` fires after each one.

        ``progress`` shows a tqdm bar on stderr.
        """
        if ticks < 0:
            raise ConfigurationError(f"ticks must be >= 0, got {ticks}")

        t0 = time.perf_counter()
        mass_before = field.mass()
        for i in tqdm(range(ticks), desc="Erosion", disable=not progress):
            field = self.step(field)
            if callback:
                callback(i + 1, field)

        elapsed = time.perf_counter() - t0
        mass_after = field.mass()
        logger.info(f"Erosion: {ticks} ticks on {field.width}x{field.height} grid "
                    f"in {elapsed:.2f}s (mass {mass_before:.4f} -> {mass_after:.4f})")
        return field
