"""Simulation session: which systems run, when, and against which grid.

A session is either at the main menu or simulating.  Leaving the main menu
seeds a fresh field; quitting drops it.  While simulating, each ``tick()``
advances the erosion model by one step (unless paused) and keeps the
previous grid so the caller can step back.
"""

import logging
import pathlib
from collections import deque
from enum import Enum
from typing import Optional

import numpy as np

from . import constants
from .erosion import ErosionParams, ErosionStepper
from .errors import ConfigurationError
from .globe import build_rect_mesh
from .heightfield import HeightField, LAYERS
from .models import MeshBuffer
from .terrain import mesh_heights, seeded_field

logger = logging.getLogger(__name__)


class AppState(str, Enum):
    MAIN_MENU = "main_menu"
    SIMULATE = "simulate"


class Session:
    def __init__(self, width=constants.DEFAULT_GRID_WIDTH,
                 height=constants.DEFAULT_GRID_HEIGHT,
                 params: Optional[ErosionParams] = None,
                 seed=constants.DEFAULT_SEED,
                 initial_flow_speed=constants.DEFAULT_INITIAL_FLOW_SPEED,
                 history_limit=constants.DEFAULT_HISTORY_LIMIT,
                 base_radius=constants.DEFAULT_BASE_RADIUS,
                 exaggeration=constants.DEFAULT_EXAGGERATION):
        """
        width, height: grid size; both must be >= 3 so the globe mesh exists.
        params: erosion parameters, defaults from the environment.
        seed: RNG seed for the starting bedrock.
        history_limit: how many past grids step_back() can return to.
        """
        if width < 3 or height < 3:
            raise ConfigurationError(f"session grid must be at least 3x3, got {width}x{height}")
        if history_limit < 0:
            raise ConfigurationError(f"history_limit must be >= 0, got {history_limit}")

        self.width = width
        self.height = height
        self.seed = seed
        self.initial_flow_speed = initial_flow_speed
        self.base_radius = base_radius
        self.exaggeration = exaggeration
        self.height_scale = 1.0
        self.stepper = ErosionStepper(params if params is not None else ErosionParams.from_env())

        self.state = AppState.MAIN_MENU
        self.paused = False
        self.tick_count = 0
        self.field: Optional[HeightField] = None
        self._history = deque(maxlen=history_limit)

    # ── State transitions ───────────────────────────────────────────────

    def _require(self, state):
        if self.state != state:
            raise ConfigurationError(f"session is in {self.state.value}, "
                                     f"expected {state.value}")

    def start(self, field: Optional[HeightField] = None):
        """Main menu → simulate, with ``field`` or a freshly seeded one."""
        self._require(AppState.MAIN_MENU)
        if field is None:
            field = seeded_field(self.width, self.height, seed=self.seed,
                                 initial_flow_speed=self.initial_flow_speed)
        elif field.shape != (self.height, self.width):
            raise ConfigurationError(f"field is {field.width}x{field.height}, "
                                     f"session is {self.width}x{self.height}")
        self.field = field
        self.tick_count = 0
        self.paused = False
        self._history.clear()
        self.state = AppState.SIMULATE
        logger.info(f"Simulation started on {self.width}x{self.height} grid")

    def quit(self):
        """Simulate → main menu; the grid is discarded."""
        self._require(AppState.SIMULATE)
        self.field = None
        self._history.clear()
        self.state = AppState.MAIN_MENU
        logger.info(f"Simulation stopped after {self.tick_count} ticks")

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    # ── Simulation ──────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self.state == AppState.SIMULATE and not self.paused

    def tick(self) -> bool:
        """Advance one step if simulating and not paused.  Returns True if it did."""
        if not self.running:
            return False
        if self._history.maxlen:
            self._history.append(self.field)
        self.field = self.stepper.step(self.field)
        self.tick_count += 1
        return True

    def step_back(self) -> bool:
        """Restore the grid from before the last tick, if one is remembered."""
        self._require(AppState.SIMULATE)
        if not self._history:
            return False
        self.field = self._history.pop()
        self.tick_count -= 1
        return True

    @property
    def history_depth(self) -> int:
        return len(self._history)

    # ── Geometry ────────────────────────────────────────────────────────

    def scale_heights(self, factor):
        """Multiply every mesh radius by ``factor`` (display only)."""
        if factor <= 0:
            raise ConfigurationError(f"height scale factor must be > 0, got {factor}")
        self.height_scale *= factor

    def mesh(self) -> MeshBuffer:
        """Globe mesh for the current grid; unit radii at the main menu."""
        if self.field is None:
            heights = np.ones((self.height, self.width))
        else:
            heights = mesh_heights(self.field, self.base_radius, self.exaggeration)
        return build_rect_mesh(self.width, self.height, heights * self.height_scale)

    # ── Snapshots ───────────────────────────────────────────────────────

    def save(self, path) -> pathlib.Path:
        """Write the current grid and tick counter as a compressed .npz."""
        self._require(AppState.SIMULATE)
        path = pathlib.Path(path)
        if path.suffix != ".npz":
            path = path.with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(path, tick=np.array(self.tick_count), seed=np.array(self.seed),
                            **self.field.as_arrays())
        logger.info(f"Saved tick {self.tick_count} snapshot to {path}")
        return path

    @classmethod
    def load(cls, path, params: Optional[ErosionParams] = None, **kwargs) -> "Session":
        """Session already simulating from a ``save()`` snapshot."""
        with np.load(pathlib.Path(path)) as data:
            field = HeightField.from_arrays({name: data[name] for name in LAYERS
                                             if name in data.files})
            tick = int(data["tick"]) if "tick" in data.files else 0
            seed = int(data["seed"]) if "seed" in data.files else constants.DEFAULT_SEED

        session = cls(width=field.width, height=field.height, params=params,
                      seed=seed, **kwargs)
        session.start(field)
        session.tick_count = tick
        logger.info(f"Loaded tick {tick} snapshot from {path}")
        return session
