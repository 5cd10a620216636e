# simulation.py
"""
Runs the snowfall: spawning, stepping and publishing snowflake snapshots.

This module defines the Simulation class, which owns the published
SnowfallState and the ShakeModifiers. Two periodic worker threads drive
it: a generator that spawns flakes and decays the shake boost, and a
stepper that advances every flake and prunes the melted ones. Both
publish a brand new snapshot with a single reference assignment, so the
renderer always reads a fully-formed frame without taking a lock.
"""
import logging
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import numpy as np

from constants import (
    MAXIMUM_SNOWFLAKE_COUNT, SNOW_GENERATION_INTERVAL_MS, SNOWFLAKE_STEP_DELAY_MS,
    SNOWFLAKE_GENERATION_INTENSITY, SNOWFLAKE_GENERATION_INTENSITY_SHAKE,
    SNOWFLAKE_FALLING_SPEED_MODIFIER, SNOWFLAKE_FALLING_SPEED_MODIFIER_SHAKE,
    SHAKE_INTENSITY_DECREASE_TIME_MS, SNOWFLAKE_SIZE_LARGE_DP,
    SNOWFLAKE_SMALL_VELOCITY_DP_PER_SEC, SNOWFLAKE_MEDIUM_VELOCITY_DP_PER_SEC,
    SNOWFLAKE_LARGE_VELOCITY_DP_PER_SEC, SNOWFLAKE_OSCILLATION_DELTA_DP,
    DISPLAY_DENSITY
)
from shake import ShakeModifiers
from snowflake import Snowflake, SnowflakeType
from utils import dp_to_px

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, params: Dict[str, Any], density: float, rng=None):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "seed": Optional[int]
#         - "max_snowflakes": int
#         - "generation_interval_ms": float
#         - "step_interval_ms": float
#         - "generation_intensity" / "generation_intensity_shake": float
#         - "velocity_modifier" / "velocity_modifier_shake": float
#         - "shake_decay_ms": float
#       - density: display density used to turn dp constants into pixels.
#       - rng: optional random source exposing random() and integers();
#         defaults to numpy.random.default_rng(seed).
#     - Side Effects: Validates the configuration, raising ValueError.
#
#   - generate_tick(self, width: int) -> None:
#     - Side Effects: May publish a snapshot with one more snowflake
#       appended. Decays the shake modifiers one step.
#     - Invariants: Published population never exceeds max_snowflakes.
#
#   - step_tick(self, height: int) -> None:
#     - Side Effects: Publishes a snapshot of stepped copies of every
#       snowflake, melted ones removed. Published flakes are never mutated.
#
#   - start(self, width: int, height: int) -> None / stop(self) -> None:
#     - Side Effects: start() cancels any running task pair before it
#       launches a new one. Once stop() returns the cancelled pair no
#       longer reads or writes shared state.


class SnowfallState:
    """An immutable snapshot of the live snowflakes, in spawn order."""
    __slots__ = ("snowflakes",)

    def __init__(self, snowflakes: Iterable[Snowflake] = ()):
        self.snowflakes = tuple(snowflakes)

    def __len__(self) -> int:
        return len(self.snowflakes)

    def __iter__(self) -> Iterator[Snowflake]:
        return iter(self.snowflakes)


class Simulation:
    """
    Owns the snowfall state and the generator/stepper task pair.
    """
    def __init__(self, params: Optional[Dict[str, Any]] = None, density: float = DISPLAY_DENSITY, rng=None):
        """
        Initializes the simulation.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            density (float): Display density for dp to px conversion.
            rng: Random source. Tests inject scripted draws here.
        """
        params = params if params is not None else {}

        self.max_snowflakes = int(params.get('max_snowflakes', MAXIMUM_SNOWFLAKE_COUNT))
        self.generation_interval_ms = float(params.get('generation_interval_ms', SNOW_GENERATION_INTERVAL_MS))
        self.step_interval_ms = float(params.get('step_interval_ms', SNOWFLAKE_STEP_DELAY_MS))

        # Rule 7: Enforce data contracts. Validate config on initialization.
        if self.generation_interval_ms <= 0 or self.step_interval_ms <= 0:
            msg = (
                f"Configuration error: tick intervals must be positive "
                f"(generation {self.generation_interval_ms} ms, step {self.step_interval_ms} ms)."
            )
            logging.critical(msg)
            raise ValueError(msg)
        if self.max_snowflakes < 0:
            msg = f"Configuration error: max_snowflakes must not be negative, got {self.max_snowflakes}."
            logging.critical(msg)
            raise ValueError(msg)

        self.modifiers = ShakeModifiers(
            generation_intensity=params.get('generation_intensity', SNOWFLAKE_GENERATION_INTENSITY),
            generation_intensity_shake=params.get('generation_intensity_shake', SNOWFLAKE_GENERATION_INTENSITY_SHAKE),
            velocity_modifier=params.get('velocity_modifier', SNOWFLAKE_FALLING_SPEED_MODIFIER),
            velocity_modifier_shake=params.get('velocity_modifier_shake', SNOWFLAKE_FALLING_SPEED_MODIFIER_SHAKE),
            decay_ms=params.get('shake_decay_ms', SHAKE_INTENSITY_DECREASE_TIME_MS),
        )

        # Rule 12: All randomness goes through a single, seedable source.
        self.rng = rng if rng is not None else np.random.default_rng(params.get('seed'))

        # Pixel metrics are fixed for the lifetime of the simulation.
        self.spawn_y = -float(dp_to_px(SNOWFLAKE_SIZE_LARGE_DP, density))
        self.oscillation_amplitude = float(dp_to_px(SNOWFLAKE_OSCILLATION_DELTA_DP, density))
        self.base_velocities = {
            SnowflakeType.SMALL: float(dp_to_px(SNOWFLAKE_SMALL_VELOCITY_DP_PER_SEC, density)),
            SnowflakeType.MEDIUM: float(dp_to_px(SNOWFLAKE_MEDIUM_VELOCITY_DP_PER_SEC, density)),
            SnowflakeType.LARGE: float(dp_to_px(SNOWFLAKE_LARGE_VELOCITY_DP_PER_SEC, density)),
        }

        self._state = SnowfallState()
        self._cancel_event: Optional[threading.Event] = None
        self._threads: List[threading.Thread] = []

        logging.info(
            f"Simulation initialized: cap {self.max_snowflakes} snowflakes, "
            f"generation every {self.generation_interval_ms:g} ms, "
            f"step every {self.step_interval_ms:g} ms."
        )

    @property
    def snapshot(self) -> SnowfallState:
        """The latest published state. Never mutated after publishing."""
        return self._state

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def increase_snowfall_intensity(self) -> None:
        self.modifiers.trigger()

    # -- Ticks ---------------------------------------------------------------

    def generate_snowflake(self, width: int) -> Snowflake:
        """
        Creates a snowflake just above the visible area at a random column.

        The fall speed captures the current velocity modifier; later shakes
        do not affect flakes that are already falling.
        """
        width = max(width, 0)
        flake_type = SnowflakeType(int(self.rng.integers(0, 3)))
        oscillation_angle = self.rng.random() * 360.0
        base_x = self.rng.random() * width
        rotation_angle = self.rng.random() * 360.0
        return Snowflake(
            type=flake_type,
            base_x=base_x,
            y=self.spawn_y,
            oscillation_angle=oscillation_angle,
            rotation_angle=rotation_angle,
            speed_y=self.base_velocities[flake_type] * self.modifiers.velocity_modifier,
            oscillation_amplitude=self.oscillation_amplitude,
        )

    def generate_tick(self, width: int) -> None:
        current = self._state
        if len(current) < self.max_snowflakes and self.rng.random() < self.modifiers.generation_intensity:
            self._state = SnowfallState(current.snowflakes + (self.generate_snowflake(width),))

        # After a shake, ease the boost back to normal.
        self.modifiers.decay(self.generation_interval_ms)

    def step_tick(self, height: int) -> None:
        floor_y = max(height, 0)
        stepped = []
        for flake in self._state:
            flake = flake.copy()
            flake.step(self.step_interval_ms, floor_y)
            if not flake.is_melted:
                stepped.append(flake)
        self._state = SnowfallState(stepped)

    # -- Lifecycle -----------------------------------------------------------

    def start(self, width: int, height: int) -> None:
        """Starts (or restarts) snowfall for a canvas of the given size."""
        self.stop()

        if width <= 0 or height <= 0:
            logging.warning(f"Degenerate canvas {width}x{height}. Snowflakes will stack or melt immediately.")

        cancel_event = threading.Event()
        self._cancel_event = cancel_event
        self._threads = [
            threading.Thread(
                target=self._run_periodic,
                args=(cancel_event, self.generation_interval_ms, lambda: self.generate_tick(width)),
                daemon=True,
                name="snow-generator",
            ),
            threading.Thread(
                target=self._run_periodic,
                args=(cancel_event, self.step_interval_ms, lambda: self.step_tick(height)),
                daemon=True,
                name="snow-stepper",
            ),
        ]
        for thread in self._threads:
            thread.start()
        logging.info(f"Snowfall started on a {width}x{height} canvas.")

    def stop(self) -> None:
        """Cancels the running task pair and waits for both threads to exit."""
        if self._cancel_event is None:
            return

        self._cancel_event.set()
        for thread in self._threads:
            thread.join(timeout=5)
            if thread.is_alive():
                logging.warning(f"Thread {thread.name} did not stop within 5 s.")
        self._cancel_event = None
        self._threads = []
        logging.info("Snowfall stopped.")

    @staticmethod
    def _run_periodic(cancel_event: threading.Event, interval_ms: float, tick: Callable[[], None]) -> None:
        while not cancel_event.is_set():
            tick()
            cancel_event.wait(timeout=interval_ms / 1000.0)
