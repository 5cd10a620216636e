# shake.py
"""
Turns device motion into snowfall intensity.

ShakeDetector smooths raw 3-axis acceleration readings over a short
sliding window. When the smoothed shake strength crosses the trigger
threshold it kicks the ShakeModifiers up to their elevated values, from
where the generator task decays them linearly back to baseline.
"""
import logging
from collections import deque
from typing import Sequence

import numpy as np

from constants import (
    SNOWFLAKE_GENERATION_INTENSITY, SNOWFLAKE_GENERATION_INTENSITY_SHAKE,
    SNOWFLAKE_FALLING_SPEED_MODIFIER, SNOWFLAKE_FALLING_SPEED_MODIFIER_SHAKE,
    SHAKE_INTENSITY_DECREASE_TIME_MS, SHAKE_WINDOW_SIZE, SHAKE_TRIGGER
)

# --- Data Contracts ---
#
# class ShakeModifiers:
#   - trigger(self) -> None:
#     - Side Effects: Overwrites generation_intensity and velocity_modifier
#       with their elevated values. Repeated calls are idempotent.
#
#   - decay(self, tick_ms: float) -> None:
#     - Inputs:
#       - tick_ms: the generator tick period the decay step corresponds to.
#     - Side Effects: Moves both values one linear step toward baseline.
#     - Invariants: Neither value ever drops below its baseline.
#
# class ShakeDetector:
#   - on_sample(self, x: float, y: float, z: float) -> bool:
#     - Inputs: one linear-acceleration reading per axis.
#     - Outputs: True if the smoothed strength triggered the modifiers.
#     - Side Effects: Updates the sliding window; may call modifiers.trigger().


def _decay_toward(value: float, baseline: float, elevated: float, decay_ms: float, tick_ms: float) -> float:
    if value <= baseline:
        return value
    step = (elevated - baseline) / (decay_ms / tick_ms)
    return max(value - step, baseline)


class ShakeModifiers:
    """
    The pair of values a shake boosts: spawn probability per generation
    tick and the fall speed multiplier captured by newly spawned flakes.
    """
    def __init__(
        self,
        generation_intensity: float = SNOWFLAKE_GENERATION_INTENSITY,
        generation_intensity_shake: float = SNOWFLAKE_GENERATION_INTENSITY_SHAKE,
        velocity_modifier: float = SNOWFLAKE_FALLING_SPEED_MODIFIER,
        velocity_modifier_shake: float = SNOWFLAKE_FALLING_SPEED_MODIFIER_SHAKE,
        decay_ms: float = SHAKE_INTENSITY_DECREASE_TIME_MS,
    ):
        if generation_intensity_shake < generation_intensity or velocity_modifier_shake < velocity_modifier:
            msg = (
                "Configuration error: shake values must not be lower than their baselines "
                f"(intensity {generation_intensity} -> {generation_intensity_shake}, "
                f"velocity {velocity_modifier} -> {velocity_modifier_shake})."
            )
            logging.critical(msg)
            raise ValueError(msg)
        if decay_ms <= 0:
            msg = f"Configuration error: shake decay time must be positive, got {decay_ms}."
            logging.critical(msg)
            raise ValueError(msg)

        self.base_generation_intensity = generation_intensity
        self.shake_generation_intensity = generation_intensity_shake
        self.base_velocity_modifier = velocity_modifier
        self.shake_velocity_modifier = velocity_modifier_shake
        self.decay_ms = decay_ms

        self.generation_intensity = generation_intensity
        self.velocity_modifier = velocity_modifier

    @property
    def is_elevated(self) -> bool:
        return (self.generation_intensity > self.base_generation_intensity
                or self.velocity_modifier > self.base_velocity_modifier)

    def trigger(self) -> None:
        self.generation_intensity = self.shake_generation_intensity
        self.velocity_modifier = self.shake_velocity_modifier

    def decay(self, tick_ms: float) -> None:
        self.generation_intensity = _decay_toward(
            self.generation_intensity, self.base_generation_intensity,
            self.shake_generation_intensity, self.decay_ms, tick_ms
        )
        self.velocity_modifier = _decay_toward(
            self.velocity_modifier, self.base_velocity_modifier,
            self.shake_velocity_modifier, self.decay_ms, tick_ms
        )


class ShakeDetector:
    """
    Keeps the last `window_size` shake strengths and fires the modifiers
    whenever their mean exceeds `trigger`. There is no cooldown: every
    sample above the threshold re-fires.
    """
    def __init__(self, modifiers: ShakeModifiers, window_size: int = SHAKE_WINDOW_SIZE,
                 trigger: float = SHAKE_TRIGGER):
        if window_size < 1:
            msg = f"Configuration error: shake window must hold at least one sample, got {window_size}."
            logging.critical(msg)
            raise ValueError(msg)

        self.modifiers = modifiers
        self.trigger = trigger
        # The window starts full of calm readings.
        self._strengths = deque([0.0] * window_size, maxlen=window_size)
        self._was_triggered = False

    @staticmethod
    def shake_strength(sample: Sequence[float]) -> float:
        """Sum of the absolute per-axis readings."""
        return float(np.sum(np.abs(np.asarray(sample, dtype=np.float64))))

    @property
    def average(self) -> float:
        return float(np.mean(self._strengths))

    def on_sample(self, x: float, y: float, z: float) -> bool:
        self._strengths.append(self.shake_strength((x, y, z)))

        triggered = self.average > self.trigger
        if triggered:
            self.modifiers.trigger()
            if not self._was_triggered:
                logging.info(f"Shake detected (average strength {self.average:.2f}). Snowfall intensified.")
        self._was_triggered = triggered
        return triggered
