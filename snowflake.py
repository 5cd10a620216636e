# snowflake.py
"""
Defines a single snowflake and its per-tick update rule.

A snowflake falls while swaying and spinning until it crosses the floor
of the canvas, then stays put and fades out over MELT_DURATION_MS before
it is flagged as melted. Horizontal position and opacity are never
stored; they are derived from the oscillation angle and the remaining
melt time.
"""
import copy
import math
from dataclasses import dataclass
from enum import Enum

from constants import (
    MELT_DURATION_MS, SNOWFLAKE_OSCILLATION_SPEED, SNOWFLAKE_ROTATION_SPEED
)

# --- Data Contracts ---
#
# class Snowflake:
#   - step(self, delta_time_ms: float, floor_y: float) -> None:
#     - Inputs:
#       - delta_time_ms: elapsed time of the tick, in milliseconds.
#       - floor_y: y coordinate of the canvas floor, in pixels.
#     - Outputs: None
#     - Side Effects: Mutates this snowflake only.
#     - Invariants:
#       - type, base_x, speed_y and oscillation_amplitude never change.
#       - Once is_melted is True no field changes again.
#       - While melting (y > floor_y) only remaining_melt_time changes.
#       - alpha is always within [0, 1].


class SnowflakeType(Enum):
    """Size class of a snowflake. Picks its sprite, pixel size and fall speed."""
    SMALL = 0
    MEDIUM = 1
    LARGE = 2


@dataclass
class Snowflake:
    type: SnowflakeType
    base_x: float
    y: float
    oscillation_angle: float
    rotation_angle: float
    speed_y: float
    oscillation_amplitude: float
    remaining_melt_time: float = MELT_DURATION_MS
    is_melted: bool = False

    @property
    def x(self) -> float:
        """Horizontal position, swaying around base_x."""
        return self.base_x + math.sin(math.radians(self.oscillation_angle)) * self.oscillation_amplitude

    @property
    def alpha(self) -> float:
        """Opacity in [0, 1], fading as the flake melts."""
        return min(max(self.remaining_melt_time / MELT_DURATION_MS, 0.0), 1.0)

    def step(self, delta_time_ms: float, floor_y: float) -> None:
        """
        Advances the snowflake by one tick.

        Args:
            delta_time_ms (float): Elapsed time of the tick in milliseconds.
            floor_y (float): Height of the canvas floor in pixels.
        """
        if self.is_melted:
            return

        if self.y > floor_y:
            # Resting on the floor: only the melt countdown runs.
            self.remaining_melt_time -= delta_time_ms
            if self.remaining_melt_time < 0:
                self.is_melted = True
                self.remaining_melt_time = 0.0
        else:
            self.oscillation_angle += delta_time_ms * SNOWFLAKE_OSCILLATION_SPEED
            self.rotation_angle += SNOWFLAKE_ROTATION_SPEED * delta_time_ms / 1000.0
            self.y += self.speed_y * delta_time_ms / 1000.0

    def copy(self) -> "Snowflake":
        """Returns a detached copy, safe to step without touching published state."""
        return copy.copy(self)
