# projector.py
"""
Projects a snowfall snapshot into screen-space draw commands.

Nothing here feeds back into the simulation: the projector reads a
published SnowfallState and returns, per snowflake and in snapshot order,
where to draw it, how far to rotate it, how much to squash it vertically
and how opaque it is. The numeric work runs in a Numba-jitted kernel.
"""
from typing import Dict, List, NamedTuple, Optional

import numpy as np
from numba import jit

from constants import (
    SNOWFLAKE_SIZE_SMALL_DP, SNOWFLAKE_SIZE_MEDIUM_DP, SNOWFLAKE_SIZE_LARGE_DP,
    DISPLAY_DENSITY
)
from simulation import SnowfallState
from snowflake import SnowflakeType
from utils import dp_to_px

# --- Data Contracts ---
#
# project(snapshot: SnowfallState, metrics: SnowflakeMetrics) -> List[DrawCommand]:
#   - Inputs:
#     - snapshot: the published state to draw. Read only.
#     - metrics: pixel size per snowflake type.
#   - Outputs: one DrawCommand per snowflake, in snapshot order.
#     - rotation is applied about (x, y).
#     - (left, top) is the sprite's top-left corner, centring it on (x, y).
#     - scale_y squashes the sprite about its own centre; it is only
#       different from 1.0 for LARGE flakes and may be negative (flipped).
#   - Side Effects: None.


class DrawCommand(NamedTuple):
    type: SnowflakeType
    x: float
    y: float
    rotation: float
    left: float
    top: float
    size: float
    scale_y: float
    alpha: float


class SnowflakeMetrics:
    """Pixel size of each snowflake type, computed once per display density."""
    def __init__(self, density: float = DISPLAY_DENSITY):
        self.sizes: Dict[SnowflakeType, float] = {
            SnowflakeType.SMALL: float(dp_to_px(SNOWFLAKE_SIZE_SMALL_DP, density)),
            SnowflakeType.MEDIUM: float(dp_to_px(SNOWFLAKE_SIZE_MEDIUM_DP, density)),
            SnowflakeType.LARGE: float(dp_to_px(SNOWFLAKE_SIZE_LARGE_DP, density)),
        }

    def size_of(self, flake_type: SnowflakeType) -> float:
        return self.sizes[flake_type]


def vertical_scale(flake_type: SnowflakeType, rotation_angle: float) -> float:
    """Flutter factor: large flakes appear to flip as they spin."""
    if flake_type is SnowflakeType.LARGE:
        return ((int(rotation_angle) % 360) - 180) / 180.0
    return 1.0


@jit(nopython=True)
def _project_numba(base_x, y, oscillation_angles, rotation_angles, amplitudes, sizes, is_large):
    """
    Numba-jitted batch of the per-flake transform math.

    Returns an (N, 4) array of x, left, top and scale_y.
    """
    count = base_x.shape[0]
    out = np.empty((count, 4), dtype=np.float64)
    for i in range(count):
        x = base_x[i] + np.sin(oscillation_angles[i] * np.pi / 180.0) * amplitudes[i]
        half_size = sizes[i] / 2.0
        out[i, 0] = x
        out[i, 1] = x - half_size
        out[i, 2] = y[i] - half_size
        if is_large[i]:
            out[i, 3] = ((int(rotation_angles[i]) % 360) - 180) / 180.0
        else:
            out[i, 3] = 1.0
    return out


def project(snapshot: SnowfallState, metrics: Optional[SnowflakeMetrics] = None) -> List[DrawCommand]:
    metrics = metrics if metrics is not None else SnowflakeMetrics()
    flakes = snapshot.snowflakes
    if not flakes:
        return []

    base_x = np.array([f.base_x for f in flakes], dtype=np.float64)
    y = np.array([f.y for f in flakes], dtype=np.float64)
    oscillation_angles = np.array([f.oscillation_angle for f in flakes], dtype=np.float64)
    rotation_angles = np.array([f.rotation_angle for f in flakes], dtype=np.float64)
    amplitudes = np.array([f.oscillation_amplitude for f in flakes], dtype=np.float64)
    sizes = np.array([metrics.size_of(f.type) for f in flakes], dtype=np.float64)
    is_large = np.array([f.type is SnowflakeType.LARGE for f in flakes], dtype=np.bool_)

    projected = _project_numba(base_x, y, oscillation_angles, rotation_angles, amplitudes, sizes, is_large)

    return [
        DrawCommand(
            type=flake.type,
            x=float(row[0]),
            y=flake.y,
            rotation=flake.rotation_angle,
            left=float(row[1]),
            top=float(row[2]),
            size=float(size),
            scale_y=float(row[3]),
            alpha=flake.alpha,
        )
        for flake, row, size in zip(flakes, projected, sizes)
    ]
