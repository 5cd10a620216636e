# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
Sizes and speeds are given in density-independent pixels (dp) and are
converted to screen pixels with the configured display density.
Anything that is meant to be tuned per run lives in config.json, which
falls back to the defaults declared here.
"""

# --- Snowflake geometry (dp) ---
SNOWFLAKE_SIZE_SMALL_DP = 12
SNOWFLAKE_SIZE_MEDIUM_DP = 24
SNOWFLAKE_SIZE_LARGE_DP = 36

# --- Snowflake motion ---
SNOWFLAKE_SMALL_VELOCITY_DP_PER_SEC = 140
SNOWFLAKE_MEDIUM_VELOCITY_DP_PER_SEC = 110
SNOWFLAKE_LARGE_VELOCITY_DP_PER_SEC = 90
# Degrees per second.
SNOWFLAKE_ROTATION_SPEED = 100.0
# Degrees of oscillation angle per millisecond.
SNOWFLAKE_OSCILLATION_SPEED = 0.08
SNOWFLAKE_OSCILLATION_DELTA_DP = 20
# Time a flake spends fading out on the floor before it is removed.
MELT_DURATION_MS = 1000.0

# --- Generation / stepping defaults ---
SNOW_GENERATION_INTERVAL_MS = 1
SNOWFLAKE_STEP_DELAY_MS = 15
MAXIMUM_SNOWFLAKE_COUNT = 500

# --- Shake response defaults ---
SNOWFLAKE_GENERATION_INTENSITY = 0.125
SNOWFLAKE_GENERATION_INTENSITY_SHAKE = 0.4
SNOWFLAKE_FALLING_SPEED_MODIFIER = 1.0
SNOWFLAKE_FALLING_SPEED_MODIFIER_SHAKE = 1.5
SHAKE_INTENSITY_DECREASE_TIME_MS = 7000
SHAKE_WINDOW_SIZE = 15
SHAKE_TRIGGER = 15.0
MOTION_SAMPLE_INTERVAL_MS = 50
# Mouse pixels moved per sample are multiplied by this to look like m/s^2.
MOUSE_SHAKE_GAIN = 0.5
# Synthetic per-axis reading injected while the shake key is held.
KEYBOARD_SHAKE_SAMPLE = (12.0, 12.0, 12.0)

# --- Visualization settings ---
FULLSCREEN = False
DEFAULT_WINDOW_SIZE = (480, 800)
FPS = 60
DISPLAY_DENSITY = 1.0
BACKGROUND_COLOR = (0, 0, 0)
SNOWFLAKE_COLOR = (255, 255, 255)
FPS_TEXT_COLOR = (255, 0, 0)
FPS_TEXT_SIZE = 18
FPS_TEXT_POS = (8, 40)

# --- Frame rate bookkeeping ---
FPS_WINDOW_SIZE = 100
FPS_INITIAL_DELAY_MS = 15
