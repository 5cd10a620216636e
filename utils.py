# utils.py
"""
Utility functions for the snowfall application.

This module provides helper functions, such as logging setup, config
loading and unit conversion, that are used across different parts of the
application but do not belong to a specific domain like the simulation
or rendering.
"""
import logging
import logging.handlers
import json
import os
from collections import deque
from typing import Dict, Any

import numpy as np

from constants import FPS_WINDOW_SIZE, FPS_INITIAL_DELAY_MS

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys.
#   - Outputs: None
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#   - Invariants: After this function runs, the logging system is
#     initialized and ready for use throughout the application.
#
# class FpsCounter:
#   - on_frame(self, time_ms: float) -> int:
#     - Inputs: timestamp of the frame being drawn, in milliseconds.
#     - Outputs: frames per second over the last FPS_WINDOW_SIZE frames.

def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(threadName)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/snowfall.log')

    # Ensure the log directory exists
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Rotates when the log reaches 1MB, keeps 5 backup logs.
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=1024*1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")

def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
        return config
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise

def dp_to_px(dp: float, density: float) -> int:
    """Converts density-independent pixels to whole screen pixels (truncating)."""
    return int(dp * density)


class FpsCounter:
    """
    Rolling frame rate estimate from the last FPS_WINDOW_SIZE inter-frame delays.
    """
    def __init__(self, start_time_ms: float, window_size: int = FPS_WINDOW_SIZE):
        self._delays = deque([float(FPS_INITIAL_DELAY_MS)] * window_size, maxlen=window_size)
        self._last_time_ms = start_time_ms
        self.fps = 0

    def on_frame(self, time_ms: float) -> int:
        self._delays.append(time_ms - self._last_time_ms)
        self._last_time_ms = time_ms
        self.fps = int(1000.0 / max(float(np.mean(self._delays)), 1.0))
        return self.fps
