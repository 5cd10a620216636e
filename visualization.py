# visualization.py
"""
Draws the snowfall with Pygame and feeds user input back into it.

The Visualizer owns the window. Every frame it projects the latest
published snapshot into draw commands and blits one pre-rendered sprite
per snowflake. It also stands in for a motion sensor: mouse movement (or
holding SPACE) is sampled at a fixed rate and handed to the ShakeDetector.
"""
import logging
import math
from typing import Dict, Optional, Tuple

import pygame

from constants import (
    BACKGROUND_COLOR, DEFAULT_WINDOW_SIZE, DISPLAY_DENSITY, FPS, FPS_TEXT_COLOR,
    FPS_TEXT_POS, FPS_TEXT_SIZE, FULLSCREEN, KEYBOARD_SHAKE_SAMPLE,
    MOTION_SAMPLE_INTERVAL_MS, MOUSE_SHAKE_GAIN, SNOWFLAKE_COLOR
)
from projector import DrawCommand, SnowflakeMetrics, project
from shake import ShakeDetector
from snowflake import SnowflakeType
from utils import FpsCounter

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import Simulation


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, vis_params: Optional[dict] = None, shake_params: Optional[dict] = None):
#     - Inputs:
#       - vis_params: "visualization" section of config.json.
#       - shake_params: "shake" section of config.json.
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - draw(self, simulation: "Simulation", detector: ShakeDetector) -> bool:
#     - Inputs:
#       - simulation: provides the snapshot to draw; restarted on resize.
#       - detector: receives motion samples.
#     - Outputs:
#       - bool: False if the user has quit, True otherwise.
#     - Side Effects: Renders one frame, handles Pygame events.

class Visualizer:
    """
    Renders snowflakes onto a black canvas and reports the frame rate.
    """
    def __init__(self, vis_params: Optional[dict] = None, shake_params: Optional[dict] = None):
        """
        Initializes Pygame and the display window.
        """
        vis_params = vis_params if vis_params is not None else {}
        shake_params = shake_params if shake_params is not None else {}

        pygame.init()
        pygame.font.init()

        if vis_params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width = vis_params.get('width', DEFAULT_WINDOW_SIZE[0])
            height = vis_params.get('height', DEFAULT_WINDOW_SIZE[1])
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        pygame.display.set_caption("Snowfall")
        self.clock = pygame.time.Clock()
        self.fps_limit = vis_params.get('fps', FPS)
        self.background_color = tuple(vis_params.get('background_color', BACKGROUND_COLOR))
        self.show_fps = vis_params.get('show_fps', True)

        self.metrics = SnowflakeMetrics(vis_params.get('display_density', DISPLAY_DENSITY))
        # --- Pre-render sprites for performance (Rule 11) ---
        self.sprites = self._pre_render_sprites()

        self.font = pygame.font.SysFont(None, FPS_TEXT_SIZE * 4 // 3)
        self.fps_counter = FpsCounter(pygame.time.get_ticks())

        self.sample_interval_ms = shake_params.get('sample_interval_ms', MOTION_SAMPLE_INTERVAL_MS)
        self.mouse_gain = shake_params.get('mouse_gain', MOUSE_SHAKE_GAIN)
        self._last_sample_time = pygame.time.get_ticks()
        pygame.mouse.get_rel()

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return self.screen.get_size()

    def _pre_render_sprites(self) -> Dict[SnowflakeType, pygame.Surface]:
        """
        Draws a six-armed snowflake per type at its pixel size.
        """
        logging.debug("Pre-rendering snowflake sprites...")
        sprites = {}
        for flake_type, size in self.metrics.sizes.items():
            side = max(int(size), 1)
            surface = pygame.Surface((side, side), pygame.SRCALPHA)
            centre = side / 2
            arm = side / 2 - 1
            width = max(side // 12, 1)
            for k in range(6):
                angle = math.radians(k * 60)
                tip = (centre + math.cos(angle) * arm, centre + math.sin(angle) * arm)
                pygame.draw.line(surface, SNOWFLAKE_COLOR, (centre, centre), tip, width)
                # Two small branches partway up each arm
                if side >= 20:
                    base = (centre + math.cos(angle) * arm * 0.6, centre + math.sin(angle) * arm * 0.6)
                    for branch in (-45, 45):
                        branch_angle = angle + math.radians(branch)
                        end = (base[0] + math.cos(branch_angle) * arm * 0.3,
                               base[1] + math.sin(branch_angle) * arm * 0.3)
                        pygame.draw.line(surface, SNOWFLAKE_COLOR, base, end, width)
            sprites[flake_type] = surface
        logging.debug(f"Finished pre-rendering {len(sprites)} snowflake sprites.")
        return sprites

    def _poll_motion(self, detector: ShakeDetector) -> None:
        """Feeds one motion sample per sample interval to the shake detector."""
        now = pygame.time.get_ticks()
        if now - self._last_sample_time < self.sample_interval_ms:
            return
        self._last_sample_time = now

        dx, dy = pygame.mouse.get_rel()
        if pygame.key.get_pressed()[pygame.K_SPACE]:
            detector.on_sample(*KEYBOARD_SHAKE_SAMPLE)
        else:
            detector.on_sample(dx * self.mouse_gain, dy * self.mouse_gain, 0.0)

    def _draw_snowflake(self, command: DrawCommand) -> None:
        sprite = self.sprites[command.type]

        if command.scale_y != 1.0:
            height = int(round(abs(command.scale_y) * sprite.get_height()))
            if height < 1:
                # Seen edge-on
                return
            sprite = pygame.transform.smoothscale(sprite, (sprite.get_width(), height))
            if command.scale_y < 0:
                sprite = pygame.transform.flip(sprite, False, True)

        # Pygame rotates counter-clockwise, the snowflake angle is clockwise on screen.
        sprite = pygame.transform.rotate(sprite, -command.rotation)
        sprite.set_alpha(int(command.alpha * 255))
        self.screen.blit(sprite, sprite.get_rect(center=(command.x, command.y)))

    def draw(self, simulation: "Simulation", detector: ShakeDetector) -> bool:
        """
        Draws all snowflakes and the FPS label, and handles events.

        Returns:
            bool: False if the application should exit, True otherwise.
        """
        self.fps_counter.on_frame(pygame.time.get_ticks())

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False

            if event.type == pygame.VIDEORESIZE:
                logging.info(f"Canvas resized to {event.w}x{event.h}. Restarting snowfall.")
                simulation.start(event.w, event.h)

        self._poll_motion(detector)

        self.screen.fill(self.background_color)
        for command in project(simulation.snapshot, self.metrics):
            self._draw_snowflake(command)

        if self.show_fps:
            text_surf = self.font.render(f"FPS: {self.fps_counter.fps}", True, FPS_TEXT_COLOR)
            self.screen.blit(text_surf, FPS_TEXT_POS)

        pygame.display.flip()
        self.clock.tick(self.fps_limit)
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
