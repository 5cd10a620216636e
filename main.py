# main.py
"""
Main entry point for the Snowfall animation.

This script orchestrates the entire application lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the window and starts the snowfall for its canvas size.
4. Runs the frame loop.
5. Handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config
import cProfile
import pstats
import io

def main():
    """
    The main function to run the animation.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Snowfall Starting ---")

    sim_params = config.get('simulation_parameters', {})
    shake_params = config.get('shake', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from constants import DISPLAY_DENSITY, SHAKE_WINDOW_SIZE, SHAKE_TRIGGER
    from shake import ShakeDetector
    from simulation import Simulation
    from visualization import Visualizer

    # --- Component Initialization ---
    # 1. The visualizer first. It determines the canvas dimensions.
    visualizer = Visualizer(vis_params, shake_params)

    # 2. Simulation and shake detection share one set of modifiers.
    sim = Simulation(sim_params, density=vis_params.get('display_density', DISPLAY_DENSITY))
    detector = ShakeDetector(
        sim.modifiers,
        window_size=shake_params.get('window_size', SHAKE_WINDOW_SIZE),
        trigger=shake_params.get('trigger', SHAKE_TRIGGER),
    )

    width, height = visualizer.canvas_size
    sim.start(width, height)

    profile = run_params.get('profile', False)
    profiler = cProfile.Profile()

    log_throttle = run_params.get('log_throttle_frames', 300)
    max_frames = run_params.get('max_frames', 0)  # 0 runs until the window is closed

    running = True
    frame_num = 0

    if profile:
        profiler.enable()
    while running:
        if not visualizer.draw(sim, detector):
            running = False
        frame_num += 1

        # Rule 2.4: Hot loops must throttle logs
        if frame_num % log_throttle == 0:
            snapshot = sim.snapshot
            logging.info(f"Frame {frame_num} | {len(snapshot)} snowflakes | FPS {visualizer.fps_counter.fps}")
            logging.debug(
                f"Frame {frame_num} | Intensity: {sim.modifiers.generation_intensity:.4f} | "
                f"Velocity modifier: {sim.modifiers.velocity_modifier:.4f} | "
                f"Shake average: {detector.average:.2f}"
            )

        if max_frames and frame_num >= max_frames:
            logging.info(f"Reached max_frames ({max_frames}). Stopping animation.")
            running = False
    if profile:
        profiler.disable()

    sim.stop()
    visualizer.close()
    logging.info("Frame loop finished.")

    if profile:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Snowfall Shutting Down ---")


if __name__ == "__main__":
    main()
