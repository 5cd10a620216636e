"""
Tests for the snowfall simulation: generation, stepping and the task pair.
"""

import time

import numpy as np
import pytest

from simulation import Simulation, SnowfallState
from snowflake import Snowflake, SnowflakeType


class ScriptedRng:
    """Random source returning pre-programmed draws in order."""

    def __init__(self, floats=(), ints=()):
        self.floats = list(floats)
        self.ints = list(ints)

    def random(self):
        return self.floats.pop(0)

    def integers(self, low, high):
        value = self.ints.pop(0)
        assert low <= value < high
        return value


ALWAYS_SPAWN = {'generation_intensity': 1.0, 'generation_intensity_shake': 1.0}


def make_flake(y=0.0, **overrides) -> Snowflake:
    fields = dict(
        type=SnowflakeType.MEDIUM,
        base_x=50.0,
        y=y,
        oscillation_angle=0.0,
        rotation_angle=0.0,
        speed_y=110.0,
        oscillation_amplitude=20.0,
    )
    fields.update(overrides)
    return Snowflake(**fields)


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.005)
    return False


@pytest.fixture
def sim():
    simulation = Simulation({'seed': 1234})
    yield simulation
    simulation.stop()


# ===========================================================================
# Configuration
# ===========================================================================

class TestConfiguration:
    def test_defaults(self, sim):
        assert sim.max_snowflakes == 500
        assert sim.generation_interval_ms == 1
        assert sim.step_interval_ms == 15
        assert sim.spawn_y == -36.0
        assert sim.oscillation_amplitude == 20.0
        assert sim.base_velocities[SnowflakeType.SMALL] == 140.0
        assert sim.base_velocities[SnowflakeType.MEDIUM] == 110.0
        assert sim.base_velocities[SnowflakeType.LARGE] == 90.0
        assert len(sim.snapshot) == 0

    def test_density_scales_pixel_metrics(self):
        simulation = Simulation({}, density=2.75)
        assert simulation.spawn_y == -99.0
        assert simulation.oscillation_amplitude == 55.0
        assert simulation.base_velocities[SnowflakeType.SMALL] == 385.0

    def test_rejects_non_positive_intervals(self):
        with pytest.raises(ValueError):
            Simulation({'step_interval_ms': 0})
        with pytest.raises(ValueError):
            Simulation({'generation_interval_ms': -1})

    def test_rejects_negative_cap(self):
        with pytest.raises(ValueError):
            Simulation({'max_snowflakes': -1})


# ===========================================================================
# Generation
# ===========================================================================

class TestGeneration:
    def test_spawn_parameters_come_from_random_source(self):
        rng = ScriptedRng(floats=[0.05, 0.25, 0.5, 0.75], ints=[2])
        simulation = Simulation({}, rng=rng)
        simulation.generate_tick(200)

        (flake,) = simulation.snapshot.snowflakes
        assert flake.type is SnowflakeType.LARGE
        assert flake.oscillation_angle == pytest.approx(90.0)
        assert flake.base_x == pytest.approx(100.0)
        assert flake.rotation_angle == pytest.approx(270.0)
        assert flake.y == -36.0
        assert flake.speed_y == 90.0
        assert flake.remaining_melt_time == 1000.0
        assert flake.is_melted is False

    def test_failed_trial_spawns_nothing(self):
        rng = ScriptedRng(floats=[0.2])
        simulation = Simulation({}, rng=rng)
        simulation.generate_tick(200)
        assert len(simulation.snapshot) == 0

    def test_trial_uses_current_intensity(self):
        rng = ScriptedRng(floats=[0.2, 0.0, 0.0, 0.0], ints=[0])
        simulation = Simulation({}, rng=rng)
        simulation.increase_snowfall_intensity()
        simulation.generate_tick(200)
        assert len(simulation.snapshot) == 1

    def test_fall_speed_captures_velocity_modifier(self):
        rng = ScriptedRng(floats=[0.0] * 8, ints=[0, 0])
        simulation = Simulation({}, rng=rng)
        simulation.increase_snowfall_intensity()
        simulation.generate_tick(200)
        shaken = simulation.snapshot.snowflakes[0]
        assert shaken.speed_y == pytest.approx(140.0 * 1.5)

        # Back to baseline: earlier flakes keep their speed
        simulation.modifiers.decay(100000)
        simulation.generate_tick(200)
        calm = simulation.snapshot.snowflakes[1]
        assert calm.speed_y == 140.0
        assert simulation.snapshot.snowflakes[0].speed_y == pytest.approx(210.0)

    def test_generate_tick_decays_modifiers(self, sim):
        sim.increase_snowfall_intensity()
        sim.generate_tick(200)
        assert sim.modifiers.generation_intensity == pytest.approx(0.4 - 0.275 / 7000)
        assert sim.modifiers.velocity_modifier == pytest.approx(1.5 - 0.5 / 7000)

    def test_population_is_capped(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=7))
        for _ in range(650):
            simulation.generate_tick(300)
        assert len(simulation.snapshot) == 500

    def test_custom_cap(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=7, max_snowflakes=3))
        for _ in range(10):
            simulation.generate_tick(300)
            assert len(simulation.snapshot) <= 3
        assert len(simulation.snapshot) == 3

    def test_spawn_is_appended_in_order(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=3))
        simulation.generate_tick(300)
        first = simulation.snapshot
        simulation.generate_tick(300)
        second = simulation.snapshot
        assert second is not first
        assert len(first) == 1
        assert second.snowflakes[0] is first.snowflakes[0]

    def test_base_x_within_canvas(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=11))
        for _ in range(200):
            simulation.generate_tick(320)
        xs = [flake.base_x for flake in simulation.snapshot]
        assert all(0.0 <= x < 320.0 for x in xs)

    def test_zero_width_stacks_flakes(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=5))
        for _ in range(50):
            simulation.generate_tick(0)
        assert len(simulation.snapshot) == 50
        assert all(flake.base_x == 0.0 for flake in simulation.snapshot)

    def test_negative_width_treated_as_zero(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=5))
        for _ in range(10):
            simulation.generate_tick(-40)
        assert all(flake.base_x == 0.0 for flake in simulation.snapshot)

    def test_all_size_classes_appear(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=21))
        for _ in range(300):
            simulation.generate_tick(300)
        assert {flake.type for flake in simulation.snapshot} == set(SnowflakeType)


# ===========================================================================
# Stepping
# ===========================================================================

class TestStepping:
    def test_step_tick_publishes_stepped_copies(self, sim):
        original = make_flake(y=0.0)
        sim._state = SnowfallState([original])
        before = sim.snapshot

        sim.step_tick(1000)

        assert sim.snapshot is not before
        stepped = sim.snapshot.snowflakes[0]
        assert stepped is not original
        assert stepped.y == pytest.approx(110.0 * 15 / 1000)
        # The previously published snapshot is untouched
        assert original.y == 0.0
        assert before.snowflakes[0].oscillation_angle == 0.0

    def test_melted_flakes_are_pruned(self, sim):
        sim._state = SnowfallState([
            make_flake(y=1001.0, remaining_melt_time=10.0),
            make_flake(y=10.0),
            make_flake(y=1001.0, remaining_melt_time=500.0),
        ])
        sim.step_tick(1000)

        remaining = sim.snapshot.snowflakes
        assert len(remaining) == 2
        assert remaining[0].y > 10.0
        assert remaining[1].remaining_melt_time == 485.0
        assert not any(flake.is_melted for flake in remaining)

    def test_flake_lifecycle_ends_in_removal(self, sim):
        sim._state = SnowfallState([make_flake(y=99.0)])
        ticks = 0
        while len(sim.snapshot) and ticks < 1000:
            sim.step_tick(100)
            ticks += 1
        assert len(sim.snapshot) == 0
        # Falls past the floor in one tick, melts over 67 ticks
        assert ticks == 68

    def test_non_positive_height_melts_at_once(self, sim):
        sim._state = SnowfallState([make_flake(y=-36.0)])
        for _ in range(40):
            sim.step_tick(-10)
        assert sim.snapshot.snowflakes[0].y > 0.0
        for _ in range(80):
            sim.step_tick(-10)
        assert len(sim.snapshot) == 0

    def test_generator_never_removes(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=2))
        simulation._state = SnowfallState([make_flake(y=5000.0, remaining_melt_time=0.0, is_melted=True)])
        simulation.generate_tick(100)
        assert len(simulation.snapshot) == 2


# ===========================================================================
# Task pair lifecycle
# ===========================================================================

class TestLifecycle:
    def test_start_runs_generator_and_stepper(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=9))
        try:
            simulation.start(400, 10000)
            assert simulation.is_running
            assert wait_for(lambda: len(simulation.snapshot) > 0)
            assert wait_for(lambda: any(flake.y > -36.0 for flake in simulation.snapshot))
        finally:
            simulation.stop()
        assert not simulation.is_running

    def test_no_mutation_after_stop(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=9))
        simulation.start(400, 10000)
        assert wait_for(lambda: len(simulation.snapshot) > 0)
        simulation.stop()

        frozen = simulation.snapshot
        ys = [flake.y for flake in frozen]
        time.sleep(0.1)
        assert simulation.snapshot is frozen
        assert [flake.y for flake in frozen] == ys

    def test_restart_replaces_task_pair(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=9))
        try:
            simulation.start(400, 10000)
            first_threads = list(simulation._threads)
            simulation.start(200, 5000)
            assert all(not thread.is_alive() for thread in first_threads)
            assert len(simulation._threads) == 2
            assert all(thread.is_alive() for thread in simulation._threads)
        finally:
            simulation.stop()

    def test_stop_without_start_is_noop(self, sim):
        sim.stop()
        assert not sim.is_running

    def test_zero_canvas_does_not_fault(self):
        simulation = Simulation(dict(ALWAYS_SPAWN, seed=4))
        try:
            simulation.start(0, 0)
            time.sleep(0.05)
            assert simulation.is_running
            assert all(flake.base_x == 0.0 for flake in simulation.snapshot)
        finally:
            simulation.stop()

    def test_seeded_runs_spawn_identically(self):
        first = Simulation(dict(ALWAYS_SPAWN, seed=99))
        second = Simulation(dict(ALWAYS_SPAWN, seed=99))
        for _ in range(20):
            first.generate_tick(300)
            second.generate_tick(300)
        assert np.allclose(
            [flake.base_x for flake in first.snapshot],
            [flake.base_x for flake in second.snapshot],
        )
