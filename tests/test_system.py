"""Integration tests for the wired-up simulation."""

import pytest

from e20sim.core.presets import SimulatorConfig
from e20sim.core.system import SimulationSystem
from e20sim.core.visuals import ParticleCanvas


def snapshot(system):
    return [
        (e.id, round(e.origin_x, 6), round(e.size, 6), round(e.drift_x, 6), e.spawn_time)
        for e in system.live_particles
    ]


class TestLifecycle:

    def test_start_publishes_initial_values(self):
        system = SimulationSystem(SimulatorConfig(seed=1, initial_percentage=5))
        seen = []
        system.subscribe(seen.append)
        system.start()
        assert system.running
        assert len(seen) == 1
        assert seen[0].co == 85
        system.stop()

    def test_start_spawns_ambient_immediately(self):
        system = SimulationSystem(SimulatorConfig(seed=2))
        system.start()
        assert system.ambient.live_count == 1
        system.stop()

    def test_stop_clears_all_timers(self):
        system = SimulationSystem(SimulatorConfig(seed=3))
        system.start()
        system.advance(5000)
        system.stop()
        assert not system.running
        assert system.live_particles == []
        assert system.clock.pending == 0

    def test_context_manager(self):
        with SimulationSystem(SimulatorConfig(seed=4)) as system:
            assert system.running
            system.advance(1000)
        assert not system.running
        assert system.clock.pending == 0


class TestParameterFlow:

    def test_input_reaches_exhaust(self):
        system = SimulationSystem(SimulatorConfig(seed=5))
        system.start()
        assert system.on_parameter_input(20)
        assert system.percentage == 20
        assert system.exhaust.current_percentage == 20
        system.advance(250)
        assert system.exhaust.state.next_fire_delay == pytest.approx(60.0)
        system.stop()

    def test_ambient_ignores_blend(self):
        system = SimulationSystem(SimulatorConfig(seed=6))
        system.on_parameter_input(15)
        assert system.ambient.state.current_percentage is None

    def test_report(self):
        system = SimulationSystem()
        system.on_parameter_input("E20")
        report = system.report()
        assert report.percentage == 20
        assert report.values.co == 50

    def test_initial_percentage_from_config(self):
        system = SimulationSystem(SimulatorConfig(initial_percentage=12))
        assert system.percentage == 12
        assert system.exhaust.current_percentage == 12


class TestRendererWiring:

    def test_canvas_tracks_live_set(self):
        canvas = ParticleCanvas(400, 300)
        system = SimulationSystem(SimulatorConfig(seed=7), renderer=canvas,
                                  viewport_width=canvas.viewport_width)
        system.start()
        system.advance(2500)
        assert len(canvas) == len(system.live_particles)
        for entity in system.ambient.live_particles:
            assert 0.0 <= entity.origin_x <= 400.0
        system.stop()

    def test_seeded_runs_repeat(self):
        first = SimulationSystem(SimulatorConfig(seed=42))
        second = SimulationSystem(SimulatorConfig(seed=42))
        for system in (first, second):
            system.start()
            system.advance(3500)
        assert snapshot(first) == snapshot(second)
        assert snapshot(first)

    def test_different_seeds_differ(self):
        first = SimulationSystem(SimulatorConfig(seed=1))
        second = SimulationSystem(SimulatorConfig(seed=2))
        for system in (first, second):
            system.start()
            system.advance(3500)
        assert snapshot(first) != snapshot(second)
