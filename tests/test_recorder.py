"""Tests for the canvas appearance model and the headless frame recorder."""

import numpy as np
import pytest
from PIL import Image

from e20sim.core.particles import ParticleEntity
from e20sim.core.presets import SimulatorConfig
from e20sim.core.profile import EmissionValues
from e20sim.core.recorder import BACKGROUND, METRIC_COLORS, FrameRecorder, record_simulation
from e20sim.core.system import SimulationSystem
from e20sim.core.visuals import ParticleCanvas


def make_entity(kind="exhaust", x=32.0, y=24.0, size=10.0, opacity=1.0, drift=0.0, ttl=1000.0):
    return ParticleEntity(
        id=f"{kind}-1", kind=kind, origin_x=x, origin_y=y, size=size,
        opacity=opacity, drift_x=drift, spawn_time=0.0, ttl=ttl,
    )


class TestCanvas:

    def test_spawn_and_remove(self):
        canvas = ParticleCanvas()
        entity = make_entity()
        canvas.spawn_visual(entity)
        assert entity.id in canvas
        canvas.remove_visual(entity.id)
        assert len(canvas) == 0
        canvas.remove_visual(entity.id)

    def test_exhaust_rises_grows_and_fades(self):
        canvas = ParticleCanvas(exhaust_rise=80, exhaust_growth=2.5)
        entity = make_entity(drift=20.0)
        start = canvas.visual_state(entity, 0)
        end = canvas.visual_state(entity, 1000)
        assert (start.x, start.y, start.size, start.alpha) == (32.0, 24.0, 10.0, 1.0)
        assert end.x == pytest.approx(52.0)
        assert end.y == pytest.approx(-56.0)
        assert end.size == pytest.approx(25.0)
        assert end.alpha == pytest.approx(0.0)

    def test_ambient_crosses_viewport(self):
        canvas = ParticleCanvas(width=100, height=200)
        entity = make_entity(kind="ambient", y=0.0, size=4.0, opacity=0.5)
        assert canvas.visual_state(entity, 0).y == pytest.approx(200.0)
        assert canvas.visual_state(entity, 1000).y == pytest.approx(-4.0)
        assert canvas.visual_state(entity, 500).alpha == pytest.approx(0.25)

    def test_viewport_width_follows_resize(self):
        canvas = ParticleCanvas(640, 360)
        canvas.resize(1024, 768)
        assert canvas.viewport_width() == 1024.0


class TestFrames:

    def test_empty_frame_is_background(self):
        recorder = FrameRecorder(64, 48, show_bars=False)
        frame = recorder.render(0)
        assert frame.shape == (48, 64, 4)
        assert frame.dtype == np.uint8
        assert (frame == np.array(BACKGROUND, dtype=np.uint8)).all()

    def test_particle_is_drawn(self):
        recorder = FrameRecorder(64, 48, show_bars=False)
        recorder.spawn_visual(make_entity())
        frame = recorder.render(0)
        assert tuple(frame[24, 32, :3]) != BACKGROUND[:3]
        assert tuple(frame[0, 0]) == BACKGROUND

    def test_offscreen_particle_is_ignored(self):
        recorder = FrameRecorder(64, 48, show_bars=False)
        recorder.spawn_visual(make_entity(x=-500.0, y=-500.0))
        frame = recorder.render(0)
        assert (frame == np.array(BACKGROUND, dtype=np.uint8)).all()

    def test_bars(self):
        recorder = FrameRecorder(64, 48)
        frame = recorder.render(0, EmissionValues(co2=100, co=50, hc=67, pm=80))
        assert tuple(frame[2, 2, :3]) == METRIC_COLORS['co2']
        assert tuple(frame[2, 17, :3]) == METRIC_COLORS['co2']


class TestExport:

    def _recorder_with_frames(self, count=3):
        recorder = FrameRecorder(64, 48)
        recorder.spawn_visual(make_entity(drift=30.0))
        for i in range(count):
            recorder.capture(i * 300.0, EmissionValues(co2=100 - i * 10, co=90, hc=80, pm=70))
        return recorder

    def test_gif(self, tmp_path):
        recorder = self._recorder_with_frames()
        path = recorder.to_gif(tmp_path / "out" / "smoke.gif")
        assert path.exists()
        with Image.open(path) as image:
            assert image.format == "GIF"
            assert image.size == (64, 48)

    def test_frames(self, tmp_path):
        recorder = self._recorder_with_frames()
        paths = recorder.to_frames(tmp_path / "frames")
        assert [p.name for p in paths] == ["frame_0000.png", "frame_0001.png", "frame_0002.png"]
        with Image.open(paths[0]) as image:
            assert image.size == (64, 48)

    def test_nothing_to_export(self, tmp_path):
        recorder = FrameRecorder(64, 48)
        with pytest.raises(ValueError):
            recorder.to_gif(tmp_path / "empty.gif")
        with pytest.raises(ValueError):
            recorder.to_frames(tmp_path / "none")


class TestRecordSimulation:

    def test_frame_count(self):
        recorder = FrameRecorder(96, 64)
        system = SimulationSystem(SimulatorConfig(seed=8), renderer=recorder,
                                  viewport_width=recorder.viewport_width)
        with system:
            count = record_simulation(system, recorder, duration_ms=500, fps=20)
        assert count == 11
        assert len(recorder.frames) == 11
        assert system.clock.now == pytest.approx(500.0)

    def test_schedule_changes_blend(self):
        recorder = FrameRecorder(96, 64)
        system = SimulationSystem(SimulatorConfig(seed=9), renderer=recorder)
        with system:
            record_simulation(system, recorder, duration_ms=400, fps=10, schedule={0: 5, 200: 20})
            assert system.percentage == 20
            assert system.exhaust.current_percentage == 20

    def test_bad_fps(self):
        recorder = FrameRecorder(32, 32)
        with pytest.raises(ValueError):
            record_simulation(SimulationSystem(renderer=recorder), recorder, 100, fps=0)
