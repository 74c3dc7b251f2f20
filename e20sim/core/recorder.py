"""
Frame Recorder - Headless rasteriser and exporter for the particle field

Draws the live particle set (and optional emission bars) into RGBA numpy
frames and exports them as GIF or numbered PNGs with Pillow. Used by the CLI
and the tests, no window required.
"""

import logging
import math
import numpy as np
from PIL import Image
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .particles import ParticleEntity
from .profile import EmissionValues, METRICS
from .visuals import ParticleCanvas, VisualState

logger = logging.getLogger(__name__)


# =============================================================================
# Colors
# =============================================================================

BACKGROUND = (18, 22, 28, 255)

PARTICLE_COLORS: Dict[str, Tuple[int, int, int]] = {
    'exhaust': (170, 170, 170),   # Gray smoke
    'ambient': (120, 200, 255),   # Pale blue motes
}

METRIC_COLORS: Dict[str, Tuple[int, int, int]] = {
    'co2': (231, 76, 60),
    'co': (230, 126, 34),
    'hc': (241, 196, 15),
    'pm': (155, 89, 182),
}


class FrameRecorder(ParticleCanvas):
    """
    ParticleCanvas that rasterises to numpy frames.

    Example:
        recorder = FrameRecorder(480, 270)
        system = SimulationSystem(renderer=recorder, viewport_width=recorder.viewport_width)
        system.start()
        record_simulation(system, recorder, duration_ms=3000, fps=20)
        recorder.to_gif("e20.gif")
    """

    def __init__(
        self,
        width: int = 480,
        height: int = 270,
        background: Tuple[int, int, int, int] = BACKGROUND,
        show_bars: bool = True,
        **canvas_kwargs
    ):
        super().__init__(width, height, **canvas_kwargs)
        self.background = background
        self.show_bars = show_bars
        self.frames: List[np.ndarray] = []

    def render(self, now: float, values: Optional[EmissionValues] = None) -> np.ndarray:
        """Draw the live set at time `now` into a new HxWx4 uint8 frame"""
        frame = np.empty((self.height, self.width, 4), dtype=np.float32)
        frame[:, :] = self.background

        for entity, state in self.states(now):
            self._draw_particle(frame, entity, state)

        if values is not None and self.show_bars:
            self._draw_bars(frame, values)

        return np.clip(frame, 0, 255).astype(np.uint8)

    def capture(self, now: float, values: Optional[EmissionValues] = None) -> np.ndarray:
        frame = self.render(now, values)
        self.frames.append(frame)
        return frame

    def _draw_particle(self, frame: np.ndarray, entity: ParticleEntity, state: VisualState) -> None:
        if state.alpha <= 0 or state.size <= 0:
            return

        radius = max(0.5, state.size / 2)
        x0 = max(0, int(math.floor(state.x - radius)))
        x1 = min(self.width, int(math.ceil(state.x + radius)) + 1)
        y0 = max(0, int(math.floor(state.y - radius)))
        y1 = min(self.height, int(math.ceil(state.y + radius)) + 1)
        if x0 >= x1 or y0 >= y1:
            return

        # Pixel centres inside the bounding box
        ys, xs = np.mgrid[y0:y1, x0:x1].astype(np.float32) + 0.5
        dist = np.sqrt((xs - state.x) ** 2 + (ys - state.y) ** 2)

        # Soft disc, brightest in the middle
        falloff = np.clip(1.0 - dist / (radius + 0.5), 0.0, 1.0)
        alpha = (state.alpha * falloff)[..., None]

        color = np.array(PARTICLE_COLORS.get(entity.kind, (255, 255, 255)), dtype=np.float32)
        region = frame[y0:y1, x0:x1, :3]
        frame[y0:y1, x0:x1, :3] = region * (1.0 - alpha) + color * alpha

    def _draw_bars(self, frame: np.ndarray, values: EmissionValues) -> None:
        """Four horizontal index bars in the top-left corner"""
        bar_max = max(10, self.width // 4)
        bar_h = max(2, self.height // 40)
        gap = bar_h

        for i, metric in enumerate(METRICS):
            value = min(max(getattr(values, metric), 0), 100)
            length = int(round(bar_max * value / 100))
            y = gap + i * (bar_h + gap)
            if y + bar_h > self.height:
                break
            frame[y:y + bar_h, gap:gap + bar_max, :3] = (50, 50, 50)
            frame[y:y + bar_h, gap:gap + length, :3] = METRIC_COLORS[metric]

    # -- Export -------------------------------------------------------------

    def to_gif(
        self,
        path: Union[str, Path],
        duration: int = 50,
        loop: int = 0
    ) -> Path:
        """Export captured frames to an animated GIF"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if not self.frames:
            raise ValueError("No frames to export")

        images = [
            Image.fromarray(frame).convert('RGB').convert('P', palette=Image.Palette.ADAPTIVE, colors=255)
            for frame in self.frames
        ]
        images[0].save(
            path,
            save_all=True,
            append_images=images[1:],
            duration=duration,
            loop=loop,
        )
        logger.info("Wrote %d frames to %s", len(images), path)
        return path

    def to_frames(self, directory: Union[str, Path], prefix: str = "frame") -> List[Path]:
        """Export captured frames as individual PNGs"""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        if not self.frames:
            raise ValueError("No frames to export")

        paths = []
        for i, frame in enumerate(self.frames):
            frame_path = directory / f"{prefix}_{i:04d}.png"
            Image.fromarray(frame).save(frame_path, 'PNG')
            paths.append(frame_path)
        return paths


def record_simulation(
    system,
    recorder: FrameRecorder,
    duration_ms: float,
    fps: int = 20,
    schedule: Optional[Dict[float, float]] = None
) -> int:
    """
    Advance a running system in fixed steps, capturing one frame per step.

    Args:
        system: A started SimulationSystem whose renderer is `recorder`
        recorder: Frame sink
        duration_ms: Simulated time to cover
        fps: Frames per simulated second
        schedule: Optional {time_ms: percentage} blend changes applied when
            the recording passes each time

    Returns:
        Number of frames captured
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    step = 1000.0 / fps
    steps = int(duration_ms // step)
    changes = sorted((schedule or {}).items())
    start = system.clock.now

    def apply_changes():
        while changes and changes[0][0] <= system.clock.now - start:
            _, percentage = changes.pop(0)
            system.on_parameter_input(percentage)

    apply_changes()
    recorder.capture(system.clock.now, system.controller.values)
    for _ in range(steps):
        system.advance(step)
        apply_changes()
        recorder.capture(system.clock.now, system.controller.values)

    return steps + 1
