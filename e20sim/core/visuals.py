"""
Particle Visuals - Live visual set and per-frame appearance of particles

ParticleCanvas is the renderer the schedulers notify. It only tracks which
particles are on screen; concrete outputs (frame recorder, pygame preview)
subclass it and draw visual_state() for each live entity.

Appearance over a particle's lifetime (t = age / ttl):
- x drifts linearly by drift_x
- exhaust smoke rises `exhaust_rise` px and swells to `exhaust_growth` x size
- ambient particles float from the bottom edge past the top edge
- alpha fades linearly from the spawn opacity to 0
"""

from typing import Dict, Iterator, List, Tuple
from dataclasses import dataclass

from .particles import ParticleEntity, ParticleRenderer


@dataclass(frozen=True)
class VisualState:
    """Where and how a particle looks at one instant"""
    x: float
    y: float
    size: float
    alpha: float  # 0-1


class ParticleCanvas(ParticleRenderer):
    """
    Renderer that keeps the live set of visuals, keyed by entity id.

    Example:
        canvas = ParticleCanvas(640, 360)
        system = SimulationSystem(renderer=canvas, viewport_width=canvas.viewport_width)
        system.start()
        for entity, state in canvas.states(system.clock.now):
            ...
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        exhaust_rise: float = 80.0,
        exhaust_growth: float = 2.5
    ):
        self.width = width
        self.height = height
        self.exhaust_rise = exhaust_rise
        self.exhaust_growth = exhaust_growth
        self._visuals: Dict[str, ParticleEntity] = {}

    # -- ParticleRenderer -------------------------------------------------

    def spawn_visual(self, entity: ParticleEntity) -> None:
        self._visuals[entity.id] = entity

    def remove_visual(self, entity_id: str) -> None:
        self._visuals.pop(entity_id, None)

    # -- Live set ---------------------------------------------------------

    @property
    def entities(self) -> List[ParticleEntity]:
        return list(self._visuals.values())

    def __len__(self) -> int:
        return len(self._visuals)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._visuals

    def clear(self) -> None:
        self._visuals.clear()

    def viewport_width(self) -> float:
        """Width query for the ambient scheduler"""
        return float(self.width)

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    # -- Appearance -------------------------------------------------------

    def visual_state(self, entity: ParticleEntity, now: float) -> VisualState:
        t = entity.progress(now)
        x = entity.origin_x + entity.drift_x * t

        if entity.kind == "ambient":
            # origin_y is the baseline; float from the bottom edge to just past the top
            start_y = self.height - entity.origin_y
            y = start_y - (start_y + entity.size) * t
            size = entity.size
        else:
            y = entity.origin_y - self.exhaust_rise * t
            size = entity.size * (1.0 + (self.exhaust_growth - 1.0) * t)

        return VisualState(x=x, y=y, size=size, alpha=entity.opacity * (1.0 - t))

    def states(self, now: float) -> Iterator[Tuple[ParticleEntity, VisualState]]:
        """Live entities in spawn order with their current appearance"""
        for entity in list(self._visuals.values()):
            yield entity, self.visual_state(entity, now)
