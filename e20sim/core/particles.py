"""
Particle Schedulers - Self-rescheduling emitters for exhaust smoke and ambient motes

Each scheduler is a chain of single-shot timers on a TimerService: a firing
spawns particles and books exactly one next firing. Every spawned particle
books its own removal at spawn_time + ttl, independent of the chain.

Features:
- Exhaust smoke whose cadence, size and opacity follow the blend percentage
- Ambient particles at random positions and random intervals
- Renderer-agnostic: visuals go through the ParticleRenderer interface
- stop() cancels the pending firing and every outstanding expiry together
"""

import itertools
import logging
import numpy as np
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass

from .clock import TimerHandle, TimerService
from .controller import clamp_percentage
from .presets import AmbientConfig, ExhaustConfig
from .profile import MAX_PERCENTAGE

logger = logging.getLogger(__name__)


# =============================================================================
# Particle Entity
# =============================================================================

@dataclass(frozen=True)
class ParticleEntity:
    """A spawned, time-bounded visual unit. Never mutated after spawn."""
    id: str
    kind: str
    origin_x: float
    origin_y: float
    size: float
    opacity: float
    drift_x: float
    spawn_time: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.spawn_time + self.ttl

    def progress(self, now: float) -> float:
        """Age as 0-1 fraction of ttl"""
        return min(max((now - self.spawn_time) / self.ttl, 0.0), 1.0)


# =============================================================================
# Renderer Interface
# =============================================================================

class ParticleRenderer(ABC):
    """Rendering capability the schedulers talk to"""

    @abstractmethod
    def spawn_visual(self, entity: ParticleEntity) -> None:
        """Start showing a particle"""

    @abstractmethod
    def remove_visual(self, entity_id: str) -> None:
        """Stop showing a particle"""


class NullRenderer(ParticleRenderer):
    """Renders nothing (headless runs without a frame recorder)"""

    def spawn_visual(self, entity: ParticleEntity) -> None:
        pass

    def remove_visual(self, entity_id: str) -> None:
        pass


# =============================================================================
# Scheduler Base
# =============================================================================

@dataclass
class SchedulerState:
    current_percentage: Optional[int] = None
    next_fire_delay: Optional[float] = None


class ParticleScheduler(ABC):
    """
    Self-rescheduling spawn process.

    Subclasses implement _fire(), which spawns particles via _spawn() and
    returns the delay until the next firing.
    """

    kind = "particle"

    def __init__(
        self,
        clock: TimerService,
        renderer: Optional[ParticleRenderer] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None
    ):
        self.clock = clock
        self.renderer = renderer if renderer is not None else NullRenderer()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.state = SchedulerState()

        self._running = False
        self._fire_handle: Optional[TimerHandle] = None
        self._live: Dict[str, Tuple[ParticleEntity, TimerHandle]] = {}
        self._ids = itertools.count(1)
        # Bumped by stop(); a firing that outlives its generation is abandoned
        self._generation = 0

        self.spawned_count = 0
        self.removed_count = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def live_particles(self) -> List[ParticleEntity]:
        return [entity for entity, _ in self._live.values()]

    @property
    def live_count(self) -> int:
        return len(self._live)

    @property
    def pending_fire(self) -> Optional[TimerHandle]:
        return self._fire_handle

    def start(self) -> None:
        """Fire once now and keep firing until stop()"""
        if self._running:
            logger.debug("%s scheduler already running", self.kind)
            return
        self._running = True
        logger.debug("%s scheduler started at t=%.1f", self.kind, self.clock.now)
        self._run()

    def stop(self) -> None:
        """Cancel the pending firing and every outstanding particle expiry"""
        self._running = False
        self._generation += 1
        if self._fire_handle is not None:
            self._fire_handle.cancel()
            self._fire_handle = None

        for _, expiry in self._live.values():
            expiry.cancel()
        dropped = len(self._live)
        self._live.clear()
        self.state.next_fire_delay = None
        logger.debug("%s scheduler stopped, %d particles dropped", self.kind, dropped)

    def _run(self) -> None:
        generation = self._generation
        self._fire_handle = None
        delay = self._fire()

        # A renderer callback may have stopped (and restarted) the scheduler
        if not self._is_current(generation):
            return
        self.state.next_fire_delay = delay
        self._fire_handle = self.clock.call_later(delay, self._run)

    def _is_current(self, generation: int) -> bool:
        return self._running and self._generation == generation

    @abstractmethod
    def _fire(self) -> float:
        """Spawn this cycle's particles; return ms until the next firing"""

    def _spawn(
        self,
        x: float,
        y: float,
        size: float,
        opacity: float,
        drift_x: float,
        ttl: float
    ) -> ParticleEntity:
        entity = ParticleEntity(
            id=f"{self.kind}-{next(self._ids)}",
            kind=self.kind,
            origin_x=float(x),
            origin_y=float(y),
            size=float(size),
            opacity=float(opacity),
            drift_x=float(drift_x),
            spawn_time=self.clock.now,
            ttl=float(ttl),
        )
        expiry = self.clock.call_later(ttl, self._expire, entity.id)
        self._live[entity.id] = (entity, expiry)
        self.spawned_count += 1

        try:
            self.renderer.spawn_visual(entity)
        except Exception:
            logger.exception("Renderer failed to spawn %s", entity.id)

        return entity

    def _expire(self, entity_id: str) -> None:
        if self._live.pop(entity_id, None) is None:
            return
        self.removed_count += 1

        try:
            self.renderer.remove_visual(entity_id)
        except Exception:
            logger.exception("Renderer failed to remove %s", entity_id)


# =============================================================================
# Exhaust Smoke
# =============================================================================

def ethanol_factor(percentage: float) -> float:
    """(20 - percentage) / 20, clamped to [0, 1]"""
    return min(max((MAX_PERCENTAGE - percentage) / MAX_PERCENTAGE, 0.0), 1.0)


class ExhaustParticleScheduler(ParticleScheduler):
    """
    Exhaust smoke whose density follows the blend percentage.

    More ethanol gives smaller, fainter puffs at a quicker cadence:
        ethanol_factor = (20 - percentage) / 20      1 at E0, 0 at E20
        visibility     = 0.3 + ethanol_factor * 0.7
        interval       = base_interval * visibility
        size           = (5 + U(0, 10)) * visibility
        opacity        = 0.3 + ethanol_factor * 0.5

    Example:
        smoke = ExhaustParticleScheduler(clock, renderer)
        smoke.start()
        smoke.update_rate(15)   # takes effect from the next firing
    """

    kind = "exhaust"

    def __init__(
        self,
        clock: TimerService,
        renderer: Optional[ParticleRenderer] = None,
        config: Optional[ExhaustConfig] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        percentage: int = 0
    ):
        super().__init__(clock, renderer, rng=rng, seed=seed)
        self.config = config or ExhaustConfig()
        self.state.current_percentage = clamp_percentage(percentage)

    @property
    def current_percentage(self) -> int:
        return self.state.current_percentage

    @property
    def ethanol_factor(self) -> float:
        return ethanol_factor(self.state.current_percentage)

    def visibility(self, percentage: Optional[float] = None) -> float:
        """Scale applied to both cadence and particle size"""
        factor = self.ethanol_factor if percentage is None else ethanol_factor(percentage)
        floor = self.config.min_interval_fraction
        return floor + factor * (1.0 - floor)

    def interval(self, percentage: Optional[float] = None) -> float:
        """Delay between firings for a percentage (default: current)"""
        return self.config.base_interval * self.visibility(percentage)

    def update_rate(self, percentage: float) -> None:
        """
        Record a new blend percentage.

        The pending firing keeps its delay; the next reschedule reads the new
        value.
        """
        self.state.current_percentage = clamp_percentage(percentage)

    def _fire(self) -> float:
        cfg = self.config
        factor = self.ethanol_factor
        visibility = self.visibility()
        generation = self._generation

        for x, y in cfg.origins:
            if not self._is_current(generation):
                break
            if self.rng.random() >= cfg.spawn_probability:
                continue
            size = (cfg.size_min + self.rng.uniform(0.0, cfg.size_range)) * visibility
            opacity = cfg.opacity_floor + factor * cfg.opacity_range
            drift_x = self.rng.uniform(-cfg.drift, cfg.drift)
            self._spawn(x, y, size, opacity, drift_x, cfg.ttl)

        return self.interval()


# =============================================================================
# Ambient Particles
# =============================================================================

class AmbientParticleScheduler(ParticleScheduler):
    """
    Decorative background particles, independent of the blend.

    One particle per firing at a random x across the viewport, on the
    baseline (origin_y = 0); renderers float it upward over its ttl.
    """

    kind = "ambient"

    def __init__(
        self,
        clock: TimerService,
        renderer: Optional[ParticleRenderer] = None,
        config: Optional[AmbientConfig] = None,
        viewport_width: Optional[Callable[[], float]] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None
    ):
        super().__init__(clock, renderer, rng=rng, seed=seed)
        self.config = config or AmbientConfig()
        self.viewport_width = viewport_width or (lambda: 800.0)

    def _fire(self) -> float:
        cfg = self.config
        width = max(0.0, float(self.viewport_width()))

        x = self.rng.uniform(0.0, width)
        size = self.rng.uniform(cfg.size_min, cfg.size_max)
        drift_x = self.rng.uniform(-cfg.drift, cfg.drift)
        self._spawn(x, 0.0, size, cfg.opacity, drift_x, cfg.ttl)

        return self.rng.uniform(cfg.min_interval, cfg.max_interval)
