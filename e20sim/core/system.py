"""
Simulation System - Wires profile, controller and both schedulers to one clock
"""

import logging
import numpy as np
from typing import Callable, List, Optional

from .clock import TimerService
from .controller import EmissionListener, ParameterController
from .interpolator import EmissionInterpolator
from .metrics import MetricReport
from .particles import (
    AmbientParticleScheduler, ExhaustParticleScheduler,
    NullRenderer, ParticleEntity, ParticleRenderer,
)
from .presets import SimulatorConfig

logger = logging.getLogger(__name__)


class SimulationSystem:
    """
    The whole core behind one object.

    Example:
        system = SimulationSystem(SimulatorConfig(seed=7), renderer=canvas)
        system.subscribe(show_values)
        system.start()
        system.on_parameter_input(15)
        system.advance(1000)      # one simulated second
        system.stop()
    """

    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        renderer: Optional[ParticleRenderer] = None,
        viewport_width: Optional[Callable[[], float]] = None,
        clock: Optional[TimerService] = None
    ):
        self.config = config or SimulatorConfig()
        self.clock = clock or TimerService()
        self.renderer = renderer if renderer is not None else NullRenderer()

        self.profile = self.config.emission_profile()
        self.interpolator = EmissionInterpolator(self.profile)

        # Independent streams so ambient draws never shift the smoke pattern
        exhaust_seed, ambient_seed = np.random.SeedSequence(self.config.seed).spawn(2)

        self.exhaust = ExhaustParticleScheduler(
            self.clock,
            self.renderer,
            config=self.config.exhaust,
            rng=np.random.default_rng(exhaust_seed),
            percentage=self.config.initial_percentage,
        )
        self.ambient = AmbientParticleScheduler(
            self.clock,
            self.renderer,
            config=self.config.ambient,
            viewport_width=viewport_width or (lambda: self.config.viewport_width),
            rng=np.random.default_rng(ambient_seed),
        )
        self.controller = ParameterController(
            self.interpolator,
            exhaust=self.exhaust,
            initial=self.config.initial_percentage,
        )

    @property
    def running(self) -> bool:
        return self.exhaust.running and self.ambient.running

    @property
    def percentage(self) -> int:
        return self.controller.percentage

    @property
    def live_particles(self) -> List[ParticleEntity]:
        return self.exhaust.live_particles + self.ambient.live_particles

    def subscribe(self, listener: EmissionListener) -> EmissionListener:
        return self.controller.subscribe(listener)

    def start(self) -> None:
        """Start both schedulers and publish the initial emission values"""
        if self.running:
            return
        try:
            self.exhaust.start()
            self.ambient.start()
        except Exception:
            self.stop()
            raise
        logger.info("Simulation started at E%d (profile '%s')", self.percentage, self.profile.name)
        self.controller.publish()

    def stop(self) -> None:
        """Tear down both schedulers together"""
        self.exhaust.stop()
        self.ambient.stop()
        logger.info("Simulation stopped at t=%.0f ms", self.clock.now)

    def on_parameter_input(self, value) -> bool:
        return self.controller.set_percentage(value)

    def advance(self, ms: float) -> int:
        return self.clock.advance(ms)

    def report(self) -> MetricReport:
        return MetricReport.build(self.controller.percentage, self.controller.values)

    def __enter__(self) -> 'SimulationSystem':
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
