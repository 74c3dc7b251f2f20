"""
E20 Blend Simulator - Emission indices and exhaust smoke for ethanol/gasoline blends
"""

from .core import (
    EmissionInterpolator, EmissionProfile, EmissionValues,
    ParameterController, SimulationSystem, SimulatorConfig,
    ExhaustParticleScheduler, AmbientParticleScheduler,
    TimerService, FrameRecorder, MetricReport,
    ConfigurationError, InvalidInput,
    MIN_PERCENTAGE, MAX_PERCENTAGE,
)
from .core.interpolator import clamp

__version__ = "0.1.0"
__all__ = [
    'EmissionInterpolator',
    'EmissionProfile',
    'EmissionValues',
    'ParameterController',
    'SimulationSystem',
    'SimulatorConfig',
    'ExhaustParticleScheduler',
    'AmbientParticleScheduler',
    'TimerService',
    'FrameRecorder',
    'MetricReport',
    'ConfigurationError',
    'InvalidInput',
    'emissions',
    'record',
]


def emissions(percentage: float, config: SimulatorConfig = None) -> dict:
    """
    Emission report for a blend.

    Args:
        percentage: Ethanol blend percentage (clamped to 0-20)
        config: Simulator config (default table if None)

    Returns:
        Dictionary with values, reductions, levels and efficiency tier
    """
    config = config or SimulatorConfig()
    interpolator = EmissionInterpolator(config.emission_profile())
    values = interpolator.compute(percentage)
    percentage = clamp(percentage, MIN_PERCENTAGE, MAX_PERCENTAGE)
    return MetricReport.build(percentage, values).to_dict()


def record(
    output_path: str,
    percentage: int = 0,
    duration_ms: float = 3000,
    fps: int = 20,
    width: int = 480,
    height: int = 270,
    config: SimulatorConfig = None,
    schedule: dict = None
):
    """
    Run the simulation headlessly and save it as a GIF.

    Args:
        output_path: Where to write the GIF
        percentage: Blend to run at
        duration_ms: Simulated time to record
        fps: Frames per simulated second
        width, height: Frame size in pixels
        config: Simulator config (defaults if None)
        schedule: Optional {time_ms: percentage} blend changes during the run

    Returns:
        Path to the GIF
    """
    from .core.recorder import record_simulation

    recorder = FrameRecorder(width, height)
    system = SimulationSystem(
        config or SimulatorConfig(),
        renderer=recorder,
        viewport_width=recorder.viewport_width,
    )
    system.on_parameter_input(percentage)

    with system:
        record_simulation(system, recorder, duration_ms, fps=fps, schedule=schedule)

    return recorder.to_gif(output_path, duration=int(round(1000 / fps)))
