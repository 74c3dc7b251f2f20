"""
E20 Blend Simulator - Core
"""

from .errors import SimulatorError, ConfigurationError, InvalidInput
from .profile import (
    ControlPoint, EmissionValues, EmissionProfile,
    DEFAULT_PROFILE, DEFAULT_TABLE, METRICS,
    MIN_PERCENTAGE, MAX_PERCENTAGE,
)
from .interpolator import EmissionInterpolator, round_half_away
from .clock import TimerService, TimerHandle
from .controller import ParameterController, clamp_percentage, parse_percentage
from .particles import (
    ParticleEntity, ParticleRenderer, NullRenderer,
    SchedulerState, ParticleScheduler,
    ExhaustParticleScheduler, AmbientParticleScheduler,
    ethanol_factor,
)
from .metrics import (
    EmissionLevel, EfficiencyTier, MetricReport,
    reduction, emission_level, efficiency_tier, vibration_period,
)
from .presets import (
    ExhaustConfig, AmbientConfig, SimulatorConfig,
    BUILTIN_PROFILES, ProfileManager,
    load_config, save_config,
)
from .system import SimulationSystem
from .visuals import ParticleCanvas, VisualState
from .recorder import FrameRecorder, record_simulation
from .preview import PreviewCanvas, PreviewConfig, PreviewWindow, check_pygame_available

__all__ = [
    # Errors
    'SimulatorError', 'ConfigurationError', 'InvalidInput',
    # Profile
    'ControlPoint', 'EmissionValues', 'EmissionProfile',
    'DEFAULT_PROFILE', 'DEFAULT_TABLE', 'METRICS',
    'MIN_PERCENTAGE', 'MAX_PERCENTAGE',
    # Interpolation
    'EmissionInterpolator', 'round_half_away',
    # Timers
    'TimerService', 'TimerHandle',
    # Controller
    'ParameterController', 'clamp_percentage', 'parse_percentage',
    # Particles
    'ParticleEntity', 'ParticleRenderer', 'NullRenderer',
    'SchedulerState', 'ParticleScheduler',
    'ExhaustParticleScheduler', 'AmbientParticleScheduler',
    'ethanol_factor',
    # Metrics
    'EmissionLevel', 'EfficiencyTier', 'MetricReport',
    'reduction', 'emission_level', 'efficiency_tier', 'vibration_period',
    # Presets
    'ExhaustConfig', 'AmbientConfig', 'SimulatorConfig',
    'BUILTIN_PROFILES', 'ProfileManager',
    'load_config', 'save_config',
    # System
    'SimulationSystem',
    # Rendering
    'ParticleCanvas', 'VisualState',
    'FrameRecorder', 'record_simulation',
    'PreviewCanvas', 'PreviewConfig', 'PreviewWindow', 'check_pygame_available',
]
