"""
Simulator Presets - Configuration for the schedulers and emission profiles

Configs are plain dataclasses with YAML persistence. Built-in profiles ship
with the package; user profiles live as YAML files in a presets directory
and override built-ins of the same name.
"""

import logging
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field, asdict, fields

from .errors import ConfigurationError
from .profile import DEFAULT_TABLE, EmissionProfile

logger = logging.getLogger(__name__)


def _filter_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only keys that are dataclass fields of cls"""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


# ============================================================================
# Scheduler Configs
# ============================================================================

@dataclass
class ExhaustConfig:
    """Exhaust smoke emission constants"""

    base_interval: float = 200.0        # ms between firings at E0
    min_interval_fraction: float = 0.3  # interval floor at E20, as a fraction of base
    spawn_probability: float = 0.7      # per origin, per firing
    ttl: float = 3000.0                 # ms

    # Size = (size_min + U(0, size_range)) * visibility
    size_min: float = 5.0
    size_range: float = 10.0

    # Opacity = opacity_floor + ethanol_factor * opacity_range
    opacity_floor: float = 0.3
    opacity_range: float = 0.5

    drift: float = 20.0                 # drift_x ~ U(-drift, drift)

    origins: List[Tuple[float, float]] = field(
        default_factory=lambda: [(320.0, 127.0), (320.0, 152.0)]
    )

    def __post_init__(self):
        self.origins = [tuple(float(c) for c in origin) for origin in self.origins]
        if self.base_interval <= 0:
            raise ConfigurationError(f"base_interval must be positive, got {self.base_interval}")
        if not (0.0 < self.min_interval_fraction <= 1.0):
            raise ConfigurationError(
                f"min_interval_fraction must be in (0, 1], got {self.min_interval_fraction}"
            )
        if not (0.0 <= self.spawn_probability <= 1.0):
            raise ConfigurationError(
                f"spawn_probability must be in [0, 1], got {self.spawn_probability}"
            )
        if self.ttl <= 0:
            raise ConfigurationError(f"ttl must be positive, got {self.ttl}")
        if any(len(origin) != 2 for origin in self.origins):
            raise ConfigurationError("exhaust origins must be (x, y) pairs")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExhaustConfig':
        return cls(**_filter_fields(cls, data))


@dataclass
class AmbientConfig:
    """Decorative background particle constants"""

    min_interval: float = 1000.0  # ms
    max_interval: float = 4000.0  # ms, exclusive
    size_min: float = 2.0
    size_max: float = 6.0
    drift: float = 50.0
    opacity: float = 0.5
    ttl: float = 20000.0

    def __post_init__(self):
        if not (0 <= self.min_interval < self.max_interval):
            raise ConfigurationError(
                f"ambient interval range is empty: [{self.min_interval}, {self.max_interval})"
            )
        if self.size_min > self.size_max:
            raise ConfigurationError("ambient size_min must not exceed size_max")
        if self.ttl <= 0:
            raise ConfigurationError(f"ttl must be positive, got {self.ttl}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AmbientConfig':
        return cls(**_filter_fields(cls, data))


@dataclass
class SimulatorConfig:
    """Complete simulator configuration"""

    name: str = "e20_standard"
    description: str = ""

    profile: Dict[int, Dict[str, float]] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_TABLE.items()}
    )
    exhaust: ExhaustConfig = field(default_factory=ExhaustConfig)
    ambient: AmbientConfig = field(default_factory=AmbientConfig)

    # Viewport used for ambient spawning when no UI supplies one
    viewport_width: int = 800
    viewport_height: int = 600

    seed: Optional[int] = None
    initial_percentage: int = 0

    tags: List[str] = field(default_factory=list)

    def emission_profile(self) -> EmissionProfile:
        """Build (and validate) the control-point table"""
        return EmissionProfile.from_dict(self.profile, name=self.name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for YAML serialization"""
        data = asdict(self)
        data['exhaust']['origins'] = [list(o) for o in self.exhaust.origins]
        data['profile'] = {int(k): dict(v) for k, v in self.profile.items()}
        return {k: v for k, v in data.items() if v is not None and v != [] and v != ""}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulatorConfig':
        """Create from dictionary; unknown keys are ignored"""
        if not isinstance(data, dict):
            raise ConfigurationError("simulator config must be a mapping")

        data = dict(data)
        for section, section_cls in (('exhaust', ExhaustConfig), ('ambient', AmbientConfig)):
            value = data.get(section)
            if value is None:
                data.pop(section, None)
            elif isinstance(value, dict):
                try:
                    data[section] = section_cls.from_dict(value)
                except TypeError as e:
                    raise ConfigurationError(f"invalid '{section}' section: {e}")
            elif not isinstance(value, section_cls):
                raise ConfigurationError(f"'{section}' section must be a mapping")

        config = cls(**_filter_fields(cls, data))
        # Fail at load time rather than at first compute()
        config.emission_profile()
        return config


# ============================================================================
# Built-in Profiles
# ============================================================================

BUILTIN_PROFILES: Dict[str, Dict[str, Any]] = {
    "e20_standard": {
        "name": "e20_standard",
        "description": "Indicative emission indices for E0 through E20 blends",
        "tags": ["default", "e20"],
    },

    "e10_capped": {
        "name": "e10_capped",
        "description": "Gentler table for engines tuned for E10 (gains flatten past E10)",
        "profile": {
            0: {"co2": 100, "co": 100, "hc": 100, "pm": 100},
            10: {"co2": 92, "co": 75, "hc": 84, "pm": 92},
            20: {"co2": 88, "co": 68, "hc": 80, "pm": 90},
        },
        "tags": ["e10", "legacy"],
    },

    "clean_exhaust": {
        "name": "clean_exhaust",
        "description": "Default table with a faster, lighter smoke cadence for demos",
        "exhaust": {"base_interval": 150.0, "spawn_probability": 0.5},
        "ambient": {"min_interval": 500.0, "max_interval": 2000.0},
        "tags": ["demo"],
    },
}


# ============================================================================
# YAML persistence
# ============================================================================

def load_config(path: Union[str, Path]) -> SimulatorConfig:
    """
    Load a SimulatorConfig from a YAML file.

    Raises:
        FileNotFoundError: if the file does not exist
        ConfigurationError: if the content is not a valid config
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {path}: {e}")

    if data is None:
        data = {}
    if isinstance(data, dict):
        data.setdefault('name', path.stem)
    config = SimulatorConfig.from_dict(data)
    logger.debug("Loaded config '%s' from %s", config.name, path)
    return config


def save_config(config: SimulatorConfig, path: Union[str, Path]) -> Path:
    """Write a SimulatorConfig to YAML"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    return path


# ============================================================================
# Profile Manager
# ============================================================================

class ProfileManager:
    """
    Built-in and user-defined simulator configs by name.
    """

    def __init__(self, user_presets_dir: Optional[Path] = None):
        """
        Args:
            user_presets_dir: Directory with user YAML configs
                (default: ~/.e20sim/presets). Created if missing.
        """
        self.user_presets_dir = Path(user_presets_dir or Path.home() / '.e20sim' / 'presets')
        self.user_presets_dir.mkdir(parents=True, exist_ok=True)

        self._builtin: Dict[str, SimulatorConfig] = {
            name: SimulatorConfig.from_dict(data) for name, data in BUILTIN_PROFILES.items()
        }
        self._user: Dict[str, SimulatorConfig] = {}
        self._load_user_presets()

    def _load_user_presets(self) -> None:
        for yaml_file in sorted(self.user_presets_dir.glob('*.yaml')):
            try:
                config = load_config(yaml_file)
            except (ConfigurationError, OSError) as e:
                logger.warning("Could not load preset file %s: %s", yaml_file, e)
                continue
            self._user[config.name] = config

    def get(self, name: str) -> Optional[SimulatorConfig]:
        """User presets override built-in presets with the same name"""
        return self._user.get(name) or self._builtin.get(name)

    def exists(self, name: str) -> bool:
        return name in self._user or name in self._builtin

    def is_builtin(self, name: str) -> bool:
        return name in self._builtin and name not in self._user

    def list_all(self) -> List[str]:
        return sorted(set(self._builtin) | set(self._user))

    def save(self, config: SimulatorConfig) -> Path:
        """Persist a user preset as <name>.yaml"""
        path = save_config(config, self.user_presets_dir / f"{config.name}.yaml")
        self._user[config.name] = config
        return path

    def delete(self, name: str) -> bool:
        """Delete a user preset. Built-ins cannot be deleted."""
        if name not in self._user:
            return False
        path = self.user_presets_dir / f"{name}.yaml"
        if path.exists():
            path.unlink()
        del self._user[name]
        return True
