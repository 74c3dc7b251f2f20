"""
Emission Profile - Control-point table mapping blend percentage to emission indices

Each control point pins the four emission indices (CO2, CO, HC, PM) at one
ethanol blend percentage. Index 100 is the pure-gasoline baseline.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from dataclasses import dataclass

from .errors import ConfigurationError


# =============================================================================
# Constants
# =============================================================================

MIN_PERCENTAGE = 0
MAX_PERCENTAGE = 20

METRICS: Tuple[str, ...] = ('co2', 'co', 'hc', 'pm')

INDEX_MIN = 0.0
INDEX_MAX = 100.0


# =============================================================================
# Values
# =============================================================================

@dataclass(frozen=True)
class EmissionValues:
    """Emission indices for one blend percentage"""
    co2: float
    co: float
    hc: float
    pm: float

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in METRICS}

    def __iter__(self):
        return iter(self.as_dict().items())


@dataclass(frozen=True)
class ControlPoint:
    """
    A table row pinning exact emission indices at a blend percentage.

    Attributes:
        percentage: Ethanol blend percentage, integer in [0, 20]
        co2, co, hc, pm: Emission indices in [0, 100]
    """
    percentage: int
    co2: float
    co: float
    hc: float
    pm: float

    def __post_init__(self):
        if isinstance(self.percentage, bool) or not isinstance(self.percentage, int):
            raise ConfigurationError(
                f"Control point percentage must be an integer, got {self.percentage!r}"
            )
        if not (MIN_PERCENTAGE <= self.percentage <= MAX_PERCENTAGE):
            raise ConfigurationError(
                f"Control point percentage must be in [{MIN_PERCENTAGE}, {MAX_PERCENTAGE}], "
                f"got {self.percentage}"
            )
        for name in METRICS:
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ConfigurationError(f"{name} at E{self.percentage} must be a number, got {value!r}")
            if not (INDEX_MIN <= value <= INDEX_MAX):
                raise ConfigurationError(
                    f"{name} at E{self.percentage} must be in [0, 100], got {value}"
                )

    @property
    def values(self) -> EmissionValues:
        return EmissionValues(co2=self.co2, co=self.co, hc=self.hc, pm=self.pm)


# =============================================================================
# Profile
# =============================================================================

class EmissionProfile:
    """
    Ordered set of control points keyed by unique percentage.

    The profile must cover the whole domain: at least two points, one at 0%
    and one at 20%. Violations raise ConfigurationError at construction.

    Example:
        profile = EmissionProfile.from_dict({
            0: {'co2': 100, 'co': 100, 'hc': 100, 'pm': 100},
            20: {'co2': 70, 'co': 50, 'hc': 67, 'pm': 80},
        })
        profile.get(20).co  # 50
    """

    def __init__(self, points: Iterable[ControlPoint], name: str = "custom"):
        self.name = name
        points = list(points)

        if len(points) < 2:
            raise ConfigurationError(
                f"Emission profile '{name}' needs at least two control points, got {len(points)}"
            )

        by_percentage: Dict[int, ControlPoint] = {}
        for point in points:
            if point.percentage in by_percentage:
                raise ConfigurationError(
                    f"Duplicate control point for E{point.percentage} in profile '{name}'"
                )
            by_percentage[point.percentage] = point

        for required in (MIN_PERCENTAGE, MAX_PERCENTAGE):
            if required not in by_percentage:
                raise ConfigurationError(
                    f"Emission profile '{name}' must define E{required}"
                )

        self._points: Dict[int, ControlPoint] = {
            p: by_percentage[p] for p in sorted(by_percentage)
        }

    @property
    def percentages(self) -> List[int]:
        """Control-point percentages, ascending"""
        return list(self._points)

    @property
    def points(self) -> List[ControlPoint]:
        return list(self._points.values())

    def get(self, percentage) -> Optional[ControlPoint]:
        """Exact control point lookup, None if the percentage is not pinned"""
        if isinstance(percentage, float):
            if not percentage.is_integer():
                return None
            percentage = int(percentage)
        return self._points.get(percentage)

    def __contains__(self, percentage) -> bool:
        return self.get(percentage) is not None

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points.values())

    def __repr__(self) -> str:
        return f"EmissionProfile(name={self.name!r}, percentages={self.percentages})"

    def to_dict(self) -> Dict[int, Dict[str, float]]:
        """Convert to a {percentage: {metric: value}} mapping"""
        return {p: point.values.as_dict() for p, point in self._points.items()}

    @classmethod
    def from_dict(
        cls,
        data: Mapping,
        name: str = "custom"
    ) -> 'EmissionProfile':
        """
        Create from a {percentage: {metric: value}} mapping.

        Keys may be ints or numeric strings (as YAML and JSON produce).
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Emission profile '{name}' must be a mapping")

        points = []
        for key, row in data.items():
            try:
                percentage = int(key)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid control point key {key!r} in profile '{name}'")
            if str(percentage) != str(key).strip():
                raise ConfigurationError(f"Control point key {key!r} is not an integer percentage")
            if not isinstance(row, Mapping):
                raise ConfigurationError(f"Control point E{percentage} must map metric names to values")

            missing = [m for m in METRICS if m not in row]
            if missing:
                raise ConfigurationError(
                    f"Control point E{percentage} in profile '{name}' is missing {', '.join(missing)}"
                )
            points.append(ControlPoint(percentage, *(row[m] for m in METRICS)))

        return cls(points, name=name)


# Literal table for E0 through E20 blends
DEFAULT_TABLE: Dict[int, Dict[str, float]] = {
    0: {'co2': 100, 'co': 100, 'hc': 100, 'pm': 100},
    5: {'co2': 95, 'co': 85, 'hc': 90, 'pm': 95},
    10: {'co2': 90, 'co': 70, 'hc': 80, 'pm': 90},
    15: {'co2': 85, 'co': 60, 'hc': 75, 'pm': 85},
    20: {'co2': 70, 'co': 50, 'hc': 67, 'pm': 80},
}

DEFAULT_PROFILE = EmissionProfile.from_dict(DEFAULT_TABLE, name="e20_standard")
