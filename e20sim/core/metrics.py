"""
Emission Metrics - Display-ready figures derived from EmissionValues
"""

from enum import Enum
from typing import Dict
from dataclasses import dataclass

from .profile import EmissionValues, METRICS, MAX_PERCENTAGE


class EmissionLevel(Enum):
    """Severity band of an emission index"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EfficiencyTier(Enum):
    """Engine efficiency band for a blend"""
    STANDARD = "standard"
    MEDIUM = "medium"
    HIGH = "high"


LEVEL_LOW_MAX = 70
LEVEL_MEDIUM_MAX = 85

TIER_MEDIUM_MIN = 10
TIER_HIGH_MIN = 15

BASE_VIBRATION_PERIOD = 0.1  # seconds, at E0


def reduction(value: float) -> float:
    """Reduction vs pure petrol in index points, never negative"""
    return max(0, 100 - value)


def emission_level(value: float) -> EmissionLevel:
    if value <= LEVEL_LOW_MAX:
        return EmissionLevel.LOW
    if value <= LEVEL_MEDIUM_MAX:
        return EmissionLevel.MEDIUM
    return EmissionLevel.HIGH


def efficiency_tier(percentage: float) -> EfficiencyTier:
    if percentage >= TIER_HIGH_MIN:
        return EfficiencyTier.HIGH
    if percentage >= TIER_MEDIUM_MIN:
        return EfficiencyTier.MEDIUM
    return EfficiencyTier.STANDARD


def vibration_period(percentage: float) -> float:
    """
    Engine shake period in seconds.

    Intensity drops by up to 30% at E20, which stretches the period.
    """
    efficiency = min(max(percentage / MAX_PERCENTAGE, 0.0), 1.0)
    intensity = 1.0 - efficiency * 0.3
    return BASE_VIBRATION_PERIOD / intensity


@dataclass(frozen=True)
class MetricReport:
    """Everything a display needs for one blend"""
    percentage: int
    values: EmissionValues
    reductions: Dict[str, float]
    levels: Dict[str, EmissionLevel]
    tier: EfficiencyTier
    vibration_period: float

    @classmethod
    def build(cls, percentage: int, values: EmissionValues) -> 'MetricReport':
        return cls(
            percentage=percentage,
            values=values,
            reductions={m: reduction(getattr(values, m)) for m in METRICS},
            levels={m: emission_level(getattr(values, m)) for m in METRICS},
            tier=efficiency_tier(percentage),
            vibration_period=vibration_period(percentage),
        )

    def format_reduction(self, metric: str) -> str:
        return f"-{self.reductions[metric]:g}% vs pure petrol"

    def to_dict(self) -> Dict:
        return {
            'percentage': self.percentage,
            'label': f"E{self.percentage}",
            'values': self.values.as_dict(),
            'reductions': dict(self.reductions),
            'levels': {m: level.value for m, level in self.levels.items()},
            'tier': self.tier.value,
            'vibration_period': self.vibration_period,
        }
