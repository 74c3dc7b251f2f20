"""
Emission Interpolator - Piecewise-linear lookup over the emission profile

compute() returns the table values unmodified at control points and a
linear blend of the two bracketing points everywhere else. Results are
rounded to whole index points, half away from zero.
"""

import math
from typing import List, Optional, Tuple

from .errors import ConfigurationError
from .profile import (
    DEFAULT_PROFILE, EmissionProfile, EmissionValues,
    METRICS, MIN_PERCENTAGE, MAX_PERCENTAGE,
)


def round_half_away(value: float) -> int:
    """Round to nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)"""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class EmissionInterpolator:
    """
    Pure percentage -> EmissionValues mapping over an EmissionProfile.

    Example:
        interp = EmissionInterpolator()
        interp.compute(7.5).co  # 78
    """

    def __init__(self, profile: Optional[EmissionProfile] = None):
        self.profile = profile if profile is not None else DEFAULT_PROFILE

    def compute(self, percentage: float) -> EmissionValues:
        """
        Emission indices for a blend percentage.

        Out-of-range input is clamped to the domain boundary; nothing is
        extrapolated.

        Raises:
            ConfigurationError: if the profile cannot bracket the value
        """
        if math.isnan(percentage):
            raise ValueError("percentage must be a number, got NaN")
        percentage = clamp(percentage, MIN_PERCENTAGE, MAX_PERCENTAGE)

        exact = self.profile.get(percentage)
        if exact is not None:
            return exact.values

        lower, upper = self._bracket(percentage)
        low_point = self.profile.get(lower)
        high_point = self.profile.get(upper)

        ratio = (percentage - lower) / (upper - lower)

        return EmissionValues(**{
            name: round_half_away(
                getattr(low_point, name)
                + (getattr(high_point, name) - getattr(low_point, name)) * ratio
            )
            for name in METRICS
        })

    def _bracket(self, percentage: float) -> Tuple[int, int]:
        """Find the adjacent control-point pair with lower <= percentage <= upper"""
        keys = self.profile.percentages
        if len(keys) < 2:
            raise ConfigurationError(
                f"Profile '{self.profile.name}' needs two control points to interpolate"
            )

        for i in range(len(keys) - 1):
            lower, upper = keys[i], keys[i + 1]
            if lower <= percentage <= upper:
                if upper == lower:
                    raise ConfigurationError(
                        f"Degenerate bracket E{lower}..E{upper} in profile '{self.profile.name}'"
                    )
                return lower, upper

        raise ConfigurationError(
            f"Profile '{self.profile.name}' does not cover E{percentage}"
        )

    def table(self, step: float = 1) -> List[Tuple[float, EmissionValues]]:
        """Sample the whole domain at a fixed step, endpoints included"""
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")

        rows = []
        count = int(math.floor((MAX_PERCENTAGE - MIN_PERCENTAGE) / step + 1e-9))
        for i in range(count + 1):
            percentage = MIN_PERCENTAGE + i * step
            if float(percentage).is_integer():
                percentage = int(percentage)
            rows.append((percentage, self.compute(percentage)))

        if rows[-1][0] != MAX_PERCENTAGE:
            rows.append((MAX_PERCENTAGE, self.compute(MAX_PERCENTAGE)))
        return rows
