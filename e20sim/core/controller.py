"""
Parameter Controller - Owns the blend percentage and fans changes out

Every input source (slider drag, arrow keys, touch drag) funnels into
set_percentage(). Redundant input is a no-op, so sources may call it on
every intermediate event.
"""

import logging
import math
from typing import Any, Callable, List, Optional

from .errors import ConfigurationError, InvalidInput
from .interpolator import EmissionInterpolator, round_half_away
from .profile import EmissionValues, MAX_PERCENTAGE, MIN_PERCENTAGE

logger = logging.getLogger(__name__)

EmissionListener = Callable[[EmissionValues], Any]


def parse_percentage(value: Any) -> float:
    """
    Interpret raw input as a number.

    Accepts numbers and numeric strings, optionally written as a blend label
    ("E10", "10%").

    Raises:
        InvalidInput: if the value is not numeric
    """
    if isinstance(value, bool):
        raise InvalidInput(f"Not a blend percentage: {value!r}")

    if isinstance(value, str):
        text = value.strip().upper()
        if text.startswith('E'):
            text = text[1:]
        if text.endswith('%'):
            text = text[:-1]
        try:
            number = float(text)
        except ValueError:
            raise InvalidInput(f"Not a blend percentage: {value!r}")
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidInput(f"Not a blend percentage: {value!r}")

    if math.isnan(number):
        raise InvalidInput("Blend percentage is NaN")
    return number


def clamp_percentage(value: float) -> int:
    """Clamp to [0, 20] and truncate to a whole percentage"""
    return int(min(max(value, MIN_PERCENTAGE), MAX_PERCENTAGE))


class ParameterController:
    """
    Current blend percentage plus its listeners.

    On an accepted change the controller computes the new EmissionValues,
    publishes them to subscribers, then passes the percentage to the exhaust
    scheduler's update_rate().

    Example:
        controller = ParameterController(exhaust=smoke)
        controller.subscribe(lambda values: print(values.co))
        controller.set_percentage(12)     # True, prints 66
        controller.set_percentage("12")   # False, no change
    """

    def __init__(
        self,
        interpolator: Optional[EmissionInterpolator] = None,
        exhaust: Optional[Any] = None,
        initial: float = MIN_PERCENTAGE
    ):
        """
        Args:
            interpolator: Emission lookup (default profile if None)
            exhaust: Anything with update_rate(percentage), usually the
                ExhaustParticleScheduler
            initial: Starting percentage
        """
        self.interpolator = interpolator or EmissionInterpolator()
        self.exhaust = exhaust
        self._percentage = clamp_percentage(parse_percentage(initial))
        # Surfaces a broken profile at startup
        self._values = self.interpolator.compute(self._percentage)
        self._listeners: List[EmissionListener] = []
        self.change_count = 0

    @property
    def percentage(self) -> int:
        return self._percentage

    @property
    def values(self) -> EmissionValues:
        """Last published emission values"""
        return self._values

    def subscribe(self, listener: EmissionListener) -> EmissionListener:
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: EmissionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_percentage(self, value: Any) -> bool:
        """
        Accept a new blend percentage.

        Returns:
            True if the stored percentage changed
        """
        try:
            number = parse_percentage(value)
        except InvalidInput as e:
            logger.warning("Ignoring parameter input: %s", e)
            return False

        clamped = clamp_percentage(number)
        if clamped != number:
            logger.debug("Blend input %r clamped to E%d", value, clamped)

        if clamped == self._percentage:
            return False

        try:
            values = self.interpolator.compute(clamped)
        except ConfigurationError:
            logger.exception("Emission lookup failed for E%d, keeping E%d", clamped, self._percentage)
            return False

        self._percentage = clamped
        self._values = values
        self.change_count += 1
        logger.debug("Blend set to E%d: %s", clamped, values)

        self._publish(values)
        if self.exhaust is not None:
            self.exhaust.update_rate(clamped)
        return True

    def step(self, delta: int = 1) -> bool:
        """Keyboard-style nudge by whole percentage points"""
        return self.set_percentage(self._percentage + delta)

    def drag(self, start_value: float, delta_px: float, sensitivity: float = 5.0) -> bool:
        """
        Touch-style drag: one percentage point per `sensitivity` pixels,
        relative to the value when the drag began.
        """
        if sensitivity <= 0:
            raise ValueError(f"sensitivity must be positive, got {sensitivity}")
        return self.set_percentage(start_value + round_half_away(delta_px / sensitivity))

    def publish(self) -> None:
        """Re-send the current values (initial display)"""
        self._publish(self._values)

    def _publish(self, values: EmissionValues) -> None:
        for listener in list(self._listeners):
            try:
                listener(values)
            except Exception:
                logger.exception("Emission listener %r failed", listener)
