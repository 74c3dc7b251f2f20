"""Unit tests for the parameter controller and input parsing."""

import logging

import pytest

from e20sim.core.controller import ParameterController, clamp_percentage, parse_percentage
from e20sim.core.errors import InvalidInput
from e20sim.core.interpolator import EmissionInterpolator


class FakeExhaust:
    def __init__(self):
        self.rates = []

    def update_rate(self, percentage):
        self.rates.append(percentage)


@pytest.fixture
def exhaust():
    return FakeExhaust()


@pytest.fixture
def controller(exhaust):
    return ParameterController(exhaust=exhaust)


class TestParsing:
    """Raw input to numbers."""

    def test_numbers(self):
        assert parse_percentage(12) == 12.0
        assert parse_percentage(7.5) == 7.5

    def test_numeric_strings(self):
        assert parse_percentage(" 15 ") == 15.0
        assert parse_percentage("E10") == 10.0
        assert parse_percentage("e5") == 5.0
        assert parse_percentage("20%") == 20.0

    @pytest.mark.parametrize("value", ["abc", "", "E", None, True, float("nan"), [3]])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(InvalidInput):
            parse_percentage(value)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            parse_percentage("ten")

    def test_clamp_truncates(self):
        assert clamp_percentage(-5) == 0
        assert clamp_percentage(999) == 20
        assert clamp_percentage(7.9) == 7
        assert clamp_percentage(20.0) == 20


class TestSetPercentage:
    """Accepting, clamping and fanning out changes."""

    def test_initial_state(self, controller):
        assert controller.percentage == 0
        assert controller.values == EmissionInterpolator().compute(0)
        assert controller.change_count == 0

    def test_change_notifies_and_updates_rate(self, controller, exhaust):
        seen = []
        controller.subscribe(seen.append)
        assert controller.set_percentage(12) is True
        assert controller.percentage == 12
        assert [v.co for v in seen] == [66]
        assert exhaust.rates == [12]

    def test_clamps_low_and_high(self, exhaust):
        controller = ParameterController(exhaust=exhaust, initial=10)
        assert controller.set_percentage(-5)
        assert controller.percentage == 0
        assert controller.set_percentage(999)
        assert controller.percentage == 20
        assert exhaust.rates == [0, 20]

    def test_same_value_is_noop(self, controller, exhaust):
        seen = []
        controller.subscribe(seen.append)
        assert controller.set_percentage(8)
        assert not controller.set_percentage(8)
        assert not controller.set_percentage("8")
        assert not controller.set_percentage(8.4)
        assert len(seen) == 1
        assert exhaust.rates == [8]
        assert controller.change_count == 1

    def test_clamped_to_current_is_noop(self, exhaust):
        controller = ParameterController(exhaust=exhaust, initial=20)
        assert not controller.set_percentage(35)
        assert exhaust.rates == []

    def test_invalid_input_keeps_state(self, controller, exhaust, caplog):
        controller.set_percentage(6)
        with caplog.at_level(logging.WARNING, logger="e20sim.core.controller"):
            assert controller.set_percentage("lots") is False
        assert controller.percentage == 6
        assert exhaust.rates == [6]
        assert "Ignoring parameter input" in caplog.text

    def test_label_input(self, controller):
        assert controller.set_percentage("E15")
        assert controller.percentage == 15

    def test_listener_failure_is_isolated(self, controller, exhaust, caplog):
        seen = []

        def broken(values):
            raise RuntimeError("display gone")

        controller.subscribe(broken)
        controller.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="e20sim.core.controller"):
            assert controller.set_percentage(4)
        assert len(seen) == 1
        assert exhaust.rates == [4]
        assert "listener" in caplog.text

    def test_unsubscribe(self, controller):
        seen = []
        controller.subscribe(seen.append)
        controller.unsubscribe(seen.append)
        controller.set_percentage(3)
        assert seen == []

    def test_publish_resends_current(self, controller):
        seen = []
        controller.subscribe(seen.append)
        controller.publish()
        assert seen == [controller.values]

    def test_works_without_exhaust(self):
        controller = ParameterController()
        assert controller.set_percentage(9)
        assert controller.percentage == 9


class TestNudges:
    """Keyboard steps and touch drags."""

    def test_step(self, controller):
        assert controller.step(1)
        assert controller.step(1)
        assert controller.percentage == 2
        assert controller.step(-1)
        assert controller.percentage == 1

    def test_step_at_bounds(self, controller):
        assert not controller.step(-1)
        controller.set_percentage(20)
        assert not controller.step(1)
        assert controller.percentage == 20

    def test_drag_rounds_half_away(self, controller):
        assert controller.drag(10, 12)        # 2.4 -> 2
        assert controller.percentage == 12
        assert controller.drag(10, -13)       # -2.6 -> -3
        assert controller.percentage == 7
        assert controller.drag(10, 12.5)      # 2.5 -> 3
        assert controller.percentage == 13

    def test_drag_clamps(self, controller):
        controller.drag(10, 500)
        assert controller.percentage == 20

    def test_drag_sensitivity(self, controller):
        with pytest.raises(ValueError):
            controller.drag(0, 10, sensitivity=0)
