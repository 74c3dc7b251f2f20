"""Unit tests for the virtual timer service."""

import pytest

from e20sim.core.clock import TimerService


class TestScheduling:
    """call_later / call_at bookkeeping."""

    def test_fires_at_due_time(self):
        clock = TimerService()
        seen = []
        clock.call_later(200, lambda: seen.append(clock.now))
        clock.advance(199)
        assert seen == []
        clock.advance(1)
        assert seen == [200]

    def test_order_by_due_then_fifo(self):
        clock = TimerService()
        order = []
        clock.call_later(50, order.append, 'b')
        clock.call_later(10, order.append, 'a')
        clock.call_later(50, order.append, 'c')
        clock.advance(100)
        assert order == ['a', 'b', 'c']

    def test_clock_ends_at_target(self):
        clock = TimerService(start=100)
        clock.call_later(10, lambda: None)
        assert clock.advance(500) == 1
        assert clock.now == 600

    def test_call_at_absolute(self):
        clock = TimerService()
        seen = []
        clock.call_at(42, lambda: seen.append(clock.now))
        clock.advance(50)
        assert seen == [42]

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            TimerService().call_later(-1, lambda: None)

    def test_past_time_rejected(self):
        clock = TimerService(start=10)
        with pytest.raises(ValueError):
            clock.call_at(5, lambda: None)

    def test_cannot_go_backwards(self):
        with pytest.raises(ValueError):
            TimerService().advance(-5)


class TestCancellation:
    """Cancelled timers never run."""

    def test_cancel_prevents_firing(self):
        clock = TimerService()
        seen = []
        handle = clock.call_later(10, seen.append, 1)
        handle.cancel()
        assert clock.advance(100) == 0
        assert seen == []
        assert not handle.active

    def test_pending_ignores_cancelled(self):
        clock = TimerService()
        first = clock.call_later(10, lambda: None)
        clock.call_later(20, lambda: None)
        first.cancel()
        assert clock.pending == 1
        assert clock.next_due() == 20

    def test_fired_handle_is_inactive(self):
        clock = TimerService()
        handle = clock.call_later(5, lambda: None)
        clock.advance(5)
        assert not handle.active
        assert not handle.cancelled

    def test_clear(self):
        clock = TimerService()
        handles = [clock.call_later(d, lambda: None) for d in (1, 2, 3)]
        clock.clear()
        assert clock.pending == 0
        assert clock.next_due() is None
        assert all(h.cancelled for h in handles)


class TestChains:
    """Timers scheduled from inside callbacks."""

    def test_nested_timers_fire_within_window(self):
        clock = TimerService()
        times = []

        def tick():
            times.append(clock.now)
            clock.call_later(100, tick)

        clock.call_later(0, tick)
        clock.advance(350)
        assert times == [0, 100, 200, 300]
        assert clock.next_due() == 400

    def test_run_until_idle(self):
        clock = TimerService()
        seen = []
        clock.call_later(30, seen.append, 'x')
        clock.call_later(60, seen.append, 'y')
        assert clock.run_until_idle() == 2
        assert seen == ['x', 'y']
        assert clock.now == 60

    def test_run_until_idle_is_bounded(self):
        clock = TimerService()

        def forever():
            clock.call_later(1, forever)

        clock.call_later(0, forever)
        assert clock.run_until_idle(limit=25) == 25
