"""Tests for app/timer.py."""
import threading
import time

import pytest

from app.timer import PeriodicTimer


class TestPeriodicTimer:
    """Tests for PeriodicTimer."""

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            PeriodicTimer(lambda t: None, interval=0)

    def test_interval_setter_validates(self):
        timer = PeriodicTimer(lambda t: None, interval=1.0)
        timer.interval = 0.25
        assert timer.interval == 0.25
        with pytest.raises(ValueError):
            timer.interval = -1

    def test_ticks(self):
        fired = threading.Event()
        seen = []

        def on_tick(timer):
            seen.append(timer)
            if len(seen) >= 3:
                fired.set()

        timer = PeriodicTimer(on_tick, interval=0.02)
        timer.start()
        try:
            assert fired.wait(timeout=2.0)
        finally:
            timer.stop()

        assert seen[0] is timer
        assert timer.ticks >= 3
        assert not timer.running

    def test_callback_error_keeps_running(self):
        fired = threading.Event()
        calls = [0]

        def on_tick(timer):
            calls[0] += 1
            if calls[0] == 1:
                raise RuntimeError("boom")
            fired.set()

        timer = PeriodicTimer(on_tick, interval=0.02)
        timer.start()
        try:
            assert fired.wait(timeout=2.0)
        finally:
            timer.stop()

    def test_stop_is_prompt(self):
        """stop() does not wait out a long interval."""
        timer = PeriodicTimer(lambda t: None, interval=30.0)
        timer.start()
        assert timer.running

        started = time.monotonic()
        timer.stop()
        assert time.monotonic() - started < 1.0
        assert timer.ticks == 0

    def test_start_twice_single_thread(self):
        timer = PeriodicTimer(lambda t: None, interval=30.0, name="tick-test")
        timer.start()
        timer.start()
        try:
            names = [t.name for t in threading.enumerate() if t.name == "tick-test"]
            assert len(names) == 1
        finally:
            timer.stop()

    def test_stop_from_callback(self):
        done = threading.Event()

        def on_tick(timer):
            timer.stop()
            done.set()

        timer = PeriodicTimer(on_tick, interval=0.02)
        timer.start()
        assert done.wait(timeout=2.0)
        assert not timer.running
