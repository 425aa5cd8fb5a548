"""Tests for monitor/bandwidth_series.py - bounded rate history."""
import threading

import pytest

from monitor.bandwidth_series import BandwidthSeries


class TestBandwidthSeries:
    """Tests for BandwidthSeries."""

    def test_default_capacity(self):
        assert BandwidthSeries().capacity == 300

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            BandwidthSeries(capacity=0)

    def test_unknown_interface_is_empty(self):
        series = BandwidthSeries(capacity=5)
        assert series.snapshot("eth0") == ()
        assert series.latest("eth0") is None
        assert series.peak("eth0") == (0.0, 0.0)

    def test_oldest_first(self):
        series = BandwidthSeries(capacity=5)
        for i in range(3):
            series.push("eth0", float(i), float(i * 10))
        assert series.snapshot("eth0") == ((0.0, 0.0), (1.0, 10.0), (2.0, 20.0))
        assert series.latest("eth0") == (2.0, 20.0)

    def test_never_exceeds_capacity(self):
        """After N+k pushes the last N remain, oldest first."""
        series = BandwidthSeries(capacity=4)
        for i in range(10):
            series.push("eth0", float(i), 0.0)
            assert len(series.snapshot("eth0")) <= 4
        assert [p[0] for p in series.snapshot("eth0")] == [6.0, 7.0, 8.0, 9.0]

    def test_peak(self):
        series = BandwidthSeries(capacity=10)
        series.push("eth0", 5.0, 1.0)
        series.push("eth0", 2.0, 9.0)
        assert series.peak("eth0") == (5.0, 9.0)

    def test_interfaces_independent(self):
        series = BandwidthSeries(capacity=2)
        series.push("eth0", 1.0, 1.0)
        series.push("tun0", 2.0, 2.0)
        series.push("tun0", 3.0, 3.0)
        series.push("tun0", 4.0, 4.0)
        assert len(series.snapshot("eth0")) == 1
        assert series.interfaces() == ["eth0", "tun0"]

    def test_retain(self):
        series = BandwidthSeries(capacity=2)
        series.push("eth0", 1.0, 1.0)
        series.push("tun0", 1.0, 1.0)
        series.retain(["eth0"])
        assert series.interfaces() == ["eth0"]
        assert len(series) == 1

    def test_snapshot_is_a_copy(self):
        series = BandwidthSeries(capacity=3)
        series.push("eth0", 1.0, 1.0)
        points = series.snapshot("eth0")
        series.push("eth0", 2.0, 2.0)
        assert points == ((1.0, 1.0),)

    def test_concurrent_push_and_read(self):
        """Readers never see more than capacity points while a writer pushes."""
        series = BandwidthSeries(capacity=50)
        stop = threading.Event()
        sizes = []

        def reader():
            while not stop.is_set():
                sizes.append(len(series.snapshot("eth0")))

        thread = threading.Thread(target=reader)
        thread.start()
        for i in range(2000):
            series.push("eth0", float(i), float(i))
        stop.set()
        thread.join()

        assert max(sizes, default=0) <= 50
        assert series.latest("eth0") == (1999.0, 1999.0)
