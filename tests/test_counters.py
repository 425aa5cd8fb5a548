"""Tests for monitor/counters.py - /proc/net/dev parsing."""
import pytest

from config import CounterReadError, ParseError
from monitor.counters import (
    InterfaceCounters,
    is_excluded,
    parse_counter_line,
    parse_counters,
    read_counters,
)
from monitor.bandwidth_series import BandwidthSeries
from monitor.rate_sampler import RateSampler


class TestParseCounterLine:
    """Tests for single-line parsing."""

    def test_standard_line(self):
        """rx is the first field after the colon, tx the ninth."""
        line = "  eth0: 1000000    2000    0    0    0     0          0         0   500000    1500    0    0    0     0       0          0"
        counters = parse_counter_line(line, 12.5)
        assert counters == InterfaceCounters("eth0", 1000000, 500000, 12.5)

    def test_no_space_after_colon(self):
        """Large counters run into the colon."""
        counters = parse_counter_line("wlan0:2500 30 0 0 0 0 0 0 1200 20 0 0 0 0 0 0", 0.0)
        assert counters.rx_bytes == 2500
        assert counters.tx_bytes == 1200

    def test_missing_separator(self):
        """A line without a colon is rejected."""
        with pytest.raises(ParseError):
            parse_counter_line("eth0 1 2 3 4 5 6 7 8 9", 0.0)

    def test_too_few_fields(self):
        """Truncated lines are rejected."""
        with pytest.raises(ParseError):
            parse_counter_line("eth0: 1 2 3", 0.0)

    def test_non_numeric(self):
        """Garbage counters are rejected."""
        with pytest.raises(ParseError):
            parse_counter_line("eth0: x 2 3 4 5 6 7 8 9 10", 0.0)


class TestIsExcluded:
    """Tests for the interface exclusion rules."""

    @pytest.mark.parametrize("name", ["lo", "docker0", "br-1a2b3c", "vethdocker1"])
    def test_excluded(self, name):
        assert is_excluded(name) is True

    @pytest.mark.parametrize("name", ["eth0", "wlp3s0", "tun0", "wg0"])
    def test_included(self, name):
        assert is_excluded(name) is False

    def test_extra_names(self):
        """User-listed names are excluded too."""
        assert is_excluded("virbr0", extra=["virbr0"]) is True


class TestParseCounters:
    """Tests for whole-file parsing."""

    def test_skips_headers_and_excluded(self, proc_net_dev_text):
        counters = parse_counters(proc_net_dev_text, 1.0)
        assert sorted(counters) == ["eth0", "tun0", "wlan0"]
        assert counters["tun0"].rx_bytes == 40000
        assert counters["tun0"].tx_bytes == 30000

    def test_bad_line_fails_read(self, proc_net_dev_text):
        """A malformed interface line makes the whole read unusable."""
        text = proc_net_dev_text + "  eth1: 1 2\n"
        with pytest.raises(CounterReadError) as exc_info:
            parse_counters(text, 1.0)
        assert exc_info.value.details["line"] == "eth1: 1 2"

    def test_garbled_counter_fails_read(self, proc_net_dev_text):
        text = proc_net_dev_text.replace("1000000    2000", "1000000x   2000")
        with pytest.raises(CounterReadError):
            parse_counters(text, 1.0)

    def test_timestamp_applied(self, proc_net_dev_text):
        counters = parse_counters(proc_net_dev_text, 42.0)
        assert all(c.sampled_at == 42.0 for c in counters.values())


class TestReadCounters:
    """Tests for reading the counter file."""

    def test_read_file(self, proc_net_dev_file):
        counters = read_counters(str(proc_net_dev_file), now=5.0)
        assert counters["eth0"].rx_bytes == 1000000
        assert counters["eth0"].sampled_at == 5.0

    def test_exclude_argument(self, proc_net_dev_file):
        counters = read_counters(str(proc_net_dev_file), exclude=["tun0"])
        assert "tun0" not in counters

    def test_missing_file(self, temp_data_dir):
        with pytest.raises(CounterReadError):
            read_counters(str(temp_data_dir / "nope"))


class TestGarbledTick:
    """A garbled read skips the tick instead of dropping the interface."""

    HEADER = "Inter-| Receive | Transmit\n face |bytes ... |bytes ...\n"

    def _write(self, path, line):
        path.write_text(self.HEADER + line + "\n")

    def _tick(self, sampler, series, now):
        for name, sample in sampler.poll(now).items():
            series.push(name, sample.rx_rate, sample.tx_rate)
        series.retain(sampler.tracked())

    def test_history_survives_garbled_line(self, temp_data_dir):
        path = temp_data_dir / "net_dev"
        sampler = RateSampler(reader=lambda: read_counters(str(path)))
        series = BandwidthSeries(capacity=20)

        for i in range(5):
            self._write(path, f"eth0: {1000 * (i + 1)} 0 0 0 0 0 0 0 {500 * (i + 1)} 0 0 0 0 0 0 0")
            self._tick(sampler, series, float(i))
        assert len(series.snapshot("eth0")) == 5
        last = sampler.last_rate("eth0")

        self._write(path, "eth0: 5000 0 0 0 garbled")
        self._tick(sampler, series, 5.0)

        assert len(series.snapshot("eth0")) == 5
        assert sampler.tracked() == ["eth0"]
        assert sampler.last_rate("eth0") == last

        self._write(path, "eth0: 6000 0 0 0 0 0 0 0 3000 0 0 0 0 0 0 0")
        self._tick(sampler, series, 6.0)

        points = series.snapshot("eth0")
        assert len(points) == 6
        # rate measured against the tick-4 baseline over two seconds
        assert points[-1] == (4000.0, 2000.0)
