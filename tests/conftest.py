"""Pytest configuration and shared fixtures.

This module provides:
- Common test fixtures for data directories and sample tool output
- Fakes wired into a dependency container
- Pytest markers for test categorization (unit, integration, slow)
"""
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from tests.mocks import FakeBridge, FixedCounterReader, StaticInterfaces

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: mark test as a unit test (fast, isolated)")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# =============================================================================
# Directory and Path Fixtures
# =============================================================================


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_path(temp_data_dir: Path) -> Path:
    """Path of the settings file inside the temporary data directory."""
    return temp_data_dir / "settings.json"


# =============================================================================
# Sample Tool Output
# =============================================================================

PROC_NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:  123456     100    0    0    0     0          0         0   123456     100    0    0    0     0       0          0
  eth0: 1000000    2000    0    0    0     0          0         0   500000    1500    0    0    0     0       0          0
wlan0:2500 30 0 0 0 0 0 0 1200 20 0 0 0 0 0 0
docker0:    9999      10    0    0    0     0          0         0     8888      10    0    0    0     0       0          0
br-1a2b3c:    7777      10    0    0    0     0          0         0     6666      10    0    0    0     0       0          0
  tun0:   40000      50    0    0    0     0          0         0    30000      40    0    0    0     0       0          0
"""

WIFI_LIST = """\
*:HomeNet:82:WPA2
:Cafe\\:Guest:40:--
:Office:55:WPA1 WPA2 802.1X
:HomeNet:60:WPA2
::30:WPA2
garbage-without-separators
:Lab:--:
"""

PROFILES = """\
HomeNet:802-11-wireless
work-vpn:vpn
wg-home:wireguard
Wired connection 1:802-3-ethernet
"""

ACTIVE = """\
HomeNet:802-11-wireless:wlan0:activated
wg-home:wireguard:wg-home:activated
work-vpn:vpn:--:activating
"""


@pytest.fixture
def proc_net_dev_text() -> str:
    """A /proc/net/dev sample with excluded and odd-spaced interfaces."""
    return PROC_NET_DEV


@pytest.fixture
def proc_net_dev_file(temp_data_dir: Path) -> Path:
    """The /proc/net/dev sample written to a file."""
    path = temp_data_dir / "net_dev"
    path.write_text(PROC_NET_DEV)
    return path


@pytest.fixture
def wifi_list_output() -> str:
    """`nmcli -t -f IN-USE,SSID,SIGNAL,SECURITY device wifi list` sample."""
    return WIFI_LIST


@pytest.fixture
def profiles_output() -> str:
    """`nmcli -t -f NAME,TYPE connection show` sample."""
    return PROFILES


@pytest.fixture
def active_output() -> str:
    """`nmcli -t -f NAME,TYPE,DEVICE,STATE connection show --active` sample."""
    return ACTIVE


# =============================================================================
# Fakes
# =============================================================================


@pytest.fixture
def fake_bridge() -> FakeBridge:
    """Bridge answering the three list commands with the samples above."""
    bridge = FakeBridge()
    bridge.script("device wifi list", WIFI_LIST)
    bridge.script("connection show --active", ACTIVE)
    bridge.script("connection show", PROFILES)
    return bridge


@pytest.fixture
def counter_reader() -> FixedCounterReader:
    """Counter reader returning values set by the test."""
    return FixedCounterReader()


@pytest.fixture
def mock_event_bus() -> MagicMock:
    """Mock event bus for asserting on published events."""
    return MagicMock()


@pytest.fixture
def deps(fake_bridge, counter_reader):
    """Dependency container built from fakes, with a synchronous event bus."""
    from app.dependencies import AppDependencies
    from app.events import EventBus
    from monitor.actions import ActionQueue
    from monitor.bandwidth_series import BandwidthSeries
    from monitor.models import EntityKind
    from monitor.rate_sampler import RateSampler
    from monitor.reconciler import ConnectionReconciler
    from storage.settings import AppSettings

    return AppDependencies(
        settings=AppSettings(),
        sampler=RateSampler(reader=counter_reader),
        series=BandwidthSeries(capacity=20),
        bridge=fake_bridge,
        reconcilers={kind: ConnectionReconciler(kind) for kind in EntityKind},
        actions=ActionQueue(fake_bridge),
        event_bus=EventBus(async_mode=False),
        interface_source=StaticInterfaces(),
    )
