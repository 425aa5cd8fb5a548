"""Tests for app/dependencies.py - Dependency injection container."""

from unittest.mock import MagicMock

from app.dependencies import AppDependencies, create_dependencies
from app.events import EventBus
from monitor.command_bridge import CommandBridge
from monitor.interfaces import get_active_interfaces
from monitor.models import EntityKind
from storage.settings import AppSettings


class TestAppDependencies:
    """Tests for the AppDependencies dataclass."""

    def test_basic_creation(self):
        """Test creating AppDependencies with mock objects."""
        mock_sampler = MagicMock()
        mock_bridge = MagicMock()
        mock_bus = MagicMock()

        deps = AppDependencies(
            settings=AppSettings(),
            sampler=mock_sampler,
            series=MagicMock(),
            bridge=mock_bridge,
            reconcilers={},
            actions=MagicMock(),
            event_bus=mock_bus,
        )

        assert deps.sampler is mock_sampler
        assert deps.bridge is mock_bridge
        assert deps.event_bus is mock_bus

    def test_default_interface_source(self):
        """Without an explicit source the psutil listing is used."""
        deps = AppDependencies(
            settings=AppSettings(),
            sampler=MagicMock(),
            series=MagicMock(),
            bridge=MagicMock(),
            reconcilers={},
            actions=MagicMock(),
            event_bus=MagicMock(),
        )
        assert deps.interface_source is get_active_interfaces


class TestCreateDependencies:
    """Tests for the create_dependencies factory."""

    def test_wires_components(self, proc_net_dev_file):
        settings = AppSettings(series_capacity=50, command_timeout=2.0,
                               excluded_interfaces=["wlan0"])
        bus = EventBus(async_mode=False)

        deps = create_dependencies(settings=settings, counters_path=str(proc_net_dev_file),
                                   event_bus=bus)
        try:
            assert deps.event_bus is bus
            assert isinstance(deps.bridge, CommandBridge)
            assert deps.bridge.default_timeout == 2.0
            assert deps.series.capacity == 50
            assert set(deps.reconcilers) == set(EntityKind)
            assert sorted(deps.sampler.poll(now=1.0)) == ["eth0", "tun0"]
        finally:
            deps.bridge.shutdown()

    def test_loads_settings_from_data_dir(self, temp_data_dir, temp_settings_path):
        temp_settings_path.write_text('{"series_capacity": 42}')
        deps = create_dependencies(data_dir=temp_data_dir)
        try:
            assert deps.series.capacity == 42
        finally:
            deps.bridge.shutdown()
            deps.event_bus.shutdown()
