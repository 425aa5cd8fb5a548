"""Tests for monitor/parser.py - nmcli terse output parsing."""
import pytest

from config import ParseError
from monitor.models import UNKNOWN, ActiveConnection, VpnConnection, WifiNetwork
from monitor.parser import (
    build_vpn_connections,
    dedupe_by_name,
    mark_saved,
    normalize_security,
    parse_active_connections,
    parse_active_line,
    parse_connection_profiles,
    parse_profile_line,
    parse_saved_wifi,
    parse_signal,
    parse_wifi_line,
    parse_wifi_list,
    split_terse_line,
)


class TestSplitTerseLine:
    """Tests for colon splitting with escapes."""

    def test_plain(self):
        assert split_terse_line("a:b:c") == ["a", "b", "c"]

    def test_escaped_colon(self):
        assert split_terse_line("x:Cafe\\:Guest:40") == ["x", "Cafe:Guest", "40"]

    def test_escaped_backslash_before_separator(self):
        """`\\\\:` is a literal backslash followed by a real separator."""
        assert split_terse_line("a\\\\:b") == ["a\\", "b"]

    def test_empty_fields(self):
        assert split_terse_line("::") == ["", "", ""]


class TestNormalizeSecurity:
    """Tests for security label normalization."""

    @pytest.mark.parametrize("token,expected", [
        ("WPA2", "WPA2"),
        ("WPA1 WPA2", "WPA2"),
        ("WPA1", "WPA"),
        ("WPA3", "WPA3"),
        ("WPA2 WPA3", "WPA3"),
        ("WPA2 802.1X", "WPA2-EAP"),
        ("802.1X", "802.1X"),
        ("WEP", "WEP"),
        ("OWE", "OWE"),
        ("--", "open"),
        ("", UNKNOWN),
        ("   ", UNKNOWN),
        ("SOMETHING-NEW", UNKNOWN),
    ])
    def test_labels(self, token, expected):
        assert normalize_security(token) == expected


class TestParseSignal:
    """Tests for signal parsing."""

    def test_valid(self):
        assert parse_signal("72") == 72

    def test_clamped(self):
        assert parse_signal("140") == 100
        assert parse_signal("-5") == 0

    @pytest.mark.parametrize("token", ["", "--", "strong", "7.5"])
    def test_missing_or_garbled(self, token):
        assert parse_signal(token) is None


class TestParseWifi:
    """Tests for Wi-Fi list parsing."""

    def test_single_line(self):
        net = parse_wifi_line("*:HomeNet:82:WPA2")
        assert net == WifiNetwork("HomeNet", 82, "WPA2", True)

    def test_blank_fields_marked_unknown(self):
        """A blank field is marked unknown on its own record only."""
        net = parse_wifi_line(":Lab::")
        assert net.signal_strength is None
        assert net.security_kind == UNKNOWN
        assert net.in_use is False

    def test_missing_trailing_fields(self):
        net = parse_wifi_line(":Lab")
        assert net.ssid == "Lab"
        assert net.security_kind == UNKNOWN

    def test_hidden_network_rejected(self):
        with pytest.raises(ParseError):
            parse_wifi_line("::30:WPA2")

    def test_no_separator_rejected(self):
        with pytest.raises(ParseError):
            parse_wifi_line("garbage")

    def test_full_list(self, wifi_list_output):
        """Malformed lines are dropped, duplicates merged, order kept."""
        networks = parse_wifi_list(wifi_list_output)
        assert [n.ssid for n in networks] == ["HomeNet", "Cafe:Guest", "Office", "Lab"]

        home = networks[0]
        assert home.signal_strength == 60
        assert home.in_use is True

        assert networks[1].security_kind == "open"
        assert networks[2].security_kind == "WPA2-EAP"
        assert networks[3].signal_strength is None

    def test_empty_output(self):
        assert parse_wifi_list("") == []
        assert parse_wifi_list("\n\n") == []


class TestParseProfiles:
    """Tests for connection profile parsing."""

    def test_line(self):
        assert parse_profile_line("work-vpn:vpn") == ("work-vpn", "vpn")

    def test_blank_name_rejected(self):
        with pytest.raises(ParseError):
            parse_profile_line(":vpn")

    def test_only_vpn_types_kept(self, profiles_output):
        profiles = parse_connection_profiles(profiles_output)
        assert profiles == [
            VpnConnection("work-vpn", "vpn"),
            VpnConnection("wg-home", "wireguard"),
        ]

    def test_name_with_colon(self):
        profiles = parse_connection_profiles("office\\:nyc:vpn\n")
        assert profiles[0].name == "office:nyc"


class TestSavedWifi:
    """Tests for matching Wi-Fi networks to saved profiles."""

    def test_only_wifi_profiles(self, profiles_output):
        assert parse_saved_wifi(profiles_output) == frozenset({"HomeNet"})

    def test_mark_saved(self, wifi_list_output, profiles_output):
        networks = mark_saved(parse_wifi_list(wifi_list_output), parse_saved_wifi(profiles_output))
        assert [n.ssid for n in networks if n.saved] == ["HomeNet"]
        assert networks[0].in_use


class TestParseActive:
    """Tests for active connection parsing."""

    def test_line(self):
        conn = parse_active_line("wg-home:wireguard:wg-home:activated")
        assert conn == ActiveConnection("wg-home", "wireguard", "wg-home", "activated")
        assert conn.is_activated

    def test_no_device(self):
        conn = parse_active_line("work-vpn:vpn:--:activating")
        assert conn.device is None
        assert not conn.is_activated

    def test_list(self, active_output):
        names = [c.name for c in parse_active_connections(active_output)]
        assert names == ["HomeNet", "wg-home", "work-vpn"]


class TestBuildVpnConnections:
    """Tests for merging profiles and active status."""

    def test_only_activated_counts(self, profiles_output, active_output):
        vpns = build_vpn_connections(
            parse_connection_profiles(profiles_output),
            parse_active_connections(active_output),
        )
        by_name = {v.name: v for v in vpns}
        assert by_name["wg-home"].active is True
        assert by_name["wg-home"].device == "wg-home"
        assert by_name["work-vpn"].active is False
        assert by_name["work-vpn"].device is None

    def test_no_active(self):
        vpns = build_vpn_connections([VpnConnection("a", "vpn", is_active=True)], [])
        assert vpns[0].active is False


class TestDedupe:
    """Tests for duplicate-name merging."""

    def test_last_occurrence_wins_at_first_position(self):
        merged = dedupe_by_name([
            VpnConnection("a", "vpn"),
            VpnConnection("b", "vpn"),
            VpnConnection("a", "wireguard"),
        ])
        assert [(v.name, v.kind) for v in merged] == [("a", "wireguard"), ("b", "vpn")]

    def test_in_use_sticky(self):
        merged = dedupe_by_name([
            WifiNetwork("Home", 80, "WPA2", in_use=True),
            WifiNetwork("Home", 40, "WPA2", in_use=False),
        ])
        assert len(merged) == 1
        assert merged[0].in_use is True
        assert merged[0].signal_strength == 40
