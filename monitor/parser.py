"""Parsers for nmcli terse output.

nmcli -t prints one record per line with fields separated by colons;
colons inside values are escaped as ``\\:`` and backslashes as ``\\\\``.
All functions here are pure: text in, typed records out.

Parsing is per line. A line that cannot be turned into a record is
logged and dropped; missing optional fields become "unknown". One bad
line never costs the rest of the list.

Example:
    >>> parse_wifi_list("*:Home:72:WPA2\\n:Cafe:40:\\n")
    [WifiNetwork(ssid='Home', signal_strength=72, security_kind='WPA2', in_use=True),
     WifiNetwork(ssid='Cafe', signal_strength=40, security_kind='unknown', in_use=False)]
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, TypeVar

from config import NETWORK, ParseError, get_logger
from monitor.models import (
    UNKNOWN,
    ActiveConnection,
    ManagedEntity,
    VpnConnection,
    WifiNetwork,
)

logger = get_logger(__name__)

T = TypeVar("T")

# Placeholder nmcli prints for "no value" in some versions
NMCLI_EMPTY = "--"

_UNESCAPED_COLON = re.compile(r"(?<!\\):")


def split_terse_line(line: str) -> List[str]:
    """Split a nmcli terse-mode line on unescaped colons and unescape fields."""
    # An escaped backslash right before a separator would look like an
    # escaped colon, so protect it first
    protected = line.replace("\\\\", "\x00")
    parts = _UNESCAPED_COLON.split(protected)
    return [p.replace("\\:", ":").replace("\x00", "\\") for p in parts]


def _fields(line: str, expected: int) -> List[str]:
    """Split a line into exactly `expected` fields.

    Missing trailing fields are padded with "", extra ones are ignored.

    Raises:
        ParseError: If the line has no separator at all.
    """
    fields = split_terse_line(line)
    if len(fields) < 2:
        raise ParseError("No field separator", line)
    if len(fields) < expected:
        fields += [""] * (expected - len(fields))
    return fields[:expected]


def _parse_lines(text: str, parse_line: Callable[[str], T], what: str) -> List[T]:
    records = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            records.append(parse_line(line))
        except ParseError as e:
            logger.debug(f"Dropping {what} line: {e}")
    return records


def normalize_security(token: str) -> str:
    """Map nmcli's SECURITY field to a short label.

    Examples:
        >>> normalize_security("WPA1 WPA2")
        'WPA2'
        >>> normalize_security("WPA2 802.1X")
        'WPA2-EAP'
        >>> normalize_security("--")
        'open'
        >>> normalize_security("")
        'unknown'
    """
    token = token.strip()
    if not token:
        return UNKNOWN
    if token == NMCLI_EMPTY:
        return "open"

    parts = set(token.upper().split())
    enterprise = "802.1X" in parts
    if "WPA3" in parts or "SAE" in parts:
        label = "WPA3"
    elif "WPA2" in parts:
        label = "WPA2"
    elif "WPA1" in parts or "WPA" in parts:
        label = "WPA"
    elif "WEP" in parts:
        label = "WEP"
    elif "OWE" in parts:
        label = "OWE"
    elif enterprise:
        return "802.1X"
    else:
        return UNKNOWN
    return f"{label}-EAP" if enterprise else label


def parse_signal(token: str) -> Optional[int]:
    """Signal percentage, clamped to 0-100; None when missing or garbled."""
    token = token.strip()
    if not token or token == NMCLI_EMPTY:
        return None
    try:
        value = int(token)
    except ValueError:
        return None
    return max(0, min(100, value))


def parse_wifi_line(line: str) -> WifiNetwork:
    """Parse one `IN-USE:SSID:SIGNAL:SECURITY` line.

    Raises:
        ParseError: No separator, or the SSID is blank (hidden network).
    """
    in_use, ssid, signal, security = _fields(line, 4)
    if not ssid.strip() or ssid == NMCLI_EMPTY:
        raise ParseError("Blank SSID", line)
    return WifiNetwork(
        ssid=ssid,
        signal_strength=parse_signal(signal),
        security_kind=normalize_security(security),
        in_use=in_use.strip() == "*",
    )


def parse_wifi_list(text: str) -> List[WifiNetwork]:
    """Parse `nmcli -t -f IN-USE,SSID,SIGNAL,SECURITY device wifi list`.

    nmcli lists one row per access point, so an SSID served by several
    access points appears several times; duplicates are merged.
    """
    return dedupe_by_name(_parse_lines(text, parse_wifi_line, "wifi"))


def _profile_kind(token: str) -> Optional[str]:
    token = token.strip().lower()
    if token in NETWORK.VPN_CONNECTION_TYPES:
        return token
    return None


def parse_profile_line(line: str) -> tuple:
    """Parse one `NAME:TYPE` line into (name, type).

    Raises:
        ParseError: No separator or blank name.
    """
    name, kind = _fields(line, 2)
    if not name.strip():
        raise ParseError("Blank connection name", line)
    return name, kind.strip().lower()


def parse_connection_profiles(text: str) -> List[VpnConnection]:
    """Parse `nmcli -t -f NAME,TYPE connection show`, keeping VPN profiles only."""
    profiles = []
    for name, kind in _parse_lines(text, parse_profile_line, "profile"):
        vpn_kind = _profile_kind(kind)
        if vpn_kind is None:
            continue
        profiles.append(VpnConnection(name=name, kind=vpn_kind))
    return dedupe_by_name(profiles)


def parse_saved_wifi(text: str) -> FrozenSet[str]:
    """Names of the Wi-Fi profiles in `nmcli -t -f NAME,TYPE connection show`."""
    return frozenset(
        name for name, kind in _parse_lines(text, parse_profile_line, "profile")
        if kind == NETWORK.WIFI_CONNECTION_TYPE
    )


def mark_saved(networks: Iterable[WifiNetwork], saved: FrozenSet[str]) -> List[WifiNetwork]:
    """Flag networks whose SSID names a saved profile.

    nmcli names the profile it creates on connect after the SSID; profiles
    renamed since are not matched.
    """
    return [replace(n, saved=n.ssid in saved) for n in networks]


def parse_active_line(line: str) -> ActiveConnection:
    """Parse one `NAME:TYPE:DEVICE:STATE` line.

    Raises:
        ParseError: No separator or blank name.
    """
    name, kind, device, state = _fields(line, 4)
    if not name.strip():
        raise ParseError("Blank connection name", line)
    device = device.strip()
    return ActiveConnection(
        name=name,
        kind=kind.strip().lower() or UNKNOWN,
        device=device if device and device != NMCLI_EMPTY else None,
        state=state.strip().lower() or UNKNOWN,
    )


def parse_active_connections(text: str) -> List[ActiveConnection]:
    """Parse `nmcli -t -f NAME,TYPE,DEVICE,STATE connection show --active`."""
    return _parse_lines(text, parse_active_line, "active connection")


def build_vpn_connections(
    profiles: Sequence[VpnConnection],
    active: Iterable[ActiveConnection],
) -> List[VpnConnection]:
    """Mark VPN profiles active from the active-connection status.

    Only fully activated connections count; "activating" does not.
    """
    activated = {a.name: a for a in active if a.is_activated}
    result = []
    for profile in profiles:
        status = activated.get(profile.name)
        if status is None:
            result.append(replace(profile, is_active=False, device=None))
        else:
            result.append(replace(profile, is_active=True, device=status.device))
    return result


def dedupe_by_name(entities: Iterable[ManagedEntity]) -> list:
    """Merge entities listed more than once under the same name.

    The most recently listed occurrence wins and takes the slot of the
    first one, so display order is preserved. For Wi-Fi the in-use mark
    survives the merge.
    """
    merged: dict = {}
    for entity in entities:
        previous = merged.get(entity.name)
        if (
            previous is not None
            and isinstance(entity, WifiNetwork)
            and previous.in_use
            and not entity.in_use
        ):
            entity = replace(entity, in_use=True)
        merged[entity.name] = entity
    return list(merged.values())


__all__ = [
    "split_terse_line",
    "normalize_security",
    "parse_signal",
    "parse_wifi_line",
    "parse_wifi_list",
    "parse_profile_line",
    "parse_connection_profiles",
    "parse_saved_wifi",
    "mark_saved",
    "parse_active_line",
    "parse_active_connections",
    "build_vpn_connections",
    "dedupe_by_name",
]
