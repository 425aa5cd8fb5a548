"""Command specs for NetworkManager's nmcli and the desktop helpers.

List and status commands use terse mode (-t) with an explicit field list,
so the parser sees colon-separated lines in a known column order.
"""
from typing import Optional, Tuple

from config import INTERVALS, NETWORK
from monitor.command_bridge import SECRET_FILE, CommandSpec
from monitor.models import ManagedEntity, WifiNetwork

# Field lists, in the order the parser expects them
WIFI_FIELDS = ("IN-USE", "SSID", "SIGNAL", "SECURITY")
PROFILE_FIELDS = ("NAME", "TYPE")
ACTIVE_FIELDS = ("NAME", "TYPE", "DEVICE", "STATE")


def _terse(fields) -> tuple:
    return (NETWORK.NMCLI, "-t", "-f", ",".join(fields))


def list_wifi(rescan: bool = False) -> CommandSpec:
    """`nmcli -t -f IN-USE,SSID,SIGNAL,SECURITY device wifi list`.

    Without rescan nmcli answers from its cache, which keeps the periodic
    poll cheap; a manual refresh asks for a fresh scan.
    """
    argv = _terse(WIFI_FIELDS) + ("device", "wifi", "list",
                                  "--rescan", "yes" if rescan else "no")
    timeout = INTERVALS.SUBPROCESS_TIMEOUT_SECONDS * (3 if rescan else 1)
    return CommandSpec(argv, timeout=timeout)


def list_profiles() -> CommandSpec:
    """`nmcli -t -f NAME,TYPE connection show`."""
    return CommandSpec(_terse(PROFILE_FIELDS) + ("connection", "show"))


def list_active() -> CommandSpec:
    """`nmcli -t -f NAME,TYPE,DEVICE,STATE connection show --active`."""
    return CommandSpec(_terse(ACTIVE_FIELDS) + ("connection", "show", "--active"))


# Security labels whose secret is not a single typed passphrase
_NO_TYPED_SECRET = ("open", "OWE", "802.1X")


def accepts_secret(entity: ManagedEntity) -> bool:
    """Whether a password typed by the user can be passed on connect.

    Open and enterprise Wi-Fi and WireGuard tunnels never take one.
    """
    if isinstance(entity, WifiNetwork):
        label = entity.security_kind
        return label not in _NO_TYPED_SECRET and not label.endswith("-EAP")
    return entity.kind == "vpn"


def _action(argv: tuple, entity: ManagedEntity, secret_file: Optional[str] = None) -> CommandSpec:
    return CommandSpec(argv, mutating=True, target=entity.key,
                       timeout=INTERVALS.ACTION_TIMEOUT_SECONDS, secret_file=secret_file)


def _wifi_security(network: WifiNetwork) -> Tuple[str, str]:
    """(key-mgmt, passwd-file key) for a network's security label."""
    if network.security_kind.startswith("WPA3"):
        return "sae", NETWORK.WIFI_PSK_SECRET
    if network.security_kind == "WEP":
        return "none", NETWORK.WIFI_WEP_SECRET
    return "wpa-psk", NETWORK.WIFI_PSK_SECRET


def connect(entity: ManagedEntity, secret: Optional[str] = None) -> Tuple[CommandSpec, ...]:
    """Commands that activate a Wi-Fi network or VPN profile, run in order.

    Without a secret the saved profile (or the session's secret agent)
    supplies the credentials. A secret goes through nmcli's passwd-file,
    never argv. `device wifi connect` has no passwd-file option, so a
    Wi-Fi network without a saved profile first gets one named after
    its SSID, which `connection up` then activates.
    """
    if isinstance(entity, WifiNetwork):
        ssid = entity.ssid
        if not secret:
            return (_action((NETWORK.NMCLI, "device", "wifi", "connect", ssid), entity),)
        key_mgmt, secret_key = _wifi_security(entity)
        plan = []
        if not entity.saved:
            plan.append(_action(
                (NETWORK.NMCLI, "connection", "add", "type", "wifi", "con-name", ssid,
                 "ssid", ssid, "wifi-sec.key-mgmt", key_mgmt),
                entity,
            ))
        plan.append(_action(
            (NETWORK.NMCLI, "connection", "up", "id", ssid, "passwd-file", SECRET_FILE),
            entity, f"{secret_key}:{secret}\n",
        ))
        return tuple(plan)

    argv = (NETWORK.NMCLI, "connection", "up", "id", entity.name)
    if not secret:
        return (_action(argv, entity),)
    return (_action(argv + ("passwd-file", SECRET_FILE), entity,
                    f"{NETWORK.VPN_PASSWORD_SECRET}:{secret}\n"),)


def disconnect(entity: ManagedEntity) -> CommandSpec:
    """Deactivate the connection for an entity.

    For Wi-Fi the active connection profile carries the SSID as its name,
    which is what nmcli creates on `device wifi connect`.
    """
    return _action((NETWORK.NMCLI, "connection", "down", "id", entity.name), entity)


def notify(title: str, body: str, critical: bool, icon: str) -> CommandSpec:
    """`notify-send -u <urgency> -i <icon> <title> <body>`."""
    urgency = "critical" if critical else "normal"
    return CommandSpec(
        (NETWORK.NOTIFY_SEND, "-u", urgency, "-i", icon, title, body),
        timeout=INTERVALS.NOTIFY_TIMEOUT_SECONDS,
    )


def connection_editor() -> CommandSpec:
    """The graphical connection editor, launched detached."""
    return CommandSpec((NETWORK.CONNECTION_EDITOR,))


__all__ = [
    "WIFI_FIELDS",
    "PROFILE_FIELDS",
    "ACTIVE_FIELDS",
    "list_wifi",
    "list_profiles",
    "list_active",
    "accepts_secret",
    "connect",
    "disconnect",
    "notify",
    "connection_editor",
]
