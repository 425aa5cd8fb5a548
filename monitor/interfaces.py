"""Active interface detection using psutil.

Lists the interfaces that are up and carry an IPv4 address, and sorts
them into physical links and tunnels for the graph selector.
"""
import socket
from dataclasses import dataclass
from typing import Iterable, List

import psutil

from config import NETWORK, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActiveInterface:
    """An interface that is up and has an IPv4 address."""
    name: str
    address: str

    @property
    def is_tunnel(self) -> bool:
        return is_tunnel(self.name)

    @property
    def is_physical(self) -> bool:
        return is_physical(self.name)


def is_tunnel(name: str) -> bool:
    """Check if an interface name looks like a VPN tunnel (tun0, wg0, ppp0)."""
    return name.startswith(NETWORK.TUNNEL_PREFIXES)


def is_physical(name: str) -> bool:
    """Check if an interface name looks like a wired or wireless NIC."""
    return name.startswith(NETWORK.PHYSICAL_PREFIXES) and not is_tunnel(name)


def get_active_interfaces() -> List[ActiveInterface]:
    """Get interfaces that are up with an IPv4 address, loopback excluded."""
    active = []
    try:
        addrs = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except (OSError, psutil.Error) as e:
        logger.debug(f"Interface listing failed: {e}")
        return active

    for iface, addr_list in addrs.items():
        if iface.startswith('lo'):
            continue
        if iface in stats and not stats[iface].isup:
            continue

        for addr in addr_list:
            if addr.family == socket.AF_INET and not addr.address.startswith('127.'):
                active.append(ActiveInterface(iface, addr.address))
                break

    active.sort(key=lambda a: a.name)
    return active


def graph_candidates(names: Iterable[str]) -> List[str]:
    """Order interfaces for the graph selector: physical first, then tunnels.

    Interfaces that are neither (virtual bridges, veths, ...) come last.
    """
    names = sorted(set(names))
    physical = [n for n in names if is_physical(n)]
    tunnels = [n for n in names if is_tunnel(n)]
    others = [n for n in names if n not in physical and n not in tunnels]
    return physical + tunnels + others


__all__ = ["ActiveInterface", "get_active_interfaces", "graph_candidates",
           "is_physical", "is_tunnel"]
