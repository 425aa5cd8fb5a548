"""Typed records for the management layer.

Entities are parsed from nmcli output, grouped into immutable snapshots
(one per entity kind), and diffed into transition events.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

UNKNOWN = "unknown"


class EntityKind(Enum):
    """Kind of managed entity."""

    WIFI = "wifi"
    VPN = "vpn"


@dataclass(frozen=True)
class WifiNetwork:
    """A Wi-Fi network visible to NetworkManager.

    Attributes:
        ssid: Network name.
        signal_strength: Signal quality 0-100, None when nmcli gave no value.
        security_kind: Normalized security label ("WPA2", "open", "unknown", ...).
        in_use: True if this is the network the device is associated with.
        saved: True if a Wi-Fi connection profile named after the SSID exists.
    """

    ssid: str
    signal_strength: Optional[int] = None
    security_kind: str = UNKNOWN
    in_use: bool = False
    saved: bool = False

    entity_kind = EntityKind.WIFI

    @property
    def name(self) -> str:
        return self.ssid

    @property
    def active(self) -> bool:
        return self.in_use

    @property
    def key(self) -> str:
        return f"{self.entity_kind.value}:{self.ssid}"


@dataclass(frozen=True)
class VpnConnection:
    """A VPN connection profile known to NetworkManager.

    Attributes:
        name: Connection profile name.
        kind: Protocol family ("vpn", "wireguard", or "unknown").
        is_active: True if the profile is currently activated.
        device: Tunnel device while active, if reported.
    """

    name: str
    kind: str = UNKNOWN
    is_active: bool = False
    device: Optional[str] = None

    entity_kind = EntityKind.VPN

    @property
    def active(self) -> bool:
        return self.is_active

    @property
    def key(self) -> str:
        return f"{self.entity_kind.value}:{self.name}"


ManagedEntity = Union[WifiNetwork, VpnConnection]


@dataclass(frozen=True)
class ActiveConnection:
    """One row of `nmcli connection show --active`."""

    name: str
    kind: str = UNKNOWN
    device: Optional[str] = None
    state: str = UNKNOWN

    @property
    def is_activated(self) -> bool:
        return self.state == "activated"


@dataclass(frozen=True)
class Snapshot:
    """Complete, immutable picture of one entity kind at a poll instant."""

    kind: EntityKind
    entities: Tuple[ManagedEntity, ...] = ()
    active_name: Optional[str] = None
    captured_at: float = 0.0
    _index: Dict[str, ManagedEntity] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        # frozen: populate the lookup table once
        object.__setattr__(self, "_index", {e.name: e for e in self.entities})

    @classmethod
    def empty(cls, kind: EntityKind) -> "Snapshot":
        return cls(kind=kind)

    @classmethod
    def from_entities(
        cls, kind: EntityKind, entities: Iterable[ManagedEntity],
        captured_at: Optional[float] = None,
    ) -> "Snapshot":
        """Build a snapshot; active_name is the first active entity, if any."""
        entities = tuple(entities)
        active_name = next((e.name for e in entities if e.active), None)
        return cls(
            kind=kind,
            entities=entities,
            active_name=active_name,
            captured_at=time.time() if captured_at is None else captured_at,
        )

    def get(self, name: str) -> Optional[ManagedEntity]:
        return self._index.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self.entities)

    def names(self) -> Tuple[str, ...]:
        return tuple(e.name for e in self.entities)


class TransitionKind(Enum):
    """Edge detected between two consecutive snapshots, in precedence order."""

    VANISHED = 0
    APPEARED = 1
    CONNECTED = 2
    DISCONNECTED = 3


@dataclass(frozen=True)
class TransitionEvent:
    """A change detected between two snapshots."""

    kind: TransitionKind
    name: str
    entity_kind: EntityKind

    @property
    def key(self) -> str:
        return f"{self.entity_kind.value}:{self.name}"

    def __str__(self) -> str:
        return f"{self.kind.name.title()}({self.name})"


__all__ = [
    "UNKNOWN",
    "EntityKind",
    "WifiNetwork",
    "VpnConnection",
    "ManagedEntity",
    "ActiveConnection",
    "Snapshot",
    "TransitionKind",
    "TransitionEvent",
]
