"""Connection state reconciliation across poll cycles.

Compares the snapshot of the previous poll with the new one and reports
the edges between them. The previous/current pair is replaced in a single
assignment, so a reader holding either snapshot never sees a partial update.
"""

import threading
from typing import List, Optional

from config import get_logger
from monitor.models import (
    EntityKind,
    ManagedEntity,
    Snapshot,
    TransitionEvent,
    TransitionKind,
)

logger = get_logger(__name__)


def diff_snapshots(previous: Snapshot, current: Snapshot) -> List[TransitionEvent]:
    """Compute the transitions between two snapshots.

    Events come out in fixed precedence: Vanished, Appeared, Connected,
    Disconnected; within one kind they follow snapshot order.

    - present before, absent now: Vanished (even if it was active)
    - absent before, present now: Appeared only, even if already active
    - known and inactive before, active now: Connected
    - known and active before, inactive now: Disconnected

    Args:
        previous: Snapshot from the earlier poll.
        current: Snapshot from the latest poll.

    Returns:
        Ordered list of TransitionEvent; empty for identical snapshots.
    """
    kind = current.kind
    vanished, appeared, connected, disconnected = [], [], [], []

    for entity in previous.entities:
        if entity.name not in current:
            vanished.append(TransitionEvent(TransitionKind.VANISHED, entity.name, kind))

    for entity in current.entities:
        before = previous.get(entity.name)
        if before is None:
            appeared.append(TransitionEvent(TransitionKind.APPEARED, entity.name, kind))
        elif entity.active and not before.active:
            connected.append(TransitionEvent(TransitionKind.CONNECTED, entity.name, kind))
        elif before.active and not entity.active:
            disconnected.append(TransitionEvent(TransitionKind.DISCONNECTED, entity.name, kind))

    return vanished + appeared + connected + disconnected


class ConnectionReconciler:
    """Holds the previous and current snapshot for one entity kind.

    Example:
        >>> reconciler = ConnectionReconciler(EntityKind.VPN)
        >>> events = reconciler.apply(snapshot)
        >>> reconciler.current is snapshot
        True
    """

    def __init__(self, kind: EntityKind):
        self.kind = kind
        self._pair = (Snapshot.empty(kind), Snapshot.empty(kind))
        self._lock = threading.Lock()
        self._polls = 0

    @property
    def previous(self) -> Snapshot:
        return self._pair[0]

    @property
    def current(self) -> Snapshot:
        return self._pair[1]

    @property
    def has_polled(self) -> bool:
        """True once at least one snapshot has been applied."""
        return self._polls > 0

    def apply(self, snapshot: Snapshot) -> List[TransitionEvent]:
        """Diff a fully parsed snapshot against the current one and adopt it.

        Args:
            snapshot: The new snapshot; must be of this reconciler's kind.

        Returns:
            The transitions from the old current snapshot to the new one.
        """
        if snapshot.kind is not self.kind:
            raise ValueError(f"expected a {self.kind.value} snapshot, got {snapshot.kind.value}")

        with self._lock:
            current = self._pair[1]
            events = diff_snapshots(current, snapshot)
            self._pair = (current, snapshot)
            self._polls += 1

        for event in events:
            logger.debug(f"{self.kind.value}: {event}")
        return events

    def find(self, name: str) -> Optional[ManagedEntity]:
        """Look an entity up in the current snapshot."""
        return self.current.get(name)


__all__ = ["ConnectionReconciler", "diff_snapshots"]
