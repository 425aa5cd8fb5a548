"""Tests for monitor/reconciler.py - snapshot diffing."""
import threading

import pytest

from monitor.models import EntityKind, Snapshot, TransitionKind, VpnConnection, WifiNetwork
from monitor.reconciler import ConnectionReconciler, diff_snapshots


def vpn_snapshot(**states):
    """Snapshot of VPN profiles from name=active pairs."""
    return Snapshot.from_entities(
        EntityKind.VPN,
        [VpnConnection(name, "vpn", is_active=active) for name, active in states.items()],
        captured_at=0.0,
    )


def kinds_and_names(events):
    return [(e.kind, e.name) for e in events]


class TestDiffSnapshots:
    """Tests for diff_snapshots()."""

    def test_identical_snapshots(self):
        snap = vpn_snapshot(A=True, B=False)
        assert diff_snapshots(snap, snap) == []
        assert diff_snapshots(snap, vpn_snapshot(A=True, B=False)) == []

    def test_connected(self):
        """{A off, B on} -> {A on, B on} gives exactly Connected(A)."""
        events = diff_snapshots(vpn_snapshot(A=False, B=True), vpn_snapshot(A=True, B=True))
        assert [str(e) for e in events] == ["Connected(A)"]

    def test_disconnected(self):
        events = diff_snapshots(vpn_snapshot(A=True), vpn_snapshot(A=False))
        assert kinds_and_names(events) == [(TransitionKind.DISCONNECTED, "A")]

    def test_appeared_only_even_if_active(self):
        """An entity only in current gives one Appeared and never Connected."""
        events = diff_snapshots(vpn_snapshot(), vpn_snapshot(A=True))
        assert kinds_and_names(events) == [(TransitionKind.APPEARED, "A")]

    def test_vanished_not_disconnected(self):
        """Active before, absent now gives Vanished, not Disconnected."""
        events = diff_snapshots(vpn_snapshot(A=True), vpn_snapshot())
        assert kinds_and_names(events) == [(TransitionKind.VANISHED, "A")]

    def test_precedence_order(self):
        previous = vpn_snapshot(gone=False, up=False, down=True)
        current = vpn_snapshot(up=True, down=False, new=False)
        events = diff_snapshots(previous, current)
        assert kinds_and_names(events) == [
            (TransitionKind.VANISHED, "gone"),
            (TransitionKind.APPEARED, "new"),
            (TransitionKind.CONNECTED, "up"),
            (TransitionKind.DISCONNECTED, "down"),
        ]

    def test_events_carry_entity_kind(self):
        previous = Snapshot.from_entities(EntityKind.WIFI, [WifiNetwork("Home")])
        current = Snapshot.from_entities(EntityKind.WIFI, [WifiNetwork("Home", in_use=True)])
        (event,) = diff_snapshots(previous, current)
        assert event.entity_kind is EntityKind.WIFI
        assert event.key == "wifi:Home"


class TestConnectionReconciler:
    """Tests for ConnectionReconciler."""

    def test_starts_empty(self):
        reconciler = ConnectionReconciler(EntityKind.VPN)
        assert len(reconciler.current) == 0
        assert reconciler.has_polled is False

    def test_first_apply_reports_appeared(self):
        reconciler = ConnectionReconciler(EntityKind.VPN)
        events = reconciler.apply(vpn_snapshot(A=True, B=False))
        assert [e.kind for e in events] == [TransitionKind.APPEARED, TransitionKind.APPEARED]
        assert reconciler.has_polled is True

    def test_swap(self):
        reconciler = ConnectionReconciler(EntityKind.VPN)
        first = vpn_snapshot(A=False)
        second = vpn_snapshot(A=True)
        reconciler.apply(first)
        events = reconciler.apply(second)

        assert reconciler.previous is first
        assert reconciler.current is second
        assert kinds_and_names(events) == [(TransitionKind.CONNECTED, "A")]

    def test_kind_mismatch(self):
        reconciler = ConnectionReconciler(EntityKind.WIFI)
        with pytest.raises(ValueError):
            reconciler.apply(vpn_snapshot(A=True))

    def test_find(self):
        reconciler = ConnectionReconciler(EntityKind.VPN)
        reconciler.apply(vpn_snapshot(A=True))
        assert reconciler.find("A").active is True
        assert reconciler.find("missing") is None

    def test_readers_see_whole_snapshots(self):
        """A reader never observes a snapshot mixing two polls."""
        reconciler = ConnectionReconciler(EntityKind.VPN)
        all_on = vpn_snapshot(A=True, B=True, C=True)
        all_off = vpn_snapshot(A=False, B=False, C=False)
        stop = threading.Event()
        mixed = []

        def reader():
            while not stop.is_set():
                states = {e.active for e in reconciler.current.entities}
                if len(states) > 1:
                    mixed.append(states)

        thread = threading.Thread(target=reader)
        thread.start()
        for i in range(500):
            reconciler.apply(all_on if i % 2 else all_off)
        stop.set()
        thread.join()

        assert mixed == []
