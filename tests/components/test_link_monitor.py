"""Tests for ConnectionHealthGate - heartbeat lifecycle and scheduler control."""
from unittest.mock import Mock

import pytest

from skyvoice.components.link_monitor import ConnectionHealthGate, LinkState
from skyvoice.components.telemetry import Calibration
from skyvoice.components.vehicle import VehicleEvent, VehicleEventType, VehicleSnapshot
from skyvoice.config.config_manager import PreferenceFlags


@pytest.fixture
def vehicle():
    return VehicleSnapshot()


@pytest.fixture
def scheduler():
    return Mock()


@pytest.fixture
def prefs():
    prefs = Mock()
    prefs.snapshot.return_value = PreferenceFlags(periodic_interval_seconds=30)
    return prefs


@pytest.fixture
def calibration():
    return Calibration()


@pytest.fixture
def gate(scheduler, prefs, calibration):
    return ConnectionHealthGate(scheduler, prefs, calibration)


def event(kind, vehicle):
    return VehicleEvent(kind, vehicle)


def connected_gate(gate, vehicle, scheduler):
    gate.handle(event(VehicleEventType.HEARTBEAT_FIRST, vehicle))
    scheduler.reset_mock()
    return gate


class TestHeartbeatFirst:
    def test_connects_and_starts_scheduler(self, gate, scheduler, vehicle):
        said = gate.handle(event(VehicleEventType.HEARTBEAT_FIRST, vehicle))

        assert said == "Connected"
        assert gate.state == LinkState.CONNECTED
        scheduler.start.assert_called_once_with(30, vehicle)

    def test_interval_read_at_event_time(self, gate, scheduler, prefs, vehicle):
        prefs.snapshot.return_value = PreferenceFlags(periodic_interval_seconds=0)
        gate.handle(event(VehicleEventType.HEARTBEAT_FIRST, vehicle))
        scheduler.start.assert_called_once_with(0, vehicle)


class TestHeartbeatTimeout:
    def test_link_lost(self, gate, scheduler, vehicle):
        connected_gate(gate, vehicle, scheduler)

        said = gate.handle(event(VehicleEventType.HEARTBEAT_TIMEOUT, vehicle))

        assert said == "Data link lost, check connection."
        assert gate.state == LinkState.LINK_LOST
        scheduler.cancel.assert_called_once()

    def test_suppressed_while_calibrating(self, gate, scheduler, calibration, vehicle):
        connected_gate(gate, vehicle, scheduler)
        calibration.start()

        said = gate.handle(event(VehicleEventType.HEARTBEAT_TIMEOUT, vehicle))

        assert said is None
        assert gate.state == LinkState.CONNECTED
        scheduler.cancel.assert_not_called()
        scheduler.start.assert_not_called()

    def test_ignored_when_not_connected(self, gate, scheduler, vehicle):
        assert gate.handle(event(VehicleEventType.HEARTBEAT_TIMEOUT, vehicle)) is None
        assert gate.state == LinkState.DISCONNECTED
        scheduler.cancel.assert_not_called()

    def test_repeated_timeout_announced_once(self, gate, scheduler, vehicle):
        connected_gate(gate, vehicle, scheduler)
        gate.handle(event(VehicleEventType.HEARTBEAT_TIMEOUT, vehicle))

        assert gate.handle(event(VehicleEventType.HEARTBEAT_TIMEOUT, vehicle)) is None
        scheduler.cancel.assert_called_once()


class TestHeartbeatRestored:
    def test_restores_and_restarts_with_fresh_interval(self, gate, scheduler, prefs, vehicle):
        connected_gate(gate, vehicle, scheduler)
        gate.handle(event(VehicleEventType.HEARTBEAT_TIMEOUT, vehicle))
        prefs.snapshot.return_value = PreferenceFlags(periodic_interval_seconds=12)

        said = gate.handle(event(VehicleEventType.HEARTBEAT_RESTORED, vehicle))

        assert said == "Data link restored"
        assert gate.state == LinkState.CONNECTED
        scheduler.start.assert_called_once_with(12, vehicle)

    def test_restored_while_connected_still_announces_and_restarts(self, gate, scheduler, calibration, vehicle):
        connected_gate(gate, vehicle, scheduler)
        calibration.start()
        gate.handle(event(VehicleEventType.HEARTBEAT_TIMEOUT, vehicle))
        calibration.stop()

        said = gate.handle(event(VehicleEventType.HEARTBEAT_RESTORED, vehicle))

        assert said == "Data link restored"
        assert gate.state == LinkState.CONNECTED
        scheduler.cancel.assert_not_called()
        scheduler.start.assert_called_once_with(30, vehicle)


class TestDisconnected:
    @pytest.mark.parametrize("setup", [[], [VehicleEventType.HEARTBEAT_FIRST],
                                       [VehicleEventType.HEARTBEAT_FIRST, VehicleEventType.HEARTBEAT_TIMEOUT]])
    def test_always_cancels_and_stays_quiet(self, gate, scheduler, vehicle, setup):
        for kind in setup:
            gate.handle(event(kind, vehicle))
        scheduler.reset_mock()

        said = gate.handle(event(VehicleEventType.DISCONNECTED, vehicle))

        assert said is None
        assert gate.state == LinkState.DISCONNECTED
        scheduler.cancel.assert_called_once()


class TestHandles:
    def test_only_link_events(self, gate, vehicle):
        assert gate.handles(event(VehicleEventType.HEARTBEAT_FIRST, vehicle))
        assert gate.handles(event(VehicleEventType.DISCONNECTED, vehicle))
        assert not gate.handles(event(VehicleEventType.MODE, vehicle))
        assert not gate.handles(event(VehicleEventType.BATTERY, vehicle))

    def test_other_events_are_ignored(self, gate, scheduler, vehicle):
        assert gate.handle(event(VehicleEventType.MODE, vehicle)) is None
        scheduler.start.assert_not_called()
        scheduler.cancel.assert_not_called()
