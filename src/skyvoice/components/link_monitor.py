"""Link health state machine: drives the periodic status scheduler from heartbeat lifecycle events."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from skyvoice.components.vehicle import VehicleEvent, VehicleEventType

LINK_EVENTS = frozenset({
    VehicleEventType.HEARTBEAT_FIRST,
    VehicleEventType.HEARTBEAT_TIMEOUT,
    VehicleEventType.HEARTBEAT_RESTORED,
    VehicleEventType.DISCONNECTED,
})


class LinkState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    LINK_LOST = "link_lost"


class ConnectionHealthGate:
    """Tracks link state and starts or stops the status scheduler on each transition.

    Heartbeats stall on purpose while sensors are being calibrated, so a
    timeout during calibration changes nothing and says nothing.
    """
    def __init__(self, scheduler, preferences, calibration):
        self.logger = logging.getLogger(__name__)
        self.scheduler = scheduler
        self.preferences = preferences
        self.calibration = calibration
        self.state = LinkState.DISCONNECTED

    def handles(self, event: VehicleEvent) -> bool:
        return event.type in LINK_EVENTS

    def handle(self, event: VehicleEvent) -> Optional[str]:
        kind = event.type

        if kind == VehicleEventType.HEARTBEAT_FIRST:
            self._connect(event)
            return "Connected"

        if kind == VehicleEventType.HEARTBEAT_RESTORED:
            self._connect(event)
            return "Data link restored"

        if kind == VehicleEventType.HEARTBEAT_TIMEOUT:
            if self.calibration.is_calibrating():
                self.logger.info("Heartbeat timeout during calibration ignored.")
                return None
            if self.state != LinkState.CONNECTED:
                self.logger.debug(f"Heartbeat timeout while {self.state.value}; nothing to do.")
                return None
            self._transition(LinkState.LINK_LOST)
            self.scheduler.cancel()
            return "Data link lost, check connection."

        if kind == VehicleEventType.DISCONNECTED:
            self._transition(LinkState.DISCONNECTED)
            self.scheduler.cancel()
            return None

        return None

    def _connect(self, event: VehicleEvent):
        self._transition(LinkState.CONNECTED)
        interval = self.preferences.snapshot().periodic_interval_seconds
        self.scheduler.start(interval, event.vehicle)

    def _transition(self, new_state: LinkState):
        if new_state != self.state:
            self.logger.info(f"Link {self.state.value} -> {new_state.value}")
        self.state = new_state
