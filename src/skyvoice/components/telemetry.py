"""Folds MAVLink telemetry into a VehicleSnapshot and reports the vehicle events it implies."""
from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional

from pymavlink import mavutil

from skyvoice.components.vehicle import ApmMode, VehicleEvent, VehicleEventType, VehicleSnapshot

SIK_RSSI_SCALE = 1.9
SIK_RSSI_OFFSET = 127.0
UNKNOWN_BATTERY_VOLTAGE = 65535

CALIBRATION_END_WORDS = ("successful", "failed", "cancelled", "complete", "done")


class Calibration:
    """Thread-safe flag raised while a sensor calibration is running."""
    def __init__(self):
        self._active = threading.Event()

    def start(self):
        self._active.set()

    def stop(self):
        self._active.clear()

    def is_calibrating(self) -> bool:
        return self._active.is_set()


def _decode_text(text) -> str:
    if isinstance(text, (bytes, bytearray)):
        text = text.decode('utf-8', errors='ignore')
    return (text or "").rstrip('\x00').strip()


class TelemetryTracker:
    """Keeps one vehicle's snapshot current and turns state changes into VehicleEvents.

    One tracker covers one connection session. The first autopilot heartbeat of
    a session yields HEARTBEAT_FIRST, silence longer than the timeout yields a
    single HEARTBEAT_TIMEOUT and the next heartbeat after that yields
    HEARTBEAT_RESTORED.
    """
    def __init__(self, heartbeat_timeout_s: float = 5.0, calibration: Optional[Calibration] = None):
        self.logger = logging.getLogger(__name__)
        self.heartbeat_timeout_s = heartbeat_timeout_s
        self.calibration = calibration or Calibration()
        self.vehicle = VehicleSnapshot()
        self._session_started = False
        self._link_lost = False
        self._last_heartbeat = 0.0
        self._handlers = {
            'HEARTBEAT': self._on_heartbeat,
            'SYS_STATUS': self._on_sys_status,
            'GPS_RAW_INT': self._on_gps_raw,
            'GLOBAL_POSITION_INT': self._on_global_position,
            'VFR_HUD': self._on_vfr_hud,
            'RADIO_STATUS': self._on_radio_status,
            'MISSION_CURRENT': self._on_mission_current,
            'STATUSTEXT': self._on_status_text,
        }

    @property
    def connected(self) -> bool:
        return self._session_started and not self._link_lost

    def update(self, msg, now: Optional[float] = None) -> List[VehicleEvent]:
        handler = self._handlers.get(msg.get_type())
        if handler is None:
            return []
        now = time.monotonic() if now is None else now
        return [VehicleEvent(kind, self.vehicle) for kind in handler(msg, now)]

    def check_heartbeat(self, now: Optional[float] = None) -> List[VehicleEvent]:
        now = time.monotonic() if now is None else now
        if self.connected and now - self._last_heartbeat > self.heartbeat_timeout_s:
            self._link_lost = True
            self.logger.warning(f"No heartbeat for {now - self._last_heartbeat:.1f}s.")
            return [VehicleEvent(VehicleEventType.HEARTBEAT_TIMEOUT, self.vehicle)]
        return []

    def disconnect(self) -> List[VehicleEvent]:
        """Ends the session; the next heartbeat starts a new one."""
        event = VehicleEvent(VehicleEventType.DISCONNECTED, self.vehicle)
        self.vehicle = VehicleSnapshot()
        self._session_started = False
        self._link_lost = False
        self._clear_calibration("link closed")
        return [event]

    def _on_heartbeat(self, msg, now):
        if msg.type == mavutil.mavlink.MAV_TYPE_GCS or msg.autopilot == mavutil.mavlink.MAV_AUTOPILOT_INVALID:
            return []

        events = []
        armed = bool(msg.base_mode & mavutil.mavlink.MAV_MODE_FLAG_SAFETY_ARMED)
        mode = ApmMode.from_custom_mode(msg.type, msg.custom_mode)
        self._last_heartbeat = now

        if not self._session_started:
            self._session_started = True
            self._clear_calibration("new session")
            self.vehicle.armed = armed
            self.vehicle.mode = mode
            return [VehicleEventType.HEARTBEAT_FIRST]

        if self._link_lost:
            self._link_lost = False
            events.append(VehicleEventType.HEARTBEAT_RESTORED)

        if armed != self.vehicle.armed:
            self.vehicle.armed = armed
            events.append(VehicleEventType.ARMING)
        if mode != self.vehicle.mode:
            self.vehicle.mode = mode
            events.append(VehicleEventType.MODE)
        return events

    def _clear_calibration(self, why):
        # A calibration never outlives the session it started in
        if self.calibration.is_calibrating():
            self.logger.info(f"Calibration abandoned ({why}).")
        self.calibration.stop()

    def _on_sys_status(self, msg, now):
        if msg.voltage_battery != UNKNOWN_BATTERY_VOLTAGE:
            self.vehicle.battery_voltage = msg.voltage_battery / 1000.0
        if msg.battery_remaining < 0 or msg.battery_remaining == self.vehicle.battery_remaining:
            return []
        self.vehicle.battery_remaining = msg.battery_remaining
        return [VehicleEventType.BATTERY]

    def _on_gps_raw(self, msg, now):
        if msg.fix_type == self.vehicle.gps_fix:
            return []
        self.vehicle.gps_fix = msg.fix_type
        return [VehicleEventType.GPS_FIX]

    def _on_global_position(self, msg, now):
        self.vehicle.altitude = msg.relative_alt / 1000.0
        return []

    def _on_vfr_hud(self, msg, now):
        self.vehicle.airspeed = msg.airspeed
        return []

    def _on_radio_status(self, msg, now):
        # SiK radios report RSSI in 1.9 units per dB above -127 dBm
        self.vehicle.rssi = round(msg.rssi / SIK_RSSI_SCALE - SIK_RSSI_OFFSET, 1)
        return []

    def _on_mission_current(self, msg, now):
        if msg.seq == self.vehicle.current_waypoint:
            return []
        self.vehicle.current_waypoint = msg.seq
        return [VehicleEventType.MISSION_WP_UPDATE]

    def _on_status_text(self, msg, now):
        text = _decode_text(getattr(msg, 'text', ''))
        if not text:
            return []
        lowered = text.lower()

        if "calibration" in lowered and any(word in lowered for word in CALIBRATION_END_WORDS):
            if self.calibration.is_calibrating():
                self.logger.info(f"Calibration finished: {text}")
            self.calibration.stop()
            return []
        if lowered.startswith("calibrating") or lowered.startswith("place vehicle"):
            if not self.calibration.is_calibrating():
                self.logger.info(f"Calibration started: {text}")
            self.calibration.start()
            return []

        if "failsafe" in lowered:
            if "clear" in lowered:
                self.vehicle.failsafe = False
                self.vehicle.failsafe_reason = ""
            else:
                self.vehicle.failsafe = True
                self.vehicle.failsafe_reason = text
            return [VehicleEventType.FAILSAFE]
        return []
