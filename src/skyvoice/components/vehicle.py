"""Vehicle model shared by the notification core: event kinds, telemetry snapshot and flight modes."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pymavlink import mavutil


class VehicleEventType(str, Enum):
    ARMING = "arming"
    ARMING_STARTED = "arming_started"
    BATTERY = "battery"
    MODE = "mode"
    MISSION_SENT = "mission_sent"
    GPS_FIX = "gps_fix"
    MISSION_RECEIVED = "mission_received"
    HEARTBEAT_FIRST = "heartbeat_first"
    HEARTBEAT_TIMEOUT = "heartbeat_timeout"
    HEARTBEAT_RESTORED = "heartbeat_restored"
    DISCONNECTED = "disconnected"
    MISSION_WP_UPDATE = "mission_wp_update"
    FOLLOW_START = "follow_start"
    PERIODIC_SPEECH = "periodic_speech"
    FAILSAFE = "failsafe"
    INVALID_POLYGON = "invalid_polygon"


COPTER = "copter"
PLANE = "plane"
ROVER = "rover"

_COPTER_TYPES = {
    mavutil.mavlink.MAV_TYPE_QUADROTOR,
    mavutil.mavlink.MAV_TYPE_HEXAROTOR,
    mavutil.mavlink.MAV_TYPE_OCTOROTOR,
    mavutil.mavlink.MAV_TYPE_TRICOPTER,
    mavutil.mavlink.MAV_TYPE_COAXIAL,
    mavutil.mavlink.MAV_TYPE_HELICOPTER,
}
_ROVER_TYPES = {
    mavutil.mavlink.MAV_TYPE_GROUND_ROVER,
    mavutil.mavlink.MAV_TYPE_SURFACE_BOAT,
}


def vehicle_class(mav_type: int) -> Optional[str]:
    """Maps a HEARTBEAT MAV_TYPE onto the ArduPilot firmware family that defines its modes."""
    if mav_type == mavutil.mavlink.MAV_TYPE_FIXED_WING:
        return PLANE
    if mav_type in _COPTER_TYPES:
        return COPTER
    if mav_type in _ROVER_TYPES:
        return ROVER
    return None


class ApmMode(Enum):
    """ArduPilot flight modes as (firmware family, custom_mode number, display name)."""
    FIXED_WING_MANUAL = (PLANE, 0, "Manual")
    FIXED_WING_CIRCLE = (PLANE, 1, "Circle")
    FIXED_WING_STABILIZE = (PLANE, 2, "Stabilize")
    FIXED_WING_TRAINING = (PLANE, 3, "Training")
    FIXED_WING_FLY_BY_WIRE_A = (PLANE, 5, "FBW A")
    FIXED_WING_FLY_BY_WIRE_B = (PLANE, 6, "FBW B")
    FIXED_WING_AUTO = (PLANE, 10, "Auto")
    FIXED_WING_RTL = (PLANE, 11, "RTL")
    FIXED_WING_LOITER = (PLANE, 12, "Loiter")
    FIXED_WING_GUIDED = (PLANE, 15, "Guided")

    ROTOR_STABILIZE = (COPTER, 0, "Stabilize")
    ROTOR_ACRO = (COPTER, 1, "Acro")
    ROTOR_ALT_HOLD = (COPTER, 2, "Alt Hold")
    ROTOR_AUTO = (COPTER, 3, "Auto")
    ROTOR_GUIDED = (COPTER, 4, "Guided")
    ROTOR_LOITER = (COPTER, 5, "Loiter")
    ROTOR_RTL = (COPTER, 6, "RTL")
    ROTOR_CIRCLE = (COPTER, 7, "Circle")
    ROTOR_POSITION = (COPTER, 8, "Pos Hold")
    ROTOR_LAND = (COPTER, 9, "Land")
    ROTOR_DRIFT = (COPTER, 11, "Drift")
    ROTOR_SPORT = (COPTER, 13, "Sport")
    ROTOR_POSHOLD = (COPTER, 16, "PosHold")

    ROVER_MANUAL = (ROVER, 0, "Manual")
    ROVER_LEARNING = (ROVER, 2, "Learning")
    ROVER_STEERING = (ROVER, 3, "Steering")
    ROVER_HOLD = (ROVER, 4, "Hold")
    ROVER_AUTO = (ROVER, 10, "Auto")
    ROVER_RTL = (ROVER, 11, "RTL")
    ROVER_GUIDED = (ROVER, 15, "Guided")
    ROVER_INITIALIZING = (ROVER, 16, "Initializing")

    UNKNOWN = (None, -1, "Unknown")

    def __init__(self, family: Optional[str], number: int, display_name: str):
        self.family = family
        self.number = number
        self.display_name = display_name

    @classmethod
    def from_custom_mode(cls, mav_type: int, custom_mode: int) -> "ApmMode":
        family = vehicle_class(mav_type)
        for mode in cls:
            if mode.family == family and mode.number == custom_mode:
                return mode
        return cls.UNKNOWN


@dataclass
class VehicleSnapshot:
    """Current telemetry of one vehicle. Written by the telemetry tracker, read by the notification core."""
    armed: bool = False
    mode: ApmMode = ApmMode.UNKNOWN
    battery_remaining: float = -1.0   # percent
    battery_voltage: float = 0.0      # volts
    altitude: float = 0.0             # meters, relative to home
    airspeed: float = 0.0             # m/s
    rssi: float = 0.0                 # dBm
    failsafe: bool = False
    failsafe_reason: str = ""
    gps_fix: int = 0
    current_waypoint: int = 0


@dataclass(frozen=True)
class VehicleEvent:
    type: VehicleEventType
    vehicle: VehicleSnapshot
