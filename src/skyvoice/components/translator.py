"""Maps vehicle events onto spoken phrases and toast messages."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from skyvoice.components.vehicle import ApmMode, VehicleEvent, VehicleEventType

INVALID_POLYGON_MESSAGE = "Invalid polygon: the drawn area needs at least three non-crossing points"

GPS_FIX_2D = 2
GPS_FIX_3D = 3

MODE_NAMES = {
    ApmMode.FIXED_WING_FLY_BY_WIRE_A: "Fly by wire A",
    ApmMode.FIXED_WING_FLY_BY_WIRE_B: "Fly by wire B",
    ApmMode.ROTOR_ACRO: "Acrobatic",
    ApmMode.ROTOR_ALT_HOLD: "Altitude hold",
    ApmMode.ROTOR_POSITION: "Position hold",
    ApmMode.FIXED_WING_RTL: "Return to home",
    ApmMode.ROTOR_RTL: "Return to home",
}


@dataclass(frozen=True)
class Translation:
    utterance: Optional[str] = None
    toast: Optional[str] = None


NOTHING = Translation()


def mode_phrase(mode) -> str:
    if mode in MODE_NAMES:
        return "Mode " + MODE_NAMES[mode]
    name = getattr(mode, "display_name", None) or getattr(mode, "name", None) or str(mode)
    return "Mode " + name


def gps_phrase(fix: int) -> str:
    if fix == GPS_FIX_2D:
        return "GPS 2D Lock"
    if fix == GPS_FIX_3D:
        return "GPS 3D Lock"
    return "Lost GPS Lock"


class EventTranslator:
    """Stateless lookup from a vehicle event to what should be said and shown.

    Heartbeat, battery and periodic events are not handled here; they belong to
    the link monitor, the battery monitor and the status scheduler.
    """
    def __init__(self, invalid_polygon_message: str = INVALID_POLYGON_MESSAGE):
        self.invalid_polygon_message = invalid_polygon_message

    def translate(self, event: VehicleEvent) -> Translation:
        vehicle = event.vehicle
        kind = event.type

        if kind == VehicleEventType.ARMING:
            return Translation(utterance="Armed" if vehicle.armed else "Disarmed")
        if kind == VehicleEventType.ARMING_STARTED:
            return Translation(utterance="Arming the vehicle, please standby")
        if kind == VehicleEventType.MODE:
            return Translation(utterance=mode_phrase(vehicle.mode))
        if kind == VehicleEventType.MISSION_SENT:
            return Translation(utterance="Waypoints saved to Drone", toast="Waypoints sent")
        if kind == VehicleEventType.MISSION_RECEIVED:
            return Translation(utterance="Waypoints received", toast="Waypoints received from Drone")
        if kind == VehicleEventType.MISSION_WP_UPDATE:
            return Translation(utterance=f"Going for waypoint {vehicle.current_waypoint}")
        if kind == VehicleEventType.GPS_FIX:
            return Translation(utterance=gps_phrase(vehicle.gps_fix))
        if kind == VehicleEventType.FOLLOW_START:
            return Translation(utterance="Following")
        if kind == VehicleEventType.FAILSAFE:
            if vehicle.failsafe and vehicle.failsafe_reason:
                return Translation(utterance=vehicle.failsafe_reason)
            return NOTHING
        if kind == VehicleEventType.INVALID_POLYGON:
            return Translation(toast=self.invalid_polygon_message)
        return NOTHING
