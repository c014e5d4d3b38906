"""Message schema for inter-thread communication in SKYVOICE."""
from dataclasses import dataclass

from skyvoice.components.vehicle import VehicleEvent, VehicleSnapshot

@dataclass
class MsgBase:
	pass

@dataclass
class MsgShutdown(MsgBase):
	reason: str = ""

@dataclass
class MsgSpeak(MsgBase):
	text: str
	flush: bool = True

@dataclass
class MsgVehicleEvent(MsgBase):
	event: VehicleEvent

@dataclass
class MsgQuickNotify(MsgBase):
	text: str

@dataclass
class MsgSetupPeriodic(MsgBase):
	interval_seconds: int
	vehicle: VehicleSnapshot
