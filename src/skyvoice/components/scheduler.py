"""Periodic spoken status digest: a one-shot timer that re-arms itself after each announcement."""
from __future__ import annotations

import math
import logging
import threading
from enum import Enum
from typing import Callable, Iterable, Optional

from skyvoice.components.vehicle import VehicleSnapshot
from skyvoice.config.config_manager import PeriodicField


class SchedulerState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"


def _one_decimal(value: float) -> float:
    return math.trunc(value * 10.0) / 10.0


def compose_status(fields: Iterable[PeriodicField], vehicle: VehicleSnapshot) -> str:
    """Builds the status digest from the enabled fields, always in battery/altitude/airspeed/rssi order."""
    enabled = set(fields)
    message = []
    if PeriodicField.BATTERY_VOLTAGE in enabled:
        message.append(f"battery {round(vehicle.battery_voltage, 2)} volts. ")
    if PeriodicField.ALTITUDE in enabled:
        message.append(f"altitude, {_one_decimal(vehicle.altitude)} meters. ")
    if PeriodicField.AIRSPEED in enabled:
        message.append(f"airspeed, {_one_decimal(vehicle.airspeed)} meters per second. ")
    if PeriodicField.RSSI in enabled:
        message.append(f"r s s i, {int(round(vehicle.rssi))} decibels")
    return "".join(message)


class PeriodicStatusScheduler:
    """Announces a telemetry digest every N seconds while the link is up.

    Every start or cancel bumps a generation counter and each timer carries the
    generation it was armed with, so a tick that was already in flight when its
    timer got cancelled finds a newer generation and does nothing. All state
    changes happen under one lock; at most one timer is pending at a time.
    """
    def __init__(self, preferences, emit: Callable[[str], None],
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        self.logger = logging.getLogger(__name__)
        self.preferences = preferences
        self.emit = emit
        self.timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self.state = SchedulerState.IDLE
        self.interval = 0
        self.vehicle: Optional[VehicleSnapshot] = None

    @property
    def generation(self) -> int:
        return self._generation

    def is_scheduled(self) -> bool:
        return self.state == SchedulerState.SCHEDULED

    def start(self, interval_seconds: int, vehicle: VehicleSnapshot):
        with self._lock:
            self.vehicle = vehicle
            if interval_seconds <= 0:
                self._cancel_locked()
                self.logger.info("Periodic status disabled.")
                return
            self._arm_locked(interval_seconds)
            self.logger.info(f"Periodic status every {interval_seconds}s.")

    def cancel(self):
        with self._lock:
            if self.state == SchedulerState.SCHEDULED:
                self.logger.info("Periodic status cancelled.")
            self._cancel_locked()

    def _cancel_locked(self):
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.state = SchedulerState.IDLE
        self.interval = 0

    def _arm_locked(self, interval_seconds: int):
        self._cancel_locked()
        timer = self.timer_factory(interval_seconds, self._on_tick, args=(self._generation,))
        timer.daemon = True
        self._timer = timer
        self.state = SchedulerState.SCHEDULED
        self.interval = interval_seconds
        timer.start()

    def _on_tick(self, generation: int):
        with self._lock:
            if generation != self._generation or self.state != SchedulerState.SCHEDULED:
                self.logger.debug(f"Ignoring stale status tick (generation {generation}, current {self._generation}).")
                return
            self._timer = None

            flags = self.preferences.snapshot()
            fields = flags.periodic_fields
            interval = flags.periodic_interval_seconds

            if self.vehicle is not None:
                try:
                    self.emit(compose_status(fields, self.vehicle))
                except Exception as e:
                    self.logger.error(f"Periodic status emit failed: {e}")

            if interval > 0:
                self._arm_locked(interval)
            else:
                self._cancel_locked()
