"""Entry point of the notification core: routes vehicle events to their handlers and gates speech output."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from skyvoice.components.battery import BatteryDischargeMonitor
from skyvoice.components.link_monitor import ConnectionHealthGate
from skyvoice.components.scheduler import PeriodicStatusScheduler
from skyvoice.components.translator import EventTranslator
from skyvoice.components.vehicle import VehicleEvent, VehicleEventType, VehicleSnapshot


class SpeechNotifier:
    """Decides what to say for each vehicle event and hands it to the speech sink.

    Everything spoken goes through `_speak`, which drops the utterance unless
    the speech engine is up and the user has audible notifications switched on.
    Dropped utterances are neither queued nor retried.
    """
    def __init__(self, speech, preferences, calibration, ui_messenger=None,
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        self.logger = logging.getLogger(__name__)
        self.speech = speech
        self.preferences = preferences
        self.ui_messenger = ui_messenger
        self.translator = EventTranslator()
        self.battery = BatteryDischargeMonitor()
        self.scheduler = PeriodicStatusScheduler(preferences, emit=self._speak, timer_factory=timer_factory)
        self.link = ConnectionHealthGate(self.scheduler, preferences, calibration)

    def on_event(self, event: VehicleEvent):
        if self.link.handles(event):
            if event.type == VehicleEventType.HEARTBEAT_FIRST:
                self.battery.reset()
            self._speak(self.link.handle(event))
            return

        if event.type == VehicleEventType.BATTERY:
            self._speak(self.battery.observe(event.vehicle.battery_remaining))
            return

        translation = self.translator.translate(event)
        if translation.toast:
            self._toast(translation.toast)
        self._speak(translation.utterance)

    def quick_notify(self, text: str):
        self._speak(text)

    def setup_periodic_speech_output(self, interval_seconds: int, vehicle: VehicleSnapshot):
        self.scheduler.start(interval_seconds, vehicle)

    def shutdown(self):
        self.scheduler.cancel()

    def _speak(self, text: Optional[str]):
        if not text:
            return
        if not self.speech.is_available():
            self.logger.debug(f"Speech unavailable, dropped: {text}")
            return
        if not self.preferences.snapshot().tts_enabled:
            self.logger.debug(f"Audible notifications off, dropped: {text}")
            return
        self.logger.info(f"SAY: {text}")
        self.speech.speak(text, flush_pending=True)

    def _toast(self, text: str):
        self.logger.info(f"TOAST: {text}")
        if self.ui_messenger:
            self.ui_messenger.post(("toast", text))
