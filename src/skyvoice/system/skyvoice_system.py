"""High-level system wiring: spins up and shuts down all worker threads."""
import queue
import logging
from typing import Optional

from skyvoice.components.mavlink_io import MavlinkController
from skyvoice.components.telemetry import Calibration, TelemetryTracker
from skyvoice.components.vehicle import VehicleEvent, VehicleSnapshot
from skyvoice.config import settings as env
from skyvoice.config.config_manager import ConfigManager
from skyvoice.system.notifier import SpeechNotifier
from skyvoice.system.state import MsgQuickNotify, MsgSetupPeriodic, MsgVehicleEvent
from .workers import MavlinkWorker, NotificationWorker, TTSWorker, UIMessenger

class SkyvoiceSystem:
    """Manages the lifecycle of all backend worker threads."""
    def __init__(self, config_manager: ConfigManager, ui_messenger: Optional[UIMessenger] = None,
                 controller: Optional[MavlinkController] = None):
        self.logger = logging.getLogger(__name__)
        self.config_manager = config_manager
        self.ui_messenger = ui_messenger or UIMessenger()
        self.calibration = Calibration()

        mav = config_manager.get("mavlink", {}) or {}

        # Queues for inter-thread communication between backend subsystems
        self.tts_in_queue = queue.Queue()
        self.notify_in_queue = queue.Queue()
        self.mav_in_queue = queue.Queue()

        self.tts = TTSWorker(inbox=self.tts_in_queue, driver=env.TTS_DRIVER, voice=env.TTS_VOICE, rate=env.TTS_RATE)
        self.notifier = SpeechNotifier(
            speech=self.tts,
            preferences=self.config_manager,
            calibration=self.calibration,
            ui_messenger=self.ui_messenger,
        )
        self.notify = NotificationWorker(inbox=self.notify_in_queue, notifier=self.notifier)
        self.tracker = TelemetryTracker(
            heartbeat_timeout_s=float(mav.get("heartbeat_timeout_s", env.HEARTBEAT_TIMEOUT_S)),
            calibration=self.calibration,
        )
        self.controller = controller or MavlinkController(
            mav.get("connection_string", env.MAVLINK_CONNECTION_STRING),
            mav.get("baudrate", env.MAVLINK_BAUDRATE),
            mav.get("source_system_id", env.MAVLINK_SOURCE_SYSTEM_ID),
        )
        self.mav = MavlinkWorker(
            inbox=self.mav_in_queue,
            events_out=self.notify_in_queue,
            controller=self.controller,
            tracker=self.tracker,
            poll_interval=env.MAVLINK_POLL_INTERVAL_S,
            reconnect_delay=env.MAVLINK_RECONNECT_DELAY_S,
        )
        self.workers = [self.tts, self.notify, self.mav]

    # Entry points for other collaborators (GUI, mission planner, calibration screens)

    def post_event(self, event: VehicleEvent):
        self.notify_in_queue.put(MsgVehicleEvent(event=event))

    def quick_notify(self, text: str):
        self.notify_in_queue.put(MsgQuickNotify(text=text))

    def setup_periodic_speech_output(self, interval_seconds: int, vehicle: Optional[VehicleSnapshot] = None):
        self.notify_in_queue.put(MsgSetupPeriodic(interval_seconds=interval_seconds, vehicle=vehicle or self.tracker.vehicle))

    def start(self):
        self.logger.info("Starting all Skyvoice backend threads...")
        for worker in self.workers:
            worker.start()

    def stop(self):
        self.logger.info("Stopping all Skyvoice backend threads...")
        # Link first so its DISCONNECTED event still reaches the notifier
        self.mav.stop()
        self.mav.join(timeout=3)
        for worker in (self.notify, self.tts):
            worker.stop()
        for worker in (self.notify, self.tts):
            worker.join(timeout=2)
        self.logger.info("All backend threads stopped.")
