"""Worker threads for the SKYVOICE system."""
from __future__ import annotations

import queue
import threading
import logging
import time
from typing import List, Optional, Tuple

from skyvoice.components.mavlink_io import MavlinkController
from skyvoice.components.telemetry import TelemetryTracker
from skyvoice.components.vehicle import VehicleEvent
from skyvoice.system.exceptions import MavlinkError, SpeechUnavailableError
from skyvoice.system.state import *

"""Bridge class to forward toasts and status lines to the GUI queue."""
class UIMessenger:
    def __init__(self, gui_queue: Optional[queue.Queue] = None):
        self.gui_queue = gui_queue

    def post(self, message):
        if self.gui_queue:
            try:
                self.gui_queue.put_nowait(message)
            except queue.Full:
                pass

class WorkerThread:
    """Base class for all worker threads supporting cooperative stop and join."""
    def __init__(self, name: str, inbox: queue.Queue):
        self.name = name
        self.logger = logging.getLogger(name)
        self.inbox = inbox
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        if not self._thread:
            self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
            self._thread.start()

    def stop(self):
        self._stop_event.set()
        try:
            self.inbox.put_nowait(MsgShutdown())
        except queue.Full:
            pass

    def join(self, timeout: Optional[float] = None):
        if self._thread:
            self._thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self):
        raise NotImplementedError

class TTSWorker(WorkerThread):
    """Speech sink: runs a pyttsx3 engine in a non-blocking event loop.

    A flushing utterance discards everything still waiting, including what the
    engine is currently saying, so only the most recent one is retained.
    """
    def __init__(self, inbox: queue.Queue, driver: Optional[str] = None,
                 voice: Optional[str] = None, rate: Optional[int] = None):
        super().__init__("TTSWorker", inbox)
        self.driver = driver
        self.voice = voice
        self.rate = rate
        self._engine = None
        self._available = threading.Event()

    def is_available(self) -> bool:
        return self._available.is_set()

    def speak(self, text: str, flush_pending: bool = True):
        self.inbox.put(MsgSpeak(text=text, flush=flush_pending))

    def _init_engine(self):
        try:
            import pyttsx3
            engine = pyttsx3.init(driverName=self.driver) if self.driver else pyttsx3.init()
        except Exception as e:
            raise SpeechUnavailableError(f"TextToSpeech initialization failed: {e}") from e

        if self.voice:
            voices = engine.getProperty('voices') or []
            match = next((v for v in voices if self.voice in (v.id, v.name)), None)
            if match is None:
                raise SpeechUnavailableError(f"TTS voice '{self.voice}' is not available.")
            engine.setProperty('voice', match.id)
        if self.rate:
            engine.setProperty('rate', self.rate)
        return engine

    def _drain_inbox(self) -> Tuple[bool, bool, List[str]]:
        """Returns (shutdown, flush, texts) for everything currently queued."""
        shutdown = False
        flush = False
        texts: List[str] = []
        while True:
            try:
                msg: MsgBase = self.inbox.get_nowait()
            except queue.Empty:
                break
            if isinstance(msg, MsgShutdown):
                shutdown = True
                break
            if isinstance(msg, MsgSpeak) and msg.text:
                if msg.flush:
                    flush = True
                    texts.clear()
                texts.append(msg.text)
        return shutdown, flush, texts

    def _deliver(self, flush: bool, texts: List[str]):
        if flush:
            self._engine.stop()
        for text in texts:
            self._engine.say(text)

    def run(self):
        try:
            self._engine = self._init_engine()
            self._engine.startLoop(False)
            self._available.set()
            self.logger.info("TTS engine initialized")
        except SpeechUnavailableError as e:
            self.logger.warning(f"{e} Audible notifications are disabled.")
            self._engine = None
            return

        while not self.stopped():
            shutdown, flush, texts = self._drain_inbox()
            if shutdown:
                break
            try:
                self._deliver(flush, texts)
                self._engine.iterate()
            except Exception as e:
                self.logger.error(f"TTS engine iteration failed: {e}")
                # Attempt to re-initialize on failure
                try:
                    self._engine = self._init_engine()
                    self._engine.startLoop(False)
                except SpeechUnavailableError as init_e:
                    self.logger.error(f"TTS engine re-initialization failed: {init_e}")
                    self._available.clear()
                    self.stop()
                    return

            time.sleep(0.1)

        self._available.clear()
        # Cleanly end the loop when the worker stops
        try:
            self._engine.endLoop()
        except Exception as e:
            self.logger.debug(f"TTS endLoop failed: {e}")

class NotificationWorker(WorkerThread):
    """The single consumer of vehicle events: hands them to the notifier one at a time."""
    def __init__(self, inbox: queue.Queue, notifier):
        super().__init__("NotificationWorker", inbox)
        self.notifier = notifier

    def handle(self, msg: MsgBase) -> bool:
        """Processes one inbox message; returns False when the worker should exit."""
        if isinstance(msg, MsgShutdown):
            return False
        try:
            if isinstance(msg, MsgVehicleEvent):
                self.logger.debug(f"Event: {msg.event.type.value}")
                self.notifier.on_event(msg.event)
            elif isinstance(msg, MsgQuickNotify):
                self.notifier.quick_notify(msg.text)
            elif isinstance(msg, MsgSetupPeriodic):
                self.notifier.setup_periodic_speech_output(msg.interval_seconds, msg.vehicle)
        except Exception as e:
            self.logger.error(f"Notification handling failed for {type(msg).__name__}: {e}", exc_info=True)
        return True

    def run(self):
        try:
            while not self.stopped():
                try:
                    msg: MsgBase = self.inbox.get(timeout=0.5)
                except queue.Empty:
                    continue
                if not self.handle(msg):
                    break
        finally:
            self.notifier.shutdown()

class MavlinkWorker(WorkerThread):
    """Polls the MAVLink link, keeps the telemetry snapshot current and posts vehicle events."""
    def __init__(self, inbox: queue.Queue, events_out: queue.Queue, controller: MavlinkController,
                 tracker: TelemetryTracker, poll_interval: float = 0.2, reconnect_delay: float = 3.0):
        super().__init__("MavlinkWorker", inbox)
        self.events_out = events_out
        self.controller = controller
        self.tracker = tracker
        self.poll_interval = poll_interval
        self.reconnect_delay = reconnect_delay

    def _post(self, events: List[VehicleEvent]):
        for event in events:
            self.events_out.put(MsgVehicleEvent(event=event))

    def poll(self, now: Optional[float] = None):
        """Reads whatever the link has buffered and posts the resulting events."""
        try:
            messages = self.controller.recv()
        except MavlinkError as e:
            self.logger.warning(f"Link dropped: {e}")
            self._post(self.tracker.disconnect())
            return
        for msg in messages:
            self._post(self.tracker.update(msg, now))
        self._post(self.tracker.check_heartbeat(now))

    def _shutdown_requested(self, timeout: float) -> bool:
        try:
            msg: MsgBase = self.inbox.get(timeout=timeout)
        except queue.Empty:
            return self.stopped()
        return isinstance(msg, MsgShutdown) or self.stopped()

    def run(self):
        try:
            while not self.stopped():
                if not self.controller.is_connected():
                    try:
                        self.controller.connect()
                    except MavlinkError as e:
                        self.logger.error(f"Connection to {self.controller.connection_string} failed: {e}")
                        if self._shutdown_requested(self.reconnect_delay):
                            break
                        continue

                self.poll()
                if self._shutdown_requested(self.poll_interval):
                    break
        finally:
            self._post(self.tracker.disconnect())
            self.controller.close_connection()
