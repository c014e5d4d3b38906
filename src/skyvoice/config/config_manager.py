"""JSON-backed user preferences: audible notifications and the periodic status digest."""
import copy
import json
import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet

from skyvoice.config import settings
from skyvoice.system.exceptions import PreferenceError


class PeriodicField(str, Enum):
    BATTERY_VOLTAGE = "battery voltage"
    ALTITUDE = "altitude"
    AIRSPEED = "airspeed"
    RSSI = "rssi"


@dataclass(frozen=True)
class PreferenceFlags:
    tts_enabled: bool = False
    periodic_interval_seconds: int = 0
    periodic_fields: FrozenSet[PeriodicField] = field(default_factory=frozenset)


def default_preferences() -> dict:
    return {
        "speech": {
            "enabled": settings.DEFAULT_TTS_ENABLED,
        },
        "periodic_status": {
            "interval_seconds": settings.DEFAULT_PERIODIC_INTERVAL_S,
            "fields": {f.value: f.value in settings.DEFAULT_PERIODIC_FIELDS for f in PeriodicField},
        },
        "mavlink": {
            "connection_string": settings.MAVLINK_CONNECTION_STRING,
            "baudrate": settings.MAVLINK_BAUDRATE,
            "source_system_id": settings.MAVLINK_SOURCE_SYSTEM_ID,
            "heartbeat_timeout_s": settings.HEARTBEAT_TIMEOUT_S,
        },
    }


class ConfigManager:
    """Preference store backed by a JSON file.

    Every read checks the file's modification stamp first, so edits made while
    the system runs are seen at the next decision point without a restart.
    """
    def __init__(self, config_path=None):
        self.logger = logging.getLogger(__name__)
        self.config_path = config_path or settings.PREFERENCES_PATH
        self._lock = threading.RLock()
        self._stamp = None
        self.settings = self.load_settings()

    def load_settings(self):
        """Loads settings from the JSON file, creating it if it doesn't exist."""
        with self._lock:
            if not os.path.exists(self.config_path):
                self.logger.info(f"Preference file not found. Creating default '{self.config_path}'")
                return self._create_default_config()

            self._stamp = self._file_stamp()
            try:
                with open(self.config_path, 'r') as f:
                    loaded = json.load(f)
                if not isinstance(loaded, dict):
                    raise ValueError("top-level JSON value is not an object")
                return loaded
            except (json.JSONDecodeError, ValueError, OSError) as e:
                self.logger.warning(f"Error reading preference file: {e}. Using default settings.")
                return default_preferences()

    def save_settings(self, settings_dict):
        """Saves the given settings dictionary to the JSON file."""
        with self._lock:
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(settings_dict, f, indent=4)
            except OSError as e:
                self.logger.error(f"Error saving preference file: {e}")
                raise PreferenceError(f"Could not write {self.config_path}: {e}") from e
            self.settings = copy.deepcopy(settings_dict)
            self._stamp = self._file_stamp()
            self.logger.info("Preferences saved.")

    def get(self, key, default=None):
        """Gets a top-level setting value by key."""
        self._refresh()
        return self.settings.get(key, default)

    def update(self, section, key, value):
        """Sets one value inside a section and persists the whole file."""
        with self._lock:
            self._refresh()
            updated = copy.deepcopy(self.settings)
            updated.setdefault(section, {})[key] = value
            self.save_settings(updated)

    # Preference-store interface

    def get_audible_enabled(self) -> bool:
        speech = self._section("speech")
        return bool(speech.get("enabled", False))

    def get_periodic_interval_seconds(self) -> int:
        periodic = self._section("periodic_status")
        try:
            interval = int(periodic.get("interval_seconds", 0))
        except (TypeError, ValueError):
            self.logger.warning(f"Bad periodic interval {periodic.get('interval_seconds')!r}; treating as disabled.")
            return 0
        return max(0, interval)

    def get_periodic_fields(self) -> FrozenSet[PeriodicField]:
        toggles = self._section("periodic_status").get("fields", {})
        if not isinstance(toggles, dict):
            return frozenset()
        return frozenset(f for f in PeriodicField if toggles.get(f.value) is True)

    def snapshot(self) -> PreferenceFlags:
        """Reads every flag in one go, after picking up any edit to the file."""
        with self._lock:
            self._refresh()
            return PreferenceFlags(
                tts_enabled=self.get_audible_enabled(),
                periodic_interval_seconds=self.get_periodic_interval_seconds(),
                periodic_fields=self.get_periodic_fields(),
            )

    def _section(self, name) -> dict:
        value = self.get(name, {})
        return value if isinstance(value, dict) else {}

    def _file_stamp(self):
        try:
            st = os.stat(self.config_path)
        except OSError:
            return None
        return (st.st_mtime_ns, st.st_size)

    def _refresh(self):
        with self._lock:
            stamp = self._file_stamp()
            if stamp is not None and stamp != self._stamp:
                self.logger.debug(f"Preference file changed, reloading '{self.config_path}'")
                self.settings = self.load_settings()

    def _create_default_config(self):
        """Creates and saves a default preference file."""
        default_settings = default_preferences()
        try:
            self.save_settings(default_settings)
        except PreferenceError:
            self.logger.warning("Continuing with in-memory default preferences.")
        return copy.deepcopy(default_settings)
