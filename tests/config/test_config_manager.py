"""Tests for ConfigManager - JSON preference store with live reload."""
import json
import os

import pytest

from skyvoice.config.config_manager import ConfigManager, PeriodicField, PreferenceFlags, default_preferences
from skyvoice.system.exceptions import PreferenceError


def write_prefs(path, data):
    """Writes the file and pushes its mtime forward so the change is always visible."""
    stamp = os.stat(path).st_mtime_ns if path.exists() else 0
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    bumped = stamp + 2_000_000_000
    os.utime(path, ns=(bumped, bumped))


@pytest.fixture
def prefs_path(tmp_path):
    return tmp_path / "prefs.json"


class TestLoading:
    def test_missing_file_is_created_with_defaults(self, prefs_path):
        manager = ConfigManager(str(prefs_path))

        assert prefs_path.exists()
        assert json.loads(prefs_path.read_text()) == default_preferences()
        assert manager.settings == default_preferences()

    def test_fresh_install_speaks_out_of_the_box(self, prefs_path):
        manager = ConfigManager(str(prefs_path))

        assert manager.snapshot().tts_enabled is True
        assert manager.get_periodic_interval_seconds() == 0

    def test_existing_file_is_used(self, prefs_path):
        write_prefs(prefs_path, {"speech": {"enabled": False}})
        manager = ConfigManager(str(prefs_path))
        assert manager.get_audible_enabled() is False

    def test_corrupt_file_falls_back_to_defaults(self, prefs_path):
        write_prefs(prefs_path, "{not json")
        manager = ConfigManager(str(prefs_path))
        assert manager.settings == default_preferences()

    def test_non_object_json_falls_back_to_defaults(self, prefs_path):
        write_prefs(prefs_path, "[1, 2, 3]")
        manager = ConfigManager(str(prefs_path))
        assert manager.settings == default_preferences()


class TestLiveReload:
    def test_external_edit_is_seen_on_next_read(self, prefs_path):
        write_prefs(prefs_path, {"periodic_status": {"interval_seconds": 10}})
        manager = ConfigManager(str(prefs_path))
        assert manager.get_periodic_interval_seconds() == 10

        write_prefs(prefs_path, {"periodic_status": {"interval_seconds": 0}})

        assert manager.get_periodic_interval_seconds() == 0

    def test_update_persists(self, prefs_path):
        manager = ConfigManager(str(prefs_path))

        manager.update("speech", "enabled", False)

        assert json.loads(prefs_path.read_text())["speech"]["enabled"] is False
        assert ConfigManager(str(prefs_path)).get_audible_enabled() is False

    def test_save_to_a_directory_raises(self, tmp_path):
        manager = ConfigManager(str(tmp_path / "prefs.json"))
        manager.config_path = str(tmp_path)

        with pytest.raises(PreferenceError):
            manager.save_settings(default_preferences())


class TestPreferenceQueries:
    @pytest.mark.parametrize("value, expected", [(15, 15), ("20", 20), (-5, 0), ("soon", 0), (None, 0)])
    def test_interval_is_sanitized(self, prefs_path, value, expected):
        write_prefs(prefs_path, {"periodic_status": {"interval_seconds": value}})
        assert ConfigManager(str(prefs_path)).get_periodic_interval_seconds() == expected

    def test_only_true_toggles_are_enabled(self, prefs_path):
        write_prefs(prefs_path, {"periodic_status": {"fields": {
            "battery voltage": True, "altitude": "yes", "rssi": True,
        }}})
        fields = ConfigManager(str(prefs_path)).get_periodic_fields()
        assert fields == frozenset({PeriodicField.BATTERY_VOLTAGE, PeriodicField.RSSI})

    def test_missing_sections_read_as_disabled(self, prefs_path):
        write_prefs(prefs_path, {})
        manager = ConfigManager(str(prefs_path))

        assert manager.snapshot() == PreferenceFlags()

    def test_snapshot(self, prefs_path):
        write_prefs(prefs_path, {
            "speech": {"enabled": True},
            "periodic_status": {"interval_seconds": 30, "fields": {"altitude": True}},
        })

        assert ConfigManager(str(prefs_path)).snapshot() == PreferenceFlags(
            tts_enabled=True,
            periodic_interval_seconds=30,
            periodic_fields=frozenset({PeriodicField.ALTITUDE}),
        )

    def test_snapshot_sees_live_edit(self, prefs_path):
        write_prefs(prefs_path, {"speech": {"enabled": True}})
        manager = ConfigManager(str(prefs_path))
        assert manager.snapshot().tts_enabled is True

        write_prefs(prefs_path, {"speech": {"enabled": False}})

        assert manager.snapshot().tts_enabled is False
