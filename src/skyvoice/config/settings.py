"""Configuration for SKYVOICE; values are read from environment with defaults."""
from decouple import config, Csv

# Preference file (user-editable, re-read whenever it changes on disk)
PREFERENCES_PATH = config('SKYVOICE_PREFERENCES_PATH', default='skyvoice_prefs.json')

# Defaults written to a fresh preference file
DEFAULT_TTS_ENABLED = config('DEFAULT_TTS_ENABLED', default=True, cast=bool)  # speech is on for a fresh install
DEFAULT_PERIODIC_INTERVAL_S = config('DEFAULT_PERIODIC_INTERVAL_S', default=0, cast=int)
DEFAULT_PERIODIC_FIELDS = config(
    'DEFAULT_PERIODIC_FIELDS', default='battery voltage,altitude,airspeed,rssi', cast=Csv()
)

# Speech engine
TTS_DRIVER = config('TTS_DRIVER', default='') or None  # pyttsx3 picks sapi5/nsss/espeak when unset
TTS_VOICE = config('TTS_VOICE', default='') or None    # voice id or name; None keeps the engine default
TTS_RATE = config('TTS_RATE', default=175, cast=int)

# MAVLink Configuration
MAVLINK_CONNECTION_STRING = config('MAVLINK_CONNECTION_STRING', default='udp:127.0.0.1:14550')
MAVLINK_BAUDRATE = config('MAVLINK_BAUDRATE', default=57600, cast=int)
MAVLINK_SOURCE_SYSTEM_ID = config('MAVLINK_SOURCE_SYSTEM_ID', default=255, cast=int)
HEARTBEAT_TIMEOUT_S = config('HEARTBEAT_TIMEOUT_S', default=5.0, cast=float)
MAVLINK_POLL_INTERVAL_S = config('MAVLINK_POLL_INTERVAL_S', default=0.2, cast=float)
MAVLINK_RECONNECT_DELAY_S = config('MAVLINK_RECONNECT_DELAY_S', default=3.0, cast=float)

# Logging
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
