"""Custom exception hierarchy for the SKYVOICE notification system."""
class SkyvoiceError(Exception):
    """Base exception for the SKYVOICE application."""
    pass

class SpeechUnavailableError(SkyvoiceError):
    """Exception for a speech engine that failed to start or lacks its voice data."""
    pass

class PreferenceError(SkyvoiceError):
    """Exception for an unreadable or unwritable preference file."""
    pass

class MavlinkError(SkyvoiceError):
    """Exception for MAVLink communication failures."""
    pass

class MavlinkConnectionError(MavlinkError):
    """Exception for failure to establish a MAVLink connection."""
    pass
