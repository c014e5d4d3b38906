"""Battery discharge announcements, debounced to one per 10% band."""
import math
import logging
from typing import Optional

BATTERY_DISCHARGE_NOTIFICATION_EVERY_PERCENT = 10


class BatteryDischargeMonitor:
    """Turns consecutive battery readings into at most one announcement per decile crossed.

    The comparison is two-sided: a drop into a lower decile fires, and so does a
    jump of two or more deciles upwards. A single-decile rise (sensor recovering
    near a boundary) stays quiet.
    """
    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.last_decile = 0

    @staticmethod
    def decile(battery_percent: float) -> int:
        return math.floor((battery_percent - 1) / BATTERY_DISCHARGE_NOTIFICATION_EVERY_PERCENT)

    def observe(self, battery_percent: float) -> Optional[str]:
        decile = self.decile(battery_percent)
        if self.last_decile > decile or self.last_decile + 1 < decile:
            self.logger.debug(f"Battery decile {self.last_decile} -> {decile}")
            self.last_decile = decile
            return f"Battery at {int(battery_percent)}%"
        return None

    def reset(self):
        self.last_decile = 0
