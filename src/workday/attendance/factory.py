from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time

from ..core.constants import DEFAULT_LATE_THRESHOLD
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on the late threshold.

    The threshold is exclusive: a check-in exactly at the threshold is on time.
    """

    late_threshold: time = DEFAULT_LATE_THRESHOLD

    def for_checkin(self, *, now: datetime, today: date) -> AttendanceStrategy:
        if now > datetime.combine(today, self.late_threshold):
            return LateStrategy()
        return OnTimeStrategy()
