from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        is_late: bool,
        notes: Optional[str] = None,
    ) -> int:
        """Insert today's record.

        The (user_id, work_date) unique key is the real guard against concurrent
        check-ins; a collision raises DuplicateRecordError.
        """

        raise NotImplementedError

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime, work_hours: float) -> bool:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        """Records with start <= work_date <= end, newest first."""

        raise NotImplementedError

    def list_recent_for_user(self, user_id: int, *, offset: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_for_user(self, user_id: int) -> int:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def daily_counts_between(self, start: date, end: date) -> dict[date, int]:
        """Number of records per calendar day, only days that have records."""

        raise NotImplementedError
