from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Sequence

from ..common.datetime_utils import month_bounds, window_start
from ..common.pagination import Page
from ..common.rounding import percentage, round_half_up
from ..common.validators import optional_text
from ..core.clock import Clock
from ..core.constants import DEFAULT_LATE_THRESHOLD, DEFAULT_STATS_DAYS, NOTES_MAX
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import (
    AlreadyCheckedOutError,
    AlreadyMarkedError,
    DuplicateRecordError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..users.model import User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, AttendanceStats, MonthlySummary, compute_work_hours
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayOverview:
    """Manager view of one calendar day across all active employees."""

    work_date: date
    rows: list[dict]
    summary: dict


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        clock: Clock,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        late_threshold: time = DEFAULT_LATE_THRESHOLD,
    ):
        self._attendance = attendance
        self._users = users
        self._clock = clock
        self._factory = strategy_factory or AttendanceStrategyFactory(late_threshold=late_threshold)

    def check_in(self, user_id: int, *, notes: Optional[str] = None) -> AttendanceRecord:
        now = self._clock.now()
        today = now.date()
        notes = optional_text(notes, "Notes", NOTES_MAX)

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing:
            raise AlreadyMarkedError("Attendance already marked for today", data=existing)

        strategy = self._factory.for_checkin(now=now, today=today)
        decision = strategy.decide_checkin(now=now)

        try:
            attendance_id = self._attendance.create_checkin(
                user_id=user_id,
                work_date=today,
                check_in_time=now,
                status=decision.status,
                is_late=decision.is_late,
                notes=notes,
            )
        except DuplicateRecordError:
            # Lost the race against a concurrent check-in for the same day.
            existing = self._attendance.get_for_user_and_date(user_id, today)
            raise AlreadyMarkedError("Attendance already marked for today", data=existing)

        return self._reload(attendance_id)

    def check_out(self, user_id: int) -> AttendanceRecord:
        now = self._clock.now()
        record = self._attendance.get_for_user_and_date(user_id, now.date())
        if not record:
            raise NotFoundError("No attendance record found for today. Please check-in first.")
        if record.check_out_time is not None:
            raise AlreadyCheckedOutError("Already checked out for today", data=record)
        if now < record.check_in_time:
            raise ValidationError("Check-out cannot be earlier than check-in")

        work_hours = compute_work_hours(record.check_in_time, now)
        if not self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=now,
            work_hours=work_hours,
        ):
            current = self._attendance.get_by_id(record.attendance_id)
            raise AlreadyCheckedOutError("Already checked out for today", data=current)

        return self._reload(record.attendance_id)

    def today(self, user_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(user_id, self._clock.now().date())

    def history(self, user_id: int, *, page: int, limit: int) -> Page[AttendanceRecord]:
        total = self._attendance.count_for_user(user_id)
        items = self._attendance.list_recent_for_user(user_id, offset=(page - 1) * limit, limit=limit)
        return Page(items=items, page=page, limit=limit, total=total)

    def stats(self, user_id: int, days: int = DEFAULT_STATS_DAYS) -> AttendanceStats:
        """Rollup over the trailing ``days`` calendar days, today included.

        A day counts as present as soon as it has a record, whether or not the
        user has checked out.
        """

        days = int(days)
        if days < 1:
            raise ValidationError("days must be at least 1")

        today = self._clock.now().date()
        records = self._attendance.list_for_user_between(user_id, window_start(today, days), today)

        present_days = len(records)
        late_days = sum(1 for r in records if r.is_late)
        total_hours = sum(r.work_hours or 0 for r in records)

        return AttendanceStats(
            period_days=days,
            present_days=present_days,
            absent_days=max(0, days - present_days),
            late_days=late_days,
            total_work_hours=round_half_up(total_hours, 2),
            average_work_hours=round_half_up(total_hours / present_days, 2) if present_days else 0,
            attendance_percentage=percentage(present_days, days),
        )

    def monthly(self, user_id: int, year: int, month: int) -> Sequence[AttendanceRecord]:
        """All records of the month, newest first."""

        if not 1 <= int(month) <= 12:
            raise ValidationError("month must be between 1 and 12")
        start, end = month_bounds(int(year), int(month))
        return self._attendance.list_for_user_between(user_id, start, end)

    @staticmethod
    def summarize_month(records: Sequence[AttendanceRecord]) -> MonthlySummary:
        total_days = len(records)
        total_hours = sum(r.work_hours or 0 for r in records)
        return MonthlySummary(
            total_days=total_days,
            present_days=sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
            late_days=sum(1 for r in records if r.is_late),
            total_work_hours=round_half_up(total_hours, 2),
            average_work_hours=round_half_up(total_hours / total_days, 2) if total_days else 0,
        )

    def day_overview(self, work_date: Optional[date] = None) -> DayOverview:
        work_date = work_date or self._clock.now().date()
        employees = self._users.list_by_role(Role.EMPLOYEE, active_only=True)
        records = self._attendance.list_for_date(work_date)
        by_user = {r.user_id: r for r in records}

        rows = []
        for emp in employees:
            rec = by_user.get(emp.user_id)
            rows.append(
                {
                    "employee": emp.summary(),
                    "attendance": rec.to_dict() if rec else None,
                    "status": rec.status.value if rec else AttendanceStatus.ABSENT.value,
                }
            )

        summary = {
            "total": len(employees),
            "present": sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
            "late": sum(1 for r in records if r.is_late),
            "absent": max(0, len(employees) - len(records)),
            "date": work_date.isoformat(),
        }
        return DayOverview(work_date=work_date, rows=rows, summary=summary)

    def for_employee(self, employee_id: int, *, page: int, limit: int) -> Page[AttendanceRecord]:
        employee: Optional[User] = self._users.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return self.history(employee_id, page=page, limit=limit)

    def _reload(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if record is None:
            raise StorageError("Attendance record vanished after write")
        return record
