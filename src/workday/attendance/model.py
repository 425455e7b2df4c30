from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import hours_between, iso
from ..core.enums import AttendanceStatus


def compute_work_hours(check_in_time: datetime, check_out_time: Optional[datetime]) -> float:
    """Hours between check-in and check-out, 2 decimals; 0 while still checked in."""
    if check_out_time is None:
        return 0.0
    return hours_between(check_in_time, check_out_time)


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per user per calendar day."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    is_late: bool = False
    work_hours: float = 0.0
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self, user: Optional[dict] = None) -> dict:
        data = {
            "id": self.attendance_id,
            "user": user if user is not None else self.user_id,
            "date": iso(self.work_date),
            "check_in_time": iso(self.check_in_time),
            "check_out_time": iso(self.check_out_time),
            "status": self.status.value,
            "is_late": self.is_late,
            "work_hours": self.work_hours,
            "notes": self.notes or "",
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        return data


@dataclass(frozen=True)
class AttendanceStats:
    """Rollup over a trailing window of calendar days."""

    period_days: int
    present_days: int
    absent_days: int
    late_days: int
    total_work_hours: float
    average_work_hours: float
    attendance_percentage: int

    def to_dict(self) -> dict:
        return {
            "period_days": self.period_days,
            "present_days": self.present_days,
            "absent_days": self.absent_days,
            "late_days": self.late_days,
            "total_work_hours": self.total_work_hours,
            "average_work_hours": self.average_work_hours,
            "attendance_percentage": self.attendance_percentage,
        }


@dataclass(frozen=True)
class MonthlySummary:
    total_days: int
    present_days: int
    late_days: int
    total_work_hours: float
    average_work_hours: float

    def to_dict(self) -> dict:
        return {
            "total_days": self.total_days,
            "present_days": self.present_days,
            "late_days": self.late_days,
            "total_work_hours": self.total_work_hours,
            "average_work_hours": self.average_work_hours,
        }
