from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import iso
from ..core.enums import Productivity


@dataclass(frozen=True)
class DailyReport:
    """Domain entity: one work report per user per calendar day."""

    report_id: int
    user_id: int
    work_date: date
    attendance_id: Optional[int]
    work_done: str
    challenges: str = ""
    plan_for_tomorrow: str = ""
    projects: list[str] = field(default_factory=list)
    hours_worked: float = 0.0
    productivity: Productivity = Productivity.MEDIUM
    needs_review: bool = False
    manager_comment: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_reviewed(self) -> bool:
        return self.reviewed_at is not None

    def to_dict(self, user: Optional[dict] = None, reviewer: Optional[dict] = None) -> dict:
        return {
            "id": self.report_id,
            "user": user if user is not None else self.user_id,
            "date": iso(self.work_date),
            "attendance": self.attendance_id,
            "work_done": self.work_done,
            "challenges": self.challenges or "",
            "plan_for_tomorrow": self.plan_for_tomorrow or "",
            "projects": list(self.projects),
            "hours_worked": self.hours_worked,
            "productivity": self.productivity.value,
            "needs_review": self.needs_review,
            "manager_comment": self.manager_comment,
            "reviewed_by": reviewer if reviewer is not None else self.reviewed_by,
            "reviewed_at": iso(self.reviewed_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


@dataclass(frozen=True)
class ReportStats:
    total_reports: int
    average_hours: float
    productivity: dict[str, int]
    needs_review: int
    reviewed: int

    def to_dict(self) -> dict:
        return {
            "total_reports": self.total_reports,
            "average_hours": self.average_hours,
            "productivity": dict(self.productivity),
            "needs_review": self.needs_review,
            "reviewed": self.reviewed,
        }
