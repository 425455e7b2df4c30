from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds
from ..common.pagination import Page
from ..common.rounding import round_half_up
from ..common.validators import (
    clean_list,
    optional_text,
    require_choice,
    require_max_length,
    require_min_length,
    require_non_empty,
    require_range,
)
from ..core.clock import Clock
from ..core.constants import (
    CHALLENGES_MAX,
    MANAGER_COMMENT_MAX,
    MAX_HOURS_PER_DAY,
    PLAN_MAX,
    WORK_DONE_MAX,
    WORK_DONE_MIN,
)
from ..core.enums import Productivity, Role
from ..core.exceptions import (
    AuthorizationError,
    DuplicateRecordError,
    DuplicateReportError,
    EditWindowClosedError,
    NoAttendanceError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .model import DailyReport, ReportStats
from .repository import ReportRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportListing:
    reports: Sequence[DailyReport]
    summary: dict


def _clean_work_done(value: Any) -> str:
    if value is None or not str(value).strip():
        raise ValidationError("Work done must be at least 20 characters")
    text = str(value).strip()
    require_min_length(text, "Work done", WORK_DONE_MIN)
    require_max_length(text, "Work done", WORK_DONE_MAX)
    return text


def clean_report_fields(fields: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    """Validate client input into column values.

    With ``partial`` only the keys present are checked and returned; otherwise
    ``work_done`` is mandatory.
    """

    out: dict[str, Any] = {}
    if not partial or "work_done" in fields:
        out["work_done"] = _clean_work_done(fields.get("work_done"))
    if "challenges" in fields:
        out["challenges"] = optional_text(fields.get("challenges"), "Challenges", CHALLENGES_MAX)
    if "plan_for_tomorrow" in fields:
        out["plan_for_tomorrow"] = optional_text(fields.get("plan_for_tomorrow"), "Plan for tomorrow", PLAN_MAX)
    if "projects" in fields:
        out["projects"] = clean_list(fields.get("projects"))
    if fields.get("hours_worked") not in (None, ""):
        out["hours_worked"] = round_half_up(
            require_range(fields["hours_worked"], "Hours worked", 0, MAX_HOURS_PER_DAY), 2
        )
    if fields.get("productivity") not in (None, ""):
        out["productivity"] = require_choice(fields["productivity"], Productivity, "Productivity")
    if "needs_review" in fields:
        out["needs_review"] = bool(fields.get("needs_review"))
    return out


class ReportService:
    def __init__(self, reports: ReportRepository, attendance: AttendanceRepository, clock: Clock):
        self._reports = reports
        self._attendance = attendance
        self._clock = clock

    def create(self, user_id: int, fields: dict[str, Any]) -> DailyReport:
        values = clean_report_fields(fields, partial=False)
        now = self._clock.now()
        today = now.date()

        if self._reports.get_for_user_and_date(user_id, today):
            raise DuplicateReportError("Daily report already submitted for today")

        attendance = self._attendance.get_for_user_and_date(user_id, today)
        if not attendance:
            raise NoAttendanceError("Please mark attendance before submitting daily report")

        values.setdefault("hours_worked", attendance.work_hours or 0)
        values.setdefault("productivity", Productivity.MEDIUM)

        try:
            report_id = self._reports.create(
                user_id=user_id,
                work_date=today,
                attendance_id=attendance.attendance_id,
                fields=values,
                created_at=now,
            )
        except DuplicateRecordError as e:
            raise DuplicateReportError("Daily report already submitted for today") from e

        logger.info("daily report %s submitted by user %s", report_id, user_id)
        return self._reload(report_id)

    def update(self, user_id: int, report_id: int, fields: dict[str, Any]) -> DailyReport:
        report = self._get(report_id)
        if report.user_id != user_id:
            raise AuthorizationError("You can only update your own reports")
        if report.work_date != self._clock.now().date():
            raise EditWindowClosedError("You can only edit today's report")

        values = clean_report_fields(fields, partial=True)
        if values:
            self._reports.update_fields(report_id, values, updated_at=self._clock.now())
        return self._reload(report_id)

    def delete(self, user_id: int, report_id: int) -> None:
        report = self._get(report_id)
        if report.user_id != user_id:
            raise AuthorizationError("You can only delete your own reports")
        self._reports.delete(report_id)

    def review(self, *, current_role: Role, manager_id: int, report_id: int, comment: str) -> DailyReport:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Access denied. Manager privileges required.")
        text = require_non_empty(comment, "Manager comment")
        require_max_length(text, "Manager comment", MANAGER_COMMENT_MAX)

        self._get(report_id)
        self._reports.set_review(report_id, comment=text, reviewer_id=manager_id, reviewed_at=self._clock.now())
        return self._reload(report_id)

    def today(self, user_id: int) -> Optional[DailyReport]:
        return self._reports.get_for_user_and_date(user_id, self._clock.now().date())

    def history(self, user_id: int, *, page: int, limit: int) -> Page[DailyReport]:
        total = self._reports.count_for_user(user_id)
        items = self._reports.list_recent_for_user(user_id, offset=(page - 1) * limit, limit=limit)
        return Page(items=items, page=page, limit=limit, total=total)

    def monthly(self, user_id: int, year: int, month: int) -> Sequence[DailyReport]:
        if not 1 <= int(month) <= 12:
            raise ValidationError("month must be between 1 and 12")
        start, end = month_bounds(int(year), int(month))
        return self._reports.list_for_user_between(user_id, start, end)

    def monthly_stats(self, user_id: int, year: int, month: int) -> ReportStats:
        return self.summarize(self.monthly(user_id, year, month))

    @staticmethod
    def summarize(reports: Sequence[DailyReport]) -> ReportStats:
        total = len(reports)
        hours = sum(r.hours_worked or 0 for r in reports)
        productivity = {p.value: 0 for p in Productivity}
        for r in reports:
            productivity[r.productivity.value] += 1
        return ReportStats(
            total_reports=total,
            average_hours=round_half_up(hours / total, 2) if total else 0,
            productivity=productivity,
            needs_review=sum(1 for r in reports if r.needs_review),
            reviewed=sum(1 for r in reports if r.is_reviewed),
        )

    def list_all(self, *, work_date: Optional[date] = None, needs_review: bool = False) -> ReportListing:
        reports = self._reports.list_filtered(work_date=work_date, needs_review=needs_review)
        summary = {
            "total": len(reports),
            "needs_review": sum(1 for r in reports if r.needs_review),
            "reviewed": sum(1 for r in reports if r.is_reviewed),
            "date": work_date.isoformat() if work_date else None,
        }
        return ReportListing(reports=reports, summary=summary)

    def _get(self, report_id: int) -> DailyReport:
        report = self._reports.get_by_id(report_id)
        if not report:
            raise NotFoundError("Report not found")
        return report

    def _reload(self, report_id: int) -> DailyReport:
        report = self._reports.get_by_id(report_id)
        if report is None:
            raise StorageError("Daily report vanished after write")
        return report
