from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import is_birthday, iso, window_start
from ..common.rounding import percentage, round_half_up
from ..core.clock import Clock
from ..core.constants import TEAM_STATS_DAYS, UPCOMING_BIRTHDAY_DAYS
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..reports.repository import ReportRepository
from ..users.model import User
from ..users.repository import UserRepository


class TeamService:
    """Read-only manager views across the whole team."""

    def __init__(
        self,
        users: UserRepository,
        attendance: AttendanceRepository,
        reports: ReportRepository,
        clock: Clock,
    ):
        self._users = users
        self._attendance = attendance
        self._reports = reports
        self._clock = clock

    def _today(self) -> date:
        return self._clock.now().date()

    def todays_birthdays(self) -> list[dict]:
        today = self._today()
        return [u.public_profile(today) for u in self._users.list_active() if u.is_birthday_today(today)]

    def upcoming_birthdays(self, days: int = UPCOMING_BIRTHDAY_DAYS) -> list[dict]:
        """Birthdays in the next ``days`` days, today excluded, soonest first."""

        if days < 1:
            raise ValidationError("days must be at least 1")
        today = self._today()
        people = self._users.list_active()

        upcoming = []
        for offset in range(1, days + 1):
            day = today + timedelta(days=offset)
            for user in people:
                if is_birthday(user.date_of_birth, day):
                    upcoming.append(
                        {
                            "id": user.user_id,
                            "name": user.name,
                            "email": user.email,
                            "role": user.role.value,
                            "profile_initial": user.profile_initial,
                            "date_of_birth": iso(user.date_of_birth),
                            "days_until": offset,
                            "date": day.isoformat(),
                        }
                    )
        return upcoming

    def team_stats(self) -> dict:
        today = self._today()
        total_employees = len(self._users.list_by_role(Role.EMPLOYEE))
        todays_records = self._attendance.list_for_date(today)
        today_attendance = len(todays_records)
        today_reports = self._reports.count_for_date(today)
        birthdays = self.todays_birthdays()

        daily = self._attendance.daily_counts_between(window_start(today, TEAM_STATS_DAYS), today)
        if total_employees and daily:
            avg_attendance = percentage(sum(daily.values()), len(daily) * total_employees)
        else:
            avg_attendance = 0

        return {
            "total_employees": total_employees,
            "today_attendance": today_attendance,
            "today_reports": today_reports,
            "late_today": sum(1 for r in todays_records if r.is_late),
            "reports_needing_review": self._reports.count_pending_review(),
            "avg_attendance_percentage": avg_attendance,
            "attendance_rate": percentage(today_attendance, total_employees),
            "report_submission_rate": percentage(today_reports, total_employees),
            "todays_birthdays": len(birthdays),
            "birthday_people": birthdays,
        }

    def attendance_overview(self, work_date: Optional[date] = None) -> dict:
        """Per-employee status for a day: ``completed`` once checked out, else ``present`` or ``absent``."""

        today = self._today()
        work_date = work_date or today
        employees = self._users.list_by_role(Role.EMPLOYEE)
        records = self._attendance.list_for_date(work_date)
        by_user = {r.user_id: r for r in records}

        overview = []
        for emp in employees:
            rec = by_user.get(emp.user_id)
            if rec is None:
                status = "absent"
            elif rec.check_out_time is not None:
                status = "completed"
            else:
                status = "present"
            overview.append(
                {
                    "employee": {**emp.summary(), "is_birthday_today": emp.is_birthday_today(today)},
                    "attendance": rec.to_dict() if rec else None,
                    "status": status,
                }
            )

        return {
            "date": work_date.isoformat(),
            "overview": overview,
            "summary": {
                "total": len(employees),
                "present": sum(1 for o in overview if o["status"] != "absent"),
                "absent": sum(1 for o in overview if o["status"] == "absent"),
                "late": sum(1 for r in records if r.is_late),
                "birthdays": sum(1 for o in overview if o["employee"]["is_birthday_today"]),
            },
        }

    def employees(self) -> list[dict]:
        today = self._today()
        out = []
        for emp in self._users.list_by_role(Role.EMPLOYEE):
            rec = self._attendance.get_for_user_and_date(emp.user_id, today)
            report = self._reports.get_for_user_and_date(emp.user_id, today)
            out.append(
                {
                    **emp.public_profile(today),
                    "today_status": {
                        "has_attendance": rec is not None,
                        "has_report": report is not None,
                        "check_in_time": iso(rec.check_in_time) if rec else None,
                        "check_out_time": iso(rec.check_out_time) if rec else None,
                        "is_late": rec.is_late if rec else False,
                    },
                }
            )
        return out

    def employee_details(self, employee_id: int) -> dict:
        employee: Optional[User] = self._users.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        today = self._today()
        start = window_start(today, TEAM_STATS_DAYS)
        records = self._attendance.list_for_user_between(employee_id, start, today)
        reports = self._reports.list_for_user_between(employee_id, start, today)
        hours = sum(r.work_hours or 0 for r in records)

        return {
            "employee": employee.public_profile(today),
            "stats": {
                "attendance_days": len(records),
                "reports_submitted": len(reports),
                "average_work_hours": round_half_up(hours / len(records), 2) if records else 0,
                "attendance_percentage": percentage(len(records), TEAM_STATS_DAYS),
            },
        }
