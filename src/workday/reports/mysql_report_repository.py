from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..core.enums import Productivity
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_list, fetchall, fetchone, load_list
from .model import DailyReport
from .repository import ReportRepository

_COLUMNS = """
    report_id, user_id, work_date, attendance_id, work_done, challenges, plan_for_tomorrow,
    projects, hours_worked, productivity, needs_review, manager_comment, reviewed_by,
    reviewed_at, created_at, updated_at
"""

_WRITABLE = (
    "work_done",
    "challenges",
    "plan_for_tomorrow",
    "projects",
    "hours_worked",
    "productivity",
    "needs_review",
)


def _to_report(r: dict) -> DailyReport:
    return DailyReport(
        report_id=int(r["report_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        attendance_id=int(r["attendance_id"]) if r.get("attendance_id") is not None else None,
        work_done=r["work_done"],
        challenges=r.get("challenges") or "",
        plan_for_tomorrow=r.get("plan_for_tomorrow") or "",
        projects=load_list(r.get("projects")),
        hours_worked=float(r.get("hours_worked") or 0),
        productivity=Productivity(r["productivity"]),
        needs_review=bool(r.get("needs_review")),
        manager_comment=r.get("manager_comment"),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=r.get("reviewed_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _column_value(name: str, value: Any) -> Any:
    if name == "projects":
        return dump_list(value)
    if name == "productivity":
        return value.value if isinstance(value, Productivity) else str(value)
    if name == "needs_review":
        return int(bool(value))
    return value


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, report_id: int) -> Optional[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM daily_reports WHERE report_id=%s", (int(report_id),))
            r = fetchone(cur)
            return _to_report(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM daily_reports WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_report(r) if r else None

    def create(self, *, user_id: int, work_date: date, attendance_id: Optional[int], fields: dict[str, Any],
               created_at: datetime) -> int:
        names = [n for n in _WRITABLE if n in fields]
        columns = ["user_id", "work_date", "attendance_id", *names, "created_at", "updated_at"]
        values = [int(user_id), work_date, attendance_id, *(_column_value(n, fields[n]) for n in names),
                  created_at, created_at]
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO daily_reports({', '.join(columns)}) VALUES({placeholders})",
                tuple(values),
            )
            return int(cur.lastrowid)

    def update_fields(self, report_id: int, fields: dict[str, Any], *, updated_at: datetime) -> bool:
        names = [n for n in _WRITABLE if n in fields]
        assignments = ", ".join(f"{n}=%s" for n in [*names, "updated_at"])
        values = [*(_column_value(n, fields[n]) for n in names), updated_at, int(report_id)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE daily_reports SET {assignments} WHERE report_id=%s", tuple(values))
            return cur.rowcount > 0

    def set_review(self, report_id: int, *, comment: str, reviewer_id: int, reviewed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE daily_reports
                SET manager_comment=%s, reviewed_by=%s, reviewed_at=%s, updated_at=%s
                WHERE report_id=%s
                """,
                (comment, int(reviewer_id), reviewed_at, reviewed_at, int(report_id)),
            )
            return cur.rowcount > 0

    def delete(self, report_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM daily_reports WHERE report_id=%s", (int(report_id),))
            return cur.rowcount > 0

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM daily_reports
                WHERE user_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (int(user_id), start, end),
            )
            return [_to_report(r) for r in fetchall(cur)]

    def list_recent_for_user(self, user_id: int, *, offset: int, limit: int) -> Sequence[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM daily_reports
                WHERE user_id=%s
                ORDER BY work_date DESC
                LIMIT %s OFFSET %s
                """,
                (int(user_id), int(limit), int(offset)),
            )
            return [_to_report(r) for r in fetchall(cur)]

    def count_for_user(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM daily_reports WHERE user_id=%s", (int(user_id),))
            return int(fetchone(cur)["n"])

    def list_filtered(self, *, work_date: Optional[date] = None, needs_review: bool = False) -> Sequence[DailyReport]:
        where = []
        params: list[Any] = []
        if work_date is not None:
            where.append("work_date=%s")
            params.append(work_date)
        if needs_review:
            where.append("needs_review=1")
        clause = f"WHERE {' AND '.join(where)}" if where else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM daily_reports {clause} ORDER BY work_date DESC, created_at DESC",
                tuple(params),
            )
            return [_to_report(r) for r in fetchall(cur)]

    def count_for_date(self, work_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM daily_reports WHERE work_date=%s", (work_date,))
            return int(fetchone(cur)["n"])

    def count_pending_review(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM daily_reports WHERE needs_review=1 AND reviewed_at IS NULL")
            return int(fetchone(cur)["n"])
