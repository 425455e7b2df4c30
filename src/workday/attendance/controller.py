from __future__ import annotations

from flask import Flask, request

from ..common.decorators import current_user_id, login_required, manager_required
from ..common.pagination import normalize_page
from ..common.responses import ok
from ..common.validators import optional_date, optional_int
from ..core.constants import DEFAULT_EMPLOYEE_PAGE_SIZE, DEFAULT_PAGE_SIZE, DEFAULT_STATS_DAYS
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @login_required
    def checkin():
        data = request.get_json(silent=True) or {}
        record = service.check_in(current_user_id(), notes=data.get("notes"))
        message = "Attendance marked (Late arrival)" if record.is_late else "Attendance marked successfully"
        return ok(record.to_dict(), message=message, status=201)

    @app.route("/api/attendance/checkout", methods=["PUT"], endpoint="attendance_checkout")
    @login_required
    def checkout():
        record = service.check_out(current_user_id())
        return ok(record.to_dict(), message="Check-out successful")

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        record = service.today(current_user_id())
        return ok(record.to_dict() if record else None)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        page, limit = normalize_page(
            request.args.get("page"), request.args.get("limit"), default_limit=DEFAULT_PAGE_SIZE
        )
        result = service.history(current_user_id(), page=page, limit=limit)
        return ok({"attendances": [r.to_dict() for r in result.items], "pagination": result.meta()})

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @login_required
    def stats():
        days = optional_int(request.args.get("days"), "days", DEFAULT_STATS_DAYS)
        return ok(service.stats(current_user_id(), days).to_dict())

    @app.route("/api/attendance/monthly", methods=["GET"], endpoint="attendance_monthly")
    @login_required
    def monthly():
        now = container.clock.now()
        year = optional_int(request.args.get("year"), "year", now.year)
        month = optional_int(request.args.get("month"), "month", now.month)
        records = service.monthly(current_user_id(), year, month)
        return ok(
            {
                "year": year,
                "month": month,
                "attendances": [r.to_dict() for r in records],
                "summary": service.summarize_month(records).to_dict(),
            }
        )

    @app.route("/api/attendance/all", methods=["GET"], endpoint="attendance_all")
    @manager_required
    def all_employees():
        overview = service.day_overview(optional_date(request.args.get("date"), "date"))
        return ok({"summary": overview.summary, "employees": overview.rows})

    @app.route("/api/attendance/employee/<int:employee_id>", methods=["GET"], endpoint="attendance_employee")
    @manager_required
    def employee(employee_id: int):
        page, limit = normalize_page(
            request.args.get("page"), request.args.get("limit"), default_limit=DEFAULT_EMPLOYEE_PAGE_SIZE
        )
        result = service.for_employee(employee_id, page=page, limit=limit)
        return ok({"attendances": [r.to_dict() for r in result.items], "pagination": result.meta()})
