from __future__ import annotations

from flask import Flask, request

from ..common.decorators import login_required, manager_required
from ..common.responses import ok
from ..common.validators import optional_date
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.team_service

    @app.route("/api/users/birthdays/today", methods=["GET"], endpoint="birthdays_today")
    @login_required
    def birthdays_today():
        people = service.todays_birthdays()
        return ok(people, count=len(people))

    @app.route("/api/users/birthdays/upcoming", methods=["GET"], endpoint="birthdays_upcoming")
    @login_required
    def birthdays_upcoming():
        people = service.upcoming_birthdays()
        return ok(people, count=len(people))

    @app.route("/api/users/employees", methods=["GET"], endpoint="team_employees")
    @manager_required
    def employees():
        return ok(service.employees())

    @app.route("/api/users/employees/<int:employee_id>", methods=["GET"], endpoint="team_employee_details")
    @manager_required
    def employee_details(employee_id: int):
        return ok(service.employee_details(employee_id))

    @app.route("/api/users/team-stats", methods=["GET"], endpoint="team_stats")
    @manager_required
    def team_stats():
        return ok(service.team_stats())

    @app.route("/api/users/attendance-overview", methods=["GET"], endpoint="team_attendance_overview")
    @manager_required
    def attendance_overview():
        return ok(service.attendance_overview(optional_date(request.args.get("date"), "date")))
