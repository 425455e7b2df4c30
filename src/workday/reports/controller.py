from __future__ import annotations

from flask import Flask, request

from ..common.decorators import current_role, current_user_id, login_required, manager_required
from ..common.pagination import normalize_page
from ..common.responses import ok
from ..common.validators import optional_date, optional_int
from ..core.constants import DEFAULT_PAGE_SIZE
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    def _describe(reports) -> list[dict]:
        cache: dict[int, object] = {}

        def ref(user_id):
            if user_id is None:
                return None
            if user_id not in cache:
                user = container.users_repo.get_by_id(user_id)
                cache[user_id] = user.summary() if user else user_id
            return cache[user_id]

        return [r.to_dict(user=ref(r.user_id), reviewer=ref(r.reviewed_by)) for r in reports]

    @app.route("/api/reports", methods=["POST"], endpoint="reports_create")
    @login_required
    def create():
        report = service.create(current_user_id(), request.get_json(silent=True) or {})
        return ok(report.to_dict(), message="Daily report submitted successfully", status=201)

    @app.route("/api/reports/today", methods=["GET"], endpoint="reports_today")
    @login_required
    def today():
        report = service.today(current_user_id())
        return ok(report.to_dict() if report else None)

    @app.route("/api/reports/history", methods=["GET"], endpoint="reports_history")
    @login_required
    def history():
        page, limit = normalize_page(
            request.args.get("page"), request.args.get("limit"), default_limit=DEFAULT_PAGE_SIZE
        )
        result = service.history(current_user_id(), page=page, limit=limit)
        return ok({"reports": _describe(result.items), "pagination": result.meta()})

    @app.route("/api/reports/stats", methods=["GET"], endpoint="reports_stats")
    @login_required
    def stats():
        now = container.clock.now()
        year = optional_int(request.args.get("year"), "year", now.year)
        month = optional_int(request.args.get("month"), "month", now.month)
        reports = service.monthly(current_user_id(), year, month)
        return ok(
            {
                "year": year,
                "month": month,
                "stats": service.summarize(reports).to_dict(),
                "reports": [r.to_dict() for r in reports],
            }
        )

    @app.route("/api/reports/<int:report_id>", methods=["PUT"], endpoint="reports_update")
    @login_required
    def update(report_id: int):
        report = service.update(current_user_id(), report_id, request.get_json(silent=True) or {})
        return ok(report.to_dict(), message="Report updated successfully")

    @app.route("/api/reports/<int:report_id>", methods=["DELETE"], endpoint="reports_delete")
    @login_required
    def delete(report_id: int):
        service.delete(current_user_id(), report_id)
        return ok(message="Report deleted successfully")

    @app.route("/api/reports/all", methods=["GET"], endpoint="reports_all")
    @manager_required
    def all_reports():
        listing = service.list_all(
            work_date=optional_date(request.args.get("date"), "date"),
            needs_review=(request.args.get("needs_review") or "").lower() == "true",
        )
        return ok({"summary": listing.summary, "reports": _describe(listing.reports)})

    @app.route("/api/reports/<int:report_id>/review", methods=["PUT"], endpoint="reports_review")
    @manager_required
    def review(report_id: int):
        data = request.get_json(silent=True) or {}
        report = service.review(
            current_role=current_role(),
            manager_id=current_user_id(),
            report_id=report_id,
            comment=data.get("manager_comment") or data.get("comment") or "",
        )
        return ok(_describe([report])[0], message="Review added successfully")
