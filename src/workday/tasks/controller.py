from __future__ import annotations

from flask import Flask, request

from ..common.decorators import current_role, current_user_id, login_required, manager_required
from ..common.pagination import normalize_page
from ..common.responses import ok
from ..core.constants import DEFAULT_PAGE_SIZE
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.task_service

    @app.route("/api/tasks/stats", methods=["GET"], endpoint="tasks_stats")
    @login_required
    def stats():
        return ok(service.stats(user_id=current_user_id(), role=current_role()))

    @app.route("/api/tasks", methods=["POST"], endpoint="tasks_create")
    @manager_required
    def create():
        task = service.create(
            current_role=current_role(),
            manager_id=current_user_id(),
            fields=request.get_json(silent=True) or {},
        )
        return ok(service.describe(task), message="Task created successfully", status=201)

    @app.route("/api/tasks", methods=["GET"], endpoint="tasks_list")
    @login_required
    def list_tasks():
        page, limit = normalize_page(
            request.args.get("page"), request.args.get("limit"), default_limit=DEFAULT_PAGE_SIZE
        )
        result = service.list_for(
            user_id=current_user_id(),
            role=current_role(),
            status=request.args.get("status"),
            priority=request.args.get("priority"),
            search=request.args.get("search"),
            page=page,
            limit=limit,
        )
        return ok({"tasks": service.describe_many(result.items), "pagination": result.meta()})

    @app.route("/api/tasks/<int:task_id>", methods=["GET"], endpoint="tasks_get")
    @login_required
    def get(task_id: int):
        return ok(service.describe(service.get(current_user_id(), task_id)))

    @app.route("/api/tasks/<int:task_id>", methods=["PUT"], endpoint="tasks_update")
    @login_required
    def update(task_id: int):
        task = service.update(current_user_id(), task_id, request.get_json(silent=True) or {})
        return ok(service.describe(task), message="Task updated successfully")

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"], endpoint="tasks_delete")
    @manager_required
    def delete(task_id: int):
        service.delete(current_user_id(), task_id)
        return ok(message="Task deleted successfully")

    @app.route("/api/tasks/<int:task_id>/status", methods=["PATCH"], endpoint="tasks_status")
    @login_required
    def update_status(task_id: int):
        data = request.get_json(silent=True) or {}
        task = service.update_status(current_user_id(), task_id, data.get("status"))
        return ok(service.describe(task), message="Task status updated successfully")

    @app.route("/api/tasks/<int:task_id>/comments", methods=["POST"], endpoint="tasks_comment")
    @login_required
    def comment(task_id: int):
        data = request.get_json(silent=True) or {}
        task = service.add_comment(current_user_id(), task_id, data.get("text"))
        return ok(service.describe(task), message="Comment added successfully", status=201)

    @app.route("/api/tasks/<int:task_id>/attachments", methods=["POST"], endpoint="tasks_attach")
    @login_required
    def attach(task_id: int):
        task = service.add_attachment(current_user_id(), task_id, request.files.get("file"))
        return ok(service.describe(task), message="File uploaded successfully", status=201)

    @app.route(
        "/api/tasks/<int:task_id>/attachments/<int:attachment_id>",
        methods=["DELETE"],
        endpoint="tasks_detach",
    )
    @login_required
    def detach(task_id: int, attachment_id: int):
        service.delete_attachment(current_user_id(), task_id, attachment_id)
        return ok(message="Attachment deleted successfully")
