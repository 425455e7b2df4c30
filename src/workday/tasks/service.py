from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_due_date
from ..common.pagination import Page
from ..common.validators import clean_list, require_choice, require_max_length, require_non_empty
from ..core.clock import Clock
from ..core.constants import COMMENT_MAX, TASK_DESCRIPTION_MAX, TASK_TITLE_MAX
from ..core.enums import Role, TaskPriority, TaskStatus
from ..core.exceptions import (
    AuthorizationError,
    InvalidAssigneeError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..storage.base import AttachmentStorage
from ..users.repository import UserRepository
from .model import Task
from .repository import TaskFilter, TaskRepository

logger = logging.getLogger(__name__)


def _clean_due_date(value) -> Any:
    if value in (None, ""):
        raise ValidationError("Due date is required")
    try:
        return parse_due_date(value)
    except ValueError:
        raise ValidationError("Due date must be an ISO date or datetime")


class TaskService:
    def __init__(self, tasks: TaskRepository, users: UserRepository, storage: AttachmentStorage, clock: Clock):
        self._tasks = tasks
        self._users = users
        self._storage = storage
        self._clock = clock

    def create(self, *, current_role: Role, manager_id: int, fields: dict[str, Any]) -> Task:
        if current_role != Role.MANAGER:
            raise AuthorizationError("Access denied. Manager privileges required.")

        title = require_non_empty(fields.get("title"), "Title")
        require_max_length(title, "Title", TASK_TITLE_MAX)
        description = require_non_empty(fields.get("description"), "Description")
        require_max_length(description, "Description", TASK_DESCRIPTION_MAX)
        priority = require_choice(fields.get("priority") or TaskPriority.MEDIUM, TaskPriority, "Priority")
        due_date = _clean_due_date(fields.get("due_date"))
        tags = clean_list(fields.get("tags"))

        assignee_id = fields.get("assigned_to")
        try:
            assignee = self._users.get_by_id(int(assignee_id)) if assignee_id not in (None, "") else None
        except (TypeError, ValueError):
            assignee = None
        if not assignee:
            raise InvalidAssigneeError("Assigned user not found")
        if assignee.role != Role.EMPLOYEE:
            raise InvalidAssigneeError("Tasks can only be assigned to employees")

        task_id = self._tasks.create(
            fields={
                "title": title,
                "description": description,
                "assigned_to": assignee.user_id,
                "priority": priority,
                "status": TaskStatus.PENDING,
                "due_date": due_date,
                "tags": tags,
            },
            assigned_by=manager_id,
            created_at=self._clock.now(),
        )
        logger.info("task %s assigned to user %s by %s", task_id, assignee.user_id, manager_id)
        return self._reload(task_id)

    def get(self, actor_id: int, task_id: int) -> Task:
        task = self._get(task_id)
        self._require_access(task, actor_id, "access")
        return task

    def update(self, actor_id: int, task_id: int, fields: dict[str, Any]) -> Task:
        task = self._get(task_id)
        self._require_access(task, actor_id, "update")

        values: dict[str, Any] = {}
        if fields.get("title"):
            values["title"] = require_max_length(str(fields["title"]).strip(), "Title", TASK_TITLE_MAX)
        if fields.get("description"):
            values["description"] = require_max_length(str(fields["description"]), "Description", TASK_DESCRIPTION_MAX)
        if fields.get("priority"):
            values["priority"] = require_choice(fields["priority"], TaskPriority, "Priority")
        if fields.get("due_date"):
            values["due_date"] = _clean_due_date(fields["due_date"])
        if fields.get("tags") is not None:
            values["tags"] = clean_list(fields["tags"])
        if fields.get("status"):
            values.update(self._status_fields(fields["status"]))

        if values:
            self._tasks.update_fields(task_id, values, updated_at=self._clock.now())
        return self._reload(task_id)

    def update_status(self, actor_id: int, task_id: int, status) -> Task:
        if not status:
            raise ValidationError("Please provide status")
        task = self._get(task_id)
        self._require_access(task, actor_id, "update")

        self._tasks.update_fields(task_id, self._status_fields(status), updated_at=self._clock.now())
        return self._reload(task_id)

    def _status_fields(self, status) -> dict[str, Any]:
        """Completion stamps ``completed_at``; other moves leave it as is."""
        new_status = require_choice(status, TaskStatus, "Status")
        values: dict[str, Any] = {"status": new_status}
        if new_status == TaskStatus.COMPLETED:
            values["completed_at"] = self._clock.now()
        return values

    def add_comment(self, actor_id: int, task_id: int, text: Optional[str]) -> Task:
        if not text or not str(text).strip():
            raise ValidationError("Please provide comment text")
        body = require_max_length(str(text).strip(), "Comment", COMMENT_MAX)

        task = self._get(task_id)
        self._require_access(task, actor_id, "comment on")
        self._tasks.add_comment(task_id=task_id, user_id=actor_id, text=body, created_at=self._clock.now())
        return self._reload(task_id)

    def add_attachment(self, actor_id: int, task_id: int, upload) -> Task:
        """Store the upload, then attach it.

        If anything fails after the file hit the storage, the file is removed
        again and the original error propagates.
        """

        stored = self._storage.save(upload)
        try:
            task = self._get(task_id)
            self._require_access(task, actor_id, "upload to")
            self._tasks.add_attachment(
                task_id=task_id,
                stored=stored,
                uploaded_by=actor_id,
                uploaded_at=self._clock.now(),
            )
            return self._reload(task_id)
        except Exception:
            self._discard_file(stored.path)
            raise

    def delete_attachment(self, actor_id: int, task_id: int, attachment_id: int) -> None:
        task = self._get(task_id)
        attachment = next((a for a in task.attachments if a.attachment_id == attachment_id), None)
        if attachment is None:
            raise NotFoundError("Attachment not found")
        if actor_id not in (attachment.uploaded_by, task.assigned_by):
            raise AuthorizationError("Not authorized to delete this attachment")

        self._tasks.delete_attachment(attachment_id)
        self._discard_file(attachment.file_path)

    def delete(self, actor_id: int, task_id: int) -> None:
        task = self._get(task_id)
        if task.assigned_by != actor_id:
            raise AuthorizationError("Not authorized to delete this task")

        for attachment in task.attachments:
            self._discard_file(attachment.file_path)
        self._tasks.delete(task_id)
        logger.info("task %s deleted by %s", task_id, actor_id)

    def list_for(
        self,
        *,
        user_id: int,
        role: Role,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Task]:
        criteria = TaskFilter(
            status=require_choice(status, TaskStatus, "Status").value if status else None,
            priority=require_choice(priority, TaskPriority, "Priority").value if priority else None,
            search=(search or "").strip() or None,
            **self._owner_scope(user_id, role),
        )
        total = self._tasks.count_filtered(criteria)
        items = self._tasks.list_filtered(criteria, offset=(page - 1) * limit, limit=limit)
        return Page(items=items, page=page, limit=limit, total=total)

    def stats(self, *, user_id: int, role: Role) -> dict[str, int]:
        counts = self._tasks.status_counts(TaskFilter(**self._owner_scope(user_id, role)))
        out = {s.value: int(counts.get(s.value, 0)) for s in TaskStatus}
        out["total"] = sum(out.values())
        return out

    def describe(self, task: Task) -> dict:
        return self.describe_many([task])[0]

    def describe_many(self, tasks: Sequence[Task]) -> list[dict]:
        """JSON shape with user references expanded to summaries."""
        cache: dict[int, object] = {}

        def user_ref(user_id: int):
            if user_id not in cache:
                user = self._users.get_by_id(user_id)
                cache[user_id] = user.summary() if user else user_id
            return cache[user_id]

        now = self._clock.now()
        return [t.to_dict(now=now, user_ref=user_ref) for t in tasks]

    @staticmethod
    def _owner_scope(user_id: int, role: Role) -> dict[str, int]:
        return {"assigned_by": user_id} if role == Role.MANAGER else {"assigned_to": user_id}

    @staticmethod
    def _require_access(task: Task, actor_id: int, action: str) -> None:
        if not task.can_access(actor_id):
            raise AuthorizationError(f"Not authorized to {action} this task")

    def _discard_file(self, path: str) -> None:
        try:
            self._storage.delete(path)
        except Exception:
            logger.warning("could not delete stored file %s", path, exc_info=True)

    def _get(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _reload(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(task_id)
        if task is None:
            raise StorageError("Task vanished after write")
        return task
