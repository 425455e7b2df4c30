from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import iso
from ..core.enums import TaskPriority, TaskStatus

UserRef = Callable[[int], object]


@dataclass(frozen=True)
class TaskComment:
    comment_id: int
    task_id: int
    user_id: int
    text: str
    created_at: Optional[datetime] = None

    def to_dict(self, user_ref: UserRef) -> dict:
        return {
            "id": self.comment_id,
            "user": user_ref(self.user_id),
            "text": self.text,
            "created_at": iso(self.created_at),
        }


@dataclass(frozen=True)
class TaskAttachment:
    attachment_id: int
    task_id: int
    file_name: str
    file_path: str
    file_url: str
    file_size: Optional[int]
    mime_type: Optional[str]
    uploaded_by: int
    uploaded_at: Optional[datetime] = None

    def to_dict(self, user_ref: UserRef) -> dict:
        return {
            "id": self.attachment_id,
            "file_name": self.file_name,
            "file_path": self.file_path,
            "file_url": self.file_url,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "uploaded_by": user_ref(self.uploaded_by),
            "uploaded_at": iso(self.uploaded_at),
        }


@dataclass(frozen=True)
class Task:
    task_id: int
    title: str
    description: str
    assigned_to: int
    assigned_by: int
    priority: TaskPriority
    status: TaskStatus
    due_date: datetime
    completed_at: Optional[datetime] = None
    tags: list[str] = field(default_factory=list)
    attachments: list[TaskAttachment] = field(default_factory=list)
    comments: list[TaskComment] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_overdue(self, now: datetime) -> bool:
        return self.due_date < now and self.status != TaskStatus.COMPLETED

    def can_access(self, user_id: int) -> bool:
        """Assignee and assigner share view/edit rights."""
        return user_id in (self.assigned_to, self.assigned_by)

    def to_dict(self, *, now: datetime, user_ref: UserRef) -> dict:
        return {
            "id": self.task_id,
            "title": self.title,
            "description": self.description,
            "assigned_to": user_ref(self.assigned_to),
            "assigned_by": user_ref(self.assigned_by),
            "priority": self.priority.value,
            "status": self.status.value,
            "due_date": iso(self.due_date),
            "completed_at": iso(self.completed_at),
            "tags": list(self.tags),
            "attachments": [a.to_dict(user_ref) for a in self.attachments],
            "comments": [c.to_dict(user_ref) for c in self.comments],
            "is_overdue": self.is_overdue(now),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
