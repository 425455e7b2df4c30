from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..storage.base import StoredFile
from .model import Task


@dataclass(frozen=True)
class TaskFilter:
    """Listing criteria; exactly one of ``assigned_by`` / ``assigned_to`` scopes the owner."""

    assigned_by: Optional[int] = None
    assigned_to: Optional[int] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None


class TaskRepository(Protocol):
    def get_by_id(self, task_id: int) -> Optional[Task]:
        """Task with its attachments and comments loaded."""

        raise NotImplementedError

    def create(self, *, fields: dict[str, Any], assigned_by: int, created_at: datetime) -> int:
        raise NotImplementedError

    def update_fields(self, task_id: int, fields: dict[str, Any], *, updated_at: datetime) -> bool:
        raise NotImplementedError

    def delete(self, task_id: int) -> bool:
        raise NotImplementedError

    def list_filtered(self, criteria: TaskFilter, *, offset: int, limit: int) -> Sequence[Task]:
        """Matching tasks, newest first."""

        raise NotImplementedError

    def count_filtered(self, criteria: TaskFilter) -> int:
        raise NotImplementedError

    def status_counts(self, criteria: TaskFilter) -> dict[str, int]:
        raise NotImplementedError

    def add_comment(self, *, task_id: int, user_id: int, text: str, created_at: datetime) -> int:
        raise NotImplementedError

    def add_attachment(self, *, task_id: int, stored: StoredFile, uploaded_by: int, uploaded_at: datetime) -> int:
        raise NotImplementedError

    def delete_attachment(self, attachment_id: int) -> bool:
        raise NotImplementedError
