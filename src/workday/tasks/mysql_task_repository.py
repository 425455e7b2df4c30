from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import TaskPriority, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_list, fetchall, fetchone, load_list
from ..storage.base import StoredFile
from .model import Task, TaskAttachment, TaskComment
from .repository import TaskFilter, TaskRepository

_COLUMNS = """
    task_id, title, description, assigned_to, assigned_by, priority, status, due_date,
    completed_at, tags, created_at, updated_at
"""

_ATTACHMENT_COLUMNS = """
    attachment_id, task_id, file_name, file_path, file_url, file_size, mime_type,
    uploaded_by, uploaded_at
"""

_WRITABLE = ("title", "description", "assigned_to", "priority", "status", "due_date", "completed_at", "tags")


def _to_attachment(r: dict) -> TaskAttachment:
    return TaskAttachment(
        attachment_id=int(r["attachment_id"]),
        task_id=int(r["task_id"]),
        file_name=r["file_name"],
        file_path=r["file_path"],
        file_url=r["file_url"],
        file_size=int(r["file_size"]) if r.get("file_size") is not None else None,
        mime_type=r.get("mime_type"),
        uploaded_by=int(r["uploaded_by"]),
        uploaded_at=r.get("uploaded_at"),
    )


def _to_comment(r: dict) -> TaskComment:
    return TaskComment(
        comment_id=int(r["comment_id"]),
        task_id=int(r["task_id"]),
        user_id=int(r["user_id"]),
        text=r["text"],
        created_at=r.get("created_at"),
    )


def _to_task(r: dict, attachments=(), comments=()) -> Task:
    return Task(
        task_id=int(r["task_id"]),
        title=r["title"],
        description=r["description"],
        assigned_to=int(r["assigned_to"]),
        assigned_by=int(r["assigned_by"]),
        priority=TaskPriority(r["priority"]),
        status=TaskStatus(r["status"]),
        due_date=r["due_date"],
        completed_at=r.get("completed_at"),
        tags=load_list(r.get("tags")),
        attachments=list(attachments),
        comments=list(comments),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _column_value(name: str, value: Any) -> Any:
    if name == "tags":
        return dump_list(value)
    if name in ("priority", "status"):
        return getattr(value, "value", value)
    return value


def _where(criteria: TaskFilter) -> tuple[str, list[Any]]:
    clauses = []
    params: list[Any] = []
    if criteria.assigned_by is not None:
        clauses.append("assigned_by=%s")
        params.append(int(criteria.assigned_by))
    if criteria.assigned_to is not None:
        clauses.append("assigned_to=%s")
        params.append(int(criteria.assigned_to))
    if criteria.status:
        clauses.append("status=%s")
        params.append(criteria.status)
    if criteria.priority:
        clauses.append("priority=%s")
        params.append(criteria.priority)
    if criteria.search:
        # utf8mb4_unicode_ci makes LIKE case-insensitive
        clauses.append("(title LIKE %s OR description LIKE %s)")
        pattern = f"%{criteria.search}%"
        params.extend([pattern, pattern])
    return (f"WHERE {' AND '.join(clauses)}" if clauses else ""), params


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM tasks WHERE task_id=%s", (int(task_id),))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                f"SELECT {_ATTACHMENT_COLUMNS} FROM task_attachments WHERE task_id=%s ORDER BY attachment_id",
                (int(task_id),),
            )
            attachments = [_to_attachment(a) for a in fetchall(cur)]
            cur.execute(
                """
                SELECT comment_id, task_id, user_id, text, created_at
                FROM task_comments
                WHERE task_id=%s
                ORDER BY comment_id
                """,
                (int(task_id),),
            )
            comments = [_to_comment(c) for c in fetchall(cur)]
            return _to_task(r, attachments, comments)

    def create(self, *, fields: dict[str, Any], assigned_by: int, created_at: datetime) -> int:
        names = [n for n in _WRITABLE if n in fields]
        columns = [*names, "assigned_by", "created_at", "updated_at"]
        values = [*(_column_value(n, fields[n]) for n in names), int(assigned_by), created_at, created_at]
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"INSERT INTO tasks({', '.join(columns)}) VALUES({placeholders})", tuple(values))
            return int(cur.lastrowid)

    def update_fields(self, task_id: int, fields: dict[str, Any], *, updated_at: datetime) -> bool:
        names = [n for n in _WRITABLE if n in fields]
        assignments = ", ".join(f"{n}=%s" for n in [*names, "updated_at"])
        values = [*(_column_value(n, fields[n]) for n in names), updated_at, int(task_id)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE tasks SET {assignments} WHERE task_id=%s", tuple(values))
            return cur.rowcount > 0

    def delete(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM tasks WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0

    def list_filtered(self, criteria: TaskFilter, *, offset: int, limit: int) -> Sequence[Task]:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM tasks {where} ORDER BY created_at DESC, task_id DESC LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            rows = fetchall(cur)
            if not rows:
                return []

            ids = [int(r["task_id"]) for r in rows]
            marks = ",".join(["%s"] * len(ids))
            cur.execute(
                f"SELECT {_ATTACHMENT_COLUMNS} FROM task_attachments WHERE task_id IN ({marks}) ORDER BY attachment_id",
                tuple(ids),
            )
            attachments: dict[int, list[TaskAttachment]] = {}
            for a in fetchall(cur):
                attachments.setdefault(int(a["task_id"]), []).append(_to_attachment(a))
            cur.execute(
                f"""
                SELECT comment_id, task_id, user_id, text, created_at
                FROM task_comments
                WHERE task_id IN ({marks})
                ORDER BY comment_id
                """,
                tuple(ids),
            )
            comments: dict[int, list[TaskComment]] = {}
            for c in fetchall(cur):
                comments.setdefault(int(c["task_id"]), []).append(_to_comment(c))

            return [
                _to_task(r, attachments.get(int(r["task_id"]), []), comments.get(int(r["task_id"]), []))
                for r in rows
            ]

    def count_filtered(self, criteria: TaskFilter) -> int:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM tasks {where}", tuple(params))
            return int(fetchone(cur)["n"])

    def status_counts(self, criteria: TaskFilter) -> dict[str, int]:
        where, params = _where(criteria)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT status, COUNT(*) AS n FROM tasks {where} GROUP BY status", tuple(params))
            return {r["status"]: int(r["n"]) for r in fetchall(cur)}

    def add_comment(self, *, task_id: int, user_id: int, text: str, created_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO task_comments(task_id, user_id, text, created_at) VALUES(%s,%s,%s,%s)",
                (int(task_id), int(user_id), text, created_at),
            )
            comment_id = int(cur.lastrowid)
            cur.execute("UPDATE tasks SET updated_at=%s WHERE task_id=%s", (created_at, int(task_id)))
            return comment_id

    def add_attachment(self, *, task_id: int, stored: StoredFile, uploaded_by: int, uploaded_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO task_attachments(task_id, file_name, file_path, file_url, file_size,
                                             mime_type, uploaded_by, uploaded_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(task_id),
                    stored.file_name,
                    stored.path,
                    stored.url,
                    stored.size,
                    stored.mime_type,
                    int(uploaded_by),
                    uploaded_at,
                ),
            )
            return int(cur.lastrowid)

    def delete_attachment(self, attachment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM task_attachments WHERE attachment_id=%s", (int(attachment_id),))
            return cur.rowcount > 0
