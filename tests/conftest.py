from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

import pytest
from werkzeug.security import generate_password_hash

from workday.attendance.model import AttendanceRecord
from workday.container import wire
from workday.core.clock import FixedClock
from workday.core.enums import AttendanceStatus, Role, TaskPriority, TaskStatus
from workday.core.exceptions import DuplicateRecordError, StorageError
from workday.reports.model import DailyReport
from workday.storage.base import StoredFile
from workday.tasks.model import Task, TaskAttachment, TaskComment
from workday.users.model import User, profile_initial_for


class InMemoryUsers:
    def __init__(self):
        self._by_id: dict[int, User] = {}
        self._id = 0

    def add(self, *, name: str, email: str, role: Role = Role.EMPLOYEE, password: str = "secret1",
            date_of_birth: date = date(1990, 1, 1), is_active: bool = True) -> User:
        self._id += 1
        user = User(
            user_id=self._id,
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            date_of_birth=date_of_birth,
            profile_initial=profile_initial_for(name),
            is_active=is_active,
            created_at=datetime(2025, 1, 1),
        )
        self._by_id[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.email == email), None)

    def create_user(self, *, name, email, password_hash, role, date_of_birth, profile_initial, created_at) -> int:
        if self.get_by_email(email):
            raise DuplicateRecordError("Record already exists")
        self._id += 1
        self._by_id[self._id] = User(
            user_id=self._id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            date_of_birth=date_of_birth,
            profile_initial=profile_initial,
            created_at=created_at,
        )
        return self._id

    def update_last_login(self, user_id: int, when: datetime) -> bool:
        user = self._by_id.get(user_id)
        if not user:
            return False
        self._by_id[user_id] = replace(user, last_login=when)
        return True

    def list_active(self):
        return [u for u in self._by_id.values() if u.is_active]

    def list_by_role(self, role: Role, *, active_only: bool = False):
        items = [u for u in self._by_id.values() if u.role == role and (u.is_active or not active_only)]
        return sorted(items, key=lambda u: u.user_id, reverse=True)


class InMemoryAttendance:
    def __init__(self):
        self._by_id: dict[int, AttendanceRecord] = {}
        self._id = 0

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self._id = max(self._id, record.attendance_id)
        self._by_id[record.attendance_id] = record
        return record

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._by_id.get(attendance_id)

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self._by_id.values() if r.user_id == user_id and r.work_date == work_date), None)

    def create_checkin(self, *, user_id, work_date, check_in_time, status, is_late, notes=None) -> int:
        if self.get_for_user_and_date(user_id, work_date):
            raise DuplicateRecordError("Record already exists")
        self._id += 1
        self._by_id[self._id] = AttendanceRecord(
            attendance_id=self._id,
            user_id=user_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=None,
            status=status,
            is_late=is_late,
            notes=notes,
            created_at=check_in_time,
            updated_at=check_in_time,
        )
        return self._id

    def update_checkout(self, *, attendance_id, check_out_time, work_hours) -> bool:
        rec = self._by_id.get(attendance_id)
        if rec is None or rec.check_out_time is not None:
            return False
        self._by_id[attendance_id] = replace(
            rec, check_out_time=check_out_time, work_hours=work_hours, updated_at=check_out_time
        )
        return True

    def list_for_user_between(self, user_id, start, end):
        items = [r for r in self._by_id.values() if r.user_id == user_id and start <= r.work_date <= end]
        return sorted(items, key=lambda r: r.work_date, reverse=True)

    def list_recent_for_user(self, user_id, *, offset, limit):
        items = sorted((r for r in self._by_id.values() if r.user_id == user_id), key=lambda r: r.work_date,
                       reverse=True)
        return items[offset:offset + limit]

    def count_for_user(self, user_id) -> int:
        return sum(1 for r in self._by_id.values() if r.user_id == user_id)

    def list_for_date(self, work_date):
        return sorted((r for r in self._by_id.values() if r.work_date == work_date), key=lambda r: r.check_in_time)

    def daily_counts_between(self, start, end) -> dict[date, int]:
        counts: dict[date, int] = {}
        for r in self._by_id.values():
            if start <= r.work_date <= end:
                counts[r.work_date] = counts.get(r.work_date, 0) + 1
        return counts


class InMemoryReports:
    def __init__(self):
        self._by_id: dict[int, DailyReport] = {}
        self._id = 0

    def get_by_id(self, report_id):
        return self._by_id.get(report_id)

    def get_for_user_and_date(self, user_id, work_date):
        return next((r for r in self._by_id.values() if r.user_id == user_id and r.work_date == work_date), None)

    def create(self, *, user_id, work_date, attendance_id, fields: dict[str, Any], created_at) -> int:
        if self.get_for_user_and_date(user_id, work_date):
            raise DuplicateRecordError("Record already exists")
        self._id += 1
        self._by_id[self._id] = DailyReport(
            report_id=self._id,
            user_id=user_id,
            work_date=work_date,
            attendance_id=attendance_id,
            created_at=created_at,
            updated_at=created_at,
            **fields,
        )
        return self._id

    def update_fields(self, report_id, fields, *, updated_at) -> bool:
        rec = self._by_id.get(report_id)
        if rec is None:
            return False
        self._by_id[report_id] = replace(rec, updated_at=updated_at, **fields)
        return True

    def set_review(self, report_id, *, comment, reviewer_id, reviewed_at) -> bool:
        rec = self._by_id.get(report_id)
        if rec is None:
            return False
        self._by_id[report_id] = replace(
            rec, manager_comment=comment, reviewed_by=reviewer_id, reviewed_at=reviewed_at, updated_at=reviewed_at
        )
        return True

    def delete(self, report_id) -> bool:
        return self._by_id.pop(report_id, None) is not None

    def list_for_user_between(self, user_id, start, end):
        items = [r for r in self._by_id.values() if r.user_id == user_id and start <= r.work_date <= end]
        return sorted(items, key=lambda r: r.work_date, reverse=True)

    def list_recent_for_user(self, user_id, *, offset, limit):
        items = sorted((r for r in self._by_id.values() if r.user_id == user_id), key=lambda r: r.work_date,
                       reverse=True)
        return items[offset:offset + limit]

    def count_for_user(self, user_id) -> int:
        return sum(1 for r in self._by_id.values() if r.user_id == user_id)

    def list_filtered(self, *, work_date=None, needs_review=False):
        items = [
            r for r in self._by_id.values()
            if (work_date is None or r.work_date == work_date) and (not needs_review or r.needs_review)
        ]
        return sorted(items, key=lambda r: r.work_date, reverse=True)

    def count_for_date(self, work_date) -> int:
        return sum(1 for r in self._by_id.values() if r.work_date == work_date)

    def count_pending_review(self) -> int:
        return sum(1 for r in self._by_id.values() if r.needs_review and r.reviewed_at is None)


class InMemoryTasks:
    def __init__(self):
        self._tasks: dict[int, Task] = {}
        self._attachments: dict[int, TaskAttachment] = {}
        self._comments: dict[int, TaskComment] = {}
        self._ids = {"task": 0, "attachment": 0, "comment": 0}
        self.fail_on_attach = False

    def _next(self, kind: str) -> int:
        self._ids[kind] += 1
        return self._ids[kind]

    def _compose(self, task: Task) -> Task:
        return replace(
            task,
            attachments=[a for a in self._attachments.values() if a.task_id == task.task_id],
            comments=[c for c in self._comments.values() if c.task_id == task.task_id],
        )

    def get_by_id(self, task_id):
        task = self._tasks.get(task_id)
        return self._compose(task) if task else None

    def create(self, *, fields, assigned_by, created_at) -> int:
        task_id = self._next("task")
        self._tasks[task_id] = Task(
            task_id=task_id,
            assigned_by=assigned_by,
            created_at=created_at,
            updated_at=created_at,
            **fields,
        )
        return task_id

    def update_fields(self, task_id, fields, *, updated_at) -> bool:
        task = self._tasks.get(task_id)
        if task is None:
            return False
        self._tasks[task_id] = replace(task, updated_at=updated_at, **fields)
        return True

    def delete(self, task_id) -> bool:
        self._attachments = {k: a for k, a in self._attachments.items() if a.task_id != task_id}
        self._comments = {k: c for k, c in self._comments.items() if c.task_id != task_id}
        return self._tasks.pop(task_id, None) is not None

    def _matching(self, criteria):
        out = []
        for t in self._tasks.values():
            if criteria.assigned_by is not None and t.assigned_by != criteria.assigned_by:
                continue
            if criteria.assigned_to is not None and t.assigned_to != criteria.assigned_to:
                continue
            if criteria.status and t.status.value != criteria.status:
                continue
            if criteria.priority and t.priority.value != criteria.priority:
                continue
            if criteria.search:
                needle = criteria.search.lower()
                if needle not in t.title.lower() and needle not in t.description.lower():
                    continue
            out.append(t)
        return sorted(out, key=lambda t: t.task_id, reverse=True)

    def list_filtered(self, criteria, *, offset, limit):
        return [self._compose(t) for t in self._matching(criteria)[offset:offset + limit]]

    def count_filtered(self, criteria) -> int:
        return len(self._matching(criteria))

    def status_counts(self, criteria) -> dict[str, int]:
        counts: dict[str, int] = {}
        for t in self._matching(criteria):
            counts[t.status.value] = counts.get(t.status.value, 0) + 1
        return counts

    def add_comment(self, *, task_id, user_id, text, created_at) -> int:
        comment_id = self._next("comment")
        self._comments[comment_id] = TaskComment(comment_id, task_id, user_id, text, created_at)
        return comment_id

    def add_attachment(self, *, task_id, stored: StoredFile, uploaded_by, uploaded_at) -> int:
        if self.fail_on_attach:
            raise StorageError("Database error")
        attachment_id = self._next("attachment")
        self._attachments[attachment_id] = TaskAttachment(
            attachment_id=attachment_id,
            task_id=task_id,
            file_name=stored.file_name,
            file_path=stored.path,
            file_url=stored.url,
            file_size=stored.size,
            mime_type=stored.mime_type,
            uploaded_by=uploaded_by,
            uploaded_at=uploaded_at,
        )
        return attachment_id

    def delete_attachment(self, attachment_id) -> bool:
        return self._attachments.pop(attachment_id, None) is not None


class InMemoryStorage:
    """Keeps uploads in a dict keyed by a fake path."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_on_delete = False
        self._n = 0

    def save(self, upload) -> StoredFile:
        self._n += 1
        path = f"/uploads/{self._n}-{upload.filename}"
        body = upload.read()
        self.files[path] = body
        return StoredFile(
            file_name=upload.filename,
            path=path,
            url=f"http://testserver{path}",
            size=len(body),
            mime_type=upload.mimetype or "application/octet-stream",
        )

    def delete(self, path: str) -> bool:
        self.deleted.append(path)
        if self.fail_on_delete:
            raise OSError("disk is read-only")
        return self.files.pop(path, None) is not None


@pytest.fixture
def clock():
    # A Wednesday morning in the office timezone
    return FixedClock(datetime(2025, 6, 11, 9, 0, 0))


@pytest.fixture
def users():
    return InMemoryUsers()


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def reports_repo():
    return InMemoryReports()


@pytest.fixture
def tasks_repo():
    return InMemoryTasks()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def manager(users):
    return users.add(name="maria", email="manager@example.com", role=Role.MANAGER, password="manager123")


@pytest.fixture
def employee(users):
    return users.add(name="eddie", email="employee@example.com", password="employee123",
                     date_of_birth=date(1995, 6, 11))


@pytest.fixture
def container(users, attendance_repo, reports_repo, tasks_repo, storage, clock):
    return wire(
        users_repo=users,
        attendance_repo=attendance_repo,
        reports_repo=reports_repo,
        tasks_repo=tasks_repo,
        storage=storage,
        clock=clock,
    )


@pytest.fixture
def make_record():
    def _make(attendance_id: int, user_id: int, work_date: date, *, hours: float = 8.0, late: bool = False,
              checked_out: bool = True) -> AttendanceRecord:
        check_in = datetime.combine(work_date, datetime.min.time()).replace(hour=10 if late else 9)
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            work_date=work_date,
            check_in_time=check_in,
            check_out_time=check_in.replace(hour=17) if checked_out else None,
            status=AttendanceStatus.LATE if late else AttendanceStatus.PRESENT,
            is_late=late,
            work_hours=hours if checked_out else 0.0,
        )

    return _make


@pytest.fixture
def make_task(tasks_repo, clock):
    def _make(*, assigned_to: int, assigned_by: int, status: TaskStatus = TaskStatus.PENDING,
              title: str = "Prepare quarterly deck", due_date: Optional[datetime] = None) -> int:
        return tasks_repo.create(
            fields={
                "title": title,
                "description": "Collect numbers and draft slides",
                "assigned_to": assigned_to,
                "priority": TaskPriority.MEDIUM,
                "status": status,
                "due_date": due_date or datetime(2025, 6, 20, 18, 0),
                "tags": [],
            },
            assigned_by=assigned_by,
            created_at=clock.now(),
        )

    return _make


