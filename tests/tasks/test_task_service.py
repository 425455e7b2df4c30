from __future__ import annotations

import io
from datetime import datetime

import pytest
from werkzeug.datastructures import FileStorage

from workday.core.enums import Role, TaskPriority, TaskStatus
from workday.core.exceptions import (
    AuthorizationError,
    InvalidAssigneeError,
    NotFoundError,
    StorageError,
    ValidationError,
)


def _upload(name: str = "notes.txt", body: bytes = b"hello") -> FileStorage:
    return FileStorage(stream=io.BytesIO(body), filename=name, content_type="text/plain")


def _new_task(container, manager, employee, **overrides):
    fields = {
        "title": "  Ship release notes ",
        "description": "Summarize the sprint changes",
        "assigned_to": employee.user_id,
        "due_date": "2025-06-20",
        "tags": ["docs", " "],
        **overrides,
    }
    return container.task_service.create(current_role=Role.MANAGER, manager_id=manager.user_id, fields=fields)


def test_create_task(container, manager, employee):
    task = _new_task(container, manager, employee)

    assert task.title == "Ship release notes"
    assert task.priority == TaskPriority.MEDIUM
    assert task.status == TaskStatus.PENDING
    assert task.assigned_by == manager.user_id
    assert task.due_date == datetime(2025, 6, 20, 23, 59, 59)
    assert task.tags == ["docs"]


def test_create_rejects_manager_assignee(container, users, manager, employee):
    other_manager = users.add(name="mona", email="mona@example.com", role=Role.MANAGER)

    with pytest.raises(InvalidAssigneeError):
        _new_task(container, manager, employee, assigned_to=other_manager.user_id)


def test_create_rejects_unknown_assignee(container, manager, employee):
    with pytest.raises(InvalidAssigneeError):
        _new_task(container, manager, employee, assigned_to=404)


@pytest.mark.parametrize(
    "overrides",
    [{"title": ""}, {"title": "x" * 201}, {"description": ""}, {"priority": "asap"}, {"due_date": None},
     {"due_date": "next week"}],
)
def test_create_validation(container, manager, employee, overrides):
    with pytest.raises(ValidationError):
        _new_task(container, manager, employee, **overrides)


def test_status_update_by_outsider_forbidden(container, users, manager, employee):
    task = _new_task(container, manager, employee)
    outsider = users.add(name="olga", email="olga@example.com")

    with pytest.raises(AuthorizationError):
        container.task_service.update_status(outsider.user_id, task.task_id, "completed")


def test_completion_stamps_completed_at_and_keeps_it(container, manager, employee, clock):
    task = _new_task(container, manager, employee)
    clock.set(datetime(2025, 6, 12, 15, 30))

    done = container.task_service.update_status(employee.user_id, task.task_id, "completed")
    assert done.completed_at == datetime(2025, 6, 12, 15, 30)

    clock.advance(hours=1)
    reopened = container.task_service.update_status(manager.user_id, task.task_id, "in-progress")
    assert reopened.status == TaskStatus.IN_PROGRESS
    assert reopened.completed_at == datetime(2025, 6, 12, 15, 30)


def test_unknown_status(container, manager, employee):
    task = _new_task(container, manager, employee)

    with pytest.raises(ValidationError):
        container.task_service.update_status(employee.user_id, task.task_id, "done")


def test_update_partial(container, manager, employee):
    task = _new_task(container, manager, employee)

    updated = container.task_service.update(employee.user_id, task.task_id, {"priority": "urgent", "status": "review"})

    assert updated.priority == TaskPriority.URGENT
    assert updated.status == TaskStatus.REVIEW
    assert updated.title == task.title


def test_is_overdue(container, manager, employee, clock):
    task = _new_task(container, manager, employee, due_date="2025-06-10T12:00:00")

    assert task.is_overdue(clock.now()) is True
    assert container.task_service.describe(task)["is_overdue"] is True

    done = container.task_service.update_status(employee.user_id, task.task_id, "completed")
    assert done.is_overdue(clock.now()) is False


def test_comments(container, manager, employee):
    task = _new_task(container, manager, employee)

    with pytest.raises(ValidationError):
        container.task_service.add_comment(employee.user_id, task.task_id, "   ")

    updated = container.task_service.add_comment(employee.user_id, task.task_id, "  On it ")
    assert [c.text for c in updated.comments] == ["On it"]
    assert container.task_service.describe(updated)["comments"][0]["user"]["id"] == employee.user_id


def test_attachment_roundtrip(container, manager, employee, storage):
    task = _new_task(container, manager, employee)

    updated = container.task_service.add_attachment(employee.user_id, task.task_id, _upload())

    attachment = updated.attachments[0]
    assert attachment.file_name == "notes.txt"
    assert attachment.file_size == 5
    assert attachment.uploaded_by == employee.user_id
    assert attachment.file_path in storage.files


def test_attachment_removed_when_task_missing(container, employee, storage):
    with pytest.raises(NotFoundError):
        container.task_service.add_attachment(employee.user_id, 404, _upload())

    assert storage.files == {}
    assert len(storage.deleted) == 1


def test_attachment_removed_when_forbidden(container, users, manager, employee, storage):
    task = _new_task(container, manager, employee)
    outsider = users.add(name="olga", email="olga@example.com")

    with pytest.raises(AuthorizationError):
        container.task_service.add_attachment(outsider.user_id, task.task_id, _upload())

    assert storage.files == {}


def test_attachment_removed_when_persistence_fails(container, manager, employee, storage, tasks_repo):
    task = _new_task(container, manager, employee)
    tasks_repo.fail_on_attach = True

    with pytest.raises(StorageError):
        container.task_service.add_attachment(employee.user_id, task.task_id, _upload())

    assert storage.files == {}


def test_cleanup_failure_does_not_mask_primary_error(container, employee, storage, caplog):
    storage.fail_on_delete = True

    with pytest.raises(NotFoundError):
        container.task_service.add_attachment(employee.user_id, 404, _upload())

    assert "could not delete stored file" in caplog.text


def test_delete_attachment_rules(container, users, manager, employee, storage):
    task = _new_task(container, manager, employee)
    task = container.task_service.add_attachment(employee.user_id, task.task_id, _upload())
    attachment = task.attachments[0]
    outsider = users.add(name="olga", email="olga@example.com")

    with pytest.raises(AuthorizationError):
        container.task_service.delete_attachment(outsider.user_id, task.task_id, attachment.attachment_id)
    with pytest.raises(NotFoundError):
        container.task_service.delete_attachment(manager.user_id, task.task_id, 999)

    container.task_service.delete_attachment(manager.user_id, task.task_id, attachment.attachment_id)

    assert container.task_service.get(employee.user_id, task.task_id).attachments == []
    assert storage.files == {}


def test_delete_task_assigner_only(container, manager, employee, storage):
    task = _new_task(container, manager, employee)
    container.task_service.add_attachment(employee.user_id, task.task_id, _upload())

    with pytest.raises(AuthorizationError):
        container.task_service.delete(employee.user_id, task.task_id)

    container.task_service.delete(manager.user_id, task.task_id)

    assert storage.files == {}
    with pytest.raises(NotFoundError):
        container.task_service.get(manager.user_id, task.task_id)


def test_list_scopes_by_role_and_filters(container, users, manager, employee, make_task):
    other = users.add(name="olga", email="olga@example.com")
    make_task(assigned_to=employee.user_id, assigned_by=manager.user_id, title="Write API docs")
    make_task(assigned_to=employee.user_id, assigned_by=manager.user_id, status=TaskStatus.COMPLETED)
    make_task(assigned_to=other.user_id, assigned_by=manager.user_id)

    mine = container.task_service.list_for(user_id=employee.user_id, role=Role.EMPLOYEE)
    assigned = container.task_service.list_for(user_id=manager.user_id, role=Role.MANAGER)
    searched = container.task_service.list_for(user_id=manager.user_id, role=Role.MANAGER, search="api")
    done = container.task_service.list_for(user_id=employee.user_id, role=Role.EMPLOYEE, status="completed")

    assert mine.total == 2
    assert assigned.total == 3
    assert [t.title for t in searched.items] == ["Write API docs"]
    assert done.total == 1


def test_stats(container, manager, employee, make_task):
    make_task(assigned_to=employee.user_id, assigned_by=manager.user_id)
    make_task(assigned_to=employee.user_id, assigned_by=manager.user_id, status=TaskStatus.COMPLETED)

    stats = container.task_service.stats(user_id=employee.user_id, role=Role.EMPLOYEE)

    assert stats == {"pending": 1, "in-progress": 0, "review": 0, "completed": 1, "cancelled": 0, "total": 2}
