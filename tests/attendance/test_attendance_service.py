from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from workday.core.enums import AttendanceStatus
from workday.core.exceptions import (
    AlreadyCheckedOutError,
    AlreadyMarkedError,
    DuplicateRecordError,
    NotFoundError,
    ValidationError,
)


def test_checkin_before_threshold_is_present(container, employee, clock):
    rec = container.attendance_service.check_in(employee.user_id, notes="  from office ")

    assert rec.status == AttendanceStatus.PRESENT
    assert rec.is_late is False
    assert rec.work_date == date(2025, 6, 11)
    assert rec.check_in_time == clock.now()
    assert rec.notes == "from office"


def test_checkin_after_threshold_is_late(container, employee, clock):
    clock.set(datetime(2025, 6, 11, 10, 0, 1))

    rec = container.attendance_service.check_in(employee.user_id)

    assert rec.status == AttendanceStatus.LATE
    assert rec.is_late is True


def test_second_checkin_same_day_carries_existing_record(container, employee, clock):
    first = container.attendance_service.check_in(employee.user_id)
    clock.advance(hours=2)

    with pytest.raises(AlreadyMarkedError) as exc:
        container.attendance_service.check_in(employee.user_id)

    assert isinstance(exc.value, DuplicateRecordError)
    assert exc.value.data == first


def test_checkin_race_converts_storage_duplicate(container, employee, attendance_repo, clock):
    winner = {}

    real_get = attendance_repo.get_for_user_and_date
    calls = {"n": 0}

    def stale_then_real(user_id, work_date):
        calls["n"] += 1
        if calls["n"] == 1:
            # another request inserts right after our pre-check
            winner["id"] = attendance_repo.create_checkin(
                user_id=user_id,
                work_date=work_date,
                check_in_time=clock.now(),
                status=AttendanceStatus.PRESENT,
                is_late=False,
            )
            return None
        return real_get(user_id, work_date)

    attendance_repo.get_for_user_and_date = stale_then_real

    with pytest.raises(AlreadyMarkedError) as exc:
        container.attendance_service.check_in(employee.user_id)

    assert exc.value.data.attendance_id == winner["id"]
    assert attendance_repo.count_for_user(employee.user_id) == 1


def test_checkin_notes_too_long(container, employee):
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(employee.user_id, notes="x" * 501)


def test_checkin_notes_must_be_text(container, employee, attendance_repo):
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(employee.user_id, notes=42)

    assert attendance_repo.count_for_user(employee.user_id) == 0


def test_checkout_computes_work_hours(container, employee, clock):
    container.attendance_service.check_in(employee.user_id)
    clock.set(datetime(2025, 6, 11, 17, 30))

    rec = container.attendance_service.check_out(employee.user_id)

    assert rec.check_out_time == datetime(2025, 6, 11, 17, 30)
    assert rec.work_hours == 8.5


def test_checkout_without_checkin(container, employee):
    with pytest.raises(NotFoundError):
        container.attendance_service.check_out(employee.user_id)


def test_checkout_twice(container, employee, clock):
    container.attendance_service.check_in(employee.user_id)
    clock.advance(hours=8)
    container.attendance_service.check_out(employee.user_id)
    clock.advance(minutes=5)

    with pytest.raises(AlreadyCheckedOutError):
        container.attendance_service.check_out(employee.user_id)


def test_new_day_allows_new_checkin(container, employee, clock):
    container.attendance_service.check_in(employee.user_id)
    clock.set(datetime(2025, 6, 12, 0, 0, 1))

    rec = container.attendance_service.check_in(employee.user_id)

    assert rec.work_date == date(2025, 6, 12)
    assert container.attendance_service.today(employee.user_id) == rec


def test_stats_trailing_window(container, employee, attendance_repo, make_record, clock):
    today = clock.now().date()
    for i in range(20):
        attendance_repo.add(make_record(i + 1, employee.user_id, today - timedelta(days=i), hours=8.0, late=i < 3))
    # outside a 30-day window
    attendance_repo.add(make_record(99, employee.user_id, today - timedelta(days=30)))

    stats = container.attendance_service.stats(employee.user_id, 30)

    assert stats.present_days == 20
    assert stats.absent_days == 10
    assert stats.late_days == 3
    assert stats.total_work_hours == 160
    assert stats.average_work_hours == 8.0
    assert stats.attendance_percentage == 67


def test_stats_without_records(container, employee):
    stats = container.attendance_service.stats(employee.user_id, 7)

    assert stats.to_dict()["average_work_hours"] == 0
    assert stats.absent_days == 7
    assert stats.attendance_percentage == 0


def test_stats_rejects_non_positive_days(container, employee):
    with pytest.raises(ValidationError):
        container.attendance_service.stats(employee.user_id, 0)


def test_history_pagination(container, employee, attendance_repo, make_record, clock):
    today = clock.now().date()
    for i in range(12):
        attendance_repo.add(make_record(i + 1, employee.user_id, today - timedelta(days=i)))

    page = container.attendance_service.history(employee.user_id, page=2, limit=10)

    assert len(page.items) == 2
    assert page.meta() == {"current_page": 2, "total_pages": 2, "total_records": 12, "has_more": False}
    assert page.items[0].work_date == today - timedelta(days=10)


def test_monthly_summary(container, employee, attendance_repo, make_record):
    attendance_repo.add(make_record(1, employee.user_id, date(2025, 5, 2), hours=7.25))
    attendance_repo.add(make_record(2, employee.user_id, date(2025, 5, 5), hours=8.5, late=True))
    attendance_repo.add(make_record(3, employee.user_id, date(2025, 6, 1), hours=9))

    records = container.attendance_service.monthly(employee.user_id, 2025, 5)
    summary = container.attendance_service.summarize_month(records)

    assert [r.work_date.day for r in records] == [5, 2]
    assert summary.total_days == 2
    assert summary.present_days == 1
    assert summary.late_days == 1
    assert summary.total_work_hours == 15.75
    assert summary.average_work_hours == 7.88


def test_day_overview_marks_missing_employees_absent(container, users, employee, manager, attendance_repo,
                                                     make_record, clock):
    other = users.add(name="olga", email="olga@example.com")
    attendance_repo.add(make_record(1, employee.user_id, clock.now().date(), late=True))

    overview = container.attendance_service.day_overview()

    statuses = {row["employee"]["id"]: row["status"] for row in overview.rows}
    assert statuses == {employee.user_id: "late", other.user_id: "absent"}
    assert overview.summary == {"total": 2, "present": 0, "late": 1, "absent": 1, "date": "2025-06-11"}


def test_for_employee_unknown(container):
    with pytest.raises(NotFoundError):
        container.attendance_service.for_employee(404, page=1, limit=30)
