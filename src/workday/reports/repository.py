from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from .model import DailyReport


class ReportRepository(Protocol):
    def get_by_id(self, report_id: int) -> Optional[DailyReport]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[DailyReport]:
        raise NotImplementedError

    def create(self, *, user_id: int, work_date: date, attendance_id: Optional[int], fields: dict[str, Any],
               created_at: datetime) -> int:
        """Insert a report.

        ``fields`` holds validated column values. The (user_id, work_date) unique
        key raises DuplicateRecordError on a second report for the day.
        """

        raise NotImplementedError

    def update_fields(self, report_id: int, fields: dict[str, Any], *, updated_at: datetime) -> bool:
        raise NotImplementedError

    def set_review(self, report_id: int, *, comment: str, reviewer_id: int, reviewed_at: datetime) -> bool:
        raise NotImplementedError

    def delete(self, report_id: int) -> bool:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[DailyReport]:
        """Reports with start <= work_date <= end, newest first."""

        raise NotImplementedError

    def list_recent_for_user(self, user_id: int, *, offset: int, limit: int) -> Sequence[DailyReport]:
        raise NotImplementedError

    def count_for_user(self, user_id: int) -> int:
        raise NotImplementedError

    def list_filtered(self, *, work_date: Optional[date] = None, needs_review: bool = False) -> Sequence[DailyReport]:
        """All users' reports, newest day first."""

        raise NotImplementedError

    def count_for_date(self, work_date: date) -> int:
        raise NotImplementedError

    def count_pending_review(self) -> int:
        """Reports flagged for review that no manager has reviewed yet."""

        raise NotImplementedError
