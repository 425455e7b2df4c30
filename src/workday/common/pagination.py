from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from ..core.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self) -> dict:
        return {
            "current_page": self.page,
            "total_pages": math.ceil(self.total / self.limit) if self.limit else 0,
            "total_records": self.total,
            "has_more": self.page * self.limit < self.total,
        }


def normalize_page(page, limit, *, default_limit: int) -> tuple[int, int]:
    try:
        page_i = int(page) if page not in (None, "") else 1
        limit_i = int(limit) if limit not in (None, "") else default_limit
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    if page_i < 1 or limit_i < 1:
        raise ValidationError("page and limit must be positive")
    return page_i, limit_i
