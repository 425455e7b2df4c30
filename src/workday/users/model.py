from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import age_on, is_birthday, iso
from ..core.enums import Role


def profile_initial_for(name: str) -> str:
    """First letter of the name, upper-cased."""
    name = (name or "").strip()
    return name[:1].upper()


@dataclass(frozen=True)
class User:
    """Domain entity: user account.

    Note: plain data object, no DB access. ``age`` and ``is_birthday_today`` are
    derived from ``date_of_birth`` on read and never stored.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    date_of_birth: Optional[date]
    profile_initial: str
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def age(self, today: date) -> Optional[int]:
        return age_on(self.date_of_birth, today)

    def is_birthday_today(self, today: date) -> bool:
        return is_birthday(self.date_of_birth, today)

    def summary(self) -> dict:
        """Compact reference embedded into other records."""
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "profile_initial": self.profile_initial,
        }

    def public_profile(self, today: date) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "date_of_birth": iso(self.date_of_birth),
            "profile_initial": self.profile_initial,
            "is_active": self.is_active,
            "created_at": iso(self.created_at),
            "is_birthday_today": self.is_birthday_today(today),
            "age": self.age(today),
        }
