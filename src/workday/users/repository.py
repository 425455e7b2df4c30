from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        date_of_birth: date,
        profile_initial: str,
        created_at: datetime,
    ) -> int:
        """Insert an account; raises DuplicateRecordError when the email is taken."""

        raise NotImplementedError

    def update_last_login(self, user_id: int, when: datetime) -> bool:
        raise NotImplementedError

    def list_active(self) -> Sequence[User]:
        raise NotImplementedError

    def list_by_role(self, role: Role, *, active_only: bool = False) -> Sequence[User]:
        """Accounts with the role, newest first."""

        raise NotImplementedError
