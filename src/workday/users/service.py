from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_choice, require_email, require_max_length, require_min_length, require_non_empty
from ..core.clock import Clock
from ..core.constants import NAME_MAX, NAME_MIN, PASSWORD_MIN
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, DuplicateRecordError, NotFoundError, ValidationError
from .model import User, profile_initial_for
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    role: Role


class AuthService:
    """Use cases: register, log in, read own profile."""

    def __init__(self, users: UserRepository, clock: Clock):
        self._users = users
        self._clock = clock

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        date_of_birth,
        role=Role.EMPLOYEE,
    ) -> User:
        name = require_non_empty(name, "Name")
        require_min_length(name, "Name", NAME_MIN)
        require_max_length(name, "Name", NAME_MAX)
        email = require_email(email)
        require_min_length(password or "", "Password", PASSWORD_MIN)
        role = require_choice(role or Role.EMPLOYEE, Role, "Role")

        if not date_of_birth:
            raise ValidationError("Please provide your date of birth")
        if not isinstance(date_of_birth, date):
            try:
                date_of_birth = parse_iso_date(str(date_of_birth))
            except ValueError:
                raise ValidationError("Date of birth must be YYYY-MM-DD")
        if date_of_birth > self._clock.now().date():
            raise ValidationError("Date of birth cannot be in the future")

        if self._users.get_by_email(email):
            raise DuplicateRecordError("An account with this email already exists")

        try:
            user_id = self._users.create_user(
                name=name,
                email=email,
                password_hash=generate_password_hash(password),
                role=role,
                date_of_birth=date_of_birth,
                profile_initial=profile_initial_for(name),
                created_at=self._clock.now(),
            )
        except DuplicateRecordError:
            raise DuplicateRecordError("An account with this email already exists")

        logger.info("Registered %s account %s", role.value, user_id)
        return self.get_profile(user_id)

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        self._users.update_last_login(user.user_id, self._clock.now())
        return SessionUser(user_id=user.user_id, name=user.name, role=user.role)

    def get_profile(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user
