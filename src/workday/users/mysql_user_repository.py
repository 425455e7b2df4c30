from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, name, email, password_hash, role, date_of_birth, profile_initial,
    is_active, last_login, created_at
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        date_of_birth=row.get("date_of_birth"),
        profile_initial=row.get("profile_initial") or "",
        is_active=bool(row.get("is_active", True)),
        last_login=row.get("last_login"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, date_of_birth, profile_initial,
                                  is_active, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,1,%s,%s)
                """,
                (name, email, password_hash, role.value, date_of_birth, profile_initial, created_at, created_at),
            )
            return int(cur.lastrowid)

    def update_last_login(self, user_id: int, when: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (when, int(user_id)))
            return cur.rowcount > 0

    def list_active(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE is_active=1 ORDER BY name")
            return [_to_user(r) for r in fetchall(cur)]

    def list_by_role(self, role: Role, *, active_only: bool = False) -> Sequence[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE role=%s"
        if active_only:
            sql += " AND is_active=1"
        sql += " ORDER BY created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (role.value,))
            return [_to_user(r) for r in fetchall(cur)]
