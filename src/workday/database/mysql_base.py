from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateRecordError, StorageError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection + cursor per unit of work, committed on success.

    Duplicate-key violations surface as DuplicateRecordError; any other driver
    failure becomes StorageError.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StorageError("Database unavailable") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as e:
        conn.rollback()
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise DuplicateRecordError("Record already exists") from e
        raise StorageError("Database integrity error") from e
    except mysql.connector.Error as e:
        conn.rollback()
        raise StorageError("Database error") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def dump_list(values) -> str:
    """Serialize a list of strings into a JSON column."""
    return json.dumps(list(values or []))


def load_list(value: Any) -> list[str]:
    """Normalize JSON column values across connector implementations.

    mysql-connector can return JSON as str, bytes or an already decoded list.
    """

    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return []
        decoded = json.loads(value)
        if not isinstance(decoded, list):
            raise TypeError(f"Expected JSON list, got {type(decoded)!r}")
        return [str(v) for v in decoded]
    raise TypeError(f"Unsupported JSON column value type: {type(value)!r}")
