from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

import mysql.connector

from ..core.constants import MYSQL_DEADLOCK, MYSQL_LOCK_WAIT_TIMEOUT
from ..core.exceptions import LockTimeoutError, PersistenceError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def translate_mysql_error(exc: mysql.connector.Error) -> PersistenceError:
    if getattr(exc, "errno", None) in (MYSQL_LOCK_WAIT_TIMEOUT, MYSQL_DEADLOCK):
        return LockTimeoutError(f"Patient record is busy, retry the request ({exc.errno})")
    return PersistenceError(f"Database error: {exc.msg}")


@contextmanager
def db_transaction(conn_factory: DatabaseConnection) -> Iterator[Tuple[Any, Any]]:
    """One explicit transaction on one connection.

    Commits when the block exits normally; any exception rolls everything back.
    Driver errors surface as PersistenceError / LockTimeoutError, domain errors
    propagate untouched.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise translate_mysql_error(exc) from exc

    try:
        conn.start_transaction()
        cur = conn.cursor(dictionary=True)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        _safe_rollback(conn)
        raise translate_mysql_error(exc) from exc
    except BaseException:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error:
        # server discards the open transaction when the connection closes
        logger.warning("rollback failed after transaction error", exc_info=True)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
