from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import PersistenceFailure
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def _rollback_quietly(conn) -> None:
    # Rollback failures are logged only; the first error propagates.
    try:
        conn.rollback()
    except mysql.connector.Error:
        logger.warning("Rollback failed", exc_info=True)


@contextmanager
def db_cursor(
    conn_factory: DatabaseConnection,
    *,
    dictionary: bool = True,
    isolation_level: Optional[str] = None,
):
    """Yield (conn, cursor); commit on success, roll back on any error.

    Driver errors surface as PersistenceFailure chained to the original.
    Domain errors raised inside the block roll back and propagate as is.
    """
    conn = conn_factory.connect()
    try:
        if isolation_level:
            conn.start_transaction(isolation_level=isolation_level)
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        _rollback_quietly(conn)
        raise PersistenceFailure("Database operation failed") from exc
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        conn.close()


def transaction(conn_factory: DatabaseConnection, *, isolation_level: str = "READ COMMITTED"):
    """Explicit read-write transaction; see db_cursor."""
    return db_cursor(conn_factory, dictionary=True, isolation_level=isolation_level)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
