"""PostgreSQL connection pool and transaction scope; DATABASE_URL comes from config (.env locally)."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

import psycopg2
from psycopg2.pool import SimpleConnectionPool

from container_calculator import config
from container_calculator.errors import PersistenceError

logger = logging.getLogger(__name__)

_pool: SimpleConnectionPool | None = None

# Connection of the transaction currently open in this context, if any
_current_conn: ContextVar[Any] = ContextVar("current_conn", default=None)


def _get_pool() -> SimpleConnectionPool:
    global _pool
    if _pool is None:
        if not config.DATABASE_URL:
            raise PersistenceError("DATABASE_URL not set")
        try:
            _pool = SimpleConnectionPool(minconn=config.DB_POOL_MIN, maxconn=config.DB_POOL_MAX, dsn=config.DATABASE_URL)
        except psycopg2.Error as exc:
            raise PersistenceError(f"Could not open database pool: {exc}") from exc
    return _pool


def get_conn() -> Any:
    """Get a connection from the pool. Raises PersistenceError if DATABASE_URL is not set or pool unavailable."""
    try:
        return _get_pool().getconn()
    except psycopg2.Error as exc:
        raise PersistenceError(f"Could not get a database connection: {exc}") from exc


def put_conn(conn: Any) -> None:
    """Return a connection to the pool."""
    if conn is not None and _pool is not None:
        _pool.putconn(conn)


def close_pool() -> None:
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None


@contextmanager
def transaction() -> Iterator[Any]:
    """
    Yield a cursor inside one database transaction.

    Nested calls join the outer transaction, so several store calls wrapped in one
    transaction() commit or roll back together. psycopg2 errors become PersistenceError.
    """
    outer = _current_conn.get()
    if outer is not None:
        with outer.cursor() as cur:
            yield cur
        return

    conn = get_conn()
    token = _current_conn.set(conn)
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except psycopg2.Error as exc:
        conn.rollback()
        logger.warning(f"Database transaction rolled back: {exc}")
        raise PersistenceError(str(exc)) from exc
    except BaseException:
        conn.rollback()
        raise
    finally:
        _current_conn.reset(token)
        put_conn(conn)


def ping() -> bool:
    with transaction() as cur:
        cur.execute("SELECT 1")
        return cur.fetchone() is not None
