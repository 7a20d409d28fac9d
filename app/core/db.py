# app/core/db.py
from contextlib import contextmanager
from psycopg2.pool import SimpleConnectionPool
from .config import settings

_pool: SimpleConnectionPool | None = None


def _connect_kwargs() -> dict:
    if settings.DATABASE_URL:
        return {"dsn": settings.DATABASE_URL}
    return {
        "host": settings.PG_HOST,
        "port": settings.PG_PORT,
        "dbname": settings.PG_DB,
        "user": settings.PG_USER,
        "password": settings.PG_PASSWORD,
        "sslmode": settings.PG_SSLMODE,
    }


def get_pool() -> SimpleConnectionPool:
    global _pool
    if _pool is None:
        _pool = SimpleConnectionPool(1, settings.PG_POOL_MAX, **_connect_kwargs())
    return _pool


def close_pool() -> None:
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None


@contextmanager
def get_conn(autocommit: bool = False):
    """
    Borrow a pooled connection for the duration of the block.

    With autocommit=False the block runs in one transaction (commit on exit,
    rollback on error). Batch jobs use autocommit=True so every statement
    stands alone and a failing row does not poison the rest of the run.
    """
    pool = get_pool()
    conn = pool.getconn()
    conn.autocommit = autocommit
    try:
        yield conn
        if not autocommit:
            conn.commit()
    except Exception:
        if not autocommit:
            conn.rollback()
        raise
    finally:
        conn.autocommit = False
        pool.putconn(conn)
