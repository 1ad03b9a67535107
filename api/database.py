"""
Database connection pool singleton.
"""
from contextlib import contextmanager

from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from .config import DB_CONFIG, DB_POOL_MIN, DB_POOL_MAX

_pool = None


def _get_pool():
    global _pool
    if _pool is None:
        _pool = ThreadedConnectionPool(
            minconn=DB_POOL_MIN,
            maxconn=DB_POOL_MAX,
            cursor_factory=RealDictCursor,
            **DB_CONFIG,
        )
    return _pool


@contextmanager
def get_db():
    """Yield a connection from the pool; auto-commit on success, rollback on error."""
    pool = _get_pool()
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)
