"""
PostgreSQL connection pool

All data access goes through one psycopg2 ThreadedConnectionPool created at
application startup. Connections hand out RealDictCursor cursors so rows come
back as dictionaries.

Usage:
    db = Database(settings)
    with db.cursor() as cursor:
        cursor.execute("SELECT * FROM stores WHERE id = %s", (store_id,))
        row = cursor.fetchone()

A ``with db.connection()`` block is one transaction: it commits on success and
rolls back on any exception. Integrity errors raised by PostgreSQL are
translated into ClientError here so repositories never leak a 500 for a
duplicate email or a dangling reference.
"""
import logging
from contextlib import contextmanager

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import RealDictCursor, register_uuid
from psycopg2.pool import ThreadedConnectionPool

from storefront.core.config import Settings
from storefront.core.errors import ClientError, ServerError

logger = logging.getLogger(__name__)

register_uuid()

# Unique constraints are named <table>_<column>_key by PostgreSQL
UNIQUE_SUFFIX = "_key"


def describe_unique_violation(error: pg_errors.UniqueViolation) -> str:
    """Turn a unique violation into a message naming the duplicated field"""
    constraint = getattr(error.diag, "constraint_name", None) or ""
    table = getattr(error.diag, "table_name", None) or ""
    field = constraint
    if constraint.endswith(UNIQUE_SUFFIX):
        field = constraint[: -len(UNIQUE_SUFFIX)]
        if table and field.startswith(f"{table}_"):
            field = field[len(table) + 1:]
    if not field:
        return "Duplicate value"
    return f"{field} already exists"


class Database:
    """Pooled access to the persistent store"""

    def __init__(self, settings: Settings):
        self._pool = ThreadedConnectionPool(
            settings.DB_POOL_MIN,
            settings.DB_POOL_MAX,
            dsn=settings.DATABASE_URL,
            cursor_factory=RealDictCursor,
        )
        logger.info(f"Database pool ready ({settings.DB_POOL_MIN}-{settings.DB_POOL_MAX} connections)")

    @contextmanager
    def connection(self):
        """Borrow a connection for one transaction"""
        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except pg_errors.UniqueViolation as e:
            conn.rollback()
            raise ClientError(describe_unique_violation(e))
        except pg_errors.ForeignKeyViolation as e:
            conn.rollback()
            raise ClientError(f"Referenced record does not exist or is still in use: {e.diag.message_detail or e.pgerror}")
        except (pg_errors.CheckViolation, pg_errors.NotNullViolation, pg_errors.DataException) as e:
            conn.rollback()
            raise ClientError(f"Invalid value: {e.diag.message_primary}")
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise ServerError("Database operation failed")
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def cursor(self):
        """Cursor on a pooled connection, committed when the block exits cleanly"""
        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    def ping(self) -> bool:
        with self.cursor() as cursor:
            cursor.execute("SELECT 1 AS ok")
            return cursor.fetchone()["ok"] == 1

    def close(self) -> None:
        self._pool.closeall()
        logger.info("Database pool closed")
