"""
PostgreSQL repository adapters - Implement the domain persistence ports.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
1. **supersede_or_create**: One transaction expires stale PENDING rows for
   the (company, email) pair, then upserts with
   INSERT ... ON CONFLICT (company_id, email) WHERE status = 'PENDING'
   DO UPDATE. The partial unique index guarantees a single live row even
   when two starts race on an empty table.

2. **lock**: SELECT ... FOR UPDATE holds the request row for the whole
   verify, including the bcrypt comparison. Concurrent verifies on the
   same request queue behind it and re-read the committed state, so the
   attempt ceiling cannot be bypassed and one code redeems once.

3. **Transitions**: Every UPDATE is additionally conditional on
   status = 'PENDING'; forward-only transitions hold even if a caller
   misuses the handle.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from psycopg import Connection, Cursor
from psycopg_pool import ConnectionPool

from src.domain.ports import (
    Company,
    Identity,
    Role,
    VerificationRequest,
    VerificationStatus,
)

logger = logging.getLogger(__name__)

_REQUEST_COLUMNS = """
    id, company_id, email, code_hash, code_expires_at, attempts,
    status, method, verified_at, bound_user_id, created_at
"""

_IDENTITY_COLUMNS = """
    id, email, role, display_name, employee_company_id, employment_verified_at
"""


def _row_to_request(row: tuple) -> VerificationRequest:
    return VerificationRequest(
        id=row[0],
        company_id=row[1],
        email=row[2],
        code_hash=row[3],
        code_expires_at=row[4],
        attempts=row[5],
        status=VerificationStatus(row[6]),
        method=row[7],
        verified_at=row[8],
        bound_user_id=row[9],
        created_at=row[10],
    )


def _row_to_identity(row: tuple) -> Identity:
    return Identity(
        id=row[0],
        email=row[1],
        role=Role(row[2]),
        display_name=row[3],
        employee_company_id=row[4],
        employment_verified_at=row[5],
    )


class PostgresVerificationLock:
    """
    Implements VerificationLock over an open FOR UPDATE transaction.

    Statements run on the cursor that holds the row lock, and identity
    reads and writes run on the same connection; the owning repository
    commits once when the scope exits.
    """

    def __init__(
        self, conn: Connection, cursor: Cursor, request: VerificationRequest | None
    ) -> None:
        self._cursor = cursor
        self.request = request
        self.identities = PostgresIdentityRepository(connection=conn)

    def mark_expired(self) -> None:
        sql = """
            UPDATE verification_requests
            SET status = %s
            WHERE id = %s AND status = %s
        """
        self._cursor.execute(
            sql,
            (VerificationStatus.EXPIRED.value, self._request_id(), VerificationStatus.PENDING.value),
        )

    def record_failed_attempt(self) -> int:
        sql = """
            UPDATE verification_requests
            SET attempts = attempts + 1
            WHERE id = %s AND status = %s
            RETURNING attempts
        """
        self._cursor.execute(sql, (self._request_id(), VerificationStatus.PENDING.value))
        row = self._cursor.fetchone()
        return row[0] if row is not None else self.request.attempts

    def mark_verified(self, verified_at: datetime, user_id: str) -> None:
        sql = """
            UPDATE verification_requests
            SET status = %s, verified_at = %s, bound_user_id = %s
            WHERE id = %s AND status = %s
        """
        self._cursor.execute(
            sql,
            (
                VerificationStatus.VERIFIED.value,
                verified_at,
                user_id,
                self._request_id(),
                VerificationStatus.PENDING.value,
            ),
        )

    def _request_id(self) -> str:
        if self.request is None:
            raise RuntimeError("No verification request is locked")
        return self.request.id


class PostgresVerificationRepository:
    """
    Implements VerificationRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def supersede_or_create(
        self,
        company_id: str,
        email: str,
        code_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> VerificationRequest:
        """
        Atomically store a freshly issued code for (company_id, email).

        Returns:
            The single live PENDING request for the pair
        """
        expire_stale_sql = """
            UPDATE verification_requests
            SET status = %s
            WHERE company_id = %s AND email = %s AND status = %s
              AND code_expires_at <= %s
        """

        upsert_sql = f"""
            INSERT INTO verification_requests
                (id, company_id, email, code_hash, code_expires_at, attempts, status, method, created_at)
            VALUES (%s, %s, %s, %s, %s, 0, %s, 'EMAIL', %s)
            ON CONFLICT (company_id, email) WHERE status = 'PENDING' DO UPDATE
            SET code_hash = EXCLUDED.code_hash,
                code_expires_at = EXCLUDED.code_expires_at,
                attempts = 0
            RETURNING {_REQUEST_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                expire_stale_sql,
                (
                    VerificationStatus.EXPIRED.value,
                    company_id,
                    email,
                    VerificationStatus.PENDING.value,
                    now,
                ),
            )
            cursor.execute(
                upsert_sql,
                (
                    str(uuid.uuid4()),
                    company_id,
                    email,
                    code_hash,
                    expires_at,
                    VerificationStatus.PENDING.value,
                    now,
                ),
            )
            row = cursor.fetchone()
            conn.commit()
            return _row_to_request(row)

    @contextmanager
    def lock(self, request_id: str) -> Iterator[PostgresVerificationLock]:
        """
        Lock one request row for the duration of the scope.

        Commits on normal exit; the pool rolls back if the scope raises.
        """
        select_sql = f"""
            SELECT {_REQUEST_COLUMNS}
            FROM verification_requests
            WHERE id = %s
            FOR UPDATE
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(select_sql, (request_id,))
            row = cursor.fetchone()
            request = _row_to_request(row) if row is not None else None
            yield PostgresVerificationLock(conn, cursor, request)
            conn.commit()

    def get(self, request_id: str) -> VerificationRequest | None:
        sql = f"SELECT {_REQUEST_COLUMNS} FROM verification_requests WHERE id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (request_id,))
            row = cursor.fetchone()
        return _row_to_request(row) if row is not None else None


class PostgresIdentityRepository:
    """
    Implements IdentityRepository protocol via psycopg3.

    Built from a pool, every call runs in its own short transaction. Built
    from a connection, calls join that connection's open transaction and
    leave the commit to its owner.
    """

    def __init__(
        self, pool: ConnectionPool | None = None, connection: Connection | None = None
    ) -> None:
        if (pool is None) == (connection is None):
            raise ValueError("Provide exactly one of pool or connection")
        self._pool = pool
        self._connection = connection

    def get(self, identity_id: str) -> Identity | None:
        sql = f"SELECT {_IDENTITY_COLUMNS} FROM identities WHERE id = %s"
        return self._fetch_one(sql, (identity_id,))

    def find_by_email(self, email: str) -> Identity | None:
        sql = f"SELECT {_IDENTITY_COLUMNS} FROM identities WHERE email = %s"
        return self._fetch_one(sql, (email,))

    def create_employee(
        self,
        email: str,
        company_id: str,
        verified_at: datetime,
        display_name: str | None,
        credential_hash: str,
    ) -> Identity | None:
        """
        Insert a new EMPLOYEE identity.

        ON CONFLICT DO NOTHING turns a concurrent create of the same email
        into a None result instead of a unique violation.
        """
        sql = f"""
            INSERT INTO identities
                (id, email, display_name, role, credential_hash, employee_company_id, employment_verified_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_IDENTITY_COLUMNS}
        """
        params = (
            str(uuid.uuid4()),
            email,
            display_name,
            Role.EMPLOYEE.value,
            credential_hash,
            company_id,
            verified_at,
        )
        return self._fetch_one(sql, params, commit=True)

    def refresh_employment(
        self,
        identity_id: str,
        company_id: str,
        verified_at: datetime,
        display_name: str | None,
    ) -> Identity | None:
        sql = f"""
            UPDATE identities
            SET employee_company_id = %s,
                employment_verified_at = %s,
                display_name = COALESCE(display_name, %s)
            WHERE id = %s AND role = %s
            RETURNING {_IDENTITY_COLUMNS}
        """
        params = (company_id, verified_at, display_name, identity_id, Role.EMPLOYEE.value)
        return self._fetch_one(sql, params, commit=True)

    def _fetch_one(self, sql: str, params: tuple, commit: bool = False) -> Identity | None:
        with self._transaction(commit) as conn, conn.cursor() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
        return _row_to_identity(row) if row is not None else None

    @contextmanager
    def _transaction(self, commit: bool) -> Iterator[Connection]:
        if self._connection is not None:
            yield self._connection
            return
        with self._pool.connection() as conn:
            yield conn
            if commit:
                conn.commit()


class PostgresCompanyDirectory:
    """Implements CompanyDirectory protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def find(self, identifier: str) -> Company | None:
        """Find by id, falling back to slug."""
        sql = """
            SELECT id, slug, name, domain
            FROM companies
            WHERE id = %s OR slug = %s
            ORDER BY (id = %s) DESC
            LIMIT 1
        """
        return self._fetch_one(sql, (identifier, identifier, identifier))

    def get(self, company_id: str) -> Company | None:
        sql = "SELECT id, slug, name, domain FROM companies WHERE id = %s"
        return self._fetch_one(sql, (company_id,))

    def _fetch_one(self, sql: str, params: tuple) -> Company | None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
        if row is None:
            return None
        return Company(id=row[0], slug=row[1], name=row[2], registered_domain=row[3])


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
