"""
Unit tests for PostgreSQL adapter connection handling.

Uses mocked psycopg connections: verifies that identity work inside a
verify scope stays on the locked connection, and that migration logging
uses lazy formatting.
"""

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from src.adapters.repository.postgres import (
    PostgresIdentityRepository,
    PostgresVerificationLock,
    run_migrations,
)
from src.domain.ports import Role

NOW = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
IDENTITY_ROW = ("employee-1", "jane@acme.com", "EMPLOYEE", None, "company-acme", NOW)


def make_connection(row: tuple | None = IDENTITY_ROW) -> tuple[MagicMock, MagicMock]:
    conn = MagicMock()
    cursor = conn.cursor.return_value.__enter__.return_value
    cursor.fetchone.return_value = row
    return conn, cursor


class TestJoinedIdentityRepository:
    def test_requires_exactly_one_source(self) -> None:
        with pytest.raises(ValueError):
            PostgresIdentityRepository()
        with pytest.raises(ValueError):
            PostgresIdentityRepository(pool=MagicMock(), connection=MagicMock())

    def test_writes_on_joined_connection_without_commit(self) -> None:
        conn, cursor = make_connection()
        identities = PostgresIdentityRepository(connection=conn)

        created = identities.create_employee("jane@acme.com", "company-acme", NOW, None, "x")

        assert created.id == "employee-1"
        assert created.role == Role.EMPLOYEE
        cursor.execute.assert_called_once()
        conn.commit.assert_not_called()

    def test_pool_backed_write_commits(self) -> None:
        conn, _ = make_connection()
        pool = MagicMock()
        pool.connection.return_value.__enter__.return_value = conn

        PostgresIdentityRepository(pool).create_employee(
            "jane@acme.com", "company-acme", NOW, None, "x"
        )

        conn.commit.assert_called_once()

    def test_lock_handle_binds_on_its_own_connection(self) -> None:
        conn, cursor = make_connection()
        locked = PostgresVerificationLock(conn, cursor, request=None)

        assert locked.identities.find_by_email("jane@acme.com").email == "jane@acme.com"
        conn.cursor.assert_called()
        conn.commit.assert_not_called()


class TestRunMigrations:
    def test_logs_with_lazy_formatting(self, caplog: pytest.LogCaptureFixture) -> None:
        pool = MagicMock()

        with caplog.at_level(logging.INFO, logger="src.adapters.repository.postgres"):
            run_migrations(pool)

        executed = [r for r in caplog.records if r.msg == "Executing migration: %s"]
        assert [r.args for r in executed] == [("001_create_verification_tables.sql",)]
        assert all("{" not in r.msg for r in caplog.records)
        pool.connection.return_value.__enter__.return_value.execute.assert_called_once()
