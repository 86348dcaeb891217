"""Repository adapters - Database and in-memory implementations."""

from .memory import (
    InMemoryCompanyDirectory,
    InMemoryIdentityRepository,
    InMemoryVerificationRepository,
)
from .postgres import (
    PostgresCompanyDirectory,
    PostgresIdentityRepository,
    PostgresVerificationRepository,
    run_migrations,
)

__all__ = [
    "InMemoryCompanyDirectory",
    "InMemoryIdentityRepository",
    "InMemoryVerificationRepository",
    "PostgresCompanyDirectory",
    "PostgresIdentityRepository",
    "PostgresVerificationRepository",
    "run_migrations",
]
