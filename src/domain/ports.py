"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records the domain works with and the interfaces
(ports) it requires from infrastructure. Adapters implement these protocols.
"""

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class VerificationStatus(str, Enum):
    """
    Verification request states.

    State Transitions (forward-only):
    - PENDING -> VERIFIED (correct code, identity bound)
    - PENDING -> EXPIRED (code TTL elapsed when a verify arrived)

    VERIFIED and EXPIRED are terminal. A PENDING request that has hit the
    attempt ceiling stays PENDING but cannot match until a fresh code is
    issued for the same company and email.
    """

    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    EXPIRED = "EXPIRED"


class Role(str, Enum):
    """Identity roles. Only EMPLOYEE identities are created or refreshed here."""

    EMPLOYEE = "EMPLOYEE"
    VENDOR = "VENDOR"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Company:
    id: str
    slug: str
    name: str
    registered_domain: str | None = None


@dataclass(frozen=True)
class VerificationRequest:
    """One verification attempt-session. The plaintext code is never stored."""

    id: str
    company_id: str
    email: str
    code_hash: str
    code_expires_at: datetime
    attempts: int = 0
    status: VerificationStatus = VerificationStatus.PENDING
    method: str = "EMAIL"
    verified_at: datetime | None = None
    bound_user_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    role: Role
    display_name: str | None = None
    employee_company_id: str | None = None
    employment_verified_at: datetime | None = None


@dataclass(frozen=True)
class DeliveryResult:
    sent: bool
    error: str | None = None


class VerificationLock(Protocol):
    """
    Exclusive handle on one verification request.

    Obtained from VerificationRepository.lock(). While the handle is open no
    other verify or supersede can touch the same request, so each method is
    an atomic conditional transition on the state read at lock time.
    Every transition applies only while the request is still PENDING.

    `identities` is the identity store joined to the same unit of work:
    identity writes made through it commit or roll back together with the
    request transition, and need no second database connection.
    """

    request: VerificationRequest | None
    identities: "IdentityRepository"

    def mark_expired(self) -> None:
        """Transition PENDING -> EXPIRED."""
        ...

    def record_failed_attempt(self) -> int:
        """Increment attempts and return the new count."""
        ...

    def mark_verified(self, verified_at: datetime, user_id: str) -> None:
        """Transition PENDING -> VERIFIED and record the bound identity."""
        ...


class VerificationRepository(Protocol):
    """Port interface for verification request persistence."""

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

        Stale PENDING requests (code_expires_at <= now) for the pair are
        expired first. If a live PENDING request remains, its code hash and
        expiry are overwritten and attempts reset to 0; otherwise a new
        PENDING request is created. Never leaves two PENDING requests for
        one pair.

        Returns:
            The single live PENDING request for the pair
        """
        ...

    def lock(self, request_id: str) -> AbstractContextManager[VerificationLock]:
        """
        Open an exclusive scope on one request.

        Transitions made through the handle are committed when the scope
        exits normally and discarded if it exits with an exception.
        """
        ...

    def get(self, request_id: str) -> VerificationRequest | None:
        """Read a request without locking it."""
        ...


class IdentityRepository(Protocol):
    """Port interface for identity persistence."""

    def get(self, identity_id: str) -> Identity | None: ...

    def find_by_email(self, email: str) -> Identity | None: ...

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

        Returns:
            The created identity, or None if the email is already taken
        """
        ...

    def refresh_employment(
        self,
        identity_id: str,
        company_id: str,
        verified_at: datetime,
        display_name: str | None,
    ) -> Identity | None:
        """
        Stamp employment on an existing EMPLOYEE identity.

        display_name is only applied when the identity has none.

        Returns:
            The updated identity, or None if it is missing or not an EMPLOYEE
        """
        ...


class CompanyDirectory(Protocol):
    """Port interface for company lookups."""

    def find(self, identifier: str) -> Company | None:
        """Find a company by id or slug."""
        ...

    def get(self, company_id: str) -> Company | None: ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    @property
    def configured(self) -> bool:
        """Whether real delivery is available."""
        ...

    def send_verification_code(
        self, email: str, code: str, company_name: str, expires_at: datetime
    ) -> DeliveryResult:
        """
        Send verification code to email address.

        Must not raise for delivery problems; report them in the result.
        """
        ...


class SessionIssuer(Protocol):
    """Port interface for session token minting."""

    def issue(self, identity: Identity) -> str: ...
