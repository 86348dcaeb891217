"""
In-memory repository adapters - Implement the domain ports without a database.

Used by the test suite and for wiring the application without PostgreSQL.
A verify scope holds the verification store's lock and the identity store's
lock for its full duration, which gives the same guarantees as the
PostgreSQL adapter's row lock. Both stores are rolled back together if the
scope raises.
"""

import threading
import uuid
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import replace
from datetime import datetime

from src.domain.ports import (
    Company,
    Identity,
    Role,
    VerificationRequest,
    VerificationStatus,
)


class InMemoryIdentityRepository:
    """Implements IdentityRepository protocol in process memory."""

    def __init__(self, lock: AbstractContextManager | None = None) -> None:
        self._lock = lock or threading.RLock()
        self._identities: dict[str, Identity] = {}
        self._credentials: dict[str, str] = {}

    def add(self, identity: Identity, credential_hash: str = "") -> Identity:
        """Seed an identity, e.g. an existing vendor account."""
        with self._lock:
            self._identities[identity.id] = identity
            self._credentials[identity.id] = credential_hash
            return identity

    def get(self, identity_id: str) -> Identity | None:
        with self._lock:
            return self._identities.get(identity_id)

    def find_by_email(self, email: str) -> Identity | None:
        with self._lock:
            for identity in self._identities.values():
                if identity.email == email:
                    return identity
            return None

    def create_employee(
        self,
        email: str,
        company_id: str,
        verified_at: datetime,
        display_name: str | None,
        credential_hash: str,
    ) -> Identity | None:
        with self._lock:
            if self.find_by_email(email) is not None:
                return None
            identity = Identity(
                id=str(uuid.uuid4()),
                email=email,
                role=Role.EMPLOYEE,
                display_name=display_name,
                employee_company_id=company_id,
                employment_verified_at=verified_at,
            )
            return self.add(identity, credential_hash)

    def refresh_employment(
        self,
        identity_id: str,
        company_id: str,
        verified_at: datetime,
        display_name: str | None,
    ) -> Identity | None:
        with self._lock:
            identity = self._identities.get(identity_id)
            if identity is None or identity.role != Role.EMPLOYEE:
                return None
            updated = replace(
                identity,
                employee_company_id=company_id,
                employment_verified_at=verified_at,
                display_name=identity.display_name or display_name,
            )
            self._identities[identity_id] = updated
            return updated

    def credential_hash(self, identity_id: str) -> str | None:
        with self._lock:
            return self._credentials.get(identity_id)

    def all(self) -> list[Identity]:
        with self._lock:
            return list(self._identities.values())

    @contextmanager
    def _unit_of_work(self) -> Iterator[None]:
        """Hold the store and restore its contents if the block raises."""
        with self._lock:
            identities = dict(self._identities)
            credentials = dict(self._credentials)
            try:
                yield
            except BaseException:
                self._identities = identities
                self._credentials = credentials
                raise


class InMemoryVerificationLock:
    """Implements VerificationLock over an InMemoryVerificationRepository."""

    def __init__(
        self,
        repository: "InMemoryVerificationRepository",
        request: VerificationRequest | None,
    ) -> None:
        self._repository = repository
        self.request = request
        self.identities = repository.identities

    def mark_expired(self) -> None:
        self._transition(status=VerificationStatus.EXPIRED)

    def record_failed_attempt(self) -> int:
        current = self._current()
        if current is None or current.status != VerificationStatus.PENDING:
            return self.request.attempts if self.request else 0
        updated = replace(current, attempts=current.attempts + 1)
        self._repository._requests[updated.id] = updated
        return updated.attempts

    def mark_verified(self, verified_at: datetime, user_id: str) -> None:
        self._transition(
            status=VerificationStatus.VERIFIED,
            verified_at=verified_at,
            bound_user_id=user_id,
        )

    def _current(self) -> VerificationRequest | None:
        if self.request is None:
            return None
        return self._repository._requests.get(self.request.id)

    def _transition(self, **changes) -> None:
        current = self._current()
        if current is None or current.status != VerificationStatus.PENDING:
            return
        self._repository._requests[current.id] = replace(current, **changes)


class InMemoryVerificationRepository:
    """
    Implements VerificationRepository protocol in process memory.

    Uses structural subtyping - no explicit inheritance from Protocol.

    Args:
        identities: Identity store that verify scopes bind through; pass the
            same instance the service reads from
        lock: Optional shared lock
    """

    def __init__(
        self,
        identities: InMemoryIdentityRepository | None = None,
        lock: AbstractContextManager | None = None,
    ) -> None:
        self.identities = identities if identities is not None else InMemoryIdentityRepository()
        self._lock = lock or threading.RLock()
        self._requests: dict[str, VerificationRequest] = {}

    def supersede_or_create(
        self,
        company_id: str,
        email: str,
        code_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> VerificationRequest:
        with self._lock:
            live: VerificationRequest | None = None
            for request in list(self._requests.values()):
                if (
                    request.company_id != company_id
                    or request.email != email
                    or request.status != VerificationStatus.PENDING
                ):
                    continue
                if request.code_expires_at <= now:
                    self._requests[request.id] = replace(request, status=VerificationStatus.EXPIRED)
                else:
                    live = request

            if live is not None:
                updated = replace(live, code_hash=code_hash, code_expires_at=expires_at, attempts=0)
            else:
                updated = VerificationRequest(
                    id=str(uuid.uuid4()),
                    company_id=company_id,
                    email=email,
                    code_hash=code_hash,
                    code_expires_at=expires_at,
                    created_at=now,
                )
            self._requests[updated.id] = updated
            return updated

    @contextmanager
    def lock(self, request_id: str) -> Iterator[InMemoryVerificationLock]:
        # Always verifications first, then identities.
        with self._lock, self.identities._unit_of_work():
            snapshot = dict(self._requests)
            try:
                yield InMemoryVerificationLock(self, self._requests.get(request_id))
            except BaseException:
                self._requests = snapshot
                raise

    def get(self, request_id: str) -> VerificationRequest | None:
        with self._lock:
            return self._requests.get(request_id)

    def all(self) -> list[VerificationRequest]:
        with self._lock:
            return list(self._requests.values())


class InMemoryCompanyDirectory:
    """Implements CompanyDirectory protocol over a fixed set of companies."""

    def __init__(self, companies: Iterable[Company] = ()) -> None:
        self._companies = {company.id: company for company in companies}

    def find(self, identifier: str) -> Company | None:
        company = self._companies.get(identifier)
        if company is not None:
            return company
        for company in self._companies.values():
            if company.slug == identifier:
                return company
        return None

    def get(self, company_id: str) -> Company | None:
        return self._companies.get(company_id)
