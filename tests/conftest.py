"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory repositories seeded with companies
- A mocked email sender that records the plaintext code
- A verification service wired from the above
"""

from collections.abc import Callable
from datetime import timedelta
from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import (
    InMemoryCompanyDirectory,
    InMemoryIdentityRepository,
    InMemoryVerificationRepository,
)
from src.adapters.session.jwt import JwtSessionIssuer
from src.domain.policy import VerificationPolicy
from src.domain.ports import DeliveryResult
from src.domain.verification import VerificationService
from tests.support import ACME, OPEN_CO, TEST_JWT_SECRET, FakeClock, wrong_code_for


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policy() -> VerificationPolicy:
    """Default limits with a cheap bcrypt cost for fast tests."""
    return VerificationPolicy(code_ttl=timedelta(minutes=15), max_attempts=5, bcrypt_cost=4)


@pytest.fixture
def identities() -> InMemoryIdentityRepository:
    return InMemoryIdentityRepository()


@pytest.fixture
def verifications(identities: InMemoryIdentityRepository) -> InMemoryVerificationRepository:
    return InMemoryVerificationRepository(identities)


@pytest.fixture
def companies() -> InMemoryCompanyDirectory:
    return InMemoryCompanyDirectory([ACME, OPEN_CO])


@pytest.fixture
def email_sender() -> Mock:
    sender = Mock()
    sender.configured = True
    sender.send_verification_code.return_value = DeliveryResult(sent=True)
    return sender


@pytest.fixture
def session_issuer() -> JwtSessionIssuer:
    return JwtSessionIssuer(secret=TEST_JWT_SECRET)


@pytest.fixture
def service(
    verifications: InMemoryVerificationRepository,
    identities: InMemoryIdentityRepository,
    companies: InMemoryCompanyDirectory,
    email_sender: Mock,
    session_issuer: JwtSessionIssuer,
    policy: VerificationPolicy,
    clock: FakeClock,
) -> VerificationService:
    return VerificationService(
        verifications=verifications,
        identities=identities,
        companies=companies,
        email_sender=email_sender,
        session_issuer=session_issuer,
        policy=policy,
        clock=clock,
    )


@pytest.fixture
def last_code(email_sender: Mock) -> Callable[[], str]:
    """Plaintext code from the most recent send."""

    def _last_code() -> str:
        return email_sender.send_verification_code.call_args[0][1]

    return _last_code


@pytest.fixture
def wrong_code() -> Callable[[str], str]:
    return wrong_code_for
