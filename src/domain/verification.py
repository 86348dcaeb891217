"""
Employee verification domain service - Verification ledger state machine.

This module contains the core business logic for proving that a visitor
holds a working mailbox at a given employer, and for binding that proof
to a durable identity exactly once.

Verification State Machine (Forward-Only Transitions)
=====================================================

States:
- PENDING: Code issued, waiting for a match
- VERIFIED: Terminal, code redeemed and identity bound
- EXPIRED: Terminal, code TTL elapsed before a match

Valid Transitions:
    PENDING -> VERIFIED  (correct code within TTL and attempt ceiling)
    PENDING -> EXPIRED   (verify arrived after code_expires_at)

Reissuing a code for the same company and email while a request is
PENDING overwrites that request's code hash and expiry and resets its
attempt counter; it never creates a second PENDING request.

Every verify runs inside VerificationRepository.lock(), an exclusive
scope on the request row, so the expiry, attempt ceiling, attempt
increment and redemption are each applied against the state read under
the same lock. Identity binding runs on the store joined to that scope, so
the bound identity and the VERIFIED transition commit together. Two
concurrent submissions of the correct code yield one VERIFIED transition
and one AlreadyFinalized.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from .codes import CodeIssuer, utcnow
from .domain_matcher import DomainMatcher
from .exceptions import (
    AlreadyFinalized,
    CodeExpired,
    CodeRejected,
    CompanyNotFound,
    DeliveryFailed,
    IdentityNotFound,
    InvalidCode,
    NotFound,
    TooManyAttempts,
)
from .identity import IdentityBinder
from .policy import VerificationPolicy
from .ports import (
    Company,
    CompanyDirectory,
    EmailSender,
    Identity,
    IdentityRepository,
    SessionIssuer,
    VerificationLock,
    VerificationRepository,
    VerificationStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartedVerification:
    verification_id: str
    expires_at: datetime
    delivery_channel: str  # "email" or "console"
    email_configured: bool
    company: Company
    dev_code: str | None = None


@dataclass(frozen=True)
class CompletedVerification:
    identity: Identity
    session_token: str
    company: Company | None


@dataclass(frozen=True)
class EmploymentStatus:
    verified: bool
    verified_at: datetime | None = None
    company: Company | None = None


@dataclass
class VerificationService:
    """
    Domain service for employee verification.

    Orchestrates the flow: domain matching, code issuance, ledger
    persistence, delivery, redemption, identity binding and session
    issuance.
    """

    verifications: VerificationRepository
    identities: IdentityRepository
    companies: CompanyDirectory
    email_sender: EmailSender
    session_issuer: SessionIssuer
    policy: VerificationPolicy = field(default_factory=VerificationPolicy)
    clock: Callable[[], datetime] = utcnow

    def __post_init__(self) -> None:
        self._matcher = DomainMatcher(self.policy)
        self._issuer = CodeIssuer(self.policy, self.clock)
        # Compared against when the request id is unknown, so missing and
        # real requests cost the same bcrypt round.
        self._dummy_hash = self._issuer.hash_code(self._issuer.generate_code())

    def start(self, company_identifier: str, email: str) -> StartedVerification:
        """
        Issue a code for (company, email) and send it.

        Args:
            company_identifier: Company id or slug
            email: Candidate work address (will be normalized)

        Returns:
            StartedVerification with the request id and expiry

        Raises:
            InvalidEmail: Address has no domain
            PersonalEmailRejected: Consumer mail domain
            CompanyNotFound: Unknown company
            DomainMismatch: Address outside the company's domain
            DeliveryFailed: Email could not be sent (production only)
        """
        normalized_email = self._matcher.check_address(email)

        company = self.companies.find(company_identifier.strip())
        if company is None:
            raise CompanyNotFound()

        normalized_email = self._matcher.validate(normalized_email, company.registered_domain)

        issued = self._issuer.issue()
        request = self.verifications.supersede_or_create(
            company_id=company.id,
            email=normalized_email,
            code_hash=issued.code_hash,
            expires_at=issued.expires_at,
            now=self.clock(),
        )

        delivery = self.email_sender.send_verification_code(
            normalized_email, issued.code, company.name, request.code_expires_at
        )
        if not delivery.sent:
            if self.policy.production:
                logger.error(
                    "Verification email for request %s failed: %s", request.id, delivery.error
                )
                raise DeliveryFailed(delivery.error)
            logger.warning(
                "[verification] email not sent (%s); %s -> %s: %s (expires %s)",
                delivery.error,
                normalized_email,
                company.slug,
                issued.code,
                request.code_expires_at.isoformat(),
            )

        return StartedVerification(
            verification_id=request.id,
            expires_at=request.code_expires_at,
            delivery_channel="email" if delivery.sent else "console",
            email_configured=self.email_sender.configured,
            company=company,
            dev_code=issued.code if self.policy.echo_code else None,
        )

    def verify(
        self, verification_id: str, code: str, display_name: str | None = None
    ) -> CompletedVerification:
        """
        Redeem a code and bind the identity it authorizes.

        Args:
            verification_id: Request id returned by start()
            code: Six digit code from the email
            display_name: Name for a new identity, or one that has none

        Returns:
            CompletedVerification with the bound identity and session token

        Raises:
            NotFound, AlreadyFinalized, CodeExpired, TooManyAttempts,
            InvalidCode: Code could not be redeemed
            RoleConflict: Email belongs to a vendor or admin identity
        """
        with self.verifications.lock(verification_id) as locked:
            outcome = self._redeem(locked, code, display_name)

        # Raised after the scope closes so expiry and attempt transitions commit.
        if isinstance(outcome, CodeRejected):
            logger.info(
                "Verification %s rejected: %s", verification_id, type(outcome).__name__
            )
            raise outcome

        request = locked.request
        company = self.companies.get(request.company_id)
        token = self.session_issuer.issue(outcome)
        logger.info("Verification %s bound to identity %s", verification_id, outcome.id)
        return CompletedVerification(identity=outcome, session_token=token, company=company)

    def _redeem(
        self, locked: VerificationLock, code: str, display_name: str | None
    ) -> Identity | CodeRejected:
        request = locked.request

        if request is None:
            self._issuer.matches(code, self._dummy_hash)
            return NotFound()

        if request.status != VerificationStatus.PENDING:
            return AlreadyFinalized()

        if self.clock() >= request.code_expires_at:
            locked.mark_expired()
            return CodeExpired()

        # Ceiling, not a tally: rejected without incrementing.
        if request.attempts >= self.policy.max_attempts:
            return TooManyAttempts()

        if not self._issuer.matches(code, request.code_hash):
            attempts = locked.record_failed_attempt()
            logger.info(
                "Verification %s failed attempt %d/%d",
                request.id,
                attempts,
                self.policy.max_attempts,
            )
            return InvalidCode()

        verified_at = self.clock()
        # Bound through the lock so the identity write commits with VERIFIED.
        binder = IdentityBinder(locked.identities, bcrypt_cost=self.policy.bcrypt_cost)
        identity = binder.bind(
            email=request.email,
            company_id=request.company_id,
            verified_at=verified_at,
            display_name=display_name,
        )
        locked.mark_verified(verified_at, identity.id)
        return identity

    def status(self, identity_id: str) -> EmploymentStatus:
        """
        Read-only projection of an identity's employment verification.

        Raises:
            IdentityNotFound: Unknown identity
        """
        identity = self.identities.get(identity_id)
        if identity is None:
            raise IdentityNotFound()

        company = None
        if identity.employee_company_id is not None:
            company = self.companies.get(identity.employee_company_id)

        return EmploymentStatus(
            verified=identity.employment_verified_at is not None,
            verified_at=identity.employment_verified_at,
            company=company,
        )
