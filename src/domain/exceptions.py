"""
Domain exceptions - Semantic error types for employee verification.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Hierarchy:
- InputError: malformed client input, no state change
- PolicyRejection: well-formed request refused by business rules
- CodeRejected: one-time code could not be redeemed
"""


class VerificationError(Exception):
    """Base class for verification domain errors."""

    pass


class InputError(VerificationError):
    """Client supplied input that cannot be processed."""

    pass


class InvalidEmail(InputError):
    """Email address has no usable domain."""

    pass


class CompanyNotFound(InputError):
    """No company matches the supplied id or slug."""

    pass


class PolicyRejection(VerificationError):
    """Request refused by verification policy."""

    pass


class PersonalEmailRejected(PolicyRejection):
    """Email belongs to a consumer mail provider."""

    pass


class DomainMismatch(PolicyRejection):
    """Email domain is not the company's registered domain."""

    pass


class RoleConflict(PolicyRejection):
    """Email already belongs to a vendor or admin identity."""

    pass


class CodeRejected(VerificationError):
    """One-time code could not be redeemed."""

    pass


class NotFound(CodeRejected):
    """Verification request does not exist."""

    pass


class AlreadyFinalized(CodeRejected):
    """Verification request is VERIFIED or EXPIRED."""

    pass


class CodeExpired(CodeRejected):
    """Code TTL elapsed before a successful match."""

    pass


class TooManyAttempts(CodeRejected):
    """Failed attempt ceiling reached for the current code."""

    pass


class InvalidCode(CodeRejected):
    """Supplied code does not match."""

    pass


class DeliveryFailed(VerificationError):
    """Verification email could not be sent (production only)."""

    pass


class IdentityNotFound(VerificationError):
    """Identity does not exist."""

    pass
