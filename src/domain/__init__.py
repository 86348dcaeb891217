"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for employee verification.
It defines its own port interfaces for infrastructure abstraction,
ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    AlreadyFinalized,
    CodeExpired,
    CodeRejected,
    CompanyNotFound,
    DeliveryFailed,
    DomainMismatch,
    IdentityNotFound,
    InvalidCode,
    InvalidEmail,
    NotFound,
    PersonalEmailRejected,
    RoleConflict,
    TooManyAttempts,
    VerificationError,
)
from .policy import VerificationPolicy
from .ports import (
    Company,
    CompanyDirectory,
    DeliveryResult,
    EmailSender,
    Identity,
    IdentityRepository,
    Role,
    SessionIssuer,
    VerificationRepository,
    VerificationRequest,
    VerificationStatus,
)
from .verification import (
    CompletedVerification,
    EmploymentStatus,
    StartedVerification,
    VerificationService,
)

__all__ = [
    "AlreadyFinalized",
    "CodeExpired",
    "CodeRejected",
    "Company",
    "CompanyDirectory",
    "CompanyNotFound",
    "CompletedVerification",
    "DeliveryFailed",
    "DeliveryResult",
    "DomainMismatch",
    "EmailSender",
    "EmploymentStatus",
    "Identity",
    "IdentityNotFound",
    "IdentityRepository",
    "InvalidCode",
    "InvalidEmail",
    "NotFound",
    "PersonalEmailRejected",
    "Role",
    "RoleConflict",
    "SessionIssuer",
    "StartedVerification",
    "TooManyAttempts",
    "VerificationError",
    "VerificationPolicy",
    "VerificationRepository",
    "VerificationRequest",
    "VerificationService",
    "VerificationStatus",
]
