"""
Verification policy - Immutable rules for the verification flow.

The application builds one policy from settings at startup; the domain
services only ever see this frozen value.
"""

from dataclasses import dataclass, field
from datetime import timedelta

# Consumer mail providers that never prove employment.
PERSONAL_EMAIL_DOMAINS = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "live.com",
        "icloud.com",
        "aol.com",
        "proton.me",
        "protonmail.com",
        "pm.me",
        "gmx.com",
    }
)


@dataclass(frozen=True)
class VerificationPolicy:
    """
    Verification rules injected into the domain services.

    Attributes:
        code_ttl: How long an issued code stays matchable
        max_attempts: Failed matches allowed per issued code
        production: Whether this is a production deployment
        allow_personal_emails: Accept consumer mail domains (never in production)
        echo_code: Return the plaintext code to the caller (never in production)
        bcrypt_cost: bcrypt work factor for code and credential hashes
        personal_domains: Deny-list of consumer mail domains
    """

    code_ttl: timedelta = timedelta(minutes=15)
    max_attempts: int = 5
    production: bool = False
    allow_personal_emails: bool = False
    echo_code: bool = False
    bcrypt_cost: int = 10
    personal_domains: frozenset[str] = field(default=PERSONAL_EMAIL_DOMAINS)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.code_ttl <= timedelta(0):
            raise ValueError("code_ttl must be positive")
        # Development affordances never survive into production.
        if self.production:
            object.__setattr__(self, "allow_personal_emails", False)
            object.__setattr__(self, "echo_code", False)
