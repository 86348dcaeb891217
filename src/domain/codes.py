"""
Code issuer - One-time code generation and hashing.
"""

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import bcrypt

from .policy import VerificationPolicy

CODE_LENGTH = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IssuedCode:
    code: str
    code_hash: str
    expires_at: datetime


class CodeIssuer:
    """
    Issues six digit one-time codes.

    Codes come from the secrets module (a predictable code is an account
    takeover) and are stored only as bcrypt hashes.
    """

    def __init__(
        self, policy: VerificationPolicy, clock: Callable[[], datetime] = utcnow
    ) -> None:
        self._policy = policy
        self._clock = clock

    def issue(self) -> IssuedCode:
        code = self.generate_code()
        return IssuedCode(
            code=code,
            code_hash=self.hash_code(code),
            expires_at=self._clock() + self._policy.code_ttl,
        )

    def generate_code(self) -> str:
        """Returns string to preserve leading zeros."""
        return "".join(secrets.choice("0123456789") for _ in range(CODE_LENGTH))

    def hash_code(self, code: str) -> str:
        return bcrypt.hashpw(code.encode(), bcrypt.gensalt(rounds=self._policy.bcrypt_cost)).decode()

    @staticmethod
    def matches(code: str, code_hash: str) -> bool:
        """Constant-time comparison via bcrypt.checkpw."""
        try:
            return bcrypt.checkpw(code.encode(), code_hash.encode())
        except ValueError:
            # Malformed stored hash never matches
            return False
