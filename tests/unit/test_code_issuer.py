"""
Unit tests for CodeIssuer.

Tests code format, randomness, bcrypt hashing and expiry computation.
"""

import re
from datetime import datetime, timedelta, timezone

from src.domain.codes import CodeIssuer
from src.domain.policy import VerificationPolicy

NOW = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)


def make_issuer(ttl_minutes: int = 15) -> CodeIssuer:
    policy = VerificationPolicy(code_ttl=timedelta(minutes=ttl_minutes), bcrypt_cost=4)
    return CodeIssuer(policy, clock=lambda: NOW)


class TestCodeGeneration:
    def test_code_is_6_digit_string(self) -> None:
        """Verification code is a string (preserves leading zeros)."""
        issued = make_issuer().issue()
        assert isinstance(issued.code, str)
        assert re.match(r"^\d{6}$", issued.code)

    def test_codes_vary(self) -> None:
        """Verification codes are not always the same (randomness check)."""
        issuer = make_issuer()
        codes = {issuer.generate_code() for _ in range(20)}
        assert len(codes) >= 2


class TestCodeHashing:
    def test_hash_is_bcrypt_not_plaintext(self) -> None:
        issued = make_issuer().issue()
        assert issued.code not in issued.code_hash
        assert issued.code_hash.startswith("$2b$04$")

    def test_matches_correct_code(self) -> None:
        issued = make_issuer().issue()
        assert CodeIssuer.matches(issued.code, issued.code_hash)

    def test_rejects_wrong_code(self) -> None:
        issued = make_issuer().issue()
        wrong = "000000" if issued.code != "000000" else "111111"
        assert not CodeIssuer.matches(wrong, issued.code_hash)

    def test_malformed_hash_never_matches(self) -> None:
        assert not CodeIssuer.matches("123456", "not-a-bcrypt-hash")

    def test_same_code_hashes_differently(self) -> None:
        """Salted hashing: equal codes never share a hash."""
        issuer = make_issuer()
        assert issuer.hash_code("123456") != issuer.hash_code("123456")


class TestExpiry:
    def test_expires_after_ttl(self) -> None:
        assert make_issuer().issue().expires_at == NOW + timedelta(minutes=15)

    def test_custom_ttl(self) -> None:
        assert make_issuer(ttl_minutes=2).issue().expires_at == NOW + timedelta(minutes=2)
