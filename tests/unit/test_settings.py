"""
Unit tests for Settings and VerificationPolicy.

Tests environment loading and the production safety rails.
"""

from datetime import timedelta

import pytest

from src.config.settings import Settings
from src.domain.policy import PERSONAL_EMAIL_DOMAINS, VerificationPolicy


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.environment == "development"
        assert settings.verification_code_ttl_minutes == 15
        assert settings.verification_code_max_attempts == 5
        assert settings.allow_personal_email_verification is False

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VERIFICATION_CODE_TTL_MINUTES", "3")
        monkeypatch.setenv("VERIFICATION_CODE_MAX_ATTEMPTS", "2")
        monkeypatch.setenv("ENVIRONMENT", "test")

        settings = Settings(_env_file=None)

        assert settings.verification_code_ttl_minutes == 3
        assert settings.verification_code_max_attempts == 2
        assert settings.environment == "test"

    def test_policy_from_settings(self) -> None:
        settings = Settings(
            _env_file=None,
            verification_code_ttl_minutes=10,
            verification_code_max_attempts=3,
            allow_personal_email_verification=True,
            return_verification_code=True,
            bcrypt_cost=5,
        )

        policy = settings.verification_policy()

        assert policy.code_ttl == timedelta(minutes=10)
        assert policy.max_attempts == 3
        assert policy.allow_personal_emails is True
        assert policy.echo_code is True
        assert policy.bcrypt_cost == 5
        assert policy.production is False

    def test_production_forces_development_flags_off(self) -> None:
        settings = Settings(
            _env_file=None,
            environment="production",
            allow_personal_email_verification=True,
            return_verification_code=True,
        )

        policy = settings.verification_policy()

        assert policy.production is True
        assert policy.allow_personal_emails is False
        assert policy.echo_code is False


class TestVerificationPolicy:
    def test_policy_is_immutable(self) -> None:
        policy = VerificationPolicy()
        with pytest.raises(AttributeError):
            policy.max_attempts = 100  # type: ignore[misc]

    def test_rejects_non_positive_limits(self) -> None:
        with pytest.raises(ValueError):
            VerificationPolicy(max_attempts=0)
        with pytest.raises(ValueError):
            VerificationPolicy(code_ttl=timedelta(0))

    def test_default_deny_list(self) -> None:
        assert "gmail.com" in VerificationPolicy().personal_domains
        assert VerificationPolicy().personal_domains == PERSONAL_EMAIL_DOMAINS
