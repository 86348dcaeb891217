"""
Domain matcher - Checks that an email address belongs to an employer.
"""

import logging

from .exceptions import DomainMismatch, InvalidEmail, PersonalEmailRejected
from .policy import VerificationPolicy

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Apply strip + lowercase."""
    return email.strip().lower()


def extract_domain(email: str) -> str:
    """Return the part after the last '@', or '' if there is none."""
    at = email.rfind("@")
    if at == -1:
        return ""
    return email[at + 1 :].lower()


def domain_matches(domain: str, registered_domain: str) -> bool:
    """
    Exact match or subdomain match.

    x.acme.com matches acme.com; evilacme.com does not.
    """
    registered = registered_domain.strip().strip(".").lower()
    return domain == registered or domain.endswith("." + registered)


class DomainMatcher:
    """Validates candidate addresses against a company's registered domain."""

    def __init__(self, policy: VerificationPolicy) -> None:
        self._policy = policy

    def check_address(self, email: str) -> str:
        """
        Validate the address on its own, before any company is known.

        Returns:
            Normalized email address

        Raises:
            InvalidEmail: No '@' or nothing after it
            PersonalEmailRejected: Consumer mail domain and personal
                addresses are not allowed
        """
        normalized = normalize_email(email)
        domain = extract_domain(normalized)
        if not domain:
            raise InvalidEmail()

        if domain in self._policy.personal_domains and not self._policy.allow_personal_emails:
            logger.info("Rejected personal email domain %s", domain)
            raise PersonalEmailRejected(domain)

        return normalized

    def validate(self, email: str, registered_domain: str | None) -> str:
        """
        Validate email for a company.

        A company without a registered domain accepts any work address.

        Returns:
            Normalized email address

        Raises:
            InvalidEmail, PersonalEmailRejected, DomainMismatch
        """
        normalized = self.check_address(email)
        if not registered_domain:
            return normalized

        domain = extract_domain(normalized)
        if not domain_matches(domain, registered_domain):
            logger.info("Email domain %s does not match %s", domain, registered_domain)
            raise DomainMismatch(registered_domain)
        return normalized
