"""
Identity binder - Links a verified email to a durable EMPLOYEE identity.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

import bcrypt

from .exceptions import RoleConflict
from .ports import Identity, IdentityRepository, Role

logger = logging.getLogger(__name__)


def clean_display_name(display_name: str | None) -> str | None:
    if display_name is None:
        return None
    stripped = display_name.strip()
    return stripped or None


@dataclass
class IdentityBinder:
    """
    Creates or refreshes the identity a verification authorizes.

    Vendor and admin identities are never repurposed: binding their email
    fails with RoleConflict and leaves them untouched.
    """

    identities: IdentityRepository
    bcrypt_cost: int = 10

    def bind(
        self,
        email: str,
        company_id: str,
        verified_at: datetime,
        display_name: str | None = None,
    ) -> Identity:
        """
        Bind email to an EMPLOYEE identity verified for company_id.

        Raises:
            RoleConflict: Email belongs to a VENDOR or ADMIN identity
        """
        name = clean_display_name(display_name)

        existing = self.identities.find_by_email(email)
        if existing is None:
            created = self.identities.create_employee(
                email=email,
                company_id=company_id,
                verified_at=verified_at,
                display_name=name,
                credential_hash=self._unusable_credential(),
            )
            if created is not None:
                logger.info("Created employee identity %s", created.id)
                return created
            # Lost a concurrent create for the same email
            existing = self.identities.find_by_email(email)
            if existing is None:
                raise RuntimeError("Identity vanished during concurrent create")

        if existing.role != Role.EMPLOYEE:
            logger.info("Refusing to bind %s identity %s", existing.role.value, existing.id)
            raise RoleConflict()

        refreshed = self.identities.refresh_employment(
            identity_id=existing.id,
            company_id=company_id,
            verified_at=verified_at,
            display_name=name,
        )
        if refreshed is None:
            # Role changed underneath us
            raise RoleConflict()
        return refreshed

    def _unusable_credential(self) -> str:
        """
        Hash of a random secret that is never disclosed.

        These identities sign in only by verifying again.
        """
        secret = secrets.token_urlsafe(32)
        return bcrypt.hashpw(secret.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()
