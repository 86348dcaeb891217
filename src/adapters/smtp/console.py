"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging verification codes for local development.
"""

import logging
from datetime import datetime

from src.domain.ports import DeliveryResult

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Nothing is delivered, so every send reports sent=False and the
    verification flow falls back to the console channel.
    """

    @property
    def configured(self) -> bool:
        return False

    def send_verification_code(
        self, email: str, code: str, company_name: str, expires_at: datetime
    ) -> DeliveryResult:
        """
        Log verification code to console (simulates email delivery).

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit verification code
            company_name: Employer the code verifies
            expires_at: Code expiry
        """
        logger.info(
            "[VERIFICATION] Email: %s Company: %s Code: %s Expires: %s",
            email,
            company_name,
            code,
            expires_at.isoformat(),
        )
        return DeliveryResult(sent=False, error="email delivery not configured")
