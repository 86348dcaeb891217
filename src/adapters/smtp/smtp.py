"""
SMTP email sender adapter - Implements EmailSender protocol.

Sends the verification code as a plain text + HTML message over
STARTTLS. Delivery problems are reported in the DeliveryResult, never
raised.
"""

import html
import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from src.domain.ports import DeliveryResult

logger = logging.getLogger(__name__)


def build_verification_message(
    sender: str, to: str, code: str, company_name: str, expires_at: datetime
) -> MIMEMultipart:
    """Plain and HTML parts for a verification code email."""
    expires_text = expires_at.isoformat()
    text = "\n".join(
        [
            f"Your verification code is: {code}",
            f"This code expires at {expires_text}.",
        ]
    )
    body_html = f"""<div style="font-family: Arial, sans-serif; line-height: 1.6;">
<h2 style="margin: 0 0 12px;">Verify your employment</h2>
<p>Your verification code is:</p>
<p style="font-size: 24px; font-weight: bold; letter-spacing: 2px;">{html.escape(code)}</p>
<p>This code expires at {html.escape(expires_text)}.</p>
</div>"""

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"Your {company_name} verification code"
    msg["From"] = sender
    msg["To"] = to
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(body_html, "html"))
    return msg


class SmtpEmailSender:
    """
    Implements EmailSender protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Each send opens its own connection bounded by timeout seconds.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str | None,
        from_email: str,
        from_name: str = "",
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password or ""
        self._from_email = from_email
        self._from_name = from_name
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return True

    def send_verification_code(
        self, email: str, code: str, company_name: str, expires_at: datetime
    ) -> DeliveryResult:
        sender = formataddr((self._from_name, self._from_email))
        msg = build_verification_message(sender, email, code, company_name, expires_at)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                server.starttls()
                server.login(self._user, self._password)
                server.sendmail(self._from_email, [email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP delivery to %s failed: %s", email, e)
            return DeliveryResult(sent=False, error=str(e) or type(e).__name__)
        return DeliveryResult(sent=True)
