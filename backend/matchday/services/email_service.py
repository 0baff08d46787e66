"""SMTP email sender used for participant access links.

If ``SMTP_HOST`` is not set the service runs in dry-run mode
(logs messages but doesn't send).
"""

import logging
import re
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

from matchday import settings

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(address: str) -> bool:
    return bool(address and _EMAIL_RE.match(address.strip()))


class EmailService:
    def __init__(self):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.use_ssl = settings.SMTP_USE_SSL
        self.sender = settings.SMTP_SENDER or self.username or "no-reply@localhost"
        self.dry_run = not self.host
        if self.dry_run:
            logger.warning("SMTP host not configured. Email runs in dry-run mode. Set SMTP_HOST to send.")

    def send_email(self, to: str, subject: str, body: str) -> dict:
        """
        Send a plain-text email.

        Returns:
            dict with keys: message_id, status, error
        """
        if not validate_email(to):
            return {"message_id": None, "status": "failed", "error": f"Invalid email address: {to}"}

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        message["Message-ID"] = make_msgid()
        message.set_content(body)

        if self.dry_run:
            logger.info(f"[DRY RUN] Email to {to}: {subject}")
            return {
                "message_id": f"DRY_RUN_{datetime.now(timezone.utc).isoformat()}",
                "status": "dry_run",
                "error": None,
            }

        try:
            if self.use_ssl:
                with smtplib.SMTP_SSL(self.host, self.port or 465) as server:
                    if self.username and self.password:
                        server.login(self.username, self.password)
                    server.send_message(message)
            else:
                with smtplib.SMTP(self.host, self.port or 587) as server:
                    if self.use_tls:
                        server.starttls()
                    if self.username and self.password:
                        server.login(self.username, self.password)
                    server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return {"message_id": None, "status": "failed", "error": str(e)}

        logger.info(f"Email sent to {to}: {subject}")
        return {"message_id": message["Message-ID"], "status": "sent", "error": None}

    @property
    def is_configured(self) -> bool:
        return not self.dry_run


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the singleton EmailService instance."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
