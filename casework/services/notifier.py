"""Outbound email and admin notifications"""
from datetime import datetime
from html import escape
import logging

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "[Gestion Familles]"


class Mailer:
    def send(self, to: str, subject: str, html_body: str) -> None:
        raise NotImplementedError


class LoggingMailer(Mailer):
    """Records outgoing mail in the log; delivery is handled outside this service"""

    def send(self, to: str, subject: str, html_body: str) -> None:
        logger.info(f"Mail to {to}: {subject} ({len(html_body)} chars)")


class AdminNotifier:
    def __init__(self, settings, mailer: Mailer):
        self.admin_email = settings.admin_email
        self.mailer = mailer

    def notify(self, subject: str, message: str) -> bool:
        """Send an HTML notice to the admin; returns False when nothing was sent"""
        if not self.admin_email:
            logger.warning(f"No admin email configured, notification dropped: {subject}")
            return False

        body = (
            "<html><body style=\"font-family: Arial, sans-serif;\">"
            f"<h2>{escape(subject)}</h2>"
            f"<p>{escape(message).replace(chr(10), '<br>')}</p>"
            f"<p style=\"color: #888; font-size: 12px;\">{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</p>"
            "</body></html>"
        )
        self.mailer.send(self.admin_email, f"{SUBJECT_PREFIX} {subject}", body)
        return True
