"""
Resend email service for homework notifications.

Used when homework mail is not routed through the Recruitee mailbox.
"""

import logging

import resend

from ...platform.brand import brand_email_from

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional emails through Resend."""

    def __init__(self, api_key: str, from_email: str = brand_email_from()):
        resend.api_key = api_key
        self.from_email = from_email
        logger.info("EmailService initialised (from=%s)", self.from_email)

    def send_homework_mail(self, candidate_email: str, subject: str, html_body: str) -> dict:
        try:
            logger.info("Sending homework mail to %s", candidate_email)
            email = resend.Emails.send({
                "from": self.from_email,
                "to": [candidate_email],
                "subject": subject,
                "html": html_body,
            })
            email_id = email.get("id", "") if isinstance(email, dict) else str(email)
            logger.info("Homework mail sent successfully (email_id=%s, to=%s)", email_id, candidate_email)
            return {"success": True, "email_id": email_id}
        except Exception as e:
            logger.error("Failed to send homework mail to %s: %s", candidate_email, str(e))
            return {"success": False, "email_id": "", "error": str(e)}
