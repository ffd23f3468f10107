"""Homework mail dispatch over the configured transport."""

import logging

from ...errors import TransportError
from ..recruitee.service import RecruiteeService
from ..recruitee.types import Candidate
from .email_client import EmailService
from .templates import HomeworkMailValues, homework_mail_html

logger = logging.getLogger(__name__)

TRANSPORT_RECRUITEE = "recruitee"
TRANSPORT_RESEND = "resend"


class HomeworkMailer:
    """Renders the homework mail and sends it through Recruitee or Resend."""

    def __init__(
        self,
        recruitee: RecruiteeService,
        *,
        subject: str,
        transport: str = TRANSPORT_RECRUITEE,
        email_service: EmailService | None = None,
    ):
        if transport == TRANSPORT_RESEND and email_service is None:
            raise ValueError("Resend transport requires an EmailService")
        if transport not in (TRANSPORT_RECRUITEE, TRANSPORT_RESEND):
            raise ValueError(f"Unknown mail transport: {transport}")
        self.recruitee = recruitee
        self.subject = subject
        self.transport = transport
        self.email_service = email_service

    def send_homework_mail(self, candidate: Candidate, candidate_email: str, values: HomeworkMailValues) -> None:
        html_body = homework_mail_html(values)
        if self.transport == TRANSPORT_RECRUITEE:
            self.recruitee.send_mail(candidate.id, candidate_email, self.subject, html_body)
            logger.info("Homework mail sent via Recruitee mailbox to candidate %s", candidate.id)
            return

        result = self.email_service.send_homework_mail(candidate_email, self.subject, html_body)
        if not result["success"]:
            raise TransportError("Resend", "POST", "/emails", None, result.get("error", "Email send failed"))
