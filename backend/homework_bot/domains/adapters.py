from __future__ import annotations

from functools import lru_cache

import redis

from ..components.gitlab.service import GitlabService
from ..components.homework.batch import BatchRunner
from ..components.homework.listener import SubmissionListener
from ..components.homework.locks import CandidateLocks, InProcessCandidateLocks, RedisCandidateLocks
from ..components.homework.processor import CandidateProcessor
from ..components.homework.provisioner import RepositoryProvisioner
from ..components.notifications.email_client import EmailService
from ..components.notifications.service import TRANSPORT_RESEND, HomeworkMailer
from ..components.recruitee.service import RecruiteeService
from ..platform.config import settings


def build_recruitee_adapter() -> RecruiteeService:
    return RecruiteeService(
        settings.recruitee_base_url,
        settings.RECRUITEE_API_TOKEN,
        offer_tag=settings.RECRUITEE_OFFER_TAG,
        timeout=settings.RECRUITEE_HTTP_TIMEOUT_SECONDS,
    )


def build_gitlab_adapter() -> GitlabService:
    return GitlabService(
        settings.GITLAB_TOKEN,
        settings.GITLAB_TEMPLATE_NAMESPACE,
        settings.GITLAB_HOMEWORK_NAMESPACE,
        base_url=settings.GITLAB_API_BASE_URL,
        webhook_url=settings.LISTENER_WEBHOOK_URL,
        webhook_secret=settings.GITLAB_WEBHOOK_SECRET,
        access_level=settings.GITLAB_HOMEWORK_ACCESS_LEVEL,
        fork_poll_attempts=settings.GITLAB_FORK_POLL_ATTEMPTS,
        fork_poll_interval=settings.GITLAB_FORK_POLL_INTERVAL_SECONDS,
        timeout=settings.GITLAB_HTTP_TIMEOUT_SECONDS,
    )


def build_email_adapter() -> EmailService:
    return EmailService(api_key=settings.RESEND_API_KEY, from_email=settings.EMAIL_FROM)


def build_mailer(recruitee: RecruiteeService) -> HomeworkMailer:
    email_service = build_email_adapter() if settings.MAIL_TRANSPORT == TRANSPORT_RESEND else None
    return HomeworkMailer(
        recruitee,
        subject=settings.HOMEWORK_MAIL_SUBJECT,
        transport=settings.MAIL_TRANSPORT,
        email_service=email_service,
    )


@lru_cache(maxsize=1)
def get_candidate_locks() -> CandidateLocks:
    """One registry per process, shared by the poller and the webhook route."""
    if settings.candidate_lock_backend == "redis":
        return RedisCandidateLocks(redis.from_url(settings.REDIS_URL))
    if settings.candidate_lock_backend != "memory":
        raise ValueError(f"Unknown candidate lock backend: {settings.candidate_lock_backend}")
    return InProcessCandidateLocks()


def build_processor(recruitee: RecruiteeService, gitlab: GitlabService) -> CandidateProcessor:
    provisioner = RepositoryProvisioner(
        gitlab,
        recruitee,
        default_duration_days=settings.HOMEWORK_DEFAULT_DURATION_DAYS,
    )
    return CandidateProcessor(
        recruitee,
        gitlab,
        provisioner,
        build_mailer(recruitee),
        required_tag=settings.required_tag,
        strict_fields=settings.STRICT_CANDIDATE_FIELDS,
        delete_project_in_the_end=settings.DELETE_PROJECT_IN_THE_END,
    )


def build_batch_runner() -> BatchRunner:
    recruitee = build_recruitee_adapter()
    return BatchRunner(
        recruitee,
        build_processor(recruitee, build_gitlab_adapter()),
        get_candidate_locks(),
        max_workers=settings.BATCH_MAX_WORKERS,
    )


def build_submission_listener() -> SubmissionListener:
    return SubmissionListener(
        build_recruitee_adapter(),
        get_candidate_locks(),
        lock_timeout=settings.CANDIDATE_LOCK_TIMEOUT_SECONDS,
    )
