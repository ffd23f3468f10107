from pydantic_settings import BaseSettings
from typing import Optional

from .brand import brand_email_from


class Settings(BaseSettings):
    # Deployment environment
    DEPLOYMENT_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Recruitee
    RECRUITEE_COMPANY_ID: str = ""
    RECRUITEE_API_TOKEN: str = ""
    RECRUITEE_API_BASE_URL: str = "https://api.recruitee.com/c"
    # Offers carrying this tag are the ones whose candidates the bot manages.
    RECRUITEE_OFFER_TAG: str = "HT-Bot Target"
    RECRUITEE_HTTP_TIMEOUT_SECONDS: float = 30.0

    # GitLab
    GITLAB_API_BASE_URL: str = "https://gitlab.com/api/v4"
    GITLAB_TOKEN: str = ""
    GITLAB_TEMPLATE_NAMESPACE: str = ""
    GITLAB_HOMEWORK_NAMESPACE: str = ""
    # 40 = Maintainer
    GITLAB_HOMEWORK_ACCESS_LEVEL: int = 40
    GITLAB_FORK_POLL_ATTEMPTS: int = 20
    GITLAB_FORK_POLL_INTERVAL_SECONDS: float = 1.0
    GITLAB_HTTP_TIMEOUT_SECONDS: float = 20.0

    # Submission listener
    # Public URL of POST /webhooks/gitlab; registered on every fork when set.
    LISTENER_WEBHOOK_URL: Optional[str] = None
    GITLAB_WEBHOOK_SECRET: str = ""

    # Homework cycle
    REQUIRED_TAG: Optional[str] = None
    DELETE_PROJECT_IN_THE_END: bool = False
    # Strict: missing candidate data is reported as a note. Lenient: logged and skipped.
    STRICT_CANDIDATE_FIELDS: bool = True
    HOMEWORK_DEFAULT_DURATION_DAYS: int = 8
    BATCH_MAX_WORKERS: int = 8

    # Scheduling
    POLL_INTERVAL_SECONDS: float = 300.0
    DISABLE_CELERY: bool = True

    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # Per-candidate in-progress marker: "memory" or "redis". Unset picks "redis" when Celery runs.
    CANDIDATE_LOCK_BACKEND: Optional[str] = None
    CANDIDATE_LOCK_TIMEOUT_SECONDS: float = 120.0

    # Mail: "recruitee" sends through the Recruitee mailbox, "resend" through Resend
    MAIL_TRANSPORT: str = "recruitee"
    HOMEWORK_MAIL_SUBJECT: str = "Deine Hausaufgabe"
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = brand_email_from()

    # Sentry
    SENTRY_DSN: Optional[str] = None

    @property
    def recruitee_base_url(self) -> str:
        return f"{self.RECRUITEE_API_BASE_URL.rstrip('/')}/{self.RECRUITEE_COMPANY_ID}"

    @property
    def candidate_lock_backend(self) -> str:
        backend = (self.CANDIDATE_LOCK_BACKEND or "").strip().lower()
        if backend:
            return backend
        return "memory" if self.DISABLE_CELERY else "redis"

    def model_post_init(self, __context) -> None:
        # Celery workers and the API are separate processes; in-memory locks would not see each other.
        if not self.DISABLE_CELERY and self.candidate_lock_backend == "memory":
            raise ValueError("CANDIDATE_LOCK_BACKEND=memory cannot be used with Celery enabled; use redis.")

    @property
    def required_tag(self) -> str | None:
        tag = (self.REQUIRED_TAG or "").strip()
        return tag or None

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


settings = Settings()
