import logging
from .celery_app import celery_app
from ..errors import TransportError

logger = logging.getLogger(__name__)


@celery_app.task
def poll_pending_homeworks():
    """Periodic task: send homework to every qualified candidate with an open homework task."""
    from ..domains.adapters import build_batch_runner

    return build_batch_runner().poll()


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def process_issue_event(self, payload: dict):
    """Advance the candidate whose homework issue was closed."""
    from ..components.gitlab.types import IssueEvent
    from ..domains.adapters import build_submission_listener

    event = IssueEvent.model_validate(payload)
    try:
        result = build_submission_listener().handle_issue_event(event)
    except TransportError as exc:
        logger.error("Failed to process submission for %s: %s", event.project.web_url, exc, extra={"request_id": self.request.id})
        raise self.retry(exc=exc)
    if result["status"] == "busy":
        raise self.retry()
    return result
