from .celery_app import celery_app
from .homework_tasks import poll_pending_homeworks, process_issue_event
from .poller import HomeworkPoller

__all__ = [
    "celery_app",
    "poll_pending_homeworks",
    "process_issue_event",
    "HomeworkPoller",
]
