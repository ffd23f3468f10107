# Webhook routes for GitLab issue events on homework forks.
from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ...components.gitlab.types import IssueEvent
from ...components.homework.listener import SubmissionListener
from ...errors import HomeworkBotError
from ...platform.config import settings
from ..adapters import build_submission_listener

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def get_submission_listener() -> SubmissionListener:
    return build_submission_listener()


@router.post("/gitlab")
async def gitlab_webhook(request: Request, listener: SubmissionListener = Depends(get_submission_listener)):
    """Handle GitLab issue events (token check, then hand off to the submission listener)."""
    if settings.GITLAB_WEBHOOK_SECRET:
        token = request.headers.get("X-Gitlab-Token", "")
        if not hmac.compare_digest(token, settings.GITLAB_WEBHOOK_SECRET):
            raise HTTPException(status_code=401, detail="Invalid webhook token")

    try:
        payload = await request.json()
        event = IssueEvent.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=400, detail="Invalid issue event payload") from exc

    if event.object_attributes.action != "close":
        return {"status": "ignored"}

    if not settings.DISABLE_CELERY:
        from ...tasks.homework_tasks import process_issue_event

        process_issue_event.delay(event.model_dump())
        return {"status": "queued"}

    try:
        return await run_in_threadpool(listener.handle_issue_event, event)
    except HomeworkBotError as exc:
        logger.error("Failed to process submission for %s: %s", event.project.web_url, exc)
        raise HTTPException(status_code=502, detail="Submission could not be processed") from exc
