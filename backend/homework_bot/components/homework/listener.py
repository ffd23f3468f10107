from __future__ import annotations

import logging

from ...platform.request_context import reset_candidate_id, set_candidate_id
from ..gitlab.types import IssueEvent
from ..recruitee.service import RecruiteeService
from .locks import CandidateLocks

logger = logging.getLogger(__name__)

HOMEWORK_RECEIVED_STAGE = "Hausaufgabe erhalten"
CLOSE_ACTION = "close"


class SubmissionListener:
    """Moves a candidate on once the homework issue in their fork gets closed."""

    def __init__(self, recruitee: RecruiteeService, locks: CandidateLocks, *, lock_timeout: float = 120.0):
        self.recruitee = recruitee
        self.locks = locks
        self.lock_timeout = lock_timeout

    def handle_issue_event(self, event: IssueEvent) -> dict:
        action = event.object_attributes.action
        if event.object_kind != "issue" or action != CLOSE_ACTION:
            logger.debug("Ignoring %s event with action=%s", event.object_kind, action)
            return {"status": "ignored"}

        repo_url = event.project.web_url
        candidate = self.recruitee.get_candidate_by_repo_url(repo_url)
        if candidate is None:
            logger.info("No candidate found for closed homework issue in %s", repo_url)
            return {"status": "ignored", "reason": "unknown_repository"}

        token = set_candidate_id(candidate.id)
        try:
            with self.locks.hold(candidate.id, blocking=True, timeout=self.lock_timeout) as acquired:
                if not acquired:
                    logger.warning("Candidate %s still busy, leaving submission for re-delivery", candidate.id)
                    return {"status": "busy", "candidate_id": candidate.id}

                stage = self.recruitee.proceed_candidate_to_stage(candidate, HOMEWORK_RECEIVED_STAGE)
                self.recruitee.add_note(candidate.id, f"📥 Hausaufgabe abgegeben: {repo_url}")
                logger.info(
                    "Homework submitted by candidate %s (%s, issue %s)",
                    candidate.id,
                    repo_url,
                    event.object_attributes.url,
                )
                return {"status": "processed", "candidate_id": candidate.id, "stage": stage.name}
        finally:
            reset_candidate_id(token)
