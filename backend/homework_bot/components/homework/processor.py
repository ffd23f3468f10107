"""Homework cycle for a single candidate.

A candidate moves through these states, in order:

    NOT_ELIGIBLE -> HAS_OPEN_TASK -> FIELDS_VALIDATED -> REPOSITORY_PROVISIONED
        -> FINALIZED -> NOTIFIED -> CLEANED (only with DELETE_PROJECT_IN_THE_END)

Completing the homework task in Recruitee is what marks the cycle as done, so a
candidate is only ever picked up again if somebody opens a new homework task.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum

from ...errors import CandidateDataError, ErrorCode, ProvisioningIncompleteError
from ..gitlab.service import GitlabService
from ..notifications.service import HomeworkMailer
from ..notifications.templates import HomeworkMailValues
from ..recruitee.fields import (
    GITLAB_REPO_FIELD_NAME,
    GITLAB_USERNAME_FIELD_NAME,
    HOMEWORK_FIELD_NAME,
    dropdown_value,
    get_field,
    get_single_line_field,
)
from ..recruitee.service import RecruiteeService
from ..recruitee.types import Candidate, Task
from .due_dates import format_due_date_de, reminder_date
from .greetings import candidate_salutation, candidate_signature
from .provisioner import ProvisionedHomework, RepositoryProvisioner

logger = logging.getLogger(__name__)

HOMEWORK_TASK_TITLE = "hausaufgabe"
HOMEWORK_SENT_STAGE = "Hausaufgabe versendet"


class CandidateState(str, Enum):
    NOT_ELIGIBLE = "not_eligible"
    HAS_OPEN_TASK = "has_open_task"
    FIELDS_VALIDATED = "fields_validated"
    REPOSITORY_PROVISIONED = "repository_provisioned"
    FINALIZED = "finalized"
    NOTIFIED = "notified"
    CLEANED = "cleaned"


class ProcessingOutcome(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    BUSY = "busy"
    FAILED = "failed"


@dataclass
class ProcessingResult:
    candidate_id: int
    state: CandidateState
    outcome: ProcessingOutcome
    reason: str | None = None
    fork_url: str | None = None
    issue_url: str | None = None
    due_date: date | None = None


def is_homework_task(task: Task) -> bool:
    return not task.completed and task.title.lower() == HOMEWORK_TASK_TITLE


class CandidateProcessor:
    def __init__(
        self,
        recruitee: RecruiteeService,
        gitlab: GitlabService,
        provisioner: RepositoryProvisioner,
        mailer: HomeworkMailer,
        *,
        required_tag: str | None = None,
        strict_fields: bool = True,
        delete_project_in_the_end: bool = False,
    ):
        self.recruitee = recruitee
        self.gitlab = gitlab
        self.provisioner = provisioner
        self.mailer = mailer
        self.required_tag = required_tag or None
        self.strict_fields = strict_fields
        self.delete_project_in_the_end = delete_project_in_the_end

    def process(self, candidate: Candidate) -> ProcessingResult:
        if not self.has_required_tag(candidate):
            return ProcessingResult(
                candidate.id, CandidateState.NOT_ELIGIBLE, ProcessingOutcome.SKIPPED, "missing required tag"
            )

        task = self.get_homework_task(candidate)
        if task is None:
            return ProcessingResult(
                candidate.id, CandidateState.NOT_ELIGIBLE, ProcessingOutcome.SKIPPED, "no open homework task"
            )

        logger.info("Processing candidate with id %s. Task-ID: %s", candidate.id, task.id)
        state = CandidateState.HAS_OPEN_TASK

        try:
            email = self._require_email(candidate)
            homework = self._require_homework(candidate)
            gitlab_username = self._require_gitlab_username(candidate)
            state = CandidateState.FIELDS_VALIDATED
            gitlab_user = self.gitlab.get_user(gitlab_username)
            task_details = self.recruitee.get_task_details(task)
        except CandidateDataError as exc:
            if self.strict_fields:
                raise
            logger.warning("Skipping candidate %s: %s", candidate.id, exc)
            return ProcessingResult(candidate.id, state, ProcessingOutcome.SKIPPED, str(exc))

        provisioned = self.provisioner.provision(candidate, gitlab_user, homework, task)

        task_completed = False
        try:
            self.recruitee.complete_task(task.id)
            task_completed = True
            self.finalize(candidate, homework, provisioned.due_date)
            self.notify(candidate, email, task_details.references, provisioned)
        except Exception as exc:
            logger.error(
                "Homework cycle for candidate %s aborted after fork %s was created (task completed: %s)",
                candidate.id,
                provisioned.fork.web_url,
                task_completed,
            )
            raise ProvisioningIncompleteError(provisioned.fork.web_url, exc, task_completed=task_completed) from exc

        state = CandidateState.NOTIFIED

        if self.delete_project_in_the_end:
            self.cleanup(candidate.id, provisioned.fork.id)
            state = CandidateState.CLEANED

        return ProcessingResult(
            candidate.id,
            state,
            ProcessingOutcome.SENT,
            fork_url=provisioned.fork.web_url,
            issue_url=provisioned.issue.web_url,
            due_date=provisioned.due_date,
        )

    def has_required_tag(self, candidate: Candidate) -> bool:
        return self.required_tag in candidate.tags if self.required_tag else True

    def get_homework_task(self, candidate: Candidate) -> Task | None:
        homework_tasks = [task for task in self.recruitee.get_candidate_tasks(candidate.id) if is_homework_task(task)]
        if not homework_tasks:
            return None
        if len(homework_tasks) > 1:
            raise CandidateDataError(
                f"{ErrorCode.INCONSISTENT_DATA.value} Es scheinen mehrere Aufgaben mit Titel "
                f"'{HOMEWORK_TASK_TITLE}' vorhanden zu sein, bitte eines davon löschen."
            )
        return homework_tasks[0]

    def _require_email(self, candidate: Candidate) -> str:
        emails = [email.strip() for email in candidate.emails if email and email.strip()]
        if not emails:
            raise CandidateDataError(f"{ErrorCode.INCONSISTENT_DATA.value} Keine Mailadresse gefunden.")
        return emails[0]

    def _require_homework(self, candidate: Candidate) -> str:
        homework = (dropdown_value(candidate, HOMEWORK_FIELD_NAME) or "").strip()
        if not homework:
            raise CandidateDataError(
                f"{ErrorCode.MISSING_CANDIDATE_FIELD.value} Es wurde keine Hausaufgabe ausgewählt."
            )
        return homework

    def _require_gitlab_username(self, candidate: Candidate) -> str:
        field = get_single_line_field(candidate, GITLAB_USERNAME_FIELD_NAME)
        username = "".join(field.values[0].text.split()) if field and field.values else ""
        if not username:
            raise CandidateDataError(
                f"{ErrorCode.MISSING_CANDIDATE_FIELD.value} Es wurde kein GitLab-Benutzername angegeben."
            )
        return username

    def finalize(self, candidate: Candidate, homework: str, due_date: date) -> None:
        self.recruitee.proceed_candidate_to_stage(candidate, HOMEWORK_SENT_STAGE)
        self.recruitee.add_note(
            candidate.id,
            f'📤 Hausaufgabe "{homework}" versendet. Fällig am {format_due_date_de(due_date)}.',
        )

    def notify(
        self,
        candidate: Candidate,
        email: str,
        references,
        provisioned: ProvisionedHomework,
    ) -> None:
        values = HomeworkMailValues(
            applicant_name=candidate_salutation(candidate),
            issue_url=provisioned.issue.web_url,
            project_url=provisioned.fork.web_url,
            homework_due_date=reminder_date(provisioned.due_date),
            signature=candidate_signature(candidate, references),
        )
        self.mailer.send_homework_mail(candidate, email, values)

    def cleanup(self, candidate_id: int, fork_id: int) -> None:
        # Field state may have changed during the cycle, so work on a fresh copy.
        candidate = self.recruitee.get_candidate(candidate_id)
        self.gitlab.delete_project(fork_id)
        repo_field = get_field(candidate, GITLAB_REPO_FIELD_NAME)
        if repo_field is not None:
            self.recruitee.clear_field(candidate, repo_field)
