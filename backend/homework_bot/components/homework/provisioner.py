from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date

from ...errors import ErrorCode, GitlabError, ProvisioningIncompleteError
from ..gitlab.service import GitlabService
from ..gitlab.types import GitlabProject, GitlabUser, Issue
from ..recruitee.fields import GITLAB_REPO_FIELD_NAME
from ..recruitee.service import RecruiteeService
from ..recruitee.types import Candidate, Task
from .due_dates import DEFAULT_HOMEWORK_DURATION_IN_DAYS, compute_due_date

logger = logging.getLogger(__name__)

HOMEWORK_ISSUE_TITLE = "Hausaufgabe abschließen"
FORK_SUFFIX_RANGE = 1_000_000_000_000


@dataclass
class ProvisionedHomework:
    fork: GitlabProject
    issue: Issue
    due_date: date


def homework_issue_description(applicant_name: str, branch_name: str | None) -> str:
    lines = [
        f"Hallo {applicant_name},",
        "",
        "in diesem Repository findest du deine Hausaufgabe. Die Aufgabenstellung steht in der README.",
    ]
    if branch_name:
        lines.append(f"Bitte pushe deine Lösung auf den Branch `{branch_name}`.")
    lines.extend(
        [
            "",
            "Wenn du fertig bist, schließe bitte dieses Issue. Damit gilt die Hausaufgabe als abgegeben.",
        ]
    )
    return "\n".join(lines)


class RepositoryProvisioner:
    """Creates the candidate's homework fork, grants access and opens the tracking issue."""

    def __init__(
        self,
        gitlab: GitlabService,
        recruitee: RecruiteeService,
        *,
        rng: random.Random | None = None,
        default_duration_days: int = DEFAULT_HOMEWORK_DURATION_IN_DAYS,
    ):
        self.gitlab = gitlab
        self.recruitee = recruitee
        self.rng = rng or random.Random()
        self.default_duration_days = default_duration_days

    def fork_name(self, gitlab_user: GitlabUser) -> str:
        return f"homework-{gitlab_user.username}-{self.rng.randrange(FORK_SUFFIX_RANGE)}"

    def provision(
        self,
        candidate: Candidate,
        gitlab_user: GitlabUser,
        homework: str,
        task: Task,
    ) -> ProvisionedHomework:
        template = self.gitlab.get_homework_project(homework)
        if template is None:
            raise GitlabError(
                f"{ErrorCode.MISSING_CANDIDATE_FIELD.value} Es gibt keine Hausaufgaben-Vorlage mit dem Namen '{homework}'."
            )

        fork = self.gitlab.fork_homework(template.id, self.fork_name(gitlab_user), wait=False)
        try:
            self.gitlab.wait_for_fork_finish(fork.id)
            return self._finish(candidate, gitlab_user, task, fork)
        except Exception as exc:
            logger.error("Provisioning for candidate %s aborted after fork %s was created", candidate.id, fork.web_url)
            raise ProvisioningIncompleteError(fork.web_url, exc) from exc

    def _finish(
        self,
        candidate: Candidate,
        gitlab_user: GitlabUser,
        task: Task,
        fork: GitlabProject,
    ) -> ProvisionedHomework:
        self.gitlab.add_issue_webhook(fork.id)

        due_date = compute_due_date(task, self.default_duration_days)

        self.gitlab.add_maintainer_to_project(fork.id, gitlab_user.id, due_date)

        branch_name = fork.default_branch
        if branch_name is None:
            branches = self.gitlab.get_branches(fork)
            default = next((branch for branch in branches if branch.default), None)
            branch_name = default.name if default else None

        issue = self.gitlab.create_homework_issue(
            fork.id,
            gitlab_user.id,
            due_date,
            title=HOMEWORK_ISSUE_TITLE,
            description=homework_issue_description(candidate.name, branch_name),
        )

        self.recruitee.set_single_line_field(candidate, GITLAB_REPO_FIELD_NAME, fork.web_url)

        logger.info(
            "Provisioned homework fork %s (issue=%s, due=%s) for candidate %s",
            fork.web_url,
            issue.web_url,
            due_date.isoformat(),
            candidate.id,
        )
        return ProvisionedHomework(fork=fork, issue=issue, due_date=due_date)
