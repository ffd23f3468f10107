import os
# Pin settings before any homework_bot imports so no test reaches a real Recruitee or GitLab.
os.environ["DEPLOYMENT_ENV"] = "test"
os.environ["DISABLE_CELERY"] = "true"
# 0 keeps the in-process poller from starting when the app boots under TestClient.
os.environ["POLL_INTERVAL_SECONDS"] = "0"
os.environ["RECRUITEE_COMPANY_ID"] = "12345"
os.environ["RECRUITEE_API_TOKEN"] = "test-recruitee-token"
os.environ["GITLAB_TOKEN"] = "test-gitlab-token"
os.environ["GITLAB_TEMPLATE_NAMESPACE"] = "hacking-talents/templates"
os.environ["GITLAB_HOMEWORK_NAMESPACE"] = "hacking-talents/homeworks"
os.environ["GITLAB_WEBHOOK_SECRET"] = ""
os.environ["CANDIDATE_LOCK_BACKEND"] = "memory"
os.environ["MAIL_TRANSPORT"] = "recruitee"
os.environ["SENTRY_DSN"] = ""

import random
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from homework_bot.components.gitlab.types import Branch, GitlabProject, GitlabUser, Issue
from homework_bot.components.homework.locks import InProcessCandidateLocks
from homework_bot.components.homework.processor import CandidateProcessor
from homework_bot.components.homework.provisioner import RepositoryProvisioner
from homework_bot.components.notifications.service import HomeworkMailer
from homework_bot.components.recruitee.fields import GITLAB_REPO_FIELD_NAME, get_field, single_line_text
from homework_bot.components.recruitee.types import (
    Candidate,
    CandidateReference,
    SingleLineField,
    Stage,
    Task,
    TaskDetails,
    TextValue,
)
from homework_bot.errors import CandidateDataError, ErrorCode, GitlabError
from homework_bot.main import app

GITLAB_WEB = "https://gitlab.example.com"

DEFAULT_STAGES = [
    Stage(id=101, name="Neu"),
    Stage(id=102, name="Hausaufgabe versendet"),
    Stage(id=103, name="Hausaufgabe erhalten"),
]


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------

class FakeRecruitee:
    """Stand-in for RecruiteeService keeping candidates, tasks and every mutation in memory.

    `fail_on` maps a method name to the exception it raises.
    """

    def __init__(self):
        self.candidates: dict[int, Candidate] = {}
        self.tasks: dict[int, list[Task]] = {}
        self.references: list[CandidateReference] = []
        self.stages: list[Stage] = list(DEFAULT_STAGES)
        self.reads: list[tuple] = []
        self.mutations: list[tuple] = []
        self.notes: dict[int, list[str]] = {}
        self.mails: list[dict] = []
        self.fail_notes = False
        self.fail_on: dict[str, Exception] = {}
        self._next_field_id = 900

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail_on:
            raise self.fail_on[method]

    def add_candidate(self, candidate: Candidate, tasks: list[Task] | None = None) -> Candidate:
        self.candidates[candidate.id] = candidate
        self.tasks[candidate.id] = list(tasks or [])
        return candidate

    def get_all_qualified_candidates(self) -> list[Candidate]:
        self.reads.append(("get_all_qualified_candidates",))
        return list(self.candidates.values())

    def get_candidate(self, candidate_id: int) -> Candidate:
        self.reads.append(("get_candidate", candidate_id))
        return self.candidates[candidate_id].model_copy(deep=True)

    def get_candidate_by_repo_url(self, url: str) -> Candidate | None:
        self.reads.append(("get_candidate_by_repo_url", url))
        for candidate in self.candidates.values():
            if single_line_text(candidate, GITLAB_REPO_FIELD_NAME) == url:
                return candidate
        return None

    def get_candidate_tasks(self, candidate_id: int) -> list[Task]:
        self.reads.append(("get_candidate_tasks", candidate_id))
        return list(self.tasks.get(candidate_id, []))

    def get_task_details(self, task: Task) -> TaskDetails:
        self.reads.append(("get_task_details", task.id))
        self._maybe_fail("get_task_details")
        return TaskDetails(task=task, references=self.references)

    def complete_task(self, task_id: int) -> None:
        self._maybe_fail("complete_task")
        self.mutations.append(("complete_task", task_id))

    def add_note(self, candidate_id: int, message: str) -> None:
        if self.fail_notes:
            raise RuntimeError("notes endpoint down")
        self.mutations.append(("add_note", candidate_id))
        self.notes.setdefault(candidate_id, []).append(message)

    def send_mail(self, candidate_id: int, candidate_email: str, subject: str, body_html: str) -> dict:
        self._maybe_fail("send_mail")
        self.mutations.append(("send_mail", candidate_id))
        mail = {"candidate_id": candidate_id, "to": candidate_email, "subject": subject, "body_html": body_html}
        self.mails.append(mail)
        return {"mail": mail}

    def set_single_line_field(self, candidate: Candidate, name: str, text: str) -> None:
        self.mutations.append(("set_single_line_field", candidate.id, name, text))
        stored = self.candidates[candidate.id]
        field = get_field(stored, name)
        if field is None:
            field = SingleLineField(id=self._next_field_id, name=name)
            self._next_field_id += 1
            stored.fields.append(field)
        field.values = [TextValue(text=text)]

    def clear_field(self, candidate: Candidate, field) -> None:
        self.mutations.append(("clear_field", candidate.id, field.name))
        stored = self.candidates[candidate.id]
        stored.fields = [f for f in stored.fields if f.name != field.name]

    def proceed_candidate_to_stage(self, candidate: Candidate, stage_name: str) -> Stage:
        searched = stage_name.replace(" ", "").lower()
        matches = [stage for stage in self.stages if searched in stage.name.replace(" ", "").lower()]
        if not candidate.placements or not matches:
            raise CandidateDataError(
                f"{ErrorCode.INCONSISTENT_DATA.value} Die Phase '{stage_name}' existiert in dieser Stelle nicht."
            )
        self.mutations.append(("proceed_candidate_to_stage", candidate.id, matches[0].name))
        return matches[0]

    def mutations_named(self, name: str) -> list[tuple]:
        return [mutation for mutation in self.mutations if mutation[0] == name]


class FakeGitlab:
    """Stand-in for GitlabService. `fail_on` maps a method name to the exception it raises."""

    def __init__(self):
        self.users: dict[str, GitlabUser] = {"alice": GitlabUser(id=77, username="alice", name="Alice Example")}
        self.templates: dict[str, GitlabProject] = {
            "basics": GitlabProject(id=5, name="basics", web_url=f"{GITLAB_WEB}/templates/basics"),
        }
        self.forks: list[GitlabProject] = []
        self.hooks: list[int] = []
        self.members: list[tuple] = []
        self.issues: list[dict] = []
        self.deleted: list[int] = []
        self.fail_on: dict[str, Exception] = {}

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail_on:
            raise self.fail_on[method]

    def get_user(self, username: str) -> GitlabUser:
        self._maybe_fail("get_user")
        if username not in self.users:
            raise GitlabError(
                f"{ErrorCode.MISSING_CANDIDATE_FIELD.value} GitLab-Benutzer '{username}' wurde nicht gefunden."
            )
        return self.users[username]

    def get_homework_project(self, name: str) -> GitlabProject | None:
        return self.templates.get(name)

    def fork_homework(self, project_id: int, name: str, *, wait: bool = True) -> GitlabProject:
        self._maybe_fail("fork_homework")
        fork = GitlabProject(
            id=1000 + len(self.forks),
            name=name,
            web_url=f"{GITLAB_WEB}/hacking-talents/homeworks/{name}",
            default_branch="main",
        )
        self.forks.append(fork)
        return fork

    def wait_for_fork_finish(self, fork_id: int) -> None:
        self._maybe_fail("wait_for_fork_finish")

    def add_issue_webhook(self, project_id: int) -> bool:
        self.hooks.append(project_id)
        return True

    def add_maintainer_to_project(self, project_id: int, user_id: int, expires_at: date) -> None:
        self._maybe_fail("add_maintainer_to_project")
        self.members.append((project_id, user_id, expires_at))

    def get_branches(self, project: GitlabProject) -> list[Branch]:
        return [Branch(name="main", default=True)]

    def create_homework_issue(self, project_id, user_id, due_date, *, title, description) -> Issue:
        self._maybe_fail("create_homework_issue")
        fork = next(f for f in self.forks if f.id == project_id)
        issue = {
            "project_id": project_id,
            "user_id": user_id,
            "due_date": due_date,
            "title": title,
            "description": description,
        }
        self.issues.append(issue)
        return Issue(id=5000 + len(self.issues), iid=len(self.issues), title=title, web_url=f"{fork.web_url}/-/issues/1")

    def delete_project(self, project_id: int) -> None:
        self.deleted.append(project_id)


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------

def make_candidate(
    candidate_id: int = 1,
    *,
    name: str = "Alice Example",
    tags: list[str] | None = None,
    emails: list[str] | None = None,
    homework: str | None = "basics",
    gitlab_account: str | None = "alice",
    extra_fields: list[dict] | None = None,
) -> Candidate:
    fields: list[dict] = []
    if homework is not None:
        fields.append({"id": 1, "name": "Hausaufgabe", "kind": "dropdown", "values": [{"value": homework}]})
    if gitlab_account is not None:
        fields.append({"id": 2, "name": "GitLab Account", "kind": "single_line", "values": [{"text": gitlab_account}]})
    fields.extend(extra_fields or [])
    return Candidate.model_validate(
        {
            "id": candidate_id,
            "name": name,
            "tags": tags or [],
            "emails": ["alice@example.com"] if emails is None else emails,
            "fields": fields,
            "placements": [{"id": 70 + candidate_id, "offer_id": 3, "stage_id": 101}],
        }
    )


def make_task(task_id: int = 11, *, title: str = "Hausaufgabe", created: datetime | None = None, **overrides) -> Task:
    return Task.model_validate(
        {
            "id": task_id,
            "title": title,
            "completed": False,
            "created_at": created or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
            **overrides,
        }
    )


@pytest.fixture
def recruitee():
    return FakeRecruitee()


@pytest.fixture
def gitlab():
    return FakeGitlab()


@pytest.fixture
def locks():
    return InProcessCandidateLocks()


@pytest.fixture
def build_processor(recruitee, gitlab):
    def _build(**options) -> CandidateProcessor:
        provisioner = RepositoryProvisioner(gitlab, recruitee, rng=random.Random(7))
        mailer = HomeworkMailer(recruitee, subject="Deine Hausaufgabe")
        return CandidateProcessor(recruitee, gitlab, provisioner, mailer, **options)

    return _build


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
