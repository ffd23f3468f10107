import random
from datetime import date

import pytest

from homework_bot.components.gitlab.types import GitlabProject, GitlabUser
from homework_bot.components.homework.provisioner import RepositoryProvisioner, homework_issue_description
from homework_bot.errors import GitlabError, ProvisioningIncompleteError
from tests.conftest import make_candidate, make_task

ALICE = GitlabUser(id=77, username="alice")


def test_fork_name_uses_injected_random_source(recruitee, gitlab):
    first = RepositoryProvisioner(gitlab, recruitee, rng=random.Random(3)).fork_name(ALICE)
    second = RepositoryProvisioner(gitlab, recruitee, rng=random.Random(3)).fork_name(ALICE)

    assert first == second
    assert first.startswith("homework-alice-")


def test_explicit_task_due_date_drives_access_and_issue(recruitee, gitlab):
    candidate = recruitee.add_candidate(make_candidate())
    provisioner = RepositoryProvisioner(gitlab, recruitee, rng=random.Random(1))

    provisioned = provisioner.provision(candidate, ALICE, "basics", make_task(due_date="2024-02-20"))

    assert provisioned.due_date == date(2024, 2, 20)
    assert gitlab.members[0][2] == date(2024, 2, 20)
    assert gitlab.issues[0]["due_date"] == date(2024, 2, 20)


def test_branch_falls_back_to_default_branch_lookup(recruitee, gitlab):
    original_fork = gitlab.fork_homework

    def fork_without_default_branch(project_id, name, *, wait=True):
        fork = original_fork(project_id, name, wait=wait)
        gitlab.forks[-1] = GitlabProject(id=fork.id, name=fork.name, web_url=fork.web_url)
        return gitlab.forks[-1]

    gitlab.fork_homework = fork_without_default_branch
    candidate = recruitee.add_candidate(make_candidate())

    RepositoryProvisioner(gitlab, recruitee).provision(candidate, ALICE, "basics", make_task())

    assert "`main`" in gitlab.issues[0]["description"]


def test_failed_fork_import_is_reported_with_fork_url(recruitee, gitlab):
    gitlab.fail_on["wait_for_fork_finish"] = GitlabError("💥 Das Forken des Hausaufgaben-Projekts ist fehlgeschlagen")
    candidate = recruitee.add_candidate(make_candidate())

    with pytest.raises(ProvisioningIncompleteError) as excinfo:
        RepositoryProvisioner(gitlab, recruitee).provision(candidate, ALICE, "basics", make_task())

    assert excinfo.value.fork_url == gitlab.forks[0].web_url
    assert gitlab.members == []


def test_issue_description_mentions_branch_only_when_known():
    assert "`develop`" in homework_issue_description("Alice Example", "develop")
    assert "Branch" not in homework_issue_description("Alice Example", None)
