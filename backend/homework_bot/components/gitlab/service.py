"""GitLab integration client for homework templates, forks and issues."""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any
from urllib.parse import quote

import httpx

from ...errors import ErrorCode, GitlabError, TransportError
from .types import Branch, GitlabProject, GitlabUser, ImportStatus, Issue

logger = logging.getLogger(__name__)

FORK_FINISHED = "finished"
FORK_FAILED = "failed"


class GitlabService:
    """Service for the GitLab REST API (v4)."""

    def __init__(
        self,
        token: str,
        template_namespace: str,
        homework_namespace: str,
        *,
        base_url: str = "https://gitlab.com/api/v4",
        webhook_url: str | None = None,
        webhook_secret: str = "",
        access_level: int = 40,
        fork_poll_attempts: int = 20,
        fork_poll_interval: float = 1.0,
        timeout: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.template_namespace = template_namespace
        self.homework_namespace = homework_namespace
        self.webhook_url = webhook_url
        self.webhook_secret = webhook_secret
        self.access_level = access_level
        self.fork_poll_attempts = max(fork_poll_attempts, 1)
        self.fork_poll_interval = fork_poll_interval
        self.timeout = timeout
        self.headers = {
            "PRIVATE-TOKEN": token,
            "Content-Type": "application/json",
        }
        self._transport = transport

    def _request(self, method: str, path: str, *, json: dict | None = None, params: dict | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(method, url, json=json, params=params, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "GitLab %s %s returned %s: %s",
                method,
                path,
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise TransportError(
                "GitLab", method, path, exc.response.status_code, exc.response.text[:500]
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("GitLab %s %s failed: %s", method, path, exc)
            raise TransportError("GitLab", method, path, None, str(exc)) from exc
        return response.json() if response.content else {}

    @staticmethod
    def _encode(value: str | int) -> str:
        # Namespaces are addressed by URL-encoded full path.
        return quote(str(value), safe="")

    def get_user(self, username: str) -> GitlabUser:
        users = self._request("GET", "/users", params={"username": username})
        if not users:
            raise GitlabError(
                f"{ErrorCode.MISSING_CANDIDATE_FIELD.value} GitLab-Benutzer '{username}' wurde nicht gefunden."
            )
        return GitlabUser.model_validate(users[0])

    def get_homework_project(self, name: str) -> GitlabProject | None:
        projects = self._request(
            "GET",
            f"/groups/{self._encode(self.template_namespace)}/projects",
            params={"search": name},
        )
        for project in projects or []:
            if project.get("name") == name:
                return GitlabProject.model_validate(project)
        return None

    def fork_homework(self, project_id: int, name: str, *, wait: bool = True) -> GitlabProject:
        payload = self._request(
            "POST",
            f"/projects/{project_id}/fork",
            json={"namespace_path": self.homework_namespace, "name": name, "path": name},
        )
        fork = GitlabProject.model_validate(payload)
        logger.info("Forked project %s as %s (fork_id=%s)", project_id, name, fork.id)
        if wait:
            self.wait_for_fork_finish(fork.id)
        return fork

    def wait_for_fork_finish(self, fork_id: int) -> None:
        """Poll the fork's import status until GitLab reports it finished."""
        last_status = None
        for attempt in range(1, self.fork_poll_attempts + 1):
            status = ImportStatus.model_validate(self._request("GET", f"/projects/{fork_id}/import"))
            last_status = status.import_status
            if last_status == FORK_FINISHED:
                return
            if last_status == FORK_FAILED:
                break
            logger.debug("Fork %s import status=%s (attempt %d)", fork_id, last_status, attempt)
            if attempt < self.fork_poll_attempts:
                time.sleep(self.fork_poll_interval)
        raise GitlabError(
            f"{ErrorCode.UNEXPECTED.value} Das Forken des Hausaufgaben-Projekts ist fehlgeschlagen "
            f"(Status: {last_status})."
        )

    def get_branches(self, project: GitlabProject) -> list[Branch]:
        payload = self._request("GET", f"/projects/{project.id}/repository/branches")
        return [Branch.model_validate(branch) for branch in payload or []]

    def add_maintainer_to_project(self, project_id: int, user_id: int, expires_at: date) -> None:
        self._request(
            "POST",
            f"/projects/{project_id}/members",
            json={
                "id": project_id,
                "user_id": user_id,
                "access_level": self.access_level,
                "expires_at": expires_at.isoformat(),
            },
        )

    def create_homework_issue(
        self,
        project_id: int,
        user_id: int,
        due_date: date,
        *,
        title: str,
        description: str,
    ) -> Issue:
        payload = self._request(
            "POST",
            f"/projects/{project_id}/issues",
            json={
                "assignee_ids": [user_id],
                "due_date": due_date.isoformat(),
                "title": title,
                "description": description,
            },
        )
        return Issue.model_validate(payload)

    def add_issue_webhook(self, project_id: int) -> bool:
        """Point the project's issue events at the submission listener, when one is configured."""
        if not self.webhook_url:
            return False
        hook = {
            "url": self.webhook_url,
            "issues_events": True,
            "push_events": False,
            "enable_ssl_verification": True,
        }
        if self.webhook_secret:
            hook["token"] = self.webhook_secret
        self._request("POST", f"/projects/{project_id}/hooks", json=hook)
        return True

    def delete_project(self, project_id: int) -> None:
        self._request("DELETE", f"/projects/{project_id}")
        logger.info("Deleted project %s", project_id)
