"""Error taxonomy for the homework cycle and the notes each error leaves behind."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    MISSING_CANDIDATE_FIELD = "📝"
    INCONSISTENT_DATA = "⚠️"
    CONFIGURATION = "⚙️"
    UNEXPECTED_HTTP = "📡"
    UNEXPECTED = "💥"


class HomeworkBotError(Exception):
    """Base class for all errors raised by the bot."""


class ConfigurationError(HomeworkBotError):
    """A custom field exists but has the wrong shape. Needs an operator, never retried."""


class CandidateDataError(HomeworkBotError):
    """Candidate data prevents the homework cycle. The message is written to the candidate record."""


class GitlabError(CandidateDataError):
    """GitLab refused a step for reasons tied to the candidate's data."""


class TransportError(HomeworkBotError):
    """A collaborator answered with an unexpected HTTP status (or not at all)."""

    def __init__(
        self,
        service: str,
        method: str,
        path: str,
        status_code: int | None = None,
        detail: str = "",
    ):
        self.service = service
        self.method = method
        self.path = path
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{service} API {method} {path} returned {status_code}: {detail}")


class ProvisioningIncompleteError(HomeworkBotError):
    """The cycle failed after the fork was created; the fork is left behind."""

    def __init__(self, fork_url: str, cause: BaseException, *, task_completed: bool = False):
        self.fork_url = fork_url
        self.cause = cause
        self.task_completed = task_completed
        super().__init__(f"Provisioning aborted after fork {fork_url} was created: {cause}")


def error_note(exc: BaseException) -> str:
    """Render the note that goes onto the candidate record for a failed cycle."""
    if isinstance(exc, ProvisioningIncompleteError):
        note = (
            f"{error_note(exc.cause)} Das Repository {exc.fork_url} wurde bereits angelegt "
            "und muss manuell aufgeräumt werden."
        )
        if exc.task_completed:
            note += " Die Aufgabe ist abgeschlossen, die Hausaufgabe wurde aber noch nicht per Mail verschickt."
        return note
    if isinstance(exc, CandidateDataError):
        return str(exc)
    if isinstance(exc, ConfigurationError):
        return f"{ErrorCode.CONFIGURATION.value} Konfigurationsfehler: {exc}"
    if isinstance(exc, TransportError):
        return (
            f"{ErrorCode.UNEXPECTED_HTTP.value} Unerwarteter HTTP-Fehler mit Code {exc.status_code}. "
            "Für mehr Infos bitte in die Logs schauen."
        )
    return f"{ErrorCode.UNEXPECTED.value} Unerwarteter Fehler. Bitte in die Logs schauen."
