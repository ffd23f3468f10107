"""Recruitee ATS integration client."""

from __future__ import annotations

import logging

import httpx

from ...errors import CandidateDataError, ConfigurationError, ErrorCode, TransportError
from .fields import GITLAB_REPO_FIELD_NAME, get_field, single_line_text
from .types import (
    Candidate,
    CandidateField,
    MinimalCandidate,
    Offer,
    SingleLineField,
    Stage,
    Task,
    TaskDetails,
    TextValue,
)

logger = logging.getLogger(__name__)


def _normalize_stage_name(name: str) -> str:
    return name.replace(" ", "").lower()


class RecruiteeService:
    """Service for interacting with the Recruitee API."""

    def __init__(
        self,
        base_url: str,
        api_token: str,
        *,
        offer_tag: str = "HT-Bot Target",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.offer_tag = offer_tag
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }
        self._transport = transport

    def _request(self, method: str, path: str, *, json: dict | None = None, params: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(method, url, json=json, params=params, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Recruitee %s %s returned %s: %s",
                method,
                path,
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise TransportError(
                "Recruitee", method, path, exc.response.status_code, exc.response.text[:500]
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Recruitee %s %s failed: %s", method, path, exc)
            raise TransportError("Recruitee", method, path, None, str(exc)) from exc
        return response.json() if response.content else {}

    # -- offers and candidates -------------------------------------------------

    def get_offers(self, *, not_archived: bool = False) -> list[Offer]:
        params = {"scope": "not_archived", "view_mode": "default"} if not_archived else None
        payload = self._request("GET", "/offers", params=params)
        return [Offer.model_validate(offer) for offer in payload.get("offers") or []]

    def get_offers_with_tag(self, tag: str) -> list[Offer]:
        return [offer for offer in self.get_offers() if tag in offer.offer_tags]

    def get_candidates_for_offers(self, offers: list[Offer]) -> list[MinimalCandidate]:
        if not offers:
            return []
        offer_ids = ",".join(str(offer.id) for offer in offers)
        payload = self._request(
            "GET",
            "/candidates",
            params={"qualified": "true", "offers": f"[{offer_ids}]"},
        )
        return [MinimalCandidate.model_validate(c) for c in payload.get("candidates") or []]

    def get_candidate(self, candidate_id: int) -> Candidate:
        payload = self._request("GET", f"/candidates/{candidate_id}")
        return Candidate.model_validate(payload.get("candidate") or payload)

    def get_all_qualified_candidates(self) -> list[Candidate]:
        """Candidates of every offer tagged for the bot, each with full details."""
        offers = self.get_offers_with_tag(self.offer_tag)
        minimal = self.get_candidates_for_offers(offers)
        logger.info("Found %d qualified candidates across %d tagged offers", len(minimal), len(offers))
        return [self.get_candidate(candidate.id) for candidate in minimal]

    def get_candidate_by_repo_url(self, url: str) -> Candidate | None:
        for candidate in self.get_all_qualified_candidates():
            try:
                repo_url = single_line_text(candidate, GITLAB_REPO_FIELD_NAME)
            except ConfigurationError:
                logger.warning(
                    "%s field exists, but is not of type 'single line' for candidate %s",
                    GITLAB_REPO_FIELD_NAME,
                    candidate.id,
                )
                continue
            if repo_url and repo_url == url:
                return candidate
        return None

    # -- tasks -----------------------------------------------------------------

    def get_candidate_tasks(self, candidate_id: int) -> list[Task]:
        payload = self._request("GET", f"/candidates/{candidate_id}/tasks")
        return [Task.model_validate(task) for task in payload.get("tasks") or []]

    def get_task_details(self, task: Task) -> TaskDetails:
        payload = self._request("GET", f"/tasks/{task.id}")
        return TaskDetails.model_validate(payload)

    def complete_task(self, task_id: int) -> None:
        self._request("PUT", f"/tasks/{task_id}", json={"task": {"completed": True}})
        logger.info("Checked candidate task with task_id=%s", task_id)

    # -- notes and mail --------------------------------------------------------

    def add_note(self, candidate_id: int, message: str) -> None:
        self._request(
            "POST",
            f"/candidates/{candidate_id}/notes",
            json={"note": {"id": None, "body": message}},
        )

    def send_mail(self, candidate_id: int, candidate_email: str, subject: str, body_html: str) -> dict:
        return self._request(
            "POST",
            "/mailbox/send",
            json={
                "body_html": body_html,
                "subject": subject,
                "to": [{"candidate_id": candidate_id, "candidate_email": candidate_email}],
            },
        )

    # -- custom fields ---------------------------------------------------------

    def set_single_line_field(self, candidate: Candidate, name: str, text: str) -> None:
        """Write `text` as the single value of a single-line field, creating the field if needed."""
        field = get_field(candidate, name)
        if field is None:
            field = SingleLineField(name=name)
        elif not isinstance(field, SingleLineField):
            raise ConfigurationError(
                f"{name} field exists, but is not of type 'single line'. "
                "Please check the profile fields template for candidates."
            )

        if field.values:
            field.values[0].text = text
        else:
            field.values.append(TextValue(text=text))

        body = {"field": field.model_dump(exclude_none=True)}
        if field.id is not None:
            self._request("PATCH", f"/custom_fields/candidates/{candidate.id}/fields/{field.id}", json=body)
        else:
            self._request("POST", f"/custom_fields/candidates/{candidate.id}/fields", json=body)

    def clear_field(self, candidate: Candidate, field: CandidateField) -> None:
        if field.id is None:
            return
        logger.info("Clearing profile field '%s' for candidate %s", field.name, candidate.id)
        self._request("DELETE", f"/custom_fields/candidates/{candidate.id}/fields/{field.id}")

    # -- pipeline --------------------------------------------------------------

    def get_stages_by_name(self, stage_name: str, offer_id: int) -> list[Stage]:
        """Stages of the offer's pipeline whose name contains `stage_name`, ignoring case and spaces."""
        searched = _normalize_stage_name(stage_name)
        for offer in self.get_offers(not_archived=True):
            if offer.id != offer_id:
                continue
            stages = offer.pipeline_template.stages if offer.pipeline_template else []
            return [stage for stage in stages if searched in _normalize_stage_name(stage.name)]
        return []

    def proceed_candidate_to_stage(self, candidate: Candidate, stage_name: str) -> Stage:
        if not candidate.placements:
            raise CandidateDataError(
                f"{ErrorCode.INCONSISTENT_DATA.value} Kandidat ist keiner Stelle zugeordnet."
            )
        placement = candidate.placements[0]
        stages = self.get_stages_by_name(stage_name, placement.offer_id)
        if not stages:
            raise CandidateDataError(
                f"{ErrorCode.INCONSISTENT_DATA.value} Die Phase '{stage_name}' existiert in dieser Stelle nicht."
            )
        stage = stages[0]
        self._request(
            "PATCH",
            f"/placements/{placement.id}/change_stage",
            params={"stage_id": str(stage.id), "proceed": "true"},
        )
        logger.info("Moved candidate %s to stage '%s' (stage_id=%s)", candidate.id, stage.name, stage.id)
        return stage
