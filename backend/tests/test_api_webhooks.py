"""POST /webhooks/gitlab and GET /health through the FastAPI app."""

from homework_bot.components.homework.listener import SubmissionListener
from homework_bot.domains.webhooks import routes as webhook_routes
from homework_bot.main import app
from homework_bot.tasks import homework_tasks
from tests.conftest import make_candidate

REPO_URL = "https://gitlab.example.com/hacking-talents/homeworks/homework-alice-42"


def _payload(action="close"):
    return {
        "object_kind": "issue",
        "project": {"id": 1000, "web_url": REPO_URL},
        "object_attributes": {"action": action},
    }


def _use_listener(recruitee, locks):
    recruitee.add_candidate(
        make_candidate(
            extra_fields=[{"id": 3, "name": "GitLab Repo", "kind": "single_line", "values": [{"text": REPO_URL}]}]
        )
    )
    listener = SubmissionListener(recruitee, locks)
    app.dependency_overrides[webhook_routes.get_submission_listener] = lambda: listener


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["integrations"]["recruitee_configured"] is True
    assert body["integrations"]["gitlab_configured"] is True
    assert body["mail_transport"] == "recruitee"
    assert "X-Request-ID" in resp.headers


def test_close_event_is_processed(client, recruitee, locks):
    _use_listener(recruitee, locks)

    resp = client.post("/webhooks/gitlab", json=_payload())

    assert resp.status_code == 200
    assert resp.json() == {"status": "processed", "candidate_id": 1, "stage": "Hausaufgabe erhalten"}
    assert recruitee.notes[1] == [f"📥 Hausaufgabe abgegeben: {REPO_URL}"]


def test_other_actions_are_ignored(client, recruitee, locks):
    _use_listener(recruitee, locks)

    resp = client.post("/webhooks/gitlab", json=_payload(action="update"))

    assert resp.status_code == 200
    assert resp.json() == {"status": "ignored"}
    assert recruitee.reads == []


def test_malformed_body_is_400(client, recruitee, locks):
    _use_listener(recruitee, locks)

    resp = client.post("/webhooks/gitlab", content=b"not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400

    resp = client.post("/webhooks/gitlab", json={"object_kind": "issue"})
    assert resp.status_code == 400


def test_wrong_token_is_401(client, recruitee, locks, monkeypatch):
    _use_listener(recruitee, locks)
    monkeypatch.setattr(webhook_routes.settings, "GITLAB_WEBHOOK_SECRET", "s3cret")

    resp = client.post("/webhooks/gitlab", json=_payload(), headers={"X-Gitlab-Token": "wrong"})
    assert resp.status_code == 401

    resp = client.post("/webhooks/gitlab", json=_payload())
    assert resp.status_code == 401

    resp = client.post("/webhooks/gitlab", json=_payload(), headers={"X-Gitlab-Token": "s3cret"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "processed"


def test_listener_failure_is_502(client, recruitee, locks):
    _use_listener(recruitee, locks)
    recruitee.stages = []

    resp = client.post("/webhooks/gitlab", json=_payload())

    assert resp.status_code == 502


def test_event_is_queued_when_celery_enabled(client, recruitee, locks, monkeypatch):
    _use_listener(recruitee, locks)
    queued = []
    monkeypatch.setattr(webhook_routes.settings, "DISABLE_CELERY", False)
    monkeypatch.setattr(homework_tasks.process_issue_event, "delay", lambda payload: queued.append(payload))

    resp = client.post("/webhooks/gitlab", json=_payload())

    assert resp.status_code == 200
    assert resp.json() == {"status": "queued"}
    assert queued[0]["project"]["web_url"] == REPO_URL
    assert recruitee.mutations == []
