"""Integration tests for the guided wizard routes (/api/wizard)."""

import pytest

from app.domain.briefs import BriefStatus
from app.domain.questions import CATEGORY_ORDER
from app.services.notifications import NotificationKind

pytestmark = pytest.mark.integration

CLIENT = {"X-Client-Id": "client-001"}
OTHER_CLIENT = {"X-Client-Id": "client-002"}


def _start(api_client, headers=CLIENT, resume=True) -> dict:
    response = api_client.post("/api/wizard/sessions", json={"resume": resume}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_client_header_is_required(api_client):
    response = api_client.post("/api/wizard/sessions", json={})
    assert response.status_code == 401
    assert "debug_id" in response.json()


def test_start_session_opens_first_category(api_client, settled_state):
    state = _start(api_client)

    assert state["category"] == "objectives"
    assert state["step"] == 1
    assert state["total_steps"] == len(CATEGORY_ORDER)
    assert [a["question"]["id"] for a in state["answers"]] == [
        "objectives-goal",
        "objectives-problem",
        "objectives-success",
    ]

    settled = settled_state(state["draft_id"], CLIENT)
    assert all(a["suggestion_state"] == "ready" for a in settled["answers"])
    assert all(a["suggestion"] for a in settled["answers"])


def test_start_reuses_open_session(api_client):
    first = _start(api_client)
    second = _start(api_client)
    assert first["draft_id"] == second["draft_id"]

    fresh = _start(api_client, resume=False)
    assert fresh["draft_id"] != first["draft_id"]


def test_new_session_closes_the_previous_one(api_client, sessions):
    drafts = [_start(api_client, resume=False)["draft_id"] for _ in range(5)]
    other = _start(api_client, headers=OTHER_CLIENT)["draft_id"]

    assert len(sessions) == 2
    assert api_client.get(f"/api/wizard/sessions/{drafts[0]}", headers=CLIENT).status_code == 404
    assert api_client.get(f"/api/wizard/sessions/{drafts[-1]}", headers=CLIENT).status_code == 200
    assert api_client.get(f"/api/wizard/sessions/{other}", headers=OTHER_CLIENT).status_code == 200


def test_failed_suggestion_can_be_requested_again(api_client, settled_state, provider):
    provider.failing_questions = {"objectives-goal"}
    draft_id = _start(api_client)["draft_id"]
    goal = next(a for a in settled_state(draft_id, CLIENT)["answers"] if a["question"]["id"] == "objectives-goal")
    assert goal["suggestion_state"] == "unavailable"
    assert goal["suggestion"] is None

    provider.failing_questions = set()
    response = api_client.post(f"/api/wizard/sessions/{draft_id}/responses/objectives-goal/suggestion", headers=CLIENT)

    assert response.status_code == 202
    goal = next(a for a in settled_state(draft_id, CLIENT)["answers"] if a["question"]["id"] == "objectives-goal")
    assert goal["suggestion_state"] == "ready"
    assert goal["suggestion"]


def test_suggestion_for_unknown_question_is_rejected(api_client):
    draft_id = _start(api_client)["draft_id"]
    response = api_client.post(f"/api/wizard/sessions/{draft_id}/responses/nope/suggestion", headers=CLIENT)
    assert response.status_code == 422


def test_sessions_are_private(api_client):
    state = _start(api_client)
    response = api_client.get(f"/api/wizard/sessions/{state['draft_id']}", headers=OTHER_CLIENT)
    assert response.status_code == 404


def test_save_response_notifies(api_client, notifier, gateway):
    draft_id = _start(api_client)["draft_id"]

    response = api_client.put(
        f"/api/wizard/sessions/{draft_id}/responses/objectives-goal",
        json={"response": "Sell handmade shoes online"},
        headers=CLIENT,
    )

    assert response.status_code == 200
    goal = next(a for a in response.json()["answers"] if a["question"]["id"] == "objectives-goal")
    assert goal["response"] == "Sell handmade shoes online"
    assert goal["unsaved"] is False
    assert gateway.responses[(draft_id, "objectives-goal")].response == "Sell handmade shoes online"
    assert notifier.titles(NotificationKind.SUCCESS) == ["Response saved"]


def test_failed_save_is_reported(api_client, notifier, gateway):
    draft_id = _start(api_client)["draft_id"]
    gateway.fail_questions = {"objectives-goal"}

    response = api_client.put(
        f"/api/wizard/sessions/{draft_id}/responses/objectives-goal",
        json={"response": "Sell handmade shoes online"},
        headers=CLIENT,
    )

    assert response.status_code == 503
    assert response.json()["error"] == "PersistenceError"
    assert notifier.titles(NotificationKind.ERROR) == ["Error saving response"]

    state = api_client.get(f"/api/wizard/sessions/{draft_id}", headers=CLIENT).json()
    goal = next(a for a in state["answers"] if a["question"]["id"] == "objectives-goal")
    assert goal["unsaved"] is True
    assert goal["save_error"]


def test_unknown_question_is_a_validation_error(api_client):
    draft_id = _start(api_client)["draft_id"]
    response = api_client.put(
        f"/api/wizard/sessions/{draft_id}/responses/not-a-question",
        json={"response": "x"},
        headers=CLIENT,
    )
    assert response.status_code == 422
    assert response.json()["field"]


def test_use_suggestion(api_client, settled_state, gateway):
    draft_id = _start(api_client)["draft_id"]
    suggestion = next(a for a in settled_state(draft_id, CLIENT)["answers"] if a["question"]["id"] == "objectives-goal")

    response = api_client.post(f"/api/wizard/sessions/{draft_id}/responses/objectives-goal/use-suggestion", headers=CLIENT)

    assert response.status_code == 200
    stored = gateway.responses[(draft_id, "objectives-goal")]
    assert stored.response == suggestion["suggestion"]
    assert stored.was_suggestion_used is True


def test_walk_summarize_and_submit(api_client, settled_state, notifier, gateway):
    draft_id = _start(api_client)["draft_id"]
    api_client.put(
        f"/api/wizard/sessions/{draft_id}/responses/objectives-goal",
        json={"response": "Sell handmade shoes online"},
        headers=CLIENT,
    )

    for expected in CATEGORY_ORDER[1:]:
        state = api_client.post(f"/api/wizard/sessions/{draft_id}/next", headers=CLIENT).json()
        assert state["category"] == expected.value
    state = api_client.post(f"/api/wizard/sessions/{draft_id}/next", headers=CLIENT).json()
    assert state["complete"] is True
    assert state["ready_to_submit"] is False

    state = api_client.post(f"/api/wizard/sessions/{draft_id}/summary", headers=CLIENT).json()
    assert "Sell handmade shoes online" in state["summary"]
    assert state["ready_to_submit"] is True

    response = api_client.post(
        f"/api/wizard/sessions/{draft_id}/submit",
        json={"title": "Shoe store", "category": "development"},
        headers=CLIENT,
    )

    assert response.status_code == 200
    brief = response.json()["brief"]["brief"]
    assert brief["status"] == BriefStatus.SUBMITTED.value
    assert brief["category"] == "development"
    assert brief["description"] == state["summary"]
    assert gateway.briefs[brief["id"]].status == BriefStatus.SUBMITTED
    assert "Brief submitted successfully" in notifier.titles(NotificationKind.SUCCESS)

    closed = api_client.get(f"/api/wizard/sessions/{draft_id}", headers=CLIENT)
    assert closed.status_code == 404


def test_submit_without_summary_is_rejected(api_client, notifier):
    draft_id = _start(api_client)["draft_id"]

    response = api_client.post(f"/api/wizard/sessions/{draft_id}/submit", json={"title": "Shoe store"}, headers=CLIENT)

    assert response.status_code == 422
    assert response.json()["field"] == "summary"
    assert notifier.titles(NotificationKind.ERROR) == ["Error submitting brief"]


def test_summary_failure_is_unavailable(api_client, provider):
    draft_id = _start(api_client)["draft_id"]
    api_client.put(
        f"/api/wizard/sessions/{draft_id}/responses/objectives-goal",
        json={"response": "Sell handmade shoes online"},
        headers=CLIENT,
    )
    provider.scenario = "summary_failure"

    response = api_client.post(f"/api/wizard/sessions/{draft_id}/summary", headers=CLIENT)

    assert response.status_code == 503
    assert response.json()["error"] == "SuggestionUnavailable"


def test_attachment_upload(api_client, notifier):
    draft_id = _start(api_client)["draft_id"]

    response = api_client.post(
        f"/api/wizard/sessions/{draft_id}/attachment",
        content=b"%PDF-1.7",
        headers={**CLIENT, "X-Filename": "brand-guide.pdf", "Content-Type": "application/pdf"},
    )

    assert response.status_code == 200
    assert response.json()["url"].endswith("/brand-guide.pdf")
    assert "File Uploaded" in notifier.titles(NotificationKind.SUCCESS)
