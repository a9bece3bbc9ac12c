"""API-specific test fixtures."""

import time
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.main import create_app
from app.services.wizard_sessions import WizardSessionStore


@pytest.fixture
def sessions():
    return WizardSessionStore()


@pytest.fixture
def api_client(gateway, provider, notifier, sessions):
    """FastAPI test client wired to the in-memory gateway and fake provider.

    The lifespan runs inside the TestClient's own event loop, so wizard
    sessions (and their suggestion tasks) live and die there.
    """

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        app.state.shutting_down = False
        app.state.gateway = gateway
        app.state.provider = provider
        app.state.notifier = notifier
        app.state.wizard_sessions = sessions
        yield
        await sessions.close_all()

    app = create_app(app_lifespan=test_lifespan)

    with TestClient(app) as client:
        yield client


@pytest.fixture
def settled_state(api_client):
    """Poll a session until no suggestion is still loading, then return its state."""

    def _settled(draft_id: str, headers: dict, attempts: int = 50) -> dict:
        state = api_client.get(f"/api/wizard/sessions/{draft_id}", headers=headers).json()
        for _ in range(attempts):
            if all(answer["suggestion_state"] != "loading" for answer in state["answers"]):
                break
            time.sleep(0.02)
            state = api_client.get(f"/api/wizard/sessions/{draft_id}", headers=headers).json()
        return state

    return _settled
