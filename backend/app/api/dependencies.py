"""FastAPI dependencies shared by the brief and wizard routes.

Collaborators are created once in the app lifespan and read from app.state;
tests either pre-seed app.state or use app.dependency_overrides.
"""

from fastapi import Depends, Header, HTTPException, Request

from app.core.logging import bind_brief_context
from app.gateways.base import BriefGateway
from app.services.brief_lifecycle import BriefLifecycleService
from app.services.notifications import NotificationSink
from app.services.revision_service import RevisionService
from app.services.wizard_sessions import WizardSessionStore
from app.suggestions.provider import SuggestionProvider


def get_gateway(request: Request) -> BriefGateway:
    return request.app.state.gateway


def get_provider(request: Request) -> SuggestionProvider:
    return request.app.state.provider


def get_notifier(request: Request) -> NotificationSink:
    return request.app.state.notifier


def get_sessions(request: Request) -> WizardSessionStore:
    return request.app.state.wizard_sessions


def get_lifecycle(gateway: BriefGateway = Depends(get_gateway)) -> BriefLifecycleService:
    return BriefLifecycleService(gateway)


def get_revisions(
    gateway: BriefGateway = Depends(get_gateway),
    provider: SuggestionProvider = Depends(get_provider),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
) -> RevisionService:
    return RevisionService(gateway, provider, lifecycle)


async def get_client_id(x_client_id: str | None = Header(default=None)) -> str:
    """Client identity, passed explicitly into every service call."""
    if not x_client_id or not x_client_id.strip():
        raise HTTPException(status_code=401, detail="X-Client-Id header required")
    client_id = x_client_id.strip()
    bind_brief_context(client_id=client_id)
    return client_id


async def get_reviewer(x_reviewer: str | None = Header(default=None)) -> str:
    if not x_reviewer or not x_reviewer.strip():
        raise HTTPException(status_code=401, detail="X-Reviewer header required")
    return x_reviewer.strip()
