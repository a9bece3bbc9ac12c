"""Guided brief wizard API routes.

A session is one open BriefWizard, addressed by its draft id. Every call
returns the refreshed session state so the client can re-render.
"""

from fastapi import APIRouter, Depends, Header, Request

from app.api.dependencies import (
    get_client_id,
    get_gateway,
    get_lifecycle,
    get_notifier,
    get_provider,
    get_sessions,
)
from app.gateways.base import BriefGateway
from app.schemas.briefs import BriefResponse
from app.schemas.wizard import (
    AttachmentResponse,
    SaveResponseRequest,
    StartWizardRequest,
    SubmitResponse,
    SubmitWizardRequest,
    WizardStateResponse,
)
from app.services.brief_lifecycle import BriefLifecycleService
from app.services.brief_wizard import BriefWizard
from app.services.notifications import NotificationSink
from app.services.notifier import reported
from app.services.wizard_sessions import WizardSessionStore
from app.suggestions.provider import SuggestionProvider

router = APIRouter()


@router.post("/sessions", status_code=201, response_model=WizardStateResponse)
async def start_session(
    request: StartWizardRequest | None = None,
    client_id: str = Depends(get_client_id),
    gateway: BriefGateway = Depends(get_gateway),
    provider: SuggestionProvider = Depends(get_provider),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Open a wizard session, resuming the latest unfinished draft unless resume=false."""
    resume = request.resume if request is not None else True

    if resume:
        existing = sessions.find_for_client(client_id)
        if existing is not None:
            return WizardStateResponse.from_wizard(existing)

    async with reported(notifier, "start_wizard"):
        wizard = await BriefWizard.start(gateway, provider, lifecycle, client_id, resume=resume)
    await sessions.open(wizard)
    return WizardStateResponse.from_wizard(wizard)


@router.get("/sessions/{draft_id}", response_model=WizardStateResponse)
async def get_session(
    draft_id: str,
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
):
    return WizardStateResponse.from_wizard(sessions.get(draft_id, client_id))


@router.put("/sessions/{draft_id}/responses/{question_id}", response_model=WizardStateResponse)
async def save_response(
    draft_id: str,
    question_id: str,
    request: SaveResponseRequest,
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    wizard = sessions.get(draft_id, client_id)
    async with reported(notifier, "save_response"):
        await wizard.save_response(question_id, request.response, request.was_suggestion_used)
    return WizardStateResponse.from_wizard(wizard)


@router.post("/sessions/{draft_id}/responses/{question_id}/use-suggestion", response_model=WizardStateResponse)
async def use_suggestion(
    draft_id: str,
    question_id: str,
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    wizard = sessions.get(draft_id, client_id)
    async with reported(notifier, "use_suggestion"):
        await wizard.use_suggestion(question_id)
    return WizardStateResponse.from_wizard(wizard)


@router.post(
    "/sessions/{draft_id}/responses/{question_id}/suggestion",
    status_code=202,
    response_model=WizardStateResponse,
)
async def request_suggestion(
    draft_id: str,
    question_id: str,
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
):
    """Ask for a fresh suggestion for one question. The result lands in the session state."""
    wizard = sessions.get(draft_id, client_id)
    wizard.refresh_suggestion(question_id)
    return WizardStateResponse.from_wizard(wizard)


@router.post("/sessions/{draft_id}/next", response_model=WizardStateResponse)
async def next_category(
    draft_id: str,
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    wizard = sessions.get(draft_id, client_id)
    async with reported(notifier, "move_to_next_category"):
        await wizard.move_to_next_category()
    return WizardStateResponse.from_wizard(wizard)


@router.post("/sessions/{draft_id}/summary", response_model=WizardStateResponse)
async def generate_summary(
    draft_id: str,
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    wizard = sessions.get(draft_id, client_id)
    async with reported(notifier, "generate_brief_summary"):
        await wizard.generate_brief_summary()
    return WizardStateResponse.from_wizard(wizard)


@router.post("/sessions/{draft_id}/attachment", response_model=AttachmentResponse)
async def upload_attachment(
    draft_id: str,
    request: Request,
    x_filename: str = Header(default="attachment"),
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Upload the request body as the brief's attachment."""
    wizard = sessions.get(draft_id, client_id)
    content = await request.body()
    content_type = request.headers.get("content-type", "application/octet-stream")
    async with reported(notifier, "attach_file"):
        url = await wizard.attach_file(x_filename, content, content_type)
    return AttachmentResponse(url=url)


@router.post("/sessions/{draft_id}/submit", response_model=SubmitResponse)
async def submit(
    draft_id: str,
    request: SubmitWizardRequest,
    client_id: str = Depends(get_client_id),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Create (or update) the brief from the session and submit it for review."""
    wizard = sessions.get(draft_id, client_id)
    operation = "resubmit" if wizard.is_revision else "submit_completed_brief"
    async with reported(notifier, operation):
        brief = await wizard.submit_completed_brief(request.title or wizard.fields.title, request.category)
    await sessions.discard(draft_id)
    return SubmitResponse(draft_id=draft_id, brief=BriefResponse.from_brief(brief))
