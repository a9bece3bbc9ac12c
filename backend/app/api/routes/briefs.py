"""Brief API routes: form entry, listing, lifecycle actions and revisions.

Client-side actions (submit, cancel, resubmit) require X-Client-Id and
ownership. Reviewer actions (request_changes, publish, award, complete)
require X-Reviewer.
"""

from fastapi import APIRouter, Depends, Header, HTTPException

from app.api.dependencies import (
    get_client_id,
    get_lifecycle,
    get_notifier,
    get_reviewer,
    get_revisions,
    get_sessions,
)
from app.core.exceptions import ValidationError
from app.core.logging import bind_brief_context
from app.domain.briefs import BriefAction, BriefStatus
from app.schemas.briefs import (
    BriefActionRequest,
    BriefFields,
    BriefResponse,
    CreateBriefRequest,
    PublishedBrief,
)
from app.schemas.wizard import ResubmitRequest, WizardStateResponse
from app.services.brief_lifecycle import BriefLifecycleService
from app.services.notifications import NotificationSink
from app.services.notifier import reported
from app.services.revision_service import RevisionService, RevisionSession
from app.services.wizard_sessions import WizardSessionStore

router = APIRouter()

REVIEWER_ACTIONS = frozenset(
    {BriefAction.REQUEST_CHANGES, BriefAction.PUBLISH, BriefAction.AWARD, BriefAction.COMPLETE}
)


@router.get("", response_model=list[BriefResponse])
async def list_briefs(
    client_id: str = Depends(get_client_id),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
):
    briefs = await lifecycle.list_for_client(client_id)
    return [BriefResponse.from_brief(brief) for brief in briefs]


@router.post("", status_code=201, response_model=BriefResponse)
async def create_brief(
    request: CreateBriefRequest,
    client_id: str = Depends(get_client_id),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Create a draft brief from the direct entry form."""
    async with reported(notifier, "create_draft_brief"):
        brief = await lifecycle.create_draft_brief(client_id, BriefFields(**request.model_dump()))
    return BriefResponse.from_brief(brief)


@router.get("/published", response_model=list[PublishedBrief])
async def list_published(lifecycle: BriefLifecycleService = Depends(get_lifecycle)):
    """Anonymized published briefs for downstream consumers."""
    return await lifecycle.list_published()


@router.get("/review", response_model=list[BriefResponse])
async def review_queue(
    status: BriefStatus = BriefStatus.SUBMITTED,
    _: str = Depends(get_reviewer),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
):
    briefs = await lifecycle.list_by_status(status)
    return [BriefResponse.from_brief(brief) for brief in briefs]


@router.get("/{brief_id}", response_model=BriefResponse)
async def get_brief(
    brief_id: str,
    client_id: str = Depends(get_client_id),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
):
    return BriefResponse.from_brief(await lifecycle.get_brief(brief_id, client_id))


@router.patch("/{brief_id}", response_model=BriefResponse)
async def update_brief(
    brief_id: str,
    request: ResubmitRequest,
    client_id: str = Depends(get_client_id),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Edit a brief that is still in draft or changes_requested."""
    async with reported(notifier, "update_brief"):
        brief = await lifecycle.get_brief(brief_id, client_id)
        brief = await lifecycle.update_content(brief, request.model_dump(exclude_none=True))
    return BriefResponse.from_brief(brief)


@router.post("/{brief_id}/actions/{action}", response_model=BriefResponse)
async def apply_action(
    brief_id: str,
    action: str,
    request: BriefActionRequest | None = None,
    x_client_id: str | None = Header(default=None),
    x_reviewer: str | None = Header(default=None),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Apply a lifecycle action. Unknown or disallowed actions are rejected with 409."""
    request = request or BriefActionRequest()
    bind_brief_context(brief_id=brief_id)
    is_reviewer_action = action in REVIEWER_ACTIONS

    if is_reviewer_action and not (x_reviewer and x_reviewer.strip()):
        raise HTTPException(status_code=401, detail="X-Reviewer header required")
    if not is_reviewer_action and not (x_client_id and x_client_id.strip()):
        raise HTTPException(status_code=401, detail="X-Client-Id header required")

    async with reported(notifier, "apply_action"):
        if request.feedback and action != BriefAction.REQUEST_CHANGES:
            raise ValidationError("feedback", f"Feedback is only accepted with {BriefAction.REQUEST_CHANGES}")
        if is_reviewer_action:
            brief = await lifecycle.get_brief(brief_id)
            if action == BriefAction.REQUEST_CHANGES:
                brief = await lifecycle.request_changes(brief, request.feedback, x_reviewer.strip())
            else:
                brief = await lifecycle.apply(brief, action, anonymous_description=request.anonymous_description)
        else:
            brief = await lifecycle.get_brief(brief_id, x_client_id.strip())
            brief = await lifecycle.apply(brief, action, anonymous_description=request.anonymous_description)
    return BriefResponse.from_brief(brief)


@router.post("/{brief_id}/revision", status_code=201, response_model=WizardStateResponse)
async def start_revision(
    brief_id: str,
    client_id: str = Depends(get_client_id),
    revisions: RevisionService = Depends(get_revisions),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Open the brief for revision in a wizard session prefilled with its answers."""
    async with reported(notifier, "start_revision"):
        session = await revisions.start_revision(brief_id, client_id)
    sessions.add(session.wizard)
    return WizardStateResponse.from_wizard(session.wizard)


@router.post("/{brief_id}/revision/resubmit", response_model=BriefResponse)
async def resubmit_revision(
    brief_id: str,
    request: ResubmitRequest | None = None,
    client_id: str = Depends(get_client_id),
    lifecycle: BriefLifecycleService = Depends(get_lifecycle),
    revisions: RevisionService = Depends(get_revisions),
    sessions: WizardSessionStore = Depends(get_sessions),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Apply field edits and resubmit, reusing the open revision session if there is one."""
    changes = request.model_dump(exclude_none=True) if request is not None else {}

    async with reported(notifier, "resubmit"):
        brief = await lifecycle.get_brief(brief_id, client_id)
        wizard = sessions.find(brief.draft_id)
        if wizard is not None and wizard.is_revision and wizard.client_id == client_id:
            session = RevisionSession(brief=brief, wizard=wizard)
        else:
            session = await revisions.start_revision(brief_id, client_id)
            sessions.add(session.wizard)
        brief = await revisions.resubmit(session, **changes)

    await sessions.discard(session.wizard.draft_id)
    return BriefResponse.from_brief(brief)
