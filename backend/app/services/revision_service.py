"""RevisionService: re-enter authoring for a brief the reviewer sent back.

A revision keeps the brief's identity and its feedback history. The client
sees every feedback item (oldest first), edits answers or fields, and
resubmits; the brief goes straight back to submitted.
"""

from dataclasses import dataclass

import structlog

from app.core.exceptions import IllegalTransition, ValidationError
from app.domain.briefs import BriefAction, BriefStatus
from app.gateways.base import BriefGateway
from app.schemas.briefs import Brief, BriefFields, FeedbackItem
from app.services.brief_lifecycle import BriefLifecycleService
from app.services.brief_wizard import BriefWizard
from app.suggestions.provider import SuggestionProvider

logger = structlog.get_logger(__name__)


@dataclass
class RevisionSession:
    brief: Brief
    wizard: BriefWizard

    @property
    def feedback(self) -> list[FeedbackItem]:
        return sorted(self.brief.feedback, key=lambda item: item.created_at)

    @property
    def fields(self) -> BriefFields:
        return self.wizard.fields


class RevisionService:
    """Opens and completes revision sessions."""

    def __init__(self, gateway: BriefGateway, provider: SuggestionProvider, lifecycle: BriefLifecycleService):
        self.gateway = gateway
        self.provider = provider
        self.lifecycle = lifecycle

    async def start_revision(self, brief_id: str, client_id: str | None = None) -> RevisionSession:
        """Open a revision for a brief in changes_requested.

        Raises:
            BriefNotFound: Unknown brief, or owned by another client
            IllegalTransition: Brief is not awaiting changes
        """
        brief = await self.lifecycle.get_brief(brief_id, client_id)
        if brief.status != BriefStatus.CHANGES_REQUESTED:
            raise IllegalTransition(BriefAction.RESUBMIT, brief.status)

        wizard = await BriefWizard.for_revision(self.gateway, self.provider, self.lifecycle, brief)
        logger.info("revision_started", brief_id=brief.id, feedback_items=len(brief.feedback))
        return RevisionSession(brief=wizard.revision_brief, wizard=wizard)

    async def resubmit(self, session: RevisionSession, **field_changes) -> Brief:
        """Apply field edits and resubmit the same brief.

        Raises:
            ValidationError: Blank title or unknown field
            PersistenceError: A gateway call failed; the session can be resubmitted again
            IllegalTransition: The brief left changes_requested in the meantime
        """
        if field_changes:
            session.wizard.update_fields(**field_changes)

        fields = session.wizard.fields
        if not fields.title.strip():
            raise ValidationError("title", "A title is required")

        brief = await session.wizard.submit_completed_brief(fields.title, fields.category)
        session.brief = brief
        logger.info("revision_resubmitted", brief_id=brief.id)
        return brief
