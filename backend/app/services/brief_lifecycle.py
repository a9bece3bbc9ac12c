"""BriefLifecycleService: applies lifecycle actions and persists the result.

The pure state machine lives in app.domain.lifecycle. This service loads,
transitions and writes exactly the changed fields, so a failed write leaves
the caller holding the unchanged brief.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

import structlog

from app.core.config import get_settings
from app.core.exceptions import BriefNotFound, IllegalTransition, ValidationError
from app.domain.briefs import BriefAction, BriefStatus, can_edit
from app.domain.lifecycle import changed_fields, is_resubmission, transition
from app.gateways.base import BriefGateway
from app.schemas.briefs import Brief, BriefFields, FeedbackItem, PublishedBrief

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = frozenset({"title", "budget", "deadline", "category", "description", "attachment_url"})


def default_deadline(today: date | None = None) -> date:
    return (today or date.today()) + timedelta(days=get_settings().default_deadline_days)


class BriefLifecycleService:
    """Service layer for brief creation, listing and status transitions."""

    def __init__(self, gateway: BriefGateway):
        self.gateway = gateway

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_brief(self, brief_id: str, client_id: str | None = None) -> Brief:
        """Load a brief, optionally enforcing ownership.

        A brief owned by someone else is reported as not found.
        """
        brief = await self.gateway.get_brief(brief_id)
        if client_id is not None and brief.client_id != client_id:
            raise BriefNotFound(brief_id)
        return brief

    async def list_for_client(self, client_id: str) -> list[Brief]:
        return await self.gateway.list_briefs_for_client(client_id)

    async def list_by_status(self, status: BriefStatus) -> list[Brief]:
        return await self.gateway.list_briefs_by_status(status)

    async def list_published(self) -> list[PublishedBrief]:
        """Anonymized views of every published brief."""
        briefs = await self.gateway.list_briefs_by_status(BriefStatus.PUBLISHED)
        return [PublishedBrief.from_brief(brief) for brief in briefs]

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_draft_brief(self, client_id: str, fields: BriefFields) -> Brief:
        """Create a brief from direct form entry. It stays in draft.

        Raises:
            ValidationError: Missing title or description
        """
        if not fields.title.strip():
            raise ValidationError("title", "A title is required")
        if not fields.description.strip():
            raise ValidationError("description", "A description is required")

        fields = fields.model_copy(
            update={
                "title": fields.title.strip(),
                "budget": fields.budget.strip() or get_settings().default_budget,
                "deadline": fields.deadline or default_deadline(),
            }
        )
        brief_id = await self.gateway.create_brief(client_id, fields)
        logger.info("brief_created", brief_id=brief_id, client_id=client_id, source="form")
        return await self.gateway.get_brief(brief_id)

    async def update_content(self, brief: Brief, changes: dict) -> Brief:
        """Edit a brief's content while it is still editable.

        Raises:
            IllegalTransition: Brief is not in draft or changes_requested
            ValidationError: Unknown field or blank title
        """
        if not can_edit(brief.status):
            raise IllegalTransition("edit", brief.status)

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Field cannot be edited")
        if "title" in changes and not str(changes["title"]).strip():
            raise ValidationError("title", "A title is required")

        patch = {key: value for key, value in changes.items() if getattr(brief, key) != value}
        if not patch:
            return brief

        updated = brief.model_copy(update={**patch, "updated_at": datetime.now(UTC)})
        await self.gateway.update_brief(brief.id, patch)
        logger.info("brief_content_updated", brief_id=brief.id, fields=sorted(patch))
        return updated

    async def apply(
        self,
        brief: Brief,
        action: BriefAction | str,
        *,
        feedback: Sequence[FeedbackItem] | None = None,
        anonymous_description: str | None = None,
    ) -> Brief:
        """Transition a brief and persist the changed fields.

        Args:
            brief: Brief as currently stored
            action: Lifecycle action
            feedback: Reviewer feedback for REQUEST_CHANGES
            anonymous_description: Public description for PUBLISH

        Returns:
            The updated brief (as persisted)

        Raises:
            IllegalTransition: Action not allowed from the current status
            ValidationError: Missing or misplaced payload
            PersistenceError: Gateway write failed; nothing changed
        """
        try:
            updated = transition(brief, action, feedback=feedback, anonymous_description=anonymous_description)
        except IllegalTransition as e:
            logger.error("illegal_transition_rejected", brief_id=brief.id, action=e.action, status=e.status)
            raise

        await self.gateway.update_brief(brief.id, changed_fields(brief, updated))

        logger.info(
            "brief_transitioned",
            brief_id=brief.id,
            action=str(action),
            from_status=brief.status.value,
            to_status=updated.status.value,
            resubmission=is_resubmission(brief.status, updated.status),
        )
        return updated

    async def apply_by_id(
        self,
        brief_id: str,
        action: BriefAction | str,
        *,
        client_id: str | None = None,
        feedback: Sequence[FeedbackItem] | None = None,
        anonymous_description: str | None = None,
    ) -> Brief:
        brief = await self.get_brief(brief_id, client_id)
        return await self.apply(brief, action, feedback=feedback, anonymous_description=anonymous_description)

    async def request_changes(self, brief: Brief, messages: Sequence[str], reviewer: str) -> Brief:
        """Send a brief back to the client with one feedback item per message."""
        now = datetime.now(UTC)
        items = [FeedbackItem(message=m.strip(), from_reviewer=reviewer, created_at=now) for m in messages if m.strip()]
        return await self.apply(brief, BriefAction.REQUEST_CHANGES, feedback=items)
