"""Brief Pydantic schemas: records exchanged with the persistence gateway and the API."""

from datetime import UTC, date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.domain.briefs import (
    BriefAction,
    BriefCategory,
    BriefStatus,
    allowed_actions,
    can_cancel,
    can_edit,
    status_label,
    step_description,
    timeline_index,
    timeline_labels,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FeedbackItem(BaseModel):
    """A reviewer's note on a brief. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    message: str
    from_reviewer: str
    created_at: datetime = Field(default_factory=_utcnow)


class BriefFields(BaseModel):
    """Editable content of a brief (no status, no identity)."""

    title: str = ""
    budget: str = ""
    deadline: date | None = None
    category: BriefCategory = BriefCategory.DESIGN
    description: str = ""
    attachment_url: str | None = None


class Brief(BaseModel):
    """The central project request record.

    Never mutate `status` directly; use app.domain.lifecycle.transition.
    """

    id: str
    client_id: str
    title: str
    budget: str
    deadline: date
    category: BriefCategory
    description: str
    attachment_url: str | None = None
    anonymous_description: str | None = None
    status: BriefStatus = BriefStatus.DRAFT
    feedback: list[FeedbackItem] = Field(default_factory=list)
    draft_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def require_feedback_when_changes_requested(self) -> "Brief":
        if self.status == BriefStatus.CHANGES_REQUESTED and not self.feedback:
            raise ValueError("A brief in changes_requested must carry at least one feedback item")
        return self

    def fields(self) -> BriefFields:
        return BriefFields(
            title=self.title,
            budget=self.budget,
            deadline=self.deadline,
            category=self.category,
            description=self.description,
            attachment_url=self.attachment_url,
        )


class PublishedBrief(BaseModel):
    """Anonymized, read-only view handed to downstream consumers.

    Carries no client identity.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: BriefCategory
    budget: str
    deadline: date
    description: str

    @classmethod
    def from_brief(cls, brief: Brief) -> "PublishedBrief":
        if brief.status != BriefStatus.PUBLISHED:
            raise ValueError(f"Only published briefs can be exposed (status={brief.status})")
        return cls(
            id=brief.id,
            title=brief.title,
            category=brief.category,
            budget=brief.budget,
            deadline=brief.deadline,
            description=brief.anonymous_description or brief.description,
        )


class QuestionResponse(BaseModel):
    """Stored answer keyed by (draft_id, question_id). Each save overwrites."""

    draft_id: str
    question_id: str
    response: str = ""
    ai_suggested_response: str | None = None
    was_suggestion_used: bool = False
    updated_at: datetime = Field(default_factory=_utcnow)


class BriefDraft(BaseModel):
    """Wizard progress record so an authoring session can be resumed."""

    id: str
    client_id: str
    brief_id: str | None = None
    current_category: str = "objectives"
    summary: str | None = None
    completed: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ──────────────────────────────────────────────────────────────────────────────
# API contracts
# ──────────────────────────────────────────────────────────────────────────────


class CreateBriefRequest(BaseModel):
    """Direct form entry. Title presence is checked by the service, not here."""

    title: str = ""
    budget: str = ""
    deadline: date | None = None
    category: BriefCategory = BriefCategory.DESIGN
    description: str = ""
    attachment_url: str | None = None


class BriefActionRequest(BaseModel):
    """Payload for POST /briefs/{id}/actions/{action}."""

    feedback: list[str] = Field(default_factory=list)
    anonymous_description: str | None = None


class BriefResponse(BaseModel):
    """Brief plus derived status helpers for rendering."""

    brief: Brief
    status_label: str
    status_description: str
    timeline: list[str]
    timeline_index: int
    can_edit: bool
    can_cancel: bool
    allowed_actions: list[BriefAction]

    @classmethod
    def from_brief(cls, brief: Brief) -> "BriefResponse":
        return cls(
            brief=brief,
            status_label=status_label(brief.status),
            status_description=step_description(brief.status),
            timeline=timeline_labels(),
            timeline_index=timeline_index(brief.status),
            can_edit=can_edit(brief.status),
            can_cancel=can_cancel(brief.status),
            allowed_actions=allowed_actions(brief.status),
        )
