"""BriefDraft and BriefQuestionResponse models: wizard progress and per-question answers."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Text, UniqueConstraint

from app.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BriefDraftRecord(Base):
    __tablename__ = "brief_drafts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(String(255), nullable=False, index=True)
    brief_id = Column(String(36), nullable=True)  # Set for revisions and after submission

    current_category = Column(String(30), nullable=False, default="objectives")
    summary = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class BriefQuestionResponseRecord(Base):
    __tablename__ = "brief_question_responses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    draft_id = Column(String(36), nullable=False, index=True)
    question_id = Column(String(100), nullable=False)

    response = Column(Text, nullable=False, default="")
    ai_suggested_response = Column(Text, nullable=True)
    was_suggestion_used = Column(Boolean, nullable=False, default=False)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    # One row per question per draft: saves overwrite, never duplicate
    __table_args__ = (UniqueConstraint("draft_id", "question_id", name="uq_draft_question"),)
