"""Brief and BriefFeedback models: the client's project request and its review trail."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BriefRecord(Base):
    __tablename__ = "briefs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(String(255), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    budget = Column(String(100), nullable=False)
    deadline = Column(Date, nullable=False)
    category = Column(String(30), nullable=False)  # BriefCategory value
    description = Column(Text, nullable=False, default="")
    attachment_url = Column(String(1024), nullable=True)

    # Reviewer-edited text shown to providers once published
    anonymous_description = Column(Text, nullable=True)

    status = Column(String(30), nullable=False, default="draft", index=True)  # BriefStatus value
    draft_id = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    # Append-only audit trail, oldest first
    feedback = relationship(
        "BriefFeedbackRecord",
        order_by="BriefFeedbackRecord.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )


class BriefFeedbackRecord(Base):
    __tablename__ = "brief_feedback"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    brief_id = Column(String(36), ForeignKey("briefs.id"), nullable=False, index=True)

    message = Column(Text, nullable=False)
    from_reviewer = Column(String(255), nullable=False)
    # Per-brief sequence; items from one review batch share created_at
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
