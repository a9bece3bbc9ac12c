"""SqlBriefGateway: BriefGateway backed by the SQLAlchemy async ORM.

Every SQLAlchemyError is wrapped in PersistenceError so callers only deal with
the core error taxonomy. Question responses are written with a dialect upsert
on the (draft_id, question_id) unique key.
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import BriefNotFound, PersistenceError
from app.db.models import BriefDraftRecord, BriefFeedbackRecord, BriefQuestionResponseRecord, BriefRecord
from app.domain.briefs import BriefCategory, BriefStatus
from app.gateways.attachments import S3AttachmentStore
from app.schemas.briefs import Brief, BriefDraft, BriefFields, FeedbackItem, QuestionResponse

logger = structlog.get_logger(__name__)

_BRIEF_COLUMNS = {
    "title",
    "budget",
    "deadline",
    "category",
    "description",
    "attachment_url",
    "anonymous_description",
    "status",
    "draft_id",
}
_DRAFT_COLUMNS = {"current_category", "summary", "completed", "brief_id"}

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _to_brief(record: BriefRecord) -> Brief:
    return Brief(
        id=record.id,
        client_id=record.client_id,
        title=record.title,
        budget=record.budget,
        deadline=record.deadline,
        category=BriefCategory(record.category),
        description=record.description,
        attachment_url=record.attachment_url,
        anonymous_description=record.anonymous_description,
        status=BriefStatus(record.status),
        feedback=[
            FeedbackItem(message=f.message, from_reviewer=f.from_reviewer, created_at=f.created_at)
            for f in record.feedback
        ],
        draft_id=record.draft_id,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_draft(record: BriefDraftRecord) -> BriefDraft:
    return BriefDraft(
        id=record.id,
        client_id=record.client_id,
        brief_id=record.brief_id,
        current_category=record.current_category,
        summary=record.summary,
        completed=record.completed,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_response(record: BriefQuestionResponseRecord) -> QuestionResponse:
    return QuestionResponse(
        draft_id=record.draft_id,
        question_id=record.question_id,
        response=record.response,
        ai_suggested_response=record.ai_suggested_response,
        was_suggestion_used=record.was_suggestion_used,
        updated_at=record.updated_at,
    )


class SqlBriefGateway:
    """Production BriefGateway."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        attachments: S3AttachmentStore | None = None,
    ):
        """Initialize with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory
            attachments: Upload backend for attach_file (defaults to S3 from settings)
        """
        self.session_factory = session_factory
        self.attachments = attachments or S3AttachmentStore()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("persistence_failed", operation=operation, error=str(exc), error_type=type(exc).__name__)
            raise PersistenceError(operation, exc) from exc

    # =========================================================================
    # Briefs
    # =========================================================================

    async def create_brief(self, client_id: str, fields: BriefFields, *, draft_id: str | None = None) -> str:
        if fields.deadline is None:
            raise PersistenceError("create_brief", "deadline is required")

        async with self._session("create_brief") as session:
            brief_id = str(uuid.uuid4())
            record = BriefRecord(
                id=brief_id,
                client_id=client_id,
                title=fields.title,
                budget=fields.budget,
                deadline=fields.deadline,
                category=str(fields.category),
                description=fields.description,
                attachment_url=fields.attachment_url,
                status=str(BriefStatus.DRAFT),
                draft_id=draft_id,
            )
            session.add(record)
            await session.commit()
            return brief_id

    async def get_brief(self, brief_id: str) -> Brief:
        async with self._session("get_brief") as session:
            return _to_brief(await self._load_brief(session, brief_id))

    async def update_brief(self, brief_id: str, patch: dict[str, Any]) -> None:
        async with self._session("update_brief") as session:
            record = await self._load_brief(session, brief_id)

            for key, value in patch.items():
                if key == "feedback":
                    # Audit trail: only rows beyond what is stored are inserted
                    stored = len(record.feedback)
                    for position, item in enumerate(list(value)[stored:], start=stored):
                        record.feedback.append(
                            BriefFeedbackRecord(
                                message=item.message,
                                from_reviewer=item.from_reviewer,
                                position=position,
                                created_at=item.created_at,
                            )
                        )
                elif key in _BRIEF_COLUMNS:
                    setattr(record, key, str(value) if key in ("status", "category") else value)
                else:
                    raise PersistenceError("update_brief", f"unknown field '{key}'")

            await session.commit()

    async def list_briefs_for_client(self, client_id: str) -> list[Brief]:
        async with self._session("list_briefs_for_client") as session:
            result = await session.execute(
                select(BriefRecord).where(BriefRecord.client_id == client_id).order_by(BriefRecord.created_at.desc())
            )
            return [_to_brief(r) for r in result.scalars().all()]

    async def list_briefs_by_status(self, status: BriefStatus) -> list[Brief]:
        async with self._session("list_briefs_by_status") as session:
            result = await session.execute(
                select(BriefRecord).where(BriefRecord.status == str(status)).order_by(BriefRecord.created_at.desc())
            )
            return [_to_brief(r) for r in result.scalars().all()]

    # =========================================================================
    # Question responses
    # =========================================================================

    async def upsert_question_response(
        self,
        draft_id: str,
        question_id: str,
        response: str,
        ai_suggested_response: str | None,
        was_suggestion_used: bool,
    ) -> None:
        values = {
            "response": response,
            "ai_suggested_response": ai_suggested_response,
            "was_suggestion_used": was_suggestion_used,
        }
        async with self._session("upsert_question_response") as session:
            insert = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
            if insert is not None:
                stmt = insert(BriefQuestionResponseRecord).values(
                    draft_id=draft_id, question_id=question_id, **values
                )
                stmt = stmt.on_conflict_do_update(index_elements=["draft_id", "question_id"], set_=values)
                await session.execute(stmt)
            else:
                result = await session.execute(
                    select(BriefQuestionResponseRecord).where(
                        BriefQuestionResponseRecord.draft_id == draft_id,
                        BriefQuestionResponseRecord.question_id == question_id,
                    )
                )
                record = result.scalar_one_or_none()
                if record is None:
                    session.add(BriefQuestionResponseRecord(draft_id=draft_id, question_id=question_id, **values))
                else:
                    for key, value in values.items():
                        setattr(record, key, value)
            await session.commit()

    async def get_question_responses(self, draft_id: str) -> list[QuestionResponse]:
        async with self._session("get_question_responses") as session:
            result = await session.execute(
                select(BriefQuestionResponseRecord).where(BriefQuestionResponseRecord.draft_id == draft_id)
            )
            return [_to_response(r) for r in result.scalars().all()]

    # =========================================================================
    # Attachments
    # =========================================================================

    async def attach_file(self, owner_id: str, filename: str, content: bytes, content_type: str) -> str:
        return await self.attachments.upload(owner_id, filename, content, content_type)

    # =========================================================================
    # Drafts
    # =========================================================================

    async def create_draft(self, client_id: str, brief_id: str | None = None) -> BriefDraft:
        async with self._session("create_draft") as session:
            record = BriefDraftRecord(client_id=client_id, brief_id=brief_id, current_category="objectives")
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return _to_draft(record)

    async def get_draft(self, draft_id: str) -> BriefDraft:
        async with self._session("get_draft") as session:
            return _to_draft(await self._load_draft(session, draft_id))

    async def get_latest_draft(self, client_id: str) -> BriefDraft | None:
        async with self._session("get_latest_draft") as session:
            result = await session.execute(
                select(BriefDraftRecord)
                .where(
                    BriefDraftRecord.client_id == client_id,
                    BriefDraftRecord.completed.is_(False),
                    BriefDraftRecord.brief_id.is_(None),
                )
                .order_by(BriefDraftRecord.created_at.desc())
                .limit(1)
            )
            record = result.scalar_one_or_none()
            return _to_draft(record) if record else None

    async def update_draft(self, draft_id: str, patch: dict[str, Any]) -> None:
        async with self._session("update_draft") as session:
            record = await self._load_draft(session, draft_id)
            for key, value in patch.items():
                if key not in _DRAFT_COLUMNS:
                    raise PersistenceError("update_draft", f"unknown field '{key}'")
                setattr(record, key, str(value) if key == "current_category" else value)
            await session.commit()

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    async def _load_brief(self, session: AsyncSession, brief_id: str) -> BriefRecord:
        result = await session.execute(select(BriefRecord).where(BriefRecord.id == brief_id))
        record = result.scalar_one_or_none()
        if record is None:
            raise BriefNotFound(brief_id)
        return record

    async def _load_draft(self, session: AsyncSession, draft_id: str) -> BriefDraftRecord:
        result = await session.execute(select(BriefDraftRecord).where(BriefDraftRecord.id == draft_id))
        record = result.scalar_one_or_none()
        if record is None:
            raise BriefNotFound(draft_id)
        return record
