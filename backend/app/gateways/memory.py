"""InMemoryBriefGateway: dict-backed BriefGateway with call recording.

Used by the test suite and for running the API without a database. Failure
injection mirrors what a flaky network/storage layer does:
- fail_operations: operation names that raise PersistenceError
- fail_questions: question ids whose upsert raises PersistenceError
- response_delays: per-question sleep before an upsert settles
"""

import asyncio
import uuid
from datetime import UTC, datetime
from typing import Any

from app.core.exceptions import BriefNotFound, PersistenceError
from app.domain.briefs import BriefStatus
from app.schemas.briefs import Brief, BriefDraft, BriefFields, QuestionResponse


class InMemoryBriefGateway:
    """Deterministic BriefGateway implementation."""

    def __init__(
        self,
        fail_operations: set[str] | None = None,
        fail_questions: set[str] | None = None,
        response_delays: dict[str, float] | None = None,
    ):
        self.briefs: dict[str, Brief] = {}
        self.drafts: dict[str, BriefDraft] = {}
        self.responses: dict[tuple[str, str], QuestionResponse] = {}
        self.files: dict[str, bytes] = {}
        self.calls: list[tuple[str, tuple, dict]] = []

        self.fail_operations = set(fail_operations or ())
        self.fail_questions = set(fail_questions or ())
        self.response_delays = dict(response_delays or {})

        self.in_flight_upserts = 0
        self.max_in_flight_upserts = 0

    # =========================================================================
    # Introspection helpers for tests
    # =========================================================================

    def calls_to(self, operation: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for name, args, kwargs in self.calls if name == operation]

    def seed_brief(self, brief: Brief) -> Brief:
        """Insert a brief as-is (any status), bypassing create_brief."""
        self.briefs[brief.id] = brief
        return brief

    # =========================================================================
    # Briefs
    # =========================================================================

    async def create_brief(self, client_id: str, fields: BriefFields, *, draft_id: str | None = None) -> str:
        self._record("create_brief", client_id, fields, draft_id=draft_id)
        if fields.deadline is None:
            raise PersistenceError("create_brief", "deadline is required")

        brief_id = str(uuid.uuid4())
        self.briefs[brief_id] = Brief(
            id=brief_id,
            client_id=client_id,
            status=BriefStatus.DRAFT,
            draft_id=draft_id,
            **fields.model_dump(),
        )
        return brief_id

    async def get_brief(self, brief_id: str) -> Brief:
        self._record("get_brief", brief_id)
        return self._require_brief(brief_id)

    async def update_brief(self, brief_id: str, patch: dict[str, Any]) -> None:
        self._record("update_brief", brief_id, dict(patch))
        brief = self._require_brief(brief_id)
        merged = {**brief.model_dump(), **patch, "updated_at": datetime.now(UTC)}
        self.briefs[brief_id] = Brief.model_validate(merged)

    async def list_briefs_for_client(self, client_id: str) -> list[Brief]:
        self._record("list_briefs_for_client", client_id)
        owned = [b for b in self.briefs.values() if b.client_id == client_id]
        return sorted(owned, key=lambda b: b.created_at, reverse=True)

    async def list_briefs_by_status(self, status: BriefStatus) -> list[Brief]:
        self._record("list_briefs_by_status", status)
        matching = [b for b in self.briefs.values() if b.status == status]
        return sorted(matching, key=lambda b: b.created_at, reverse=True)

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
        self._record(
            "upsert_question_response",
            draft_id,
            question_id,
            response,
            ai_suggested_response,
            was_suggestion_used,
        )
        self.in_flight_upserts += 1
        self.max_in_flight_upserts = max(self.max_in_flight_upserts, self.in_flight_upserts)
        try:
            delay = self.response_delays.get(question_id, 0)
            if delay:
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
            if question_id in self.fail_questions:
                raise PersistenceError("upsert_question_response", f"write rejected for {question_id}")

            self.responses[(draft_id, question_id)] = QuestionResponse(
                draft_id=draft_id,
                question_id=question_id,
                response=response,
                ai_suggested_response=ai_suggested_response,
                was_suggestion_used=was_suggestion_used,
            )
        finally:
            self.in_flight_upserts -= 1

    async def get_question_responses(self, draft_id: str) -> list[QuestionResponse]:
        self._record("get_question_responses", draft_id)
        return [r for (d, _), r in self.responses.items() if d == draft_id]

    # =========================================================================
    # Attachments
    # =========================================================================

    async def attach_file(self, owner_id: str, filename: str, content: bytes, content_type: str) -> str:
        self._record("attach_file", owner_id, filename, content_type=content_type)
        key = f"attachments/{owner_id}/{uuid.uuid4().hex}/{filename}"
        self.files[key] = content
        return f"memory://{key}"

    # =========================================================================
    # Drafts
    # =========================================================================

    async def create_draft(self, client_id: str, brief_id: str | None = None) -> BriefDraft:
        self._record("create_draft", client_id, brief_id=brief_id)
        draft = BriefDraft(id=str(uuid.uuid4()), client_id=client_id, brief_id=brief_id)
        self.drafts[draft.id] = draft
        return draft

    async def get_draft(self, draft_id: str) -> BriefDraft:
        self._record("get_draft", draft_id)
        if draft_id not in self.drafts:
            raise BriefNotFound(draft_id)
        return self.drafts[draft_id]

    async def get_latest_draft(self, client_id: str) -> BriefDraft | None:
        self._record("get_latest_draft", client_id)
        open_drafts = [
            d for d in self.drafts.values() if d.client_id == client_id and not d.completed and d.brief_id is None
        ]
        if not open_drafts:
            return None
        return max(open_drafts, key=lambda d: d.created_at)

    async def update_draft(self, draft_id: str, patch: dict[str, Any]) -> None:
        self._record("update_draft", draft_id, dict(patch))
        if draft_id not in self.drafts:
            raise BriefNotFound(draft_id)
        draft = self.drafts[draft_id]
        self.drafts[draft_id] = draft.model_copy(update={**patch, "updated_at": datetime.now(UTC)})

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _record(self, operation: str, *args, **kwargs) -> None:
        self.calls.append((operation, args, kwargs))
        if operation in self.fail_operations:
            raise PersistenceError(operation, "injected failure")

    def _require_brief(self, brief_id: str) -> Brief:
        if brief_id not in self.briefs:
            raise BriefNotFound(brief_id)
        return self.briefs[brief_id]
