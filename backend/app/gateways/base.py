"""BriefGateway Protocol: the persistence boundary for the brief lifecycle core.

Implementations:
- SqlBriefGateway: SQLAlchemy async ORM (production)
- InMemoryBriefGateway: deterministic fake with call recording (tests, local runs)

Every method is async and raises PersistenceError when the backing store fails.
Client identity is always an explicit argument, never ambient state.
"""

from typing import Any, Protocol, runtime_checkable

from app.domain.briefs import BriefStatus
from app.schemas.briefs import Brief, BriefDraft, BriefFields, QuestionResponse


@runtime_checkable
class BriefGateway(Protocol):
    """Persistence operations consumed by the lifecycle services."""

    async def create_brief(self, client_id: str, fields: BriefFields, *, draft_id: str | None = None) -> str:
        """Insert a new brief in draft status.

        Args:
            client_id: Owner of the brief
            fields: Brief content (deadline must be set)
            draft_id: Wizard draft the brief was authored from, if any

        Returns:
            The new brief id
        """
        ...

    async def get_brief(self, brief_id: str) -> Brief:
        """Load a brief with its feedback history (oldest first).

        Raises:
            BriefNotFound: Unknown id
        """
        ...

    async def update_brief(self, brief_id: str, patch: dict[str, Any]) -> None:
        """Apply a partial update.

        Recognized keys: status, feedback (full list, appended rows only),
        anonymous_description, title, budget, deadline, category, description,
        attachment_url, draft_id.

        Raises:
            BriefNotFound: Unknown id
        """
        ...

    async def list_briefs_for_client(self, client_id: str) -> list[Brief]:
        """All briefs owned by a client, newest first."""
        ...

    async def list_briefs_by_status(self, status: BriefStatus) -> list[Brief]:
        """All briefs in one status, newest first."""
        ...

    async def upsert_question_response(
        self,
        draft_id: str,
        question_id: str,
        response: str,
        ai_suggested_response: str | None,
        was_suggestion_used: bool,
    ) -> None:
        """Create or overwrite the response keyed by (draft_id, question_id)."""
        ...

    async def get_question_responses(self, draft_id: str) -> list[QuestionResponse]:
        """All stored responses for a draft."""
        ...

    async def attach_file(self, owner_id: str, filename: str, content: bytes, content_type: str) -> str:
        """Store an attachment and return its public URL."""
        ...

    async def create_draft(self, client_id: str, brief_id: str | None = None) -> BriefDraft:
        """Start a wizard draft, optionally bound to an existing brief (revision)."""
        ...

    async def get_draft(self, draft_id: str) -> BriefDraft:
        """Load a draft.

        Raises:
            BriefNotFound: Unknown id
        """
        ...

    async def get_latest_draft(self, client_id: str) -> BriefDraft | None:
        """Newest incomplete, unbound draft for a client, if any."""
        ...

    async def update_draft(self, draft_id: str, patch: dict[str, Any]) -> None:
        """Partial update of current_category, summary, completed, brief_id."""
        ...
