"""In-process registry of open wizard sessions, keyed by draft id."""

import structlog

from app.core.exceptions import BriefNotFound
from app.core.logging import bind_brief_context
from app.services.brief_wizard import BriefWizard

logger = structlog.get_logger(__name__)


class WizardSessionStore:
    def __init__(self):
        self._sessions: dict[str, BriefWizard] = {}

    def add(self, wizard: BriefWizard) -> BriefWizard:
        self._sessions[wizard.draft_id] = wizard
        return wizard

    async def open(self, wizard: BriefWizard) -> BriefWizard:
        """Add a new authoring session, closing the client's previous one.

        A client has at most one open non-revision session. Revision sessions
        are left alone.
        """
        stale = [
            draft_id
            for draft_id, other in self._sessions.items()
            if draft_id != wizard.draft_id and other.client_id == wizard.client_id and not other.is_revision
        ]
        for draft_id in stale:
            await self.discard(draft_id)
        if stale:
            logger.info("wizard_sessions_replaced", client_id=wizard.client_id, closed=len(stale))
        return self.add(wizard)

    def get(self, draft_id: str, client_id: str) -> BriefWizard:
        """Look up a session owned by `client_id`.

        Raises:
            BriefNotFound: No open session, or it belongs to another client
        """
        wizard = self._sessions.get(draft_id)
        if wizard is None or wizard.client_id != client_id:
            raise BriefNotFound(draft_id)
        bind_brief_context(draft_id=draft_id, brief_id=wizard.brief_id)
        return wizard

    def find(self, draft_id: str | None) -> BriefWizard | None:
        return self._sessions.get(draft_id) if draft_id else None

    def find_for_client(self, client_id: str) -> BriefWizard | None:
        for wizard in self._sessions.values():
            if wizard.client_id == client_id and not wizard.is_revision and wizard.submitted is None:
                return wizard
        return None

    async def discard(self, draft_id: str) -> None:
        wizard = self._sessions.pop(draft_id, None)
        if wizard is not None:
            await wizard.aclose()

    async def close_all(self) -> None:
        for draft_id in list(self._sessions):
            await self.discard(draft_id)
        logger.info("wizard_sessions_closed")

    def __len__(self) -> int:
        return len(self._sessions)
