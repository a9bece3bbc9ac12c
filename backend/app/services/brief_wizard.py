"""BriefWizard: category-by-category authoring session for one draft.

Flow:
1. start() / for_revision() loads the draft and its stored answers
2. Entering a category dispatches one suggestion request per question
3. save_response() / move_to_next_category() persist answers (category saves run concurrently)
4. generate_brief_summary() turns every answer into the brief description
5. submit_completed_brief() creates (or updates) the brief and submits it

Local state is authoritative. A failed save leaves the answer dirty and the
wizard where it was, so the same call can simply be retried.
"""

import asyncio
from dataclasses import dataclass

import structlog

from app.core.config import get_settings
from app.core.exceptions import (
    BriefNotFound,
    IllegalTransition,
    PersistenceError,
    SuggestionUnavailable,
    ValidationError,
)
from app.domain.briefs import BriefAction, BriefCategory, BriefStatus
from app.domain.questions import (
    CATEGORY_ORDER,
    Question,
    QuestionCategory,
    get_question,
    next_category,
    questions_for,
)
from app.gateways.base import BriefGateway
from app.schemas.briefs import Brief, BriefDraft, BriefFields
from app.services.brief_lifecycle import BriefLifecycleService, default_deadline
from app.services.suggestions import SuggestionCache, SuggestionFetcher, SuggestionState
from app.suggestions.provider import SuggestionProvider

logger = structlog.get_logger(__name__)


@dataclass
class ResponseEntry:
    """Local copy of one answer. `version` bumps on every edit."""

    question_id: str
    response: str = ""
    ai_suggested_response: str | None = None
    was_suggestion_used: bool = False
    dirty: bool = False
    version: int = 0
    save_error: str | None = None


class BriefWizard:
    """One client's authoring session over a single draft."""

    def __init__(
        self,
        gateway: BriefGateway,
        provider: SuggestionProvider,
        lifecycle: BriefLifecycleService,
        draft: BriefDraft,
        *,
        revision_brief: Brief | None = None,
    ):
        settings = get_settings()
        self.gateway = gateway
        self.provider = provider
        self.lifecycle = lifecycle
        self.draft = draft
        self.revision_brief = revision_brief
        self.summary_timeout = settings.summary_timeout_seconds

        self.cache = SuggestionCache()
        self.fetcher = SuggestionFetcher(provider, self.cache, settings.suggestion_timeout_seconds)

        self.fields: BriefFields = revision_brief.fields() if revision_brief else BriefFields()
        self._responses: dict[str, ResponseEntry] = {}
        self._current_category = _parse_category(draft.current_category)
        self._complete = False
        self._summary: str | None = None
        self._brief_id: str | None = revision_brief.id if revision_brief else None
        self._submitted: Brief | None = None
        self._advance_lock = asyncio.Lock()
        self._save_locks: dict[str, asyncio.Lock] = {}

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    async def start(
        cls,
        gateway: BriefGateway,
        provider: SuggestionProvider,
        lifecycle: BriefLifecycleService,
        client_id: str,
        *,
        resume: bool = True,
    ) -> "BriefWizard":
        """Open a wizard, resuming the client's latest unfinished draft if one exists."""
        draft = await gateway.get_latest_draft(client_id) if resume else None
        if draft is None:
            draft = await gateway.create_draft(client_id)
            logger.info("wizard_draft_created", draft_id=draft.id, client_id=client_id)
        else:
            logger.info("wizard_draft_resumed", draft_id=draft.id, client_id=client_id)

        wizard = cls(gateway, provider, lifecycle, draft)
        await wizard._load()
        wizard._summary = draft.summary
        wizard._complete = draft.summary is not None
        wizard._enter_category()
        return wizard

    @classmethod
    async def for_revision(
        cls,
        gateway: BriefGateway,
        provider: SuggestionProvider,
        lifecycle: BriefLifecycleService,
        brief: Brief,
    ) -> "BriefWizard":
        """Open a wizard bound to a brief in changes_requested, prefilled with its prior answers."""
        draft = None
        if brief.draft_id:
            try:
                draft = await gateway.get_draft(brief.draft_id)
            except BriefNotFound:
                logger.warning("revision_draft_missing", brief_id=brief.id, draft_id=brief.draft_id)

        if draft is None:
            draft = await gateway.create_draft(brief.client_id, brief_id=brief.id)
            await gateway.update_brief(brief.id, {"draft_id": draft.id})
            brief = brief.model_copy(update={"draft_id": draft.id})
        else:
            patch = {"completed": False, "current_category": CATEGORY_ORDER[0].value}
            await gateway.update_draft(draft.id, patch)
            draft = draft.model_copy(update=patch)

        wizard = cls(gateway, provider, lifecycle, draft, revision_brief=brief)
        await wizard._load()
        wizard._enter_category()
        logger.info("revision_wizard_opened", brief_id=brief.id, draft_id=draft.id)
        return wizard

    async def _load(self) -> None:
        stored = await self.gateway.get_question_responses(self.draft.id)
        for item in stored:
            self._responses[item.question_id] = ResponseEntry(
                question_id=item.question_id,
                response=item.response,
                ai_suggested_response=item.ai_suggested_response,
                was_suggestion_used=item.was_suggestion_used,
            )
            if item.ai_suggested_response:
                self.cache.put(item.question_id, item.ai_suggested_response)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def draft_id(self) -> str:
        return self.draft.id

    @property
    def client_id(self) -> str:
        return self.draft.client_id

    @property
    def brief_id(self) -> str | None:
        return self._brief_id

    @property
    def current_category(self) -> QuestionCategory:
        return self._current_category

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def summary(self) -> str | None:
        return self._summary

    @property
    def ready_to_submit(self) -> bool:
        return self._summary is not None or self.revision_brief is not None

    @property
    def is_revision(self) -> bool:
        return self.revision_brief is not None

    @property
    def submitted(self) -> Brief | None:
        return self._submitted

    def get_current_category_questions(self) -> list[Question]:
        return questions_for(self._current_category)

    def response_for(self, question_id: str) -> ResponseEntry | None:
        return self._responses.get(question_id)

    def responses(self) -> dict[str, ResponseEntry]:
        return dict(self._responses)

    def dirty_questions(self) -> list[str]:
        return [qid for qid, entry in self._responses.items() if entry.dirty]

    def suggestion_for(self, question_id: str) -> str | None:
        return self.cache.get(question_id)

    def suggestion_state(self, question_id: str) -> SuggestionState:
        return self.fetcher.state(question_id)

    # =========================================================================
    # Answers
    # =========================================================================

    def set_response(self, question_id: str, text: str) -> ResponseEntry:
        """Record a local edit without persisting it."""
        entry = self._entry(question_id)
        entry.response = text
        entry.was_suggestion_used = False
        entry.dirty = True
        entry.version += 1
        return entry

    async def save_response(
        self,
        question_id: str,
        text: str,
        was_suggestion_used: bool = False,
        suggestion_snapshot: str | None = None,
    ) -> ResponseEntry:
        """Update the answer locally, then persist it.

        Raises:
            ValidationError: Unknown question id
            PersistenceError: Save failed; the local answer is kept and stays dirty
        """
        entry = self._entry(question_id)
        entry.response = text
        entry.was_suggestion_used = was_suggestion_used
        entry.ai_suggested_response = suggestion_snapshot or entry.ai_suggested_response or self.cache.get(question_id)
        entry.dirty = True
        entry.version += 1
        await self._persist(question_id)
        return entry

    async def use_suggestion(self, question_id: str) -> ResponseEntry:
        """Adopt the cached suggestion as the answer.

        Raises:
            SuggestionUnavailable: Nothing cached for this question yet
        """
        text = self.cache.get(question_id)
        if text is None:
            raise SuggestionUnavailable(question_id, "no suggestion cached")
        return await self.save_response(question_id, text, was_suggestion_used=True, suggestion_snapshot=text)

    def refresh_suggestion(self, question_id: str) -> asyncio.Task:
        """Request the suggestion for one question again, e.g. after it came back unavailable."""
        question = self._question(question_id)
        return self.fetcher.fetch(question, self._context_before(question.category))

    # =========================================================================
    # Navigation
    # =========================================================================

    async def move_to_next_category(self) -> QuestionCategory | None:
        """Save the current category's edited answers and advance.

        All saves run concurrently and the wizard only moves on once every one
        of them has settled. Answers that did not change are not saved again.

        Returns:
            The new current category, or None when the last category was completed

        Raises:
            PersistenceError: At least one save failed; the wizard stays put and
                the failed answers stay dirty
        """
        async with self._advance_lock:
            category_ids = [q.id for q in questions_for(self._current_category)]
            await self._flush(category_ids, "move_to_next_category")

            upcoming = next_category(self._current_category)
            if upcoming is None:
                self._complete = True
                logger.info("wizard_categories_completed", draft_id=self.draft_id)
                return None

            await self.gateway.update_draft(self.draft_id, {"current_category": upcoming.value})
            self._current_category = upcoming
            logger.info("wizard_category_advanced", draft_id=self.draft_id, category=upcoming.value)
            self._enter_category()
            return upcoming

    def _enter_category(self) -> None:
        context = self._context_before(self._current_category)
        pending = [q for q in questions_for(self._current_category) if q.id not in self.cache]
        if pending:
            self.fetcher.fetch_all(pending, context)

    # =========================================================================
    # Summary and submission
    # =========================================================================

    async def generate_brief_summary(self) -> str:
        """Persist outstanding answers and produce the brief description.

        Returns:
            The provider's summary, verbatim

        Raises:
            PersistenceError: Outstanding answers could not be saved
            ValidationError: No question has been answered
            SuggestionUnavailable: The provider failed or timed out
        """
        await self._flush(self.dirty_questions(), "generate_brief_summary")

        answered = self._answered_pairs()
        if not answered:
            raise ValidationError("responses", "Answer at least one question before generating a summary")

        try:
            summary = await asyncio.wait_for(self.provider.summarize(answered), timeout=self.summary_timeout)
        except TimeoutError as e:
            logger.warning("summary_timed_out", draft_id=self.draft_id, timeout=self.summary_timeout)
            raise SuggestionUnavailable(None, "summary timed out") from e

        self._summary = summary
        self._complete = True
        try:
            await self.gateway.update_draft(self.draft_id, {"summary": summary})
        except PersistenceError as e:
            logger.warning("summary_not_stored", draft_id=self.draft_id, error=str(e))
        logger.info("brief_summary_generated", draft_id=self.draft_id, answers=len(answered))
        return summary

    async def submit_completed_brief(self, title: str, category: BriefCategory | str | None = None) -> Brief:
        """Create the brief from the wizard and submit it for review.

        In revision mode the bound brief is updated in place and resubmitted.

        Raises:
            ValidationError: Blank title, unknown category or no summary yet
            PersistenceError: A gateway call failed; retrying is safe
            IllegalTransition: The brief is no longer in a submittable status
        """
        if not title or not title.strip():
            raise ValidationError("title", "A title is required")
        try:
            category = BriefCategory(category) if category is not None else self.fields.category
        except ValueError:
            raise ValidationError("category", f"Unknown category '{category}'") from None

        description = self._summary or self.fields.description
        if not description:
            raise ValidationError("summary", "Generate the brief summary before submitting")

        fields = self.fields.model_copy(
            update={
                "title": title.strip(),
                "category": category,
                "description": description,
                "budget": self.fields.budget or self._derived_budget(),
                "deadline": self.fields.deadline or default_deadline(),
            }
        )

        if self.revision_brief is not None:
            brief = await self._resubmit(fields)
        else:
            brief = await self._submit_new(fields)

        self.fields = fields
        self._submitted = brief
        try:
            await self.gateway.update_draft(self.draft_id, {"completed": True, "brief_id": brief.id})
        except PersistenceError as e:
            logger.warning("draft_completion_not_stored", draft_id=self.draft_id, error=str(e))
        return brief

    async def _submit_new(self, fields: BriefFields) -> Brief:
        if self._brief_id is None:
            self._brief_id = await self.gateway.create_brief(self.client_id, fields, draft_id=self.draft_id)
            logger.info("brief_created", brief_id=self._brief_id, client_id=self.client_id, source="wizard")
            brief = await self.gateway.get_brief(self._brief_id)
        else:
            # Retry after a failed submit: the brief exists, bring its content up to date
            brief = await self.gateway.get_brief(self._brief_id)
            brief = await self.lifecycle.update_content(brief, fields.model_dump())

        return await self.lifecycle.apply(brief, BriefAction.SUBMIT)

    async def _resubmit(self, fields: BriefFields) -> Brief:
        brief = await self.gateway.get_brief(self.revision_brief.id)
        if brief.status != BriefStatus.CHANGES_REQUESTED:
            raise IllegalTransition(BriefAction.RESUBMIT, brief.status)
        brief = await self.lifecycle.update_content(brief, fields.model_dump())
        brief = await self.lifecycle.apply(brief, BriefAction.RESUBMIT)
        self.revision_brief = brief
        return brief

    def update_fields(self, **changes) -> BriefFields:
        """Edit brief fields directly (revision mode, or overriding derived values)."""
        unknown = set(changes) - set(BriefFields.model_fields)
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Unknown brief field")
        self.fields = BriefFields.model_validate({**self.fields.model_dump(), **changes})
        return self.fields

    async def attach_file(self, filename: str, content: bytes, content_type: str) -> str:
        url = await self.gateway.attach_file(self.client_id, filename, content, content_type)
        self.fields = self.fields.model_copy(update={"attachment_url": url})
        return url

    async def aclose(self) -> None:
        await self.fetcher.aclose()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _persist(self, question_id: str) -> None:
        entry = self._responses[question_id]
        lock = self._save_locks.setdefault(question_id, asyncio.Lock())

        # Saves of one answer run one at a time so the stored text is the newest
        async with lock:
            if not entry.dirty:
                return
            version = entry.version
            if entry.ai_suggested_response is None:
                entry.ai_suggested_response = self.cache.get(question_id)
            try:
                await self.gateway.upsert_question_response(
                    self.draft_id,
                    question_id,
                    entry.response,
                    entry.ai_suggested_response,
                    entry.was_suggestion_used,
                )
            except PersistenceError as e:
                entry.save_error = str(e)
                logger.warning("response_save_failed", draft_id=self.draft_id, question_id=question_id, error=str(e))
                raise

            entry.save_error = None
            # An edit that landed while this save was in flight is still unsaved
            if entry.version == version:
                entry.dirty = False

    async def _flush(self, question_ids: list[str], operation: str) -> None:
        dirty = [qid for qid in question_ids if qid in self._responses and self._responses[qid].dirty]
        if not dirty:
            return

        results = await asyncio.gather(*(self._persist(qid) for qid in dirty), return_exceptions=True)

        failed = []
        for qid, result in zip(dirty, results, strict=True):
            if isinstance(result, PersistenceError):
                failed.append(qid)
            elif isinstance(result, BaseException):
                raise result
        if failed:
            raise PersistenceError(operation, f"{len(failed)} of {len(dirty)} responses not saved: {', '.join(failed)}")

    def _entry(self, question_id: str) -> ResponseEntry:
        self._question(question_id)
        if question_id not in self._responses:
            self._responses[question_id] = ResponseEntry(question_id=question_id)
        return self._responses[question_id]

    def _question(self, question_id: str) -> Question:
        question = get_question(question_id)
        if question is None:
            raise ValidationError("question_id", f"Unknown question '{question_id}'")
        return question

    def _answered_pairs(self, categories: list[QuestionCategory] | None = None) -> list[dict]:
        pairs = []
        for category in categories if categories is not None else CATEGORY_ORDER:
            for question in questions_for(category):
                entry = self._responses.get(question.id)
                if entry and entry.response.strip():
                    pairs.append({"question": question.prompt, "response": entry.response.strip()})
        return pairs

    def _context_before(self, category: QuestionCategory) -> list[dict]:
        return self._answered_pairs(CATEGORY_ORDER[: CATEGORY_ORDER.index(category)])

    def _derived_budget(self) -> str:
        answers = self._answered_pairs([QuestionCategory.BUDGET])
        return answers[0]["response"] if answers else get_settings().default_budget


def _parse_category(value: str | None) -> QuestionCategory:
    try:
        return QuestionCategory(value)
    except ValueError:
        return CATEGORY_ORDER[0]

