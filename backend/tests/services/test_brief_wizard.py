"""Tests for BriefWizard.

Tests cover:
- Category navigation: concurrent saves, all settled before advancing, idempotent re-advance
- Failed saves keep the answer dirty and the wizard in place
- Suggestions: dispatched on category entry, adopted via use_suggestion
- Summary generation and submission (budget/deadline derivation, retry after failure)
- Draft resume
"""

import asyncio
from datetime import date, timedelta

import pytest

from app.core.exceptions import PersistenceError, SuggestionUnavailable, ValidationError
from app.domain.briefs import BriefCategory, BriefStatus
from app.domain.questions import CATEGORY_ORDER, QuestionCategory
from app.gateways.memory import InMemoryBriefGateway
from app.services.brief_lifecycle import BriefLifecycleService
from app.services.brief_wizard import BriefWizard
from app.services.suggestions import SuggestionState
from app.suggestions.provider_fake import CANNED_SUGGESTIONS, SuggestionProviderFake

pytestmark = pytest.mark.unit


async def _start(gateway, provider=None) -> BriefWizard:
    provider = provider or SuggestionProviderFake()
    wizard = await BriefWizard.start(gateway, provider, BriefLifecycleService(gateway), "client-001")
    await wizard.fetcher.wait_idle()
    return wizard


async def _walk_to_end(wizard: BriefWizard) -> None:
    while not wizard.complete:
        await wizard.move_to_next_category()


class TestStart:
    async def test_new_draft_starts_at_objectives(self, wizard, gateway):
        assert wizard.current_category == QuestionCategory.OBJECTIVES
        assert [q.id for q in wizard.get_current_category_questions()] == [
            "objectives-goal",
            "objectives-problem",
            "objectives-success",
        ]
        assert len(gateway.calls_to("create_draft")) == 1
        assert not wizard.complete
        assert not wizard.ready_to_submit

    async def test_entering_category_fetches_suggestions(self, wizard, provider):
        assert {call[0] for call in provider.suggest_calls} == {
            "objectives-goal",
            "objectives-problem",
            "objectives-success",
        }
        assert wizard.suggestion_state("objectives-goal") == SuggestionState.READY

    async def test_resume_restores_category_and_answers(self, gateway):
        first = await _start(gateway)
        await first.save_response("objectives-goal", "Sell more shoes online")
        await first.move_to_next_category()
        await first.aclose()

        resumed = await _start(gateway)
        assert resumed.draft_id == first.draft_id
        assert resumed.current_category == QuestionCategory.AUDIENCE
        assert resumed.response_for("objectives-goal").response == "Sell more shoes online"
        assert not resumed.response_for("objectives-goal").dirty
        assert len(gateway.calls_to("create_draft")) == 1
        await resumed.aclose()

    async def test_resume_false_always_creates_a_draft(self, gateway, provider, lifecycle):
        first = await _start(gateway)
        second = await BriefWizard.start(gateway, provider, lifecycle, "client-001", resume=False)
        assert second.draft_id != first.draft_id
        await first.aclose()
        await second.aclose()


class TestMoveToNextCategory:
    async def test_saves_only_answered_questions_then_advances(self, gateway):
        gateway.response_delays = {"objectives-goal": 0.05, "objectives-problem": 0.01}
        wizard = await _start(gateway)
        wizard.set_response("objectives-goal", "Launch an online store")
        wizard.set_response("objectives-problem", "We only sell in person today")

        task = asyncio.create_task(wizard.move_to_next_category())
        await asyncio.sleep(0.02)
        # Still waiting on the slower save
        assert wizard.current_category == QuestionCategory.OBJECTIVES

        assert await task == QuestionCategory.AUDIENCE
        upserts = gateway.calls_to("upsert_question_response")
        assert len(upserts) == 2
        assert {args[1] for args, _ in upserts} == {"objectives-goal", "objectives-problem"}
        assert gateway.max_in_flight_upserts == 2
        assert wizard.current_category == QuestionCategory.AUDIENCE
        await wizard.aclose()

    async def test_second_advance_does_not_resave(self, wizard, gateway):
        wizard.set_response("objectives-goal", "Launch an online store")
        await wizard.move_to_next_category()
        await wizard.move_to_next_category()

        assert len(gateway.calls_to("upsert_question_response")) == 1
        assert len(gateway.responses) == 1
        assert wizard.current_category == QuestionCategory.TIMELINE

    async def test_resaving_overwrites_the_same_row(self, wizard, gateway):
        await wizard.save_response("objectives-goal", "first")
        await wizard.save_response("objectives-goal", "second")

        assert len(gateway.responses) == 1
        assert gateway.responses[(wizard.draft_id, "objectives-goal")].response == "second"

    async def test_failed_save_keeps_answer_and_position(self, gateway):
        gateway.fail_questions = {"objectives-problem"}
        wizard = await _start(gateway)
        wizard.set_response("objectives-goal", "Launch an online store")
        wizard.set_response("objectives-problem", "We only sell in person today")

        with pytest.raises(PersistenceError) as exc_info:
            await wizard.move_to_next_category()

        assert "objectives-problem" in str(exc_info.value)
        assert wizard.current_category == QuestionCategory.OBJECTIVES
        assert wizard.dirty_questions() == ["objectives-problem"]
        assert wizard.response_for("objectives-problem").response == "We only sell in person today"
        assert wizard.response_for("objectives-problem").save_error is not None
        assert not wizard.response_for("objectives-goal").dirty

        # Retry only re-sends what failed
        gateway.fail_questions.clear()
        assert await wizard.move_to_next_category() == QuestionCategory.AUDIENCE
        retried = [args[1] for args, _ in gateway.calls_to("upsert_question_response")]
        assert retried == ["objectives-goal", "objectives-problem", "objectives-problem"]
        assert wizard.response_for("objectives-problem").save_error is None
        await wizard.aclose()

    async def test_draft_progress_failure_keeps_position(self, wizard, gateway):
        gateway.fail_operations = {"update_draft"}
        with pytest.raises(PersistenceError):
            await wizard.move_to_next_category()
        assert wizard.current_category == QuestionCategory.OBJECTIVES

    async def test_last_category_sets_complete(self, wizard):
        await _walk_to_end(wizard)
        assert wizard.current_category == CATEGORY_ORDER[-1]
        assert wizard.complete
        assert await wizard.move_to_next_category() is None

    async def test_edit_during_save_stays_dirty(self, gateway):
        gateway.response_delays = {"objectives-goal": 0.05}
        wizard = await _start(gateway)

        save = asyncio.create_task(wizard.save_response("objectives-goal", "first draft"))
        await asyncio.sleep(0.01)
        wizard.set_response("objectives-goal", "second draft")
        await save

        entry = wizard.response_for("objectives-goal")
        assert entry.response == "second draft"
        assert entry.dirty
        await wizard.aclose()

    async def test_overlapping_saves_store_the_newest_answer(self):
        gateway = _SlowFirstUpsertGateway()
        wizard = await _start(gateway)

        first = asyncio.create_task(wizard.save_response("objectives-goal", "old answer"))
        await asyncio.sleep(0)
        await wizard.save_response("objectives-goal", "new answer")
        await first
        await wizard.move_to_next_category()

        entry = wizard.response_for("objectives-goal")
        assert entry.response == "new answer"
        assert not entry.dirty
        assert gateway.responses[(wizard.draft_id, "objectives-goal")].response == "new answer"
        await wizard.aclose()

        resumed = await _start(gateway)
        assert resumed.response_for("objectives-goal").response == "new answer"
        await resumed.aclose()


class _SlowFirstUpsertGateway(InMemoryBriefGateway):
    """The first upsert settles after the ones that follow it."""

    def __init__(self):
        super().__init__()
        self._upserts = 0

    async def upsert_question_response(self, draft_id, question_id, *args):
        self._upserts += 1
        if self._upserts == 1:
            await asyncio.sleep(0.05)
        await super().upsert_question_response(draft_id, question_id, *args)


class TestResponses:
    async def test_typed_answer_keeps_the_cached_suggestion(self, wizard, gateway):
        wizard.set_response("objectives-goal", "Typed without saving")
        await wizard.move_to_next_category()

        stored = gateway.responses[(wizard.draft_id, "objectives-goal")]
        assert stored.response == "Typed without saving"
        assert stored.ai_suggested_response == CANNED_SUGGESTIONS[QuestionCategory.OBJECTIVES]
        assert stored.was_suggestion_used is False

    async def test_save_response_persists_suggestion_snapshot(self, wizard, gateway):
        await wizard.save_response("objectives-goal", "My own words")
        stored = gateway.responses[(wizard.draft_id, "objectives-goal")]
        assert stored.response == "My own words"
        assert stored.ai_suggested_response == CANNED_SUGGESTIONS[QuestionCategory.OBJECTIVES]
        assert stored.was_suggestion_used is False

    async def test_save_failure_keeps_local_answer(self, wizard, gateway):
        gateway.fail_questions = {"objectives-goal"}
        with pytest.raises(PersistenceError):
            await wizard.save_response("objectives-goal", "Do not lose me")
        entry = wizard.response_for("objectives-goal")
        assert entry.response == "Do not lose me"
        assert entry.dirty

    async def test_unknown_question_is_rejected(self, wizard):
        with pytest.raises(ValidationError):
            wizard.set_response("not-a-question", "text")

    async def test_use_suggestion(self, wizard, gateway):
        entry = await wizard.use_suggestion("objectives-goal")

        expected = CANNED_SUGGESTIONS[QuestionCategory.OBJECTIVES]
        assert entry.response == expected
        assert entry.was_suggestion_used
        stored = gateway.responses[(wizard.draft_id, "objectives-goal")]
        assert stored.was_suggestion_used is True
        assert stored.ai_suggested_response == expected

    async def test_use_suggestion_without_one_raises(self, gateway):
        wizard = await _start(gateway, SuggestionProviderFake(scenario="suggestion_failure"))
        assert wizard.suggestion_state("objectives-goal") == SuggestionState.UNAVAILABLE
        with pytest.raises(SuggestionUnavailable):
            await wizard.use_suggestion("objectives-goal")
        assert gateway.calls_to("upsert_question_response") == []
        await wizard.aclose()

    async def test_refresh_after_failed_suggestion(self, gateway):
        provider = SuggestionProviderFake(failing_questions={"objectives-goal"})
        wizard = await _start(gateway, provider)
        assert wizard.suggestion_state("objectives-goal") == SuggestionState.UNAVAILABLE

        provider.failing_questions = set()
        await wizard.refresh_suggestion("objectives-goal")

        assert wizard.suggestion_state("objectives-goal") == SuggestionState.READY
        assert wizard.suggestion_for("objectives-goal") == CANNED_SUGGESTIONS[QuestionCategory.OBJECTIVES]
        await wizard.aclose()

    async def test_later_categories_get_earlier_answers_as_context(self, wizard, provider):
        await wizard.save_response("objectives-goal", "Sell more shoes")
        await wizard.move_to_next_category()
        await wizard.fetcher.wait_idle()

        audience_calls = [call for call in provider.suggest_calls if call[0].startswith("audience-")]
        assert audience_calls
        assert audience_calls[0][2] == [
            {"question": "What is the main objective of this project?", "response": "Sell more shoes"}
        ]


class TestSummary:
    async def test_summary_is_returned_verbatim(self, wizard, provider):
        await wizard.save_response("objectives-goal", "Launch an online store")
        wizard.set_response("budget-range", "$3,000")

        summary = await wizard.generate_brief_summary()

        assert summary.startswith("Project Brief Summary:")
        assert "Launch an online store" in summary
        assert wizard.summary == summary
        assert wizard.ready_to_submit
        # Outstanding answers were flushed first
        assert not wizard.dirty_questions()
        assert len(provider.summarize_calls) == 1
        assert len(provider.summarize_calls[0]) == 2

    async def test_summary_requires_an_answer(self, wizard):
        with pytest.raises(ValidationError):
            await wizard.generate_brief_summary()

    async def test_summary_failure_is_unavailable(self, gateway):
        wizard = await _start(gateway, SuggestionProviderFake(scenario="summary_failure"))
        await wizard.save_response("objectives-goal", "Launch an online store")

        with pytest.raises(SuggestionUnavailable):
            await wizard.generate_brief_summary()
        assert not wizard.ready_to_submit
        assert wizard.response_for("objectives-goal").response == "Launch an online store"
        await wizard.aclose()

    async def test_summary_is_stored_on_draft(self, wizard, gateway):
        await wizard.save_response("objectives-goal", "Launch an online store")
        summary = await wizard.generate_brief_summary()
        assert gateway.drafts[wizard.draft_id].summary == summary


class TestSubmit:
    async def test_blank_title_fails_before_any_gateway_call(self, wizard, gateway):
        calls_before = len(gateway.calls)
        with pytest.raises(ValidationError) as exc_info:
            await wizard.submit_completed_brief("", "design")
        assert exc_info.value.field == "title"
        assert len(gateway.calls) == calls_before

    async def test_submit_requires_summary(self, wizard):
        with pytest.raises(ValidationError) as exc_info:
            await wizard.submit_completed_brief("Storefront", "design")
        assert exc_info.value.field == "summary"

    async def test_unknown_category_is_rejected(self, wizard):
        with pytest.raises(ValidationError):
            await wizard.submit_completed_brief("Storefront", "sculpture")

    async def test_submit_creates_and_submits(self, wizard, gateway):
        await wizard.save_response("objectives-goal", "Launch an online store")
        await wizard.save_response("budget-range", "$3,000 - $4,000")
        summary = await wizard.generate_brief_summary()

        brief = await wizard.submit_completed_brief("  Storefront  ", "development")

        assert brief.status == BriefStatus.SUBMITTED
        assert brief.title == "Storefront"
        assert brief.category == BriefCategory.DEVELOPMENT
        assert brief.description == summary
        assert brief.budget == "$3,000 - $4,000"
        assert brief.deadline == date.today() + timedelta(days=30)
        assert brief.draft_id == wizard.draft_id
        assert gateway.briefs[brief.id].status == BriefStatus.SUBMITTED

        create_args, _ = gateway.calls_to("create_brief")[0]
        assert create_args[0] == "client-001"
        assert gateway.calls_to("update_brief") == [((brief.id, {"status": BriefStatus.SUBMITTED}), {})]
        assert gateway.drafts[wizard.draft_id].completed
        assert gateway.drafts[wizard.draft_id].brief_id == brief.id

    async def test_budget_defaults_when_unanswered(self, wizard):
        await wizard.save_response("objectives-goal", "Launch an online store")
        await wizard.generate_brief_summary()
        brief = await wizard.submit_completed_brief("Storefront", "design")
        assert brief.budget == "To be determined"

    async def test_retry_after_submit_failure_reuses_brief(self, wizard, gateway):
        await wizard.save_response("objectives-goal", "Launch an online store")
        await wizard.generate_brief_summary()

        gateway.fail_operations = {"update_brief"}
        with pytest.raises(PersistenceError):
            await wizard.submit_completed_brief("Storefront", "design")
        assert wizard.summary is not None
        assert wizard.brief_id is not None
        assert gateway.briefs[wizard.brief_id].status == BriefStatus.DRAFT

        gateway.fail_operations = set()
        brief = await wizard.submit_completed_brief("Storefront v2", "design")

        assert brief.status == BriefStatus.SUBMITTED
        assert brief.title == "Storefront v2"
        assert len(gateway.calls_to("create_brief")) == 1
        assert len(gateway.briefs) == 1

    async def test_create_failure_keeps_state(self, wizard, gateway):
        await wizard.save_response("objectives-goal", "Launch an online store")
        await wizard.generate_brief_summary()

        gateway.fail_operations = {"create_brief"}
        with pytest.raises(PersistenceError):
            await wizard.submit_completed_brief("Storefront", "design")
        assert wizard.brief_id is None
        assert wizard.ready_to_submit
        assert gateway.briefs == {}


async def test_attach_file_sets_attachment(wizard, gateway):
    url = await wizard.attach_file("brief.pdf", b"%PDF-1.7", "application/pdf")
    assert url.startswith("memory://attachments/client-001/")
    assert wizard.fields.attachment_url == url


async def test_wizard_with_fresh_gateway_has_no_answers():
    gateway = InMemoryBriefGateway()
    wizard = await _start(gateway)
    assert wizard.responses() == {}
    await wizard.aclose()
