"""SuggestionCache and SuggestionFetcher: per-question AI suggestions for the wizard.

One request per question, all in flight together. Each request owns its own
loading flag, so a slow or failing question never blocks or blanks its
siblings. Results land in the cache last-writer-wins; a result that settles
after the client moved on is still cached and shown if they come back.
"""

import asyncio
from collections.abc import Iterable
from enum import StrEnum

import structlog

from app.core.exceptions import SuggestionUnavailable
from app.domain.questions import Question
from app.suggestions.provider import SuggestionProvider

logger = structlog.get_logger(__name__)


class SuggestionState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class SuggestionCache:
    """Latest suggestion text per question id. Knows nothing about briefs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._entries: dict[str, str] = dict(initial or {})

    def get(self, question_id: str) -> str | None:
        return self._entries.get(question_id)

    def put(self, question_id: str, text: str) -> None:
        self._entries[question_id] = text

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> dict[str, str]:
        return dict(self._entries)


class SuggestionFetcher:
    """Dispatches suggestion requests and tracks them by question id."""

    def __init__(
        self,
        provider: SuggestionProvider,
        cache: SuggestionCache,
        timeout_seconds: float | None = None,
    ):
        """Initialize the fetcher.

        Args:
            provider: Suggestion provider
            cache: Cache the results are written into
            timeout_seconds: Soft deadline per request; None waits forever
        """
        self.provider = provider
        self.cache = cache
        self.timeout_seconds = timeout_seconds
        self._in_flight: dict[str, asyncio.Task] = {}
        self._unavailable: set[str] = set()

    def fetch_all(self, questions: Iterable[Question], context: list[dict] | None = None) -> list[asyncio.Task]:
        """Dispatch one request per question without awaiting any of them."""
        return [self.fetch(question, context) for question in questions]

    def fetch(self, question: Question, context: list[dict] | None = None) -> asyncio.Task:
        """Dispatch a request for one question.

        A question already in flight is not requested twice; the existing
        handle is returned instead.
        """
        existing = self._in_flight.get(question.id)
        if existing is not None and not existing.done():
            return existing

        self._unavailable.discard(question.id)
        task = asyncio.create_task(self._run(question, context), name=f"suggest:{question.id}")
        self._in_flight[question.id] = task
        return task

    def is_loading(self, question_id: str) -> bool:
        task = self._in_flight.get(question_id)
        return task is not None and not task.done()

    def state(self, question_id: str) -> SuggestionState:
        if self.is_loading(question_id):
            return SuggestionState.LOADING
        if question_id in self.cache:
            return SuggestionState.READY
        if question_id in self._unavailable:
            return SuggestionState.UNAVAILABLE
        return SuggestionState.IDLE

    def pending(self) -> list[str]:
        return [qid for qid, task in self._in_flight.items() if not task.done()]

    async def wait_idle(self) -> None:
        """Wait until every in-flight request has settled."""
        tasks = [task for task in self._in_flight.values() if not task.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel whatever is still in flight (session teardown)."""
        tasks = [task for task in self._in_flight.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()

    async def _run(self, question: Question, context: list[dict] | None) -> str | None:
        try:
            call = self.provider.suggest(question.id, question.prompt, context)
            if self.timeout_seconds is not None:
                text = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                text = await call
        except TimeoutError:
            logger.warning("suggestion_fetch_timed_out", question_id=question.id, timeout=self.timeout_seconds)
            self._unavailable.add(question.id)
            return None
        except SuggestionUnavailable as e:
            logger.warning("suggestion_fetch_failed", question_id=question.id, reason=e.reason)
            self._unavailable.add(question.id)
            return None
        except Exception as e:
            logger.warning(
                "suggestion_fetch_failed", question_id=question.id, error=str(e), error_type=type(e).__name__
            )
            self._unavailable.add(question.id)
            return None

        if not text:
            self._unavailable.add(question.id)
            return None

        self.cache.put(question.id, text)
        logger.debug("suggestion_cached", question_id=question.id)
        return text
