"""AnthropicSuggestionProvider: Claude-backed SuggestionProvider.

- Tenacity retry on 529 OverloadedError / 429 RateLimitError (see llm_helpers)
- Every other failure, and any empty answer, becomes SuggestionUnavailable
"""

import structlog
from anthropic import AsyncAnthropic

from app.core.config import get_settings
from app.core.exceptions import SuggestionUnavailable
from app.suggestions.llm_helpers import _clean_text, _invoke_with_retry
from app.suggestions.prompts import (
    SUGGESTION_SYSTEM,
    SUMMARY_SYSTEM,
    build_suggestion_message,
    build_summary_message,
)

logger = structlog.get_logger(__name__)


class AnthropicSuggestionProvider:
    """Production SuggestionProvider."""

    def __init__(self, client=None, suggestion_model: str | None = None, summary_model: str | None = None):
        settings = get_settings()
        self.client = client or AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.suggestion_model = suggestion_model or settings.suggestion_model
        self.summary_model = summary_model or settings.summary_model

    async def suggest(
        self,
        question_id: str,
        prompt_text: str,
        previous_responses: list[dict] | None = None,
    ) -> str:
        messages = [{"role": "user", "content": build_suggestion_message(prompt_text, previous_responses)}]
        try:
            raw = await _invoke_with_retry(self.client, self.suggestion_model, SUGGESTION_SYSTEM, messages, 400)
        except Exception as e:
            logger.warning(
                "suggestion_provider_failed", question_id=question_id, error=str(e), error_type=type(e).__name__
            )
            raise SuggestionUnavailable(question_id, str(e)) from e

        text = _clean_text(raw)
        if not text:
            raise SuggestionUnavailable(question_id, "empty response")
        return text

    async def summarize(self, responses: list[dict]) -> str:
        if not any(item.get("response") for item in responses):
            raise SuggestionUnavailable(None, "no answers to summarize")

        messages = [{"role": "user", "content": build_summary_message(responses)}]
        try:
            raw = await _invoke_with_retry(self.client, self.summary_model, SUMMARY_SYSTEM, messages, 2048)
        except Exception as e:
            logger.warning("summary_provider_failed", error=str(e), error_type=type(e).__name__)
            raise SuggestionUnavailable(None, str(e)) from e

        text = raw.strip()
        if not text:
            raise SuggestionUnavailable(None, "empty response")
        return text
