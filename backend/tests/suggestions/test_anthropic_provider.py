"""Tests for AnthropicSuggestionProvider with a mocked AsyncAnthropic client."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.exceptions import SuggestionUnavailable
from app.suggestions.prompts import SUGGESTION_SYSTEM, SUMMARY_SYSTEM, format_previous_responses
from app.suggestions.provider import SuggestionProvider
from app.suggestions.provider_anthropic import AnthropicSuggestionProvider

pytestmark = pytest.mark.unit

PREVIOUS = [{"question": "What is the main objective of this project?", "response": "Sell handmade shoes online"}]


def _provider(text: str = "Independent shoppers aged 25-40.", side_effect=None) -> AnthropicSuggestionProvider:
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=side_effect)
    return AnthropicSuggestionProvider(client=client, suggestion_model="suggest-model", summary_model="summary-model")


class TestSuggest:
    async def test_returns_cleaned_text(self):
        provider = _provider('"Independent shoppers aged 25-40."')

        text = await provider.suggest("audience-who", "Who is the target audience?", PREVIOUS)

        assert text == "Independent shoppers aged 25-40."
        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["model"] == "suggest-model"
        assert kwargs["system"] == SUGGESTION_SYSTEM
        content = kwargs["messages"][0]["content"]
        assert "Who is the target audience?" in content
        assert "Sell handmade shoes online" in content

    async def test_provider_error_becomes_unavailable(self):
        provider = _provider(side_effect=ConnectionError("reset by peer"))

        with pytest.raises(SuggestionUnavailable) as exc_info:
            await provider.suggest("audience-who", "Who is the target audience?")
        assert exc_info.value.question_id == "audience-who"

    async def test_empty_answer_becomes_unavailable(self):
        provider = _provider("   ")
        with pytest.raises(SuggestionUnavailable):
            await provider.suggest("audience-who", "Who is the target audience?")

    def test_satisfies_protocol(self):
        assert isinstance(_provider(), SuggestionProvider)


class TestSummarize:
    async def test_uses_summary_model(self):
        provider = _provider("A shoe maker wants an online store.\n")

        summary = await provider.summarize(PREVIOUS)

        assert summary == "A shoe maker wants an online store."
        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["model"] == "summary-model"
        assert kwargs["system"] == SUMMARY_SYSTEM
        assert kwargs["max_tokens"] == 2048

    async def test_no_answers_is_unavailable_without_calling_model(self):
        provider = _provider()
        with pytest.raises(SuggestionUnavailable):
            await provider.summarize([{"question": "Q", "response": ""}])
        provider.client.messages.create.assert_not_called()

    async def test_provider_error_becomes_unavailable(self):
        provider = _provider(side_effect=RuntimeError("boom"))
        with pytest.raises(SuggestionUnavailable) as exc_info:
            await provider.summarize(PREVIOUS)
        assert exc_info.value.question_id is None


def test_previous_responses_skip_blank_answers():
    formatted = format_previous_responses([*PREVIOUS, {"question": "Skipped?", "response": ""}])
    assert "Skipped?" not in formatted
    assert format_previous_responses(None) == "No earlier answers yet."
