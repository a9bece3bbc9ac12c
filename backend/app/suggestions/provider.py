"""SuggestionProvider Protocol: the AI boundary of the brief wizard.

Implementations:
- AnthropicSuggestionProvider: Claude-backed (production)
- SuggestionProviderFake: scenario-based deterministic double (tests)

Both calls are stateless. Implementations raise SuggestionUnavailable on any
failure; callers treat that as "no suggestion yet", never as fatal.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SuggestionProvider(Protocol):
    """AI operations used while authoring a brief."""

    async def suggest(
        self,
        question_id: str,
        prompt_text: str,
        previous_responses: list[dict] | None = None,
    ) -> str:
        """Suggest an answer for one question.

        Args:
            question_id: Question being answered
            prompt_text: The question's prompt as shown to the client
            previous_responses: Already answered [{"question", "response"}] pairs for context

        Returns:
            Free-text suggestion

        Raises:
            SuggestionUnavailable: Provider failed or returned nothing usable
        """
        ...

    async def summarize(self, responses: list[dict]) -> str:
        """Synthesize a natural-language brief from every question/response pair.

        Args:
            responses: [{"question", "response"}] in wizard order

        Returns:
            Summary text, used verbatim as the brief description

        Raises:
            SuggestionUnavailable: Provider failed or returned nothing usable
        """
        ...
