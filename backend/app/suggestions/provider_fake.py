"""SuggestionProviderFake: scenario-based test double for SuggestionProvider.

Named scenarios:
- happy_path: canned per-category suggestions and a stitched summary
- suggestion_failure: every suggest() fails, summarize() works
- summary_failure: suggest() works, summarize() fails
- unavailable: everything fails

Per-question knobs layer on top of any scenario:
- failing_questions: question ids whose suggest() fails
- delays: question id -> seconds before suggest() settles
- hanging_questions: question ids whose suggest() never settles
"""

import asyncio

from app.core.exceptions import SuggestionUnavailable
from app.domain.questions import QuestionCategory, get_question

CANNED_SUGGESTIONS: dict[QuestionCategory, str] = {
    QuestionCategory.OBJECTIVES: "To create a modern, responsive website that showcases our products and drives online sales.",
    QuestionCategory.AUDIENCE: "Small business owners and entrepreneurs aged 30-45 who are looking to improve their digital presence.",
    QuestionCategory.TIMELINE: "We need this completed within 4 weeks from the project start date.",
    QuestionCategory.BUDGET: "$2,000 - $3,500",
    QuestionCategory.DELIVERABLES: "A fully responsive website with 5-7 pages, including home, about, products, contact, and blog pages.",
    QuestionCategory.SKILLS: "Web design, UI/UX expertise, and experience with e-commerce functionality.",
    QuestionCategory.REFERENCES: "We like the clean design of www.example.com and the user experience of www.anotherexample.com.",
    QuestionCategory.BRAND: "Our brand voice is professional but approachable, using clear language without technical jargon.",
}

GENERIC_SUGGESTION = "Provide specific details here to help creators understand your needs better."


class SuggestionProviderFake:
    """Deterministic SuggestionProvider with call recording."""

    VALID_SCENARIOS = {"happy_path", "suggestion_failure", "summary_failure", "unavailable"}

    def __init__(
        self,
        scenario: str = "happy_path",
        failing_questions: set[str] | None = None,
        delays: dict[str, float] | None = None,
        hanging_questions: set[str] | None = None,
    ):
        """Initialize with a named scenario.

        Raises:
            ValueError: If scenario is not recognized
        """
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}")
        self.scenario = scenario
        self.failing_questions = set(failing_questions or ())
        self.delays = dict(delays or {})
        self.hanging_questions = set(hanging_questions or ())
        self.suggest_calls: list[tuple[str, str, list[dict] | None]] = []
        self.summarize_calls: list[list[dict]] = []

    async def suggest(
        self,
        question_id: str,
        prompt_text: str,
        previous_responses: list[dict] | None = None,
    ) -> str:
        self.suggest_calls.append((question_id, prompt_text, previous_responses))

        if question_id in self.hanging_questions:
            await asyncio.Event().wait()
        await asyncio.sleep(self.delays.get(question_id, 0))

        if self.scenario in ("suggestion_failure", "unavailable") or question_id in self.failing_questions:
            raise SuggestionUnavailable(question_id, "Anthropic API rate limit exceeded. Retry after 60 seconds.")

        question = get_question(question_id)
        if question is None:
            return GENERIC_SUGGESTION
        return CANNED_SUGGESTIONS.get(question.category, GENERIC_SUGGESTION)

    async def summarize(self, responses: list[dict]) -> str:
        self.summarize_calls.append(responses)

        if self.scenario in ("summary_failure", "unavailable"):
            raise SuggestionUnavailable(None, "Anthropic API rate limit exceeded. Retry after 60 seconds.")

        summary = "Project Brief Summary:\n\n"
        for item in responses:
            summary += f"{item['question']}:\n{item['response']}\n\n"
        summary += (
            "This project requires a skilled professional who can deliver high-quality work "
            "within the specified timeframe and budget."
        )
        return summary
