"""Fixed question bank for the guided brief wizard.

Eight categories walked in a fixed order, each with its own ordered questions.
Pure lookups, no I/O.
"""

from dataclasses import dataclass
from enum import StrEnum


class QuestionCategory(StrEnum):
    """Authoring categories, declared in wizard order."""

    OBJECTIVES = "objectives"
    AUDIENCE = "audience"
    TIMELINE = "timeline"
    BUDGET = "budget"
    DELIVERABLES = "deliverables"
    SKILLS = "skills"
    REFERENCES = "references"
    BRAND = "brand"


class FieldKind(StrEnum):
    SINGLE_LINE = "single_line"
    MULTI_LINE = "multi_line"


@dataclass(frozen=True)
class Question:
    """A single authoring question."""

    id: str
    category: QuestionCategory
    prompt: str
    kind: FieldKind = FieldKind.MULTI_LINE
    help_text: str | None = None
    placeholder: str | None = None


CATEGORY_ORDER: list[QuestionCategory] = list(QuestionCategory)

CATEGORY_TITLES: dict[QuestionCategory, str] = {
    QuestionCategory.OBJECTIVES: "Project Objectives",
    QuestionCategory.AUDIENCE: "Target Audience",
    QuestionCategory.TIMELINE: "Timeline",
    QuestionCategory.BUDGET: "Budget",
    QuestionCategory.DELIVERABLES: "Deliverables",
    QuestionCategory.SKILLS: "Required Skills",
    QuestionCategory.REFERENCES: "References & Inspiration",
    QuestionCategory.BRAND: "Brand Guidelines",
}

_O = QuestionCategory.OBJECTIVES
_A = QuestionCategory.AUDIENCE
_T = QuestionCategory.TIMELINE
_B = QuestionCategory.BUDGET
_D = QuestionCategory.DELIVERABLES
_S = QuestionCategory.SKILLS
_R = QuestionCategory.REFERENCES
_BR = QuestionCategory.BRAND

QUESTION_BANK: list[Question] = [
    Question(
        "objectives-goal",
        _O,
        "What is the main objective of this project?",
        help_text="Describe the outcome you want, not the deliverable.",
        placeholder="e.g. Increase online sales through a redesigned storefront",
    ),
    Question(
        "objectives-problem",
        _O,
        "What problem does this project solve for your business?",
    ),
    Question(
        "objectives-success",
        _O,
        "How will you measure the success of this project?",
        help_text="Concrete metrics help creators scope the work.",
    ),
    Question(
        "audience-who",
        _A,
        "Who is the target audience for this project?",
        placeholder="e.g. Small business owners aged 30-45",
    ),
    Question(
        "audience-needs",
        _A,
        "What does your audience care about most?",
    ),
    Question(
        "timeline-deadline",
        _T,
        "What is your timeline for this project?",
        kind=FieldKind.SINGLE_LINE,
        placeholder="e.g. 4 weeks from kickoff",
    ),
    Question(
        "timeline-milestones",
        _T,
        "Are there any key dates or milestones we should know about?",
    ),
    Question(
        "budget-range",
        _B,
        "What is your budget for this project?",
        kind=FieldKind.SINGLE_LINE,
        help_text="A range is fine.",
        placeholder="e.g. $2,000 - $3,500",
    ),
    Question(
        "budget-flexibility",
        _B,
        "How flexible is this budget?",
        kind=FieldKind.SINGLE_LINE,
    ),
    Question(
        "deliverables-list",
        _D,
        "What specific deliverables do you expect?",
        placeholder="e.g. A responsive website with 5-7 pages",
    ),
    Question(
        "deliverables-formats",
        _D,
        "Which file formats or platforms must the deliverables support?",
    ),
    Question(
        "skills-required",
        _S,
        "What skills or expertise should the creator have?",
    ),
    Question(
        "skills-tools",
        _S,
        "Are there tools or technologies the creator must use?",
        kind=FieldKind.SINGLE_LINE,
    ),
    Question(
        "references-examples",
        _R,
        "Share examples of work you like and what you like about them.",
        help_text="Links and short notes are enough.",
    ),
    Question(
        "references-avoid",
        _R,
        "Is there anything you want the creator to avoid?",
    ),
    Question(
        "brand-voice",
        _BR,
        "How would you describe your brand voice and personality?",
    ),
    Question(
        "brand-assets",
        _BR,
        "Which existing brand assets (logo, colors, fonts) must be used?",
    ),
]

_QUESTIONS_BY_ID: dict[str, Question] = {q.id: q for q in QUESTION_BANK}


def questions_for(category: QuestionCategory) -> list[Question]:
    """Ordered questions for one category."""
    category = QuestionCategory(category)
    return [q for q in QUESTION_BANK if q.category == category]


def get_question(question_id: str) -> Question | None:
    return _QUESTIONS_BY_ID.get(question_id)


def next_category(category: QuestionCategory) -> QuestionCategory | None:
    """Category after this one, or None when it is the last."""
    index = CATEGORY_ORDER.index(QuestionCategory(category))
    if index + 1 >= len(CATEGORY_ORDER):
        return None
    return CATEGORY_ORDER[index + 1]


def category_position(category: QuestionCategory) -> int:
    """1-based step number used for progress display."""
    return CATEGORY_ORDER.index(QuestionCategory(category)) + 1
