"""Wizard Pydantic schemas: API contracts for the guided authoring flow."""

from datetime import date

from pydantic import BaseModel, Field

from app.domain.briefs import BriefCategory
from app.domain.questions import (
    CATEGORY_ORDER,
    CATEGORY_TITLES,
    Question,
    QuestionCategory,
    category_position,
    questions_for,
)
from app.schemas.briefs import BriefFields, BriefResponse, FeedbackItem
from app.services.brief_wizard import BriefWizard
from app.services.suggestions import SuggestionState


class QuestionView(BaseModel):
    id: str
    category: QuestionCategory
    prompt: str
    kind: str
    help_text: str | None = None
    placeholder: str | None = None

    @classmethod
    def from_question(cls, question: Question) -> "QuestionView":
        return cls(
            id=question.id,
            category=question.category,
            prompt=question.prompt,
            kind=question.kind.value,
            help_text=question.help_text,
            placeholder=question.placeholder,
        )


class CategoryView(BaseModel):
    category: QuestionCategory
    title: str
    questions: list[QuestionView]


class QuestionBankResponse(BaseModel):
    categories: list[CategoryView]

    @classmethod
    def build(cls) -> "QuestionBankResponse":
        return cls(
            categories=[
                CategoryView(
                    category=category,
                    title=CATEGORY_TITLES[category],
                    questions=[QuestionView.from_question(q) for q in questions_for(category)],
                )
                for category in CATEGORY_ORDER
            ]
        )


class AnswerView(BaseModel):
    """A question in the current category with its answer and suggestion status."""

    question: QuestionView
    response: str = ""
    was_suggestion_used: bool = False
    unsaved: bool = False
    save_error: str | None = None
    suggestion: str | None = None
    suggestion_state: SuggestionState = SuggestionState.IDLE


class WizardStateResponse(BaseModel):
    """Snapshot of a wizard session for rendering."""

    draft_id: str
    brief_id: str | None = None
    category: QuestionCategory
    category_title: str
    step: int
    total_steps: int
    answers: list[AnswerView]
    complete: bool
    ready_to_submit: bool
    summary: str | None = None
    revision: bool = False
    feedback: list[FeedbackItem] = Field(default_factory=list)
    fields: BriefFields | None = None

    @classmethod
    def from_wizard(cls, wizard: BriefWizard) -> "WizardStateResponse":
        answers = []
        for question in wizard.get_current_category_questions():
            entry = wizard.response_for(question.id)
            answers.append(
                AnswerView(
                    question=QuestionView.from_question(question),
                    response=entry.response if entry else "",
                    was_suggestion_used=entry.was_suggestion_used if entry else False,
                    unsaved=entry.dirty if entry else False,
                    save_error=entry.save_error if entry else None,
                    suggestion=wizard.suggestion_for(question.id),
                    suggestion_state=wizard.suggestion_state(question.id),
                )
            )

        revision = wizard.revision_brief
        return cls(
            draft_id=wizard.draft_id,
            brief_id=wizard.brief_id,
            category=wizard.current_category,
            category_title=CATEGORY_TITLES[wizard.current_category],
            step=category_position(wizard.current_category),
            total_steps=len(CATEGORY_ORDER),
            answers=answers,
            complete=wizard.complete,
            ready_to_submit=wizard.ready_to_submit,
            summary=wizard.summary,
            revision=revision is not None,
            feedback=sorted(revision.feedback, key=lambda item: item.created_at) if revision else [],
            fields=wizard.fields if revision else None,
        )


class StartWizardRequest(BaseModel):
    resume: bool = True


class SaveResponseRequest(BaseModel):
    response: str
    was_suggestion_used: bool = False


class SubmitWizardRequest(BaseModel):
    title: str = ""
    category: BriefCategory | None = None


class ResubmitRequest(BaseModel):
    """Field edits applied before a revision is resubmitted. Omitted fields keep their value."""

    title: str | None = None
    budget: str | None = None
    deadline: date | None = None
    category: BriefCategory | None = None
    description: str | None = None
    attachment_url: str | None = None


class SubmitResponse(BaseModel):
    draft_id: str
    brief: BriefResponse


class AttachmentResponse(BaseModel):
    url: str
