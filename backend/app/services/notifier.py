"""Adapter between service outcomes and the notification sink.

Services raise typed errors and return results; `reported()` wraps a call
site and turns the outcome into a user-facing message:

    async with reported(sink, "save_response"):
        await wizard.save_response(question_id, text)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from app.core.exceptions import (
    BriefNotFound,
    BriefStudioError,
    IllegalTransition,
    PersistenceError,
    SuggestionUnavailable,
    ValidationError,
)
from app.services.notifications import NotificationKind, NotificationSink


@dataclass(frozen=True)
class Outcome:
    error_title: str
    success_title: str | None = None
    success_description: str = ""


MESSAGES: dict[str, Outcome] = {
    "start_wizard": Outcome("Error fetching your draft brief"),
    "save_response": Outcome("Error saving response", "Response saved", "Your answer has been saved successfully."),
    "use_suggestion": Outcome("Error getting AI suggestion"),
    "move_to_next_category": Outcome("Error moving to next step"),
    "generate_brief_summary": Outcome(
        "Error generating brief summary",
        "Brief completed",
        "Your brief has been successfully completed and is ready for submission.",
    ),
    "submit_completed_brief": Outcome(
        "Error submitting brief",
        "Brief submitted successfully",
        "Your brief has been submitted and will be reviewed by our team.",
    ),
    "create_draft_brief": Outcome("Error creating new brief", "Brief saved", "Your brief has been saved as a draft."),
    "update_brief": Outcome("Error updating brief", "Brief updated", "Your changes have been saved."),
    "apply_action": Outcome("Error updating brief", "Brief updated", "The brief status has been updated."),
    "start_revision": Outcome("Error opening brief for revision"),
    "resubmit": Outcome(
        "Error submitting brief",
        "Brief resubmitted",
        "Your revised brief has been submitted and will be reviewed by our team.",
    ),
    "attach_file": Outcome("Error uploading file", "File Uploaded", "Your file has been uploaded."),
}


def user_message(exc: BriefStudioError) -> str:
    """Description shown to the user for a failed operation.

    IllegalTransition never reveals the internal transition table.
    """
    if isinstance(exc, ValidationError):
        return exc.message
    if isinstance(exc, IllegalTransition):
        return "This action is not available for the brief in its current state."
    if isinstance(exc, BriefNotFound):
        return "The brief could not be found."
    if isinstance(exc, PersistenceError):
        return "Your changes could not be saved. Please try again."
    if isinstance(exc, SuggestionUnavailable):
        return "AI assistance is unavailable right now. Please try again later."
    return "Something went wrong. Please try again."


@asynccontextmanager
async def reported(sink: NotificationSink, operation: str) -> AsyncIterator[None]:
    """Notify success or failure of the wrapped block. Errors are re-raised."""
    outcome = MESSAGES[operation]
    try:
        yield
    except BriefStudioError as e:
        await sink.notify(NotificationKind.ERROR, outcome.error_title, user_message(e))
        raise
    if outcome.success_title:
        await sink.notify(NotificationKind.SUCCESS, outcome.success_title, outcome.success_description)
