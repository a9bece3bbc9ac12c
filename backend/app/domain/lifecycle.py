"""Brief lifecycle state machine.

Pure function -- input brief + action -> new brief or error. Persisting the
result is the caller's job (see BriefLifecycleService).
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from app.core.exceptions import IllegalTransition, ValidationError
from app.domain.briefs import BriefAction, BriefStatus, next_status
from app.schemas.briefs import Brief, FeedbackItem


def transition(
    brief: Brief,
    action: BriefAction | str,
    *,
    feedback: Sequence[FeedbackItem] | None = None,
    anonymous_description: str | None = None,
    now: datetime | None = None,
) -> Brief:
    """Apply an action to a brief and return the updated copy.

    The input brief is never modified, so a rejected action leaves the caller's
    record exactly as it was.

    Args:
        brief: Current brief
        action: One of BriefAction
        feedback: Reviewer feedback, required with REQUEST_CHANGES and rejected otherwise
        anonymous_description: Reviewer-edited public description, PUBLISH only
        now: Current time (for deterministic testing)

    Returns:
        New Brief with updated status (and appended feedback for REQUEST_CHANGES)

    Raises:
        IllegalTransition: The (status, action) pair is not in the transition table
        ValidationError: REQUEST_CHANGES without feedback, or a payload sent with
            an action that does not take one
    """
    try:
        action = BriefAction(action)
    except ValueError:
        raise IllegalTransition(str(action), brief.status) from None

    target = next_status(brief.status, action)
    if target is None:
        raise IllegalTransition(action, brief.status)

    if feedback and action != BriefAction.REQUEST_CHANGES:
        raise ValidationError("feedback", f"Feedback is only accepted with {BriefAction.REQUEST_CHANGES}")
    if anonymous_description is not None and action != BriefAction.PUBLISH:
        raise ValidationError("anonymous_description", f"Only accepted with {BriefAction.PUBLISH}")

    update: dict = {"status": target, "updated_at": now or datetime.now(UTC)}

    if action == BriefAction.REQUEST_CHANGES:
        new_items = [item for item in (feedback or []) if item.message.strip()]
        if not new_items:
            raise ValidationError("feedback", "At least one feedback item is required to request changes")
        # Feedback is an audit trail: append, never replace
        update["feedback"] = [*brief.feedback, *new_items]

    if action == BriefAction.PUBLISH and anonymous_description is not None:
        if not anonymous_description.strip():
            raise ValidationError("anonymous_description", "Cannot publish an empty description")
        update["anonymous_description"] = anonymous_description.strip()

    return brief.model_copy(update=update)


def changed_fields(before: Brief, after: Brief) -> dict:
    """Partial update needed to persist `after` given the stored `before`.

    Status is always included; feedback and anonymous_description only when
    they changed.
    """
    patch: dict = {"status": after.status}
    if after.feedback != before.feedback:
        patch["feedback"] = list(after.feedback)
    if after.anonymous_description != before.anonymous_description:
        patch["anonymous_description"] = after.anonymous_description
    return patch


def is_resubmission(before: BriefStatus, after: BriefStatus) -> bool:
    return before == BriefStatus.CHANGES_REQUESTED and after == BriefStatus.SUBMITTED
