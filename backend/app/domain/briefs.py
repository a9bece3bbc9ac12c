"""Brief status enums and the lifecycle transition table.

Pure domain logic with no external dependencies. TRANSITIONS is the single
source of truth: every "can I ..." question is answered from it.
"""

from enum import StrEnum


class BriefStatus(StrEnum):
    """Brief lifecycle states. Declaration order is for display only."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    CHANGES_REQUESTED = "changes_requested"
    PUBLISHED = "published"
    AWARDED = "awarded"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BriefAction(StrEnum):
    """Actions that move a brief between states."""

    SUBMIT = "submit"
    REQUEST_CHANGES = "request_changes"
    PUBLISH = "publish"
    AWARD = "award"
    COMPLETE = "complete"
    CANCEL = "cancel"
    RESUBMIT = "resubmit"


class BriefCategory(StrEnum):
    """Kind of work a brief asks for."""

    DESIGN = "design"
    DEVELOPMENT = "development"
    MARKETING = "marketing"
    WRITING = "writing"
    VIDEO = "video"


# (from, action) -> to. Anything missing is illegal.
TRANSITIONS: dict[BriefStatus, dict[BriefAction, BriefStatus]] = {
    BriefStatus.DRAFT: {
        BriefAction.SUBMIT: BriefStatus.SUBMITTED,
        BriefAction.CANCEL: BriefStatus.CANCELLED,
    },
    BriefStatus.SUBMITTED: {
        BriefAction.PUBLISH: BriefStatus.PUBLISHED,
        BriefAction.REQUEST_CHANGES: BriefStatus.CHANGES_REQUESTED,
        BriefAction.CANCEL: BriefStatus.CANCELLED,
    },
    BriefStatus.CHANGES_REQUESTED: {
        BriefAction.RESUBMIT: BriefStatus.SUBMITTED,
    },
    BriefStatus.PUBLISHED: {
        BriefAction.AWARD: BriefStatus.AWARDED,
    },
    BriefStatus.AWARDED: {
        BriefAction.COMPLETE: BriefStatus.COMPLETED,
    },
    BriefStatus.COMPLETED: {},  # Terminal
    BriefStatus.CANCELLED: {},  # Terminal
}

# Review-in-progress is not modeled separately; it is the submitted state.
UNDER_REVIEW = BriefStatus.SUBMITTED

EDITABLE_STATUSES = frozenset({BriefStatus.DRAFT, BriefStatus.CHANGES_REQUESTED})


def next_status(status: BriefStatus, action: BriefAction) -> BriefStatus | None:
    """Return the destination status, or None when the pair is not in the table."""
    return TRANSITIONS.get(BriefStatus(status), {}).get(BriefAction(action))


def allowed_actions(status: BriefStatus) -> list[BriefAction]:
    """Actions legal from a status, in transition-table order."""
    return list(TRANSITIONS.get(BriefStatus(status), {}))


def can_edit(status: BriefStatus) -> bool:
    """True only while the client owns the content: draft or changes_requested."""
    return BriefStatus(status) in EDITABLE_STATUSES


def can_cancel(status: BriefStatus) -> bool:
    """True for draft and submitted (which covers under-review)."""
    return next_status(status, BriefAction.CANCEL) is not None


def is_terminal(status: BriefStatus) -> bool:
    return not TRANSITIONS.get(BriefStatus(status))


# ──────────────────────────────────────────────────────────────────────────────
# Presentation helpers
# ──────────────────────────────────────────────────────────────────────────────

STATUS_LABELS: dict[BriefStatus, str] = {
    BriefStatus.DRAFT: "Draft",
    BriefStatus.SUBMITTED: "Submitted for Review",
    BriefStatus.CHANGES_REQUESTED: "Changes Requested",
    BriefStatus.PUBLISHED: "Published",
    BriefStatus.AWARDED: "Awarded",
    BriefStatus.COMPLETED: "Completed",
    BriefStatus.CANCELLED: "Cancelled",
}

TIMELINE_STEPS: list[tuple[BriefStatus, str]] = [
    (BriefStatus.DRAFT, "Draft"),
    (BriefStatus.SUBMITTED, "Submitted for Review"),
    (BriefStatus.PUBLISHED, "Published to Creators"),
    (BriefStatus.AWARDED, "Awarded"),
    (BriefStatus.COMPLETED, "Completed"),
]

STEP_DESCRIPTIONS: dict[BriefStatus, str] = {
    BriefStatus.DRAFT: "Complete your brief and submit for review.",
    BriefStatus.SUBMITTED: "Our team is reviewing your brief.",
    BriefStatus.CHANGES_REQUESTED: "Please review the feedback and update your brief accordingly.",
    BriefStatus.PUBLISHED: "Creators can now see and submit proposals for your brief.",
    BriefStatus.AWARDED: "A creator has been selected and is working on your brief.",
    BriefStatus.COMPLETED: "The work has been completed successfully.",
    BriefStatus.CANCELLED: "This brief has been cancelled.",
}


def status_label(status: BriefStatus) -> str:
    return STATUS_LABELS[BriefStatus(status)]


def timeline_index(status: BriefStatus) -> int:
    """Position of a status on the display timeline.

    changes_requested shares the submitted slot; cancelled is off-timeline (-1).
    """
    status = BriefStatus(status)
    if status == BriefStatus.CANCELLED:
        return -1
    if status == BriefStatus.CHANGES_REQUESTED:
        status = BriefStatus.SUBMITTED
    return [step for step, _ in TIMELINE_STEPS].index(status)


def step_description(status: BriefStatus) -> str:
    return STEP_DESCRIPTIONS[BriefStatus(status)]


def timeline_labels() -> list[str]:
    return [label for _, label in TIMELINE_STEPS]
