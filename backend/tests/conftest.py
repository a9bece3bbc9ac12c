"""Shared test fixtures for all test groups."""

from datetime import UTC, date, datetime, timedelta

import pytest

from app.domain.briefs import BriefCategory, BriefStatus
from app.gateways.memory import InMemoryBriefGateway
from app.schemas.briefs import Brief, FeedbackItem
from app.services.brief_lifecycle import BriefLifecycleService
from app.services.brief_wizard import BriefWizard
from app.services.notifications import NotificationKind
from app.suggestions.provider_fake import SuggestionProviderFake


class RecordingNotificationSink:
    """NotificationSink that keeps every notification for assertions."""

    def __init__(self):
        self.notifications: list[tuple[NotificationKind, str, str]] = []

    async def notify(self, kind: NotificationKind, title: str, description: str) -> None:
        self.notifications.append((kind, title, description))

    def titles(self, kind: NotificationKind | None = None) -> list[str]:
        return [title for k, title, _ in self.notifications if kind is None or k == kind]


def make_brief(status: BriefStatus = BriefStatus.DRAFT, **overrides) -> Brief:
    """Build a Brief in any status; changes_requested gets one feedback item by default."""
    values = {
        "id": "brief-001",
        "client_id": "client-001",
        "title": "Landing page redesign",
        "budget": "$2,000 - $3,500",
        "deadline": date.today() + timedelta(days=30),
        "category": BriefCategory.DESIGN,
        "description": "Redesign the landing page for the spring launch.",
        "status": status,
    }
    if status == BriefStatus.CHANGES_REQUESTED and "feedback" not in overrides:
        values["feedback"] = [
            FeedbackItem(
                message="Add target audience detail",
                from_reviewer="reviewer@studio",
                created_at=datetime(2026, 1, 5, tzinfo=UTC),
            )
        ]
    values.update(overrides)
    return Brief(**values)


@pytest.fixture
def gateway():
    """Fresh InMemoryBriefGateway with no injected failures."""
    return InMemoryBriefGateway()


@pytest.fixture
def provider():
    """SuggestionProviderFake with happy_path scenario (default)."""
    return SuggestionProviderFake(scenario="happy_path")


@pytest.fixture
def lifecycle(gateway):
    return BriefLifecycleService(gateway)


@pytest.fixture
def notifier():
    return RecordingNotificationSink()


@pytest.fixture
async def wizard(gateway, provider, lifecycle):
    """A new wizard session for client-001 with initial suggestions settled."""
    wizard = await BriefWizard.start(gateway, provider, lifecycle, "client-001")
    await wizard.fetcher.wait_idle()
    yield wizard
    await wizard.aclose()


@pytest.fixture
def brief_factory():
    """Factory for Brief records in any status (see make_brief)."""
    return make_brief
