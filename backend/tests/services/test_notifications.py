"""Tests for notification sinks and the reported() adapter."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fakeredis import FakeAsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.exceptions import (
    BriefNotFound,
    IllegalTransition,
    PersistenceError,
    SuggestionUnavailable,
    ValidationError,
)
from app.services.notifications import (
    LogNotificationSink,
    NotificationKind,
    NotificationSink,
    RedisNotificationSink,
)
from app.services.notifier import MESSAGES, reported, user_message

pytestmark = pytest.mark.unit


class TestReported:
    async def test_success_is_notified(self, notifier):
        async with reported(notifier, "save_response"):
            pass

        assert notifier.notifications == [
            (NotificationKind.SUCCESS, "Response saved", "Your answer has been saved successfully.")
        ]

    async def test_operation_without_success_message_stays_quiet(self, notifier):
        async with reported(notifier, "move_to_next_category"):
            pass
        assert notifier.notifications == []

    async def test_error_is_notified_and_reraised(self, notifier):
        with pytest.raises(PersistenceError):
            async with reported(notifier, "submit_completed_brief"):
                raise PersistenceError("create_brief", "timeout")

        assert notifier.notifications == [
            (
                NotificationKind.ERROR,
                "Error submitting brief",
                "Your changes could not be saved. Please try again.",
            )
        ]

    async def test_unexpected_errors_are_not_reported(self, notifier):
        with pytest.raises(KeyError):
            async with reported(notifier, "save_response"):
                raise KeyError("boom")
        assert notifier.notifications == []

    def test_every_operation_has_an_error_title(self):
        assert all(outcome.error_title.startswith("Error") for outcome in MESSAGES.values())


class TestUserMessage:
    def test_validation_message_is_shown_as_is(self):
        assert user_message(ValidationError("title", "A title is required")) == "A title is required"

    def test_illegal_transition_hides_the_table(self):
        message = user_message(IllegalTransition("award", "draft"))
        assert "award" not in message
        assert "draft" not in message

    @pytest.mark.parametrize(
        "exc",
        [BriefNotFound("brief-001"), PersistenceError("update_brief"), SuggestionUnavailable("objectives-goal")],
    )
    def test_other_errors_have_friendly_text(self, exc):
        assert user_message(exc)
        assert str(exc) != user_message(exc)


class TestSinks:
    def test_sinks_satisfy_protocol(self):
        assert isinstance(LogNotificationSink(), NotificationSink)
        assert isinstance(RedisNotificationSink(MagicMock(), "notifications"), NotificationSink)

    async def test_log_sink_does_not_raise(self):
        await LogNotificationSink().notify(NotificationKind.ERROR, "Error saving response", "try again")

    async def test_redis_sink_publishes_envelope(self):
        redis = FakeAsyncRedis(decode_responses=True)
        pubsub = redis.pubsub()
        await pubsub.subscribe("brief-notifications")
        await pubsub.get_message(timeout=1.0)

        sink = RedisNotificationSink(redis, "brief-notifications")
        await sink.notify(NotificationKind.SUCCESS, "Brief submitted successfully", "It will be reviewed.")

        message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
        envelope = json.loads(message["data"])
        assert envelope["type"] == "notification"
        assert envelope["kind"] == "success"
        assert envelope["title"] == "Brief submitted successfully"
        assert envelope["description"] == "It will be reviewed."
        assert "timestamp" in envelope

        await pubsub.aclose()
        await redis.aclose()

    async def test_redis_failure_is_swallowed(self):
        redis = MagicMock()
        redis.publish = AsyncMock(side_effect=RedisConnectionError("connection refused"))
        sink = RedisNotificationSink(redis, "brief-notifications")

        await sink.notify(NotificationKind.ERROR, "Error saving response", "try again")

        redis.publish.assert_awaited_once()
