"""Notification sinks: where user-facing success/error messages go.

- LogNotificationSink: structlog only (default, tests, local runs)
- RedisNotificationSink: JSON envelope on a pub/sub channel for the frontend
"""

import json
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol, runtime_checkable

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)


class NotificationKind(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


@runtime_checkable
class NotificationSink(Protocol):
    """Fire-and-forget user feedback surface."""

    async def notify(self, kind: NotificationKind, title: str, description: str) -> None: ...


class LogNotificationSink:
    async def notify(self, kind: NotificationKind, title: str, description: str) -> None:
        log = logger.warning if kind == NotificationKind.ERROR else logger.info
        log("user_notification", kind=kind.value, title=title, description=description)


class RedisNotificationSink:
    """Publishes notifications on a Redis channel.

    A failed publish is logged and dropped: notifying must never fail the
    operation it reports on.
    """

    def __init__(self, redis: aioredis.Redis, channel: str):
        self.redis = redis
        self.channel = channel

    async def notify(self, kind: NotificationKind, title: str, description: str) -> None:
        envelope = {
            "type": "notification",
            "kind": kind.value,
            "title": title,
            "description": description,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        try:
            await self.redis.publish(self.channel, json.dumps(envelope))
        except RedisError as e:
            logger.warning("notification_publish_failed", channel=self.channel, title=title, error=str(e))
