"""Persistence gateways for briefs, drafts, responses and attachments."""

from app.gateways.base import BriefGateway
from app.gateways.memory import InMemoryBriefGateway

__all__ = ["BriefGateway", "InMemoryBriefGateway"]
