"""Shared LLM utilities: retrying Anthropic calls and normalizing their text output.

This module provides:
- _clean_text: Strip wrapping quotes/fences a model sometimes adds around plain prose
- _invoke_with_retry: Retry messages.create() on Claude 529 / 429 with exponential backoff
"""

from typing import Any

import structlog
from anthropic import RateLimitError
from anthropic._exceptions import OverloadedError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)


def _clean_text(content: str) -> str:
    """Remove a surrounding markdown fence or matching quotes from a prose answer."""
    content = content.strip()
    if content.startswith("```"):
        first_newline = content.find("\n")
        if first_newline != -1:
            content = content[first_newline + 1 :]
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()
    if len(content) >= 2 and content[0] == content[-1] and content[0] in "\"'":
        content = content[1:-1].strip()
    return content


@retry(
    retry=retry_if_exception_type((OverloadedError, RateLimitError)),
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=2, min=2, max=30),
    reraise=True,
    before_sleep=lambda rs: logger.warning(
        "claude_overloaded_retrying",
        attempt=rs.attempt_number,
        sleep_seconds=rs.next_action.sleep,
    ),
)
async def _invoke_with_retry(
    client: Any, model: str, system: str, messages: list[dict], max_tokens: int = 1024
) -> str:
    """Invoke Anthropic messages.create() with retry on overload and rate limiting.

    Retries up to 3 times with exponential backoff (2s, 4s, 8s max 30s).
    All other exceptions propagate immediately.

    Args:
        client: anthropic.AsyncAnthropic (or any object with .messages.create())
        model: Model name
        system: System prompt string
        messages: List of message dicts (role/content format)
        max_tokens: Maximum tokens for the response

    Returns:
        Text content of the first response block
    """
    response = await client.messages.create(
        model=model,
        system=system,
        messages=messages,
        max_tokens=max_tokens,
    )
    return response.content[0].text
