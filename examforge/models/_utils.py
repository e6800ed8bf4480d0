"""
Common utilities for language-model clients.
언어 모델 클라이언트 공통 유틸리티입니다.
"""

import asyncio
import logging
import random
import re
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Exceptions that should NOT be retried (auth, validation, bad request)
_NON_RETRYABLE_ERRORS = (
    ValueError,
    TypeError,
    KeyError,
    AttributeError,
    PermissionError,
)

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```json / ```) from model output."""
    return _CODE_FENCE_RE.sub("", text.strip())


def _is_retryable(exc: Exception) -> bool:
    """Determine if an exception is worth retrying."""
    if isinstance(exc, _NON_RETRYABLE_ERRORS):
        return False
    # google-genai client errors (4xx) should not be retried
    exc_name = type(exc).__name__
    if exc_name in ("ClientError", "InvalidArgument", "PermissionDenied", "AuthenticationError"):
        return False
    # HTTP status-based: don't retry 4xx except 429 (rate limit)
    status = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    if isinstance(status, int) and 400 <= status < 500 and status != 429:
        return False
    return True


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 1,
    base_delay: float = 2.0,
) -> T:
    """Await func() up to max_retries times with exponential backoff.

    Only transient errors (network, timeout, rate limit, server errors) are
    retried. Non-retryable errors and the last failure are raised.
    """
    attempts = max(1, max_retries)
    for attempt in range(attempts - 1):
        try:
            return await func()
        except Exception as e:
            if not _is_retryable(e):
                raise
            delay = base_delay * (2**attempt) + random.uniform(0, 1)
            logger.warning(
                "LLM call failed (attempt %d/%d): %s. Retrying in %.1fs...",
                attempt + 1,
                attempts,
                e,
                delay,
            )
            await asyncio.sleep(delay)
    return await func()
