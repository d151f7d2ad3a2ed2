"""
Retry wrapper for persistence operations.

Retries only TransientStoreError, i.e. failures the repository layer has
tagged with a TransientCondition at the point they were caught. Every
other exception propagates on the first attempt without delay.

Backoff: INITIAL_DELAY_SECONDS * 2^(attempt - 1), so 1s then 2s with the
default three attempts.

This is the only retry mechanism in the ingestion pipeline.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, TypeVar, Union

from storesync.ingestion.exceptions import TransientCondition, TransientStoreError

logger = logging.getLogger(__name__)

# Retry configuration constants
MAX_ATTEMPTS = 3
INITIAL_DELAY_SECONDS = 1.0

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]


def is_transient(error: BaseException) -> bool:
    """Check whether an error carries a transient condition tag."""
    return isinstance(error, TransientStoreError) and isinstance(
        error.condition, TransientCondition
    )


def calculate_backoff(attempt: int, initial_delay_seconds: float = INITIAL_DELAY_SECONDS) -> float:
    """
    Delay before the next attempt.

    Args:
        attempt: Number of failed attempts so far (1-indexed)
        initial_delay_seconds: Delay after the first failure
    """
    return initial_delay_seconds * (2 ** (attempt - 1))


async def with_retry(
    operation: Callable[[], Union[T, Awaitable[T]]],
    max_attempts: int = MAX_ATTEMPTS,
    initial_delay_seconds: float = INITIAL_DELAY_SECONDS,
    sleep: SleepFunc = asyncio.sleep,
    description: str = "database operation",
) -> T:
    """
    Run an idempotent operation, retrying transient failures.

    Args:
        operation: Zero-argument callable; may return a value or an awaitable
        max_attempts: Total attempts including the first
        initial_delay_seconds: Delay after the first failure, doubled each time
        sleep: Coroutine used to wait (injectable for tests)
        description: Label for log records

    Returns:
        The operation's result

    Raises:
        TransientStoreError: If every attempt failed transiently
        Exception: Any non-transient error, immediately
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            return result
        except TransientStoreError as e:
            if not is_transient(e) or attempt >= max_attempts:
                logger.error(
                    "Operation failed after retries",
                    extra={
                        "operation": description,
                        "attempts": attempt,
                        "condition": e.condition.value,
                        "error": e.message,
                    },
                )
                raise

            delay = calculate_backoff(attempt, initial_delay_seconds)
            logger.warning(
                "Transient failure, retrying",
                extra={
                    "operation": description,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "condition": e.condition.value,
                    "delay_seconds": delay,
                    "error": e.message,
                },
            )
            await sleep(delay)
