"""Timeout and backoff helpers shared by the retriers."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


def exponential_delay(base_seconds: float, attempt_index: int) -> float:
    """Return ``base * 2^attempt`` seconds."""
    return base_seconds * (2**attempt_index)


def linear_delay(step_seconds: float, attempt_index: int) -> float:
    """Return ``step * (attempt + 1)`` seconds."""
    return step_seconds * (attempt_index + 1)


async def with_timeout(awaitable: Awaitable[T], timeout_seconds: float | None) -> T:
    """Await with a deadline; ``None`` leaves the call unguarded."""
    if timeout_seconds is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout_seconds)


def is_timeout_error(exc: BaseException) -> bool:
    """Return true for asyncio deadlines and httpx transport timeouts."""
    return isinstance(exc, TimeoutError | httpx.TimeoutException)


def status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
