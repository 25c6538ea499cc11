"""Retry bookkeeping models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryAttempt:
    """One iteration of a bounded retry loop."""

    attempt_index: int
    max_attempts: int
    base_delay_seconds: float
    elapsed_budget_seconds: float | None = None

    @property
    def number(self) -> int:
        """Return the 1-based attempt number for log messages."""
        return self.attempt_index + 1

    @property
    def is_last(self) -> bool:
        return self.attempt_index >= self.max_attempts - 1

    @property
    def is_fallback(self) -> bool:
        """Return true for the unguarded call made after all attempts."""
        return self.attempt_index >= self.max_attempts
