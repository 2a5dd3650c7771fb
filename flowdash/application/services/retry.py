"""Retry policy for step dispatch."""

from dataclasses import dataclass

from flowdash.core.config import Settings
from flowdash.domain.exceptions import (
    ExecutionCancelledException,
    ExecutionTimeoutException,
    PreconditionViolationException,
)

# Faults that another attempt cannot fix.
_NON_RETRYABLE = (
    ExecutionCancelledException,
    ExecutionTimeoutException,
    PreconditionViolationException,
)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times one step dispatch may be attempted.

    max_attempts=1 (the default) disables retry. Backoff grows linearly:
    attempt n waits backoff_seconds * n before running again.
    """

    max_attempts: int = 1
    backoff_seconds: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds cannot be negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.step_max_attempts,
            backoff_seconds=settings.step_retry_backoff_seconds,
        )

    def should_retry(self, attempt: int, error: Exception) -> bool:
        """Return True if a failed attempt number ``attempt`` (1-based) gets another try."""
        if isinstance(error, _NON_RETRYABLE):
            return False
        return attempt < self.max_attempts

    def delay_for(self, attempt: int) -> float:
        return self.backoff_seconds * attempt
