"""
Reconnect backoff policy.

This module contains NO timers, NO async, NO side effects. The connection
manager owns the attempt counter and asks the policy how long to wait and
whether to keep trying.
"""

from dataclasses import dataclass
from typing import Optional

from realtime_session.config.constants import (
    DEFAULT_RECONNECT_BASE_DELAY_MS,
    DEFAULT_RECONNECT_MAX_ATTEMPTS,
    DEFAULT_RECONNECT_MAX_DELAY_MS,
)
from realtime_session.config.models import ReconnectConfig


def calculate_backoff_delay(attempt: int, base_delay: int, max_delay: int) -> int:
    """
    Calculate delay for exponential backoff.

    Args:
        attempt (int): Current attempt number (0-based)
        base_delay (int): Initial delay
        max_delay (int): Maximum delay

    Returns:
        int: ``min(2 ** attempt * base_delay, max_delay)``
    """
    if attempt < 0:
        raise ValueError(f"attempt must be non-negative, got {attempt}")
    # Integer arithmetic so large attempt counts cannot overflow
    return min(base_delay * (2**attempt), max_delay)


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Stateless exponential backoff policy.

    Semantics:
    - ``next_delay(0) == base_delay_ms``
    - ``next_delay`` is non-decreasing and capped at ``max_delay_ms``
    - ``should_retry`` is true while ``attempt < max_attempts``
    """

    base_delay_ms: int = DEFAULT_RECONNECT_BASE_DELAY_MS
    max_delay_ms: int = DEFAULT_RECONNECT_MAX_DELAY_MS
    max_attempts: int = DEFAULT_RECONNECT_MAX_ATTEMPTS

    def __post_init__(self):
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("Reconnect delays must not be negative")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must not be negative")

    @classmethod
    def from_config(cls, config: ReconnectConfig) -> "ReconnectPolicy":
        """Build a policy from configuration; a disabled config never retries."""
        return cls(
            base_delay_ms=config.base_delay_ms,
            max_delay_ms=config.max_delay_ms,
            max_attempts=config.max_attempts if config.enabled else 0,
        )

    def next_delay(self, attempt: int) -> int:
        """Delay in milliseconds before reconnect attempt ``attempt``."""
        return calculate_backoff_delay(attempt, self.base_delay_ms, self.max_delay_ms)

    def should_retry(self, attempt: int, max_attempts: Optional[int] = None) -> bool:
        """Return True if another reconnect attempt is allowed."""
        limit = self.max_attempts if max_attempts is None else max_attempts
        return attempt < limit
