"""Request timeouts and connect retry policy.

Commands are acknowledged almost immediately, so they get a bounded wait.
Actions (takeoff, moves, flips) take as long as the maneuver takes, so by
default they wait forever.
"""

from __future__ import annotations

import random

from tello_comm.const import (
    CONNECT_ATTEMPTS,
    CONNECT_RETRY_DELAY_SECONDS,
    NO_TIMEOUT,
    TELLO_ACTION_TIMEOUT_MS,
    TELLO_COMMAND_TIMEOUT_MS,
)


class TimeoutConfig:
    """Default deadlines for the two request flavors, in milliseconds.

    A value of 0 means "no timeout". Both values may be changed at runtime;
    each request reads them when it starts.
    """

    def __init__(
        self,
        command_timeout_ms: int = TELLO_COMMAND_TIMEOUT_MS,
        action_timeout_ms: int = TELLO_ACTION_TIMEOUT_MS,
    ):
        """Initialize timeout configuration.

        Args:
            command_timeout_ms: Deadline for immediate-acknowledgement commands
            action_timeout_ms: Deadline for long-running actions (0 = forever)

        """
        if command_timeout_ms < 0 or action_timeout_ms < 0:
            msg = "Timeouts must be >= 0 (0 means no timeout)"
            raise ValueError(msg)
        self.command_timeout_ms = command_timeout_ms
        self.action_timeout_ms = action_timeout_ms

    @staticmethod
    def describe(timeout_ms: int) -> str:
        """Human-readable form of a timeout value."""
        return "forever" if timeout_ms == NO_TIMEOUT else f"{timeout_ms}ms"

    def __repr__(self) -> str:
        """String representation showing both deadlines."""
        return (
            f"TimeoutConfig(command={self.describe(self.command_timeout_ms)}, "
            f"action={self.describe(self.action_timeout_ms)})"
        )


class RetryPolicy:
    """Bounded retry policy with optional backoff and jitter.

    The defaults reproduce the handshake behavior of the drone SDK: ten
    attempts, one second apart, no backoff and no jitter.
    """

    def __init__(
        self,
        max_attempts: int = CONNECT_ATTEMPTS,
        base_delay_seconds: float = CONNECT_RETRY_DELAY_SECONDS,
        backoff_factor: float = 1.0,
        max_delay_seconds: float = 5.0,
        jitter_factor: float = 0.0,
    ):
        """Initialize retry policy.

        Args:
            max_attempts: Total attempts, including the first one
            base_delay_seconds: Delay before the first retry
            backoff_factor: Multiplier applied per retry (1.0 = fixed delay)
            max_delay_seconds: Delay cap
            jitter_factor: Jitter as fraction of delay (0.0 = none)

        """
        if max_attempts < 1:
            msg = "max_attempts must be >= 1"
            raise ValueError(msg)
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self.backoff_factor = backoff_factor
        self.max_delay_seconds = max_delay_seconds
        self.jitter_factor = jitter_factor

    def get_delay(self, attempt: int) -> float:
        """Calculate delay after a failed attempt.

        Formula: min(base_delay * backoff_factor ** attempt, max_delay) + jitter

        Args:
            attempt: Failed attempt number (0-indexed)

        Returns:
            Delay in seconds

        """
        delay = min(self.base_delay_seconds * (self.backoff_factor**attempt), self.max_delay_seconds)
        if self.jitter_factor <= 0:
            return delay
        return delay + random.uniform(0, delay * self.jitter_factor)

    def should_retry(self, attempt: int) -> bool:
        """True if another attempt follows failed attempt ``attempt`` (0-indexed)."""
        return attempt < self.max_attempts - 1

    def __repr__(self) -> str:
        """String representation of retry policy."""
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"base_delay={self.base_delay_seconds}s, "
            f"backoff={self.backoff_factor}, "
            f"max_delay={self.max_delay_seconds}s, "
            f"jitter_factor={self.jitter_factor})"
        )
