"""Reconnect backoff policy and timeout configuration.

The device protocol has no acknowledgements, so the timeouts here only
govern dialing, idle read deadlines and how long a query waits for the
status frame.
"""

from __future__ import annotations

import random

from tesmart_comm.const import (
    TESMART_CONNECT_TIMEOUT,
    TESMART_READ_DEADLINE,
    TESMART_RECONNECT_BASE_DELAY,
    TESMART_RECONNECT_MAX_DELAY,
    TESMART_RESPONSE_TIMEOUT,
)


class TimeoutConfig:
    """Timeouts for a single switch connection.

    The read deadline bounds each blocking read so the read loop notices
    shutdown promptly; an expired deadline means idle, not dead.
    """

    def __init__(
        self,
        connect_timeout_seconds: float = TESMART_CONNECT_TIMEOUT,
        read_deadline_seconds: float = TESMART_READ_DEADLINE,
        response_timeout_seconds: float = TESMART_RESPONSE_TIMEOUT,
        write_timeout_seconds: float | None = None,
    ):
        """Initialize timeout configuration.

        Args:
            connect_timeout_seconds: Bound on each TCP dial (default: 5s)
            read_deadline_seconds: Per-read deadline in the read loop (default: 0.2s)
            response_timeout_seconds: How long a request waits for its reply (default: 2s)
            write_timeout_seconds: Bound on write + drain (default: response timeout)
        """
        self.connect_timeout_seconds = connect_timeout_seconds
        self.read_deadline_seconds = read_deadline_seconds
        self.response_timeout_seconds = response_timeout_seconds
        self.write_timeout_seconds = (
            write_timeout_seconds if write_timeout_seconds is not None else response_timeout_seconds
        )

    def __repr__(self) -> str:
        """String representation showing all timeouts."""
        return (
            f"TimeoutConfig(connect={self.connect_timeout_seconds:.3f}s, "
            f"read_deadline={self.read_deadline_seconds:.3f}s, "
            f"response={self.response_timeout_seconds:.3f}s, "
            f"write={self.write_timeout_seconds:.3f}s)"
        )


class RetryPolicy:
    """Exponential backoff retry policy with jitter.

    Spaces out reconnect attempts so a switch that is powered off does
    not get hammered with dials.
    """

    def __init__(
        self,
        base_delay_seconds: float = TESMART_RECONNECT_BASE_DELAY,
        max_delay_seconds: float = TESMART_RECONNECT_MAX_DELAY,
        jitter_factor: float = 0.1,
    ):
        """Initialize retry policy.

        Args:
            base_delay_seconds: Delay before the first redial (default: 0.5s)
            max_delay_seconds: Maximum delay cap (default: 30s)
            jitter_factor: Jitter as fraction of delay (default: 0.1 = 10%)
        """
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.jitter_factor = jitter_factor

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt.

        Formula: min(base_delay * 2 ** attempt, max_delay) + jitter

        Args:
            attempt: Retry attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = self.base_delay_seconds * (2 ** min(attempt, 32))
        delay = min(delay, self.max_delay_seconds)

        # Jitter: random value between 0 and delay * jitter_factor
        jitter = random.uniform(0, delay * self.jitter_factor)
        return delay + jitter

    def __repr__(self) -> str:
        """String representation of retry policy."""
        return (
            f"RetryPolicy(base_delay={self.base_delay_seconds}s, "
            f"max_delay={self.max_delay_seconds}s, "
            f"jitter_factor={self.jitter_factor})"
        )
