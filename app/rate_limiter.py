"""
Rate Limiter Module
Fixed-window attempt limiter with a cooldown countdown.

The limiter is a small state machine with two states:

- ``Open``: attempts are accepted and counted.
- ``Cooling``: attempts are rejected; a once-per-second tick counts the
  remaining cooldown down to zero, after which the limiter is ``Open`` again
  with a fresh attempt count.

The gate is re-evaluated on every attempt because elapsed time alone can
invalidate an old block.
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from app.errors import RateLimitError

logger = logging.getLogger(__name__)


class LimiterPhase(str, Enum):
    OPEN = "open"
    COOLING = "cooling"


@dataclass
class RateLimitState:
    attempt_count: int = 0
    last_attempt_at: Optional[float] = None
    cooldown_remaining: int = 0

    @property
    def cooldown_active(self) -> bool:
        return self.cooldown_remaining > 0


class RateLimiter:
    """Gate verification attempts for a single session"""

    def __init__(
        self,
        max_attempts: int = 5,
        cooldown_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the limiter

        Args:
            max_attempts: Attempts allowed inside one cooldown window
            cooldown_seconds: Length of the window, and of the cooldown
            clock: Source of monotonic time in seconds
        """
        self.max_attempts = max_attempts
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self.state = RateLimitState()

    @property
    def phase(self) -> LimiterPhase:
        return LimiterPhase.COOLING if self.state.cooldown_active else LimiterPhase.OPEN

    def _elapsed(self, now: float) -> float:
        if self.state.last_attempt_at is None:
            return math.inf
        return now - self.state.last_attempt_at

    def check(self) -> None:
        """
        Evaluate the gate for a new attempt

        Raises:
            RateLimitError: If the attempt must be blocked
        """
        elapsed = self._elapsed(self._clock())

        if self.state.cooldown_active:
            if elapsed >= self.cooldown_seconds:
                self._cooldown_expired()
            else:
                self.state.cooldown_remaining = math.ceil(self.cooldown_seconds - elapsed)
                raise RateLimitError(self.state.cooldown_remaining)

        # A stale window never blocks a legitimate user.
        if elapsed >= self.cooldown_seconds:
            self.state.attempt_count = 0

        if self.state.attempt_count >= self.max_attempts:
            remaining = math.ceil(self.cooldown_seconds - elapsed)
            if remaining > 0:
                self.state.cooldown_remaining = remaining
                logger.info("Attempt limit reached, cooling down for %ds", remaining)
                raise RateLimitError(remaining)
            self.state.attempt_count = 0

    def attempt_submitted(self) -> int:
        """Count an accepted attempt and return the new attempt count"""
        self.state.attempt_count += 1
        self.state.last_attempt_at = self._clock()
        return self.state.attempt_count

    def tick_elapsed(self) -> int:
        """
        Advance the cooldown countdown by one second

        Returns:
            Remaining cooldown seconds (0 once the limiter is open again)
        """
        if not self.state.cooldown_active:
            return 0

        self.state.cooldown_remaining -= 1
        if self.state.cooldown_remaining <= 0:
            self._cooldown_expired()
        return self.state.cooldown_remaining

    def _cooldown_expired(self) -> None:
        self.state.cooldown_remaining = 0
        self.state.attempt_count = 0
        logger.info("Cooldown finished, verification re-enabled")
