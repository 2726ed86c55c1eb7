"""Reset-style attempt limiter.

Each actor has a counter that is cleared once the time since its last
recorded attempt exceeds the window. Within a window at most
``max_attempts`` checks succeed; rejected checks do not increment further.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Final

from loanflow.core.security import LimitPolicy

logger = logging.getLogger(__name__)

DEFAULT_ACTOR: Final[str] = "default"
DEFAULT_PRUNE_THRESHOLD: Final[int] = 10_000


@dataclass
class AttemptCounter:
    """Per-actor attempt state."""

    attempts: int = 0
    window_start: float = 0.0
    last_attempt: float = 0.0


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single limiter check, with data for rate-limit headers."""

    allowed: bool
    limit: int
    remaining: int
    reset_after_seconds: float


class AttemptLimiter:
    """Bounds attempts per actor inside a reset-style window.

    Counters are created on first use. Once `prune_threshold` actors are
    tracked, counters idle for longer than the window are dropped;
    such a counter would be reset on its next hit anyway.
    All mutations happen under one lock so parallel requests for the same
    actor cannot exceed the ceiling.
    """

    def __init__(
        self,
        policy: LimitPolicy,
        clock: Callable[[], float] = time.monotonic,
        name: str = "limiter",
        prune_threshold: int = DEFAULT_PRUNE_THRESHOLD,
    ) -> None:
        self._policy = policy
        self._clock = clock
        self._name = name
        self._prune_threshold = prune_threshold
        self._counters: dict[str, AttemptCounter] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)

    @property
    def policy(self) -> LimitPolicy:
        return self._policy

    def check(self, actor: str = DEFAULT_ACTOR) -> bool:
        """Record an attempt for `actor` and return whether it is allowed."""
        return self.hit(actor).allowed

    def hit(self, actor: str = DEFAULT_ACTOR) -> RateLimitDecision:
        """Record an attempt for `actor` and return the full decision."""
        limit = self._policy.max_attempts
        window = self._policy.window_seconds
        with self._lock:
            now = self._clock()
            if len(self._counters) >= self._prune_threshold:
                self._prune_idle(now, window)
            counter = self._counters.get(actor)
            if counter is None:
                counter = AttemptCounter(window_start=now, last_attempt=now)
                self._counters[actor] = counter
            elif now - counter.last_attempt > window:
                counter.attempts = 0
                counter.window_start = now
                counter.last_attempt = now

            if counter.attempts >= limit:
                reset_after = max(0.0, window - (now - counter.last_attempt))
                allowed = False
            else:
                counter.attempts += 1
                counter.last_attempt = now
                reset_after = window
                allowed = True
            remaining = max(0, limit - counter.attempts)

        if not allowed:
            logger.info("%s: attempt ceiling reached for %s", self._name, actor)
        return RateLimitDecision(
            allowed=allowed,
            limit=limit,
            remaining=remaining,
            reset_after_seconds=reset_after,
        )

    def attempts(self, actor: str = DEFAULT_ACTOR) -> int:
        """Return the attempts recorded in `actor`'s current window."""
        with self._lock:
            counter = self._counters.get(actor)
            return counter.attempts if counter else 0

    def reset(self, actor: str | None = None) -> None:
        """Forget one actor's counter, or every counter when `actor` is None."""
        with self._lock:
            if actor is None:
                self._counters.clear()
            else:
                self._counters.pop(actor, None)

    def _prune_idle(self, now: float, window: float) -> None:
        # Caller holds the lock.
        idle = [key for key, counter in self._counters.items() if now - counter.last_attempt > window]
        for key in idle:
            del self._counters[key]
        if idle:
            logger.debug("%s: dropped %d idle counters", self._name, len(idle))
