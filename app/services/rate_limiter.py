"""
Abuse Rate Limiter - content-agnostic traffic gate.

STATE MACHINE (per network identity):
- unseen → active(count=1, reset_at=now+window); admit
- active, now <= reset_at, count < max → count += 1; admit
- active, now <= reset_at, count >= max → reject with seconds until reset_at
- active, now > reset_at → active(count=1, reset_at=now+window); admit

State lives in an injectable RateLimitStore rather than a module global.
The registry lock only guards entry lookup/creation; the read-check-increment
runs under the identity's own lock, so identities never contend with each other.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple, Union
import asyncio
import logging
import math
import threading

from app.core.settings import settings
from app.models.verification import Admitted, RateLimited
from app.utils.clock import Clock, utc_now
from app.utils.security import mask_ip_address

logger = logging.getLogger(__name__)

RateDecision = Union[Admitted, RateLimited]


@dataclass
class RateWindowState:
    count: int
    reset_at: datetime
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    evicted: bool = False


class RateLimitStore:
    """Process-local map of network identity → RateWindowState."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, RateWindowState] = {}

    def get_or_create(self, identity: str, count: int, reset_at: datetime) -> Tuple[RateWindowState, bool]:
        with self._lock:
            state = self._entries.get(identity)
            if state is not None:
                return state, False
            state = RateWindowState(count=count, reset_at=reset_at)
            self._entries[identity] = state
            return state, True

    def get(self, identity: str) -> Optional[RateWindowState]:
        with self._lock:
            return self._entries.get(identity)

    def sweep(self, now: datetime) -> int:
        """Remove identities whose window has already expired."""
        removed = 0
        with self._lock:
            for identity in list(self._entries):
                state = self._entries[identity]
                with state.lock:
                    if now > state.reset_at:
                        state.evicted = True
                        del self._entries[identity]
                        removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RateLimiter:

    MAX_REQUESTS = 100
    WINDOW_MINUTES = 15

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        max_requests: Optional[int] = None,
        window: Optional[timedelta] = None,
        clock: Clock = utc_now,
    ):
        self.store = store if store is not None else RateLimitStore()
        self.max_requests = max_requests if max_requests is not None else self.MAX_REQUESTS
        self.window = window if window is not None else timedelta(minutes=self.WINDOW_MINUTES)
        self.clock = clock

    def admit(self, identity: str) -> RateDecision:
        while True:
            now = self.clock()
            state, created = self.store.get_or_create(identity, 1, now + self.window)
            if created:
                return Admitted(remaining=self.max_requests - 1)

            with state.lock:
                if state.evicted:
                    # Swept between lookup and lock; start over with a fresh entry
                    continue

                if now > state.reset_at:
                    state.count = 1
                    state.reset_at = now + self.window
                    return Admitted(remaining=self.max_requests - 1)

                if state.count >= self.max_requests:
                    retry_after = max(1, math.ceil((state.reset_at - now).total_seconds()))
                    logger.warning(
                        f"Rate limit exceeded for {mask_ip_address(identity)} "
                        f"({state.count} requests, retry in {retry_after}s)"
                    )
                    return RateLimited(retry_after_seconds=retry_after)

                state.count += 1
                return Admitted(remaining=self.max_requests - state.count)

    def sweep(self) -> int:
        removed = self.store.sweep(self.clock())
        if removed:
            logger.info(f"Rate limiter sweep removed {removed} expired identities")
        return removed

    @property
    def tracked_identities(self) -> int:
        return len(self.store)


async def run_periodic_sweep(limiter: RateLimiter, interval_seconds: float) -> None:
    """Sweep expired identities forever; cancel the task to stop."""
    while True:
        await asyncio.sleep(interval_seconds)
        limiter.sweep()


_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    global _limiter
    if _limiter is None:
        _limiter = RateLimiter(
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window=timedelta(minutes=settings.RATE_LIMIT_WINDOW_MINUTES),
        )
    return _limiter
