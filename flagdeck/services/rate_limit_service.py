# FlagDeck/flagdeck/services/rate_limit_service.py
"""Per-client request rate limiting.

Each client gets a fixed budget of requests per wall-clock minute. Windows
are aligned on minute boundaries: a window opened at 12:00:42 resets at
12:01:00.
"""


from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Callable, Dict, TypeVar, cast

from flask import after_this_request, current_app, g

from flagdeck.errors.exceptions import RateLimitExceeded
from flagdeck.logging_config import get_logger


logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., object])

ANONYMOUS_CLIENT = "anonymous"
EXTENSION_KEY = "flagdeck.rate_limiter"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RateLimitStatus:
    """Outcome of one :meth:`RateLimiter.hit` call."""
    limited: bool
    limit: int
    remaining: int
    reset: datetime

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset.timestamp())),
        }


class RateLimiter:
    """Fixed-window request counter keyed by client id."""

    def __init__(
        self,
        limit_per_minute: int = 100,
        enabled: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.limit = limit_per_minute
        self.enabled = enabled
        self._clock = clock
        self._windows: Dict[str, tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    def _next_reset(self, now: datetime) -> datetime:
        return now.replace(second=0, microsecond=0) + timedelta(minutes=1)

    def hit(self, client_id: str) -> RateLimitStatus:
        """Count one request for ``client_id`` and report its budget."""
        now = self._clock()
        if not self.enabled:
            return RateLimitStatus(False, self.limit, self.limit, self._next_reset(now))

        with self._lock:
            count, reset = self._windows.get(client_id, (0, now))
            if reset <= now:
                count, reset = 0, self._next_reset(now)
            count += 1
            self._windows[client_id] = (count, reset)

        return RateLimitStatus(
            limited=count > self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset=reset,
        )


def rate_limited(func: F) -> F:
    """Flask view decorator that enforces the app's :class:`RateLimiter`.

    The client id is read from ``g.client_id`` (set by
    :func:`flagdeck.services.auth_service.require_api_key`), falling back to
    ``"anonymous"``. The limiter is looked up in
    ``current_app.extensions[EXTENSION_KEY]``. Rate limit headers are added to
    every response, including the 429 one.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        client_id = getattr(g, "client_id", None) or ANONYMOUS_CLIENT
        status = current_app.extensions[EXTENSION_KEY].hit(client_id)

        @after_this_request
        def _add_headers(response):
            response.headers.update(status.headers())
            return response

        if status.limited:
            logger.warning("rate_limit_exceeded", client_id=client_id)
            raise RateLimitExceeded("Rate limit exceeded. Try again later.")

        return func(*args, **kwargs)

    return cast(F, wrapper)
