"""In-memory sliding-window rate limiting keyed by client address."""

import time
from collections import deque
from threading import Lock
from typing import Callable, Optional

from inquiry_service.shared.security.bounded_map import BoundedMap

# General API traffic
API_RATE_LIMIT_WINDOW_SECONDS = 15 * 60
API_RATE_LIMIT_MAX_REQUESTS = 100

# Contact form submissions
CONTACT_RATE_LIMIT_WINDOW_SECONDS = 60 * 60
CONTACT_RATE_LIMIT_MAX_REQUESTS = 5

# Admin login attempts (successful logins are not counted)
LOGIN_RATE_LIMIT_WINDOW_SECONDS = 15 * 60
LOGIN_RATE_LIMIT_MAX_REQUESTS = 5

RATE_LIMIT_CAPACITY = 10000


class RateLimiter:
    """
    Sliding-window counter per key.

    Each key holds the timestamps of its counted requests inside the window.
    State lives for the process only; separate instances of the service do
    not share counts.
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        message: str,
        error: str = "Too many requests",
        skip_successful_requests: bool = False,
        capacity: int = RATE_LIMIT_CAPACITY,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self.error = error
        self.skip_successful_requests = skip_successful_requests
        self._clock = clock
        self._store = BoundedMap(capacity)
        self._lock = Lock()

    def hit(self, key: str) -> Optional[int]:
        """
        Count a request for `key`.

        Returns:
            None if the request is within the limit, otherwise the number of
            seconds until the oldest counted request leaves the window
        """
        now = self._clock()
        with self._lock:
            request_times = self._store.setdefault(key, deque)
            while request_times and request_times[0] <= now - self.window_seconds:
                request_times.popleft()
            if len(request_times) >= self.max_requests:
                retry_after = int(request_times[0] + self.window_seconds - now) + 1
                return max(retry_after, 1)
            request_times.append(now)
            return None

    def release(self, key: str) -> None:
        """Uncount the most recent request for `key`."""
        with self._lock:
            request_times = self._store.get(key)
            if request_times:
                request_times.pop()
            if not request_times:
                self._store.pop(key, None)

    def reset(self) -> None:
        with self._lock:
            self._store.clear()


def build_rate_limiters(clock: Callable[[], float] = time.time) -> dict:
    """Create the api, contact and admin_login limiters."""
    return {
        "api": RateLimiter(
            "api",
            API_RATE_LIMIT_MAX_REQUESTS,
            API_RATE_LIMIT_WINDOW_SECONDS,
            message="You have exceeded the rate limit. Please try again later.",
            clock=clock,
        ),
        "contact": RateLimiter(
            "contact",
            CONTACT_RATE_LIMIT_MAX_REQUESTS,
            CONTACT_RATE_LIMIT_WINDOW_SECONDS,
            message=f"You can only submit the contact form {CONTACT_RATE_LIMIT_MAX_REQUESTS} times per hour.",
            error="Rate limit exceeded",
            clock=clock,
        ),
        "admin_login": RateLimiter(
            "admin_login",
            LOGIN_RATE_LIMIT_MAX_REQUESTS,
            LOGIN_RATE_LIMIT_WINDOW_SECONDS,
            message="Account temporarily locked. Please try again later.",
            error="Too many login attempts",
            skip_successful_requests=True,
            clock=clock,
        ),
    }
