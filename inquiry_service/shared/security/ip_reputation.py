"""Per-address burst tracking with a process-lifetime blocklist."""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from inquiry_service.shared.security.bounded_map import BoundedMap

BURST_WINDOW_SECONDS = 60
BURST_MAX_REQUESTS = 50
CLEANUP_HORIZON_SECONDS = 60 * 60
SWEEP_INTERVAL_SECONDS = 60 * 60
TRACKER_CAPACITY = 10000


@dataclass
class ActivityEntry:
    count: int
    last_seen: float


class IPReputationTracker:
    """
    Counts requests per address and blocks addresses that burst.

    An address whose count exceeds the burst ceiling while still inside the
    burst window is added to the blocklist and stays there until the process
    restarts. The activity map is LRU-bounded; the blocklist is never swept.
    """

    def __init__(
        self,
        burst_max_requests: int = BURST_MAX_REQUESTS,
        burst_window_seconds: float = BURST_WINDOW_SECONDS,
        cleanup_horizon_seconds: float = CLEANUP_HORIZON_SECONDS,
        capacity: int = TRACKER_CAPACITY,
        clock: Callable[[], float] = time.time,
    ):
        self.burst_max_requests = burst_max_requests
        self.burst_window_seconds = burst_window_seconds
        self.cleanup_horizon_seconds = cleanup_horizon_seconds
        self._clock = clock
        self._activity = BoundedMap(capacity)
        self._blocked = set()
        self._lock = Lock()

    def admit(self, address: str) -> bool:
        now = self._clock()
        with self._lock:
            if address in self._blocked:
                return False

            entry = self._activity.get(address)
            if entry is None:
                self._activity[address] = ActivityEntry(count=1, last_seen=now)
                return True

            elapsed = now - entry.last_seen
            if elapsed < self.burst_window_seconds and entry.count > self.burst_max_requests:
                self._blocked.add(address)
                self._activity.pop(address)
                logging.warning(f"[Security] IP blocked for excessive requests: {address}")
                return False

            if elapsed >= self.burst_window_seconds:
                entry.count = 1
            else:
                entry.count += 1
            entry.last_seen = now
            return True

    def is_blocked(self, address: str) -> bool:
        with self._lock:
            return address in self._blocked

    def sweep(self) -> int:
        """Drop activity entries idle past the cleanup horizon. Returns the number removed."""
        cutoff = self._clock() - self.cleanup_horizon_seconds
        removed = 0
        with self._lock:
            for address, entry in self._activity.items():
                if entry.last_seen < cutoff:
                    self._activity.pop(address)
                    removed += 1
        return removed

    @property
    def tracked_count(self) -> int:
        return len(self._activity)

    @property
    def blocked_count(self) -> int:
        return len(self._blocked)
