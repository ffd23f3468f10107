"""Per-candidate in-progress markers shared by the batch runner and the submission listener."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Protocol

from redis.exceptions import LockError

logger = logging.getLogger(__name__)


class CandidateLocks(Protocol):
    def hold(self, candidate_id: int, *, blocking: bool = True, timeout: float | None = None): ...


class InProcessCandidateLocks:
    """Locks living in this process. Enough when the poller and the API share a process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}
        # Threads holding or waiting for each candidate's lock.
        self._users: dict[int, int] = {}

    def _checkout(self, candidate_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.setdefault(candidate_id, threading.Lock())
            self._users[candidate_id] = self._users.get(candidate_id, 0) + 1
            return lock

    def _checkin(self, candidate_id: int) -> None:
        with self._guard:
            self._users[candidate_id] -= 1
            if not self._users[candidate_id]:
                del self._users[candidate_id]
                del self._locks[candidate_id]

    @contextmanager
    def hold(self, candidate_id: int, *, blocking: bool = True, timeout: float | None = None) -> Iterator[bool]:
        """Yield True when the marker was acquired, False when another cycle holds it."""
        lock = self._checkout(candidate_id)
        acquired = False
        try:
            if blocking:
                acquired = lock.acquire(timeout=-1 if timeout is None else timeout)
            else:
                acquired = lock.acquire(blocking=False)
            yield acquired
        finally:
            if acquired:
                lock.release()
            self._checkin(candidate_id)


class RedisCandidateLocks:
    """Locks in Redis, for Celery workers and the API running as separate processes."""

    KEY_PREFIX = "homework_bot:candidate:"

    def __init__(self, redis_client, *, lease_seconds: float = 900.0):
        self.redis = redis_client
        self.lease_seconds = lease_seconds

    @contextmanager
    def hold(self, candidate_id: int, *, blocking: bool = True, timeout: float | None = None) -> Iterator[bool]:
        lock = self.redis.lock(f"{self.KEY_PREFIX}{candidate_id}", timeout=self.lease_seconds)
        acquired = bool(lock.acquire(blocking=blocking, blocking_timeout=timeout if blocking else None))
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    lock.release()
                except LockError:
                    # Lease expired while the cycle was still running.
                    logger.warning("Candidate lock for %s expired before release", candidate_id)
