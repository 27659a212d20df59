"""Operation guards - mutual exclusion per (seller, provider kind).

connect and sync for the same pair never run concurrently. Different sellers
and different provider kinds never contend.

Backends (OPERATION_GUARD_BACKEND):
- memory: process-local threading.Lock per pair (single API process, tests)
- redis: SET NX EX with a random token, released only by its owner
"""

import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from functools import lru_cache
from typing import Dict, Iterator, Optional, Tuple
from uuid import UUID

from redis import Redis

from ..config import settings
from ..models.provider_credential import ProviderKind


logger = logging.getLogger(__name__)

# Deletes the key only if it still holds the caller's token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


def _guard_key(seller_id: UUID, provider_kind: ProviderKind) -> str:
    return f"storelink:op_lock:{seller_id}:{ProviderKind(provider_kind).value}"


class OperationGuard(ABC):
    """Lock held for the duration of one connect, sync or disconnect."""

    @abstractmethod
    def acquire(self, seller_id: UUID, provider_kind: ProviderKind, wait_seconds: float = 0) -> Optional[str]:
        """Try to take the lock.

        Args:
            wait_seconds: How long to wait for a busy lock; 0 fails immediately

        Returns:
            An ownership token, or None if the lock is held elsewhere
        """
        pass

    @abstractmethod
    def release(self, seller_id: UUID, provider_kind: ProviderKind, token: str) -> None:
        pass

    @contextmanager
    def hold(self, seller_id: UUID, provider_kind: ProviderKind, wait_seconds: float = 0) -> Iterator[bool]:
        """Context manager yielding whether the lock was acquired.

        Usage:
            with guard.hold(seller.id, ProviderKind.CATALOG) as acquired:
                if not acquired:
                    raise SyncInProgress(...)
                ...
        """
        token = self.acquire(seller_id, provider_kind, wait_seconds=wait_seconds)
        try:
            yield token is not None
        finally:
            if token is not None:
                self.release(seller_id, provider_kind, token)


class InProcessOperationGuard(OperationGuard):
    """threading.Lock per (seller, provider kind) inside one process."""

    def __init__(self):
        self._locks: Dict[Tuple[UUID, str], threading.Lock] = {}
        self._owners: Dict[Tuple[UUID, str], str] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: Tuple[UUID, str]) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def acquire(self, seller_id: UUID, provider_kind: ProviderKind, wait_seconds: float = 0) -> Optional[str]:
        key = (seller_id, ProviderKind(provider_kind).value)
        lock = self._lock_for(key)

        if wait_seconds > 0:
            acquired = lock.acquire(timeout=wait_seconds)
        else:
            acquired = lock.acquire(blocking=False)
        if not acquired:
            return None

        token = secrets.token_hex(8)
        self._owners[key] = token
        return token

    def release(self, seller_id: UUID, provider_kind: ProviderKind, token: str) -> None:
        key = (seller_id, ProviderKind(provider_kind).value)
        if self._owners.get(key) != token:
            logger.warning(f"Operation guard {key} released by a non-owner; ignored")
            return
        del self._owners[key]
        self._locks[key].release()

    def is_held(self, seller_id: UUID, provider_kind: ProviderKind) -> bool:
        return (seller_id, ProviderKind(provider_kind).value) in self._owners


class RedisOperationGuard(OperationGuard):
    """Distributed guard for deployments with several API processes or workers.

    The TTL bounds how long a crashed holder can block the pair.
    """

    POLL_INTERVAL_SECONDS = 0.1

    def __init__(self, client: Redis, ttl_seconds: Optional[int] = None):
        self.redis = client
        self.ttl_seconds = ttl_seconds or settings.OPERATION_LOCK_TTL_SECONDS

    def acquire(self, seller_id: UUID, provider_kind: ProviderKind, wait_seconds: float = 0) -> Optional[str]:
        key = _guard_key(seller_id, provider_kind)
        token = secrets.token_hex(16)
        deadline = time.monotonic() + max(wait_seconds, 0)

        while True:
            if self.redis.set(key, token, nx=True, ex=self.ttl_seconds):
                return token
            if time.monotonic() >= deadline:
                return None
            time.sleep(self.POLL_INTERVAL_SECONDS)

    def release(self, seller_id: UUID, provider_kind: ProviderKind, token: str) -> None:
        key = _guard_key(seller_id, provider_kind)
        released = self.redis.eval(RELEASE_SCRIPT, 1, key, token)
        if not released:
            logger.warning(f"Operation guard {key} expired before release")


@lru_cache()
def get_operation_guard() -> OperationGuard:
    """Process-wide guard selected by OPERATION_GUARD_BACKEND.

    Call get_operation_guard.cache_clear() after changing settings.
    """
    backend = settings.OPERATION_GUARD_BACKEND.lower()
    if backend == "redis":
        client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("Using Redis operation guard")
        return RedisOperationGuard(client)
    if backend != "memory":
        raise ValueError(f"Unknown OPERATION_GUARD_BACKEND: {settings.OPERATION_GUARD_BACKEND}")
    return InProcessOperationGuard()
