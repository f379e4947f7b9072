import threading
import time
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator

import redis
from redis.exceptions import RedisError

from storefront.domain.errors import MutationBusy, RemoteFailure
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS, CART_LOCK_WAIT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# compare and delete in one step, a lock that expired and was taken over is left alone
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LocalLockService:
    """One lock per user id, serializes cart mutations inside this process."""

    def __init__(self, wait_timeout: float = CART_LOCK_WAIT_SECONDS):
        self.wait_timeout = wait_timeout
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(user_id, threading.Lock())

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        lock = self._lock_for(user_id)
        if not lock.acquire(timeout=self.wait_timeout):
            raise MutationBusy(f"Cart of user {user_id} is busy")
        try:
            yield
        finally:
            lock.release()


class RedisLockService:
    """
    Cart mutation lock shared by every client of the same user
    (several tabs or processes), backed by redis SET NX with a TTL.
    """

    def __init__(
        self,
        url: str | None = None,
        ttl: int = CART_LOCK_TTL_SECONDS,
        wait_timeout: float = CART_LOCK_WAIT_SECONDS,
        poll_interval: float = 0.05,
        client: redis.Redis | None = None,
    ):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.ttl = ttl
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval

    @staticmethod
    def _key(user_id: str) -> str:
        return f"cart:{user_id}:lock"

    @redis_retry()
    def acquire_cart_lock(self, user_id: str, token: str) -> bool:
        # SET cart:<user>:lock <token> NX EX <ttl>
        return bool(self.redis.set(name=self._key(user_id), value=token, nx=True, ex=self.ttl))

    @redis_retry()
    def release_cart_lock(self, user_id: str, token: str) -> bool:
        res = self.redis.eval(_RELEASE_LUA, 1, self._key(user_id), token)
        return bool(res)

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        token = uuid.uuid4().hex
        deadline = time.monotonic() + self.wait_timeout

        try:
            while not self.acquire_cart_lock(user_id, token):
                if time.monotonic() >= deadline:
                    raise MutationBusy(f"Cart of user {user_id} is busy")
                time.sleep(self.poll_interval)
        except RedisError as e:
            raise RemoteFailure(f"Cart lock unavailable: {e}") from e

        try:
            yield
        finally:
            try:
                self.release_cart_lock(user_id, token)
            except RedisError as e:
                logger.warning(f"Failed to release cart lock for user {user_id}: {e}")
