from uuid import uuid4
from typing import Optional
from redis.asyncio import Redis
from loguru import logger

SWEEP_LOCK_KEY = "auction:settlement:lock"

# Delete the key only when it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class SweepLock:
    """Cross-process guard so only one settlement pass runs at a time."""

    def __init__(self, redis: Redis, ttl_seconds: int, key: str = SWEEP_LOCK_KEY):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.key = key
        self.token: Optional[str] = None

    async def acquire(self) -> bool:
        token = uuid4().hex
        acquired = await self.redis.set(self.key, token, nx=True, ex=self.ttl_seconds)
        if not acquired:
            logger.debug(f"Settlement lock {self.key} already held")
            return False
        self.token = token
        return True

    async def release(self) -> bool:
        if self.token is None:
            return False
        released = await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)
        if not released:
            logger.warning(f"Settlement lock {self.key} expired before release")
        self.token = None
        return bool(released)
