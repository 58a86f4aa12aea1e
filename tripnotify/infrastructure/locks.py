"""
Redis-based distributed lock.

Several replicas of the service may run at once; the trip watcher takes this
lock around each polling cycle so a trip change is classified (and
notified) by one replica only.

SET NX EX acquires; a Lua script deletes the key only while it still holds
our token, so an expired lock re-taken by another replica is left alone.
"""

from __future__ import annotations

import uuid

import redis.asyncio as aioredis

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, name: str, ttl_seconds: int = 30
    ):
        self.redis = client
        self.key = f"tripnotify:lock:{name}"
        self.ttl = ttl_seconds
        self.token = uuid.uuid4().hex

    async def acquire(self) -> bool:
        """Try once; ``True`` if this instance now owns the lock."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def release(self) -> bool:
        """Release if still owned.  ``False`` means the lock had expired."""
        released = await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)
        return bool(released)

