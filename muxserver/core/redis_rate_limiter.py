import time
import uuid
import redis.asyncio as redis
from typing import Optional


LUA_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

-- drop requests that left the window
redis.call("ZREMRANGEBYSCORE", key, "-inf", now - window)

local count = redis.call("ZCARD", key)
if count >= limit then
  local ttl = redis.call("PTTL", key)
  if ttl <= 0 then
    ttl = window
  end
  return ttl
end

redis.call("ZADD", key, now, member)
redis.call("PEXPIRE", key, window)
return 0
"""

class RedisRateLimiter:
    """Sliding-window limiter shared by every process that talks to the same Redis."""

    def __init__(self, redis_client: redis.Redis, limit: int, window_ms: int = 10000,
                 key_prefix: str = "mux:ratelimit:"):
        self.redis = redis_client
        self.limit = limit
        self.window_ms = window_ms
        self.key_prefix = key_prefix
        self.script_sha = None

    def _now(self) -> int:
        return int(time.time() * 1000)

    def _key(self, identity: str) -> str:
        return f"{self.key_prefix}{identity}"

    async def load_script(self):
        if not self.script_sha:
            self.script_sha = await self.redis.script_load(LUA_SCRIPT)

    async def allow(self, identity: str) -> tuple[bool, Optional[int]]:
        await self.load_script()
        now = self._now()
        try:
            ttl = await self.redis.evalsha(self.script_sha, 1, self._key(identity), now,
                                           self.window_ms, self.limit, uuid.uuid4().hex)
        except redis.ResponseError as e:
            if "NOSCRIPT" in str(e):
                self.script_sha = None
                return await self.allow(identity)
            raise
        if int(ttl) > 0:
            return False, max(1, int(ttl) // 1000)
        return True, None

    async def remaining(self, identity: str) -> int:
        key = self._key(identity)
        await self.redis.zremrangebyscore(key, "-inf", self._now() - self.window_ms)
        return max(0, self.limit - await self.redis.zcard(key))
