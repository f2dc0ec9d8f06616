"""
Rate limiting

Fixed-window counters in Redis, keyed per user and action.
"""

from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis

from app.core.config import settings
from app.core.deps import CurrentUserDep
from app.core.errors import RateLimitExceededError
from app.core.logging import get_logger
from app.core.security import AuthenticatedUser
from app.infra.redis import get_redis

logger = get_logger(__name__)

DAY_SECONDS = 24 * 60 * 60


class RateLimiter:
    def __init__(self, action: str, limit: int, window_seconds: int):
        self.action = action
        self.limit = limit
        self.window_seconds = window_seconds

    def key(self, user_id: str) -> str:
        return f"rate_limit:{self.action}:{user_id}"

    async def hit(self, redis: Redis, user_id: str) -> int:
        """Count one attempt. Raises RateLimitExceededError once over the limit."""
        key = self.key(user_id)
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, self.window_seconds)

        if count > self.limit:
            retry_after = await redis.ttl(key)
            logger.warning(f"User {user_id} exceeded {self.action} limit ({self.limit})")
            raise RateLimitExceededError(
                f"Limit of {self.limit} {self.action.replace('_', ' ')} per day reached",
                retry_after=retry_after if retry_after and retry_after > 0 else self.window_seconds,
                details={"limit": self.limit},
            )
        return count

    async def __call__(
        self,
        current_user: CurrentUserDep,
        redis: Annotated[Redis, Depends(get_redis)],
    ) -> AuthenticatedUser:
        await self.hit(redis, current_user.id)
        return current_user


meeting_creation_limit = RateLimiter(
    "meeting_uploads",
    limit=settings.meeting_creation_daily_limit,
    window_seconds=DAY_SECONDS,
)
