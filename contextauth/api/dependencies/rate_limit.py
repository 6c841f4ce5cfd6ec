"""
Rate limiting dependencies untuk FastAPI.
Menggunakan Redis untuk distributed rate limiting.
"""

from typing import Optional, Callable
from datetime import datetime, timezone
import logging
import uuid

from fastapi import Depends, Request, HTTPException, status
import redis.asyncio as redis
from redis.exceptions import RedisError

from contextauth.api.dependencies.database import get_redis

logger = logging.getLogger(__name__)


class RateLimitDependency:
    """
    Rate limiting dependency menggunakan sliding window algorithm.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        namespace: str = "api",
        key_func: Optional[Callable[[Request], str]] = None
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum requests allowed dalam window
            window_seconds: Time window dalam seconds
            namespace: Namespace untuk Redis keys
            key_func: Custom function untuk generate rate limit key
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.namespace = namespace
        self.key_func = key_func or self._default_key_func

    def _default_key_func(self, request: Request) -> str:
        """
        Default key function menggunakan client IP.

        Args:
            request: FastAPI request

        Returns:
            Rate limit key
        """
        client_ip = request.client.host if request.client else "unknown"
        return f"rate_limit:{self.namespace}:{client_ip}"

    async def __call__(
        self,
        request: Request,
        redis_client: redis.Redis = Depends(get_redis)
    ) -> None:
        """
        Check rate limit untuk request.

        Args:
            request: FastAPI request
            redis_client: Redis connection

        Raises:
            HTTPException: Jika rate limit exceeded
        """
        key = self.key_func(request)
        now = datetime.now(timezone.utc).timestamp()
        window_start = now - self.window_seconds

        try:
            await redis_client.zremrangebyscore(key, 0, window_start)
            request_count = await redis_client.zcard(key)

            if request_count >= self.max_requests:
                oldest_request = await redis_client.zrange(key, 0, 0, withscores=True)
                if oldest_request:
                    retry_after = max(1, int(oldest_request[0][1] + self.window_seconds - now))
                else:
                    retry_after = self.window_seconds

                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Rate limit exceeded",
                    headers={
                        "Retry-After": str(retry_after),
                        "X-RateLimit-Limit": str(self.max_requests),
                        "X-RateLimit-Remaining": "0",
                        "X-RateLimit-Reset": str(int(now + retry_after))
                    }
                )

            # Member unik agar request di timestamp yang sama tetap terhitung
            await redis_client.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
            await redis_client.expire(key, self.window_seconds)

        except RedisError as e:
            # Redis down tidak boleh menghentikan login
            logger.error(f"Rate limiter unavailable for {self.namespace}: {e}")
            return

        request.state.rate_limit_headers = {
            "X-RateLimit-Limit": str(self.max_requests),
            "X-RateLimit-Remaining": str(self.max_requests - request_count - 1),
            "X-RateLimit-Reset": str(int(now + self.window_seconds))
        }
