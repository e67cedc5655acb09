"""
Login Rate Limiting

Fixed-window attempt counter per login email, kept in Redis so every API
process shares it. Redis being down must not lock agencies out, so errors
degrade to allowing the attempt.
"""
from functools import lru_cache
from typing import Tuple
import logging

import redis

from travelflow.config import get_settings

logger = logging.getLogger(__name__)


class LoginRateLimiter:
    """
    ``limit`` attempts per ``window_seconds`` for each key.

    The first attempt in a window creates the counter with a TTL; the window
    ends when the key expires.
    """

    def __init__(self, client, limit: int, window_seconds: int, prefix: str = "login_attempts"):
        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    def _key(self, identifier: str) -> str:
        return f"{self.prefix}:{identifier.strip().lower()}"

    def hit(self, identifier: str) -> Tuple[bool, int]:
        """
        Count one attempt.

        Returns: (allowed, retry_after_seconds)
        """
        key = self._key(identifier)
        try:
            attempts = self.client.incr(key)
            if attempts == 1:
                self.client.expire(key, self.window_seconds)

            if attempts <= self.limit:
                return True, 0

            ttl = self.client.ttl(key)
            if ttl is None or ttl < 0:
                # Counter lost its TTL; restart the window
                self.client.expire(key, self.window_seconds)
                ttl = self.window_seconds
            return False, int(ttl)

        except redis.RedisError as e:
            logger.error(f"Redis error in login rate limiting: {e}")
            return True, 0

    def reset(self, identifier: str) -> None:
        """Forget the attempts for ``identifier`` (after a successful login)."""
        try:
            self.client.delete(self._key(identifier))
        except redis.RedisError as e:
            logger.error(f"Redis error clearing login attempts: {e}")


@lru_cache()
def get_login_limiter() -> LoginRateLimiter:
    settings = get_settings()
    client = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=2,
    )
    return LoginRateLimiter(
        client,
        limit=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
        window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    )
