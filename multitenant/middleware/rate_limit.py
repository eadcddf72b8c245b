"""
Rate Limiting Middleware

Per-client rate limiting using Redis.

ARCHITECTURE: Fixed window counter per client IP. The first request in a
window creates the key with INCR and sets its TTL with EXPIRE; every later
request only increments. Once the counter passes the limit, requests are
rejected until the key expires.

TRADEOFF: A fixed window allows up to twice the limit across a window
boundary. Good enough for abuse protection on a single API.

If Redis is unreachable the limiter lets requests through and logs; we
choose availability over strict limiting.
"""
from typing import Optional, Tuple

import redis
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from multitenant.config import Settings
from multitenant.core.exceptions import RateLimitExceeded
from multitenant.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

EXCLUDED_PATHS = (
    "/docs",
    "/redoc",
    "/openapi.json",
    "/health",
)


class FixedWindowLimiter:
    """Counts hits per identifier in Redis."""

    def __init__(self, client, max_requests: int, window_seconds: int, prefix: str = "rate_limit"):
        self.client = client
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prefix = prefix

    def key_for(self, identifier: str) -> str:
        return f"{self.prefix}:{identifier}"

    def hit(self, identifier: str) -> Tuple[bool, int, int]:
        """
        Record one request.

        Returns: (allowed, remaining, retry_after_seconds)
        """
        key = self.key_for(identifier)
        count = int(self.client.incr(key))
        if count == 1:
            self.client.expire(key, self.window_seconds)

        remaining = max(self.max_requests - count, 0)
        if count <= self.max_requests:
            return True, remaining, 0

        ttl = self.client.ttl(key)
        if ttl is None or ttl < 0:
            # Key lost its expiry (crash between INCR and EXPIRE); restart the window
            self.client.expire(key, self.window_seconds)
            ttl = self.window_seconds
        return False, 0, max(int(ttl), 1)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed window rate limiter per client IP.

    Disabled entirely when RATE_LIMIT_ENABLED is false. A Redis client can
    be injected; otherwise one is built from REDIS_URL.
    """

    def __init__(self, app, settings: Settings, redis_client=None):
        super().__init__(app)
        self.enabled = settings.RATE_LIMIT_ENABLED
        self.limiter: Optional[FixedWindowLimiter] = None

        if not self.enabled:
            logger.info("Rate limiting disabled by configuration")
            return

        if redis_client is None:
            try:
                redis_client = redis.from_url(
                    settings.REDIS_URL,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                redis_client.ping()
                logger.info("Redis connection established for rate limiting")
            except redis.RedisError as e:
                logger.error(f"Redis connection failed, rate limiting disabled: {e}")
                redis_client = None

        if redis_client is not None:
            self.limiter = FixedWindowLimiter(
                redis_client,
                max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
                window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            )

    async def dispatch(self, request: Request, call_next):
        if self.limiter is None or request.url.path.startswith(EXCLUDED_PATHS):
            return await call_next(request)

        client_ip = self._get_client_identifier(request)

        try:
            allowed, remaining, retry_after = self.limiter.hit(client_ip)
        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            # Graceful degradation - allow request if Redis fails
            return await call_next(request)

        if not allowed:
            log_security_event(
                "rate_limit_exceeded",
                {"client_ip": client_ip, "path": request.url.path, "retry_after": retry_after},
                logger,
            )
            exc = RateLimitExceeded(retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict(),
                headers=exc.headers,
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response

    def _get_client_identifier(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"
