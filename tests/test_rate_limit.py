"""Tests for the fixed window rate limiter and its middleware."""

from unittest.mock import MagicMock

import redis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from multitenant.config import Settings
from multitenant.middleware.rate_limit import FixedWindowLimiter, RateLimitMiddleware


class FakeRedis:
    """Just enough of the Redis API for the limiter."""

    def __init__(self):
        self.counts = {}
        self.ttls = {}

    def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    def ttl(self, key):
        return self.ttls.get(key, -1)


def _app(redis_client, max_requests=2, enabled=True):
    settings = Settings(
        RATE_LIMIT_ENABLED=enabled,
        RATE_LIMIT_MAX_REQUESTS=max_requests,
        RATE_LIMIT_WINDOW_SECONDS=60,
    )
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, settings=settings, redis_client=redis_client)

    @app.get("/ping")
    def ping():
        return {"ok": True}

    @app.get("/health")
    def health():
        return {"status": "OK"}

    return app


def test_first_hit_sets_window_expiry():
    client = FakeRedis()
    limiter = FixedWindowLimiter(client, max_requests=5, window_seconds=900)

    allowed, remaining, retry_after = limiter.hit("1.2.3.4")

    assert allowed
    assert remaining == 4
    assert retry_after == 0
    assert client.ttls["rate_limit:1.2.3.4"] == 900


def test_hit_over_limit_reports_ttl():
    client = MagicMock()
    client.incr.return_value = 6
    client.ttl.return_value = 42
    limiter = FixedWindowLimiter(client, max_requests=5, window_seconds=900)

    assert limiter.hit("1.2.3.4") == (False, 0, 42)
    client.expire.assert_not_called()


def test_key_without_expiry_restarts_window():
    client = MagicMock()
    client.incr.return_value = 6
    client.ttl.return_value = -1
    limiter = FixedWindowLimiter(client, max_requests=5, window_seconds=900)

    assert limiter.hit("1.2.3.4") == (False, 0, 900)
    client.expire.assert_called_once_with("rate_limit:1.2.3.4", 900)


def test_middleware_blocks_after_limit():
    with TestClient(_app(FakeRedis())) as client:
        first = client.get("/ping")
        second = client.get("/ping")
        third = client.get("/ping")

    assert first.status_code == second.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert third.status_code == 429
    assert third.json() == {
        "error": "Too many requests, please try again later.",
        "code": "RATE_LIMIT_EXCEEDED",
        "retryAfter": 60,
    }
    assert third.headers["Retry-After"] == "60"


def test_health_is_not_limited():
    with TestClient(_app(FakeRedis(), max_requests=1)) as client:
        responses = [client.get("/health") for _ in range(3)]

    assert all(resp.status_code == 200 for resp in responses)


def test_redis_failure_degrades_open():
    broken = MagicMock()
    broken.incr.side_effect = redis.ConnectionError("down")

    with TestClient(_app(broken, max_requests=1)) as client:
        responses = [client.get("/ping") for _ in range(3)]

    assert all(resp.status_code == 200 for resp in responses)


def test_disabled_by_configuration():
    fake = FakeRedis()

    with TestClient(_app(fake, max_requests=1, enabled=False)) as client:
        responses = [client.get("/ping") for _ in range(3)]

    assert all(resp.status_code == 200 for resp in responses)
    assert fake.counts == {}
