"""
Tests for the Redis-backed login rate limiter.
"""
import redis

from conftest import FakeRedis
from travelflow.core.rate_limit import LoginRateLimiter


class BrokenRedis:
    def incr(self, key):
        raise redis.ConnectionError("Redis is down")

    def delete(self, key):
        raise redis.ConnectionError("Redis is down")


def test_allows_up_to_limit_then_blocks():
    client = FakeRedis()
    limiter = LoginRateLimiter(client, limit=2, window_seconds=60)

    assert limiter.hit("maria@andes-travel.com") == (True, 0)
    assert limiter.hit("maria@andes-travel.com") == (True, 0)
    assert limiter.hit("maria@andes-travel.com") == (False, 60)
    assert client.ttls["login_attempts:maria@andes-travel.com"] == 60


def test_keys_are_case_insensitive_and_per_identifier():
    limiter = LoginRateLimiter(FakeRedis(), limit=1, window_seconds=60)

    assert limiter.hit("Maria@Andes-Travel.com")[0]
    assert not limiter.hit("maria@andes-travel.com")[0]
    assert limiter.hit("pedro@andes-travel.com")[0]


def test_reset_clears_attempts():
    limiter = LoginRateLimiter(FakeRedis(), limit=1, window_seconds=60)
    limiter.hit("maria@andes-travel.com")

    limiter.reset("maria@andes-travel.com")

    assert limiter.hit("maria@andes-travel.com") == (True, 0)


def test_counter_without_ttl_restarts_window():
    client = FakeRedis()
    limiter = LoginRateLimiter(client, limit=1, window_seconds=30)
    client.values["login_attempts:maria@andes-travel.com"] = 5

    assert limiter.hit("maria@andes-travel.com") == (False, 30)
    assert client.ttls["login_attempts:maria@andes-travel.com"] == 30


def test_redis_outage_allows_attempt():
    limiter = LoginRateLimiter(BrokenRedis(), limit=1, window_seconds=60)

    assert limiter.hit("maria@andes-travel.com") == (True, 0)
    limiter.reset("maria@andes-travel.com")
