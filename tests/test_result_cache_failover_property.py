"""
Property test: Result Cache Failover

*For any* 커넥션 풀 크기 N과 끊김 패턴에 대해,
- 앞의 k(<N)개 커넥션이 끊어지면 k+1번째 커넥션으로 정확히 k+1회 시도 후 성공
- N개 모두 끊어지면 정확히 N회 시도 후 PoolExhaustedError
- 끊김이 아닌 오류는 1회 시도 후 즉시 CacheBackendError
"""

import asyncio
from typing import Dict, List, Optional

import pytest
from hypothesis import given, strategies as st, settings
from redis import exceptions as redis_exceptions

from metasearch.cache.cacher import RedisCache, hash_url
from metasearch.cache.pool import ConnectionPool
from metasearch.errors import CacheBackendError, PoolExhaustedError


class FakeClock:
    """테스트용 시계"""

    def __init__(self):
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeConnection:
    """테스트용 Redis 커넥션

    mode:
        "ok": 정상 동작
        "drop": 커넥션 끊김 (redis ConnectionError)
        "error": 끊김이 아닌 Redis 오류 (ResponseError)
    """

    def __init__(
        self,
        mode: str = "ok",
        store: Optional[Dict[str, tuple]] = None,
        clock: Optional[FakeClock] = None
    ):
        self.mode = mode
        self.store = store if store is not None else {}
        self.clock = clock or FakeClock()
        self.calls = 0
        self.set_calls: List[tuple] = []

    def _check(self) -> None:
        self.calls += 1
        if self.mode == "drop":
            raise redis_exceptions.ConnectionError("Connection closed by server.")
        if self.mode == "error":
            raise redis_exceptions.ResponseError("WRONGTYPE Operation against a key")

    async def get(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        self._check()
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock.now >= expires_at:
            del self.store[key]
            return None
        return value

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        await asyncio.sleep(0)
        self._check()
        self.set_calls.append((key, value, ex))
        expires_at = self.clock.now + ex if ex is not None else None
        self.store[key] = (value, expires_at)
        return True


def make_cache(modes: List[str], clock: Optional[FakeClock] = None):
    store: Dict[str, tuple] = {}
    clock = clock or FakeClock()
    connections = [FakeConnection(mode, store, clock) for mode in modes]
    return RedisCache(ConnectionPool(connections)), connections, store


url_strategy = st.text(min_size=1, max_size=80).map(lambda x: "/search?q=" + x)


class TestResultCacheFailoverProperty:
    """Result Cache Failover Property Tests"""

    @given(
        pool_size=st.integers(min_value=1, max_value=8),
        dropped=st.integers(min_value=0),
        url=url_strategy
    )
    @settings(max_examples=50, deadline=None)
    def test_get_fails_over_past_dropped_connections(self, pool_size: int, dropped: int, url: str):
        """Property: 앞의 k개가 끊어지면 k+1번째 커넥션에서 성공"""
        k = dropped % pool_size
        modes = ["drop"] * k + ["ok"] * (pool_size - k)
        cache, connections, store = make_cache(modes)
        store[hash_url(url)] = ("cached", None)

        value = asyncio.run(cache.get(url))

        assert value == "cached"
        assert sum(c.calls for c in connections) == k + 1
        for i in range(k + 1):
            assert connections[i].calls == 1
        for i in range(k + 1, pool_size):
            assert connections[i].calls == 0, f"커넥션 {i}는 사용되면 안 됨"

    @given(
        pool_size=st.integers(min_value=1, max_value=8),
        dropped=st.integers(min_value=0),
        url=url_strategy
    )
    @settings(max_examples=50, deadline=None)
    def test_put_fails_over_past_dropped_connections(self, pool_size: int, dropped: int, url: str):
        """Property: put도 같은 failover 규칙을 따른다"""
        k = dropped % pool_size
        modes = ["drop"] * k + ["ok"] * (pool_size - k)
        cache, connections, _ = make_cache(modes)

        asyncio.run(cache.put(url, '{"results": []}'))

        assert sum(c.calls for c in connections) == k + 1
        assert connections[k].set_calls == [(hash_url(url), '{"results": []}', 60)]

    @given(pool_size=st.integers(min_value=1, max_value=8), url=url_strategy)
    @settings(max_examples=30, deadline=None)
    def test_all_dropped_raises_pool_exhausted(self, pool_size: int, url: str):
        """Property: 모든 커넥션이 끊어지면 N회 시도 후 PoolExhaustedError"""
        cache, connections, _ = make_cache(["drop"] * pool_size)

        with pytest.raises(PoolExhaustedError) as exc_info:
            asyncio.run(cache.get(url))

        assert exc_info.value.attempts == pool_size
        assert exc_info.value.key == hash_url(url)
        assert all(c.calls == 1 for c in connections)

    @given(pool_size=st.integers(min_value=2, max_value=8), url=url_strategy)
    @settings(max_examples=30, deadline=None)
    def test_non_drop_error_fails_fast(self, pool_size: int, url: str):
        """Property: 끊김이 아닌 오류는 첫 커넥션에서 즉시 실패"""
        cache, connections, _ = make_cache(["error"] + ["ok"] * (pool_size - 1))

        with pytest.raises(CacheBackendError) as exc_info:
            asyncio.run(cache.put(url, "value"))

        assert isinstance(exc_info.value.error, redis_exceptions.ResponseError)
        assert exc_info.value.__cause__ is exc_info.value.error
        assert connections[0].calls == 1
        assert all(c.calls == 0 for c in connections[1:])

    @given(url=st.text(max_size=200))
    @settings(max_examples=100, deadline=None)
    def test_hash_url_is_deterministic(self, url: str):
        """Property: 같은 URL은 항상 같은 32자리 16진수 키"""
        key = hash_url(url)
        assert key == hash_url(url)
        assert len(key) == 32
        assert all(ch in "0123456789abcdef" for ch in key)

    @given(urls=st.lists(st.text(max_size=100), min_size=2, max_size=30, unique=True))
    @settings(max_examples=50, deadline=None)
    def test_hash_url_distinct_for_distinct_urls(self, urls: List[str]):
        """Property: 서로 다른 URL은 서로 다른 키"""
        assert len({hash_url(u) for u in urls}) == len(urls)


class TestResultCacheUnit:
    """RedisCache 단위 테스트"""

    @pytest.mark.asyncio
    async def test_miss_returns_none(self):
        cache, connections, _ = make_cache(["ok", "ok"])
        assert await cache.get("/search?q=nothing") is None
        assert connections[0].calls == 1

    @pytest.mark.asyncio
    async def test_put_then_get_returns_same_value(self):
        cache, _, _ = make_cache(["ok"])
        await cache.put("/search?q=rust", '{"results": [1]}')
        assert await cache.get("/search?q=rust") == '{"results": [1]}'

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self):
        """TTL(60초) 경과 후 캐시 미스"""
        clock = FakeClock()
        cache, _, _ = make_cache(["ok"], clock)

        await cache.put("/search?q=python", "value")
        clock.advance(59)
        assert await cache.get("/search?q=python") == "value"

        clock.advance(1)
        assert await cache.get("/search?q=python") is None

    @pytest.mark.asyncio
    async def test_custom_ttl_passed_to_backend(self):
        connection = FakeConnection()
        cache = RedisCache(ConnectionPool([connection]), ttl=5)
        await cache.put("/search?q=a", "v")
        assert connection.set_calls[0][2] == 5

    @pytest.mark.asyncio
    async def test_bytes_value_decoded(self):
        connection = FakeConnection()
        connection.store[hash_url("/u")] = ("한글".encode("utf-8"), None)
        cache = RedisCache(ConnectionPool([connection]))
        assert await cache.get("/u") == "한글"

    @pytest.mark.asyncio
    async def test_cursor_resets_on_every_call(self):
        """failover 상태는 호출 간에 유지되지 않음"""
        cache, connections, store = make_cache(["drop", "ok"])
        store[hash_url("/u")] = ("v", None)

        assert await cache.get("/u") == "v"
        assert await cache.get("/u") == "v"

        assert connections[0].calls == 2
        assert connections[1].calls == 2

    @pytest.mark.asyncio
    async def test_recovered_connection_used_on_next_call(self):
        cache, connections, store = make_cache(["drop", "ok"])
        store[hash_url("/u")] = ("v", None)

        await cache.get("/u")
        connections[0].mode = "ok"
        await cache.get("/u")

        assert connections[0].calls == 2
        assert connections[1].calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_do_not_share_cursor(self):
        """동시 호출이 서로의 failover 커서를 건드리지 않음"""
        cache, connections, store = make_cache(["drop", "drop", "ok"])
        store[hash_url("/u")] = ("v", None)

        values = await asyncio.gather(*(cache.get("/u") for _ in range(20)))

        assert values == ["v"] * 20
        assert [c.calls for c in connections] == [20, 20, 20]

    @pytest.mark.asyncio
    async def test_os_level_drop_triggers_failover(self):
        class ResetConnection(FakeConnection):
            async def get(self, key):
                self.calls += 1
                raise ConnectionResetError("reset by peer")

        broken = ResetConnection()
        healthy = FakeConnection()
        cache = RedisCache(ConnectionPool([broken, healthy]))

        assert await cache.get("/u") is None
        assert broken.calls == 1
        assert healthy.calls == 1

    @pytest.mark.asyncio
    async def test_custom_drop_predicate(self):
        """드라이버별 끊김 판별 함수 교체"""
        connections = [FakeConnection("error"), FakeConnection("ok")]
        pool = ConnectionPool(
            connections,
            is_dropped=lambda e: isinstance(e, redis_exceptions.ResponseError)
        )
        cache = RedisCache(pool)

        assert await cache.get("/u") is None
        assert connections[1].calls == 1

    @pytest.mark.asyncio
    async def test_authentication_error_fails_fast(self):
        """인증 오류는 커넥션 끊김이 아니므로 failover하지 않음"""
        class AuthFailingConnection(FakeConnection):
            async def get(self, key):
                self.calls += 1
                raise redis_exceptions.AuthenticationError("invalid password")

        broken = AuthFailingConnection()
        healthy = FakeConnection()
        cache = RedisCache(ConnectionPool([broken, healthy]))

        with pytest.raises(CacheBackendError):
            await cache.get("/u")

        assert broken.calls == 1
        assert healthy.calls == 0
