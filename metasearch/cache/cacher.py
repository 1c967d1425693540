"""
RedisCache 구현

- 요청 URL의 MD5 해시를 키로 병합된 검색 결과(JSON)를 캐싱
- 커넥션이 끊어지면 풀의 다음 커넥션으로 순차 failover
- 캐시 항목은 TTL(기본 60초) 이후 만료
"""

import hashlib
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from metasearch.cache.pool import ConnectionPool
from metasearch.errors import CacheBackendError, PoolExhaustedError


logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60

T = TypeVar("T")


def hash_url(url: str) -> str:
    """요청 URL의 캐시 키 생성

    Args:
        url: 요청 URL

    Returns:
        32자리 소문자 16진수 MD5 해시
    """
    return hashlib.md5(url.encode("utf-8")).hexdigest()


class RedisCache:
    """커넥션 풀 기반 검색 결과 캐시

    failover 커서는 호출마다 0에서 시작하는 지역 변수이므로
    동시에 실행되는 get/put 호출이 서로의 상태를 건드리지 않는다.
    """

    def __init__(self, pool: ConnectionPool, ttl: int = DEFAULT_CACHE_TTL):
        """RedisCache 초기화

        Args:
            pool: 미리 연결된 커넥션 풀
            ttl: 캐시 유효 시간 (초)
        """
        self._pool = pool
        self.ttl = ttl

    @classmethod
    async def connect(
        cls,
        redis_url: str,
        pool_size: int,
        ttl: int = DEFAULT_CACHE_TTL
    ) -> "RedisCache":
        """커넥션 풀을 연결하고 RedisCache 생성"""
        pool = await ConnectionPool.connect(redis_url, pool_size)
        return cls(pool, ttl)

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    async def get(self, url: str) -> Optional[str]:
        """캐시된 JSON 결과 조회

        Args:
            url: 요청 URL

        Returns:
            캐시된 문자열. 캐시 미스 시 None

        Raises:
            PoolExhaustedError: 모든 커넥션이 끊어진 경우
            CacheBackendError: 그 외 Redis 오류
        """
        key = hash_url(url)
        value = await self._with_failover(key, lambda conn: conn.get(key))

        if value is None:
            logger.debug(f"캐시 미스: url={url}")
            return None

        logger.debug(f"캐시 히트: url={url}")
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, url: str, value: str) -> None:
        """JSON 결과를 TTL과 함께 캐싱

        Args:
            url: 요청 URL
            value: 직렬화된 검색 결과

        Raises:
            PoolExhaustedError: 모든 커넥션이 끊어진 경우
            CacheBackendError: 그 외 Redis 오류
        """
        key = hash_url(url)
        await self._with_failover(key, lambda conn: conn.set(key, value, ex=self.ttl))
        logger.debug(f"캐시 저장: url={url}, ttl={self.ttl}s")

    async def close(self) -> None:
        await self._pool.close()

    async def _with_failover(
        self,
        key: str,
        command: Callable[[Any], Awaitable[T]]
    ) -> T:
        """풀의 커넥션을 순서대로 사용하여 명령 실행

        - 커넥션 끊김: 다음 커넥션으로 같은 명령 재시도
        - 모든 커넥션이 끊김: PoolExhaustedError
        - 그 외 오류: 재시도 없이 CacheBackendError
        """
        cursor = 0
        while True:
            try:
                return await command(self._pool[cursor])
            except Exception as e:
                if not self._pool.is_dropped(e):
                    logger.error(f"Redis 오류 (key={key}, connection={cursor}): {e}")
                    raise CacheBackendError(key, e) from e

                cursor += 1
                if cursor == self._pool.size:
                    logger.error(f"커넥션 풀 소진: {cursor}개 커넥션 모두 끊어짐 (key={key})")
                    raise PoolExhaustedError(key, cursor) from e

                logger.warning(
                    f"커넥션 끊김, 다음 커넥션으로 failover: {cursor - 1} -> {cursor} ({e})"
                )
