# Cache Module
"""
캐시 모듈
- ConnectionPool: 고정 크기 Redis 커넥션 풀
- RedisCache: failover를 지원하는 검색 결과 캐시
"""

from metasearch.cache.pool import ConnectionPool, is_connection_dropped
from metasearch.cache.cacher import RedisCache, hash_url

__all__ = [
    "ConnectionPool",
    "is_connection_dropped",
    "RedisCache",
    "hash_url",
]
