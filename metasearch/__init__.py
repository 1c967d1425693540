# Metasearch Aggregation Package
"""
메타검색 집계 패키지
- 업스트림 검색 엔진 결과 스크래핑
- Redis 커넥션 풀 기반 결과 캐싱 (failover 지원)
- 엔진별 결과 병합
"""

__version__ = "0.1.0"

from metasearch.models.data_models import MetasearchConfig, SearchResult, SearchResults
from metasearch.cache.cacher import RedisCache
from metasearch.cache.pool import ConnectionPool
from metasearch.engines.base import SearchEngine
from metasearch.engines.duckduckgo import DuckDuckGo
from metasearch.search.manager import SearchEngineManager

__all__ = [
    "MetasearchConfig",
    "SearchResult",
    "SearchResults",
    "RedisCache",
    "ConnectionPool",
    "SearchEngine",
    "DuckDuckGo",
    "SearchEngineManager",
]
