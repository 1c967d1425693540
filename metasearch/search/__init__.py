# Search Module
"""
검색 모듈
- SearchEngineManager: 캐시 조회, 엔진 동시 검색, 결과 병합
"""

from metasearch.search.manager import SearchEngineManager, build_cache_key_url

__all__ = [
    "SearchEngineManager",
    "build_cache_key_url",
]
