"""
SearchEngineManager 구현

- 요청 URL 기준 캐시 조회
- 선택된 엔진 동시 검색 (asyncio.gather)
- URL 기준 결과 병합 후 캐시 저장
"""

import asyncio
import logging
from typing import List, Optional, Sequence
from urllib.parse import urlencode

from metasearch.cache.cacher import RedisCache
from metasearch.engines.base import SearchEngine
from metasearch.engines.registry import EngineRegistry, default_registry
from metasearch.errors import EmptyResultSet, PoolError
from metasearch.models.data_models import MetasearchConfig, SearchResults
from metasearch.utils.user_agent import random_user_agent


logger = logging.getLogger(__name__)


def build_cache_key_url(query: str, page: int, engines: Sequence[str]) -> str:
    """캐시 키로 사용할 정규화된 요청 URL 생성

    엔진 순서와 관계없이 동일한 URL을 생성한다.
    """
    params = {
        "q": query,
        "page": page,
        "engines": ",".join(sorted(name.lower() for name in engines)),
    }
    return f"/search?{urlencode(params)}"


class SearchEngineManager:
    """다중 검색 엔진 관리자

    - 등록된 엔진을 동시에 호출하여 결과 병합
    - 실패한 엔진은 결과에서 제외하고 engine_errors에 기록
    - 캐시 오류는 검색 실패로 이어지지 않음
    """

    def __init__(
        self,
        config: Optional[MetasearchConfig] = None,
        cache: Optional[RedisCache] = None,
        registry: EngineRegistry = default_registry
    ):
        """SearchEngineManager 초기화

        Args:
            config: 메타검색 설정
            cache: 결과 캐시. None이면 캐시 없이 동작
            registry: 엔진 레지스트리
        """
        self._config = config or MetasearchConfig()
        self._cache = cache
        self._registry = registry

    @property
    def config(self) -> MetasearchConfig:
        return self._config

    async def search(
        self,
        query: str,
        page: int = 0,
        engines: Optional[Sequence[str]] = None,
        user_agent: Optional[str] = None,
        use_cache: bool = True
    ) -> SearchResults:
        """검색 수행

        Args:
            query: 검색어
            page: 페이지 번호
            engines: 사용할 엔진 이름. None이면 설정값 사용
            user_agent: User-Agent. None이면 무작위 선택
            use_cache: 캐시 사용 여부

        Returns:
            병합된 검색 결과

        Raises:
            ValueError: 선택된 엔진이 없는 경우
            KeyError: 등록되지 않은 엔진
        """
        requested = engines if engines is not None else self._config.engines
        # 같은 엔진을 두 번 요청하지 않도록 순서를 유지하며 중복 제거
        engine_names = list(dict.fromkeys(name.lower() for name in requested))
        if not engine_names:
            raise ValueError("선택된 검색 엔진이 없습니다.")

        selected = [self._registry.get(name) for name in engine_names]
        cache_url = build_cache_key_url(query, page, engine_names)

        if use_cache and self._cache is not None:
            cached = await self._cached_results(cache_url)
            if cached is not None:
                logger.info(f"캐시 히트: query={query!r}, page={page}")
                return cached

        results = await self._fan_out(
            selected, query, page, user_agent or random_user_agent()
        )

        if use_cache and self._cache is not None:
            await self._store_results(cache_url, results)

        return results

    async def _fan_out(
        self,
        engines: List[SearchEngine],
        query: str,
        page: int,
        user_agent: str
    ) -> SearchResults:
        """선택된 엔진을 동시에 호출하고 결과 병합"""
        outcomes = await asyncio.gather(
            *(
                engine.fetch(query, page, user_agent, self._config.request_timeout)
                for engine in engines
            ),
            return_exceptions=True
        )

        merged = SearchResults()
        for engine, outcome in zip(engines, outcomes):
            if isinstance(outcome, EmptyResultSet):
                logger.info(f"{engine.name}: 검색 결과 없음")
                merged.engine_errors[engine.name] = "no results"
            elif isinstance(outcome, Exception):
                logger.warning(f"{engine.name} 검색 실패: {outcome}")
                merged.engine_errors[engine.name] = str(outcome)
            elif isinstance(outcome, BaseException):
                # CancelledError 등은 그대로 전파
                raise outcome
            else:
                merged.extend(outcome.values())

        logger.info(
            f"검색 완료: {len(merged)}개 결과, "
            f"실패 엔진 {len(merged.engine_errors)}/{len(engines)}개"
        )
        return merged

    async def _cached_results(self, cache_url: str) -> Optional[SearchResults]:
        try:
            cached_json = await self._cache.get(cache_url)
        except PoolError as e:
            logger.warning(f"캐시 조회 실패, 업스트림 검색 진행: {e}")
            return None
        if cached_json is None:
            return None
        try:
            return SearchResults.from_json(cached_json)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"손상된 캐시 항목 무시, 업스트림 검색 진행: {e!r}")
            return None

    async def _store_results(self, cache_url: str, results: SearchResults) -> None:
        try:
            await self._cache.put(cache_url, results.to_json())
        except PoolError as e:
            logger.warning(f"캐시 저장 실패: {e}")
