"""
데이터 모델 정의

- SearchResult: 검색 결과 제목, URL, 설명, 출처 엔진
- SearchResults: 엔진별 결과를 병합한 결과 집합 (캐시 저장 단위)
- MetasearchConfig: 메타검색 설정
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from dotenv import load_dotenv


@dataclass(frozen=True)
class SearchResult:
    """검색 결과 데이터 모델

    - url은 비어 있을 수 없으며 엔진 간 병합 기준이 된다
    - 생성 후 변경 불가
    """
    title: str
    url: str
    description: str
    engines: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.url:
            raise ValueError("SearchResult.url은 비어 있을 수 없습니다.")
        # set, list 등으로 전달된 경우 frozenset으로 고정
        if not isinstance(self.engines, frozenset):
            object.__setattr__(self, "engines", frozenset(self.engines))

    def merge(self, other: "SearchResult") -> "SearchResult":
        """동일 URL 결과 병합 (engines 합집합)

        Args:
            other: 병합할 검색 결과

        Returns:
            병합된 새 SearchResult. 제목과 설명은 self 기준
        """
        if other.url != self.url:
            raise ValueError(f"URL이 다른 결과는 병합할 수 없습니다: {self.url} != {other.url}")
        return SearchResult(
            title=self.title,
            url=self.url,
            description=self.description,
            engines=self.engines | other.engines
        )

    def to_dict(self) -> dict:
        """딕셔너리로 변환"""
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "engines": sorted(self.engines)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResult":
        """딕셔너리에서 객체 생성"""
        return cls(
            title=data["title"],
            url=data["url"],
            description=data.get("description", ""),
            engines=frozenset(data.get("engines", []))
        )


@dataclass
class SearchResults:
    """병합된 검색 결과 집합

    - results: URL을 키로 하는 검색 결과
    - engine_errors: 실패했거나 결과가 없는 엔진의 오류 요약
    """
    results: Dict[str, SearchResult] = field(default_factory=dict)
    engine_errors: Dict[str, str] = field(default_factory=dict)

    def add(self, result: SearchResult) -> None:
        """결과 추가. 같은 URL이 있으면 engines를 합친다"""
        existing = self.results.get(result.url)
        self.results[result.url] = existing.merge(result) if existing else result

    def extend(self, results: Iterable[SearchResult]) -> None:
        for result in results:
            self.add(result)

    def __len__(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        """딕셔너리로 변환"""
        return {
            "results": [r.to_dict() for r in self.results.values()],
            "engine_errors": dict(self.engine_errors)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResults":
        """딕셔너리에서 객체 생성"""
        search_results = cls(engine_errors=dict(data.get("engine_errors", {})))
        search_results.extend(SearchResult.from_dict(r) for r in data.get("results", []))
        return search_results

    def to_json(self) -> str:
        """JSON 문자열로 직렬화"""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> "SearchResults":
        """JSON 문자열에서 역직렬화"""
        return cls.from_dict(json.loads(json_str))


@dataclass
class MetasearchConfig:
    """메타검색 설정 데이터 모델

    - Redis 주소, 커넥션 풀 크기, 캐시 TTL
    - 업스트림 요청 타임아웃, 사용할 엔진 목록
    """
    redis_url: str = "redis://127.0.0.1:6379"
    pool_size: int = 4
    cache_ttl: int = 60
    request_timeout: int = 30
    engines: Tuple[str, ...] = ("duckduckgo",)

    def __post_init__(self):
        if self.pool_size < 1:
            raise ValueError(f"pool_size는 1 이상이어야 합니다: {self.pool_size}")
        if self.cache_ttl < 1:
            raise ValueError(f"cache_ttl은 1 이상이어야 합니다: {self.cache_ttl}")
        if not 0 <= self.request_timeout <= 255:
            raise ValueError(f"request_timeout은 0~255 범위여야 합니다: {self.request_timeout}")
        self.engines = tuple(self.engines)

    def to_dict(self) -> dict:
        """딕셔너리로 변환"""
        return {
            "redis_url": self.redis_url,
            "pool_size": self.pool_size,
            "cache_ttl": self.cache_ttl,
            "request_timeout": self.request_timeout,
            "engines": list(self.engines)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MetasearchConfig":
        """딕셔너리에서 객체 생성"""
        return cls(
            redis_url=data.get("redis_url", "redis://127.0.0.1:6379"),
            pool_size=data.get("pool_size", 4),
            cache_ttl=data.get("cache_ttl", 60),
            request_timeout=data.get("request_timeout", 30),
            engines=tuple(data.get("engines", ("duckduckgo",)))
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "MetasearchConfig":
        """환경 변수(.env 포함)에서 설정 로드

        METASEARCH_REDIS_URL, METASEARCH_POOL_SIZE, METASEARCH_CACHE_TTL,
        METASEARCH_REQUEST_TIMEOUT, METASEARCH_ENGINES(쉼표 구분)
        """
        load_dotenv(dotenv_path)

        data: dict = {}
        if os.getenv("METASEARCH_REDIS_URL"):
            data["redis_url"] = os.getenv("METASEARCH_REDIS_URL")
        if os.getenv("METASEARCH_POOL_SIZE"):
            data["pool_size"] = int(os.getenv("METASEARCH_POOL_SIZE"))
        if os.getenv("METASEARCH_CACHE_TTL"):
            data["cache_ttl"] = int(os.getenv("METASEARCH_CACHE_TTL"))
        if os.getenv("METASEARCH_REQUEST_TIMEOUT"):
            data["request_timeout"] = int(os.getenv("METASEARCH_REQUEST_TIMEOUT"))
        if os.getenv("METASEARCH_ENGINES"):
            data["engines"] = [
                name.strip() for name in os.getenv("METASEARCH_ENGINES").split(",") if name.strip()
            ]
        return cls.from_dict(data)
