"""
EngineRegistry 구현

- 엔진 이름별 어댑터 클래스 등록 및 조회
- 새 엔진은 SearchEngine을 구현하고 등록만 하면 된다
"""

from typing import Dict, List, Optional, Type

import aiohttp

from metasearch.engines.base import SearchEngine
from metasearch.engines.duckduckgo import DuckDuckGo


class EngineRegistry:
    """엔진 레지스트리"""

    def __init__(self):
        self._engines: Dict[str, Type[SearchEngine]] = {}

    def register(self, engine_cls: Type[SearchEngine], name: Optional[str] = None) -> None:
        """엔진 클래스 등록

        Args:
            engine_cls: SearchEngine 구현 클래스
            name: 등록 이름. None이면 엔진의 name 속성 사용
        """
        if name is None:
            name = engine_cls().name
        self._engines[name.lower()] = engine_cls

    def get(self, name: str, session: Optional[aiohttp.ClientSession] = None) -> SearchEngine:
        """이름에 해당하는 엔진 인스턴스 반환

        Raises:
            KeyError: 등록되지 않은 엔진
        """
        key = name.lower()
        if key not in self._engines:
            raise KeyError(f"등록되지 않은 검색 엔진: {name}")
        return self._engines[key](session)

    def names(self) -> List[str]:
        """등록된 엔진 이름 목록"""
        return list(self._engines.keys())

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._engines


default_registry = EngineRegistry()
default_registry.register(DuckDuckGo)
