# Engines Package
"""업스트림 검색 엔진 어댑터

- SearchEngine: 엔진 어댑터 추상 클래스
- DuckDuckGo: DuckDuckGo HTML 어댑터
- EngineRegistry: 엔진 레지스트리
"""

from metasearch.engines.base import SearchEngine
from metasearch.engines.duckduckgo import DuckDuckGo, page_offsets
from metasearch.engines.registry import EngineRegistry, default_registry

__all__ = [
    "SearchEngine",
    "DuckDuckGo",
    "page_offsets",
    "EngineRegistry",
    "default_registry",
]
