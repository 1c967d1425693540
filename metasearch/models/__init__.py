# Data Models Package
"""데이터 모델 정의"""

from .data_models import SearchResult, SearchResults, MetasearchConfig

__all__ = [
    "SearchResult",
    "SearchResults",
    "MetasearchConfig",
]
