"""
SearchEngine 추상 클래스

- 모든 업스트림 검색 엔진 어댑터의 공통 인터페이스
- aiohttp 기반 업스트림 HTML 요청
- soupsieve 기반 CSS 선택자 컴파일
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

import aiohttp
import soupsieve

from metasearch.errors import EngineTimeoutError, RequestError, UnexpectedError
from metasearch.models.data_models import SearchResult


logger = logging.getLogger(__name__)

MAX_PAGE = 2 ** 32 - 1
MAX_REQUEST_TIMEOUT = 255


class SearchEngine(ABC):
    """검색 엔진 어댑터 추상 클래스

    - fetch 한 번에 업스트림 요청은 정확히 한 번
    - 반환 딕셔너리의 키는 각 결과의 url
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        """SearchEngine 초기화

        Args:
            session: 공유할 aiohttp 세션. None이면 요청마다 세션 생성
        """
        self._session = session

    @property
    @abstractmethod
    def name(self) -> str:
        """엔진 이름 (SearchResult.engines에 기록되는 값)"""
        pass

    @abstractmethod
    async def fetch(
        self,
        query: str,
        page: int,
        user_agent: str,
        request_timeout: int
    ) -> Dict[str, SearchResult]:
        """업스트림 검색 수행

        Args:
            query: 검색어
            page: 페이지 번호 (0 이상)
            user_agent: 요청에 사용할 User-Agent
            request_timeout: 요청 타임아웃 (초, 0~255)

        Returns:
            url을 키로 하는 검색 결과

        Raises:
            EngineError: 요청, 파싱 실패 또는 결과 없음
        """
        pass

    def validate_request(self, page: int, request_timeout: int) -> None:
        """fetch 입력값 검증"""
        if not isinstance(page, int) or not 0 <= page <= MAX_PAGE:
            raise UnexpectedError(f"잘못된 페이지 번호: {page!r}", self.name)
        if not isinstance(request_timeout, int) or not 0 <= request_timeout <= MAX_REQUEST_TIMEOUT:
            raise UnexpectedError(f"잘못된 요청 타임아웃: {request_timeout!r}", self.name)

    def compile_selector(self, pattern: str) -> soupsieve.SoupSieve:
        """CSS 선택자 컴파일

        Raises:
            UnexpectedError: 선택자 문법 오류 (pattern 포함)
        """
        try:
            return soupsieve.compile(pattern)
        except soupsieve.SelectorSyntaxError as e:
            raise UnexpectedError(
                f"잘못된 CSS 선택자: {pattern}", self.name, pattern=pattern
            ) from e

    async def fetch_html_from_upstream(
        self,
        url: str,
        headers: Mapping[str, str],
        request_timeout: int
    ) -> str:
        """업스트림에서 HTML 가져오기

        Args:
            url: 요청 URL
            headers: 요청 헤더
            request_timeout: 전체 요청 타임아웃 (초)

        Returns:
            응답 본문 문자열

        Raises:
            EngineTimeoutError: 타임아웃 초과
            RequestError: 연결 실패 또는 HTTP 오류 응답
        """
        if request_timeout == 0:
            # aiohttp는 total=0을 무제한으로 처리하므로 요청 없이 즉시 타임아웃
            logger.warning(f"{self.name} 요청 타임아웃 (0s): {url}")
            raise EngineTimeoutError(f"{self.name} 요청 타임아웃 (0s): {url}", self.name)

        timeout = aiohttp.ClientTimeout(total=request_timeout)
        logger.debug(f"{self.name} 업스트림 요청: {url}")

        try:
            if self._session is not None:
                return await self._get_text(self._session, url, headers, timeout)
            async with aiohttp.ClientSession() as session:
                return await self._get_text(session, url, headers, timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"{self.name} 요청 타임아웃 ({request_timeout}s): {url}")
            raise EngineTimeoutError(
                f"{self.name} 요청 타임아웃 ({request_timeout}s): {url}", self.name
            ) from e
        except aiohttp.ClientResponseError as e:
            logger.warning(f"{self.name} HTTP 오류 {e.status}: {url}")
            raise RequestError(
                f"{self.name} HTTP 오류 {e.status}: {url}", self.name, status=e.status
            ) from e
        except aiohttp.ClientError as e:
            logger.warning(f"{self.name} 요청 실패: {e}")
            raise RequestError(f"{self.name} 요청 실패: {e}", self.name) from e

    async def _get_text(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Mapping[str, str],
        timeout: aiohttp.ClientTimeout
    ) -> str:
        async with session.get(url, headers=dict(headers), timeout=timeout) as response:
            response.raise_for_status()
            return await response.text()
