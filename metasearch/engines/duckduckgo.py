"""
DuckDuckGo 검색 엔진 어댑터

- html.duckduckgo.com HTML 결과 페이지 스크래핑
- 페이지 번호를 업스트림 오프셋(s, dc)으로 변환
- 결과 없음 페이지 감지
"""

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote_plus

from bs4 import BeautifulSoup

from metasearch.engines.base import SearchEngine
from metasearch.errors import EmptyResultSet, UnexpectedError
from metasearch.models.data_models import SearchResult


logger = logging.getLogger(__name__)


def page_offsets(page: int) -> Optional[Tuple[int, int]]:
    """페이지 번호에 해당하는 업스트림 오프셋 (s, dc)

    0, 1페이지는 오프셋 없이 첫 페이지를 요청한다.
    2페이지 이상은 n = ceil(page / 2) 기준으로 (n * 30, n * 30 + 1).

    Returns:
        (s, dc) 튜플. 첫 페이지이면 None
    """
    if page in (0, 1):
        return None
    n = page // 2 + page % 2
    return n * 30, n * 30 + 1


class DuckDuckGo(SearchEngine):
    """DuckDuckGo HTML 검색 어댑터"""

    FIRST_PAGE_URL = "https://html.duckduckgo.com/html/?q={query}&s=&dc=&v=1&o=json&api=/d.js"
    PAGE_URL = "https://duckduckgo.com/html/?q={query}&s={start}&dc={offset}&v=1&o=json&api=/d.js"

    # 결과 추출용 선택자
    NO_RESULTS_SELECTOR = ".no-results"
    RESULT_SELECTOR = ".result"
    TITLE_SELECTOR = ".result__a"
    URL_SELECTOR = ".result__url"
    DESCRIPTION_SELECTOR = ".result__snippet"

    @property
    def name(self) -> str:
        return "duckduckgo"

    def build_url(self, query: str, page: int) -> str:
        """검색 요청 URL 생성"""
        encoded = quote_plus(query)
        offsets = page_offsets(page)
        if offsets is None:
            return self.FIRST_PAGE_URL.format(query=encoded)
        start, offset = offsets
        return self.PAGE_URL.format(query=encoded, start=start, offset=offset)

    def build_headers(self, user_agent: str) -> Dict[str, str]:
        """요청 헤더 생성

        kl=wt-wt 쿠키로 지역 설정을 '전 세계'로 고정한다.

        Raises:
            UnexpectedError: 헤더 값에 개행 문자가 포함된 경우
        """
        headers = {
            "User-Agent": user_agent,
            "Referer": "https://google.com/",
            "Content-Type": "application/x-www-form-urlencoded",
            "Cookie": "kl=wt-wt",
        }
        for header, value in headers.items():
            if "\r" in value or "\n" in value:
                raise UnexpectedError(f"잘못된 헤더 값: {header}={value!r}", self.name)
        return headers

    async def fetch(
        self,
        query: str,
        page: int,
        user_agent: str,
        request_timeout: int
    ) -> Dict[str, SearchResult]:
        """DuckDuckGo 검색 수행

        Raises:
            UnexpectedError: 잘못된 입력, 헤더, 선택자
            EmptyResultSet: 검색 결과 없음
            RequestError: 업스트림 요청 실패 (EngineTimeoutError 포함)
        """
        self.validate_request(page, request_timeout)

        url = self.build_url(query, page)
        headers = self.build_headers(user_agent)

        logger.info(f"DuckDuckGo 검색: query={query!r}, page={page}")
        html = await self.fetch_html_from_upstream(url, headers, request_timeout)

        results = self.parse_results(html)
        logger.info(f"DuckDuckGo 검색 완료: {len(results)}개 결과")
        return results

    def parse_results(self, html: str) -> Dict[str, SearchResult]:
        """결과 페이지 HTML 파싱

        제목, URL, 설명 중 하나라도 없는 결과 항목은 건너뛴다.

        Raises:
            EmptyResultSet: 결과 없음 표시가 있는 경우
        """
        no_results = self.compile_selector(self.NO_RESULTS_SELECTOR)
        result_selector = self.compile_selector(self.RESULT_SELECTOR)
        title_selector = self.compile_selector(self.TITLE_SELECTOR)
        url_selector = self.compile_selector(self.URL_SELECTOR)
        description_selector = self.compile_selector(self.DESCRIPTION_SELECTOR)

        soup = BeautifulSoup(html, "lxml")

        if no_results.select_one(soup) is not None:
            raise EmptyResultSet(self.name)

        results: Dict[str, SearchResult] = {}
        skipped = 0

        for item in result_selector.select(soup):
            title_elem = title_selector.select_one(item)
            url_elem = url_selector.select_one(item)
            description_elem = description_selector.select_one(item)

            if title_elem is None or url_elem is None or description_elem is None:
                skipped += 1
                continue

            # 업스트림은 스킴 없이 호스트만 표시한다
            url = f"https://{url_elem.get_text().strip()}".strip()
            results[url] = SearchResult(
                title=title_elem.get_text().strip(),
                url=url,
                description=description_elem.get_text().strip(),
                engines=frozenset([self.name])
            )

        if skipped:
            logger.warning(f"DuckDuckGo 결과 항목 {skipped}개 건너뜀 (필수 요소 누락)")

        return results
