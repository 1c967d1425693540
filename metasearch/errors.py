"""
예외 정의

- PoolError: 캐시 커넥션 풀 관련 오류
- EngineError: 업스트림 검색 엔진 관련 오류
"""

from typing import Optional


class MetasearchError(Exception):
    """metasearch 패키지 최상위 예외"""


class PoolError(MetasearchError):
    """Redis 커넥션 풀 오류"""


class PoolExhaustedError(PoolError):
    """하나의 캐시 연산 동안 풀의 모든 커넥션이 끊어진 경우

    Args:
        key: 실패한 캐시 키
        attempts: 시도한 커넥션 수
    """

    def __init__(self, key: str, attempts: int):
        self.key = key
        self.attempts = attempts
        super().__init__(
            f"커넥션 풀 소진: 모든 커넥션({attempts}개)이 끊어짐 (key={key})"
        )


class CacheBackendError(PoolError):
    """커넥션 끊김이 아닌 Redis 오류 (재시도하지 않음)"""

    def __init__(self, key: str, error: BaseException):
        self.key = key
        self.error = error
        super().__init__(f"Redis 오류 (key={key}): {error!r}")


class EngineError(MetasearchError):
    """검색 엔진 오류

    Args:
        message: 오류 설명
        engine: 오류가 발생한 엔진 이름
    """

    def __init__(self, message: str = "", engine: Optional[str] = None):
        self.engine = engine
        super().__init__(message)


class UnexpectedError(EngineError):
    """내부 구성 오류 (잘못된 헤더, 잘못된 선택자, 잘못된 입력)"""

    def __init__(self, message: str, engine: Optional[str] = None, pattern: Optional[str] = None):
        self.pattern = pattern
        super().__init__(message, engine)


class EmptyResultSet(EngineError):
    """업스트림에 검색 결과가 없음 (오류가 아닌 정상 종료)"""

    def __init__(self, engine: Optional[str] = None):
        super().__init__(f"검색 결과 없음 (engine={engine})", engine)


class RequestError(EngineError):
    """업스트림 요청 실패 (연결 거부, HTTP 오류 응답 등)"""

    def __init__(self, message: str, engine: Optional[str] = None, status: Optional[int] = None):
        self.status = status
        super().__init__(message, engine)


class EngineTimeoutError(RequestError):
    """업스트림 요청 타임아웃"""
