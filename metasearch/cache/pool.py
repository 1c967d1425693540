"""
Redis 커넥션 풀

- 고정 크기의 커넥션을 생성 시점에 병렬로 미리 연결
- 드라이버별 커넥션 끊김 판별 함수 제공
"""

import asyncio
import logging
from typing import Any, Callable, Sequence

from redis import exceptions as redis_exceptions
from redis.asyncio import Redis


logger = logging.getLogger(__name__)


# 소켓 수준에서 커넥션이 더 이상 쓸 수 없음을 뜻하는 OS 오류
_DROPPED_OS_ERRORS = (BrokenPipeError, ConnectionResetError, ConnectionAbortedError)


def is_connection_dropped(error: BaseException) -> bool:
    """redis 드라이버 오류가 커넥션 끊김인지 판별

    Args:
        error: Redis 명령 실행 중 발생한 예외

    Returns:
        커넥션 끊김이면 True. 타임아웃, 응답/프로토콜 오류 등은 False
    """
    # AuthenticationError는 ConnectionError의 하위 클래스지만 재시도해도 실패한다
    if isinstance(error, redis_exceptions.AuthenticationError):
        return False
    return isinstance(error, (redis_exceptions.ConnectionError,) + _DROPPED_OS_ERRORS)


class ConnectionPool:
    """고정 크기 Redis 커넥션 풀

    커넥션 목록은 생성 후 변경되지 않는다. 끊어진 커넥션을 교체하지 않으며,
    각 커넥션이 다음 명령에서 스스로 재연결한다고 가정한다.

    connections의 각 원소는 비동기 get(key), set(key, value, ex=초)를 제공해야 한다.
    """

    def __init__(
        self,
        connections: Sequence[Any],
        is_dropped: Callable[[BaseException], bool] = is_connection_dropped
    ):
        """ConnectionPool 초기화

        Args:
            connections: 미리 연결된 커넥션 목록
            is_dropped: 커넥션 끊김 판별 함수
        """
        if not connections:
            raise ValueError("커넥션 풀은 최소 1개의 커넥션이 필요합니다.")
        self._connections = tuple(connections)
        self.is_dropped = is_dropped

    @classmethod
    async def connect(cls, redis_url: str, pool_size: int) -> "ConnectionPool":
        """pool_size개의 Redis 커넥션을 병렬로 연결하여 풀 생성

        하나라도 실패하면 이미 연결된 커넥션을 모두 닫고 예외를 그대로 전파한다.

        Args:
            redis_url: Redis 접속 URL
            pool_size: 커넥션 수

        Returns:
            연결이 완료된 ConnectionPool
        """
        if pool_size < 1:
            raise ValueError(f"pool_size는 1 이상이어야 합니다: {pool_size}")

        clients = [
            Redis.from_url(redis_url, decode_responses=True, single_connection_client=True)
            for _ in range(pool_size)
        ]
        outcomes = await asyncio.gather(
            *(client.ping() for client in clients),
            return_exceptions=True
        )
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        if failures:
            logger.error(f"Redis 커넥션 풀 생성 실패: {len(failures)}/{pool_size}개 연결 실패 ({redis_url})")
            await asyncio.gather(*(client.aclose() for client in clients), return_exceptions=True)
            raise failures[0]

        logger.info(f"Redis 커넥션 풀 생성: {pool_size}개 커넥션 ({redis_url})")
        return cls(clients)

    @property
    def connections(self) -> tuple:
        return self._connections

    @property
    def size(self) -> int:
        return len(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    def __getitem__(self, index: int) -> Any:
        return self._connections[index]

    async def close(self) -> None:
        """풀의 모든 커넥션 종료"""
        closers = [
            getattr(connection, "aclose", None) or getattr(connection, "close", None)
            for connection in self._connections
        ]
        outcomes = await asyncio.gather(
            *(closer() for closer in closers if closer is not None),
            return_exceptions=True
        )
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        if failures:
            logger.error(f"Redis 커넥션 종료 실패: {len(failures)}/{self.size}개")
            raise failures[0]
        logger.info(f"Redis 커넥션 풀 종료: {self.size}개 커넥션")
