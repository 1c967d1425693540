"""
메타검색 데모 스크립트

검색어 하나로 설정된 엔진을 호출하고 결과를 출력한다.
Redis에 연결할 수 없으면 캐시 없이 검색한다.

사용법: python demo_search.py "검색어" [페이지]
"""

import asyncio
import logging
import sys

from redis.exceptions import RedisError

from metasearch import MetasearchConfig, RedisCache, SearchEngineManager

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def demo_search(query: str, page: int) -> None:
    config = MetasearchConfig.from_env()

    cache = None
    try:
        cache = await RedisCache.connect(config.redis_url, config.pool_size, config.cache_ttl)
    except (RedisError, OSError) as e:
        logger.warning(f"Redis 연결 실패, 캐시 없이 진행: {e}")

    manager = SearchEngineManager(config, cache=cache)
    try:
        results = await manager.search(query, page)
    finally:
        if cache is not None:
            await cache.close()

    print("\n" + "=" * 60)
    print(f"검색어: {query} (page={page})")
    print("=" * 60)

    for i, result in enumerate(results.results.values(), 1):
        print(f"\n  [{i}] {result.title}")
        print(f"      URL: {result.url}")
        print(f"      엔진: {', '.join(sorted(result.engines))}")
        print(f"      {result.description[:100]}")

    if results.engine_errors:
        print("\n실패한 엔진:")
        for engine, error in results.engine_errors.items():
            print(f"  - {engine}: {error}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(demo_search(sys.argv[1], int(sys.argv[2]) if len(sys.argv) > 2 else 0))
