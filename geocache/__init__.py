"""
GeoJSON 피처 컬렉션용 Redis 캐시 프로바이더

피처 데이터와 카탈로그 메타데이터를 Redis 해시 두 개에 나누어 저장하고,
두 레코드 사이의 존재 보장 규칙을 지키는 캐시 코디네이터를 제공합니다.

사용 예시:
    ```python
    from geocache import GeoJSONCache, CacheConfig

    async with GeoJSONCache(CacheConfig(redis_url="redis://localhost:6379/0")) as cache:
        await cache.insert("parcels", feature_collection, {"ttl": 600})
        geojson = await cache.retrieve("parcels")
    ```
"""

__version__ = "1.0.0"

from .cache import (  # noqa: E402
    CacheConfig,
    CacheHealth,
    CacheOptions,
    Catalog,
    FieldStore,
    GeoJSONCache,
    MemoryFieldStore,
    RedisFieldStore,
)

__all__ = [
    "__version__",
    "GeoJSONCache",
    "Catalog",
    "CacheConfig",
    "CacheOptions",
    "CacheHealth",
    "FieldStore",
    "RedisFieldStore",
    "MemoryFieldStore",
]
