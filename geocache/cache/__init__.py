"""
GeoJSON 캐시 모듈

주요 컴포넌트:
    GeoJSONCache: 피처/메타데이터 일관성을 관리하는 캐시 코디네이터
        - insert / update / upsert / append / retrieve / delete
        - catalog_insert / catalog_update / catalog_retrieve / catalog_delete
    Catalog: 메타데이터 레코드 관리자
    FieldStore: 저장소 접근 추상화
        - RedisFieldStore: redis.asyncio 기반
        - MemoryFieldStore: 프로세스 내 딕셔너리 기반
    CacheConfig / CacheOptions / CacheHealth: Pydantic 모델
"""

from .models import CacheConfig, CacheHealth, CacheOptions
from .store import FieldStore, MemoryFieldStore, RedisFieldStore
from .catalog import Catalog
from .geojson_cache import GeoJSONCache

# 외부에서 사용 가능한 공개 API 정의
__all__ = [
    "GeoJSONCache",
    "Catalog",
    "CacheConfig",
    "CacheOptions",
    "CacheHealth",
    "FieldStore",
    "RedisFieldStore",
    "MemoryFieldStore",
]
