"""
Redis 기반 GeoJSON 캐시 코디네이터

이 모듈은 피처 데이터 해시와 카탈로그(메타데이터) 해시라는 두 개의
논리적으로 분리된 레코드를 하나의 캐시 프로바이더로 묶습니다.
호스트 데이터 서비스 프레임워크는 이 클래스의 식별 속성과
공개 메서드 시그니처에 의존합니다.

일관성 규칙:
    - 모든 공개 작업은 먼저 피처 필드의 존재 여부를 확인합니다
    - 쓰기 순서는 항상 피처 → 메타데이터
    - 피처 레코드가 있으면 메타데이터 레코드도 반드시 존재
    - 삭제는 소프트 삭제: 피처만 제거하고 메타데이터는 status="deleted"로 유지

동시성:
    여러 저장소 호출에 걸친 트랜잭션이나 잠금은 없습니다.
    같은 키에 대한 동시 insert는 둘 다 존재 확인을 통과할 수 있으며
    (마지막 쓰기가 승리), upsert의 확인 후 분기도 마찬가지입니다.
    CacheConfig.strict_insert=True이면 insert만 HSETNX로 원자화됩니다.

만료:
    expires 필드는 참고용 메타데이터일 뿐이며 이 모듈은 만료된 데이터를
    제거하지 않습니다.

의존성:
    - redis: Redis 비동기 클라이언트 (RedisFieldStore)
    - pydantic: 설정 및 옵션 검증
    - structlog: 구조화된 로깅
"""

import copy
from collections.abc import Mapping
from typing import Any, Optional, Self, Type, TypeAlias

import structlog

from geocache import __version__
from geocache.cache.catalog import FEATURES, METADATA, Catalog
from geocache.cache.models import CacheConfig, CacheHealth, CacheOptions, now_ms
from geocache.cache.store import FieldStore, RedisFieldStore
from geocache.exceptions import (
    AlreadyExistsError,
    ErrorHandler,
    NotSupportedError,
    ResourceNotFoundError,
    SerializationError,
)

GeoJSON: TypeAlias = Mapping[str, Any] | list[dict[str, Any]]
Options: TypeAlias = CacheOptions | Mapping[str, Any] | None


def extract_features(geojson: GeoJSON) -> list[Any]:
    """
    FeatureCollection 또는 피처 배열에서 피처 목록 추출

    features 키가 없는 딕셔너리는 빈 피처 목록으로 취급합니다.
    """
    if isinstance(geojson, Mapping):
        return list(geojson.get("features") or [])
    return list(geojson)


def extract_metadata(geojson: GeoJSON) -> Optional[dict[str, Any]]:
    """호출자가 제공한 메타데이터의 복사본 반환 (없으면 None)"""
    if isinstance(geojson, Mapping) and geojson.get("metadata") is not None:
        return copy.deepcopy(dict(geojson["metadata"]))
    return None


class GeoJSONCache:
    """
    GeoJSON 피처 컬렉션 캐시 프로바이더

    호스트 프레임워크는 name, type, version 클래스 속성으로
    이 프로바이더를 발견합니다.

    사용 예시:
        ```python
        async with GeoJSONCache(CacheConfig(redis_url="redis://localhost:6379/0")) as cache:
            await cache.insert("parcels", feature_collection, {"ttl": 600})
            geojson = await cache.retrieve("parcels")
            await cache.delete("parcels")
            await cache.catalog_delete("parcels")
        ```

    Attributes:
        config (CacheConfig): 캐시 설정
        store (FieldStore): 저장소 접근 계층
        catalog (Catalog): 메타데이터 관리자 (같은 저장소 공유)
    """

    name = "Redis Cache"
    type = "cache"
    version = __version__

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        store: Optional[FieldStore] = None,
    ) -> None:
        """
        캐시 코디네이터 초기화

        Args:
            config: 캐시 설정 (기본값: CacheConfig())
            store: 저장소 구현체 (없으면 config로 RedisFieldStore 생성)
        """
        self.config = config or CacheConfig()
        self.store = store or RedisFieldStore(
            self.config.redis_url, namespace=self.config.namespace
        )
        self.catalog = Catalog(self.store)
        self.logger = structlog.get_logger(self.__class__.__name__)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> Self:
        await self.store.connect()
        self._log_operation("connect", backend=self.store.backend_name)
        return self

    async def disconnect(self) -> None:
        """
        저장소 연결 종료

        여러 번 호출되어도 실제 종료는 한 번만 수행됩니다.
        종료 시점에 진행 중인 작업의 완료는 보장하지 않습니다.
        """
        if self._closed:
            return
        self._closed = True
        await self.store.close()
        self._log_operation("disconnect", backend=self.store.backend_name)

    async def __aenter__(self) -> Self:
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.disconnect()

    def _build_metadata(
        self, metadata: Optional[Mapping[str, Any]], options: CacheOptions
    ) -> dict[str, Any]:
        record = dict(metadata or {})
        now = now_ms()
        expires = options.expires_at(now)
        if expires is not None:
            record["expires"] = expires
        record["updated"] = now
        return record

    async def insert(self, key: str, geojson: GeoJSON, options: Options = None) -> None:
        """
        새 리소스 저장

        피처 목록을 먼저 저장한 뒤 geojson["metadata"](없으면 빈 레코드)에
        updated와 선택적 expires를 설정하여 메타데이터를 저장합니다.

        Args:
            key: 리소스 키
            geojson: FeatureCollection 딕셔너리 또는 피처 배열
            options: {"ttl": 초} 형태의 옵션 (선택사항)

        Raises:
            AlreadyExistsError: 피처 레코드가 이미 존재하는 경우
        """
        opts = CacheOptions.coerce(options)
        features = extract_features(geojson)

        if self.config.strict_insert:
            if not await self.store.set_field_if_absent(FEATURES, key, features):
                raise AlreadyExistsError(key=key, field=FEATURES)
        else:
            if await self.store.field_exists(key, FEATURES):
                raise AlreadyExistsError(key=key, field=FEATURES)
            await self.store.set_field(FEATURES, key, features)

        metadata = self._build_metadata(extract_metadata(geojson), opts)
        await self.store.set_field(METADATA, key, metadata)
        self._log_operation("insert", key=key, feature_count=len(features), ttl=opts.ttl)

    async def update(self, key: str, geojson: GeoJSON, options: Options = None) -> None:
        """
        기존 리소스의 피처를 전부 교체

        메타데이터가 제공되면 그것으로 교체하고, 없으면 기존 메타데이터를
        유지한 채 updated와 (ttl이 있으면) expires만 갱신합니다.

        Raises:
            ResourceNotFoundError: 피처 레코드가 없는 경우
        """
        opts = CacheOptions.coerce(options)
        if not await self.store.field_exists(key, FEATURES):
            raise ResourceNotFoundError(key=key, field=FEATURES)

        features = extract_features(geojson)
        await self.store.set_field(FEATURES, key, features)

        metadata = extract_metadata(geojson)
        if metadata is None:
            metadata = await self.store.get_field(METADATA, key)
        await self.store.set_field(METADATA, key, self._build_metadata(metadata, opts))
        self._log_operation("update", key=key, feature_count=len(features), ttl=opts.ttl)

    async def upsert(self, key: str, geojson: GeoJSON, options: Options = None) -> None:
        """
        존재하면 update, 없으면 insert

        존재 확인과 분기 사이에 다른 호출자가 끼어들 수 있습니다.
        """
        if await self.store.field_exists(key, FEATURES):
            await self.update(key, geojson, options)
        else:
            await self.insert(key, geojson, options)

    async def append(self, key: str, geojson: GeoJSON, options: Options = None) -> None:
        """
        기존 피처 앞에 새 피처를 추가 (새 피처 + 기존 피처 순서)

        메타데이터는 updated만 병합 갱신하며 expires는 건드리지 않습니다.

        Raises:
            ResourceNotFoundError: 기존 피처를 읽을 수 없는 경우
        """
        features = extract_features(geojson)
        existing = await self.store.get_field(FEATURES, key)
        if existing is None:
            raise ResourceNotFoundError(key=key, field=FEATURES)

        await self.store.set_field(FEATURES, key, features + existing)
        await self.catalog.update(key, {"updated": now_ms()})
        self._log_operation(
            "append", key=key, appended=len(features), total=len(features) + len(existing)
        )

    async def retrieve(self, key: str, options: Options = None) -> dict[str, Any]:
        """
        리소스를 FeatureCollection 형태로 조회

        피처가 없거나 저장소 읽기에 실패하면 모두 ResourceNotFoundError로
        보고합니다 (원인 예외는 __cause__로 연결). 손상된 JSON은
        SerializationError로 구분하여 전파합니다.

        Returns:
            dict[str, Any]: {"type": "FeatureCollection", "metadata": ..., "features": [...]}
        """
        try:
            features = await self.store.get_field(FEATURES, key)
        except SerializationError:
            raise
        except Exception as e:
            self.logger.debug(
                "피처 조회 실패",
                **ErrorHandler.create_error_context(e, operation="retrieve", key=key),
            )
            raise ResourceNotFoundError(key=key, field=FEATURES) from e
        if features is None:
            raise ResourceNotFoundError(key=key, field=FEATURES)

        metadata = await self.store.get_field(METADATA, key)
        return {"type": "FeatureCollection", "metadata": metadata, "features": features}

    def create_stream(self, key: str, options: Options = None) -> Any:
        raise NotSupportedError(operation="create_stream")

    async def delete(self, key: str) -> None:
        """
        소프트 삭제

        피처 레코드를 제거하고 메타데이터에 status="deleted"를 병합합니다.
        메타데이터 레코드가 없었다면 새로 만듭니다.

        Raises:
            ResourceNotFoundError: 피처 레코드가 없는 경우
        """
        if not await self.store.field_exists(key, FEATURES):
            raise ResourceNotFoundError(key=key, field=FEATURES)

        await self.store.delete_field(key, FEATURES)
        await self.catalog.update(
            key, {"status": "deleted", "updated": now_ms()}, create_missing=True
        )
        self._log_operation("delete", key=key)

    async def catalog_insert(self, key: str, metadata: Mapping[str, Any]) -> None:
        await self.catalog.insert(key, metadata)

    async def catalog_update(
        self, key: str, update: Mapping[str, Any]
    ) -> dict[str, Any]:
        return await self.catalog.update(key, update)

    async def catalog_retrieve(self, key: str) -> dict[str, Any]:
        return await self.catalog.retrieve(key)

    async def catalog_delete(self, key: str) -> None:
        await self.catalog.delete(key)

    async def health_check(self) -> CacheHealth:
        """
        저장소 상태 확인

        Returns:
            CacheHealth: ping 결과와 백엔드 정보
        """
        details = {
            "backend": self.store.backend_name,
            "features_hash": self.store.hash_name(FEATURES),
            "metadata_hash": self.store.hash_name(METADATA),
        }
        try:
            healthy = await self.store.ping()
        except Exception as e:
            return CacheHealth(
                healthy=False, service_name=self.name, details=details, error=str(e)
            )
        return CacheHealth(healthy=healthy, service_name=self.name, details=details)

    def _log_operation(self, operation: str, **kwargs: Any) -> None:
        self.logger.debug(
            "cache_operation",
            operation=operation,
            cache_type=self.__class__.__name__,
            **kwargs,
        )
