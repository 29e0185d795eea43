"""
카탈로그(메타데이터) 저장소

리소스별 메타데이터 레코드를 피처 데이터와 독립적으로 관리합니다.
메타데이터는 "metadata" 해시에 리소스 키를 필드로 하여 저장되며,
피처 레코드보다 오래 남을 수 있습니다 (소프트 삭제 후 status: "deleted").

참조 보호:
    피처 레코드가 남아있는 동안에는 카탈로그 항목을 삭제할 수 없습니다.
"""

from typing import Any, Mapping

import structlog

from geocache.cache.models import now_ms
from geocache.cache.store import FieldStore
from geocache.exceptions import (
    AlreadyExistsError,
    ConflictError,
    ResourceNotFoundError,
)
from geocache.utils.merge import deep_merge

FEATURES = "features"
METADATA = "metadata"


class Catalog:
    """
    메타데이터 레코드 관리자

    GeoJSONCache.catalog 속성으로 노출되며, 코디네이터와 같은
    FieldStore를 공유합니다.

    사용 예시:
        ```python
        catalog = Catalog(store)
        await catalog.insert("parcels", {"name": "Parcels"})
        await catalog.update("parcels", {"source": {"url": "..."}})
        metadata = await catalog.retrieve("parcels")
        ```
    """

    def __init__(self, store: FieldStore) -> None:
        self.store = store
        self.logger = structlog.get_logger(self.__class__.__name__)

    async def insert(self, key: str, metadata: Mapping[str, Any]) -> None:
        """
        새 메타데이터 레코드 저장

        Raises:
            AlreadyExistsError: 메타데이터 레코드가 이미 존재하는 경우
        """
        if await self.store.field_exists(key, METADATA):
            raise AlreadyExistsError(
                "Catalog key is already in use", key=key, field=METADATA
            )
        record = dict(metadata)
        record["updated"] = now_ms()
        await self.store.set_field(METADATA, key, record)
        self.logger.debug("카탈로그 항목 생성", key=key)

    async def update(
        self,
        key: str,
        update: Mapping[str, Any],
        create_missing: bool = False,
    ) -> dict[str, Any]:
        """
        기존 메타데이터에 부분 업데이트를 재귀적으로 병합

        중첩된 딕셔너리는 키 단위로 병합되고, 그 외의 값은 덮어씁니다.
        병합 후 updated 필드를 갱신합니다.

        Args:
            key: 리소스 키
            update: 병합할 부분 메타데이터
            create_missing: True이면 레코드가 없을 때 빈 레코드에서 시작

        Returns:
            dict[str, Any]: 저장된 병합 결과

        Raises:
            ResourceNotFoundError: 레코드가 없고 create_missing이 False인 경우
        """
        existing = await self.store.get_field(METADATA, key)
        if existing is None:
            if not create_missing:
                raise ResourceNotFoundError(key=key, field=METADATA)
            existing = {}

        metadata = deep_merge(existing, update)
        metadata["updated"] = now_ms()
        await self.store.set_field(METADATA, key, metadata)
        self.logger.debug("카탈로그 항목 갱신", key=key, fields=sorted(update))
        return metadata

    async def retrieve(self, key: str) -> dict[str, Any]:
        """
        메타데이터 레코드 조회

        Raises:
            ResourceNotFoundError: 레코드가 없는 경우
            SerializationError: 저장된 값이 손상된 경우
        """
        metadata = await self.store.get_field(METADATA, key)
        if metadata is None:
            raise ResourceNotFoundError(key=key, field=METADATA)
        return metadata

    async def delete(self, key: str) -> None:
        """
        메타데이터 레코드 삭제

        Raises:
            ConflictError: 피처 데이터가 아직 캐시에 남아있는 경우
        """
        if await self.store.field_exists(key, FEATURES):
            raise ConflictError(key=key)
        await self.store.delete_field(key, METADATA)
        self.logger.debug("카탈로그 항목 삭제", key=key)
