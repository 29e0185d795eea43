"""
캐시 설정 및 데이터 모델

Pydantic을 사용하여 캐시 설정, 작업 옵션, 상태 정보 모델을 정의합니다.

주요 컴포넌트:
    CacheConfig: 저장소 연결 및 동작 설정
    CacheOptions: 작업별 옵션 (ttl)
    CacheHealth: health_check() 결과 모델
"""

import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_ms() -> int:
    """현재 시각 (epoch 기준 밀리초)"""
    return int(time.time() * 1000)


class CacheConfig(BaseModel):
    """
    GeoJSON 캐시 설정 모델

    Attributes:
        redis_url (str): Redis 서버 연결 URL
            형식: "redis://host:port/db"
        namespace (str | None): 해시 이름 접두사
            None이면 "features", "metadata" 해시를 그대로 사용
        strict_insert (bool): insert 시 HSETNX 사용 여부
            True: 존재 확인과 쓰기를 단일 명령으로 처리하여
                  동시 insert 경쟁 상태를 제거
            False: 존재 확인 후 쓰기 (기존 동작, 경쟁 상태 허용)
    """

    redis_url: str = "redis://localhost:6379/0"
    namespace: Optional[str] = None
    strict_insert: bool = False


class CacheOptions(BaseModel):
    """
    캐시 작업 옵션

    인식하는 키는 ttl 하나뿐이며, 그 외의 키는 거부하지 않고 무시합니다.

    Attributes:
        ttl (int | None): 만료까지 남은 시간 (초 단위)
            0 또는 None: 만료 없음 (expires 필드를 설정하지 않음)
            양수: metadata.expires = now + ttl * 1000
    """

    model_config = ConfigDict(extra="ignore")

    ttl: Optional[int] = Field(default=0, ge=0)

    @field_validator("ttl", mode="before")
    @classmethod
    def _none_means_no_expiration(cls, v: Any) -> Any:
        return 0 if v is None else v

    @classmethod
    def coerce(cls, options: "CacheOptions | Mapping[str, Any] | None") -> Self:
        """None, 딕셔너리, CacheOptions 중 무엇이든 CacheOptions로 변환"""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))

    def expires_at(self, now: int) -> Optional[int]:
        """ttl이 설정된 경우 만료 시각(밀리초) 반환"""
        if self.ttl:
            return now + self.ttl * 1000
        return None


class CacheHealth(BaseModel):
    """
    캐시 상태 정보 모델

    Attributes:
        healthy (bool): 저장소 응답 여부
        service_name (str): 캐시 프로바이더 이름
        details (dict[str, Any] | None): 백엔드, 해시 이름 등 추가 정보
        error (str | None): 에러 메시지 (에러 발생 시)
        checked_at (datetime): 상태 확인 시각 (UTC)
    """

    healthy: bool
    service_name: str
    details: dict[str, Any] | None = Field(default=None)
    error: str | None = Field(default=None)
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
