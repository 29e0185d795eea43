"""
캐시 프로바이더 설정 클래스

환경 변수 기반으로 저장소 연결과 로깅 설정을 로드합니다.

환경 변수:
    REDIS_URL: Redis 연결 URL (기본값: redis://localhost:6379/0)
    GEOCACHE_NAMESPACE: 해시 이름 접두사 (기본값: 없음)
    GEOCACHE_STRICT_INSERT: insert에 HSETNX 사용 여부 (기본값: false)
    LOG_LEVEL: 로그 레벨 (기본값: INFO)
    LOG_JSON: JSON 로그 출력 여부 (기본값: false)
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from geocache.cache.models import CacheConfig

logger = structlog.get_logger(__name__)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class StoreSettings:
    """
    저장소 설정

    Redis 연결 정보와 해시 배치 방식을 정의합니다.
    """

    redis_url: str = "redis://localhost:6379/0"
    namespace: Optional[str] = None
    strict_insert: bool = False

    @classmethod
    def from_env(cls) -> "StoreSettings":
        """환경 변수에서 저장소 설정 로드"""
        return cls(
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            namespace=os.getenv("GEOCACHE_NAMESPACE") or None,
            strict_insert=_env_flag("GEOCACHE_STRICT_INSERT"),
        )


@dataclass
class LoggingConfig:
    """
    로깅 설정

    structlog 출력 형식과 레벨을 정의합니다.
    """

    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """환경 변수에서 로깅 설정 로드"""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=_env_flag("LOG_JSON"),
        )


@dataclass
class Settings:
    """
    통합 설정

    사용 예시:
        settings = Settings.from_env()
        ok, errors = settings.validate()
        cache = GeoJSONCache(settings.to_cache_config())
    """

    store: StoreSettings = field(default_factory=StoreSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """환경 변수에서 전체 설정 로드"""
        settings = cls(store=StoreSettings.from_env(), logging=LoggingConfig.from_env())
        logger.info(
            "환경 변수 기반 설정 로드 완료",
            namespace=settings.store.namespace,
            strict_insert=settings.store.strict_insert,
            log_level=settings.logging.log_level,
        )
        return settings

    def to_cache_config(self) -> CacheConfig:
        """GeoJSONCache 생성자에 전달할 CacheConfig 생성"""
        return CacheConfig(
            redis_url=self.store.redis_url,
            namespace=self.store.namespace,
            strict_insert=self.store.strict_insert,
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        설정 유효성 검증

        Returns:
            (유효 여부, 오류 메시지 목록)
        """
        from .validators import validate_settings

        return validate_settings(self)

    def to_dict(self) -> dict[str, Any]:
        """설정을 딕셔너리로 변환"""
        return {"store": self.store.__dict__, "logging": self.logging.__dict__}
