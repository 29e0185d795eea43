"""
설정 검증 모듈

저장소 URL, 네임스페이스 형식, 로그 레벨을 검증합니다.
"""

import re
from typing import List, Tuple
from urllib.parse import urlparse

import structlog

from .settings import Settings

logger = structlog.get_logger(__name__)

REDIS_SCHEMES = ("redis", "rediss", "unix")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def validate_settings(settings: Settings) -> Tuple[bool, List[str]]:
    """
    전체 설정 검증

    Args:
        settings: 검증할 설정

    Returns:
        (유효 여부, 오류 메시지 목록)
    """
    errors = []
    errors.extend(_validate_store_settings(settings))
    errors.extend(_validate_logging_settings(settings))

    is_valid = len(errors) == 0
    if not is_valid:
        logger.error("설정 검증 실패", error_count=len(errors), errors=errors[:5])
    return is_valid, errors


def _validate_store_settings(settings: Settings) -> List[str]:
    """저장소 설정 검증"""
    errors = []
    store = settings.store

    if not store.redis_url:
        errors.append("REDIS_URL이 설정되지 않음")
    elif urlparse(store.redis_url).scheme not in REDIS_SCHEMES:
        errors.append(f"지원되지 않는 Redis URL 스킴: {store.redis_url}")

    if store.namespace is not None and not re.match(r"^[A-Za-z0-9_.:-]+$", store.namespace):
        errors.append(f"잘못된 네임스페이스 형식: {store.namespace}")

    return errors


def _validate_logging_settings(settings: Settings) -> List[str]:
    """로깅 설정 검증"""
    if settings.logging.log_level.upper() not in LOG_LEVELS:
        return [f"알 수 없는 로그 레벨: {settings.logging.log_level}"]
    return []
