"""
설정 관리 모듈

캐시 프로바이더의 설정을 환경 변수에서 로드하고 검증합니다.

주요 구성요소:
    - Settings: 전체 설정 (저장소 + 로깅)
    - StoreSettings / LoggingConfig: 컴포넌트별 설정
    - validate_settings: 설정 검증기
"""

from .settings import LoggingConfig, Settings, StoreSettings
from .validators import validate_settings

__all__ = [
    "Settings",
    "StoreSettings",
    "LoggingConfig",
    "validate_settings",
]
