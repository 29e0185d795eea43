"""
사용자 정의 예외 및 에러 처리 모듈

이 모듈은 GeoJSON 캐시의 모든 에러와 예외를 정의합니다.
피처 해시와 카탈로그(메타데이터) 해시 사이의 존재 보장 규칙을
위반했을 때 어떤 종류의 에러가 발생하는지 명확하게 구분합니다.

주요 구성요소:
    - ErrorCode: 에러 코드 열거형
    - GeoCacheError: 모든 캐시 예외의 기본 클래스
    - 구체적인 예외 클래스들: 중복, 미존재, 충돌, 미지원, 직렬화
    - ErrorHandler: 구조화된 로깅용 에러 컨텍스트 생성기

저장소 오류:
    Redis 연결 실패나 I/O 오류는 래핑하지 않고 redis.RedisError
    그대로 호출자에게 전파됩니다.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(Enum):
    """
    캐시 에러 코드 열거형

    각 코드는 호출자가 재시도 정책을 결정할 수 있도록
    에러의 종류(kind)를 나타냅니다.
    """

    INTERNAL_ERROR = "internal_error"  # 분류되지 않은 내부 에러
    ALREADY_EXISTS = "already_exists"  # 이미 존재하는 레코드에 삽입 시도
    RESOURCE_NOT_FOUND = "resource_not_found"  # 필요한 레코드가 없음
    CONFLICT = "conflict"  # 피처 데이터가 남아있는 상태에서 카탈로그 삭제
    NOT_SUPPORTED = "not_supported"  # 스트리밍 등 미지원 기능
    SERIALIZATION_ERROR = "serialization_error"  # 저장된 JSON 파싱 실패


class GeoCacheError(Exception):
    """
    모든 GeoJSON 캐시 에러의 기본 예외 클래스

    Attributes:
        message (str): 에러 메시지
        code (ErrorCode): 에러 코드
        data (dict): 추가 에러 정보 (리소스 키, 필드 등)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        캐시 에러 초기화

        Args:
            message: 호출자에게 표시될 에러 메시지
            code: 에러 코드 (기본값: INTERNAL_ERROR)
            data: 디버깅에 유용한 추가 정보 (선택사항)
        """
        self.message = message
        self.code = code
        self.data = data or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        에러를 직렬화 가능한 딕셔너리로 변환

        data 필드는 값이 있을 때만 포함됩니다.

        Returns:
            Dict[str, Any]: code, message, data(선택사항)
        """
        error_dict = {"code": self.code.value, "message": self.message}
        if self.data:
            error_dict["data"] = self.data
        return error_dict


def _resource_data(
    key: Optional[str], field: Optional[str], data: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    data = dict(data or {})
    if key is not None:
        data["resource_key"] = key
    if field:
        data["field"] = field
    return data


class AlreadyExistsError(GeoCacheError):
    """
    중복 삽입 에러

    insert 또는 catalog insert가 이미 레코드가 있는 키를 대상으로 할 때
    발생합니다.
    """

    def __init__(
        self,
        message: str = "Cache key is already in use",
        key: Optional[str] = None,
        field: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.ALREADY_EXISTS,
            data=_resource_data(key, field, data),
        )


class ResourceNotFoundError(GeoCacheError):
    """
    리소스를 찾을 수 없음 에러

    update, delete, retrieve, catalog update/retrieve가 존재하지 않는
    레코드를 요구할 때 발생합니다. 404 HTTP 상태 코드와 유사한 개념입니다.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        key: Optional[str] = None,
        field: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.RESOURCE_NOT_FOUND,
            data=_resource_data(key, field, data),
        )


class ConflictError(GeoCacheError):
    """
    참조 보호 위반 에러

    피처 데이터가 아직 캐시에 남아있는데 카탈로그 항목을 삭제하려 할 때
    발생합니다. 데이터를 먼저 삭제해야 카탈로그를 지울 수 있습니다.
    """

    def __init__(
        self,
        message: str = "Cannot delete catalog entry while data is still in cache",
        key: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            data=_resource_data(key, None, data),
        )


class NotSupportedError(GeoCacheError):
    """미지원 기능 호출 에러 (스트리밍 조회 등)"""

    def __init__(
        self,
        message: str = "Streaming not yet supported",
        operation: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        data = dict(data or {})
        if operation:
            data["operation"] = operation
        super().__init__(message=message, code=ErrorCode.NOT_SUPPORTED, data=data)


class SerializationError(GeoCacheError):
    """
    저장된 값 역직렬화 실패 에러

    저장소에 있는 값이 올바른 JSON이 아닐 때 발생합니다.
    레코드 부재(ResourceNotFoundError)와는 구분되어 보고됩니다.
    """

    def __init__(
        self,
        message: str = "Error parsing JSON",
        key: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        data = _resource_data(key, field, data)
        if value is not None:
            # 긴 값은 100자로 잘라서 로그에 과도한 데이터 방지
            data["value"] = str(value)[:100]
        super().__init__(
            message=message, code=ErrorCode.SERIALIZATION_ERROR, data=data
        )


class ErrorHandler:
    """
    에러 컨텍스트 유틸리티

    예외를 구조화된 로깅에 사용할 수 있는 딕셔너리로 변환합니다.
    """

    @staticmethod
    def create_error_context(
        error: Exception,
        operation: Optional[str] = None,
        key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        로깅을 위한 에러 컨텍스트 생성

        Args:
            error: 발생한 예외
            operation: 실패한 캐시 작업 (예: "insert", "catalog_delete")
            key: 대상 리소스 키

        Returns:
            Dict[str, Any]: 에러 컨텍스트 딕셔너리
                - error_type: 예외 클래스 이름
                - error_message: 에러 메시지
                - operation / resource_key: 제공된 경우
                - error_code / error_data: GeoCacheError인 경우
        """
        context = {"error_type": type(error).__name__, "error_message": str(error)}

        if operation:
            context["operation"] = operation
        if key is not None:
            context["resource_key"] = key

        if isinstance(error, GeoCacheError):
            context["error_code"] = error.code.value
            context["error_data"] = error.data

        return context
