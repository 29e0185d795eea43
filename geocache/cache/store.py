"""
해시 필드 저장소 접근 계층

이 모듈은 캐시 코디네이터가 저장소 백엔드와 접촉하는 유일한 지점입니다.
다른 백엔드로 옮기려면 FieldStore 구현체만 교체하면 됩니다.

저장 구조:
    {namespace}:features  →  { resource_key: "<JSON 배열>" }
    {namespace}:metadata  →  { resource_key: "<JSON 객체>" }
    namespace가 없으면 해시 이름은 "features", "metadata" 그대로 사용

주요 컴포넌트:
    FieldStore: 추상 기본 클래스 (직렬화 규칙 포함)
    RedisFieldStore: redis.asyncio 기반 구현체
    MemoryFieldStore: 프로세스 내 딕셔너리 기반 구현체 (테스트, 로컬 개발)

직렬화:
    - 쓰기: json.dumps(ensure_ascii=False)
    - 읽기: json.loads, 실패 시 SerializationError
    - 필드 부재: None 반환 (에러 아님)

오류 처리:
    - Redis 연결/타임아웃 오류는 로깅 후 그대로 재발생
    - 재시도 없음 (재시도 정책은 호출자 책임)
"""

import asyncio
import json
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import redis.asyncio as redis
import structlog

from geocache.exceptions import ErrorHandler, SerializationError


class FieldStore(ABC):
    """
    해시 필드 저장소 추상 기본 클래스

    field 인자는 레코드 종류("features" 또는 "metadata")를,
    key 인자는 호출자가 지정한 리소스 키를 의미합니다.
    모든 구현체는 값을 JSON 텍스트로 저장해야 합니다.

    Attributes:
        namespace (str | None): 해시 이름 접두사
        logger (structlog.BoundLogger): 구조화된 로거 인스턴스
    """

    backend_name = "abstract"

    def __init__(self, namespace: Optional[str] = None) -> None:
        self.namespace = namespace
        self.logger = structlog.get_logger(self.__class__.__name__)

    def hash_name(self, field: str) -> str:
        """레코드 종류에 대응하는 최상위 해시 이름 반환"""
        if self.namespace:
            return f"{self.namespace}:{field}"
        return field

    def _dump(self, value: Any) -> str:
        return json.dumps(value, ensure_ascii=False)

    def _load(self, field: str, key: str, raw: Optional[str]) -> Any:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.warning(
                "저장된 값 JSON 파싱 실패", field=field, key=key, error=str(e)
            )
            raise SerializationError(key=key, field=field, value=raw) from e

    @abstractmethod
    async def set_field(self, field: str, key: str, value: Any) -> None:
        """값을 직렬화하여 저장 (기존 값은 덮어씀)"""

    @abstractmethod
    async def set_field_if_absent(self, field: str, key: str, value: Any) -> bool:
        """
        필드가 없을 때만 저장

        Returns:
            bool: 저장했으면 True, 이미 존재하면 False
        """

    @abstractmethod
    async def get_field(self, field: str, key: str) -> Any:
        """
        값 조회 및 역직렬화

        Returns:
            Any: 역직렬화된 값, 필드가 없으면 None

        Raises:
            SerializationError: 저장된 값이 올바른 JSON이 아닌 경우
        """

    @abstractmethod
    async def field_exists(self, key: str, field: str) -> bool:
        """필드 존재 여부 확인"""

    @abstractmethod
    async def delete_field(self, key: str, field: str) -> bool:
        """
        필드 삭제

        Returns:
            bool: 필드가 존재했고 삭제되었으면 True
        """

    @abstractmethod
    async def ping(self) -> bool:
        """백엔드 응답 여부 확인"""

    async def connect(self) -> None:
        """백엔드 연결 (필요한 구현체만 재정의)"""

    @abstractmethod
    async def close(self) -> None:
        """연결 종료 및 리소스 정리"""


class RedisFieldStore(FieldStore):
    """
    Redis 해시 기반 필드 저장소

    HSET / HSETNX / HGET / HEXISTS / HDEL 명령만 사용합니다.
    단일 클라이언트(연결 풀 포함)를 동시에 진행되는 모든 작업이 공유하며,
    redis-py가 명령 전송을 직렬화하므로 별도의 잠금은 필요하지 않습니다.

    사용 예시:
        ```python
        store = RedisFieldStore("redis://localhost:6379/0")
        await store.connect()
        await store.set_field("features", "parcels", [feature])
        features = await store.get_field("features", "parcels")
        await store.close()
        ```

    Attributes:
        redis_url (str): Redis 서버 연결 URL
        _client (redis.Redis): Redis 비동기 클라이언트
    """

    backend_name = "redis"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        namespace: Optional[str] = None,
        client: Optional[redis.Redis] = None,
    ) -> None:
        """
        Redis 필드 저장소 초기화

        클라이언트는 즉시 생성되지만 실제 TCP 연결은 첫 명령 또는
        connect() 호출 시 이루어집니다.

        Args:
            redis_url: Redis 서버 연결 URL ("redis://host:port/db")
            namespace: 해시 이름 접두사 (선택사항)
            client: 외부에서 생성한 클라이언트 (테스트용, 선택사항)
        """
        super().__init__(namespace)
        self.redis_url = redis_url
        self._client = client or redis.from_url(redis_url, decode_responses=True)

    @contextmanager
    def _log_transport_errors(
        self, command: str, field: Optional[str] = None, key: Optional[str] = None
    ) -> Iterator[None]:
        try:
            yield
        except (redis.ConnectionError, redis.TimeoutError) as e:
            # 전송 계층 오류는 기록만 하고 호출자에게 그대로 전달
            context = ErrorHandler.create_error_context(e, operation=command, key=key)
            if field:
                context["field"] = field
            self.logger.error("Redis 전송 오류", redis_url=self.redis_url, **context)
            raise

    async def connect(self) -> None:
        """
        Redis 서버 연결 확인

        ping 명령으로 연결 상태를 확인합니다.

        Raises:
            redis.ConnectionError: Redis 서버 연결 실패
            redis.TimeoutError: 연결 시간 초과
        """
        with self._log_transport_errors("PING"):
            await self._client.ping()
        self.logger.info("Redis 저장소 연결 성공", redis_url=self.redis_url)

    async def close(self) -> None:
        await self._client.aclose()
        self.logger.info("Redis 저장소 연결 해제", redis_url=self.redis_url)

    async def ping(self) -> bool:
        with self._log_transport_errors("PING"):
            return bool(await self._client.ping())

    async def set_field(self, field: str, key: str, value: Any) -> None:
        payload = self._dump(value)
        with self._log_transport_errors("HSET", field=field, key=key):
            await self._client.hset(self.hash_name(field), key, payload)

    async def set_field_if_absent(self, field: str, key: str, value: Any) -> bool:
        payload = self._dump(value)
        with self._log_transport_errors("HSETNX", field=field, key=key):
            return bool(await self._client.hsetnx(self.hash_name(field), key, payload))

    async def get_field(self, field: str, key: str) -> Any:
        with self._log_transport_errors("HGET", field=field, key=key):
            raw = await self._client.hget(self.hash_name(field), key)
        return self._load(field, key, raw)

    async def field_exists(self, key: str, field: str) -> bool:
        with self._log_transport_errors("HEXISTS", field=field, key=key):
            return bool(await self._client.hexists(self.hash_name(field), key))

    async def delete_field(self, key: str, field: str) -> bool:
        with self._log_transport_errors("HDEL", field=field, key=key):
            return await self._client.hdel(self.hash_name(field), key) > 0


class MemoryFieldStore(FieldStore):
    """
    프로세스 내 딕셔너리 기반 필드 저장소

    Redis와 동일하게 JSON 텍스트를 저장하므로 직렬화 동작이 같습니다.
    각 호출은 이벤트 루프에 한 번 양보하여, 네트워크 저장소처럼
    동시 작업 사이의 인터리빙이 발생하도록 합니다.
    """

    backend_name = "memory"

    def __init__(self, namespace: Optional[str] = None) -> None:
        super().__init__(namespace)
        self._hashes: dict[str, dict[str, str]] = {}
        self.closed = False

    def _hash(self, field: str) -> dict[str, str]:
        return self._hashes.setdefault(self.hash_name(field), {})

    async def set_field(self, field: str, key: str, value: Any) -> None:
        payload = self._dump(value)
        await asyncio.sleep(0)
        self._hash(field)[key] = payload

    async def set_field_if_absent(self, field: str, key: str, value: Any) -> bool:
        payload = self._dump(value)
        await asyncio.sleep(0)
        fields = self._hash(field)
        if key in fields:
            return False
        fields[key] = payload
        return True

    async def get_field(self, field: str, key: str) -> Any:
        await asyncio.sleep(0)
        return self._load(field, key, self._hash(field).get(key))

    async def field_exists(self, key: str, field: str) -> bool:
        await asyncio.sleep(0)
        return key in self._hash(field)

    async def delete_field(self, key: str, field: str) -> bool:
        await asyncio.sleep(0)
        return self._hash(field).pop(key, None) is not None

    async def ping(self) -> bool:
        return not self.closed

    async def close(self) -> None:
        self.closed = True
