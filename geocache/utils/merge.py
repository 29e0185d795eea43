"""
카탈로그 메타데이터 병합 유틸리티

부분 메타데이터 업데이트가 관련 없는 중첩 필드를 덮어쓰지 않도록
딕셔너리는 키 단위로 재귀 병합합니다. 각 말단 값은 업데이트 쪽이 우선합니다.
리스트는 말단 값으로 취급하여 통째로 교체됩니다.
"""

from collections.abc import Mapping
from typing import Any


def deep_merge(base: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """
    base에 update를 병합한 새 딕셔너리 반환

    두 입력 모두 변경하지 않습니다.

    사용 예시:
    >>> deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}, "b": 4})
    {'a': {'x': 1, 'y': 3}, 'b': 4}
    """
    merged: dict[str, Any] = {k: _copy(v) for k, v in base.items()}

    for key, value in update.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = _copy(value)

    return merged


def _copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy(v) for v in value]
    return value
