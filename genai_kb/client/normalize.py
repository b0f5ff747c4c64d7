"""업스트림 응답 봉투(envelope) 정규화.

같은 리소스라도 업스트림은 최상위 배열, 이름이 다른 필드,
data 아래 중첩 등 여러 형태로 응답합니다. 알려진 형태를 정해진 순서로
검사하고, 일치하는 형태가 없으면 빈 컨테이너를 반환합니다.
"""

from typing import Any, Sequence


def extract_list(payload: Any, keys: Sequence[str]) -> list:
    """응답에서 리소스 배열을 꺼냅니다.

    검사 순서:
        1. 최상위 배열
        2. 최상위의 각 키 (keys 순서)
        3. data 자체가 배열
        4. data 아래의 각 키 (keys 순서)

    Args:
        payload: 디코딩된 응답 본문.
        keys: 배열이 들어 있을 수 있는 필드 이름 (우선순위 순).

    Returns:
        리소스 배열. 알려진 형태가 없으면 빈 리스트.
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []

    for key in keys:
        if isinstance(payload.get(key), list):
            return payload[key]

    data = payload.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            if isinstance(data.get(key), list):
                return data[key]

    return []


def extract_object(payload: Any, keys: Sequence[str]) -> dict:
    """응답에서 단일 리소스 객체를 꺼냅니다.

    검사 순서:
        1. 최상위의 각 키 (keys 순서)
        2. data 아래의 각 키 (keys 순서)
        3. data 자체가 객체
        4. 최상위 객체 자체

    Args:
        payload: 디코딩된 응답 본문.
        keys: 객체가 들어 있을 수 있는 필드 이름 (우선순위 순).

    Returns:
        리소스 객체. 객체 형태가 아니면 빈 딕셔너리.
    """
    if not isinstance(payload, dict):
        return {}

    for key in keys:
        if isinstance(payload.get(key), dict):
            return payload[key]

    data = payload.get("data")
    if isinstance(data, dict):
        for key in keys:
            if isinstance(data.get(key), dict):
                return data[key]
        return data

    return payload
