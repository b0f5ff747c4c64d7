"""GenAI KB Sync 유틸리티 모듈.

유틸리티 구성:
    Retry:
        - RetryConfig: 상한 있는 지수 백오프 설정
        - STATE_CONFLICT_CONFIG: 상태 저장 충돌용 기본 설정
        - create_retrying: 반복문용 Retrying 생성
"""

from .retry import STATE_CONFLICT_CONFIG, RetryConfig, create_retrying

__all__ = [
    "RetryConfig",
    "STATE_CONFLICT_CONFIG",
    "create_retrying",
]
