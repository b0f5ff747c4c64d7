"""오류 분류 및 예외 계층.

ErrorKind는 호출자에게 전달되는 구조화된 오류 종류이며,
각 예외는 자신의 error_kind와 재시도 가능 여부를 가집니다.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """호출자에게 노출되는 오류 종류.

    Attributes:
        INVALID_REQUEST: KB 이름, 데이터 소스 경로, 버킷 이름 중 빈 값이 있음
        CONFIG_MISSING: 프로젝트/데이터베이스/임베딩 모델 식별자를 확정하지 못함
        KB_LOOKUP_FAILED: 조정에 필요한 조회 호출 실패
        KB_CREATE_FAILED: KB 생성 요청 거부
        DATASOURCE_ADD_FAILED: 데이터 소스 추가 거부 또는 ID 복구 실패
        DATASOURCE_DELETE_FAILED: 오래된 데이터 소스 삭제 거부
        INDEXING_START_FAILED: 충돌 이외의 이유로 인덱싱 시작 거부
        INDEXING_CONFLICT_UNRESOLVED: 실행 중 충돌이 감지됐으나 활성 작업을 찾지 못함
        INDEXING_FAILED: 플랫폼이 FAILED 상태를 보고함
        INDEXING_TIMEOUT: 폴링 횟수 소진
    """

    INVALID_REQUEST = "INVALID_REQUEST"
    CONFIG_MISSING = "CONFIG_MISSING"
    KB_LOOKUP_FAILED = "KB_LOOKUP_FAILED"
    KB_CREATE_FAILED = "KB_CREATE_FAILED"
    DATASOURCE_ADD_FAILED = "DATASOURCE_ADD_FAILED"
    DATASOURCE_DELETE_FAILED = "DATASOURCE_DELETE_FAILED"
    INDEXING_START_FAILED = "INDEXING_START_FAILED"
    INDEXING_CONFLICT_UNRESOLVED = "INDEXING_CONFLICT_UNRESOLVED"
    INDEXING_FAILED = "INDEXING_FAILED"
    INDEXING_TIMEOUT = "INDEXING_TIMEOUT"


RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.KB_LOOKUP_FAILED,
        ErrorKind.INDEXING_CONFLICT_UNRESOLVED,
        ErrorKind.INDEXING_TIMEOUT,
    }
)


class KBSyncError(Exception):
    """모든 KB 동기화 오류의 기본 예외."""

    def __init__(
        self,
        message: str,
        error_kind: ErrorKind,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_kind = error_kind
        self.details = details or {}
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        """호출자가 전체 작업을 다시 시도해도 되는지 여부."""
        return self.error_kind in RETRYABLE_KINDS


class ConfigMissingError(KBSyncError):
    """KB 생성에 필요한 식별자를 확정하지 못함."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorKind.CONFIG_MISSING, details)


class IndexingConflictError(KBSyncError):
    """인덱싱이 이미 실행 중이지만 활성 작업을 찾지 못함."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorKind.INDEXING_CONFLICT_UNRESOLVED, details)


class IndexingFailedError(KBSyncError):
    """인덱싱 작업이 FAILED 상태로 종료됨."""

    def __init__(self, message: str, job_id: Optional[str] = None):
        super().__init__(message, ErrorKind.INDEXING_FAILED, {"job_id": job_id})
        self.job_id = job_id


class IndexingTimeoutError(KBSyncError):
    """폴링 횟수 안에 종료 상태에 도달하지 못함.

    원격 작업은 계속 진행 중일 수 있으므로 같은 job_id로 다시 폴링하면 됩니다.
    """

    def __init__(self, attempts: int, job_id: Optional[str] = None):
        super().__init__(
            f"Indexing job timed out after {attempts} attempts",
            ErrorKind.INDEXING_TIMEOUT,
            {"attempts": attempts, "job_id": job_id},
        )
        self.attempts = attempts
        self.job_id = job_id


class GenAIAPIError(Exception):
    """GenAI API가 2xx 이외의 응답을 반환함.

    Attributes:
        status_code: HTTP 상태 코드.
        message: 업스트림 오류 메시지.
        payload: 디코딩된 응답 본문 (가능한 경우).
    """

    def __init__(self, status_code: int, message: str, payload: Any = None):
        self.status_code = status_code
        self.message = message
        self.payload = payload
        super().__init__(f"GenAI API error {status_code}: {message}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class GenAIConnectionError(ConnectionError):
    """GenAI API 전송 계층 오류 (네트워크, 타임아웃)."""


class StateConflictError(Exception):
    """저장된 사용자 상태의 revision이 예상과 다름."""

    def __init__(self, user_id: str, expected: int, actual: int):
        self.user_id = user_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"State for user '{user_id}' changed: expected revision {expected}, found {actual}"
        )
