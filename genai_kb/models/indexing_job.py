"""인덱싱 작업(IndexingJob) 모델 정의.

원격 플랫폼의 비동기 인덱싱 작업 상태를 나타냅니다.
로컬에서 변경하지 않으며 항상 다시 조회합니다.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class IndexingJobStatus(str, Enum):
    """인덱싱 작업 상태.

    Attributes:
        PENDING: 대기 중
        RUNNING: 실행 중
        COMPLETED: 완료 (종료 상태)
        FAILED: 실패 (종료 상태)
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (IndexingJobStatus.COMPLETED, IndexingJobStatus.FAILED)

    @property
    def is_active(self) -> bool:
        return self in (IndexingJobStatus.PENDING, IndexingJobStatus.RUNNING)

    @classmethod
    def from_api(cls, value: Optional[str]) -> "IndexingJobStatus":
        """업스트림 상태 문자열을 정규화합니다.

        "INDEX_JOB_STATUS_" 접두사 유무와 대소문자를 가리지 않습니다.
        알 수 없는 값은 PENDING으로 취급하여 폴링을 계속합니다.

        Args:
            value: 업스트림 상태 값.

        Returns:
            정규화된 상태.
        """
        if not value:
            return cls.PENDING
        key = str(value).strip().upper().removeprefix("INDEX_JOB_STATUS_")
        return _STATUS_ALIASES.get(key, cls.PENDING)


_STATUS_ALIASES = {
    "PENDING": IndexingJobStatus.PENDING,
    "UNKNOWN": IndexingJobStatus.PENDING,
    "QUEUED": IndexingJobStatus.PENDING,
    "RUNNING": IndexingJobStatus.RUNNING,
    "IN_PROGRESS": IndexingJobStatus.RUNNING,
    "COMPLETED": IndexingJobStatus.COMPLETED,
    "NO_CHANGES": IndexingJobStatus.COMPLETED,
    "PARTIAL": IndexingJobStatus.COMPLETED,
    "FAILED": IndexingJobStatus.FAILED,
    "CANCELLED": IndexingJobStatus.FAILED,
}


def _as_ratio(done: Any, total: Any) -> Optional[float]:
    try:
        done_f, total_f = float(done), float(total)
    except (TypeError, ValueError):
        return None
    if total_f <= 0:
        return None
    return max(0.0, min(1.0, done_f / total_f))


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class IndexingJob(BaseModel):
    """원격 인덱싱 작업 기록.

    Attributes:
        id: 작업 식별자
        knowledge_base_id: 대상 KB 식별자
        data_source_ids: 대상 데이터 소스 식별자 목록
        status: 정규화된 상태
        raw_status: 업스트림 원본 상태 값
        phase: 업스트림 단계 정보 (있는 경우)
        progress: 0..1 진행률 (계산 가능한 경우)
        error: 업스트림 오류 메시지
        created_at: 생성 시간
    """

    id: str = Field(..., description="작업 식별자")
    knowledge_base_id: Optional[str] = Field(default=None, description="대상 KB 식별자")
    data_source_ids: list[str] = Field(default_factory=list, description="데이터 소스 식별자 목록")
    status: IndexingJobStatus = Field(default=IndexingJobStatus.PENDING, description="정규화된 상태")
    raw_status: Optional[str] = Field(default=None, description="업스트림 원본 상태")
    phase: Optional[str] = Field(default=None, description="업스트림 단계")
    progress: Optional[float] = Field(default=None, description="진행률 (0..1)")
    error: Optional[str] = Field(default=None, description="업스트림 오류 메시지")
    created_at: Optional[datetime] = Field(default=None, description="생성 시간")

    @classmethod
    def from_api(cls, data: dict) -> "IndexingJob":
        """업스트림 작업 응답에서 생성합니다.

        Args:
            data: 업스트림 작업 딕셔너리.

        Returns:
            IndexingJob 인스턴스.
        """
        raw_status = data.get("status")

        progress = data.get("progress")
        if isinstance(progress, (int, float)):
            progress = float(progress) / 100.0 if progress > 1 else float(progress)
        else:
            progress = _as_ratio(
                data.get("completed_datasources"), data.get("total_datasources")
            )

        ds_ids = data.get("data_source_uuids") or data.get("data_source_ids") or []
        if isinstance(ds_ids, str):
            ds_ids = [ds_ids]

        error = data.get("error") or data.get("error_message")
        if isinstance(error, dict):
            error = error.get("message") or str(error)

        return cls(
            id=data.get("uuid") or data.get("id") or "",
            knowledge_base_id=data.get("knowledge_base_uuid") or data.get("knowledge_base_id"),
            data_source_ids=[str(ds) for ds in ds_ids],
            status=IndexingJobStatus.from_api(raw_status),
            raw_status=raw_status,
            phase=data.get("phase"),
            progress=progress,
            error=error,
            created_at=_parse_timestamp(data.get("created_at")),
        )


class JobProgress(BaseModel):
    """상태 조회 엔드포인트에 노출되는 진행 정보.

    Attributes:
        job_id: 작업 식별자
        status: 정규화된 상태
        progress: 진행률
        error: 오류 메시지
    """

    job_id: str
    status: IndexingJobStatus
    progress: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: IndexingJob) -> "JobProgress":
        return cls(job_id=job.id, status=job.status, progress=job.progress, error=job.error)
