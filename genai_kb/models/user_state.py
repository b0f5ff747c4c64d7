"""사용자 KB 상태(UserKbState) 모델 정의.

호출자가 소유하고 저장하는 스냅샷입니다. 조정 엔진은 이 값을 읽고
갱신된 새 스냅샷을 돌려줄 뿐, 직접 저장하지 않습니다.
"""

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

from .indexing_job import IndexingJob, IndexingJobStatus

if TYPE_CHECKING:
    from .outcome import ReconcileResult


class UserKbState(BaseModel):
    """사용자별 KB 연결 상태 스냅샷.

    Attributes:
        user_id: 사용자 식별자
        kb_name: 원하는 KB 이름
        kb_id: 확정된 원격 KB 식별자
        last_indexing_job_id: 마지막으로 관찰한 인덱싱 작업 (재개 힌트)
        pending_files: 인덱싱 대기 중인 파일 키
        indexed_files: 인덱싱이 완료된 파일 키
        revision: 저장소의 낙관적 동시성 제어용 리비전
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., description="사용자 식별자")
    kb_name: str = Field(..., description="KB 이름")
    kb_id: Optional[str] = Field(default=None, description="원격 KB 식별자")
    last_indexing_job_id: Optional[str] = Field(default=None, description="재개 힌트 작업 ID")
    pending_files: tuple[str, ...] = Field(default=(), description="인덱싱 대기 파일")
    indexed_files: tuple[str, ...] = Field(default=(), description="인덱싱 완료 파일")
    revision: int = Field(default=0, description="저장 리비전")

    def with_reconcile_result(self, result: "ReconcileResult") -> "UserKbState":
        """조정 결과를 반영한 새 스냅샷을 반환합니다.

        Args:
            result: 성공한 조정 결과.

        Returns:
            kb_id와 last_indexing_job_id가 갱신된 스냅샷.
        """
        return self.model_copy(
            update={"kb_id": result.kb_id, "last_indexing_job_id": result.job_id}
        )

    def with_completed_job(self, job: IndexingJob) -> "UserKbState":
        """완료된 작업을 반영한 새 스냅샷을 반환합니다.

        작업이 COMPLETED가 아니면 변경 없이 자신을 반환합니다.
        대기 파일은 인덱싱 완료 목록으로 옮겨지며 중복은 제거됩니다.

        Args:
            job: 관찰한 인덱싱 작업.

        Returns:
            갱신된 스냅샷.
        """
        if job.status != IndexingJobStatus.COMPLETED:
            return self
        indexed = list(self.indexed_files)
        for key in self.pending_files:
            if key not in indexed:
                indexed.append(key)
        return self.model_copy(
            update={
                "pending_files": (),
                "indexed_files": tuple(indexed),
                "last_indexing_job_id": job.id,
            }
        )

    def with_pending_files(self, keys: list[str]) -> "UserKbState":
        """대기 파일을 추가한 새 스냅샷을 반환합니다."""
        pending = list(self.pending_files)
        for key in keys:
            if key not in pending:
                pending.append(key)
        return self.model_copy(update={"pending_files": tuple(pending)})
