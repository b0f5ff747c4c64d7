"""조정(reconcile) 결과 모델 정의.

성공 결과와 구조화된 실패 중 하나가 호출자에게 반환됩니다.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field

from ..errors import ErrorKind, RETRYABLE_KINDS
from .knowledge_base import KnowledgeBase


class ReconcileResult(BaseModel):
    """성공한 조정 결과.

    Attributes:
        kb_id: KB 식별자
        data_source_id: 조정된 데이터 소스 식별자
        job_id: 활성 인덱싱 작업 식별자
        kb_detail: 마지막으로 관찰한 KB 상세
        job_adopted: 새 작업을 시작하지 않고 기존 작업을 채택했는지 여부
        mutations: 이번 호출에서 실행한 변경 호출 기록
    """

    kb_id: str
    data_source_id: str
    job_id: str
    kb_detail: Optional[KnowledgeBase] = None
    job_adopted: bool = False
    mutations: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True

    def to_payload(self) -> dict:
        """호출자용 응답 딕셔너리."""
        return {"kbId": self.kb_id, "dataSourceId": self.data_source_id, "jobId": self.job_id}


class ReconcileFailure(BaseModel):
    """구조화된 조정 실패.

    Attributes:
        error_kind: 오류 종류
        message: 업스트림 메시지를 포함한 설명
    """

    error_kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return self.error_kind in RETRYABLE_KINDS

    def to_payload(self) -> dict:
        """호출자용 응답 딕셔너리."""
        return {"errorKind": self.error_kind.value, "message": self.message}


ReconcileOutcome = Union[ReconcileResult, ReconcileFailure]
