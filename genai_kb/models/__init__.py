"""GenAI KB Sync 데이터 모델.

모델 구성:
    - KnowledgeBase, DataSourceRef, KnowledgeBaseCreate: 원격 KB와 데이터 소스
    - IndexingJob, IndexingJobStatus, JobProgress: 비동기 인덱싱 작업
    - Agent: 프로젝트 식별자 조회용 에이전트
    - UserKbState: 호출자가 저장하는 사용자별 상태 스냅샷
    - ReconcileResult, ReconcileFailure: 조정 결과
"""

from .agent import Agent
from .indexing_job import IndexingJob, IndexingJobStatus, JobProgress
from .knowledge_base import DataSourceRef, KnowledgeBase, KnowledgeBaseCreate
from .outcome import ReconcileFailure, ReconcileOutcome, ReconcileResult
from .user_state import UserKbState

__all__ = [
    # 지식 베이스
    "KnowledgeBase",
    "KnowledgeBaseCreate",
    "DataSourceRef",
    # 인덱싱 작업
    "IndexingJob",
    "IndexingJobStatus",
    "JobProgress",
    # 에이전트
    "Agent",
    # 사용자 상태
    "UserKbState",
    # 조정 결과
    "ReconcileResult",
    "ReconcileFailure",
    "ReconcileOutcome",
]
