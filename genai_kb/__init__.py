"""GenAI KB Sync - 지식 베이스 조정 및 인덱싱 작업 관리.

사용자별 원하는 상태(KB 이름 하나, 데이터 소스 경로 하나)를
DigitalOcean GenAI 플랫폼에 반영하고 비동기 인덱싱 작업을 추적합니다.

주요 기능:
    - KB 찾기/생성 및 데이터 소스 조정 (재실행해도 같은 상태로 수렴)
    - 인덱싱 작업 시작, 재개, 실행 중 작업 채택
    - 인덱싱 작업 폴링 및 상태 조회
    - JSON 파일 기반 사용자 상태 저장소
    - CLI 인터페이스

모듈 구성:
    config: 환경 변수 기반 설정 관리
    client: GenAI API 리소스 게이트웨이
    models: 데이터 모델 (KnowledgeBase, IndexingJob, UserKbState, ...)
    services: 핵심 서비스 (StateCache, Reconciler, JobMonitor)
    storage: JSON 파일 기반 사용자 상태 저장소
    cli: Typer 기반 CLI 인터페이스
"""

from .cli import cli
from .client import GenAIGateway
from .config import Settings, get_settings
from .errors import ErrorKind, KBSyncError
from .models import (
    DataSourceRef,
    IndexingJob,
    IndexingJobStatus,
    KnowledgeBase,
    ReconcileFailure,
    ReconcileResult,
    UserKbState,
)
from .services import JobMonitor, Reconciler, StateCache
from .storage import StateStore, get_state_store

__version__ = "0.1.0"

__all__ = [
    # CLI
    "cli",
    # 설정
    "Settings",
    "get_settings",
    # 게이트웨이
    "GenAIGateway",
    # 오류
    "ErrorKind",
    "KBSyncError",
    # 모델
    "KnowledgeBase",
    "DataSourceRef",
    "IndexingJob",
    "IndexingJobStatus",
    "UserKbState",
    "ReconcileResult",
    "ReconcileFailure",
    # 서비스
    "StateCache",
    "Reconciler",
    "JobMonitor",
    # 저장소
    "StateStore",
    "get_state_store",
]
