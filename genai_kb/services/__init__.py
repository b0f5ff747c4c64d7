"""GenAI KB Sync 서비스 모듈.

서비스 구성:
    - StateCache: 조정 호출 범위의 KB 목록/상세 캐시
    - ProvisioningResolver: KB 생성용 프로젝트/데이터베이스/임베딩 모델 식별자 확정
    - Reconciler: KB, 데이터 소스, 인덱싱 작업 조정 엔진
    - JobMonitor: 인덱싱 작업 폴링 및 활성 작업 탐색
"""

from .cache import StateCache
from .monitor import JobMonitor
from .reconciler import Reconciler, is_indexing_conflict
from .resolver import ProvisioningIds, ProvisioningResolver, is_valid_uuid

__all__ = [
    # 상태 캐시 (State Cache)
    "StateCache",
    # 식별자 확정 (Provisioning)
    "ProvisioningIds",
    "ProvisioningResolver",
    "is_valid_uuid",
    # 조정 엔진 (Reconciler)
    "Reconciler",
    "is_indexing_conflict",
    # 작업 모니터 (Job Monitor)
    "JobMonitor",
]
