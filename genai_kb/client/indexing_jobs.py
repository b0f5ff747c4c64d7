"""인덱싱 작업 리소스.

작업 시작은 전역 엔드포인트 POST /indexing_jobs 만 사용합니다.
KB별 시작 엔드포인트는 method-not-allowed 계열 오류로 거부되기 때문입니다.
"""

from ..logging_config import Loggers
from ..models import IndexingJob
from .http import GenAIClient
from .normalize import extract_list, extract_object

logger = Loggers.gateway()

JOB_LIST_KEYS = ("jobs", "indexing_jobs")
JOB_OBJECT_KEYS = ("indexing_job", "job")


class IndexingJobResource:
    """IndexingJob 리소스 패밀리."""

    def __init__(self, client: GenAIClient):
        self.client = client

    def start(self, kb_id: str, data_source_ids: list[str]) -> IndexingJob:
        """KB와 데이터 소스 범위의 인덱싱 작업을 시작합니다.

        Args:
            kb_id: KB 식별자.
            data_source_ids: 인덱싱할 데이터 소스 식별자 목록.

        Returns:
            시작된 작업.

        Raises:
            GenAIAPIError: 업스트림 거부 (실행 중 충돌 포함).
        """
        body = {
            "knowledge_base_uuid": kb_id,
            "data_source_uuids": list(data_source_ids),
        }
        payload = self.client.request("POST", "/indexing_jobs", json=body)
        job = IndexingJob.from_api(extract_object(payload, JOB_OBJECT_KEYS))
        if not job.knowledge_base_id:
            job = job.model_copy(update={"knowledge_base_id": kb_id})
        logger.info("인덱싱 작업 시작됨", kb_id=kb_id, job_id=job.id, status=job.status.value)
        return job

    def get(self, job_id: str) -> IndexingJob:
        """작업 상태를 조회합니다."""
        payload = self.client.request("GET", f"/indexing_jobs/{job_id}")
        job = IndexingJob.from_api(extract_object(payload, JOB_OBJECT_KEYS))
        if not job.id:
            job = job.model_copy(update={"id": job_id})
        return job

    def list_for_kb(self, kb_id: str) -> list[IndexingJob]:
        """KB의 최근 인덱싱 작업 목록을 조회합니다.

        Returns:
            작업 목록. 알 수 없는 응답 형태면 빈 리스트.
        """
        payload = self.client.request("GET", f"/knowledge_bases/{kb_id}/indexing_jobs")
        return [
            IndexingJob.from_api(item)
            for item in extract_list(payload, JOB_LIST_KEYS)
            if isinstance(item, dict)
        ]

    def cancel(self, job_id: str) -> None:
        """작업을 취소합니다. 조정 엔진은 이 메서드를 사용하지 않습니다."""
        self.client.request("DELETE", f"/indexing_jobs/{job_id}")
        logger.info("인덱싱 작업 취소 요청됨", job_id=job_id)
