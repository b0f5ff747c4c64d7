"""지식 베이스 및 데이터 소스 리소스.

GET/POST/PUT/DELETE /knowledge_bases 와
/knowledge_bases/{id}/data_sources 엔드포인트를 감쌉니다.
"""

from __future__ import annotations

from typing import Optional

from ..logging_config import Loggers
from ..models import DataSourceRef, KnowledgeBase, KnowledgeBaseCreate
from .http import GenAIClient
from .normalize import extract_list, extract_object

logger = Loggers.gateway()

KB_LIST_KEYS = ("knowledge_bases",)
KB_OBJECT_KEYS = ("knowledge_base",)
DATA_SOURCE_LIST_KEYS = ("knowledge_base_data_sources", "data_sources", "datasources")
DATA_SOURCE_OBJECT_KEYS = ("knowledge_base_data_source", "data_source")


class KnowledgeBaseResource:
    """KnowledgeBase 리소스 패밀리.

    조회 결과는 항상 정규화된 모델로 반환됩니다.
    변경 호출의 업스트림 오류는 GenAIAPIError로 그대로 전파됩니다.
    """

    def __init__(self, client: GenAIClient):
        self.client = client

    # ==================== KnowledgeBase ====================

    def list(self) -> list[KnowledgeBase]:
        """모든 KB를 조회합니다.

        Returns:
            KB 목록. 알 수 없는 응답 형태면 빈 리스트.
        """
        payload = self.client.request("GET", "/knowledge_bases")
        return [
            KnowledgeBase.from_api(item)
            for item in extract_list(payload, KB_LIST_KEYS)
            if isinstance(item, dict)
        ]

    def get(self, kb_id: str) -> KnowledgeBase:
        """KB 상세를 조회합니다.

        Args:
            kb_id: KB 식별자.

        Returns:
            KB 상세. 응답에 식별자가 없으면 요청한 kb_id로 채웁니다.
        """
        payload = self.client.request("GET", f"/knowledge_bases/{kb_id}")
        kb = KnowledgeBase.from_api(extract_object(payload, KB_OBJECT_KEYS))
        if not kb.id:
            kb = kb.model_copy(update={"id": kb_id})
        return kb

    def create(self, request: KnowledgeBaseCreate) -> KnowledgeBase:
        """초기 데이터 소스와 함께 KB를 생성합니다.

        생성 응답에 데이터 소스 ID가 포함된다는 보장이 없으므로
        호출자는 생성 직후 상세를 다시 조회해야 합니다.

        Args:
            request: KB 생성 요청.

        Returns:
            생성 응답에서 읽은 KB.
        """
        payload = self.client.request("POST", "/knowledge_bases", json=request.to_api())
        kb = KnowledgeBase.from_api(extract_object(payload, KB_OBJECT_KEYS))
        logger.info("KB 생성됨", kb_id=kb.id, name=request.name, item_path=request.item_path)
        return kb

    def update(self, kb_id: str, patch: dict) -> KnowledgeBase:
        """KB 속성을 수정합니다."""
        payload = self.client.request("PUT", f"/knowledge_bases/{kb_id}", json=patch)
        kb = KnowledgeBase.from_api(extract_object(payload, KB_OBJECT_KEYS))
        if not kb.id:
            kb = kb.model_copy(update={"id": kb_id})
        return kb

    def delete(self, kb_id: str) -> None:
        """KB를 삭제합니다. 조정 엔진은 이 메서드를 사용하지 않습니다."""
        self.client.request("DELETE", f"/knowledge_bases/{kb_id}")
        logger.info("KB 삭제됨", kb_id=kb_id)

    # ==================== DataSource ====================

    def list_data_sources(self, kb_id: str) -> list[DataSourceRef]:
        """KB의 데이터 소스를 조회합니다.

        Args:
            kb_id: KB 식별자.

        Returns:
            데이터 소스 목록. 알 수 없는 응답 형태면 빈 리스트.
        """
        payload = self.client.request("GET", f"/knowledge_bases/{kb_id}/data_sources")
        return [
            DataSourceRef.from_api(item)
            for item in extract_list(payload, DATA_SOURCE_LIST_KEYS)
            if isinstance(item, dict)
        ]

    def add_data_source(
        self,
        kb_id: str,
        bucket_name: str,
        item_path: str,
        region: str,
    ) -> Optional[str]:
        """KB에 데이터 소스를 추가합니다.

        즉시 응답에 생성된 데이터 소스 ID가 있으면 반환하고,
        없으면 None을 반환합니다. 이 경우 호출자가 KB를 다시 조회해야 합니다.

        Args:
            kb_id: KB 식별자.
            bucket_name: 버킷 이름.
            item_path: 스토리지 경로.
            region: 버킷 리전.

        Returns:
            데이터 소스 ID 또는 None.

        Raises:
            ValueError: item_path가 비어 있는 경우.
        """
        if not item_path:
            raise ValueError("item_path is required for data source")

        body = {
            "spaces_data_source": {
                "bucket_name": bucket_name,
                "item_path": item_path,
                "region": region,
            }
        }
        payload = self.client.request(
            "POST", f"/knowledge_bases/{kb_id}/data_sources", json=body
        )
        ref = DataSourceRef.from_api(extract_object(payload, DATA_SOURCE_OBJECT_KEYS))
        logger.info(
            "데이터 소스 추가됨",
            kb_id=kb_id,
            item_path=item_path,
            data_source_id=ref.id,
        )
        return ref.id

    def delete_data_source(self, kb_id: str, data_source_id: str) -> None:
        """KB에서 데이터 소스를 삭제합니다."""
        self.client.request(
            "DELETE", f"/knowledge_bases/{kb_id}/data_sources/{data_source_id}"
        )
        logger.info("데이터 소스 삭제됨", kb_id=kb_id, data_source_id=data_source_id)
