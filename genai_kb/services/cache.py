"""요청 범위 KB 상태 캐시.

한 번의 조정 호출 동안 KB 목록과 상세 조회를 메모이즈합니다.
독립된 호출 사이에는 원격 상태가 바뀔 수 있으므로 호출마다 새로 만들며,
TTL이나 호출 간 공유는 없습니다.
"""

from typing import Optional

from ..client import KnowledgeBaseResource
from ..logging_config import Loggers
from ..models import DataSourceRef, KnowledgeBase

logger = Loggers.cache()


class StateCache:
    """KB 목록/상세 메모이제이션.

    변경 호출 이후에는 응답이 이미 새 값을 알려주면 캐시를 제자리에서 갱신하고,
    그렇지 않으면 해당 항목을 무효화합니다.

    Attributes:
        kb_resource: 실제 조회를 수행하는 KB 리소스.
    """

    def __init__(self, kb_resource: KnowledgeBaseResource):
        self.kb_resource = kb_resource
        self._kb_list: Optional[list[KnowledgeBase]] = None
        self._kb_details: dict[str, KnowledgeBase] = {}
        self.list_fetches = 0
        self.detail_fetches = 0

    def get_all_kbs(self) -> list[KnowledgeBase]:
        """전체 KB 목록을 반환합니다 (최초 1회만 조회)."""
        if self._kb_list is None:
            self._kb_list = self.kb_resource.list()
            self.list_fetches += 1
            logger.debug("KB 목록 캐시됨", count=len(self._kb_list))
        return self._kb_list

    def get_kb_detail(self, kb_id: str) -> KnowledgeBase:
        """KB 상세를 반환합니다 (ID별 최초 1회만 조회)."""
        if kb_id not in self._kb_details:
            self._kb_details[kb_id] = self.kb_resource.get(kb_id)
            self.detail_fetches += 1
            logger.debug("KB 상세 캐시됨", kb_id=kb_id)
        return self._kb_details[kb_id]

    def remember_kb(self, kb: KnowledgeBase) -> None:
        """알고 있는 최신 KB 상세로 캐시를 갱신합니다."""
        self._kb_details[kb.id] = kb
        if self._kb_list is not None:
            self._kb_list = [kb if item.id == kb.id else item for item in self._kb_list]
            if not any(item.id == kb.id for item in self._kb_list):
                self._kb_list.append(kb)

    def record_data_source_removed(self, kb_id: str, data_source_id: str) -> None:
        """삭제된 데이터 소스를 캐시된 상세에서 제거합니다."""
        kb = self._kb_details.get(kb_id)
        if kb is None:
            return
        remaining = [ds for ds in kb.data_sources if ds.id != data_source_id]
        self._kb_details[kb_id] = kb.model_copy(update={"data_sources": remaining})

    def record_data_source_added(self, kb_id: str, ref: DataSourceRef) -> None:
        """추가된 데이터 소스를 캐시된 상세에 반영합니다."""
        kb = self._kb_details.get(kb_id)
        if kb is None:
            return
        sources = [ds for ds in kb.data_sources if ds.id != ref.id] + [ref]
        self._kb_details[kb_id] = kb.model_copy(update={"data_sources": sources})

    def invalidate_kb(self, kb_id: str) -> None:
        """KB 상세 캐시를 무효화합니다."""
        self._kb_details.pop(kb_id, None)

    def invalidate_list(self) -> None:
        """KB 목록 캐시를 무효화합니다."""
        self._kb_list = None
