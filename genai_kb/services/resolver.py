"""KB 생성용 프로비저닝 식별자 확정.

프로젝트/데이터베이스/임베딩 모델 식별자는 설정에서 먼저 읽고,
없으면 기존 에이전트, 계정 프로젝트, 기존 KB에서 읽기 전용으로 찾아냅니다.
이 과정은 어떤 원격 상태도 변경하지 않습니다.
"""

import re
from dataclasses import dataclass
from typing import Optional

from ..client import GenAIGateway
from ..config import GenAISettings
from ..errors import ConfigMissingError, GenAIAPIError, GenAIConnectionError
from ..logging_config import Loggers
from .cache import StateCache

logger = Loggers.reconciler()

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

DISCOVERY_ERRORS = (GenAIAPIError, GenAIConnectionError)


def is_valid_uuid(value: Optional[str]) -> bool:
    """UUID 형식인지 확인합니다."""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value.strip()))


def _clean(value: Optional[str]) -> Optional[str]:
    return value.strip() if is_valid_uuid(value) else None


@dataclass
class ProvisioningIds:
    """KB 생성에 필요한 식별자 묶음.

    Attributes:
        project_id: 프로젝트 UUID.
        database_id: 데이터베이스 UUID.
        embedding_model_id: 임베딩 모델 UUID.
    """

    project_id: Optional[str] = None
    database_id: Optional[str] = None
    embedding_model_id: Optional[str] = None

    @property
    def missing(self) -> list[str]:
        """확정되지 않은 식별자 이름 목록."""
        names = []
        if not self.project_id:
            names.append("project_id")
        if not self.database_id:
            names.append("database_id")
        if not self.embedding_model_id:
            names.append("embedding_model_id")
        return names


class ProvisioningResolver:
    """설정 우선, 읽기 전용 탐색 보조의 식별자 확정기.

    탐색 순서:
        project_id: DO_PROJECT_ID → 첫 번째 에이전트 → 기본 프로젝트 → 첫 번째 프로젝트
        database_id: DO_DATABASE_ID → 첫 번째 기존 KB
        embedding_model_id: DO_EMBEDDING_MODEL_ID → 첫 번째 기존 KB
    """

    def __init__(self, settings: GenAISettings, gateway: GenAIGateway):
        self.settings = settings
        self.gateway = gateway

    def resolve(self, cache: StateCache) -> ProvisioningIds:
        """식별자를 확정합니다.

        Args:
            cache: 현재 조정 호출의 상태 캐시 (KB 목록/상세 재사용).

        Returns:
            모든 식별자가 채워진 ProvisioningIds.

        Raises:
            ConfigMissingError: 하나 이상의 식별자를 확정하지 못한 경우.
        """
        ids = ProvisioningIds(
            project_id=_clean(self.settings.project_id),
            database_id=_clean(self.settings.database_id),
            embedding_model_id=_clean(self.settings.embedding_model_id),
        )

        if not ids.project_id:
            ids.project_id = self._discover_project_id()

        if not ids.database_id or not ids.embedding_model_id:
            self._discover_from_existing_kb(cache, ids)

        if ids.missing:
            raise ConfigMissingError(
                f"Unable to resolve {', '.join(ids.missing)} from configuration or existing resources",
                details={"missing": ids.missing},
            )

        logger.debug(
            "프로비저닝 식별자 확정",
            project_id=ids.project_id[:8],
            database_id=ids.database_id[:8],
            embedding_model_id=ids.embedding_model_id[:8],
        )
        return ids

    def _discover_project_id(self) -> Optional[str]:
        try:
            agents = self.gateway.agents.list()
            if agents:
                project_id = agents[0].project_id
                if not is_valid_uuid(project_id):
                    project_id = self.gateway.agents.get(agents[0].id).project_id
                if is_valid_uuid(project_id):
                    logger.info("기존 에이전트에서 프로젝트 ID 사용", agent_id=agents[0].id)
                    return project_id.strip()
        except DISCOVERY_ERRORS as e:
            logger.warning("에이전트에서 프로젝트 ID 조회 실패", error=str(e))

        try:
            project_id = self.gateway.projects.get_default_id()
            if is_valid_uuid(project_id):
                logger.info("기본 프로젝트 ID 사용")
                return project_id.strip()
        except DISCOVERY_ERRORS as e:
            logger.warning("기본 프로젝트 조회 실패", error=str(e))

        try:
            for project_id in self.gateway.projects.list_ids():
                if is_valid_uuid(project_id):
                    logger.info("첫 번째 프로젝트 ID 사용")
                    return project_id.strip()
        except DISCOVERY_ERRORS as e:
            logger.warning("프로젝트 목록 조회 실패", error=str(e))

        return None

    def _discover_from_existing_kb(self, cache: StateCache, ids: ProvisioningIds) -> None:
        try:
            kbs = cache.get_all_kbs()
            if not kbs:
                return
            first = cache.get_kb_detail(kbs[0].id)
        except DISCOVERY_ERRORS as e:
            logger.warning("기존 KB에서 식별자 조회 실패", error=str(e))
            return

        if not ids.database_id and is_valid_uuid(first.database_id):
            ids.database_id = first.database_id.strip()
            logger.info("기존 KB의 데이터베이스 ID 사용", kb_id=first.id)
        if not ids.embedding_model_id and is_valid_uuid(first.embedding_model_id):
            ids.embedding_model_id = first.embedding_model_id.strip()
            logger.info("기존 KB의 임베딩 모델 ID 사용", kb_id=first.id)
