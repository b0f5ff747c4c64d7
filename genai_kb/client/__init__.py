"""GenAI 플랫폼 리소스 게이트웨이.

게이트웨이 구성:
    - GenAIClient: httpx 기반 전송 계층
    - KnowledgeBaseResource: KB 및 데이터 소스
    - IndexingJobResource: 인덱싱 작업
    - AgentResource, ProjectResource: 식별자 조회용 읽기 리소스
    - GenAIGateway: 위 리소스를 한데 묶은 진입점
"""

from typing import Optional

import httpx

from ..config import GenAISettings
from .agents import AgentResource, ProjectResource
from .http import GenAIClient
from .indexing_jobs import IndexingJobResource
from .knowledge_bases import KnowledgeBaseResource
from .normalize import extract_list, extract_object


class GenAIGateway:
    """네 가지 리소스 패밀리를 묶은 게이트웨이.

    Attributes:
        client: 공유 HTTP 클라이언트.
        kb: KnowledgeBase/DataSource 리소스.
        indexing: IndexingJob 리소스.
        agents: Agent 리소스.
        projects: 프로젝트 조회 리소스.
    """

    def __init__(self, client: GenAIClient):
        self.client = client
        self.kb = KnowledgeBaseResource(client)
        self.indexing = IndexingJobResource(client)
        self.agents = AgentResource(client)
        self.projects = ProjectResource(client)

    @classmethod
    def from_settings(
        cls,
        settings: GenAISettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "GenAIGateway":
        """설정으로부터 게이트웨이를 생성합니다."""
        client = GenAIClient(
            api_token=settings.api_token,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            transport=transport,
        )
        return cls(client)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "GenAIGateway":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


__all__ = [
    "GenAIGateway",
    "GenAIClient",
    "KnowledgeBaseResource",
    "IndexingJobResource",
    "AgentResource",
    "ProjectResource",
    "extract_list",
    "extract_object",
]
