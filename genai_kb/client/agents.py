"""에이전트 및 프로젝트 리소스.

조정 엔진은 프로젝트 식별자를 찾기 위해 읽기 전용으로만 사용합니다.
"""

from typing import Optional

from ..models import Agent
from .http import GenAIClient
from .normalize import extract_list, extract_object

AGENT_LIST_KEYS = ("agents",)
AGENT_OBJECT_KEYS = ("agent",)
PROJECT_LIST_KEYS = ("projects",)
PROJECT_OBJECT_KEYS = ("project",)


class AgentResource:
    """Agent 리소스 패밀리."""

    def __init__(self, client: GenAIClient):
        self.client = client

    def list(self) -> list[Agent]:
        payload = self.client.request("GET", "/agents")
        return [
            Agent.from_api(item)
            for item in extract_list(payload, AGENT_LIST_KEYS)
            if isinstance(item, dict)
        ]

    def get(self, agent_id: str) -> Agent:
        payload = self.client.request("GET", f"/agents/{agent_id}")
        agent = Agent.from_api(extract_object(payload, AGENT_OBJECT_KEYS))
        if not agent.id:
            agent = agent.model_copy(update={"id": agent_id})
        return agent

    def create(self, name: str, model_id: str, project_id: str, instruction: str = "") -> Agent:
        body = {
            "name": name,
            "instruction": instruction,
            "model": {"uuid": model_id},
            "project_id": project_id,
        }
        payload = self.client.request("POST", "/agents", json=body)
        return Agent.from_api(extract_object(payload, AGENT_OBJECT_KEYS))

    def update(self, agent_id: str, patch: dict) -> Agent:
        payload = self.client.request("PUT", f"/agents/{agent_id}", json=patch)
        agent = Agent.from_api(extract_object(payload, AGENT_OBJECT_KEYS))
        if not agent.id:
            agent = agent.model_copy(update={"id": agent_id})
        return agent

    def delete(self, agent_id: str) -> None:
        self.client.request("DELETE", f"/agents/{agent_id}")


class ProjectResource:
    """계정 프로젝트 조회 (GET /v2/projects)."""

    def __init__(self, client: GenAIClient):
        self.client = client

    def get_default_id(self) -> Optional[str]:
        """기본 프로젝트의 식별자를 반환합니다."""
        payload = self.client.request("GET", f"{self.client.account_url}/projects/default")
        project = extract_object(payload, PROJECT_OBJECT_KEYS)
        return project.get("id") or project.get("uuid")

    def list_ids(self) -> list[str]:
        """모든 프로젝트 식별자를 반환합니다."""
        payload = self.client.request("GET", f"{self.client.account_url}/projects")
        ids = []
        for item in extract_list(payload, PROJECT_LIST_KEYS):
            if isinstance(item, dict) and (item.get("id") or item.get("uuid")):
                ids.append(item.get("id") or item.get("uuid"))
        return ids
