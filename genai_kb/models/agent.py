"""에이전트(Agent) 모델 정의.

프로젝트 식별자를 읽기 전용으로 찾아내는 데에만 사용됩니다.
"""

from typing import Optional

from pydantic import BaseModel, Field


class Agent(BaseModel):
    """원격 GenAI 에이전트.

    Attributes:
        id: 원격 식별자 (uuid)
        name: 에이전트 이름
        project_id: 소속 프로젝트 식별자
    """

    id: str = Field(..., description="원격 식별자")
    name: str = Field(default="", description="에이전트 이름")
    project_id: Optional[str] = Field(default=None, description="프로젝트 식별자")

    @classmethod
    def from_api(cls, data: dict) -> "Agent":
        return cls(
            id=data.get("uuid") or data.get("id") or "",
            name=data.get("name") or "",
            project_id=data.get("project_id"),
        )
