"""지식 베이스(KnowledgeBase) 및 데이터 소스 모델 정의.

업스트림 응답의 필드 이름 차이를 흡수하여 정규화된 형태로 변환합니다.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


def _first_present(data: dict, *keys: str) -> Any:
    """주어진 키 중 처음으로 값이 있는 항목을 반환합니다."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


class DataSourceRef(BaseModel):
    """KB에 연결된 오브젝트 스토리지 경로.

    Attributes:
        id: 데이터 소스 식별자 (업스트림 uuid)
        bucket_name: 버킷 이름
        item_path: 인덱싱할 스토리지 경로
        region: 버킷 리전
    """

    id: Optional[str] = Field(default=None, description="데이터 소스 식별자")
    bucket_name: Optional[str] = Field(default=None, description="버킷 이름")
    item_path: Optional[str] = Field(default=None, description="스토리지 경로")
    region: Optional[str] = Field(default=None, description="버킷 리전")

    @classmethod
    def from_api(cls, data: dict) -> "DataSourceRef":
        """업스트림 데이터 소스 응답에서 생성합니다.

        spaces_data_source 중첩 형식과 평탄한 형식을 모두 지원합니다.

        Args:
            data: 업스트림 데이터 소스 딕셔너리.

        Returns:
            DataSourceRef 인스턴스.
        """
        spaces = data.get("spaces_data_source")
        location = spaces if isinstance(spaces, dict) else data
        return cls(
            id=_first_present(data, "uuid", "id", "data_source_uuid"),
            bucket_name=location.get("bucket_name"),
            item_path=location.get("item_path"),
            region=location.get("region"),
        )


class KnowledgeBase(BaseModel):
    """원격 지식 베이스.

    name은 호출자가 정한 검색 키이고, id가 원격 식별자입니다.

    Attributes:
        id: 원격 식별자 (uuid)
        name: 호출자가 지정한 이름
        database_id: 벡터 데이터베이스 식별자
        embedding_model_id: 임베딩 모델 식별자
        project_id: 프로젝트 식별자
        region: 리전
        data_sources: 연결된 데이터 소스 목록
        total_tokens: 인덱싱된 토큰 수
    """

    id: str = Field(..., description="원격 식별자")
    name: str = Field(default="", description="KB 이름")
    database_id: Optional[str] = Field(default=None, description="데이터베이스 식별자")
    embedding_model_id: Optional[str] = Field(default=None, description="임베딩 모델 식별자")
    project_id: Optional[str] = Field(default=None, description="프로젝트 식별자")
    region: Optional[str] = Field(default=None, description="리전")
    data_sources: list[DataSourceRef] = Field(default_factory=list, description="데이터 소스 목록")
    total_tokens: Optional[int] = Field(default=None, description="인덱싱된 토큰 수")

    @classmethod
    def from_api(cls, data: dict) -> "KnowledgeBase":
        """업스트림 KB 응답에서 생성합니다.

        Args:
            data: 업스트림 KB 딕셔너리.

        Returns:
            KnowledgeBase 인스턴스.
        """
        embedding_model_id = data.get("embedding_model_uuid")
        nested_model = data.get("embedding_model")
        if not embedding_model_id and isinstance(nested_model, dict):
            embedding_model_id = nested_model.get("uuid")

        raw_sources = _first_present(
            data, "datasources", "data_sources", "knowledge_base_data_sources"
        )
        data_sources = [
            DataSourceRef.from_api(ds)
            for ds in (raw_sources if isinstance(raw_sources, list) else [])
            if isinstance(ds, dict)
        ]

        total_tokens = data.get("total_tokens")
        try:
            total_tokens = int(total_tokens) if total_tokens is not None else None
        except (TypeError, ValueError):
            total_tokens = None

        return cls(
            id=_first_present(data, "uuid", "id") or "",
            name=data.get("name") or "",
            database_id=data.get("database_id"),
            embedding_model_id=embedding_model_id,
            project_id=data.get("project_id"),
            region=data.get("region"),
            data_sources=data_sources,
            total_tokens=total_tokens,
        )

    def data_sources_at(self, item_path: str) -> list[DataSourceRef]:
        """주어진 경로를 가리키는 데이터 소스 목록."""
        return [ds for ds in self.data_sources if ds.item_path == item_path]

    def is_up_to_date(self, item_path: str) -> bool:
        """데이터 소스가 정확히 하나이고 원하는 경로를 가리키는지 확인합니다."""
        return len(self.data_sources) == 1 and self.data_sources[0].item_path == item_path


class KnowledgeBaseCreate(BaseModel):
    """KB 생성 요청.

    Attributes:
        name: KB 이름
        description: 설명
        project_id: 프로젝트 식별자
        database_id: 데이터베이스 식별자
        embedding_model_id: 임베딩 모델 식별자
        region: 리전
        bucket_name: 초기 데이터 소스 버킷
        item_path: 초기 데이터 소스 경로
    """

    name: str
    description: str
    project_id: str
    database_id: str
    embedding_model_id: Optional[str] = None
    region: str
    bucket_name: str
    item_path: str

    def to_api(self) -> dict:
        """업스트림 생성 요청 본문으로 변환합니다."""
        body: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "project_id": self.project_id,
            "database_id": self.database_id,
            "region": self.region,
            "datasources": [
                {
                    "spaces_data_source": {
                        "bucket_name": self.bucket_name,
                        "item_path": self.item_path,
                        "region": self.region,
                    }
                }
            ],
        }
        if self.embedding_model_id:
            body["embedding_model_uuid"] = self.embedding_model_id
        return body
