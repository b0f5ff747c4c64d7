"""GenAI KB Sync 설정 관리.

환경 변수에서 설정을 로드하고 적절한 기본값을 제공합니다.

설정 그룹:
    GenAISettings: GenAI 플랫폼 API 연결 및 프로비저닝 식별자 설정
    StorageSettings: 오브젝트 스토리지(Spaces) 버킷 설정
    MonitorSettings: 인덱싱 작업 폴링 설정
    Settings: 메인 애플리케이션 설정 (모든 하위 설정 포함)

환경 변수:
    DIGITALOCEAN_TOKEN, DO_GENAI_BASE_URL, DO_REGION, DO_REQUEST_TIMEOUT
    DO_PROJECT_ID, DO_DATABASE_ID, DO_EMBEDDING_MODEL_ID
    DIGITALOCEAN_BUCKET
    INDEXING_POLL_MAX_ATTEMPTS, INDEXING_POLL_INTERVAL, INDEXING_STATUS_CADENCE
    DEBUG, LOG_LEVEL, DATA_DIR
"""

from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# .env 파일에서 환경 변수 로드
load_dotenv()

DEFAULT_BUCKET_NAME = "maia"


class GenAISettings(BaseSettings):
    """GenAI 플랫폼 API 설정.

    지식 베이스, 데이터 소스, 인덱싱 작업 API 호출에 필요한 설정입니다.

    Attributes:
        api_token: Bearer 토큰. DIGITALOCEAN_TOKEN 환경 변수.
        base_url: GenAI API 기본 URL.
        region: 지식 베이스 및 데이터 소스 리전. 기본값 "tor1".
        request_timeout: 요청 타임아웃 (초). 기본값 30.0.
            원격 호출 대기 시간의 상한을 정합니다.
        project_id: KB 생성 시 사용할 프로젝트 UUID. 선택적.
        database_id: KB 생성 시 사용할 OpenSearch 데이터베이스 UUID. 선택적.
        embedding_model_id: KB 생성 시 사용할 임베딩 모델 UUID. 선택적.
    """

    api_token: str = Field(default="", alias="DIGITALOCEAN_TOKEN")
    base_url: str = Field(
        default="https://api.digitalocean.com/v2/gen-ai",
        alias="DO_GENAI_BASE_URL",
    )
    region: str = Field(default="tor1", alias="DO_REGION")
    request_timeout: float = Field(default=30.0, alias="DO_REQUEST_TIMEOUT")
    project_id: Optional[str] = Field(default=None, alias="DO_PROJECT_ID")
    database_id: Optional[str] = Field(default=None, alias="DO_DATABASE_ID")
    embedding_model_id: Optional[str] = Field(default=None, alias="DO_EMBEDDING_MODEL_ID")

    model_config = {"env_prefix": "", "extra": "ignore"}


class StorageSettings(BaseSettings):
    """오브젝트 스토리지 설정.

    Attributes:
        bucket: 버킷 URL 또는 버킷 이름. DIGITALOCEAN_BUCKET 환경 변수.
            "https://maia.tor1.digitaloceanspaces.com" 형식이면
            호스트의 첫 번째 레이블을 버킷 이름으로 사용합니다.
    """

    bucket: str = Field(default="", alias="DIGITALOCEAN_BUCKET")

    model_config = {"env_prefix": "", "extra": "ignore"}

    @property
    def bucket_name(self) -> str:
        """버킷 이름을 반환합니다.

        Returns:
            버킷 이름. 설정이 없으면 "maia".
        """
        value = self.bucket.strip()
        if not value:
            return DEFAULT_BUCKET_NAME
        if "//" in value:
            host = urlparse(value).hostname or ""
            return host.split(".")[0] or DEFAULT_BUCKET_NAME
        return value


class MonitorSettings(BaseSettings):
    """인덱싱 작업 모니터 설정.

    Attributes:
        max_attempts: 최대 폴링 횟수. 기본값 500.
        interval_seconds: 폴링 간격 (초). 기본값 5.0.
            작업 소요 시간(수 분)에 비해 폴링 비용이 작으므로 고정 간격 사용.
        status_cadence_seconds: `status --watch` 재조회 주기 (초). 기본값 2.0.
    """

    max_attempts: int = Field(default=500, alias="INDEXING_POLL_MAX_ATTEMPTS")
    interval_seconds: float = Field(default=5.0, alias="INDEXING_POLL_INTERVAL")
    status_cadence_seconds: float = Field(default=2.0, alias="INDEXING_STATUS_CADENCE")

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """메인 애플리케이션 설정.

    Attributes:
        app_name: 애플리케이션 이름. 기본값 "genai-kb-sync".
        debug: 디버그 모드 활성화 여부. 기본값 False.
        log_level: 로그 레벨. 기본값 "INFO".
        data_dir: 사용자 상태 파일 디렉토리. 기본값 "data".
        genai: GenAI API 설정.
        storage: 오브젝트 스토리지 설정.
        monitor: 인덱싱 모니터 설정.
    """

    app_name: str = Field(default="genai-kb-sync")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    data_dir: Path = Field(default=Path("data"), alias="DATA_DIR")

    # 하위 설정 그룹
    genai: GenAISettings = Field(default_factory=GenAISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}

    def ensure_data_dir(self) -> Path:
        """데이터 디렉토리가 존재하는지 확인하고 경로를 반환합니다.

        Returns:
            데이터 디렉토리 Path 객체.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir


def get_settings() -> Settings:
    """애플리케이션 설정을 반환합니다.

    매 호출마다 새 인스턴스를 생성합니다.

    Returns:
        Settings 인스턴스.
    """
    return Settings()
