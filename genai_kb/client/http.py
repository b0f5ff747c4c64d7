"""GenAI API HTTP 전송 계층.

Bearer 토큰 인증과 JSON 본문 처리를 담당하는 httpx 클라이언트 래퍼입니다.
원격 플랫폼 호출은 자동으로 재시도하지 않습니다. 실패는 그대로 전파되어
호출자가 조정 전체를 다시 실행하는 방식으로 복구합니다.
"""

from typing import Any, Optional

import httpx

from ..errors import GenAIAPIError, GenAIConnectionError
from ..logging_config import Loggers

logger = Loggers.gateway()

DEFAULT_BASE_URL = "https://api.digitalocean.com/v2/gen-ai"


def _error_message(response: httpx.Response, payload: Any) -> str:
    """오류 응답에서 사람이 읽을 수 있는 메시지를 추출합니다."""
    if isinstance(payload, dict):
        for key in ("message", "error_message", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
    text = response.text.strip()
    return text or response.reason_phrase or f"HTTP {response.status_code}"


class GenAIClient:
    """GenAI REST API 클라이언트.

    Attributes:
        base_url: GenAI API 기본 URL.
        account_url: 계정 수준 API URL (프로젝트 조회용).

    Example:
        >>> with GenAIClient(api_token="...") as client:
        ...     body = client.request("GET", "/knowledge_bases")
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """클라이언트를 초기화합니다.

        Args:
            api_token: Bearer 인증 토큰.
            base_url: GenAI API 기본 URL.
            timeout: 요청 타임아웃 (초).
            transport: 테스트용 httpx 전송 계층. 선택적.
        """
        self.base_url = base_url.rstrip("/")
        self.account_url = self.base_url.removesuffix("/gen-ai")
        self._http_client = httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        """HTTP 연결을 닫습니다."""
        self._http_client.close()

    def __enter__(self) -> "GenAIClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        """API를 호출하고 디코딩된 JSON 본문을 반환합니다.

        Args:
            method: HTTP 메서드.
            path: base_url 기준 상대 경로 또는 절대 URL.
            json: 요청 본문. 선택적.
            params: 쿼리 파라미터. 선택적.

        Returns:
            디코딩된 응답 본문. 본문이 비어 있거나 JSON이 아니면 빈 딕셔너리.

        Raises:
            GenAIAPIError: 2xx 이외의 응답.
            GenAIConnectionError: 네트워크 또는 타임아웃 오류.
        """
        try:
            response = self._http_client.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            logger.warning("GenAI API 전송 오류", method=method, path=path, error=str(e))
            raise GenAIConnectionError(f"{method} {path} failed: {e}") from e

        payload = self._decode(response)
        logger.debug(
            "GenAI API 호출",
            method=method,
            path=path,
            status=response.status_code,
        )

        if response.is_error:
            message = _error_message(response, payload)
            logger.warning(
                "GenAI API 오류 응답",
                method=method,
                path=path,
                status=response.status_code,
                error=message,
            )
            raise GenAIAPIError(response.status_code, message, payload)

        return payload

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}
