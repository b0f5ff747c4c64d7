"""structlog 기반 로깅 설정.

개발 환경에서는 콘솔 렌더러, 프로덕션에서는 JSON 렌더러를 사용합니다.
API 토큰은 어떤 경로로도 로그에 남지 않도록 이벤트 필드를 마스킹합니다.

사용 예:
    >>> from .logging_config import configure_logging, Loggers
    >>> configure_logging(level="DEBUG", json_format=True)
    >>> Loggers.reconciler().info("KB 조정 완료", kb_id="kb-1", job_id="job-1")
"""

import logging
import sys
from typing import Any, Optional

import structlog

SECRET_FIELDS = frozenset({"token", "api_token", "authorization", "digitalocean_token"})
REDACTED = "***"

# httpx는 INFO 레벨에서 요청 URL을 기록함
NOISY_LOGGERS = ("httpx", "httpcore")


def redact_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    """이벤트 딕셔너리의 비밀 값 필드를 마스킹합니다."""
    for key in event_dict:
        if key.lower() in SECRET_FIELDS:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """GenAI KB Sync 로깅을 설정합니다.

    Args:
        level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR).
        json_format: JSON 렌더러 사용 여부.
        log_file: 추가로 기록할 로그 파일 경로. 선택적.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    root = logging.getLogger()
    root.setLevel(numeric_level)
    if log_file:
        root.addHandler(logging.FileHandler(log_file, encoding="utf-8"))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """이름이 지정된 structlog 로거를 반환합니다."""
    return structlog.get_logger(name)


class Loggers:
    """컴포넌트별 로거.

    로거 이름은 모두 "genai_kb." 접두사를 사용합니다.
    """

    @staticmethod
    def gateway() -> structlog.stdlib.BoundLogger:
        """GenAI API 호출."""
        return get_logger("genai_kb.gateway")

    @staticmethod
    def cache() -> structlog.stdlib.BoundLogger:
        return get_logger("genai_kb.cache")

    @staticmethod
    def reconciler() -> structlog.stdlib.BoundLogger:
        """KB 조정 엔진 및 식별자 확정."""
        return get_logger("genai_kb.reconciler")

    @staticmethod
    def monitor() -> structlog.stdlib.BoundLogger:
        return get_logger("genai_kb.monitor")

    @staticmethod
    def storage() -> structlog.stdlib.BoundLogger:
        """사용자 상태 저장 및 충돌 재시도."""
        return get_logger("genai_kb.storage")

    @staticmethod
    def cli() -> structlog.stdlib.BoundLogger:
        return get_logger("genai_kb.cli")


configure_logging()
