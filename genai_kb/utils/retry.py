"""상태 저장 충돌 재시도 (tenacity 기반).

GenAI 원격 호출에는 사용하지 않습니다. 원격 실패는 조정 전체를 다시 실행해
복구합니다. 여기서의 재시도는 사용자 상태 저장 시 revision 충돌
(StateConflictError)에만 적용되며, 매 시도마다 최신 스냅샷을 다시 읽습니다.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, Union

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from ..logging_config import Loggers

logger = Loggers.storage()

ExceptionTypes = Union[Type[Exception], tuple[Type[Exception], ...]]


@dataclass(frozen=True)
class RetryConfig:
    """상한 있는 지수 백오프 설정.

    Attributes:
        max_attempts: 최대 시도 횟수 (첫 시도 포함).
        initial_wait: 첫 재시도 전 대기 시간 (초). 이후 두 배씩 증가.
        max_wait: 대기 시간 상한 (초).
        jitter: 대기 시간에 더할 무작위 지연의 최대값 (초). 0이면 사용 안 함.
    """

    max_attempts: int = 5
    initial_wait: float = 0.05
    max_wait: float = 1.0
    jitter: float = 0.0

    def to_tenacity_kwargs(self) -> dict[str, Any]:
        """tenacity Retrying에 전달할 stop/wait kwargs를 만듭니다."""
        wait = wait_exponential(multiplier=self.initial_wait, max=self.max_wait)
        if self.jitter > 0:
            wait = wait + wait_random(0, self.jitter)
        return {
            "stop": stop_after_attempt(self.max_attempts),
            "wait": wait,
        }


STATE_CONFLICT_CONFIG = RetryConfig()


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "상태 저장 충돌, 재시도 대기",
        attempt=retry_state.attempt_number,
        wait=round(retry_state.next_action.sleep, 3) if retry_state.next_action else None,
        error=str(exception) if exception else None,
    )


def create_retrying(
    config: RetryConfig = STATE_CONFLICT_CONFIG,
    retry_on: ExceptionTypes = Exception,
    sleep: Optional[Callable[[float], None]] = None,
) -> Retrying:
    """반복문에서 사용할 Retrying 인스턴스를 생성합니다.

    retry_on에 해당하지 않는 예외는 즉시 전파되고, 시도를 모두 쓰면
    마지막 예외를 그대로 다시 발생시킵니다.

    Args:
        config: 백오프 설정.
        retry_on: 재시도할 예외 타입.
        sleep: 대기 함수. 테스트에서 대체할 수 있습니다.

    Returns:
        설정된 Retrying.

    Example:
        >>> for attempt in create_retrying(retry_on=StateConflictError):
        ...     with attempt:
        ...         store.save(state, expected_revision)
    """
    kwargs = config.to_tenacity_kwargs()
    kwargs.update(
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_before_sleep,
        reraise=True,
    )
    if sleep is not None:
        kwargs["sleep"] = sleep
    return Retrying(**kwargs)
