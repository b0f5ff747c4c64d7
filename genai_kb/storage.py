"""JSON 파일 기반 사용자 상태 저장소.

조정 엔진은 상태를 저장하지 않습니다. 호출자(CLI)가 UserKbState 스냅샷을
읽어 엔진에 넘기고, 돌려받은 새 스냅샷을 이 저장소에 기록합니다.

파일 구성:
    - user_states.json: 사용자별 UserKbState 스냅샷

동시성:
    각 스냅샷은 revision 카운터를 가집니다. save()는 예상 revision과 저장된
    revision이 다르면 StateConflictError를 발생시키고, update()는 충돌 시
    다시 읽고 다시 적용하는 과정을 상한 있는 지수 백오프로 재시도합니다.
"""

import json
import os
from pathlib import Path
from typing import Callable, Optional

from .errors import StateConflictError
from .logging_config import Loggers
from .models import UserKbState
from .utils.retry import STATE_CONFLICT_CONFIG, RetryConfig, create_retrying

logger = Loggers.storage()

StateUpdate = Callable[[Optional[UserKbState]], UserKbState]


class StateStore:
    """사용자 상태 스냅샷 저장소.

    Attributes:
        STATES_FILE: 상태 파일명.
        data_dir: 상태 파일 디렉토리.
    """

    STATES_FILE = "user_states.json"

    def __init__(
        self,
        data_dir: Path | str,
        retry_config: RetryConfig = STATE_CONFLICT_CONFIG,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """저장소를 초기화합니다.

        Args:
            data_dir: JSON 상태 파일을 저장할 디렉토리.
            retry_config: 충돌 재시도 설정.
            sleep: 재시도 대기 함수. 테스트에서 대체할 수 있습니다.
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.retry_config = retry_config
        self._sleep = sleep
        self._states_path = self.data_dir / self.STATES_FILE

    # ==================== 조회 ====================

    def get(self, user_id: str) -> Optional[UserKbState]:
        """사용자 상태를 조회합니다.

        Args:
            user_id: 사용자 식별자.

        Returns:
            저장된 UserKbState, 없으면 None.
        """
        raw = self._load_json(self._states_path, {"users": {}}).get("users", {}).get(user_id)
        return UserKbState.model_validate(raw) if raw else None

    def list_user_ids(self) -> list[str]:
        """저장된 사용자 ID 목록 (정렬됨)."""
        return sorted(self._load_json(self._states_path, {"users": {}}).get("users", {}))

    # ==================== 저장 ====================

    def save(self, state: UserKbState, expected_revision: int) -> UserKbState:
        """스냅샷을 저장합니다.

        Args:
            state: 저장할 스냅샷.
            expected_revision: 읽을 당시의 revision. 새 사용자는 0.

        Returns:
            revision이 증가된 저장된 스냅샷.

        Raises:
            StateConflictError: 저장된 revision이 expected_revision과 다른 경우.
        """
        data = self._load_json(self._states_path, {"users": {}})
        users = data.setdefault("users", {})

        stored = users.get(state.user_id)
        actual = int(stored.get("revision", 0)) if stored else 0
        if actual != expected_revision:
            raise StateConflictError(state.user_id, expected_revision, actual)

        saved = state.model_copy(update={"revision": expected_revision + 1})
        users[state.user_id] = saved.model_dump(mode="json")
        self._save_json(self._states_path, data)

        logger.debug("사용자 상태 저장", user_id=state.user_id, revision=saved.revision)
        return saved

    def update(self, user_id: str, apply: StateUpdate) -> UserKbState:
        """읽기-적용-저장을 충돌 시 재시도하며 수행합니다.

        apply는 재시도마다 최신 스냅샷(없으면 None)으로 다시 호출됩니다.

        Args:
            user_id: 사용자 식별자.
            apply: 현재 스냅샷을 받아 새 스냅샷을 반환하는 함수.

        Returns:
            저장된 스냅샷.

        Raises:
            StateConflictError: 재시도 횟수를 모두 소진한 경우.
        """
        retrying = create_retrying(
            config=self.retry_config,
            retry_on=StateConflictError,
            sleep=self._sleep,
        )
        for attempt in retrying:
            with attempt:
                current = self.get(user_id)
                expected = current.revision if current else 0
                new_state = apply(current)
                if new_state.user_id != user_id:
                    raise ValueError(
                        f"State update for '{user_id}' returned state for '{new_state.user_id}'"
                    )
                return self.save(new_state, expected)

    # ==================== 유틸리티 ====================

    def _load_json(self, path: Path, default: dict) -> dict:
        """JSON 파일을 로드하거나 기본값을 반환합니다."""
        if not path.exists():
            return default

        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("상태 파일 로드 실패, 빈 상태로 시작", path=str(path), error=str(e))
            return default

    def _save_json(self, path: Path, data: dict) -> None:
        """데이터를 임시 파일에 쓴 뒤 교체하여 저장합니다."""
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)


# 전역 저장소 인스턴스 (지연 초기화)
_store: StateStore | None = None


def get_state_store(data_dir: Path | str | None = None) -> StateStore:
    """상태 저장소 인스턴스를 반환합니다.

    Args:
        data_dir: 데이터 디렉토리 (선택적). 미지정 시 'data' 사용.

    Returns:
        StateStore 인스턴스.
    """
    global _store

    if data_dir is not None:
        return StateStore(data_dir)

    if _store is None:
        _store = StateStore(Path("data"))

    return _store
