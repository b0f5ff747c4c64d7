"""KB 조정(reconcile) 엔진.

사용자의 원하는 상태(KB 이름 하나, 데이터 소스 경로 하나)를 원격 플랫폼에 반영합니다.

처리 흐름:
    1. KB 찾기 또는 생성 (이름 정확 일치, 첫 번째 일치 사용)
    2. 데이터 소스 조정 (삭제 후 추가, 항상 정확히 하나로 수렴)
    3. 인덱싱 재개 또는 시작 (실행 중 충돌 시 활성 작업 채택)
    4. kb_id, data_source_id, job_id 반환

모든 변경 호출 전에 현재 원격 상태를 확인하므로, 중간에 실패한 조정을
다시 실행해도 같은 원하는 상태로 수렴합니다. 원격 호출은 한 번에 하나씩
순서대로 실행되며, 어느 단계든 실패하면 즉시 구조화된 실패를 반환합니다.
"""

from typing import Optional

from ..client import GenAIGateway
from ..config import GenAISettings
from ..errors import (
    ErrorKind,
    GenAIAPIError,
    GenAIConnectionError,
    IndexingConflictError,
    KBSyncError,
)
from ..logging_config import Loggers
from ..models import (
    DataSourceRef,
    IndexingJob,
    KnowledgeBase,
    KnowledgeBaseCreate,
    ReconcileFailure,
    ReconcileOutcome,
    ReconcileResult,
    UserKbState,
)
from .cache import StateCache
from .monitor import JobMonitor
from .resolver import ProvisioningResolver

logger = Loggers.reconciler()

REMOTE_ERRORS = (GenAIAPIError, GenAIConnectionError)

CONFLICT_MARKERS = ("already running", "already in progress", "in progress", "conflict")


def is_indexing_conflict(error: Exception) -> bool:
    """인덱싱 시작 오류가 '이미 실행 중' 충돌인지 판별합니다.

    409 상태 코드 또는 메시지/본문의 충돌 문구로 판단합니다.

    Args:
        error: 인덱싱 시작 시 발생한 예외.

    Returns:
        충돌이면 True.
    """
    if not isinstance(error, GenAIAPIError):
        return False
    if error.status_code == 409:
        return True
    text = f"{error.message} {error.payload or ''}".lower()
    return any(marker in text for marker in CONFLICT_MARKERS)


def _upstream_message(error: Exception) -> str:
    if isinstance(error, GenAIAPIError):
        return error.message
    return str(error)


def _require_values(**values: Optional[str]) -> None:
    """빈 입력이 있으면 원격 호출 전에 실패시킵니다."""
    blank = [name for name, value in values.items() if not value or not value.strip()]
    if blank:
        raise KBSyncError(
            f"Required values are blank: {', '.join(blank)}",
            ErrorKind.INVALID_REQUEST,
            details={"blank": blank},
        )


class Reconciler:
    """KB 조정 엔진.

    호출마다 새 StateCache를 만들며, 호출 사이에 공유하는 가변 상태는 없습니다.
    같은 사용자에 대한 동시 호출은 배제하지 않습니다. 그 경합은 인덱싱 시작의
    충돌 감지 및 활성 작업 채택으로 처리됩니다.

    Attributes:
        gateway: GenAI 리소스 게이트웨이.
        settings: GenAI API 설정 (리전, 프로비저닝 식별자).
        monitor: 활성 작업 탐색에 사용하는 작업 모니터.
        resolver: KB 생성용 식별자 확정기.
    """

    def __init__(
        self,
        gateway: GenAIGateway,
        settings: GenAISettings,
        monitor: Optional[JobMonitor] = None,
        resolver: Optional[ProvisioningResolver] = None,
    ):
        self.gateway = gateway
        self.settings = settings
        self.monitor = monitor or JobMonitor(gateway.indexing)
        self.resolver = resolver or ProvisioningResolver(settings, gateway)

    # ==================== 공개 API ====================

    def reconcile(
        self,
        user_id: str,
        kb_name: str,
        desired_item_path: str,
        bucket_name: str,
        resume_job_id: Optional[str] = None,
    ) -> ReconcileOutcome:
        """원하는 상태를 원격 플랫폼에 반영합니다.

        Args:
            user_id: 사용자 식별자 (KB 설명과 로그에 사용).
            kb_name: 원하는 KB 이름.
            desired_item_path: 원하는 데이터 소스 경로.
            bucket_name: 데이터 소스 버킷 이름.
            resume_job_id: 이전에 관찰한 작업 ID. 선택적.

        Returns:
            ReconcileResult 또는 ReconcileFailure.
        """
        log = logger.bind(user_id=user_id, kb_name=kb_name, item_path=desired_item_path)
        cache = StateCache(self.gateway.kb)
        mutations: list[str] = []

        try:
            _require_values(kb_name=kb_name, item_path=desired_item_path, bucket_name=bucket_name)
            kb = self._find_or_create_kb(cache, user_id, kb_name, desired_item_path, bucket_name, mutations)
            data_source_id = self._reconcile_data_source(cache, kb, desired_item_path, bucket_name, mutations)
            job, adopted = self._start_or_resume(kb.id, data_source_id, resume_job_id, mutations)
        except KBSyncError as e:
            log.error(
                "KB 조정 실패",
                error_kind=e.error_kind.value,
                error=e.message,
                mutations=mutations,
            )
            return ReconcileFailure(error_kind=e.error_kind, message=e.message)

        result = ReconcileResult(
            kb_id=kb.id,
            data_source_id=data_source_id,
            job_id=job.id,
            kb_detail=cache.get_kb_detail(kb.id),
            job_adopted=adopted,
            mutations=mutations,
        )
        log.info(
            "KB 조정 완료",
            kb_id=result.kb_id,
            data_source_id=result.data_source_id,
            job_id=result.job_id,
            job_adopted=adopted,
            mutations=len(mutations),
        )
        return result

    def reconcile_state(
        self,
        state: UserKbState,
        desired_item_path: str,
        bucket_name: str,
    ) -> tuple[ReconcileOutcome, UserKbState]:
        """사용자 상태 스냅샷을 기준으로 조정합니다.

        state.last_indexing_job_id를 재개 힌트로 사용합니다.
        스냅샷 저장은 호출자의 몫입니다.

        Args:
            state: 호출자가 읽은 사용자 상태.
            desired_item_path: 원하는 데이터 소스 경로.
            bucket_name: 데이터 소스 버킷 이름.

        Returns:
            (조정 결과, 갱신된 스냅샷). 실패하면 스냅샷은 그대로입니다.
        """
        outcome = self.reconcile(
            user_id=state.user_id,
            kb_name=state.kb_name,
            desired_item_path=desired_item_path,
            bucket_name=bucket_name,
            resume_job_id=state.last_indexing_job_id,
        )
        if isinstance(outcome, ReconcileResult):
            return outcome, state.with_reconcile_result(outcome)
        return outcome, state

    # ==================== 1. KB 찾기 또는 생성 ====================

    def _find_or_create_kb(
        self,
        cache: StateCache,
        user_id: str,
        kb_name: str,
        item_path: str,
        bucket_name: str,
        mutations: list[str],
    ) -> KnowledgeBase:
        try:
            matches = [kb for kb in cache.get_all_kbs() if kb.name == kb_name]
        except REMOTE_ERRORS as e:
            raise KBSyncError(
                f"Failed to list knowledge bases: {_upstream_message(e)}",
                ErrorKind.KB_LOOKUP_FAILED,
            ) from e

        if matches:
            if len(matches) > 1:
                logger.warning(
                    "같은 이름의 KB가 여러 개 존재, 첫 번째 사용",
                    kb_name=kb_name,
                    kb_ids=[kb.id for kb in matches],
                )
            return self._fetch_detail(cache, matches[0].id)

        ids = self.resolver.resolve(cache)
        request = KnowledgeBaseCreate(
            name=kb_name,
            description=f"{kb_name} knowledge base for user {user_id}",
            project_id=ids.project_id,
            database_id=ids.database_id,
            embedding_model_id=ids.embedding_model_id,
            region=self.settings.region,
            bucket_name=bucket_name,
            item_path=item_path,
        )
        try:
            created = self.gateway.kb.create(request)
        except REMOTE_ERRORS as e:
            raise KBSyncError(
                f"Failed to create knowledge base '{kb_name}': {_upstream_message(e)}",
                ErrorKind.KB_CREATE_FAILED,
            ) from e
        mutations.append("create_kb")

        if not created.id:
            raise KBSyncError(
                f"Knowledge base '{kb_name}' was created without an identifier",
                ErrorKind.KB_CREATE_FAILED,
            )

        # 생성 응답에는 데이터 소스 ID가 없을 수 있음
        cache.invalidate_list()
        cache.invalidate_kb(created.id)
        return self._fetch_detail(cache, created.id)

    def _fetch_detail(self, cache: StateCache, kb_id: str) -> KnowledgeBase:
        try:
            return cache.get_kb_detail(kb_id)
        except REMOTE_ERRORS as e:
            raise KBSyncError(
                f"Failed to fetch knowledge base {kb_id}: {_upstream_message(e)}",
                ErrorKind.KB_LOOKUP_FAILED,
            ) from e

    # ==================== 2. 데이터 소스 조정 ====================

    def _reconcile_data_source(
        self,
        cache: StateCache,
        kb: KnowledgeBase,
        item_path: str,
        bucket_name: str,
        mutations: list[str],
    ) -> str:
        if any(not ds.id for ds in kb.data_sources):
            kb = self._recover_data_source_ids(cache, kb)

        if kb.is_up_to_date(item_path):
            logger.debug("데이터 소스가 이미 최신", kb_id=kb.id, data_source_id=kb.data_sources[0].id)
            return kb.data_sources[0].id

        stale = list(kb.data_sources)
        if stale:
            logger.info(
                "오래된 데이터 소스 교체",
                kb_id=kb.id,
                stale_paths=[ds.item_path for ds in stale],
                item_path=item_path,
            )

        # 삭제가 실패하면 추가하지 않고 즉시 중단
        for ds in stale:
            try:
                self.gateway.kb.delete_data_source(kb.id, ds.id)
            except REMOTE_ERRORS as e:
                raise KBSyncError(
                    f"Failed to delete data source {ds.id}: {_upstream_message(e)}",
                    ErrorKind.DATASOURCE_DELETE_FAILED,
                ) from e
            mutations.append(f"delete_data_source:{ds.id}")
            cache.record_data_source_removed(kb.id, ds.id)

        region = self.settings.region
        try:
            data_source_id = self.gateway.kb.add_data_source(kb.id, bucket_name, item_path, region)
        except (ValueError, *REMOTE_ERRORS) as e:
            raise KBSyncError(
                f"Failed to add data source at '{item_path}': {_upstream_message(e)}",
                ErrorKind.DATASOURCE_ADD_FAILED,
            ) from e
        mutations.append("add_data_source")

        if data_source_id:
            cache.record_data_source_added(
                kb.id,
                DataSourceRef(
                    id=data_source_id,
                    bucket_name=bucket_name,
                    item_path=item_path,
                    region=region,
                ),
            )
            return data_source_id

        # 즉시 응답에 ID가 없으면 KB 상세를 다시 조회
        cache.invalidate_kb(kb.id)
        refreshed = self._fetch_detail(cache, kb.id)
        for ds in refreshed.data_sources_at(item_path):
            if ds.id:
                return ds.id

        raise KBSyncError(
            f"Data source at '{item_path}' was added but its identifier could not be recovered",
            ErrorKind.DATASOURCE_ADD_FAILED,
        )

    def _recover_data_source_ids(self, cache: StateCache, kb: KnowledgeBase) -> KnowledgeBase:
        """KB 상세에 ID 없는 데이터 소스가 있으면 데이터 소스 목록으로 다시 읽습니다.

        Raises:
            KBSyncError: 목록 조회 실패(KB_LOOKUP_FAILED) 또는
                ID를 끝내 알 수 없는 데이터 소스가 남은 경우(DATASOURCE_DELETE_FAILED).
        """
        try:
            sources = self.gateway.kb.list_data_sources(kb.id)
        except REMOTE_ERRORS as e:
            raise KBSyncError(
                f"Failed to list data sources for {kb.id}: {_upstream_message(e)}",
                ErrorKind.KB_LOOKUP_FAILED,
            ) from e

        unknown = [ds.item_path for ds in sources if not ds.id]
        if len(sources) < len(kb.data_sources):
            unknown += [ds.item_path for ds in kb.data_sources if not ds.id]
        if unknown:
            raise KBSyncError(
                f"Data sources without identifiers cannot be removed from {kb.id}",
                ErrorKind.DATASOURCE_DELETE_FAILED,
                details={"kb_id": kb.id, "item_paths": unknown},
            )

        logger.info("데이터 소스 ID 복구", kb_id=kb.id, data_source_ids=[ds.id for ds in sources])
        recovered = kb.model_copy(update={"data_sources": sources})
        cache.remember_kb(recovered)
        return recovered

    # ==================== 3. 인덱싱 재개 또는 시작 ====================

    def _start_or_resume(
        self,
        kb_id: str,
        data_source_id: str,
        resume_job_id: Optional[str],
        mutations: list[str],
    ) -> tuple[IndexingJob, bool]:
        if resume_job_id:
            resumed = self._resume(kb_id, resume_job_id)
            if resumed is not None:
                return resumed, True

        try:
            job = self.gateway.indexing.start(kb_id, [data_source_id])
        except REMOTE_ERRORS as e:
            if not is_indexing_conflict(e):
                raise KBSyncError(
                    f"Failed to start indexing job: {_upstream_message(e)}",
                    ErrorKind.INDEXING_START_FAILED,
                ) from e
            logger.warning("인덱싱이 이미 실행 중, 활성 작업 탐색", kb_id=kb_id, error=_upstream_message(e))
            return self._adopt_active_job(kb_id, e), True

        mutations.append("start_indexing_job")
        if not job.id:
            raise KBSyncError(
                "Indexing job was started without an identifier",
                ErrorKind.INDEXING_START_FAILED,
            )
        return job, False

    def _resume(self, kb_id: str, job_id: str) -> Optional[IndexingJob]:
        try:
            job = self.gateway.indexing.get(job_id)
        except GenAIAPIError as e:
            if e.is_not_found:
                logger.info("재개 힌트 작업을 찾을 수 없음, 새 작업 시작", job_id=job_id)
                return None
            raise KBSyncError(
                f"Failed to fetch indexing job {job_id}: {e.message}",
                ErrorKind.KB_LOOKUP_FAILED,
            ) from e
        except GenAIConnectionError as e:
            raise KBSyncError(
                f"Failed to fetch indexing job {job_id}: {e}",
                ErrorKind.KB_LOOKUP_FAILED,
            ) from e

        if job.knowledge_base_id and job.knowledge_base_id != kb_id:
            logger.info("재개 힌트 작업이 다른 KB 소속, 새 작업 시작", job_id=job_id)
            return None

        if job.status.is_active:
            logger.info("활성 작업 재개", kb_id=kb_id, job_id=job_id, status=job.status.value)
            return job

        logger.info("재개 힌트 작업이 종료됨, 새 작업 시작", job_id=job_id, status=job.status.value)
        return None

    def _adopt_active_job(self, kb_id: str, conflict: Exception) -> IndexingJob:
        try:
            active = self.monitor.find_active_job(kb_id)
        except REMOTE_ERRORS as e:
            raise KBSyncError(
                f"Failed to list indexing jobs for {kb_id}: {_upstream_message(e)}",
                ErrorKind.KB_LOOKUP_FAILED,
            ) from e

        if active is None or not active.id:
            raise IndexingConflictError(
                f"Indexing already running for knowledge base {kb_id} but no active job was found: "
                f"{_upstream_message(conflict)}",
                details={"kb_id": kb_id},
            )

        logger.info("실행 중인 작업 채택", kb_id=kb_id, job_id=active.id, status=active.status.value)
        return active
