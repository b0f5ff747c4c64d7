"""인덱싱 작업 모니터.

작업이 종료 상태에 도달할 때까지 고정 간격으로 폴링하고,
이미 실행 중인 작업을 찾아내는 기능을 제공합니다.

외부 취소 신호는 없습니다. 모니터는 종료 상태 또는 시도 횟수 소진까지 실행되며,
사용자에게 보여줄 진행 상황은 호출자가 check()를 자체 주기로 호출해 얻습니다.
"""

import time
from typing import Callable, Optional

from ..client import IndexingJobResource
from ..config import MonitorSettings
from ..errors import IndexingFailedError, IndexingTimeoutError
from ..logging_config import Loggers
from ..models import IndexingJob, IndexingJobStatus, JobProgress

logger = Loggers.monitor()

ProgressCallback = Callable[[IndexingJob, int], None]


class JobMonitor:
    """인덱싱 작업 폴링 및 탐색.

    Attributes:
        jobs: 인덱싱 작업 리소스.
        settings: 폴링 기본값.
    """

    def __init__(
        self,
        jobs: IndexingJobResource,
        settings: Optional[MonitorSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """모니터를 초기화합니다.

        Args:
            jobs: 인덱싱 작업 리소스.
            settings: 폴링 기본값. None이면 환경 변수에서 로드.
            sleep: 폴링 사이 대기 함수. 테스트에서 대체할 수 있습니다.
        """
        self.jobs = jobs
        self.settings = settings or MonitorSettings()
        self._sleep = sleep

    def poll(
        self,
        job_id: str,
        max_attempts: Optional[int] = None,
        interval_seconds: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> IndexingJob:
        """작업이 종료 상태가 될 때까지 폴링합니다.

        매 시도(첫 시도 포함)마다 on_progress(job, attempt)를 호출합니다.
        간격은 고정이며 마지막 시도 뒤에는 대기하지 않습니다.

        Args:
            job_id: 작업 식별자.
            max_attempts: 최대 시도 횟수. None이면 설정값.
            interval_seconds: 시도 간 대기 시간 (초). None이면 설정값.
            on_progress: 진행 콜백. 선택적.

        Returns:
            COMPLETED 상태의 작업.

        Raises:
            IndexingFailedError: 작업이 FAILED로 종료된 경우.
            IndexingTimeoutError: 시도 횟수 안에 종료되지 않은 경우.
        """
        attempts_allowed = max_attempts if max_attempts is not None else self.settings.max_attempts
        interval = interval_seconds if interval_seconds is not None else self.settings.interval_seconds

        for attempt in range(1, attempts_allowed + 1):
            job = self.jobs.get(job_id)

            if on_progress:
                on_progress(job, attempt)

            logger.debug(
                "인덱싱 작업 상태",
                job_id=job_id,
                attempt=attempt,
                status=job.status.value,
                progress=job.progress,
            )

            if job.status == IndexingJobStatus.COMPLETED:
                logger.info("인덱싱 작업 완료", job_id=job_id, attempts=attempt)
                return job

            if job.status == IndexingJobStatus.FAILED:
                message = job.error or "Unknown error"
                logger.error("인덱싱 작업 실패", job_id=job_id, error=message)
                raise IndexingFailedError(f"Indexing job failed: {message}", job_id=job_id)

            if attempt < attempts_allowed:
                self._sleep(interval)

        logger.warning("인덱싱 작업 폴링 시간 초과", job_id=job_id, attempts=attempts_allowed)
        raise IndexingTimeoutError(attempts_allowed, job_id=job_id)

    def check(self, job_id: str) -> JobProgress:
        """작업 상태를 한 번 조회합니다.

        Args:
            job_id: 작업 식별자.

        Returns:
            상태, 진행률, 오류를 담은 JobProgress.
        """
        return JobProgress.from_job(self.jobs.get(job_id))

    def find_active_job(self, kb_id: str) -> Optional[IndexingJob]:
        """KB에서 가장 최근의 PENDING/RUNNING 작업을 찾습니다.

        created_at이 있으면 최신순으로, 없으면 목록 순서를 따릅니다.

        Args:
            kb_id: KB 식별자.

        Returns:
            활성 작업 또는 None.
        """
        active = [job for job in self.jobs.list_for_kb(kb_id) if job.status.is_active]
        if not active:
            return None
        dated = [job for job in active if job.created_at is not None]
        if dated:
            return max(dated, key=lambda job: job.created_at)
        return active[0]
