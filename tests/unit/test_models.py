"""Tests for data models."""

from datetime import datetime, timezone

import pytest

from genai_kb.errors import ErrorKind
from genai_kb.models import (
    DataSourceRef,
    IndexingJob,
    IndexingJobStatus,
    JobProgress,
    KnowledgeBase,
    KnowledgeBaseCreate,
    ReconcileFailure,
    ReconcileResult,
    UserKbState,
)


class TestIndexingJobStatus:
    """Tests for IndexingJobStatus."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("INDEX_JOB_STATUS_PENDING", IndexingJobStatus.PENDING),
            ("INDEX_JOB_STATUS_RUNNING", IndexingJobStatus.RUNNING),
            ("INDEX_JOB_STATUS_COMPLETED", IndexingJobStatus.COMPLETED),
            ("INDEX_JOB_STATUS_FAILED", IndexingJobStatus.FAILED),
            ("index_job_status_in_progress", IndexingJobStatus.RUNNING),
            ("INDEX_JOB_STATUS_NO_CHANGES", IndexingJobStatus.COMPLETED),
            ("INDEX_JOB_STATUS_PARTIAL", IndexingJobStatus.COMPLETED),
            ("INDEX_JOB_STATUS_CANCELLED", IndexingJobStatus.FAILED),
            ("completed", IndexingJobStatus.COMPLETED),
            ("INDEX_JOB_STATUS_UNKNOWN", IndexingJobStatus.PENDING),
            ("SOMETHING_NEW", IndexingJobStatus.PENDING),
            (None, IndexingJobStatus.PENDING),
        ],
    )
    def test_from_api(self, raw, expected):
        """Test upstream status values are normalized."""
        assert IndexingJobStatus.from_api(raw) == expected

    def test_terminal_and_active(self):
        """Test terminal and active groupings."""
        assert IndexingJobStatus.COMPLETED.is_terminal
        assert IndexingJobStatus.FAILED.is_terminal
        assert IndexingJobStatus.PENDING.is_active
        assert IndexingJobStatus.RUNNING.is_active
        assert not IndexingJobStatus.RUNNING.is_terminal


class TestIndexingJob:
    """Tests for IndexingJob.from_api."""

    def test_full_payload(self):
        """Test a complete upstream job record."""
        job = IndexingJob.from_api(
            {
                "uuid": "job-1",
                "knowledge_base_uuid": "kb-1",
                "data_source_uuids": ["ds-1"],
                "status": "INDEX_JOB_STATUS_RUNNING",
                "phase": "BATCH_JOB_PHASE_RUNNING",
                "completed_datasources": 1,
                "total_datasources": 4,
                "created_at": "2024-05-01T10:00:00Z",
            }
        )

        assert job.id == "job-1"
        assert job.knowledge_base_id == "kb-1"
        assert job.data_source_ids == ["ds-1"]
        assert job.status == IndexingJobStatus.RUNNING
        assert job.raw_status == "INDEX_JOB_STATUS_RUNNING"
        assert job.progress == 0.25
        assert job.created_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw,expected", [(0.5, 0.5), (40, 0.4), (1, 1.0)])
    def test_explicit_progress(self, raw, expected):
        """Test explicit progress accepts ratios and percentages."""
        assert IndexingJob.from_api({"uuid": "j", "progress": raw}).progress == expected

    def test_error_message_from_object(self):
        """Test nested error objects are flattened."""
        job = IndexingJob.from_api({"id": "j", "status": "FAILED", "error": {"message": "quota"}})

        assert job.error == "quota"

    def test_job_progress_from_job(self):
        """Test JobProgress mirrors the job."""
        job = IndexingJob(id="j", status=IndexingJobStatus.FAILED, error="x")

        assert JobProgress.from_job(job) == JobProgress(job_id="j", status=IndexingJobStatus.FAILED, error="x")


class TestKnowledgeBase:
    """Tests for KnowledgeBase and DataSourceRef."""

    def test_from_api_nested_data_sources(self):
        """Test the spaces_data_source shape and nested embedding model."""
        kb = KnowledgeBase.from_api(
            {
                "uuid": "kb-1",
                "name": "alice-kb",
                "database_id": "db",
                "embedding_model": {"uuid": "model"},
                "total_tokens": "120",
                "datasources": [
                    {
                        "uuid": "ds-1",
                        "spaces_data_source": {"bucket_name": "maia", "item_path": "a/", "region": "tor1"},
                    }
                ],
            }
        )

        assert kb.embedding_model_id == "model"
        assert kb.total_tokens == 120
        assert kb.data_sources == [DataSourceRef(id="ds-1", bucket_name="maia", item_path="a/", region="tor1")]

    def test_flat_data_source(self):
        """Test the flat data source shape."""
        ref = DataSourceRef.from_api({"id": "ds-2", "item_path": "b/", "bucket_name": "maia"})

        assert ref.id == "ds-2"
        assert ref.item_path == "b/"

    def test_is_up_to_date(self):
        """Test the single-data-source check."""
        one = KnowledgeBase(id="kb", data_sources=[DataSourceRef(id="1", item_path="a/")])
        two = KnowledgeBase(
            id="kb",
            data_sources=[DataSourceRef(id="1", item_path="a/"), DataSourceRef(id="2", item_path="a/")],
        )

        assert one.is_up_to_date("a/")
        assert not one.is_up_to_date("b/")
        assert not two.is_up_to_date("a/")
        assert len(two.data_sources_at("a/")) == 2

    def test_create_to_api(self):
        """Test the creation body carries one initial data source."""
        body = KnowledgeBaseCreate(
            name="alice-kb",
            description="d",
            project_id="p",
            database_id="db",
            region="tor1",
            bucket_name="maia",
            item_path="users/alice/",
        ).to_api()

        assert "embedding_model_uuid" not in body
        assert body["datasources"] == [
            {"spaces_data_source": {"bucket_name": "maia", "item_path": "users/alice/", "region": "tor1"}}
        ]


class TestUserKbState:
    """Tests for UserKbState transitions."""

    @pytest.fixture
    def state(self):
        return UserKbState(user_id="alice", kb_name="alice-kb", pending_files=("a.pdf", "b.pdf"))

    def test_is_immutable(self, state):
        """Test snapshots cannot be mutated in place."""
        with pytest.raises(Exception):
            state.kb_id = "kb-1"

    def test_with_reconcile_result(self, state):
        """Test a result records the KB and job."""
        result = ReconcileResult(kb_id="kb-1", data_source_id="ds-1", job_id="job-1")

        updated = state.with_reconcile_result(result)

        assert updated.kb_id == "kb-1"
        assert updated.last_indexing_job_id == "job-1"
        assert updated.pending_files == state.pending_files

    def test_with_completed_job_moves_pending(self, state):
        """Test completion moves pending files without duplicates."""
        state = state.model_copy(update={"indexed_files": ("a.pdf",)})

        updated = state.with_completed_job(IndexingJob(id="job-1", status=IndexingJobStatus.COMPLETED))

        assert updated.pending_files == ()
        assert updated.indexed_files == ("a.pdf", "b.pdf")
        assert updated.last_indexing_job_id == "job-1"

    def test_with_unfinished_job_is_unchanged(self, state):
        """Test non-completed jobs leave the snapshot alone."""
        job = IndexingJob(id="job-1", status=IndexingJobStatus.FAILED)

        assert state.with_completed_job(job) is state

    def test_with_pending_files(self, state):
        """Test pending files are appended without duplicates."""
        assert state.with_pending_files(["b.pdf", "c.pdf"]).pending_files == ("a.pdf", "b.pdf", "c.pdf")


class TestReconcileOutcome:
    """Tests for reconcile result payloads."""

    def test_result_payload(self):
        result = ReconcileResult(kb_id="kb", data_source_id="ds", job_id="job")

        assert result.ok is True
        assert result.to_payload() == {"kbId": "kb", "dataSourceId": "ds", "jobId": "job"}

    def test_failure_payload(self):
        failure = ReconcileFailure(error_kind=ErrorKind.INDEXING_TIMEOUT, message="slow")

        assert failure.ok is False
        assert failure.retryable is True
        assert failure.to_payload() == {"errorKind": "INDEXING_TIMEOUT", "message": "slow"}
