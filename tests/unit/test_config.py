"""Tests for configuration module."""

from pathlib import Path

import pytest

from genai_kb.config import (
    DEFAULT_BUCKET_NAME,
    GenAISettings,
    MonitorSettings,
    Settings,
    StorageSettings,
    get_settings,
)


class TestGenAISettings:
    """Tests for GenAISettings."""

    def test_default_values(self):
        """Test GenAISettings default values."""
        settings = GenAISettings()
        assert settings.api_token == ""
        assert settings.base_url == "https://api.digitalocean.com/v2/gen-ai"
        assert settings.region == "tor1"
        assert settings.request_timeout == 30.0
        assert settings.project_id is None
        assert settings.database_id is None
        assert settings.embedding_model_id is None

    def test_reads_environment(self, monkeypatch):
        """Test values are loaded from environment variables."""
        monkeypatch.setenv("DIGITALOCEAN_TOKEN", "tok")
        monkeypatch.setenv("DO_REGION", "nyc3")
        monkeypatch.setenv("DO_PROJECT_ID", "p-1")

        settings = GenAISettings()

        assert settings.api_token == "tok"
        assert settings.region == "nyc3"
        assert settings.project_id == "p-1"


class TestStorageSettings:
    """Tests for StorageSettings."""

    @pytest.mark.parametrize(
        "bucket,expected",
        [
            ("", DEFAULT_BUCKET_NAME),
            ("https://maia.tor1.digitaloceanspaces.com", "maia"),
            ("https://docs.nyc3.digitaloceanspaces.com/", "docs"),
            ("my-bucket", "my-bucket"),
        ],
    )
    def test_bucket_name(self, bucket, expected):
        """Test bucket name is derived from a URL or used as-is."""
        assert StorageSettings(DIGITALOCEAN_BUCKET=bucket).bucket_name == expected

    def test_default_bucket(self):
        """Test the default bucket name."""
        assert StorageSettings().bucket_name == "maia"


class TestMonitorSettings:
    """Tests for MonitorSettings."""

    def test_default_values(self):
        """Test MonitorSettings default values."""
        settings = MonitorSettings()
        assert settings.max_attempts == 500
        assert settings.interval_seconds == 5.0
        assert settings.status_cadence_seconds == 2.0

    def test_reads_environment(self, monkeypatch):
        """Test polling values are loaded from environment variables."""
        monkeypatch.setenv("INDEXING_POLL_MAX_ATTEMPTS", "12")
        monkeypatch.setenv("INDEXING_POLL_INTERVAL", "0.5")

        settings = MonitorSettings()

        assert settings.max_attempts == 12
        assert settings.interval_seconds == 0.5


class TestSettings:
    """Tests for main Settings class."""

    def test_default_values(self):
        """Test Settings default values."""
        settings = Settings()
        assert settings.app_name == "genai-kb-sync"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.data_dir == Path("data")

    def test_nested_settings(self):
        """Test nested settings are initialized."""
        settings = Settings()
        assert isinstance(settings.genai, GenAISettings)
        assert isinstance(settings.storage, StorageSettings)
        assert isinstance(settings.monitor, MonitorSettings)

    def test_ensure_data_dir(self, monkeypatch, tmp_path):
        """Test ensure_data_dir creates the directory."""
        target = tmp_path / "nested" / "data"
        monkeypatch.setenv("DATA_DIR", str(target))

        result = Settings().ensure_data_dir()

        assert result == target
        assert target.is_dir()

    def test_get_settings_returns_fresh_instance(self):
        """Test get_settings builds a new instance each call."""
        assert get_settings() is not get_settings()
