"""Unit tests for logging configuration."""

import logging

from genai_kb.logging_config import REDACTED, Loggers, configure_logging, redact_secrets


class TestRedactSecrets:
    """Tests for the secret-masking processor."""

    def test_masks_token_fields(self):
        """Test token-like fields are replaced regardless of case."""
        event = {"event": "call", "api_token": "dop_v1_secret", "Authorization": "Bearer x", "kb_id": "kb-1"}

        result = redact_secrets(None, "info", event)

        assert result["api_token"] == REDACTED
        assert result["Authorization"] == REDACTED
        assert result["kb_id"] == "kb-1"

    def test_leaves_other_fields(self):
        """Test events without secrets pass through unchanged."""
        event = {"event": "call", "job_id": "job-1"}

        assert redact_secrets(None, "info", dict(event)) == event


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_sets_root_level_and_quiets_httpx(self):
        """Test the root level follows the argument and httpx stays at WARNING."""
        configure_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

        configure_logging(level="INFO")

    def test_component_loggers(self):
        """Test component loggers can be created and used."""
        Loggers.reconciler().info("test event", kb_id="kb-1")
        Loggers.gateway().debug("test event")
