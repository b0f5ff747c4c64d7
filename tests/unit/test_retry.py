"""Unit tests for state conflict retry utilities."""

from unittest.mock import MagicMock

import pytest

from genai_kb.errors import StateConflictError
from genai_kb.utils import STATE_CONFLICT_CONFIG, RetryConfig, create_retrying


def conflict() -> StateConflictError:
    return StateConflictError("alice", 0, 1)


def run(retrying, outcomes):
    """Drive a Retrying loop that raises or returns each outcome in turn."""
    attempts = []
    for attempt in retrying:
        with attempt:
            attempts.append(attempt.retry_state.attempt_number)
            outcome = outcomes[min(len(attempts), len(outcomes)) - 1]
            if isinstance(outcome, Exception):
                raise outcome
            return outcome, attempts


class TestRetryConfig:
    """Tests for RetryConfig dataclass."""

    def test_default_values(self):
        """Test the default schedule is short and capped."""
        config = RetryConfig()
        assert config.max_attempts == 5
        assert config.initial_wait == 0.05
        assert config.max_wait == 1.0
        assert config.jitter == 0.0

    def test_state_conflict_config(self):
        """Test the state conflict schedule uses the defaults."""
        assert STATE_CONFLICT_CONFIG == RetryConfig()

    def test_to_tenacity_kwargs(self):
        """Test conversion to tenacity kwargs."""
        kwargs = RetryConfig(jitter=0.1).to_tenacity_kwargs()

        assert set(kwargs) == {"stop", "wait"}


class TestCreateRetrying:
    """Tests for create_retrying."""

    def test_retries_until_success(self):
        """Test conflicts are retried until the block succeeds."""
        sleep = MagicMock()
        retrying = create_retrying(retry_on=StateConflictError, sleep=sleep)

        result, attempts = run(retrying, [conflict(), conflict(), "saved"])

        assert result == "saved"
        assert attempts == [1, 2, 3]
        assert sleep.call_count == 2

    def test_backoff_is_capped(self):
        """Test waits grow exponentially and stop at max_wait."""
        sleep = MagicMock()
        config = RetryConfig(max_attempts=6, initial_wait=0.25, max_wait=1.0)
        retrying = create_retrying(config, retry_on=StateConflictError, sleep=sleep)

        run(retrying, [conflict()] * 5 + ["saved"])

        waits = [call.args[0] for call in sleep.call_args_list]
        assert waits == sorted(waits)
        assert max(waits) == 1.0

    def test_other_exceptions_are_not_retried(self):
        """Test non-matching exceptions propagate immediately."""
        sleep = MagicMock()
        retrying = create_retrying(retry_on=StateConflictError, sleep=sleep)

        with pytest.raises(ValueError):
            run(retrying, [ValueError("bad")])
        sleep.assert_not_called()

    def test_reraises_last_exception(self):
        """Test the original exception is raised after the last attempt."""
        retrying = create_retrying(
            RetryConfig(max_attempts=2),
            retry_on=StateConflictError,
            sleep=MagicMock(),
        )

        with pytest.raises(StateConflictError):
            run(retrying, [conflict()])
