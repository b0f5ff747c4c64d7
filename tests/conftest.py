"""Pytest configuration and shared fixtures."""

import httpx
import pytest

from fakes import BASE_URL, DATABASE_ID, EMBEDDING_MODEL_ID, ENV_VARS, PROJECT_ID, FakePlatform
from genai_kb.client import GenAIGateway
from genai_kb.config import GenAISettings, MonitorSettings
from genai_kb.services import JobMonitor, Reconciler


# ==================== Environment ====================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove configuration variables so each test starts from defaults."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ==================== Platform Fixtures ====================


@pytest.fixture
def platform():
    """Create an empty fake platform."""
    return FakePlatform()


@pytest.fixture
def genai_settings():
    """GenAI settings with every provisioning identifier configured."""
    return GenAISettings(
        DIGITALOCEAN_TOKEN="test-token",
        DO_GENAI_BASE_URL=BASE_URL,
        DO_PROJECT_ID=PROJECT_ID,
        DO_DATABASE_ID=DATABASE_ID,
        DO_EMBEDDING_MODEL_ID=EMBEDDING_MODEL_ID,
    )


@pytest.fixture
def bare_settings():
    """GenAI settings without provisioning identifiers."""
    return GenAISettings(DIGITALOCEAN_TOKEN="test-token", DO_GENAI_BASE_URL=BASE_URL)


@pytest.fixture
def make_gateway(platform):
    """Factory for gateways wired to the fake platform."""
    gateways = []

    def factory(settings: GenAISettings) -> GenAIGateway:
        gateway = GenAIGateway.from_settings(settings, transport=httpx.MockTransport(platform))
        gateways.append(gateway)
        return gateway

    yield factory

    for gateway in gateways:
        gateway.close()


@pytest.fixture
def gateway(make_gateway, genai_settings):
    """Gateway wired to the fake platform."""
    return make_gateway(genai_settings)


@pytest.fixture
def monitor_settings():
    """Monitor settings with a short, sleep-free schedule."""
    return MonitorSettings(INDEXING_POLL_MAX_ATTEMPTS=10, INDEXING_POLL_INTERVAL=0)


@pytest.fixture
def monitor(gateway, monitor_settings):
    """Job monitor that never sleeps."""
    return JobMonitor(gateway.indexing, monitor_settings, sleep=lambda seconds: None)


@pytest.fixture
def reconciler(gateway, genai_settings, monitor):
    """Reconciler wired to the fake platform."""
    return Reconciler(gateway, genai_settings, monitor)
