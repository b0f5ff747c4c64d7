"""Unit tests for provisioning identifier resolution."""

import pytest

from fakes import DATABASE_ID, EMBEDDING_MODEL_ID, PROJECT_ID
from genai_kb.config import GenAISettings
from genai_kb.errors import ConfigMissingError
from genai_kb.services import ProvisioningResolver, StateCache, is_valid_uuid

OTHER_PROJECT_ID = "44444444-4444-4444-8444-444444444444"


@pytest.fixture
def resolve(make_gateway, bare_settings):
    """Resolve identifiers against the fake platform."""

    def run(settings: GenAISettings = bare_settings):
        gateway = make_gateway(settings)
        resolver = ProvisioningResolver(settings, gateway)
        return resolver.resolve(StateCache(gateway.kb))

    return run


def seed_existing_kb(platform):
    platform.add_kb(
        "existing",
        database_id=DATABASE_ID,
        embedding_model_uuid=EMBEDDING_MODEL_ID,
    )


class TestIsValidUuid:
    """Tests for UUID validation."""

    def test_accepts_uuid(self):
        assert is_valid_uuid(PROJECT_ID)
        assert is_valid_uuid(f"  {PROJECT_ID.upper()} ")

    @pytest.mark.parametrize("value", [None, "", "project-1", "1234", PROJECT_ID + "0"])
    def test_rejects_other_values(self, value):
        assert not is_valid_uuid(value)


class TestProvisioningResolver:
    """Tests for ProvisioningResolver.resolve."""

    def test_configuration_wins(self, resolve, genai_settings, platform):
        """Test configured identifiers are used without discovery calls."""
        ids = resolve(genai_settings)

        assert ids.project_id == PROJECT_ID
        assert ids.database_id == DATABASE_ID
        assert ids.embedding_model_id == EMBEDDING_MODEL_ID
        assert platform.calls == []

    def test_project_from_first_agent(self, resolve, platform):
        """Test the first agent's project is used."""
        platform.agents = [{"uuid": "agent-1", "project_id": PROJECT_ID}]
        platform.default_project_id = OTHER_PROJECT_ID
        seed_existing_kb(platform)

        assert resolve().project_id == PROJECT_ID

    def test_project_from_agent_detail(self, resolve, platform):
        """Test agent detail is fetched when the listing omits the project."""
        platform.agents = [{"uuid": "agent-1", "name": "helper"}]
        platform.agent_details["agent-1"] = {"uuid": "agent-1", "project_id": PROJECT_ID}
        seed_existing_kb(platform)

        ids = resolve()

        assert ids.project_id == PROJECT_ID
        assert ("GET", "/v2/gen-ai/agents/agent-1") in platform.calls

    def test_project_from_default_project(self, resolve, platform):
        """Test the default project is used when there are no agents."""
        platform.default_project_id = OTHER_PROJECT_ID
        seed_existing_kb(platform)

        assert resolve().project_id == OTHER_PROJECT_ID

    def test_project_from_project_list(self, resolve, platform):
        """Test the first listed project is the last fallback."""
        platform.project_ids = ["not-a-uuid", OTHER_PROJECT_ID]
        seed_existing_kb(platform)

        assert resolve().project_id == OTHER_PROJECT_ID

    def test_discovery_failures_are_skipped(self, resolve, platform):
        """Test a failing discovery read falls through to the next source."""
        platform.failures[("GET", "/v2/gen-ai/agents")] = (500, {"message": "agents down"})
        platform.default_project_id = OTHER_PROJECT_ID
        seed_existing_kb(platform)

        assert resolve().project_id == OTHER_PROJECT_ID

    def test_database_and_model_from_existing_kb(self, resolve, platform):
        """Test database and embedding model come from the first KB."""
        platform.default_project_id = PROJECT_ID
        seed_existing_kb(platform)

        ids = resolve()

        assert ids.database_id == DATABASE_ID
        assert ids.embedding_model_id == EMBEDDING_MODEL_ID

    def test_invalid_configured_value_is_ignored(self, resolve, platform):
        """Test a configured value that is not a UUID falls back to discovery."""
        settings = GenAISettings(
            DO_GENAI_BASE_URL="https://api.test/v2/gen-ai",
            DO_PROJECT_ID="my-project",
            DO_DATABASE_ID=DATABASE_ID,
            DO_EMBEDDING_MODEL_ID=EMBEDDING_MODEL_ID,
        )
        platform.default_project_id = OTHER_PROJECT_ID

        assert resolve(settings).project_id == OTHER_PROJECT_ID

    def test_missing_identifiers_raise(self, resolve, platform):
        """Test unresolvable identifiers raise CONFIG_MISSING."""
        platform.default_project_id = PROJECT_ID

        with pytest.raises(ConfigMissingError) as exc_info:
            resolve()

        assert exc_info.value.details["missing"] == ["database_id", "embedding_model_id"]
        assert platform.mutations == []
