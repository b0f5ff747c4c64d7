"""Unit tests for the request-scoped state cache."""

from unittest.mock import MagicMock

import pytest

from genai_kb.models import DataSourceRef, KnowledgeBase
from genai_kb.services import StateCache


@pytest.fixture
def kb_resource():
    """Create a mock KB resource."""
    resource = MagicMock()
    resource.list.return_value = [KnowledgeBase(id="kb-1", name="alice-kb")]
    resource.get.side_effect = lambda kb_id: KnowledgeBase(
        id=kb_id,
        name="alice-kb",
        data_sources=[DataSourceRef(id="ds-1", item_path="users/old/")],
    )
    return resource


@pytest.fixture
def cache(kb_resource):
    """Create a cache over the mock resource."""
    return StateCache(kb_resource)


class TestStateCache:
    """Tests for StateCache."""

    def test_list_is_fetched_once(self, cache, kb_resource):
        """Test repeated list reads hit the remote once."""
        cache.get_all_kbs()
        cache.get_all_kbs()

        assert kb_resource.list.call_count == 1
        assert cache.list_fetches == 1

    def test_detail_is_fetched_once_per_id(self, cache, kb_resource):
        """Test detail reads are memoized per KB id."""
        cache.get_kb_detail("kb-1")
        cache.get_kb_detail("kb-1")
        cache.get_kb_detail("kb-2")

        assert kb_resource.get.call_count == 2
        assert cache.detail_fetches == 2

    def test_invalidate_kb_forces_refetch(self, cache, kb_resource):
        """Test invalidation causes the next read to fetch again."""
        cache.get_kb_detail("kb-1")
        cache.invalidate_kb("kb-1")
        cache.get_kb_detail("kb-1")

        assert kb_resource.get.call_count == 2

    def test_invalidate_list_forces_refetch(self, cache, kb_resource):
        """Test list invalidation causes the next read to fetch again."""
        cache.get_all_kbs()
        cache.invalidate_list()
        cache.get_all_kbs()

        assert kb_resource.list.call_count == 2

    def test_data_source_changes_update_in_place(self, cache, kb_resource):
        """Test removals and additions are applied to the cached detail."""
        cache.get_kb_detail("kb-1")

        cache.record_data_source_removed("kb-1", "ds-1")
        cache.record_data_source_added("kb-1", DataSourceRef(id="ds-2", item_path="users/alice/"))
        kb = cache.get_kb_detail("kb-1")

        assert [ds.id for ds in kb.data_sources] == ["ds-2"]
        assert kb.is_up_to_date("users/alice/")
        assert kb_resource.get.call_count == 1

    def test_changes_to_uncached_kb_are_ignored(self, cache, kb_resource):
        """Test recording changes for an uncached KB does not fetch it."""
        cache.record_data_source_added("kb-9", DataSourceRef(id="ds-2", item_path="x/"))
        cache.record_data_source_removed("kb-9", "ds-2")

        kb_resource.get.assert_not_called()

    def test_remember_kb_updates_list_and_detail(self, cache, kb_resource):
        """Test a remembered KB replaces cached entries without fetching."""
        cache.get_all_kbs()
        cache.remember_kb(KnowledgeBase(id="kb-2", name="bob-kb"))

        assert [kb.id for kb in cache.get_all_kbs()] == ["kb-1", "kb-2"]
        assert cache.get_kb_detail("kb-2").name == "bob-kb"
        kb_resource.get.assert_not_called()

    def test_fresh_cache_per_instance(self, kb_resource):
        """Test separate caches do not share state."""
        StateCache(kb_resource).get_all_kbs()
        StateCache(kb_resource).get_all_kbs()

        assert kb_resource.list.call_count == 2
