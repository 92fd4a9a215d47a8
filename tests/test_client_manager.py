"""Tests for the client cache and client manager."""

from unittest.mock import Mock

import pytest

from datocms_mcp.client import CollaboratorsClient, DatoCMSClient, RecordsClient
from datocms_mcp.core.client_manager import ClientCache, ClientKind, ClientManager


@pytest.fixture
def factories():
    return {
        ClientKind.DEFAULT: Mock(side_effect=lambda **kwargs: object()),
        ClientKind.RECORDS: Mock(side_effect=lambda **kwargs: object()),
        ClientKind.COLLABORATORS: Mock(side_effect=lambda **kwargs: object()),
    }


class TestClientManager:
    """Test client construction and reuse."""

    def test_same_key_returns_same_instance(self, factories):
        manager = ClientManager(factories=factories)

        first = manager.get_client("token")
        second = manager.get_client("token")

        assert first is second
        assert factories[ClientKind.DEFAULT].call_count == 1

    def test_primary_environment_is_the_default(self, factories):
        manager = ClientManager(factories=factories)

        assert manager.get_client("token", None) is manager.get_client("token", "primary")
        assert factories[ClientKind.DEFAULT].call_count == 1

    def test_distinct_keys_construct_distinct_clients(self, factories):
        manager = ClientManager(factories=factories)

        clients = {
            id(manager.get_client("a")),
            id(manager.get_client("b")),
            id(manager.get_client("a", "staging")),
            id(manager.get_client("a", kind=ClientKind.RECORDS)),
            id(manager.get_client("a", kind=ClientKind.COLLABORATORS)),
        }

        assert len(clients) == 5
        assert factories[ClientKind.DEFAULT].call_count == 3

    def test_kind_accepts_string_value(self, factories):
        manager = ClientManager(factories=factories)
        assert manager.get_client("a", kind="records") is manager.get_client("a", kind=ClientKind.RECORDS)

    def test_client_options_are_forwarded(self, factories):
        manager = ClientManager(factories=factories, base_url="http://localhost", timeout=5)
        manager.get_client("token", "staging")

        factories[ClientKind.DEFAULT].assert_called_once_with(
            api_token="token", environment="staging", base_url="http://localhost", timeout=5
        )

    def test_invalidate_drops_every_kind_for_token(self, factories):
        manager = ClientManager(factories=factories)
        old = manager.get_client("token")
        manager.get_client("token", kind=ClientKind.RECORDS)
        kept = manager.get_client("other")

        assert manager.invalidate("token") == 2
        assert manager.get_client("token") is not old
        assert manager.get_client("other") is kept

    def test_default_factories(self):
        manager = ClientManager()

        assert type(manager.get_client("t")) is DatoCMSClient
        assert isinstance(manager.get_client("t", kind=ClientKind.RECORDS), RecordsClient)
        assert isinstance(manager.get_client("t", kind=ClientKind.COLLABORATORS), CollaboratorsClient)


class TestClientCache:
    """Test the bounded LRU cache."""

    def test_evicts_least_recently_used(self):
        cache = ClientCache(max_size=2)
        a, b, c = ("a", "primary", ClientKind.DEFAULT), ("b", "primary", ClientKind.DEFAULT), ("c", "primary", ClientKind.DEFAULT)

        cache.put(a, 1)
        cache.put(b, 2)
        assert cache.get(a) == 1
        cache.put(c, 3)

        assert a in cache
        assert b not in cache
        assert len(cache) == 2

    def test_clear(self):
        cache = ClientCache()
        cache.put(("a", "primary", ClientKind.DEFAULT), 1)
        cache.clear()
        assert len(cache) == 0

    def test_rejects_invalid_size(self):
        with pytest.raises(ValueError):
            ClientCache(max_size=0)
