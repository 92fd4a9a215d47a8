"""
Per-credential DatoCMS client cache.

Clients are keyed by (api_token, environment, client kind). An absent
environment maps to "primary", so passing "primary" explicitly selects the
same entry.
"""

import logging
from collections import OrderedDict
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

PRIMARY_ENVIRONMENT = "primary"
DEFAULT_CACHE_SIZE = 128


class ClientKind(str, Enum):
    DEFAULT = "default"
    RECORDS = "records"
    COLLABORATORS = "collaborators"


CacheKey = Tuple[str, str, ClientKind]
ClientFactory = Callable[..., Any]


class ClientCache:
    """
    Bounded LRU mapping of cache keys to client instances.

    Evicted clients need no cleanup: they hold no open connections between
    requests.
    """

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE):
        if max_size < 1:
            raise ValueError(f"Cache size must be at least 1, got {max_size}")
        self.max_size = max_size
        self._entries: "OrderedDict[CacheKey, Any]" = OrderedDict()

    def get(self, key: CacheKey) -> Optional[Any]:
        client = self._entries.get(key)
        if client is not None:
            self._entries.move_to_end(key)
        return client

    def put(self, key: CacheKey, client: Any) -> None:
        self._entries[key] = client
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted client for environment %s (%s)", evicted[1], evicted[2].value)

    def invalidate_token(self, api_token: str) -> int:
        keys = [key for key in self._entries if key[0] == api_token]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries


def _default_factories() -> Dict[ClientKind, ClientFactory]:
    from datocms_mcp.client import CollaboratorsClient, DatoCMSClient, RecordsClient

    return {
        ClientKind.DEFAULT: DatoCMSClient,
        ClientKind.RECORDS: RecordsClient,
        ClientKind.COLLABORATORS: CollaboratorsClient,
    }


class ClientManager:
    """
    Hands out DatoCMS clients, constructing at most one per cache key.

    Args:
        cache: Cache instance (a fresh ClientCache when omitted)
        factories: Constructor per client kind, called as
            factory(api_token=..., environment=..., **client_options)
        client_options: Extra keyword arguments for every constructed client
            (base_url, timeout, transport)
    """

    def __init__(
        self,
        cache: Optional[ClientCache] = None,
        factories: Optional[Dict[ClientKind, ClientFactory]] = None,
        **client_options: Any,
    ):
        self.cache = cache if cache is not None else ClientCache()
        self._factories = factories
        self.client_options = client_options

    @property
    def factories(self) -> Dict[ClientKind, ClientFactory]:
        if self._factories is None:
            self._factories = _default_factories()
        return self._factories

    def get_client(
        self,
        api_token: str,
        environment: Optional[str] = None,
        kind: ClientKind = ClientKind.DEFAULT,
    ) -> Any:
        """
        Return the client for a token/environment/kind triple.

        Args:
            api_token: DatoCMS API token
            environment: Sandbox environment name (primary when None)
            kind: Client kind

        Returns:
            Cached or newly constructed client
        """
        key: CacheKey = (api_token, environment or PRIMARY_ENVIRONMENT, ClientKind(kind))
        client = self.cache.get(key)
        if client is not None:
            return client

        factory = self.factories[key[2]]
        client = factory(api_token=api_token, environment=environment, **self.client_options)
        self.cache.put(key, client)
        logger.debug("Created %s client for environment %s", key[2].value, key[1])
        return client

    def invalidate(self, api_token: str) -> int:
        """Drop every cached client built with api_token."""
        removed = self.cache.invalidate_token(api_token)
        if removed:
            logger.info("Invalidated %d cached client(s) after token change", removed)
        return removed

    def clear(self) -> None:
        self.cache.clear()

