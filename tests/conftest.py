"""Shared fixtures: a fake Content Management API behind httpx.MockTransport."""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from datocms_mcp.core.client_manager import ClientManager
from datocms_mcp.core.handlers import HandlerFactory
from datocms_mcp.core.schema_registry import SchemaRegistry

TOKEN = "test-token"


class FakeDatoCMS:
    """
    Routes requests to canned responses and records every call.

    Routes are keyed by (method, path); a value is either a response
    document, an (status, document) tuple or a callable taking the request.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, response: Any = None, status: int = 200) -> None:
        self.routes[(method, path)] = response if callable(response) else (status, response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"data": [{"id": "1", "type": "api_error", "attributes": {"code": "NOT_FOUND"}}]})
        if callable(route):
            return route(request)
        status, document = route
        if document is None:
            return httpx.Response(status)
        return httpx.Response(status, json=document)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def body(self, index: int = -1) -> Optional[Dict[str, Any]]:
        content = self.calls[index].content
        return json.loads(content) if content else None

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [call for call in self.calls if call.method == method and call.url.path == path]


def resource(resource_type: str, resource_id: str, relationships: Optional[Dict[str, Any]] = None, **attributes) -> Dict[str, Any]:
    """Build a JSON:API resource object."""
    data: Dict[str, Any] = {"id": resource_id, "type": resource_type, "attributes": attributes}
    if relationships:
        data["relationships"] = {name: {"data": value} for name, value in relationships.items()}
    return data


@pytest.fixture
def api() -> FakeDatoCMS:
    return FakeDatoCMS()


@pytest.fixture
def client_manager(api) -> ClientManager:
    return ClientManager(transport=api.transport(), job_poll_interval=0)


@pytest.fixture
def factory(client_manager) -> HandlerFactory:
    return HandlerFactory(registry=SchemaRegistry(), client_manager=client_manager)


@pytest.fixture
def build_router(factory) -> Callable:
    """Build a ToolGroup's router against the fake API."""

    def build(group):
        return group.build(factory)

    return build
