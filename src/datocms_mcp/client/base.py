"""
Async client for the DatoCMS Content Management API.

Speaks JSON:API over httpx. Responses are deserialized into flat
dictionaries: attributes are merged next to "id" and "type", and each
relationship becomes its linkage ({"type", "id"}, a list of those, or None).
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

import httpx

from datocms_mcp import __version__
from datocms_mcp.exceptions import DatoCMSApiError, DatoCMSJobError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://site-api.datocms.com"
API_VERSION = "3"
DEFAULT_TIMEOUT = 30.0
DEFAULT_JOB_POLL_INTERVAL = 1.0
DEFAULT_JOB_TIMEOUT = 300.0
DEFAULT_PAGE_LIMIT = 100
MAX_PAGE_LIMIT = 500

JSON_API_CONTENT_TYPE = "application/vnd.api+json"


@dataclass
class Page:
    """One page of a paginated collection."""

    items: List[Dict[str, Any]]
    total: int
    offset: int = 0
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def flatten_params(params: Mapping[str, Any], prefix: Optional[str] = None) -> Dict[str, str]:
    """
    Flatten nested query parameters into bracket notation.

    {"filter": {"type": "article"}, "page": {"limit": 5}} becomes
    {"filter[type]": "article", "page[limit]": "5"}. Lists are joined with
    commas, booleans are rendered lowercase and None values are dropped.
    """
    flat: Dict[str, str] = {}
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            flat.update(flatten_params(value, name))
        elif isinstance(value, (list, tuple)):
            flat[name] = ",".join(str(item) for item in value)
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = str(value)
    return flat


def _linkage(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return {"type": value["type"], "id": value["id"]}
    return [_linkage(item) for item in value]


def serialize(
    resource_type: str,
    attributes: Optional[Mapping[str, Any]] = None,
    relationships: Optional[Mapping[str, Any]] = None,
    resource_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build a JSON:API request document.

    Args:
        resource_type: JSON:API type (e.g. "access_token")
        attributes: Resource attributes
        relationships: Mapping of relationship name to a {"type", "id"}
            reference, a list of references, or None to clear it
        resource_id: Id of the resource, when known
        meta: Resource meta (e.g. current_version for optimistic locking)

    Returns:
        Document of the form {"data": {...}}
    """
    data: Dict[str, Any] = {"type": resource_type}
    if resource_id is not None:
        data["id"] = resource_id
    if attributes:
        data["attributes"] = dict(attributes)
    if relationships:
        data["relationships"] = {
            name: {"data": _linkage(value)} for name, value in relationships.items()
        }
    if meta:
        data["meta"] = dict(meta)
    return {"data": data}


def reference(resource_type: str, resource_id: str) -> Dict[str, str]:
    return {"type": resource_type, "id": resource_id}


def _flatten_resource(resource: Mapping[str, Any]) -> Dict[str, Any]:
    flat: Dict[str, Any] = {"id": resource.get("id"), "type": resource.get("type")}
    flat.update(resource.get("attributes") or {})
    for name, relationship in (resource.get("relationships") or {}).items():
        flat[name] = relationship.get("data") if isinstance(relationship, Mapping) else relationship
    if resource.get("meta"):
        flat["meta"] = resource["meta"]
    return flat


def deserialize(document: Any) -> Any:
    """Convert a JSON:API response document into flat dictionaries."""
    if not isinstance(document, Mapping):
        return document
    data = document.get("data")
    if isinstance(data, list):
        return [_flatten_resource(item) for item in data]
    if isinstance(data, Mapping):
        return _flatten_resource(data)
    return data


class BaseClient:
    """
    Low-level CMA transport.

    A new httpx.AsyncClient is opened per request, so instances hold no
    connections and can be cached and dropped freely.

    Args:
        api_token: DatoCMS API token
        environment: Sandbox environment (primary when None)
        base_url: CMA base URL
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests inject httpx.MockTransport)
        job_poll_interval: Seconds between job result polls
        job_timeout: Seconds to wait for an asynchronous job
    """

    def __init__(
        self,
        api_token: str,
        environment: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        job_poll_interval: float = DEFAULT_JOB_POLL_INTERVAL,
        job_timeout: float = DEFAULT_JOB_TIMEOUT,
    ):
        if not api_token:
            raise ValueError("api_token is required")
        self.api_token = api_token
        self.environment = environment
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.job_poll_interval = job_poll_interval
        self.job_timeout = job_timeout
        self._transport = transport

    def open_http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def headers(self, with_body: bool = False) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Accept": "application/json",
            "X-Api-Version": API_VERSION,
            "User-Agent": f"datocms-mcp/{__version__}",
        }
        if self.environment:
            headers["X-Environment"] = self.environment
        if with_body:
            headers["Content-Type"] = JSON_API_CONTENT_TYPE
        return headers

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Perform a CMA request and return the decoded response document.

        A 202 response carrying a job is awaited by polling the job result,
        whose payload is returned instead.

        Raises:
            DatoCMSApiError: On a non-success status
            DatoCMSJobError: If a job does not complete in time
            httpx.TransportError: On network failures
        """
        url = f"{self.base_url}{path}"
        query = flatten_params(params) if params else None
        content = json.dumps(body) if body is not None else None

        async with self.open_http() as http:
            logger.debug("%s %s", method, url)
            response = await http.request(
                method,
                url,
                params=query,
                content=content,
                headers=self.headers(with_body=content is not None),
            )
            document = self._decode(method, response)

            if response.status_code == 202 and _is_job(document):
                return await self._wait_for_job(http, document["data"]["id"])
            return document

    @staticmethod
    def _decode(method: str, response: httpx.Response) -> Any:
        body: Any = None
        if response.status_code != 204 and response.content:
            try:
                body = response.json()
            except ValueError:
                body = response.text

        if response.is_error:
            errors = None
            if isinstance(body, dict) and isinstance(body.get("data"), list):
                errors = body["data"]
            raise DatoCMSApiError(
                status=response.status_code,
                method=method,
                url=str(response.request.url),
                errors=errors,
                headers=dict(response.headers),
                body=None if errors else body,
            )
        return body

    async def _wait_for_job(self, http: httpx.AsyncClient, job_id: str) -> Any:
        url = f"{self.base_url}/job-results/{job_id}"
        deadline = time.monotonic() + self.job_timeout
        logger.debug("Waiting for job %s", job_id)

        while True:
            await asyncio.sleep(self.job_poll_interval)
            response = await http.get(url, headers=self.headers())
            if response.status_code == 404:
                if time.monotonic() >= deadline:
                    raise DatoCMSJobError(job_id, f"did not complete within {self.job_timeout:g} seconds")
                continue

            result = self._decode("GET", response)
            attributes = (result or {}).get("data", {}).get("attributes", {})
            status = attributes.get("status", 200)
            payload = attributes.get("payload")
            if status >= 400:
                errors = payload.get("data") if isinstance(payload, dict) else None
                raise DatoCMSApiError(
                    status=status,
                    method="GET",
                    url=url,
                    errors=errors if isinstance(errors, list) else None,
                    body=None if isinstance(errors, list) else payload,
                )
            return payload


def _is_job(document: Any) -> bool:
    return (
        isinstance(document, dict)
        and isinstance(document.get("data"), dict)
        and document["data"].get("type") == "job"
    )


class Resource:
    """
    Generic CRUD over one CMA resource type.

    Subclasses set resource_type and the collection/member path templates;
    nested collections use a "{parent_id}" placeholder.
    """

    resource_type: str = ""
    collection_path: str = ""
    member_path: str = ""

    def __init__(self, client: BaseClient):
        self._client = client

    def _collection(self, parent_id: Optional[str] = None) -> str:
        if "{parent_id}" in self.collection_path:
            if not parent_id:
                raise ValueError(f"{self.resource_type} collections require a parent id")
            return self.collection_path.format(parent_id=parent_id)
        return self.collection_path

    def _member(self, resource_id: str, suffix: str = "") -> str:
        template = self.member_path or f"{self.collection_path}/{{id}}"
        return template.format(id=resource_id) + suffix

    async def _call(self, method: str, path: str, params=None, body=None) -> Any:
        return deserialize(await self._client.request(method, path, params=params, body=body))

    async def list(self, params: Optional[Mapping[str, Any]] = None, parent_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._call("GET", self._collection(parent_id), params=params) or []

    async def list_page(
        self,
        params: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
        parent_id: Optional[str] = None,
    ) -> Page:
        """Fetch one page of the collection, reading meta.total_count."""
        query = dict(params or {})
        query["page"] = {"offset": offset, "limit": min(limit, MAX_PAGE_LIMIT)}
        document = await self._client.request("GET", self._collection(parent_id), params=query)
        items = deserialize(document) or []
        total = ((document or {}).get("meta") or {}).get("total_count", len(items))
        return Page(items=items, total=total, offset=offset, limit=limit)

    async def find(self, resource_id: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return await self._call("GET", self._member(resource_id), params=params)

    async def create(
        self,
        attributes: Optional[Mapping[str, Any]] = None,
        relationships: Optional[Mapping[str, Any]] = None,
        parent_id: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        meta: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        body = serialize(self.resource_type, attributes, relationships, meta=meta)
        return await self._call("POST", self._collection(parent_id), params=params, body=body)

    async def update(
        self,
        resource_id: str,
        attributes: Optional[Mapping[str, Any]] = None,
        relationships: Optional[Mapping[str, Any]] = None,
        meta: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        body = serialize(self.resource_type, attributes, relationships, resource_id=resource_id, meta=meta)
        return await self._call("PUT", self._member(resource_id), body=body)

    async def destroy(self, resource_id: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._call("DELETE", self._member(resource_id), params=params)
