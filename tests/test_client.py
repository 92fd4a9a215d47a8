"""
Tests for the JSON:API client.

Tests cover:
- Query parameter flattening
- Request serialization and response deserialization
- Request headers
- Error decoding
- Asynchronous job polling
- Pagination meta
"""

import httpx
import pytest

from conftest import FakeDatoCMS, resource
from datocms_mcp.client import DatoCMSClient, RecordsClient, deserialize, editor_url, flatten_params, serialize
from datocms_mcp.client.records import build_field_filters
from datocms_mcp.exceptions import DatoCMSApiError, DatoCMSJobError


def make_client(api, cls=DatoCMSClient, **options):
    options.setdefault("job_poll_interval", 0)
    return cls(api_token="secret", transport=api.transport(), **options)


class TestSerialization:
    """Test JSON:API helpers."""

    def test_flatten_params(self):
        flat = flatten_params(
            {
                "filter": {"type": "article", "ids": ["1", "2"], "fields": {"title": {"eq": "Hi"}}},
                "nested": True,
                "locale": None,
            }
        )

        assert flat == {
            "filter[type]": "article",
            "filter[ids]": "1,2",
            "filter[fields][title][eq]": "Hi",
            "nested": "true",
        }

    def test_serialize(self):
        document = serialize(
            "access_token",
            {"name": "CI"},
            {"role": {"type": "role", "id": "9", "name": "ignored"}, "parent": None},
            resource_id="1",
        )

        assert document == {
            "data": {
                "type": "access_token",
                "id": "1",
                "attributes": {"name": "CI"},
                "relationships": {"role": {"data": {"type": "role", "id": "9"}}, "parent": {"data": None}},
            }
        }

    def test_serialize_keeps_empty_relationship_lists(self):
        document = serialize("fieldset", relationships={"fields": []})
        assert document["data"]["relationships"] == {"fields": {"data": []}}

    def test_deserialize_flattens_resources(self):
        document = {
            "data": [
                resource("role", "1", {"inherits_permissions_from": [{"type": "role", "id": "2"}]}, name="Editor"),
                resource("role", "2", name="Admin"),
            ]
        }

        assert deserialize(document) == [
            {"id": "1", "type": "role", "name": "Editor", "inherits_permissions_from": [{"type": "role", "id": "2"}]},
            {"id": "2", "type": "role", "name": "Admin"},
        ]

    def test_deserialize_non_documents(self):
        assert deserialize(None) is None
        assert deserialize({"data": None}) is None


class TestRequests:
    """Test requests against the fake API."""

    @pytest.mark.asyncio
    async def test_headers(self, api):
        api.on("GET", "/roles", {"data": []})
        client = make_client(api, environment="staging")

        await client.roles.list()

        headers = api.calls[0].headers
        assert headers["Authorization"] == "Bearer secret"
        assert headers["X-Api-Version"] == "3"
        assert headers["X-Environment"] == "staging"
        assert "Content-Type" not in headers

    @pytest.mark.asyncio
    async def test_primary_environment_sends_no_environment_header(self, api):
        api.on("GET", "/roles", {"data": []})
        await make_client(api).roles.list()
        assert "X-Environment" not in api.calls[0].headers

    @pytest.mark.asyncio
    async def test_create_sends_json_api_body(self, api):
        api.on("POST", "/roles", {"data": resource("role", "5", name="Writer")}, status=201)
        client = make_client(api)

        role = await client.roles.create({"name": "Writer"})

        assert role == {"id": "5", "type": "role", "name": "Writer"}
        assert api.calls[0].headers["Content-Type"] == "application/vnd.api+json"
        assert api.body() == {"data": {"type": "role", "attributes": {"name": "Writer"}}}

    @pytest.mark.asyncio
    async def test_nested_collection_path(self, api):
        api.on("GET", "/item-types/m1/fields", {"data": [resource("field", "f1", api_key="title")]})
        fields = await make_client(api).fields.list(parent_id="m1")
        assert fields[0]["api_key"] == "title"

    @pytest.mark.asyncio
    async def test_nested_collection_requires_parent(self, api):
        with pytest.raises(ValueError):
            await make_client(api).fields.list()

    @pytest.mark.asyncio
    async def test_delete_with_empty_body(self, api):
        api.on("DELETE", "/roles/5", None, status=204)
        assert await make_client(api).roles.destroy("5") is None

    @pytest.mark.asyncio
    async def test_list_page_reads_total_count(self, api):
        api.on("GET", "/items", {"data": [resource("item", "1")], "meta": {"total_count": 40}})

        page = await make_client(api).items.list_page({"filter": {"type": "article"}}, offset=10, limit=1)

        assert page.total == 40
        assert page.has_more is True
        params = api.calls[0].url.params
        assert params["page[offset]"] == "10"
        assert params["page[limit]"] == "1"
        assert params["filter[type]"] == "article"

    @pytest.mark.asyncio
    async def test_list_page_caps_limit(self, api):
        api.on("GET", "/items", {"data": []})
        await make_client(api).items.list_page(limit=1000)
        assert api.calls[0].url.params["page[limit]"] == "500"


class TestErrors:
    """Test decoding of failed requests."""

    @pytest.mark.asyncio
    async def test_error_document(self, api):
        api.on(
            "PUT",
            "/items/1",
            {"data": [{"id": "e", "type": "api_error", "attributes": {"code": "STALE_ITEM_VERSION"}}]},
            status=422,
        )

        with pytest.raises(DatoCMSApiError) as exc_info:
            await make_client(api).items.update("1", {"title": "x"})

        error = exc_info.value
        assert error.status == 422
        assert error.code == "STALE_ITEM_VERSION"
        assert error.method == "PUT"
        assert error.url.endswith("/items/1")

    @pytest.mark.asyncio
    async def test_non_json_error_keeps_body(self, api):
        api.on("GET", "/site", lambda request: httpx.Response(502, text="Bad gateway"))

        with pytest.raises(DatoCMSApiError) as exc_info:
            await make_client(api).site.fetch()

        assert exc_info.value.body == "Bad gateway"
        assert exc_info.value.errors == []

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client = DatoCMSClient(api_token="secret", transport=httpx.MockTransport(refuse))
        with pytest.raises(httpx.ConnectError):
            await client.roles.list()


class TestJobs:
    """Test waiting for asynchronous jobs."""

    @pytest.mark.asyncio
    async def test_job_result_is_returned(self, api):
        polls = []

        def job_result(request):
            polls.append(request)
            if len(polls) == 1:
                return httpx.Response(404)
            payload = {"data": resource("item", "2", title="Copy")}
            return httpx.Response(
                200,
                json={"data": {"id": "j1", "type": "job_result", "attributes": {"status": 200, "payload": payload}}},
            )

        api.on("POST", "/items/1/duplicate", {"data": {"id": "j1", "type": "job"}}, status=202)
        api.on("GET", "/job-results/j1", job_result)

        copy = await make_client(api).items.duplicate("1")

        assert copy == {"id": "2", "type": "item", "title": "Copy"}
        assert len(polls) == 2

    @pytest.mark.asyncio
    async def test_failed_job_raises_api_error(self, api):
        payload = {"data": [{"id": "e", "type": "api_error", "attributes": {"code": "INVALID_FIELD"}}]}
        api.on("POST", "/items/1/duplicate", {"data": {"id": "j1", "type": "job"}}, status=202)
        api.on(
            "GET",
            "/job-results/j1",
            {"data": {"id": "j1", "type": "job_result", "attributes": {"status": 422, "payload": payload}}},
        )

        with pytest.raises(DatoCMSApiError) as exc_info:
            await make_client(api).items.duplicate("1")

        assert exc_info.value.code == "INVALID_FIELD"

    @pytest.mark.asyncio
    async def test_job_timeout(self, api):
        api.on("POST", "/items/1/duplicate", {"data": {"id": "j1", "type": "job"}}, status=202)

        with pytest.raises(DatoCMSJobError):
            await make_client(api, job_timeout=0).items.duplicate("1")


class TestRecordsClient:
    """Test record query building."""

    def test_bare_values_mean_equality(self):
        assert build_field_filters({"name": "Emily", "age": {"gt": 30}, "meta": {"nested": 1}}) == {
            "name": {"eq": "Emily"},
            "age": {"gt": 30},
            "meta": {"eq": {"nested": 1}},
        }

    def test_editor_url(self):
        assert (
            editor_url("https://acme.admin.datocms.com/", "m1", "r1", "feature branch")
            == "https://acme.admin.datocms.com/editor/item_types/m1/items/r1/edit?environment=feature%20branch"
        )
        assert editor_url("acme.admin.datocms.com", "m1", "r1").endswith("/items/r1/edit")

    @pytest.mark.asyncio
    async def test_query_records_params(self, api):
        api.on("GET", "/items", {"data": [], "meta": {"total_count": 0}})
        client = make_client(api, RecordsClient)

        await client.query_records(model="article", fields={"title": "Hi"}, locale="en", order_by="title_ASC")

        params = api.calls[0].url.params
        assert params["filter[type]"] == "article"
        assert params["filter[fields][title][eq]"] == "Hi"
        assert params["locale"] == "en"
        assert params["order_by"] == "title_ASC"
        assert params["version"] == "current"


def test_fake_api_defaults_to_not_found():
    api = FakeDatoCMS()
    response = api.handler(httpx.Request("GET", "https://site-api.datocms.com/nothing"))
    assert response.status_code == 404
