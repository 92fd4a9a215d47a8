"""
Tests for the record tools.

Tests cover:
- Query parameter validation and filter building
- Locale trimming and ID-only output
- Create, update (optimistic locking), publish and bulk flows
- Version listing, retrieval and restore (asynchronous job)
- Editor URLs
"""

import pytest

from conftest import TOKEN, resource
from datocms_mcp.tools.records import records

ARTICLE = resource(
    "item",
    "r1",
    {"item_type": {"type": "item_type", "id": "m1"}},
    title={"en": "Hello", "it": ""},
    slug="hello",
)


@pytest.fixture
def router(build_router):
    return build_router(records)


class TestQuery:
    """Test the query action."""

    @pytest.mark.asyncio
    async def test_fields_without_model_is_rejected(self, api, router):
        response = await router.dispatch("query", {"apiToken": TOKEN, "fields": {"name": "Emily"}})

        assert response.error_code == "VALIDATION_ERROR"
        assert "Field filtering requires either 'modelId' or 'modelName'" in response.error
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_filters_are_sent_as_bracket_params(self, api, router):
        api.on("GET", "/items", {"data": [ARTICLE], "meta": {"total_count": 1}})

        response = await router.dispatch(
            "query",
            {
                "apiToken": TOKEN,
                "modelName": "article",
                "fields": {"title": {"matches": {"pattern": "Hel"}}},
                "ids": "r1, r2",
                "orderBy": "title_ASC",
            },
        )

        assert response.success is True
        params = api.calls[0].url.params
        assert params["filter[type]"] == "article"
        assert params["filter[ids]"] == "r1,r2"
        assert params["filter[fields][title][matches][pattern]"] == "Hel"
        assert params["order_by"] == "title_ASC"
        assert response.meta["pagination"] == {"limit": 100, "offset": 0, "total": 1, "has_more": False}

    @pytest.mark.asyncio
    async def test_results_keep_most_populated_locale(self, api, router):
        api.on("GET", "/items", {"data": [ARTICLE], "meta": {"total_count": 1}})

        response = await router.dispatch("query", {"apiToken": TOKEN, "textSearch": "hello"})

        assert response.data[0]["title"] == "Hello"
        assert response.message == "Found 1 record(s)"

    @pytest.mark.asyncio
    async def test_return_only_ids(self, api, router):
        api.on("GET", "/items", {"data": [ARTICLE, resource("item", "r2")], "meta": {"total_count": 2}})

        response = await router.dispatch("query", {"apiToken": TOKEN, "returnOnlyIds": True})

        assert response.data == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_invalid_order_by(self, router):
        response = await router.dispatch("query", {"apiToken": TOKEN, "orderBy": "title"})
        assert response.error_code == "VALIDATION_ERROR"


class TestRecordActions:
    """Test single-record actions."""

    @pytest.mark.asyncio
    async def test_get_all_locales(self, api, router):
        api.on("GET", "/items/r1", {"data": ARTICLE})

        response = await router.dispatch("get", {"apiToken": TOKEN, "itemId": "r1", "returnAllLocales": True})

        assert response.data["title"] == {"en": "Hello", "it": ""}
        assert api.calls[0].url.params["version"] == "published"

    @pytest.mark.asyncio
    async def test_create_links_model(self, api, router):
        api.on("POST", "/items", {"data": ARTICLE}, status=201)

        response = await router.dispatch(
            "create",
            {"apiToken": TOKEN, "itemType": "m1", "data": {"slug": "hello"}, "returnOnlyConfirmation": True},
        )

        assert response.data == {"id": "r1"}
        assert response.message == "Record created successfully."
        body = api.body()["data"]
        assert body["relationships"]["item_type"]["data"] == {"type": "item_type", "id": "m1"}

    @pytest.mark.asyncio
    async def test_update_sends_current_version(self, api, router):
        api.on("PUT", "/items/r1", {"data": ARTICLE})

        response = await router.dispatch(
            "update", {"apiToken": TOKEN, "itemId": "r1", "data": {"slug": "new"}, "version": "v9"}
        )

        assert response.message == "Record r1 was successfully updated."
        assert api.body()["data"]["meta"] == {"current_version": "v9"}

    @pytest.mark.asyncio
    async def test_stale_version_is_conflict(self, api, router):
        api.on(
            "PUT",
            "/items/r1",
            {"data": [{"id": "e", "type": "api_error", "attributes": {"code": "STALE_ITEM_VERSION"}}]},
            status=422,
        )

        response = await router.dispatch("update", {"apiToken": TOKEN, "itemId": "r1", "data": {}, "version": "v1"})

        assert response.error_code == "CONFLICT"

    @pytest.mark.asyncio
    async def test_publish_requires_locale_pairs(self, api, router):
        response = await router.dispatch("publish", {"apiToken": TOKEN, "itemId": "r1", "contentInLocales": ["en"]})

        assert response.error_code == "VALIDATION_ERROR"
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_selective_publish(self, api, router):
        api.on("PUT", "/items/r1/publish", {"data": ARTICLE})

        response = await router.dispatch(
            "publish",
            {"apiToken": TOKEN, "itemId": "r1", "contentInLocales": ["en"], "nonLocalizedContent": True},
        )

        assert response.message == "Record r1 published."
        assert api.body()["data"]["attributes"] == {"content_in_locales": ["en"], "non_localized_content": True}

    @pytest.mark.asyncio
    async def test_bulk_destroy(self, api, router):
        api.on("POST", "/items/bulk/destroy", {"data": {"id": "op", "type": "item_bulk_destroy_operation"}})

        response = await router.dispatch("bulk_destroy", {"apiToken": TOKEN, "itemIds": ["r1", "r2"]})

        assert response.message == "2 record(s) deleted."
        relationships = api.body()["data"]["relationships"]["items"]["data"]
        assert [item["id"] for item in relationships] == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_schedule_publication_timestamp_format(self, api, router):
        response = await router.dispatch(
            "schedule_publication", {"apiToken": TOKEN, "itemId": "r1", "publicationScheduledAt": "tomorrow"}
        )
        assert response.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_editor_url_uses_environment(self, api, router):
        response = await router.dispatch(
            "editor_url",
            {
                "apiToken": TOKEN,
                "itemId": "r1",
                "itemTypeId": "m1",
                "projectUrl": "acme.admin.datocms.com",
                "environment": "staging",
            },
        )

        assert response.data == {
            "url": "https://acme.admin.datocms.com/editor/item_types/m1/items/r1/edit?environment=staging"
        }
        assert api.calls == []


class TestVersions:
    """Test listing, reading and restoring record versions."""

    VERSION = resource(
        "item_version",
        "v1",
        {"item": {"type": "item", "id": "r1"}},
        created_at="2024-05-01T10:00:00Z",
        is_published=True,
        title={"en": "Hello"},
    )

    @pytest.mark.asyncio
    async def test_versions_list_returns_ids_and_pagination(self, api, router):
        api.on("GET", "/items/r1/versions", {"data": [self.VERSION], "meta": {"total_count": 3}})

        response = await router.dispatch("versions_list", {"apiToken": TOKEN, "itemId": "r1", "page": {"limit": 1}})

        assert response.success is True
        assert response.data == [{"id": "v1", "created_at": "2024-05-01T10:00:00Z", "is_published": True}]
        assert response.meta["pagination"] == {"limit": 1, "offset": 0, "total": 3, "has_more": True}

    @pytest.mark.asyncio
    async def test_version_get(self, api, router):
        api.on("GET", "/versions/v1", {"data": self.VERSION})

        response = await router.dispatch("version_get", {"apiToken": TOKEN, "versionId": "v1"})

        assert response.data["id"] == "v1"
        assert response.data["item"] == {"type": "item", "id": "r1"}

    @pytest.mark.asyncio
    async def test_version_get_missing(self, api, router):
        response = await router.dispatch("version_get", {"apiToken": TOKEN, "versionId": "v9"})

        assert response.success is False
        assert response.error_code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_version_restore_waits_for_job(self, api, router):
        payload = {"data": [ARTICLE, self.VERSION]}
        api.on("POST", "/versions/v1/restore", {"data": {"id": "j1", "type": "job"}}, status=202)
        api.on(
            "GET",
            "/job-results/j1",
            {"data": {"id": "j1", "type": "job_result", "attributes": {"status": 200, "payload": payload}}},
        )

        response = await router.dispatch("version_restore", {"apiToken": TOKEN, "versionId": "v1"})

        assert response.success is True
        assert response.message == "Record r1 restored to the selected version."
        assert response.data["item"]["id"] == "r1"
        assert response.data["version"]["id"] == "v1"
        assert len(api.calls_to("POST", "/versions/v1/restore")) == 1
