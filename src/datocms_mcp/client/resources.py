"""CMA resource endpoints and the DatoCMSClient that groups them."""

import logging
import posixpath
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

from .base import BaseClient, Resource, deserialize, reference, serialize

logger = logging.getLogger(__name__)


def _bulk_body(operation_type: str, relationship: str, ids: Sequence[str], related_type: str, **attributes) -> Dict[str, Any]:
    return serialize(
        operation_type,
        attributes={k: v for k, v in attributes.items() if v is not None},
        relationships={relationship: [reference(related_type, item_id) for item_id in ids]},
    )


class AccessTokens(Resource):
    resource_type = "access_token"
    collection_path = "/access_tokens"

    async def regenerate_token(self, token_id: str) -> Dict[str, Any]:
        return await self._call("POST", self._member(token_id, "/regenerate_token"))


class Roles(Resource):
    resource_type = "role"
    collection_path = "/roles"

    async def duplicate(self, role_id: str) -> Dict[str, Any]:
        return await self._call("POST", self._member(role_id, "/duplicate"))


class Users(Resource):
    resource_type = "user"
    collection_path = "/users"


class SiteInvitations(Resource):
    resource_type = "site_invitation"
    collection_path = "/site_invitations"

    async def resend(self, invitation_id: str) -> Any:
        return await self._call("POST", self._member(invitation_id, "/resend"))


class Items(Resource):
    resource_type = "item"
    collection_path = "/items"

    async def duplicate(self, item_id: str) -> Dict[str, Any]:
        return await self._call("POST", self._member(item_id, "/duplicate"))

    async def references(self, item_id: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._call("GET", self._member(item_id, "/references"), params=params) or []

    async def publish(
        self,
        item_id: str,
        content_in_locales: Optional[List[str]] = None,
        non_localized_content: Optional[bool] = None,
        recursive: bool = False,
    ) -> Dict[str, Any]:
        body = None
        if content_in_locales is not None:
            body = serialize(
                "selective_publish_operation",
                attributes={
                    "content_in_locales": content_in_locales,
                    "non_localized_content": bool(non_localized_content),
                },
            )
        return await self._call(
            "PUT", self._member(item_id, "/publish"), params={"recursive": recursive}, body=body
        )

    async def unpublish(
        self,
        item_id: str,
        content_in_locales: Optional[List[str]] = None,
        recursive: bool = False,
    ) -> Dict[str, Any]:
        body = None
        if content_in_locales is not None:
            body = serialize("selective_unpublish_operation", attributes={"content_in_locales": content_in_locales})
        return await self._call(
            "PUT", self._member(item_id, "/unpublish"), params={"recursive": recursive}, body=body
        )

    async def bulk_publish(
        self,
        item_ids: Sequence[str],
        content_in_locales: Optional[List[str]] = None,
        non_localized_content: Optional[bool] = None,
        recursive: bool = False,
    ) -> Any:
        body = _bulk_body(
            "item_bulk_publish_operation",
            "items",
            item_ids,
            "item",
            content_in_locales=content_in_locales,
            non_localized_content=non_localized_content,
        )
        return await self._call("POST", "/items/bulk/publish", params={"recursive": recursive}, body=body)

    async def bulk_unpublish(self, item_ids: Sequence[str], recursive: bool = False) -> Any:
        body = _bulk_body("item_bulk_unpublish_operation", "items", item_ids, "item")
        return await self._call("POST", "/items/bulk/unpublish", params={"recursive": recursive}, body=body)

    async def bulk_destroy(self, item_ids: Sequence[str]) -> Any:
        body = _bulk_body("item_bulk_destroy_operation", "items", item_ids, "item")
        return await self._call("POST", "/items/bulk/destroy", body=body)


class ItemVersions(Resource):
    resource_type = "item_version"
    collection_path = "/items/{parent_id}/versions"
    member_path = "/versions/{id}"

    async def restore(self, version_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Restore a version; the job result is the [item, item_version] pair."""
        item, version = await self._call("POST", self._member(version_id, "/restore"))
        return item, version


class ScheduledPublications(Resource):
    resource_type = "scheduled_publication"
    collection_path = "/items/{parent_id}/scheduled-publication"

    async def schedule(self, item_id: str, scheduled_at: str) -> Dict[str, Any]:
        return await self.create({"publication_scheduled_at": scheduled_at}, parent_id=item_id)

    async def cancel(self, item_id: str) -> Any:
        return await self._call("DELETE", self._collection(item_id))


class ScheduledUnpublishings(Resource):
    resource_type = "scheduled_unpublishing"
    collection_path = "/items/{parent_id}/scheduled-unpublishing"

    async def schedule(self, item_id: str, scheduled_at: str) -> Dict[str, Any]:
        return await self.create({"unpublishing_scheduled_at": scheduled_at}, parent_id=item_id)

    async def cancel(self, item_id: str) -> Any:
        return await self._call("DELETE", self._collection(item_id))


class ItemTypes(Resource):
    resource_type = "item_type"
    collection_path = "/item-types"

    async def duplicate(self, item_type_id: str) -> Dict[str, Any]:
        return await self._call("POST", self._member(item_type_id, "/duplicate"))


class Fields(Resource):
    resource_type = "field"
    collection_path = "/item-types/{parent_id}/fields"
    member_path = "/fields/{id}"


class Fieldsets(Resource):
    resource_type = "fieldset"
    collection_path = "/item-types/{parent_id}/fieldsets"
    member_path = "/fieldsets/{id}"


class Uploads(Resource):
    resource_type = "upload"
    collection_path = "/uploads"

    async def references(self, upload_id: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self._call("GET", self._member(upload_id, "/references"), params=params) or []

    async def bulk_tag(self, upload_ids: Sequence[str], tags: List[str]) -> Any:
        body = _bulk_body("upload_bulk_tag_operation", "uploads", upload_ids, "upload", tags=tags)
        return await self._call("PUT", "/uploads/bulk/tag", body=body)

    async def bulk_set_upload_collection(self, upload_ids: Sequence[str], collection_id: Optional[str]) -> Any:
        body = serialize(
            "upload_bulk_set_upload_collection_operation",
            relationships={
                "upload_collection": reference("upload_collection", collection_id) if collection_id else None,
                "uploads": [reference("upload", upload_id) for upload_id in upload_ids],
            },
        )
        return await self._call("PUT", "/uploads/bulk/set-upload-collection", body=body)

    async def bulk_destroy(self, upload_ids: Sequence[str]) -> Any:
        body = _bulk_body("upload_bulk_destroy_operation", "uploads", upload_ids, "upload")
        return await self._call("PUT", "/uploads/bulk/destroy", body=body)

    async def create_from_url(
        self,
        url: str,
        attributes: Optional[Mapping[str, Any]] = None,
        relationships: Optional[Mapping[str, Any]] = None,
        filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create an upload from a remote file.

        Downloads the file, stores it through a signed upload request and
        registers it as an upload, waiting for the processing job.
        """
        filename = filename or posixpath.basename(urlparse(url).path) or "upload"

        async with self._client.open_http() as http:
            download = await http.get(url, follow_redirects=True)
            download.raise_for_status()

            upload_request = deserialize(
                await self._client.request(
                    "POST",
                    "/upload-requests",
                    body=serialize("upload_request", attributes={"filename": filename}),
                )
            )
            logger.debug("Storing %s (%d bytes)", filename, len(download.content))
            stored = await http.put(
                upload_request["url"],
                content=download.content,
                headers={"Content-Type": download.headers.get("content-type", "application/octet-stream")},
            )
            stored.raise_for_status()

        upload_attributes = dict(attributes or {})
        upload_attributes["path"] = upload_request["id"]
        return await self.create(upload_attributes, relationships)


class UploadCollections(Resource):
    resource_type = "upload_collection"
    collection_path = "/upload-collections"


class UploadTags(Resource):
    resource_type = "upload_tag"
    collection_path = "/upload-tags"


class UploadSmartTags(Resource):
    resource_type = "upload_smart_tag"
    collection_path = "/upload-smart-tags"


class Webhooks(Resource):
    resource_type = "webhook"
    collection_path = "/webhooks"


class WebhookCalls(Resource):
    resource_type = "webhook_call"
    collection_path = "/webhook_calls"

    async def resend_webhook(self, call_id: str) -> Any:
        return await self._call("POST", self._member(call_id, "/resend_webhook"))


class BuildTriggers(Resource):
    resource_type = "build_trigger"
    collection_path = "/build_triggers"

    async def trigger(self, trigger_id: str) -> Any:
        return await self._call("POST", self._member(trigger_id, "/trigger"))

    async def abort(self, trigger_id: str) -> Any:
        return await self._call("DELETE", self._member(trigger_id, "/abort"))

    async def reindex(self, trigger_id: str) -> Any:
        return await self._call("POST", self._member(trigger_id, "/reindex"))

    async def abort_indexing(self, trigger_id: str) -> Any:
        return await self._call("DELETE", self._member(trigger_id, "/abort_indexing"))


class DeployEvents(Resource):
    resource_type = "build_event"
    collection_path = "/build_triggers/{parent_id}/deploy_events"
    member_path = "/deploy_events/{id}"


class Environments(Resource):
    resource_type = "environment"
    collection_path = "/environments"

    async def fork(self, environment_id: str, new_id: str, fast: bool = False, force: bool = False) -> Dict[str, Any]:
        return await self._call(
            "POST",
            self._member(environment_id, "/fork"),
            params={"fast": fast, "force": force},
            body=serialize("environment", resource_id=new_id),
        )

    async def promote(self, environment_id: str) -> Dict[str, Any]:
        return await self._call("PUT", self._member(environment_id, "/promote"))

    async def rename(self, environment_id: str, new_id: str) -> Dict[str, Any]:
        return await self._call(
            "PUT",
            self._member(environment_id, "/rename"),
            body=serialize("environment", resource_id=new_id),
        )


class MaintenanceMode(Resource):
    resource_type = "maintenance_mode"
    collection_path = "/maintenance-mode"

    async def fetch(self) -> Dict[str, Any]:
        return await self._call("GET", self.collection_path)

    async def activate(self, force: bool = False) -> Dict[str, Any]:
        return await self._call("PUT", f"{self.collection_path}/activate", params={"force": force})

    async def deactivate(self) -> Dict[str, Any]:
        return await self._call("PUT", f"{self.collection_path}/deactivate")


class Site(Resource):
    resource_type = "site"
    collection_path = "/site"

    async def fetch(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self._call("GET", self.collection_path, params=params)

    async def update_settings(self, attributes: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._call("PUT", self.collection_path, body=serialize(self.resource_type, attributes))


class SubscriptionFeatures(Resource):
    resource_type = "subscription_feature"
    collection_path = "/subscription-features"


class SubscriptionLimits(Resource):
    resource_type = "subscription_limit"
    collection_path = "/subscription-limits"


class MenuItems(Resource):
    resource_type = "menu_item"
    collection_path = "/menu-items"


class SchemaMenuItems(Resource):
    resource_type = "schema_menu_item"
    collection_path = "/schema-menu-items"


class ItemTypeFilters(Resource):
    resource_type = "item_type_filter"
    collection_path = "/item-type-filters"


class UploadFilters(Resource):
    resource_type = "upload_filter"
    collection_path = "/upload-filters"


class Plugins(Resource):
    resource_type = "plugin"
    collection_path = "/plugins"


class DatoCMSClient(BaseClient):
    """
    Generic CMA client exposing every resource the tools use.

    Example:
        client = DatoCMSClient(api_token="...", environment="staging")
        roles = await client.roles.list()
    """

    def __init__(self, api_token: str, environment: Optional[str] = None, **options: Any):
        super().__init__(api_token, environment, **options)
        self.access_tokens = AccessTokens(self)
        self.roles = Roles(self)
        self.users = Users(self)
        self.site_invitations = SiteInvitations(self)
        self.items = Items(self)
        self.item_versions = ItemVersions(self)
        self.scheduled_publications = ScheduledPublications(self)
        self.scheduled_unpublishings = ScheduledUnpublishings(self)
        self.item_types = ItemTypes(self)
        self.fields = Fields(self)
        self.fieldsets = Fieldsets(self)
        self.uploads = Uploads(self)
        self.upload_collections = UploadCollections(self)
        self.upload_tags = UploadTags(self)
        self.upload_smart_tags = UploadSmartTags(self)
        self.webhooks = Webhooks(self)
        self.webhook_calls = WebhookCalls(self)
        self.build_triggers = BuildTriggers(self)
        self.deploy_events = DeployEvents(self)
        self.environments = Environments(self)
        self.maintenance_mode = MaintenanceMode(self)
        self.site = Site(self)
        self.subscription_features = SubscriptionFeatures(self)
        self.subscription_limits = SubscriptionLimits(self)
        self.menu_items = MenuItems(self)
        self.schema_menu_items = SchemaMenuItems(self)
        self.item_type_filters = ItemTypeFilters(self)
        self.upload_filters = UploadFilters(self)
        self.plugins = Plugins(self)
