"""Webhook, webhook call, build trigger and deploy event tools."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .base import PaginatedParams, ToolGroup, ToolParams, attributes_of

webhooks = ToolGroup(
    "datocms_webhooks",
    "Manage DatoCMS webhooks and their call log, build triggers (deployments and site search "
    "indexing) and deploy events.",
)

_webhooks = {"entity_label": "Webhook"}
_calls = {"entity_label": "Webhook call"}
_triggers = {"entity_label": "Build trigger"}
_events = {"entity_label": "Deploy event"}

WEBHOOK_ATTRIBUTES = (
    "name", "url", "custom_payload", "headers", "events", "http_basic_user",
    "http_basic_password", "enabled", "payload_api_version", "nested_items_in_payload",
    "auto_retry",
)
BUILD_TRIGGER_ATTRIBUTES = (
    "name", "adapter", "adapter_settings", "indexing_enabled", "frontend_url",
    "autotrigger_on_scheduled_publications",
)

EntityType = Literal[
    "item_type", "item", "upload", "build_trigger", "environment",
    "maintenance_mode", "sso_user", "cda_cache_tags",
]


class WebhookEvent(BaseModel):
    entity_type: EntityType
    event_types: List[str] = Field(min_length=1, description="e.g. [\"create\", \"update\", \"publish\"].")
    filters: Optional[List[Dict[str, Any]]] = None


class WebhookAttributes(ToolParams):
    custom_payload: Optional[str] = Field(default=None, description="Mustache template for the request body.")
    headers: Optional[Dict[str, str]] = None
    http_basic_user: Optional[str] = None
    http_basic_password: Optional[str] = None
    enabled: Optional[bool] = None
    payload_api_version: Optional[Literal["1", "2", "3"]] = None
    nested_items_in_payload: Optional[bool] = None
    auto_retry: Optional[bool] = None

    def webhook_attributes(self) -> Dict[str, Any]:
        attributes = attributes_of(self, *WEBHOOK_ATTRIBUTES)
        if "events" in attributes:
            attributes["events"] = [event.model_dump(exclude_none=True) for event in self.events]
        return attributes


class WebhookCreateParams(WebhookAttributes):
    name: str = Field(min_length=1)
    url: str = Field(pattern=r"^https?://")
    events: List[WebhookEvent] = Field(min_length=1)


class WebhookIdParams(ToolParams):
    webhook_id: str = Field(min_length=1)


class WebhookUpdateParams(WebhookAttributes):
    webhook_id: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    url: Optional[str] = Field(default=None, pattern=r"^https?://")
    events: Optional[List[WebhookEvent]] = None


class WebhookCallListParams(PaginatedParams):
    webhook_id: Optional[str] = Field(default=None, description="Only list calls of this webhook.")
    status: Optional[Literal["pending", "success", "failed", "rescheduled"]] = None

    def filters(self) -> Dict[str, Any]:
        found = {}
        if self.webhook_id:
            found["webhook_id"] = self.webhook_id
        if self.status:
            found["status"] = self.status
        return {"filter": found} if found else {}


class WebhookCallIdParams(ToolParams):
    call_id: str = Field(min_length=1)


class BuildTriggerAttributes(ToolParams):
    adapter_settings: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Adapter-specific settings, e.g. {\"trigger_url\": \"...\"} for custom adapters.",
    )
    indexing_enabled: Optional[bool] = None
    frontend_url: Optional[str] = None
    autotrigger_on_scheduled_publications: Optional[bool] = None


class BuildTriggerCreateParams(BuildTriggerAttributes):
    name: str = Field(min_length=1)
    adapter: Literal["custom", "netlify", "vercel", "circle_ci", "gitlab", "travis"]


class BuildTriggerIdParams(ToolParams):
    build_trigger_id: str = Field(min_length=1)


class BuildTriggerUpdateParams(BuildTriggerAttributes):
    build_trigger_id: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    adapter: Optional[Literal["custom", "netlify", "vercel", "circle_ci", "gitlab", "travis"]] = None


class DeployEventListParams(PaginatedParams):
    build_trigger_id: str = Field(min_length=1)


class DeployEventIdParams(ToolParams):
    deploy_event_id: str = Field(min_length=1)


@webhooks.create("webhook_create", WebhookCreateParams, **_webhooks)
async def webhook_create(client, params: WebhookCreateParams):
    """Create a webhook."""
    return await client.webhooks.create(params.webhook_attributes())


@webhooks.list("webhook_list", ToolParams, **_webhooks)
async def webhook_list(client, params: ToolParams):
    """List webhooks."""
    return await client.webhooks.list()


@webhooks.retrieve("webhook_retrieve", WebhookIdParams, id_param="webhook_id", **_webhooks)
async def webhook_retrieve(client, params: WebhookIdParams):
    """Retrieve a webhook."""
    return await client.webhooks.find(params.webhook_id)


@webhooks.update("webhook_update", WebhookUpdateParams, id_param="webhook_id", **_webhooks)
async def webhook_update(client, params: WebhookUpdateParams):
    """Update a webhook."""
    return await client.webhooks.update(params.webhook_id, params.webhook_attributes())


@webhooks.delete("webhook_delete", WebhookIdParams, id_param="webhook_id", **_webhooks)
async def webhook_delete(client, params: WebhookIdParams):
    """Delete a webhook."""
    await client.webhooks.destroy(params.webhook_id)


@webhooks.list("webhook_call_list", WebhookCallListParams, **_calls)
async def webhook_call_list(client, params: WebhookCallListParams):
    """List webhook calls, most recent first."""
    return await client.webhook_calls.list_page(params.filters(), params.page.offset, params.page.limit)


@webhooks.retrieve("webhook_call_retrieve", WebhookCallIdParams, id_param="call_id", **_calls)
async def webhook_call_retrieve(client, params: WebhookCallIdParams):
    """Retrieve a webhook call with its request and response."""
    return await client.webhook_calls.find(params.call_id)


@webhooks.custom(
    "webhook_call_resend",
    WebhookCallIdParams,
    success_message="Webhook call resent successfully.",
    **_calls,
)
async def webhook_call_resend(client, params: WebhookCallIdParams):
    """Send a webhook call again."""
    await client.webhook_calls.resend_webhook(params.call_id)
    return {"id": params.call_id}


@webhooks.create("build_trigger_create", BuildTriggerCreateParams, **_triggers)
async def build_trigger_create(client, params: BuildTriggerCreateParams):
    """Create a build trigger."""
    return await client.build_triggers.create(attributes_of(params, *BUILD_TRIGGER_ATTRIBUTES))


@webhooks.list("build_trigger_list", ToolParams, **_triggers)
async def build_trigger_list(client, params: ToolParams):
    """List build triggers."""
    return await client.build_triggers.list()


@webhooks.retrieve("build_trigger_retrieve", BuildTriggerIdParams, id_param="build_trigger_id", **_triggers)
async def build_trigger_retrieve(client, params: BuildTriggerIdParams):
    """Retrieve a build trigger."""
    return await client.build_triggers.find(params.build_trigger_id)


@webhooks.update("build_trigger_update", BuildTriggerUpdateParams, id_param="build_trigger_id", **_triggers)
async def build_trigger_update(client, params: BuildTriggerUpdateParams):
    """Update a build trigger."""
    return await client.build_triggers.update(
        params.build_trigger_id, attributes_of(params, *BUILD_TRIGGER_ATTRIBUTES)
    )


@webhooks.delete("build_trigger_delete", BuildTriggerIdParams, id_param="build_trigger_id", **_triggers)
async def build_trigger_delete(client, params: BuildTriggerIdParams):
    """Delete a build trigger."""
    await client.build_triggers.destroy(params.build_trigger_id)


@webhooks.custom("build_trigger_trigger", BuildTriggerIdParams, success_message="Build triggered successfully.", **_triggers)
async def build_trigger_trigger(client, params: BuildTriggerIdParams):
    """Start a deployment."""
    await client.build_triggers.trigger(params.build_trigger_id)
    return {"id": params.build_trigger_id}


@webhooks.custom("build_trigger_abort", BuildTriggerIdParams, success_message="Build aborted.", **_triggers)
async def build_trigger_abort(client, params: BuildTriggerIdParams):
    """Abort a running deployment."""
    await client.build_triggers.abort(params.build_trigger_id)
    return {"id": params.build_trigger_id}


@webhooks.custom(
    "build_trigger_reindex",
    BuildTriggerIdParams,
    success_message="Site search reindexing started.",
    **_triggers,
)
async def build_trigger_reindex(client, params: BuildTriggerIdParams):
    """Start site search indexing."""
    await client.build_triggers.reindex(params.build_trigger_id)
    return {"id": params.build_trigger_id}


@webhooks.custom(
    "build_trigger_abort_indexing",
    BuildTriggerIdParams,
    success_message="Site search indexing aborted.",
    **_triggers,
)
async def build_trigger_abort_indexing(client, params: BuildTriggerIdParams):
    """Abort site search indexing."""
    await client.build_triggers.abort_indexing(params.build_trigger_id)
    return {"id": params.build_trigger_id}


@webhooks.list("deploy_event_list", DeployEventListParams, **_events)
async def deploy_event_list(client, params: DeployEventListParams):
    """List the deploy events of a build trigger."""
    return await client.deploy_events.list_page(
        None, params.page.offset, params.page.limit, parent_id=params.build_trigger_id
    )


@webhooks.retrieve("deploy_event_retrieve", DeployEventIdParams, id_param="deploy_event_id", **_events)
async def deploy_event_retrieve(client, params: DeployEventIdParams):
    """Retrieve a deploy event."""
    return await client.deploy_events.find(params.deploy_event_id)
