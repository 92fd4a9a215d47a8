"""
Record tools.

Query, read, create, update, duplicate, delete, publish and schedule
DatoCMS records, and browse or restore their versions.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field, field_validator, model_validator

from datocms_mcp.client import editor_url as build_editor_url
from datocms_mcp.client import reference
from datocms_mcp.core.client_manager import ClientKind
from datocms_mcp.core.handlers import ListResult

from .base import PaginatedParams, ToolGroup, ToolParams
from .locales import most_populated_locale, only_ids

records = ToolGroup(
    "datocms_records",
    "Query and manage DatoCMS records: search, read, create, update, duplicate, delete, "
    "publish, schedule and restore versions.",
)

_options = {"entity_label": "Record", "client_kind": ClientKind.RECORDS}

ISO_TIMESTAMP = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$"
ORDER_BY = r"^[a-zA-Z0-9_]+_(ASC|DESC|asc|desc)$"

Version = Literal["published", "current"]


class ItemIdParams(ToolParams):
    item_id: str = Field(min_length=1, description="The ID of the DatoCMS record.")


class QueryParams(PaginatedParams):
    text_search: Optional[str] = Field(
        default=None,
        description="Plain search term matched across all records. Not a GraphQL query or filter.",
    )
    ids: Optional[Union[str, List[str]]] = Field(
        default=None,
        description="Record IDs to fetch, as a list or a comma-separated string without spaces.",
    )
    model_id: Optional[str] = Field(default=None, description="Model ID to restrict results to.")
    model_name: Optional[str] = Field(default=None, description="Model API key to restrict results to.")
    fields: Optional[Dict[str, Any]] = Field(
        default=None,
        description=(
            "Field filters within one model, e.g. {\"name\": \"Emily\"} or {\"name\": {\"eq\": \"Emily\"}}. "
            "Requires modelId or modelName."
        ),
    )
    locale: Optional[str] = Field(default=None, description="Locale used to filter localized fields.")
    order_by: Optional[str] = Field(
        default=None,
        pattern=ORDER_BY,
        description="Ordering as <field_name>_(ASC|DESC), e.g. 'name_ASC' or '_updated_at_DESC'.",
    )
    version: Version = Field(default="current", description="'published' or 'current' (latest draft).")
    return_all_locales: bool = Field(default=False, description="Return every locale instead of the most populated one.")
    return_only_ids: bool = Field(default=False, description="Return only record IDs.")
    nested: bool = Field(default=True, description="Return full payloads for nested blocks.")

    @field_validator("ids")
    @classmethod
    def split_ids(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @model_validator(mode="after")
    def fields_need_model(self):
        if self.fields and not (self.model_id or self.model_name or self.text_search):
            raise ValueError(
                "Field filtering requires either 'modelId' or 'modelName' to be specified. "
                "DatoCMS does not support cross-model field filtering."
            )
        return self


class GetParams(ItemIdParams):
    version: Version = "published"
    return_all_locales: bool = False
    nested: bool = True


class ReferencesParams(ItemIdParams):
    version: Version = "current"
    return_all_locales: bool = False
    nested: bool = True
    return_only_ids: bool = Field(default=True, description="Return only the IDs of referencing records.")


class CreateParams(ToolParams):
    item_type: str = Field(min_length=1, description="ID of the model of the new record.")
    data: Dict[str, Any] = Field(
        description=(
            "Field values of the new record. Localized fields take an object keyed by locale, "
            "e.g. {\"title\": {\"en\": \"Hello\", \"it\": \"Ciao\"}}."
        ),
    )
    meta: Optional[Dict[str, Any]] = Field(default=None, description="Record metadata.")
    return_only_confirmation: bool = Field(default=False, description="Return only the new record's ID.")


class UpdateParams(ItemIdParams):
    data: Dict[str, Any] = Field(
        description=(
            "Field values to change. For localized fields include every locale to keep: "
            "omitted locales are removed."
        ),
    )
    version: Optional[str] = Field(
        default=None,
        description="Current version of the record; the update fails if the record changed since.",
    )
    meta: Optional[Dict[str, Any]] = None
    return_only_confirmation: bool = False


class DuplicateParams(ItemIdParams):
    return_only_confirmation: bool = False


class BulkParams(ToolParams):
    item_ids: List[str] = Field(min_length=1, description="IDs of the records.")


def _locales_come_in_pairs(self):
    if (self.content_in_locales is None) != (self.non_localized_content is None):
        raise ValueError(
            "If content_in_locales is provided, non_localized_content must also be provided, and vice versa."
        )
    return self


class PublishParams(ItemIdParams):
    content_in_locales: Optional[List[str]] = Field(default=None, description="Locales to publish.")
    non_localized_content: Optional[bool] = Field(default=None, description="Publish non-localized fields too.")
    recursive: bool = Field(default=False, description="Also publish unpublished parent records.")

    check_locale_pairs = model_validator(mode="after")(_locales_come_in_pairs)


class BulkPublishParams(BulkParams):
    content_in_locales: Optional[List[str]] = None
    non_localized_content: Optional[bool] = None
    recursive: bool = False

    check_locale_pairs = model_validator(mode="after")(_locales_come_in_pairs)


class UnpublishParams(ItemIdParams):
    recursive: bool = Field(default=False, description="Also unpublish published child records.")


class BulkUnpublishParams(BulkParams):
    recursive: bool = False


class SchedulePublicationParams(ItemIdParams):
    publication_scheduled_at: str = Field(
        pattern=ISO_TIMESTAMP,
        description="When to publish, as YYYY-MM-DDTHH:MM:SSZ.",
    )


class ScheduleUnpublicationParams(ItemIdParams):
    unpublishing_scheduled_at: str = Field(
        pattern=ISO_TIMESTAMP,
        description="When to unpublish, as YYYY-MM-DDTHH:MM:SSZ.",
    )


class VersionsListParams(ItemIdParams, PaginatedParams):
    return_only_ids: bool = Field(default=True, description="Return only version IDs and timestamps.")


class VersionParams(ToolParams):
    version_id: str = Field(min_length=1, description="ID of the record version.")


class EditorUrlParams(ItemIdParams):
    project_url: str = Field(
        min_length=1,
        description="Project domain (the internal_domain returned by datocms_project 'info').",
    )
    item_type_id: str = Field(min_length=1, description="Model ID of the record (item.item_type.id).")


def _present(items: List[Dict[str, Any]], params) -> ListResult:
    message = f"Found {len(items)} record(s)"
    if params.return_only_ids:
        return ListResult(only_ids(items), message)
    return ListResult(most_populated_locale(items, params.return_all_locales), message)


@records.list("query", QueryParams, format_result=_present, **_options)
async def query(client, params: QueryParams):
    """Search records by text, IDs, model or field filters."""
    return await client.query_records(
        text_search=params.text_search,
        ids=params.ids,
        model=params.model_id or params.model_name,
        fields=params.fields,
        locale=params.locale,
        order_by=params.order_by,
        version=params.version,
        nested=params.nested,
        offset=params.page.offset,
        limit=params.page.limit,
    )


@records.retrieve("get", GetParams, id_param="item_id", **_options)
async def get(client, params: GetParams):
    """Retrieve a record by ID."""
    record = await client.find_record(params.item_id, version=params.version, nested=params.nested)
    return most_populated_locale(record, params.return_all_locales)


@records.list("references", ReferencesParams, format_result=_present, **_options)
async def references(client, params: ReferencesParams):
    """List records linking to a record."""
    return await client.items.references(params.item_id, {"version": params.version, "nested": params.nested})


def _confirm(record: Dict[str, Any], params) -> Dict[str, Any]:
    if params.return_only_confirmation:
        return {"id": record["id"]}
    return record


@records.create("create", CreateParams, **_options)
async def create(client, params: CreateParams):
    """Create a record of a model."""
    record = await client.items.create(
        params.data,
        {"item_type": reference("item_type", params.item_type)},
        meta=params.meta,
    )
    return _confirm(record, params)


@records.update("update", UpdateParams, id_param="item_id", **_options)
async def update(client, params: UpdateParams):
    """Update field values of a record."""
    meta = dict(params.meta or {})
    if params.version is not None:
        meta["current_version"] = params.version
    record = await client.items.update(params.item_id, params.data, meta=meta or None)
    return _confirm(record, params)


@records.create(
    "duplicate",
    DuplicateParams,
    success_message=lambda record: f"Record duplicated successfully with ID {record['id']}.",
    **_options,
)
async def duplicate(client, params: DuplicateParams):
    """Duplicate a record."""
    return _confirm(await client.items.duplicate(params.item_id), params)


@records.delete("destroy", ItemIdParams, id_param="item_id", **_options)
async def destroy(client, params: ItemIdParams):
    """Delete a record."""
    await client.items.destroy(params.item_id)


@records.custom(
    "bulk_destroy",
    BulkParams,
    success_message=lambda result: f"{len(result['item_ids'])} record(s) deleted.",
    **_options,
)
async def bulk_destroy(client, params: BulkParams):
    """Delete several records at once."""
    await client.items.bulk_destroy(params.item_ids)
    return {"item_ids": params.item_ids}


@records.custom(
    "publish",
    PublishParams,
    success_message=lambda record: f"Record {record['id']} published.",
    **_options,
)
async def publish(client, params: PublishParams):
    """Publish a record, optionally only some locales."""
    return await client.items.publish(
        params.item_id,
        content_in_locales=params.content_in_locales,
        non_localized_content=params.non_localized_content,
        recursive=params.recursive,
    )


@records.custom(
    "unpublish",
    UnpublishParams,
    success_message=lambda record: f"Record {record['id']} unpublished.",
    **_options,
)
async def unpublish(client, params: UnpublishParams):
    """Unpublish a record."""
    return await client.items.unpublish(params.item_id, recursive=params.recursive)


@records.custom(
    "bulk_publish",
    BulkPublishParams,
    success_message=lambda result: f"{len(result['item_ids'])} record(s) published.",
    **_options,
)
async def bulk_publish(client, params: BulkPublishParams):
    """Publish several records at once."""
    await client.items.bulk_publish(
        params.item_ids,
        content_in_locales=params.content_in_locales,
        non_localized_content=params.non_localized_content,
        recursive=params.recursive,
    )
    return {"item_ids": params.item_ids}


@records.custom(
    "bulk_unpublish",
    BulkUnpublishParams,
    success_message=lambda result: f"{len(result['item_ids'])} record(s) unpublished.",
    **_options,
)
async def bulk_unpublish(client, params: BulkUnpublishParams):
    """Unpublish several records at once."""
    await client.items.bulk_unpublish(params.item_ids, recursive=params.recursive)
    return {"item_ids": params.item_ids}


@records.create(
    "schedule_publication",
    SchedulePublicationParams,
    entity_label="Scheduled publication",
    client_kind=ClientKind.RECORDS,
)
async def schedule_publication(client, params: SchedulePublicationParams):
    """Schedule the publication of a record."""
    return await client.scheduled_publications.schedule(params.item_id, params.publication_scheduled_at)


@records.delete(
    "cancel_scheduled_publication",
    ItemIdParams,
    id_param="item_id",
    success_message=lambda item_id: f"Scheduled publication of record {item_id} was cancelled.",
    **_options,
)
async def cancel_scheduled_publication(client, params: ItemIdParams):
    """Cancel the scheduled publication of a record."""
    await client.scheduled_publications.cancel(params.item_id)


@records.create(
    "schedule_unpublication",
    ScheduleUnpublicationParams,
    entity_label="Scheduled unpublishing",
    client_kind=ClientKind.RECORDS,
)
async def schedule_unpublication(client, params: ScheduleUnpublicationParams):
    """Schedule the unpublishing of a record."""
    return await client.scheduled_unpublishings.schedule(params.item_id, params.unpublishing_scheduled_at)


@records.delete(
    "cancel_scheduled_unpublication",
    ItemIdParams,
    id_param="item_id",
    success_message=lambda item_id: f"Scheduled unpublishing of record {item_id} was cancelled.",
    **_options,
)
async def cancel_scheduled_unpublication(client, params: ItemIdParams):
    """Cancel the scheduled unpublishing of a record."""
    await client.scheduled_unpublishings.cancel(params.item_id)


def _present_versions(versions: List[Dict[str, Any]], params: VersionsListParams) -> ListResult:
    if params.return_only_ids:
        versions = [
            {"id": version["id"], "created_at": version.get("created_at"), "is_published": version.get("is_published")}
            for version in versions
        ]
    return ListResult(versions, f"Found {len(versions)} version(s)")


@records.list(
    "versions_list",
    VersionsListParams,
    entity_label="Record version",
    client_kind=ClientKind.RECORDS,
    format_result=_present_versions,
)
async def versions_list(client, params: VersionsListParams):
    """List the versions of a record."""
    return await client.item_versions.list_page(
        offset=params.page.offset,
        limit=params.page.limit,
        parent_id=params.item_id,
    )


@records.retrieve(
    "version_get",
    VersionParams,
    id_param="version_id",
    entity_label="Record version",
    client_kind=ClientKind.RECORDS,
)
async def version_get(client, params: VersionParams):
    """Retrieve a record version."""
    return await client.item_versions.find(params.version_id)


@records.custom(
    "version_restore",
    VersionParams,
    success_message=lambda restored: f"Record {restored['item']['id']} restored to the selected version.",
    entity_label="Record version",
    client_kind=ClientKind.RECORDS,
)
async def version_restore(client, params: VersionParams):
    """Restore a record to an older version."""
    item, version = await client.item_versions.restore(params.version_id)
    return {"item": item, "version": version}


@records.custom(
    "editor_url",
    EditorUrlParams,
    success_message="Here is the URL of the record in the DatoCMS editor.",
    **_options,
)
async def editor_url(client, params: EditorUrlParams):
    """Build the editor URL of a record."""
    return {"url": build_editor_url(params.project_url, params.item_type_id, params.item_id, params.environment)}
