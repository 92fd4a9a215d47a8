"""
Upload tools.

Search and manage media assets, their tags and the collections they are
organized in.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field, field_validator

from datocms_mcp.client import reference
from datocms_mcp.core.handlers import ListResult

from .base import PaginatedParams, ToolGroup, ToolParams, attributes_of

uploads = ToolGroup(
    "datocms_uploads",
    "Manage DatoCMS uploads (media assets): search, create from URL, update metadata, tag, "
    "move between collections and delete. Also manages upload tags and upload collections.",
)

_uploads = {"entity_label": "Upload"}
_tags = {"entity_label": "Upload tag"}
_collections = {"entity_label": "Upload collection"}

UploadType = Literal["image", "all_media", "video", "audio", "document", "archive", "other"]
UPLOAD_ATTRIBUTES = ("author", "copyright", "notes", "tags", "default_field_metadata", "filename")


def _split(value):
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _references(items, params) -> ListResult:
    if not items:
        return ListResult(items, "The upload is not referenced by any record.")
    return ListResult(items, f"Found {len(items)} record(s) referencing the upload")


class UploadIdParams(ToolParams):
    upload_id: str = Field(min_length=1, description="The ID of the upload.")


class UploadQueryParams(PaginatedParams):
    query: Optional[str] = Field(default=None, description="Text matched against filename, title, alt and notes.")
    ids: Optional[Union[str, List[str]]] = Field(default=None, description="Upload IDs, as a list or comma-separated string.")
    type: Optional[UploadType] = Field(default=None, description="Restrict results to one kind of asset.")
    collection_id: Optional[str] = Field(default=None, description="Restrict results to one upload collection.")
    fields: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Metadata filters, e.g. {\"tags\": {\"contains\": \"hero\"}, \"width\": {\"gt\": 800}}.",
    )
    locale: Optional[str] = None
    order_by: Optional[str] = Field(default=None, pattern=r"^[a-z_]+_(ASC|DESC|asc|desc)$")

    @field_validator("ids")
    @classmethod
    def split_ids(cls, value):
        return _split(value)

    def filters(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        found: Dict[str, Any] = {}
        if self.query:
            found["query"] = self.query
        if self.ids:
            found["ids"] = self.ids
        if self.type:
            found["type"] = self.type
        fields = dict(self.fields or {})
        if self.collection_id:
            fields["upload_collection"] = {"eq": self.collection_id}
        if fields:
            found["fields"] = fields
        if found:
            query["filter"] = found
        if self.locale:
            query["locale"] = self.locale
        if self.order_by:
            query["order_by"] = self.order_by
        return query


class UploadMetadata(ToolParams):
    author: Optional[str] = None
    copyright: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    default_field_metadata: Optional[Dict[str, Dict[str, Any]]] = Field(
        default=None,
        description="Per-locale defaults, e.g. {\"en\": {\"alt\": \"...\", \"title\": \"...\", \"custom_data\": {}}}.",
    )
    collection_id: Optional[str] = Field(default=None, description="ID of the upload collection to place the asset in.")

    def collection_relationship(self) -> Optional[Dict[str, Any]]:
        if "collection_id" not in self.model_fields_set:
            return None
        return {
            "upload_collection": reference("upload_collection", self.collection_id) if self.collection_id else None
        }


class UploadCreateParams(UploadMetadata):
    url: str = Field(pattern=r"^https?://", description="Public URL of the file to upload.")
    filename: Optional[str] = Field(default=None, description="Filename to store; defaults to the URL's basename.")


class UploadUpdateParams(UploadMetadata):
    upload_id: str = Field(min_length=1)
    filename: Optional[str] = None


class UploadBulkParams(ToolParams):
    upload_ids: List[str] = Field(min_length=1, max_length=200, description="IDs of the uploads.")


class UploadBulkTagParams(UploadBulkParams):
    tags: List[str] = Field(min_length=1, description="Tags added to every upload.")


class UploadBulkCollectionParams(UploadBulkParams):
    collection_id: Optional[str] = Field(default=None, description="Target collection; null moves to the root.")


class TagCreateParams(ToolParams):
    name: str = Field(min_length=1)


class CollectionAttributes(ToolParams):
    position: Optional[int] = Field(default=None, ge=0)
    parent_id: Optional[str] = Field(default=None, description="ID of the parent collection.")

    def parent_relationship(self) -> Optional[Dict[str, Any]]:
        if "parent_id" not in self.model_fields_set:
            return None
        return {"parent": reference("upload_collection", self.parent_id) if self.parent_id else None}


class CollectionCreateParams(CollectionAttributes):
    label: str = Field(min_length=1)


class CollectionIdParams(ToolParams):
    collection_id: str = Field(min_length=1)


class CollectionUpdateParams(CollectionAttributes):
    collection_id: str = Field(min_length=1)
    label: Optional[str] = Field(default=None, min_length=1)


@uploads.list("query", UploadQueryParams, **_uploads)
async def query(client, params: UploadQueryParams):
    """Search uploads by text, type, collection or metadata."""
    return await client.uploads.list_page(params.filters(), params.page.offset, params.page.limit)


@uploads.retrieve("get", UploadIdParams, id_param="upload_id", **_uploads)
async def get(client, params: UploadIdParams):
    """Retrieve an upload."""
    return await client.uploads.find(params.upload_id)


@uploads.list(
    "references",
    UploadIdParams,
    format_result=_references,
    **_uploads,
)
async def references(client, params: UploadIdParams):
    """List records that use an upload."""
    return await client.uploads.references(params.upload_id)


@uploads.create("create", UploadCreateParams, **_uploads)
async def create(client, params: UploadCreateParams):
    """Create an upload from a public URL."""
    return await client.uploads.create_from_url(
        params.url,
        attributes_of(params, "author", "copyright", "notes", "tags", "default_field_metadata"),
        params.collection_relationship(),
        filename=params.filename,
    )


@uploads.update("update", UploadUpdateParams, id_param="upload_id", **_uploads)
async def update(client, params: UploadUpdateParams):
    """Update an upload's metadata or collection."""
    return await client.uploads.update(
        params.upload_id,
        attributes_of(params, *UPLOAD_ATTRIBUTES),
        params.collection_relationship(),
    )


@uploads.delete("destroy", UploadIdParams, id_param="upload_id", **_uploads)
async def destroy(client, params: UploadIdParams):
    """Delete an upload."""
    await client.uploads.destroy(params.upload_id)


@uploads.custom(
    "bulk_destroy",
    UploadBulkParams,
    success_message=lambda result: f"{len(result['upload_ids'])} upload(s) deleted successfully.",
    **_uploads,
)
async def bulk_destroy(client, params: UploadBulkParams):
    """Delete several uploads at once."""
    await client.uploads.bulk_destroy(params.upload_ids)
    return {"upload_ids": params.upload_ids}


@uploads.custom(
    "bulk_tag",
    UploadBulkTagParams,
    success_message=lambda result: f"Tagged {len(result['upload_ids'])} upload(s).",
    **_uploads,
)
async def bulk_tag(client, params: UploadBulkTagParams):
    """Add tags to several uploads."""
    await client.uploads.bulk_tag(params.upload_ids, params.tags)
    return {"upload_ids": params.upload_ids, "tags": params.tags}


@uploads.custom(
    "bulk_set_collection",
    UploadBulkCollectionParams,
    success_message=lambda result: f"Moved {len(result['upload_ids'])} upload(s).",
    **_uploads,
)
async def bulk_set_collection(client, params: UploadBulkCollectionParams):
    """Move several uploads into a collection."""
    await client.uploads.bulk_set_upload_collection(params.upload_ids, params.collection_id)
    return {"upload_ids": params.upload_ids, "collection_id": params.collection_id}


@uploads.list("tag_list", ToolParams, **_tags)
async def tag_list(client, params: ToolParams):
    """List manually created upload tags."""
    return await client.upload_tags.list()


@uploads.create("tag_create", TagCreateParams, **_tags)
async def tag_create(client, params: TagCreateParams):
    """Create an upload tag."""
    return await client.upload_tags.create({"name": params.name})


@uploads.list("smart_tag_list", ToolParams, entity_label="Smart tag")
async def smart_tag_list(client, params: ToolParams):
    """List tags generated automatically from image contents."""
    return await client.upload_smart_tags.list()


@uploads.create("collection_create", CollectionCreateParams, **_collections)
async def collection_create(client, params: CollectionCreateParams):
    """Create an upload collection."""
    return await client.upload_collections.create(
        attributes_of(params, "label", "position"),
        params.parent_relationship(),
    )


@uploads.list("collection_list", ToolParams, **_collections)
async def collection_list(client, params: ToolParams):
    """List upload collections."""
    return await client.upload_collections.list()


@uploads.retrieve("collection_get", CollectionIdParams, id_param="collection_id", **_collections)
async def collection_get(client, params: CollectionIdParams):
    """Retrieve an upload collection."""
    return await client.upload_collections.find(params.collection_id)


@uploads.update("collection_update", CollectionUpdateParams, id_param="collection_id", **_collections)
async def collection_update(client, params: CollectionUpdateParams):
    """Rename, reorder or move an upload collection."""
    return await client.upload_collections.update(
        params.collection_id,
        attributes_of(params, "label", "position"),
        params.parent_relationship(),
    )


@uploads.delete("collection_delete", CollectionIdParams, id_param="collection_id", **_collections)
async def collection_delete(client, params: CollectionIdParams):
    """Delete an upload collection."""
    await client.upload_collections.destroy(params.collection_id)
