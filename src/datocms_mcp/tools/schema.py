"""
Schema tools: models (item types), fields and fieldsets.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from datocms_mcp.client import reference

from .base import ToolGroup, ToolParams, attributes_of

schema = ToolGroup(
    "datocms_schema",
    "Manage the DatoCMS schema: models and block models (item types), their fields and fieldsets.",
)

_models = {"entity_label": "Item type"}
_fields = {"entity_label": "Field"}
_fieldsets = {"entity_label": "Fieldset"}

FieldType = Literal[
    "boolean", "color", "date", "date_time", "file", "float",
    "gallery", "integer", "json", "lat_lon", "link", "links",
    "rich_text", "seo", "single_block", "slug", "string",
    "structured_text", "text", "video",
]

ITEM_TYPE_ATTRIBUTES = (
    "name", "api_key", "singleton", "sortable", "modular_block", "tree",
    "draft_mode_active", "all_locales_required", "collection_appearance",
    "hint", "inverse_relationships_enabled",
)
FIELD_ATTRIBUTES = (
    "label", "api_key", "field_type", "localized", "validators", "appearance",
    "position", "hint", "default_value", "deep_filtering_enabled",
)
FIELDSET_ATTRIBUTES = ("title", "hint", "position", "collapsible", "start_collapsed")


class ItemTypeFields(ToolParams):
    singleton: Optional[bool] = Field(default=None, description="Whether the model has a single record.")
    sortable: Optional[bool] = Field(default=None, description="Whether records can be sorted manually.")
    modular_block: Optional[bool] = Field(default=None, description="Whether this is a block model.")
    tree: Optional[bool] = Field(default=None, description="Whether records are organized in a tree.")
    draft_mode_active: Optional[bool] = Field(default=None, description="Whether draft/published workflow is on.")
    all_locales_required: Optional[bool] = None
    collection_appearance: Optional[Literal["compact", "table"]] = None
    hint: Optional[str] = None
    inverse_relationships_enabled: Optional[bool] = None


class ItemTypeCreateParams(ItemTypeFields):
    name: str = Field(min_length=1, description="Name of the model.")
    api_key: str = Field(pattern=r"^[a-z][a-z0-9_]*$", description="API identifier of the model (snake_case).")


class ItemTypeIdParams(ToolParams):
    item_type_id: str = Field(min_length=1, description="ID or API key of the model.")


class ItemTypeUpdateParams(ItemTypeFields):
    item_type_id: str = Field(min_length=1, description="ID of the model.")
    name: Optional[str] = Field(default=None, min_length=1)
    api_key: Optional[str] = Field(default=None, pattern=r"^[a-z][a-z0-9_]*$")


class FieldAttributes(ToolParams):
    localized: Optional[bool] = Field(default=None, description="Whether the field has a value per locale.")
    validators: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Validators, e.g. {\"required\": {}} or {\"item_item_type\": {\"item_types\": [\"123\"]}}.",
    )
    appearance: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Editor appearance, e.g. {\"editor\": \"single_line\", \"parameters\": {\"heading\": false}, \"addons\": []}.",
    )
    position: Optional[int] = Field(default=None, ge=0)
    hint: Optional[str] = None
    default_value: Optional[Any] = None
    deep_filtering_enabled: Optional[bool] = None
    fieldset_id: Optional[str] = Field(default=None, description="ID of the fieldset holding the field.")

    def field_relationships(self) -> Optional[Dict[str, Any]]:
        if "fieldset_id" not in self.model_fields_set:
            return None
        return {"fieldset": reference("fieldset", self.fieldset_id) if self.fieldset_id else None}


class FieldCreateParams(FieldAttributes):
    item_type_id: str = Field(min_length=1, description="ID of the model the field belongs to.")
    label: str = Field(min_length=1)
    api_key: str = Field(pattern=r"^[a-z][a-z0-9_]*$")
    field_type: FieldType


class FieldIdParams(ToolParams):
    field_id: str = Field(min_length=1, description="ID or '<model>::<field>' API key of the field.")


class FieldUpdateParams(FieldAttributes):
    field_id: str = Field(min_length=1)
    label: Optional[str] = Field(default=None, min_length=1)
    api_key: Optional[str] = Field(default=None, pattern=r"^[a-z][a-z0-9_]*$")
    field_type: Optional[FieldType] = None


class FieldsetAttributes(ToolParams):
    hint: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=0)
    collapsible: Optional[bool] = None
    start_collapsed: Optional[bool] = None


class FieldsetCreateParams(FieldsetAttributes):
    item_type_id: str = Field(min_length=1)
    title: str = Field(min_length=1)


class FieldsetIdParams(ToolParams):
    fieldset_id: str = Field(min_length=1)


class FieldsetUpdateParams(FieldsetAttributes):
    fieldset_id: str = Field(min_length=1)
    title: Optional[str] = Field(default=None, min_length=1)


@schema.create("item_type_create", ItemTypeCreateParams, **_models)
async def item_type_create(client, params: ItemTypeCreateParams):
    """Create a model or block model."""
    return await client.item_types.create(attributes_of(params, *ITEM_TYPE_ATTRIBUTES) | {
        "name": params.name,
        "api_key": params.api_key,
    })


@schema.create(
    "item_type_duplicate",
    ItemTypeIdParams,
    success_message=lambda item_type: f"Item type duplicated successfully as '{item_type['api_key']}'.",
    **_models,
)
async def item_type_duplicate(client, params: ItemTypeIdParams):
    """Duplicate a model with its fields."""
    return await client.item_types.duplicate(params.item_type_id)


@schema.list("item_type_list", ToolParams, **_models)
async def item_type_list(client, params: ToolParams):
    """List all models and block models."""
    return await client.item_types.list()


@schema.retrieve("item_type_get", ItemTypeIdParams, id_param="item_type_id", **_models)
async def item_type_get(client, params: ItemTypeIdParams):
    """Retrieve a model by ID or API key."""
    return await client.item_types.find(params.item_type_id)


@schema.update("item_type_update", ItemTypeUpdateParams, id_param="item_type_id", **_models)
async def item_type_update(client, params: ItemTypeUpdateParams):
    """Update a model's settings."""
    return await client.item_types.update(params.item_type_id, attributes_of(params, *ITEM_TYPE_ATTRIBUTES))


@schema.delete("item_type_delete", ItemTypeIdParams, id_param="item_type_id", **_models)
async def item_type_delete(client, params: ItemTypeIdParams):
    """Delete a model and all of its records."""
    await client.item_types.destroy(params.item_type_id)


@schema.create("field_create", FieldCreateParams, **_fields)
async def field_create(client, params: FieldCreateParams):
    """Add a field to a model."""
    return await client.fields.create(
        attributes_of(params, *FIELD_ATTRIBUTES) | {
            "label": params.label,
            "api_key": params.api_key,
            "field_type": params.field_type,
        },
        params.field_relationships(),
        parent_id=params.item_type_id,
    )


@schema.list("field_list", ItemTypeIdParams, **_fields)
async def field_list(client, params: ItemTypeIdParams):
    """List the fields of a model."""
    return await client.fields.list(parent_id=params.item_type_id)


@schema.retrieve("field_get", FieldIdParams, id_param="field_id", **_fields)
async def field_get(client, params: FieldIdParams):
    """Retrieve a field."""
    return await client.fields.find(params.field_id)


@schema.update("field_update", FieldUpdateParams, id_param="field_id", **_fields)
async def field_update(client, params: FieldUpdateParams):
    """Update a field."""
    return await client.fields.update(
        params.field_id,
        attributes_of(params, *FIELD_ATTRIBUTES),
        params.field_relationships(),
    )


@schema.delete("field_delete", FieldIdParams, id_param="field_id", **_fields)
async def field_delete(client, params: FieldIdParams):
    """Delete a field."""
    await client.fields.destroy(params.field_id)


@schema.create("fieldset_create", FieldsetCreateParams, **_fieldsets)
async def fieldset_create(client, params: FieldsetCreateParams):
    """Add a fieldset to a model."""
    return await client.fieldsets.create(
        attributes_of(params, *FIELDSET_ATTRIBUTES) | {"title": params.title},
        parent_id=params.item_type_id,
    )


@schema.list("fieldset_list", ItemTypeIdParams, **_fieldsets)
async def fieldset_list(client, params: ItemTypeIdParams):
    """List the fieldsets of a model."""
    return await client.fieldsets.list(parent_id=params.item_type_id)


@schema.retrieve("fieldset_get", FieldsetIdParams, id_param="fieldset_id", **_fieldsets)
async def fieldset_get(client, params: FieldsetIdParams):
    """Retrieve a fieldset."""
    return await client.fieldsets.find(params.fieldset_id)


@schema.update("fieldset_update", FieldsetUpdateParams, id_param="fieldset_id", **_fieldsets)
async def fieldset_update(client, params: FieldsetUpdateParams):
    """Update a fieldset."""
    return await client.fieldsets.update(params.fieldset_id, attributes_of(params, *FIELDSET_ATTRIBUTES))


@schema.delete("fieldset_delete", FieldsetIdParams, id_param="fieldset_id", **_fieldsets)
async def fieldset_delete(client, params: FieldsetIdParams):
    """Delete a fieldset; its fields are kept."""
    await client.fieldsets.destroy(params.fieldset_id)
