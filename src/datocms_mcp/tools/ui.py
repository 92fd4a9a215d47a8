"""
UI configuration tools.

Menu items, schema menu items, saved model and upload filters, and plugins
share the same five operations, registered by _register_crud.
"""

from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import Field, model_validator

from datocms_mcp.client import reference

from .base import ToolGroup, ToolParams, attributes_of

ui = ToolGroup(
    "datocms_ui",
    "Manage the DatoCMS editing interface: navigation menu items, schema menu items, saved "
    "model filters, saved upload filters and plugins.",
)


def _ref(params: ToolParams, name: str, resource_type: str) -> Dict[str, Any]:
    value = getattr(params, name)
    return reference(resource_type, value) if value else None


def _relationships(params: ToolParams, mapping: Dict[str, tuple]) -> Optional[Dict[str, Any]]:
    """Build relationships for the explicitly set id params; mapping is param -> (relationship, type)."""
    found = {
        relationship: _ref(params, name, resource_type)
        for name, (relationship, resource_type) in mapping.items()
        if name in params.model_fields_set
    }
    return found or None


class MenuItemFields(ToolParams):
    external_url: Optional[str] = Field(default=None, description="Link to an external page instead of a model.")
    position: Optional[int] = Field(default=None, ge=0)
    open_in_new_tab: Optional[bool] = None
    item_type_id: Optional[str] = Field(default=None, description="Model the menu item opens.")
    item_type_filter_id: Optional[str] = Field(default=None, description="Saved filter applied to the model.")
    parent_id: Optional[str] = Field(default=None, description="Parent menu item.")


MENU_ITEM_ATTRIBUTES = ("label", "external_url", "position", "open_in_new_tab")
MENU_ITEM_RELATIONSHIPS = {
    "item_type_id": ("item_type", "item_type"),
    "item_type_filter_id": ("item_type_filter", "item_type_filter"),
    "parent_id": ("parent", "menu_item"),
}


class MenuItemCreateParams(MenuItemFields):
    label: str = Field(min_length=1)


class MenuItemUpdateParams(MenuItemFields):
    menu_item_id: str = Field(min_length=1)
    label: Optional[str] = Field(default=None, min_length=1)


class MenuItemIdParams(ToolParams):
    menu_item_id: str = Field(min_length=1)


class SchemaMenuItemFields(ToolParams):
    position: Optional[int] = Field(default=None, ge=0)
    item_type_id: Optional[str] = None
    parent_id: Optional[str] = None


SCHEMA_MENU_ITEM_ATTRIBUTES = ("label", "kind", "position")
SCHEMA_MENU_ITEM_RELATIONSHIPS = {
    "item_type_id": ("item_type", "item_type"),
    "parent_id": ("parent", "schema_menu_item"),
}


class SchemaMenuItemCreateParams(SchemaMenuItemFields):
    label: str = Field(min_length=1)
    kind: Literal["item_type", "modular_block"] = "item_type"


class SchemaMenuItemUpdateParams(SchemaMenuItemFields):
    schema_menu_item_id: str = Field(min_length=1)
    label: Optional[str] = Field(default=None, min_length=1)


class SchemaMenuItemIdParams(ToolParams):
    schema_menu_item_id: str = Field(min_length=1)


class ModelFilterFields(ToolParams):
    filter: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Saved filter, e.g. {\"query\": \"foo\", \"fields\": {\"title\": {\"matches\": {\"pattern\": \"bar\"}}}}.",
    )
    columns: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Table columns, e.g. [{\"name\": \"_preview\", \"width\": 0.6}].",
    )
    order_by: Optional[str] = None
    shared: Optional[bool] = None


MODEL_FILTER_ATTRIBUTES = ("name", "filter", "columns", "order_by", "shared")


class ModelFilterCreateParams(ModelFilterFields):
    name: str = Field(min_length=1)
    item_type_id: str = Field(min_length=1)


class ModelFilterUpdateParams(ModelFilterFields):
    model_filter_id: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)


class ModelFilterIdParams(ToolParams):
    model_filter_id: str = Field(min_length=1)


class UploadsFilterFields(ToolParams):
    filter: Optional[Dict[str, Any]] = None
    shared: Optional[bool] = None


UPLOADS_FILTER_ATTRIBUTES = ("name", "filter", "shared")


class UploadsFilterCreateParams(UploadsFilterFields):
    name: str = Field(min_length=1)


class UploadsFilterUpdateParams(UploadsFilterFields):
    uploads_filter_id: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)


class UploadsFilterIdParams(ToolParams):
    uploads_filter_id: str = Field(min_length=1)


PLUGIN_ATTRIBUTES = ("name", "description", "url", "package_name", "package_version", "permissions")


class PluginCreateParams(ToolParams):
    package_name: Optional[str] = Field(default=None, description="NPM package of a public plugin.")
    name: Optional[str] = Field(default=None, description="Name of a private plugin.")
    url: Optional[str] = Field(default=None, description="Entry point URL of a private plugin.")
    description: Optional[str] = None
    permissions: Optional[List[Literal["currentUserAccessToken"]]] = None
    package_version: Optional[str] = None

    @model_validator(mode="after")
    def package_or_url(self):
        if not self.package_name and not (self.name and self.url):
            raise ValueError("Provide either 'packageName', or both 'name' and 'url' for a private plugin.")
        return self


class PluginUpdateParams(ToolParams):
    plugin_id: str = Field(min_length=1)
    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    package_version: Optional[str] = None
    permissions: Optional[List[Literal["currentUserAccessToken"]]] = None
    parameters: Optional[Dict[str, Any]] = Field(default=None, description="Global plugin configuration.")


class PluginIdParams(ToolParams):
    plugin_id: str = Field(min_length=1)


def _register_crud(
    prefix: str,
    resource: str,
    label: str,
    id_param: str,
    create_params: Type[ToolParams],
    update_params: Type[ToolParams],
    id_params: Type[ToolParams],
    attributes: tuple,
    relationships: Optional[Dict[str, tuple]] = None,
    update_attributes: Optional[tuple] = None,
) -> None:
    """Register <prefix>_{create,list,retrieve,update,delete} over client.<resource>."""
    relationships = relationships or {}
    update_attributes = update_attributes or attributes

    async def create(client, params):
        return await getattr(client, resource).create(
            attributes_of(params, *attributes),
            _relationships(params, relationships),
        )

    async def list_all(client, params):
        return await getattr(client, resource).list()

    async def retrieve(client, params):
        return await getattr(client, resource).find(getattr(params, id_param))

    async def update(client, params):
        return await getattr(client, resource).update(
            getattr(params, id_param),
            attributes_of(params, *update_attributes),
            _relationships(params, relationships),
        )

    async def delete(client, params):
        await getattr(client, resource).destroy(getattr(params, id_param))

    article = "an" if label[0].lower() in "aeiou" else "a"
    lowered = label.lower()
    ui.create(f"{prefix}_create", create_params, entity_label=label, description=f"Create {article} {lowered}.")(create)
    ui.list(f"{prefix}_list", ToolParams, entity_label=label, description=f"List {lowered}s.")(list_all)
    ui.retrieve(
        f"{prefix}_retrieve", id_params, entity_label=label, id_param=id_param, description=f"Retrieve {article} {lowered}."
    )(retrieve)
    ui.update(
        f"{prefix}_update", update_params, entity_label=label, id_param=id_param, description=f"Update {article} {lowered}."
    )(update)
    ui.delete(
        f"{prefix}_delete", id_params, entity_label=label, id_param=id_param, description=f"Delete {article} {lowered}."
    )(delete)


_register_crud(
    "menu_item", "menu_items", "Menu item", "menu_item_id",
    MenuItemCreateParams, MenuItemUpdateParams, MenuItemIdParams,
    MENU_ITEM_ATTRIBUTES, MENU_ITEM_RELATIONSHIPS,
)
_register_crud(
    "schema_menu_item", "schema_menu_items", "Schema menu item", "schema_menu_item_id",
    SchemaMenuItemCreateParams, SchemaMenuItemUpdateParams, SchemaMenuItemIdParams,
    SCHEMA_MENU_ITEM_ATTRIBUTES, SCHEMA_MENU_ITEM_RELATIONSHIPS,
)
_register_crud(
    "model_filter", "item_type_filters", "Model filter", "model_filter_id",
    ModelFilterCreateParams, ModelFilterUpdateParams, ModelFilterIdParams,
    MODEL_FILTER_ATTRIBUTES, {"item_type_id": ("item_type", "item_type")},
)
_register_crud(
    "uploads_filter", "upload_filters", "Uploads filter", "uploads_filter_id",
    UploadsFilterCreateParams, UploadsFilterUpdateParams, UploadsFilterIdParams,
    UPLOADS_FILTER_ATTRIBUTES,
)
_register_crud(
    "plugin", "plugins", "Plugin", "plugin_id",
    PluginCreateParams, PluginUpdateParams, PluginIdParams,
    PLUGIN_ATTRIBUTES, update_attributes=PLUGIN_ATTRIBUTES + ("parameters",),
)
