"""Role tools."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from datocms_mcp.core.client_manager import ClientKind

from .base import ToolGroup, ToolParams, attributes_of

roles = ToolGroup(
    "datocms_roles",
    "Manage DatoCMS roles and their permissions: create, list, retrieve, update, destroy and duplicate.",
)

_options = {"entity_label": "Role", "client_kind": ClientKind.COLLABORATORS}

ROLE_FLAGS = (
    "can_edit_site",
    "can_edit_schema",
    "can_edit_favicon",
    "can_manage_users",
    "can_manage_shared_filters",
    "can_manage_upload_collections",
    "can_manage_access_tokens",
    "can_manage_webhooks",
    "can_manage_environments",
    "can_promote_environments",
    "can_manage_build_triggers",
    "can_manage_search_indexes",
    "can_perform_site_search",
    "can_access_audit_log",
)
PERMISSION_LISTS = (
    "positive_item_type_permissions",
    "negative_item_type_permissions",
    "positive_upload_permissions",
    "negative_upload_permissions",
    "positive_build_trigger_permissions",
    "negative_build_trigger_permissions",
)


class RoleAttributes(ToolParams):
    can_edit_site: Optional[bool] = None
    can_edit_schema: Optional[bool] = None
    can_edit_favicon: Optional[bool] = None
    can_manage_users: Optional[bool] = None
    can_manage_shared_filters: Optional[bool] = None
    can_manage_upload_collections: Optional[bool] = None
    can_manage_access_tokens: Optional[bool] = None
    can_manage_webhooks: Optional[bool] = None
    can_manage_environments: Optional[bool] = None
    can_promote_environments: Optional[bool] = None
    can_manage_build_triggers: Optional[bool] = None
    can_manage_search_indexes: Optional[bool] = None
    can_perform_site_search: Optional[bool] = None
    can_access_audit_log: Optional[bool] = None
    positive_item_type_permissions: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Permission rules granted on models, e.g. [{\"action\": \"all\", \"environment\": \"main\"}]",
    )
    negative_item_type_permissions: Optional[List[Dict[str, Any]]] = None
    positive_upload_permissions: Optional[List[Dict[str, Any]]] = None
    negative_upload_permissions: Optional[List[Dict[str, Any]]] = None
    positive_build_trigger_permissions: Optional[List[Dict[str, Any]]] = None
    negative_build_trigger_permissions: Optional[List[Dict[str, Any]]] = None

    def role_attributes(self) -> Dict[str, Any]:
        return attributes_of(self, *ROLE_FLAGS, *PERMISSION_LISTS)


class CreateRoleParams(RoleAttributes):
    name: str = Field(min_length=1, description="Name of the role")
    inherits_permissions_from: Optional[str] = Field(
        default=None,
        description="ID of a role whose permissions this role inherits",
    )


class RoleIdParams(ToolParams):
    role_id: str = Field(min_length=1, description="ID of the role")


class UpdateRoleParams(RoleAttributes):
    role_id: str = Field(min_length=1, description="ID of the role")
    name: Optional[str] = Field(default=None, min_length=1, description="New name of the role")


@roles.create("create_role", CreateRoleParams, **_options)
async def create_role(client, params: CreateRoleParams):
    """Create a role."""
    attributes = {"name": params.name, **params.role_attributes()}
    return await client.create_role(attributes, params.inherits_permissions_from)


@roles.list("list_roles", ToolParams, **_options)
async def list_roles(client, params: ToolParams):
    """List all roles."""
    return await client.list_roles()


@roles.retrieve("retrieve_role", RoleIdParams, id_param="role_id", **_options)
async def retrieve_role(client, params: RoleIdParams):
    """Retrieve a role by ID."""
    return await client.find_role(params.role_id)


@roles.update("update_role", UpdateRoleParams, id_param="role_id", **_options)
async def update_role(client, params: UpdateRoleParams):
    """Update a role's name or permissions."""
    attributes = params.role_attributes()
    if params.name is not None:
        attributes["name"] = params.name
    return await client.update_role(params.role_id, attributes)


@roles.delete("destroy_role", RoleIdParams, id_param="role_id", **_options)
async def destroy_role(client, params: RoleIdParams):
    """Delete a role."""
    await client.destroy_role(params.role_id)


@roles.create(
    "duplicate_role",
    RoleIdParams,
    success_message=lambda role: f"Role duplicated successfully as '{role['name']}'.",
    **_options,
)
async def duplicate_role(client, params: RoleIdParams):
    """Duplicate a role with all of its permissions."""
    return await client.duplicate_role(params.role_id)
