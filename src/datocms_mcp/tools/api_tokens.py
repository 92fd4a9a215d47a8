"""
API token tools.

Create, list, retrieve, update, destroy and rotate DatoCMS API tokens.
"""

import logging
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, StringConstraints

from datocms_mcp.core.client_manager import ClientKind, ClientManager
from datocms_mcp.exceptions import InvalidOperationError, ResourceNotFoundError

from .base import ToolGroup, ToolParams, attributes_of

logger = logging.getLogger(__name__)

PREDEFINED_ROLES = ("admin", "editor", "developer", "seo", "contributor")

api_tokens = ToolGroup(
    "datocms_api_tokens",
    "Manage DatoCMS API tokens: create, list, retrieve, update, destroy and rotate.",
)

_options = {"entity_label": "API token", "client_kind": ClientKind.COLLABORATORS}


class RoleReference(BaseModel):
    id: str = Field(min_length=1, description="Role ID")
    type: Literal["role"] = Field(description="Resource type")


RoleSpec = Union[
    Literal["admin", "editor", "developer", "seo", "contributor"],
    Annotated[str, StringConstraints(pattern=r"^[0-9]+$")],
    RoleReference,
]


class CreateTokenParams(ToolParams):
    name: str = Field(min_length=1, description="Name of the API token")
    role: RoleSpec = Field(description="Role to assign: a predefined role name, a role ID or a role reference object")
    can_access_cda: bool = Field(default=True, description="Whether the token can read published content (CDA)")
    can_access_cda_preview: bool = Field(default=True, description="Whether the token can read draft content (CDA)")
    can_access_cma: bool = Field(default=True, description="Whether the token can access the Content Management API")


class TokenIdParams(ToolParams):
    token_id: str = Field(min_length=1, description="ID of the API token")


class UpdateTokenParams(TokenIdParams):
    name: Optional[str] = Field(default=None, min_length=1, description="New name of the API token")
    role: Optional[RoleSpec] = Field(default=None, description="New role of the API token")
    can_access_cda: Optional[bool] = None
    can_access_cda_preview: Optional[bool] = None
    can_access_cma: Optional[bool] = None


async def resolve_role_id(client, role: RoleSpec) -> str:
    """
    Resolve a role specification to a role id.

    Raises:
        InvalidOperationError: If a predefined role name does not exist
    """
    if isinstance(role, RoleReference):
        return role.id
    if role in PREDEFINED_ROLES:
        match = await client.find_role_by_name(role)
        if match is None:
            raise InvalidOperationError(
                "create_token",
                f"Predefined role '{role}' not found in your DatoCMS project.",
            )
        return match["id"]
    return role


@api_tokens.create("create_token", CreateTokenParams, **_options)
async def create_token(client, params: CreateTokenParams):
    """Create an API token with a role and access flags."""
    role_id = await resolve_role_id(client, params.role)
    attributes = {
        "name": params.name,
        "can_access_cda": params.can_access_cda,
        "can_access_cda_preview": params.can_access_cda_preview,
        "can_access_cma": params.can_access_cma,
    }
    return await client.create_api_token(attributes, role_id)


@api_tokens.list("list_tokens", ToolParams, **_options)
async def list_tokens(client, params: ToolParams):
    """List all API tokens."""
    return await client.list_api_tokens()


async def _current_token(client, token_id: str) -> Dict[str, Any]:
    current = await client.find_api_token(token_id)
    if not current:
        raise ResourceNotFoundError("API token", token_id)
    return current


@api_tokens.retrieve("retrieve_token", TokenIdParams, id_param="token_id", **_options)
async def retrieve_token(client, params: TokenIdParams):
    """Retrieve an API token by ID."""
    return await client.find_api_token(params.token_id)


@api_tokens.update("update_token", UpdateTokenParams, id_param="token_id", **_options)
async def update_token(client, params: UpdateTokenParams):
    """Update the name, role or access flags of an API token."""
    current = await _current_token(client, params.token_id)
    attributes: Dict[str, Any] = {
        "name": current["name"],
        "can_access_cda": current.get("can_access_cda", True),
        "can_access_cda_preview": current.get("can_access_cda_preview", True),
        "can_access_cma": current.get("can_access_cma", True),
    }
    attributes.update(
        attributes_of(params, "name", "can_access_cda", "can_access_cda_preview", "can_access_cma")
    )
    role_id = await resolve_role_id(client, params.role) if params.role is not None else None
    return await client.update_api_token(params.token_id, attributes, role_id)


@api_tokens.delete("destroy_token", TokenIdParams, id_param="token_id", **_options)
async def destroy_token(client, params: TokenIdParams):
    """Delete an API token."""
    await client.destroy_api_token(params.token_id)


def _forget_rotated_token(manager: ClientManager, params: TokenIdParams, result: Dict[str, Any]) -> None:
    if result.get("rotated_own_token"):
        manager.invalidate(params.api_token)


def _rotation_message(result: Dict[str, Any]) -> str:
    message = f"API token {result['api_token']['id']} was successfully rotated."
    if result["rotated_own_token"]:
        message += " The token used for this call is no longer valid; use the new token value."
    return message


@api_tokens.custom(
    "rotate_token",
    TokenIdParams,
    success_message=_rotation_message,
    on_success=_forget_rotated_token,
    **_options,
)
async def rotate_token(client, params: TokenIdParams):
    """Regenerate the secret value of an API token."""
    current = await _current_token(client, params.token_id)
    rotated = await client.rotate_api_token(params.token_id)
    own = current.get("token") == params.api_token
    if own:
        logger.info("API token %s used by this call was rotated", params.token_id)
    return {"api_token": rotated, "rotated_own_token": own}
