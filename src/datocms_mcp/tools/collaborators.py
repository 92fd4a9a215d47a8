"""Collaborator and invitation tools."""

from typing import Optional

from pydantic import Field

from datocms_mcp.core.client_manager import ClientKind

from .base import ToolGroup, ToolParams

collaborators = ToolGroup(
    "datocms_collaborators",
    "Manage DatoCMS collaborators (users) and site invitations.",
)

_users = {"entity_label": "Collaborator", "client_kind": ClientKind.COLLABORATORS}
_invitations = {"entity_label": "Invitation", "client_kind": ClientKind.COLLABORATORS}


class CreateInvitationParams(ToolParams):
    email: str = Field(
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Email address of the person to invite",
    )
    role_id: str = Field(min_length=1, description="ID of the role assigned to the invited user")


class InvitationIdParams(ToolParams):
    invitation_id: str = Field(min_length=1, description="ID of the invitation")


class UserIdParams(ToolParams):
    user_id: str = Field(min_length=1, description="ID of the collaborator")


class UpdateUserParams(UserIdParams):
    role_id: Optional[str] = Field(default=None, min_length=1, description="ID of the new role")
    is_active: Optional[bool] = Field(default=None, description="Whether the collaborator can log in")


@collaborators.create(
    "invitation_create",
    CreateInvitationParams,
    success_message=lambda invitation: f"Invitation sent to {invitation['email']}.",
    **_invitations,
)
async def invitation_create(client, params: CreateInvitationParams):
    """Invite a new collaborator by email."""
    return await client.create_invitation(params.email, params.role_id)


@collaborators.list("invitation_list", ToolParams, **_invitations)
async def invitation_list(client, params: ToolParams):
    """List pending invitations."""
    return await client.list_invitations()


@collaborators.retrieve("invitation_retrieve", InvitationIdParams, id_param="invitation_id", **_invitations)
async def invitation_retrieve(client, params: InvitationIdParams):
    """Retrieve an invitation by ID."""
    return await client.find_invitation(params.invitation_id)


@collaborators.delete("invitation_destroy", InvitationIdParams, id_param="invitation_id", **_invitations)
async def invitation_destroy(client, params: InvitationIdParams):
    """Revoke an invitation."""
    await client.destroy_invitation(params.invitation_id)


@collaborators.custom(
    "invitation_resend",
    InvitationIdParams,
    success_message=lambda _: "Invitation resent successfully.",
    **_invitations,
)
async def invitation_resend(client, params: InvitationIdParams):
    """Resend an invitation email."""
    await client.resend_invitation(params.invitation_id)
    return {"id": params.invitation_id}


@collaborators.list("user_list", ToolParams, **_users)
async def user_list(client, params: ToolParams):
    """List all collaborators."""
    return await client.list_users()


@collaborators.retrieve("user_retrieve", UserIdParams, id_param="user_id", **_users)
async def user_retrieve(client, params: UserIdParams):
    """Retrieve a collaborator by ID."""
    return await client.find_user(params.user_id)


@collaborators.update("user_update", UpdateUserParams, id_param="user_id", **_users)
async def user_update(client, params: UpdateUserParams):
    """Change a collaborator's role or active state."""
    return await client.update_user(params.user_id, role_id=params.role_id, is_active=params.is_active)


@collaborators.delete("user_destroy", UserIdParams, id_param="user_id", **_users)
async def user_destroy(client, params: UserIdParams):
    """Remove a collaborator from the project."""
    await client.destroy_user(params.user_id)
