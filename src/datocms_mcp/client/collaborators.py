"""
Collaborators-specialized client.

Users, invitations, roles and API tokens are returned in a normalized shape:
missing attributes are filled with defaults so tool output is stable even
when the API omits fields.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .base import reference
from .resources import DatoCMSClient

logger = logging.getLogger(__name__)


def _role_linkage(value: Any) -> Optional[Dict[str, str]]:
    if isinstance(value, Mapping) and value.get("id"):
        return {"type": value.get("type") or "role", "id": value["id"]}
    return None


def _placeholder(raw: Optional[Mapping[str, Any]], kind: str) -> Mapping[str, Any]:
    if not raw:
        logger.warning("Received empty %s data, using defaults", kind)
        return {}
    return raw


def _found(raw: Optional[Mapping[str, Any]], normalize: Callable[[Any], Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Normalize a fetched resource, keeping an empty result as None."""
    return normalize(raw) if raw else None


def normalize_user(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    raw = _placeholder(raw, "collaborator")
    avatar = raw.get("avatar") or {}
    return {
        "id": raw.get("id") or "unknown",
        "type": raw.get("type") or "user",
        "email": raw.get("email"),
        "first_name": raw.get("first_name"),
        "last_name": raw.get("last_name"),
        "full_name": raw.get("full_name"),
        "avatar": {
            "upload_id": avatar.get("upload_id") if isinstance(avatar, Mapping) else None,
            "url": avatar.get("url") if isinstance(avatar, Mapping) else avatar or None,
        },
        "is_active": raw.get("is_active", True),
        "is_2fa_active": raw.get("is_2fa_active", False),
        "created_at": raw.get("created_at"),
        "role": _role_linkage(raw.get("role")),
    }


def normalize_invitation(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    raw = _placeholder(raw, "invitation")
    return {
        "id": raw.get("id") or "unknown",
        "type": raw.get("type") or "site_invitation",
        "email": raw.get("email"),
        "expired": raw.get("expired", False),
        "role": _role_linkage(raw.get("role")),
    }


def normalize_role(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    raw = _placeholder(raw, "role")
    role = {
        "id": raw.get("id") or "unknown",
        "type": raw.get("type") or "role",
        "name": raw.get("name") or "Unknown Role",
        "can_edit_site": raw.get("can_edit_site", False),
        "can_edit_schema": raw.get("can_edit_schema", False),
        "can_manage_users": raw.get("can_manage_users", False),
        "can_manage_access_tokens": raw.get("can_manage_access_tokens", False),
        "can_manage_webhooks": raw.get("can_manage_webhooks", False),
        "can_manage_environments": raw.get("can_manage_environments", False),
        "can_manage_build_triggers": raw.get("can_manage_build_triggers", False),
        "positive_item_type_permissions": raw.get("positive_item_type_permissions") or [],
        "negative_item_type_permissions": raw.get("negative_item_type_permissions") or [],
        "positive_upload_permissions": raw.get("positive_upload_permissions") or [],
        "negative_upload_permissions": raw.get("negative_upload_permissions") or [],
    }
    if raw.get("inherits_permissions_from") is not None:
        role["inherits_permissions_from"] = raw["inherits_permissions_from"]
    return role


def normalize_api_token(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    raw = _placeholder(raw, "API token")
    token = {
        "id": raw.get("id") or "unknown",
        "type": "api_token" if raw.get("type") in (None, "access_token") else raw["type"],
        "name": raw.get("name") or "Unknown Token",
        "token": raw.get("token"),
        "hardcoded_type": raw.get("hardcoded_type"),
        "role": _role_linkage(raw.get("role")),
    }
    for flag in ("can_access_cda", "can_access_cda_preview", "can_access_cma"):
        if flag in raw:
            token[flag] = raw[flag]
    return token


class CollaboratorsClient(DatoCMSClient):
    """Client used by the collaborator, role and API token tools."""

    async def list_users(self) -> List[Dict[str, Any]]:
        return [normalize_user(user) for user in await self.users.list()]

    async def find_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return _found(await self.users.find(user_id), normalize_user)

    async def update_user(self, user_id: str, role_id: Optional[str] = None, is_active: Optional[bool] = None) -> Dict[str, Any]:
        attributes = {"is_active": is_active} if is_active is not None else None
        relationships = {"role": reference("role", role_id)} if role_id else None
        return normalize_user(await self.users.update(user_id, attributes, relationships))

    async def destroy_user(self, user_id: str) -> None:
        await self.users.destroy(user_id)

    async def list_invitations(self) -> List[Dict[str, Any]]:
        return [normalize_invitation(invitation) for invitation in await self.site_invitations.list()]

    async def find_invitation(self, invitation_id: str) -> Optional[Dict[str, Any]]:
        return _found(await self.site_invitations.find(invitation_id), normalize_invitation)

    async def create_invitation(self, email: str, role_id: str) -> Dict[str, Any]:
        invitation = await self.site_invitations.create({"email": email}, {"role": reference("role", role_id)})
        return normalize_invitation(invitation)

    async def destroy_invitation(self, invitation_id: str) -> None:
        await self.site_invitations.destroy(invitation_id)

    async def resend_invitation(self, invitation_id: str) -> None:
        await self.site_invitations.resend(invitation_id)

    async def list_roles(self) -> List[Dict[str, Any]]:
        return [normalize_role(role) for role in await self.roles.list()]

    async def find_role(self, role_id: str) -> Optional[Dict[str, Any]]:
        return _found(await self.roles.find(role_id), normalize_role)

    async def find_role_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive lookup of a role by its name."""
        wanted = name.lower()
        for role in await self.list_roles():
            if role["name"].lower() == wanted:
                return role
        return None

    async def create_role(self, attributes: Mapping[str, Any], inherits_from: Optional[str] = None) -> Dict[str, Any]:
        relationships = {"inherits_permissions_from": reference("role", inherits_from)} if inherits_from else None
        return normalize_role(await self.roles.create(attributes, relationships))

    async def update_role(self, role_id: str, attributes: Mapping[str, Any]) -> Dict[str, Any]:
        return normalize_role(await self.roles.update(role_id, attributes))

    async def destroy_role(self, role_id: str) -> None:
        await self.roles.destroy(role_id)

    async def duplicate_role(self, role_id: str) -> Dict[str, Any]:
        return normalize_role(await self.roles.duplicate(role_id))

    async def list_api_tokens(self) -> List[Dict[str, Any]]:
        return [normalize_api_token(token) for token in await self.access_tokens.list()]

    async def find_api_token(self, token_id: str) -> Optional[Dict[str, Any]]:
        return _found(await self.access_tokens.find(token_id), normalize_api_token)

    async def create_api_token(self, attributes: Mapping[str, Any], role_id: Optional[str]) -> Dict[str, Any]:
        relationships = {"role": reference("role", role_id) if role_id else None}
        return normalize_api_token(await self.access_tokens.create(attributes, relationships))

    async def update_api_token(
        self,
        token_id: str,
        attributes: Mapping[str, Any],
        role_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        relationships = {"role": reference("role", role_id)} if role_id else None
        return normalize_api_token(await self.access_tokens.update(token_id, attributes, relationships))

    async def destroy_api_token(self, token_id: str) -> None:
        await self.access_tokens.destroy(token_id)

    async def rotate_api_token(self, token_id: str) -> Dict[str, Any]:
        return normalize_api_token(await self.access_tokens.regenerate_token(token_id))
