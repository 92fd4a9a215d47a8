"""Project (site) settings, locales and subscription tools."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import Field

from datocms_mcp.exceptions import InvalidOperationError

from .base import ToolGroup, ToolParams, attributes_of
from .locales import LOCALE_PATTERN

logger = logging.getLogger(__name__)

project = ToolGroup(
    "datocms_project",
    "Read and update DatoCMS project settings, manage the project's locales and inspect "
    "subscription features, usages and limits.",
)

_options = {"entity_label": "Project"}

SITE_ATTRIBUTES = (
    "name", "theme", "timezone", "no_index", "global_seo", "require_2fa",
    "ip_tracking_enabled", "internal_domain",
)


class InfoParams(ToolParams):
    include: Optional[str] = Field(
        default=None,
        description="Related resources to include, e.g. 'item_types' or 'item_types,item_types.fields'.",
    )


class UpdateSettingsParams(ToolParams):
    name: Optional[str] = Field(default=None, min_length=1)
    theme: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Interface colors, e.g. {\"primary_color\": {\"red\": 0, \"green\": 0, \"blue\": 0, \"alpha\": 255}}.",
    )
    timezone: Optional[str] = Field(default=None, description="IANA timezone, e.g. 'Europe/Rome'.")
    no_index: Optional[bool] = None
    global_seo: Optional[Dict[str, Any]] = None
    require_2fa: Optional[bool] = None
    ip_tracking_enabled: Optional[bool] = None
    internal_domain: Optional[str] = None


class LocaleParams(ToolParams):
    locale: str = Field(pattern=LOCALE_PATTERN.pattern, description="Locale code, e.g. 'en' or 'pt-BR'.")


@project.custom("info", InfoParams, **_options)
async def info(client, params: InfoParams):
    """Retrieve the project's settings."""
    return await client.site.fetch({"include": params.include} if params.include else None)


@project.custom(
    "update_settings",
    UpdateSettingsParams,
    success_message="Project settings updated successfully.",
    **_options,
)
async def update_settings(client, params: UpdateSettingsParams):
    """Update the project's settings."""
    attributes = attributes_of(params, *SITE_ATTRIBUTES)
    if not attributes:
        raise InvalidOperationError("update_settings", "No settings to update were provided.")
    return await client.site.update_settings(attributes)


@project.list("locale_list", ToolParams, entity_label="Locale")
async def locale_list(client, params: ToolParams):
    """List the project's locales; the first one is the default."""
    site = await client.site.fetch()
    return site.get("locales") or []


def _locales_message(action: str):
    return lambda locales: f"Locale {action}. Project locales: {', '.join(locales)}."


@project.custom("locale_add", LocaleParams, success_message=_locales_message("added"), entity_label="Locale")
async def locale_add(client, params: LocaleParams) -> List[str]:
    """Add a locale to the project."""
    locales = list((await client.site.fetch()).get("locales") or [])
    if params.locale in locales:
        raise InvalidOperationError("locale_add", f"Locale '{params.locale}' is already enabled.")
    locales.append(params.locale)
    site = await client.site.update_settings({"locales": locales})
    return site.get("locales") or locales


@project.custom("locale_remove", LocaleParams, success_message=_locales_message("removed"), entity_label="Locale")
async def locale_remove(client, params: LocaleParams) -> List[str]:
    """Remove a locale from the project, dropping its content."""
    locales = list((await client.site.fetch()).get("locales") or [])
    if params.locale not in locales:
        raise InvalidOperationError("locale_remove", f"Locale '{params.locale}' is not enabled.")
    if len(locales) == 1:
        raise InvalidOperationError("locale_remove", "A project needs at least one locale.")
    locales.remove(params.locale)
    logger.info("Removing locale %s", params.locale)
    site = await client.site.update_settings({"locales": locales})
    return site.get("locales") or locales


@project.list("subscription_features", ToolParams, entity_label="Subscription feature")
async def subscription_features(client, params: ToolParams):
    """List the features enabled by the project's plan."""
    return await client.subscription_features.list()


@project.list("usages_and_limits", ToolParams, entity_label="Subscription limit")
async def usages_and_limits(client, params: ToolParams):
    """List the plan's limits with current usage."""
    return await client.subscription_limits.list()
