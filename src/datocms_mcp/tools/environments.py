"""Environment and maintenance mode tools."""

from pydantic import Field

from .base import ToolGroup, ToolParams

environments = ToolGroup(
    "datocms_environments",
    "Manage DatoCMS environments (list, retrieve, fork, promote, rename, delete) and the "
    "project's maintenance mode.",
)

_options = {"entity_label": "Environment"}

ENVIRONMENT_ID = r"^[a-z0-9][a-z0-9-]*$"


class EnvironmentIdParams(ToolParams):
    environment_id: str = Field(min_length=1, description="ID of the environment (e.g. 'main').")


class ForkParams(EnvironmentIdParams):
    new_id: str = Field(pattern=ENVIRONMENT_ID, description="ID of the environment to create.")
    fast: bool = Field(default=False, description="Fast fork; the source is read-only while forking.")
    force: bool = Field(default=False, description="Force a fast fork even if users are editing the source.")


class RenameParams(EnvironmentIdParams):
    new_id: str = Field(pattern=ENVIRONMENT_ID, description="New ID of the environment.")


class MaintenanceActivateParams(ToolParams):
    force: bool = Field(default=False, description="Activate even if users are currently editing records.")


@environments.list("list", ToolParams, **_options)
async def list_environments(client, params: ToolParams):
    """List all environments."""
    return await client.environments.list()


@environments.retrieve("retrieve", EnvironmentIdParams, id_param="environment_id", **_options)
async def retrieve(client, params: EnvironmentIdParams):
    """Retrieve an environment."""
    return await client.environments.find(params.environment_id)


@environments.create(
    "fork",
    ForkParams,
    success_message=lambda environment: f"Environment forked successfully as '{environment['id']}'.",
    **_options,
)
async def fork(client, params: ForkParams):
    """Fork an environment into a new sandbox, waiting for the copy to finish."""
    return await client.environments.fork(params.environment_id, params.new_id, fast=params.fast, force=params.force)


@environments.update(
    "promote",
    EnvironmentIdParams,
    id_param="environment_id",
    success_message=lambda environment: f"Environment '{environment['id']}' is now the primary environment.",
    **_options,
)
async def promote(client, params: EnvironmentIdParams):
    """Promote a sandbox environment to primary."""
    return await client.environments.promote(params.environment_id)


@environments.update(
    "rename",
    RenameParams,
    id_param="environment_id",
    success_message=lambda environment: f"Environment renamed to '{environment['id']}'.",
    **_options,
)
async def rename(client, params: RenameParams):
    """Rename an environment."""
    return await client.environments.rename(params.environment_id, params.new_id)


@environments.delete("delete", EnvironmentIdParams, id_param="environment_id", **_options)
async def delete(client, params: EnvironmentIdParams):
    """Delete a sandbox environment."""
    await client.environments.destroy(params.environment_id)


@environments.custom("maintenance_fetch", ToolParams, entity_label="Maintenance mode")
async def maintenance_fetch(client, params: ToolParams):
    """Show whether maintenance mode is active."""
    return await client.maintenance_mode.fetch()


@environments.custom(
    "maintenance_activate",
    MaintenanceActivateParams,
    entity_label="Maintenance mode",
    success_message="Maintenance mode activated.",
)
async def maintenance_activate(client, params: MaintenanceActivateParams):
    """Activate maintenance mode; editors cannot change content while it is on."""
    return await client.maintenance_mode.activate(force=params.force)


@environments.custom(
    "maintenance_deactivate",
    ToolParams,
    entity_label="Maintenance mode",
    success_message="Maintenance mode deactivated.",
)
async def maintenance_deactivate(client, params: ToolParams):
    """Deactivate maintenance mode."""
    return await client.maintenance_mode.deactivate()
