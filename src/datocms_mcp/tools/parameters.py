"""
The datocms_parameters discovery tool.

Router tools only declare {action, args}; this tool returns the JSON schema
of the args expected by one action so MCP clients can build valid calls.
"""

import logging
from typing import List, Optional

from mcp.types import TextContent

from datocms_mcp.core.response import StandardResponse, create_response, error_response, success_response
from datocms_mcp.core.schema_registry import SchemaRegistry

logger = logging.getLogger(__name__)

PARAMETERS_TOOL = "datocms_parameters"

PARAMETERS_DESCRIPTION = (
    "Return the parameters expected by an action of a DatoCMS tool. Call this before invoking an "
    "action you have not used yet. 'resource' is the tool name without the 'datocms_' prefix "
    "(e.g. 'records' for datocms_records); omit 'action' to list the resource's actions."
)


def describe_parameters(registry: SchemaRegistry, resource: str, action: Optional[str] = None) -> StandardResponse:
    """
    Look up the argument schema of resource.action.

    Args:
        registry: Registry the tool handlers were built against
        resource: Tool name without the "datocms_" prefix
        action: Action name; None lists the resource's actions

    Returns:
        Envelope holding the JSON schema, or the available actions
    """
    resource = resource.removeprefix("datocms_")
    actions = registry.list_by_domain(resource)
    if not actions:
        domains = sorted({key.split(":", 1)[0] for key in registry.list_schemas()})
        return error_response(
            f"Unknown resource '{resource}'. Available resources: {', '.join(domains)}",
            error_code="INVALID_OPERATION",
            available_resources=domains,
        )

    if action is None:
        return success_response(
            {"resource": resource, "actions": actions},
            f"Found {len(actions)} action(s) for {resource}",
        )

    if action not in actions:
        return error_response(
            f"Unknown action '{action}' for {resource}. Available actions: {', '.join(actions)}",
            error_code="INVALID_OPERATION",
            available_actions=actions,
        )

    return success_response(
        {"resource": resource, "action": action, "parameters": registry.json_schema(resource, action)},
        f"Parameters for {resource}.{action}",
    )


def register_parameters_tool(app, registry: SchemaRegistry) -> None:
    """Register datocms_parameters on a FastMCP app."""

    async def datocms_parameters(resource: str, action: Optional[str] = None) -> List[TextContent]:
        return create_response(describe_parameters(registry, resource, action))

    app.tool(name=PARAMETERS_TOOL, description=PARAMETERS_DESCRIPTION)(datocms_parameters)
    logger.debug("Registered %s", PARAMETERS_TOOL)
