"""
MCP tools for the DatoCMS Content Management API.

Each domain module defines one ToolGroup exposed as a router tool
(datocms_<domain>) taking an action and its arguments; datocms_parameters
returns the argument schema of any action.
"""

import logging
from typing import Dict, List

from datocms_mcp.core.handlers import HandlerFactory

from .api_tokens import api_tokens
from .base import ToolGroup, ToolParams, ToolRouter
from .collaborators import collaborators
from .environments import environments
from .parameters import PARAMETERS_TOOL, describe_parameters, register_parameters_tool
from .project import project
from .records import records
from .roles import roles
from .schema import schema
from .ui import ui
from .uploads import uploads
from .webhooks import webhooks

logger = logging.getLogger(__name__)

TOOL_GROUPS: List[ToolGroup] = [
    api_tokens,
    roles,
    collaborators,
    records,
    schema,
    uploads,
    webhooks,
    environments,
    ui,
    project,
]


def build_routers(factory: HandlerFactory) -> Dict[str, ToolRouter]:
    """Build every tool group's router with factory, keyed by tool name."""
    return {group.name: group.build(factory) for group in TOOL_GROUPS}


def register_tools(app, factory: HandlerFactory) -> Dict[str, ToolRouter]:
    """
    Register every router tool and datocms_parameters on a FastMCP app.

    Args:
        app: FastMCP instance
        factory: Builds the handlers; its registry backs datocms_parameters

    Returns:
        Routers keyed by tool name
    """
    routers = build_routers(factory)
    for router in routers.values():
        router.register(app)
    register_parameters_tool(app, factory.registry)
    logger.info("Registered %d DatoCMS tools", len(routers) + 1)
    return routers


__all__ = [
    "PARAMETERS_TOOL",
    "TOOL_GROUPS",
    "ToolGroup",
    "ToolParams",
    "ToolRouter",
    "build_routers",
    "describe_parameters",
    "register_tools",
]
