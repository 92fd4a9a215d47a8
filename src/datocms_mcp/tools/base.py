"""
Building blocks for DatoCMS tool modules.

Each domain module defines one ToolGroup and registers its operations with
the archetype decorators:

    roles = ToolGroup("datocms_roles", "Manage DatoCMS roles")

    @roles.retrieve("retrieve_role", RetrieveRoleParams, entity_label="Role", id_param="role_id")
    async def retrieve_role(client, params):
        return await client.find_role(params.role_id)

The group is exposed to MCP clients as a single router tool taking an
action name and its arguments.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Type

from mcp.types import TextContent
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from datocms_mcp.core.client_manager import ClientKind
from datocms_mcp.core.handlers import Archetype, HandlerDescriptor, HandlerFactory
from datocms_mcp.core.middleware import Handler
from datocms_mcp.core.response import StandardResponse, create_response, error_response

logger = logging.getLogger(__name__)

TOOL_PREFIX = "datocms_"


class ToolParams(BaseModel):
    """
    Arguments shared by every tool operation.

    Fields are declared in snake_case and accepted in camelCase as well
    (apiToken, itemId, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    api_token: str = Field(
        min_length=1,
        description="DatoCMS API token for authentication. If you are not certain of one, ask for the user, do not hallucinate.",
    )
    environment: Optional[str] = Field(
        default=None,
        description="The name of the DatoCMS environment to interact with. If not provided, the primary environment will be used.",
    )
    debug: bool = Field(default=False, description="Log timing information for this call.")


class PageParams(BaseModel):
    """Offset-based pagination."""

    offset: int = Field(default=0, ge=0, description="The (zero-based) offset of the first entity returned.")
    limit: int = Field(default=100, ge=1, le=500, description="The maximum number of entities to return (max 500).")


class PaginatedParams(ToolParams):
    page: PageParams = Field(default_factory=PageParams, description="Pagination options.")


def attributes_of(params: BaseModel, *names: str) -> Dict[str, Any]:
    """Collect the named fields that were explicitly set on params."""
    return {name: getattr(params, name) for name in names if name in params.model_fields_set}


class ToolGroup:
    """
    A named group of operations exposed as one router tool.

    Args:
        name: Tool name (e.g. "datocms_records")
        description: Tool description shown to MCP clients
    """

    def __init__(self, name: str, description: str):
        if not name.startswith(TOOL_PREFIX):
            raise ValueError(f"Tool names must start with '{TOOL_PREFIX}': {name}")
        self.name = name
        self.description = description
        self.descriptors: Dict[str, HandlerDescriptor] = {}

    @property
    def domain(self) -> str:
        return self.name[len(TOOL_PREFIX):]

    @property
    def actions(self) -> List[str]:
        return sorted(self.descriptors)

    def operation(
        self,
        action: str,
        archetype: Archetype,
        schema: Type[BaseModel],
        **options: Any,
    ) -> Callable[[Callable], Callable]:
        """Register the decorated coroutine as the action's handler."""

        def decorator(fn: Callable) -> Callable:
            if action in self.descriptors:
                raise ValueError(f"Duplicate action '{action}' in {self.name}")
            options.setdefault("description", (fn.__doc__ or "").strip().split("\n")[0])
            self.descriptors[action] = HandlerDescriptor(
                domain=self.domain,
                operation=action,
                schema=schema,
                action=fn,
                archetype=archetype,
                **options,
            )
            return fn

        return decorator

    def create(self, action: str, schema: Type[BaseModel], **options: Any):
        return self.operation(action, Archetype.CREATE, schema, **options)

    def retrieve(self, action: str, schema: Type[BaseModel], **options: Any):
        return self.operation(action, Archetype.RETRIEVE, schema, **options)

    def update(self, action: str, schema: Type[BaseModel], **options: Any):
        return self.operation(action, Archetype.UPDATE, schema, **options)

    def delete(self, action: str, schema: Type[BaseModel], **options: Any):
        return self.operation(action, Archetype.DELETE, schema, **options)

    def list(self, action: str, schema: Type[BaseModel], **options: Any):
        return self.operation(action, Archetype.LIST, schema, **options)

    def custom(self, action: str, schema: Type[BaseModel], **options: Any):
        return self.operation(action, Archetype.CUSTOM, schema, **options)

    def build(self, factory: HandlerFactory) -> "ToolRouter":
        """Build every handler of the group with factory."""
        handlers = {action: factory.build(descriptor) for action, descriptor in self.descriptors.items()}
        return ToolRouter(self, handlers)

    def tool_description(self) -> str:
        lines = [self.description, "", "Actions:"]
        for action in self.actions:
            summary = self.descriptors[action].description
            lines.append(f"- {action}: {summary}" if summary else f"- {action}")
        lines.append("")
        lines.append(f"Use datocms_parameters with resource '{self.domain}' to get the arguments of an action.")
        return "\n".join(lines)


class ToolRouter:
    """Dispatches an action name to the group's composed handlers."""

    def __init__(self, group: ToolGroup, handlers: Dict[str, Handler]):
        self.group = group
        self.handlers = handlers

    async def dispatch(self, action: str, args: Optional[Dict[str, Any]] = None) -> StandardResponse:
        handler = self.handlers.get(action)
        if handler is None:
            available = sorted(self.handlers)
            return error_response(
                f"Unknown action '{action}' for {self.group.name}. Available actions: {', '.join(available)}",
                error_code="INVALID_OPERATION",
                available_actions=available,
            )
        return await handler(args if args is not None else {})

    def register(self, app) -> None:
        """Register the router as a FastMCP tool."""
        router = self

        async def tool(action: str, args: Optional[Dict[str, Any]] = None) -> List[TextContent]:
            return create_response(await router.dispatch(action, args))

        tool.__name__ = self.group.name
        app.tool(name=self.group.name, description=self.group.tool_description())(tool)
        logger.debug("Registered %s with %d actions", self.group.name, len(self.handlers))


__all__ = [
    "Archetype",
    "ClientKind",
    "PageParams",
    "PaginatedParams",
    "ToolGroup",
    "ToolParams",
    "ToolRouter",
    "attributes_of",
]
