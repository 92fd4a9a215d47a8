"""
Handler factory.

Every tool operation is described by an immutable HandlerDescriptor and
turned into a composed async handler by HandlerFactory.build(). The six
archetypes differ only in how the action's return value is shaped into a
StandardResponse.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Type, Union

from pydantic import BaseModel

from datocms_mcp.client.base import Page
from datocms_mcp.exceptions import ResourceNotFoundError

from .client_manager import ClientKind, ClientManager
from .middleware import (
    Handler,
    compose_middleware,
    create_debug_middleware,
    create_error_middleware,
    create_validation_middleware,
    current_error_context,
)
from .response import Pagination, StandardResponse, success_response
from .schema_registry import SchemaRegistry, schema_registry

logger = logging.getLogger(__name__)


class Archetype(str, Enum):
    CREATE = "create"
    RETRIEVE = "retrieve"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    CUSTOM = "custom"


ID_ARCHETYPES = (Archetype.RETRIEVE, Archetype.UPDATE, Archetype.DELETE)

Action = Callable[[Any, Any], Awaitable[Any]]
"""Action signature: action(client, params) -> raw result."""


@dataclass(frozen=True)
class CreateResult:
    entity: Any
    message: str


@dataclass(frozen=True)
class RetrieveResult:
    entity: Any


@dataclass(frozen=True)
class UpdateResult:
    entity: Any
    message: str


@dataclass(frozen=True)
class DeleteResult:
    resource_id: Any
    message: str


@dataclass(frozen=True)
class ListResult:
    items: Any
    message: Optional[str] = None
    pagination: Optional[Pagination] = None


@dataclass(frozen=True)
class CustomResult:
    data: Any
    message: Optional[str] = None


HandlerResult = Union[CreateResult, RetrieveResult, UpdateResult, DeleteResult, ListResult, CustomResult]


def to_envelope(result: HandlerResult) -> StandardResponse:
    """Convert an archetype result into a success envelope."""
    if isinstance(result, CreateResult):
        return success_response(result.entity, result.message)
    if isinstance(result, RetrieveResult):
        return success_response(result.entity)
    if isinstance(result, UpdateResult):
        return success_response(result.entity, result.message)
    if isinstance(result, DeleteResult):
        return success_response(None, result.message)
    if isinstance(result, ListResult):
        return success_response(result.items, result.message, pagination=result.pagination)
    if isinstance(result, CustomResult):
        return success_response(result.data, result.message)
    raise TypeError(f"Unsupported handler result: {type(result).__name__}")


@dataclass(frozen=True)
class HandlerDescriptor:
    """
    Static description of one tool operation.

    Attributes:
        domain: Registry domain (e.g. "records")
        operation: Registry operation, unique within the domain
        schema: Pydantic model validating the operation's arguments
        action: Coroutine called with (client, params)
        archetype: How the action result is shaped
        entity_label: Human label used in messages (e.g. "API token")
        id_param: Params attribute holding the target id (retrieve, update, delete)
        client_kind: Kind of client handed to the action
        success_message: Static message, or callable computing it from the result
        format_result: List only; callable (items, params) -> ListResult
        on_success: Callable (client_manager, params, raw_result) run after a
            successful action, e.g. to drop clients built with a revoked token
        description: One-line description shown to MCP clients
    """

    domain: str
    operation: str
    schema: Type[BaseModel]
    action: Action
    archetype: Archetype
    entity_label: str = "Resource"
    id_param: Optional[str] = None
    client_kind: ClientKind = ClientKind.DEFAULT
    success_message: Union[str, Callable[[Any], str], None] = None
    format_result: Optional[Callable[[List[Any], Any], ListResult]] = None
    on_success: Optional[Callable[[ClientManager, Any, Any], None]] = None
    description: str = ""

    def __post_init__(self):
        if self.archetype in ID_ARCHETYPES and not self.id_param:
            raise ValueError(f"{self.name}: {self.archetype.value} handlers require id_param")
        if self.format_result is not None and self.archetype is not Archetype.LIST:
            raise ValueError(f"{self.name}: format_result is only valid for list handlers")

    @property
    def name(self) -> str:
        return f"{self.domain}.{self.operation}"


def _resolve_message(
    message: Union[str, Callable[[Any], str], None],
    result: Any,
    default: Optional[str],
) -> Optional[str]:
    if message is None:
        return default
    if callable(message):
        return message(result)
    return message


class HandlerFactory:
    """
    Builds composed handlers from descriptors.

    Args:
        registry: Schema registry the descriptors' schemas are registered in
        client_manager: Source of DatoCMS clients
        debug: Log timing for every invocation
    """

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        client_manager: Optional[ClientManager] = None,
        debug: bool = False,
    ):
        self.registry = registry if registry is not None else schema_registry
        self.client_manager = client_manager if client_manager is not None else ClientManager()
        self.debug = debug

    def build(self, descriptor: HandlerDescriptor) -> Handler:
        """Register the descriptor's schema and return its composed handler."""
        self.registry.register(descriptor.domain, descriptor.operation, descriptor.schema)

        return compose_middleware(
            self._base_handler(descriptor),
            [
                create_debug_middleware(descriptor.name, self.debug),
                create_error_middleware(descriptor.name, descriptor.archetype.value, descriptor.entity_label),
                create_validation_middleware(self.registry, descriptor.domain, descriptor.operation),
            ],
        )

    def _base_handler(self, descriptor: HandlerDescriptor) -> Handler:
        async def handler(params: Any) -> StandardResponse:
            resource_id = None
            if descriptor.id_param:
                resource_id = getattr(params, descriptor.id_param)
                current_error_context().resource_id = resource_id

            client = self.client_manager.get_client(
                params.api_token,
                getattr(params, "environment", None),
                descriptor.client_kind,
            )
            raw = await descriptor.action(client, params)
            if descriptor.on_success is not None:
                descriptor.on_success(self.client_manager, params, raw)

            if descriptor.archetype is Archetype.CUSTOM and isinstance(raw, StandardResponse):
                return raw
            return to_envelope(self._shape(descriptor, raw, params, resource_id))

        handler.__name__ = descriptor.operation
        handler.__qualname__ = descriptor.name
        return handler

    @staticmethod
    def _shape(descriptor: HandlerDescriptor, raw: Any, params: Any, resource_id: Any) -> HandlerResult:
        label = descriptor.entity_label
        archetype = descriptor.archetype

        if archetype is Archetype.CREATE:
            return CreateResult(raw, _resolve_message(descriptor.success_message, raw, f"{label} created successfully."))

        if archetype is Archetype.RETRIEVE:
            if not raw:
                raise ResourceNotFoundError(label, resource_id)
            return RetrieveResult(raw)

        if archetype is Archetype.UPDATE:
            default = f"{label} {resource_id} was successfully updated."
            return UpdateResult(raw, _resolve_message(descriptor.success_message, raw, default))

        if archetype is Archetype.DELETE:
            default = f"{label} {resource_id} was successfully deleted."
            return DeleteResult(resource_id, _resolve_message(descriptor.success_message, resource_id, default))

        if archetype is Archetype.LIST:
            return HandlerFactory._shape_list(descriptor, raw, params)

        return CustomResult(raw, _resolve_message(descriptor.success_message, raw, None))

    @staticmethod
    def _shape_list(descriptor: HandlerDescriptor, raw: Any, params: Any) -> ListResult:
        pagination = None
        if isinstance(raw, Page):
            items = list(raw.items)
            pagination = Pagination.from_page(raw.total, raw.offset, raw.limit, len(items))
        else:
            items = list(raw or [])

        if descriptor.format_result is not None:
            result = descriptor.format_result(items, params)
            if result.pagination is None and pagination is not None:
                return ListResult(result.items, result.message, pagination)
            return result

        return ListResult(items, f"Found {len(items)} {descriptor.entity_label}(s)", pagination)
