"""Handler pipeline shared by all DatoCMS tool modules."""

from .client_manager import ClientCache, ClientKind, ClientManager
from .errors import ErrorContext, ErrorKind, classify, extract_detailed_error_info
from .handlers import (
    Archetype,
    CreateResult,
    CustomResult,
    DeleteResult,
    HandlerDescriptor,
    HandlerFactory,
    ListResult,
    RetrieveResult,
    UpdateResult,
    to_envelope,
)
from .response import (
    MAX_RESPONSE_LENGTH,
    Pagination,
    StandardResponse,
    chunk_text_response,
    create_response,
    error_response,
    success_response,
)
from .schema_registry import SchemaRegistry, schema_registry

__all__ = [
    "Archetype",
    "ClientCache",
    "ClientKind",
    "ClientManager",
    "CreateResult",
    "CustomResult",
    "DeleteResult",
    "ErrorContext",
    "ErrorKind",
    "HandlerDescriptor",
    "HandlerFactory",
    "ListResult",
    "MAX_RESPONSE_LENGTH",
    "Pagination",
    "RetrieveResult",
    "SchemaRegistry",
    "StandardResponse",
    "UpdateResult",
    "chunk_text_response",
    "classify",
    "create_response",
    "error_response",
    "extract_detailed_error_info",
    "schema_registry",
    "success_response",
    "to_envelope",
]
