"""
Response envelope and MCP content formatting.

Every handler produces a StandardResponse; the formatter serializes it as
pretty-printed JSON and splits the text into MCP text blocks that stay
within the per-block size limit.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mcp.types import TextContent

MAX_RESPONSE_LENGTH = 100_000
"""Maximum characters in a single MCP text block."""


@dataclass(frozen=True)
class Pagination:
    """Pagination details attached to list responses."""

    limit: int
    offset: int
    total: int
    has_more: bool

    @classmethod
    def from_page(cls, total: int, offset: int, limit: int, returned: int) -> "Pagination":
        return cls(
            limit=limit,
            offset=offset,
            total=total,
            has_more=offset + returned < total,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "limit": self.limit,
            "offset": self.offset,
            "total": self.total,
            "has_more": self.has_more,
        }


@dataclass(frozen=True)
class StandardResponse:
    """
    Standardized envelope returned by every tool handler.

    Attributes:
        success: Whether the operation completed successfully
        data: Operation payload (always serialized on success, may be None)
        error: Human-readable error message (failures only)
        message: Informational message
        meta: Pagination, validation errors, error codes and details
    """

    success: bool
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape, omitting empty optional keys."""
        result: Dict[str, Any] = {"success": self.success}
        if self.success or self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        if self.message is not None:
            result["message"] = self.message
        if self.meta:
            result["meta"] = self.meta
        return result

    @property
    def error_code(self) -> Optional[str]:
        return self.meta.get("error_code")


def success_response(
    data: Any,
    message: Optional[str] = None,
    pagination: Optional[Pagination] = None,
    **meta: Any,
) -> StandardResponse:
    """Create a success envelope, attaching pagination meta when given."""
    merged = dict(meta)
    if pagination is not None:
        merged["pagination"] = pagination.to_dict()
    return StandardResponse(success=True, data=data, message=message, meta=merged)


def error_response(
    error: str,
    error_code: Optional[str] = None,
    error_details: Optional[Dict[str, Any]] = None,
    **meta: Any,
) -> StandardResponse:
    """Create a failure envelope."""
    merged = dict(meta)
    if error_code:
        merged["error_code"] = error_code
    if error_details:
        merged["error_details"] = error_details
    return StandardResponse(success=False, error=error, meta=merged)


def validation_error_response(
    error: str,
    validation_errors: List[Dict[str, str]],
) -> StandardResponse:
    """Create a failure envelope for rejected tool arguments."""
    return StandardResponse(
        success=False,
        error=error,
        meta={
            "validation_errors": validation_errors,
            "error_code": "VALIDATION_ERROR",
        },
    )


def chunk_text_response(text: str, max_length: int = MAX_RESPONSE_LENGTH) -> List[TextContent]:
    """
    Split text into sequential MCP text blocks of at most max_length characters.

    Splitting ignores the structure of the payload, so a JSON document may be
    cut mid-token; consumers reassemble by concatenating the blocks in order.
    """
    if len(text) <= max_length:
        return [TextContent(type="text", text=text)]

    return [
        TextContent(type="text", text=text[start:start + max_length])
        for start in range(0, len(text), max_length)
    ]


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def create_response(payload: Any) -> List[TextContent]:
    """
    Render a payload as MCP text content.

    Accepts a StandardResponse, a preformatted {status, data?, message?}
    mapping, a plain string, or any JSON-serializable value.
    """
    if isinstance(payload, StandardResponse):
        text = _to_json(payload.to_dict())
    elif isinstance(payload, str):
        text = payload
    elif isinstance(payload, dict) and "status" in payload:
        rendered: Dict[str, Any] = {"status": payload["status"]}
        if payload.get("message") is not None:
            rendered["message"] = payload["message"]
        if payload.get("data") is not None:
            rendered["data"] = payload["data"]
        text = _to_json(rendered)
    else:
        text = _to_json(payload)

    return chunk_text_response(text)
