"""
Error classification for tool handlers.

Maps exceptions raised while serving a tool call (DatoCMS API errors,
network failures, domain errors raised by tool actions, foreign exceptions)
onto a closed set of error kinds, and renders them as error envelopes.
Nothing here retries: every failure is terminal for its invocation.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

import httpx

from datocms_mcp.exceptions import (
    ConflictError,
    DatoCMSApiError,
    DatoCMSJobError,
    InvalidOperationError,
    QuotaExceededError,
    ResourceNotFoundError,
    SchemaValidationError,
)

from .response import StandardResponse, error_response

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Closed set of error kinds reported to tool callers."""
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    AUTH_ERROR = "auth_error"
    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"
    CONFLICT = "conflict"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_OPERATION = "invalid_operation"
    NETWORK_ERROR = "network_error"


ERROR_MESSAGES = {
    "authorization": "Invalid API token or insufficient permissions. Please check your credentials.",
    "forbidden": "The API token does not have the permissions required for this operation.",
    "validation": "Validation error. Please check your input data.",
    "version_conflict": (
        "Version conflict. The record has been modified since you retrieved it. "
        "Please fetch the latest version and try again."
    ),
    "localization": (
        "Localization error. Please check that:\n"
        "1. For localized fields, you've provided values for all required locales\n"
        "2. The locales are consistent across all localized fields\n"
        "3. You're using the correct locale codes as defined in your project settings"
    ),
}

AUTH_CODES = {"INVALID_AUTHORIZATION_HEADER", "INSUFFICIENT_PERMISSIONS", "UNAUTHORIZED", "FORBIDDEN"}
CONFLICT_CODES = {"STALE_ITEM_VERSION", "ITEM_LOCKED", "ALREADY_EXISTS", "DUPLICATE", "CONFLICT"}
QUOTA_CODES = {"PLAN_UPGRADE_REQUIRED", "QUOTA_EXCEEDED"}


@dataclass
class ErrorContext:
    """
    Per-invocation context used to make error messages specific.

    Attributes:
        handler_name: Fully qualified handler name (e.g. "records.update.update")
        operation: Archetype of the handler (create, retrieve, ...)
        resource_type: Human label of the entity being handled
        resource_id: Id of the targeted entity, once known
    """

    handler_name: Optional[str] = None
    operation: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Any = None

    def describe_resource(self) -> str:
        label = self.resource_type or "Resource"
        if self.resource_id is not None:
            return f"{label} with ID '{self.resource_id}'"
        return label


@dataclass(frozen=True)
class ClassifiedError:
    """Base for the tagged error variants."""

    kind: ClassVar[ErrorKind]

    code: str
    message: str

    @property
    def is_auth(self) -> bool:
        return self.kind is ErrorKind.AUTH_ERROR

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    @property
    def is_validation(self) -> bool:
        return self.kind is ErrorKind.VALIDATION_ERROR

    def details(self) -> Dict[str, Any]:
        """Kind-specific metadata added to the envelope."""
        return {}


@dataclass(frozen=True)
class ValidationFailure(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION_ERROR

    errors: Tuple[Dict[str, str], ...] = ()

    def details(self) -> Dict[str, Any]:
        return {"validation_errors": list(self.errors)} if self.errors else {}


@dataclass(frozen=True)
class NotFound(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.NOT_FOUND

    resource: Optional[str] = None
    resource_id: Any = None


@dataclass(frozen=True)
class AuthFailure(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.AUTH_ERROR

    reason: str = ""


@dataclass(frozen=True)
class RateLimited(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.RATE_LIMIT

    limit: Optional[int] = None
    remaining: Optional[int] = None
    retry_after: Optional[int] = None

    def details(self) -> Dict[str, Any]:
        rate_limit = {
            "limit": self.limit,
            "remaining": self.remaining,
            "retry_after": self.retry_after,
        }
        return {"rate_limit": {k: v for k, v in rate_limit.items() if v is not None}}


@dataclass(frozen=True)
class ApiFailure(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.API_ERROR

    status_code: Optional[int] = None


@dataclass(frozen=True)
class Conflict(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.CONFLICT

    resource: Optional[str] = None


@dataclass(frozen=True)
class QuotaExceeded(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.QUOTA_EXCEEDED

    resource: Optional[str] = None
    limit: Optional[int] = None
    current: Optional[int] = None


@dataclass(frozen=True)
class InvalidOperation(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.INVALID_OPERATION

    operation: Optional[str] = None


@dataclass(frozen=True)
class NetworkFailure(ClassifiedError):
    kind: ClassVar[ErrorKind] = ErrorKind.NETWORK_ERROR

    url: Optional[str] = None


def _header_int(headers: Dict[str, str], name: str) -> Optional[int]:
    try:
        return int(headers[name])
    except (KeyError, TypeError, ValueError):
        return None


def _not_found(context: ErrorContext) -> NotFound:
    return NotFound(
        code="NOT_FOUND",
        message=f"{context.describe_resource()} not found. Please check the ID and try again.",
        resource=context.resource_type,
        resource_id=context.resource_id,
    )


def _validation(detail: str, errors: Tuple[Dict[str, str], ...] = ()) -> ValidationFailure:
    if "locales" in detail:
        message = f"{ERROR_MESSAGES['localization']}\n{detail}"
    else:
        message = f"{ERROR_MESSAGES['validation']} {detail}"
    return ValidationFailure(code="VALIDATION_ERROR", message=message, errors=errors)


def _classify_api_error(error: DatoCMSApiError, context: ErrorContext) -> ClassifiedError:
    codes = set(error.codes)
    status = error.status

    if status == 403 or "INSUFFICIENT_PERMISSIONS" in codes:
        return AuthFailure(code="FORBIDDEN", message=ERROR_MESSAGES["forbidden"], reason=error.code or "forbidden")

    if status == 401 or codes & AUTH_CODES:
        return AuthFailure(code="UNAUTHORIZED", message=ERROR_MESSAGES["authorization"], reason=error.code or "unauthorized")

    if status == 404 or "NOT_FOUND" in codes:
        return _not_found(context)

    if status == 429 or "RATE_LIMIT_EXCEEDED" in codes:
        retry_after = _header_int(error.headers, "x-ratelimit-reset") or _header_int(error.headers, "retry-after")
        return RateLimited(
            code="RATE_LIMITED",
            message=(
                "DatoCMS rate limit exceeded."
                + (f" Retry after {retry_after} seconds." if retry_after is not None else "")
            ),
            limit=_header_int(error.headers, "x-ratelimit-limit"),
            remaining=_header_int(error.headers, "x-ratelimit-remaining"),
            retry_after=retry_after,
        )

    if status == 409 or codes & CONFLICT_CODES or any("UNIQUE" in code for code in codes):
        if "STALE_ITEM_VERSION" in codes:
            message = ERROR_MESSAGES["version_conflict"]
        else:
            message = f"Conflict: {extract_detailed_error_info(error)}"
        return Conflict(code="CONFLICT", message=message, resource=context.resource_type)

    if status == 402 or codes & QUOTA_CODES or any("LIMIT" in code for code in codes):
        return QuotaExceeded(
            code="QUOTA_EXCEEDED",
            message=f"Plan limit reached: {extract_detailed_error_info(error)}",
            resource=context.resource_type,
        )

    if status == 422:
        return _validation(extract_detailed_error_info(error))

    return ApiFailure(code=_status_code(status), message=extract_detailed_error_info(error), status_code=status)


def _status_code(status: int) -> str:
    if status == 400:
        return "BAD_REQUEST"
    if status == 503:
        return "SERVICE_UNAVAILABLE"
    if status >= 500:
        return "INTERNAL_ERROR"
    return "API_ERROR"


def _classify_transfer_error(error: httpx.HTTPStatusError) -> ApiFailure:
    """A non-DatoCMS request (source download, signed storage upload) answered with an error status."""
    status = error.response.status_code
    return ApiFailure(
        code=_status_code(status),
        message=f"Request to {error.request.url} failed with status {status}.",
        status_code=status,
    )


def _classify_foreign(error: BaseException, context: ErrorContext) -> ClassifiedError:
    """Best-effort classification of exceptions raised outside this package."""
    status = getattr(error, "status", None)
    if not isinstance(status, int):
        status = getattr(error, "status_code", None)
    text = str(error).lower()

    if status in (401, 403) or "401" in text or "unauthorized" in text:
        return AuthFailure(code="UNAUTHORIZED", message=ERROR_MESSAGES["authorization"], reason=str(error))
    if status == 404 or "404" in text or "not found" in text:
        return _not_found(context)
    if status == 429:
        return RateLimited(code="RATE_LIMITED", message="DatoCMS rate limit exceeded.")
    if status == 422 or "validation" in text:
        return _validation(extract_detailed_error_info(error))
    if status == 409 or "version conflict" in text:
        return Conflict(code="CONFLICT", message=ERROR_MESSAGES["version_conflict"], resource=context.resource_type)

    return ApiFailure(
        code="API_ERROR",
        message=extract_detailed_error_info(error),
        status_code=status if isinstance(status, int) else None,
    )


def classify(error: BaseException, context: Optional[ErrorContext] = None) -> ClassifiedError:
    """
    Classify an exception into one of the error kinds.

    Args:
        error: Exception caught at the handler boundary
        context: Invocation context used for not-found messages

    Returns:
        The matching ClassifiedError variant
    """
    context = context or ErrorContext()

    if isinstance(error, SchemaValidationError):
        return ValidationFailure(code="VALIDATION_ERROR", message=str(error), errors=tuple(error.errors))

    if isinstance(error, ResourceNotFoundError):
        return NotFound(
            code="NOT_FOUND",
            message=str(error),
            resource=error.resource,
            resource_id=error.resource_id,
        )

    if isinstance(error, InvalidOperationError):
        return InvalidOperation(code=error.code, message=error.reason, operation=error.operation)

    if isinstance(error, ConflictError):
        return Conflict(code="CONFLICT", message=str(error), resource=error.resource)

    if isinstance(error, QuotaExceededError):
        return QuotaExceeded(
            code="QUOTA_EXCEEDED",
            message=str(error),
            resource=error.resource,
            limit=error.limit,
            current=error.current,
        )

    if isinstance(error, DatoCMSApiError):
        return _classify_api_error(error, context)

    if isinstance(error, DatoCMSJobError):
        return ApiFailure(code="JOB_FAILED", message=str(error))

    if isinstance(error, httpx.HTTPStatusError):
        return _classify_transfer_error(error)

    if isinstance(error, httpx.TimeoutException):
        return NetworkFailure(code="TIMEOUT", message=f"Request to DatoCMS timed out: {error}", url=_request_url(error))

    if isinstance(error, httpx.ConnectError):
        return NetworkFailure(
            code="CONNECTION_REFUSED",
            message=f"Could not connect to DatoCMS: {error}",
            url=_request_url(error),
        )

    if isinstance(error, httpx.TransportError):
        return NetworkFailure(
            code="NETWORK_ERROR",
            message=f"Network error while contacting DatoCMS: {error}",
            url=_request_url(error),
        )

    return _classify_foreign(error, context)


def _request_url(error: httpx.RequestError) -> Optional[str]:
    try:
        return str(error.request.url)
    except RuntimeError:
        # .request raises when the error was constructed without one
        return None


def build_error_response(
    error: BaseException,
    context: Optional[ErrorContext] = None,
) -> StandardResponse:
    """Classify an exception and render it as an error envelope."""
    context = context or ErrorContext()
    classified = classify(error, context)

    prefix = f"Error in {context.handler_name}: " if context.handler_name else "Error: "
    meta: Dict[str, Any] = {"error_kind": classified.kind.value}
    meta.update(classified.details())

    return error_response(
        f"{prefix}{classified.message}",
        error_code=classified.code,
        error_details=error.to_dict() if isinstance(error, DatoCMSApiError) else None,
        **meta,
    )


def _is_api_error_like(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    data = value.get("data")
    return (
        isinstance(value.get("status"), int)
        or isinstance(value.get("code"), str)
        or isinstance(value.get("errors"), list)
        or (isinstance(data, dict) and "errors" in data)
    )


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _render_api_error(status: Any, code: Any, message: Any, errors: Any) -> str:
    parts = []
    if status:
        parts.append(f"Status: {status}")
    if code:
        parts.append(f"Code: {code}")
    if message:
        parts.append(str(message))
    rendered = " - ".join(parts)
    if errors:
        rendered += f"\nDetails: {_dump(errors)}"
    return rendered


def _details_from_message(message: str) -> Optional[str]:
    match = re.search(r"\{.*\}", message, re.S)
    if not match:
        return None
    try:
        payload = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and data.get("errors"):
        return _dump(data["errors"])
    if payload.get("errors"):
        return _dump(payload["errors"])
    return None


def extract_detailed_error_info(error: Any) -> str:
    """
    Render a human-readable diagnostic from heterogeneous error shapes.

    Handles DatoCMS API errors, JSON:API error arrays, exceptions whose
    message embeds a JSON body, plain strings and arbitrary objects. Never
    raises.
    """
    try:
        if error is None or error == "":
            return "Unknown error occurred"

        if isinstance(error, DatoCMSApiError):
            return _render_api_error(error.status, error.code, str(error), error.errors)

        if isinstance(error, str):
            return error

        if _is_api_error_like(error):
            errors = error.get("errors") or (error.get("data") or {}).get("errors")
            rendered = _render_api_error(error.get("status"), error.get("code"), error.get("message"), errors)
            return rendered or _dump(error)

        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
            details = _details_from_message(message)
            return f"{message}\n\nDetails: {details}" if details else message

        message = getattr(error, "message", None)
        if isinstance(message, str):
            return extract_detailed_error_info(message)

        return _dump(error)
    except Exception:
        logger.debug("Failed to render error details", exc_info=True)
        return repr(error)
