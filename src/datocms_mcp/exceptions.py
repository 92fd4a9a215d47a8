"""Exceptions raised by the DatoCMS client, the schema registry and tool actions."""

from typing import Any, Dict, List, Optional


class DatoCMSMCPError(Exception):
    """Base exception for the DatoCMS MCP server."""


class DatoCMSApiError(DatoCMSMCPError):
    """
    Raised when the Content Management API answers with a non-success status.

    Attributes:
        status: HTTP status code
        method: HTTP method of the failed request
        url: Request URL
        errors: JSON:API error objects from the response body
        headers: Response headers (lower-cased names)
        body: Raw decoded body when it was not a JSON:API error document
    """

    def __init__(
        self,
        status: int,
        method: str,
        url: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
    ):
        self.status = status
        self.method = method
        self.url = url
        self.errors = errors or []
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = body
        super().__init__(self._build_message())

    @property
    def codes(self) -> List[str]:
        """DatoCMS error codes (e.g. INVALID_AUTHORIZATION_HEADER)."""
        codes = []
        for error in self.errors:
            code = (error.get("attributes") or {}).get("code")
            if code:
                codes.append(code)
        return codes

    @property
    def code(self) -> Optional[str]:
        codes = self.codes
        return codes[0] if codes else None

    def _build_message(self) -> str:
        codes = ", ".join(self.codes)
        suffix = f" ({codes})" if codes else ""
        return f"{self.method} {self.url} failed with status {self.status}{suffix}"

    def to_dict(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {
            "status": self.status,
            "method": self.method,
            "url": self.url,
        }
        if self.code:
            details["code"] = self.code
        if self.errors:
            details["errors"] = self.errors
        elif self.body is not None:
            details["body"] = self.body
        return details


class DatoCMSJobError(DatoCMSMCPError):
    """Raised when an asynchronous CMA job does not finish successfully."""

    def __init__(self, job_id: str, message: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id}: {message}")


class ResourceNotFoundError(DatoCMSMCPError):
    """Raised by handlers when a requested entity does not exist."""

    def __init__(self, resource: str, resource_id: Any = None, message: Optional[str] = None):
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            if resource_id is not None:
                message = f"{resource} with ID '{resource_id}' was not found."
            else:
                message = f"{resource} was not found."
        super().__init__(message)


class InvalidOperationError(DatoCMSMCPError):
    """Raised when an operation cannot be performed with the given input or state."""

    def __init__(self, operation: str, reason: str, code: str = "INVALID_OPERATION"):
        self.operation = operation
        self.reason = reason
        self.code = code
        super().__init__(reason)


class ConflictError(DatoCMSMCPError):
    """Raised when an entity already exists or was modified concurrently."""

    def __init__(self, resource: str, message: str, field: Optional[str] = None):
        self.resource = resource
        self.field = field
        super().__init__(message)


class QuotaExceededError(DatoCMSMCPError):
    """Raised when a plan limit prevents an operation."""

    def __init__(self, resource: str, message: str, limit: Optional[int] = None, current: Optional[int] = None):
        self.resource = resource
        self.limit = limit
        self.current = current
        super().__init__(message)


class SchemaValidationError(DatoCMSMCPError):
    """Raised when tool arguments violate the registered schema."""

    def __init__(self, domain: str, operation: str, errors: List[Dict[str, str]]):
        self.domain = domain
        self.operation = operation
        self.errors = errors
        super().__init__(f"Validation failed for {domain}:{operation}. {self.summary}")

    @property
    def summary(self) -> str:
        if len(self.errors) == 1:
            first = self.errors[0]
            return f"Error in field \"{first['path'] or 'input'}\": {first['message']}"
        if self.errors:
            return (
                f"Found {len(self.errors)} validation errors. "
                f"First error: \"{self.errors[0]['message']}\""
            )
        return "Validation error"


class SchemaNotRegisteredError(DatoCMSMCPError):
    """
    Raised when no schema is registered for a domain/operation pair.

    This is a wiring bug, never a user error, and is not converted into an
    error envelope.
    """

    def __init__(self, domain: str, operation: str):
        self.domain = domain
        self.operation = operation
        super().__init__(f"Schema not found: {domain}:{operation}")
