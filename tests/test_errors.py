"""
Tests for error classification.

Tests cover:
- DatoCMS API errors by status and error code
- Domain errors raised by tool actions
- Network failures
- Heuristics for foreign exceptions
- extract_detailed_error_info on heterogeneous inputs
"""

import httpx
import pytest

from datocms_mcp.core.errors import (
    ErrorContext,
    ErrorKind,
    build_error_response,
    classify,
    extract_detailed_error_info,
)
from datocms_mcp.exceptions import (
    ConflictError,
    DatoCMSApiError,
    DatoCMSJobError,
    InvalidOperationError,
    QuotaExceededError,
    ResourceNotFoundError,
)


def api_error(status, *codes, headers=None, details=None):
    errors = [
        {"id": str(i), "type": "api_error", "attributes": {"code": code, "details": details or {}}}
        for i, code in enumerate(codes)
    ]
    return DatoCMSApiError(status, "GET", "https://site-api.datocms.com/items/1", errors=errors, headers=headers)


class TestApiErrors:
    """Test classification of DatoCMS API errors."""

    def test_401_is_unauthorized(self):
        classified = classify(api_error(401, "INVALID_AUTHORIZATION_HEADER"))
        assert classified.kind is ErrorKind.AUTH_ERROR
        assert classified.code == "UNAUTHORIZED"
        assert classified.is_auth
        assert "Invalid API token" in classified.message

    def test_403_is_forbidden(self):
        classified = classify(api_error(403, "INSUFFICIENT_PERMISSIONS"))
        assert classified.kind is ErrorKind.AUTH_ERROR
        assert classified.code == "FORBIDDEN"

    def test_auth_code_without_auth_status(self):
        assert classify(api_error(400, "INVALID_AUTHORIZATION_HEADER")).code == "UNAUTHORIZED"

    def test_404_names_resource_from_context(self):
        context = ErrorContext(handler_name="records.get", resource_type="Record", resource_id="42")
        classified = classify(api_error(404, "NOT_FOUND"), context)

        assert classified.is_not_found
        assert classified.message == "Record with ID '42' not found. Please check the ID and try again."
        assert classified.resource_id == "42"

    def test_429_reads_rate_limit_headers(self):
        headers = {"X-RateLimit-Limit": "60", "X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "12"}
        classified = classify(api_error(429, "RATE_LIMIT_EXCEEDED", headers=headers))

        assert classified.kind is ErrorKind.RATE_LIMIT
        assert classified.details() == {"rate_limit": {"limit": 60, "remaining": 0, "retry_after": 12}}
        assert "Retry after 12 seconds" in classified.message

    def test_stale_version_is_conflict(self):
        classified = classify(api_error(422, "STALE_ITEM_VERSION"))
        assert classified.kind is ErrorKind.CONFLICT
        assert "Version conflict" in classified.message

    def test_uniqueness_code_is_conflict(self):
        assert classify(api_error(422, "VALIDATION_UNIQUE")).kind is ErrorKind.CONFLICT

    def test_plan_limit_is_quota_exceeded(self):
        classified = classify(api_error(422, "PLAN_UPGRADE_REQUIRED"))
        assert classified.kind is ErrorKind.QUOTA_EXCEEDED

    def test_422_is_validation(self):
        classified = classify(api_error(422, "INVALID_FIELD", details={"field": "title"}))
        assert classified.is_validation
        assert classified.message.startswith("Validation error.")
        assert "INVALID_FIELD" in classified.message

    def test_422_mentioning_locales_explains_localization(self):
        classified = classify(api_error(422, "INVALID_LOCALES", details={"field": "title", "locales": ["it"]}))
        assert classified.message.startswith("Localization error.")

    @pytest.mark.parametrize(
        "status,code",
        [(400, "BAD_REQUEST"), (500, "INTERNAL_ERROR"), (503, "SERVICE_UNAVAILABLE"), (418, "API_ERROR")],
    )
    def test_other_statuses(self, status, code):
        classified = classify(api_error(status, "SOMETHING"))
        assert classified.kind is ErrorKind.API_ERROR
        assert classified.code == code
        assert classified.status_code == status


class TestDomainErrors:
    """Test classification of errors raised by tool actions."""

    def test_resource_not_found(self):
        classified = classify(ResourceNotFoundError("API token", "7"))
        assert classified.is_not_found
        assert classified.message == "API token with ID '7' was not found."

    def test_invalid_operation_keeps_code(self):
        classified = classify(InvalidOperationError("create_token", "Predefined role 'editor' not found."))
        assert classified.kind is ErrorKind.INVALID_OPERATION
        assert classified.code == "INVALID_OPERATION"
        assert classified.operation == "create_token"

    def test_conflict(self):
        assert classify(ConflictError("Role", "Role already exists")).kind is ErrorKind.CONFLICT

    def test_quota(self):
        classified = classify(QuotaExceededError("Record", "Too many records", limit=10, current=10))
        assert classified.kind is ErrorKind.QUOTA_EXCEEDED
        assert classified.limit == 10

    def test_job_failure(self):
        classified = classify(DatoCMSJobError("job-1", "did not complete"))
        assert classified.code == "JOB_FAILED"


class TestNetworkErrors:
    """Test classification of httpx transport failures."""

    def test_timeout(self):
        request = httpx.Request("GET", "https://site-api.datocms.com/site")
        classified = classify(httpx.ReadTimeout("timed out", request=request))

        assert classified.kind is ErrorKind.NETWORK_ERROR
        assert classified.code == "TIMEOUT"
        assert classified.url == "https://site-api.datocms.com/site"

    def test_connect_error(self):
        classified = classify(httpx.ConnectError("refused"))
        assert classified.code == "CONNECTION_REFUSED"
        assert classified.url is None

    def test_other_transport_error(self):
        assert classify(httpx.RemoteProtocolError("bad")).code == "NETWORK_ERROR"

    @pytest.mark.parametrize(
        "status,code",
        [(404, "API_ERROR"), (400, "BAD_REQUEST"), (502, "INTERNAL_ERROR"), (503, "SERVICE_UNAVAILABLE")],
    )
    def test_status_error_outside_datocms(self, status, code):
        request = httpx.Request("GET", "https://files.example.com/logo.png")
        error = httpx.HTTPStatusError("failed", request=request, response=httpx.Response(status, request=request))

        classified = classify(error, ErrorContext(resource_type="Upload"))

        assert classified.kind is ErrorKind.API_ERROR
        assert classified.code == code
        assert classified.status_code == status
        assert classified.message == f"Request to https://files.example.com/logo.png failed with status {status}."


class TestForeignErrors:
    """Test heuristics for exceptions raised outside the package."""

    def test_unauthorized_text(self):
        assert classify(RuntimeError("401 Unauthorized")).is_auth

    def test_not_found_text(self):
        context = ErrorContext(resource_type="Upload", resource_id="u1")
        classified = classify(RuntimeError("thing not found"), context)
        assert classified.message.startswith("Upload with ID 'u1' not found")

    def test_status_attribute(self):
        error = RuntimeError("nope")
        error.status_code = 409
        assert classify(error).kind is ErrorKind.CONFLICT

    def test_fallback_is_api_error(self):
        classified = classify(KeyError("boom"))
        assert classified.kind is ErrorKind.API_ERROR
        assert classified.code == "API_ERROR"


class TestBuildErrorResponse:
    """Test rendering classified errors as envelopes."""

    def test_envelope_shape(self):
        context = ErrorContext(handler_name="records.get", resource_type="Record", resource_id="1")
        response = build_error_response(api_error(404, "NOT_FOUND"), context)

        assert response.success is False
        assert response.error.startswith("Error in records.get: Record with ID '1' not found")
        assert response.error_code == "NOT_FOUND"
        assert response.meta["error_kind"] == "not_found"
        assert response.meta["error_details"]["status"] == 404

    def test_without_context(self):
        response = build_error_response(InvalidOperationError("x", "Not allowed"))
        assert response.error == "Error: Not allowed"
        assert response.error_code == "INVALID_OPERATION"


class TestExtractDetailedErrorInfo:
    """Test rendering of heterogeneous error shapes."""

    def test_none_and_empty(self):
        assert extract_detailed_error_info(None) == "Unknown error occurred"
        assert extract_detailed_error_info("") == "Unknown error occurred"

    def test_string(self):
        assert extract_detailed_error_info("plain") == "plain"

    def test_api_error(self):
        rendered = extract_detailed_error_info(api_error(422, "INVALID_FIELD"))
        assert rendered.startswith("Status: 422 - Code: INVALID_FIELD")
        assert "Details:" in rendered

    def test_api_error_like_dict(self):
        rendered = extract_detailed_error_info({"status": 500, "message": "down", "errors": [{"code": "X"}]})
        assert rendered.startswith("Status: 500 - down")

    def test_exception_with_embedded_json(self):
        error = ValueError('Request failed: {"data": {"errors": [{"code": "BROKEN"}]}}')
        rendered = extract_detailed_error_info(error)
        assert "Details:" in rendered
        assert "BROKEN" in rendered

    def test_object_with_message(self):
        class Failure:
            message = "from attribute"

        assert extract_detailed_error_info(Failure()) == "from attribute"

    def test_never_raises(self):
        class Hostile:
            def __eq__(self, other):
                raise RuntimeError("no comparisons")

            def __repr__(self):
                return "<hostile>"

        assert extract_detailed_error_info(Hostile()) == "<hostile>"
