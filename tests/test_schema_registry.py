"""Tests for the schema registry."""

from typing import Optional

import pytest
from pydantic import Field

from datocms_mcp.core.schema_registry import SchemaRegistry
from datocms_mcp.exceptions import SchemaNotRegisteredError, SchemaValidationError
from datocms_mcp.tools.base import PaginatedParams, ToolParams


class WidgetParams(ToolParams):
    name: str = Field(min_length=1)
    size: int = Field(ge=1)
    color: Optional[str] = None


@pytest.fixture
def registry():
    registry = SchemaRegistry()
    registry.register("widgets", "create", WidgetParams)
    return registry


def test_validate_returns_model(registry):
    params = registry.validate("widgets", "create", {"apiToken": "t", "name": "Box", "size": 2})

    assert isinstance(params, WidgetParams)
    assert params.api_token == "t"
    assert params.environment is None


def test_snake_case_names_are_accepted(registry):
    params = registry.validate("widgets", "create", {"api_token": "t", "name": "Box", "size": 2})
    assert params.api_token == "t"


def test_unknown_keys_are_ignored(registry):
    params = registry.validate("widgets", "create", {"apiToken": "t", "name": "Box", "size": 2, "extra": 1})
    assert not hasattr(params, "extra")


def test_every_failing_field_is_reported(registry):
    with pytest.raises(SchemaValidationError) as exc_info:
        registry.validate("widgets", "create", {"apiToken": "t", "name": "", "size": 0})

    error = exc_info.value
    assert {item["path"] for item in error.errors} == {"name", "size"}
    assert error.summary.startswith("Found 2 validation errors.")


def test_single_error_summary(registry):
    with pytest.raises(SchemaValidationError) as exc_info:
        registry.validate("widgets", "create", {"apiToken": "t", "name": "Box", "size": 0})

    assert exc_info.value.summary.startswith('Error in field "size":')


def test_none_data_is_validated_as_empty(registry):
    with pytest.raises(SchemaValidationError) as exc_info:
        registry.validate("widgets", "create", None)

    assert len(exc_info.value.errors) == 3


def test_nested_paths_are_dotted():
    registry = SchemaRegistry()
    registry.register("things", "list", PaginatedParams)

    with pytest.raises(SchemaValidationError) as exc_info:
        registry.validate("things", "list", {"apiToken": "t", "page": {"limit": 1000}})

    assert exc_info.value.errors[0]["path"] == "page.limit"


def test_unregistered_schema_raises(registry):
    with pytest.raises(SchemaNotRegisteredError, match="Schema not found: widgets:destroy"):
        registry.validate("widgets", "destroy", {})


def test_register_and_unregister(registry):
    assert registry.has("widgets", "create")
    assert registry.get("widgets", "create") is WidgetParams
    assert registry.unregister("widgets", "create") is True
    assert registry.unregister("widgets", "create") is False
    assert registry.get("widgets", "create") is None


def test_listing(registry):
    registry.register("widgets", "list", ToolParams)
    registry.register("gadgets", "list", ToolParams)

    assert registry.list_schemas() == ["gadgets:list", "widgets:create", "widgets:list"]
    assert registry.list_by_domain("widgets") == ["create", "list"]


def test_json_schema_uses_camel_case(registry):
    schema = registry.json_schema("widgets", "create")

    assert "apiToken" in schema["properties"]
    assert set(schema["required"]) == {"apiToken", "name", "size"}
