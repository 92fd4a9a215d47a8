"""Registry of pydantic models keyed by (domain, operation)."""

import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from datocms_mcp.exceptions import SchemaNotRegisteredError, SchemaValidationError

logger = logging.getLogger(__name__)


def _format_loc(loc) -> str:
    return ".".join(str(part) for part in loc)


def format_validation_errors(error: ValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic ValidationError into {path, message} pairs."""
    return [
        {"path": _format_loc(item.get("loc", ())), "message": item.get("msg", "Invalid value")}
        for item in error.errors()
    ]


class SchemaRegistry:
    """
    Maps "domain:operation" keys to the pydantic model validating its arguments.

    Registration happens once per handler at import time; re-registering a
    key replaces the previous schema.
    """

    def __init__(self):
        self._schemas: Dict[str, Type[BaseModel]] = {}

    @staticmethod
    def _key(domain: str, operation: str) -> str:
        return f"{domain}:{operation}"

    def register(self, domain: str, operation: str, schema: Type[BaseModel]) -> None:
        self._schemas[self._key(domain, operation)] = schema

    def unregister(self, domain: str, operation: str) -> bool:
        return self._schemas.pop(self._key(domain, operation), None) is not None

    def has(self, domain: str, operation: str) -> bool:
        return self._key(domain, operation) in self._schemas

    def get(self, domain: str, operation: str) -> Optional[Type[BaseModel]]:
        return self._schemas.get(self._key(domain, operation))

    def validate(self, domain: str, operation: str, data: Any) -> BaseModel:
        """
        Validate data against the registered schema.

        Args:
            domain: Handler domain (e.g. "records")
            operation: Handler operation (e.g. "update")
            data: Raw tool arguments

        Returns:
            Parsed model instance

        Raises:
            SchemaNotRegisteredError: If no schema is registered for the key
            SchemaValidationError: If data does not satisfy the schema
        """
        schema = self.get(domain, operation)
        if schema is None:
            raise SchemaNotRegisteredError(domain, operation)

        try:
            return schema.model_validate(data if data is not None else {})
        except ValidationError as e:
            errors = format_validation_errors(e)
            logger.debug("Validation failed for %s:%s: %s", domain, operation, errors)
            raise SchemaValidationError(domain, operation, errors) from e

    def json_schema(self, domain: str, operation: str) -> Dict[str, Any]:
        """Return the JSON schema of a registered model (by alias)."""
        schema = self.get(domain, operation)
        if schema is None:
            raise SchemaNotRegisteredError(domain, operation)
        return schema.model_json_schema(by_alias=True)

    def list_schemas(self) -> List[str]:
        return sorted(self._schemas)

    def list_by_domain(self, domain: str) -> List[str]:
        prefix = f"{domain}:"
        return sorted(key[len(prefix):] for key in self._schemas if key.startswith(prefix))


schema_registry = SchemaRegistry()
"""Registry shared by every tool module served by one process."""
