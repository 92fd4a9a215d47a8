"""
Middleware for tool handlers.

A middleware takes an async handler and returns a wrapped async handler.
Handlers are composed as debug(error(validation(base))): validation hands the
parsed parameters model to the base handler, the error middleware turns
exceptions into error envelopes, and debug logging observes the final result.
"""

import logging
import time
from contextvars import ContextVar
from functools import reduce, wraps
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx

from datocms_mcp.exceptions import (
    DatoCMSMCPError,
    SchemaNotRegisteredError,
    SchemaValidationError,
)

from .errors import ErrorContext, build_error_response
from .response import StandardResponse, validation_error_response
from .schema_registry import SchemaRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[StandardResponse]]
Middleware = Callable[[Handler], Handler]

_error_context: ContextVar[Optional[ErrorContext]] = ContextVar("datocms_mcp_error_context", default=None)


def current_error_context() -> ErrorContext:
    """
    Return the error context of the running invocation.

    Outside of an error middleware scope a detached context is returned, so
    writes to it are harmless.
    """
    context = _error_context.get()
    return context if context is not None else ErrorContext()


def compose_middleware(handler: Handler, middlewares: Sequence[Middleware]) -> Handler:
    """Wrap handler so that the first middleware in the list runs outermost."""
    return reduce(lambda wrapped, middleware: middleware(wrapped), reversed(middlewares), handler)


def create_debug_middleware(handler_name: str, enabled: bool = False) -> Middleware:
    """
    Create middleware logging timing and outcome of each invocation.

    Args:
        handler_name: Name used in log records
        enabled: Log every invocation; otherwise only those with a truthy
            "debug" argument are logged
    """

    def middleware(handler: Handler) -> Handler:
        @wraps(handler)
        async def wrapped(args: Any) -> StandardResponse:
            active = enabled or (isinstance(args, dict) and bool(args.get("debug")))
            if not active:
                return await handler(args)

            started = time.perf_counter()
            logger.info("%s started", handler_name)
            try:
                response = await handler(args)
            except Exception:
                elapsed = (time.perf_counter() - started) * 1000
                logger.info("%s raised after %.1fms", handler_name, elapsed)
                raise

            elapsed = (time.perf_counter() - started) * 1000
            if response.success:
                logger.info("%s succeeded in %.1fms", handler_name, elapsed)
            else:
                logger.info(
                    "%s failed in %.1fms with %s: %s",
                    handler_name,
                    elapsed,
                    response.error_code,
                    response.error,
                )
            return response

        return wrapped

    return middleware


def create_error_middleware(
    handler_name: str,
    operation: Optional[str] = None,
    resource_type: Optional[str] = None,
) -> Middleware:
    """
    Create middleware converting exceptions into error envelopes.

    A fresh ErrorContext is bound for every invocation; inner layers may
    record the resource id on it via current_error_context().
    SchemaNotRegisteredError is a wiring bug and propagates unchanged.
    """

    def middleware(handler: Handler) -> Handler:
        @wraps(handler)
        async def wrapped(args: Any) -> StandardResponse:
            context = ErrorContext(
                handler_name=handler_name,
                operation=operation,
                resource_type=resource_type,
            )
            token = _error_context.set(context)
            try:
                return await handler(args)
            except SchemaNotRegisteredError:
                raise
            except (DatoCMSMCPError, httpx.HTTPError) as e:
                logger.info("%s failed: %s", handler_name, e)
                return build_error_response(e, context)
            except Exception as e:
                logger.exception("Unexpected error in %s", handler_name)
                return build_error_response(e, context)
            finally:
                _error_context.reset(token)

        return wrapped

    return middleware


def create_validation_middleware(registry: SchemaRegistry, domain: str, operation: str) -> Middleware:
    """
    Create middleware validating raw arguments against the registered schema.

    On success the wrapped handler receives the parsed model instead of the
    raw arguments; on failure it is never called.
    """

    def middleware(handler: Handler) -> Handler:
        @wraps(handler)
        async def wrapped(args: Any) -> StandardResponse:
            try:
                params = registry.validate(domain, operation, args)
            except SchemaValidationError as e:
                return validation_error_response(
                    f"Invalid parameters for {domain}.{operation}: {e.summary}",
                    e.errors,
                )
            return await handler(params)

        return wrapped

    return middleware
