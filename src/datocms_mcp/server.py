"""
DatoCMS MCP server.

Wires the handler pipeline into a FastMCP app, one router tool per DatoCMS
area, and runs it over stdio, SSE or streamable HTTP.
"""

import logging
import socket
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional

from fastmcp import FastMCP

from datocms_mcp.client.base import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from datocms_mcp.config import TRANSPORTS, ServerConfig
from datocms_mcp.core.client_manager import DEFAULT_CACHE_SIZE, ClientCache, ClientManager
from datocms_mcp.core.handlers import HandlerFactory
from datocms_mcp.core.schema_registry import SchemaRegistry
from datocms_mcp.tools import ToolRouter, register_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "DatoCMS MCP Server"


@dataclass
class DatoCMSMCPServer:
    """
    MCP server exposing the DatoCMS Content Management API.

    Attributes:
        host: Server bind address (default: "127.0.0.1")
        port: Server port (default: 8000, network transports only)
        transport: Transport mode ("stdio", "sse" or "http")
        debug: Log timing for every tool call
        base_url: Content Management API root
        timeout: Upstream request timeout in seconds
        client_cache_size: Maximum number of cached DatoCMS clients
        routers: Router tools keyed by tool name
    """

    host: str = "127.0.0.1"
    port: int = 8000
    transport: Literal["stdio", "sse", "http"] = "stdio"
    debug: bool = False
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    client_cache_size: int = DEFAULT_CACHE_SIZE
    routers: Dict[str, ToolRouter] = field(default_factory=dict, init=False, repr=False)
    _app: Optional[FastMCP] = field(default=None, init=False, repr=False)
    _factory: Optional[HandlerFactory] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        """Validate configuration and register tools."""
        if self.transport not in TRANSPORTS:
            raise ValueError(
                f"Invalid transport '{self.transport}'. "
                f"Must be one of: {', '.join(TRANSPORTS)}."
            )

        client_manager = ClientManager(
            cache=ClientCache(self.client_cache_size),
            base_url=self.base_url,
            timeout=self.timeout,
        )
        self._factory = HandlerFactory(
            registry=SchemaRegistry(),
            client_manager=client_manager,
            debug=self.debug,
        )
        self._app = FastMCP(SERVER_NAME)
        self.routers = register_tools(self._app, self._factory)

    @classmethod
    def from_config(cls, config: ServerConfig) -> "DatoCMSMCPServer":
        return cls(
            host=config.host,
            port=config.port,
            transport=config.transport,
            debug=config.debug,
            base_url=config.base_url,
            timeout=config.timeout,
            client_cache_size=config.client_cache_size,
        )

    @property
    def app(self) -> FastMCP:
        return self._app

    @property
    def client_manager(self) -> ClientManager:
        return self._factory.client_manager

    @property
    def registry(self) -> SchemaRegistry:
        return self._factory.registry

    def _check_port_available(self, host: str, port: int) -> bool:
        """Return True when host:port can be bound by an sse/http transport."""
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind((host, port))
                return True
        except OSError:
            return False

    def start(self):
        """
        Serve the DatoCMS tools until the transport exits.

        Raises:
            RuntimeError: If the sse/http port is taken or FastMCP fails to run
        """
        if not self._app:
            raise RuntimeError("DatoCMS tools were not registered on a FastMCP app.")

        if self.transport == "stdio":
            logger.info("Starting %s on stdio", SERVER_NAME)
            try:
                self._app.run()
            except Exception as e:
                raise RuntimeError(f"Failed to start MCP server with stdio transport: {e}") from e
            return

        if not self._check_port_available(self.host, self.port):
            raise RuntimeError(
                f"Port {self.port} already in use. "
                "Pass --port or set DATOCMS_MCP_PORT to use another one."
            )

        logger.info("Starting %s on %s://%s:%d", SERVER_NAME, self.transport, self.host, self.port)
        try:
            self._app.run(transport=self.transport, host=self.host, port=self.port)
        except Exception as e:
            raise RuntimeError(
                f"Failed to start MCP server on {self.host}:{self.port}: {e}"
            ) from e
