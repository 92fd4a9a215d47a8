"""
MCP (Model Context Protocol) server for the DatoCMS Content Management API.

Architecture:
- server.py: FastMCP server initialization and configuration
- config.py: Configuration file and environment overrides
- core/: Handler pipeline (schema registry, client manager, error
  classification, middleware, response formatting)
- client/: Async JSON:API client for the Content Management API
- tools/: Domain-grouped MCP router tools
- cli/: Command line interface
"""

__version__ = "0.1.0"
