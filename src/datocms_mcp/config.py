"""
MCP server configuration.

Handles loading datocms-mcp.yaml and applying DATOCMS_MCP_* environment
overrides on top of it.
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml

from datocms_mcp.client.base import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from datocms_mcp.core.client_manager import DEFAULT_CACHE_SIZE

CONFIG_FILENAME = "datocms-mcp.yaml"
ENV_PREFIX = "DATOCMS_MCP_"

TRANSPORTS = ("stdio", "sse", "http")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {value}. Must be an integer.")


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {value}. Must be a number.")


_ENV_OVERRIDES = {
    "HOST": ("host", lambda name, value: value),
    "PORT": ("port", _parse_int),
    "TRANSPORT": ("transport", lambda name, value: value.strip().lower()),
    "DEBUG": ("debug", lambda name, value: _parse_bool(value)),
    "BASE_URL": ("base_url", lambda name, value: value),
    "TIMEOUT": ("timeout", _parse_float),
    "CLIENT_CACHE_SIZE": ("client_cache_size", _parse_int),
    "LOG_LEVEL": ("log_level", lambda name, value: value.strip().upper()),
}


_FIELD_TYPES = {
    "host": (str,),
    "port": (int,),
    "transport": (str,),
    "debug": (bool,),
    "base_url": (str,),
    "timeout": (int, float),
    "client_cache_size": (int,),
    "log_level": (str,),
}
_TYPE_NAMES = {(str,): "a string", (int,): "an integer", (bool,): "true or false", (int, float): "a number"}


@dataclass
class ServerConfig:
    """
    Server configuration loaded from datocms-mcp.yaml.

    Attributes:
        host: Bind address for network transports (default: "127.0.0.1")
        port: Port for network transports (default: 8000)
        transport: "stdio", "sse" or "http" (default: "stdio")
        debug: Log timing for every tool call and lower the log level
        base_url: Content Management API root
        timeout: Upstream request timeout in seconds
        client_cache_size: Maximum number of cached DatoCMS clients
        log_level: Logging level name
    """

    host: str = "127.0.0.1"
    port: int = 8000
    transport: Literal["stdio", "sse", "http"] = "stdio"
    debug: bool = False
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    client_cache_size: int = DEFAULT_CACHE_SIZE
    log_level: str = "INFO"

    def __post_init__(self):
        for name, expected in _FIELD_TYPES.items():
            value = getattr(self, name)
            if (isinstance(value, bool) and bool not in expected) or not isinstance(value, expected):
                raise ValueError(f"Invalid {name} {value!r}. Must be {_TYPE_NAMES[expected]}.")
        if self.transport not in TRANSPORTS:
            raise ValueError(f"Invalid transport '{self.transport}'. Must be one of: {', '.join(TRANSPORTS)}.")
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port {self.port}. Must be between 1 and 65535.")
        if self.timeout <= 0:
            raise ValueError(f"Invalid timeout {self.timeout}. Must be positive.")
        if self.client_cache_size < 1:
            raise ValueError(f"Invalid client_cache_size {self.client_cache_size}. Must be at least 1.")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level '{self.log_level}'. Must be one of: {', '.join(LOG_LEVELS)}.")

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level

    @classmethod
    def load(cls, config_dir: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> "ServerConfig":
        """
        Load configuration from datocms-mcp.yaml.

        Falls back to defaults if the file doesn't exist. Environment
        variables override config file values.

        Args:
            config_dir: Directory holding datocms-mcp.yaml (default: cwd)
            environ: Environment mapping (default: os.environ)

        Returns:
            ServerConfig instance with loaded/default values

        Raises:
            ValueError: If the file or an override has an invalid value
        """
        config_file = cls.path(config_dir)
        environ = os.environ if environ is None else environ
        config_dict: Dict[str, Any] = {}

        if config_file.exists():
            try:
                with open(config_file) as f:
                    config_dict = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid {CONFIG_FILENAME}: {e}") from e
            if not isinstance(config_dict, dict):
                raise ValueError(f"Invalid {CONFIG_FILENAME}: expected a mapping at the top level")

        for suffix, (key, parse) in _ENV_OVERRIDES.items():
            name = f"{ENV_PREFIX}{suffix}"
            if name in environ:
                config_dict[key] = parse(suffix, environ[name])

        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config_dict.items() if k in known})

    @staticmethod
    def path(config_dir: Optional[Path] = None) -> Path:
        return Path(config_dir or Path.cwd()) / CONFIG_FILENAME

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def save(self, config_dir: Optional[Path] = None) -> Path:
        """
        Save configuration to datocms-mcp.yaml.

        Args:
            config_dir: Directory to write to (default: cwd)

        Returns:
            Path of the written file
        """
        config_file = self.path(config_dir)
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
        return config_file
