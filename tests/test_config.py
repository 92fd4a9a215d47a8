"""
Tests for MCP server configuration.

Tests cover:
- Default values
- Loading from datocms-mcp.yaml
- DATOCMS_MCP_* environment overrides and their precedence
- Validation of invalid values
- Saving
"""

import pytest
import yaml

from datocms_mcp.config import CONFIG_FILENAME, ServerConfig


class TestServerConfig:
    """Test configuration loading and saving."""

    def test_default_config(self):
        """Test default configuration values."""
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.transport == "stdio"
        assert config.debug is False
        assert config.base_url == "https://site-api.datocms.com"
        assert config.client_cache_size == 128
        assert config.effective_log_level == "INFO"

    def test_load_config_file_not_exists(self, tmp_path):
        """Test loading config when file doesn't exist (uses defaults)."""
        config = ServerConfig.load(tmp_path, environ={})
        assert config == ServerConfig()

    def test_load_config_from_file(self, tmp_path):
        """Test loading configuration from datocms-mcp.yaml."""
        (tmp_path / CONFIG_FILENAME).write_text(
            """
host: "0.0.0.0"
port: 9000
transport: "http"
timeout: 10
unknown_key: ignored
"""
        )

        config = ServerConfig.load(tmp_path, environ={})

        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.transport == "http"
        assert config.timeout == 10

    def test_env_vars_override_config_file(self, tmp_path):
        """Test environment variables override config file values."""
        (tmp_path / CONFIG_FILENAME).write_text("port: 8000\ntransport: stdio\n")

        config = ServerConfig.load(
            tmp_path,
            environ={
                "DATOCMS_MCP_PORT": "7000",
                "DATOCMS_MCP_TRANSPORT": "SSE",
                "DATOCMS_MCP_DEBUG": "yes",
                "DATOCMS_MCP_CLIENT_CACHE_SIZE": "4",
            },
        )

        assert config.port == 7000
        assert config.transport == "sse"
        assert config.debug is True
        assert config.client_cache_size == 4
        assert config.effective_log_level == "DEBUG"

    def test_load_reads_process_environment(self, tmp_path, monkeypatch):
        """Test that os.environ is used when no mapping is passed."""
        monkeypatch.setenv("DATOCMS_MCP_HOST", "192.168.1.1")
        assert ServerConfig.load(tmp_path).host == "192.168.1.1"

    def test_invalid_port_env(self, tmp_path):
        """Test that a non-numeric DATOCMS_MCP_PORT raises ValueError."""
        with pytest.raises(ValueError, match="Invalid DATOCMS_MCP_PORT"):
            ServerConfig.load(tmp_path, environ={"DATOCMS_MCP_PORT": "not-a-number"})

    def test_invalid_yaml(self, tmp_path):
        """Test that malformed YAML raises ValueError."""
        (tmp_path / CONFIG_FILENAME).write_text("port: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid datocms-mcp.yaml"):
            ServerConfig.load(tmp_path, environ={})

    def test_non_mapping_yaml(self, tmp_path):
        """Test that a top-level list is rejected."""
        (tmp_path / CONFIG_FILENAME).write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            ServerConfig.load(tmp_path, environ={})

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"transport": "websocket"}, "Invalid transport"),
            ({"port": 0}, "Invalid port"),
            ({"timeout": 0}, "Invalid timeout"),
            ({"client_cache_size": 0}, "Invalid client_cache_size"),
            ({"log_level": "LOUD"}, "Invalid log_level"),
        ],
    )
    def test_invalid_values(self, kwargs, message):
        """Test validation of each setting."""
        with pytest.raises(ValueError, match=message):
            ServerConfig(**kwargs)

    @pytest.mark.parametrize(
        "content,message",
        [
            ('port: "8000"\n', "Invalid port '8000'. Must be an integer."),
            ("port: true\n", "Invalid port True. Must be an integer."),
            ("timeout: fast\n", "Invalid timeout 'fast'. Must be a number."),
            ("debug: 1\n", "Invalid debug 1. Must be true or false."),
        ],
    )
    def test_wrongly_typed_file_values(self, tmp_path, content, message):
        """Test that YAML values of the wrong type raise ValueError."""
        (tmp_path / CONFIG_FILENAME).write_text(content)
        with pytest.raises(ValueError) as exc_info:
            ServerConfig.load(tmp_path, environ={})
        assert str(exc_info.value) == message

    def test_save_config(self, tmp_path):
        """Test saving configuration to file."""
        config = ServerConfig(host="0.0.0.0", port=9000, transport="sse")

        path = config.save(tmp_path / "nested")

        assert path == tmp_path / "nested" / CONFIG_FILENAME
        saved = yaml.safe_load(path.read_text())
        assert saved["host"] == "0.0.0.0"
        assert saved["port"] == 9000
        assert ServerConfig.load(tmp_path / "nested", environ={}) == config
