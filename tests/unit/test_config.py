"""
Unit tests for configuration loading.

Tests YAML loading, environment overrides, default file creation and the
errors raised for bad input.
"""

import pytest
import yaml

from roundtable.lib.config import (
    DEFAULT_CONTINUATION_PROMPT,
    ConfigurationError,
    ConfigurationManager,
    DispatchConfig,
    LoggingConfig,
    RoundtableConfig,
    get_config,
    initialize_config,
)


ENV_VARS = (
    "ROUNDTABLE_LOG_LEVEL",
    "ROUNDTABLE_AGENT_TIMEOUT",
    "ROUNDTABLE_DEBUG",
    "ROUNDTABLE_CONFIG_PATH",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "roundtable.yaml"
    path.write_text(yaml.safe_dump({
        "logging": {"level": "warning", "format": "simple"},
        "dispatch": {"agent_timeout_seconds": 30},
        "observability": {"service_name": "roundtable-test"},
    }))
    return path


class TestConfigModels:
    """Test configuration model defaults and validation."""

    def test_defaults(self):
        """Test the default configuration."""
        config = RoundtableConfig()

        assert config.logging.level == "INFO"
        assert config.observability.enabled is False
        assert config.dispatch.agent_timeout_seconds == 120.0
        assert config.dispatch.continuation_prompt == DEFAULT_CONTINUATION_PROMPT
        assert config.debug is False

    def test_level_is_normalised(self):
        """Test log levels are accepted case-insensitively."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level_rejected(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValueError):
            LoggingConfig(level="VERBOSE")

    @pytest.mark.parametrize("timeout,expected", [(45, 45), (0, None), (None, None)])
    def test_effective_timeout(self, timeout, expected):
        """Test zero or missing timeouts disable the budget."""
        assert DispatchConfig(agent_timeout_seconds=timeout).effective_timeout == expected

    def test_negative_timeout_rejected(self):
        """Test the timeout cannot be negative."""
        with pytest.raises(ValueError):
            DispatchConfig(agent_timeout_seconds=-1)


class TestConfigurationManager:
    """Test ConfigurationManager loading."""

    def test_loads_yaml(self, config_file):
        """Test values are read from the YAML file."""
        config = ConfigurationManager(str(config_file)).load_config()

        assert config.logging.level == "WARNING"
        assert config.logging.format == "simple"
        assert config.dispatch.agent_timeout_seconds == 30
        assert config.observability.service_name == "roundtable-test"
        assert config.config_file_path == str(config_file)

    def test_environment_overrides(self, config_file, monkeypatch):
        """Test environment variables win over file values."""
        monkeypatch.setenv("ROUNDTABLE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ROUNDTABLE_AGENT_TIMEOUT", "7.5")
        monkeypatch.setenv("ROUNDTABLE_DEBUG", "true")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317")

        config = ConfigurationManager(str(config_file)).load_config()

        assert config.logging.level == "DEBUG"
        assert config.dispatch.agent_timeout_seconds == 7.5
        assert config.debug is True
        assert config.observability.otlp_endpoint == "http://collector:4317"

    def test_non_numeric_timeout_rejected(self, config_file, monkeypatch):
        """Test a malformed timeout override raises a configuration error."""
        monkeypatch.setenv("ROUNDTABLE_AGENT_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError, match="ROUNDTABLE_AGENT_TIMEOUT"):
            ConfigurationManager(str(config_file)).load_config()

    def test_creates_default_file(self, tmp_path):
        """Test a missing file is created with defaults."""
        path = tmp_path / "nested" / "config.yaml"

        config = ConfigurationManager(str(path)).load_config()

        assert path.exists()
        assert config.dispatch.agent_timeout_seconds == 120

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises a configuration error."""
        path = tmp_path / "broken.yaml"
        path.write_text("logging: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigurationManager(str(path)).load_config()

    def test_invalid_values(self, tmp_path):
        """Test schema violations raise a configuration error."""
        path = tmp_path / "invalid.yaml"
        path.write_text(yaml.safe_dump({"dispatch": {"agent_timeout_seconds": -5}}))

        with pytest.raises(ConfigurationError, match="validation failed"):
            ConfigurationManager(str(path)).load_config()

    def test_non_mapping_root(self, tmp_path):
        """Test a YAML list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigurationManager(str(path)).load_config()

    def test_config_path_from_environment(self, config_file, monkeypatch):
        """Test ROUNDTABLE_CONFIG_PATH selects the default path."""
        monkeypatch.setenv("ROUNDTABLE_CONFIG_PATH", str(config_file))

        assert ConfigurationManager().config_path == str(config_file)

    def test_get_config_before_load(self, config_file):
        """Test reading configuration before loading it."""
        with pytest.raises(ConfigurationError):
            ConfigurationManager(str(config_file)).get_config()


class TestGlobalConfiguration:
    """Test the module-level helpers."""

    def test_initialize_and_get(self, config_file):
        """Test the global manager exposes the loaded configuration."""
        initialize_config(str(config_file))

        assert get_config().dispatch.agent_timeout_seconds == 30
