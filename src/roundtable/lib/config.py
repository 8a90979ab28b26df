"""
Configuration management and validation for Roundtable.

Loads YAML configuration, overlays environment variables and validates the
result with pydantic before any service is constructed.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


DEFAULT_CONTINUATION_PROMPT = (
    "Continue the conversation. Please ignore this instruction in your response "
    "and respond naturally to the conversation."
)


class ObservabilityConfig(BaseModel):
    """Configuration for OpenTelemetry export."""
    enabled: bool = False
    service_name: str = "roundtable"
    service_version: str = "1.0.0"
    environment: str = "development"
    otlp_endpoint: str = "http://localhost:4317"
    trace_sampling_ratio: float = Field(default=1.0, ge=0.0, le=1.0)
    export_timeout: int = Field(default=30, gt=0)
    metric_export_interval_ms: int = Field(default=10000, gt=0)
    resource_attributes: Dict[str, str] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    """Configuration for logging settings."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="structured", pattern="^(structured|simple)$")
    directory: Optional[str] = None
    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0)  # 10MB
    backup_count: int = Field(default=5, ge=1)
    include_trace: bool = True
    environment: str = "development"

    @field_validator('level', mode='before')
    @classmethod
    def normalise_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class DispatchConfig(BaseModel):
    """Configuration for multi-agent dispatch rounds."""
    agent_timeout_seconds: Optional[float] = Field(default=120.0, ge=0)
    continuation_prompt: str = Field(default=DEFAULT_CONTINUATION_PROMPT, min_length=1)

    @property
    def effective_timeout(self) -> Optional[float]:
        """Per-agent timeout, or None when disabled."""
        if not self.agent_timeout_seconds:
            return None
        return self.agent_timeout_seconds


class RoundtableConfig(BaseModel):
    """Main Roundtable configuration."""
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)

    # Global settings
    debug: bool = False
    config_file_path: Optional[str] = None


class ConfigurationError(Exception):
    """Exception raised for configuration-related errors."""
    pass


class ConfigurationManager:
    """Manages Roundtable configuration loading and validation."""

    ENV_MAPPINGS = {
        "ROUNDTABLE_LOG_LEVEL": ["logging", "level"],
        "ROUNDTABLE_AGENT_TIMEOUT": ["dispatch", "agent_timeout_seconds"],
        "ROUNDTABLE_DEBUG": ["debug"],
        "OTEL_EXPORTER_OTLP_ENDPOINT": ["observability", "otlp_endpoint"],
    }

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._get_default_config_path()
        self.config: Optional[RoundtableConfig] = None

    def _get_default_config_path(self) -> str:
        """Get the default configuration file path."""
        if "ROUNDTABLE_CONFIG_PATH" in os.environ:
            return os.environ["ROUNDTABLE_CONFIG_PATH"]

        candidates = [
            "./roundtable.yaml",
            "~/.roundtable/config.yaml"
        ]

        for candidate in candidates:
            path = Path(candidate).expanduser()
            if path.exists():
                return str(path)

        return "~/.roundtable/config.yaml"

    def load_config(self, config_path: Optional[str] = None) -> RoundtableConfig:
        """Load and validate configuration from file."""
        if config_path:
            self.config_path = config_path

        config_file = Path(self.config_path).expanduser()

        if not config_file.exists():
            self._create_default_config(config_file)

        try:
            with open(config_file, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Configuration root must be a mapping in {config_file}")

            config_data = self._merge_environment_config(config_data)

            self.config = RoundtableConfig(**config_data)
            self.config.config_file_path = str(config_file)

            return self.config

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {config_file}: {e}") from e
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error loading configuration: {e}") from e

    def _create_default_config(self, config_file: Path) -> None:
        """Create a default configuration file."""
        config_file.parent.mkdir(parents=True, exist_ok=True)

        default_config = {
            "logging": {
                "level": os.getenv("ROUNDTABLE_LOG_LEVEL", "INFO"),
                "format": "structured"
            },
            "observability": {
                "enabled": False,
                "service_name": "roundtable",
                "otlp_endpoint": os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
            },
            "dispatch": {
                "agent_timeout_seconds": 120
            }
        }

        with open(config_file, 'w') as f:
            yaml.dump(default_config, f, default_flow_style=False, indent=2)

    def _merge_environment_config(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configuration with environment variables."""
        for env_var, config_path in self.ENV_MAPPINGS.items():
            if env_var not in os.environ:
                continue

            value: Any = os.environ[env_var]

            if env_var == "ROUNDTABLE_AGENT_TIMEOUT":
                try:
                    value = float(value)
                except ValueError as e:
                    raise ConfigurationError(f"{env_var} must be a number, got {value!r}") from e
            elif env_var == "ROUNDTABLE_DEBUG":
                value = value.lower() in ("true", "1", "yes")

            current = config_data
            for key in config_path[:-1]:
                current = current.setdefault(key, {})
            current[config_path[-1]] = value

        return config_data

    def get_config(self) -> RoundtableConfig:
        """Get the loaded configuration."""
        if self.config is None:
            raise ConfigurationError("Configuration not loaded. Call load_config() first.")
        return self.config

    def reload_config(self) -> RoundtableConfig:
        """Reload configuration from file."""
        return self.load_config()


# Global configuration manager instance
_config_manager: Optional[ConfigurationManager] = None


def initialize_config(config_path: Optional[str] = None) -> ConfigurationManager:
    """Initialize global configuration manager."""
    global _config_manager
    _config_manager = ConfigurationManager(config_path)
    _config_manager.load_config()
    return _config_manager


def get_config_manager() -> ConfigurationManager:
    """Get the global configuration manager instance."""
    if _config_manager is None:
        raise ConfigurationError("Configuration not initialized. Call initialize_config() first.")
    return _config_manager


def get_config() -> RoundtableConfig:
    """Get the global configuration."""
    return get_config_manager().get_config()
