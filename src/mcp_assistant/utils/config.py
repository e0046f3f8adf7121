"""
Configuration management for MCP Assistant.

Provides hierarchical configuration loading with validation using Pydantic.
Settings come from TOML files, ``MCP_ASSISTANT_`` environment variables and
explicit overrides. API credentials are read from the plain environment
(or a ``.env`` file).
"""

import os
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import toml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from mcp_assistant.core.exceptions import ConfigError
from mcp_assistant.core.models import CapabilityDomain, ProviderConfig
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILES = [
    "~/.config/mcp-assistant/config.toml",
    "./.mcp-assistant.toml",
]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    enabled: bool = Field(default=True, description="Enable logging completely")
    level: str = Field(default="INFO", description="File logging level")
    console_level: str = Field(default="WARNING", description="Console logging level")
    format_type: str = Field(default="text", description="Log format (text/json)")
    file: Optional[str] = Field(default=None, description="Log file path")
    enable_rich: bool = Field(default=True, description="Enable Rich console output")
    max_bytes: int = Field(default=10 * 1024 * 1024, description="Max log file size")
    backup_count: int = Field(default=5, description="Number of backup files")
    suppress_http: bool = Field(default=True, description="Suppress HTTP and SDK request logging")

    @field_validator("level", "console_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("format_type")
    @classmethod
    def validate_format_type(cls, v: str) -> str:
        """Validate format type."""
        if v not in ["text", "json"]:
            raise ValueError(f"Invalid format type: {v}")
        return v


class AgentConfig(BaseModel):
    """Agent runtime configuration."""

    name: str = Field(default="MCP Assistant", description="Agent name")
    model: str = Field(default="gpt-4.1-mini", description="Model name")
    temperature: float = Field(default=0.45, description="Sampling temperature")
    tool_choice: Optional[str] = Field(default="auto", description="Tool choice mode")
    max_turns: int = Field(default=10, description="Maximum agent turns per message")
    max_history: int = Field(default=10, description="History entries included in instructions")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature range."""
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_turns", "max_history")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v


class ToolsConfig(BaseModel):
    """Direct-API tool configuration."""

    weather_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="OpenWeatherMap API base URL",
    )
    air_quality_base_url: str = Field(
        default="https://api.waqi.info",
        description="AQICN API base URL",
    )
    units: str = Field(default="metric", description="Weather units")
    request_timeout: float = Field(default=10.0, description="HTTP request timeout in seconds")

    @field_validator("units")
    @classmethod
    def validate_units(cls, v: str) -> str:
        """Validate unit system."""
        if v not in ["metric", "imperial", "standard"]:
            raise ValueError(f"Invalid units: {v}")
        return v


class DocumentationProviderConfig(BaseModel):
    """Documentation (Context7) MCP server configuration."""

    enabled: bool = Field(default=True, description="Register the documentation server")
    name: str = Field(default="context7", description="Provider name")
    command: str = Field(
        default="npx -y @upstash/context7-mcp",
        description="Launch command or MCP endpoint URL",
    )
    api_key_flag: str = Field(default="--api-key", description="Flag used to pass CONTEXT7_API_KEY")
    capabilities: List[str] = Field(
        default_factory=lambda: ["resolve_library_id", "get_library_docs"],
        description="Declared operations",
    )
    timeout: Optional[float] = Field(default=None, description="Connect timeout override")

    def to_provider_config(self, api_key: Optional[str] = None) -> ProviderConfig:
        """Build the provider configuration, appending the API key when present."""
        command = self.command
        if api_key and not command.startswith(("http://", "https://")):
            command = f"{command} {self.api_key_flag} {shlex.quote(api_key)}"
        return ProviderConfig(
            name=self.name,
            command=command,
            domain=CapabilityDomain.DOCUMENTATION,
            description="Context7 Documentation Server",
            capabilities=self.capabilities,
            timeout=self.timeout,
        )


class ExtraProviderConfig(BaseModel):
    """Additional MCP server declared in configuration."""

    name: str = Field(description="Provider name")
    command: str = Field(description="Launch command or MCP endpoint URL")
    domain: Optional[CapabilityDomain] = Field(default=None, description="Capability domain tag")
    description: Optional[str] = Field(default=None, description="Provider description")
    capabilities: List[str] = Field(default_factory=list, description="Declared operations")
    env: Dict[str, str] = Field(default_factory=dict, description="Process environment")
    timeout: Optional[float] = Field(default=None, description="Connect timeout override")

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: Optional[CapabilityDomain]) -> Optional[CapabilityDomain]:
        """Only MCP-backed domains can be tagged on a provider."""
        if v not in (None, CapabilityDomain.DOCUMENTATION):
            raise ValueError(f"Domain '{v.value}' is served by a direct API tool, not an MCP server")
        return v

    def to_provider_config(self) -> ProviderConfig:
        return ProviderConfig(**self.model_dump())


class ProvidersConfig(BaseModel):
    """Provider connection configuration."""

    connect_timeout: float = Field(default=30.0, description="Per-provider connect timeout in seconds")
    session_timeout: float = Field(default=10.0, description="MCP request timeout in seconds")
    concurrent: bool = Field(default=False, description="Connect providers concurrently")
    discover_capabilities: bool = Field(
        default=False,
        description="Replace declared capabilities with tools reported after connect",
    )
    documentation: DocumentationProviderConfig = Field(default_factory=DocumentationProviderConfig)
    extra: List[ExtraProviderConfig] = Field(default_factory=list, description="Additional MCP servers")

    @field_validator("connect_timeout", "session_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v


class CredentialsConfig(BaseSettings):
    """API credentials read from the environment or a .env file."""

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openweather_api_key: Optional[str] = Field(default=None, description="OpenWeatherMap API key")
    aqicn_api_key: Optional[str] = Field(default=None, description="AQICN API token")
    context7_api_key: Optional[str] = Field(default=None, description="Context7 API key")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


class Config(BaseSettings):
    """Main configuration class."""

    # Core settings
    debug: bool = Field(default=False, description="Enable debug mode")
    verbose: bool = Field(default=False, description="Enable verbose output")
    config_dir: str = Field(
        default="~/.config/mcp-assistant",
        description="Configuration directory",
    )

    # Component configurations
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)

    model_config = {
        "env_prefix": "MCP_ASSISTANT_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }

    def get_config_dir(self) -> Path:
        """Get configuration directory path."""
        return Path(os.path.expanduser(self.config_dir))

    def get_log_file(self) -> Optional[Path]:
        """Get log file path."""
        if self.logging.file:
            log_path = Path(os.path.expanduser(self.logging.file))
            if not log_path.is_absolute():
                log_path = self.get_config_dir() / log_path
            return log_path
        return None

    def provider_configs(self) -> List[ProviderConfig]:
        """All configured providers in registration order."""
        configs = []
        if self.providers.documentation.enabled:
            configs.append(
                self.providers.documentation.to_provider_config(self.credentials.context7_api_key)
            )
        configs.extend(extra.to_provider_config() for extra in self.providers.extra)
        return configs


def validate_credentials(credentials: CredentialsConfig) -> Tuple[List[str], List[str]]:
    """
    Check configured credentials.

    Returns:
        Tuple of (errors, warnings). Errors are fatal for chat; warnings
        describe capabilities that will be unavailable.
    """
    errors = []
    warnings = []

    if not credentials.openai_api_key:
        errors.append("OPENAI_API_KEY is required")
    if not credentials.openweather_api_key:
        warnings.append(
            "OPENWEATHER_API_KEY is recommended for weather functionality "
            "(get one at https://openweathermap.org/api)"
        )
    if not credentials.aqicn_api_key:
        warnings.append(
            "AQICN_API_KEY is recommended for air quality functionality "
            "(get one at https://aqicn.org/api/)"
        )
    if not credentials.context7_api_key:
        warnings.append("CONTEXT7_API_KEY is recommended for higher documentation rate limits")

    return errors, warnings


class ConfigManager:
    """Configuration manager with hierarchical loading."""

    def __init__(self):
        self._config: Optional[Config] = None

    def load_config(
        self,
        config_files: Optional[List[Union[str, Path]]] = None,
        **overrides: Any,
    ) -> Config:
        """
        Load configuration from multiple sources.

        Later files override earlier ones section by section.

        Args:
            config_files: List of configuration files to load
            **overrides: Configuration overrides

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If a file cannot be parsed or values are invalid
        """
        if self._config is not None:
            return self._config

        if config_files is None:
            config_files = DEFAULT_CONFIG_FILES

        config_data: Dict[str, Any] = {}

        for config_file in config_files:
            file_path = Path(os.path.expanduser(str(config_file)))
            if not file_path.exists():
                continue
            try:
                file_data = toml.load(file_path)
            except (toml.TomlDecodeError, OSError) as e:
                raise ConfigError(
                    f"Failed to load config from {file_path}: {e}",
                    error_code="CONFIG_PARSE",
                    details={"file": str(file_path)},
                )
            _merge(config_data, file_data)
            logger.debug(f"Loaded configuration from {file_path}")

        _merge(config_data, overrides)

        try:
            self._config = Config(**config_data)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid configuration: {e}",
                error_code="CONFIG_INVALID",
            )

        return self._config

    def get_config(self) -> Config:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_config(
        self,
        config_files: Optional[List[Union[str, Path]]] = None,
        **overrides: Any,
    ) -> Config:
        """Reload configuration."""
        self._config = None
        return self.load_config(config_files, **overrides)


def _merge(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    """Recursively merge ``source`` tables into ``target``."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value
