"""
Data models for MCP Assistant.

Defines Pydantic models for capability providers, their live status,
derived capability sets and the payload handed to the agent runtime.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CapabilityDomain(str, Enum):
    """Capability domains, in declaration order."""

    WEATHER = "weather"
    AIR_QUALITY = "air_quality"
    DOCUMENTATION = "documentation"


class ProviderTransport(str, Enum):
    """How a provider's launch directive is interpreted."""

    STDIO = "stdio"                      # Command line spawned as a subprocess
    STREAMABLE_HTTP = "streamable_http"  # Remote MCP endpoint URL


class ProviderState(str, Enum):
    """Provider connection lifecycle state."""

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class ProviderConfig(BaseModel):
    """Static description of one capability provider."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Logical provider name (unique key)")
    command: str = Field(description="Launch command line or MCP endpoint URL")
    domain: Optional[CapabilityDomain] = Field(
        default=None,
        description="Capability domain this provider backs, if any",
    )
    description: Optional[str] = Field(default=None, description="Provider description")
    capabilities: List[str] = Field(default_factory=list, description="Declared operations")
    env: Dict[str, str] = Field(default_factory=dict, description="Environment for spawned processes")
    timeout: Optional[float] = Field(
        default=None,
        description="Connect timeout in seconds (overrides the global default)",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate provider name."""
        if not v.strip():
            raise ValueError("Provider name cannot be empty")
        if len(v) > 100:
            raise ValueError("Provider name too long (max 100 characters)")
        return v.strip()

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        """Validate launch directive."""
        if not v.strip():
            raise ValueError("Provider command cannot be empty")
        return v.strip()

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Validate timeout is positive."""
        if v is not None and v <= 0:
            raise ValueError("Provider timeout must be positive")
        return v

    @property
    def transport(self) -> ProviderTransport:
        """Transport inferred from the launch directive."""
        if self.command.startswith(("http://", "https://")):
            return ProviderTransport.STREAMABLE_HTTP
        return ProviderTransport.STDIO

    def __str__(self) -> str:
        """String representation."""
        return f"{self.name} ({self.transport.value})"


class ProviderStatus(BaseModel):
    """Mutable status record for one provider, owned by the registry."""

    name: str = Field(description="Provider name")
    connected: bool = Field(default=False, description="Whether the provider is connected")
    last_connected: Optional[datetime] = Field(default=None, description="Last successful connect")
    last_error: Optional[str] = Field(default=None, description="Last error message")
    capabilities: List[str] = Field(default_factory=list, description="Known operations")

    @property
    def state(self) -> ProviderState:
        """Settled lifecycle state (CONNECTING is only known to the supervisor)."""
        if self.connected:
            return ProviderState.CONNECTED
        if self.last_error:
            return ProviderState.FAILED
        return ProviderState.UNCONNECTED


class CapabilitySet(BaseModel):
    """Capability availability derived from registry state and credentials."""

    model_config = ConfigDict(frozen=True)

    weather: bool = Field(default=False, description="Weather data available")
    air_quality: bool = Field(default=False, description="Air quality data available")
    documentation: bool = Field(default=False, description="Documentation lookup available")

    def __getitem__(self, domain: Union[CapabilityDomain, str]) -> bool:
        return bool(getattr(self, CapabilityDomain(domain).value))

    def enabled_domains(self) -> List[CapabilityDomain]:
        """Enabled domains in declaration order."""
        return [domain for domain in CapabilityDomain if self[domain]]

    def as_dict(self) -> Dict[str, bool]:
        return {domain.value: self[domain] for domain in CapabilityDomain}

    @property
    def any_enabled(self) -> bool:
        return bool(self.enabled_domains())


class ConnectionReport(BaseModel):
    """Outcome of a batch connect."""

    connected: List[str] = Field(default_factory=list, description="Providers now connected")
    failed: List[str] = Field(default_factory=list, description="Providers that failed")
    errors: Dict[str, str] = Field(default_factory=dict, description="Error message per failed provider")


class DisconnectReport(BaseModel):
    """Outcome of a batch disconnect."""

    disconnected: List[str] = Field(default_factory=list, description="Providers torn down")
    failed: List[str] = Field(default_factory=list, description="Providers that failed to close")
    errors: Dict[str, str] = Field(default_factory=dict, description="Error message per failed provider")


class ChatMessage(BaseModel):
    """One entry of the conversation history."""

    role: str = Field(description="Message role (user, assistant or system)")
    content: str = Field(description="Message text")
    timestamp: datetime = Field(default_factory=datetime.now, description="Creation time")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Extra details")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        """Validate message role."""
        if v not in ("user", "assistant", "system"):
            raise ValueError(f"Invalid message role: {v}")
        return v


@dataclass(frozen=True)
class ToolHandle:
    """A tool or MCP connection handed to the agent runtime."""

    kind: str  # "function" or "mcp"
    name: str
    target: Any
    domain: Optional[CapabilityDomain] = None

    FUNCTION = "function"
    MCP = "mcp"


@dataclass
class AgentSpec:
    """Everything the external runtime needs to construct an agent."""

    name: str
    variant: str
    instructions: str
    capabilities: CapabilitySet
    tools: List[ToolHandle] = field(default_factory=list)
    model: str = "gpt-4.1-mini"
    temperature: float = 0.45
    tool_choice: Optional[str] = "auto"

    @property
    def function_tools(self) -> List[Any]:
        return [t.target for t in self.tools if t.kind == ToolHandle.FUNCTION]

    @property
    def mcp_servers(self) -> List[Any]:
        return [t.target for t in self.tools if t.kind == ToolHandle.MCP]

    @property
    def tool_names(self) -> List[str]:
        return [t.name for t in self.tools]
