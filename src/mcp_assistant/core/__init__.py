"""Core provider tracking functionality."""

from mcp_assistant.core.exceptions import (
    AssistantError,
    ConfigError,
    DuplicateProviderError,
    ProviderCallError,
    ProviderConnectionError,
    ProviderNotFoundError,
    RuntimeExecutionError,
)
from mcp_assistant.core.models import CapabilityDomain, CapabilitySet, ProviderConfig, ProviderStatus
from mcp_assistant.core.registry import ServerRegistry
from mcp_assistant.core.supervisor import ConnectionSupervisor

__all__ = [
    "AssistantError",
    "ConfigError",
    "DuplicateProviderError",
    "ProviderCallError",
    "ProviderConnectionError",
    "ProviderNotFoundError",
    "RuntimeExecutionError",
    "CapabilityDomain",
    "CapabilitySet",
    "ProviderConfig",
    "ProviderStatus",
    "ServerRegistry",
    "ConnectionSupervisor",
]
