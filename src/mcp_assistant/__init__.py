"""
MCP Assistant - conversational assistant backed by MCP servers.

Tracks external capability providers (MCP servers and direct HTTP APIs),
resolves which capabilities are available and hands the matching tools
and instructions to an agent runtime.
"""

__version__ = "1.0.0"
__description__ = "Conversational assistant backed by MCP servers"

# Public API
from mcp_assistant.core.exceptions import AssistantError, ConfigError
from mcp_assistant.core.models import (
    CapabilityDomain,
    CapabilitySet,
    ProviderConfig,
    ProviderStatus,
)

__all__ = [
    "__version__",
    "__description__",
    "AssistantError",
    "ConfigError",
    "CapabilityDomain",
    "CapabilitySet",
    "ProviderConfig",
    "ProviderStatus",
]
