"""
Capability resolution.

Derives which capability domains are available from live registry state
and configured credentials, selects the tools to hand to the agent and
builds the matching instruction text.
"""

from typing import Any, Dict, List, Optional, Sequence

from mcp_assistant.agent.instructions import DEFAULT_MAX_HISTORY, HistoryEntry, build_instructions
from mcp_assistant.core.models import CapabilityDomain, CapabilitySet, ToolHandle
from mcp_assistant.core.registry import ServerRegistry
from mcp_assistant.core.supervisor import ConnectionSupervisor
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)

# Direct-API domains and the credential field that enables each.
CREDENTIAL_FIELDS = {
    CapabilityDomain.WEATHER: "openweather_api_key",
    CapabilityDomain.AIR_QUALITY: "aqicn_api_key",
}

DIRECT_TOOL_NAMES = {
    CapabilityDomain.WEATHER: "get_weather",
    CapabilityDomain.AIR_QUALITY: "get_air_quality",
}


class CapabilityResolver:
    """Resolves capability availability, tool selection and instructions."""

    def __init__(
        self,
        registry: ServerRegistry,
        supervisor: ConnectionSupervisor,
        credentials: Any,
        direct_tools: Optional[Dict[CapabilityDomain, Any]] = None,
        max_history: int = DEFAULT_MAX_HISTORY,
    ):
        """
        Initialize the resolver.

        Args:
            registry: Provider registry read on every resolution
            supervisor: Supervisor holding live MCP connections
            credentials: Object exposing the API key attributes
            direct_tools: Function tool objects for direct-API domains
            max_history: History entries included in instructions
        """
        self.registry = registry
        self.supervisor = supervisor
        self.credentials = credentials
        self.direct_tools = dict(direct_tools or {})
        self.max_history = max_history

    def has_credential(self, domain: CapabilityDomain) -> bool:
        field_name = CREDENTIAL_FIELDS.get(domain)
        if field_name is None:
            return False
        return bool(getattr(self.credentials, field_name, None))

    def resolve(self, registry: Optional[ServerRegistry] = None) -> CapabilitySet:
        """
        Compute the current capability set.

        Weather and air quality are available when their credential is
        configured. Documentation is available when at least one provider
        tagged with that domain is connected. Nothing is cached.
        """
        registry = registry or self.registry

        documentation = any(
            registry.is_connected(config.name)
            for config in registry.providers_for(CapabilityDomain.DOCUMENTATION)
        )

        capability_set = CapabilitySet(
            weather=self.has_credential(CapabilityDomain.WEATHER),
            air_quality=self.has_credential(CapabilityDomain.AIR_QUALITY),
            documentation=documentation,
        )
        logger.debug(f"Resolved capabilities: {capability_set.as_dict()}")
        return capability_set

    def select_tools(self, capability_set: CapabilitySet) -> List[ToolHandle]:
        """
        Select tool handles for an enabled capability set.

        Order: direct-API tools in domain order, connected documentation
        providers, then connected untagged providers, each group in
        registration order.
        """
        handles: List[ToolHandle] = []

        for domain in (CapabilityDomain.WEATHER, CapabilityDomain.AIR_QUALITY):
            tool = self.direct_tools.get(domain)
            if capability_set[domain] and tool is not None:
                handles.append(
                    ToolHandle(ToolHandle.FUNCTION, DIRECT_TOOL_NAMES[domain], tool, domain)
                )

        if capability_set.documentation:
            handles.extend(self._mcp_handles(CapabilityDomain.DOCUMENTATION))

        handles.extend(self._mcp_handles(None))
        return handles

    def _mcp_handles(self, domain: Optional[CapabilityDomain]) -> List[ToolHandle]:
        handles = []
        for config in self.registry.providers_for(domain):
            connection = self.supervisor.get_connection(config.name)
            if connection is not None and self.registry.is_connected(config.name):
                handles.append(ToolHandle(ToolHandle.MCP, config.name, connection, domain))
        return handles

    def extra_providers(self) -> Dict[str, List[str]]:
        """Connected untagged providers mapped to their capability names."""
        extras = {}
        for config in self.registry.providers_for(None):
            status = self.registry.get_status(config.name)
            if status.connected:
                extras[config.name] = list(status.capabilities)
        return extras

    def build_instructions(
        self,
        capability_set: CapabilitySet,
        variant: str = "default",
        history: Optional[Sequence[HistoryEntry]] = None,
    ) -> str:
        """Build instruction text for a capability set."""
        return build_instructions(
            capability_set,
            variant=variant,
            history=history,
            max_history=self.max_history,
            extra_providers=self.extra_providers(),
        )
