"""
Assistant runtime.

Owns one session's registry, supervisor, resolver and agent factory. The
runtime is constructed at session start and closed at session end; there
is no process-wide provider state.
"""

from functools import partial
from typing import Any, Dict, Optional

from mcp_assistant.agent.factory import AgentFactory
from mcp_assistant.core.models import CapabilityDomain, ConnectionReport, DisconnectReport
from mcp_assistant.core.registry import ServerRegistry
from mcp_assistant.core.resolver import CapabilityResolver
from mcp_assistant.core.supervisor import ConnectionFactory, ConnectionSupervisor, create_mcp_connection
from mcp_assistant.tools.registry import create_direct_tools
from mcp_assistant.utils.config import Config
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)


class AssistantRuntime:
    """Top-level owner of provider state for one session."""

    def __init__(
        self,
        config: Config,
        connection_factory: Optional[ConnectionFactory] = None,
        direct_tools: Optional[Dict[CapabilityDomain, Any]] = None,
    ):
        """
        Build the registry from configuration and wire up collaborators.

        Args:
            config: Loaded configuration
            connection_factory: Override for building MCP connections
            direct_tools: Override for direct-API function tools

        Raises:
            ConfigError: If two providers share a name
        """
        self.config = config
        self.registry = ServerRegistry()
        for provider in config.provider_configs():
            self.registry.register(provider.name, provider)

        if connection_factory is None:
            connection_factory = partial(
                create_mcp_connection,
                session_timeout=config.providers.session_timeout,
            )

        self.supervisor = ConnectionSupervisor(
            self.registry,
            connection_factory=connection_factory,
            timeout=config.providers.connect_timeout,
            concurrent=config.providers.concurrent,
            discover_capabilities=config.providers.discover_capabilities,
        )

        if direct_tools is None:
            direct_tools = create_direct_tools(config.tools, config.credentials)

        self.resolver = CapabilityResolver(
            self.registry,
            self.supervisor,
            config.credentials,
            direct_tools=direct_tools,
            max_history=config.agent.max_history,
        )
        self.factory = AgentFactory(config.agent, self.resolver)
        self._started = False

        logger.debug(f"Runtime initialized with {len(self.registry)} provider(s)")

    async def start(self) -> ConnectionReport:
        """Connect every registered provider."""
        report = await self.supervisor.connect_all()
        self._started = True
        return report

    async def close(self) -> DisconnectReport:
        """Disconnect every live provider."""
        report = await self.supervisor.disconnect_all()
        self._started = False
        return report

    @property
    def started(self) -> bool:
        return self._started

    async def __aenter__(self) -> "AssistantRuntime":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
