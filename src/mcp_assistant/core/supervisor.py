"""
Connection supervision for MCP capability providers.

Drives connect and disconnect for every registered provider. Each attempt
is bounded by a timeout and failures are recorded on the provider status
instead of being raised, so one unreachable provider never prevents the
others from coming up.
"""

import asyncio
import shlex
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from agents.mcp import MCPServerStdio, MCPServerStreamableHttp

from mcp_assistant.core.exceptions import ProviderConnectionError, ProviderNotFoundError
from mcp_assistant.core.models import (
    ConnectionReport,
    DisconnectReport,
    ProviderConfig,
    ProviderState,
    ProviderTransport,
)
from mcp_assistant.core.registry import ServerRegistry
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)

ConnectionFactory = Callable[[ProviderConfig], Any]

DEFAULT_CONNECT_TIMEOUT = 30.0


def create_mcp_connection(config: ProviderConfig, session_timeout: float = 10.0) -> Any:
    """
    Build an (unconnected) MCP client for a provider.

    Command lines are spawned over stdio; URLs use the streamable HTTP
    transport.

    Args:
        config: Provider configuration
        session_timeout: Per-request read timeout for the MCP session

    Returns:
        MCP server object exposing ``connect``, ``cleanup`` and ``list_tools``
    """
    if config.transport == ProviderTransport.STREAMABLE_HTTP:
        return MCPServerStreamableHttp(
            params={"url": config.command},
            name=config.name,
            client_session_timeout_seconds=session_timeout,
        )

    parts = shlex.split(config.command)
    params: Dict[str, Any] = {"command": parts[0], "args": parts[1:]}
    if config.env:
        params["env"] = dict(config.env)

    return MCPServerStdio(
        params=params,
        name=config.name,
        client_session_timeout_seconds=session_timeout,
    )


class ConnectionSupervisor:
    """Connects, monitors and tears down registered providers."""

    def __init__(
        self,
        registry: ServerRegistry,
        connection_factory: Optional[ConnectionFactory] = None,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
        concurrent: bool = False,
        discover_capabilities: bool = False,
    ):
        """
        Initialize the supervisor.

        Args:
            registry: Registry whose providers are supervised
            connection_factory: Builds a connection object for a provider
            timeout: Default per-provider connect timeout in seconds
            concurrent: Attempt all connects at once instead of one by one
            discover_capabilities: Replace declared capabilities with the
                tool names a provider reports after connecting
        """
        self.registry = registry
        self.connection_factory = connection_factory or create_mcp_connection
        self.timeout = timeout
        self.concurrent = concurrent
        self.discover_capabilities = discover_capabilities

        self._connections: Dict[str, Any] = {}
        self._connecting: Set[str] = set()

    async def connect_all(self) -> ConnectionReport:
        """
        Attempt to connect every registered provider.

        Never raises for provider failures; each failure is recorded on the
        provider's status and reported in the result.
        """
        names = [name for name in self.registry.names() if name not in self._connections]
        return await self._connect_many(names)

    async def reconnect_failed(self) -> ConnectionReport:
        """Retry only providers whose last attempt failed."""
        names = [
            name for name in self.registry.failed_names()
            if name not in self._connections
        ]
        if names:
            logger.info(f"Reconnecting {len(names)} failed provider(s)")
        return await self._connect_many(names)

    async def connect(self, name: str) -> bool:
        """
        Connect a single provider.

        Returns:
            True if the provider is connected afterwards

        Raises:
            ProviderNotFoundError: If the provider was never registered
        """
        config = self.registry.get_config(name)
        if name in self._connections:
            return True

        outcome = await self._attempt(config)
        self._apply_outcome(name, outcome, ConnectionReport())
        return name in self._connections

    async def _connect_many(self, names: List[str]) -> ConnectionReport:
        report = ConnectionReport()
        if not names:
            return report

        configs = [self.registry.get_config(name) for name in names]
        if self.concurrent:
            outcomes = await asyncio.gather(*(self._attempt(c) for c in configs))
        else:
            outcomes = []
            for config in configs:
                outcomes.append(await self._attempt(config))

        # Outcomes are applied in registration order through the registry mutator.
        for name, outcome in zip(names, outcomes):
            self._apply_outcome(name, outcome, report)

        logger.info(
            f"Provider connections: {len(report.connected)} connected, "
            f"{len(report.failed)} failed"
        )
        return report

    async def _attempt(
        self, config: ProviderConfig
    ) -> Tuple[Any, Optional[List[str]], Optional[ProviderConnectionError]]:
        """Run one bounded connect attempt. Returns (connection, capabilities, error)."""
        name = config.name
        timeout = config.timeout or self.timeout
        connection = None

        self._connecting.add(name)
        logger.debug(f"Connecting to provider '{name}' (timeout {timeout:g}s)")
        try:
            connection = self.connection_factory(config)
            await asyncio.wait_for(connection.connect(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._cleanup_quietly(name, connection)
            return None, None, ProviderConnectionError(
                name,
                f"Connection to '{name}' timed out after {timeout:g}s",
                timed_out=True,
            )
        except Exception as e:
            await self._cleanup_quietly(name, connection)
            return None, None, ProviderConnectionError(name, str(e) or type(e).__name__)
        finally:
            self._connecting.discard(name)

        capabilities = None
        if self.discover_capabilities:
            capabilities = await self._discover(name, connection, timeout)
        return connection, capabilities, None

    def _apply_outcome(
        self,
        name: str,
        outcome: Tuple[Any, Optional[List[str]], Optional[ProviderConnectionError]],
        report: ConnectionReport,
    ) -> None:
        connection, capabilities, error = outcome
        if error is None:
            self._connections[name] = connection
            self.registry.set_connected(name, True, capabilities=capabilities)
            report.connected.append(name)
            logger.info(f"Connected to provider '{name}'")
        else:
            self.registry.set_connected(name, False, error=error.message)
            report.failed.append(name)
            report.errors[name] = error.message
            logger.warning(f"Failed to connect to provider '{name}': {error.message}")

    async def _discover(self, name: str, connection: Any, timeout: float) -> Optional[List[str]]:
        """List a connected provider's tools. Failure keeps the declared capabilities."""
        try:
            tools = await asyncio.wait_for(connection.list_tools(), timeout=timeout)
        except Exception as e:
            logger.warning(f"Capability discovery failed for '{name}': {e}")
            return None
        return [tool.name for tool in tools]

    async def _cleanup_quietly(self, name: str, connection: Any) -> Optional[str]:
        """Best-effort teardown. Returns the error message if cleanup failed."""
        if connection is None:
            return None
        try:
            await asyncio.wait_for(connection.cleanup(), timeout=self.timeout)
        except Exception as e:
            logger.debug(f"Cleanup of provider '{name}' failed: {e}")
            return str(e) or type(e).__name__
        return None

    async def disconnect(self, name: str) -> bool:
        """
        Tear down one provider's connection.

        Returns:
            True if a live connection was closed cleanly
        """
        if name not in self.registry:
            raise ProviderNotFoundError(name)

        connection = self._connections.pop(name, None)
        if connection is None:
            return False

        error = await self._cleanup_quietly(name, connection)
        self.registry.set_connected(name, False, error=error)
        if error:
            logger.warning(f"Error disconnecting provider '{name}': {error}")
            return False
        logger.info(f"Disconnected provider '{name}'")
        return True

    async def disconnect_all(self) -> DisconnectReport:
        """
        Tear down every live connection.

        A teardown failure for one provider never prevents the others from
        being closed.
        """
        report = DisconnectReport()
        for name in [n for n in self.registry.names() if n in self._connections]:
            connection = self._connections.pop(name)
            error = await self._cleanup_quietly(name, connection)
            self.registry.set_connected(name, False, error=error)
            if error:
                report.failed.append(name)
                report.errors[name] = error
                logger.warning(f"Error disconnecting provider '{name}': {error}")
            else:
                report.disconnected.append(name)

        if report.disconnected or report.failed:
            logger.info(f"Disconnected {len(report.disconnected)} provider(s)")
        return report

    async def handle_transport_failure(self, name: str, error: BaseException) -> None:
        """Drop a connection whose transport failed mid-session and mark it failed."""
        connection = self._connections.pop(name, None)
        await self._cleanup_quietly(name, connection)
        message = str(error) or type(error).__name__
        self.registry.set_connected(name, False, error=message)
        logger.warning(f"Provider '{name}' transport failed: {message}")

    async def check_connections(self) -> List[str]:
        """
        Health-check every connected provider by listing its tools.

        Returns:
            Names of providers that failed the health check and were marked failed
        """
        failed = []
        for name in [n for n in self.registry.names() if n in self._connections]:
            connection = self._connections[name]
            try:
                await asyncio.wait_for(connection.list_tools(), timeout=self.timeout)
            except Exception as e:
                await self.handle_transport_failure(name, e)
                failed.append(name)
            else:
                logger.debug(f"Health check passed for '{name}'")
        return failed

    def state_of(self, name: str) -> ProviderState:
        """Lifecycle state including in-flight attempts."""
        if name in self._connecting:
            return ProviderState.CONNECTING
        return self.registry.get_status(name).state

    def get_connection(self, name: str) -> Optional[Any]:
        """Live connection for a provider, if connected."""
        return self._connections.get(name)

    @property
    def connections(self) -> Dict[str, Any]:
        """Live connections in registration order."""
        return {n: self._connections[n] for n in self.registry.names() if n in self._connections}
