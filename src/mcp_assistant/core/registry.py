"""
Provider registry.

Holds the static configuration and live status of every capability
provider known to a session. The registry is constructed explicitly and
passed by reference; it is never a process-wide singleton.
"""

import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from mcp_assistant.core.exceptions import (
    ConfigError,
    DuplicateProviderError,
    ProviderNotFoundError,
)
from mcp_assistant.core.models import CapabilityDomain, ProviderConfig, ProviderStatus
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)


class ServerRegistry:
    """Registry of capability providers keyed by name."""

    def __init__(self):
        # Dicts preserve insertion order, which is the registration order.
        self._configs: Dict[str, ProviderConfig] = {}
        self._statuses: Dict[str, ProviderStatus] = {}
        self._lock = threading.RLock()

    def register(self, name: str, config: ProviderConfig) -> None:
        """
        Register a provider.

        Args:
            name: Provider name (must equal ``config.name``)
            config: Provider configuration

        Raises:
            DuplicateProviderError: If the name is already registered
            ConfigError: If the name does not match the configuration
        """
        if name != config.name:
            raise ConfigError(
                f"Provider name '{name}' does not match configuration name '{config.name}'",
                error_code="PROVIDER_NAME_MISMATCH",
            )

        with self._lock:
            if name in self._configs:
                raise DuplicateProviderError(name)

            self._configs[name] = config
            self._statuses[name] = ProviderStatus(
                name=name,
                capabilities=list(config.capabilities),
            )

        logger.debug(f"Registered provider '{name}' ({config.transport.value})")

    def get_status(self, name: str) -> ProviderStatus:
        """
        Get a snapshot of a provider's status.

        Raises:
            ProviderNotFoundError: If the provider was never registered
        """
        with self._lock:
            status = self._statuses.get(name)
            if status is None:
                raise ProviderNotFoundError(name)
            return status.model_copy(deep=True)

    def get_config(self, name: str) -> ProviderConfig:
        """Get a provider's configuration."""
        with self._lock:
            config = self._configs.get(name)
        if config is None:
            raise ProviderNotFoundError(name)
        return config

    def list_all(self) -> List[Tuple[str, ProviderStatus]]:
        """List all providers with status snapshots, in registration order."""
        with self._lock:
            return [
                (name, status.model_copy(deep=True))
                for name, status in self._statuses.items()
            ]

    def set_connected(
        self,
        name: str,
        connected: bool,
        error: Optional[str] = None,
        capabilities: Optional[List[str]] = None,
    ) -> None:
        """
        Record the outcome of a connection attempt or teardown.

        Args:
            name: Provider name
            connected: New connection state
            error: Error message recorded when ``connected`` is False
            capabilities: Discovered operation names, replacing the current list

        Raises:
            ProviderNotFoundError: If the provider was never registered
        """
        with self._lock:
            status = self._statuses.get(name)
            if status is None:
                raise ProviderNotFoundError(name)

            status.connected = connected
            if connected:
                status.last_connected = datetime.now()
                status.last_error = None
            else:
                status.last_error = error
            if capabilities is not None:
                status.capabilities = list(capabilities)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._configs)

    def connected_names(self) -> List[str]:
        """Names of connected providers, in registration order."""
        with self._lock:
            return [name for name, s in self._statuses.items() if s.connected]

    def failed_names(self) -> List[str]:
        """Names of providers whose last attempt failed, in registration order."""
        with self._lock:
            return [
                name for name, s in self._statuses.items()
                if not s.connected and s.last_error
            ]

    def is_connected(self, name: str) -> bool:
        return self.get_status(name).connected

    def providers_for(self, domain: Optional[CapabilityDomain]) -> List[ProviderConfig]:
        """Provider configurations tagged with a domain (``None`` for untagged)."""
        with self._lock:
            return [c for c in self._configs.values() if c.domain == domain]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._configs

    def __len__(self) -> int:
        with self._lock:
            return len(self._configs)
