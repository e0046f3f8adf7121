"""
Pytest configuration and fixtures for MCP Assistant testing.

Provides fake MCP connections injected through the supervisor's
connection factory, so no subprocess or network is ever touched.
"""

import asyncio
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from mcp_assistant.core.models import CapabilityDomain, ProviderConfig
from mcp_assistant.core.registry import ServerRegistry
from mcp_assistant.core.runtime import AssistantRuntime
from mcp_assistant.utils.config import Config, CredentialsConfig

CREDENTIAL_ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENWEATHER_API_KEY",
    "AQICN_API_KEY",
    "CONTEXT7_API_KEY",
]


class FakeConnection:
    """Stand-in for an MCP server client."""

    def __init__(
        self,
        name: str,
        fail: bool = False,
        delay: float = 0.0,
        tools: Optional[List[str]] = None,
        cleanup_fails: bool = False,
        list_tools_fails: bool = False,
        gate: Optional[asyncio.Event] = None,
    ):
        self.name = name
        self.fail = fail
        self.delay = delay
        self.tools = tools or []
        self.cleanup_fails = cleanup_fails
        self.list_tools_fails = list_tools_fails
        self.gate = gate
        self.connect_calls = 0
        self.cleanup_calls = 0

    async def connect(self):
        self.connect_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError(f"{self.name} unreachable")

    async def cleanup(self):
        self.cleanup_calls += 1
        if self.cleanup_fails:
            raise RuntimeError(f"{self.name} cleanup failed")

    async def list_tools(self):
        if self.list_tools_fails:
            raise ConnectionError(f"{self.name} transport closed")
        return [SimpleNamespace(name=tool) for tool in self.tools]


class FakeConnectionFactory:
    """Connection factory returning FakeConnection objects per provider."""

    def __init__(self, behaviors: Optional[Dict[str, Dict[str, Any]]] = None):
        self.behaviors = behaviors or {}
        self.created: Dict[str, List[FakeConnection]] = {}

    def __call__(self, config: ProviderConfig) -> FakeConnection:
        connection = FakeConnection(config.name, **self.behaviors.get(config.name, {}))
        self.created.setdefault(config.name, []).append(connection)
        return connection

    def last(self, name: str) -> FakeConnection:
        return self.created[name][-1]


def make_provider(
    name: str,
    domain: Optional[CapabilityDomain] = None,
    command: Optional[str] = None,
    **kwargs: Any,
) -> ProviderConfig:
    """Build a provider configuration for tests."""
    return ProviderConfig(name=name, command=command or f"npx -y {name}-mcp", domain=domain, **kwargs)


def make_credentials(**keys: Optional[str]) -> CredentialsConfig:
    """Credentials with every key explicitly set (absent keys are None)."""
    values = {
        "openai_api_key": None,
        "openweather_api_key": None,
        "aqicn_api_key": None,
        "context7_api_key": None,
    }
    values.update(keys)
    return CredentialsConfig(_env_file=None, **values)


def make_config(extra: Optional[List[Dict[str, Any]]] = None, documentation: bool = True, **keys: Optional[str]) -> Config:
    """Configuration with the given credentials and extra MCP servers."""
    return Config(
        credentials=make_credentials(**keys),
        providers={
            "documentation": {"enabled": documentation},
            "extra": extra or [],
            "connect_timeout": 1.0,
        },
    )


def make_runtime(behaviors=None, extra=None, direct_tools=None, **keys) -> AssistantRuntime:
    """Runtime wired to fake connections and no real function tools."""
    return AssistantRuntime(
        make_config(extra=extra, **keys),
        connection_factory=FakeConnectionFactory(behaviors),
        direct_tools=direct_tools if direct_tools is not None else {},
    )


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep real credentials and config files out of tests."""
    for var in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture
def registry():
    """Empty provider registry."""
    return ServerRegistry()


@pytest.fixture
def docs_registry():
    """Registry with a documentation provider and an untagged extra provider."""
    reg = ServerRegistry()
    reg.register("context7", make_provider(
        "context7",
        domain=CapabilityDomain.DOCUMENTATION,
        capabilities=["resolve_library_id", "get_library_docs"],
    ))
    reg.register("filesystem", make_provider("filesystem", capabilities=["read_file"]))
    return reg


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
