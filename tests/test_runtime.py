"""
Test the assistant runtime and agent construction.
"""

import pytest
from agents import Agent

from conftest import make_config, make_runtime
from mcp_assistant.agent.classifier import classify_query
from mcp_assistant.agent.instructions import CHAT_PERSONA
from mcp_assistant.core.exceptions import ConfigError
from mcp_assistant.core.models import CapabilityDomain, ProviderState
from mcp_assistant.core.runtime import AssistantRuntime

FILESYSTEM = {"name": "filesystem", "command": "npx -y fs-mcp", "capabilities": ["read_file"]}

WEATHER_TOOL = object()


class TestAssistantRuntime:
    """Test AssistantRuntime lifecycle."""

    def test_registers_configured_providers(self):
        runtime = make_runtime(extra=[FILESYSTEM])

        assert runtime.registry.names() == ["context7", "filesystem"]
        assert runtime.registry.get_config("context7").domain == CapabilityDomain.DOCUMENTATION
        assert runtime.supervisor.timeout == 1.0
        assert runtime.started is False

    def test_duplicate_provider_names(self):
        config = make_config(extra=[dict(FILESYSTEM, name="context7")])

        with pytest.raises(ConfigError):
            AssistantRuntime(config, direct_tools={})

    def test_default_direct_tools_follow_credentials(self):
        runtime = AssistantRuntime(make_config(documentation=False, openweather_api_key="w"))
        assert list(runtime.resolver.direct_tools) == [CapabilityDomain.WEATHER]

    @pytest.mark.asyncio
    async def test_context_manager(self):
        runtime = make_runtime(extra=[FILESYSTEM])

        async with runtime:
            assert runtime.started is True
            assert runtime.registry.connected_names() == ["context7", "filesystem"]

        assert runtime.started is False
        assert runtime.registry.connected_names() == []
        assert runtime.registry.get_status("context7").state == ProviderState.UNCONNECTED

    @pytest.mark.asyncio
    async def test_start_with_failures(self):
        runtime = make_runtime({"context7": {"fail": True}}, extra=[FILESYSTEM])

        report = await runtime.start()
        try:
            assert report.connected == ["filesystem"]
            assert report.failed == ["context7"]
            assert runtime.resolver.resolve().documentation is False
        finally:
            await runtime.close()


class TestAgentFactory:
    """Test AgentFactory spec and agent construction."""

    @pytest.mark.asyncio
    async def test_default_spec(self):
        runtime = make_runtime(
            extra=[FILESYSTEM],
            direct_tools={CapabilityDomain.WEATHER: WEATHER_TOOL},
            openweather_api_key="w",
        )
        await runtime.start()

        spec = runtime.factory.build_spec()

        assert spec.variant == "default"
        assert spec.name == "MCP Assistant"
        assert spec.model == "gpt-4.1-mini"
        assert spec.tool_names == ["get_weather", "context7", "filesystem"]
        assert spec.function_tools == [WEATHER_TOOL]
        assert spec.capabilities.weather is True
        assert spec.capabilities.documentation is True
        assert "### 🌤️ Weather" in spec.instructions
        await runtime.close()

    @pytest.mark.asyncio
    async def test_variant_narrows_tools(self):
        runtime = make_runtime(
            extra=[FILESYSTEM],
            direct_tools={CapabilityDomain.WEATHER: WEATHER_TOOL},
            openweather_api_key="w",
        )
        await runtime.start()

        spec = runtime.factory.build_spec(variant="weather")

        assert spec.tool_names == ["get_weather", "filesystem"]
        assert "📚 Documentation" not in spec.instructions
        await runtime.close()

    @pytest.mark.asyncio
    async def test_chat_variant_has_no_tools(self):
        runtime = make_runtime(extra=[FILESYSTEM])
        await runtime.start()

        spec = runtime.factory.build_spec(variant="chat")

        assert spec.tools == []
        assert spec.instructions == CHAT_PERSONA
        await runtime.close()

    def test_nothing_available_is_general_chat(self):
        runtime = make_runtime()

        spec = runtime.factory.build_spec()

        assert spec.tools == []
        assert spec.instructions == CHAT_PERSONA

    def test_custom_instructions(self):
        runtime = make_runtime()
        spec = runtime.factory.build_spec(custom_instructions="Be terse.")
        assert spec.instructions == "Be terse."

    @pytest.mark.asyncio
    async def test_classification_overrides_variant(self):
        runtime = make_runtime(
            direct_tools={CapabilityDomain.WEATHER: WEATHER_TOOL},
            openweather_api_key="w",
        )
        await runtime.start()

        spec = runtime.factory.build_spec(
            variant="documentation",
            classification=classify_query("What's the weather in London?"),
        )

        assert spec.variant == "weather"
        assert spec.tool_names == ["get_weather"]
        assert "The user is asking about: London" in spec.instructions
        await runtime.close()

    @pytest.mark.asyncio
    async def test_create_agent(self):
        runtime = make_runtime()
        await runtime.start()
        spec = runtime.factory.build_spec(variant="documentation")

        agent = runtime.factory.create_agent(spec)

        assert isinstance(agent, Agent)
        assert agent.name == "MCP Assistant"
        assert agent.instructions == spec.instructions
        assert agent.model == "gpt-4.1-mini"
        assert agent.mcp_servers == [runtime.supervisor.get_connection("context7")]
        assert agent.model_settings.temperature == 0.45
        assert agent.model_settings.tool_choice == "auto"
        await runtime.close()

    def test_create_agent_without_tools(self):
        runtime = make_runtime()
        agent = runtime.factory.create_agent(runtime.factory.build_spec())

        assert agent.tools == []
        assert agent.mcp_servers == []
        assert agent.model_settings.tool_choice is None

    @pytest.mark.asyncio
    async def test_debug_instructions(self):
        """Debug mode dumps provider status and capabilities into the instructions."""
        runtime = make_runtime({"context7": {"fail": True}}, extra=[FILESYSTEM])
        await runtime.start()

        spec = runtime.factory.build_spec(variant="documentation", debug=True, user_query="react hooks?")

        assert spec.variant == "documentation"
        assert spec.tool_names == ["filesystem"]
        assert "## Debug Mode" in spec.instructions
        assert '"last_error": "context7 unreachable"' in spec.instructions
        assert '"documentation": false' in spec.instructions
        assert "- User Query: react hooks?" in spec.instructions
        await runtime.close()

    def test_custom_instructions_win_over_debug(self):
        runtime = make_runtime()
        spec = runtime.factory.build_spec(custom_instructions="Be terse.", debug=True)
        assert spec.instructions == "Be terse."
