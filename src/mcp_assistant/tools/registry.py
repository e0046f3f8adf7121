"""
Wraps the direct-API tools as agent function tools.
"""

from typing import Any, Dict

from agents import function_tool

from mcp_assistant.core.models import CapabilityDomain
from mcp_assistant.tools import air_quality, weather
from mcp_assistant.utils.config import CredentialsConfig, ToolsConfig

WEATHER_TOOL_DESCRIPTION = "Get current weather information for a specific city or location"
AIR_QUALITY_TOOL_DESCRIPTION = (
    "Get current air quality conditions and health recommendations for a specific location"
)


def create_weather_tool(tools_config: ToolsConfig, api_key: str) -> Any:
    """Build the ``get_weather`` function tool bound to a key and settings."""

    async def get_weather(location: str) -> Dict[str, Any]:
        """
        Args:
            location: The city or location to get weather for (e.g. "New York", "London, UK", "Tokyo, Japan").
        """
        return await weather.get_weather(
            location,
            api_key,
            base_url=tools_config.weather_base_url,
            units=tools_config.units,
            timeout=tools_config.request_timeout,
        )

    return function_tool(
        get_weather,
        name_override="get_weather",
        description_override=WEATHER_TOOL_DESCRIPTION,
    )


def create_air_quality_tool(tools_config: ToolsConfig, token: str) -> Any:
    """Build the ``get_air_quality`` function tool bound to a token and settings."""

    async def get_air_quality(location: str) -> Dict[str, Any]:
        """
        Args:
            location: The city or location to get air quality for (e.g. "Beijing", "Delhi", "Los Angeles").
        """
        return await air_quality.get_air_quality(
            location,
            token,
            base_url=tools_config.air_quality_base_url,
            timeout=tools_config.request_timeout,
        )

    return function_tool(
        get_air_quality,
        name_override="get_air_quality",
        description_override=AIR_QUALITY_TOOL_DESCRIPTION,
    )


def create_direct_tools(tools_config: ToolsConfig, credentials: CredentialsConfig) -> Dict[CapabilityDomain, Any]:
    """Function tools for every direct-API domain that has a credential."""
    tools: Dict[CapabilityDomain, Any] = {}
    if credentials.openweather_api_key:
        tools[CapabilityDomain.WEATHER] = create_weather_tool(
            tools_config, credentials.openweather_api_key
        )
    if credentials.aqicn_api_key:
        tools[CapabilityDomain.AIR_QUALITY] = create_air_quality_tool(
            tools_config, credentials.aqicn_api_key
        )
    return tools
