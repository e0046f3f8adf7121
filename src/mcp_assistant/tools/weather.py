"""
OpenWeatherMap current weather tool.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx

from mcp_assistant.chat.messages import ERROR_MESSAGES
from mcp_assistant.core.exceptions import ProviderCallError
from mcp_assistant.tools.http import http_get
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.openweathermap.org/data/2.5"
DEFAULT_UNITS = "metric"
DEFAULT_TIMEOUT = 10.0


def format_temperature(value: float, units: str = DEFAULT_UNITS) -> str:
    """Format a temperature reading for the requested unit system."""
    if units == "imperial":
        return f"{round(value)}°F"
    if units == "standard":
        return f"{round(value)}K"
    fahrenheit = round(value * 9 / 5 + 32)
    return f"{round(value)}°C ({fahrenheit}°F)"


def _local_time(timestamp: Optional[int], offset_seconds: int) -> str:
    if not timestamp:
        return "N/A"
    tz = timezone(timedelta(seconds=offset_seconds))
    return datetime.fromtimestamp(timestamp, tz=tz).strftime("%H:%M")


def parse_weather(payload: Dict[str, Any], units: str = DEFAULT_UNITS) -> Dict[str, str]:
    """Convert an OpenWeatherMap response into display fields."""
    main = payload["main"]
    sys_info = payload.get("sys", {})
    offset = payload.get("timezone", 0)
    visibility = payload.get("visibility")
    speed_unit = "mph" if units == "imperial" else "m/s"

    location = payload["name"]
    if sys_info.get("country"):
        location = f"{location}, {sys_info['country']}"

    return {
        "location": location,
        "temperature": format_temperature(main["temp"], units),
        "description": payload["weather"][0]["description"],
        "humidity": f"{main['humidity']}%",
        "wind_speed": f"{payload.get('wind', {}).get('speed', 0)} {speed_unit}",
        "feels_like": format_temperature(main["feels_like"], units),
        "pressure": f"{main['pressure']} hPa",
        "visibility": f"{visibility / 1000:g} km" if visibility else "N/A",
        "cloudiness": f"{payload.get('clouds', {}).get('all', 0)}%",
        "sunrise": _local_time(sys_info.get("sunrise"), offset),
        "sunset": _local_time(sys_info.get("sunset"), offset),
    }


def summarize_weather(weather: Dict[str, str]) -> str:
    return (
        f"Current weather in {weather['location']}: {weather['temperature']}, "
        f"{weather['description']}. Feels like {weather['feels_like']}. "
        f"Humidity: {weather['humidity']}, Wind: {weather['wind_speed']}."
    )


async def fetch_weather(
    location: str,
    api_key: Optional[str],
    base_url: str = DEFAULT_BASE_URL,
    units: str = DEFAULT_UNITS,
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    Fetch current weather for a location.

    Args:
        location: City or location name
        api_key: OpenWeatherMap API key
        base_url: API base URL
        units: ``metric``, ``imperial`` or ``standard``
        timeout: Request timeout in seconds
        client: Optional shared HTTP client

    Returns:
        Success payload with ``data`` and ``summary``

    Raises:
        ProviderCallError: On any failure
    """
    if not api_key:
        raise ProviderCallError(
            ERROR_MESSAGES["weather_key_missing"],
            kind=ProviderCallError.MISSING_CREDENTIAL,
            hint=ERROR_MESSAGES["weather_key_instructions"],
            hint_key="instructions",
        )
    if not location or not location.strip():
        raise ProviderCallError(
            ERROR_MESSAGES["location_not_found"],
            kind=ProviderCallError.NOT_FOUND,
            hint=ERROR_MESSAGES["location_suggestion"],
        )

    logger.debug(f"Fetching weather data for: {location}")
    params = {"q": location.strip(), "appid": api_key, "units": units}
    response = await http_get(
        f"{base_url.rstrip('/')}/weather", params, timeout, client, service="Weather"
    )

    if response.status_code == 401:
        raise ProviderCallError(
            ERROR_MESSAGES["weather_key_invalid"],
            kind=ProviderCallError.INVALID_CREDENTIAL,
            hint=ERROR_MESSAGES["weather_key_instructions"],
            hint_key="instructions",
            status_code=401,
        )
    if response.status_code == 404:
        raise ProviderCallError(
            ERROR_MESSAGES["location_not_found"].replace("Location", f'Location "{location}"', 1),
            kind=ProviderCallError.NOT_FOUND,
            hint=ERROR_MESSAGES["location_suggestion"],
            status_code=404,
        )
    if response.is_error:
        raise ProviderCallError(
            ERROR_MESSAGES["fetch_error"],
            kind=ProviderCallError.FAILURE,
            raw=f"HTTP {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )

    try:
        weather = parse_weather(response.json(), units)
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        raise ProviderCallError(
            ERROR_MESSAGES["fetch_error"],
            kind=ProviderCallError.FAILURE,
            raw=f"Unexpected response format: {e}",
        )

    return {"success": True, "data": weather, "summary": summarize_weather(weather)}


async def get_weather(location: str, api_key: Optional[str], **kwargs: Any) -> Dict[str, Any]:
    """Tool boundary: returns a success payload or a structured error."""
    try:
        return await fetch_weather(location, api_key, **kwargs)
    except ProviderCallError as e:
        logger.warning(f"Weather lookup for '{location}' failed: {e}")
        return e.to_tool_result()
