"""
AQICN (World Air Quality Index) tool.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from mcp_assistant.chat.messages import ERROR_MESSAGES
from mcp_assistant.core.exceptions import ProviderCallError
from mcp_assistant.tools.http import http_get
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.waqi.info"
DEFAULT_TIMEOUT = 10.0

# (upper AQI bound, level, health implications)
AQI_LEVELS = [
    (50, "Good",
     "Air quality is considered satisfactory, and air pollution poses little or no risk."),
    (100, "Moderate",
     "Air quality is acceptable for most people. However, sensitive individuals may "
     "experience minor symptoms."),
    (150, "Unhealthy for Sensitive Groups",
     "Members of sensitive groups may experience health effects. The general public is "
     "not likely to be affected."),
    (200, "Unhealthy",
     "Everyone may begin to experience health effects; members of sensitive groups may "
     "experience more serious health effects."),
    (300, "Very Unhealthy",
     "Health warnings of emergency conditions. The entire population is more likely to "
     "be affected."),
]
HAZARDOUS = (
    "Hazardous",
    "Health alert: everyone may experience more serious health effects. Avoid outdoor activities.",
)

POLLUTANTS = {
    "pm25": "PM2.5",
    "pm10": "PM10",
    "no2": "NO2",
    "so2": "SO2",
    "co": "CO",
    "o3": "O3",
}


def aqi_level(aqi: float) -> str:
    """AQI category name."""
    for bound, level, _ in AQI_LEVELS:
        if aqi <= bound:
            return level
    return HAZARDOUS[0]


def health_implications(aqi: float) -> str:
    for bound, _, implications in AQI_LEVELS:
        if aqi <= bound:
            return implications
    return HAZARDOUS[1]


def dominant_pollutant(pollutants: Dict[str, Optional[float]]) -> str:
    """Pollutant with the highest reading, defaulting to PM2.5."""
    dominant = "PM2.5"
    max_value = 0.0
    for key, value in pollutants.items():
        if isinstance(value, (int, float)) and value > max_value:
            max_value = value
            dominant = POLLUTANTS.get(key, key.upper())
    return dominant


def format_air_quality(data: Dict[str, Any]) -> str:
    """Render air quality data as display text."""
    lines = [
        f"Air Quality in {data['location']}:",
        f"🌬️ AQI: {data['aqi']} ({data['level']})",
        f"🏭 Dominant Pollutant: {data['dominant_pollutant']}",
        "📊 Pollutants:",
    ]
    for key, label in POLLUTANTS.items():
        value = data["pollutants"].get(key)
        if value:
            lines.append(f"  • {label}: {value} μg/m³")
    lines.append(f"💡 Health Implications: {data['health_implications']}")
    return "\n".join(lines)


def parse_feed(feed: Dict[str, Any]) -> Dict[str, Any]:
    """Convert an AQICN feed payload into display fields."""
    aqi = feed["aqi"]
    if not isinstance(aqi, (int, float)):
        # Stations without a current reading report "-".
        raise ValueError(f"no AQI reading ({aqi!r})")

    iaqi = feed.get("iaqi", {})
    pollutants = {key: iaqi.get(key, {}).get("v") for key in POLLUTANTS}

    return {
        "location": feed.get("city", {}).get("name", ""),
        "aqi": aqi,
        "level": aqi_level(aqi),
        "dominant_pollutant": dominant_pollutant(pollutants),
        "pollutants": pollutants,
        "health_implications": health_implications(aqi),
        "measured_at": feed.get("time", {}).get("s"),
    }


async def fetch_air_quality(
    location: str,
    token: Optional[str],
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    Fetch the current air quality for a location.

    Raises:
        ProviderCallError: On any failure
    """
    if not token:
        raise ProviderCallError(
            ERROR_MESSAGES["air_quality_key_missing"],
            kind=ProviderCallError.MISSING_CREDENTIAL,
            hint=ERROR_MESSAGES["air_quality_key_instructions"],
            hint_key="instructions",
        )
    if not location or not location.strip():
        raise ProviderCallError(
            ERROR_MESSAGES["location_not_found"],
            kind=ProviderCallError.NOT_FOUND,
            hint=ERROR_MESSAGES["location_suggestion"],
        )

    logger.debug(f"Fetching air quality data for: {location}")
    url = f"{base_url.rstrip('/')}/feed/{quote(location.strip(), safe='')}/"
    response = await http_get(url, {"token": token}, timeout, client, service="Air quality")

    if response.status_code == 401:
        raise ProviderCallError(
            ERROR_MESSAGES["air_quality_key_invalid"],
            kind=ProviderCallError.INVALID_CREDENTIAL,
            hint=ERROR_MESSAGES["air_quality_key_instructions"],
            hint_key="instructions",
            status_code=401,
        )
    if response.status_code == 404:
        raise ProviderCallError(
            ERROR_MESSAGES["location_not_found"],
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
        payload = response.json()
    except ValueError as e:
        raise ProviderCallError(
            ERROR_MESSAGES["fetch_error"],
            kind=ProviderCallError.FAILURE,
            raw=f"Unexpected response format: {e}",
        )

    if not isinstance(payload, dict):
        raise ProviderCallError(
            ERROR_MESSAGES["fetch_error"],
            kind=ProviderCallError.FAILURE,
            raw=f"Unexpected response format: {type(payload).__name__} body",
        )

    if payload.get("status") != "ok":
        # AQICN reports a bad token in-band with HTTP 200.
        if payload.get("data") == "Invalid key":
            raise ProviderCallError(
                ERROR_MESSAGES["air_quality_key_invalid"],
                kind=ProviderCallError.INVALID_CREDENTIAL,
                hint=ERROR_MESSAGES["air_quality_key_instructions"],
                hint_key="instructions",
            )
        raise ProviderCallError(
            ERROR_MESSAGES["location_not_found"],
            kind=ProviderCallError.NOT_FOUND,
            hint=ERROR_MESSAGES["location_suggestion"],
        )

    try:
        data = parse_feed(payload["data"])
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ProviderCallError(
            ERROR_MESSAGES["fetch_error"],
            kind=ProviderCallError.FAILURE,
            raw=f"Unexpected response format: {e}",
        )

    return {"success": True, "data": data, "formatted": format_air_quality(data)}


async def get_air_quality(location: str, token: Optional[str], **kwargs: Any) -> Dict[str, Any]:
    """Tool boundary: returns a success payload or a structured error."""
    try:
        return await fetch_air_quality(location, token, **kwargs)
    except ProviderCallError as e:
        logger.warning(f"Air quality lookup for '{location}' failed: {e}")
        return e.to_tool_result()
