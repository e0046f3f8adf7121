"""
Test the direct-API weather and air quality tools.

HTTP traffic is served by httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest

from conftest import make_credentials
from mcp_assistant.chat.messages import ERROR_MESSAGES
from mcp_assistant.core.exceptions import ProviderCallError
from mcp_assistant.core.models import CapabilityDomain
from mcp_assistant.tools import air_quality, weather
from mcp_assistant.tools.registry import create_direct_tools
from mcp_assistant.utils.config import ToolsConfig

WEATHER_PAYLOAD = {
    "name": "London",
    "sys": {"country": "GB", "sunrise": 1700000000, "sunset": 1700030000},
    "timezone": 0,
    "main": {"temp": 12.3, "feels_like": 10.8, "humidity": 81, "pressure": 1012},
    "weather": [{"description": "light rain"}],
    "wind": {"speed": 4.1},
    "visibility": 10000,
    "clouds": {"all": 75},
}

FEED_PAYLOAD = {
    "status": "ok",
    "data": {
        "aqi": 155,
        "city": {"name": "Beijing"},
        "iaqi": {"pm25": {"v": 155}, "pm10": {"v": 60}, "o3": {"v": 20}},
        "time": {"s": "2024-01-01 12:00:00"},
    },
}


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def respond(status_code=200, json=None, text=None, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        if json is not None:
            return httpx.Response(status_code, json=json)
        return httpx.Response(status_code, text=text or "")
    return handler


def fail_with(exc_type):
    def handler(request):
        raise exc_type("transport broke", request=request)
    return handler


class TestWeatherFormatting:
    """Test weather parsing helpers."""

    @pytest.mark.parametrize("units,expected", [
        ("metric", "12°C (54°F)"),
        ("imperial", "12°F"),
        ("standard", "12K"),
    ])
    def test_format_temperature(self, units, expected):
        assert weather.format_temperature(12.3, units) == expected

    def test_parse_weather(self):
        data = weather.parse_weather(WEATHER_PAYLOAD)

        assert data == {
            "location": "London, GB",
            "temperature": "12°C (54°F)",
            "description": "light rain",
            "humidity": "81%",
            "wind_speed": "4.1 m/s",
            "feels_like": "11°C (51°F)",
            "pressure": "1012 hPa",
            "visibility": "10 km",
            "cloudiness": "75%",
            "sunrise": "22:13",
            "sunset": "06:33",
        }

    def test_parse_weather_missing_optional_fields(self):
        payload = {
            "name": "Nowhere",
            "main": {"temp": 0, "feels_like": 0, "humidity": 50, "pressure": 1000},
            "weather": [{"description": "clear sky"}],
        }

        data = weather.parse_weather(payload, units="imperial")

        assert data["location"] == "Nowhere"
        assert data["visibility"] == "N/A"
        assert data["sunrise"] == "N/A"
        assert data["wind_speed"] == "0 mph"


class TestFetchWeather:
    """Test weather.fetch_weather and the get_weather boundary."""

    @pytest.mark.asyncio
    async def test_success(self):
        seen = []
        async with mock_client(respond(json=WEATHER_PAYLOAD, seen=seen)) as client:
            result = await weather.fetch_weather("London", "key", client=client)

        assert result["success"] is True
        assert result["data"]["location"] == "London, GB"
        assert result["summary"] == (
            "Current weather in London, GB: 12°C (54°F), light rain. "
            "Feels like 11°C (51°F). Humidity: 81%, Wind: 4.1 m/s."
        )

        request = seen[0]
        assert request.url.path == "/data/2.5/weather"
        assert request.url.params["q"] == "London"
        assert request.url.params["appid"] == "key"
        assert request.url.params["units"] == "metric"

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_request(self):
        seen = []
        async with mock_client(respond(json=WEATHER_PAYLOAD, seen=seen)) as client:
            result = await weather.get_weather("London", None, client=client)

        assert seen == []
        assert result == {
            "error": ERROR_MESSAGES["weather_key_missing"],
            "instructions": ERROR_MESSAGES["weather_key_instructions"],
        }

    @pytest.mark.asyncio
    async def test_invalid_key(self):
        async with mock_client(respond(401, json={"cod": 401})) as client:
            with pytest.raises(ProviderCallError) as exc_info:
                await weather.fetch_weather("London", "bad", client=client)

        error = exc_info.value
        assert error.kind == ProviderCallError.INVALID_CREDENTIAL
        assert error.status_code == 401
        assert error.to_tool_result()["instructions"] == ERROR_MESSAGES["weather_key_instructions"]

    @pytest.mark.asyncio
    async def test_location_not_found(self):
        async with mock_client(respond(404, json={"cod": "404"})) as client:
            result = await weather.get_weather("Atlantis", "key", client=client)

        assert result["error"] == 'Location "Atlantis" not found. Please check the spelling and try again.'
        assert result["suggestion"] == ERROR_MESSAGES["location_suggestion"]

    @pytest.mark.asyncio
    async def test_empty_location(self):
        result = await weather.get_weather("  ", "key")
        assert result["error"] == ERROR_MESSAGES["location_not_found"]

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with mock_client(respond(500, text="boom")) as client:
            result = await weather.get_weather("London", "key", client=client)

        assert result == {"error": ERROR_MESSAGES["fetch_error"], "details": "HTTP 500: boom"}

    @pytest.mark.asyncio
    async def test_timeout(self):
        async with mock_client(fail_with(httpx.ReadTimeout)) as client:
            result = await weather.get_weather("London", "key", client=client)

        assert result["error"] == "Weather service request timed out. Please try again."
        assert result["details"] == "transport broke"

    @pytest.mark.asyncio
    async def test_network_error(self):
        async with mock_client(fail_with(httpx.ConnectError)) as client:
            with pytest.raises(ProviderCallError) as exc_info:
                await weather.fetch_weather("London", "key", client=client)

        assert exc_info.value.kind == ProviderCallError.FETCH_ERROR
        assert exc_info.value.message == ERROR_MESSAGES["fetch_error"]

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        async with mock_client(respond(json={"unexpected": True})) as client:
            result = await weather.get_weather("London", "key", client=client)

        assert result["error"] == ERROR_MESSAGES["fetch_error"]
        assert result["details"].startswith("Unexpected response format")


class TestAirQualityFormatting:
    """Test AQI helpers."""

    @pytest.mark.parametrize("aqi,level", [
        (0, "Good"),
        (50, "Good"),
        (51, "Moderate"),
        (150, "Unhealthy for Sensitive Groups"),
        (200, "Unhealthy"),
        (300, "Very Unhealthy"),
        (301, "Hazardous"),
    ])
    def test_aqi_level(self, aqi, level):
        assert air_quality.aqi_level(aqi) == level

    def test_health_implications(self):
        assert air_quality.health_implications(10).startswith("Air quality is considered satisfactory")
        assert air_quality.health_implications(500).startswith("Health alert")

    def test_dominant_pollutant(self):
        assert air_quality.dominant_pollutant({"pm25": 30, "pm10": 80, "no2": None}) == "PM10"
        assert air_quality.dominant_pollutant({"pm25": None}) == "PM2.5"

    def test_parse_feed(self):
        data = air_quality.parse_feed(FEED_PAYLOAD["data"])

        assert data["location"] == "Beijing"
        assert data["aqi"] == 155
        assert data["level"] == "Unhealthy"
        assert data["dominant_pollutant"] == "PM2.5"
        assert data["pollutants"]["pm10"] == 60
        assert data["pollutants"]["no2"] is None
        assert data["measured_at"] == "2024-01-01 12:00:00"

    def test_parse_feed_without_reading(self):
        with pytest.raises(ValueError):
            air_quality.parse_feed({"aqi": "-"})


class TestFetchAirQuality:
    """Test air_quality.fetch_air_quality and the get_air_quality boundary."""

    @pytest.mark.asyncio
    async def test_success(self):
        seen = []
        async with mock_client(respond(json=FEED_PAYLOAD, seen=seen)) as client:
            result = await air_quality.fetch_air_quality("Beijing", "token", client=client)

        assert result["success"] is True
        assert result["data"]["level"] == "Unhealthy"
        assert "🌬️ AQI: 155 (Unhealthy)" in result["formatted"]
        assert "  • PM2.5: 155 μg/m³" in result["formatted"]
        assert "NO2" not in result["formatted"]

        request = seen[0]
        assert request.url.path == "/feed/Beijing/"
        assert request.url.params["token"] == "token"

    @pytest.mark.asyncio
    async def test_missing_token(self):
        result = await air_quality.get_air_quality("Beijing", "")
        assert result == {
            "error": ERROR_MESSAGES["air_quality_key_missing"],
            "instructions": ERROR_MESSAGES["air_quality_key_instructions"],
        }

    @pytest.mark.asyncio
    async def test_invalid_token_in_band(self):
        """AQICN reports a bad token with HTTP 200 and an error status."""
        payload = {"status": "error", "data": "Invalid key"}
        async with mock_client(respond(json=payload)) as client:
            result = await air_quality.get_air_quality("Beijing", "bad", client=client)

        assert result == {
            "error": ERROR_MESSAGES["air_quality_key_invalid"],
            "instructions": ERROR_MESSAGES["air_quality_key_instructions"],
        }

    @pytest.mark.asyncio
    async def test_unknown_station(self):
        payload = {"status": "error", "data": "Unknown station"}
        async with mock_client(respond(json=payload)) as client:
            with pytest.raises(ProviderCallError) as exc_info:
                await air_quality.fetch_air_quality("Atlantis", "token", client=client)

        assert exc_info.value.kind == ProviderCallError.NOT_FOUND
        assert exc_info.value.hint == ERROR_MESSAGES["location_suggestion"]

    @pytest.mark.asyncio
    async def test_station_without_reading(self):
        payload = {"status": "ok", "data": {"aqi": "-", "city": {"name": "Somewhere"}}}
        async with mock_client(respond(json=payload)) as client:
            result = await air_quality.get_air_quality("Somewhere", "token", client=client)

        assert result["error"] == ERROR_MESSAGES["fetch_error"]
        assert "no AQI reading" in result["details"]

    @pytest.mark.asyncio
    async def test_timeout(self):
        async with mock_client(fail_with(httpx.ConnectTimeout)) as client:
            result = await air_quality.get_air_quality("Beijing", "token", client=client)

        assert result["error"] == "Air quality service request timed out. Please try again."

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        async with mock_client(respond(401, json={"status": "error"})) as client:
            with pytest.raises(ProviderCallError) as exc_info:
                await air_quality.fetch_air_quality("Beijing", "bad", client=client)

        error = exc_info.value
        assert error.kind == ProviderCallError.INVALID_CREDENTIAL
        assert error.status_code == 401
        assert error.to_tool_result() == {
            "error": ERROR_MESSAGES["air_quality_key_invalid"],
            "instructions": ERROR_MESSAGES["air_quality_key_instructions"],
        }

    @pytest.mark.asyncio
    async def test_location_not_found(self):
        async with mock_client(respond(404, text="not found")) as client:
            result = await air_quality.get_air_quality("Atlantis", "token", client=client)

        assert result == {
            "error": ERROR_MESSAGES["location_not_found"],
            "suggestion": ERROR_MESSAGES["location_suggestion"],
        }

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with mock_client(respond(500, text="boom")) as client:
            result = await air_quality.get_air_quality("Beijing", "token", client=client)

        assert result == {"error": ERROR_MESSAGES["fetch_error"], "details": "HTTP 500: boom"}

    @pytest.mark.asyncio
    async def test_network_error(self):
        async with mock_client(fail_with(httpx.ConnectError)) as client:
            with pytest.raises(ProviderCallError) as exc_info:
                await air_quality.fetch_air_quality("Beijing", "token", client=client)

        assert exc_info.value.kind == ProviderCallError.FETCH_ERROR
        assert exc_info.value.message == ERROR_MESSAGES["fetch_error"]
        assert exc_info.value.raw == "transport broke"

    @pytest.mark.asyncio
    async def test_body_not_json(self):
        async with mock_client(respond(200, text="<html>maintenance</html>")) as client:
            result = await air_quality.get_air_quality("Beijing", "token", client=client)

        assert result["error"] == ERROR_MESSAGES["fetch_error"]
        assert result["details"].startswith("Unexpected response format")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["unexpected"], "unexpected", None])
    async def test_body_not_an_object(self, body):
        """A JSON body that is not an object is reported, not raised."""
        content = httpx.Response(200, json=body).content

        async with mock_client(lambda request: httpx.Response(200, content=content)) as client:
            result = await air_quality.get_air_quality("Paris", "token", client=client)

        assert result["error"] == ERROR_MESSAGES["fetch_error"]
        assert result["details"].startswith("Unexpected response format")


class TestDirectTools:
    """Test function tool construction."""

    def test_no_credentials_no_tools(self):
        assert create_direct_tools(ToolsConfig(), make_credentials()) == {}

    def test_tools_follow_credentials(self):
        tools = create_direct_tools(
            ToolsConfig(), make_credentials(openweather_api_key="w", aqicn_api_key="a")
        )

        assert list(tools) == [CapabilityDomain.WEATHER, CapabilityDomain.AIR_QUALITY]
        assert tools[CapabilityDomain.WEATHER].name == "get_weather"
        assert tools[CapabilityDomain.AIR_QUALITY].name == "get_air_quality"

    def test_single_credential(self):
        tools = create_direct_tools(ToolsConfig(), make_credentials(aqicn_api_key="a"))
        assert list(tools) == [CapabilityDomain.AIR_QUALITY]
