"""
Keyword-based query classification.

Used by the chat loop to pick a focused instruction variant when auto
routing is enabled.
"""

import re
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class QueryType(str, Enum):
    """Primary intent of a user query."""

    WEATHER = "weather"
    AIR_QUALITY = "air_quality"
    DOCUMENTATION = "documentation"
    ENVIRONMENTAL = "environmental"
    GENERAL = "general"


class QueryClassification(BaseModel):
    """Result of classifying a user query."""

    type: QueryType = Field(description="Primary query type")
    confidence: float = Field(ge=0.0, le=1.0, description="Classification confidence")
    location: Optional[str] = Field(default=None, description="Location mentioned in the query")
    library_name: Optional[str] = Field(default=None, description="Library mentioned in the query")


WEATHER_PATTERN = re.compile(
    r"\b(weather|temperature|hot|cold|rain\w*|snow\w*|sunny|cloudy|humid\w*|wind\w*|forecast)\b",
    re.IGNORECASE,
)
AIR_QUALITY_PATTERN = re.compile(
    r"\b(air quality|air pollution|pollution|polluted|aqi|pm2\.5|pm10|smog|ozone|pollutants?)\b",
    re.IGNORECASE,
)
DOCUMENTATION_PATTERN = re.compile(
    r"\b(documentation|docs|api|library|framework|react|next\.?js|openai|langchain|"
    r"anthropic|typescript|features|how to use)\b",
    re.IGNORECASE,
)
LOCATION_PATTERN = re.compile(
    r"\b(?:in|at|for|near)\s+([A-Z][\w.'-]*(?:(?:\s+|,\s*)[A-Z][\w.'-]*)*)"
)

# (pattern, display name) pairs checked in order.
KNOWN_LIBRARIES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\bnext\.?js\b", re.IGNORECASE), "Next.js"),
    (re.compile(r"\breact\b", re.IGNORECASE), "React"),
    (re.compile(r"\blangchain\b", re.IGNORECASE), "LangChain"),
    (re.compile(r"\bopenai\b", re.IGNORECASE), "OpenAI"),
    (re.compile(r"\banthropic\b", re.IGNORECASE), "Anthropic"),
    (re.compile(r"\btypescript\b", re.IGNORECASE), "TypeScript"),
    (re.compile(r"\bpydantic\b", re.IGNORECASE), "Pydantic"),
    (re.compile(r"\bfastapi\b", re.IGNORECASE), "FastAPI"),
    (re.compile(r"\bdjango\b", re.IGNORECASE), "Django"),
    (re.compile(r"\bvue\b", re.IGNORECASE), "Vue"),
]

GENERAL_CONFIDENCE = 0.5


def _score(hits: int) -> float:
    return min(0.6 + 0.15 * hits, 0.95)


def extract_location(query: str) -> Optional[str]:
    """Extract a capitalized place name following in/at/for/near."""
    match = LOCATION_PATTERN.search(query)
    if not match:
        return None
    location = match.group(1).strip(" ,.?!")
    return location or None


def extract_library(query: str) -> Optional[str]:
    for pattern, display_name in KNOWN_LIBRARIES:
        if pattern.search(query):
            return display_name
    return None


def classify_query(query: str) -> QueryClassification:
    """
    Classify a user query by keyword matching.

    Weather and air quality together classify as environmental. When
    unrelated domains both match, weather-type intents win and the
    confidence is reduced.

    Args:
        query: Raw user input

    Returns:
        Query classification
    """
    weather_hits = len(WEATHER_PATTERN.findall(query))
    air_hits = len(AIR_QUALITY_PATTERN.findall(query))
    docs_hits = len(DOCUMENTATION_PATTERN.findall(query))

    if weather_hits and air_hits:
        query_type = QueryType.ENVIRONMENTAL
        confidence = _score(weather_hits + air_hits)
    elif air_hits:
        query_type = QueryType.AIR_QUALITY
        confidence = _score(air_hits)
    elif weather_hits:
        query_type = QueryType.WEATHER
        confidence = _score(weather_hits)
    elif docs_hits:
        query_type = QueryType.DOCUMENTATION
        confidence = _score(docs_hits)
    else:
        query_type = QueryType.GENERAL
        confidence = GENERAL_CONFIDENCE

    # Mixed environmental and documentation intent is ambiguous.
    if docs_hits and (weather_hits or air_hits):
        confidence = round(confidence - 0.2, 2)

    location = None
    if query_type in (QueryType.WEATHER, QueryType.AIR_QUALITY, QueryType.ENVIRONMENTAL):
        location = extract_location(query)

    library_name = None
    if docs_hits:
        library_name = extract_library(query)

    return QueryClassification(
        type=query_type,
        confidence=round(confidence, 2),
        location=location,
        library_name=library_name,
    )


def variant_for(classification: QueryClassification) -> str:
    """Map a classification to an instruction variant name."""
    if classification.type == QueryType.GENERAL:
        return "default"
    return classification.type.value
