"""
Agent instruction templates.

Instructions are assembled from a declarative table that maps each
capability domain to a guidance block. Blocks are emitted in domain
declaration order and only for domains that are both available and
relevant to the requested variant, so the same inputs always produce
the same text.
"""

import json
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from mcp_assistant.agent.classifier import QueryClassification, variant_for
from mcp_assistant.chat.messages import EXAMPLE_QUERIES
from mcp_assistant.core.models import CapabilityDomain, CapabilitySet, ChatMessage, ProviderStatus
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)

HistoryEntry = Union[ChatMessage, str]

DEFAULT_MAX_HISTORY = 10


@dataclass(frozen=True)
class GuidanceBlock:
    """Instruction text contributed by one capability domain."""

    title: str
    bullets: Tuple[str, ...]
    tools: Tuple[str, ...]
    examples_title: str
    examples: Tuple[str, ...]
    summary: str

    def render(self) -> str:
        lines = [f"### {self.title}"]
        lines.extend(f"- {bullet}" for bullet in self.bullets)
        lines.append(f"- Tools: {', '.join(self.tools)}")
        return "\n".join(lines)

    def render_examples(self) -> str:
        lines = [f"### {self.examples_title}:"]
        lines.extend(f'- "{query}"' for query in self.examples)
        return "\n".join(lines)


DOMAIN_GUIDANCE: Dict[CapabilityDomain, GuidanceBlock] = {
    CapabilityDomain.WEATHER: GuidanceBlock(
        title="🌤️ Weather",
        bullets=(
            "Get current weather data for any location worldwide",
            "Provides temperature, humidity, wind speed, pressure, visibility, and more",
        ),
        tools=("get_weather",),
        examples_title="Weather Queries",
        examples=tuple(EXAMPLE_QUERIES["weather"]),
        summary="Weather data",
    ),
    CapabilityDomain.AIR_QUALITY: GuidanceBlock(
        title="🌬️ Air Quality",
        bullets=(
            "Get real-time air quality data and AQI (Air Quality Index)",
            "Provides pollutant levels (PM2.5, PM10, NO2, SO2, CO, O3)",
            "Health implications and recommendations",
        ),
        tools=("get_air_quality",),
        examples_title="Air Quality Queries",
        examples=tuple(EXAMPLE_QUERIES["air_quality"]),
        summary="Air quality data",
    ),
    CapabilityDomain.DOCUMENTATION: GuidanceBlock(
        title="📚 Documentation (Context7 MCP Server)",
        bullets=(
            "Access latest documentation for libraries and frameworks",
            "Get up-to-date API references and guides",
            "Supports React, Next.js, OpenAI, LangChain, TypeScript, and more",
        ),
        tools=("resolve_library_id", "get_library_docs"),
        examples_title="Documentation Queries",
        examples=tuple(EXAMPLE_QUERIES["documentation"]),
        summary="Documentation lookup",
    ),
}

ASSISTANT_PERSONA = (
    "You are an advanced AI assistant with access to MCP (Model Context Protocol) "
    "servers and tools for specialized data retrieval."
)

CHAT_PERSONA = """You are a helpful AI assistant. You can engage in general conversation and provide information on a wide range of topics.

While you don't have access to specialized tools in this mode, you can still provide helpful responses based on your training data.

Please:
- Be helpful, informative, and conversational
- Provide accurate information to the best of your ability
- Ask clarifying questions when needed
- Maintain a friendly and professional tone"""

CAPABILITY_GUIDELINES = """## Your Capabilities

You should:
1. **Automatically determine** when to use tools based on user queries
2. **Use appropriate tools** for weather, air quality, or documentation queries
3. **Provide comprehensive responses** combining data from multiple sources when relevant
4. **Handle errors gracefully** if a tool or server is unavailable
5. **Offer alternatives** when specific servers are disconnected"""

RESPONSE_GUIDELINES = """## Response Guidelines

1. **Be specific and detailed** when providing data from tools
2. **Format data clearly** with appropriate emojis and structure
3. **Combine multiple data sources** when relevant (e.g., weather + air quality for outdoor activities)
4. **Provide context and interpretation** of the data
5. **Suggest actions** based on the data when appropriate
6. **Handle location variations** (city names, coordinates, etc.)"""

ERROR_GUIDELINES = """## Error Handling

If a tool returns an error or a server is unavailable:
- Acknowledge the limitation clearly
- Relay any suggestion included in the error
- Provide general guidance when possible
- Maintain a helpful and professional tone

Remember: Always prioritize providing accurate, helpful, and well-formatted responses using the available data."""


@dataclass(frozen=True)
class InstructionVariant:
    """A named focus that restricts which domains contribute guidance."""

    name: str
    domains: FrozenSet[CapabilityDomain]
    include_extra_providers: bool = True


_ALL_DOMAINS = frozenset(CapabilityDomain)

VARIANTS: Dict[str, InstructionVariant] = {
    "default": InstructionVariant("default", _ALL_DOMAINS),
    "weather": InstructionVariant("weather", frozenset({CapabilityDomain.WEATHER})),
    "air_quality": InstructionVariant("air_quality", frozenset({CapabilityDomain.AIR_QUALITY})),
    "documentation": InstructionVariant("documentation", frozenset({CapabilityDomain.DOCUMENTATION})),
    "environmental": InstructionVariant(
        "environmental",
        frozenset({CapabilityDomain.WEATHER, CapabilityDomain.AIR_QUALITY}),
    ),
    "chat": InstructionVariant("chat", frozenset(), include_extra_providers=False),
}


def get_variant(name: str) -> InstructionVariant:
    """Look up a variant by name, falling back to ``default``."""
    variant = VARIANTS.get(name)
    if variant is None:
        logger.debug(f"Unknown instruction variant '{name}', using default")
        return VARIANTS["default"]
    return variant


def relevant_domains(capability_set: CapabilitySet, variant: str = "default") -> List[CapabilityDomain]:
    """Domains that are available and in focus for a variant, in declaration order."""
    focus = get_variant(variant).domains
    return [domain for domain in capability_set.enabled_domains() if domain in focus]


def _format_history(history: Sequence[HistoryEntry], max_history: int) -> str:
    tail = list(history)[-max_history:] if max_history > 0 else []
    lines = ["## Recent Conversation", ""]
    for entry in tail:
        if isinstance(entry, ChatMessage):
            lines.append(f"{entry.role}: {entry.content}")
        else:
            lines.append(str(entry))
    return "\n".join(lines)


def build_instructions(
    capability_set: CapabilitySet,
    variant: str = "default",
    history: Optional[Sequence[HistoryEntry]] = None,
    max_history: int = DEFAULT_MAX_HISTORY,
    extra_providers: Optional[Dict[str, List[str]]] = None,
) -> str:
    """
    Build the agent instruction string.

    Args:
        capability_set: Currently available capabilities
        variant: Instruction variant name
        history: Conversation history; the last ``max_history`` entries are
            appended verbatim
        max_history: Number of history entries to include
        extra_providers: Connected untagged providers mapped to their
            capability names

    Returns:
        Instruction text. When no domain or extra provider applies this is
        the general chat persona alone.
    """
    focus = get_variant(variant)
    domains = relevant_domains(capability_set, focus.name)
    extras = dict(extra_providers or {}) if focus.include_extra_providers else {}

    sections: List[str] = []
    if not domains and not extras:
        sections.append(CHAT_PERSONA)
    else:
        sections.append(ASSISTANT_PERSONA)

        server_lines = ["## Available Capabilities"]
        for domain in domains:
            server_lines.append("")
            server_lines.append(DOMAIN_GUIDANCE[domain].render())
        for name, capabilities in extras.items():
            server_lines.append("")
            server_lines.append(f"### 🔌 {name} MCP Server")
            server_lines.append(f"- Capabilities: {', '.join(capabilities) or 'see tool list'}")
        sections.append("\n".join(server_lines))

        sections.append(CAPABILITY_GUIDELINES)

        if domains:
            example_lines = ["## Query Examples"]
            for domain in domains:
                example_lines.append("")
                example_lines.append(DOMAIN_GUIDANCE[domain].render_examples())
            sections.append("\n".join(example_lines))

        sections.append(RESPONSE_GUIDELINES)
        sections.append(ERROR_GUIDELINES)

    if history:
        sections.append(_format_history(history, max_history))

    return "\n\n".join(sections)


def build_contextual_instructions(
    capability_set: CapabilitySet,
    classification: Optional[QueryClassification] = None,
    history: Optional[Sequence[HistoryEntry]] = None,
    max_history: int = DEFAULT_MAX_HISTORY,
    extra_providers: Optional[Dict[str, List[str]]] = None,
) -> str:
    """Build instructions focused on a classified query."""
    if classification is None:
        return build_instructions(
            capability_set, "default", history, max_history, extra_providers
        )

    instructions = build_instructions(
        capability_set,
        variant_for(classification),
        history,
        max_history,
        extra_providers,
    )

    if classification.location:
        instructions += (
            "\n\n## Location Context\n"
            f"The user is asking about: {classification.location}\n"
            "Please ensure location-specific accuracy in your response."
        )

    if classification.library_name:
        instructions += (
            "\n\n## Library Context\n"
            f"The user is asking about: {classification.library_name}\n"
            "Focus on providing accurate, up-to-date documentation for this specific library."
        )

    if classification.confidence < 0.8:
        instructions += (
            "\n\n## Query Interpretation\n"
            f"Query classification confidence is {classification.confidence * 100:.1f}%.\n"
            "Please ask clarifying questions if the user's intent is unclear."
        )

    return instructions


def build_debug_instructions(
    capability_set: CapabilitySet,
    statuses: Sequence[Tuple[str, ProviderStatus]],
    variant: str = "default",
    user_query: Optional[str] = None,
) -> str:
    """Instructions with provider status and capability dumps appended."""
    base = build_instructions(capability_set, variant)
    status_dump = json.dumps(
        {name: status.model_dump(mode="json") for name, status in statuses},
        indent=2,
    )
    capability_dump = json.dumps(capability_set.as_dict(), indent=2)
    return (
        f"{base}\n\n"
        "## Debug Mode\n\n"
        "Additional debug information:\n"
        f"- Provider Statuses: {status_dump}\n"
        f"- Capabilities: {capability_dump}\n"
        f"- User Query: {user_query or 'N/A'}\n\n"
        "Please include debug information in your responses when relevant."
    )


def capabilities_summary(capability_set: CapabilitySet) -> str:
    """One-line summary of available capabilities."""
    available = [DOMAIN_GUIDANCE[d].summary for d in capability_set.enabled_domains()]
    if not available:
        return "No capabilities currently available"
    return f"Available capabilities: {', '.join(available)}"
