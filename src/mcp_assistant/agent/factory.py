"""
Agent construction.

Turns the resolver's view of the world into an :class:`AgentSpec` and the
spec into an ``agents.Agent`` for the external runtime.
"""

from typing import Any, Optional, Sequence

from agents import Agent, ModelSettings

from mcp_assistant.agent.classifier import QueryClassification, variant_for
from mcp_assistant.agent.instructions import (
    HistoryEntry,
    InstructionVariant,
    build_contextual_instructions,
    build_debug_instructions,
    get_variant,
)
from mcp_assistant.core.models import AgentSpec, ToolHandle
from mcp_assistant.utils.config import AgentConfig
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)


class AgentFactory:
    """Builds agent specs and runtime agents."""

    def __init__(self, config: AgentConfig, resolver: Any):
        """
        Initialize the factory.

        Args:
            config: Agent configuration (model, temperature, tool choice)
            resolver: CapabilityResolver consulted on every build
        """
        self.config = config
        self.resolver = resolver

    def build_spec(
        self,
        variant: str = "default",
        history: Optional[Sequence[HistoryEntry]] = None,
        custom_instructions: Optional[str] = None,
        classification: Optional[QueryClassification] = None,
        debug: bool = False,
        user_query: Optional[str] = None,
    ) -> AgentSpec:
        """
        Resolve capabilities and assemble an agent spec.

        Tools are narrowed to the variant's domains; connected untagged
        providers stay available except in the ``chat`` variant. A query
        classification overrides ``variant`` and adds query context to the
        instructions. In debug mode the instructions carry provider status
        and capability dumps instead.
        """
        if classification is not None:
            variant = variant_for(classification)
        focus = get_variant(variant)
        capability_set = self.resolver.resolve()
        tools = [
            handle for handle in self.resolver.select_tools(capability_set)
            if self._in_focus(handle, focus)
        ]

        if custom_instructions:
            instructions = custom_instructions
        elif debug:
            instructions = build_debug_instructions(
                capability_set,
                self.resolver.registry.list_all(),
                variant=focus.name,
                user_query=user_query,
            )
        elif classification is not None:
            instructions = build_contextual_instructions(
                capability_set,
                classification,
                history=history,
                max_history=self.resolver.max_history,
                extra_providers=self.resolver.extra_providers(),
            )
        else:
            instructions = self.resolver.build_instructions(
                capability_set, variant=focus.name, history=history
            )

        spec = AgentSpec(
            name=self.config.name,
            variant=focus.name,
            instructions=instructions,
            capabilities=capability_set,
            tools=tools,
            model=self.config.model,
            temperature=self.config.temperature,
            tool_choice=self.config.tool_choice,
        )
        logger.debug(f"Built agent spec '{spec.variant}' with tools: {spec.tool_names}")
        return spec

    @staticmethod
    def _in_focus(handle: ToolHandle, focus: InstructionVariant) -> bool:
        if handle.domain is None:
            return focus.include_extra_providers
        return handle.domain in focus.domains

    def create_agent(self, spec: AgentSpec) -> Agent:
        """Construct the runtime agent for a spec."""
        # Tool choice is only meaningful when tools are attached.
        tool_choice = spec.tool_choice if spec.tools else None
        return Agent(
            name=spec.name,
            instructions=spec.instructions,
            model=spec.model,
            model_settings=ModelSettings(
                temperature=spec.temperature,
                tool_choice=tool_choice,
            ),
            tools=spec.function_tools,
            mcp_servers=spec.mcp_servers,
        )
