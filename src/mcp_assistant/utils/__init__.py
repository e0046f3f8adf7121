"""Utility modules for MCP Assistant."""

from mcp_assistant.utils.logging import get_logger, setup_logging
from mcp_assistant.utils.config import Config, ConfigManager

__all__ = [
    "get_logger",
    "setup_logging",
    "Config",
    "ConfigManager",
]
