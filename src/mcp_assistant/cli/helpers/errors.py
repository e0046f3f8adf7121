"""
Error handling utilities for CLI commands.
"""

import functools
import sys

from rich.console import Console

from mcp_assistant.chat.messages import APP_MESSAGES
from mcp_assistant.core.exceptions import AssistantError, ConfigError
from mcp_assistant.utils.logging import get_logger

console = Console(stderr=True)
logger = get_logger(__name__)


def handle_errors(func):
    """Decorator mapping errors to messages and exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            console.print(f"\n[yellow]{APP_MESSAGES['goodbye']}[/yellow]")
            sys.exit(0)
        except ConfigError as e:
            console.print(f"[red]Configuration error: {e.message}[/red]")
            sys.exit(1)
        except AssistantError as e:
            logger.debug("Command failed", exc_info=True)
            console.print(f"[red]Error: {e.message}[/red]")
            console.print("[dim]Use --debug for more details[/dim]")
            sys.exit(1)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            console.print(f"[red]Error: {e}[/red]")
            console.print("[dim]Use --debug for more details[/dim]")
            sys.exit(1)

    return wrapper
