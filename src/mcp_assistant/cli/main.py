"""
Main CLI interface for MCP Assistant.

Provides the ``mcp-assistant`` command: an interactive chat backed by MCP
servers and direct-API tools, plus provider status and capability
inspection.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
from agents import set_default_openai_key
from rich.console import Console

from mcp_assistant import __version__
from mcp_assistant.agent.instructions import VARIANTS, capabilities_summary
from mcp_assistant.chat.session import ChatSession
from mcp_assistant.cli.helpers import handle_errors
from mcp_assistant.cli.helpers.display import (
    create_capability_table,
    create_status_table,
    print_connection_report,
)
from mcp_assistant.core.exceptions import ConfigError
from mcp_assistant.core.runtime import AssistantRuntime
from mcp_assistant.utils.config import Config, ConfigManager, DEFAULT_CONFIG_FILES, validate_credentials
from mcp_assistant.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


class CLIContext:
    """CLI context for passing state between commands."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config_manager = ConfigManager()
        self.config: Optional[Config] = None

    def reset(self, config_file: Optional[Path] = None) -> None:
        """Start a new invocation."""
        self.config_file = config_file
        self.config_manager = ConfigManager()
        self.config = None

    def get_config(self) -> Config:
        """Load configuration once per invocation."""
        if self.config is None:
            files = list(DEFAULT_CONFIG_FILES)
            if self.config_file is not None:
                files.append(self.config_file)
            self.config = self.config_manager.load_config(files)
        return self.config

    def create_runtime(self) -> AssistantRuntime:
        """Build a fresh runtime for one command."""
        return AssistantRuntime(self.get_config())

    def require_openai_key(self) -> None:
        """Fail fast when the model provider key is missing."""
        config = self.get_config()
        errors, _ = validate_credentials(config.credentials)
        if errors:
            raise ConfigError("; ".join(errors), error_code="MISSING_CREDENTIAL")
        set_default_openai_key(config.credentials.openai_api_key)


# Global CLI context
cli_context = CLIContext()


@click.group()
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug logging and debug agent instructions"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output"
)
@click.option(
    "--config", "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Additional configuration file (TOML)"
)
@click.version_option(version=__version__, prog_name="MCP Assistant")
@handle_errors
def cli(debug: bool, verbose: bool, config_file: Optional[Path]):
    """
    Conversational assistant backed by MCP servers.

    Answers weather, air quality and library documentation questions using
    whichever providers are available, and falls back to general chat.
    """
    cli_context.reset(config_file)
    config = cli_context.get_config()
    config.debug = config.debug or debug
    config.verbose = config.verbose or verbose

    if config.debug:
        console_level = "DEBUG"
    elif config.verbose:
        console_level = "INFO"
    else:
        console_level = config.logging.console_level
    setup_logging(
        enabled=config.logging.enabled,
        level="DEBUG" if config.debug else config.logging.level,
        console_level=console_level,
        log_file=config.get_log_file(),
        format_type=config.logging.format_type,
        enable_rich=config.logging.enable_rich,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
        suppress_http=config.logging.suppress_http and not config.debug,
    )


@cli.command()
@click.option(
    "--auto-route", "-a",
    is_flag=True,
    help="Pick instructions per message from the detected query type"
)
@click.option(
    "--variant",
    type=click.Choice(sorted(VARIANTS), case_sensitive=False),
    default="default",
    help="Instruction variant"
)
@handle_errors
def chat(auto_route: bool, variant: str):
    """Start an interactive chat session."""
    cli_context.require_openai_key()
    session = ChatSession(
        cli_context.create_runtime(),
        console=console,
        variant=variant.lower(),
        auto_route=auto_route,
    )
    exit_code = asyncio.run(session.run())
    raise SystemExit(exit_code)


@cli.command()
@click.argument("question")
@click.option(
    "--variant",
    type=click.Choice(sorted(VARIANTS), case_sensitive=False),
    default="default",
    help="Instruction variant"
)
@handle_errors
def ask(question: str, variant: str):
    """Answer a single QUESTION and exit."""
    cli_context.require_openai_key()
    session = ChatSession(cli_context.create_runtime(), console=console, variant=variant.lower())
    answer = asyncio.run(session.ask(question))
    console.print(answer)


@cli.command()
@click.option(
    "--output-format", "-o",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format"
)
@handle_errors
def status(output_format: str):
    """Connect to every provider and report its status."""
    runtime = cli_context.create_runtime()

    async def collect():
        async with runtime:
            return runtime.registry.list_all()

    statuses = asyncio.run(collect())

    if output_format.lower() == "json":
        payload = [
            {**record.model_dump(mode="json"), "state": record.state.value}
            for _, record in statuses
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    domains = {name: runtime.registry.get_config(name).domain for name, _ in statuses}
    if not statuses:
        console.print("[yellow]No providers configured[/yellow]")
        return
    console.print(create_status_table(statuses, domains))


@cli.command()
@handle_errors
def capabilities():
    """Show which capabilities are currently available."""
    runtime = cli_context.create_runtime()

    async def collect():
        report = await runtime.start()
        try:
            return report, runtime.resolver.resolve()
        finally:
            await runtime.close()

    report, capability_set = asyncio.run(collect())
    print_connection_report(console, report)
    console.print(create_capability_table(capability_set))
    console.print(f"[dim]{capabilities_summary(capability_set)}[/dim]")


if __name__ == "__main__":
    cli()
