"""
Display helper functions for CLI commands and the chat session.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mcp_assistant.agent.instructions import DOMAIN_GUIDANCE
from mcp_assistant.core.models import (
    CapabilityDomain,
    CapabilitySet,
    ConnectionReport,
    DisconnectReport,
    ProviderState,
    ProviderStatus,
)

STATE_STYLES = {
    ProviderState.CONNECTED: "[green]✅ connected[/green]",
    ProviderState.CONNECTING: "[blue]⏳ connecting[/blue]",
    ProviderState.FAILED: "[red]❌ failed[/red]",
    ProviderState.UNCONNECTED: "[dim]○ not connected[/dim]",
}

CAPABILITY_SOURCES = {
    CapabilityDomain.WEATHER: "via OpenWeatherMap API",
    CapabilityDomain.AIR_QUALITY: "via AQICN API",
    CapabilityDomain.DOCUMENTATION: "via Context7 MCP server",
}


def create_status_table(
    statuses: Sequence[Tuple[str, ProviderStatus]],
    domains: Optional[Dict[str, Optional[CapabilityDomain]]] = None,
    states: Optional[Dict[str, ProviderState]] = None,
) -> Table:
    """
    Build a provider status table.

    ``states`` overrides the settled state per provider, e.g. to show
    attempts still in flight.
    """
    table = Table(title="MCP Providers", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Domain")
    table.add_column("Status")
    table.add_column("Capabilities")
    table.add_column("Last Error", style="red")

    for name, status in statuses:
        domain = (domains or {}).get(name)
        table.add_row(
            name,
            domain.value if domain else "-",
            STATE_STYLES[(states or {}).get(name, status.state)],
            ", ".join(status.capabilities) or "-",
            status.last_error or "",
        )
    return table


def create_capability_table(capability_set: CapabilitySet) -> Table:
    """Build a capability availability table."""
    table = Table(title="Capabilities", show_header=True, header_style="bold cyan")
    table.add_column("Capability")
    table.add_column("Available")
    table.add_column("Source", style="dim")

    for domain in CapabilityDomain:
        available = capability_set[domain]
        table.add_row(
            DOMAIN_GUIDANCE[domain].summary,
            "[green]yes[/green]" if available else "[red]no[/red]",
            CAPABILITY_SOURCES[domain],
        )
    return table


def print_connection_report(console: Console, report: ConnectionReport) -> None:
    if report.connected:
        console.print(f"[green]✅ Connected MCP servers: {', '.join(report.connected)}[/green]")
    if report.failed:
        console.print(f"[red]❌ Failed MCP servers: {', '.join(report.failed)}[/red]")
        for name, error in report.errors.items():
            console.print(f"   [dim]{name}: {error}[/dim]")


def print_disconnect_report(console: Console, report: DisconnectReport) -> None:
    if report.disconnected:
        console.print(f"[green]✅ Disconnected: {', '.join(report.disconnected)}[/green]")
    if report.failed:
        console.print(f"[yellow]⚠️ Failed to disconnect: {', '.join(report.failed)}[/yellow]")


def print_capabilities(console: Console, capability_set: CapabilitySet, extras: List[str]) -> None:
    """Print the capability list shown at chat start."""
    lines = []
    for domain in capability_set.enabled_domains():
        lines.append(f"  • {DOMAIN_GUIDANCE[domain].summary} ({CAPABILITY_SOURCES[domain]})")
    for name in extras:
        lines.append(f"  • {name} (via MCP server)")
    lines.append("  • General conversation")
    console.print(Panel("\n".join(lines), title="🔧 Available Capabilities", expand=False))


def print_warnings(console: Console, warnings: List[str]) -> None:
    if not warnings:
        return
    console.print("[yellow]⚠️  Configuration warnings:[/yellow]")
    for warning in warnings:
        console.print(f"   [yellow]- {warning}[/yellow]")
    console.print("   [dim]Some features may be limited.[/dim]\n")
