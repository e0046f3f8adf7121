"""Command-line interface for MCP Assistant."""
