"""MCP server exposing the kingsdrop agent."""

from .server import configure_agent, mcp

__all__ = ["configure_agent", "mcp"]
