"""ASGI app serving the kingsdrop page tools over streamable HTTP.

``uvicorn kingsdrop.app:app`` exposes ``classify_url``, ``run_page`` and the
preference tools to remote MCP clients; ``mcp_server:mcp`` serves the same
server over stdio.
"""

from __future__ import annotations

from fastmcp import FastMCP

from kingsdrop.mcp import mcp

app = mcp.http_app()


def get_app() -> FastMCP:
    """Return the kingsdrop FastMCP server behind :data:`app`."""
    return mcp
