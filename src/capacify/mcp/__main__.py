"""Allow running the MCP server as a module.

Usage:
    python -m capacify.mcp        # starts the MCP server in stdio mode
    uv run python -m capacify.mcp
"""

from capacify.mcp.server import mcp

if __name__ == "__main__":
    mcp.run()
