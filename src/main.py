"""Main entry point for the pyman MCP server."""

from pyman.mcp_server import main, mcp

# Expose mcp object for MCP inspector
__all__ = ["mcp", "main"]

if __name__ == "__main__":
    main()
