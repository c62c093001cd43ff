"""Example MCP servers that can be launched as tool providers."""
