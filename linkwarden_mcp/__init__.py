"""MCP server exposing a Linkwarden bookmark instance as tools."""
__version__ = "0.1.0"
