"""Brex MCP server with token-budgeted payload shaping"""

__version__ = "0.1.0"
