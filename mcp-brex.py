#!/usr/bin/env python3
"""
MCP Brex Server - Entry Point

This is the main entry point for the Brex MCP server.
All implementation logic is in the brex_mcp/ package.

Usage:
    python mcp-brex.py [options]

Environment Variables:
    BREX_API_KEY          - Brex API token (required)
    BREX_API_URL          - Brex API base URL (optional)
    BREX_REQUEST_TIMEOUT  - Request timeout in seconds (optional)
    LOG_LEVEL             - Logging level (optional, default: INFO)

For more options, run:
    python mcp-brex.py --help
"""

import asyncio

from brex_mcp.core.mcp_server import main

if __name__ == "__main__":
    asyncio.run(main())
