"""MCP server core"""
