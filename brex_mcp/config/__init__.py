"""Configuration for the Brex MCP server"""
