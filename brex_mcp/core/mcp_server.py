#!/usr/bin/env python3
"""
MCP server wiring for Brex.

Connects the low-level MCP `Server` to the resource router, the tool registry
and the prompts. Every handler shares one BrexClient and one PayloadLimiter.
Errors are mapped by kind at this boundary:

- tool calls: any failure becomes an error result (isError) naming the kind
- resources and prompts: ValidationError -> INVALID_PARAMS,
  BrexAPIError / DataShapeError -> INTERNAL_ERROR
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from brex_mcp import __version__
from brex_mcp.api.client import BrexClient
from brex_mcp.api.errors import (
    BrexAPIError,
    BrexAuthenticationError,
    BrexNotFoundError,
    DataShapeError,
)
from brex_mcp.config.constants import JSON_MIME_TYPE
from brex_mcp.config.settings import LOG_LEVELS, BrexSettings, ConfigurationError
from brex_mcp.optimization.token_optimizer import PayloadLimiter
from brex_mcp.prompts import get_prompt, list_prompts
from brex_mcp.resources.router import ResourceRouter
from brex_mcp.tools import call_tool, list_tool_definitions
from brex_mcp.utils.helpers import extract_error_message, to_json_text
from brex_mcp.utils.validation import ValidationError

logger = logging.getLogger(__name__)

SERVER_NAME = "brex-mcp"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ToolCallError(Exception):
    """Tool failure; the MCP SDK reports it to the caller as an isError result."""

    pass


def _mcp_error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


def _describe_upstream_error(e: Exception) -> str:
    if isinstance(e, BrexAuthenticationError):
        return f"Authentication failed: {e}"
    if isinstance(e, BrexNotFoundError):
        return f"Not found: {e}"
    if isinstance(e, DataShapeError):
        return f"Unexpected data from Brex API: {e}"
    return f"Brex API error: {extract_error_message(e)}"


class BrexMCPServer:
    """Brex MCP server: resources, tools and prompts over one API client."""

    def __init__(self, client, limiter: Optional[PayloadLimiter] = None):
        self.client = client
        self.limiter = limiter or PayloadLimiter()
        self.router = ResourceRouter(client, self.limiter)
        self.server = Server(SERVER_NAME)
        self._register_handlers()

    def _register_handlers(self):
        @self.server.list_resources()
        async def handle_list_resources() -> List[types.Resource]:
            return self.list_resources()

        @self.server.read_resource()
        async def handle_read_resource(uri) -> List[ReadResourceContents]:
            text = await self.read_resource(str(uri))
            return [ReadResourceContents(content=text, mime_type=JSON_MIME_TYPE)]

        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]):
            return await self.call_tool(name, arguments)

        @self.server.list_prompts()
        async def handle_list_prompts() -> List[types.Prompt]:
            return list_prompts()

        @self.server.get_prompt()
        async def handle_get_prompt(
            name: str, arguments: Optional[Dict[str, str]]
        ) -> types.GetPromptResult:
            return await self.get_prompt(name)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def list_resources(self) -> List[types.Resource]:
        return [types.Resource(**resource) for resource in self.router.list_resources()]

    def list_tools(self) -> List[types.Tool]:
        return [types.Tool(**definition) for definition in list_tool_definitions()]

    async def read_resource(self, uri: str) -> str:
        """
        Read a brex:// resource as JSON text.

        Raises:
            McpError: INVALID_PARAMS for bad parameters, INTERNAL_ERROR for
                upstream failures
        """
        logger.info(f"Reading resource {uri}")
        try:
            payload = await self.router.read(uri)
        except ValidationError as e:
            logger.warning(f"Invalid resource request {uri}: {e}")
            raise _mcp_error(types.INVALID_PARAMS, str(e)) from e
        except (BrexAPIError, DataShapeError) as e:
            logger.error(f"Failed to read resource {uri}: {e}")
            raise _mcp_error(types.INTERNAL_ERROR, _describe_upstream_error(e)) from e
        return to_json_text(payload)

    async def call_tool(
        self, name: str, arguments: Optional[Dict[str, Any]]
    ) -> List[types.TextContent]:
        """
        Run a tool and return its JSON result as text content.

        Raises:
            ToolCallError: Any validation, upstream or data-shape failure
        """
        logger.info(f"Calling tool {name}")
        try:
            result = await call_tool(name, arguments, self.client, self.limiter)
        except ValidationError as e:
            logger.warning(f"Invalid arguments for {name}: {e}")
            raise ToolCallError(f"Invalid arguments: {e}") from e
        except (BrexAPIError, DataShapeError) as e:
            logger.error(f"Tool {name} failed: {e}")
            raise ToolCallError(_describe_upstream_error(e)) from e
        return [types.TextContent(type="text", text=to_json_text(result))]

    async def get_prompt(self, name: str) -> types.GetPromptResult:
        try:
            return await get_prompt(name, self.client, self.limiter)
        except ValidationError as e:
            raise _mcp_error(types.INVALID_PARAMS, str(e)) from e
        except (BrexAPIError, DataShapeError) as e:
            logger.error(f"Prompt {name} failed: {e}")
            raise _mcp_error(types.INTERNAL_ERROR, _describe_upstream_error(e)) from e

    async def run_stdio(self):
        async with stdio_server() as (read_stream, write_stream):
            logger.info(f"{SERVER_NAME} {__version__} serving on stdio")
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


# =============================================================================
# Entry point
# =============================================================================


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Brex MCP Server",
        epilog="BREX_API_KEY must be set in the environment.",
    )
    parser.add_argument(
        "--api-url",
        help="Brex API base URL (overrides BREX_API_URL)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (overrides LOG_LEVEL)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Request timeout in seconds (overrides BREX_REQUEST_TIMEOUT)",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> BrexSettings:
    """
    Environment settings with CLI overrides applied.

    Raises:
        ConfigurationError: Missing API key or invalid value
    """
    settings = BrexSettings.from_env()
    try:
        return settings.with_overrides(
            api_url=args.api_url,
            log_level=args.log_level,
            request_timeout=args.timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def configure_logging(level: str):
    # stdout carries the MCP protocol
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


async def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)
    logger.info(f"Starting {SERVER_NAME} against {settings.api_url}")

    async with BrexClient.from_settings(settings) as client:
        await BrexMCPServer(client).run_stdio()


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
