"""MCP tools for the Brex server"""

import logging
from typing import Any, Dict, List, Optional

from brex_mcp.optimization.token_optimizer import PayloadLimiter
from brex_mcp.utils.validation import ValidationError

from .accounts import ACCOUNT_TOOLS
from .base import ToolSpec
from .budgets import BUDGET_TOOLS
from .expenses import EXPENSE_TOOLS
from .receipts import RECEIPT_TOOLS
from .transactions import TRANSACTION_TOOLS

logger = logging.getLogger(__name__)

ALL_TOOLS: List[ToolSpec] = [
    *ACCOUNT_TOOLS,
    *TRANSACTION_TOOLS,
    *EXPENSE_TOOLS,
    *BUDGET_TOOLS,
    *RECEIPT_TOOLS,
]

TOOL_REGISTRY: Dict[str, ToolSpec] = {tool.name: tool for tool in ALL_TOOLS}


def list_tool_definitions() -> List[Dict[str, Any]]:
    """Tool definitions in MCP list_tools form."""
    return [tool.definition() for tool in ALL_TOOLS]


async def call_tool(
    name: str,
    arguments: Optional[Dict[str, Any]],
    client,
    limiter: PayloadLimiter,
) -> Dict[str, Any]:
    """
    Validate arguments and run a tool.

    Raises:
        ValidationError: Unknown tool or invalid arguments
        BrexAPIError: Upstream request failed
        DataShapeError: Upstream payload had an unexpected shape
    """
    tool = TOOL_REGISTRY.get(name)
    if tool is None:
        raise ValidationError(f"Unknown tool: {name}")

    request = tool.request_cls.from_arguments(arguments or {})
    logger.debug(f"Calling tool {name} with {request}")
    return await tool.handler(client, limiter, request)


__all__ = [
    "ALL_TOOLS",
    "TOOL_REGISTRY",
    "ToolSpec",
    "call_tool",
    "list_tool_definitions",
]
