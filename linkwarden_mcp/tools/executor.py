"""Tool executor — resolves a tool by name among the exposed tools and runs it."""
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..session import RequestContext
from .registry import CallToolRequest, Tool, ToolResult

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Dispatches tool calls over a fixed set of exposed tools.

    Tools that are not exposed (disabled toolset, or a write tool in
    read-only mode) are reported as unknown.
    """

    def __init__(self, tools: Sequence[Tool]):
        self._tools: Dict[str, Tool] = {t.name: t for t in tools}

    def get_tool(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.describe() for tool in self._tools.values()]

    def __len__(self):
        return len(self._tools)

    async def execute(self, name: str, arguments: Any, ctx: RequestContext) -> ToolResult:
        """Run tool `name`. Never raises: failures come back as error results."""
        tool = self.get_tool(name)
        if not tool:
            logger.warning(f"Unknown tool: {name}")
            return ToolResult.error(f"unknown tool: {name}")

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            logger.warning(f"Tool {name}: arguments are {type(arguments).__name__}, not an object")
            return ToolResult.error(f"invalid arguments type for tool {name}: expected an object")
        arg_str = ", ".join(f"{k}={v!r}" for k, v in arguments.items())
        logger.info(f"[{ctx.session.session_id}] Executing tool: {name}({arg_str})")
        t0 = time.monotonic()

        try:
            result = await tool.handler(ctx, CallToolRequest(name=name, arguments=arguments))
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True)
            result = ToolResult.error(f"tool {name} failed: {e}")
        else:
            if not isinstance(result, ToolResult):
                logger.error(f"Tool {name} returned {type(result).__name__}, not a ToolResult")
                result = ToolResult.error(f"tool {name} returned no result")

        elapsed = time.monotonic() - t0
        logger.info(f"Tool {name}: {elapsed:.2f}s -> {result.type}")
        return result
