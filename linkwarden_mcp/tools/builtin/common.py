"""Shared response handling for the Linkwarden tools."""
import logging
from typing import Awaitable

import httpx

from ...client import ApiResponse
from ..registry import ToolResult

logger = logging.getLogger(__name__)


def failure(action: str, detail) -> ToolResult:
    return ToolResult.error(f"Failed to {action}: {detail}")


async def _call(action: str, call: Awaitable[ApiResponse]):
    try:
        return await call, None
    except httpx.HTTPError as e:
        logger.error(f"Linkwarden API error ({action}): {type(e).__name__}: {e}")
        return None, failure(action, str(e) or type(e).__name__)


async def json_result(action: str, call: Awaitable[ApiResponse]) -> ToolResult:
    """Return the JSON body of a 200 response, or an error result."""
    resp, error = await _call(action, call)
    if error:
        return error
    if resp.data is not None:
        return ToolResult.of_json(resp.data)
    logger.warning(f"Linkwarden API ({action}) answered {resp.status}")
    return failure(action, resp.status)


async def confirm_result(action: str, call: Awaitable[ApiResponse], message: str) -> ToolResult:
    """Return `message` when the API answered 200, or an error result."""
    resp, error = await _call(action, call)
    if error:
        return error
    if resp.ok:
        return ToolResult.of_text(message)
    logger.warning(f"Linkwarden API ({action}) answered {resp.status}")
    return failure(action, resp.status)
