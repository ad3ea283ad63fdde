"""MCP transport for the workflow executor.

`open_mcp_session()` connects to a streamable-HTTP MCP server and yields an
initialized `MCPToolClient`, which satisfies the executor's ToolClient
protocol.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional

import anyio
from mcp.client.session import ClientSession
from mcp.client.streamable_http import streamable_http_client

from chainprobe.config.settings import Settings
from chainprobe.core.exceptions import ToolInvocationError

logger = logging.getLogger("chainprobe.mcp_client")


class MCPToolClient:
    """Adapts an MCP ClientSession to the ToolClient protocol."""

    def __init__(self, session: Any):
        self._session = session

    async def call_tool(self, name: str, args: Mapping[str, Any]) -> Dict[str, Any]:
        logger.info("MCP call_tool start name=%s", name)
        result = await self._session.call_tool(name, dict(args or {}))
        logger.info("MCP call_tool complete name=%s is_error=%s", name, bool(getattr(result, "isError", False)))
        if isinstance(result, Mapping):
            return dict(result)
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def list_tools(self) -> List[str]:
        """Return the tool names the server advertises."""
        result = await self._session.list_tools()
        return [tool.name for tool in getattr(result, "tools", None) or []]


@asynccontextmanager
async def open_mcp_session(
    url: Optional[str] = None,
    timeout_s: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> AsyncIterator[MCPToolClient]:
    """Connect to an MCP server and yield a ready MCPToolClient.

    Raises:
        ToolInvocationError: If the session cannot be initialized in time.
    """
    if url is None or timeout_s is None:
        settings = settings or Settings()
        url = url or settings.mcp_url
        timeout_s = timeout_s or settings.mcp_timeout_s

    logger.info("Opening MCP session url=%s", url)
    try:
        async with streamable_http_client(url) as (read_stream, write_stream, _):
            async with ClientSession(
                read_stream,
                write_stream,
                read_timeout_seconds=timedelta(seconds=timeout_s),
            ) as session:
                try:
                    with anyio.fail_after(timeout_s):
                        await session.initialize()
                except TimeoutError as exc:
                    raise ToolInvocationError(
                        f"MCP initialize timed out after {timeout_s:.1f}s",
                        context={"url": url},
                    ) from exc
                logger.info("MCP initialize complete")
                yield MCPToolClient(session)
    except ExceptionGroup as exc:
        details = format_exception_group(exc)
        logger.error("MCP session failed with exception group: %s", details)
        raise ToolInvocationError(f"MCP session failed: {details}", context={"url": url}) from exc


def format_exception_group(exc: BaseExceptionGroup) -> str:
    parts = [f"{type(item).__name__}: {item}" for item in _flatten_exceptions(exc)]
    return "; ".join(parts) if parts else str(exc)


def _flatten_exceptions(exc: BaseExceptionGroup) -> Iterable[BaseException]:
    for item in exc.exceptions:
        if isinstance(item, BaseExceptionGroup):
            yield from _flatten_exceptions(item)
        else:
            yield item
