# FastMCP stdio server exposing SearXNG search and URL reading as MCP tools.
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent

import tool_dispatch

__version__ = "0.4.6"

SERVER_NAME = "ihor-sokoliuk/mcp-searxng"

logger = logging.getLogger(__name__)


class DispatchedTool(Tool):
    """
    MCP tool backed by `tool_dispatch.call_tool`.

    Arguments reach the dispatcher untouched so it owns validation; the schema
    advertised to clients is the descriptor schema as-is.
    """

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        # Dispatch does blocking HTTP; keep it off the event loop.
        envelope = await asyncio.to_thread(tool_dispatch.call_tool, self.name, arguments)
        payload = envelope.to_dict()
        blocks = [TextContent(**block) for block in payload["content"]]
        if payload["isError"]:
            # Surfaces to the client as a text block with isError=true.
            raise ToolError("\n".join(block.text for block in blocks))
        return ToolResult(content=blocks)


def build_server() -> FastMCP:
    server = FastMCP(SERVER_NAME, version=__version__)
    for descriptor in tool_dispatch.list_tools():
        server.add_tool(
            DispatchedTool(
                name=descriptor.name,
                description=descriptor.description,
                parameters=descriptor.schema_dict(),
            )
        )
    return server


# MCP server instance shown in logs/clients.
mcp = build_server()


def configure_logging(level: str) -> None:
    # stdout carries the protocol stream; logs go to stderr only.
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mcp-searxng",
        description="MCP server for SearXNG web search and URL reading (stdio).",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: LOG_LEVEL env or INFO).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    logger.info("Starting %s %s (SEARXNG_URL=%s)", SERVER_NAME, __version__, os.getenv("SEARXNG_URL") or "default")
    try:
        # Start MCP stdio server loop.
        mcp.run()
    except Exception:
        logger.exception("Fatal error running server")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
