# Tool descriptors and request dispatch for the MCP server.
# Validates the loose argument mapping of a tool call, routes it to the search
# client or the URL reader, and wraps the outcome in a uniform envelope.
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Union

import searxng
import web_tools
from searxng import SearxngConfig

logger = logging.getLogger(__name__)

# Prefixed to every successful tool result ("plain text below, no images").
PLAIN_TEXT_NOTICE = "（以下为纯文本内容，不包含图片）"


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: Mapping[str, Any]

    def schema_dict(self) -> dict[str, Any]:
        # Mutable copy; the shared descriptor stays read-only.
        properties = {k: dict(v) for k, v in self.input_schema["properties"].items()}
        for prop in properties.values():
            if "enum" in prop:
                prop["enum"] = list(prop["enum"])
        return {
            "type": self.input_schema["type"],
            "properties": properties,
            "required": list(self.input_schema["required"]),
        }


WEB_SEARCH_TOOL = ToolDescriptor(
    name="searxng_web_search",
    description=(
        "Performs a web search using the SearXNG API, ideal for general queries, news, articles, and online content. "
        "Use this for broad information gathering, recent events, or when you need diverse web sources."
    ),
    input_schema=MappingProxyType(
        {
            "type": "object",
            "properties": MappingProxyType(
                {
                    "query": MappingProxyType(
                        {
                            "type": "string",
                            "description": "The search query. This is the main input for the web search",
                        }
                    ),
                    "pageno": MappingProxyType(
                        {
                            "type": "number",
                            "description": "Search page number (starts at 1)",
                            "default": 1,
                        }
                    ),
                    "time_range": MappingProxyType(
                        {
                            "type": "string",
                            "description": "Time range of search (day, month, year)",
                            "enum": searxng.TIME_RANGES,
                            "default": "",
                        }
                    ),
                    "language": MappingProxyType(
                        {
                            "type": "string",
                            "description": (
                                "Language code for search results (e.g., 'en', 'fr', 'de'). "
                                "Default is instance-dependent."
                            ),
                            "default": "all",
                        }
                    ),
                    "safesearch": MappingProxyType(
                        {
                            "type": "string",
                            "description": "Safe search filter level (0: None, 1: Moderate, 2: Strict)",
                            "enum": searxng.SAFESEARCH_LEVELS,
                            "default": "0",
                        }
                    ),
                }
            ),
            "required": ("query",),
        }
    ),
)

READ_URL_TOOL = ToolDescriptor(
    name="web_url_read",
    description=(
        "Read the content from an URL. "
        "Use this for further information retrieving to understand the content of each URL."
    ),
    input_schema=MappingProxyType(
        {
            "type": "object",
            "properties": MappingProxyType(
                {"url": MappingProxyType({"type": "string", "description": "URL"})}
            ),
            "required": ("url",),
        }
    ),
)

TOOLS: tuple[ToolDescriptor, ...] = (WEB_SEARCH_TOOL, READ_URL_TOOL)


def list_tools() -> list[ToolDescriptor]:
    # Fixed order: search first, then read.
    return list(TOOLS)


@dataclass(frozen=True)
class SearchArgs:
    query: str
    pageno: Any = 1
    time_range: str | None = None
    language: str | None = "all"
    safesearch: Any = None

    @staticmethod
    def parse(arguments: Mapping[str, Any]) -> "SearchArgs":
        # `query` is the only required field and must be text.
        query = arguments.get("query")
        if not isinstance(query, str):
            raise web_tools.ValidationError(f"Invalid arguments for {WEB_SEARCH_TOOL.name}")
        # Missing optional fields fall back to the schema defaults.
        return SearchArgs(
            query=query,
            pageno=arguments.get("pageno", 1),
            time_range=arguments.get("time_range"),
            language=arguments.get("language", "all"),
            safesearch=arguments.get("safesearch"),
        )


@dataclass(frozen=True)
class ReadArgs:
    url: Any

    @staticmethod
    def parse(arguments: Mapping[str, Any]) -> "ReadArgs":
        # URL problems surface from the fetcher itself.
        return ReadArgs(url=arguments.get("url"))


ToolArgs = Union[SearchArgs, ReadArgs]

_ARG_PARSERS = {
    WEB_SEARCH_TOOL.name: SearchArgs.parse,
    READ_URL_TOOL.name: ReadArgs.parse,
}


@dataclass(frozen=True)
class Envelope:
    text: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        # Wire shape of an MCP tool result.
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


def parse_arguments(name: str, arguments: Mapping[str, Any] | None) -> ToolArgs | None:
    """
    Turn the raw argument mapping into the typed arguments for `name`.

    Returns None for unknown tools. Raises `ValidationError` when the mapping is
    empty or lacks what the tool requires.
    """
    # Empty bag is reported before the tool name is checked.
    if not arguments:
        raise web_tools.ValidationError("No arguments provided")
    parser = _ARG_PARSERS.get(name)
    if parser is None:
        return None
    return parser(arguments)


def _run(args: ToolArgs, config: SearxngConfig | None) -> str:
    # Route on the argument variant.
    if isinstance(args, SearchArgs):
        return searxng.web_search(
            args.query,
            args.pageno,
            args.time_range,
            args.language,
            args.safesearch,
            config=config,
        )
    return web_tools.fetch_and_convert_to_markdown(args.url)


def call_tool(
    name: str,
    arguments: Mapping[str, Any] | None,
    *,
    config: SearxngConfig | None = None,
) -> Envelope:
    # Every failure in validation, transport, parsing or conversion ends here.
    try:
        args = parse_arguments(name, arguments)
        # Unknown names never reach the network.
        if args is None:
            return Envelope(f"Unknown tool: {name}", is_error=True)
        result = _run(args, config)
    except Exception as e:
        logger.warning("Tool %s failed: %s", name, e)
        # No partial output: the whole call becomes one error block.
        return Envelope(f"Error: {e}", is_error=True)
    # Successful results carry the plain-text notice.
    return Envelope(PLAIN_TEXT_NOTICE + result)
