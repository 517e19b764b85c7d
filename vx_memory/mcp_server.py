"""MCP server for VX Memory — exposes store/update/query/list/delete/context tools.

Usage:
    python -m vx_memory.mcp_server        # Start MCP server (stdio)
    vx serve                              # Via CLI

Tool failures are returned as text starting with ``Error:`` so the host
can relay them; the server itself keeps running.
"""

from __future__ import annotations

import sys
from typing import Callable, Literal

from mcp.server.fastmcp import FastMCP

from vx_memory.client import VXClient
from vx_memory.config import display_name, load_config
from vx_memory.errors import VXError, log_error
from vx_memory.formatting import (
    format_context,
    format_deleted,
    format_error,
    format_list,
    format_query,
    format_stored,
    format_updated,
)
from vx_memory.models import (
    ContextPacketInput,
    ListMemoriesInput,
    QueryMemoriesInput,
    StoreMemoryInput,
    UpdateMemoryInput,
)
from vx_memory.utils import VERSION, get_logger

logger = get_logger("vx.mcp")

MemoryTypeName = Literal["SEMANTIC", "EPISODIC", "PROCEDURAL"]

INSTRUCTIONS = (
    "VX gives you persistent memory. Use vx_store to save facts, preferences "
    "or events worth remembering, vx_query or vx_context to recall them, "
    "vx_list to browse, vx_update to correct and vx_delete to remove."
)


def _run_tool(tool: str, action: Callable[[], str]) -> str:
    """Run a tool body, turning classified errors into a reply."""
    try:
        return action()
    except VXError as exc:
        log_error(exc, component=f"mcp.{tool}")
        return format_error(exc)


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------


def handle_store(client: VXClient, args: StoreMemoryInput, name: str = "VX") -> str:
    return _run_tool("vx_store", lambda: format_stored(client.store(args), name))


def handle_update(client: VXClient, args: UpdateMemoryInput) -> str:
    return _run_tool("vx_update", lambda: format_updated(client.update(args)))


def handle_query(client: VXClient, args: QueryMemoriesInput) -> str:
    return _run_tool("vx_query", lambda: format_query(client.query(args)))


def handle_list(client: VXClient, args: ListMemoriesInput) -> str:
    return _run_tool("vx_list", lambda: format_list(client.list(args)))


def handle_delete(client: VXClient, memory_id: str) -> str:
    def action() -> str:
        client.delete(memory_id)
        return format_deleted(memory_id)

    return _run_tool("vx_delete", action)


def handle_context(client: VXClient, args: ContextPacketInput) -> str:
    return _run_tool("vx_context", lambda: format_context(client.get_context_packet(args)))


def handle_health(client: VXClient) -> str:
    status = client.health_check()
    if status.ok:
        return f"VX API reachable ({status.latency_ms:.0f}ms)"
    return f"VX API unreachable: {status.error} ({status.latency_ms:.0f}ms)"


# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------


def create_server(client: VXClient, name: str = "VX") -> FastMCP:
    """Build the FastMCP server with every VX tool bound to ``client``."""
    mcp = FastMCP("vx-memory", instructions=INSTRUCTIONS)

    @mcp.tool()
    def vx_store(
        content: str,
        context: str | None = None,
        memoryType: MemoryTypeName = "SEMANTIC",  # noqa: N803
        importance: float | None = None,
    ) -> str:
        """Store a new memory in VX.

        Use this to save important information, facts, preferences, or
        anything the user might want to remember later.

        Args:
            content: The content to store as a memory.
            context: Optional context path (e.g. "work/projects", "personal/preferences").
            memoryType: SEMANTIC (facts/knowledge), EPISODIC (events/experiences),
                PROCEDURAL (how-to/processes).
            importance: Importance score from 0 to 1 (default: 0.5).
        """
        args = StoreMemoryInput(
            content=content, context=context, memory_type=memoryType, importance=importance,
        )
        return handle_store(client, args, name)

    @mcp.tool()
    def vx_update(
        id: str,  # noqa: A002
        content: str | None = None,
        context: str | None = None,
        memoryType: MemoryTypeName | None = None,  # noqa: N803
        importance: float | None = None,
    ) -> str:
        """Update an existing memory's content, context, type, or importance.

        Args:
            id: The ID of the memory to update.
            content: New content for the memory.
            context: New context path.
            memoryType: New memory type.
            importance: New importance score (0 to 1).
        """
        args = UpdateMemoryInput(
            id=id, content=content, context=context,
            memory_type=memoryType, importance=importance,
        )
        return handle_update(client, args)

    @mcp.tool()
    def vx_query(
        query: str,
        limit: int = 10,
        context: str | None = None,
        memoryType: MemoryTypeName | None = None,  # noqa: N803
    ) -> str:
        """Search memories by semantic similarity.

        Use this to recall information, find relevant context, or answer
        questions about past conversations and stored knowledge.

        Args:
            query: Natural language query to search memories.
            limit: Maximum number of results to return (default: 10).
            context: Optional context path to filter results.
            memoryType: Filter by memory type.
        """
        args = QueryMemoriesInput(query=query, limit=limit, context=context, memory_type=memoryType)
        return handle_query(client, args)

    @mcp.tool()
    def vx_list(
        limit: int = 20,
        offset: int = 0,
        context: str | None = None,
        memoryType: MemoryTypeName | None = None,  # noqa: N803
    ) -> str:
        """List memories with optional filters, to browse or find recent entries.

        Args:
            limit: Maximum number of results (default: 20).
            offset: Number of results to skip for pagination.
            context: Filter by context path.
            memoryType: Filter by memory type.
        """
        args = ListMemoriesInput(limit=limit, offset=offset, context=context, memory_type=memoryType)
        return handle_list(client, args)

    @mcp.tool()
    def vx_delete(id: str) -> str:  # noqa: A002
        """Delete a memory by ID, when the user wants information removed.

        Args:
            id: The ID of the memory to delete.
        """
        return handle_delete(client, id)

    @mcp.tool()
    def vx_context(topic: str, maxTokens: int = 4000) -> str:  # noqa: N803
        """Get a context packet of memories relevant to the current topic.

        Args:
            topic: The current topic or question to get relevant context for.
            maxTokens: Maximum tokens for the context packet (default: 4000).
        """
        return handle_context(client, ContextPacketInput(topic=topic, max_tokens=maxTokens))

    @mcp.tool()
    def vx_health() -> str:
        """Check whether the VX API is reachable and how fast it answers."""
        return handle_health(client)

    return mcp


def main():
    """Entry point for the MCP server process."""
    try:
        client = VXClient(load_config())
    except VXError as exc:
        print(f"Configuration Error: {exc.message}", file=sys.stderr)
        sys.exit(1)

    server = create_server(client, name=display_name())
    logger.info(
        "VX MCP Server v%s running on stdio (api=%s, source=%s)",
        VERSION, client.config.api_url, client.config.source,
    )
    server.run()


if __name__ == "__main__":
    main()
