"""Plain-text rendering of VX results for tool replies and the CLI."""

from __future__ import annotations

from vx_memory.errors import VXError
from vx_memory.models import ContextPacketResult, ListResult, Memory, QueryResult

PREVIEW_CHARS = 100
RETRY_HINT = " (this error may be temporary, please try again)"


def format_stored(memory: Memory, name: str = "VX") -> str:
    return f"✓ Memory stored by {name} (ID: {memory.id}, type: {memory.memory_type.value})"


def format_updated(memory: Memory) -> str:
    return f"✓ Memory updated (ID: {memory.id})"


def format_deleted(memory_id: str) -> str:
    return f"✓ Memory deleted successfully (ID: {memory_id})"


def format_query(result: QueryResult) -> str:
    if not result.memories:
        return "No relevant memories found."

    entries = []
    for i, m in enumerate(result.memories, 1):
        suffix = f" (context: {m.context})" if m.context else ""
        entries.append(f"[{i}] {m.content}{suffix}")
    formatted = "\n\n".join(entries)
    return f"Found {len(result.memories)} relevant memories:\n\n{formatted}"


def preview(content: str, width: int = PREVIEW_CHARS) -> str:
    return content[:width] + ("..." if len(content) > width else "")


def format_list(result: ListResult) -> str:
    if not result.memories:
        return "No memories found."

    lines = [
        f"[{i}] ({m.id}) {preview(m.content)}"
        for i, m in enumerate(result.memories, 1)
    ]
    formatted = "\n".join(lines)
    return f"Showing {len(result.memories)} of {result.total} memories:\n\n{formatted}"


def format_context(result: ContextPacketResult) -> str:
    if not result.context or result.memory_count == 0:
        return "No relevant context found for this topic."
    return f"Context from {result.memory_count} memories:\n\n{result.context}"


def format_error(error: Exception) -> str:
    """Render a failure for an end user, flagging transient ones."""
    if isinstance(error, VXError):
        message = f"{error.code.value}: {error.message}"
        if error.retryable:
            message += RETRY_HINT
    else:
        message = str(error)
    return f"Error: {message}"
