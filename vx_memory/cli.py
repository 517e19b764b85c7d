"""VX CLI — command-line access to the VX memory API.

Commands:
    vx serve      Start the MCP server (stdio)
    vx health     Probe API reachability
    vx store      Store a memory
    vx update     Update a memory
    vx query      Semantic search
    vx list       Browse memories
    vx delete     Delete a memory
    vx context    Build a context packet for a topic
    vx config     Show the effective configuration
    vx errors     Show (or clear) recent errors
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from vx_memory.client import VXClient
from vx_memory.config import config_path, display_name, load_config
from vx_memory.errors import ERROR_LOG, VXError, clear_error_log, get_recent_errors, log_error
from vx_memory.formatting import (
    format_context,
    format_deleted,
    format_error,
    format_query,
    format_stored,
    format_updated,
    preview,
)
from vx_memory.models import (
    ContextPacketInput,
    ListMemoriesInput,
    MemoryType,
    QueryMemoriesInput,
    StoreMemoryInput,
    UpdateMemoryInput,
)
from vx_memory.utils import VERSION

console = Console()

MEMORY_TYPES = click.Choice([t.value for t in MemoryType], case_sensitive=False)


def _client() -> VXClient:
    try:
        return VXClient(load_config())
    except VXError as exc:
        console.print(f"Configuration Error: {exc.message}", style="red", markup=False)
        raise SystemExit(1)


def _fail(exc: VXError, command: str):
    log_error(exc, component=f"cli.{command}")
    console.print(format_error(exc), style="red", markup=False, highlight=False)
    raise SystemExit(1)


def _upper(value: str | None) -> str | None:
    return value.upper() if value else None


@click.group()
@click.version_option(VERSION, prog_name="vx")
def cli():
    """VX — persistent memory for AI agents."""


@cli.command()
def serve():
    """Start the MCP server (stdio transport)."""
    from vx_memory.mcp_server import main as run_server

    click.echo("Starting VX MCP server...", err=True)
    run_server()


@cli.command()
def health():
    """Check that the VX API is reachable."""
    client = _client()
    status = client.health_check()
    if status.ok:
        console.print(
            f"[green]Connected[/green] to {client.config.api_url} "
            f"({status.latency_ms:.0f}ms)"
        )
        return
    console.print(
        f"[red]Unreachable[/red]: {client.config.api_url} "
        f"({status.error}, {status.latency_ms:.0f}ms)"
    )
    raise SystemExit(1)


@cli.command()
@click.argument("content")
@click.option("--context", "-c", help="Context path, e.g. work/projects.")
@click.option("--type", "memory_type", type=MEMORY_TYPES, help="Memory type (default SEMANTIC).")
@click.option("--importance", "-i", type=float, help="Importance from 0 to 1 (default 0.5).")
def store(content, context, memory_type, importance):
    """Store a new memory."""
    client = _client()
    try:
        memory = client.store(StoreMemoryInput(
            content=content,
            context=context,
            memory_type=_upper(memory_type),
            importance=importance,
        ))
    except VXError as exc:
        _fail(exc, "store")
    console.print(format_stored(memory, display_name()), markup=False, highlight=False)


@cli.command()
@click.argument("memory_id")
@click.option("--content", help="New content.")
@click.option("--context", "-c", help="New context path.")
@click.option("--type", "memory_type", type=MEMORY_TYPES, help="New memory type.")
@click.option("--importance", "-i", type=float, help="New importance from 0 to 1.")
def update(memory_id, content, context, memory_type, importance):
    """Update fields of an existing memory."""
    client = _client()
    try:
        memory = client.update(UpdateMemoryInput(
            id=memory_id,
            content=content,
            context=context,
            memory_type=_upper(memory_type),
            importance=importance,
        ))
    except VXError as exc:
        _fail(exc, "update")
    console.print(format_updated(memory), markup=False, highlight=False)


@cli.command()
@click.argument("query_text")
@click.option("--limit", "-n", type=int, help="Maximum results (default 10).")
@click.option("--context", "-c", help="Filter by context path.")
@click.option("--type", "memory_type", type=MEMORY_TYPES, help="Filter by memory type.")
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON")
def query(query_text, limit, context, memory_type, as_json):
    """Search memories by semantic similarity."""
    client = _client()
    try:
        result = client.query(QueryMemoriesInput(
            query=query_text,
            limit=limit,
            context=context,
            memory_type=_upper(memory_type),
        ))
    except VXError as exc:
        _fail(exc, "query")

    if as_json:
        click.echo(result.model_dump_json(by_alias=True, indent=2))
        return
    console.print(format_query(result), markup=False, highlight=False)


@cli.command(name="list")
@click.option("--limit", "-n", type=int, help="Maximum results (default 20).")
@click.option("--offset", type=int, help="Results to skip.")
@click.option("--context", "-c", help="Filter by context path.")
@click.option("--type", "memory_type", type=MEMORY_TYPES, help="Filter by memory type.")
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON")
def list_memories(limit, offset, context, memory_type, as_json):
    """List memories with optional filters."""
    client = _client()
    try:
        result = client.list(ListMemoriesInput(
            limit=limit,
            offset=offset,
            context=context,
            memory_type=_upper(memory_type),
        ))
    except VXError as exc:
        _fail(exc, "list")

    if as_json:
        click.echo(result.model_dump_json(by_alias=True, indent=2))
        return

    if not result.memories:
        console.print("No memories found.")
        return

    table = Table(
        show_header=True,
        title=f"Memories {result.offset + 1}-{result.offset + len(result.memories)} of {result.total}",
    )
    table.add_column("ID", style="bold")
    table.add_column("Type")
    table.add_column("Context", style="dim")
    table.add_column("Content")
    for m in result.memories:
        table.add_row(
            escape(m.id),
            m.memory_type.value,
            escape(m.context or ""),
            escape(preview(m.content)),
        )
    console.print(table)


@cli.command()
@click.argument("memory_id")
def delete(memory_id):
    """Delete a memory by ID."""
    client = _client()
    try:
        client.delete(memory_id)
    except VXError as exc:
        _fail(exc, "delete")
    console.print(format_deleted(memory_id), markup=False, highlight=False)


@cli.command()
@click.argument("topic")
@click.option("--max-tokens", type=int, help="Token budget (default 4000).")
def context(topic, max_tokens):
    """Assemble a context packet for a topic."""
    client = _client()
    try:
        result = client.get_context_packet(ContextPacketInput(topic=topic, max_tokens=max_tokens))
    except VXError as exc:
        _fail(exc, "context")
    console.print(format_context(result), markup=False, highlight=False)


@cli.command()
def config():
    """Show the effective configuration (API key masked)."""
    cfg = _client().config
    table = Table(show_header=True, title=f"VX config ({config_path()})")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in cfg.redacted().items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


@cli.command()
@click.option("--lines", "-n", default=20, help="Number of errors to show.")
@click.option("--clear", is_flag=True, help="Clear the error log.")
def errors(lines, clear):
    """Show recent errors from the error log."""
    if clear:
        clear_error_log()
        console.print("[green]Error log cleared.[/green]")
        return

    recent = get_recent_errors(limit=lines)
    if not recent:
        console.print(f"[dim]No errors logged ({ERROR_LOG}).[/dim]")
        return

    table = Table(show_header=True, title=f"Recent errors ({len(recent)})")
    table.add_column("Time", style="dim")
    table.add_column("Component")
    table.add_column("Code", style="bold")
    table.add_column("Message")
    for entry in recent:
        table.add_row(
            entry.get("timestamp", "?")[:19],
            entry.get("component", "?"),
            entry.get("code", "?"),
            escape(entry.get("message", "")),
        )
    console.print(table)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
