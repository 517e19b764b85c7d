"""VX Memory — typed client and MCP bridge for the VX memory API.

Stores, searches and assembles long-term memories for AI agents through a
resilient HTTP pipeline with bounded retries and classified errors.
"""

__version__ = "0.3.0"

from vx_memory.client import VXClient
from vx_memory.config import ClientConfig, detect_source, load_config
from vx_memory.errors import ErrorCode, VXError
from vx_memory.models import (
    ContextPacketInput,
    ContextPacketResult,
    HealthStatus,
    ListMemoriesInput,
    ListResult,
    Memory,
    MemoryType,
    QueryMemoriesInput,
    QueryResult,
    StoreMemoryInput,
    UpdateMemoryInput,
)

__all__ = [
    "VXClient",
    "ClientConfig",
    "detect_source",
    "load_config",
    "ErrorCode",
    "VXError",
    "Memory",
    "MemoryType",
    "StoreMemoryInput",
    "UpdateMemoryInput",
    "QueryMemoriesInput",
    "ListMemoriesInput",
    "ContextPacketInput",
    "QueryResult",
    "ListResult",
    "ContextPacketResult",
    "HealthStatus",
]
