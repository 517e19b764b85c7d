"""VX Memory models — operation inputs and the records returned by the API.

Inputs are plain dataclasses built by the caller and checked by
``vx_memory.validation``. Responses are validated with Pydantic; the API
speaks camelCase, so every response model accepts both the wire alias and
the Python field name.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MemoryType(str, Enum):
    """Memory classification.

    SEMANTIC: facts, knowledge, information.
    EPISODIC: events, experiences, conversations.
    PROCEDURAL: how-to, processes, instructions.
    """

    SEMANTIC = "SEMANTIC"
    EPISODIC = "EPISODIC"
    PROCEDURAL = "PROCEDURAL"


# ---------------------------------------------------------------------------
# Operation inputs
# ---------------------------------------------------------------------------


@dataclass
class StoreMemoryInput:
    content: str
    context: str | None = None
    memory_type: MemoryType | str | None = None
    importance: float | None = None


@dataclass
class UpdateMemoryInput:
    id: str
    content: str | None = None
    context: str | None = None
    memory_type: MemoryType | str | None = None
    importance: float | None = None


@dataclass
class QueryMemoriesInput:
    query: str
    limit: int | None = None
    context: str | None = None
    memory_type: MemoryType | str | None = None


@dataclass
class ListMemoriesInput:
    limit: int | None = None
    offset: int | None = None
    context: str | None = None
    memory_type: MemoryType | str | None = None


@dataclass
class ContextPacketInput:
    topic: str
    max_tokens: int | None = None


# ---------------------------------------------------------------------------
# API responses
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Memory(_WireModel):
    """A memory record stored in VX."""

    id: str = Field(..., description="Unique identifier")
    content: str = Field(..., description="The memory content")
    context: str | None = Field(default=None, description="Context path, e.g. 'work/projects'")
    memory_type: MemoryType = Field(default=MemoryType.SEMANTIC, alias="memoryType")
    importance: float | None = Field(default=None, ge=0, le=1)
    source: str | None = Field(default=None, description="Originating client, e.g. 'cursor'")
    metadata: dict[str, Any] | None = Field(default=None)
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class QueryResult(_WireModel):
    """Semantic search hits."""

    memories: list[Memory] = Field(default_factory=list)
    total: int = 0


class ListResult(_WireModel):
    """One page of a filtered listing."""

    memories: list[Memory] = Field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 20


class ContextPacketResult(_WireModel):
    """Assembled context text for a topic."""

    context: str = ""
    memory_count: int = Field(default=0, alias="memoryCount")


class HealthStatus(BaseModel):
    """Outcome of a reachability probe."""

    ok: bool
    latency_ms: float
    error: str | None = None
