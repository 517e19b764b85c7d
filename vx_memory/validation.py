"""Input validation for VX memory operations.

Pure functions: each one checks a caller-supplied input, fills in defaults
and returns a normalized copy, or raises ``VXError(VALIDATION_ERROR)``.
A limit or token budget of 0 counts as unset and takes the default.
Nothing here touches the network.
"""

from __future__ import annotations

from dataclasses import replace

from vx_memory.errors import validation_error
from vx_memory.models import (
    ContextPacketInput,
    ListMemoriesInput,
    MemoryType,
    QueryMemoriesInput,
    StoreMemoryInput,
    UpdateMemoryInput,
)

DEFAULT_IMPORTANCE = 0.5
DEFAULT_QUERY_LIMIT = 10
DEFAULT_LIST_LIMIT = 20
DEFAULT_LIST_OFFSET = 0
DEFAULT_MAX_TOKENS = 4000


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_importance(importance) -> None:
    if not _is_number(importance) or not 0 <= importance <= 1:
        raise validation_error("importance must be a number between 0 and 1")


def _check_memory_type(memory_type) -> MemoryType:
    try:
        return MemoryType(memory_type)
    except ValueError:
        allowed = ", ".join(t.value for t in MemoryType)
        raise validation_error(f"memoryType must be one of {allowed}, got {memory_type!r}") from None


def _check_id(memory_id) -> str:
    if not isinstance(memory_id, str) or not memory_id.strip():
        raise validation_error("id is required and must be a string")
    return memory_id


def _check_positive_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise validation_error(f"{name} must be a positive integer")


def validate_store(data: StoreMemoryInput) -> StoreMemoryInput:
    """Content must be non-blank; importance defaults to 0.5, type to SEMANTIC."""
    if not isinstance(data.content, str):
        raise validation_error("content is required and must be a string")
    if not data.content.strip():
        raise validation_error("content cannot be empty or whitespace")

    importance = DEFAULT_IMPORTANCE
    if data.importance is not None:
        _check_importance(data.importance)
        importance = data.importance

    memory_type = MemoryType.SEMANTIC
    if data.memory_type is not None:
        memory_type = _check_memory_type(data.memory_type)

    return replace(data, memory_type=memory_type, importance=importance)


def validate_update(data: UpdateMemoryInput) -> UpdateMemoryInput:
    """An update needs an id and at least one field to change."""
    _check_id(data.id)

    if data.importance is not None:
        _check_importance(data.importance)
    memory_type = data.memory_type
    if memory_type is not None:
        memory_type = _check_memory_type(memory_type)

    changed = (data.content, data.context, memory_type, data.importance)
    if all(value is None for value in changed):
        raise validation_error("At least one field to update is required")

    return replace(data, memory_type=memory_type)


def validate_query(data: QueryMemoriesInput) -> QueryMemoriesInput:
    if not isinstance(data.query, str) or not data.query.strip():
        raise validation_error("query is required and must be a string")

    limit = DEFAULT_QUERY_LIMIT
    if data.limit not in (None, 0):
        _check_positive_int("limit", data.limit)
        limit = data.limit

    memory_type = data.memory_type
    if memory_type is not None:
        memory_type = _check_memory_type(memory_type)

    return replace(data, limit=limit, memory_type=memory_type)


def validate_list(data: ListMemoriesInput) -> ListMemoriesInput:
    """No required fields; limit defaults to 20 and offset to 0."""
    limit = DEFAULT_LIST_LIMIT
    if data.limit not in (None, 0):
        _check_positive_int("limit", data.limit)
        limit = data.limit

    offset = DEFAULT_LIST_OFFSET
    if data.offset is not None:
        if isinstance(data.offset, bool) or not isinstance(data.offset, int) or data.offset < 0:
            raise validation_error("offset must be a non-negative integer")
        offset = data.offset

    memory_type = data.memory_type
    if memory_type is not None:
        memory_type = _check_memory_type(memory_type)

    return replace(data, limit=limit, offset=offset, memory_type=memory_type)


def validate_context_packet(data: ContextPacketInput) -> ContextPacketInput:
    if not isinstance(data.topic, str) or not data.topic.strip():
        raise validation_error("topic is required and must be a string")

    max_tokens = DEFAULT_MAX_TOKENS
    if data.max_tokens not in (None, 0):
        _check_positive_int("maxTokens", data.max_tokens)
        max_tokens = data.max_tokens

    return replace(data, max_tokens=max_tokens)


def validate_delete(memory_id) -> str:
    return _check_id(memory_id)
