"""Tests for input validation and default filling."""

from __future__ import annotations

import pytest

from vx_memory.errors import ErrorCode, VXError
from vx_memory.models import (
    ContextPacketInput,
    ListMemoriesInput,
    MemoryType,
    QueryMemoriesInput,
    StoreMemoryInput,
    UpdateMemoryInput,
)
from vx_memory.validation import (
    validate_context_packet,
    validate_delete,
    validate_list,
    validate_query,
    validate_store,
    validate_update,
)


def _rejects(func, arg, message: str) -> VXError:
    with pytest.raises(VXError, match=message) as exc_info:
        func(arg)
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
    assert exc_info.value.retryable is False
    return exc_info.value


class TestValidateStore:
    def test_fills_defaults(self):
        data = validate_store(StoreMemoryInput(content="User likes tea"))
        assert data.importance == 0.5
        assert data.memory_type == MemoryType.SEMANTIC
        assert data.context is None

    def test_keeps_supplied_values(self):
        data = validate_store(StoreMemoryInput(
            content="Met Ana at the conference", memory_type="EPISODIC", importance=1,
        ))
        assert data.memory_type == MemoryType.EPISODIC
        assert data.importance == 1

    def test_does_not_mutate_input(self):
        original = StoreMemoryInput(content="x")
        validate_store(original)
        assert original.importance is None

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_content(self, content):
        _rejects(validate_store, StoreMemoryInput(content=content), "empty or whitespace")

    def test_non_string_content(self):
        _rejects(validate_store, StoreMemoryInput(content=None), "content is required")

    @pytest.mark.parametrize("importance", [-0.1, 1.01, True, "high"])
    def test_bad_importance(self, importance):
        _rejects(
            validate_store,
            StoreMemoryInput(content="x", importance=importance),
            "importance must be a number between 0 and 1",
        )

    @pytest.mark.parametrize("importance", [0, 0.0, 1.0])
    def test_importance_bounds_inclusive(self, importance):
        assert validate_store(StoreMemoryInput(content="x", importance=importance)).importance == importance

    def test_bad_memory_type(self):
        _rejects(validate_store, StoreMemoryInput(content="x", memory_type="FACT"), "memoryType must be one of")


class TestValidateUpdate:
    def test_requires_a_change(self):
        _rejects(validate_update, UpdateMemoryInput(id="mem-1"), "At least one field")

    @pytest.mark.parametrize("memory_id", ["", "  ", None])
    def test_requires_id(self, memory_id):
        _rejects(validate_update, UpdateMemoryInput(id=memory_id, content="x"), "id is required")

    def test_single_field_is_enough(self):
        data = validate_update(UpdateMemoryInput(id="mem-1", memory_type="PROCEDURAL"))
        assert data.memory_type == MemoryType.PROCEDURAL
        assert data.content is None

    def test_bad_importance(self):
        _rejects(validate_update, UpdateMemoryInput(id="mem-1", importance=2), "importance")


class TestValidateQuery:
    def test_default_limit(self):
        assert validate_query(QueryMemoriesInput(query="tea?")).limit == 10

    def test_zero_limit_takes_default(self):
        assert validate_query(QueryMemoriesInput(query="tea?", limit=0)).limit == 10

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query(self, query):
        _rejects(validate_query, QueryMemoriesInput(query=query), "query is required")

    @pytest.mark.parametrize("limit", [-3, 2.5, "5"])
    def test_bad_limit(self, limit):
        _rejects(validate_query, QueryMemoriesInput(query="q", limit=limit), "limit must be a positive integer")

    def test_memory_type_filter(self):
        data = validate_query(QueryMemoriesInput(query="q", memory_type="EPISODIC"))
        assert data.memory_type == MemoryType.EPISODIC


class TestValidateList:
    def test_defaults(self):
        data = validate_list(ListMemoriesInput())
        assert data.limit == 20
        assert data.offset == 0
        assert data.context is None
        assert data.memory_type is None

    def test_negative_offset(self):
        _rejects(validate_list, ListMemoriesInput(offset=-1), "offset must be a non-negative integer")

    def test_zero_limit_takes_default(self):
        assert validate_list(ListMemoriesInput(limit=0)).limit == 20

    def test_negative_limit(self):
        _rejects(validate_list, ListMemoriesInput(limit=-1), "limit")


class TestValidateContextPacket:
    def test_default_max_tokens(self):
        assert validate_context_packet(ContextPacketInput(topic="deploys")).max_tokens == 4000

    def test_empty_topic(self):
        _rejects(validate_context_packet, ContextPacketInput(topic=" "), "topic is required")

    def test_bad_max_tokens(self):
        _rejects(validate_context_packet, ContextPacketInput(topic="t", max_tokens=-1), "maxTokens")

    def test_zero_max_tokens_takes_default(self):
        assert validate_context_packet(ContextPacketInput(topic="t", max_tokens=0)).max_tokens == 4000


class TestValidateDelete:
    def test_returns_id(self):
        assert validate_delete("mem-1") == "mem-1"

    def test_empty_id(self):
        _rejects(validate_delete, "", "id is required")
