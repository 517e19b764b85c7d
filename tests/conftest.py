"""Shared fixtures: a scripted HTTP transport, a recording sleep, temp paths."""

from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from email.message import Message
from typing import Any
from urllib.error import HTTPError

import pytest

import vx_memory.errors as errors_mod
from vx_memory.client import VXClient
from vx_memory.config import ClientConfig

API_URL = "https://api.test.com"


def memory_json(memory_id: str = "mem-1", **overrides: Any) -> dict:
    data = {
        "id": memory_id,
        "content": "The user prefers dark mode.",
        "context": "preferences/ui",
        "memoryType": "SEMANTIC",
        "importance": 0.7,
        "source": "test",
        "createdAt": "2026-02-24T10:00:00Z",
    }
    data.update(overrides)
    return data


class FakeResponse:
    """Stands in for the object urlopen returns."""

    def __init__(self, status: int = 200, body: Any = b""):
        self.status = status
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        self._body = body.encode() if isinstance(body, str) else body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def ok(body: Any = b"") -> FakeResponse:
    return FakeResponse(200, body)


def http_error(status: int, body: str = "") -> HTTPError:
    return HTTPError(f"{API_URL}/v1", status, "error", Message(), io.BytesIO(body.encode()))


@dataclass
class SentRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: Any
    timeout: float | None


@dataclass
class FakeTransport:
    """Replays scripted outcomes in order; the last one repeats forever.

    An outcome is either a FakeResponse to return or an exception to raise.
    """

    outcomes: list[Any] = field(default_factory=lambda: [ok()])
    requests: list[SentRequest] = field(default_factory=list)

    def __call__(self, req, timeout=None):
        self.requests.append(SentRequest(
            method=req.get_method(),
            url=req.full_url,
            headers=dict(req.header_items()),
            body=json.loads(req.data) if req.data else None,
            timeout=timeout,
        ))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> SentRequest:
        return self.requests[-1]


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def _patch_error_paths(tmp_path, monkeypatch):
    """Redirect the error log and config lookups to a temp directory."""
    monkeypatch.setattr(errors_mod, "LOG_DIR", tmp_path / "vx")
    monkeypatch.setattr(errors_mod, "ERROR_LOG", tmp_path / "vx" / "errors.log")
    monkeypatch.setenv("VX_CONFIG", str(tmp_path / "missing-config.yaml"))
    monkeypatch.delenv("VX_NAME", raising=False)


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api_url=API_URL, api_key="test-key", source="test")


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client(config, sleep):
    """Build a client around a FakeTransport scripted with ``outcomes``."""

    def _make(*outcomes, **overrides) -> tuple[VXClient, FakeTransport]:
        transport = FakeTransport(list(outcomes) or [ok()])
        cfg = config.with_overrides(**overrides) if overrides else config
        return VXClient(cfg, transport=transport, sleep=sleep), transport

    return _make
