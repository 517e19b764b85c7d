"""VX API client — resilient request pipeline plus the memory operations.

Every operation validates its input first, then goes through one pipeline:

    build request -> attempt(i) -> success             -> parse -> return
                               -> fatal failure        -> raise VXError
                               -> retryable, last try  -> raise VXError
                               -> retryable, more left -> sleep(delay * 2**i) -> attempt(i+1)

Each attempt is bounded by the configured timeout. A timeout only ends the
in-flight attempt; the loop then decides whether to retry like for any
other failure. The client holds no per-call state, so one instance can
serve concurrent callers.

Usage:

    from vx_memory import VXClient, StoreMemoryInput

    client = VXClient.from_env()
    memory = client.store(StoreMemoryInput(content="User prefers dark mode"))
"""

from __future__ import annotations

import http.client
import json
import time
from concurrent import futures
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from pydantic import BaseModel, ValidationError

from vx_memory.config import ClientConfig, load_config
from vx_memory.errors import ErrorCode, VXError, classify_status
from vx_memory.models import (
    ContextPacketInput,
    ContextPacketResult,
    HealthStatus,
    ListMemoriesInput,
    ListResult,
    Memory,
    QueryMemoriesInput,
    QueryResult,
    StoreMemoryInput,
    UpdateMemoryInput,
)
from vx_memory.utils import CLIENT_TAG, VERSION, get_logger
from vx_memory.validation import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_LIST_OFFSET,
    validate_context_packet,
    validate_delete,
    validate_list,
    validate_query,
    validate_store,
    validate_update,
)

logger = get_logger("vx.client")

# Called as transport(request, timeout=seconds); returns a response with
# read() and optionally .status, and raises HTTPError/URLError like urlopen.
Transport = Callable[..., Any]

ModelT = TypeVar("ModelT", bound=BaseModel)


class VXClient:
    """Typed client for the VX memory API.

    Args:
        config: Validated client configuration.
        transport: Replacement for ``urllib.request.urlopen``.
        sleep: Replacement for ``time.sleep`` (seconds) used between attempts.
        clock: Monotonic clock (seconds) used to time health checks.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Transport | None = None,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config
        self._transport = transport or urlopen
        self._sleep = sleep or time.sleep
        self._clock = clock or time.monotonic
        self._executor = ThreadPoolExecutor(thread_name_prefix="vx-http")

    @classmethod
    def from_env(cls, path: str | None = None, **kwargs: Any) -> "VXClient":
        """Create a client from ~/.config/vx/config.yaml and VX_* env vars."""
        return cls(load_config(path), **kwargs)

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self.config.api_key,
            "X-Client": CLIENT_TAG,
            "X-Source": self.config.source,
        }

    def request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        *,
        max_retries: int | None = None,
    ) -> Any:
        """Run one logical call and return the decoded JSON body.

        An empty body (e.g. from DELETE) yields ``None``. A body that is not
        JSON raises a non-retryable ``VXError(UNKNOWN)``; it is never retried.
        """
        text = self._execute(method, path, body, max_retries=max_retries)
        return _decode(text)

    def _execute(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        *,
        max_retries: int | None = None,
    ) -> str:
        """The bounded retry loop. Returns the raw response text."""
        retries = self.config.max_retries if max_retries is None else max(0, max_retries)
        url = f"{self.config.api_url}{path}"
        data = json.dumps(body).encode() if body is not None else None

        for attempt in range(retries + 1):
            try:
                text = self._attempt(method, url, data)
            except VXError as exc:
                if not exc.retryable or attempt == retries:
                    logger.debug(
                        "%s %s failed after %d attempt(s): %s",
                        method, path, attempt + 1, exc.code.value,
                    )
                    raise
                delay_ms = self.config.backoff_delay_ms(attempt)
                logger.warning(
                    "%s %s failed (%s), retry %d/%d in %dms",
                    method, path, exc.code.value, attempt + 1, retries, delay_ms,
                )
                self._sleep(delay_ms / 1000)
                continue

            logger.debug("%s %s ok (attempt %d)", method, path, attempt + 1)
            return text

        # Every branch above returns or raises on the last attempt.
        raise VXError("Request loop ended without a result", ErrorCode.UNKNOWN)

    def _attempt(self, method: str, url: str, data: bytes | None) -> str:
        """Perform a single HTTP exchange, classifying every failure.

        The exchange runs on a worker thread so the whole attempt, not just
        each socket read, is held to the configured timeout.
        """
        req = Request(url, data=data, method=method, headers=self._headers())
        future = self._executor.submit(self._exchange, req)
        try:
            status, raw = future.result(timeout=self.config.timeout_seconds)
        except HTTPError as exc:
            raise _status_error(exc.code, _error_body(exc)) from exc
        except (TimeoutError, futures.TimeoutError) as exc:
            future.cancel()
            raise self._timeout_error() from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise self._timeout_error() from exc
            raise VXError(
                f"Network error: {exc.reason}", ErrorCode.NETWORK_ERROR
            ) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise VXError(f"Network error: {exc}", ErrorCode.NETWORK_ERROR) from exc
        except ValueError as exc:
            # http.client rejects header values it cannot encode or that hold CR/LF.
            raise VXError(
                f"Cannot send request: {exc}", ErrorCode.VALIDATION_ERROR, retryable=False
            ) from exc

        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else (raw or "")
        if not 200 <= status < 300:
            raise _status_error(status, text)
        return text

    def _exchange(self, req: Request) -> tuple[int, Any]:
        with self._transport(req, timeout=self.config.timeout_seconds) as resp:
            return getattr(resp, "status", None) or 200, resp.read()

    def _timeout_error(self) -> VXError:
        return VXError(
            f"Request timed out after {self.config.timeout_ms}ms", ErrorCode.TIMEOUT
        )

    # ------------------------------------------------------------------
    # Memory operations
    # ------------------------------------------------------------------

    def store(self, data: StoreMemoryInput) -> Memory:
        """Store a new memory."""
        data = validate_store(data)
        body: dict[str, Any] = {
            "content": data.content,
            "memoryType": data.memory_type.value,
            "importance": data.importance,
            "source": self.config.source,
            "metadata": {
                "source": self.config.source,
                "client": self.config.client_name,
                "version": VERSION,
            },
        }
        if data.context is not None:
            body["context"] = data.context
        return _parse(Memory, self.request("POST", "/v1/memories", body))

    def update(self, data: UpdateMemoryInput) -> Memory:
        """Update an existing memory; only the supplied fields are sent."""
        data = validate_update(data)
        updates: dict[str, Any] = {}
        if data.content is not None:
            updates["content"] = data.content
        if data.context is not None:
            updates["context"] = data.context
        if data.memory_type is not None:
            updates["memoryType"] = data.memory_type.value
        if data.importance is not None:
            updates["importance"] = data.importance
        return _parse(Memory, self.request("PATCH", memory_path(data.id), updates))

    def query(self, data: QueryMemoriesInput) -> QueryResult:
        """Search memories by semantic similarity."""
        data = validate_query(data)
        body: dict[str, Any] = {"query": data.query, "limit": data.limit}
        if data.context is not None:
            body["context"] = data.context
        if data.memory_type is not None:
            body["memoryType"] = data.memory_type.value
        return _parse(QueryResult, self.request("POST", "/v1/query", body))

    def list(self, data: ListMemoriesInput | None = None) -> ListResult:
        """List memories with optional filters."""
        data = validate_list(data or ListMemoriesInput())
        return _parse(ListResult, self.request("GET", list_path(data)))

    def delete(self, memory_id: str) -> None:
        """Delete a memory by ID. The API answers with an empty body."""
        memory_id = validate_delete(memory_id)
        self.request("DELETE", memory_path(memory_id))

    def get_context_packet(self, data: ContextPacketInput) -> ContextPacketResult:
        """Assemble relevant memories for a topic into one context block."""
        data = validate_context_packet(data)
        body = {"query": data.topic, "maxTokens": data.max_tokens}
        return _parse(ContextPacketResult, self.request("POST", "/v1/context-packet", body))

    def health_check(self) -> HealthStatus:
        """Probe /v1/health once. Never raises; failures become ok=False."""
        start = self._clock()
        try:
            self._execute("GET", "/v1/health", max_retries=0)
        except VXError as exc:
            latency = (self._clock() - start) * 1000
            logger.debug("Health check failed: %s", exc)
            return HealthStatus(ok=False, latency_ms=latency, error=exc.code.value)
        return HealthStatus(ok=True, latency_ms=(self._clock() - start) * 1000)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def memory_path(memory_id: str) -> str:
    return f"/v1/memories/{quote(memory_id, safe='')}"


def list_path(data: ListMemoriesInput) -> str:
    """Build the listing path; default paging values are left to the API."""
    params: list[tuple[str, str]] = []
    if data.limit is not None and data.limit != DEFAULT_LIST_LIMIT:
        params.append(("limit", str(data.limit)))
    if data.offset is not None and data.offset != DEFAULT_LIST_OFFSET:
        params.append(("offset", str(data.offset)))
    if data.context:
        params.append(("context", data.context))
    if data.memory_type is not None:
        params.append(("memoryType", getattr(data.memory_type, "value", data.memory_type)))

    query_string = urlencode(params)
    return f"/v1/memories?{query_string}" if query_string else "/v1/memories"


def _status_error(status: int, text: str) -> VXError:
    return VXError(
        f"VX API error: {status} - {text or 'Unknown error'}",
        classify_status(status),
        status_code=status,
    )


def _error_body(exc: HTTPError) -> str:
    try:
        raw = exc.read()
    except (OSError, http.client.HTTPException, AttributeError):
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw or ""


def _decode(text: str) -> Any:
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise VXError(
            f"Invalid JSON in VX API response: {exc.msg}",
            ErrorCode.UNKNOWN,
            retryable=False,
        ) from exc


def _parse(model: type[ModelT], data: Any) -> ModelT:
    if data is None:
        raise VXError(
            f"Empty response where {model.__name__} was expected",
            ErrorCode.UNKNOWN,
            retryable=False,
        )
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise VXError(
            f"Unexpected {model.__name__} response: {exc.error_count()} invalid field(s)",
            ErrorCode.UNKNOWN,
            retryable=False,
        ) from exc
