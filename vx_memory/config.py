"""Configuration loading: defaults + YAML file + environment variable overrides.

``load_config()`` is the only place that reads the environment. It produces
an immutable ``ClientConfig`` that is validated once and then handed to
the client; nothing downstream mutates it.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from vx_memory.errors import validation_error
from vx_memory.utils import (
    CONFIG_FILE,
    DEFAULT_API_URL,
    DEFAULT_CLIENT_NAME,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
)

DEFAULTS: dict[str, Any] = {
    "api": {
        "url": DEFAULT_API_URL,
        "key": "",
    },
    "client": {
        "source": None,
        "name": DEFAULT_CLIENT_NAME,
        "display_name": "VX",
    },
    "retry": {
        "max_retries": DEFAULT_MAX_RETRIES,
        "delay_ms": DEFAULT_RETRY_DELAY_MS,
        "max_delay_ms": None,
        "timeout_ms": DEFAULT_TIMEOUT_MS,
    },
}

ENV_MAP: dict[str, tuple[tuple[str, ...], type]] = {
    "VX_API_URL": (("api", "url"), str),
    "VX_API_KEY": (("api", "key"), str),
    "VX_SOURCE": (("client", "source"), str),
    "VX_CLIENT_NAME": (("client", "name"), str),
    "VX_NAME": (("client", "display_name"), str),
    "VX_MAX_RETRIES": (("retry", "max_retries"), int),
    "VX_RETRY_DELAY": (("retry", "delay_ms"), int),
    "VX_MAX_RETRY_DELAY": (("retry", "max_delay_ms"), int),
    "VX_TIMEOUT": (("retry", "timeout_ms"), int),
}


def detect_source(env: Mapping[str, str] | None = None, cwd: str | None = None) -> str:
    """Guess which MCP host launched us from its environment."""
    env = os.environ if env is None else env
    cwd = os.getcwd() if cwd is None else cwd

    if env.get("CURSOR_SESSION_ID") or "cursor" in cwd:
        return "cursor"
    if env.get("WINDSURF_SESSION") or "windsurf" in cwd:
        return "windsurf"
    if env.get("CLAUDE_DESKTOP") or "Claude" in cwd:
        return "claude"
    if env.get("VSCODE_PID") or "vscode" in cwd:
        return "vscode"
    if env.get("CONTINUE_IDE"):
        return "continue"
    return "mcp"


@dataclass(frozen=True)
class ClientConfig:
    """Validated, read-only settings shared by every request."""

    api_url: str
    api_key: str
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    source: str = field(default_factory=detect_source)
    client_name: str = DEFAULT_CLIENT_NAME
    # None leaves the exponential backoff uncapped.
    max_retry_delay_ms: int | None = None

    def __post_init__(self):
        if not self.api_url:
            raise validation_error(
                "VX_API_URL is required. Set it via environment variable or config."
            )
        if not self.api_key:
            raise validation_error(
                "VX_API_KEY is required. Get one at https://vessel.nyc/settings/api-keys"
            )

        parsed = urlparse(self.api_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise validation_error(
                f"Invalid VX_API_URL: {self.api_url}. Must be a valid URL."
            )

        if self.max_retries < 0:
            raise validation_error("max_retries must be >= 0")
        if self.retry_delay_ms < 0:
            raise validation_error("retry_delay_ms must be >= 0")
        if self.timeout_ms <= 0:
            raise validation_error("timeout_ms must be > 0")
        if self.max_retry_delay_ms is not None and self.max_retry_delay_ms < 0:
            raise validation_error("max_retry_delay_ms must be >= 0")

        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))
        if not self.source:
            object.__setattr__(self, "source", detect_source())

        for name, value in (("VX_API_KEY", self.api_key), ("VX_SOURCE", self.source)):
            if not _header_safe(value):
                raise validation_error(
                    f"{name} must be Latin-1 text without line breaks (sent as an HTTP header)"
                )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def backoff_delay_ms(self, attempt: int) -> int:
        """Delay before the attempt following ``attempt`` (0-based)."""
        delay = self.retry_delay_ms * (2 ** attempt)
        if self.max_retry_delay_ms is not None:
            delay = min(delay, self.max_retry_delay_ms)
        return delay

    def with_overrides(self, **changes: Any) -> "ClientConfig":
        """Return a re-validated copy with some fields replaced."""
        return replace(self, **changes)

    def redacted(self) -> dict[str, Any]:
        """Settings suitable for display; the key is masked."""
        key = self.api_key
        masked = f"{key[:4]}…{key[-2:]}" if len(key) > 8 else "***"
        return {
            "api_url": self.api_url,
            "api_key": masked,
            "max_retries": self.max_retries,
            "retry_delay_ms": self.retry_delay_ms,
            "max_retry_delay_ms": self.max_retry_delay_ms,
            "timeout_ms": self.timeout_ms,
            "source": self.source,
            "client_name": self.client_name,
        }


def config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get("VX_CONFIG")
    return Path(override).expanduser() if override else CONFIG_FILE


def load_config_data(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Merge defaults, the YAML file (if present) and env var overrides."""
    env = os.environ if env is None else env
    merged = copy.deepcopy(DEFAULTS)

    file_path = Path(path).expanduser() if path else config_path(env)
    if file_path.exists():
        try:
            with open(file_path) as f:
                file_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise validation_error(f"Cannot parse {file_path}: {exc}") from exc
        if not isinstance(file_data, dict):
            raise validation_error(f"{file_path} must contain a mapping")
        _deep_merge(merged, file_data)

    for env_key, (keys, convert) in ENV_MAP.items():
        val = env.get(env_key)
        if val is None or (val == "" and convert is not str):
            continue
        try:
            _set_nested(merged, keys, convert(val))
        except ValueError:
            raise validation_error(f"{env_key} must be an integer, got {val!r}") from None

    return merged


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Build a ``ClientConfig`` from file + environment."""
    env = os.environ if env is None else env
    data = load_config_data(path, env)
    api, client, retry = data["api"], data["client"], data["retry"]
    try:
        max_retries = int(retry["max_retries"])
        retry_delay_ms = int(retry["delay_ms"])
        timeout_ms = int(retry["timeout_ms"])
        max_delay = retry.get("max_delay_ms")
        max_retry_delay_ms = None if max_delay is None else int(max_delay)
    except (TypeError, ValueError) as exc:
        raise validation_error(f"Invalid retry settings: {exc}") from exc

    return ClientConfig(
        api_url=str(api.get("url") or ""),
        api_key=str(api.get("key") or ""),
        max_retries=max_retries,
        retry_delay_ms=retry_delay_ms,
        timeout_ms=timeout_ms,
        source=str(client.get("source") or detect_source(env)),
        client_name=client.get("name") or DEFAULT_CLIENT_NAME,
        max_retry_delay_ms=max_retry_delay_ms,
    )


def display_name(data: dict[str, Any] | None = None) -> str:
    """Name the formatting layer uses for the memory service (VX_NAME)."""
    data = load_config_data() if data is None else data
    return data.get("client", {}).get("display_name") or DEFAULTS["client"]["display_name"]


def _header_safe(value: str) -> bool:
    try:
        value.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return "\r" not in value and "\n" not in value


def _deep_merge(base: dict, override: dict):
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v


def _set_nested(d: dict, keys: tuple, value):
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value
