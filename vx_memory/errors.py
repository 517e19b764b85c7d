"""Classified errors for the VX memory client.

Every failure that crosses the request pipeline boundary is a ``VXError``
carrying a taxonomy code, an optional HTTP status and a retryable flag.
Terminal failures can be appended to a JSONL error log (~/.vx/errors.log)
so the CLI can show what went wrong in earlier sessions.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from enum import Enum

from vx_memory.utils import VX_DIR

LOG_DIR = VX_DIR
ERROR_LOG = LOG_DIR / "errors.log"

logger = logging.getLogger("vx")


class ErrorCode(str, Enum):
    """Failure taxonomy shared by validation and the request pipeline."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE


_RETRYABLE = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.SERVER_ERROR,
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})

_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.UNAUTHORIZED,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMITED,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.SERVER_ERROR,
    503: ErrorCode.SERVER_ERROR,
    504: ErrorCode.SERVER_ERROR,
}


def classify_status(status: int) -> ErrorCode:
    """Map a non-success HTTP status to its taxonomy code."""
    return _STATUS_CODES.get(status, ErrorCode.UNKNOWN)


class VXError(Exception):
    """The only error shape raised by the client."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        status_code: int | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code)
        self.status_code = status_code
        self.retryable = self.code.retryable if retryable is None else retryable
        self.timestamp = datetime.now().isoformat()

    def __repr__(self) -> str:
        return (
            f"VXError(code={self.code.value}, status={self.status_code}, "
            f"retryable={self.retryable}, message={self.message!r})"
        )


def validation_error(message: str) -> VXError:
    return VXError(message, ErrorCode.VALIDATION_ERROR, retryable=False)


def log_error(error: VXError | Exception, *, component: str = "vx"):
    """Log an error to the error log (~/.vx/errors.log).

    Appends a structured JSON line for machine-readable error tracking.
    """
    entry = {
        "timestamp": datetime.now().isoformat(),
        "component": component,
        "code": getattr(error, "code", ErrorCode.UNKNOWN).value,
        "status": getattr(error, "status_code", None),
        "retryable": getattr(error, "retryable", False),
        "message": str(error),
    }
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        with open(ERROR_LOG, "a") as f:
            f.write(json.dumps(entry, default=str) + "\n")
    except OSError as exc:
        logger.debug("Cannot write error log %s: %s", ERROR_LOG, exc)

    level = logging.WARNING if entry["retryable"] else logging.ERROR
    logger.log(level, "[%s] %s: %s", component, entry["code"], entry["message"])


def get_recent_errors(limit: int = 20) -> list[dict]:
    """Read recent errors from the error log."""
    if not ERROR_LOG.exists():
        return []
    lines = ERROR_LOG.read_text().strip().split("\n")
    errors = []
    for line in lines[-limit:]:
        try:
            errors.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return errors


def clear_error_log():
    """Clear the error log."""
    if ERROR_LOG.exists():
        ERROR_LOG.write_text("")
