"""
Structured error taxonomy and upstream-failure classification
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

# Status codes retriable by default (generic HTTP)
_RETRIABLE_STATUS = {408, 429, 500, 502, 503, 504}
_PERMANENT_STATUS = {400, 401, 403, 404, 410}

_log = logging.getLogger(__name__)

T = TypeVar("T")

# ------------------------------------------------------------------ #
# 1.  Structured error envelope
# ------------------------------------------------------------------ #


class ErrorCode:
    VALIDATION = "VALIDATION"
    UPSTREAM_TRANSIENT = "UPSTREAM_TRANSIENT"
    UPSTREAM_PERMANENT = "UPSTREAM_PERMANENT"
    INTERNAL_INVARIANT = "INTERNAL_INVARIANT"
    QUERY_PROCESSING = "QUERY_PROCESSING"


@dataclass(eq=False)
class StructuredError(Exception):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    retryable: bool = False

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details or {},
            "retryable": self.retryable,
        }


class ValidationError(StructuredError):
    """Malformed query or options; surfaced to the caller, never retried"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.VALIDATION, message, details, False)


class UpstreamTransientError(StructuredError):
    """Timeout, network failure or throttling in a collaborator"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.UPSTREAM_TRANSIENT, message, details, True)


class UpstreamPermanentError(StructuredError):
    """Not-found, permission or credential failure in a collaborator"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.UPSTREAM_PERMANENT, message, details, False)


class InternalInvariantError(StructuredError):
    """Broken internal assumption; replaced by a safe default, never propagated"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.INTERNAL_INVARIANT, message, details, False)


class QueryProcessingError(StructuredError):
    """Query understanding failed; fatal for the current call"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.QUERY_PROCESSING, message, details, False)


# ------------------------------------------------------------------ #
# 2.  Upstream failure classification
# ------------------------------------------------------------------ #


def classify_upstream_error(exc: BaseException, op_name: str) -> StructuredError:
    """
    Map an arbitrary collaborator exception onto the transient/permanent split.
    Structured errors pass through unchanged.
    """
    if isinstance(exc, StructuredError):
        return exc

    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    details = {"operation": op_name, "status": status, "type": type(exc).__name__}

    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return UpstreamTransientError(f"{op_name} failed – {exc}", details)
    if status in _RETRIABLE_STATUS:
        return UpstreamTransientError(f"{op_name} failed with status {status} – {exc}", details)
    if isinstance(exc, (FileNotFoundError, PermissionError)) or status in _PERMANENT_STATUS:
        return UpstreamPermanentError(f"{op_name} failed – {exc}", details)

    # Unknown failures are not retried
    return UpstreamPermanentError(f"{op_name} failed – {exc}", details)


# ------------------------------------------------------------------ #
# 3.  Safe-default helper
# ------------------------------------------------------------------ #


def with_safe_default(primary_fn: Callable[[], T], default_fn: Callable[[], T], *, op_name: str) -> T:
    """
    Execute `primary_fn`; on failure log and return the documented default.
    """
    try:
        return primary_fn()
    except Exception as e:  # noqa: BLE001
        err = e if isinstance(e, InternalInvariantError) else InternalInvariantError(
            f"{op_name} raised {type(e).__name__}: {e}"
        )
        _log.warning("%s degraded – %s", op_name, err)
        return default_fn()
