"""Errors raised by figo Connect calls.

Every failure of a call surfaces as a ``FigoError`` subclass. A missing
resource (HTTP 404) is not an error: the call returns ``None``.
"""
from __future__ import annotations

from typing import Optional


class FigoError(Exception):
    """Base class carrying the figo error code and its description."""

    default_error = "figo_error"

    def __init__(self, error: Optional[str] = None, error_description: Optional[str] = None) -> None:
        self.error = error or self.default_error
        self.error_description = error_description
        super().__init__(error_description or self.error)

    def __str__(self) -> str:
        return self.error_description or self.error


class NetworkError(FigoError):
    """Transport failure outside the recognized transient set; never retried."""

    default_error = "socket_error"


class TransientNetworkError(NetworkError):
    """Connection reset/refused, unreachable host, DNS hiccup, broken pipe or OS timeout."""

    def __init__(self, reason: str, error_description: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(error_description=error_description or reason)


class RequestTimeoutError(TransientNetworkError):
    default_error = "timeout"

    def __init__(self, error_description: str = "Server connection timed out.") -> None:
        super().__init__("timeout", error_description)


class TlsFingerprintMismatchError(FigoError):
    default_error = "tls_fingerprint_mismatch"

    def __init__(self, fingerprint: str) -> None:
        self.fingerprint = fingerprint
        super().__init__(error_description=f"Certificate fingerprint {fingerprint} is not accepted.")


class MalformedResponseError(FigoError):
    """The server answered but the body could not be read as the expected JSON."""

    default_error = "json_error"

    def __init__(self, error_description: str, body: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.body = body
        self.status_code = status_code
        super().__init__(error_description=error_description)


class ApiError(FigoError):
    """Structured ``{error, error_description}`` answer to a non-2xx, non-404 request."""

    def __init__(self, error: str, error_description: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(error, error_description)


class SdkUsageError(FigoError):
    default_error = "sdk_usage_error"

    def __init__(self, error_description: str) -> None:
        super().__init__(error_description=error_description)


class TaskTimeoutError(FigoError):
    """A polled task did not report ``is_ended`` before the caller's deadline."""

    default_error = "task_timeout"

    def __init__(self, task_token: str, error_description: Optional[str] = None) -> None:
        self.task_token = task_token
        super().__init__(error_description=error_description or f"Timed out waiting for task {task_token}.")
