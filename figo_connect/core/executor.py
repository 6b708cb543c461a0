from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from .config import FigoConfig
from .errors import SdkUsageError, TransientNetworkError
from .transport import Transport

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def clean(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is ``None``; they are never put on the wire."""
    return {key: value for key, value in data.items() if value is not None}


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    dump = getattr(value, "dump", None)
    if callable(dump):
        return dump()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def stringify_json(data: Mapping[str, Any]) -> bytes:
    return json.dumps(clean(data), default=_json_default).encode("utf-8")


def stringify_form(data: Mapping[str, Any]) -> bytes:
    return urlencode(clean(data), doseq=True).encode("utf-8")


STRINGIFIERS: Dict[str, Tuple[str, Callable[[Mapping[str, Any]], bytes]]] = {
    "json": (JSON_CONTENT_TYPE, stringify_json),
    "form": (FORM_CONTENT_TYPE, stringify_form),
}


def with_query(path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Append ``params`` as a query string, skipping ``None`` values."""
    cleaned = clean(params or {})
    if not cleaned:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{urlencode(cleaned, doseq=True)}"


def _is_retryable(exc: BaseException) -> bool:
    """Retry only the recognized transient transport failures."""
    return isinstance(exc, TransientNetworkError)


class RequestExecutor:
    """Runs authenticated requests with a bounded number of attempts.

    With ``config.serialize_requests`` the executor keeps one persistent
    transport and refuses a second call while one is in flight; otherwise
    every call gets its own transport and calls may overlap freely.
    """

    def __init__(
        self,
        config: FigoConfig,
        authorization: str,
        transport_factory: Callable[[FigoConfig], Transport] = Transport,
    ):
        self.config = config
        self._authorization = authorization
        self._transport_factory = transport_factory
        self._shared_transport: Optional[Transport] = None
        self._in_flight = False
        self._retry = retry(
            stop=stop_after_attempt(config.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=5) if config.retry_backoff else wait_none(),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def query(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
        encoding: str = "json",
    ) -> Any:
        content_type, stringify = STRINGIFIERS[encoding]
        serialized = self.config.serialize_requests
        if serialized:
            if self._in_flight:
                raise SdkUsageError("one request at a time")
            self._in_flight = True

        @self._retry
        async def _attempt() -> Any:
            body = stringify(data) if data is not None else None
            headers = {
                "Authorization": self._authorization,
                "Content-Type": content_type,
                "Content-Length": str(len(body) if body else 0),
            }
            if serialized:
                return await self._get_shared_transport().request(path, method, headers, body)
            async with self._transport_factory(self.config) as transport:
                return await transport.request(path, method, headers, body)

        try:
            return await _attempt()
        finally:
            if serialized:
                self._in_flight = False

    def _get_shared_transport(self) -> Transport:
        if self._shared_transport is None:
            self._shared_transport = self._transport_factory(self.config)
        return self._shared_transport

    async def close(self) -> None:
        """Dispose the persistent transport, if one was opened."""
        if self._shared_transport is not None:
            await self._shared_transport.aclose()
            self._shared_transport = None
