from __future__ import annotations

import asyncio
import errno
import hashlib
import json
import logging
import re
import socket
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, Tuple

import httpx

from .config import FigoConfig
from .errors import (
    ApiError,
    FigoError,
    MalformedResponseError,
    NetworkError,
    RequestTimeoutError,
    TlsFingerprintMismatchError,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)

TASK_PROGRESS_PATH = re.compile(r"/task/progress\?id=([^&]*)")
TLS_COMPLETE_EVENT = "connection.start_tls.complete"

# OS-level failures worth another attempt, keyed by errno.
TRANSIENT_ERRNOS: Dict[int, str] = {
    errno.ECONNRESET: "reset",
    errno.ECONNREFUSED: "refused",
    errno.EHOSTUNREACH: "unreachable",
    errno.EPIPE: "broken_pipe",
    errno.ETIMEDOUT: "socket_timeout",
}
TRANSIENT_GAI_ERRORS: Dict[int, str] = {
    getattr(socket, name): reason
    for name, reason in (("EAI_AGAIN", "dns_retry"), ("EAI_NONAME", "name_not_found"))
    if hasattr(socket, name)
}

TraceHook = Callable[[str, Dict[str, Any]], Awaitable[None]]


def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_transport_error(exc: BaseException) -> FigoError:
    """Translate an httpx/OS failure into the figo error taxonomy."""
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return RequestTimeoutError()
    if isinstance(exc, httpx.DecodingError):
        return MalformedResponseError(f"Undecodable response body: {exc}")

    description = str(exc) or exc.__class__.__name__
    for cause in _iter_causes(exc):
        reason: Optional[str] = None
        if isinstance(cause, socket.gaierror):
            reason = TRANSIENT_GAI_ERRORS.get(cause.errno)
        elif isinstance(cause, TimeoutError) and cause.errno is None:
            reason = "socket_timeout"
        elif isinstance(cause, OSError):
            reason = TRANSIENT_ERRNOS.get(cause.errno)
        if reason:
            return TransientNetworkError(reason, description)
    return NetworkError(error_description=description)


def certificate_fingerprints(der: bytes) -> Tuple[str, str]:
    """SHA-1 and SHA-256 digests of a DER certificate as bare uppercase hex."""
    return (
        hashlib.sha1(der).hexdigest().upper(),
        hashlib.sha256(der).hexdigest().upper(),
    )


def _colon_hex(digest: str) -> str:
    return ":".join(digest[i : i + 2] for i in range(0, len(digest), 2))


def verify_fingerprint(der: Optional[bytes], accepted: Tuple[str, ...]) -> None:
    if not der:
        raise TlsFingerprintMismatchError("<no certificate>")
    candidates = certificate_fingerprints(der)
    if not any(candidate in accepted for candidate in candidates):
        raise TlsFingerprintMismatchError(_colon_hex(candidates[0]))


def build_pinning_trace(accepted: Tuple[str, ...]) -> TraceHook:
    """httpcore trace hook rejecting peers whose certificate is not pinned.

    It fires right after the TLS handshake, so a mismatch aborts the
    connection before any request bytes are written. httpcore has not taken
    ownership of the new TLS stream at that point, so a rejected stream is
    closed here.
    """

    async def _trace(event_name: str, info: Dict[str, Any]) -> None:
        if event_name != TLS_COMPLETE_EVENT:
            return
        stream = info.get("return_value")
        ssl_object = stream.get_extra_info("ssl_object") if stream is not None else None
        der = ssl_object.getpeercert(binary_form=True) if ssl_object is not None else None
        try:
            verify_fingerprint(der, accepted)
        except TlsFingerprintMismatchError:
            if stream is not None:
                await stream.aclose()
            raise

    return _trace


def _parse_error_envelope(envelope: Dict[str, Any], status_code: int) -> Tuple[str, Optional[str]]:
    error = envelope.get("error")
    description = envelope.get("error_description")
    if isinstance(error, dict):
        description = description or error.get("description") or error.get("message")
        error = error.get("code") or error.get("name")
    if error is None:
        error = f"http_{status_code}"
    return str(error), description


class Transport:
    """Single outbound HTTPS client bound to the configured figo host."""

    def __init__(self, config: FigoConfig):
        self.config = config
        self._trace: Optional[TraceHook] = (
            build_pinning_trace(config.fingerprints) if config.pinning_enabled else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url,
            headers={"Accept": "application/json", "User-Agent": config.user_agent},
            timeout=httpx.Timeout(config.timeout),
            verify=config.verify_tls,
        )

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None,
    ) -> Any:
        """Perform one exchange and return the decoded JSON body (``None`` when empty or 404)."""
        extensions = {"trace": self._trace} if self._trace is not None else None
        try:
            response = await asyncio.wait_for(
                self._client.request(method, path, headers=headers, content=body, extensions=extensions),
                timeout=self.config.timeout,
            )
        except FigoError:
            raise
        except (httpx.RequestError, asyncio.TimeoutError, OSError) as exc:
            error = classify_transport_error(exc)
            logger.info("figo API %s %s failed: %s (%s)", method, path, error.error, error.error_description)
            raise error from exc

        return self._evaluate(method, path, response)

    def _evaluate(self, method: str, path: str, response: httpx.Response) -> Any:
        status_code = response.status_code
        text = response.text

        if 200 <= status_code < 300:
            if not text:
                logger.debug("figo API %s %s -> %s (empty)", method, path, status_code)
                return None
            try:
                payload = json.loads(text)
            except ValueError as exc:
                logger.info("figo API %s %s -> %s with unreadable body", method, path, status_code)
                raise MalformedResponseError(str(exc), body=text, status_code=status_code) from exc
            self._log_success(method, path, status_code, payload)
            return payload

        try:
            envelope = json.loads(text) if text else None
        except ValueError:
            envelope = None

        if status_code == 404:
            logger.info("figo API %s %s -> 404, treating as not found", method, path)
            return None

        if not isinstance(envelope, dict):
            logger.info("figo API %s %s -> %s without error envelope", method, path, status_code)
            raise MalformedResponseError(
                f"HTTP {status_code} response without a JSON error envelope.",
                body=text,
                status_code=status_code,
            )

        error, description = _parse_error_envelope(envelope, status_code)
        logger.info("figo API %s %s -> %s error=%s", method, path, status_code, error)
        raise ApiError(error, description, status_code)

    @staticmethod
    def _log_success(method: str, path: str, status_code: int, payload: Any) -> None:
        task_match = TASK_PROGRESS_PATH.search(path)
        if task_match is None:
            logger.debug("figo API %s %s -> %s", method, path, status_code)
            return
        erroneous = isinstance(payload, dict) and payload.get("is_erroneous") is True
        logger.log(
            logging.INFO if erroneous else logging.DEBUG,
            "figo task %s progress: %s",
            task_match.group(1),
            payload,
        )
