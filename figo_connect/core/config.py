from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from .. import __version__

DEFAULT_API_ENDPOINT = "https://api.figo.me"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_ATTEMPTS = 3


def _normalize_endpoint(endpoint: str) -> str:
    endpoint = endpoint.strip().rstrip("/")
    if not endpoint.startswith("https://"):
        # Legacy configs only carried the host name.
        endpoint = f"https://{endpoint}"
    return endpoint


def _normalize_fingerprint(value: str) -> str:
    # Accepts "AB:CD:..." as well as bare hex digests.
    return value.strip().replace(":", "").upper()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class FigoConfig:
    """Endpoint configuration shared by every context built from it.

    Build it once at startup and hand it to ``Connection`` / ``Session``.
    Instances are frozen; use ``dataclasses.replace`` to derive a variant.
    """

    api_endpoint: str = DEFAULT_API_ENDPOINT
    user_agent: str = f"figo-connect/{__version__}"
    fingerprints: Tuple[str, ...] = field(default_factory=tuple)
    verify_tls: bool = True
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_backoff: bool = False
    serialize_requests: bool = False

    def __post_init__(self) -> None:
        if not self.api_endpoint:
            raise ValueError("api_endpoint is required.")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        object.__setattr__(self, "api_endpoint", _normalize_endpoint(self.api_endpoint))
        object.__setattr__(
            self,
            "fingerprints",
            tuple(_normalize_fingerprint(item) for item in self.fingerprints if item and item.strip()),
        )

    @property
    def api_base_url(self) -> str:
        return self.api_endpoint

    @property
    def pinning_enabled(self) -> bool:
        return bool(self.fingerprints)

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "FigoConfig":
        """Load overrides from the environment (and an optional ``.env`` file)."""
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()

        kwargs: Dict[str, Any] = {}
        endpoint = os.getenv("FIGO_API_ENDPOINT")
        if endpoint:
            kwargs["api_endpoint"] = endpoint
        user_agent = os.getenv("FIGO_USER_AGENT")
        if user_agent:
            kwargs["user_agent"] = user_agent
        fingerprints = os.getenv("FIGO_API_FINGERPRINTS") or os.getenv("FIGO_API_FINGERPRINT")
        if fingerprints:
            kwargs["fingerprints"] = tuple(fingerprints.split(","))
        timeout = os.getenv("FIGO_TIMEOUT")
        if timeout:
            kwargs["timeout"] = float(timeout)
        kwargs["serialize_requests"] = _env_flag("FIGO_SERIALIZE_REQUESTS")
        kwargs["retry_backoff"] = _env_flag("FIGO_RETRY_BACKOFF")
        return cls(**kwargs)
