"""Shared fixtures for figo_connect tests.

HTTP traffic is mocked with pytest-httpx; every registered response is
consumed exactly once by the test that registers it.
"""

import errno

import httpx
import pytest

from figo_connect import Connection, FigoConfig, Session

API = "https://api.figo.test"


def transient_error(code: int = errno.ECONNRESET, message: str = "Connection reset by peer") -> httpx.ReadError:
    """httpx error whose OS-level cause carries ``code``, as raised by a real socket."""
    exc = httpx.ReadError(message)
    exc.__cause__ = OSError(code, message)
    return exc


@pytest.fixture
def config() -> FigoConfig:
    return FigoConfig(api_endpoint=API, user_agent="figo-connect-tests")


@pytest.fixture
def session(config: FigoConfig) -> Session:
    return Session("ASHWLIkouP2O6_test_token", config=config)


@pytest.fixture
def connection(config: FigoConfig) -> Connection:
    return Connection("client-id", "client-secret", redirect_uri="https://app.example/callback", config=config)
