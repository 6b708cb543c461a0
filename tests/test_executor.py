"""Tests for the retrying request executor."""

import asyncio
import errno
import json
from dataclasses import replace
from datetime import datetime

import httpx
import pytest
from pytest_httpx import HTTPXMock

from figo_connect import (
    ApiError,
    FigoConfig,
    RequestTimeoutError,
    SdkUsageError,
    TlsFingerprintMismatchError,
    TransientNetworkError,
)
from figo_connect.core.executor import RequestExecutor, clean, stringify_form, with_query
from tests.conftest import API, transient_error


@pytest.fixture
def executor(config: FigoConfig) -> RequestExecutor:
    return RequestExecutor(config, "Bearer test-token")


# =============================================================================
# Retry policy
# =============================================================================


class TestRetryPolicy:
    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        for _ in range(3):
            httpx_mock.add_exception(transient_error())

        with pytest.raises(TransientNetworkError) as info:
            await executor.query("/rest/accounts")

        assert info.value.reason == "reset"
        assert len(httpx_mock.get_requests()) == 3

    @pytest.mark.asyncio
    async def test_recovers_after_two_transient_failures(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_exception(transient_error(errno.ECONNREFUSED, "Connection refused"))
        httpx_mock.add_exception(transient_error())
        httpx_mock.add_response(url=f"{API}/rest/accounts", json={"accounts": []})

        result = await executor.query("/rest/accounts")

        assert result == {"accounts": []}
        assert len(httpx_mock.get_requests()) == 3

    @pytest.mark.asyncio
    async def test_timeouts_are_retried(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        for _ in range(3):
            httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        with pytest.raises(RequestTimeoutError):
            await executor.query("/rest/user")

        assert len(httpx_mock.get_requests()) == 3

    @pytest.mark.asyncio
    async def test_api_errors_are_not_retried(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_response(
            url=f"{API}/rest/accounts",
            method="POST",
            status_code=400,
            json={"error": "invalid_request", "error_description": "Bad input."},
        )

        with pytest.raises(ApiError):
            await executor.query("/rest/accounts", {"name": "x"}, "POST")

        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_fingerprint_mismatch_is_not_retried(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_exception(TlsFingerprintMismatchError("AA:BB"))

        with pytest.raises(TlsFingerprintMismatchError):
            await executor.query("/rest/user")

        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_max_attempts_is_configurable(self, config: FigoConfig, httpx_mock: HTTPXMock):
        executor = RequestExecutor(replace(config, max_attempts=1), "Bearer test-token")
        httpx_mock.add_exception(transient_error())

        with pytest.raises(TransientNetworkError):
            await executor.query("/rest/user")

        assert len(httpx_mock.get_requests()) == 1


# =============================================================================
# Request bodies and headers
# =============================================================================


class TestRequestEncoding:
    @pytest.mark.asyncio
    async def test_json_body_drops_null_values(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=f"{API}/rest/user", method="PUT", json={})

        await executor.query("/rest/user", {"name": "Jane", "address": None, "language": "de"}, "PUT")

        request = httpx_mock.get_request()
        assert json.loads(request.content) == {"name": "Jane", "language": "de"}
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Content-Length"] == str(len(request.content))
        assert request.headers["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_datetime_values_are_serialized(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=f"{API}/rest/transactions", method="PUT", json={})

        await executor.query("/rest/transactions", {"since": datetime(2024, 3, 1, 12, 30)}, "PUT")

        assert json.loads(httpx_mock.get_request().content) == {"since": "2024-03-01T12:30:00"}

    @pytest.mark.asyncio
    async def test_form_body(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=f"{API}/auth/token", method="POST", json={"access_token": "A1"})

        await executor.query(
            "/auth/token",
            {"grant_type": "refresh_token", "refresh_token": "R1", "scope": None},
            "POST",
            encoding="form",
        )

        request = httpx_mock.get_request()
        assert request.content == b"grant_type=refresh_token&refresh_token=R1"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"

    @pytest.mark.asyncio
    async def test_no_body_sends_zero_length(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=f"{API}/rest/accounts/A1", method="DELETE", status_code=204)

        assert await executor.query("/rest/accounts/A1", method="DELETE") is None

        request = httpx_mock.get_request()
        assert request.content == b""
        assert request.headers["Content-Length"] == "0"

    @pytest.mark.asyncio
    async def test_body_is_resent_on_retry(self, executor: RequestExecutor, httpx_mock: HTTPXMock):
        httpx_mock.add_exception(transient_error())
        httpx_mock.add_response(url=f"{API}/rest/user", method="PUT", json={})

        await executor.query("/rest/user", {"name": "Jane"}, "PUT")

        first, second = httpx_mock.get_requests()
        assert first.content == second.content == b'{"name": "Jane"}'


class TestHelpers:
    def test_clean_keeps_falsy_values(self):
        assert clean({"a": None, "b": 0, "c": False, "d": ""}) == {"b": 0, "c": False, "d": ""}

    def test_form_repeats_list_values(self):
        assert stringify_form({"ids": ["A1", "A2"]}) == b"ids=A1&ids=A2"

    def test_with_query(self):
        assert with_query("/rest/transactions", {"count": 10, "since": None}) == "/rest/transactions?count=10"
        assert with_query("/task/progress?id=T1", {"x": 1}) == "/task/progress?id=T1&x=1"
        assert with_query("/rest/user") == "/rest/user"


# =============================================================================
# Concurrency models
# =============================================================================


class _GatedTransport:
    """Fake transport whose requests block until the test opens the gate."""

    instances = []

    def __init__(self, config):
        self.gate = asyncio.Event()
        self.closed = False
        _GatedTransport.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        self.closed = True

    async def request(self, path, method="GET", headers=None, body=None):
        await self.gate.wait()
        return {"path": path}


async def _until(predicate):
    while not predicate():
        await asyncio.sleep(0)


@pytest.fixture
def gated():
    _GatedTransport.instances = []
    return _GatedTransport


class TestConcurrencyModels:
    @pytest.mark.asyncio
    async def test_serialized_mode_rejects_overlapping_calls(self, config: FigoConfig, gated):
        executor = RequestExecutor(replace(config, serialize_requests=True), "Bearer t", transport_factory=gated)

        first = asyncio.create_task(executor.query("/rest/accounts"))
        await _until(lambda: gated.instances)

        with pytest.raises(SdkUsageError, match="one request at a time"):
            await executor.query("/rest/user")

        gated.instances[0].gate.set()
        assert await first == {"path": "/rest/accounts"}

    @pytest.mark.asyncio
    async def test_serialized_mode_reuses_one_transport(self, config: FigoConfig, gated):
        executor = RequestExecutor(replace(config, serialize_requests=True), "Bearer t", transport_factory=gated)
        first = asyncio.create_task(executor.query("/rest/accounts"))
        await _until(lambda: gated.instances)
        gated.instances[0].gate.set()
        await first

        await executor.query("/rest/user")
        await executor.close()

        assert len(gated.instances) == 1
        assert gated.instances[0].closed

    @pytest.mark.asyncio
    async def test_per_call_mode_allows_overlap(self, config: FigoConfig, gated):
        executor = RequestExecutor(config, "Bearer t", transport_factory=gated)

        calls = [asyncio.create_task(executor.query(f"/rest/accounts/A{i}")) for i in range(3)]
        await _until(lambda: len(gated.instances) == 3)
        for transport in gated.instances:
            transport.gate.set()

        results = await asyncio.gather(*calls)

        assert [r["path"] for r in results] == ["/rest/accounts/A0", "/rest/accounts/A1", "/rest/accounts/A2"]
        assert len(gated.instances) == 3
        assert all(t.closed for t in gated.instances)
