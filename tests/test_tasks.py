"""Tests for task progress polling."""

import json

import pytest
from pytest_httpx import HTTPXMock

from figo_connect import FigoError, SdkUsageError, Session, TaskPoller, TaskTimeoutError
from figo_connect.core.data_models import TaskToken
from figo_connect.core.tasks import task_progress_payload, token_value
from tests.conftest import API

PROGRESS_URL = f"{API}/task/progress?id=T1"


class TestPayload:
    def test_defaults(self):
        assert task_progress_payload("T1") == {"id": "T1", "continue": False}

    def test_pin_defaults_save_pin(self):
        assert task_progress_payload("T1", {"pin": "1234"}) == {
            "pin": "1234",
            "id": "T1",
            "save_pin": False,
            "continue": False,
        }

    def test_explicit_values_win(self):
        payload = task_progress_payload("T1", {"pin": "1234", "save_pin": True, "continue": True})

        assert payload["save_pin"] is True
        assert payload["continue"] is True


class TestTokenValue:
    def test_accepted_shapes(self):
        assert token_value("T1") == "T1"
        assert token_value({"task_token": "T2"}) == "T2"
        assert token_value(TaskToken.model_validate({"task_token": "T3"})) == "T3"

    def test_missing_token(self):
        with pytest.raises(SdkUsageError):
            token_value({"process_token": "P1"})


class TestTaskPoller:
    @pytest.mark.asyncio
    async def test_stops_after_the_ended_state(self, session: Session, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={"message": "Connecting"})
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={"is_waiting_for_pin": True})
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={"is_ended": True, "message": "Done"})

        poller = TaskPoller(session, {"task_token": "T1"})
        messages = []
        async for state in poller.states(interval=0):
            messages.append(state.message)
            if state.waiting_for_pin:
                poller.answer(pin="1234")

        bodies = [json.loads(request.content) for request in httpx_mock.get_requests()]
        assert messages == ["Connecting", None, "Done"]
        assert bodies == [
            {"id": "T1", "continue": False},
            {"id": "T1", "continue": False},
            {"pin": "1234", "save_pin": False, "id": "T1", "continue": False},
        ]

    @pytest.mark.asyncio
    async def test_answers_are_sent_once(self, session: Session, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={"is_erroneous": True})
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={})

        poller = TaskPoller(session, "T1")
        poller.answer(continue_=True)
        await poller.poll()
        await poller.poll()

        first, second = [json.loads(request.content) for request in httpx_mock.get_requests()]
        assert first == {"id": "T1", "continue": True}
        assert second == {"id": "T1", "continue": False}

    @pytest.mark.asyncio
    async def test_unknown_task_ends_iteration(self, session: Session, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", status_code=404)

        states = [state async for state in TaskPoller(session, "T1").states(interval=0)]

        assert states == []

    @pytest.mark.asyncio
    async def test_wait_returns_the_final_state(self, session: Session, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={})
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={"is_ended": True, "message": "Done"})

        state = await TaskPoller(session, "T1").wait(interval=0, timeout=5)

        assert state.message == "Done"

    @pytest.mark.asyncio
    async def test_wait_gives_up_at_the_deadline(self, session: Session, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=PROGRESS_URL, method="POST", json={"message": "Still working"})

        with pytest.raises(TaskTimeoutError) as info:
            await TaskPoller(session, "T1").wait(interval=0, timeout=0)

        assert isinstance(info.value, FigoError)
        assert info.value.error == "task_timeout"
        assert info.value.task_token == "T1"
        assert "Still working" in info.value.error_description
