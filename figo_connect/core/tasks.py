"""Polling helpers for figo background tasks.

figo runs bank communication asynchronously. A call that triggers it hands
back a task token; the client then polls ``/task/progress`` until the state
reports ``is_ended``, answering PIN or challenge prompts on the way::

    poller = TaskPoller(session, token)
    async for state in poller.states(interval=2.0):
        if state.waiting_for_pin:
            poller.answer(pin=ask_user())
        elif state.erroneous:
            poller.answer(continue_=True)

The poll cadence is the caller's decision; nothing here backs off on its own.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Mapping, Optional

from .errors import SdkUsageError, TaskTimeoutError

logger = logging.getLogger(__name__)


def token_value(token: Any, attribute: str = "task_token") -> str:
    """Accept a token entity, a raw response dict or the bare string."""
    if isinstance(token, str):
        value: Any = token
    elif isinstance(token, Mapping):
        value = token.get(attribute)
    else:
        value = getattr(token, attribute, None)
    if not value:
        raise SdkUsageError(f"A {attribute} is required.")
    return str(value)


def task_progress_payload(task_token: str, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(options or {})
    payload["id"] = task_token
    if payload.get("pin") is not None and payload.get("save_pin") is None:
        payload["save_pin"] = False
    if payload.get("continue") is None:
        payload["continue"] = False
    return payload


class TaskPoller:
    """Caller-driven polling loop over one task token."""

    def __init__(self, session: Any, task_token: Any):
        self.session = session
        self.task_token = token_value(task_token)
        self._pending: Dict[str, Any] = {}

    def answer(
        self,
        pin: Optional[str] = None,
        save_pin: Optional[bool] = None,
        response: Optional[str] = None,
        continue_: Optional[bool] = None,
    ) -> None:
        """Queue input for the next poll only."""
        self._pending = {
            "pin": pin,
            "save_pin": save_pin,
            "response": response,
            "continue": continue_,
        }

    async def poll(self):
        options, self._pending = self._pending, {}
        return await self.session.get_task_state(self.task_token, options)

    async def states(self, interval: float) -> AsyncIterator[Any]:
        """Yield every polled state; stop after the one reporting ``ended``."""
        while True:
            state = await self.poll()
            if state is None:
                logger.warning("Task %s is unknown to the server", self.task_token)
                return
            yield state
            if state.ended:
                return
            await asyncio.sleep(interval)

    async def wait(self, interval: float, timeout: float):
        """Poll until the task ends, without answering prompts.

        Raises ``TaskTimeoutError`` once ``timeout`` seconds pass without the
        task reporting ``is_ended``.
        """
        deadline = asyncio.get_running_loop().time() + timeout
        while True:
            state = await self.poll()
            if state is None or state.ended:
                return state
            if asyncio.get_running_loop().time() >= deadline:
                raise TaskTimeoutError(
                    self.task_token,
                    f"Timed out waiting for task {self.task_token} (last message {state.message!r}).",
                )
            await asyncio.sleep(interval)
