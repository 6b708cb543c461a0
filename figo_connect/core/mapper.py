from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, TypeVar, Union

from pydantic import ValidationError

from .errors import MalformedResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T")
EntityFactory = Callable[[Any, Any], T]


def _extract_items(payload: Any, collection: Optional[str]) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and collection is not None:
        items = payload.get(collection)
        if items is None:
            return []
        if isinstance(items, list):
            return items
    raise MalformedResponseError(f"Expected a list under '{collection}' in response.")


def map_response(
    session: Any,
    factory: EntityFactory[T],
    payload: Any,
    collection: Optional[str] = None,
) -> Union[None, T, List[T]]:
    """Project a decoded response into entities bound to ``session``.

    ``None`` (not found / empty) passes through. A bare JSON array is mapped
    item by item; otherwise, when ``collection`` is given, the array is
    unwrapped from that envelope key first.
    """
    if payload is None:
        return None

    try:
        if collection is not None or isinstance(payload, list):
            return [factory(session, item) for item in _extract_items(payload, collection)]
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected a JSON object, got {type(payload).__name__}.")
        return factory(session, payload)
    except ValidationError as exc:
        logger.warning("Response did not match the expected model: %s", exc)
        raise MalformedResponseError(str(exc)) from exc
