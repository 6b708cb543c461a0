"""Base class for typed projections of figo JSON resources."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, PrivateAttr, model_validator

from .errors import SdkUsageError

DATE_KEY_PATTERN = re.compile(r"(_date|_timestamp|_at)$")


def parse_timestamp(raw_value: Any) -> Optional[datetime]:
    if not isinstance(raw_value, str):
        return None

    value = raw_value.strip()
    if not value:
        return None

    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class Entity(BaseModel):
    """A figo resource bound to the session that fetched it.

    Declared fields are typed; keys the model does not declare are kept in
    ``model_extra`` and stay readable as attributes. ``dump()`` returns the
    fields the server accepts back on update calls.
    """

    model_config = ConfigDict(extra="allow")

    dump_attributes: ClassVar[Tuple[str, ...]] = ()

    _session: Any = PrivateAttr(default=None)

    @model_validator(mode="before")
    @classmethod
    def _project_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        projected: Dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, str) and DATE_KEY_PATTERN.search(key):
                if not value.strip():
                    value = None
                else:
                    parsed = parse_timestamp(value)
                    value = parsed if parsed is not None else value
            elif isinstance(value, dict) and key not in cls.model_fields:
                nested_type = nested_entity_type(key)
                if nested_type is not None:
                    value = nested_type.model_validate(value)
            projected[key] = value
        return projected

    @classmethod
    def from_json(cls, session: Any, data: Dict[str, Any]):
        entity = cls.model_validate(data)
        entity._bind(session)
        return entity

    @property
    def session(self) -> Any:
        return self._session

    def _bind(self, session: Any) -> None:
        if self._session is not None:
            raise SdkUsageError(f"{type(self).__name__} is already bound to a session.")
        self._session = session
        for child in self._child_entities():
            if child._session is None:
                child._bind(session)

    def _child_entities(self) -> Iterator["Entity"]:
        values = list(self.__dict__.values()) + list((self.model_extra or {}).values())
        for value in values:
            items = value if isinstance(value, list) else [value]
            for item in items:
                if isinstance(item, Entity):
                    yield item

    def _require_session(self) -> Any:
        if self._session is None:
            raise SdkUsageError(f"{type(self).__name__} is not bound to a session.")
        return self._session

    def dump(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for name in self.dump_attributes:
            value = getattr(self, name, None)
            if value is None:
                continue
            if isinstance(value, Entity):
                value = value.dump()
            result[name] = value
        return result


_NESTED_ENTITY_TYPES: Dict[str, Type[Entity]] = {}


def register_nested_entity(key: str, entity_type: Type[Entity]) -> None:
    """Map a JSON key (e.g. ``status``) to the entity its object value projects into."""
    _NESTED_ENTITY_TYPES[key] = entity_type


def nested_entity_type(key: str) -> Optional[Type[Entity]]:
    return _NESTED_ENTITY_TYPES.get(key)
