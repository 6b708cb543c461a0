"""Challenges raised by a synchronization or a payment initiation.

The ``type`` field selects the variant; each variant only carries the fields
meaningful for it. Unknown types are kept as ``UnknownChallenge``.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import Discriminator, Field, Tag, TypeAdapter

from .entity import Entity

AUTH_METHOD_SELECTION = "auth_method_selection"
EMBEDDED = "embedded"
REDIRECT = "redirect"
DECOUPLED = "decoupled"
UNKNOWN = "unknown"

_TYPE_ALIASES = {
    "auth_method_select": AUTH_METHOD_SELECTION,
    "AuthMethodSelectChallenge": AUTH_METHOD_SELECTION,
    "EmbeddedChallenge": EMBEDDED,
    "RedirectChallenge": REDIRECT,
    "DecoupledChallenge": DECOUPLED,
}
_KNOWN_TYPES = {AUTH_METHOD_SELECTION, EMBEDDED, REDIRECT, DECOUPLED}


class AuthMethod(Entity):
    """TAN scheme / SCA method offered by the provider."""

    id: Optional[str] = None
    medium_name: Optional[str] = None
    type: Optional[str] = None
    additional_info: Optional[Any] = None


class ChallengeBase(Entity):
    id: Optional[str] = None
    type: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthMethodSelectChallenge(ChallengeBase):
    """User has to pick one of ``auth_methods``; answer with its id."""

    auth_methods: List[AuthMethod] = Field(default_factory=list)


class EmbeddedChallenge(ChallengeBase):
    """Inline challenge (e.g. a photoTAN image or a TAN prompt)."""

    format: Optional[str] = None
    version: Optional[str] = None
    data: Optional[str] = None
    additional_info: Optional[Any] = None
    label: Optional[str] = None
    input_format: Optional[str] = None
    max_length: Optional[int] = None
    min_length: Optional[int] = None


class RedirectChallenge(ChallengeBase):
    location: Optional[str] = None


class DecoupledChallenge(ChallengeBase):
    """Approval happens out of band, e.g. in the bank's app."""

    message: Optional[str] = None


class UnknownChallenge(ChallengeBase):
    pass


def challenge_type(value: Any) -> str:
    raw = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if not isinstance(raw, str):
        return UNKNOWN
    normalized = _TYPE_ALIASES.get(raw, raw)
    return normalized if normalized in _KNOWN_TYPES else UNKNOWN


Challenge = Annotated[
    Union[
        Annotated[AuthMethodSelectChallenge, Tag(AUTH_METHOD_SELECTION)],
        Annotated[EmbeddedChallenge, Tag(EMBEDDED)],
        Annotated[RedirectChallenge, Tag(REDIRECT)],
        Annotated[DecoupledChallenge, Tag(DECOUPLED)],
        Annotated[UnknownChallenge, Tag(UNKNOWN)],
    ],
    Discriminator(challenge_type),
]

_challenge_adapter: TypeAdapter[Any] = TypeAdapter(Challenge)


def challenge_from_json(session: Any, data: Dict[str, Any]) -> ChallengeBase:
    challenge = _challenge_adapter.validate_python(data)
    challenge._bind(session)
    return challenge
