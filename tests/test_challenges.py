"""Tests for challenge variant selection."""

from datetime import datetime

import pytest

from figo_connect.core.challenges import (
    AuthMethodSelectChallenge,
    DecoupledChallenge,
    EmbeddedChallenge,
    RedirectChallenge,
    UnknownChallenge,
    challenge_from_json,
    challenge_type,
)
from figo_connect.core.data_models import PaymentInitiation, Sync


class TestChallengeVariants:
    def test_auth_method_selection(self):
        session = object()

        challenge = challenge_from_json(
            session,
            {
                "id": "C1",
                "type": "auth_method_selection",
                "auth_methods": [
                    {"id": "M1", "medium_name": "Phone", "type": "mobile_tan"},
                    {"id": "M2", "type": "photo_tan"},
                ],
            },
        )

        assert isinstance(challenge, AuthMethodSelectChallenge)
        assert [method.id for method in challenge.auth_methods] == ["M1", "M2"]
        assert challenge.auth_methods[0].session is session

    def test_embedded(self):
        challenge = challenge_from_json(
            object(),
            {
                "id": "C2",
                "type": "embedded",
                "format": "image/png",
                "data": "iVBORw0KGgo=",
                "label": "Enter TAN",
                "created_at": "2024-05-01T09:30:00",
            },
        )

        assert isinstance(challenge, EmbeddedChallenge)
        assert challenge.format == "image/png"
        assert challenge.created_at == datetime(2024, 5, 1, 9, 30)

    def test_redirect(self):
        challenge = challenge_from_json(object(), {"id": "C3", "type": "redirect", "location": "https://bank/sca"})

        assert isinstance(challenge, RedirectChallenge)
        assert challenge.location == "https://bank/sca"

    def test_decoupled(self):
        challenge = challenge_from_json(object(), {"id": "C4", "type": "decoupled", "message": "Open your app"})

        assert isinstance(challenge, DecoupledChallenge)
        assert challenge.message == "Open your app"

    def test_unknown_type_keeps_its_payload(self):
        challenge = challenge_from_json(object(), {"id": "C5", "type": "video_ident", "url": "https://id"})

        assert isinstance(challenge, UnknownChallenge)
        assert challenge.type == "video_ident"
        assert challenge.url == "https://id"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("auth_method_select", "auth_method_selection"),
            ("AuthMethodSelectChallenge", "auth_method_selection"),
            ("EmbeddedChallenge", "embedded"),
            ("RedirectChallenge", "redirect"),
            ("DecoupledChallenge", "decoupled"),
            (None, "unknown"),
        ],
    )
    def test_type_aliases(self, raw, expected):
        assert challenge_type({"type": raw}) == expected


class TestOperationsCarryingChallenges:
    def test_sync_with_embedded_challenge(self):
        session = object()

        sync = Sync.from_json(
            session,
            {
                "id": "S1",
                "status": "RUNNING",
                "created_at": "2024-05-01T09:00:00",
                "started_at": "2024-05-01T09:00:01",
                "challenge": {"id": "C1", "type": "embedded", "format": "text/plain", "data": "TAN please"},
            },
        )

        assert sync.status == "RUNNING"
        assert sync.is_started
        assert not sync.is_ended
        assert isinstance(sync.challenge, EmbeddedChallenge)
        assert sync.challenge.session is session

    def test_payment_initiation_without_challenge(self):
        initiation = PaymentInitiation.from_json(
            object(), {"id": "P1", "status": "FINISHED", "ended_at": "2024-05-01T09:05:00"}
        )

        assert initiation.challenge is None
        assert initiation.is_ended
