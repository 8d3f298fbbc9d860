"""Tests for session JWTs."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from runera.auth.jwt import create_access_token, verify_token
from runera.config import get_settings
from tests.conftest import RUNNER_ADDRESS


class TestAccessToken:
    def test_create_and_verify(self):
        token = create_access_token(user_id=1, wallet_address=RUNNER_ADDRESS)
        payload = verify_token(token)
        assert payload["sub"] == "1"
        assert payload["walletAddress"] == RUNNER_ADDRESS
        assert payload["type"] == "access"

    def test_expiry_is_seven_days(self):
        payload = verify_token(create_access_token(1, RUNNER_ADDRESS))
        assert payload["exp"] - payload["iat"] == 7 * 24 * 3600

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "1", "type": "access"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_expired_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        token = jwt.encode(
            {"sub": "1", "type": "access", "iat": past - timedelta(days=7), "exp": past},
            get_settings().jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_type_rejected(self):
        token = jwt.encode({"sub": "1", "type": "refresh"}, get_settings().jwt_secret, algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(token)

    def test_missing_secret(self, monkeypatch):
        monkeypatch.setenv("RUNERA_JWT_SECRET", "")
        get_settings.cache_clear()
        try:
            with pytest.raises(RuntimeError, match="RUNERA_JWT_SECRET"):
                create_access_token(1, RUNNER_ADDRESS)
        finally:
            monkeypatch.undo()
            get_settings.cache_clear()
