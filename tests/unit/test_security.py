"""Unit tests for JWT token verification."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from txnrules.config import settings
from txnrules.core.security import create_access_token, decode_token, get_user_id_from_token


class TestJWTTokens:
    """Test JWT token creation and validation."""

    def test_create_access_token(self):
        """Test creating an access token with user ID."""
        user_id = uuid4()
        token = create_access_token(user_id)

        payload = decode_token(token)
        assert payload["sub"] == str(user_id)
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_create_access_token_custom_expiry(self):
        user_id = uuid4()
        token = create_access_token(user_id, timedelta(hours=2))

        assert decode_token(token)["sub"] == str(user_id)

    def test_expired_token(self):
        token = create_access_token(uuid4(), timedelta(seconds=-1))

        with pytest.raises(JWTError):
            decode_token(token)

    def test_decode_invalid_token(self):
        with pytest.raises(JWTError):
            decode_token("invalid.token.string")

    def test_decode_tampered_token(self):
        """Test that decoding a tampered token raises JWTError."""
        token = create_access_token(uuid4())
        tampered_token = token[:-5] + "XXXXX"

        with pytest.raises(JWTError):
            decode_token(tampered_token)

    def test_get_user_id_from_token(self):
        user_id = uuid4()

        assert get_user_id_from_token(create_access_token(user_id)) == user_id

    def test_rejects_non_access_tokens(self):
        """Refresh tokens issued by the auth service are not accepted here."""
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh"},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(JWTError):
            get_user_id_from_token(token)

    def test_rejects_missing_subject(self):
        token = jwt.encode({"type": "access"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            get_user_id_from_token(token)

    def test_rejects_non_uuid_subject(self):
        token = jwt.encode(
            {"sub": "not-a-uuid", "type": "access"},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(ValueError):
            get_user_id_from_token(token)
