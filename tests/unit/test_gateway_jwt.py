"""Unit tests for JWT verification."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.mp_common.errors import InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import decode_access_token


def test_decode_returns_identity_claims(issue_token) -> None:
    payload = decode_access_token(issue_token("user-123", "seller@example.com", "SELLER"))
    assert payload["sub"] == "user-123"
    assert payload["email"] == "seller@example.com"
    assert payload["role"] == "SELLER"
    assert payload["type"] == "access"


def test_tampered_token_rejected(issue_token) -> None:
    token = issue_token("user-abc", "a@example.com")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token[:-4] + "AAAA")


def test_wrong_secret_rejected() -> None:
    token = jwt.encode(
        {"sub": "user-abc", "type": "access", "exp": datetime.now(UTC) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_expired_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "user-abc", "type": "access", "exp": datetime.now(UTC) - timedelta(seconds=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_non_access_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "user-abc", "type": "refresh", "exp": datetime.now(UTC) + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_missing_subject_rejected() -> None:
    token = jwt.encode(
        {"type": "access", "exp": datetime.now(UTC) + timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)
