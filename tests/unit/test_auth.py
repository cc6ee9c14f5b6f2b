"""Unit tests for password hashing and session tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from mwarex.api.errors import AuthenticationError
from mwarex.auth.passwords import hash_password, verify_password
from mwarex.auth.tokens import TokenScope, decode_token, issue_token
from mwarex.config import settings


def test_hash_and_verify_password() -> None:
    hashed = hash_password("hunter22", rounds=4)
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


def test_verify_password_rejects_garbage_hash() -> None:
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_long_passwords_are_accepted() -> None:
    password = "x" * 200
    hashed = hash_password(password, rounds=4)
    assert verify_password(password, hashed)


def test_issue_and_decode_round_trip() -> None:
    user_id = uuid4()
    token = issue_token(user_id, "creator")
    claims = decode_token(token)
    assert claims.user_id == user_id
    assert claims.role == "creator"
    assert claims.expires_at > claims.issued_at


def test_expired_token_is_rejected() -> None:
    past = datetime.now(timezone.utc) - timedelta(days=30)
    token = issue_token(uuid4(), "creator", ttl=timedelta(hours=1), now=past)
    with pytest.raises(AuthenticationError, match="Session expired"):
        decode_token(token)


def test_user_token_does_not_pass_admin_scope() -> None:
    token = issue_token(uuid4(), "admin", scope=TokenScope.USER)
    with pytest.raises(AuthenticationError):
        decode_token(token, scope=TokenScope.ADMIN)


def test_admin_token_does_not_pass_user_scope() -> None:
    token = issue_token(uuid4(), "admin", scope=TokenScope.ADMIN)
    assert decode_token(token, scope=TokenScope.ADMIN).role == "admin"
    with pytest.raises(AuthenticationError):
        decode_token(token, scope=TokenScope.USER)


def test_token_with_bad_subject_is_rejected() -> None:
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "not-a-uuid", "role": "creator", "iat": now, "exp": now + timedelta(hours=1)},
        settings.jwt_secret_user,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(AuthenticationError):
        decode_token(token)
